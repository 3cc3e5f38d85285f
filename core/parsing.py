"""
CSV ledger parsing.
Handles both flat transaction ledgers and comparative balance sheet exports.
"""
import csv
import io
from typing import Dict, List, Literal, Optional, Sequence

from core.config import get_settings
from core.exceptions import FormatError, InvalidAmountError, MissingColumnError
from core.logger import setup_logger
from core.normalize import normalize_string, parse_amount, try_parse_amount
from core.schema import ZERO, BalanceSheetItem, IngestResult, LedgerRecord, Section

logger = setup_logger(__name__)

Layout = Literal["ledger", "balance_sheet"]
RawTable = Sequence[Sequence[str]]

# Header synonyms for flat ledger exports, tried in order
LEDGER_COLUMNS: Dict[str, List[str]] = {
    "account": ["account", "account name", "account_name"],
    "account_type": ["account type", "account_type", "type"],
    "amount": ["amount", "debit", "credit", "net amount"],
    "date": ["date", "transaction date", "posting date"],
    "description": ["description", "memo", "transaction description"],
    "reference": ["reference", "document number", "transaction number"],
}
OPTIONAL_COLUMNS = {"reference"}

# Comparative balance sheet layout
BALANCE_SHEET_MIN_ROWS = 12
HEADER_SCAN_START = 5
HEADER_SCAN_END = 10
HEADER_MARKER = "financial"
MIN_BALANCE_SHEET_COLUMNS = 4
BALANCE_SHEET_REFERENCE = "Balance Sheet Analysis"

# Group labels that carry no balance of their own
GROUP_LABELS = {
    "current assets",
    "fixed assets",
    "other assets",
    "current liabilities",
    "long term liabilities",
    "equity",
    "bank",
    "accounts receivable",
    "other current asset",
    "accounts payable",
    "credit card",
    "other current liability",
}


def read_csv_table(content: bytes) -> List[List[str]]:
    """
    Decode uploaded CSV bytes into a raw table of strings.

    Args:
        content: Raw file bytes (UTF-8, optional BOM)

    Returns:
        List of rows, each a list of cell strings

    Raises:
        FormatError: If the content is not UTF-8 CSV
    """
    try:
        text = content.decode("utf-8-sig")
    except UnicodeDecodeError as e:
        raise FormatError(
            "File is not valid UTF-8 text",
            details={"error": str(e)}
        )

    try:
        return [row for row in csv.reader(io.StringIO(text))]
    except csv.Error as e:
        raise FormatError(
            "Failed to read CSV",
            details={"error": str(e)}
        )


def map_ledger_columns(header: Sequence[str]) -> Dict[str, int]:
    """
    Map semantic ledger fields onto header column indices.

    Raises:
        MissingColumnError: If a required field has no matching header
    """
    column_map: Dict[str, int] = {}
    for idx, col in enumerate(header):
        column_map.setdefault(normalize_string(col), idx)

    indices: Dict[str, int] = {}
    for field, synonyms in LEDGER_COLUMNS.items():
        for name in synonyms:
            if name in column_map:
                indices[field] = column_map[name]
                break
        else:
            if field not in OPTIONAL_COLUMNS:
                raise MissingColumnError(field, synonyms)

    return indices


def _has_ledger_header(table: RawTable) -> bool:
    if not table:
        return False
    try:
        map_ledger_columns(table[0])
    except MissingColumnError:
        return False
    return True


def parse_ledger(table: RawTable) -> List[LedgerRecord]:
    """
    Parse a flat transaction ledger whose first row is the header.

    Args:
        table: Raw CSV rows

    Returns:
        List of ledger records

    Raises:
        FormatError: If there is no data row
        MissingColumnError: If a required column is missing
        InvalidAmountError: If an amount cell is not numeric
    """
    if len(table) < 2:
        raise FormatError(
            "CSV file must have at least a header and one data row",
            details={"rows": len(table)}
        )

    header = table[0]
    columns = map_ledger_columns(header)
    logger.debug(f"Ledger column mapping: {columns}")

    records: List[LedgerRecord] = []
    skipped = 0
    for row_number, row in enumerate(table[1:], start=2):
        if len(row) < len(header):
            skipped += 1
            continue

        raw_amount = row[columns["amount"]]
        try:
            amount = parse_amount(raw_amount)
        except ValueError:
            raise InvalidAmountError(row_number, raw_amount)

        records.append(LedgerRecord(
            account=row[columns["account"]].strip(),
            account_type=row[columns["account_type"]].strip(),
            amount=amount,
            date=row[columns["date"]].strip(),
            description=row[columns["description"]].strip(),
            reference=row[columns["reference"]].strip() if "reference" in columns else "",
        ))

    if skipped:
        logger.debug(f"Skipped {skipped} incomplete ledger rows")
    logger.info(f"Parsed {len(records)} ledger records")
    return records


def find_balance_sheet_header(table: RawTable) -> Optional[int]:
    """Return the index of the comparative balance sheet header row, if any."""
    for i in range(HEADER_SCAN_START, min(HEADER_SCAN_END, len(table))):
        row = table[i]
        if len(row) < MIN_BALANCE_SHEET_COLUMNS:
            continue
        if any(HEADER_MARKER in cell.lower() for cell in row):
            return i
    return None


def is_group_label(account_name: str) -> bool:
    """Check whether a label is a bare group heading such as "Bank"."""
    return account_name.lower() in GROUP_LABELS


def _section_marker(account_name: str) -> Optional[Section]:
    upper = account_name.upper()
    for section in (Section.ASSETS, Section.LIABILITIES, Section.EQUITY):
        if section.value in upper:
            return section
    return None


def parse_balance_sheet(table: RawTable) -> List[BalanceSheetItem]:
    """
    Parse a comparative balance sheet export.

    Columns after the account label are current balance, prior balance
    and variance. Unparseable balance cells count as zero.

    Args:
        table: Raw CSV rows

    Returns:
        List of balance sheet items

    Raises:
        FormatError: If the table is too short or has no header row
    """
    if len(table) < BALANCE_SHEET_MIN_ROWS:
        raise FormatError(
            f"CSV file must have at least {BALANCE_SHEET_MIN_ROWS} rows",
            details={"rows": len(table)}
        )

    header_index = find_balance_sheet_header(table)
    if header_index is None:
        raise FormatError(
            "Could not find header row",
            details={"searched_rows": f"{HEADER_SCAN_START + 1}-{HEADER_SCAN_END}"}
        )

    items: List[BalanceSheetItem] = []
    section = Section.UNKNOWN

    for row in table[header_index + 1:]:
        if len(row) < MIN_BALANCE_SHEET_COLUMNS:
            continue

        account_name = row[0].strip()
        if not account_name:
            continue

        marker = _section_marker(account_name)
        if marker is not None:
            section = marker
            continue

        if is_group_label(account_name):
            continue

        current = try_parse_amount(row[1]) or ZERO
        prior = try_parse_amount(row[2]) or ZERO
        variance = try_parse_amount(row[3]) or ZERO

        if current != 0 or prior != 0 or variance != 0:
            items.append(BalanceSheetItem(
                account=account_name,
                current_amount=current,
                prior_amount=prior,
                variance=variance,
                section=section,
                is_total="total" in account_name.lower(),
            ))

    logger.info(f"Parsed {len(items)} balance sheet items")
    return items


def infer_account_type(account_name: str, section: Section) -> str:
    """
    Infer a ledger account type from a balance sheet account label.

    Args:
        account_name: Account label, e.g. "1010 - Accounts Receivable"
        section: Section the row was listed under

    Returns:
        Account type label
    """
    name = account_name.lower()

    if "cash" in name or "bank" in name:
        return "Cash"

    if any(k in name for k in ("receivable", "prepaid", "inventory", "unbilled")):
        return "Current Asset"

    if any(k in name for k in (
        "equipment", "furniture", "computer", "leasehold", "software development", "domain"
    )):
        return "Fixed Asset"

    if any(k in name for k in (
        "payable", "accrued", "wages", "payroll", "deferred", "credit card"
    )):
        return "Current Liability"

    if "lease liabilities" in name and "non-current" in name:
        return "Long Term Liability"

    if section == Section.EQUITY or any(k in name for k in ("stock", "capital", "earnings", "income")):
        return "Equity"

    return section.value


def convert_balance_sheet(
    items: Sequence[BalanceSheetItem],
    report_date: str
) -> List[LedgerRecord]:
    """
    Turn balance sheet variances into ledger records.

    Totals and unchanged accounts are dropped.
    """
    records = [
        LedgerRecord(
            account=item.account,
            account_type=infer_account_type(item.account, item.section),
            amount=item.variance,
            date=report_date,
            description=f"Change in {item.account}",
            reference=BALANCE_SHEET_REFERENCE,
        )
        for item in items
        if not item.is_total and item.variance != 0
    ]
    logger.info(f"Converted {len(records)} balance sheet changes to ledger records")
    return records


def detect_layout(table: RawTable) -> Layout:
    """
    Decide which export layout a table uses.

    A first row that maps every required ledger column wins. Otherwise a
    discoverable balance sheet header selects the balance sheet layout even
    when the table is too short to parse. Anything else is treated as a
    ledger so the missing column is reported.
    """
    if _has_ledger_header(table):
        return "ledger"
    if find_balance_sheet_header(table) is not None:
        return "balance_sheet"
    return "ledger"


def ingest_table(table: RawTable, layout: Optional[Layout] = None) -> IngestResult:
    """
    Normalize a raw table into ledger records.

    Args:
        table: Raw CSV rows
        layout: Force a layout instead of detecting it

    Returns:
        IngestResult with records and, for balance sheets, the reporting period

    Raises:
        FormatError, MissingColumnError, InvalidAmountError
    """
    if not table:
        raise FormatError("CSV file is empty")

    layout = layout or detect_layout(table)
    logger.info(f"Ingesting {len(table)} rows as {layout} layout")

    if layout == "balance_sheet":
        settings = get_settings()
        items = parse_balance_sheet(table)
        return IngestResult(
            layout=layout,
            records=convert_balance_sheet(items, settings.balance_sheet_report_date),
            balance_sheet_items=items,
            period_start=settings.balance_sheet_period_start,
            period_end=settings.balance_sheet_period_end,
        )

    return IngestResult(layout="ledger", records=parse_ledger(table))


def ingest(table: RawTable, layout: Optional[Layout] = None) -> List[LedgerRecord]:
    """Normalize a raw table into ledger records."""
    return ingest_table(table, layout).records
