"""
Indirect-method cash flow statement assembly.
"""
from datetime import datetime
from decimal import Decimal
from typing import Iterable, List, Optional, Sequence, Tuple

from core.classify import ClassificationRule, classify_record
from core.logger import setup_logger
from core.normalize import clean_account_name
from core.schema import (
    SECTION_TITLES,
    ZERO,
    Bucket,
    CashFlowItem,
    CashFlowStatement,
    ItemKind,
    LedgerRecord,
)

logger = setup_logger(__name__)

NET_INCOME_LABEL = "Net Income"
ISO_DATE_FORMAT = "%Y-%m-%d"


def subtotal_label(bucket: Bucket) -> str:
    """Label of a section's subtotal row, e.g. "Net Cash from Operating Activities"."""
    return f"Net Cash from {SECTION_TITLES[bucket]} Activities"


def find_net_income(records: Iterable[LedgerRecord]) -> Optional[Decimal]:
    """Amount of the first record whose account mentions net income."""
    for record in records:
        if "net income" in record.account.lower():
            return record.amount
    return None


def sum_items(items: Iterable[CashFlowItem]) -> Decimal:
    """Sum line items, ignoring subtotals."""
    return sum((item.amount for item in items if item.kind == ItemKind.LINE), ZERO)


def _date_sort_key(value: str) -> Tuple:
    try:
        return (0, datetime.strptime(value, ISO_DATE_FORMAT).date(), value)
    except ValueError:
        return (1, value)


def extract_period(records: Iterable[LedgerRecord]) -> Tuple[str, str]:
    """
    First and last date covered by the records.

    ISO dates sort chronologically; anything else sorts lexically after them.
    Returns empty strings when no record carries a date.
    """
    dates = sorted({record.date for record in records if record.date}, key=_date_sort_key)
    if not dates:
        return "", ""
    return dates[0], dates[-1]


def assemble(
    records: Sequence[LedgerRecord],
    period: Optional[Tuple[str, str]] = None,
    rules: Optional[List[ClassificationRule]] = None
) -> CashFlowStatement:
    """
    Build a cash flow statement from ledger records.

    Args:
        records: Normalized ledger records
        period: Fixed (start, end) reporting period; derived from record dates if None
        rules: Classification rules (defaults to configured rules)

    Returns:
        Assembled statement with subtotal rows appended to each section
    """
    sections = {
        Bucket.OPERATING: [],
        Bucket.INVESTING: [],
        Bucket.FINANCING: [],
        Bucket.CASH: [],
    }

    # Only the first net income row seeds the statement
    net_income = find_net_income(records)
    if net_income:
        sections[Bucket.OPERATING].append(
            CashFlowItem(description=NET_INCOME_LABEL, amount=net_income)
        )

    for record in records:
        if record.amount == 0:
            continue
        classified = classify_record(record, rules)
        sections[classified.bucket].append(CashFlowItem(
            description=clean_account_name(record.account),
            amount=classified.cash_amount,
        ))

    totals = {bucket: sum_items(sections[bucket]) for bucket in SECTION_TITLES}
    for bucket in SECTION_TITLES:
        sections[bucket].append(CashFlowItem(
            description=subtotal_label(bucket),
            amount=totals[bucket],
            kind=ItemKind.SUBTOTAL,
        ))

    net_cash_flow = sum(totals.values(), ZERO)

    beginning_cash = ZERO
    ending_cash = ZERO
    cash_lines = [item for item in sections[Bucket.CASH] if "cash" in item.description.lower()]
    if cash_lines:
        beginning_cash = sum((item.amount for item in cash_lines), ZERO)
        ending_cash = beginning_cash + net_cash_flow

    period_start, period_end = period if period is not None else extract_period(records)

    logger.info(
        f"Assembled statement: operating={len(sections[Bucket.OPERATING]) - 1}, "
        f"investing={len(sections[Bucket.INVESTING]) - 1}, "
        f"financing={len(sections[Bucket.FINANCING]) - 1}, "
        f"cash={len(sections[Bucket.CASH])}, net={net_cash_flow}"
    )

    return CashFlowStatement(
        operating=sections[Bucket.OPERATING],
        investing=sections[Bucket.INVESTING],
        financing=sections[Bucket.FINANCING],
        cash_changes=sections[Bucket.CASH],
        net_cash_flow=net_cash_flow,
        beginning_cash=beginning_cash,
        ending_cash=ending_cash,
        period_start=period_start,
        period_end=period_end,
    )
