"""
Statement exporters.
Renders a cash flow statement as a styled Excel workbook or a plain CSV report.
"""
import io
import uuid
from datetime import datetime
from decimal import Decimal
from pathlib import Path
from typing import List, NamedTuple, Optional

import pandas as pd

from core.exceptions import RenderError
from core.logger import setup_logger
from core.normalize import format_amount
from core.schema import SECTION_TITLES, CashFlowStatement

logger = setup_logger(__name__)

SHEET_NAME = "Cash Flow Statement"
TITLE = "STATEMENT OF CASH FLOWS"
NET_CHANGE_LABEL = "NET INCREASE (DECREASE) IN CASH"
CURRENCY_FORMAT = "#,##0.00;(#,##0.00)"
SECTION_FILL = "#E6E6FA"
DESCRIPTION_WIDTH = 40
AMOUNT_WIDTH = 15
XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


class ReportRow(NamedTuple):
    """One row of the rendered report."""
    kind: str  # title, blank, period, section, line, subtotal, total
    label: str = ""
    amount: Optional[Decimal] = None


def build_report_rows(
    statement: CashFlowStatement,
    include_cash_balances: bool = False
) -> List[ReportRow]:
    """
    Lay out the statement as report rows, top to bottom.

    Args:
        statement: Assembled statement
        include_cash_balances: Append beginning/ending cash rows when nonzero

    Returns:
        Ordered report rows
    """
    rows = [ReportRow("title", TITLE), ReportRow("blank")]

    if statement.period_start and statement.period_end:
        rows.append(ReportRow(
            "period",
            f"For the period from {statement.period_start} to {statement.period_end}"
        ))
        rows.append(ReportRow("blank"))

    sections = (statement.operating, statement.investing, statement.financing)
    for title, items in zip(SECTION_TITLES.values(), sections):
        rows.append(ReportRow("section", f"CASH FLOWS FROM {title.upper()} ACTIVITIES"))
        for item in items:
            kind = "subtotal" if item.is_subtotal else "line"
            rows.append(ReportRow(kind, item.description, item.amount))
        rows.append(ReportRow("blank"))

    rows.append(ReportRow("total", NET_CHANGE_LABEL, statement.net_cash_flow))

    if include_cash_balances and (statement.beginning_cash != 0 or statement.ending_cash != 0):
        rows.append(ReportRow("blank"))
        rows.append(ReportRow("line", "Cash at beginning of period", statement.beginning_cash))
        rows.append(ReportRow("total", "Cash at end of period", statement.ending_cash))

    return rows


def render_statement(
    statement: CashFlowStatement,
    include_cash_balances: bool = False
) -> bytes:
    """
    Render the statement as an .xlsx workbook.

    Args:
        statement: Assembled statement
        include_cash_balances: Append beginning/ending cash rows when nonzero

    Returns:
        Workbook bytes

    Raises:
        RenderError: If the workbook cannot be produced
    """
    rows = build_report_rows(statement, include_cash_balances)
    buffer = io.BytesIO()

    try:
        with pd.ExcelWriter(buffer, engine="xlsxwriter") as writer:
            workbook = writer.book
            worksheet = workbook.add_worksheet(SHEET_NAME)
            worksheet.activate()

            title_format = workbook.add_format({"bold": True, "font_size": 14, "align": "center"})
            section_format = workbook.add_format({
                "bold": True,
                "font_size": 12,
                "pattern": 1,
                "bg_color": SECTION_FILL,
            })
            plain_format = workbook.add_format()
            currency_format = workbook.add_format({"num_format": CURRENCY_FORMAT})
            subtotal_format = workbook.add_format({"bold": True, "top": 1})
            subtotal_currency_format = workbook.add_format({
                "bold": True,
                "top": 1,
                "num_format": CURRENCY_FORMAT,
            })

            worksheet.set_column(0, 0, DESCRIPTION_WIDTH)
            worksheet.set_column(1, 1, AMOUNT_WIDTH)

            for idx, row in enumerate(rows):
                if row.kind == "title":
                    worksheet.merge_range(idx, 0, idx, 1, row.label, title_format)
                elif row.kind == "period":
                    worksheet.merge_range(idx, 0, idx, 1, row.label, plain_format)
                elif row.kind == "section":
                    worksheet.merge_range(idx, 0, idx, 1, row.label, section_format)
                elif row.kind == "line":
                    worksheet.write_string(idx, 0, row.label)
                    worksheet.write_number(idx, 1, float(row.amount), currency_format)
                elif row.kind in ("subtotal", "total"):
                    worksheet.write_string(idx, 0, row.label, subtotal_format)
                    worksheet.write_number(idx, 1, float(row.amount), subtotal_currency_format)

    except Exception as e:
        logger.error(f"Failed to render workbook: {e}", exc_info=True)
        raise RenderError(
            "Failed to render cash flow statement",
            details={"error": str(e)}
        )

    content = buffer.getvalue()
    logger.info(f"Rendered statement workbook ({len(rows)} rows, {len(content)} bytes)")
    return content


def render_statement_csv(statement: CashFlowStatement) -> str:
    """
    Render the statement as a two-column CSV report.

    Amounts use accounting notation, e.g. "(1,234.50)".
    """
    rows = build_report_rows(statement)
    frame = pd.DataFrame(
        [
            (row.label, format_amount(row.amount) if row.amount is not None else "")
            for row in rows
        ],
        columns=["Description", "Amount"],
    )
    return frame.to_csv(index=False)


def write_statement(
    statement: CashFlowStatement,
    output_path: str,
    include_cash_balances: bool = False
) -> str:
    """
    Render the statement and write it to a file.

    Args:
        statement: Assembled statement
        output_path: Output file path
        include_cash_balances: Append beginning/ending cash rows when nonzero

    Returns:
        Path to created file

    Raises:
        RenderError: If rendering or writing fails
    """
    content = render_statement(statement, include_cash_balances)

    try:
        output_file = Path(output_path)
        output_file.parent.mkdir(parents=True, exist_ok=True)
        output_file.write_bytes(content)
    except OSError as e:
        logger.error(f"Failed to write {output_path}: {e}")
        raise RenderError(
            "Failed to write cash flow statement",
            details={"output_path": output_path, "error": str(e)}
        )

    logger.info(f"Successfully exported to {output_path}")
    return output_path


def create_output_filename(base_path: str, extension: str = "xlsx") -> str:
    """
    Create a unique timestamped output filename.

    Args:
        base_path: Base directory path
        extension: File extension without dot

    Returns:
        Full output file path
    """
    Path(base_path).mkdir(parents=True, exist_ok=True)

    timestamp = datetime.now().strftime("%Y-%m-%dT%H-%M-%S")
    filename = f"cash_flow_{timestamp}_{uuid.uuid4().hex[:8]}.{extension}"

    return str(Path(base_path) / filename)
