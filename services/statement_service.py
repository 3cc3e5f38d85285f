"""
Cash flow statement service.
Runs the ingest -> classify -> assemble -> render pipeline for one upload.
"""
from typing import Any, Dict, Literal, Optional

from pydantic import BaseModel

from core.classify import get_rules
from core.config import Settings, get_settings
from core.exporters import render_statement, render_statement_csv
from core.logger import setup_logger
from core.parsing import ingest_table, read_csv_table
from core.schema import CashFlowStatement, IngestResult
from core.statement import assemble

logger = setup_logger(__name__)

OutputFormat = Literal["xlsx", "csv"]


class Conversion(BaseModel):
    """Outcome of converting one uploaded ledger."""
    ingest: IngestResult
    statement: CashFlowStatement


class StatementService:
    """Service for turning ledger exports into cash flow statements."""

    def __init__(self, settings: Optional[Settings] = None):
        """Initialize statement service."""
        self.settings = settings or get_settings()

    def build_statement(self, content: bytes) -> Conversion:
        """
        Ingest an uploaded CSV and assemble its statement.

        Args:
            content: Raw CSV bytes

        Returns:
            Conversion with the ingestion result and statement

        Raises:
            IngestionError: If the file cannot be ingested
        """
        table = read_csv_table(content)
        ingest = ingest_table(table)

        period = None
        if ingest.period_start is not None and ingest.period_end is not None:
            period = (ingest.period_start, ingest.period_end)

        statement = assemble(ingest.records, period=period, rules=get_rules())
        return Conversion(ingest=ingest, statement=statement)

    def render(self, statement: CashFlowStatement, output_format: OutputFormat = "xlsx") -> bytes:
        """
        Render a statement in the requested format.

        Raises:
            RenderError: If rendering fails
        """
        if output_format == "csv":
            return render_statement_csv(statement).encode("utf-8")
        return render_statement(statement, self.settings.include_cash_balances)

    def convert(self, content: bytes, output_format: OutputFormat = "xlsx") -> Dict[str, Any]:
        """
        Run the full pipeline on an uploaded file.

        Args:
            content: Raw CSV bytes
            output_format: "xlsx" or "csv"

        Returns:
            Dictionary with rendered content, statement and statistics
        """
        logger.info(f"Converting upload ({len(content)} bytes) to {output_format}")

        conversion = self.build_statement(content)
        rendered = self.render(conversion.statement, output_format)

        return {
            "content": rendered,
            "statement": conversion.statement,
            "stats": self.build_statistics(conversion),
        }

    def build_statistics(self, conversion: Conversion) -> Dict[str, Any]:
        """
        Build summary statistics for a conversion.

        Args:
            conversion: Completed conversion

        Returns:
            Dictionary with layout, record and line counts and totals
        """
        statement = conversion.statement
        return {
            "layout": conversion.ingest.layout,
            "records": len(conversion.ingest.records),
            "operating_lines": sum(1 for item in statement.operating if not item.is_subtotal),
            "investing_lines": sum(1 for item in statement.investing if not item.is_subtotal),
            "financing_lines": sum(1 for item in statement.financing if not item.is_subtotal),
            "cash_lines": len(statement.cash_changes),
            "net_cash_flow": str(statement.net_cash_flow),
            "period_start": statement.period_start,
            "period_end": statement.period_end,
        }
