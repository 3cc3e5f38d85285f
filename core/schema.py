"""
Pydantic models shared by the ingestion, classification, assembly and
rendering stages.
"""
from decimal import Decimal
from enum import Enum
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

ZERO = Decimal("0")


class Section(str, Enum):
    """Balance sheet section a row was found under."""
    ASSETS = "ASSETS"
    LIABILITIES = "LIABILITIES"
    EQUITY = "EQUITY"
    UNKNOWN = "unknown"


class Bucket(str, Enum):
    """Cash flow activity a ledger line belongs to."""
    OPERATING = "operating"
    INVESTING = "investing"
    FINANCING = "financing"
    CASH = "cash"


class ItemKind(str, Enum):
    """Whether a statement row is a classified line or a computed subtotal."""
    LINE = "line"
    SUBTOTAL = "subtotal"


class LedgerRecord(BaseModel):
    """One normalized financial change."""
    model_config = ConfigDict(frozen=True)

    account: str
    account_type: str = ""
    amount: Decimal = ZERO
    date: str = ""
    description: str = ""
    reference: str = ""


class BalanceSheetItem(BaseModel):
    """One account row of a comparative balance sheet."""
    model_config = ConfigDict(frozen=True)

    account: str
    current_amount: Decimal = ZERO
    prior_amount: Decimal = ZERO
    variance: Decimal = ZERO
    section: Section = Section.UNKNOWN
    is_total: bool = False


class ClassifiedRecord(BaseModel):
    """A ledger record with its bucket and sign-adjusted cash impact."""
    model_config = ConfigDict(frozen=True)

    record: LedgerRecord
    bucket: Bucket
    cash_amount: Decimal


class CashFlowItem(BaseModel):
    """A single rendered statement line."""
    description: str
    amount: Decimal = ZERO
    kind: ItemKind = ItemKind.LINE

    @property
    def is_subtotal(self) -> bool:
        return self.kind == ItemKind.SUBTOTAL


class IngestResult(BaseModel):
    """Records produced by the ingestor plus the period they cover, if fixed by the layout."""
    layout: Literal["ledger", "balance_sheet"]
    records: List[LedgerRecord] = Field(default_factory=list)
    balance_sheet_items: List[BalanceSheetItem] = Field(default_factory=list)
    period_start: Optional[str] = None
    period_end: Optional[str] = None


def _subtotal_of(items: List[CashFlowItem]) -> Decimal:
    for item in reversed(items):
        if item.is_subtotal:
            return item.amount
    return sum((item.amount for item in items if not item.is_subtotal), ZERO)


class CashFlowStatement(BaseModel):
    """
    Indirect-method statement of cash flows.

    Each activity section ends with a subtotal item once assembled.
    `cash_changes` holds cash and cash-equivalent lines, which are not
    part of any activity section.
    """
    operating: List[CashFlowItem] = Field(default_factory=list)
    investing: List[CashFlowItem] = Field(default_factory=list)
    financing: List[CashFlowItem] = Field(default_factory=list)
    cash_changes: List[CashFlowItem] = Field(default_factory=list)
    net_cash_flow: Decimal = ZERO
    beginning_cash: Decimal = ZERO
    ending_cash: Decimal = ZERO
    period_start: str = ""
    period_end: str = ""

    @property
    def operating_total(self) -> Decimal:
        return _subtotal_of(self.operating)

    @property
    def investing_total(self) -> Decimal:
        return _subtotal_of(self.investing)

    @property
    def financing_total(self) -> Decimal:
        return _subtotal_of(self.financing)


# Section titles in presentation order
SECTION_TITLES = {
    Bucket.OPERATING: "Operating",
    Bucket.INVESTING: "Investing",
    Bucket.FINANCING: "Financing",
}
