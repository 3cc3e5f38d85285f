"""
Amount and label normalization.
Handles currency symbols, thousands separators and accounting-style negatives.
"""
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Optional

from core.logger import setup_logger
from core.schema import ZERO

logger = setup_logger(__name__)

CURRENCY_SYMBOLS = ("$", "€", "£", "¥")
CENTS = Decimal("0.01")


def parse_amount(value: Any) -> Decimal:
    """
    Parse an exported amount cell into a Decimal.

    Thousands separators, currency symbols and spaces are dropped and
    parenthesized values are negative: "(1,234.56)" -> -1234.56.
    An empty cell or a lone dash is zero.

    Args:
        value: Raw cell value (string or number)

    Returns:
        Parsed Decimal

    Raises:
        ValueError: If the cleaned value is not a finite number
    """
    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        return value
    if isinstance(value, (int, float)):
        return Decimal(str(value))

    amount_str = str(value).strip()
    amount_str = amount_str.replace(",", "").replace(" ", "").replace("\xa0", "")
    for symbol in CURRENCY_SYMBOLS:
        amount_str = amount_str.replace(symbol, "")
    amount_str = amount_str.replace("(", "-").replace(")", "")

    if amount_str in ("", "-"):
        return ZERO

    try:
        result = Decimal(amount_str)
    except InvalidOperation:
        raise ValueError(f"Not a number: '{value}'")

    if not result.is_finite():
        raise ValueError(f"Not a finite number: '{value}'")
    return result


def try_parse_amount(value: Any) -> Optional[Decimal]:
    """Parse an amount, returning None instead of raising."""
    try:
        return parse_amount(value)
    except ValueError as e:
        logger.debug(f"Failed to parse amount: {e}")
        return None


def format_amount(amount: Decimal) -> str:
    """
    Format an amount the way accounting exports show it.

    Two decimals with thousands separators; negatives in parentheses.
    """
    rounded = Decimal(amount).quantize(CENTS, rounding=ROUND_HALF_UP)
    text = f"{abs(rounded):,.2f}"
    return f"({text})" if rounded < 0 else text


def clean_account_name(account_name: str) -> str:
    """
    Strip the account-number prefix from an account label.

    "1010 - Accounts Receivable" -> "Accounts Receivable". Only the text
    between the first and second separator is kept, so trailing
    sub-account qualifiers are dropped too.
    """
    parts = account_name.split(" - ")
    if len(parts) > 1:
        return parts[1].strip()
    return account_name.strip()


def normalize_string(text: Optional[str]) -> str:
    """
    Normalize string for matching: lowercase, trim, collapse spaces.
    """
    if not text or not isinstance(text, str):
        return ""

    return " ".join(text.lower().strip().split())
