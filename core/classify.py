"""
Keyword-based cash flow classification.

Rules are loaded from data/classification_rules.md (an ordered markdown
table) and evaluated top to bottom; the first match decides the bucket.
"""
from decimal import Decimal
from pathlib import Path
from typing import List, Literal, Optional, Tuple

from pydantic import BaseModel, ConfigDict

from core.config import get_settings
from core.exceptions import ConfigurationError
from core.logger import setup_logger
from core.schema import Bucket, ClassifiedRecord, LedgerRecord

logger = setup_logger(__name__)

DEFAULT_BUCKET = Bucket.OPERATING


class ClassificationRule(BaseModel):
    """One ordered keyword rule."""
    model_config = ConfigDict(frozen=True)

    bucket: Bucket
    field: Literal["account", "account_type"] = "account"
    match: Literal["contains", "equals"] = "contains"
    keywords: Tuple[str, ...]

    def matches(self, record: LedgerRecord) -> bool:
        """Check whether the record's field matches any keyword."""
        value = getattr(record, self.field).strip().lower()
        if self.match == "equals":
            return value in self.keywords
        return any(keyword in value for keyword in self.keywords)


def parse_rule_line(line: str) -> Optional[ClassificationRule]:
    """
    Parse a single row of the rules markdown table.

    Format: | BUCKET | FIELD | MATCH | KEYWORDS |

    Args:
        line: Line from markdown file

    Returns:
        ClassificationRule if the line is a rule row, None otherwise
    """
    line = line.strip()
    if not line.startswith("|") or line.startswith("|:-") or line.startswith("|-"):
        return None

    parts = [p.strip() for p in line.strip("|").split("|")]
    if len(parts) < 4:
        return None

    bucket, field, match, keywords = (p.lower() for p in parts[:4])
    if bucket not in {b.value for b in Bucket}:
        # Header row
        return None

    keyword_list = tuple(k.strip() for k in keywords.split(",") if k.strip())
    if not keyword_list:
        return None

    try:
        return ClassificationRule(
            bucket=Bucket(bucket),
            field=field,
            match=match,
            keywords=keyword_list,
        )
    except ValueError as e:
        raise ConfigurationError(
            f"Invalid classification rule: {line}",
            details={"error": str(e)}
        )


def load_rules(path: Optional[str] = None) -> List[ClassificationRule]:
    """
    Load ordered classification rules from the markdown rules file.

    Args:
        path: Rules file path (defaults to configured path)

    Returns:
        Rules in evaluation order

    Raises:
        ConfigurationError: If the file is missing, unreadable or has no rules
    """
    rules_file = Path(path or get_settings().classification_rules_path)

    try:
        with open(rules_file, "r", encoding="utf-8") as f:
            lines = f.readlines()
    except OSError as e:
        raise ConfigurationError(
            f"Cannot read classification rules: {rules_file}",
            details={"path": str(rules_file), "error": str(e)}
        )

    rules = [rule for rule in (parse_rule_line(line) for line in lines) if rule is not None]
    if not rules:
        raise ConfigurationError(
            "No classification rules found",
            details={"path": str(rules_file)}
        )

    logger.info(f"Loaded {len(rules)} classification rules from {rules_file.name}")
    return rules


# Loaded rules, cached after first use
_rules: Optional[List[ClassificationRule]] = None


def get_rules() -> List[ClassificationRule]:
    """Get the configured classification rules."""
    global _rules
    if _rules is None:
        _rules = load_rules()
    return _rules


def reset_rules() -> None:
    """Drop cached rules (useful for testing)."""
    global _rules
    _rules = None


def classify(
    record: LedgerRecord,
    rules: Optional[List[ClassificationRule]] = None
) -> Bucket:
    """
    Assign a ledger record to a cash flow bucket.

    Args:
        record: Ledger record to classify
        rules: Ordered rules (defaults to configured rules)

    Returns:
        Bucket of the first matching rule, or operating
    """
    for rule in rules if rules is not None else get_rules():
        if rule.matches(record):
            return rule.bucket
    return DEFAULT_BUCKET


def adjust_amount_for_cash_flow(amount: Decimal, account_type: str) -> Decimal:
    """
    Convert a balance change into its impact on cash.

    An increase in an asset is a use of cash, so asset amounts are negated.
    Liabilities and equity pass through unchanged.
    """
    if "asset" in account_type.lower():
        return -amount
    return amount


def classify_record(
    record: LedgerRecord,
    rules: Optional[List[ClassificationRule]] = None
) -> ClassifiedRecord:
    """Classify a record and compute its sign-adjusted cash impact."""
    return ClassifiedRecord(
        record=record,
        bucket=classify(record, rules),
        cash_amount=adjust_amount_for_cash_flow(record.amount, record.account_type),
    )
