"""
Custom exceptions for better error handling.
"""
from typing import Any, Dict, Optional, Sequence


class CashFlowError(Exception):
    """Base exception for all cash flow statement errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        """
        Initialize exception.

        Args:
            message: Error message
            details: Additional error details
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}


class IngestionError(CashFlowError):
    """Raised when an uploaded ledger cannot be turned into records."""
    pass


class FormatError(IngestionError):
    """Raised when the table is unreadable, too short, or has no header."""
    pass


class MissingColumnError(IngestionError):
    """Raised when a required ledger column has no matching header."""

    def __init__(self, field: str, synonyms: Sequence[str]):
        self.field = field
        self.synonyms = list(synonyms)
        super().__init__(
            f"Required column not found: {field} (looked for: {', '.join(self.synonyms)})",
            details={"field": field, "synonyms": self.synonyms}
        )


class InvalidAmountError(IngestionError):
    """Raised when an amount cell is not numeric."""

    def __init__(self, row: int, value: str):
        self.row = row
        self.value = value
        super().__init__(
            f"Invalid amount in row {row}: '{value}'",
            details={"row": row, "value": value}
        )


class RenderError(CashFlowError):
    """Raised when the statement cannot be written to its output."""
    pass


class ConfigurationError(CashFlowError):
    """Raised when configuration is invalid."""
    pass


class StorageError(CashFlowError):
    """Raised when a rendered file cannot be staged."""
    pass


class DataNotFoundError(CashFlowError):
    """Raised when required data is not found."""
    pass
