"""
Shared fixtures for the test suite.
"""
import csv
import io
import os
import tempfile

# Keep generated files out of the working tree
os.environ.setdefault("STORAGE_PATH", tempfile.mkdtemp(prefix="cashflow-tests-"))

import pytest

from core.classify import reset_rules
from core.config import reset_settings


@pytest.fixture(autouse=True)
def fresh_settings():
    """Reset cached settings and rules around each test."""
    reset_settings()
    reset_rules()
    yield
    reset_settings()
    reset_rules()


def to_csv_bytes(rows):
    """Serialize rows to CSV bytes."""
    buffer = io.StringIO()
    csv.writer(buffer).writerows(rows)
    return buffer.getvalue().encode("utf-8")


@pytest.fixture
def ledger_rows():
    """A small flat general-ledger export."""
    return [
        ["Account", "Account Type", "Amount", "Date", "Description", "Document Number"],
        ["4000 - Net Income", "Equity", "125,000.00", "2025-04-15", "Quarter net income", "JE-1"],
        ["1010 - Accounts Receivable", "Other Current Asset", "(15,000.00)", "2025-03-01", "Collections", "JE-2"],
        ["1500 - Office Furniture", "Fixed Asset", "$8,500.00", "2025-06-30", "New desks", "JE-3"],
        ["2700 - Lease Liabilities, Non-current", "Long Term Liability", "20,000.00", "2025-05-10", "New lease", "JE-4"],
        ["1000 - Cash", "Bank", "-", "2025-05-01", "No change", "JE-5"],
        ["incomplete", "row"],
    ]


@pytest.fixture
def balance_sheet_rows():
    """A comparative balance sheet export with six preamble rows."""
    return [
        ["Coder Technologies, Inc."],
        ["Comparative Balance Sheet"],
        ["End of Jun 2025"],
        ["Accounting Book: Primary"],
        [""],
        ["Financial Row", "Amount (Jun 2025)", "Comparison Amount (Mar 2025)", "Variance"],
        ["ASSETS", "", "", ""],
        ["Current Assets", "", "", ""],
        ["Bank", "", "", ""],
        ["1000 - Cash - Operating", "500,000.00", "600,000.00", "(100,000.00)"],
        ["Total Bank", "500,000.00", "600,000.00", "(100,000.00)"],
        ["Accounts Receivable", "", "", ""],
        ["1010 - Accounts Receivable", "1,200,000.00", "1,900,026.36", "(700,026.36)"],
        ["1500 - Computer Equipment", "80,000.00", "40,480.00", "39,520.00"],
        ["LIABILITIES & EQUITY", "", "", ""],
        ["2000 - Accounts Payable", "50,000.00", "72,503.00", "(22,503.00)"],
        ["2100 - Accrued Expenses", "400,000.00", "2,536.00", "397,464.00"],
        ["Equity", "", "", ""],
        ["3000 - Common Stock", "5,000,000.00", "0.00", "5,000,000.00"],
        ["Net Income", "(4,767,895.00)", "0.00", "(4,767,895.00)"],
        ["Total Equity", "232,105.00", "0.00", "232,105.00"],
    ]


@pytest.fixture
def ledger_csv(ledger_rows):
    return to_csv_bytes(ledger_rows)


@pytest.fixture
def balance_sheet_csv(balance_sheet_rows):
    return to_csv_bytes(balance_sheet_rows)
