"""
Core processing modules for cash flow statement generation.

This package contains:
- classify: Keyword-rule classification and sign adjustment
- config: Application configuration and settings
- exceptions: Custom exception classes
- exporters: Excel and CSV statement rendering
- logger: Logging configuration
- normalize: Amount parsing and label normalization
- parsing: CSV ingestion for ledger and balance sheet layouts
- schema: Pydantic models shared by the pipeline
- statement: Indirect-method statement assembly
"""
