"""
HTTP transport for the cash flow statement generator.
"""
