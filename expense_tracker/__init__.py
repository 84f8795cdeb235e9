# expense_tracker/__init__.py
"""Client for the Expense Tracker REST API: request layer, forms, filters and exports."""

__version__ = "0.1.0"
