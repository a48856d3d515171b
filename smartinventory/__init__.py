"""
SmartInventory core: invoice PDFs, tabular exports and the local-to-Supabase
migration for the SmartInventory POS.
"""

__version__ = "0.1.0"
