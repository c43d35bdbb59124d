"""
Shop Credit Ledger - Source Package

A small-shop bookkeeping store: customer credit accounts, dealer
purchases, expenses and cash pockets, kept as one JSON document.

DESIGN PRINCIPLES:
1. Validate everything before anything changes
2. Fail early, fail visibly
3. No silent corrections
4. Every change is persisted whole, then logged
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Shop Ledger Team"
