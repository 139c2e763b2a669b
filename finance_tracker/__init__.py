"""
Finance Tracker - Source Package

A personal finance tracker for households that keep several bank
accounts, e-wallets and credit cards.

DESIGN PRINCIPLES:
1. A balance is derived: seed value plus every delta a ledger record applied
2. A record write and its balance deltas commit together or not at all
3. Every query is scoped to the owner resolved from the request credential
4. Storage is swappable
"""

__version__ = "1.0.0"
__author__ = "Finance Tracker Team"
