"""
Ledger package.

The managers that write ledger records and keep account balances
consistent with them.
"""

from finance_tracker.ledger.accounts import AccountManager
from finance_tracker.ledger.balance import BalanceMutator
from finance_tracker.ledger.budgets import BudgetManager
from finance_tracker.ledger.expenses import ExpenseManager
from finance_tracker.ledger.income import IncomeManager
from finance_tracker.ledger.investments import InvestmentManager
from finance_tracker.ledger.transfers import TransferManager
from finance_tracker.ledger.validation import compute_next_date

__all__ = [
    "AccountManager",
    "BalanceMutator",
    "BudgetManager",
    "ExpenseManager",
    "IncomeManager",
    "InvestmentManager",
    "TransferManager",
    "compute_next_date",
]
