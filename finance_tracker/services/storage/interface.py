"""
Abstract Storage Interface

DESIGN DECISION: The ledger talks to storage only through these two
abstractions. This allows us to:
1. Run entirely in memory for tests and demos
2. Persist to SQLite for real use
3. Swap in another database later without touching ledger logic

LedgerStorage hands out units of work. A LedgerSession is everything
that can be read or written inside one unit of work; every method is
scoped by owner, so a session never returns another user's rows.

The interface is intentionally simple - we're not building an ORM.
Just the operations the ledger and analytics need.
"""

from abc import ABC, abstractmethod
from contextlib import AbstractAsyncContextManager
from datetime import date
from typing import Optional
from uuid import UUID

from finance_tracker.models.account import BankAccount
from finance_tracker.models.budget import Budget
from finance_tracker.models.investment import Investment
from finance_tracker.models.ledger import Expense, Income, Transfer


class LedgerSession(ABC):
    """
    Reads and writes inside one unit of work.

    Writes become visible to other units of work only when the
    surrounding transaction commits.
    """

    # -------------------------------------------------------------------------
    # Accounts
    # -------------------------------------------------------------------------

    @abstractmethod
    async def get_account(self, account_id: UUID, owner_id: str) -> Optional[BankAccount]:
        """Return the owner's account, active or not, or None."""
        pass

    @abstractmethod
    async def list_accounts(self, owner_id: str) -> list[BankAccount]:
        """All of the owner's accounts, newest first."""
        pass

    @abstractmethod
    async def insert_account(self, account: BankAccount) -> None:
        pass

    @abstractmethod
    async def update_account(self, account: BankAccount) -> None:
        """
        Overwrite a stored account (including its balance).

        Raises:
            NotFoundError: If the account does not exist for its owner
        """
        pass

    @abstractmethod
    async def delete_account(self, account_id: UUID, owner_id: str) -> bool:
        """Delete an account. Returns False if it did not exist."""
        pass

    @abstractmethod
    async def detach_account(self, account_id: UUID, owner_id: str) -> None:
        """Clear the weak account reference on the owner's expenses and incomes."""
        pass

    # -------------------------------------------------------------------------
    # Expenses
    # -------------------------------------------------------------------------

    @abstractmethod
    async def get_expense(self, expense_id: UUID, owner_id: str) -> Optional[Expense]:
        pass

    @abstractmethod
    async def list_expenses(
        self,
        owner_id: str,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
        category: Optional[str] = None,
        account_id: Optional[UUID] = None,
    ) -> list[Expense]:
        """
        List the owner's expenses, newest expense_date first.

        Args:
            date_from: Only expenses on or after this date
            date_to: Only expenses on or before this date
            category: Exact category match
            account_id: Only expenses charged to this account
        """
        pass

    @abstractmethod
    async def insert_expense(self, expense: Expense) -> None:
        pass

    @abstractmethod
    async def update_expense(self, expense: Expense) -> None:
        """
        Raises:
            NotFoundError: If the expense does not exist for its owner
        """
        pass

    @abstractmethod
    async def delete_expense(self, expense_id: UUID, owner_id: str) -> bool:
        pass

    # -------------------------------------------------------------------------
    # Incomes
    # -------------------------------------------------------------------------

    @abstractmethod
    async def get_income(self, income_id: UUID, owner_id: str) -> Optional[Income]:
        pass

    @abstractmethod
    async def list_incomes(
        self,
        owner_id: str,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
        category: Optional[str] = None,
        account_id: Optional[UUID] = None,
    ) -> list[Income]:
        """List the owner's incomes, newest income_date first."""
        pass

    @abstractmethod
    async def insert_income(self, income: Income) -> None:
        pass

    @abstractmethod
    async def update_income(self, income: Income) -> None:
        """
        Raises:
            NotFoundError: If the income does not exist for its owner
        """
        pass

    @abstractmethod
    async def delete_income(self, income_id: UUID, owner_id: str) -> bool:
        pass

    # -------------------------------------------------------------------------
    # Transfers (append-only)
    # -------------------------------------------------------------------------

    @abstractmethod
    async def get_transfer(self, transfer_id: UUID, owner_id: str) -> Optional[Transfer]:
        pass

    @abstractmethod
    async def list_transfers(
        self,
        owner_id: str,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
    ) -> list[Transfer]:
        """List the owner's transfers, newest transfer_date first."""
        pass

    @abstractmethod
    async def insert_transfer(self, transfer: Transfer) -> None:
        pass

    # -------------------------------------------------------------------------
    # Budgets
    # -------------------------------------------------------------------------

    @abstractmethod
    async def get_budget(self, budget_id: UUID, owner_id: str) -> Optional[Budget]:
        pass

    @abstractmethod
    async def list_budgets(self, owner_id: str) -> list[Budget]:
        """All of the owner's budgets, newest first."""
        pass

    @abstractmethod
    async def insert_budget(self, budget: Budget) -> None:
        pass

    @abstractmethod
    async def update_budget(self, budget: Budget) -> None:
        pass

    @abstractmethod
    async def delete_budget(self, budget_id: UUID, owner_id: str) -> bool:
        pass

    # -------------------------------------------------------------------------
    # Investments
    # -------------------------------------------------------------------------

    @abstractmethod
    async def get_investment(self, investment_id: UUID, owner_id: str) -> Optional[Investment]:
        pass

    @abstractmethod
    async def list_investments(self, owner_id: str) -> list[Investment]:
        """All of the owner's investments, newest first."""
        pass

    @abstractmethod
    async def insert_investment(self, investment: Investment) -> None:
        pass

    @abstractmethod
    async def update_investment(self, investment: Investment) -> None:
        pass

    @abstractmethod
    async def delete_investment(self, investment_id: UUID, owner_id: str) -> bool:
        pass


class LedgerStorage(ABC):
    """
    Abstract storage backend.

    Usage:
        async with storage.transaction() as session:
            account = await session.get_account(account_id, owner_id)
            ...
        # committed here; rolled back if the block raised

        async with storage.reader() as session:
            accounts = await session.list_accounts(owner_id)
    """

    @abstractmethod
    def transaction(self) -> AbstractAsyncContextManager[LedgerSession]:
        """
        Open one all-or-nothing unit of work.

        On exit without error everything written through the session is
        committed. If the block raises, nothing is kept:
        - FinanceTrackerError subclasses propagate unchanged
        - any other exception is re-raised as PersistenceError
        """
        pass

    @abstractmethod
    def reader(self) -> AbstractAsyncContextManager[LedgerSession]:
        """
        Open a read-only view for lookups and reports.

        Reads see committed state only and never take the write lock of
        the backend. Use it for reads only: a reader is not a unit of
        work. Errors propagate the same way as in transaction().
        """
        pass

    @abstractmethod
    async def close(self) -> None:
        """Release backend resources."""
        pass
