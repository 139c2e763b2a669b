"""
In-Memory Storage Implementation

Used for tests, demos and as the default backend when no database is
configured.

Atomicity: each unit of work runs against a private copy of the table
index and the copy replaces the live tables only on commit. Records are
copied on the way in and on the way out, so nothing a caller holds can
change stored state behind the session's back. Units of work are
serialized by a lock; readers work on a snapshot of the committed tables
and never wait for it.
"""

import asyncio
from contextlib import asynccontextmanager
from datetime import date
from typing import AsyncIterator, Callable, Optional
from uuid import UUID

from pydantic import BaseModel

from finance_tracker.exceptions import FinanceTrackerError, NotFoundError, PersistenceError, StorageError
from finance_tracker.models.account import BankAccount
from finance_tracker.models.budget import Budget
from finance_tracker.models.investment import Investment
from finance_tracker.models.ledger import Expense, Income, Transfer
from finance_tracker.services.storage.interface import LedgerSession, LedgerStorage

Tables = dict[str, dict[UUID, BaseModel]]

TABLE_NAMES = ("accounts", "expenses", "incomes", "transfers", "budgets", "investments")


def _in_range(value: date, date_from: Optional[date], date_to: Optional[date]) -> bool:
    if date_from and value < date_from:
        return False
    if date_to and value > date_to:
        return False
    return True


class InMemoryLedgerSession(LedgerSession):
    """Session over one private copy of the tables."""

    def __init__(self, tables: Tables):
        self._tables = tables

    # Generic helpers ---------------------------------------------------------

    def _get(self, table: str, record_id: UUID, owner_id: str):
        record = self._tables[table].get(record_id)
        if record is None or record.owner_id != owner_id:
            return None
        return record.model_copy(deep=True)

    def _list(
        self,
        table: str,
        owner_id: str,
        sort_key: Callable,
        predicate: Optional[Callable] = None,
    ) -> list:
        records = [
            r.model_copy(deep=True)
            for r in self._tables[table].values()
            if r.owner_id == owner_id and (predicate is None or predicate(r))
        ]
        records.sort(key=sort_key, reverse=True)
        return records

    def _insert(self, table: str, record: BaseModel) -> None:
        if record.id in self._tables[table]:
            raise StorageError(f"Duplicate id in {table}: {record.id}")
        self._tables[table][record.id] = record.model_copy(deep=True)

    def _update(self, table: str, entity: str, record: BaseModel) -> None:
        existing = self._tables[table].get(record.id)
        if existing is None or existing.owner_id != record.owner_id:
            raise NotFoundError(entity, record.id)
        self._tables[table][record.id] = record.model_copy(deep=True)

    def _delete(self, table: str, record_id: UUID, owner_id: str) -> bool:
        existing = self._tables[table].get(record_id)
        if existing is None or existing.owner_id != owner_id:
            return False
        del self._tables[table][record_id]
        return True

    # Accounts ----------------------------------------------------------------

    async def get_account(self, account_id: UUID, owner_id: str) -> Optional[BankAccount]:
        return self._get("accounts", account_id, owner_id)

    async def list_accounts(self, owner_id: str) -> list[BankAccount]:
        return self._list("accounts", owner_id, sort_key=lambda a: a.created_at)

    async def insert_account(self, account: BankAccount) -> None:
        self._insert("accounts", account)

    async def update_account(self, account: BankAccount) -> None:
        self._update("accounts", "Account", account)

    async def delete_account(self, account_id: UUID, owner_id: str) -> bool:
        return self._delete("accounts", account_id, owner_id)

    async def detach_account(self, account_id: UUID, owner_id: str) -> None:
        for table in ("expenses", "incomes"):
            rows = self._tables[table]
            for record_id, record in list(rows.items()):
                if record.owner_id == owner_id and record.account_id == account_id:
                    rows[record_id] = record.model_copy(update={"account_id": None}, deep=True)

    # Expenses ----------------------------------------------------------------

    async def get_expense(self, expense_id: UUID, owner_id: str) -> Optional[Expense]:
        return self._get("expenses", expense_id, owner_id)

    async def list_expenses(
        self,
        owner_id: str,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
        category: Optional[str] = None,
        account_id: Optional[UUID] = None,
    ) -> list[Expense]:
        def matches(e: Expense) -> bool:
            if not _in_range(e.expense_date, date_from, date_to):
                return False
            if category is not None and e.category != category:
                return False
            if account_id is not None and e.account_id != account_id:
                return False
            return True

        return self._list(
            "expenses", owner_id,
            sort_key=lambda e: (e.expense_date, e.created_at),
            predicate=matches,
        )

    async def insert_expense(self, expense: Expense) -> None:
        self._insert("expenses", expense)

    async def update_expense(self, expense: Expense) -> None:
        self._update("expenses", "Expense", expense)

    async def delete_expense(self, expense_id: UUID, owner_id: str) -> bool:
        return self._delete("expenses", expense_id, owner_id)

    # Incomes -----------------------------------------------------------------

    async def get_income(self, income_id: UUID, owner_id: str) -> Optional[Income]:
        return self._get("incomes", income_id, owner_id)

    async def list_incomes(
        self,
        owner_id: str,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
        category: Optional[str] = None,
        account_id: Optional[UUID] = None,
    ) -> list[Income]:
        def matches(i: Income) -> bool:
            if not _in_range(i.income_date, date_from, date_to):
                return False
            if category is not None and i.category != category:
                return False
            if account_id is not None and i.account_id != account_id:
                return False
            return True

        return self._list(
            "incomes", owner_id,
            sort_key=lambda i: (i.income_date, i.created_at),
            predicate=matches,
        )

    async def insert_income(self, income: Income) -> None:
        self._insert("incomes", income)

    async def update_income(self, income: Income) -> None:
        self._update("incomes", "Income", income)

    async def delete_income(self, income_id: UUID, owner_id: str) -> bool:
        return self._delete("incomes", income_id, owner_id)

    # Transfers ---------------------------------------------------------------

    async def get_transfer(self, transfer_id: UUID, owner_id: str) -> Optional[Transfer]:
        return self._get("transfers", transfer_id, owner_id)

    async def list_transfers(
        self,
        owner_id: str,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
    ) -> list[Transfer]:
        return self._list(
            "transfers", owner_id,
            sort_key=lambda t: (t.transfer_date, t.created_at),
            predicate=lambda t: _in_range(t.transfer_date, date_from, date_to),
        )

    async def insert_transfer(self, transfer: Transfer) -> None:
        self._insert("transfers", transfer)

    # Budgets -----------------------------------------------------------------

    async def get_budget(self, budget_id: UUID, owner_id: str) -> Optional[Budget]:
        return self._get("budgets", budget_id, owner_id)

    async def list_budgets(self, owner_id: str) -> list[Budget]:
        return self._list("budgets", owner_id, sort_key=lambda b: b.created_at)

    async def insert_budget(self, budget: Budget) -> None:
        self._insert("budgets", budget)

    async def update_budget(self, budget: Budget) -> None:
        self._update("budgets", "Budget", budget)

    async def delete_budget(self, budget_id: UUID, owner_id: str) -> bool:
        return self._delete("budgets", budget_id, owner_id)

    # Investments -------------------------------------------------------------

    async def get_investment(self, investment_id: UUID, owner_id: str) -> Optional[Investment]:
        return self._get("investments", investment_id, owner_id)

    async def list_investments(self, owner_id: str) -> list[Investment]:
        return self._list("investments", owner_id, sort_key=lambda i: i.created_at)

    async def insert_investment(self, investment: Investment) -> None:
        self._insert("investments", investment)

    async def update_investment(self, investment: Investment) -> None:
        self._update("investments", "Investment", investment)

    async def delete_investment(self, investment_id: UUID, owner_id: str) -> bool:
        return self._delete("investments", investment_id, owner_id)


class InMemoryLedgerStorage(LedgerStorage):
    """Process-local storage with copy-on-commit transactions."""

    def __init__(self):
        self._tables: Tables = {name: {} for name in TABLE_NAMES}
        self._lock = asyncio.Lock()

    def _open_session(self, tables: Tables) -> LedgerSession:
        return InMemoryLedgerSession(tables)

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[LedgerSession]:
        async with self._lock:
            working: Tables = {name: dict(rows) for name, rows in self._tables.items()}
            session = self._open_session(working)
            try:
                yield session
            except FinanceTrackerError:
                raise
            except Exception as e:
                raise PersistenceError(f"Unit of work failed: {e}", cause=e) from e
            self._tables = working

    @asynccontextmanager
    async def reader(self) -> AsyncIterator[LedgerSession]:
        # Committed tables are replaced, never mutated, so a shallow copy is a snapshot
        snapshot: Tables = {name: dict(rows) for name, rows in self._tables.items()}
        session = self._open_session(snapshot)
        try:
            yield session
        except FinanceTrackerError:
            raise
        except Exception as e:
            raise PersistenceError(f"Read failed: {e}", cause=e) from e

    async def close(self) -> None:
        pass
