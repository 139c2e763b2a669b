"""
SQLite Storage Implementation

Persists the ledger to a single SQLite file through aiosqlite.

Storage layout:
- One table per record type, all keyed by a TEXT uuid
- Every row carries owner_id; every query filters on it
- Money and quantities are stored as TEXT so Decimal values round-trip
  exactly
- Expense tags are stored as a JSON array

Each unit of work is an explicit BEGIN IMMEDIATE ... COMMIT on the
shared connection, rolled back on any error or cancellation. Readers run
plain autocommit SELECTs and never take the database write lock. A lock
keeps units of work and readers from interleaving on the connection.
"""

import asyncio
import json
import logging
from contextlib import asynccontextmanager
from datetime import date, datetime
from decimal import Decimal
from pathlib import Path
from typing import Any, AsyncIterator, Optional
from uuid import UUID

import aiosqlite
from tenacity import retry, stop_after_attempt, wait_exponential

from finance_tracker.config import DatabaseSettings
from finance_tracker.exceptions import FinanceTrackerError, NotFoundError, PersistenceError
from finance_tracker.models.account import AccountType, BankAccount
from finance_tracker.models.budget import Budget
from finance_tracker.models.investment import Investment, InvestmentType
from finance_tracker.models.ledger import Expense, Frequency, Income, Transfer
from finance_tracker.services.storage.interface import LedgerSession, LedgerStorage

logger = logging.getLogger(__name__)


SCHEMA = """
CREATE TABLE IF NOT EXISTS accounts (
    id TEXT PRIMARY KEY,
    owner_id TEXT NOT NULL,
    name TEXT NOT NULL,
    bank_name TEXT,
    account_number TEXT,
    balance TEXT NOT NULL,
    type TEXT NOT NULL,
    color TEXT,
    is_active INTEGER NOT NULL,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_accounts_owner ON accounts(owner_id);

CREATE TABLE IF NOT EXISTS expenses (
    id TEXT PRIMARY KEY,
    owner_id TEXT NOT NULL,
    amount TEXT NOT NULL,
    category TEXT NOT NULL,
    description TEXT,
    expense_date TEXT NOT NULL,
    tags TEXT NOT NULL,
    account_id TEXT,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_expenses_owner_date ON expenses(owner_id, expense_date);

CREATE TABLE IF NOT EXISTS incomes (
    id TEXT PRIMARY KEY,
    owner_id TEXT NOT NULL,
    amount TEXT NOT NULL,
    source TEXT NOT NULL,
    category TEXT NOT NULL,
    description TEXT,
    income_date TEXT NOT NULL,
    is_recurring INTEGER NOT NULL,
    frequency TEXT,
    next_date TEXT,
    account_id TEXT,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_incomes_owner_date ON incomes(owner_id, income_date);

CREATE TABLE IF NOT EXISTS transfers (
    id TEXT PRIMARY KEY,
    owner_id TEXT NOT NULL,
    from_account_id TEXT NOT NULL,
    to_account_id TEXT NOT NULL,
    from_account_name TEXT NOT NULL,
    to_account_name TEXT NOT NULL,
    amount TEXT NOT NULL,
    fee TEXT NOT NULL,
    description TEXT,
    transfer_date TEXT NOT NULL,
    created_at TEXT NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_transfers_owner_date ON transfers(owner_id, transfer_date);

CREATE TABLE IF NOT EXISTS budgets (
    id TEXT PRIMARY KEY,
    owner_id TEXT NOT NULL,
    category TEXT NOT NULL,
    limit_amount TEXT NOT NULL,
    color TEXT NOT NULL,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS investments (
    id TEXT PRIMARY KEY,
    owner_id TEXT NOT NULL,
    symbol TEXT NOT NULL,
    name TEXT NOT NULL,
    type TEXT NOT NULL,
    quantity TEXT NOT NULL,
    purchase_price TEXT NOT NULL,
    current_price TEXT NOT NULL,
    purchase_date TEXT NOT NULL,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL
);
"""

ACCOUNT_COLUMNS = (
    "id", "owner_id", "name", "bank_name", "account_number", "balance",
    "type", "color", "is_active", "created_at", "updated_at",
)
EXPENSE_COLUMNS = (
    "id", "owner_id", "amount", "category", "description", "expense_date",
    "tags", "account_id", "created_at", "updated_at",
)
INCOME_COLUMNS = (
    "id", "owner_id", "amount", "source", "category", "description",
    "income_date", "is_recurring", "frequency", "next_date", "account_id",
    "created_at", "updated_at",
)
TRANSFER_COLUMNS = (
    "id", "owner_id", "from_account_id", "to_account_id", "from_account_name",
    "to_account_name", "amount", "fee", "description", "transfer_date",
    "created_at",
)
BUDGET_COLUMNS = (
    "id", "owner_id", "category", "limit_amount", "color", "created_at",
    "updated_at",
)
INVESTMENT_COLUMNS = (
    "id", "owner_id", "symbol", "name", "type", "quantity", "purchase_price",
    "current_price", "purchase_date", "created_at", "updated_at",
)


def _opt_uuid(value: Optional[str]) -> Optional[UUID]:
    return UUID(value) if value else None


def _opt_str(value: Any) -> Optional[str]:
    return str(value) if value is not None else None


def _opt_date(value: Optional[str]) -> Optional[date]:
    return date.fromisoformat(value) if value else None


def _date_filters(column: str, date_from: Optional[date], date_to: Optional[date]) -> tuple[str, list]:
    clauses, params = "", []
    if date_from:
        clauses += f" AND {column} >= ?"
        params.append(date_from.isoformat())
    if date_to:
        clauses += f" AND {column} <= ?"
        params.append(date_to.isoformat())
    return clauses, params


# =============================================================================
# ROW MAPPING
# =============================================================================

def _account_to_row(a: BankAccount) -> tuple:
    return (
        str(a.id), a.owner_id, a.name, a.bank_name, a.account_number,
        str(a.balance), a.type.value, a.color, int(a.is_active),
        a.created_at.isoformat(), a.updated_at.isoformat(),
    )


def _row_to_account(row: aiosqlite.Row) -> BankAccount:
    return BankAccount(
        id=UUID(row["id"]),
        owner_id=row["owner_id"],
        name=row["name"],
        bank_name=row["bank_name"],
        account_number=row["account_number"],
        balance=Decimal(row["balance"]),
        type=AccountType(row["type"]),
        color=row["color"],
        is_active=bool(row["is_active"]),
        created_at=datetime.fromisoformat(row["created_at"]),
        updated_at=datetime.fromisoformat(row["updated_at"]),
    )


def _expense_to_row(e: Expense) -> tuple:
    return (
        str(e.id), e.owner_id, str(e.amount), e.category, e.description,
        e.expense_date.isoformat(), json.dumps(e.tags), _opt_str(e.account_id),
        e.created_at.isoformat(), e.updated_at.isoformat(),
    )


def _row_to_expense(row: aiosqlite.Row) -> Expense:
    return Expense(
        id=UUID(row["id"]),
        owner_id=row["owner_id"],
        amount=Decimal(row["amount"]),
        category=row["category"],
        description=row["description"],
        expense_date=date.fromisoformat(row["expense_date"]),
        tags=json.loads(row["tags"]) if row["tags"] else [],
        account_id=_opt_uuid(row["account_id"]),
        created_at=datetime.fromisoformat(row["created_at"]),
        updated_at=datetime.fromisoformat(row["updated_at"]),
    )


def _income_to_row(i: Income) -> tuple:
    return (
        str(i.id), i.owner_id, str(i.amount), i.source, i.category,
        i.description, i.income_date.isoformat(), int(i.is_recurring),
        i.frequency.value if i.frequency else None,
        i.next_date.isoformat() if i.next_date else None,
        _opt_str(i.account_id), i.created_at.isoformat(), i.updated_at.isoformat(),
    )


def _row_to_income(row: aiosqlite.Row) -> Income:
    return Income(
        id=UUID(row["id"]),
        owner_id=row["owner_id"],
        amount=Decimal(row["amount"]),
        source=row["source"],
        category=row["category"],
        description=row["description"],
        income_date=date.fromisoformat(row["income_date"]),
        is_recurring=bool(row["is_recurring"]),
        frequency=Frequency(row["frequency"]) if row["frequency"] else None,
        next_date=_opt_date(row["next_date"]),
        account_id=_opt_uuid(row["account_id"]),
        created_at=datetime.fromisoformat(row["created_at"]),
        updated_at=datetime.fromisoformat(row["updated_at"]),
    )


def _transfer_to_row(t: Transfer) -> tuple:
    return (
        str(t.id), t.owner_id, str(t.from_account_id), str(t.to_account_id),
        t.from_account_name, t.to_account_name, str(t.amount), str(t.fee),
        t.description, t.transfer_date.isoformat(), t.created_at.isoformat(),
    )


def _row_to_transfer(row: aiosqlite.Row) -> Transfer:
    return Transfer(
        id=UUID(row["id"]),
        owner_id=row["owner_id"],
        from_account_id=UUID(row["from_account_id"]),
        to_account_id=UUID(row["to_account_id"]),
        from_account_name=row["from_account_name"],
        to_account_name=row["to_account_name"],
        amount=Decimal(row["amount"]),
        fee=Decimal(row["fee"]),
        description=row["description"],
        transfer_date=date.fromisoformat(row["transfer_date"]),
        created_at=datetime.fromisoformat(row["created_at"]),
    )


def _budget_to_row(b: Budget) -> tuple:
    return (
        str(b.id), b.owner_id, b.category, str(b.limit_amount), b.color,
        b.created_at.isoformat(), b.updated_at.isoformat(),
    )


def _row_to_budget(row: aiosqlite.Row) -> Budget:
    return Budget(
        id=UUID(row["id"]),
        owner_id=row["owner_id"],
        category=row["category"],
        limit_amount=Decimal(row["limit_amount"]),
        color=row["color"],
        created_at=datetime.fromisoformat(row["created_at"]),
        updated_at=datetime.fromisoformat(row["updated_at"]),
    )


def _investment_to_row(i: Investment) -> tuple:
    return (
        str(i.id), i.owner_id, i.symbol, i.name, i.type.value, str(i.quantity),
        str(i.purchase_price), str(i.current_price), i.purchase_date.isoformat(),
        i.created_at.isoformat(), i.updated_at.isoformat(),
    )


def _row_to_investment(row: aiosqlite.Row) -> Investment:
    return Investment(
        id=UUID(row["id"]),
        owner_id=row["owner_id"],
        symbol=row["symbol"],
        name=row["name"],
        type=InvestmentType(row["type"]),
        quantity=Decimal(row["quantity"]),
        purchase_price=Decimal(row["purchase_price"]),
        current_price=Decimal(row["current_price"]),
        purchase_date=date.fromisoformat(row["purchase_date"]),
        created_at=datetime.fromisoformat(row["created_at"]),
        updated_at=datetime.fromisoformat(row["updated_at"]),
    )


# =============================================================================
# SESSION
# =============================================================================

class SQLiteLedgerSession(LedgerSession):
    """Session bound to the connection for the duration of one transaction."""

    def __init__(self, conn: aiosqlite.Connection):
        self._conn = conn

    async def _fetch_one(self, sql: str, params: tuple) -> Optional[aiosqlite.Row]:
        async with self._conn.execute(sql, params) as cursor:
            return await cursor.fetchone()

    async def _fetch_all(self, sql: str, params: tuple) -> list[aiosqlite.Row]:
        async with self._conn.execute(sql, params) as cursor:
            return list(await cursor.fetchall())

    async def _insert(self, table: str, columns: tuple, values: tuple) -> None:
        placeholders = ", ".join("?" for _ in columns)
        await self._conn.execute(
            f"INSERT INTO {table} ({', '.join(columns)}) VALUES ({placeholders})",
            values,
        )

    async def _update(self, table: str, entity: str, columns: tuple, values: tuple) -> None:
        """Overwrite every column but id and owner_id; the row must exist for the owner."""
        assignments = ", ".join(f"{c} = ?" for c in columns[2:])
        cursor = await self._conn.execute(
            f"UPDATE {table} SET {assignments} WHERE id = ? AND owner_id = ?",
            (*values[2:], values[0], values[1]),
        )
        if cursor.rowcount == 0:
            raise NotFoundError(entity, values[0])

    async def _delete(self, table: str, record_id: UUID, owner_id: str) -> bool:
        cursor = await self._conn.execute(
            f"DELETE FROM {table} WHERE id = ? AND owner_id = ?",
            (str(record_id), owner_id),
        )
        return cursor.rowcount > 0

    # Accounts ----------------------------------------------------------------

    async def get_account(self, account_id: UUID, owner_id: str) -> Optional[BankAccount]:
        row = await self._fetch_one(
            "SELECT * FROM accounts WHERE id = ? AND owner_id = ?",
            (str(account_id), owner_id),
        )
        return _row_to_account(row) if row else None

    async def list_accounts(self, owner_id: str) -> list[BankAccount]:
        rows = await self._fetch_all(
            "SELECT * FROM accounts WHERE owner_id = ? ORDER BY created_at DESC",
            (owner_id,),
        )
        return [_row_to_account(r) for r in rows]

    async def insert_account(self, account: BankAccount) -> None:
        await self._insert("accounts", ACCOUNT_COLUMNS, _account_to_row(account))

    async def update_account(self, account: BankAccount) -> None:
        await self._update("accounts", "Account", ACCOUNT_COLUMNS, _account_to_row(account))

    async def delete_account(self, account_id: UUID, owner_id: str) -> bool:
        return await self._delete("accounts", account_id, owner_id)

    async def detach_account(self, account_id: UUID, owner_id: str) -> None:
        for table in ("expenses", "incomes"):
            await self._conn.execute(
                f"UPDATE {table} SET account_id = NULL WHERE owner_id = ? AND account_id = ?",
                (owner_id, str(account_id)),
            )

    # Expenses ----------------------------------------------------------------

    async def get_expense(self, expense_id: UUID, owner_id: str) -> Optional[Expense]:
        row = await self._fetch_one(
            "SELECT * FROM expenses WHERE id = ? AND owner_id = ?",
            (str(expense_id), owner_id),
        )
        return _row_to_expense(row) if row else None

    async def list_expenses(
        self,
        owner_id: str,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
        category: Optional[str] = None,
        account_id: Optional[UUID] = None,
    ) -> list[Expense]:
        sql = "SELECT * FROM expenses WHERE owner_id = ?"
        params: list = [owner_id]
        clauses, date_params = _date_filters("expense_date", date_from, date_to)
        sql += clauses
        params += date_params
        if category is not None:
            sql += " AND category = ?"
            params.append(category)
        if account_id is not None:
            sql += " AND account_id = ?"
            params.append(str(account_id))
        sql += " ORDER BY expense_date DESC, created_at DESC"
        return [_row_to_expense(r) for r in await self._fetch_all(sql, tuple(params))]

    async def insert_expense(self, expense: Expense) -> None:
        await self._insert("expenses", EXPENSE_COLUMNS, _expense_to_row(expense))

    async def update_expense(self, expense: Expense) -> None:
        await self._update("expenses", "Expense", EXPENSE_COLUMNS, _expense_to_row(expense))

    async def delete_expense(self, expense_id: UUID, owner_id: str) -> bool:
        return await self._delete("expenses", expense_id, owner_id)

    # Incomes -----------------------------------------------------------------

    async def get_income(self, income_id: UUID, owner_id: str) -> Optional[Income]:
        row = await self._fetch_one(
            "SELECT * FROM incomes WHERE id = ? AND owner_id = ?",
            (str(income_id), owner_id),
        )
        return _row_to_income(row) if row else None

    async def list_incomes(
        self,
        owner_id: str,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
        category: Optional[str] = None,
        account_id: Optional[UUID] = None,
    ) -> list[Income]:
        sql = "SELECT * FROM incomes WHERE owner_id = ?"
        params: list = [owner_id]
        clauses, date_params = _date_filters("income_date", date_from, date_to)
        sql += clauses
        params += date_params
        if category is not None:
            sql += " AND category = ?"
            params.append(category)
        if account_id is not None:
            sql += " AND account_id = ?"
            params.append(str(account_id))
        sql += " ORDER BY income_date DESC, created_at DESC"
        return [_row_to_income(r) for r in await self._fetch_all(sql, tuple(params))]

    async def insert_income(self, income: Income) -> None:
        await self._insert("incomes", INCOME_COLUMNS, _income_to_row(income))

    async def update_income(self, income: Income) -> None:
        await self._update("incomes", "Income", INCOME_COLUMNS, _income_to_row(income))

    async def delete_income(self, income_id: UUID, owner_id: str) -> bool:
        return await self._delete("incomes", income_id, owner_id)

    # Transfers ---------------------------------------------------------------

    async def get_transfer(self, transfer_id: UUID, owner_id: str) -> Optional[Transfer]:
        row = await self._fetch_one(
            "SELECT * FROM transfers WHERE id = ? AND owner_id = ?",
            (str(transfer_id), owner_id),
        )
        return _row_to_transfer(row) if row else None

    async def list_transfers(
        self,
        owner_id: str,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
    ) -> list[Transfer]:
        clauses, date_params = _date_filters("transfer_date", date_from, date_to)
        rows = await self._fetch_all(
            "SELECT * FROM transfers WHERE owner_id = ?" + clauses
            + " ORDER BY transfer_date DESC, created_at DESC",
            (owner_id, *date_params),
        )
        return [_row_to_transfer(r) for r in rows]

    async def insert_transfer(self, transfer: Transfer) -> None:
        await self._insert("transfers", TRANSFER_COLUMNS, _transfer_to_row(transfer))

    # Budgets -----------------------------------------------------------------

    async def get_budget(self, budget_id: UUID, owner_id: str) -> Optional[Budget]:
        row = await self._fetch_one(
            "SELECT * FROM budgets WHERE id = ? AND owner_id = ?",
            (str(budget_id), owner_id),
        )
        return _row_to_budget(row) if row else None

    async def list_budgets(self, owner_id: str) -> list[Budget]:
        rows = await self._fetch_all(
            "SELECT * FROM budgets WHERE owner_id = ? ORDER BY created_at DESC",
            (owner_id,),
        )
        return [_row_to_budget(r) for r in rows]

    async def insert_budget(self, budget: Budget) -> None:
        await self._insert("budgets", BUDGET_COLUMNS, _budget_to_row(budget))

    async def update_budget(self, budget: Budget) -> None:
        await self._update("budgets", "Budget", BUDGET_COLUMNS, _budget_to_row(budget))

    async def delete_budget(self, budget_id: UUID, owner_id: str) -> bool:
        return await self._delete("budgets", budget_id, owner_id)

    # Investments -------------------------------------------------------------

    async def get_investment(self, investment_id: UUID, owner_id: str) -> Optional[Investment]:
        row = await self._fetch_one(
            "SELECT * FROM investments WHERE id = ? AND owner_id = ?",
            (str(investment_id), owner_id),
        )
        return _row_to_investment(row) if row else None

    async def list_investments(self, owner_id: str) -> list[Investment]:
        rows = await self._fetch_all(
            "SELECT * FROM investments WHERE owner_id = ? ORDER BY created_at DESC",
            (owner_id,),
        )
        return [_row_to_investment(r) for r in rows]

    async def insert_investment(self, investment: Investment) -> None:
        await self._insert("investments", INVESTMENT_COLUMNS, _investment_to_row(investment))

    async def update_investment(self, investment: Investment) -> None:
        await self._update(
            "investments", "Investment", INVESTMENT_COLUMNS, _investment_to_row(investment)
        )

    async def delete_investment(self, investment_id: UUID, owner_id: str) -> bool:
        return await self._delete("investments", investment_id, owner_id)


# =============================================================================
# STORAGE
# =============================================================================

class SQLiteLedgerStorage(LedgerStorage):
    """
    SQLite-backed ledger storage.

    Usage:
        storage = SQLiteLedgerStorage(settings.database)
        await storage.initialize()
        async with storage.transaction() as session:
            ...
        await storage.close()
    """

    def __init__(self, settings: DatabaseSettings):
        self._settings = settings
        self._conn: Optional[aiosqlite.Connection] = None
        self._initialized = False
        # Guards opening the connection and creating the schema
        self._connect_lock = asyncio.Lock()
        # Guards the shared connection for units of work and reads
        self._lock = asyncio.Lock()

    @property
    def is_connected(self) -> bool:
        return self._conn is not None

    async def _open(self) -> aiosqlite.Connection:
        path = self._settings.sqlite_path
        if path != ":memory:":
            Path(path).parent.mkdir(parents=True, exist_ok=True)

        # isolation_level=None: transactions are opened explicitly per unit of work
        conn = await aiosqlite.connect(path, isolation_level=None)
        conn.row_factory = aiosqlite.Row
        await conn.execute("PRAGMA journal_mode=WAL")
        await conn.execute(f"PRAGMA busy_timeout={int(self._settings.busy_timeout_ms)}")
        await conn.execute("PRAGMA foreign_keys=ON")
        return conn

    async def _connect_locked(self) -> None:
        if self._conn is not None:
            return

        opener = retry(
            stop=stop_after_attempt(self._settings.connect_attempts),
            wait=wait_exponential(multiplier=1, min=2, max=10),
            reraise=True,
        )(self._open)
        try:
            self._conn = await opener()
        except Exception as e:
            raise PersistenceError(f"Failed to open database: {e}", cause=e) from e

        logger.info("SQLite connection opened", extra={"db_path": self._settings.sqlite_path})

    async def connect(self) -> None:
        """
        Open the database file.

        Opening is retried with exponential backoff; once open, nothing
        is retried. Concurrent callers share one connection.
        """
        async with self._connect_lock:
            await self._connect_locked()

    async def initialize(self) -> None:
        """Connect and create the schema if it does not exist."""
        async with self._connect_lock:
            if self._initialized:
                return
            await self._connect_locked()
            await self._conn.executescript(SCHEMA)
            self._initialized = True

    async def _rollback(self) -> None:
        if self._conn.in_transaction:
            await self._conn.execute("ROLLBACK")

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[LedgerSession]:
        if not self._initialized:
            await self.initialize()

        async with self._lock:
            try:
                await self._conn.execute("BEGIN IMMEDIATE")
            except Exception as e:
                raise PersistenceError(f"Could not start unit of work: {e}", cause=e) from e

            try:
                yield SQLiteLedgerSession(self._conn)
            except FinanceTrackerError:
                await self._rollback()
                raise
            except Exception as e:
                await self._rollback()
                raise PersistenceError(f"Unit of work failed: {e}", cause=e) from e
            except BaseException:
                # Cancelled mid-way: the connection must not stay inside BEGIN
                await self._rollback()
                raise

            try:
                await self._conn.execute("COMMIT")
            except Exception as e:
                await self._rollback()
                raise PersistenceError(f"Commit failed: {e}", cause=e) from e

    @asynccontextmanager
    async def reader(self) -> AsyncIterator[LedgerSession]:
        """Autocommit reads on the shared connection; no write lock is taken."""
        if not self._initialized:
            await self.initialize()

        async with self._lock:
            try:
                yield SQLiteLedgerSession(self._conn)
            except FinanceTrackerError:
                raise
            except Exception as e:
                raise PersistenceError(f"Read failed: {e}", cause=e) from e

    async def close(self) -> None:
        async with self._connect_lock:
            if self._conn is not None:
                await self._conn.close()
                self._conn = None
                self._initialized = False
                logger.info("SQLite connection closed")
