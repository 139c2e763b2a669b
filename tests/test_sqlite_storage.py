"""
Tests for the SQLite backend.

The same managers run over a database file in a temporary directory.
"""

import asyncio

import pytest
import pytest_asyncio
from datetime import date
from decimal import Decimal
from uuid import uuid4

from finance_tracker.analytics import AnalyticsAggregator
from finance_tracker.config import DatabaseSettings
from finance_tracker.exceptions import InsufficientBalanceError, NotFoundError, PersistenceError
from finance_tracker.ledger import (
    AccountManager,
    BudgetManager,
    ExpenseManager,
    IncomeManager,
    InvestmentManager,
    TransferManager,
)
from finance_tracker.models import (
    AccountDraft,
    AccountType,
    BankAccount,
    BudgetDraft,
    ExpenseDraft,
    Frequency,
    IncomeDraft,
    InvestmentDraft,
    InvestmentType,
    TransferDraft,
)
from finance_tracker.services.storage import SQLiteLedgerStorage


@pytest.fixture
def db_settings(tmp_path) -> DatabaseSettings:
    return DatabaseSettings(backend="sqlite", sqlite_path=str(tmp_path / "data" / "finance.db"))


@pytest_asyncio.fixture
async def sqlite_storage(db_settings):
    storage = SQLiteLedgerStorage(db_settings)
    await storage.initialize()
    yield storage
    await storage.close()


@pytest_asyncio.fixture
async def main_account(sqlite_storage, owner_id):
    return await AccountManager(sqlite_storage).create(owner_id, AccountDraft(
        name="BCA Main Account", balance="5,000,000", type=AccountType.CHECKING,
    ))


async def stored_balance(storage, owner_id, account_id) -> Decimal:
    return (await AccountManager(storage).get(owner_id, account_id)).balance


class TestConnection:
    """Tests for opening and closing the database."""

    @pytest.mark.asyncio
    async def test_creates_parent_directory(self, db_settings, tmp_path):
        storage = SQLiteLedgerStorage(db_settings)
        await storage.initialize()
        try:
            assert storage.is_connected
            assert (tmp_path / "data" / "finance.db").exists()
        finally:
            await storage.close()
        assert not storage.is_connected

    @pytest.mark.asyncio
    async def test_first_transaction_initializes(self, db_settings, owner_id):
        storage = SQLiteLedgerStorage(db_settings)
        try:
            assert await AccountManager(storage).list(owner_id) == []
        finally:
            await storage.close()

    @pytest.mark.asyncio
    async def test_unopenable_path_raises_persistence_error(self, tmp_path):
        blocker = tmp_path / "not-a-directory"
        blocker.write_text("")
        storage = SQLiteLedgerStorage(DatabaseSettings(
            backend="sqlite", sqlite_path=str(blocker / "finance.db"), connect_attempts=1,
        ))
        with pytest.raises(PersistenceError):
            await storage.connect()


class TestLedgerOverSQLite:
    """Tests for ledger operations persisted to SQLite."""

    @pytest.mark.asyncio
    async def test_expense_round_trip(self, sqlite_storage, owner_id, main_account):
        expenses = ExpenseManager(sqlite_storage)
        write = await expenses.create(owner_id, ExpenseDraft(
            amount="1,234.56",
            category="Food & Dining",
            expense_date=date(2024, 3, 1),
            tags=["lunch", "team", "lunch"],
            account_id=main_account.id,
        ))

        stored = await expenses.get(owner_id, write.record.id)
        assert stored.amount == Decimal("1234.56")
        assert stored.tags == ["lunch", "team"]
        assert stored.account_id == main_account.id
        assert await stored_balance(sqlite_storage, owner_id, main_account.id) == Decimal("4998765.44")

    @pytest.mark.asyncio
    async def test_decimal_exactness(self, sqlite_storage, owner_id, main_account):
        expenses = ExpenseManager(sqlite_storage)
        for _ in range(10):
            await expenses.create(owner_id, ExpenseDraft(
                amount="0.10", category="Other", expense_date=date(2024, 3, 1),
                account_id=main_account.id,
            ))
        assert await stored_balance(sqlite_storage, owner_id, main_account.id) == Decimal("4999999.00")

    @pytest.mark.asyncio
    async def test_edit_moves_between_accounts(self, sqlite_storage, owner_id, main_account):
        wallet = await AccountManager(sqlite_storage).create(owner_id, AccountDraft(
            name="OVO Wallet", balance="500000", type=AccountType.EWALLET,
        ))
        expenses = ExpenseManager(sqlite_storage)
        write = await expenses.create(owner_id, ExpenseDraft(
            amount="200000", category="Shopping", expense_date=date(2024, 3, 1),
            account_id=main_account.id,
        ))
        await expenses.update(owner_id, write.record.id, ExpenseDraft(
            amount="50000", category="Shopping", expense_date=date(2024, 3, 1),
            account_id=wallet.id,
        ))

        assert await stored_balance(sqlite_storage, owner_id, main_account.id) == Decimal("5000000.00")
        assert await stored_balance(sqlite_storage, owner_id, wallet.id) == Decimal("450000.00")

    @pytest.mark.asyncio
    async def test_failed_unit_of_work_rolls_back(self, sqlite_storage, owner_id):
        """The expense insert is undone when the account debit fails."""
        expenses = ExpenseManager(sqlite_storage)
        with pytest.raises(NotFoundError):
            await expenses.create(owner_id, ExpenseDraft(
                amount="10", category="Other", expense_date=date(2024, 3, 1), account_id=uuid4(),
            ))
        assert await expenses.list(owner_id) == []

    @pytest.mark.asyncio
    async def test_recurring_income_fields_persist(self, sqlite_storage, owner_id, main_account):
        incomes = IncomeManager(sqlite_storage)
        write = await incomes.create(owner_id, IncomeDraft(
            amount="10,000,000", category="Salary", source="Employer",
            income_date=date(2024, 1, 31), is_recurring=True, frequency=Frequency.MONTHLY,
            account_id=main_account.id,
        ))

        stored = await incomes.get(owner_id, write.record.id)
        assert stored.frequency == Frequency.MONTHLY
        assert stored.next_date == date(2024, 2, 29)
        assert await stored_balance(sqlite_storage, owner_id, main_account.id) == Decimal("15000000.00")

    @pytest.mark.asyncio
    async def test_transfer_and_rejection(self, sqlite_storage, owner_id, main_account):
        wallet = await AccountManager(sqlite_storage).create(owner_id, AccountDraft(
            name="OVO Wallet", balance="0", type=AccountType.EWALLET,
        ))
        transfers = TransferManager(sqlite_storage)

        await transfers.create(owner_id, TransferDraft(
            from_account_id=main_account.id, to_account_id=wallet.id,
            amount="100000", fee="2500", transfer_date=date(2024, 3, 1),
        ))
        with pytest.raises(InsufficientBalanceError):
            await transfers.create(owner_id, TransferDraft(
                from_account_id=wallet.id, to_account_id=main_account.id,
                amount="100000", fee="1", transfer_date=date(2024, 3, 2),
            ))

        assert await stored_balance(sqlite_storage, owner_id, main_account.id) == Decimal("4897500.00")
        assert await stored_balance(sqlite_storage, owner_id, wallet.id) == Decimal("100000.00")
        assert len(await transfers.list(owner_id)) == 1

    @pytest.mark.asyncio
    async def test_delete_account_detaches_records(self, sqlite_storage, owner_id, main_account):
        accounts = AccountManager(sqlite_storage)
        expenses = ExpenseManager(sqlite_storage)
        write = await expenses.create(owner_id, ExpenseDraft(
            amount="10", category="Other", expense_date=date(2024, 3, 1), account_id=main_account.id,
        ))

        await accounts.delete(owner_id, main_account.id)

        assert (await expenses.get(owner_id, write.record.id)).account_id is None
        with pytest.raises(NotFoundError):
            await accounts.get(owner_id, main_account.id)

    @pytest.mark.asyncio
    async def test_owner_isolation(self, sqlite_storage, owner_id, other_owner_id, main_account):
        accounts = AccountManager(sqlite_storage)
        assert await accounts.list(other_owner_id) == []
        with pytest.raises(NotFoundError):
            await accounts.get(other_owner_id, main_account.id)


class TestPersistence:
    """Tests for data surviving a reconnect."""

    @pytest.mark.asyncio
    async def test_reopen_sees_committed_state(self, db_settings, owner_id, app_settings):
        first = SQLiteLedgerStorage(db_settings)
        account = await AccountManager(first).create(owner_id, AccountDraft(name="Jago", balance="100"))
        await ExpenseManager(first).create(owner_id, ExpenseDraft(
            amount="40", category="Travel", expense_date=date(2024, 3, 1), account_id=account.id,
        ))
        await first.close()

        second = SQLiteLedgerStorage(db_settings)
        try:
            assert await stored_balance(second, owner_id, account.id) == Decimal("60.00")
            breakdown = await AnalyticsAggregator(second, app_settings).category_breakdown(owner_id)
            assert breakdown.total == Decimal("40.00")
        finally:
            await second.close()


class TestUnitOfWorkBoundaries:
    """Tests for how units of work start and end on the shared connection."""

    @pytest.mark.asyncio
    async def test_cancelled_unit_of_work_rolls_back(self, sqlite_storage, owner_id):
        entered = asyncio.Event()

        async def abandoned_write():
            async with sqlite_storage.transaction() as session:
                await session.insert_account(BankAccount(owner_id=owner_id, name="Ghost"))
                entered.set()
                await asyncio.sleep(60)

        task = asyncio.create_task(abandoned_write())
        await entered.wait()
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

        assert not sqlite_storage._conn.in_transaction

        accounts = AccountManager(sqlite_storage)
        created = await accounts.create(owner_id, AccountDraft(name="Jago", balance="100"))
        assert [a.id for a in await accounts.list(owner_id)] == [created.id]

    @pytest.mark.asyncio
    async def test_busy_database_raises_persistence_error(self, sqlite_storage, db_settings, owner_id):
        """A unit of work that cannot take the write lock fails cleanly."""
        impatient = SQLiteLedgerStorage(db_settings.model_copy(update={"busy_timeout_ms": 0}))
        await impatient.initialize()
        try:
            async with sqlite_storage.transaction():
                with pytest.raises(PersistenceError, match="Could not start unit of work"):
                    async with impatient.transaction():
                        pass
            assert not impatient._conn.in_transaction
            assert await AccountManager(impatient).list(owner_id) == []
        finally:
            await impatient.close()

    @pytest.mark.asyncio
    async def test_concurrent_first_use_opens_one_connection(self, db_settings, owner_id, monkeypatch):
        storage = SQLiteLedgerStorage(db_settings)
        opened = []
        original_open = storage._open

        async def counting_open():
            conn = await original_open()
            opened.append(conn)
            return conn

        monkeypatch.setattr(storage, "_open", counting_open)
        try:
            accounts = AccountManager(storage)
            results = await asyncio.gather(*(accounts.list(owner_id) for _ in range(3)))
            assert results == [[], [], []]
            assert len(opened) == 1
        finally:
            await storage.close()

    @pytest.mark.asyncio
    async def test_reads_do_not_hold_a_transaction(self, sqlite_storage, owner_id, main_account):
        async with sqlite_storage.reader() as session:
            assert await session.get_account(main_account.id, owner_id) is not None
            assert not sqlite_storage._conn.in_transaction


class TestBudgetsAndInvestmentsOverSQLite:
    """Tests for budget and investment rows persisted to SQLite."""

    @pytest.mark.asyncio
    async def test_budget_round_trip(self, sqlite_storage, owner_id, other_owner_id, app_settings):
        budgets = BudgetManager(sqlite_storage, app_settings)
        created = await budgets.create(owner_id, BudgetDraft(category="Travel", limit_amount="2,500,000.50"))

        stored = await budgets.get(owner_id, created.id)
        assert stored.limit_amount == Decimal("2500000.50")
        assert stored.color == "#06b6d4"
        assert await budgets.list(other_owner_id) == []

        updated = await budgets.update(owner_id, created.id, BudgetDraft(
            category="Travel", limit_amount="3000000", color="#111111",
        ))
        assert await budgets.get(owner_id, created.id) == updated

        await budgets.delete(owner_id, created.id)
        with pytest.raises(NotFoundError):
            await budgets.get(owner_id, created.id)

    @pytest.mark.asyncio
    async def test_investment_round_trip(self, sqlite_storage, owner_id, other_owner_id, main_account):
        investments = InvestmentManager(sqlite_storage)
        created = await investments.create(owner_id, InvestmentDraft(
            symbol="btc", name="Bitcoin", type=InvestmentType.CRYPTOCURRENCY,
            quantity="0.00012345", purchase_price="650,000,000", current_price="700,000,000",
            purchase_date=date(2024, 2, 1),
        ))

        stored = await investments.get(owner_id, created.id)
        assert stored.symbol == "BTC"
        assert stored.type == InvestmentType.CRYPTOCURRENCY
        assert stored.quantity == Decimal("0.00012345")
        assert stored.current_price == Decimal("700000000.00")
        assert stored.purchase_date == date(2024, 2, 1)
        with pytest.raises(NotFoundError):
            await investments.get(other_owner_id, created.id)

        await investments.delete(owner_id, created.id)
        assert await investments.list(owner_id) == []
        assert await stored_balance(sqlite_storage, owner_id, main_account.id) == Decimal("5000000.00")


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
