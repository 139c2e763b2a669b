"""
Shared fixtures.

Every test gets a fresh in-memory store. No network access, no .env
required: settings objects are built explicitly.
"""

from decimal import Decimal

import pytest
import pytest_asyncio

from finance_tracker.activity import ActivityLogger
from finance_tracker.analytics import AnalyticsAggregator
from finance_tracker.auth import JWTOwnerResolver
from finance_tracker.config import AppSettings, AuthSettings
from finance_tracker.ledger import (
    AccountManager,
    BalanceMutator,
    BudgetManager,
    ExpenseManager,
    IncomeManager,
    InvestmentManager,
    TransferManager,
)
from finance_tracker.models import AccountDraft, AccountType
from finance_tracker.services.storage import InMemoryLedgerStorage
from finance_tracker.tracker import FinanceTracker


@pytest.fixture
def owner_id() -> str:
    return "user-1"


@pytest.fixture
def other_owner_id() -> str:
    return "user-2"


@pytest.fixture
def app_settings() -> AppSettings:
    return AppSettings(log_json=False)


@pytest.fixture
def auth_settings() -> AuthSettings:
    return AuthSettings(jwt_secret="test-secret-key-not-for-production")


@pytest.fixture
def storage() -> InMemoryLedgerStorage:
    return InMemoryLedgerStorage()


@pytest.fixture
def mutator() -> BalanceMutator:
    return BalanceMutator()


@pytest.fixture
def accounts(storage) -> AccountManager:
    return AccountManager(storage)


@pytest.fixture
def expenses(storage, mutator) -> ExpenseManager:
    return ExpenseManager(storage, mutator)


@pytest.fixture
def incomes(storage, mutator) -> IncomeManager:
    return IncomeManager(storage, mutator)


@pytest.fixture
def transfers(storage, mutator) -> TransferManager:
    return TransferManager(storage, mutator)


@pytest.fixture
def budgets(storage, app_settings) -> BudgetManager:
    return BudgetManager(storage, app_settings)


@pytest.fixture
def investments(storage) -> InvestmentManager:
    return InvestmentManager(storage)


@pytest.fixture
def analytics(storage, app_settings) -> AnalyticsAggregator:
    return AnalyticsAggregator(storage, app_settings)


@pytest.fixture
def resolver(auth_settings) -> JWTOwnerResolver:
    return JWTOwnerResolver(auth_settings)


@pytest.fixture
def token(resolver, owner_id) -> str:
    return resolver.issue_token(owner_id)


@pytest.fixture
def tracker(storage, resolver, app_settings) -> FinanceTracker:
    return FinanceTracker(
        storage=storage,
        owner_resolver=resolver,
        activity_logger=ActivityLogger(),
        app_settings=app_settings,
    )


@pytest_asyncio.fixture
async def checking(accounts, owner_id):
    """Checking account seeded with 5,000,000."""
    return await accounts.create(owner_id, AccountDraft(
        name="BCA Main Account",
        bank_name="BCA (Bank Central Asia)",
        balance="5,000,000",
        type=AccountType.CHECKING,
    ))


@pytest_asyncio.fixture
async def ewallet(accounts, owner_id):
    """E-wallet seeded with 500,000."""
    return await accounts.create(owner_id, AccountDraft(
        name="OVO Wallet",
        bank_name="OVO",
        balance=Decimal("500000"),
        type=AccountType.EWALLET,
    ))


@pytest.fixture
def balance_of(accounts, owner_id):
    """Read an account's current stored balance."""
    async def _balance(account_id, owner=None) -> Decimal:
        account = await accounts.get(owner or owner_id, account_id)
        return account.balance
    return _balance
