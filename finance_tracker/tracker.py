"""
Finance Tracker Facade

This module ties together all the components and defines the entry
points a boundary layer (HTTP handlers, UI) calls:
1. Resolve the owner from the request token
2. Run the ledger operation as one unit of work
3. Log what happened

DESIGN DECISION: The facade enforces the boundaries:
- No operation runs without an owner resolved from a verified token
- Activity is logged only after the unit of work commits
- Failures are logged and re-raised unchanged

Managers and the analytics aggregator stay usable directly (tests and
batch jobs call them with an owner id they already trust).
"""

from datetime import date
from typing import Awaitable, Callable, Optional, TypeVar
from uuid import UUID

from finance_tracker.activity import ActivityLogger, configure_logging, create_correlation_id
from finance_tracker.analytics import AnalyticsAggregator
from finance_tracker.auth import JWTOwnerResolver
from finance_tracker.config import AppSettings, Settings, get_settings
from finance_tracker.exceptions import (
    InsufficientBalanceError,
    InvalidAccountError,
    UnauthorizedError,
)
from finance_tracker.ledger import (
    AccountManager,
    BalanceMutator,
    BudgetManager,
    ExpenseManager,
    IncomeManager,
    InvestmentManager,
    TransferManager,
)
from finance_tracker.models.account import AccountDraft, AccountUpdate, BankAccount
from finance_tracker.models.activity import ActivityEventType
from finance_tracker.models.analytics import (
    AccountOverview,
    BudgetReport,
    CashFlowReport,
    CategoryBreakdown,
    ExpenseAnalytics,
    PortfolioSummary,
    RecordKind,
    Timeframe,
)
from finance_tracker.models.budget import Budget, BudgetDraft
from finance_tracker.models.investment import Investment, InvestmentDraft
from finance_tracker.models.ledger import (
    Expense,
    ExpenseDraft,
    Income,
    IncomeDraft,
    LedgerWrite,
    Transfer,
    TransferDraft,
)
from finance_tracker.services.storage import LedgerStorage, create_storage

ResultT = TypeVar("ResultT")


class FinanceTracker:
    """
    Entry point for token-authenticated ledger operations.

    Every public operation takes the raw request token first.
    """

    def __init__(
        self,
        storage: LedgerStorage,
        owner_resolver: JWTOwnerResolver,
        activity_logger: Optional[ActivityLogger] = None,
        app_settings: Optional[AppSettings] = None,
    ):
        app_settings = app_settings or get_settings().app
        mutator = BalanceMutator()

        self.storage = storage
        self._resolver = owner_resolver
        self._activity = activity_logger or ActivityLogger()

        self.accounts = AccountManager(storage)
        self.expenses = ExpenseManager(storage, mutator)
        self.incomes = IncomeManager(storage, mutator)
        self.transfers = TransferManager(storage, mutator)
        self.budgets = BudgetManager(storage, app_settings)
        self.investments = InvestmentManager(storage)
        self.analytics = AnalyticsAggregator(storage, app_settings)

    # -------------------------------------------------------------------------
    # Plumbing
    # -------------------------------------------------------------------------

    def resolve_owner(self, token: Optional[str], correlation_id: Optional[UUID] = None) -> str:
        """
        Resolve the owner id for a request.

        Raises:
            UnauthorizedError: Token missing or invalid
        """
        try:
            return self._resolver.resolve(token)
        except UnauthorizedError as e:
            self._activity.log_owner_rejected(reason=str(e), correlation_id=correlation_id)
            raise

    async def _execute(
        self,
        operation: str,
        owner_id: str,
        action: Callable[[], Awaitable[ResultT]],
        correlation_id: UUID,
    ) -> ResultT:
        try:
            return await action()
        except Exception as e:
            self._activity.log_operation_failed(
                operation=operation,
                error=e,
                owner_id=owner_id,
                correlation_id=correlation_id,
            )
            raise

    def _log_write(
        self,
        event_type: ActivityEventType,
        owner_id: str,
        entity_type: str,
        write: LedgerWrite,
        correlation_id: UUID,
    ) -> None:
        self._activity.log_record_written(
            event_type=event_type,
            owner_id=owner_id,
            entity_type=entity_type,
            entity_id=write.record.id,
            amount=str(write.record.amount),
            balance_changes=write.balance_changes,
            correlation_id=correlation_id,
        )

    # -------------------------------------------------------------------------
    # Accounts
    # -------------------------------------------------------------------------

    async def create_account(
        self,
        token: str,
        draft: AccountDraft,
        correlation_id: Optional[UUID] = None,
    ) -> BankAccount:
        correlation_id = correlation_id or create_correlation_id()
        owner_id = self.resolve_owner(token, correlation_id)

        account = await self._execute(
            "create_account", owner_id,
            lambda: self.accounts.create(owner_id, draft),
            correlation_id,
        )
        self._activity.log_account_changed(
            ActivityEventType.ACCOUNT_CREATED, owner_id, account.id, account.name, correlation_id
        )
        return account

    async def update_account(
        self,
        token: str,
        account_id: UUID,
        changes: AccountUpdate,
        correlation_id: Optional[UUID] = None,
    ) -> BankAccount:
        correlation_id = correlation_id or create_correlation_id()
        owner_id = self.resolve_owner(token, correlation_id)

        account = await self._execute(
            "update_account", owner_id,
            lambda: self.accounts.update(owner_id, account_id, changes),
            correlation_id,
        )
        self._activity.log_account_changed(
            ActivityEventType.ACCOUNT_UPDATED, owner_id, account.id, account.name, correlation_id
        )
        return account

    async def delete_account(
        self,
        token: str,
        account_id: UUID,
        correlation_id: Optional[UUID] = None,
    ) -> BankAccount:
        correlation_id = correlation_id or create_correlation_id()
        owner_id = self.resolve_owner(token, correlation_id)

        account = await self._execute(
            "delete_account", owner_id,
            lambda: self.accounts.delete(owner_id, account_id),
            correlation_id,
        )
        self._activity.log_account_changed(
            ActivityEventType.ACCOUNT_DELETED, owner_id, account.id, account.name, correlation_id
        )
        return account

    async def list_accounts(self, token: str, include_inactive: bool = True) -> list[BankAccount]:
        owner_id = self.resolve_owner(token)
        return await self.accounts.list(owner_id, include_inactive=include_inactive)

    # -------------------------------------------------------------------------
    # Expenses
    # -------------------------------------------------------------------------

    async def create_expense(
        self,
        token: str,
        draft: ExpenseDraft,
        correlation_id: Optional[UUID] = None,
    ) -> LedgerWrite[Expense]:
        correlation_id = correlation_id or create_correlation_id()
        owner_id = self.resolve_owner(token, correlation_id)

        write = await self._execute(
            "create_expense", owner_id,
            lambda: self.expenses.create(owner_id, draft),
            correlation_id,
        )
        self._log_write(ActivityEventType.EXPENSE_CREATED, owner_id, "expense", write, correlation_id)
        return write

    async def update_expense(
        self,
        token: str,
        expense_id: UUID,
        draft: ExpenseDraft,
        correlation_id: Optional[UUID] = None,
    ) -> LedgerWrite[Expense]:
        correlation_id = correlation_id or create_correlation_id()
        owner_id = self.resolve_owner(token, correlation_id)

        write = await self._execute(
            "update_expense", owner_id,
            lambda: self.expenses.update(owner_id, expense_id, draft),
            correlation_id,
        )
        self._log_write(ActivityEventType.EXPENSE_UPDATED, owner_id, "expense", write, correlation_id)
        return write

    async def delete_expense(
        self,
        token: str,
        expense_id: UUID,
        correlation_id: Optional[UUID] = None,
    ) -> LedgerWrite[Expense]:
        correlation_id = correlation_id or create_correlation_id()
        owner_id = self.resolve_owner(token, correlation_id)

        write = await self._execute(
            "delete_expense", owner_id,
            lambda: self.expenses.delete(owner_id, expense_id),
            correlation_id,
        )
        self._log_write(ActivityEventType.EXPENSE_DELETED, owner_id, "expense", write, correlation_id)
        return write

    async def list_expenses(
        self,
        token: str,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
        category: Optional[str] = None,
        account_id: Optional[UUID] = None,
    ) -> list[Expense]:
        owner_id = self.resolve_owner(token)
        return await self.expenses.list(
            owner_id, date_from=date_from, date_to=date_to, category=category, account_id=account_id
        )

    # -------------------------------------------------------------------------
    # Income
    # -------------------------------------------------------------------------

    async def create_income(
        self,
        token: str,
        draft: IncomeDraft,
        correlation_id: Optional[UUID] = None,
    ) -> LedgerWrite[Income]:
        correlation_id = correlation_id or create_correlation_id()
        owner_id = self.resolve_owner(token, correlation_id)

        write = await self._execute(
            "create_income", owner_id,
            lambda: self.incomes.create(owner_id, draft),
            correlation_id,
        )
        self._log_write(ActivityEventType.INCOME_CREATED, owner_id, "income", write, correlation_id)
        return write

    async def update_income(
        self,
        token: str,
        income_id: UUID,
        draft: IncomeDraft,
        correlation_id: Optional[UUID] = None,
    ) -> LedgerWrite[Income]:
        correlation_id = correlation_id or create_correlation_id()
        owner_id = self.resolve_owner(token, correlation_id)

        write = await self._execute(
            "update_income", owner_id,
            lambda: self.incomes.update(owner_id, income_id, draft),
            correlation_id,
        )
        self._log_write(ActivityEventType.INCOME_UPDATED, owner_id, "income", write, correlation_id)
        return write

    async def delete_income(
        self,
        token: str,
        income_id: UUID,
        correlation_id: Optional[UUID] = None,
    ) -> LedgerWrite[Income]:
        correlation_id = correlation_id or create_correlation_id()
        owner_id = self.resolve_owner(token, correlation_id)

        write = await self._execute(
            "delete_income", owner_id,
            lambda: self.incomes.delete(owner_id, income_id),
            correlation_id,
        )
        self._log_write(ActivityEventType.INCOME_DELETED, owner_id, "income", write, correlation_id)
        return write

    async def list_incomes(
        self,
        token: str,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
        category: Optional[str] = None,
        account_id: Optional[UUID] = None,
    ) -> list[Income]:
        owner_id = self.resolve_owner(token)
        return await self.incomes.list(
            owner_id, date_from=date_from, date_to=date_to, category=category, account_id=account_id
        )

    # -------------------------------------------------------------------------
    # Transfers
    # -------------------------------------------------------------------------

    async def create_transfer(
        self,
        token: str,
        draft: TransferDraft,
        correlation_id: Optional[UUID] = None,
    ) -> LedgerWrite[Transfer]:
        """Execute a transfer. Rejections are logged as warnings and re-raised."""
        correlation_id = correlation_id or create_correlation_id()
        owner_id = self.resolve_owner(token, correlation_id)

        try:
            write = await self.transfers.create(owner_id, draft)
        except (InvalidAccountError, InsufficientBalanceError) as e:
            self._activity.log_transfer_rejected(
                owner_id=owner_id,
                reason=str(e),
                details={
                    "from_account_id": str(draft.from_account_id),
                    "to_account_id": str(draft.to_account_id),
                    "amount": str(draft.amount),
                    "fee": str(draft.fee),
                },
                correlation_id=correlation_id,
            )
            raise
        except Exception as e:
            self._activity.log_operation_failed("create_transfer", e, owner_id, correlation_id)
            raise

        self._log_write(ActivityEventType.TRANSFER_CREATED, owner_id, "transfer", write, correlation_id)
        return write

    async def list_transfers(
        self,
        token: str,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
    ) -> list[Transfer]:
        owner_id = self.resolve_owner(token)
        return await self.transfers.list(owner_id, date_from=date_from, date_to=date_to)

    # -------------------------------------------------------------------------
    # Budgets and investments
    # -------------------------------------------------------------------------

    async def save_budget(
        self,
        token: str,
        draft: BudgetDraft,
        budget_id: Optional[UUID] = None,
        correlation_id: Optional[UUID] = None,
    ) -> Budget:
        """Create a budget, or replace one when `budget_id` is given."""
        correlation_id = correlation_id or create_correlation_id()
        owner_id = self.resolve_owner(token, correlation_id)

        if budget_id is None:
            action, run = "created", lambda: self.budgets.create(owner_id, draft)
        else:
            action, run = "updated", lambda: self.budgets.update(owner_id, budget_id, draft)

        budget = await self._execute(f"budget_{action}", owner_id, run, correlation_id)
        self._activity.log_planning_changed(
            ActivityEventType.BUDGET_CHANGED, owner_id, "budget", budget.id, action, correlation_id
        )
        return budget

    async def delete_budget(
        self,
        token: str,
        budget_id: UUID,
        correlation_id: Optional[UUID] = None,
    ) -> Budget:
        correlation_id = correlation_id or create_correlation_id()
        owner_id = self.resolve_owner(token, correlation_id)

        budget = await self._execute(
            "budget_deleted", owner_id,
            lambda: self.budgets.delete(owner_id, budget_id),
            correlation_id,
        )
        self._activity.log_planning_changed(
            ActivityEventType.BUDGET_CHANGED, owner_id, "budget", budget.id, "deleted", correlation_id
        )
        return budget

    async def save_investment(
        self,
        token: str,
        draft: InvestmentDraft,
        investment_id: Optional[UUID] = None,
        correlation_id: Optional[UUID] = None,
    ) -> Investment:
        """Create an investment, or replace one when `investment_id` is given."""
        correlation_id = correlation_id or create_correlation_id()
        owner_id = self.resolve_owner(token, correlation_id)

        if investment_id is None:
            action, run = "created", lambda: self.investments.create(owner_id, draft)
        else:
            action, run = "updated", lambda: self.investments.update(owner_id, investment_id, draft)

        investment = await self._execute(f"investment_{action}", owner_id, run, correlation_id)
        self._activity.log_planning_changed(
            ActivityEventType.INVESTMENT_CHANGED, owner_id, "investment", investment.id, action,
            correlation_id,
        )
        return investment

    async def delete_investment(
        self,
        token: str,
        investment_id: UUID,
        correlation_id: Optional[UUID] = None,
    ) -> Investment:
        correlation_id = correlation_id or create_correlation_id()
        owner_id = self.resolve_owner(token, correlation_id)

        investment = await self._execute(
            "investment_deleted", owner_id,
            lambda: self.investments.delete(owner_id, investment_id),
            correlation_id,
        )
        self._activity.log_planning_changed(
            ActivityEventType.INVESTMENT_CHANGED, owner_id, "investment", investment.id, "deleted",
            correlation_id,
        )
        return investment

    # -------------------------------------------------------------------------
    # Analytics
    # -------------------------------------------------------------------------

    async def category_breakdown(
        self,
        token: str,
        kind: RecordKind = RecordKind.EXPENSE,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
    ) -> CategoryBreakdown:
        owner_id = self.resolve_owner(token)
        return await self.analytics.category_breakdown(owner_id, kind, date_from, date_to)

    async def expense_analytics(
        self,
        token: str,
        timeframe: Timeframe = Timeframe.SIX_MONTHS,
        today: Optional[date] = None,
    ) -> ExpenseAnalytics:
        owner_id = self.resolve_owner(token)
        return await self.analytics.expense_analytics(owner_id, timeframe, today)

    async def cash_flow(self, token: str, months: int = 6, today: Optional[date] = None) -> CashFlowReport:
        owner_id = self.resolve_owner(token)
        return await self.analytics.cash_flow(owner_id, months, today)

    async def budget_utilization(
        self,
        token: str,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
    ) -> BudgetReport:
        owner_id = self.resolve_owner(token)
        return await self.analytics.budget_utilization(owner_id, date_from, date_to)

    async def account_overview(self, token: str) -> AccountOverview:
        owner_id = self.resolve_owner(token)
        return await self.analytics.account_overview(owner_id)

    async def portfolio_summary(self, token: str) -> PortfolioSummary:
        owner_id = self.resolve_owner(token)
        return await self.analytics.portfolio_summary(owner_id)

    async def close(self) -> None:
        await self.storage.close()


def create_tracker(settings: Optional[Settings] = None, configure_log: bool = True) -> FinanceTracker:
    """
    Factory function to create a fully wired tracker.

    Args:
        settings: Settings to use; defaults to get_settings()
        configure_log: Configure structlog from the app settings

    Returns:
        FinanceTracker over the storage backend selected in settings
    """
    settings = settings or get_settings()
    app_settings = settings.app

    if configure_log:
        configure_logging(app_settings)

    return FinanceTracker(
        storage=create_storage(settings.database),
        owner_resolver=JWTOwnerResolver(settings.auth),
        activity_logger=ActivityLogger(),
        app_settings=app_settings,
    )
