"""
Analytics Aggregator

DESIGN DECISION: Analytics are DETERMINISTIC and READ-ONLY.
Every report is computed from records read at call time through one
storage reader, so a report sees one committed state and never a
half-applied write. Reports never open a write transaction and nothing
is cached between calls.

Recurring income projection is a heuristic, not a calendar
enumeration. Per calendar month, from the income's own month onwards:
- weekly:    amount x 4.33
- bi-weekly: amount x 2.17
- monthly:   amount
- quarterly: amount, every third month counted from the income's month
- yearly:    amount, in the income's month only

The projection is added on top of income actually posted in the month.
"""

from collections import defaultdict
from datetime import date
from decimal import Decimal
from typing import Iterable, Optional, Union

from dateutil.relativedelta import relativedelta

from finance_tracker.config import AppSettings, get_settings
from finance_tracker.exceptions import InvalidInputError
from finance_tracker.models.account import AccountType
from finance_tracker.models.analytics import (
    AccountOverview,
    AccountSnapshot,
    BudgetReport,
    BudgetStatus,
    CashFlowMonth,
    CashFlowReport,
    CategoryBreakdown,
    CategoryStat,
    ExpenseAnalytics,
    InvestmentPosition,
    MonthlyCategoryTotals,
    PortfolioSummary,
    RecordKind,
    SavingsStatus,
    Timeframe,
    Trend,
)
from finance_tracker.models.ledger import Expense, Frequency, Income
from finance_tracker.models.money import CENTS, ZERO
from finance_tracker.services.storage import LedgerStorage

LedgerRecord = Union[Expense, Income]

MONTHLY_MULTIPLIERS: dict[Frequency, Decimal] = {
    Frequency.WEEKLY: Decimal("4.33"),
    Frequency.BI_WEEKLY: Decimal("2.17"),
    Frequency.MONTHLY: Decimal("1"),
}

# Second half must exceed first half by this factor to count as a trend
TREND_FACTOR = Decimal("1.2")


def _percentage(part: Decimal, whole: Decimal) -> float:
    if whole <= 0:
        return 0.0
    return round(float(part / whole * 100), 2)


def _month_label(year: int, month: int) -> str:
    return date(year, month, 1).strftime("%b %Y")


def _record_date(record: LedgerRecord) -> date:
    return record.expense_date if isinstance(record, Expense) else record.income_date


def months_back_start(today: date, months: int) -> date:
    """First day of the month `months` calendar months before today's month."""
    return today.replace(day=1) - relativedelta(months=months)


def savings_status(rate: float) -> SavingsStatus:
    if rate >= 20:
        return SavingsStatus.EXCELLENT
    if rate >= 10:
        return SavingsStatus.GOOD
    if rate >= 0:
        return SavingsStatus.FAIR
    return SavingsStatus.POOR


def project_recurring_income(income: Income, year: int, month: int) -> Decimal:
    """Projected contribution of one recurring income to a calendar month."""
    if not income.is_recurring or income.frequency is None:
        return ZERO

    month_diff = (year - income.income_date.year) * 12 + (month - income.income_date.month)
    if month_diff < 0:
        return ZERO

    frequency = income.frequency
    if frequency in MONTHLY_MULTIPLIERS:
        return (income.amount * MONTHLY_MULTIPLIERS[frequency]).quantize(CENTS)
    if frequency == Frequency.QUARTERLY and month_diff % 3 == 0:
        return income.amount
    if frequency == Frequency.YEARLY and month == income.income_date.month:
        return income.amount
    return ZERO


class AnalyticsAggregator:
    """
    Computes read-only reports over an owner's ledger.

    GUARANTEES:
    - Only aggregates records that are in storage when called
    - Never writes
    - Empty input yields zero totals, not errors
    """

    def __init__(self, storage: LedgerStorage, app_settings: Optional[AppSettings] = None):
        self._storage = storage
        self._app_settings = app_settings or get_settings().app

    # -------------------------------------------------------------------------
    # Category breakdowns
    # -------------------------------------------------------------------------

    def _breakdown(
        self,
        kind: RecordKind,
        records: Iterable[LedgerRecord],
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
        midpoint: Optional[date] = None,
    ) -> CategoryBreakdown:
        """
        Group records by category.

        With a midpoint, each category also gets a trend comparing how
        many records fall on or after it against how many fall before.
        """
        amounts: dict[str, Decimal] = defaultdict(lambda: ZERO)
        counts: dict[str, int] = defaultdict(int)
        halves: dict[str, list[int]] = defaultdict(lambda: [0, 0])

        for record in records:
            amounts[record.category] += record.amount
            counts[record.category] += 1
            if midpoint is not None:
                halves[record.category][_record_date(record) >= midpoint] += 1

        total = sum(amounts.values(), ZERO)

        stats = []
        for category, amount in amounts.items():
            trend = None
            if midpoint is not None:
                first, second = halves[category]
                if second > first * TREND_FACTOR:
                    trend = Trend.UP
                elif first > second * TREND_FACTOR:
                    trend = Trend.DOWN
                else:
                    trend = Trend.STABLE

            stats.append(CategoryStat(
                category=category,
                amount=amount,
                count=counts[category],
                average=(amount / counts[category]).quantize(CENTS),
                percentage=_percentage(amount, total),
                color=self._app_settings.color_for(category),
                trend=trend,
            ))

        stats.sort(key=lambda s: s.amount, reverse=True)

        return CategoryBreakdown(
            kind=kind,
            date_from=date_from,
            date_to=date_to,
            total=total,
            record_count=sum(counts.values()),
            categories=stats,
        )

    async def category_breakdown(
        self,
        owner_id: str,
        kind: RecordKind = RecordKind.EXPENSE,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
    ) -> CategoryBreakdown:
        """Per-category totals of expenses or incomes in a date window."""
        kind = RecordKind(kind)
        async with self._storage.reader() as session:
            if kind == RecordKind.EXPENSE:
                records = await session.list_expenses(owner_id, date_from=date_from, date_to=date_to)
            else:
                records = await session.list_incomes(owner_id, date_from=date_from, date_to=date_to)

        return self._breakdown(kind, records, date_from, date_to)

    # -------------------------------------------------------------------------
    # Expense analytics
    # -------------------------------------------------------------------------

    async def expense_analytics(
        self,
        owner_id: str,
        timeframe: Timeframe = Timeframe.SIX_MONTHS,
        today: Optional[date] = None,
    ) -> ExpenseAnalytics:
        """
        Spending since the first day of the month `timeframe` months back.

        Includes per-category trends (second half of the window against
        the first half) and per-month category totals.
        """
        timeframe = Timeframe(timeframe)
        today = today or date.today()
        start = months_back_start(today, timeframe.months)
        midpoint = start + (today - start) / 2

        async with self._storage.reader() as session:
            expenses = await session.list_expenses(owner_id, date_from=start)

        breakdown = self._breakdown(RecordKind.EXPENSE, expenses, start, None, midpoint=midpoint)

        by_month: dict[tuple[int, int], dict[str, Decimal]] = defaultdict(lambda: defaultdict(lambda: ZERO))
        for expense in expenses:
            key = (expense.expense_date.year, expense.expense_date.month)
            by_month[key][expense.category] += expense.amount

        monthly = [
            MonthlyCategoryTotals(
                year=year,
                month=month,
                label=_month_label(year, month),
                categories=dict(categories),
                total=sum(categories.values(), ZERO),
            )
            for (year, month), categories in sorted(by_month.items())
        ]

        average = ZERO
        if monthly:
            average = (sum((m.total for m in monthly), ZERO) / len(monthly)).quantize(CENTS)

        return ExpenseAnalytics(
            timeframe=timeframe,
            breakdown=breakdown,
            monthly=monthly,
            average_monthly_spending=average,
        )

    # -------------------------------------------------------------------------
    # Cash flow
    # -------------------------------------------------------------------------

    async def cash_flow(
        self,
        owner_id: str,
        months: int = 6,
        today: Optional[date] = None,
    ) -> CashFlowReport:
        """
        Month-by-month income against expenses for the last `months`
        calendar months, the current month included.

        Raises:
            InvalidInputError: months is not positive
        """
        if months < 1:
            raise InvalidInputError("months", "must be at least 1")

        today = today or date.today()
        window_start = months_back_start(today, months - 1)
        window_end = today.replace(day=1) + relativedelta(months=1, days=-1)

        async with self._storage.reader() as session:
            expenses = await session.list_expenses(owner_id, date_from=window_start, date_to=window_end)
            incomes = await session.list_incomes(owner_id, date_to=window_end)

        posted = [i for i in incomes if i.income_date >= window_start]
        recurring = [i for i in incomes if i.is_recurring]

        series = []
        for offset in range(months):
            month_start = window_start + relativedelta(months=offset)
            year, month = month_start.year, month_start.month

            series.append(CashFlowMonth(
                year=year,
                month=month,
                label=_month_label(year, month),
                posted_income=sum(
                    (i.amount for i in posted
                     if (i.income_date.year, i.income_date.month) == (year, month)),
                    ZERO,
                ),
                recurring_income=sum(
                    (project_recurring_income(i, year, month) for i in recurring),
                    ZERO,
                ),
                expenses=sum(
                    (e.amount for e in expenses
                     if (e.expense_date.year, e.expense_date.month) == (year, month)),
                    ZERO,
                ),
            ))

        total_income = sum((m.income for m in series), ZERO)
        total_expenses = sum((m.expenses for m in series), ZERO)
        rate = _percentage(total_income - total_expenses, total_income) if total_income > 0 else 0.0

        return CashFlowReport(
            months=series,
            total_income=total_income,
            total_expenses=total_expenses,
            savings_rate=rate,
            savings_status=savings_status(rate),
            average_monthly_income=(total_income / months).quantize(CENTS),
            average_monthly_expenses=(total_expenses / months).quantize(CENTS),
            income_breakdown=self._breakdown(RecordKind.INCOME, posted, window_start, window_end),
            expense_breakdown=self._breakdown(RecordKind.EXPENSE, expenses, window_start, window_end),
        )

    # -------------------------------------------------------------------------
    # Budgets
    # -------------------------------------------------------------------------

    async def budget_utilization(
        self,
        owner_id: str,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
    ) -> BudgetReport:
        """Spending per budget category in a window (all time by default)."""
        async with self._storage.reader() as session:
            budgets = await session.list_budgets(owner_id)
            expenses = await session.list_expenses(owner_id, date_from=date_from, date_to=date_to)

        spent: dict[str, Decimal] = defaultdict(lambda: ZERO)
        for expense in expenses:
            spent[expense.category] += expense.amount

        statuses = [
            BudgetStatus(
                budget_id=budget.id,
                category=budget.category,
                limit_amount=budget.limit_amount,
                spent=spent[budget.category],
                percentage_used=_percentage(spent[budget.category], budget.limit_amount),
                color=budget.color,
            )
            for budget in budgets
        ]

        return BudgetReport(
            budgets=statuses,
            total_budget=sum((s.limit_amount for s in statuses), ZERO),
            total_spent=sum((s.spent for s in statuses), ZERO),
        )

    # -------------------------------------------------------------------------
    # Accounts and portfolio
    # -------------------------------------------------------------------------

    async def account_overview(self, owner_id: str) -> AccountOverview:
        """
        Balances across accounts.

        The total balance covers active accounts whose type counts as
        liquid money; credit accounts are summed separately.
        """
        async with self._storage.reader() as session:
            accounts = await session.list_accounts(owner_id)
            expenses = await session.list_expenses(owner_id)
            incomes = await session.list_incomes(owner_id)

        total_balance = ZERO
        credit_balance = ZERO
        by_type: dict[AccountType, list[AccountSnapshot]] = defaultdict(list)

        for account in accounts:
            if account.is_active:
                if account.capabilities.counts_toward_liquid_balance:
                    total_balance += account.balance
                else:
                    credit_balance += account.balance

            by_type[account.type].append(AccountSnapshot(
                account_id=account.id,
                name=account.name,
                type=account.type,
                balance=account.balance,
                is_active=account.is_active,
                is_overdrawn=account.is_overdrawn,
            ))

        return AccountOverview(
            total_balance=total_balance,
            credit_balance=credit_balance,
            total_income=sum((i.amount for i in incomes), ZERO),
            total_spent=sum((e.amount for e in expenses), ZERO),
            accounts_by_type=dict(by_type),
        )

    async def portfolio_summary(self, owner_id: str) -> PortfolioSummary:
        async with self._storage.reader() as session:
            investments = await session.list_investments(owner_id)

        positions = [
            InvestmentPosition(
                investment_id=inv.id,
                symbol=inv.symbol,
                name=inv.name,
                invested_value=inv.invested_value,
                current_value=inv.current_value,
                gain_loss=inv.gain_loss,
                gain_loss_percentage=_percentage(inv.gain_loss, inv.invested_value),
            )
            for inv in investments
        ]

        return PortfolioSummary(
            positions=positions,
            total_invested=sum((p.invested_value for p in positions), ZERO),
            portfolio_value=sum((p.current_value for p in positions), ZERO),
        )
