"""Tests for the analytics aggregator."""

import pytest
from datetime import date
from decimal import Decimal

from finance_tracker.analytics import AnalyticsAggregator, months_back_start, project_recurring_income, savings_status
from finance_tracker.exceptions import InvalidInputError
from finance_tracker.models import (
    AccountDraft,
    AccountType,
    BudgetDraft,
    ExpenseDraft,
    Frequency,
    Income,
    IncomeDraft,
    InvestmentDraft,
    RecordKind,
    SavingsStatus,
    Timeframe,
    Trend,
)

TODAY = date(2024, 6, 15)


async def add_expense(expenses, owner_id, amount, category, day):
    await expenses.create(owner_id, ExpenseDraft(amount=amount, category=category, expense_date=day))


async def add_income(incomes, owner_id, amount, category, day, frequency=None):
    await incomes.create(owner_id, IncomeDraft(
        amount=amount,
        category=category,
        income_date=day,
        is_recurring=frequency is not None,
        frequency=frequency,
    ))


def recurring(amount, day, frequency) -> Income:
    return Income(
        owner_id="u",
        amount=Decimal(amount),
        category="Salary",
        income_date=day,
        is_recurring=True,
        frequency=frequency,
    )


class TestHelpers:
    """Tests for the projection and rating helpers."""

    def test_months_back_start(self):
        assert months_back_start(TODAY, 3) == date(2024, 3, 1)
        assert months_back_start(date(2024, 1, 31), 1) == date(2023, 12, 1)

    @pytest.mark.parametrize("frequency, expected", [
        (Frequency.WEEKLY, Decimal("433.00")),
        (Frequency.BI_WEEKLY, Decimal("217.00")),
        (Frequency.MONTHLY, Decimal("100")),
    ])
    def test_monthly_multipliers(self, frequency, expected):
        income = recurring("100", date(2024, 1, 10), frequency)
        assert project_recurring_income(income, 2024, 3) == expected

    def test_no_projection_before_income_month(self):
        income = recurring("100", date(2024, 5, 10), Frequency.MONTHLY)
        assert project_recurring_income(income, 2024, 4) == Decimal("0")
        assert project_recurring_income(income, 2024, 5) == Decimal("100")

    def test_quarterly_every_third_month(self):
        income = recurring("900", date(2023, 11, 1), Frequency.QUARTERLY)
        hits = [m for m in range(1, 13) if project_recurring_income(income, 2024, m) > 0]
        assert hits == [2, 5, 8, 11]

    def test_yearly_in_matching_month_only(self):
        income = recurring("5000", date(2023, 6, 1), Frequency.YEARLY)
        assert project_recurring_income(income, 2024, 6) == Decimal("5000")
        assert project_recurring_income(income, 2024, 7) == Decimal("0")

    def test_non_recurring_projects_nothing(self):
        income = Income(owner_id="u", amount=Decimal("1"), category="Gift", income_date=date(2024, 1, 1))
        assert project_recurring_income(income, 2024, 1) == Decimal("0")

    @pytest.mark.parametrize("rate, status", [
        (35.0, SavingsStatus.EXCELLENT),
        (20.0, SavingsStatus.EXCELLENT),
        (10.0, SavingsStatus.GOOD),
        (0.0, SavingsStatus.FAIR),
        (-0.5, SavingsStatus.POOR),
    ])
    def test_savings_status_thresholds(self, rate, status):
        assert savings_status(rate) == status


class TestCategoryBreakdown:
    """Tests for per-category totals."""

    @pytest.mark.asyncio
    async def test_expense_breakdown(self, analytics, expenses, owner_id):
        await add_expense(expenses, owner_id, "100", "Food & Dining", date(2024, 3, 1))
        await add_expense(expenses, owner_id, "300", "Food & Dining", date(2024, 3, 10))
        await add_expense(expenses, owner_id, "600", "Travel", date(2024, 4, 1))

        breakdown = await analytics.category_breakdown(owner_id, RecordKind.EXPENSE)

        assert breakdown.total == Decimal("1000.00")
        assert breakdown.record_count == 3
        assert [c.category for c in breakdown.categories] == ["Travel", "Food & Dining"]
        food = breakdown.categories[1]
        assert food.amount == Decimal("400.00")
        assert food.count == 2
        assert food.average == Decimal("200.00")
        assert food.percentage == 40.0
        assert food.color == "#ef4444"

    @pytest.mark.asyncio
    async def test_unknown_category_uses_fallback_color(self, analytics, expenses, owner_id):
        await add_expense(expenses, owner_id, "10", "Pets", date(2024, 3, 1))
        breakdown = await analytics.category_breakdown(owner_id)
        assert breakdown.categories[0].color == "#6b7280"

    @pytest.mark.asyncio
    async def test_configured_colors_are_used(self, storage, expenses, owner_id, app_settings):
        custom = app_settings.model_copy(update={"category_colors": {"Pets": "#123456"}})
        await add_expense(expenses, owner_id, "10", "Pets", date(2024, 3, 1))

        breakdown = await AnalyticsAggregator(storage, custom).category_breakdown(owner_id)
        assert breakdown.categories[0].color == "#123456"

    @pytest.mark.asyncio
    async def test_income_breakdown_with_window(self, analytics, incomes, owner_id):
        await add_income(incomes, owner_id, "1000", "Salary", date(2024, 3, 1))
        await add_income(incomes, owner_id, "500", "Bonus", date(2024, 5, 1))

        breakdown = await analytics.category_breakdown(
            owner_id, "income", date_from=date(2024, 4, 1), date_to=date(2024, 5, 31)
        )

        assert breakdown.kind == RecordKind.INCOME
        assert breakdown.total == Decimal("500.00")
        assert breakdown.top_category.category == "Bonus"

    @pytest.mark.asyncio
    async def test_empty_breakdown(self, analytics, owner_id):
        breakdown = await analytics.category_breakdown(owner_id)
        assert breakdown.total == Decimal("0")
        assert breakdown.categories == []

    @pytest.mark.asyncio
    async def test_reads_current_state(self, analytics, expenses, owner_id):
        """Each call sees records committed since the previous one."""
        await add_expense(expenses, owner_id, "10", "Travel", date(2024, 3, 1))
        first = await analytics.category_breakdown(owner_id)
        await add_expense(expenses, owner_id, "15", "Travel", date(2024, 3, 2))
        second = await analytics.category_breakdown(owner_id)

        assert first.total == Decimal("10.00")
        assert second.total == Decimal("25.00")


class TestExpenseAnalytics:
    """Tests for the timeframe report with trends."""

    @pytest.mark.asyncio
    async def test_trends_and_months(self, analytics, expenses, owner_id):
        # Window: 2024-03-01 .. 2024-06-15, midpoint 2024-04-23
        await add_expense(expenses, owner_id, "999", "Food & Dining", date(2024, 2, 20))
        await add_expense(expenses, owner_id, "100", "Food & Dining", date(2024, 3, 5))
        await add_expense(expenses, owner_id, "100", "Food & Dining", date(2024, 3, 10))
        await add_expense(expenses, owner_id, "100", "Food & Dining", date(2024, 6, 1))
        await add_expense(expenses, owner_id, "200", "Travel", date(2024, 5, 1))
        await add_expense(expenses, owner_id, "200", "Travel", date(2024, 5, 20))
        await add_expense(expenses, owner_id, "50", "Shopping", date(2024, 3, 15))
        await add_expense(expenses, owner_id, "50", "Shopping", date(2024, 6, 10))

        report = await analytics.expense_analytics(owner_id, Timeframe.THREE_MONTHS, today=TODAY)

        assert report.breakdown.total == Decimal("800.00")
        trends = {c.category: c.trend for c in report.breakdown.categories}
        assert trends == {
            "Food & Dining": Trend.DOWN,
            "Travel": Trend.UP,
            "Shopping": Trend.STABLE,
        }

        assert [(m.label, m.total) for m in report.monthly] == [
            ("Mar 2024", Decimal("250.00")),
            ("May 2024", Decimal("400.00")),
            ("Jun 2024", Decimal("150.00")),
        ]
        assert report.monthly[0].categories == {
            "Food & Dining": Decimal("200.00"),
            "Shopping": Decimal("50.00"),
        }
        assert report.average_monthly_spending == Decimal("266.67")

    @pytest.mark.asyncio
    async def test_empty_timeframe(self, analytics, owner_id):
        report = await analytics.expense_analytics(owner_id, "1month", today=TODAY)
        assert report.monthly == []
        assert report.average_monthly_spending == Decimal("0")


class TestCashFlow:
    """Tests for the monthly cash-flow report."""

    @pytest.mark.asyncio
    async def test_posted_plus_projected(self, analytics, incomes, expenses, owner_id):
        # Window: April, May, June 2024
        await add_income(incomes, owner_id, "1000", "Freelance", date(2024, 4, 10))
        await add_income(incomes, owner_id, "100", "Side Hustle", date(2024, 4, 1), Frequency.WEEKLY)
        await add_income(incomes, owner_id, "10000", "Salary", date(2024, 5, 25), Frequency.MONTHLY)
        await add_income(incomes, owner_id, "5000", "Bonus", date(2023, 6, 1), Frequency.YEARLY)
        await add_expense(expenses, owner_id, "9999", "Other", date(2024, 3, 31))
        await add_expense(expenses, owner_id, "500", "Food & Dining", date(2024, 4, 5))
        await add_expense(expenses, owner_id, "2000", "Travel", date(2024, 5, 5))
        await add_expense(expenses, owner_id, "1000", "Food & Dining", date(2024, 6, 5))

        report = await analytics.cash_flow(owner_id, months=3, today=TODAY)

        assert [m.label for m in report.months] == ["Apr 2024", "May 2024", "Jun 2024"]
        assert [m.posted_income for m in report.months] == [
            Decimal("1100.00"), Decimal("10000.00"), Decimal("0"),
        ]
        assert [m.recurring_income for m in report.months] == [
            Decimal("433.00"), Decimal("10433.00"), Decimal("15433.00"),
        ]
        assert [m.expenses for m in report.months] == [
            Decimal("500.00"), Decimal("2000.00"), Decimal("1000.00"),
        ]
        assert report.months[0].net_flow == Decimal("1033.00")

        assert report.total_income == Decimal("37399.00")
        assert report.total_expenses == Decimal("3500.00")
        assert report.net_cash_flow == Decimal("33899.00")
        assert report.savings_rate == pytest.approx(90.64, abs=0.01)
        assert report.savings_status == SavingsStatus.EXCELLENT
        assert report.average_monthly_income == Decimal("12466.33")
        assert report.average_monthly_expenses == Decimal("1166.67")

        assert report.income_breakdown.total == Decimal("11100.00")
        assert report.expense_breakdown.total == Decimal("3500.00")

    @pytest.mark.asyncio
    async def test_no_income_rates_zero(self, analytics, expenses, owner_id):
        await add_expense(expenses, owner_id, "100", "Other", date(2024, 6, 1))

        report = await analytics.cash_flow(owner_id, months=6, today=TODAY)

        assert len(report.months) == 6
        assert report.savings_rate == 0.0
        assert report.savings_status == SavingsStatus.FAIR

    @pytest.mark.asyncio
    async def test_spending_more_than_income_is_poor(self, analytics, incomes, expenses, owner_id):
        await add_income(incomes, owner_id, "100", "Gift", date(2024, 6, 1))
        await add_expense(expenses, owner_id, "150", "Other", date(2024, 6, 2))

        report = await analytics.cash_flow(owner_id, months=3, today=TODAY)

        assert report.savings_rate == -50.0
        assert report.savings_status == SavingsStatus.POOR

    @pytest.mark.asyncio
    async def test_months_must_be_positive(self, analytics, owner_id):
        with pytest.raises(InvalidInputError):
            await analytics.cash_flow(owner_id, months=0, today=TODAY)


class TestBudgetsAccountsPortfolio:
    """Tests for budget, account and portfolio reports."""

    @pytest.mark.asyncio
    async def test_budget_utilization(self, analytics, budgets, expenses, owner_id):
        await budgets.create(owner_id, BudgetDraft(category="Food & Dining", limit_amount="1,000,000"))
        transport = await budgets.create(owner_id, BudgetDraft(category="Transportation", limit_amount="500000"))
        await add_expense(expenses, owner_id, "1,200,000", "Food & Dining", date(2024, 6, 1))
        await add_expense(expenses, owner_id, "100,000", "Transportation", date(2024, 6, 2))
        await add_expense(expenses, owner_id, "50", "Shopping", date(2024, 6, 3))

        report = await analytics.budget_utilization(owner_id)

        by_category = {b.category: b for b in report.budgets}
        assert by_category["Food & Dining"].percentage_used == 120.0
        assert by_category["Food & Dining"].over_budget
        assert by_category["Transportation"].percentage_used == 20.0
        assert by_category["Transportation"].remaining == Decimal("400000.00")
        assert by_category["Transportation"].color == transport.color == "#3b82f6"
        assert report.total_budget == Decimal("1500000.00")
        assert report.total_spent == Decimal("1300000.00")
        assert report.over_budget_categories == ["Food & Dining"]

    @pytest.mark.asyncio
    async def test_account_overview(self, analytics, accounts, expenses, incomes, owner_id, checking, ewallet):
        await accounts.create(owner_id, AccountDraft(name="Visa", balance="-250,000", type=AccountType.CREDIT))
        savings = await accounts.create(owner_id, AccountDraft(name="Old Savings", balance="1000000", type=AccountType.SAVINGS))
        await accounts.deactivate(owner_id, savings.id)
        overdrawn = await accounts.create(owner_id, AccountDraft(name="Jago", balance="-10"))
        await add_expense(expenses, owner_id, "75", "Other", date(2024, 6, 1))
        await add_income(incomes, owner_id, "125", "Gift", date(2024, 6, 1))

        overview = await analytics.account_overview(owner_id)

        assert overview.total_balance == Decimal("5499990.00")
        assert overview.credit_balance == Decimal("-250000.00")
        assert overview.total_spent == Decimal("75.00")
        assert overview.total_income == Decimal("125.00")
        assert len(overview.accounts_by_type[AccountType.CHECKING]) == 2
        assert [a.account_id for a in overview.overdrawn_accounts] == [overdrawn.id]

    @pytest.mark.asyncio
    async def test_portfolio_summary(self, analytics, investments, owner_id):
        await investments.create(owner_id, InvestmentDraft(
            symbol="bbca", name="Bank Central Asia", quantity="10",
            purchase_price="100", current_price="120", purchase_date=date(2024, 1, 2),
        ))
        await investments.create(owner_id, InvestmentDraft(
            symbol="TLKM", name="Telkom Indonesia", quantity="5",
            purchase_price="200", current_price="150", purchase_date=date(2024, 1, 2),
        ))

        summary = await analytics.portfolio_summary(owner_id)

        positions = {p.symbol: p for p in summary.positions}
        assert positions["BBCA"].gain_loss == Decimal("200.00")
        assert positions["BBCA"].gain_loss_percentage == 20.0
        assert positions["TLKM"].gain_loss_percentage == -25.0
        assert summary.total_invested == Decimal("2000.00")
        assert summary.portfolio_value == Decimal("1950.00")
        assert summary.total_gain_loss == Decimal("-50.00")
        assert summary.gain_loss_percentage == -2.5


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
