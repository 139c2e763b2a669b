"""
Analytics result models.

Everything here is derived, read-only data produced by the analytics
aggregator. Money stays Decimal; percentages are floats rounded to two
decimals for display.
"""

from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field

from finance_tracker.models.account import AccountType


class RecordKind(str, Enum):
    """Which ledger records a breakdown is computed over."""
    EXPENSE = "expense"
    INCOME = "income"


class Timeframe(str, Enum):
    """Look-back windows offered by expense analytics."""
    ONE_MONTH = "1month"
    THREE_MONTHS = "3months"
    SIX_MONTHS = "6months"
    ONE_YEAR = "1year"

    @property
    def months(self) -> int:
        return {"1month": 1, "3months": 3, "6months": 6, "1year": 12}[self.value]


class Trend(str, Enum):
    """Direction of activity within a window (second half vs first half)."""
    UP = "up"
    DOWN = "down"
    STABLE = "stable"


class SavingsStatus(str, Enum):
    """Qualitative rating of the savings rate."""
    EXCELLENT = "excellent"  # >= 20%
    GOOD = "good"            # >= 10%
    FAIR = "fair"            # >= 0%
    POOR = "poor"            # spending exceeds income


# =============================================================================
# CATEGORY BREAKDOWNS
# =============================================================================

class CategoryStat(BaseModel):
    """Totals for one category."""

    category: str
    amount: Decimal
    count: int = Field(ge=0)
    average: Decimal
    percentage: float = Field(ge=0.0, description="Share of the breakdown total")
    color: str
    trend: Optional[Trend] = None


class CategoryBreakdown(BaseModel):
    """Per-category totals over a date window, largest first."""

    kind: RecordKind
    date_from: Optional[date] = None
    date_to: Optional[date] = None
    total: Decimal
    record_count: int = Field(ge=0)
    categories: list[CategoryStat] = Field(default_factory=list)

    @property
    def top_category(self) -> Optional[CategoryStat]:
        return self.categories[0] if self.categories else None


class MonthlyCategoryTotals(BaseModel):
    """Expense totals for one calendar month, split by category."""

    year: int
    month: int = Field(ge=1, le=12)
    label: str
    categories: dict[str, Decimal] = Field(default_factory=dict)
    total: Decimal


class ExpenseAnalytics(BaseModel):
    """Expense analytics for a look-back timeframe."""

    timeframe: Timeframe
    breakdown: CategoryBreakdown
    monthly: list[MonthlyCategoryTotals] = Field(default_factory=list)
    average_monthly_spending: Decimal


# =============================================================================
# CASH FLOW
# =============================================================================

class CashFlowMonth(BaseModel):
    """Income against expenses for one calendar month."""

    year: int
    month: int = Field(ge=1, le=12)
    label: str
    posted_income: Decimal = Field(description="Income records dated in this month")
    recurring_income: Decimal = Field(description="Projected recurring contributions")
    expenses: Decimal

    @property
    def income(self) -> Decimal:
        return self.posted_income + self.recurring_income

    @property
    def net_flow(self) -> Decimal:
        return self.income - self.expenses


class CashFlowReport(BaseModel):
    """Monthly cash-flow series plus window totals."""

    months: list[CashFlowMonth] = Field(default_factory=list)
    total_income: Decimal
    total_expenses: Decimal
    savings_rate: float
    savings_status: SavingsStatus
    average_monthly_income: Decimal
    average_monthly_expenses: Decimal
    income_breakdown: CategoryBreakdown
    expense_breakdown: CategoryBreakdown

    @property
    def net_cash_flow(self) -> Decimal:
        return self.total_income - self.total_expenses

    @property
    def average_monthly_savings(self) -> Decimal:
        return self.average_monthly_income - self.average_monthly_expenses


# =============================================================================
# BUDGETS
# =============================================================================

class BudgetStatus(BaseModel):
    """Utilization of one budget."""

    budget_id: UUID
    category: str
    limit_amount: Decimal
    spent: Decimal
    percentage_used: float = Field(ge=0.0)
    color: str

    @property
    def remaining(self) -> Decimal:
        return self.limit_amount - self.spent

    @property
    def over_budget(self) -> bool:
        return self.spent > self.limit_amount


class BudgetReport(BaseModel):
    """Utilization of every budget the owner has."""

    budgets: list[BudgetStatus] = Field(default_factory=list)
    total_budget: Decimal
    total_spent: Decimal

    @property
    def over_budget_categories(self) -> list[str]:
        return [b.category for b in self.budgets if b.over_budget]


# =============================================================================
# ACCOUNTS AND PORTFOLIO
# =============================================================================

class AccountSnapshot(BaseModel):
    """An account as shown on the overview."""

    account_id: UUID
    name: str
    type: AccountType
    balance: Decimal
    is_active: bool
    is_overdrawn: bool


class AccountOverview(BaseModel):
    """Balances across the owner's accounts, plus lifetime ledger totals."""

    total_balance: Decimal = Field(description="Active accounts counted as liquid")
    credit_balance: Decimal = Field(description="Sum of active credit balances")
    total_income: Decimal
    total_spent: Decimal
    accounts_by_type: dict[AccountType, list[AccountSnapshot]] = Field(default_factory=dict)

    @property
    def overdrawn_accounts(self) -> list[AccountSnapshot]:
        return [
            snap
            for group in self.accounts_by_type.values()
            for snap in group
            if snap.is_overdrawn
        ]


class InvestmentPosition(BaseModel):
    """Valuation of one investment."""

    investment_id: UUID
    symbol: str
    name: str
    invested_value: Decimal
    current_value: Decimal
    gain_loss: Decimal
    gain_loss_percentage: float


class PortfolioSummary(BaseModel):
    """Valuation of all investments."""

    positions: list[InvestmentPosition] = Field(default_factory=list)
    total_invested: Decimal
    portfolio_value: Decimal

    @property
    def total_gain_loss(self) -> Decimal:
        return self.portfolio_value - self.total_invested

    @property
    def gain_loss_percentage(self) -> float:
        if self.total_invested <= 0:
            return 0.0
        return round(float(self.total_gain_loss / self.total_invested * 100), 2)
