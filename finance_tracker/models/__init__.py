"""
Data Models Package

This package contains all Pydantic models used in the Finance Tracker.
All data flowing through the system must conform to these schemas.
"""

from finance_tracker.models.account import (
    ACCOUNT_CAPABILITIES,
    AccountCapabilities,
    AccountDraft,
    AccountType,
    AccountUpdate,
    BankAccount,
    capabilities_for,
)
from finance_tracker.models.activity import (
    ActivityEvent,
    ActivityEventBuilder,
    ActivityEventType,
    ActivitySeverity,
)
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
from finance_tracker.models.budget import Budget, BudgetDraft
from finance_tracker.models.investment import Investment, InvestmentDraft, InvestmentType
from finance_tracker.models.ledger import (
    BalanceChange,
    Expense,
    ExpenseDraft,
    Frequency,
    Income,
    IncomeDraft,
    LedgerWrite,
    Transfer,
    TransferDraft,
)
from finance_tracker.models.money import parse_amount, parse_decimal, parse_quantity

__all__ = [
    # Account models
    "ACCOUNT_CAPABILITIES",
    "AccountCapabilities",
    "AccountDraft",
    "AccountType",
    "AccountUpdate",
    "BankAccount",
    "capabilities_for",
    # Ledger models
    "BalanceChange",
    "Expense",
    "ExpenseDraft",
    "Frequency",
    "Income",
    "IncomeDraft",
    "LedgerWrite",
    "Transfer",
    "TransferDraft",
    # Planning models
    "Budget",
    "BudgetDraft",
    "Investment",
    "InvestmentDraft",
    "InvestmentType",
    # Analytics models
    "AccountOverview",
    "AccountSnapshot",
    "BudgetReport",
    "BudgetStatus",
    "CashFlowMonth",
    "CashFlowReport",
    "CategoryBreakdown",
    "CategoryStat",
    "ExpenseAnalytics",
    "InvestmentPosition",
    "MonthlyCategoryTotals",
    "PortfolioSummary",
    "RecordKind",
    "SavingsStatus",
    "Timeframe",
    "Trend",
    # Activity models
    "ActivityEvent",
    "ActivityEventBuilder",
    "ActivityEventType",
    "ActivitySeverity",
    # Parsing
    "parse_amount",
    "parse_decimal",
    "parse_quantity",
]
