"""
Static category lists and the default category color palette.

Categories are free text on records; these lists are the suggestions
offered to users. Colors are looked up through AppSettings.color_for(),
which starts from DEFAULT_CATEGORY_COLORS and can be overridden by
configuration.
"""

EXPENSE_CATEGORIES = (
    "Food & Dining",
    "Transportation",
    "Shopping",
    "Entertainment",
    "Bills & Utilities",
    "Healthcare",
    "Travel",
    "Education",
    "Groceries",
    "Gas & Fuel",
    "Insurance",
    "Subscriptions",
    "Personal Care",
    "Home & Garden",
    "Gifts & Donations",
    "Other",
)

INCOME_CATEGORIES = (
    "Salary",
    "Freelance",
    "Business",
    "Investments",
    "Rental",
    "Side Hustle",
    "Bonus",
    "Commission",
    "Dividend",
    "Interest",
    "Gift",
    "Refund",
    "Cashback",
    "Other",
)

BUDGET_CATEGORIES = (
    "Housing",
    "Transportation",
    "Food & Dining",
    "Utilities",
    "Insurance",
    "Healthcare",
    "Entertainment",
    "Shopping",
    "Personal Care",
    "Education",
    "Savings",
    "Debt Payment",
    "Emergency Fund",
    "Investments",
    "Travel",
    "Gifts & Donations",
    "Miscellaneous",
)

FALLBACK_COLOR = "#6b7280"

DEFAULT_CATEGORY_COLORS: dict[str, str] = {
    # Expense categories
    "Food & Dining": "#ef4444",
    "Transportation": "#3b82f6",
    "Shopping": "#8b5cf6",
    "Entertainment": "#f59e0b",
    "Bills & Utilities": "#10b981",
    "Healthcare": "#ec4899",
    "Travel": "#06b6d4",
    "Education": "#84cc16",
    "Groceries": "#22c55e",
    "Gas & Fuel": "#f97316",
    "Insurance": "#6366f1",
    "Subscriptions": "#a855f7",
    "Personal Care": "#d946ef",
    "Home & Garden": "#14b8a6",
    "Gifts & Donations": "#f43f5e",
    # Income categories
    "Salary": "#10b981",
    "Freelance": "#3b82f6",
    "Business": "#8b5cf6",
    "Investments": "#f59e0b",
    "Rental": "#ef4444",
    "Side Hustle": "#06b6d4",
    "Bonus": "#84cc16",
    "Commission": "#22c55e",
    "Dividend": "#f97316",
    "Interest": "#6366f1",
    "Gift": "#ec4899",
    "Refund": "#6b7280",
    "Cashback": "#14b8a6",
    # Budget categories
    "Housing": "#ef4444",
    "Utilities": "#10b981",
    "Savings": "#22c55e",
    "Debt Payment": "#dc2626",
    "Emergency Fund": "#059669",
    "Miscellaneous": "#6b7280",
    # Investment types
    "Stocks": "#3b82f6",
    "Bonds": "#10b981",
    "Mutual Funds": "#8b5cf6",
    "ETF": "#f59e0b",
    "Cryptocurrency": "#f97316",
    "Real Estate": "#ef4444",
    "Gold": "#eab308",
    "Time Deposit": "#06b6d4",
    "P2P Lending": "#ec4899",
    "Other": FALLBACK_COLOR,
}
