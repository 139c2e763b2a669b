"""Configuration package."""

from finance_tracker.config.categories import (
    BUDGET_CATEGORIES,
    DEFAULT_CATEGORY_COLORS,
    EXPENSE_CATEGORIES,
    INCOME_CATEGORIES,
)
from finance_tracker.config.settings import (
    AppSettings,
    AuthSettings,
    DatabaseSettings,
    Settings,
    get_settings,
    validate_all_settings,
)

__all__ = [
    "AppSettings",
    "AuthSettings",
    "BUDGET_CATEGORIES",
    "DEFAULT_CATEGORY_COLORS",
    "DatabaseSettings",
    "EXPENSE_CATEGORIES",
    "INCOME_CATEGORIES",
    "Settings",
    "get_settings",
    "validate_all_settings",
]
