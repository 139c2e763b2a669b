"""
Budget models.

A budget is a spending limit for one expense category. Budgets never
touch account balances; they are compared against summed expenses by
the analytics aggregator.
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field

from finance_tracker.models.money import Amount


class Budget(BaseModel):
    """Spending limit for a category."""
    model_config = ConfigDict(str_strip_whitespace=True)

    id: UUID = Field(default_factory=uuid4)
    owner_id: str = Field(..., min_length=1)

    category: str = Field(..., min_length=1, max_length=100)
    limit_amount: Decimal = Field(..., gt=0)
    color: str = Field(..., pattern=r"^#[0-9a-fA-F]{6}$")

    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)


class BudgetDraft(BaseModel):
    """Raw input for creating or editing a budget. Color defaults from the palette."""
    model_config = ConfigDict(str_strip_whitespace=True)

    category: str = ""
    limit_amount: Amount = Decimal("0")
    color: Optional[str] = None
