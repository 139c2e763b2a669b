"""
Ledger record models: expenses, income and transfers.

Each persisted record has a matching *Draft* model carrying raw user
input. Drafts parse amounts permissively (see models.money) and accept
empty strings for optional references; the ledger validation stage
then enforces the business rules (amount > 0, category required, ...)
before any write happens.
"""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Generic, Optional, TypeVar
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from finance_tracker.models.money import Amount


class Frequency(str, Enum):
    """Recurrence period of a recurring income."""
    WEEKLY = "weekly"
    BI_WEEKLY = "bi-weekly"
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    YEARLY = "yearly"


def _blank_to_none(value):
    if isinstance(value, str) and not value.strip():
        return None
    return value


def _unique_tags(tags: list[str]) -> list[str]:
    """Tags behave as a set; keep first-seen order for display."""
    seen: list[str] = []
    for tag in tags:
        tag = tag.strip()
        if tag and tag not in seen:
            seen.append(tag)
    return seen


# =============================================================================
# EXPENSES
# =============================================================================

class Expense(BaseModel):
    """
    Money spent. Debits the referenced account by `amount`.

    `account_id` is a weak reference: None means untracked cash.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    id: UUID = Field(default_factory=uuid4)
    owner_id: str = Field(..., min_length=1)

    amount: Decimal = Field(..., gt=0)
    category: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = Field(default=None, max_length=500)
    expense_date: date
    tags: list[str] = Field(default_factory=list)
    account_id: Optional[UUID] = None

    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    @field_validator('tags')
    @classmethod
    def dedupe_tags(cls, v: list[str]) -> list[str]:
        return _unique_tags(v)


class ExpenseDraft(BaseModel):
    """Raw input for creating or editing an expense."""
    model_config = ConfigDict(str_strip_whitespace=True)

    amount: Amount = Decimal("0")
    category: str = ""
    description: Optional[str] = None
    expense_date: date
    tags: list[str] = Field(default_factory=list)
    account_id: Optional[UUID] = None

    @field_validator('account_id', 'description', mode='before')
    @classmethod
    def empty_is_none(cls, v):
        return _blank_to_none(v)

    @field_validator('tags')
    @classmethod
    def dedupe_tags(cls, v: list[str]) -> list[str]:
        return _unique_tags(v)


# =============================================================================
# INCOME
# =============================================================================

class Income(BaseModel):
    """
    Money received. Credits the referenced account by `amount`.

    Recurrence fields are metadata: nothing posts future income
    automatically. `next_date` is computed when the record is written.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    id: UUID = Field(default_factory=uuid4)
    owner_id: str = Field(..., min_length=1)

    amount: Decimal = Field(..., gt=0)
    source: str = Field(default="", max_length=200)
    category: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = Field(default=None, max_length=500)
    income_date: date
    is_recurring: bool = False
    frequency: Optional[Frequency] = None
    next_date: Optional[date] = None
    account_id: Optional[UUID] = None

    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    @model_validator(mode='after')
    def validate_recurrence(self) -> 'Income':
        """Recurrence metadata only makes sense on recurring income."""
        if not self.is_recurring and (self.frequency or self.next_date):
            raise ValueError("Non-recurring income cannot carry a frequency or next date")
        if self.next_date and self.next_date <= self.income_date:
            raise ValueError("Next date must be after the income date")
        return self


class IncomeDraft(BaseModel):
    """Raw input for creating or editing an income."""
    model_config = ConfigDict(str_strip_whitespace=True)

    amount: Amount = Decimal("0")
    source: str = ""
    category: str = ""
    description: Optional[str] = None
    income_date: date
    is_recurring: bool = False
    frequency: Optional[Frequency] = None
    account_id: Optional[UUID] = None

    @field_validator('account_id', 'description', 'frequency', mode='before')
    @classmethod
    def empty_is_none(cls, v):
        return _blank_to_none(v)


# =============================================================================
# TRANSFERS
# =============================================================================

class Transfer(BaseModel):
    """
    Money moved between two of the owner's accounts.

    The source is debited amount + fee, the destination credited amount;
    the fee leaves the system. Account names are snapshotted at transfer
    time so later renames do not rewrite history.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    id: UUID = Field(default_factory=uuid4)
    owner_id: str = Field(..., min_length=1)

    from_account_id: UUID
    to_account_id: UUID
    from_account_name: str
    to_account_name: str
    amount: Decimal = Field(..., gt=0)
    fee: Decimal = Field(default=Decimal("0"), ge=0)
    description: Optional[str] = Field(default=None, max_length=500)
    transfer_date: date

    created_at: datetime = Field(default_factory=datetime.utcnow)

    @property
    def total_debit(self) -> Decimal:
        return self.amount + self.fee


class TransferDraft(BaseModel):
    """Raw input for creating a transfer."""
    model_config = ConfigDict(str_strip_whitespace=True)

    from_account_id: UUID
    to_account_id: UUID
    amount: Amount = Decimal("0")
    fee: Amount = Decimal("0")
    description: Optional[str] = None
    transfer_date: date

    @field_validator('description', mode='before')
    @classmethod
    def empty_is_none(cls, v):
        return _blank_to_none(v)


# =============================================================================
# WRITE RESULTS
# =============================================================================

class BalanceChange(BaseModel):
    """One signed delta applied to one account."""
    model_config = ConfigDict(frozen=True)

    account_id: UUID
    delta: Decimal


RecordT = TypeVar("RecordT")


class LedgerWrite(BaseModel, Generic[RecordT]):
    """
    Outcome of a committed ledger operation.

    For deletes, `record` is the record as it was before removal.
    """

    record: RecordT
    balance_changes: list[BalanceChange] = Field(default_factory=list)

    @property
    def net_change(self) -> Decimal:
        return sum((c.delta for c in self.balance_changes), Decimal("0"))
