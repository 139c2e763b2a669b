"""
Account models.

An account's balance is a cached running total: the seed value given
at creation plus every delta applied by expenses, income and
transfers that reference it. It is never edited directly after
creation.

DESIGN DECISION: Account behavior that depends on the account type is
read from ACCOUNT_CAPABILITIES rather than compared against type
strings at call sites.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field

from finance_tracker.models.money import Amount


class AccountType(str, Enum):
    """Kinds of accounts a user can track."""
    CHECKING = "checking"
    SAVINGS = "savings"
    CREDIT = "credit"
    EWALLET = "ewallet"


class AccountCapabilities(BaseModel):
    """What an account type is allowed to do."""
    model_config = ConfigDict(frozen=True)

    label: str
    can_go_negative: bool = Field(
        ...,
        description="A negative balance is normal (amount owed)"
    )
    counts_toward_liquid_balance: bool = Field(
        ...,
        description="Included in the owner's total available balance"
    )


ACCOUNT_CAPABILITIES: dict[AccountType, AccountCapabilities] = {
    AccountType.CHECKING: AccountCapabilities(
        label="Checking Account",
        can_go_negative=False,
        counts_toward_liquid_balance=True,
    ),
    AccountType.SAVINGS: AccountCapabilities(
        label="Savings Account",
        can_go_negative=False,
        counts_toward_liquid_balance=True,
    ),
    AccountType.CREDIT: AccountCapabilities(
        label="Credit Card",
        can_go_negative=True,
        counts_toward_liquid_balance=False,
    ),
    AccountType.EWALLET: AccountCapabilities(
        label="E-Wallet",
        can_go_negative=False,
        counts_toward_liquid_balance=True,
    ),
}


def capabilities_for(account_type: AccountType) -> AccountCapabilities:
    """Look up the capability row for an account type."""
    return ACCOUNT_CAPABILITIES[AccountType(account_type)]


class BankAccount(BaseModel):
    """A bank account, e-wallet or credit card owned by one user."""
    model_config = ConfigDict(str_strip_whitespace=True)

    id: UUID = Field(default_factory=uuid4)
    owner_id: str = Field(..., min_length=1)

    name: str = Field(..., min_length=1, max_length=100)
    bank_name: Optional[str] = Field(default=None, max_length=100)
    account_number: Optional[str] = Field(default=None, max_length=50)
    balance: Decimal = Field(
        default=Decimal("0"),
        description="Signed running balance; negative on credit = owed"
    )
    type: AccountType = AccountType.CHECKING
    color: Optional[str] = None
    is_active: bool = True

    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    @property
    def capabilities(self) -> AccountCapabilities:
        return capabilities_for(self.type)

    @property
    def is_overdrawn(self) -> bool:
        """Negative balance on an account type that should not go negative."""
        return self.balance < 0 and not self.capabilities.can_go_negative


class AccountDraft(BaseModel):
    """User input for creating an account. The balance is the seed value."""
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = ""
    bank_name: Optional[str] = None
    account_number: Optional[str] = None
    balance: Amount = Decimal("0")
    type: AccountType = AccountType.CHECKING
    color: Optional[str] = None
    is_active: bool = True


class AccountUpdate(BaseModel):
    """
    User input for editing an account.

    There is intentionally no balance field: balances only move through
    ledger records. Unset fields are left unchanged.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    name: Optional[str] = None
    bank_name: Optional[str] = None
    account_number: Optional[str] = None
    type: Optional[AccountType] = None
    color: Optional[str] = None
    is_active: Optional[bool] = None
