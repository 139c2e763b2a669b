"""
Investment models.

Investments are tracked positions (quantity and prices). They are
independent of bank accounts: buying or revaluing a position never
moves an account balance.
"""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field

from finance_tracker.models.money import Amount, Quantity


class InvestmentType(str, Enum):
    """Asset classes offered when recording a position."""
    STOCKS = "Stocks"
    BONDS = "Bonds"
    MUTUAL_FUNDS = "Mutual Funds"
    ETF = "ETF"
    CRYPTOCURRENCY = "Cryptocurrency"
    REAL_ESTATE = "Real Estate"
    GOLD = "Gold"
    SAVINGS_ACCOUNT = "Savings Account"
    TIME_DEPOSIT = "Time Deposit"
    P2P_LENDING = "P2P Lending"
    OTHER = "Other"


class Investment(BaseModel):
    """A position in one instrument."""
    model_config = ConfigDict(str_strip_whitespace=True)

    id: UUID = Field(default_factory=uuid4)
    owner_id: str = Field(..., min_length=1)

    symbol: str = Field(..., min_length=1, max_length=20)
    name: str = Field(..., min_length=1, max_length=200)
    type: InvestmentType = InvestmentType.STOCKS
    quantity: Decimal = Field(..., gt=0)
    purchase_price: Decimal = Field(..., ge=0)
    current_price: Decimal = Field(..., ge=0)
    purchase_date: date

    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    @property
    def invested_value(self) -> Decimal:
        return self.purchase_price * self.quantity

    @property
    def current_value(self) -> Decimal:
        return self.current_price * self.quantity

    @property
    def gain_loss(self) -> Decimal:
        return self.current_value - self.invested_value


class InvestmentDraft(BaseModel):
    """Raw input for creating or editing an investment."""
    model_config = ConfigDict(str_strip_whitespace=True)

    symbol: str = ""
    name: str = ""
    type: InvestmentType = InvestmentType.STOCKS
    quantity: Quantity = Decimal("0")
    purchase_price: Amount = Decimal("0")
    current_price: Amount = Decimal("0")
    purchase_date: date
