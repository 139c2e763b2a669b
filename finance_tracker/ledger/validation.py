"""
Ledger Input Validation

DESIGN DECISION: Validation happens in two distinct stages:

STAGE 1 - PARSING (draft models):
- Amounts parsed permissively, garbage becomes zero
- Empty strings become None for optional references
- Never rejects a numeric field

STAGE 2 - BUSINESS RULES (this module):
- Amount must be positive, fee must not be negative
- Category required
- Recurring income needs a frequency

Stage 2 runs before any unit of work is opened, so a rejected input
never touches storage. Every failure is an InvalidInputError naming
the offending field.
"""

from datetime import date
from decimal import Decimal
from typing import Optional, TypeVar

from dateutil.relativedelta import relativedelta
from pydantic import BaseModel, ValidationError

from finance_tracker.exceptions import InvalidInputError
from finance_tracker.models.ledger import Frequency

ModelT = TypeVar("ModelT", bound=BaseModel)

_FREQUENCY_STEPS: dict[Frequency, relativedelta] = {
    Frequency.WEEKLY: relativedelta(weeks=1),
    Frequency.BI_WEEKLY: relativedelta(weeks=2),
    Frequency.MONTHLY: relativedelta(months=1),
    Frequency.QUARTERLY: relativedelta(months=3),
    Frequency.YEARLY: relativedelta(years=1),
}


def require_positive(field: str, value: Decimal) -> Decimal:
    if value <= 0:
        raise InvalidInputError(field, "must be greater than zero")
    return value


def require_non_negative(field: str, value: Decimal) -> Decimal:
    if value < 0:
        raise InvalidInputError(field, "must not be negative")
    return value


def require_text(field: str, value: Optional[str]) -> str:
    """Return the stripped value, rejecting None and blanks."""
    if value is None or not value.strip():
        raise InvalidInputError(field, "is required")
    return value.strip()


def compute_next_date(income_date: date, frequency: Frequency) -> date:
    """
    Next occurrence of a recurring income.

    Month arithmetic clamps to the end of shorter months
    (Jan 31 monthly -> Feb 28/29).
    """
    return income_date + _FREQUENCY_STEPS[Frequency(frequency)]


def build_record(model: type[ModelT], **fields) -> ModelT:
    """
    Construct a persisted model, reporting schema failures as input errors.

    Called before a unit of work opens, so a failure writes nothing.
    """
    try:
        return model(**fields)
    except ValidationError as e:
        first = e.errors()[0]
        field = ".".join(str(part) for part in first.get("loc", ())) or model.__name__
        raise InvalidInputError(field, first.get("msg", "invalid value")) from e
