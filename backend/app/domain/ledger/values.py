"""
Value coercion for ledger inputs.

Every check here runs before any I/O, so a rejected request never touches
the database.
"""

from datetime import date, datetime
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Optional

from backend.app.core.exceptions import ValidationFailedError

CENT = Decimal("0.01")


def to_money(value: Any) -> Decimal:
    """Convert to a Decimal rounded to cents. Floats go through str()."""
    if isinstance(value, Decimal):
        amount = value
    else:
        try:
            amount = Decimal(str(value))
        except (InvalidOperation, ValueError):
            raise ValidationFailedError("Amount must be a number", field="amount")
    if not amount.is_finite():
        raise ValidationFailedError("Amount must be a number", field="amount")
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)


def require_positive(value: Any, field: str = "amount") -> Decimal:
    if value is None or isinstance(value, bool):
        raise ValidationFailedError("Amount is required", field=field)
    amount = to_money(value)
    if amount <= 0:
        raise ValidationFailedError("Amount must be greater than zero", field=field)
    return amount


def parse_business_date(value: Any, field: str = "date") -> date:
    """Accept a date, a datetime or an ISO-8601 string."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value)
        except ValueError:
            pass
        try:
            return datetime.fromisoformat(value).date()
        except ValueError:
            pass
    raise ValidationFailedError("Date must be an ISO-8601 date (YYYY-MM-DD)", field=field)


def clean_text(value: Optional[str]) -> str:
    return (value or "").strip()


def today() -> date:
    """Current business date for adjustments and reversals."""
    return date.today()
