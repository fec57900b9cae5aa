from datetime import date, datetime, timezone
from decimal import ROUND_HALF_UP, Decimal

from dateutil.relativedelta import relativedelta

CENTS = Decimal("0.01")


def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_money(value) -> Decimal:
    if value is None:
        return Decimal("0.00")
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return value.quantize(CENTS, rounding=ROUND_HALF_UP)


def months_between(start: date, current: date) -> int:
    """Whole calendar months from ``start`` to ``current``, ignoring the day."""
    return (current.year - start.year) * 12 + (current.month - start.month)


def on_payment_day(anchor: date, payment_day: int, months: int = 0) -> date:
    """``anchor`` shifted by ``months`` with the day set to ``payment_day``.

    Short months clamp to their last day, so 31 becomes Feb 28/29, Apr 30...
    """
    return anchor + relativedelta(months=months, day=payment_day)
