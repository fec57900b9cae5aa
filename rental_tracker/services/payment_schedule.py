import uuid
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import List, Optional

from models.enums import RentPaymentStatus
from models.utils import months_between, on_payment_day, to_money


@dataclass(frozen=True)
class EscalationPolicy:
    enabled: bool = False
    percentage: Decimal = Decimal("0")
    interval_months: int = 12

    @classmethod
    def from_listing(cls, listing) -> "EscalationPolicy":
        return cls(
            enabled=bool(listing.rent_escalation_enabled),
            percentage=Decimal(str(listing.escalation_percentage or 0)),
            interval_months=int(listing.escalation_interval_months or 0),
        )

    @property
    def active(self) -> bool:
        return self.enabled and self.percentage > 0 and self.interval_months > 0


@dataclass(frozen=True)
class LeaseTerms:
    start_date: date
    end_date: date
    payment_day: int
    monthly_rent: Decimal
    lease_id: Optional[uuid.UUID] = None

    @classmethod
    def from_lease(cls, lease) -> "LeaseTerms":
        return cls(
            start_date=lease.start_date,
            end_date=lease.end_date,
            payment_day=lease.payment_day,
            monthly_rent=Decimal(str(lease.monthly_rent)),
            lease_id=lease.id,
        )


@dataclass(frozen=True)
class ScheduledPayment:
    lease_id: Optional[uuid.UUID]
    amount: Decimal
    due_date: date
    status: RentPaymentStatus = RentPaymentStatus.DUE

    def as_row(self) -> dict:
        return {
            "lease_id": self.lease_id,
            "amount": self.amount,
            "due_date": self.due_date,
            "status": self.status,
        }


def first_due_date(start_date: date, payment_day: int) -> date:
    """First payment date on or after ``start_date``."""
    first = on_payment_day(start_date, payment_day)
    if first < start_date:
        first = on_payment_day(start_date, payment_day, months=1)
    return first


def generate_payment_schedule(
    lease, policy: Optional[EscalationPolicy] = None
) -> List[ScheduledPayment]:
    """Build the monthly obligations for ``lease`` in due-date order.

    ``lease`` is anything with start_date, end_date, payment_day and
    monthly_rent (a RentalLease row or a LeaseTerms). Every date is derived
    from the first due date plus n months, so a month-end payment day
    clamped in February goes back to the 31st in March. Escalation compounds
    on the current rent each time ``interval_months`` calendar months have
    passed since the lease started.
    """
    terms = lease if isinstance(lease, LeaseTerms) else LeaseTerms.from_lease(lease)
    policy = policy or EscalationPolicy()

    anchor = first_due_date(terms.start_date, terms.payment_day)
    current_rent = Decimal(str(terms.monthly_rent))
    last_escalation_month = 0

    schedule: List[ScheduledPayment] = []
    offset = 0
    current_date = anchor
    while current_date <= terms.end_date:
        elapsed = months_between(terms.start_date, current_date)
        if (
            policy.active
            and elapsed > 0
            and elapsed >= last_escalation_month + policy.interval_months
        ):
            current_rent = current_rent * (1 + policy.percentage / Decimal(100))
            last_escalation_month = elapsed

        schedule.append(
            ScheduledPayment(
                lease_id=terms.lease_id,
                amount=to_money(current_rent),
                due_date=current_date,
            )
        )

        offset += 1
        current_date = on_payment_day(anchor, terms.payment_day, months=offset)

    return schedule
