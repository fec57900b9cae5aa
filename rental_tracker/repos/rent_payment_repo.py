import uuid
from datetime import date
from typing import Iterable, List, Optional

from sqlalchemy import func, insert, select, update
from sqlalchemy.orm import selectinload

from models.enums import UNRESOLVED_PAYMENT_STATUSES, RentPaymentStatus
from models.models import Property, RentalLease, RentalListing, RentPayment
from models.utils import utcnow

from .base_repo import BaseRepo


class RentPaymentRepo(BaseRepo):
    def _notification_relations(self):
        return (
            selectinload(RentPayment.lease).selectinload(RentalLease.tenant),
            selectinload(RentPayment.lease).selectinload(RentalLease.landlord),
            selectinload(RentPayment.lease)
            .selectinload(RentalLease.rental_listing)
            .selectinload(RentalListing.property),
        )

    async def bulk_create(self, rows: Iterable[dict]) -> int:
        rows = list(rows)
        if not rows:
            return 0
        now = utcnow()
        values = [
            {"id": uuid.uuid4(), "created_at": now, "updated_at": now, **row}
            for row in rows
        ]
        await self.db.execute(insert(RentPayment), values)
        return len(values)

    async def get_by_id(self, payment_id: uuid.UUID) -> Optional[RentPayment]:
        stmt = (
            select(RentPayment)
            .options(selectinload(RentPayment.lease))
            .where(RentPayment.id == payment_id)
            .execution_options(populate_existing=True)
        )
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def list_by_lease(self, lease_id: uuid.UUID) -> List[RentPayment]:
        stmt = (
            select(RentPayment)
            .where(RentPayment.lease_id == lease_id)
            .order_by(RentPayment.due_date.asc())
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def update_if_status(
        self,
        payment_id: uuid.UUID,
        expected: RentPaymentStatus,
        **values,
    ) -> bool:
        stmt = (
            update(RentPayment)
            .where(RentPayment.id == payment_id, RentPayment.status == expected)
            .values(updated_at=utcnow(), **values)
            .execution_options(synchronize_session=False)
        )
        result = await self.db.execute(stmt)
        return result.rowcount == 1

    async def totals_by_status(self, lease_id: uuid.UUID) -> list[tuple]:
        stmt = (
            select(
                RentPayment.status,
                func.coalesce(func.sum(RentPayment.amount), 0),
                func.count(RentPayment.id),
            )
            .where(RentPayment.lease_id == lease_id)
            .group_by(RentPayment.status)
        )
        result = await self.db.execute(stmt)
        return [tuple(row) for row in result.all()]

    async def next_unresolved_for_leases(
        self, lease_ids: list[uuid.UUID]
    ) -> dict[uuid.UUID, RentPayment]:
        """Earliest DUE or OVERDUE payment per lease."""
        if not lease_ids:
            return {}
        stmt = (
            select(RentPayment)
            .where(
                RentPayment.lease_id.in_(lease_ids),
                RentPayment.status.in_(UNRESOLVED_PAYMENT_STATUSES),
            )
            .order_by(RentPayment.lease_id, RentPayment.due_date.asc())
        )
        result = await self.db.execute(stmt)
        next_payments: dict[uuid.UUID, RentPayment] = {}
        for payment in result.scalars().all():
            next_payments.setdefault(payment.lease_id, payment)
        return next_payments

    async def find_due_between(self, start: date, end: date) -> List[RentPayment]:
        stmt = (
            select(RentPayment)
            .options(*self._notification_relations())
            .where(
                RentPayment.status == RentPaymentStatus.DUE,
                RentPayment.due_date >= start,
                RentPayment.due_date <= end,
            )
            .order_by(RentPayment.due_date.asc())
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def find_due_before(self, day: date) -> List[RentPayment]:
        stmt = (
            select(RentPayment)
            .options(*self._notification_relations())
            .where(
                RentPayment.status == RentPaymentStatus.DUE,
                RentPayment.due_date < day,
            )
            .order_by(RentPayment.due_date.asc())
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def count_overdue_for_landlord(self, landlord_id: uuid.UUID) -> int:
        stmt = (
            select(func.count(RentPayment.id))
            .join(RentPayment.lease)
            .where(
                RentalLease.landlord_id == landlord_id,
                RentPayment.status == RentPaymentStatus.OVERDUE,
            )
        )
        return (await self.db.execute(stmt)).scalar_one()

    async def upcoming_for_landlord(
        self, landlord_id: uuid.UUID, start: date, end: date, limit: int = 10
    ) -> List[RentPayment]:
        stmt = (
            select(RentPayment)
            .join(RentPayment.lease)
            .options(
                selectinload(RentPayment.lease).selectinload(RentalLease.tenant),
                selectinload(RentPayment.lease)
                .selectinload(RentalLease.rental_listing)
                .selectinload(RentalListing.property),
            )
            .where(
                RentalLease.landlord_id == landlord_id,
                RentPayment.status == RentPaymentStatus.DUE,
                RentPayment.due_date >= start,
                RentPayment.due_date <= end,
            )
            .order_by(RentPayment.due_date.asc())
            .limit(limit)
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all())
