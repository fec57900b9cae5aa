import uuid
from typing import List, Optional

from sqlalchemy import func, select, update
from sqlalchemy.orm import selectinload

from models.enums import RentalLeaseStatus
from models.models import Property, RentalLease, RentalListing
from models.utils import utcnow

from .base_repo import BaseRepo


class RentalLeaseRepo(BaseRepo):
    def _relations(self):
        return (
            selectinload(RentalLease.rental_listing)
            .selectinload(RentalListing.property)
            .selectinload(Property.owner),
            selectinload(RentalLease.landlord),
            selectinload(RentalLease.tenant),
        )

    async def get_by_id(self, lease_id: uuid.UUID) -> Optional[RentalLease]:
        result = await self.db.execute(
            select(RentalLease).where(RentalLease.id == lease_id)
        )
        return result.scalar_one_or_none()

    async def get_with_relations(
        self, lease_id: uuid.UUID, with_payments: bool = False
    ) -> Optional[RentalLease]:
        options = list(self._relations())
        if with_payments:
            options.append(selectinload(RentalLease.payments))
        stmt = (
            select(RentalLease)
            .options(*options)
            .where(RentalLease.id == lease_id)
            .execution_options(populate_existing=True)
        )
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def create(self, data: dict) -> RentalLease:
        lease = RentalLease(**data)
        return await self.db_add_and_flush(lease)

    async def has_active_lease(
        self, listing_id: uuid.UUID, exclude_lease_id: uuid.UUID | None = None
    ) -> bool:
        stmt = select(RentalLease.id).where(
            RentalLease.rental_listing_id == listing_id,
            RentalLease.status == RentalLeaseStatus.ACTIVE,
        )
        if exclude_lease_id is not None:
            stmt = stmt.where(RentalLease.id != exclude_lease_id)
        result = await self.db.execute(stmt.limit(1))
        return result.first() is not None

    async def mark_active_if_pending(self, lease_id: uuid.UUID) -> bool:
        """Flip PENDING to ACTIVE in one statement; False when the lease moved on."""
        stmt = (
            update(RentalLease)
            .where(
                RentalLease.id == lease_id,
                RentalLease.status == RentalLeaseStatus.PENDING,
            )
            .values(status=RentalLeaseStatus.ACTIVE, updated_at=utcnow())
            .execution_options(synchronize_session=False)
        )
        result = await self.db.execute(stmt)
        return result.rowcount == 1

    async def set_status(
        self,
        lease_id: uuid.UUID,
        status: RentalLeaseStatus,
        expected: RentalLeaseStatus,
    ) -> bool:
        stmt = (
            update(RentalLease)
            .where(RentalLease.id == lease_id, RentalLease.status == expected)
            .values(status=status, updated_at=utcnow())
            .execution_options(synchronize_session=False)
        )
        result = await self.db.execute(stmt)
        return result.rowcount == 1

    async def list_for_user(
        self,
        user_id: uuid.UUID,
        as_landlord: bool = True,
        status: RentalLeaseStatus | None = None,
    ) -> List[RentalLease]:
        column = RentalLease.landlord_id if as_landlord else RentalLease.tenant_id
        stmt = (
            select(RentalLease)
            .options(*self._relations())
            .where(column == user_id)
            .order_by(RentalLease.created_at.desc())
            .execution_options(populate_existing=True)
        )
        if status is not None:
            stmt = stmt.where(RentalLease.status == status)
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def count_for_landlord(
        self, landlord_id: uuid.UUID, status: RentalLeaseStatus
    ) -> int:
        stmt = select(func.count(RentalLease.id)).where(
            RentalLease.landlord_id == landlord_id,
            RentalLease.status == status,
        )
        return (await self.db.execute(stmt)).scalar_one()

    async def get_active_for_property(
        self, property_id: uuid.UUID, tenant_id: uuid.UUID
    ) -> Optional[RentalLease]:
        stmt = (
            select(RentalLease)
            .join(RentalLease.rental_listing)
            .where(
                RentalListing.property_id == property_id,
                RentalLease.tenant_id == tenant_id,
                RentalLease.status == RentalLeaseStatus.ACTIVE,
            )
        )
        result = await self.db.execute(stmt)
        return result.scalars().first()

