import uuid
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import func, select
from sqlalchemy.orm import selectinload

from models.enums import RentalLeaseStatus
from models.models import Property, RentalLease, RentalListing

from .base_repo import BaseRepo


class RentalListingRepo(BaseRepo):
    def _with_property(self):
        return selectinload(RentalListing.property).selectinload(Property.owner)

    async def get_by_id(self, listing_id: uuid.UUID) -> Optional[RentalListing]:
        result = await self.db.execute(
            select(RentalListing).where(RentalListing.id == listing_id)
        )
        return result.scalar_one_or_none()

    async def get_listing_id(self, listing_id: uuid.UUID) -> Optional[RentalListing]:
        stmt = (
            select(RentalListing)
            .options(self._with_property())
            .where(RentalListing.id == listing_id)
            .execution_options(populate_existing=True)
        )
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def get_by_property(self, property_id: uuid.UUID) -> Optional[RentalListing]:
        result = await self.db.execute(
            select(RentalListing).where(RentalListing.property_id == property_id)
        )
        return result.scalar_one_or_none()

    async def create(self, data: dict) -> RentalListing:
        listing = RentalListing(**data)
        return await self.db_add_and_flush(listing)

    async def update(self, listing: RentalListing, **values) -> RentalListing:
        for field, value in values.items():
            setattr(listing, field, value)
        self.db.add(listing)
        await self.db.flush()
        return listing

    def _filters(
        self,
        location: str | None,
        min_rent: Decimal | None,
        max_rent: Decimal | None,
        bedrooms: int | None,
    ) -> list:
        clauses = [RentalListing.is_active.is_(True)]
        if location:
            clauses.append(
                func.lower(Property.location).contains(location.strip().lower())
            )
        if min_rent is not None:
            clauses.append(RentalListing.monthly_rent >= min_rent)
        if max_rent is not None:
            clauses.append(RentalListing.monthly_rent <= max_rent)
        if bedrooms is not None:
            clauses.append(Property.bedrooms == bedrooms)
        return clauses

    async def get_all(
        self,
        offset: int = 0,
        limit: int = 8,
        location: str | None = None,
        min_rent: Decimal | None = None,
        max_rent: Decimal | None = None,
        bedrooms: int | None = None,
    ) -> tuple[List[RentalListing], int]:
        clauses = self._filters(location, min_rent, max_rent, bedrooms)

        stmt = (
            select(RentalListing)
            .join(RentalListing.property)
            .options(self._with_property())
            .where(*clauses)
            .order_by(RentalListing.created_at.desc())
            .offset(offset)
            .limit(limit)
        )
        count_stmt = (
            select(func.count(RentalListing.id))
            .join(RentalListing.property)
            .where(*clauses)
        )

        listings = (await self.db.execute(stmt)).scalars().all()
        total = (await self.db.execute(count_stmt)).scalar_one()
        return list(listings), total

    async def get_active_by_owner(self, owner_id: uuid.UUID) -> List[RentalListing]:
        stmt = (
            select(RentalListing)
            .join(RentalListing.property)
            .options(
                selectinload(RentalListing.property),
                selectinload(RentalListing.leases).selectinload(RentalLease.tenant),
            )
            .where(Property.owner_id == owner_id, RentalListing.is_active.is_(True))
            .order_by(RentalListing.created_at.desc())
            .execution_options(populate_existing=True)
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def get_active_lease(self, listing_id: uuid.UUID) -> Optional[RentalLease]:
        stmt = (
            select(RentalLease)
            .options(selectinload(RentalLease.tenant))
            .where(
                RentalLease.rental_listing_id == listing_id,
                RentalLease.status == RentalLeaseStatus.ACTIVE,
            )
        )
        result = await self.db.execute(stmt)
        return result.scalars().first()
