import uuid
from typing import List, Optional

from sqlalchemy import func, select, update

from models.enums import ListingType, PropertyStatus
from models.models import Property

from .base_repo import BaseRepo


class PropertyRepo(BaseRepo):
    async def get_by_id(self, property_id: uuid.UUID) -> Optional[Property]:
        result = await self.db.execute(
            select(Property).where(Property.id == property_id)
        )
        return result.scalar_one_or_none()

    async def mark_for_rent(self, property_id: uuid.UUID) -> None:
        await self.db.execute(
            update(Property)
            .where(Property.id == property_id)
            .values(is_for_rent=True, listing_type=ListingType.FOR_RENT)
        )

    async def set_status(self, property_id: uuid.UUID, status: PropertyStatus) -> None:
        await self.db.execute(
            update(Property).where(Property.id == property_id).values(status=status)
        )

    async def top_rental_locations(
        self, owner_id: uuid.UUID, limit: int = 5
    ) -> List[tuple[str, int]]:
        count = func.count(Property.id).label("count")
        stmt = (
            select(Property.location, count)
            .where(Property.owner_id == owner_id, Property.is_for_rent.is_(True))
            .group_by(Property.location)
            .order_by(count.desc(), Property.location)
            .limit(limit)
        )
        result = await self.db.execute(stmt)
        return [(location, total) for location, total in result.all()]
