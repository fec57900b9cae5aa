import uuid
from typing import List, Optional

from sqlalchemy import or_, select
from sqlalchemy.orm import selectinload

from models.enums import MaintenanceStatus
from models.models import MaintenanceRequest, Property

from .base_repo import BaseRepo


class MaintenanceRepo(BaseRepo):
    def _relations(self):
        return (
            selectinload(MaintenanceRequest.property),
            selectinload(MaintenanceRequest.requester),
        )

    async def create(self, data: dict) -> MaintenanceRequest:
        request = MaintenanceRequest(**data)
        return await self.db_add_and_flush(request)

    async def get_by_id(self, request_id: uuid.UUID) -> Optional[MaintenanceRequest]:
        stmt = (
            select(MaintenanceRequest)
            .options(*self._relations())
            .where(MaintenanceRequest.id == request_id)
            .execution_options(populate_existing=True)
        )
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def list_for_property(
        self, property_id: uuid.UUID, status: MaintenanceStatus | None = None
    ) -> List[MaintenanceRequest]:
        stmt = (
            select(MaintenanceRequest)
            .options(*self._relations())
            .where(MaintenanceRequest.property_id == property_id)
            .order_by(MaintenanceRequest.created_at.desc())
        )
        if status is not None:
            stmt = stmt.where(MaintenanceRequest.status == status)
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def list_for_user(
        self, user_id: uuid.UUID, status: MaintenanceStatus | None = None
    ) -> List[MaintenanceRequest]:
        """Requests on the user's own properties plus the ones they filed."""
        stmt = (
            select(MaintenanceRequest)
            .join(MaintenanceRequest.property)
            .options(*self._relations())
            .where(
                or_(
                    Property.owner_id == user_id,
                    MaintenanceRequest.requested_by == user_id,
                )
            )
            .order_by(MaintenanceRequest.created_at.desc())
        )
        if status is not None:
            stmt = stmt.where(MaintenanceRequest.status == status)
        result = await self.db.execute(stmt)
        return list(result.scalars().all())
