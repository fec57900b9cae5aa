import logging
import uuid
from typing import List, Optional

from core.errors import Forbidden, NotFound
from core.mapper import ORMMapper
from models.enums import MaintenanceStatus
from models.models import MaintenanceRequest, Property
from models.utils import utcnow
from repos.maintenance_repo import MaintenanceRepo
from repos.property_repo import PropertyRepo
from repos.rental_lease_repo import RentalLeaseRepo
from schemas.schema import (
    MaintenanceRequestOut,
    MaintenanceRequestSchema,
    MaintenanceRequestUpdateSchema,
)

logger = logging.getLogger(__name__)


def append_note(existing: Optional[str], note: str) -> str:
    entry = f"[{utcnow().isoformat()}] {note}"
    return f"{existing}\n\n{entry}" if existing else entry


class MaintenanceService:
    def __init__(self, db):
        self.repo: MaintenanceRepo = MaintenanceRepo(db)
        self.property_repo: PropertyRepo = PropertyRepo(db)
        self.lease_repo: RentalLeaseRepo = RentalLeaseRepo(db)
        self.mapper: ORMMapper = ORMMapper()

    async def _can_access_property(self, prop: Property, current_user) -> bool:
        if prop.owner_id == current_user.id:
            return True
        lease = await self.lease_repo.get_active_for_property(prop.id, current_user.id)
        return lease is not None

    async def _get_request(self, request_id: uuid.UUID, current_user) -> MaintenanceRequest:
        request = await self.repo.get_by_id(request_id)
        if not request:
            raise NotFound("Maintenance request not found")
        if current_user.id not in (request.property.owner_id, request.requested_by):
            raise Forbidden("Access denied")
        return request

    async def create_request(
        self, data: MaintenanceRequestSchema, current_user
    ) -> MaintenanceRequestOut:
        prop = await self.property_repo.get_by_id(data.property_id)
        if not prop:
            raise NotFound("Property not found")
        if not await self._can_access_property(prop, current_user):
            raise Forbidden(
                "You can only create maintenance requests for properties you own or rent"
            )

        request = await self.repo.create(
            {**data.model_dump(), "requested_by": current_user.id}
        )
        request_id = request.id
        await self.repo.db_commit()
        logger.info(f"Maintenance request {request_id} filed for property {prop.id}")

        created = await self.repo.get_by_id(request_id)
        return self.mapper.one(created, MaintenanceRequestOut)

    async def list_requests(
        self,
        current_user,
        property_id: Optional[uuid.UUID] = None,
        status: Optional[MaintenanceStatus] = None,
    ) -> List[MaintenanceRequestOut]:
        if property_id:
            prop = await self.property_repo.get_by_id(property_id)
            if not prop:
                raise NotFound("Property not found")
            if not await self._can_access_property(prop, current_user):
                raise Forbidden("Access denied to this property")
            requests = await self.repo.list_for_property(property_id, status=status)
        else:
            requests = await self.repo.list_for_user(current_user.id, status=status)

        return self.mapper.many(requests, MaintenanceRequestOut)

    async def get_request(self, request_id: uuid.UUID, current_user) -> MaintenanceRequestOut:
        request = await self._get_request(request_id, current_user)
        return self.mapper.one(request, MaintenanceRequestOut)

    async def update_request(
        self,
        request_id: uuid.UUID,
        data: MaintenanceRequestUpdateSchema,
        current_user,
    ) -> MaintenanceRequestOut:
        request = await self._get_request(request_id, current_user)

        if data.status is not None:
            request.status = data.status
        if data.priority is not None:
            request.priority = data.priority
        if data.notes is not None:
            request.notes = append_note(request.notes, data.notes)

        try:
            await self.repo.db_add_and_flush(request)
            await self.repo.db_commit()
        except Exception:
            await self.repo.db_rollback()
            raise

        logger.info(f"Maintenance request {request_id} updated")
        updated = await self.repo.get_by_id(request_id)
        return self.mapper.one(updated, MaintenanceRequestOut)
