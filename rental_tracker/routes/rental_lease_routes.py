import logging
import uuid
from typing import List, Optional

from fastapi import APIRouter, Depends
from fastapi_utils.cbv import cbv
from sqlalchemy.ext.asyncio import AsyncSession

from core.get_current_user import get_current_user
from core.get_db import get_db_async
from core.safe_handler import safe_handler
from models.enums import RentalLeaseStatus
from models.models import User
from schemas.schema import (
    LeaseStatusUpdateSchema,
    RentalLeaseDetailOut,
    RentalLeaseOut,
    RentalLeaseSchema,
    RentalLeaseSummaryOut,
)
from services.rental_lease_service import RentalLeaseService

logger = logging.getLogger(__name__)
router = APIRouter(tags=["Rental Leases"])


def parse_status_filter(value: Optional[str]) -> Optional[RentalLeaseStatus]:
    if not value:
        return None
    try:
        return RentalLeaseStatus(value.strip().upper())
    except ValueError:
        logger.info(f"Ignoring unknown lease status filter '{value}'")
        return None


@cbv(router=router)
class RentalLeaseRoutes:
    @router.post("/leases", response_model=RentalLeaseOut, status_code=201)
    @safe_handler
    async def create(
        self,
        data: RentalLeaseSchema,
        current_user: User = Depends(get_current_user),
        db: AsyncSession = Depends(get_db_async),
    ):
        return await RentalLeaseService(db).create_lease(
            data=data, current_user=current_user
        )

    @router.get("/leases", response_model=List[RentalLeaseSummaryOut])
    @safe_handler
    async def get_all(
        self,
        landlord: bool = False,
        tenant: bool = False,
        status: Optional[str] = None,
        current_user: User = Depends(get_current_user),
        db: AsyncSession = Depends(get_db_async),
    ):
        return await RentalLeaseService(db).list_leases(
            current_user=current_user,
            as_landlord=landlord or not tenant,
            status=parse_status_filter(status),
        )

    @router.get("/leases/{lease_id}", response_model=RentalLeaseDetailOut)
    @safe_handler
    async def get(
        self,
        lease_id: uuid.UUID,
        current_user: User = Depends(get_current_user),
        db: AsyncSession = Depends(get_db_async),
    ):
        return await RentalLeaseService(db).get_lease(
            lease_id=lease_id, current_user=current_user
        )

    @router.patch("/leases/{lease_id}/status", response_model=RentalLeaseOut)
    @safe_handler
    async def update_status(
        self,
        lease_id: uuid.UUID,
        data: LeaseStatusUpdateSchema,
        current_user: User = Depends(get_current_user),
        db: AsyncSession = Depends(get_db_async),
    ):
        return await RentalLeaseService(db).update_status(
            lease_id=lease_id, status=data.status, current_user=current_user
        )
