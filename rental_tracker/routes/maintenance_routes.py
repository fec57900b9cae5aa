import uuid
from typing import List, Optional

from fastapi import APIRouter, Depends
from fastapi_utils.cbv import cbv
from sqlalchemy.ext.asyncio import AsyncSession

from core.get_current_user import get_current_user
from core.get_db import get_db_async
from core.safe_handler import safe_handler
from models.enums import MaintenanceStatus
from models.models import User
from schemas.schema import (
    MaintenanceRequestOut,
    MaintenanceRequestSchema,
    MaintenanceRequestUpdateSchema,
)
from services.maintenance_service import MaintenanceService

router = APIRouter(tags=["Maintenance Requests"])


@cbv(router)
class MaintenanceRoutes:
    @router.post(
        "/maintenance", response_model=MaintenanceRequestOut, status_code=201
    )
    @safe_handler
    async def create(
        self,
        data: MaintenanceRequestSchema,
        current_user: User = Depends(get_current_user),
        db: AsyncSession = Depends(get_db_async),
    ):
        return await MaintenanceService(db).create_request(
            data=data, current_user=current_user
        )

    @router.get("/maintenance", response_model=List[MaintenanceRequestOut])
    @safe_handler
    async def get_all(
        self,
        property_id: Optional[uuid.UUID] = None,
        status: Optional[MaintenanceStatus] = None,
        current_user: User = Depends(get_current_user),
        db: AsyncSession = Depends(get_db_async),
    ):
        return await MaintenanceService(db).list_requests(
            current_user=current_user, property_id=property_id, status=status
        )

    @router.get("/maintenance/{request_id}", response_model=MaintenanceRequestOut)
    @safe_handler
    async def get(
        self,
        request_id: uuid.UUID,
        current_user: User = Depends(get_current_user),
        db: AsyncSession = Depends(get_db_async),
    ):
        return await MaintenanceService(db).get_request(
            request_id=request_id, current_user=current_user
        )

    @router.patch("/maintenance/{request_id}", response_model=MaintenanceRequestOut)
    @safe_handler
    async def update(
        self,
        request_id: uuid.UUID,
        data: MaintenanceRequestUpdateSchema,
        current_user: User = Depends(get_current_user),
        db: AsyncSession = Depends(get_db_async),
    ):
        return await MaintenanceService(db).update_request(
            request_id=request_id, data=data, current_user=current_user
        )
