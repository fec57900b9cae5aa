import uuid
from typing import List

from fastapi import APIRouter, Depends, Query
from fastapi_utils.cbv import cbv
from sqlalchemy.ext.asyncio import AsyncSession

from core.get_current_user import get_current_user
from core.get_db import get_db_async
from core.safe_handler import safe_handler
from core.validators import scheduler_key_protect
from models.models import User
from schemas.schema import RecordPaymentSchema, RentPaymentOut
from services.rent_payment_service import RentPaymentService

router = APIRouter(tags=["Rent Payments"])


@cbv(router)
class RentPaymentRoutes:
    @router.get("/payments", response_model=List[RentPaymentOut])
    @safe_handler
    async def get_all(
        self,
        lease_id: uuid.UUID = Query(..., alias="leaseId"),
        current_user: User = Depends(get_current_user),
        db: AsyncSession = Depends(get_db_async),
    ):
        return await RentPaymentService(db).list_payments(
            lease_id=lease_id, current_user=current_user
        )

    @router.patch("/payments/{payment_id}/pay", response_model=RentPaymentOut)
    @safe_handler
    async def mark_paid(
        self,
        payment_id: uuid.UUID,
        data: RecordPaymentSchema,
        current_user: User = Depends(get_current_user),
        db: AsyncSession = Depends(get_db_async),
    ):
        return await RentPaymentService(db).mark_paid(
            payment_id=payment_id, data=data, current_user=current_user
        )

    @router.patch("/payments/{payment_id}/record", response_model=RentPaymentOut)
    @safe_handler
    async def record(
        self,
        payment_id: uuid.UUID,
        data: RecordPaymentSchema,
        current_user: User = Depends(get_current_user),
        db: AsyncSession = Depends(get_db_async),
    ):
        return await RentPaymentService(db).record_payment(
            payment_id=payment_id, data=data, current_user=current_user
        )

    @router.patch("/payments/{payment_id}/waive", response_model=RentPaymentOut)
    @safe_handler
    async def waive(
        self,
        payment_id: uuid.UUID,
        current_user: User = Depends(get_current_user),
        db: AsyncSession = Depends(get_db_async),
    ):
        return await RentPaymentService(db).waive_payment(
            payment_id=payment_id, current_user=current_user
        )

    @router.patch(
        "/payments/{payment_id}/mark-overdue",
        response_model=RentPaymentOut,
        dependencies=[Depends(scheduler_key_protect)],
    )
    @safe_handler
    async def mark_overdue(
        self,
        payment_id: uuid.UUID,
        db: AsyncSession = Depends(get_db_async),
    ):
        return await RentPaymentService(db).mark_overdue(payment_id=payment_id)
