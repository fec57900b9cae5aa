import uuid
from decimal import Decimal
from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi_utils.cbv import cbv
from sqlalchemy.ext.asyncio import AsyncSession

from core.get_current_user import get_current_user
from core.get_db import get_db_async
from core.safe_handler import safe_handler
from models.models import User
from schemas.schema import (
    EscalationUpdateSchema,
    PaginatedRentalListing,
    RentalListingDetailOut,
    RentalListingOut,
    RentalListingSchema,
    RentalListingUpdateSchema,
)
from services.rental_listing_service import RentalListingService

router = APIRouter(tags=["Rental Listings"])


@cbv(router=router)
class RentalListingRoutes:
    @router.get("/listings", response_model=PaginatedRentalListing)
    @safe_handler
    async def get_all(
        self,
        page: int = Query(1, ge=1),
        per_page: int = Query(8, ge=1, le=100),
        location: Optional[str] = None,
        min_rent: Optional[Decimal] = Query(None, ge=0),
        max_rent: Optional[Decimal] = Query(None, ge=0),
        bedrooms: Optional[int] = Query(None, ge=0),
        db: AsyncSession = Depends(get_db_async),
    ):
        return await RentalListingService(db).get_all_listings(
            page=page,
            per_page=per_page,
            location=location,
            min_rent=min_rent,
            max_rent=max_rent,
            bedrooms=bedrooms,
        )

    @router.get("/listings/{listing_id}", response_model=RentalListingDetailOut)
    @safe_handler
    async def get(
        self,
        listing_id: uuid.UUID,
        db: AsyncSession = Depends(get_db_async),
    ):
        return await RentalListingService(db).get_listing(listing_id=listing_id)

    @router.post("/listings", response_model=RentalListingOut, status_code=201)
    @safe_handler
    async def create(
        self,
        data: RentalListingSchema,
        current_user: User = Depends(get_current_user),
        db: AsyncSession = Depends(get_db_async),
    ):
        return await RentalListingService(db).create_listing(
            data=data, current_user=current_user
        )

    @router.patch("/listings/{listing_id}", response_model=RentalListingOut)
    @safe_handler
    async def update(
        self,
        listing_id: uuid.UUID,
        data: RentalListingUpdateSchema,
        current_user: User = Depends(get_current_user),
        db: AsyncSession = Depends(get_db_async),
    ):
        return await RentalListingService(db).update_listing(
            listing_id=listing_id, data=data, current_user=current_user
        )

    @router.patch("/listings/{listing_id}/escalation", response_model=RentalListingOut)
    @safe_handler
    async def update_escalation(
        self,
        listing_id: uuid.UUID,
        data: EscalationUpdateSchema,
        current_user: User = Depends(get_current_user),
        db: AsyncSession = Depends(get_db_async),
    ):
        return await RentalListingService(db).update_escalation(
            listing_id=listing_id, data=data, current_user=current_user
        )

    @router.delete("/listings/{listing_id}", response_model=RentalListingOut)
    @safe_handler
    async def delete(
        self,
        listing_id: uuid.UUID,
        current_user: User = Depends(get_current_user),
        db: AsyncSession = Depends(get_db_async),
    ):
        return await RentalListingService(db).delete_listing(
            listing_id=listing_id, current_user=current_user
        )
