from typing import List

from fastapi import APIRouter, Depends
from fastapi_utils.cbv import cbv
from sqlalchemy.ext.asyncio import AsyncSession

from core.get_current_user import get_current_user
from core.get_db import get_db_async
from core.safe_handler import safe_handler
from models.models import User
from schemas.schema import LandlordOverviewItemOut, LandlordStatsOut
from services.landlord_stats_service import LandlordStatsService

router = APIRouter(tags=["Landlord Statistics"])


@cbv(router)
class LandlordStatsRoutes:
    @router.get("/landlord-stats", response_model=LandlordStatsOut)
    @safe_handler
    async def get_stats(
        self,
        current_user: User = Depends(get_current_user),
        db: AsyncSession = Depends(get_db_async),
    ):
        return await LandlordStatsService(db).get_stats(current_user=current_user)

    @router.get(
        "/landlord-stats/overview", response_model=List[LandlordOverviewItemOut]
    )
    @safe_handler
    async def get_overview(
        self,
        current_user: User = Depends(get_current_user),
        db: AsyncSession = Depends(get_db_async),
    ):
        return await LandlordStatsService(db).get_overview(current_user=current_user)
