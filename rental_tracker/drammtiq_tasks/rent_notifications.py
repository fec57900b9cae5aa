import logging

import dramatiq

from core.get_db import AsyncSessionLocal
from services.rent_notification_service import RentNotificationService

logger = logging.getLogger(__name__)

RENT_NOTIFICATION_ACTOR = "process_rent_notifications"


async def run_rent_notifications() -> dict:
    async with AsyncSessionLocal() as db:
        return await RentNotificationService(db).process_rent_notifications()


def create_rent_notification_task():
    @dramatiq.actor(
        actor_name=RENT_NOTIFICATION_ACTOR,
        queue_name="process_rent_notifications",
        max_retries=3,
        time_limit=600_000,
    )
    async def process_rent_notifications():
        summary = await run_rent_notifications()
        logger.info(f"Rent notification task finished: {summary}")
        return summary

    return process_rent_notifications
