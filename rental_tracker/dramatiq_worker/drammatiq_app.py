import logging

import dramatiq
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger
from dramatiq.brokers.redis import RedisBroker
from dramatiq.middleware import (
    AgeLimit,
    AsyncIO,
    Callbacks,
    Pipelines,
    Retries,
    TimeLimit,
)

from core.settings import settings
from drammtiq_tasks.rent_notifications import (
    RENT_NOTIFICATION_ACTOR,
    create_rent_notification_task,
)

logger = logging.getLogger(__name__)


class DramatiqManager:
    def __init__(self, start_scheduler: bool = True):
        self.REDIS_URL = settings.REDIS_URL

        self.broker = RedisBroker(url=self.REDIS_URL)

        self.broker.add_middleware(AgeLimit(max_age=3600000))
        self.broker.add_middleware(TimeLimit(time_limit=600000))
        self.broker.add_middleware(Retries(max_retries=5))
        self.broker.add_middleware(Pipelines())
        self.broker.add_middleware(Callbacks())
        self.broker.add_middleware(AsyncIO())

        dramatiq.set_broker(self.broker)

        self._register_tasks()

        self.scheduler = BackgroundScheduler(timezone="UTC")
        self._register_cron_jobs()
        if start_scheduler:
            self.scheduler.start()

    def _register_tasks(self):
        self.rent_notifications = create_rent_notification_task()

    def _register_cron_jobs(self):
        self.scheduler.add_job(
            func=lambda: self.delay(RENT_NOTIFICATION_ACTOR),
            trigger=CronTrigger(
                hour=settings.RENT_NOTIFICATION_HOUR,
                minute=settings.RENT_NOTIFICATION_MINUTE,
            ),
            id="process-rent-notifications-daily",
            replace_existing=True,
        )
        logger.info(
            "Rent notifications scheduled daily at "
            f"{settings.RENT_NOTIFICATION_HOUR:02d}:{settings.RENT_NOTIFICATION_MINUTE:02d} UTC"
        )

    def connect(self):
        logger.info(f"Connecting to Dramatiq broker: {self.REDIS_URL}")
        try:
            self.broker.client.ping()
            logger.info("Dramatiq connected successfully.")
        except Exception:
            logger.exception("Dramatiq connection failed")

    def delay(self, actor_name: str, *args, **kwargs):
        actor = self.broker.get_actor(actor_name)
        return actor.send(*args, **kwargs)


dramatiq_app = DramatiqManager()
