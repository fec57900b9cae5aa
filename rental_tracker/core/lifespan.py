import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from .get_db import Base, async_engine
from .settings import settings

logger = logging.getLogger("startup")


async def create_tables():
    import models.models  # noqa: F401

    async with async_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Waiting for application startup...")

    if settings.AUTO_CREATE_TABLES:
        try:
            await create_tables()
            logger.info("Database tables created.")
        except Exception:
            logger.exception("Failed to create database tables")
            raise

    if not settings.smtp_configured:
        logger.warning("SMTP settings missing, rent emails will be skipped.")

    logger.info("Application startup complete.")

    yield

    await async_engine.dispose()
    logger.info("Database engine disposed.")
