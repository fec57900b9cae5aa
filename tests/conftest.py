import os

os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["SCHEDULER_API_KEY"] = "test-scheduler-key"
os.environ["EMAIL_SERVER"] = ""
os.environ["EMAIL_USER"] = ""
os.environ["EMAIL_PASSWORD"] = ""

import uuid
from datetime import date
from decimal import Decimal

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from core.get_db import Base
from models.enums import (
    ListingType,
    PropertyStatus,
    RentalLeaseStatus,
    UserRole,
)
from models.models import Property, RentalLease, RentalListing, User


@pytest.fixture
async def engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'rental.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
async def db(engine):
    session_factory = async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )
    async with session_factory() as session:
        yield session


class Factory:
    def __init__(self, db):
        self.db = db

    async def _save(self, obj):
        self.db.add(obj)
        await self.db.commit()
        return obj

    async def user(self, first_name="Ada", last_name="Obi", role=UserRole.USER):
        return await self._save(
            User(
                email=f"{first_name.lower()}.{uuid.uuid4().hex[:8]}@example.com",
                first_name=first_name,
                last_name=last_name,
                role=role,
            )
        )

    async def property(self, owner, **overrides):
        values = {
            "owner_id": owner.id,
            "title": "Two bedroom flat",
            "price": Decimal("250000.00"),
            "location": "Lekki, Lagos",
            "address": "12 Admiralty Way",
            "bedrooms": 2,
            "bathrooms": 2,
            "status": PropertyStatus.AVAILABLE,
            "listing_type": ListingType.FOR_SALE,
            "is_for_rent": False,
        }
        values.update(overrides)
        return await self._save(Property(**values))

    async def listing(self, prop, **overrides):
        values = {
            "property_id": prop.id,
            "monthly_rent": Decimal("1000.00"),
            "security_deposit": Decimal("2000.00"),
            "available_from": date(2024, 1, 1),
            "lease_duration": 12,
            "is_active": True,
            "rent_escalation_enabled": False,
            "escalation_percentage": Decimal("0"),
            "escalation_interval_months": 12,
        }
        values.update(overrides)
        prop.is_for_rent = True
        prop.listing_type = ListingType.FOR_RENT
        return await self._save(RentalListing(**values))

    async def lease(self, listing, landlord, tenant, **overrides):
        values = {
            "rental_listing_id": listing.id,
            "landlord_id": landlord.id,
            "tenant_id": tenant.id,
            "start_date": date(2024, 1, 1),
            "end_date": date(2024, 12, 31),
            "monthly_rent": listing.monthly_rent,
            "security_deposit": listing.security_deposit,
            "payment_day": 1,
            "status": RentalLeaseStatus.PENDING,
        }
        values.update(overrides)
        return await self._save(RentalLease(**values))


@pytest.fixture
def factory(db):
    return Factory(db)


@pytest.fixture
async def landlord(factory):
    return await factory.user("Lola", "Landlord", role=UserRole.LANDLORD)


@pytest.fixture
async def tenant(factory):
    return await factory.user("Tunde", "Tenant")


@pytest.fixture
async def stranger(factory):
    return await factory.user("Sam", "Stranger")


@pytest.fixture
async def rental_property(factory, landlord):
    return await factory.property(landlord)


@pytest.fixture
async def listing(factory, rental_property):
    return await factory.listing(rental_property)


@pytest.fixture
async def pending_lease(factory, listing, landlord, tenant):
    return await factory.lease(listing, landlord, tenant)
