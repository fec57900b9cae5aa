"""Tests for the rental listing manager."""

import uuid
from datetime import date
from decimal import Decimal

import pytest
from sqlalchemy import select

from core.errors import BadRequest, Forbidden, NotFound
from models.enums import ListingType, RentalLeaseStatus, UserRole
from models.models import Property, User
from repos.rental_listing_repo import RentalListingRepo
from schemas.schema import (
    EscalationUpdateSchema,
    RentalListingSchema,
    RentalListingUpdateSchema,
)
from services.payment_schedule import (
    EscalationPolicy,
    LeaseTerms,
    generate_payment_schedule,
)
from services.rental_listing_service import RentalListingService


def listing_request(property_id, **overrides):
    values = {
        "property_id": property_id,
        "monthly_rent": Decimal("1200.00"),
        "security_deposit": Decimal("2400.00"),
        "available_from": date(2024, 2, 1),
        "lease_duration": 12,
    }
    values.update(overrides)
    return RentalListingSchema(**values)


@pytest.fixture
async def owner(factory):
    return await factory.user("Olu", "Owner")


@pytest.fixture
async def owned_property(factory, owner):
    return await factory.property(owner, location="Ikeja, Lagos", bedrooms=3)


async def test_create_listing_promotes_owner(db, owned_property, owner):
    """Test that listing a property marks it for rent and promotes the owner."""
    listing = await RentalListingService(db).create_listing(
        listing_request(owned_property.id), owner
    )

    assert listing.is_active is True
    assert listing.monthly_rent == Decimal("1200.00")
    assert listing.property.is_for_rent is True
    assert listing.property.listing_type == ListingType.FOR_RENT
    assert listing.property.owner.role == UserRole.LANDLORD

    role = (await db.execute(select(User.role).where(User.id == owner.id))).scalar_one()
    assert role == UserRole.LANDLORD


async def test_create_listing_keeps_admin_role(db, factory):
    """Test that elevated roles are not downgraded to LANDLORD."""
    admin = await factory.user("Ade", "Admin", role=UserRole.ADMIN)
    prop = await factory.property(admin)

    await RentalListingService(db).create_listing(listing_request(prop.id), admin)

    role = (await db.execute(select(User.role).where(User.id == admin.id))).scalar_one()
    assert role == UserRole.ADMIN


async def test_create_listing_requires_ownership(db, owned_property, stranger):
    """Test that only the owner can list a property."""
    with pytest.raises(Forbidden):
        await RentalListingService(db).create_listing(
            listing_request(owned_property.id), stranger
        )

    is_for_rent = (
        await db.execute(
            select(Property.is_for_rent).where(Property.id == owned_property.id)
        )
    ).scalar_one()
    assert is_for_rent is False


async def test_create_listing_rolls_back_when_insert_fails(
    db, owned_property, owner, monkeypatch
):
    """Test that a failed listing insert undoes the for-rent flag and the promotion."""
    property_id = owned_property.id
    owner_id = owner.id

    async def broken_create(self, data):
        raise RuntimeError("listing insert failed")

    monkeypatch.setattr(RentalListingRepo, "create", broken_create)

    with pytest.raises(RuntimeError):
        await RentalListingService(db).create_listing(listing_request(property_id), owner)

    is_for_rent = (
        await db.execute(select(Property.is_for_rent).where(Property.id == property_id))
    ).scalar_one()
    role = (await db.execute(select(User.role).where(User.id == owner_id))).scalar_one()
    assert is_for_rent is False
    assert role == UserRole.USER


async def test_create_listing_unknown_property(db, owner):
    """Test that a missing property is NotFound."""
    with pytest.raises(NotFound):
        await RentalListingService(db).create_listing(listing_request(uuid.uuid4()), owner)


async def test_duplicate_listing_rejected(db, owned_property, owner):
    """Test that a property can only be listed once."""
    service = RentalListingService(db)
    await service.create_listing(listing_request(owned_property.id), owner)

    with pytest.raises(BadRequest) as exc:
        await service.create_listing(listing_request(owned_property.id), owner)
    assert exc.value.detail == "A rental listing already exists for this property"


def test_enabled_escalation_at_zero_percent_is_flat():
    """Test that an enabled 0% escalation is accepted and leaves the rent flat."""
    data = listing_request(
        uuid.uuid4(), rent_escalation_enabled=True, escalation_percentage=Decimal("0")
    )
    lease = LeaseTerms(
        start_date=date(2024, 1, 1),
        end_date=date(2025, 12, 31),
        payment_day=1,
        monthly_rent=data.monthly_rent,
    )

    schedule = generate_payment_schedule(lease, EscalationPolicy.from_listing(data))

    assert {p.amount for p in schedule} == {Decimal("1200.00")}


def test_escalation_above_one_hundred_percent_is_accepted():
    """Test that large escalation percentages pass validation."""
    data = listing_request(
        uuid.uuid4(), rent_escalation_enabled=True, escalation_percentage=Decimal("150")
    )
    assert data.escalation_percentage == Decimal("150")

    with pytest.raises(ValueError):
        listing_request(uuid.uuid4(), escalation_percentage=Decimal("-1"))


async def test_update_listing(db, listing, landlord, stranger):
    """Test owner-only partial updates."""
    service = RentalListingService(db)

    updated = await service.update_listing(
        listing.id, RentalListingUpdateSchema(monthly_rent=Decimal("1100.00")), landlord
    )
    assert updated.monthly_rent == Decimal("1100.00")
    assert updated.security_deposit == Decimal("2000.00")

    with pytest.raises(Forbidden):
        await service.update_listing(
            listing.id, RentalListingUpdateSchema(lease_duration=6), stranger
        )
    with pytest.raises(BadRequest):
        await service.update_listing(listing.id, RentalListingUpdateSchema(), landlord)
    with pytest.raises(NotFound):
        await service.update_listing(
            uuid.uuid4(), RentalListingUpdateSchema(lease_duration=6), landlord
        )


async def test_update_escalation(db, listing, landlord):
    """Test the escalation settings update, including enabling it at 0%."""
    service = RentalListingService(db)

    enabled_flat = await service.update_escalation(
        listing.id, EscalationUpdateSchema(rent_escalation_enabled=True), landlord
    )
    assert enabled_flat.rent_escalation_enabled is True
    assert enabled_flat.escalation_percentage == Decimal("0")

    with pytest.raises(BadRequest):
        await service.update_escalation(listing.id, EscalationUpdateSchema(), landlord)

    updated = await service.update_escalation(
        listing.id,
        EscalationUpdateSchema(
            rent_escalation_enabled=True,
            escalation_percentage=Decimal("5"),
            escalation_interval_months=6,
        ),
        landlord,
    )
    assert updated.rent_escalation_enabled is True
    assert updated.escalation_percentage == Decimal("5")
    assert updated.escalation_interval_months == 6


async def test_delete_is_soft(db, listing, landlord, stranger):
    """Test that deleting only deactivates the listing."""
    service = RentalListingService(db)

    with pytest.raises(Forbidden):
        await service.delete_listing(listing.id, stranger)

    deleted = await service.delete_listing(listing.id, landlord)
    assert deleted.is_active is False

    still_there = await service.get_listing(listing.id)
    assert still_there.is_active is False

    page = await service.get_all_listings()
    assert page.total == 0


async def test_get_listing_shows_active_lease(db, factory, listing, landlord, tenant):
    """Test that the detail view carries the current tenant."""
    service = RentalListingService(db)
    assert (await service.get_listing(listing.id)).active_lease is None

    await factory.lease(listing, landlord, tenant, status=RentalLeaseStatus.ACTIVE)

    detail = await service.get_listing(listing.id)
    assert detail.active_lease.tenant.id == tenant.id
    assert detail.property.owner.id == landlord.id

    with pytest.raises(NotFound):
        await service.get_listing(uuid.uuid4())


async def test_get_all_listings_filters_and_pages(db, factory, landlord):
    """Test location, rent and bedroom filters plus pagination."""
    for location, rent, bedrooms in [
        ("Lekki, Lagos", "900.00", 1),
        ("Ikeja, Lagos", "1500.00", 3),
        ("Wuse, Abuja", "2000.00", 3),
    ]:
        prop = await factory.property(landlord, location=location, bedrooms=bedrooms)
        await factory.listing(prop, monthly_rent=Decimal(rent))

    service = RentalListingService(db)

    everything = await service.get_all_listings()
    assert everything.total == 3
    assert everything.per_page == 8
    assert everything.total_pages == 1

    lagos = await service.get_all_listings(location="lagos")
    assert lagos.total == 2

    mid_range = await service.get_all_listings(
        min_rent=Decimal("1000"), max_rent=Decimal("1800")
    )
    assert [item.property.location for item in mid_range.items] == ["Ikeja, Lagos"]

    three_beds = await service.get_all_listings(bedrooms=3)
    assert three_beds.total == 2

    paged = await service.get_all_listings(page=2, per_page=2)
    assert paged.total == 3
    assert paged.total_pages == 2
    assert len(paged.items) == 1
