"""Tests for the lease lifecycle service."""

import itertools
import uuid
from datetime import date
from decimal import Decimal

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError

from core.errors import BadRequest, Forbidden, NotFound
from models.enums import (
    ALLOWED_LEASE_TRANSITIONS,
    PropertyStatus,
    RentalLeaseStatus,
    RentPaymentStatus,
)
from models.models import Property, RentalLease, RentPayment
from repos.rent_payment_repo import RentPaymentRepo
from schemas.schema import RentalLeaseSchema
from services.rental_lease_service import RentalLeaseService


def lease_request(listing_id, start=date(2024, 1, 1), end=date(2024, 12, 31), day=1):
    return RentalLeaseSchema(
        rental_listing_id=listing_id,
        start_date=start,
        end_date=end,
        payment_day=day,
        notes="  Moving in with a cat  ",
    )


async def lease_status(db, lease_id):
    result = await db.execute(select(RentalLease.status).where(RentalLease.id == lease_id))
    return result.scalar_one()


async def payment_count(db, lease_id):
    result = await db.execute(
        select(func.count(RentPayment.id)).where(RentPayment.lease_id == lease_id)
    )
    return result.scalar_one()


async def test_create_lease_is_pending_with_snapshots(db, listing, landlord, tenant):
    """Test that a new lease starts PENDING and copies rent and deposit."""
    lease = await RentalLeaseService(db).create_lease(lease_request(listing.id), tenant)

    assert lease.status == RentalLeaseStatus.PENDING
    assert lease.landlord_id == landlord.id
    assert lease.tenant_id == tenant.id
    assert lease.monthly_rent == Decimal("1000.00")
    assert lease.security_deposit == Decimal("2000.00")
    assert lease.notes == "Moving in with a cat"
    assert lease.rental_listing.property.id == listing.property_id


async def test_listing_edits_do_not_change_existing_lease(db, listing, tenant):
    """Test that the lease keeps the rent it was created with."""
    service = RentalLeaseService(db)
    created = await service.create_lease(lease_request(listing.id), tenant)

    listing.monthly_rent = Decimal("1500.00")
    await db.commit()

    detail = await service.get_lease(created.id, tenant)
    assert detail.monthly_rent == Decimal("1000.00")


async def test_create_lease_unknown_listing(db, tenant):
    """Test that a missing listing is NotFound."""
    with pytest.raises(NotFound):
        await RentalLeaseService(db).create_lease(lease_request(uuid.uuid4()), tenant)


async def test_create_lease_inactive_listing(db, factory, rental_property, tenant):
    """Test that a soft-deleted listing cannot be leased."""
    listing = await factory.listing(rental_property, is_active=False)

    with pytest.raises(BadRequest):
        await RentalLeaseService(db).create_lease(lease_request(listing.id), tenant)


async def test_create_lease_when_listing_already_leased(
    db, factory, listing, landlord, tenant, stranger
):
    """Test that a listing with an ACTIVE lease rejects new requests."""
    await factory.lease(listing, landlord, stranger, status=RentalLeaseStatus.ACTIVE)

    with pytest.raises(BadRequest) as exc:
        await RentalLeaseService(db).create_lease(lease_request(listing.id), tenant)
    assert "active lease" in exc.value.detail


async def test_owner_cannot_rent_own_property(db, listing, landlord):
    """Test that the property owner gets Forbidden."""
    with pytest.raises(Forbidden):
        await RentalLeaseService(db).create_lease(lease_request(listing.id), landlord)


@pytest.mark.parametrize(
    "start,end",
    [
        (date(2024, 6, 1), date(2024, 6, 1)),
        (date(2024, 6, 1), date(2024, 5, 1)),
    ],
)
async def test_end_date_must_follow_start_date(db, listing, tenant, start, end):
    """Test that equal or inverted ranges are rejected."""
    with pytest.raises(BadRequest) as exc:
        await RentalLeaseService(db).create_lease(
            lease_request(listing.id, start=start, end=end), tenant
        )
    assert exc.value.detail == "End date must be after start date"


ALL_PAIRS = list(itertools.product(RentalLeaseStatus, RentalLeaseStatus))


@pytest.mark.parametrize("current,target", ALL_PAIRS)
async def test_status_transitions(db, factory, listing, landlord, tenant, current, target):
    """Test every (from, to) pair against the allowed transitions table."""
    lease = await factory.lease(listing, landlord, tenant, status=current)
    lease_id = lease.id
    service = RentalLeaseService(db)

    if target in ALLOWED_LEASE_TRANSITIONS[current]:
        updated = await service.update_status(lease_id, target, landlord)
        assert updated.status == target
    else:
        with pytest.raises(BadRequest):
            await service.update_status(lease_id, target, landlord)
        assert await lease_status(db, lease_id) == current


async def test_tenant_cannot_change_status(db, pending_lease, tenant):
    """Test that a tenant gets Forbidden even for a legal transition."""
    with pytest.raises(Forbidden):
        await RentalLeaseService(db).update_status(
            pending_lease.id, RentalLeaseStatus.CANCELED, tenant
        )
    assert await lease_status(db, pending_lease.id) == RentalLeaseStatus.PENDING


async def test_update_status_unknown_lease(db, landlord):
    """Test that an unknown lease id is NotFound."""
    with pytest.raises(NotFound):
        await RentalLeaseService(db).update_status(
            uuid.uuid4(), RentalLeaseStatus.ACTIVE, landlord
        )


async def test_activation_generates_schedule_and_rents_property(
    db, pending_lease, landlord, rental_property
):
    """Test that activation creates the payments and flips the property."""
    updated = await RentalLeaseService(db).update_status(
        pending_lease.id, RentalLeaseStatus.ACTIVE, landlord
    )

    assert updated.status == RentalLeaseStatus.ACTIVE
    payments = (
        await db.execute(
            select(RentPayment)
            .where(RentPayment.lease_id == pending_lease.id)
            .order_by(RentPayment.due_date)
        )
    ).scalars().all()
    assert len(payments) == 12
    assert payments[0].due_date == date(2024, 1, 1)
    assert payments[-1].due_date == date(2024, 12, 1)
    assert all(p.status == RentPaymentStatus.DUE for p in payments)

    status = (
        await db.execute(select(Property.status).where(Property.id == rental_property.id))
    ).scalar_one()
    assert status == PropertyStatus.RENTED


async def test_activation_uses_listing_escalation(db, factory, rental_property, landlord, tenant):
    """Test that the listing's escalation policy drives the generated amounts."""
    listing = await factory.listing(
        rental_property,
        rent_escalation_enabled=True,
        escalation_percentage=Decimal("10"),
        escalation_interval_months=12,
    )
    lease = await factory.lease(
        listing, landlord, tenant, end_date=date(2025, 12, 31)
    )

    await RentalLeaseService(db).update_status(lease.id, RentalLeaseStatus.ACTIVE, landlord)

    amounts = (
        await db.execute(
            select(RentPayment.amount)
            .where(RentPayment.lease_id == lease.id)
            .order_by(RentPayment.due_date)
        )
    ).scalars().all()
    assert len(amounts) == 24
    assert amounts[11] == Decimal("1000.00")
    assert amounts[12] == Decimal("1100.00")


async def test_second_activation_on_same_listing_fails(
    db, factory, listing, landlord, tenant, stranger
):
    """Test that only one lease per listing can become ACTIVE."""
    first = await factory.lease(listing, landlord, tenant)
    second = await factory.lease(listing, landlord, stranger)
    first_id, second_id = first.id, second.id
    service = RentalLeaseService(db)

    await service.update_status(first_id, RentalLeaseStatus.ACTIVE, landlord)

    with pytest.raises(BadRequest):
        await service.update_status(second_id, RentalLeaseStatus.ACTIVE, landlord)

    assert await lease_status(db, second_id) == RentalLeaseStatus.PENDING
    assert await payment_count(db, second_id) == 0
    assert await payment_count(db, first_id) == 12


async def test_activation_rolls_back_when_payment_insert_fails(
    db, pending_lease, landlord, rental_property, monkeypatch
):
    """Test that a failure after the property update leaves the lease PENDING."""
    lease_id = pending_lease.id
    property_id = rental_property.id

    async def broken_bulk_create(self, rows):
        raise RuntimeError("payment insert failed")

    monkeypatch.setattr(RentPaymentRepo, "bulk_create", broken_bulk_create)

    with pytest.raises(RuntimeError):
        await RentalLeaseService(db).update_status(
            lease_id, RentalLeaseStatus.ACTIVE, landlord
        )

    assert await lease_status(db, lease_id) == RentalLeaseStatus.PENDING
    assert await payment_count(db, lease_id) == 0
    status = (
        await db.execute(select(Property.status).where(Property.id == property_id))
    ).scalar_one()
    assert status == PropertyStatus.AVAILABLE


@pytest.mark.parametrize(
    "database_message,expected",
    [
        ("UNIQUE constraint failed: rental_leases.rental_listing_id", BadRequest),
        (
            'duplicate key value violates unique constraint "uq_one_active_lease_per_listing"',
            BadRequest,
        ),
        ("NOT NULL constraint failed: rent_payments.amount", IntegrityError),
        ("FOREIGN KEY constraint failed", IntegrityError),
    ],
)
async def test_activation_maps_only_active_lease_conflicts(
    db, pending_lease, landlord, monkeypatch, database_message, expected
):
    """Test that only the one-active-lease index becomes a friendly BadRequest."""
    lease_id = pending_lease.id

    async def failing_bulk_create(self, rows):
        raise IntegrityError("INSERT INTO rent_payments", {}, Exception(database_message))

    monkeypatch.setattr(RentPaymentRepo, "bulk_create", failing_bulk_create)

    with pytest.raises(expected):
        await RentalLeaseService(db).update_status(
            lease_id, RentalLeaseStatus.ACTIVE, landlord
        )

    assert await lease_status(db, lease_id) == RentalLeaseStatus.PENDING


async def test_get_lease_includes_payments_and_stats(db, pending_lease, landlord, tenant):
    """Test the lease detail view for both parties."""
    service = RentalLeaseService(db)
    await service.update_status(pending_lease.id, RentalLeaseStatus.ACTIVE, landlord)

    for user in (landlord, tenant):
        detail = await service.get_lease(pending_lease.id, user)
        assert len(detail.payments) == 12
        assert detail.payments[0].due_date < detail.payments[-1].due_date
        assert detail.payment_stats.total_payments == 12
        assert detail.payment_stats.total_due == Decimal("12000.00")


async def test_get_lease_access_control(db, pending_lease, stranger):
    """Test that outsiders are refused and unknown ids are NotFound."""
    service = RentalLeaseService(db)

    with pytest.raises(Forbidden):
        await service.get_lease(pending_lease.id, stranger)
    with pytest.raises(NotFound):
        await service.get_lease(uuid.uuid4(), stranger)


async def test_list_leases_by_role_and_status(
    db, factory, listing, landlord, tenant, stranger
):
    """Test landlord and tenant views with the next unresolved payment attached."""
    service = RentalLeaseService(db)
    active = await factory.lease(listing, landlord, tenant)
    await factory.lease(listing, landlord, stranger)
    await service.update_status(active.id, RentalLeaseStatus.ACTIVE, landlord)

    landlord_view = await service.list_leases(landlord, as_landlord=True)
    assert len(landlord_view) == 2

    tenant_view = await service.list_leases(tenant, as_landlord=False)
    assert [lease.id for lease in tenant_view] == [active.id]
    assert tenant_view[0].next_payment.due_date == date(2024, 1, 1)

    pending_only = await service.list_leases(
        landlord, as_landlord=True, status=RentalLeaseStatus.PENDING
    )
    assert len(pending_only) == 1
    assert pending_only[0].tenant_id == stranger.id
    assert pending_only[0].next_payment is None

    assert await service.list_leases(tenant, as_landlord=True) == []
