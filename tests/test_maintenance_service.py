"""Tests for maintenance requests."""

import uuid

import pytest

from core.errors import Forbidden, NotFound
from models.enums import MaintenancePriority, MaintenanceStatus, RentalLeaseStatus
from schemas.schema import MaintenanceRequestSchema, MaintenanceRequestUpdateSchema
from services.maintenance_service import MaintenanceService, append_note


def leak_report(property_id, **overrides):
    values = {
        "property_id": property_id,
        "title": "  Kitchen sink leaking ",
        "description": "Water under the sink since Monday",
    }
    values.update(overrides)
    return MaintenanceRequestSchema(**values)


@pytest.fixture
async def renting_tenant(factory, listing, landlord, tenant):
    await factory.lease(listing, landlord, tenant, status=RentalLeaseStatus.ACTIVE)
    return tenant


def test_append_note_stamps_and_separates():
    """Test that notes are timestamped and appended after a blank line."""
    first = append_note(None, "Plumber booked")
    assert first.startswith("[") and first.endswith("] Plumber booked")

    second = append_note(first, "Fixed")
    assert second.startswith(first + "\n\n[")
    assert second.endswith("] Fixed")


async def test_owner_files_request(db, rental_property, landlord):
    """Test that the property owner can file a request with defaults."""
    created = await MaintenanceService(db).create_request(
        leak_report(rental_property.id), landlord
    )

    assert created.title == "Kitchen sink leaking"
    assert created.status == MaintenanceStatus.PENDING
    assert created.priority == MaintenancePriority.MEDIUM
    assert created.requested_by == landlord.id
    assert created.property.id == rental_property.id


async def test_active_tenant_files_request(db, rental_property, renting_tenant):
    """Test that a tenant with an ACTIVE lease can file a request."""
    created = await MaintenanceService(db).create_request(
        leak_report(rental_property.id, priority=MaintenancePriority.URGENT),
        renting_tenant,
    )

    assert created.priority == MaintenancePriority.URGENT
    assert created.requester.id == renting_tenant.id


async def test_pending_tenant_cannot_file_request(db, rental_property, pending_lease, tenant):
    """Test that a lease must be ACTIVE to grant access."""
    with pytest.raises(Forbidden):
        await MaintenanceService(db).create_request(leak_report(rental_property.id), tenant)


async def test_unknown_property(db, landlord):
    """Test that a missing property is NotFound."""
    with pytest.raises(NotFound):
        await MaintenanceService(db).create_request(leak_report(uuid.uuid4()), landlord)


async def test_list_requests(db, rental_property, landlord, renting_tenant, stranger):
    """Test per-property and per-user listings with status filter."""
    service = MaintenanceService(db)
    mine = await service.create_request(leak_report(rental_property.id), renting_tenant)
    await service.create_request(
        leak_report(rental_property.id, title="Broken window"), landlord
    )
    await service.update_request(
        mine.id, MaintenanceRequestUpdateSchema(status=MaintenanceStatus.COMPLETED), landlord
    )

    by_property = await service.list_requests(landlord, property_id=rental_property.id)
    assert len(by_property) == 2

    completed = await service.list_requests(
        landlord, property_id=rental_property.id, status=MaintenanceStatus.COMPLETED
    )
    assert [r.id for r in completed] == [mine.id]

    assert len(await service.list_requests(landlord)) == 2
    assert [r.id for r in await service.list_requests(renting_tenant)] == [mine.id]
    assert await service.list_requests(stranger) == []

    with pytest.raises(Forbidden):
        await service.list_requests(stranger, property_id=rental_property.id)


async def test_update_request(db, rental_property, landlord, renting_tenant, stranger):
    """Test status, priority and note updates with access checks."""
    service = MaintenanceService(db)
    created = await service.create_request(leak_report(rental_property.id), renting_tenant)

    updated = await service.update_request(
        created.id,
        MaintenanceRequestUpdateSchema(
            status=MaintenanceStatus.IN_PROGRESS,
            priority=MaintenancePriority.HIGH,
            notes="Plumber booked for Friday",
        ),
        landlord,
    )
    assert updated.status == MaintenanceStatus.IN_PROGRESS
    assert updated.priority == MaintenancePriority.HIGH
    assert updated.notes.endswith("Plumber booked for Friday")

    again = await service.update_request(
        created.id, MaintenanceRequestUpdateSchema(notes="Fixed"), renting_tenant
    )
    assert "Plumber booked for Friday" in again.notes
    assert again.notes.endswith("] Fixed")
    assert again.status == MaintenanceStatus.IN_PROGRESS

    with pytest.raises(Forbidden):
        await service.update_request(
            created.id, MaintenanceRequestUpdateSchema(notes="hi"), stranger
        )
    with pytest.raises(NotFound):
        await service.get_request(uuid.uuid4(), landlord)
