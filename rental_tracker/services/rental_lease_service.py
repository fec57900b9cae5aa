import logging
import uuid
from typing import List, Optional

from sqlalchemy.exc import IntegrityError

from core.check_permission import CheckRolePermission
from core.errors import BadRequest, Forbidden, NotFound
from core.mapper import ORMMapper
from models.enums import ALLOWED_LEASE_TRANSITIONS, PropertyStatus, RentalLeaseStatus
from models.models import ACTIVE_LEASE_INDEX, RentalLease
from repos.property_repo import PropertyRepo
from repos.rent_payment_repo import RentPaymentRepo
from repos.rental_lease_repo import RentalLeaseRepo
from repos.rental_listing_repo import RentalListingRepo
from schemas.schema import (
    RentalLeaseDetailOut,
    RentalLeaseOut,
    RentalLeaseSchema,
    RentalLeaseSummaryOut,
    RentPaymentOut,
)

from .payment_schedule import EscalationPolicy, generate_payment_schedule
from .rent_payment_service import RentPaymentService

logger = logging.getLogger(__name__)


def is_active_lease_conflict(error: IntegrityError) -> bool:
    # Postgres names the index; SQLite only reports the indexed column.
    message = str(error.orig)
    return (
        ACTIVE_LEASE_INDEX in message
        or f"{RentalLease.__tablename__}.rental_listing_id" in message
    )


class RentalLeaseService:
    def __init__(self, db):
        self.repo: RentalLeaseRepo = RentalLeaseRepo(db)
        self.listing_repo: RentalListingRepo = RentalListingRepo(db)
        self.property_repo: PropertyRepo = PropertyRepo(db)
        self.payment_repo: RentPaymentRepo = RentPaymentRepo(db)
        self.payment_service: RentPaymentService = RentPaymentService(db)
        self.mapper: ORMMapper = ORMMapper()
        self.permission: CheckRolePermission = CheckRolePermission()

    async def create_lease(self, data: RentalLeaseSchema, current_user) -> RentalLeaseOut:
        listing = await self.listing_repo.get_listing_id(data.rental_listing_id)
        if not listing:
            raise NotFound("Rental listing not found")
        if not listing.is_active:
            raise BadRequest("This rental listing is no longer available")
        if await self.repo.has_active_lease(listing.id):
            raise BadRequest("This listing already has an active lease")

        landlord_id = listing.property.owner_id
        if landlord_id == current_user.id:
            raise Forbidden("You cannot rent your own property")
        if data.end_date <= data.start_date:
            raise BadRequest("End date must be after start date")

        lease = await self.repo.create(
            {
                "rental_listing_id": listing.id,
                "landlord_id": landlord_id,
                "tenant_id": current_user.id,
                "start_date": data.start_date,
                "end_date": data.end_date,
                "monthly_rent": listing.monthly_rent,
                "security_deposit": listing.security_deposit,
                "payment_day": data.payment_day,
                "status": RentalLeaseStatus.PENDING,
                "notes": data.notes,
            }
        )
        lease_id = lease.id
        await self.repo.db_commit()
        logger.info(
            f"Lease {lease_id} requested by tenant {current_user.id} "
            f"for listing {listing.id}"
        )

        created = await self.repo.get_with_relations(lease_id)
        return self.mapper.one(created, RentalLeaseOut)

    async def get_lease(self, lease_id: uuid.UUID, current_user) -> RentalLeaseDetailOut:
        lease = await self.repo.get_with_relations(lease_id, with_payments=True)
        if not lease:
            raise NotFound("Lease not found")
        await self.permission.check_lease_party(lease, current_user)

        stats = await self.payment_service.get_payment_stats(lease_id)
        return self.mapper.one(lease, RentalLeaseDetailOut, payment_stats=stats)

    async def list_leases(
        self,
        current_user,
        as_landlord: bool = True,
        status: Optional[RentalLeaseStatus] = None,
    ) -> List[RentalLeaseSummaryOut]:
        leases = await self.repo.list_for_user(
            current_user.id, as_landlord=as_landlord, status=status
        )
        next_payments = await self.payment_repo.next_unresolved_for_leases(
            [lease.id for lease in leases]
        )

        results = []
        for lease in leases:
            next_payment = next_payments.get(lease.id)
            results.append(
                self.mapper.one(
                    lease,
                    RentalLeaseSummaryOut,
                    next_payment=(
                        self.mapper.one(next_payment, RentPaymentOut)
                        if next_payment
                        else None
                    ),
                )
            )
        return results

    async def update_status(
        self, lease_id: uuid.UUID, status: RentalLeaseStatus, current_user
    ) -> RentalLeaseOut:
        lease = await self.repo.get_by_id(lease_id)
        if not lease:
            raise NotFound("Lease not found")
        await self.permission.check_lease_landlord(
            lease, current_user, "Only the landlord can update lease status"
        )

        current = lease.status
        if status not in ALLOWED_LEASE_TRANSITIONS.get(current, frozenset()):
            raise BadRequest(
                f"Cannot change lease status from {current.value} to {status.value}"
            )

        if status == RentalLeaseStatus.ACTIVE:
            await self.activate_lease(lease)
        else:
            if not await self.repo.set_status(lease_id, status, expected=current):
                await self.repo.db_rollback()
                raise BadRequest("Lease status changed by another request, please retry")
            await self.repo.db_commit()
            logger.info(f"Lease {lease_id} moved from {current.value} to {status.value}")

        updated = await self.repo.get_with_relations(lease_id)
        return self.mapper.one(updated, RentalLeaseOut)

    async def activate_lease(self, lease: RentalLease) -> int:
        """Activate a PENDING lease and persist its payment schedule.

        The lease flip, the property status change and the payment insert
        share one transaction; any failure rolls all three back.
        """
        lease_id = lease.id
        listing_id = lease.rental_listing_id

        listing = await self.listing_repo.get_by_id(listing_id)
        if not listing:
            raise NotFound("Rental listing not found")
        policy = EscalationPolicy.from_listing(listing)
        property_id = listing.property_id
        schedule = generate_payment_schedule(lease, policy)

        try:
            if await self.repo.has_active_lease(listing_id, exclude_lease_id=lease_id):
                raise BadRequest("This listing already has an active lease")
            if not await self.repo.mark_active_if_pending(lease_id):
                raise BadRequest("Only PENDING leases can be activated")
            await self.property_repo.set_status(property_id, PropertyStatus.RENTED)
            created = await self.payment_repo.bulk_create(
                payment.as_row() for payment in schedule
            )
            await self.repo.db_commit()
        except IntegrityError as e:
            await self.repo.db_rollback()
            if is_active_lease_conflict(e):
                raise BadRequest("This listing already has an active lease")
            raise
        except Exception:
            await self.repo.db_rollback()
            raise

        logger.info(f"Lease {lease_id} activated with {created} scheduled payments")
        return created
