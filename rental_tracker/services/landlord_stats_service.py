import logging
from datetime import date, timedelta
from typing import List, Optional

from core.mapper import ORMMapper
from core.settings import settings
from models.enums import RentalLeaseStatus
from models.utils import utcnow
from repos.property_repo import PropertyRepo
from repos.rent_payment_repo import RentPaymentRepo
from repos.rental_lease_repo import RentalLeaseRepo
from repos.rental_listing_repo import RentalListingRepo
from schemas.schema import (
    CurrentLeaseOut,
    LandlordOverviewItemOut,
    LandlordStatsOut,
    LocationCountOut,
    PropertySummaryOut,
    RentPaymentOut,
    UpcomingPaymentOut,
    UserBaseOut,
)

logger = logging.getLogger(__name__)


class LandlordStatsService:
    def __init__(self, db):
        self.listing_repo: RentalListingRepo = RentalListingRepo(db)
        self.lease_repo: RentalLeaseRepo = RentalLeaseRepo(db)
        self.payment_repo: RentPaymentRepo = RentPaymentRepo(db)
        self.property_repo: PropertyRepo = PropertyRepo(db)
        self.mapper: ORMMapper = ORMMapper()

    @staticmethod
    def _active_lease(listing):
        return next(
            (lease for lease in listing.leases if lease.status == RentalLeaseStatus.ACTIVE),
            None,
        )

    async def get_stats(self, current_user, today: Optional[date] = None) -> LandlordStatsOut:
        today = today or utcnow().date()
        landlord_id = current_user.id

        listings = await self.listing_repo.get_active_by_owner(landlord_id)
        occupied = sum(1 for listing in listings if self._active_lease(listing))

        upcoming = await self.payment_repo.upcoming_for_landlord(
            landlord_id,
            today,
            today + timedelta(days=settings.LANDLORD_STATS_UPCOMING_DAYS),
        )
        upcoming_out = [
            UpcomingPaymentOut(
                **self.mapper.one(payment, RentPaymentOut).model_dump(),
                tenant=self.mapper.one(payment.lease.tenant, UserBaseOut),
                property=self.mapper.one(
                    payment.lease.rental_listing.property, PropertySummaryOut
                ),
            )
            for payment in upcoming
        ]

        locations = await self.property_repo.top_rental_locations(landlord_id)

        return LandlordStatsOut(
            total_rental_properties=len(listings),
            occupied_properties=occupied,
            vacant_properties=len(listings) - occupied,
            active_leases=await self.lease_repo.count_for_landlord(
                landlord_id, RentalLeaseStatus.ACTIVE
            ),
            pending_leases=await self.lease_repo.count_for_landlord(
                landlord_id, RentalLeaseStatus.PENDING
            ),
            overdue_payments_count=await self.payment_repo.count_overdue_for_landlord(
                landlord_id
            ),
            upcoming_due=upcoming_out,
            top_locations=[
                LocationCountOut(location=location, count=count)
                for location, count in locations
            ],
        )

    async def get_overview(self, current_user) -> List[LandlordOverviewItemOut]:
        listings = await self.listing_repo.get_active_by_owner(current_user.id)
        active_leases = {listing.id: self._active_lease(listing) for listing in listings}
        next_payments = await self.payment_repo.next_unresolved_for_leases(
            [lease.id for lease in active_leases.values() if lease]
        )

        overview = []
        for listing in listings:
            lease = active_leases[listing.id]
            next_payment = next_payments.get(lease.id) if lease else None
            overview.append(
                LandlordOverviewItemOut(
                    listing_id=listing.id,
                    property=self.mapper.one(listing.property, PropertySummaryOut),
                    monthly_rent=listing.monthly_rent,
                    is_occupied=lease is not None,
                    current_lease=(
                        CurrentLeaseOut(
                            id=lease.id,
                            tenant=self.mapper.one(lease.tenant, UserBaseOut),
                            status=lease.status,
                            start_date=lease.start_date,
                            end_date=lease.end_date,
                        )
                        if lease
                        else None
                    ),
                    next_due_date=next_payment.due_date if next_payment else None,
                    next_due_amount=next_payment.amount if next_payment else None,
                    next_due_status=next_payment.status if next_payment else None,
                )
            )
        return overview
