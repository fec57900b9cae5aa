import logging
import uuid
from decimal import Decimal
from typing import Optional

from sqlalchemy.exc import IntegrityError

from core.check_permission import CheckRolePermission
from core.errors import BadRequest, NotFound
from core.mapper import ORMMapper
from core.paginate import PaginatePage
from models.models import RentalListing
from repos.property_repo import PropertyRepo
from repos.rental_listing_repo import RentalListingRepo
from repos.user_repo import UserRepo
from schemas.schema import (
    ActiveLeaseSummaryOut,
    EscalationUpdateSchema,
    PaginatedRentalListing,
    RentalListingDetailOut,
    RentalListingOut,
    RentalListingSchema,
    RentalListingUpdateSchema,
)

logger = logging.getLogger(__name__)


class RentalListingService:
    def __init__(self, db):
        self.repo: RentalListingRepo = RentalListingRepo(db)
        self.property_repo: PropertyRepo = PropertyRepo(db)
        self.user_repo: UserRepo = UserRepo(db)
        self.paginate: PaginatePage = PaginatePage()
        self.mapper: ORMMapper = ORMMapper()
        self.permission: CheckRolePermission = CheckRolePermission()

    async def check_listing_owner(
        self, listing_id: uuid.UUID, current_user, detail: str
    ) -> RentalListing:
        listing = await self.repo.get_listing_id(listing_id)
        if not listing:
            raise NotFound("Rental listing not found")
        await self.permission.check_property_owner(listing.property, current_user, detail)
        return listing

    async def _apply_changes(self, listing: RentalListing, changes: dict) -> RentalListingOut:
        listing_id = listing.id
        try:
            await self.repo.update(listing, **changes)
            await self.repo.db_commit()
        except Exception:
            await self.repo.db_rollback()
            raise

        logger.info(f"Rental listing {listing_id} updated: {sorted(changes)}")
        updated = await self.repo.get_listing_id(listing_id)
        return self.mapper.one(updated, RentalListingOut)

    async def get_all_listings(
        self,
        page: int = 1,
        per_page: int = 8,
        location: Optional[str] = None,
        min_rent: Optional[Decimal] = None,
        max_rent: Optional[Decimal] = None,
        bedrooms: Optional[int] = None,
    ) -> PaginatedRentalListing:
        page, per_page = self.paginate.normalize(page, per_page)
        listings, total = await self.repo.get_all(
            offset=self.paginate.offset(page, per_page),
            limit=per_page,
            location=location,
            min_rent=min_rent,
            max_rent=max_rent,
            bedrooms=bedrooms,
        )
        items = self.mapper.many(listings, RentalListingOut)
        return PaginatedRentalListing(
            **self.paginate.page_dict(items, total, page, per_page)
        )

    async def get_listing(self, listing_id: uuid.UUID) -> RentalListingDetailOut:
        listing = await self.repo.get_listing_id(listing_id)
        if not listing:
            raise NotFound("Rental listing not found")

        active_lease = await self.repo.get_active_lease(listing_id)
        return self.mapper.one(
            listing,
            RentalListingDetailOut,
            active_lease=(
                self.mapper.one(active_lease, ActiveLeaseSummaryOut)
                if active_lease
                else None
            ),
        )

    async def create_listing(
        self, data: RentalListingSchema, current_user
    ) -> RentalListingOut:
        prop = await self.property_repo.get_by_id(data.property_id)
        if not prop:
            raise NotFound("Property not found")
        await self.permission.check_property_owner(
            prop, current_user, "You can only create rental listings for your own properties"
        )
        if await self.repo.get_by_property(prop.id):
            raise BadRequest("A rental listing already exists for this property")

        try:
            await self.property_repo.mark_for_rent(prop.id)
            promoted = await self.user_repo.promote_to_landlord(current_user.id)
            listing = await self.repo.create(data.model_dump())
            listing_id = listing.id
            await self.repo.db_commit()
        except IntegrityError:
            await self.repo.db_rollback()
            raise BadRequest("A rental listing already exists for this property")
        except Exception:
            await self.repo.db_rollback()
            raise

        logger.info(f"Rental listing {listing_id} created for property {data.property_id}")
        if promoted:
            logger.info(f"User {current_user.id} promoted to LANDLORD")

        created = await self.repo.get_listing_id(listing_id)
        return self.mapper.one(created, RentalListingOut)

    async def update_listing(
        self, listing_id: uuid.UUID, data: RentalListingUpdateSchema, current_user
    ) -> RentalListingOut:
        listing = await self.check_listing_owner(
            listing_id, current_user, "You can only update your own rental listings"
        )
        changes = {
            key: value
            for key, value in data.model_dump(exclude_unset=True).items()
            if value is not None
        }
        if not changes:
            raise BadRequest("No fields provided for update.")
        return await self._apply_changes(listing, changes)

    async def update_escalation(
        self, listing_id: uuid.UUID, data: EscalationUpdateSchema, current_user
    ) -> RentalListingOut:
        listing = await self.check_listing_owner(
            listing_id, current_user, "You can only update your own rental listings"
        )
        changes = {
            key: value
            for key, value in data.model_dump(exclude_unset=True).items()
            if value is not None
        }
        if not changes:
            raise BadRequest("No escalation settings provided.")
        return await self._apply_changes(listing, changes)

    async def delete_listing(self, listing_id: uuid.UUID, current_user) -> RentalListingOut:
        listing = await self.check_listing_owner(
            listing_id, current_user, "You can only delete your own rental listings"
        )
        try:
            await self.repo.update(listing, is_active=False)
            await self.repo.db_commit()
        except Exception:
            await self.repo.db_rollback()
            raise

        logger.info(f"Rental listing {listing_id} deactivated")
        deleted = await self.repo.get_listing_id(listing_id)
        return self.mapper.one(deleted, RentalListingOut)
