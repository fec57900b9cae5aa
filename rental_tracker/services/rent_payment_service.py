import logging
import uuid
from datetime import date, timedelta
from typing import List, Optional

from core.check_permission import CheckRolePermission
from core.errors import BadRequest, NotFound
from core.mapper import ORMMapper
from models.enums import RentPaymentStatus
from models.models import RentPayment
from models.utils import to_money, utcnow
from repos.rent_payment_repo import RentPaymentRepo
from repos.rental_lease_repo import RentalLeaseRepo
from schemas.schema import PaymentStatsOut, RecordPaymentSchema, RentPaymentOut

logger = logging.getLogger(__name__)


class RentPaymentService:
    def __init__(self, db):
        self.repo: RentPaymentRepo = RentPaymentRepo(db)
        self.lease_repo: RentalLeaseRepo = RentalLeaseRepo(db)
        self.mapper: ORMMapper = ORMMapper()
        self.permission: CheckRolePermission = CheckRolePermission()

    async def _get_payment(self, payment_id: uuid.UUID) -> RentPayment:
        payment = await self.repo.get_by_id(payment_id)
        if not payment:
            raise NotFound("Payment not found")
        return payment

    def _ensure_unsettled(self, payment: RentPayment):
        if payment.status == RentPaymentStatus.PAID:
            raise BadRequest("Payment is already marked as paid")
        if payment.status == RentPaymentStatus.WAIVED:
            raise BadRequest("Payment has been waived")

    async def _transition(
        self,
        payment: RentPayment,
        log_event: str,
        **values,
    ) -> RentPaymentOut:
        payment_id = payment.id
        changed = await self.repo.update_if_status(
            payment_id, expected=payment.status, **values
        )
        if not changed:
            await self.repo.db_rollback()
            raise BadRequest("Payment was updated by another request, please retry")
        await self.repo.db_commit()

        logger.info(f"Rent payment {payment_id} {log_event}")
        updated = await self.repo.get_by_id(payment_id)
        return self.mapper.one(updated, RentPaymentOut)

    async def list_payments(
        self, lease_id: uuid.UUID, current_user
    ) -> List[RentPaymentOut]:
        lease = await self.lease_repo.get_by_id(lease_id)
        if not lease:
            raise NotFound("Lease not found")
        await self.permission.check_lease_party(lease, current_user)

        payments = await self.repo.list_by_lease(lease_id)
        return self.mapper.many(payments, RentPaymentOut)

    async def _settle(
        self,
        payment: RentPayment,
        data: RecordPaymentSchema,
        today: Optional[date] = None,
    ) -> RentPaymentOut:
        self._ensure_unsettled(payment)
        values = {
            "status": RentPaymentStatus.PAID,
            "paid_date": today or utcnow().date(),
            "payment_method": data.payment_method,
        }
        if data.notes is not None:
            values["notes"] = data.notes
        return await self._transition(payment, "marked as paid", **values)

    async def mark_paid(
        self,
        payment_id: uuid.UUID,
        data: RecordPaymentSchema,
        current_user,
        today: Optional[date] = None,
    ) -> RentPaymentOut:
        payment = await self._get_payment(payment_id)
        await self.permission.check_lease_party(payment.lease, current_user)
        return await self._settle(payment, data, today)

    async def record_payment(
        self,
        payment_id: uuid.UUID,
        data: RecordPaymentSchema,
        current_user,
        today: Optional[date] = None,
    ) -> RentPaymentOut:
        payment = await self._get_payment(payment_id)
        await self.permission.check_lease_landlord(
            payment.lease, current_user, "Only the landlord can record payments"
        )
        return await self._settle(payment, data, today)

    async def waive_payment(self, payment_id: uuid.UUID, current_user) -> RentPaymentOut:
        payment = await self._get_payment(payment_id)
        await self.permission.check_lease_landlord(
            payment.lease, current_user, "Only the landlord can waive rent payments"
        )
        if payment.status == RentPaymentStatus.PAID:
            raise BadRequest("Cannot waive a payment that is paid")
        if payment.status == RentPaymentStatus.WAIVED:
            raise BadRequest("Payment is already waived")

        return await self._transition(
            payment, "waived", status=RentPaymentStatus.WAIVED
        )

    async def mark_overdue(self, payment_id: uuid.UUID) -> RentPaymentOut:
        """Flip a DUE payment to OVERDUE. Called by the notification job."""
        payment = await self._get_payment(payment_id)
        if payment.status != RentPaymentStatus.DUE:
            raise BadRequest("Only DUE payments can be marked overdue")

        return await self._transition(
            payment, "marked overdue", status=RentPaymentStatus.OVERDUE
        )

    async def find_upcoming_payments(
        self, days_ahead: int = 3, today: Optional[date] = None
    ) -> List[RentPayment]:
        today = today or utcnow().date()
        return await self.repo.find_due_between(today, today + timedelta(days=days_ahead))

    async def find_overdue_payments(self, today: Optional[date] = None) -> List[RentPayment]:
        today = today or utcnow().date()
        return await self.repo.find_due_before(today)

    async def get_payment_stats(self, lease_id: uuid.UUID) -> PaymentStatsOut:
        stats = PaymentStatsOut()
        total_payments = 0
        for status, amount, count in await self.repo.totals_by_status(lease_id):
            total_payments += count
            if status == RentPaymentStatus.PAID:
                stats.total_paid, stats.paid_count = to_money(amount), count
            elif status == RentPaymentStatus.DUE:
                stats.total_due, stats.due_count = to_money(amount), count
            elif status == RentPaymentStatus.OVERDUE:
                stats.total_overdue, stats.overdue_count = to_money(amount), count
        stats.total_payments = total_payments
        return stats
