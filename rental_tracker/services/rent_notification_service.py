import logging
from datetime import date
from typing import Optional

from core.settings import settings
from email_notify import email_service
from models.models import RentPayment
from models.utils import utcnow

from .rent_payment_service import RentPaymentService

logger = logging.getLogger("rent.notifications")

DEFAULT_UPCOMING_WINDOW_DAYS = 3


def format_due_date(value: date) -> str:
    return f"{value:%B} {value.day}, {value.year}"


def build_notice_context(payment: RentPayment) -> dict:
    lease = payment.lease
    prop = lease.rental_listing.property
    return {
        "tenant_name": lease.tenant.full_name,
        "property_address": f"{prop.address}, {prop.location}",
        "amount": f"{payment.amount:,.2f}",
        "due_date": format_due_date(payment.due_date),
        "landlord_name": lease.landlord.full_name,
        "landlord_email": lease.landlord.email,
    }


class RentNotificationService:
    """Daily scan that reminds tenants of upcoming rent and flags overdue rent.

    ``notifier`` needs ``send_rent_due_warning`` and
    ``send_rent_overdue_notification`` coroutines taking an email address and
    a context dict; the email_service module is used when none is given.
    """

    def __init__(self, db, notifier=None):
        self.payment_service: RentPaymentService = RentPaymentService(db)
        self.notifier = notifier or email_service

    def _window_days(self, days_ahead: Optional[int]) -> int:
        days = settings.RENT_UPCOMING_WINDOW_DAYS if days_ahead is None else days_ahead
        if days < 1:
            logger.error(
                f"Invalid RENT_UPCOMING_WINDOW_DAYS value {days}, "
                f"using default of {DEFAULT_UPCOMING_WINDOW_DAYS} days"
            )
            return DEFAULT_UPCOMING_WINDOW_DAYS
        return days

    async def send_upcoming_reminders(
        self, today: date, days_ahead: Optional[int] = None
    ) -> tuple[int, int]:
        days = self._window_days(days_ahead)
        payments = await self.payment_service.find_upcoming_payments(days, today=today)
        logger.info(f"Found {len(payments)} upcoming payments within {days} days")

        notices = [
            (payment.id, payment.lease.tenant.email, build_notice_context(payment))
            for payment in payments
        ]

        sent = failures = 0
        for payment_id, tenant_email, context in notices:
            try:
                await self.notifier.send_rent_due_warning(tenant_email, context)
                sent += 1
                logger.info(f"Sent upcoming rent reminder to {tenant_email}")
            except Exception:
                failures += 1
                logger.exception(f"Failed to send reminder for payment {payment_id}")
        return sent, failures

    async def handle_overdue_payments(self, today: date) -> tuple[int, int]:
        payments = await self.payment_service.find_overdue_payments(today=today)
        logger.info(f"Found {len(payments)} overdue payments")

        # Rendered up front: a rollback on one item expires every loaded row.
        notices = []
        for payment in payments:
            context = build_notice_context(payment)
            context["days_overdue"] = (today - payment.due_date).days
            notices.append((payment.id, payment.lease.tenant.email, context))

        marked = failures = 0
        for payment_id, tenant_email, context in notices:
            try:
                await self.payment_service.mark_overdue(payment_id)
                marked += 1
                await self.notifier.send_rent_overdue_notification(tenant_email, context)
                logger.info(
                    f"Marked payment {payment_id} as overdue and sent notification "
                    f"to {tenant_email}"
                )
            except Exception:
                failures += 1
                await self.payment_service.repo.db_rollback()
                logger.exception(f"Failed to handle overdue payment {payment_id}")
        return marked, failures

    async def process_rent_notifications(
        self, today: Optional[date] = None, days_ahead: Optional[int] = None
    ) -> dict:
        today = today or utcnow().date()
        logger.info("Starting rent notification scan...")

        reminders_sent, reminder_failures = await self.send_upcoming_reminders(
            today, days_ahead
        )
        overdue_marked, overdue_failures = await self.handle_overdue_payments(today)

        summary = {
            "reminders_sent": reminders_sent,
            "overdue_marked": overdue_marked,
            "failures": reminder_failures + overdue_failures,
        }
        logger.info(f"Rent notification scan completed: {summary}")
        return summary
