import logging
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import formataddr
from html import escape

import aiosmtplib
from tenacity import retry, stop_after_attempt, wait_exponential

from core.breaker import mail_breaker
from core.settings import settings

logger = logging.getLogger(__name__)


def _build_message(to_email: str, subject: str, html_content: str) -> MIMEMultipart:
    message = MIMEMultipart("alternative")
    message["Subject"] = subject
    message["From"] = formataddr((settings.EMAIL_SENDER_NAME, settings.EMAIL_USER))
    message["To"] = to_email
    message.attach(MIMEText(html_content, "html"))
    return message


@retry(
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=1, max=8),
    reraise=True,
)
async def _deliver(message: MIMEMultipart):
    await aiosmtplib.send(
        message,
        hostname=settings.EMAIL_SERVER,
        port=settings.EMAIL_PORT,
        username=settings.EMAIL_USER,
        password=settings.EMAIL_PASSWORD,
        start_tls=settings.EMAIL_USE_TLS,
    )


async def _send(to_email: str, subject: str, html_content: str) -> bool:
    if not settings.smtp_configured:
        logger.warning(f"SMTP is not configured, skipping '{subject}' to {to_email}")
        return False

    message = _build_message(to_email, subject, html_content)
    try:
        await mail_breaker.call(_deliver, message)
    except Exception as e:
        logger.error(f"Error sending '{subject}' to {to_email}: {e}")
        raise
    return True


def _lease_block(context: dict) -> str:
    return f"""
            <table style="border-collapse: collapse;">
                <tr><td><strong>Property:</strong></td><td>{escape(context["property_address"])}</td></tr>
                <tr><td><strong>Amount:</strong></td><td>{context["amount"]}</td></tr>
                <tr><td><strong>Due date:</strong></td><td>{escape(context["due_date"])}</td></tr>
            </table>
            <p>If you have any questions, contact your landlord
            {escape(context["landlord_name"])} at {escape(context["landlord_email"])}.</p>
    """


async def send_rent_due_warning(tenant_email: str, context: dict) -> bool:
    html_content = f"""
    <html>
    <body style="font-family: Arial, sans-serif; line-height: 1.6;">
        <h2>Rent Payment Reminder</h2>
        <p>Hello {escape(context["tenant_name"])},</p>
        <p>This is a friendly reminder that your rent payment is due soon.</p>
        {_lease_block(context)}
        <p>Please make sure your payment is made on time.</p>
        <p>Best regards,<br>{escape(settings.EMAIL_SENDER_NAME)}</p>
    </body>
    </html>
    """
    return await _send(tenant_email, "Rent Payment Reminder", html_content)


async def send_rent_overdue_notification(tenant_email: str, context: dict) -> bool:
    days = context["days_overdue"]
    html_content = f"""
    <html>
    <body style="font-family: Arial, sans-serif; line-height: 1.6;">
        <h2 style="color:#c0392b;">Rent Payment Overdue</h2>
        <p>Hello {escape(context["tenant_name"])},</p>
        <p>Your rent payment is <strong>{days} day(s) overdue</strong>.</p>
        {_lease_block(context)}
        <p>Please settle the outstanding amount as soon as possible.</p>
        <p>Best regards,<br>{escape(settings.EMAIL_SENDER_NAME)}</p>
    </body>
    </html>
    """
    return await _send(tenant_email, "Rent Payment Overdue", html_content)
