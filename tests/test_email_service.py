"""Tests for the rent emails."""

from unittest.mock import AsyncMock

import pytest

from core.settings import settings
from email_notify import email_service

CONTEXT = {
    "tenant_name": "Tunde <Tenant>",
    "property_address": "12 Admiralty Way, Lekki, Lagos",
    "amount": "1,000.00",
    "due_date": "April 1, 2024",
    "landlord_name": "Lola Landlord",
    "landlord_email": "lola@example.com",
    "days_overdue": 5,
}


@pytest.fixture
def smtp(monkeypatch):
    monkeypatch.setattr(settings, "EMAIL_SERVER", "smtp.example.com")
    monkeypatch.setattr(settings, "EMAIL_USER", "rent@example.com")
    monkeypatch.setattr(settings, "EMAIL_PASSWORD", "secret")
    send = AsyncMock()
    monkeypatch.setattr(email_service.aiosmtplib, "send", send)
    return send


async def test_skips_when_smtp_not_configured(monkeypatch):
    """Test that nothing is sent without SMTP credentials."""
    send = AsyncMock()
    monkeypatch.setattr(email_service.aiosmtplib, "send", send)

    sent = await email_service.send_rent_due_warning("tunde@example.com", CONTEXT)

    assert sent is False
    send.assert_not_called()


async def test_due_warning(smtp):
    """Test the reminder email headers and escaped body."""
    sent = await email_service.send_rent_due_warning("tunde@example.com", CONTEXT)

    assert sent is True
    smtp.assert_awaited_once()
    message = smtp.await_args.args[0]
    assert message["To"] == "tunde@example.com"
    assert message["Subject"] == "Rent Payment Reminder"
    assert "rent@example.com" in message["From"]
    assert smtp.await_args.kwargs["hostname"] == "smtp.example.com"

    body = message.get_payload()[0].get_payload(decode=True).decode()
    assert "Tunde &lt;Tenant&gt;" in body
    assert "April 1, 2024" in body


async def test_overdue_notification(smtp):
    """Test that the overdue email states how late the rent is."""
    await email_service.send_rent_overdue_notification("tunde@example.com", CONTEXT)

    message = smtp.await_args.args[0]
    assert message["Subject"] == "Rent Payment Overdue"
    body = message.get_payload()[0].get_payload(decode=True).decode()
    assert "5 day(s) overdue" in body
