"""Shared fixtures for tests."""

from __future__ import annotations

import itertools
import json
from datetime import datetime
from decimal import Decimal

import pytest

from gmail_subscription_finder.models import EmailMetadata, EmailSummary, SenderSummary


@pytest.fixture
def make_email():
    """Factory for EmailMetadata with sequential ids."""
    ids = itertools.count(1)

    def _make(
        sender: str = "Netflix <info@netflix.com>",
        subject: str = "Your receipt from Netflix",
        date: datetime = datetime(2026, 1, 15, 9, 0),
        snippet: str = "",
    ) -> EmailMetadata:
        return EmailMetadata(
            id=f"msg_{next(ids):03d}",
            sender=sender,
            subject=subject,
            date=date,
            snippet=snippet,
        )

    return _make


@pytest.fixture
def netflix_sender() -> SenderSummary:
    return SenderSummary(
        sender_name="Netflix",
        sender_domain="netflix.com",
        query_domain="netflix.com",
        email_count=3,
        amounts=[Decimal("15.49")],
        latest_subject="Your receipt",
        latest_date=datetime(2026, 1, 15, 9, 0),
        latest_snippet="Thanks",
        billing_score=1.0,
        recent_emails=[
            EmailSummary(datetime(2026, 1, 15, 9, 0), "Your receipt", "Thanks"),
        ],
    )


@pytest.fixture
def cursor_sender() -> SenderSummary:
    """A merchant recovered from Stripe receipts, with no amount in the headers."""
    return SenderSummary(
        sender_name="Cursor",
        sender_domain="cursor",
        query_domain="stripe.com",
        email_count=2,
        amounts=[],
        latest_subject="Your receipt from Cursor",
        latest_date=datetime(2026, 2, 1, 12, 0),
        latest_snippet="",
        billing_score=1.0,
        recent_emails=[
            EmailSummary(datetime(2026, 2, 1, 12, 0), "Your receipt from Cursor"),
            EmailSummary(datetime(2026, 1, 1, 12, 0), "Your receipt from Cursor"),
        ],
    )


@pytest.fixture
def email_records() -> list[dict]:
    """Raw message records as exported by the mail client."""
    return [
        {
            "id": "n1",
            "from": "Netflix <info@netflix.com>",
            "subject": "Your receipt from Netflix",
            "date": "2026-01-15T09:00:00+00:00",
            "snippet": "You were charged $15.49 for your monthly plan",
        },
        {
            "id": "n2",
            "from": "Netflix <info@netflix.com>",
            "subject": "Membership cancelled",
            "date": "Sun, 15 Mar 2026 10:00:00 +0000",
            "snippet": "We're sorry to see you go",
        },
        {
            "id": "c1",
            "from": "Stripe <receipts@stripe.com>",
            "subject": "Your receipt from Cursor",
            "date": "2026-02-01T12:00:00Z",
            "snippet": "",
            "body": "<html><body><p>Cursor Pro</p><p>Total: $20.00</p></body></html>",
        },
        {
            "id": "s1",
            "from": "Spotify <no-reply@spotify.com>",
            "subject": "Your Spotify Premium receipt",
            "date": "2026-02-10T08:00:00Z",
            "snippet": "Amount charged: $11.99",
        },
    ]


@pytest.fixture
def emails_file(tmp_path, email_records):
    path = tmp_path / "emails.json"
    path.write_text(json.dumps(email_records))
    return path


@pytest.fixture
def ai_records() -> list[dict]:
    return [
        {
            "service_name": "Netflix",
            "cost": 15.49,
            "billing_cycle": "monthly",
            "category": "Streaming",
            "charge_type": "recurring_subscription",
            "subscription_status": "active",
            "confidence": 0.95,
            "cost_source": "snippet",
            "is_estimated": False,
        },
        {
            "service_name": "Cursor",
            "cost": 20.0,
            "billing_cycle": "monthly",
            "category": "AI Services",
            "charge_type": "recurring_subscription",
            "subscription_status": "active",
            "confidence": 0.9,
            "cost_source": "body",
            "is_estimated": False,
        },
        {
            "service_name": "Spotify",
            "cost": 11.99,
            "billing_cycle": "monthly",
            "category": "Streaming",
            "charge_type": "recurring_subscription",
            "confidence": 0.9,
            "cost_source": "snippet",
            "is_estimated": False,
        },
    ]


@pytest.fixture
def ai_file(tmp_path, ai_records):
    path = tmp_path / "ai.json"
    path.write_text(json.dumps({"subscriptions": ai_records}))
    return path
