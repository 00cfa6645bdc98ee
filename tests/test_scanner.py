"""Tests for the scanner module."""

from datetime import datetime, timedelta
from decimal import Decimal

import pytest

from gmail_subscription_finder.lifecycle import resolve_lifecycle
from gmail_subscription_finder.models import EmailSummary, SenderSummary, SubscriptionStatus
from gmail_subscription_finder.scanner import (
    attach_bodies,
    attach_body,
    group_by_sender,
    parse_from_header,
    rank_senders,
    review_candidates,
    select_body_fetches,
)


@pytest.mark.parametrize(
    "header, expected",
    [
        ("John Doe <john@example.com>", ("John Doe", "john@example.com")),
        ('"Netflix" <info@netflix.com>', ("Netflix", "info@netflix.com")),
        ("<john@example.com>", ("", "john@example.com")),
        ("john@example.com", ("", "john@example.com")),
        ("", ("", "")),
    ],
)
def test_parse_from_header(header, expected):
    assert parse_from_header(header) == expected


def test_group_by_sender(make_email):
    messages = [
        make_email(),
        make_email(subject="Your receipt", date=datetime(2026, 2, 15)),
        make_email(sender="Spotify <no-reply@spotify.com>", subject="Spotify receipt"),
    ]
    senders = {s.sender_domain: s for s in group_by_sender(messages)}
    assert set(senders) == {"netflix.com", "spotify.com"}
    assert senders["netflix.com"].email_count == 2
    assert senders["netflix.com"].sender_name == "Netflix"
    assert senders["netflix.com"].query_domain == "netflix.com"


def test_group_by_sender_empty():
    assert group_by_sender([]) == []


def test_group_by_sender_domain_case_insensitive(make_email):
    messages = [
        make_email(sender="Netflix <info@Netflix.com>"),
        make_email(sender="Netflix <billing@netflix.com>"),
    ]
    assert len(group_by_sender(messages)) == 1


def test_processor_emails_regrouped_by_merchant(make_email):
    messages = [
        make_email(sender="Stripe <receipts@stripe.com>", subject="Your receipt from Cursor"),
        make_email(sender="Stripe <receipts@stripe.com>", subject="Your receipt from Cursor #2"),
        make_email(sender="Stripe <receipts@stripe.com>", subject="Your receipt from Figma"),
    ]
    senders = {s.sender_name: s for s in group_by_sender(messages)}
    assert set(senders) == {"Cursor", "Figma"}
    assert senders["Cursor"].email_count == 2
    assert senders["Cursor"].sender_domain == "cursor"
    assert senders["Cursor"].query_domain == "stripe.com"


def test_sender_name_falls_back_to_domain(make_email):
    (sender,) = group_by_sender([make_email(sender="billing@acme.io")])
    assert sender.sender_name == "Acme"


def test_sender_name_most_common(make_email):
    messages = [
        make_email(sender="Netflix <info@netflix.com>"),
        make_email(sender="Netflix <info@netflix.com>"),
        make_email(sender="Netflix Billing <billing@netflix.com>"),
    ]
    (sender,) = group_by_sender(messages)
    assert sender.sender_name == "Netflix"


def test_unparseable_from_skipped(make_email):
    messages = [make_email(sender="Undisclosed recipients"), make_email()]
    senders = group_by_sender(messages)
    assert [s.sender_domain for s in senders] == ["netflix.com"]


def test_amounts_and_latest_fields(make_email):
    messages = [
        make_email(subject="Receipt $20.00", date=datetime(2026, 3, 1), snippet="March"),
        make_email(subject="Receipt $10.00", date=datetime(2026, 1, 1), snippet="January"),
        make_email(subject="Receipt $20.00", date=datetime(2026, 2, 1), snippet="February"),
    ]
    (sender,) = group_by_sender(messages)
    assert sender.amounts == [Decimal("10.00"), Decimal("20.00")]
    assert sender.latest_subject == "Receipt $20.00"
    assert sender.latest_snippet == "March"
    assert sender.latest_date == datetime(2026, 3, 1)
    assert sender.billing_score == 1.0


def test_recent_emails_newest_first_and_capped(make_email):
    start = datetime(2026, 1, 1)
    messages = [make_email(subject=f"Receipt #{i}", date=start + timedelta(days=i)) for i in range(15)]
    (sender,) = group_by_sender(messages)
    assert len(sender.recent_emails) == 10
    assert sender.recent_emails[0].subject == "Receipt #14"
    assert sender.recent_emails[-1].subject == "Receipt #5"


def test_group_by_sender_limit_ranks(make_email):
    messages = [make_email() for _ in range(3)] + [
        make_email(sender="Spotify <no-reply@spotify.com>", subject="Spotify receipt"),
    ]
    (top,) = group_by_sender(messages, limit=1)
    assert top.sender_name == "Netflix"


def test_attach_body(cursor_sender):
    enriched = attach_body(cursor_sender, "<html><body><p>Cursor Pro</p><p>Total: $20.00</p></body></html>")
    assert enriched.body_text == "Cursor Pro Total: $20.00"
    assert enriched.amounts == [Decimal("20.00")]
    assert enriched.recent_emails[0].body_excerpt == "Cursor Pro Total: $20.00"
    assert enriched.recent_emails[1].body_excerpt is None
    assert cursor_sender.body_text is None


def test_attach_body_keeps_known_amounts(netflix_sender):
    enriched = attach_body(netflix_sender, "Total $15.49, tax $1.20")
    assert enriched.amounts == [Decimal("15.49"), Decimal("1.20")]


def test_attach_body_truncates(cursor_sender):
    enriched = attach_body(cursor_sender, "a" * 5000)
    assert len(enriched.body_text) == 2000
    assert len(enriched.recent_emails[0].body_excerpt) == 500


def test_attach_empty_body_is_noop(cursor_sender):
    assert attach_body(cursor_sender, "   ") is cursor_sender


def _sender(name: str, count: int, latest: datetime, subject: str = "Your receipt") -> SenderSummary:
    return SenderSummary(
        sender_name=name,
        sender_domain=f"{name.lower()}.com",
        query_domain=f"{name.lower()}.com",
        email_count=count,
        latest_subject=subject,
        latest_date=latest,
        billing_score=1.0,
        recent_emails=[EmailSummary(latest, subject)],
    )


def test_rank_senders_lifecycle_first():
    busy = _sender("Busy", 10, datetime(2026, 3, 1))
    canceled = _sender("Gone", 1, datetime(2026, 1, 1), subject="Your subscription has been canceled")
    ranked = rank_senders([busy, canceled])
    assert [s.sender_name for s in ranked] == ["Gone", "Busy"]


def test_rank_senders_count_then_recency():
    old = _sender("Old", 3, datetime(2025, 6, 1))
    new = _sender("New", 3, datetime(2026, 1, 1))
    big = _sender("Big", 8, datetime(2024, 1, 1))
    assert [s.sender_name for s in rank_senders([old, new, big])] == ["Big", "New", "Old"]


def test_rank_senders_limit():
    senders = [_sender(f"S{i}", i, datetime(2026, 1, 1)) for i in range(40)]
    ranked = rank_senders(senders)
    assert len(ranked) == 30
    assert ranked[0].sender_name == "S39"
    assert len(rank_senders(senders, limit=5)) == 5
    assert len(rank_senders(senders, limit=None)) == 40


def test_select_body_fetches(netflix_sender, cursor_sender):
    assert select_body_fetches([netflix_sender, cursor_sender]) == [cursor_sender]
    assert select_body_fetches([cursor_sender], limit=0) == []


def test_attach_bodies(make_email):
    messages = [
        make_email(sender="Stripe <receipts@stripe.com>", subject="Your receipt from Cursor", date=datetime(2026, 1, 1)),
        make_email(sender="Stripe <receipts@stripe.com>", subject="Your receipt from Cursor", date=datetime(2026, 2, 1)),
        make_email(subject="Your receipt $15.49"),
    ]
    bodies = {
        messages[0].id: "Total: $18.00",
        messages[1].id: "Total: $20.00",
        messages[2].id: "Total: $99.00",
    }
    senders = {s.sender_name: s for s in attach_bodies(group_by_sender(messages), messages, bodies)}
    assert senders["Cursor"].amounts == [Decimal("20.00")]
    assert senders["Netflix"].body_text is None


def test_attach_bodies_skips_body_of_older_message(make_email):
    """A body on an older message must not be read as the newest email."""
    messages = [
        make_email(subject="Account update", date=datetime(2026, 1, 1)),
        make_email(subject="Your subscription renewed", date=datetime(2026, 3, 1)),
    ]
    bodies = {messages[0].id: "Your subscription has been canceled."}

    (sender,) = attach_bodies(group_by_sender(messages), messages, bodies)

    assert sender.body_text is None
    assert all(e.body_excerpt is None for e in sender.recent_emails)
    result = resolve_lifecycle(sender.recent_emails, SubscriptionStatus.ACTIVE)
    assert result.status is SubscriptionStatus.ACTIVE
    assert result.effective_date == datetime(2026, 3, 1)


def test_attach_bodies_uses_newest_message_body(make_email):
    messages = [
        make_email(subject="Your subscription renewed", date=datetime(2026, 1, 1)),
        make_email(subject="Account update", date=datetime(2026, 3, 1)),
    ]
    bodies = {messages[1].id: "Your subscription has been canceled."}

    (sender,) = attach_bodies(group_by_sender(messages), messages, bodies)

    assert sender.recent_emails[0].body_excerpt == "Your subscription has been canceled."
    result = resolve_lifecycle(sender.recent_emails, SubscriptionStatus.ACTIVE)
    assert result.status is SubscriptionStatus.CANCELED
    assert result.effective_date == datetime(2026, 3, 1)


def test_review_candidates(make_email, ai_records):
    messages = [
        make_email(subject="Your receipt from Netflix", date=datetime(2026, 1, 15), snippet="Charged $15.49"),
        make_email(subject="Membership cancelled", date=datetime(2026, 3, 15), snippet="Sorry to see you go"),
        make_email(sender="Spotify <no-reply@spotify.com>", subject="Spotify receipt", snippet="$11.99"),
    ]
    senders = group_by_sender(messages)
    records = ai_records + [{"service_name": "Mystery", "cost": 0}]

    result = review_candidates(senders, records, existing_names=["Netflix", "Spotify", "Cursor"])

    assert [c.name for c in result.candidates] == ["Netflix"]
    netflix = result.candidates[0]
    assert netflix.subscription_status is SubscriptionStatus.CANCELED
    assert netflix.status_effective_date == datetime(2026, 3, 15).date()
    assert netflix.lifecycle_confidence == pytest.approx(0.95)
    assert result.lifecycles["Netflix"].status is SubscriptionStatus.CANCELED
    assert result.lifecycles["Spotify"].status is SubscriptionStatus.ACTIVE


def test_review_candidates_without_senders(ai_records):
    result = review_candidates([], ai_records)
    assert {c.name for c in result.candidates} == {"Netflix", "Cursor", "Spotify"}
    assert all(c.lifecycle_confidence == pytest.approx(0.5) for c in result.candidates)
    assert result.lifecycles == {}
