"""Tests for the display module."""

import pytest

from gmail_subscription_finder import display
from gmail_subscription_finder.display import display_candidates, is_trusted_status_change
from gmail_subscription_finder.models import SubscriptionCandidate, SubscriptionStatus

CANCELED = SubscriptionStatus.CANCELED


@pytest.fixture(autouse=True)
def wide_console(monkeypatch):
    monkeypatch.setattr(display.console, "width", 200)


def _render(candidates) -> str:
    with display.console.capture() as capture:
        display_candidates(candidates)
    return capture.get()


def test_trusted_status_change():
    assert is_trusted_status_change(SubscriptionCandidate(name="x", subscription_status=CANCELED, lifecycle_confidence=0.9))
    assert not is_trusted_status_change(SubscriptionCandidate(name="x", subscription_status=CANCELED, lifecycle_confidence=0.5))
    assert not is_trusted_status_change(SubscriptionCandidate(name="x", lifecycle_confidence=0.99))


def test_untrusted_cancellation_marked_unconfirmed():
    output = _render([SubscriptionCandidate(name="Netflix", subscription_status=CANCELED, lifecycle_confidence=0.5)])
    assert "unconfirmed" in output


def test_trusted_cancellation_not_marked():
    output = _render([SubscriptionCandidate(name="Netflix", subscription_status=CANCELED, lifecycle_confidence=0.95)])
    assert "canceled" in output
    assert "unconfirmed" not in output


def test_no_candidates_message():
    assert "No subscription candidates found" in _render([])
