"""Cancellation detection and chronological subscription lifecycle resolution."""

from __future__ import annotations

import logging
from datetime import date, datetime, time
from functools import reduce
from typing import Iterable, NamedTuple, Protocol

from .constants import (
    CANCELLATION_FALSE_POSITIVES,
    CANCELLATION_SIGNAL_THRESHOLD,
    CANCELLATION_SIGNALS,
    LIFECYCLE_CANCEL_MIN_CONFIDENCE,
    LIFECYCLE_CHARGE_CONFIDENCE,
    LIFECYCLE_DEFERRED_CONFIDENCE,
    REFUND_OVERRIDE_THRESHOLD,
)
from .models import LifecycleResult, SenderSummary, SubscriptionStatus
from .scorer import (
    billing_signal_score,
    combine_text,
    contains_phrase,
    max_signal_weight,
    refund_signal_weight,
)

logger = logging.getLogger(__name__)


class TimelineEmail(Protocol):
    date: datetime
    subject: str
    snippet: str
    body_excerpt: str | None


class _Fold(NamedTuple):
    status: SubscriptionStatus | None
    confidence: float
    last_signal_date: datetime | None


def detect_cancellation_signal(
    subject: str,
    snippet: str,
    body_text: str | None = None,
) -> float:
    """Score explicit cancellation language across subject, snippet and body.

    Returns 0.0 whenever a false-positive phrase such as "cancel anytime"
    appears anywhere in the text, even next to a real cancellation phrase.
    """
    text = combine_text(subject, snippet, body_text)
    if not text:
        return 0.0

    if any(contains_phrase(text, phrase) for phrase in CANCELLATION_FALSE_POSITIVES):
        return 0.0

    return max_signal_weight(text, CANCELLATION_SIGNALS)


def _is_charge(email: TimelineEmail) -> bool:
    if billing_signal_score(email.subject, email.snippet) <= 0:
        return False
    text = combine_text(email.subject, email.snippet, email.body_excerpt)
    return refund_signal_weight(text) < REFUND_OVERRIDE_THRESHOLD


def _step(acc: _Fold, email: TimelineEmail) -> _Fold:
    cancel_score = detect_cancellation_signal(email.subject, email.snippet, email.body_excerpt)
    if cancel_score >= CANCELLATION_SIGNAL_THRESHOLD:
        confidence = max(LIFECYCLE_CANCEL_MIN_CONFIDENCE, cancel_score)
        return _Fold(SubscriptionStatus.CANCELED, confidence, email.date)

    if _is_charge(email):
        return _Fold(SubscriptionStatus.ACTIVE, LIFECYCLE_CHARGE_CONFIDENCE, email.date)

    return acc


def chronological_key(value: date | datetime) -> datetime:
    """Sort key that puts naive and timezone-aware dates on one UTC clock."""
    if not isinstance(value, datetime):
        return datetime.combine(value, time.min)
    offset = value.utcoffset()
    if offset is None:
        return value
    return value.replace(tzinfo=None) - offset


def _sort_key(email: TimelineEmail) -> datetime:
    return chronological_key(email.date)


def resolve_lifecycle(
    emails: Iterable[TimelineEmail],
    ai_status: SubscriptionStatus,
    ai_status_date: date | datetime | None = None,
) -> LifecycleResult:
    """Resolve a sender's current status from its email timeline.

    Emails are evaluated oldest first; the most recent email carrying a
    cancellation signal (canceled) or a charge signal (active) decides. A
    cancellation on the same email outranks the charge it may also mention.
    Without any signal the AI status is returned with confidence 0.5.
    """
    ordered = sorted(emails, key=_sort_key)
    final = reduce(_step, ordered, _Fold(None, 0.0, None))

    if final.status is None:
        logger.debug("No lifecycle signal in %d emails, deferring to AI status %s", len(ordered), ai_status.value)
        return LifecycleResult(
            status=ai_status,
            confidence=LIFECYCLE_DEFERRED_CONFIDENCE,
            effective_date=ai_status_date,
        )

    return LifecycleResult(
        status=final.status,
        confidence=final.confidence,
        effective_date=final.last_signal_date,
    )


def sender_lifecycle_score(sender: SenderSummary) -> float:
    """Strongest cancellation signal across a sender's latest email and timeline."""
    best = detect_cancellation_signal(sender.latest_subject, sender.latest_snippet)
    for email in sender.recent_emails:
        best = max(best, detect_cancellation_signal(email.subject, email.snippet, email.body_excerpt))
    return best


def is_lifecycle_significant(sender: SenderSummary) -> bool:
    return sender_lifecycle_score(sender) >= CANCELLATION_SIGNAL_THRESHOLD
