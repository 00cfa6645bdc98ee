"""Keyword scoring: billing signal strength and charge type classification."""

from __future__ import annotations

import re
from decimal import Decimal
from functools import lru_cache
from typing import Iterable

from .constants import (
    ADDON_SIGNALS,
    AGREEMENT_BOOST,
    AGREEMENT_MIN_CONFIDENCE,
    ANTI_SIGNALS,
    BILLING_KEYWORDS,
    BILLING_REINFORCED_SCORE,
    BODY_FETCH_BILLING_THRESHOLD,
    DISAGREEMENT_CONFIDENCE,
    LOCAL_UNKNOWN_CONFIDENCE,
    RECURRING_SIGNALS,
    REFUND_OVERRIDE_THRESHOLD,
    REFUND_SIGNALS,
    USAGE_SIGNALS,
    WEAK_SIGNAL_THRESHOLD,
)
from .models import ChargeType, ClassificationResult

_UNKNOWN = ClassificationResult(type=ChargeType.UNKNOWN, confidence=0.0)


@lru_cache(maxsize=None)
def _phrase_pattern(phrase: str) -> re.Pattern:
    # Anchored at the start of a word only, so "invoice" also hits "invoices"
    # but "trial" does not hit "industrial".
    return re.compile(r"(?<!\w)" + re.escape(phrase))


def contains_phrase(text: str, phrase: str) -> bool:
    """Return True if *phrase* starts a word somewhere in lowercased *text*."""
    return _phrase_pattern(phrase).search(text) is not None


def max_signal_weight(text: str, signals: Iterable[tuple[str, float]]) -> float:
    """Return the heaviest weight among the phrases found in *text* (0.0 if none)."""
    best = 0.0
    for phrase, weight in signals:
        if weight > best and contains_phrase(text, phrase):
            best = weight
    return best


def combine_text(*parts: str | None) -> str:
    return " ".join(p for p in parts if p).lower()


def billing_signal_score(subject: str, snippet: str) -> float:
    """Score how strongly an email looks like billing activity.

    Returns a float between 0.0 and 1.0. When the subject and the snippet
    each carry a billing keyword on their own the score is raised to at
    least 0.9.
    """
    subject_score = max_signal_weight(combine_text(subject), BILLING_KEYWORDS)
    snippet_score = max_signal_weight(combine_text(snippet), BILLING_KEYWORDS)
    score = max(
        subject_score,
        snippet_score,
        max_signal_weight(combine_text(subject, snippet), BILLING_KEYWORDS),
    )

    if subject_score > 0 and snippet_score > 0:
        score = max(score, BILLING_REINFORCED_SCORE)

    return min(score, 1.0)


def has_anti_signal(text: str) -> bool:
    return any(contains_phrase(text, phrase) for phrase in ANTI_SIGNALS)


def refund_signal_weight(text: str) -> float:
    return max_signal_weight(text, REFUND_SIGNALS)


def classify_charge_type(
    subject: str,
    snippet: str,
    body_text: str | None = None,
) -> ClassificationResult:
    """Classify the kind of charge an email describes.

    Marketing, trial and shipping language suppresses classification
    entirely. A refund phrase beats every other cluster. Otherwise the
    strongest of the recurring, usage and add-on clusters wins, provided it
    clears WEAK_SIGNAL_THRESHOLD.
    """
    text = combine_text(subject, snippet, body_text)

    if has_anti_signal(text):
        return _UNKNOWN

    refund_score = refund_signal_weight(text)
    if refund_score >= REFUND_OVERRIDE_THRESHOLD:
        return ClassificationResult(type=ChargeType.REFUND_OR_REVERSAL, confidence=refund_score)

    scores = [
        (ChargeType.RECURRING_SUBSCRIPTION, max_signal_weight(text, RECURRING_SIGNALS)),
        (ChargeType.USAGE_TOPUP, max_signal_weight(text, USAGE_SIGNALS)),
        (ChargeType.ADDON_CREDITS, max_signal_weight(text, ADDON_SIGNALS)),
    ]
    # max() keeps the first of equal scores, so recurring wins ties
    best_type, best_score = max(scores, key=lambda item: item[1])

    if best_score <= WEAK_SIGNAL_THRESHOLD:
        return _UNKNOWN
    # Weak clusters keep their (low) weight as confidence.
    return ClassificationResult(type=best_type, confidence=best_score)


def validate_charge_type(
    ai_type: ChargeType,
    subject: str,
    snippet: str,
    body_text: str | None = None,
) -> ClassificationResult:
    """Reconcile an AI-assigned charge type with the local classifier.

    Refund language found locally always wins. Otherwise agreement boosts
    confidence to at least 0.8, disagreement keeps the AI type at 0.5 and a
    local "unknown" trusts the AI at 0.7.
    """
    refund_score = refund_signal_weight(combine_text(subject, snippet, body_text))
    if refund_score >= REFUND_OVERRIDE_THRESHOLD:
        return ClassificationResult(type=ChargeType.REFUND_OR_REVERSAL, confidence=refund_score)

    local = classify_charge_type(subject, snippet, body_text)

    if local.type is ChargeType.UNKNOWN:
        return ClassificationResult(type=ai_type, confidence=LOCAL_UNKNOWN_CONFIDENCE)

    if local.type is ai_type:
        boosted = max(AGREEMENT_MIN_CONFIDENCE, local.confidence + AGREEMENT_BOOST)
        return ClassificationResult(type=ai_type, confidence=min(1.0, boosted))

    return ClassificationResult(type=ai_type, confidence=DISAGREEMENT_CONFIDENCE)


def needs_body_fetch(email_count: int, amounts: list[Decimal], billing_score: float) -> bool:
    """Decide whether a sender's latest message body is worth fetching.

    Only billing-heavy senders without any amount in their subjects or
    snippets qualify. *email_count* is accepted for callers that group
    before deciding; it does not change the outcome.
    """
    return not amounts and billing_score >= BODY_FETCH_BILLING_THRESHOLD
