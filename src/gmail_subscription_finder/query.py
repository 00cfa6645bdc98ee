"""Gmail search query builder for billing and lifecycle emails."""

from __future__ import annotations

from .constants import DEFAULT_LOOKBACK_MONTHS, MAX_LOOKBACK_MONTHS, MIN_LOOKBACK_MONTHS
from .models import SenderSummary

# One query per purpose, each a subject:(... OR ...) group.
_SUBJECT_TERMS = (
    # billing and receipts
    ("receipt", "invoice", "payment", "billing"),
    # subscriptions and renewals
    ("subscription", "renewal", "recurring", "membership"),
    # financial transactions
    ("charged", "amount due", "auto-pay", "direct debit"),
    # usage top-ups
    ("top up", "credits", "usage", "tokens", "api usage", "pay-as-you-go", "prepaid"),
    # refunds
    ("refund", "reversal", "chargeback"),
    # cancellations and lifecycle events
    ("cancel", "cancelled", "canceled", "unsubscribe", "membership canceled", "subscription ended"),
)


def clamp_lookback(lookback_months: int | None) -> int:
    """Clamp a lookback window to the supported range; falsy values get the default."""
    if not lookback_months:
        return DEFAULT_LOOKBACK_MONTHS
    return min(max(lookback_months, MIN_LOOKBACK_MONTHS), MAX_LOOKBACK_MONTHS)


def _term(word: str) -> str:
    return f'"{word}"' if " " in word or "-" in word else word


def _or(terms: list[str]) -> str:
    if len(terms) == 1:
        return terms[0]
    return "(" + " OR ".join(terms) + ")"


def _newer_than(months: int) -> str:
    return f"newer_than:{months}m"


def build_search_queries(lookback_months: int) -> list[str]:
    """Build the six Gmail queries used to find billing and lifecycle emails."""
    window = _newer_than(clamp_lookback(lookback_months))
    return [
        f"subject:{_or([_term(w) for w in words])} {window}"
        for words in _SUBJECT_TERMS
    ]


def sender_body_query(sender: SenderSummary, lookback_months: int) -> str:
    """Query for the latest message of *sender*, used for a body fetch.

    Uses query_domain, which stays the processor's real domain after a
    processor split (e.g. stripe.com rather than the merchant name).
    """
    return f"from:{sender.query_domain} {_newer_than(clamp_lookback(lookback_months))}"
