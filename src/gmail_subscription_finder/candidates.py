"""Parsing, validation and deduplication of AI-proposed subscription candidates."""

from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Iterable

from .constants import AUTO_SELECT_MIN_CONFIDENCE, DEFAULT_AI_CONFIDENCE
from .models import (
    BillingCycle,
    ChargeType,
    CostSource,
    SenderSummary,
    SubscriptionCandidate,
    SubscriptionCategory,
    SubscriptionStatus,
)
from .names import names_match, normalize
from .scorer import validate_charge_type

logger = logging.getLogger(__name__)


def _enum_or_default(enum_cls, value: Any, default):
    if isinstance(value, str):
        try:
            return enum_cls(value.strip())
        except ValueError:
            pass
    return default


def _parse_cost(value: Any) -> Decimal:
    if isinstance(value, bool) or value is None:
        return Decimal("0")
    if isinstance(value, (int, float, str)):
        try:
            cost = Decimal(str(value).strip().lstrip("$"))
        except InvalidOperation:
            return Decimal("0")
        if cost.is_finite() and cost > 0:
            return cost
    return Decimal("0")


def _parse_confidence(value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return DEFAULT_AI_CONFIDENCE
    return min(max(float(value), 0.0), 1.0)


def parse_date(value: Any) -> date | None:
    """Parse a YYYY-MM-DD calendar date, returning None when absent or malformed."""
    if not isinstance(value, str):
        return None
    try:
        return datetime.strptime(value.strip(), "%Y-%m-%d").date()
    except ValueError:
        return None


def _optional_str(value: Any) -> str | None:
    if isinstance(value, str) and value.strip():
        return value
    return None


def parse_candidate(record: dict) -> SubscriptionCandidate | None:
    """Build a candidate from one loosely-typed AI record, or None if it has no name."""
    name = record.get("service_name")
    if not isinstance(name, str) or not name.strip():
        return None

    cost_source = _enum_or_default(CostSource, record.get("cost_source"), CostSource.ESTIMATED)
    is_estimated = record.get("is_estimated")
    if not isinstance(is_estimated, bool):
        is_estimated = cost_source is CostSource.ESTIMATED
    if is_estimated:
        cost_source = CostSource.ESTIMATED

    return SubscriptionCandidate(
        name=name.strip(),
        cost=_parse_cost(record.get("cost")),
        billing_cycle=_enum_or_default(BillingCycle, record.get("billing_cycle"), BillingCycle.MONTHLY),
        category=_enum_or_default(SubscriptionCategory, record.get("category"), SubscriptionCategory.OTHER),
        renewal_date=parse_date(record.get("renewal_date")),
        confidence=_parse_confidence(record.get("confidence")),
        notes=_optional_str(record.get("notes")),
        cost_source=cost_source,
        is_estimated=is_estimated,
        evidence=_optional_str(record.get("evidence")),
        charge_type=_enum_or_default(ChargeType, record.get("charge_type"), ChargeType.UNKNOWN),
        subscription_status=_enum_or_default(
            SubscriptionStatus, record.get("subscription_status"), SubscriptionStatus.ACTIVE
        ),
        status_effective_date=parse_date(record.get("status_effective_date")),
    )


def parse_candidates_from_json(records: Iterable[Any]) -> list[SubscriptionCandidate]:
    """Parse AI records into candidates, skipping anything without a service name.

    Missing or unrecognized optional fields fall back to conservative
    defaults: estimated cost, unknown charge type, active status.
    """
    candidates: list[SubscriptionCandidate] = []
    for record in records or []:
        if not isinstance(record, dict):
            logger.warning("Skipping non-object AI record: %r", record)
            continue
        candidate = parse_candidate(record)
        if candidate is None:
            logger.debug("Skipping AI record without service_name: %r", record)
            continue
        candidates.append(candidate)
    return candidates


def find_sender(name: str, senders: Iterable[SenderSummary]) -> SenderSummary | None:
    for sender in senders:
        if names_match(sender.sender_name, name):
            return sender
    return None


def validate_candidates(
    candidates: list[SubscriptionCandidate],
    senders: list[SenderSummary],
) -> list[SubscriptionCandidate]:
    """Cross-check each candidate's charge type against its sender's latest email."""
    validated: list[SubscriptionCandidate] = []
    for candidate in candidates:
        sender = find_sender(candidate.name, senders)
        if sender is None:
            validated.append(candidate)
            continue

        result = validate_charge_type(
            candidate.charge_type,
            sender.latest_subject,
            sender.latest_snippet,
            sender.body_text,
        )
        confidence = candidate.confidence
        if result.confidence < confidence:
            confidence = (confidence + result.confidence) / 2
        if result.type is not candidate.charge_type:
            logger.debug(
                "Charge type for %s changed from %s to %s",
                candidate.name, candidate.charge_type.value, result.type.value,
            )
        validated.append(replace(candidate, charge_type=result.type, confidence=confidence))
    return validated


def _merge_group(group: list[SubscriptionCandidate]) -> SubscriptionCandidate:
    # a lifecycle change outranks a more confident "still active"
    best = max(
        group,
        key=lambda c: (c.subscription_status is not SubscriptionStatus.ACTIVE, c.confidence),
    )
    renewal_dates = [c.renewal_date for c in group if c.renewal_date is not None]
    return replace(
        best,
        source_email_count=len(group),
        renewal_date=max(renewal_dates) if renewal_dates else best.renewal_date,
    )


def deduplicate_candidates(
    candidates: list[SubscriptionCandidate],
    existing_names: Iterable[str],
) -> list[SubscriptionCandidate]:
    """Merge same-name candidates and drop active ones the user already tracks.

    A canceled candidate is kept even when its name is already known: it
    carries a lifecycle change the user has not seen yet. Candidates are
    grouped by matching name and charge type so that, say, a subscription
    and an API top-up from the same vendor stay separate.
    """
    existing = [normalize(n) for n in existing_names if normalize(n)]

    kept = [
        c for c in candidates
        if c.subscription_status is not SubscriptionStatus.ACTIVE
        or not any(names_match(c.name, e) for e in existing)
    ]

    groups: list[list[SubscriptionCandidate]] = []
    for candidate in kept:
        for group in groups:
            head = group[0]
            if head.charge_type is candidate.charge_type and names_match(head.name, candidate.name):
                group.append(candidate)
                break
        else:
            groups.append([candidate])

    merged = [_merge_group(group) for group in groups]
    merged.sort(key=lambda c: c.confidence, reverse=True)
    return merged


def retain_meaningful(candidates: list[SubscriptionCandidate]) -> list[SubscriptionCandidate]:
    """Keep candidates with real spend or a lifecycle change."""
    return [
        c for c in candidates
        if c.cost > 0 or c.subscription_status is not SubscriptionStatus.ACTIVE
    ]


def auto_deselect(candidates: list[SubscriptionCandidate]) -> list[SubscriptionCandidate]:
    """Pre-uncheck estimated, low-confidence candidates."""
    return [
        replace(c, is_selected=False)
        if c.is_estimated and c.confidence < AUTO_SELECT_MIN_CONFIDENCE
        else c
        for c in candidates
    ]
