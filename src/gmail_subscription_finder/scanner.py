"""Sender grouping, ranking and the candidate review pipeline."""

from __future__ import annotations

import logging
import re
from collections import Counter
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any, Iterable

from .amounts import extract_all_amounts, extract_amounts
from .body import body_excerpt, to_plain_text
from .candidates import (
    auto_deselect,
    deduplicate_candidates,
    find_sender,
    parse_candidates_from_json,
    retain_meaningful,
    validate_candidates,
)
from .constants import BODY_TEXT_LIMIT, MAX_BODY_FETCHES, MAX_RANKED_SENDERS, RECENT_EMAILS_LIMIT
from .lifecycle import chronological_key, is_lifecycle_significant, resolve_lifecycle
from .models import (
    EmailMetadata,
    EmailSummary,
    LifecycleResult,
    SenderSummary,
    SubscriptionCandidate,
)
from .processors import detect_processor
from .scorer import billing_signal_score, needs_body_fetch

logger = logging.getLogger(__name__)

_FROM_RE = re.compile(r"^(.*?)\s*<([^>]+)>$")


def parse_from_header(from_value: str) -> tuple[str, str]:
    """Parse a From header into (display name, email address).

    Handles formats like:
      "John Doe <john@example.com>" -> ("John Doe", "john@example.com")
      "<john@example.com>"          -> ("", "john@example.com")
      "john@example.com"            -> ("", "john@example.com")
    """
    if not from_value:
        return ("", "")
    m = _FROM_RE.match(from_value.strip())
    if m:
        name = m.group(1).strip().strip('"').strip("'")
        return (name, m.group(2).strip())
    email = from_value.strip().strip("<>")
    return ("", email)


def _domain_of(address: str) -> str:
    if "@" not in address:
        return ""
    return address.rsplit("@", 1)[1].strip().lower()


@dataclass
class _ParsedEmail:
    group_key: str
    email_domain: str
    display_name: str
    message: EmailMetadata
    amounts: list
    billing_score: float


def _parse_email(msg: EmailMetadata) -> _ParsedEmail | None:
    name, address = parse_from_header(msg.sender)
    domain = _domain_of(address)
    if not domain:
        return None

    group_key = domain
    split = detect_processor(domain, msg.subject)
    if split.is_processor and split.service_name:
        group_key = "via:" + split.service_name.lower()
        name = split.service_name
    elif not name:
        name = domain.split(".")[0].capitalize()

    return _ParsedEmail(
        group_key=group_key,
        email_domain=domain,
        display_name=name,
        message=msg,
        amounts=[a.value for a in extract_all_amounts(msg.subject, msg.snippet)],
        billing_score=billing_signal_score(msg.subject, msg.snippet),
    )


def _summarize(key: str, group: list[_ParsedEmail]) -> SenderSummary:
    names = Counter(p.display_name for p in group if p.display_name)
    newest_first = sorted(group, key=lambda p: chronological_key(p.message.date), reverse=True)
    latest = newest_first[0].message

    if key.startswith("via:"):
        sender_domain = key[len("via:"):]
        query_domain = newest_first[0].email_domain
    else:
        sender_domain = query_domain = key

    return SenderSummary(
        sender_name=names.most_common(1)[0][0] if names else key,
        sender_domain=sender_domain,
        query_domain=query_domain,
        email_count=len(group),
        amounts=sorted({value for p in group for value in p.amounts}),
        latest_subject=latest.subject,
        latest_date=latest.date,
        latest_snippet=latest.snippet,
        billing_score=max(p.billing_score for p in group),
        recent_emails=[
            EmailSummary.build(p.message.date, p.message.subject, p.message.snippet)
            for p in newest_first[:RECENT_EMAILS_LIMIT]
        ],
    )


def group_by_sender(
    messages: Iterable[EmailMetadata],
    limit: int | None = None,
) -> list[SenderSummary]:
    """Group messages by sender domain and build SenderSummary objects.

    Messages sent through a payment processor are regrouped under the
    merchant named in the subject. Messages without a usable From address
    are skipped. With *limit*, only the top-ranked senders are returned.
    """
    groups: dict[str, list[_ParsedEmail]] = {}
    for msg in messages:
        parsed = _parse_email(msg)
        if parsed is None:
            logger.debug("Skipping message %s with unparseable From: %r", msg.id, msg.sender)
            continue
        groups.setdefault(parsed.group_key, []).append(parsed)

    senders = [_summarize(key, group) for key, group in groups.items()]
    logger.info("Grouped messages into %d senders", len(senders))
    if limit is not None:
        return rank_senders(senders, limit)
    return senders


def attach_body(sender: SenderSummary, body: str) -> SenderSummary:
    """Return a copy of *sender* enriched with the latest message body.

    Amounts found in the body that are not already known are appended, and
    the newest timeline entry gets a body excerpt for lifecycle checks.
    """
    text = to_plain_text(body)[:BODY_TEXT_LIMIT]
    if not text:
        return sender

    known = set(sender.amounts)
    new_amounts = [a.value for a in extract_amounts(text, "body") if a.value not in known]

    recent = list(sender.recent_emails)
    if recent:
        recent[0] = replace(recent[0], body_excerpt=body_excerpt(text))

    return replace(
        sender,
        body_text=text,
        amounts=sender.amounts + sorted(set(new_amounts)),
        recent_emails=recent,
    )


def _rank_key(sender: SenderSummary) -> tuple:
    significant = is_lifecycle_significant(sender)
    latest = chronological_key(sender.latest_date) if sender.latest_date else None
    return (significant, sender.email_count, latest is not None, latest)


def rank_senders(
    senders: Iterable[SenderSummary],
    limit: int | None = MAX_RANKED_SENDERS,
) -> list[SenderSummary]:
    """Order senders for the bounded AI step and keep the top *limit*.

    Senders with a cancellation signal come first regardless of volume,
    then higher email count, then the more recent latest email.
    """
    ranked = sorted(senders, key=_rank_key, reverse=True)
    if limit is not None:
        ranked = ranked[:limit]
    return ranked


def select_body_fetches(
    senders: list[SenderSummary],
    limit: int = MAX_BODY_FETCHES,
) -> list[SenderSummary]:
    """Senders whose latest body should be fetched, in ranking order."""
    return [
        s for s in senders
        if needs_body_fetch(s.email_count, s.amounts, s.billing_score)
    ][:limit]


def _sender_key(sender: SenderSummary) -> str:
    if sender.sender_domain != sender.query_domain:
        return "via:" + sender.sender_domain
    return sender.sender_domain


def attach_bodies(
    senders: list[SenderSummary],
    messages: Iterable[EmailMetadata],
    bodies: dict[str, str],
    limit: int = MAX_BODY_FETCHES,
) -> list[SenderSummary]:
    """Attach the latest message body to senders that need one.

    *bodies* maps message id to raw body text. Only senders picked by
    select_body_fetches() are enriched, and only when their newest message
    carries a body.
    """
    wanted = {_sender_key(s) for s in select_body_fetches(senders, limit)}
    if not wanted or not bodies:
        return list(senders)

    newest: dict[str, EmailMetadata] = {}
    for msg in messages:
        parsed = _parse_email(msg)
        if parsed is None or parsed.group_key not in wanted:
            continue
        current = newest.get(parsed.group_key)
        if current is None or chronological_key(msg.date) > chronological_key(current.date):
            newest[parsed.group_key] = msg

    newest = {key: msg for key, msg in newest.items() if msg.id in bodies}
    logger.info("Attaching bodies for %d of %d senders", len(newest), len(wanted))
    return [
        attach_body(s, bodies[newest[_sender_key(s)].id]) if _sender_key(s) in newest else s
        for s in senders
    ]


@dataclass
class ReviewResult:
    """Outcome of reviewing AI candidates against local evidence."""

    candidates: list[SubscriptionCandidate] = field(default_factory=list)
    lifecycles: dict[str, LifecycleResult] = field(default_factory=dict)


def apply_lifecycle(
    candidates: list[SubscriptionCandidate],
    senders: list[SenderSummary],
) -> tuple[list[SubscriptionCandidate], dict[str, LifecycleResult]]:
    """Resolve each candidate's status from its sender's timeline."""
    updated: list[SubscriptionCandidate] = []
    lifecycles: dict[str, LifecycleResult] = {}

    for candidate in candidates:
        sender = find_sender(candidate.name, senders)
        timeline = sender.recent_emails if sender else []
        result = resolve_lifecycle(
            timeline,
            candidate.subscription_status,
            candidate.status_effective_date,
        )
        if sender is not None:
            lifecycles[sender.sender_name] = result

        effective = result.effective_date
        if isinstance(effective, datetime):
            effective = effective.date()
        updated.append(
            replace(
                candidate,
                subscription_status=result.status,
                status_effective_date=effective,
                lifecycle_confidence=result.confidence,
            )
        )

    return updated, lifecycles


def review_candidates(
    senders: list[SenderSummary],
    ai_records: Iterable[Any],
    existing_names: Iterable[str] = (),
) -> ReviewResult:
    """Turn raw AI records into the candidate list shown to the user.

    Parses the records, cross-checks charge types and lifecycle status
    against the senders' emails, merges duplicates, drops what the user
    already tracks, and keeps only candidates with spend or a status change.
    """
    existing_names = list(existing_names)

    candidates = parse_candidates_from_json(ai_records)
    logger.info("Parsed %d AI candidates", len(candidates))

    candidates = validate_candidates(candidates, senders)
    candidates, lifecycles = apply_lifecycle(candidates, senders)

    candidates = deduplicate_candidates(candidates, existing_names)
    logger.info("After dedup against %d existing names: %d candidates", len(existing_names), len(candidates))

    candidates = auto_deselect(retain_meaningful(candidates))
    logger.info("After spend/lifecycle filter: %d candidates", len(candidates))

    return ReviewResult(candidates=candidates, lifecycles=lifecycles)
