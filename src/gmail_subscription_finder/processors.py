"""Payment processor detection (Stripe, Paddle, PayPal, ...)."""

from __future__ import annotations

import re

from .constants import PROCESSOR_DOMAINS, PROCESSOR_SERVICE_NAME_LIMIT
from .models import ProcessorSplit

_SERVICE_PATTERNS = (
    re.compile(
        r"(?:receipt|invoice|payment|charge|subscription|order)\b.*\b(?:from|for|to)\s+(.+?)(?:\s*[-#|(\[:]|\s*$)",
        re.IGNORECASE,
    ),
    re.compile(r"^(.+?)\s+(?:receipt|invoice|payment)\b", re.IGNORECASE),
)
_LEADING_ARTICLE_RE = re.compile(r"^(?:your|the|a)\s+", re.IGNORECASE)
_NOT_A_SERVICE = {"your", "a", "the", "payment", "receipt", "invoice", "order"}


def processor_name_for(domain: str) -> str | None:
    """Return the processor display name for *domain* or any of its subdomains."""
    domain = domain.lower().strip().rstrip(".")
    while domain:
        if domain in PROCESSOR_DOMAINS:
            return PROCESSOR_DOMAINS[domain]
        if "." not in domain:
            return None
        domain = domain.split(".", 1)[1]
    return None


def _extract_service_name(subject: str) -> str | None:
    for pattern in _SERVICE_PATTERNS:
        match = pattern.search(subject)
        if not match:
            continue
        name = match.group(1).strip().strip("\"'").strip()
        name = _LEADING_ARTICLE_RE.sub("", name)
        if name and len(name) < PROCESSOR_SERVICE_NAME_LIMIT and name.lower() not in _NOT_A_SERVICE:
            return name
    return None


def detect_processor(domain: str, subject: str) -> ProcessorSplit:
    """Detect whether *domain* is a payment processor and recover the merchant.

    "Your receipt from Cursor" sent by stripe.com yields
    ProcessorSplit(True, "Stripe", "Cursor"). A processor email without a
    recognizable merchant keeps service_name as None.
    """
    processor = processor_name_for(domain or "")
    if processor is None:
        return ProcessorSplit(is_processor=False)

    return ProcessorSplit(
        is_processor=True,
        processor_name=processor,
        service_name=_extract_service_name(subject or ""),
    )
