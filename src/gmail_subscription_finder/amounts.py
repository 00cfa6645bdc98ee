"""Multi-currency amount extraction from email text."""

from __future__ import annotations

import re
from decimal import Decimal, InvalidOperation

from .constants import AMOUNT_CEILING, CURRENCY_SYMBOLS, ISO_CURRENCY_CODES
from .models import ExtractedAmount

SOURCE_PRIORITY = {"subject": 0, "snippet": 1, "body": 2}

_SYMBOL_RE = re.compile(
    "("
    + "|".join(re.escape(s) for s in sorted(CURRENCY_SYMBOLS, key=len, reverse=True))
    + r")\s?(\d{1,3}(?:,\d{3})+(?:\.\d{1,2})?|\d+(?:\.\d{1,2})?)"
)
_SUFFIX_RE = re.compile(
    r"\b(\d{1,3}(?:,\d{3})+(?:\.\d{1,2})?|\d+(?:\.\d{1,2})?)\s*("
    + "|".join(ISO_CURRENCY_CODES)
    + r")\b"
)


def _parse_value(raw: str) -> Decimal | None:
    try:
        value = Decimal(raw.replace(",", ""))
    except InvalidOperation:
        return None
    if value <= 0 or value >= AMOUNT_CEILING:
        return None
    return value


def extract_amounts(text: str, source: str) -> list[ExtractedAmount]:
    """Extract every plausible monetary amount in *text*, tagged with *source*.

    Recognizes symbol-prefixed values ("$19.99", "€1,299.00") and values with
    an ISO code suffix ("200 USD"). Values at or above 100,000 are dropped.
    """
    if not text:
        return []

    results: list[ExtractedAmount] = []

    for match in _SYMBOL_RE.finditer(text):
        value = _parse_value(match.group(2))
        if value is not None:
            currency = CURRENCY_SYMBOLS[match.group(1)]
            results.append(ExtractedAmount(value=value, currency=currency, source=source))

    for match in _SUFFIX_RE.finditer(text):
        # "$200 USD" was already captured by the symbol pattern
        start = match.start(1)
        if start > 0 and text[max(0, start - 3):start].rstrip().endswith(tuple(CURRENCY_SYMBOLS)):
            continue
        value = _parse_value(match.group(1))
        if value is not None:
            results.append(ExtractedAmount(value=value, currency=match.group(2), source=source))

    return results


def _dedupe_by_value(amounts: list[ExtractedAmount]) -> list[ExtractedAmount]:
    seen: dict[Decimal, ExtractedAmount] = {}
    for amount in amounts:
        existing = seen.get(amount.value)
        if existing is None or SOURCE_PRIORITY.get(amount.source, 3) < SOURCE_PRIORITY.get(existing.source, 3):
            seen[amount.value] = amount
    return sorted(seen.values(), key=lambda a: SOURCE_PRIORITY.get(a.source, 3))


def extract_all_amounts(
    subject: str,
    snippet: str,
    body_text: str | None = None,
) -> list[ExtractedAmount]:
    """Extract amounts from subject and snippet, falling back to the body.

    Subject and snippet amounts are deduplicated by value, keeping the
    subject-sourced one. The body is only read when neither header field
    produced an amount.
    """
    header_amounts = _dedupe_by_value(
        extract_amounts(subject, "subject") + extract_amounts(snippet, "snippet")
    )
    if header_amounts or not body_text:
        return header_amounts
    return extract_amounts(body_text, "body")
