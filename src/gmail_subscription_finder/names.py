"""Service name normalization used for matching senders and candidates."""

from __future__ import annotations

import re

from .constants import LEGAL_SUFFIXES

_WHITESPACE_RE = re.compile(r"\s+")
_PUNCTUATION_RE = re.compile(r"[^\w ]", re.UNICODE)


def _strip_legal_suffix(name: str) -> str:
    # "Anthropic, PBC" / "Acme, a Delaware corporation"
    if "," in name:
        name = name.rsplit(",", 1)[0].strip()

    for suffix in LEGAL_SUFFIXES:
        if name.endswith(" " + suffix):
            return name[: -len(suffix) - 1].strip()
    return name


def normalize(name: str) -> str:
    """Canonicalize a sender or service name for comparison.

    Lowercases, trims, collapses whitespace, drops a trailing legal-entity
    suffix and removes punctuation so that "Open-AI" and "openai" compare
    equal. Applying it twice gives the same result as applying it once.
    """
    if not name:
        return ""

    # Removing punctuation can expose another suffix ("Foo L.L.C" -> "foo llc"),
    # so repeat until the result is stable.
    result = _normalize_once(name)
    while True:
        again = _normalize_once(result)
        if again == result:
            return result
        result = again


def _normalize_once(name: str) -> str:
    result = _WHITESPACE_RE.sub(" ", name.lower()).strip()
    result = _strip_legal_suffix(result)
    result = _PUNCTUATION_RE.sub("", result).replace("_", "")
    return _WHITESPACE_RE.sub(" ", result).strip()


def names_match(a: str, b: str) -> bool:
    """Return True if two names refer to the same service after normalization."""
    na = normalize(a)
    nb = normalize(b)
    if not na or not nb:
        return False
    return na == nb or na in nb or nb in na
