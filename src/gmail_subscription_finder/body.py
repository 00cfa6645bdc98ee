"""Plain-text extraction from message bodies handed over by the mail client."""

from __future__ import annotations

import base64
import binascii
import re

from bs4 import BeautifulSoup

from .constants import BODY_EXCERPT_LIMIT

_WHITESPACE_RE = re.compile(r"\s+")
_HTML_HINT_RE = re.compile(r"<\s*(?:html|body|div|p|br|table|span|td|a)\b", re.IGNORECASE)


def html_to_text(html: str) -> str:
    """Strip tags and entities from *html*, collapsing whitespace."""
    if not html:
        return ""
    soup = BeautifulSoup(html, "html.parser")
    for tag in soup(["script", "style", "head"]):
        tag.decompose()
    text = soup.get_text(separator=" ")
    return _WHITESPACE_RE.sub(" ", text).strip()


def looks_like_html(text: str) -> bool:
    return bool(text) and _HTML_HINT_RE.search(text) is not None


def to_plain_text(text: str | None) -> str:
    """Return *text* as plain text, converting it first if it looks like HTML."""
    if not text:
        return ""
    if looks_like_html(text):
        return html_to_text(text)
    return _WHITESPACE_RE.sub(" ", text).strip()


def _decode_body_data(part: dict) -> str:
    data = part.get("body", {}).get("data", "")
    if not data:
        return ""
    padded = data + "=" * (-len(data) % 4)
    try:
        return base64.urlsafe_b64decode(padded).decode("utf-8", errors="replace")
    except (binascii.Error, ValueError):
        return ""


def extract_body_text(payload: dict) -> str:
    """Extract readable text from a Gmail API message payload (format=full).

    text/plain parts are preferred over text/html; multipart payloads are
    searched recursively. Returns "" when nothing can be decoded.
    """
    mime_type = payload.get("mimeType", "")

    if mime_type == "text/plain":
        return to_plain_text(_decode_body_data(payload))

    if mime_type == "text/html":
        return html_to_text(_decode_body_data(payload))

    parts = payload.get("parts") or []
    for part in parts:
        if part.get("mimeType") == "text/plain":
            text = extract_body_text(part)
            if text:
                return text
    for part in parts:
        text = extract_body_text(part)
        if text:
            return text
    return ""


def body_excerpt(text: str | None, limit: int = BODY_EXCERPT_LIMIT) -> str | None:
    if not text:
        return None
    return text[:limit]
