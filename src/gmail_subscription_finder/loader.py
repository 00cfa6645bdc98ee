"""Loading exported messages and AI replies from JSON files."""

from __future__ import annotations

import json
import logging
from datetime import datetime
from email.utils import parsedate_to_datetime
from pathlib import Path
from typing import Any

from .body import extract_body_text
from .exceptions import InputFileError
from .models import EmailMetadata
from .prompt import parse_ai_response

logger = logging.getLogger(__name__)


def parse_message_date(value: Any) -> datetime | None:
    """Parse an ISO-8601 or RFC 2822 date string."""
    if not isinstance(value, str) or not value.strip():
        return None
    value = value.strip()
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        pass
    try:
        return parsedate_to_datetime(value)
    except (TypeError, ValueError, IndexError):
        return None


def _read_json(path: str | Path) -> Any:
    try:
        with open(path, encoding="utf-8") as f:
            return json.load(f)
    except OSError as e:
        raise InputFileError(path, f"cannot read file ({e.strerror or e})") from e
    except ValueError as e:
        raise InputFileError(path, f"invalid JSON ({e})") from e


def _parse_message(record: Any) -> tuple[EmailMetadata, str | None] | None:
    if not isinstance(record, dict):
        return None
    sender = record.get("from")
    date = parse_message_date(record.get("date"))
    if not isinstance(sender, str) or not sender.strip() or date is None:
        return None

    body = record.get("body")
    if not isinstance(body, str) and isinstance(record.get("payload"), dict):
        body = extract_body_text(record["payload"])
    msg = EmailMetadata(
        id=str(record.get("id", "")),
        sender=sender,
        subject=str(record.get("subject") or ""),
        date=date,
        snippet=str(record.get("snippet") or ""),
    )
    return msg, body if isinstance(body, str) and body.strip() else None


def load_emails(path: str | Path) -> tuple[list[EmailMetadata], dict[str, str]]:
    """Load messages from a JSON array file.

    Returns the messages and a map of message id to raw body for the
    records that carry one, either as a "body" string or as a Gmail API
    "payload" object (format=full). Records without a From header or a
    parseable date are logged and skipped.
    """
    data = _read_json(path)
    if not isinstance(data, list):
        raise InputFileError(path, "expected a JSON array of messages")

    messages: list[EmailMetadata] = []
    bodies: dict[str, str] = {}
    for index, record in enumerate(data):
        parsed = _parse_message(record)
        if parsed is None:
            logger.warning("Skipping message #%d in %s: missing from/date", index, path)
            continue
        msg, body = parsed
        messages.append(msg)
        if body is not None:
            bodies[msg.id] = body

    logger.info("Loaded %d messages (%d with bodies) from %s", len(messages), len(bodies), path)
    return messages, bodies


def load_ai_records(path: str | Path) -> list[Any]:
    """Load raw AI subscription records from a saved reply."""
    data = _read_json(path)
    if not isinstance(data, (dict, list)):
        raise InputFileError(path, "expected a JSON object or array")
    return parse_ai_response(data)
