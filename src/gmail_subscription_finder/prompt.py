"""Request text for the AI classification step, and unwrapping of its reply.

Nothing here talks to an AI service; callers send the prompt themselves
and hand the reply back to parse_ai_response().
"""

from __future__ import annotations

import json
import logging
from typing import Any, Iterable

from .constants import DIGEST_SNIPPET_LIMIT
from .models import SenderSummary

logger = logging.getLogger(__name__)

SYSTEM_PROMPT_TEMPLATE = """\
You are a subscription and billing detection assistant. You receive a summary of services that sent billing-related emails.

For each, classify the charge type and fill in the details.

Respond with ONLY valid JSON:
{{"subscriptions": [{{"service_name": "...", "cost": 15.99, "billing_cycle": "monthly", "category": "AI Services", "charge_type": "recurring_subscription", "subscription_status": "active", "status_effective_date": null, "renewal_date": "2026-03-15", "confidence": 0.95, "cost_source": "subject", "is_estimated": false, "evidence": "found $15.99 in subject", "notes": "..."}}]}}

SERVICE NAME: use the short brand name ("Vercel" not "Vercel Inc.").

CHARGE TYPE, one of: recurring_subscription, usage_topup, addon_credits, one_time_purchase, refund_or_reversal, unknown.
Always include refunds so they can be filtered.

SUBSCRIPTION STATUS, one of: active, canceled.
Only use "canceled" when an email explicitly confirms the cancellation; "cancel anytime" is not a cancellation.
Set status_effective_date (YYYY-MM-DD) to the date of the deciding email when known.

COST:
- If an amount is listed, use it and set cost_source to where it was found (subject/snippet/body), is_estimated false.
- Otherwise you MAY estimate from known pricing: cost_source "estimated", is_estimated true, confidence 0.5-0.6.
- billing_cycle: weekly, monthly or annual.

FILTERING:
- SKIP marketing, newsletters, free-tier notices, shipping notifications, password resets.
- SKIP services already tracked unless they were canceled: [{existing}]

OTHER FIELDS:
- category: AI Services, Streaming, SaaS, Development, Productivity, Other
- confidence: 0.0-1.0; renewal_date: YYYY-MM-DD; notes: brief context.
- If no paid charges are found, return {{"subscriptions": []}}
"""


def build_system_prompt(existing_names: Iterable[str] = ()) -> str:
    existing = ", ".join(existing_names) or "None"
    return SYSTEM_PROMPT_TEMPLATE.format(existing=existing)


def _format_amounts(sender: SenderSummary) -> str:
    if not sender.amounts:
        return "no amounts found"
    return ", ".join(f"{amount:.2f}" for amount in sender.amounts)


def format_sender_line(index: int, sender: SenderSummary) -> str:
    date_str = sender.latest_date.strftime("%Y-%m-%d") if sender.latest_date else "unknown date"
    line = (
        f"{index}. {sender.sender_name} ({sender.sender_domain}) - {sender.email_count} emails"
        f" - amounts: {_format_amounts(sender)}"
        f" - billing_score: {sender.billing_score:.1f}"
        f' - latest: "{sender.latest_subject}" ({date_str})'
    )
    if sender.latest_snippet:
        line += f' - snippet: "{sender.latest_snippet[:DIGEST_SNIPPET_LIMIT]}"'
    if sender.body_text is not None:
        line += " [body fetched]"
    return line


def build_sender_digest(senders: list[SenderSummary]) -> str:
    """Render senders as the numbered, one-line-each summary sent to the AI."""
    return "\n".join(format_sender_line(i, s) for i, s in enumerate(senders, start=1))


def build_user_message(senders: list[SenderSummary], lookback_months: int) -> str:
    return (
        "Here is a summary of services that sent billing-related emails in the past "
        f"{lookback_months} months. Classify each charge:\n\n{build_sender_digest(senders)}"
    )


def parse_ai_response(content: str | bytes | Any) -> list[Any]:
    """Return the raw subscription records from an AI reply.

    Accepts {"subscriptions": [...]}, a bare JSON array, or an already
    decoded object. Anything else yields an empty list.
    """
    data = content
    if isinstance(content, (str, bytes)):
        try:
            data = json.loads(content)
        except ValueError:
            logger.warning("AI response is not valid JSON")
            return []

    if isinstance(data, dict):
        data = data.get("subscriptions")
    if not isinstance(data, list):
        logger.warning("AI response has no subscriptions array")
        return []
    return data
