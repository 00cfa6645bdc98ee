"""Data models for Gmail Subscription Finder."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from enum import Enum

from .constants import BODY_EXCERPT_LIMIT


class ChargeType(str, Enum):
    """What kind of monetary event an email represents."""

    RECURRING_SUBSCRIPTION = "recurring_subscription"
    USAGE_TOPUP = "usage_topup"
    ADDON_CREDITS = "addon_credits"
    ONE_TIME_PURCHASE = "one_time_purchase"
    REFUND_OR_REVERSAL = "refund_or_reversal"
    UNKNOWN = "unknown"

    @property
    def is_recurring(self) -> bool:
        return self is ChargeType.RECURRING_SUBSCRIPTION

    @property
    def is_non_recurring(self) -> bool:
        return self in (
            ChargeType.USAGE_TOPUP,
            ChargeType.ADDON_CREDITS,
            ChargeType.ONE_TIME_PURCHASE,
        )

    @property
    def display_name(self) -> str:
        return _CHARGE_TYPE_NAMES[self]


_CHARGE_TYPE_NAMES = {
    ChargeType.RECURRING_SUBSCRIPTION: "Subscription",
    ChargeType.USAGE_TOPUP: "API Top-up",
    ChargeType.ADDON_CREDITS: "Add-on",
    ChargeType.ONE_TIME_PURCHASE: "One-time",
    ChargeType.REFUND_OR_REVERSAL: "Refund",
    ChargeType.UNKNOWN: "Unknown",
}


class SubscriptionStatus(str, Enum):
    ACTIVE = "active"
    CANCELED = "canceled"


class CostSource(str, Enum):
    SUBJECT = "subject"
    SNIPPET = "snippet"
    BODY = "body"
    ESTIMATED = "estimated"


class BillingCycle(str, Enum):
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    ANNUAL = "annual"

    @property
    def monthly_cost_multiplier(self) -> Decimal:
        if self is BillingCycle.WEEKLY:
            return Decimal(52) / Decimal(12)
        if self is BillingCycle.ANNUAL:
            return Decimal(1) / Decimal(12)
        return Decimal(1)


class SubscriptionCategory(str, Enum):
    AI_SERVICES = "AI Services"
    STREAMING = "Streaming"
    SAAS = "SaaS"
    DEVELOPMENT = "Development"
    PRODUCTIVITY = "Productivity"
    OTHER = "Other"


@dataclass(frozen=True)
class EmailMetadata:
    """Headers and snippet of a single message, as handed over by the mail client."""

    id: str
    sender: str  # Full From header value
    subject: str
    date: datetime
    snippet: str = ""


@dataclass(frozen=True)
class EmailSummary:
    """One entry of a sender's recent-email timeline."""

    date: datetime
    subject: str
    snippet: str = ""
    body_excerpt: str | None = None

    @classmethod
    def build(
        cls,
        date: datetime,
        subject: str,
        snippet: str = "",
        body_excerpt: str | None = None,
    ) -> EmailSummary:
        if body_excerpt is not None:
            body_excerpt = body_excerpt[:BODY_EXCERPT_LIMIT]
        return cls(date=date, subject=subject, snippet=snippet, body_excerpt=body_excerpt)


@dataclass(frozen=True)
class ExtractedAmount:
    value: Decimal
    currency: str  # ISO code
    source: str  # "subject", "snippet" or "body"


@dataclass(frozen=True)
class ClassificationResult:
    type: ChargeType
    confidence: float


@dataclass(frozen=True)
class LifecycleResult:
    status: SubscriptionStatus
    confidence: float
    effective_date: datetime | date | None = None


@dataclass(frozen=True)
class ProcessorSplit:
    is_processor: bool
    processor_name: str = ""
    service_name: str | None = None


@dataclass
class SenderSummary:
    """Aggregated evidence for a single sender."""

    sender_name: str
    sender_domain: str
    query_domain: str  # differs from sender_domain only after a processor split
    email_count: int
    amounts: list[Decimal] = field(default_factory=list)
    latest_subject: str = ""
    latest_date: datetime | None = None
    latest_snippet: str = ""
    billing_score: float = 0.0
    body_text: str | None = None
    recent_emails: list[EmailSummary] = field(default_factory=list)


@dataclass
class SubscriptionCandidate:
    """A subscription proposed for the user to review."""

    name: str
    cost: Decimal = Decimal("0")
    billing_cycle: BillingCycle = BillingCycle.MONTHLY
    category: SubscriptionCategory = SubscriptionCategory.OTHER
    renewal_date: date | None = None
    confidence: float = 0.5  # as reported by the AI
    is_selected: bool = True
    source_email_count: int = 1
    notes: str | None = None
    cost_source: CostSource = CostSource.ESTIMATED
    is_estimated: bool = True
    evidence: str | None = None
    charge_type: ChargeType = ChargeType.UNKNOWN
    subscription_status: SubscriptionStatus = SubscriptionStatus.ACTIVE
    status_effective_date: date | None = None
    lifecycle_confidence: float | None = None

    @property
    def monthly_cost(self) -> Decimal:
        return (self.cost * self.billing_cycle.monthly_cost_multiplier).quantize(Decimal("0.01"))

    @property
    def effective_lifecycle_confidence(self) -> float:
        """Confidence to gate status changes on."""
        if self.lifecycle_confidence is not None:
            return self.lifecycle_confidence
        return self.confidence

    @property
    def confidence_label(self) -> str:
        if self.confidence >= 0.9:
            return "High"
        if self.confidence >= 0.7:
            return "Medium"
        return "Low"

    @property
    def cost_source_label(self) -> str:
        return "Estimated" if self.is_estimated else "Extracted"
