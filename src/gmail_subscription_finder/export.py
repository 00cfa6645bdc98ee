"""Export reviewed subscription candidates to CSV or JSON."""

from __future__ import annotations

import csv
import json
from typing import Any

from .models import SubscriptionCandidate

FIELDNAMES = [
    "name",
    "cost",
    "billing_cycle",
    "monthly_cost",
    "category",
    "charge_type",
    "subscription_status",
    "status_effective_date",
    "lifecycle_confidence",
    "renewal_date",
    "confidence",
    "cost_source",
    "is_estimated",
    "is_selected",
    "source_email_count",
    "evidence",
    "notes",
]


def candidate_row(candidate: SubscriptionCandidate) -> dict[str, Any]:
    """Flatten a candidate into JSON-compatible values."""
    return {
        "name": candidate.name,
        "cost": str(candidate.cost),
        "billing_cycle": candidate.billing_cycle.value,
        "monthly_cost": str(candidate.monthly_cost),
        "category": candidate.category.value,
        "charge_type": candidate.charge_type.value,
        "subscription_status": candidate.subscription_status.value,
        "status_effective_date": (
            candidate.status_effective_date.isoformat() if candidate.status_effective_date else None
        ),
        "lifecycle_confidence": candidate.effective_lifecycle_confidence,
        "renewal_date": candidate.renewal_date.isoformat() if candidate.renewal_date else None,
        "confidence": candidate.confidence,
        "cost_source": candidate.cost_source.value,
        "is_estimated": candidate.is_estimated,
        "is_selected": candidate.is_selected,
        "source_email_count": candidate.source_email_count,
        "evidence": candidate.evidence,
        "notes": candidate.notes,
    }


def export_candidates(
    candidates: list[SubscriptionCandidate],
    format: str,
    output_path: str,
) -> None:
    """Export candidates to a file.

    Args:
        candidates: Reviewed candidates, in display order.
        format: Output format, either 'csv' or 'json'.
        output_path: Path to write the output file.
    """
    rows = [candidate_row(c) for c in candidates]

    if format == "csv":
        with open(output_path, "w", newline="") as f:
            writer = csv.DictWriter(f, fieldnames=FIELDNAMES)
            writer.writeheader()
            for row in rows:
                writer.writerow({k: "" if v is None else v for k, v in row.items()})
    elif format == "json":
        with open(output_path, "w") as f:
            json.dump(rows, f, indent=2)
    else:
        raise ValueError(f"Unsupported export format: {format}")
