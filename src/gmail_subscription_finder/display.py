"""Rich-based display functions for Gmail Subscription Finder."""

from __future__ import annotations

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from .constants import STATUS_CHANGE_TRUST_THRESHOLD
from .lifecycle import sender_lifecycle_score
from .models import SenderSummary, SubscriptionCandidate, SubscriptionStatus
from .query import sender_body_query
from .scorer import needs_body_fetch

console = Console()


def _score_color(score: float) -> str:
    """Return a Rich color name based on a 0-1 score."""
    if score >= 0.9:
        return "green"
    if score >= 0.7:
        return "yellow"
    return "red"


def is_trusted_status_change(candidate: SubscriptionCandidate) -> bool:
    """Whether a non-active status is confident enough to act on."""
    if candidate.subscription_status is SubscriptionStatus.ACTIVE:
        return False
    return candidate.effective_lifecycle_confidence >= STATUS_CHANGE_TRUST_THRESHOLD


def _status_cell(candidate: SubscriptionCandidate) -> str:
    status = candidate.subscription_status
    if status is SubscriptionStatus.ACTIVE:
        return "active"
    when = f" {candidate.status_effective_date.isoformat()}" if candidate.status_effective_date else ""
    if is_trusted_status_change(candidate):
        return f"[red]{status.value}{when}[/red]"
    return f"[dim]{status.value}{when} (unconfirmed)[/dim]"


def display_queries(queries: list[str]) -> None:
    table = Table(title="Gmail Search Queries")
    table.add_column("#", justify="right", style="dim")
    table.add_column("Query")
    for idx, query in enumerate(queries, start=1):
        table.add_row(str(idx), escape(query))
    console.print(table)


def display_senders(senders: list[SenderSummary], lookback_months: int) -> None:
    """Display ranked senders with their billing and lifecycle signals.

    Senders that need their latest body fetched are listed below the table
    together with the query to fetch it with.
    """
    table = Table(title="Billing Senders")
    table.add_column("#", justify="right", style="dim")
    table.add_column("Sender")
    table.add_column("Domain")
    table.add_column("Emails", justify="right")
    table.add_column("Amounts")
    table.add_column("Billing", justify="right")
    table.add_column("Lifecycle", justify="right")
    table.add_column("Latest subject")

    to_fetch: list[SenderSummary] = []
    for idx, sender in enumerate(senders, start=1):
        billing_color = _score_color(sender.billing_score)
        lifecycle = sender_lifecycle_score(sender)
        amounts = ", ".join(f"{a:.2f}" for a in sender.amounts) or "[dim]-[/dim]"
        fetch = needs_body_fetch(sender.email_count, sender.amounts, sender.billing_score)
        if fetch:
            to_fetch.append(sender)
            amounts += " [yellow]*[/yellow]"
        table.add_row(
            str(idx),
            escape(sender.sender_name),
            escape(sender.sender_domain),
            str(sender.email_count),
            amounts,
            f"[{billing_color}]{sender.billing_score:.2f}[/{billing_color}]",
            f"[red]{lifecycle:.2f}[/red]" if lifecycle else "[dim]0.00[/dim]",
            escape(sender.latest_subject),
        )

    console.print(table)

    if to_fetch:
        lines = ["[bold]* No amount found; fetch the latest body with:[/bold]", ""]
        for sender in to_fetch:
            lines.append(f"  - {escape(sender.sender_name)}: {escape(sender_body_query(sender, lookback_months))}")
        console.print(Panel("\n".join(lines), title="Body Fetch"))


def display_candidates(candidates: list[SubscriptionCandidate]) -> None:
    """Display reviewed candidates with a monthly spend summary."""
    if not candidates:
        console.print("[yellow]No subscription candidates found.[/yellow]")
        return

    table = Table(title="Subscription Candidates")
    table.add_column("", justify="center")
    table.add_column("Service")
    table.add_column("Cost", justify="right")
    table.add_column("Cycle")
    table.add_column("Type")
    table.add_column("Status")
    table.add_column("Confidence", justify="right")
    table.add_column("Source")

    monthly_total = 0
    for candidate in candidates:
        color = _score_color(candidate.confidence)
        if candidate.is_selected and candidate.subscription_status is SubscriptionStatus.ACTIVE:
            monthly_total += candidate.monthly_cost
        table.add_row(
            "[green]x[/green]" if candidate.is_selected else "[dim]-[/dim]",
            escape(candidate.name),
            f"{candidate.cost:.2f}",
            candidate.billing_cycle.value,
            candidate.charge_type.display_name,
            _status_cell(candidate),
            f"[{color}]{candidate.confidence:.2f} {candidate.confidence_label}[/{color}]",
            candidate.cost_source_label,
        )

    console.print(table)
    console.print(
        Panel(
            f"Candidates: {len(candidates)}  |  "
            f"Selected: {sum(1 for c in candidates if c.is_selected)}  |  "
            f"Active monthly spend: {monthly_total:.2f}",
            title="Summary",
        )
    )
