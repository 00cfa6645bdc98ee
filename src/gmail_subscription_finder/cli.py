"""CLI entry point for Gmail Subscription Finder."""

from __future__ import annotations

import logging

import click
from rich.logging import RichHandler

from .constants import DEFAULT_LOOKBACK_MONTHS, MAX_RANKED_SENDERS
from .display import console, display_candidates, display_queries, display_senders
from .exceptions import SubscriptionFinderError
from .export import export_candidates
from .loader import load_ai_records, load_emails
from .models import SenderSummary
from .prompt import build_system_prompt, build_user_message
from .query import build_search_queries, clamp_lookback
from .scanner import attach_bodies, group_by_sender, rank_senders, review_candidates

logger = logging.getLogger(__name__)

_LOG_LEVELS = {0: logging.WARNING, 1: logging.INFO}


def _configure_logging(verbosity: int) -> None:
    level = _LOG_LEVELS.get(verbosity, logging.DEBUG)
    handler = RichHandler(console=console, show_path=False)
    package_logger = logging.getLogger(__name__.rpartition(".")[0] or __name__)
    package_logger.handlers[:] = [handler]
    package_logger.setLevel(level)
    package_logger.propagate = False


def _load_senders(emails_json: str, limit: int | None) -> list[SenderSummary]:
    try:
        messages, bodies = load_emails(emails_json)
    except SubscriptionFinderError as e:
        raise click.ClickException(str(e)) from e

    senders = rank_senders(group_by_sender(messages), limit)
    logger.debug("Kept %d top-ranked senders from %d messages", len(senders), len(messages))
    return attach_bodies(senders, messages, bodies)


lookback_option = click.option(
    "--lookback",
    default=DEFAULT_LOOKBACK_MONTHS,
    show_default=True,
    type=int,
    help="Months of mail to search (clamped to 1-36).",
)
existing_option = click.option(
    "--existing",
    multiple=True,
    help="Name of a subscription already tracked (repeatable).",
)


@click.group(context_settings={"auto_envvar_prefix": "GMAIL_SUBSCRIPTION_FINDER"})
@click.version_option(version="0.1.0", prog_name="gmail-subscription-finder")
@click.option("-v", "--verbose", count=True, help="Log progress (-v) or debug detail (-vv).")
def cli(verbose: int) -> None:
    """Gmail Subscription Finder - find paid subscriptions in billing emails."""
    _configure_logging(verbose)


@cli.command()
@lookback_option
def queries(lookback: int) -> None:
    """Print the Gmail search queries for billing emails."""
    display_queries(build_search_queries(lookback))


@cli.command()
@click.argument("emails_json", type=click.Path(dir_okay=False))
@click.option("--limit", default=MAX_RANKED_SENDERS, show_default=True, type=int, help="Maximum senders to show.")
@lookback_option
def senders(emails_json: str, limit: int, lookback: int) -> None:
    """Group exported messages by sender and rank them."""
    ranked = _load_senders(emails_json, limit)
    if not ranked:
        console.print("[yellow]No senders found.[/yellow]")
        return
    display_senders(ranked, clamp_lookback(lookback))


@cli.command()
@click.argument("emails_json", type=click.Path(dir_okay=False))
@existing_option
@lookback_option
def prompt(emails_json: str, existing: tuple[str, ...], lookback: int) -> None:
    """Print the AI system prompt and sender digest for exported messages."""
    ranked = _load_senders(emails_json, MAX_RANKED_SENDERS)
    click.echo(build_system_prompt(existing))
    click.echo()
    click.echo(build_user_message(ranked, clamp_lookback(lookback)))


@cli.command()
@click.argument("emails_json", type=click.Path(dir_okay=False))
@click.argument("ai_json", type=click.Path(dir_okay=False))
@existing_option
@click.option(
    "--format",
    "fmt",
    type=click.Choice(["csv", "json"]),
    default="csv",
    help="Export format.",
)
@click.option("-o", "--output", default=None, help="Export candidates to this file.")
def review(
    emails_json: str,
    ai_json: str,
    existing: tuple[str, ...],
    fmt: str,
    output: str | None,
) -> None:
    """Review AI-proposed subscriptions against the exported messages."""
    ranked = _load_senders(emails_json, MAX_RANKED_SENDERS)
    try:
        records = load_ai_records(ai_json)
    except SubscriptionFinderError as e:
        raise click.ClickException(str(e)) from e

    result = review_candidates(ranked, records, existing)
    display_candidates(result.candidates)

    if output:
        export_candidates(result.candidates, format=fmt, output_path=output)
        console.print(f"[green]Results saved to {output}[/green]")
