"""Operator CLI for the RealTea ranking and trust engine using Typer and Rich."""

import json
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from realtea_engine import __version__
from realtea_engine.abuse.trust_calculator import (
    compute_trust_score,
    has_voting_influence,
    trust_level,
)
from realtea_engine.config.logging import configure_logging, get_logger
from realtea_engine.config.settings import settings
from realtea_engine.data_management.schemas import Event, UserStats
from realtea_engine.moderation.content_moderator import ContentModerator
from realtea_engine.ranking.breaking_heuristic import (
    calculate_urgency_score,
    is_breaking_heuristic,
)
from realtea_engine.ranking.rank_scorer import EventRankScorer, freshness_score

app = typer.Typer(
    help="RealTea engine CLI - credibility, trust and ranking tools",
    add_completion=False,
)

console = Console()

logger = get_logger("cli")


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log at DEBUG level"),
) -> None:
    if verbose:
        configure_logging("DEBUG")


def _configured(value: object) -> str:
    return "✓ Configured" if value else "⚠ Not Configured"


@app.command()
def status() -> None:
    """
    Display engine configuration.

    Shows evidence providers, AI reasoner, rate limits and thresholds.
    """
    logger.info("Displaying engine status")

    table = Table(title="RealTea Engine Status", show_header=True, header_style="bold magenta")
    table.add_column("Component", style="cyan", width=20)
    table.add_column("Status", style="green", width=16)
    table.add_column("Details", style="yellow")

    python_version = f"Python {sys.version_info.major}.{sys.version_info.minor}.{sys.version_info.micro}"
    table.add_row("Environment", "✓ Ready", python_version)
    table.add_row("Gemini Reasoner", _configured(settings.gemini_api_key), settings.gemini_model)
    table.add_row("NewsAPI", _configured(settings.news_api_key), "newsapi.org/v2/everything")
    table.add_row("GDELT", "✓ Enabled" if settings.gdelt_enabled else "✗ Disabled", "no key required")
    table.add_row("Mediastack", _configured(settings.mediastack_api_key), "api.mediastack.com")
    table.add_row(
        "Rate Limits",
        "✓ Active",
        f"votes {settings.vote_limit}/{settings.vote_window_seconds}s, "
        f"comments {settings.comment_limit}/{settings.comment_window_seconds}s",
    )
    table.add_row(
        "Fact-check",
        "✓ Active",
        f"min credibility {settings.min_credibility_score}, "
        f"min sources {settings.min_independent_sources}",
    )
    table.add_row("Logging", "✓ Active", f"Level: {settings.log_level}, Format: {settings.log_format}")

    console.print(table)


@app.command()
def moderate(text: str = typer.Argument(..., help="Text to classify")) -> None:
    """Run the moderation gate on a piece of text."""
    result = ContentModerator().moderate(text)
    if result.clean:
        console.print("[green]✓[/green] Clean")
        return

    console.print(
        Panel(
            f"Reason: {result.reason.value}\nSeverity: {result.severity.value}\n{result.detail}",
            title="Flagged",
            border_style="red",
        )
    )
    raise typer.Exit(1)


@app.command("trust-score")
def trust_score(
    account_age_days: int = typer.Option(0, help="Account age in days"),
    email_verified: bool = typer.Option(False, help="Email verified"),
    total_votes: int = typer.Option(0, help="Votes judged against consensus"),
    aligned_votes: int = typer.Option(0, help="Votes matching consensus"),
    low_credibility_upvotes: int = typer.Option(0),
    burst_voting: bool = typer.Option(False),
    ip_violations: int = typer.Option(0),
    approved_corrections: int = typer.Option(0),
    flagged_content: int = typer.Option(0),
) -> None:
    """Compute a trust score from raw user counters."""
    now = datetime.now(timezone.utc)
    stats = UserStats(
        user_id="cli",
        account_created_at=now - timedelta(days=account_age_days),
        email_verified=email_verified,
        total_votes=total_votes,
        aligned_votes=aligned_votes,
        low_credibility_upvotes=low_credibility_upvotes,
        burst_voting_flag=burst_voting,
        ip_violations=ip_violations,
        approved_corrections=approved_corrections,
        flagged_content_count=flagged_content,
    )
    score = compute_trust_score(stats, now)
    influence = "yes" if has_voting_influence(stats, now) else "no"
    console.print(f"[bold]Trust score:[/bold] {score} ({trust_level(score)})")
    console.print(f"[dim]Voting influence: {influence}[/dim]")


@app.command()
def freshness(hours: float = typer.Argument(..., help="Event age in hours")) -> None:
    """Show the freshness sub-score for an event age."""
    now = datetime.now(timezone.utc)
    score = freshness_score(now - timedelta(hours=hours), now)
    console.print(f"Age {hours:g}h ({hours / 24:.2f}d) -> freshness {score:.2f}")


@app.command()
def urgency(
    title: str = typer.Argument(..., help="Headline"),
    description: str = typer.Option("", help="Short description"),
) -> None:
    """Score a headline with the breaking-news keyword heuristic."""
    score = calculate_urgency_score(title, description)
    breaking = is_breaking_heuristic(title, description)
    label = "[red]BREAKING[/red]" if breaking else "[dim]routine[/dim]"
    console.print(f"Urgency {score} - {label}")


@app.command()
def rank(
    events_file: Path = typer.Argument(..., exists=True, help="JSON list of events"),
    top: int = typer.Option(10, help="Rows to display"),
) -> None:
    """Rank events from a JSON file with the two-pass ranking."""
    raw = json.loads(events_file.read_text())
    events = [Event.model_validate(item) for item in raw]
    ranked = EventRankScorer().rank_events(events)
    titles = {e.id: e.title for e in events}

    table = Table(title=f"Top {min(top, len(ranked))} of {len(ranked)} events")
    table.add_column("#", justify="right")
    table.add_column("Event", style="cyan")
    table.add_column("Rank", justify="right", style="green")
    table.add_column("Fresh", justify="right")
    table.add_column("Engage", justify="right")
    table.add_column("Diversity", justify="right", style="red")
    for i, b in enumerate(ranked[:top], start=1):
        table.add_row(
            str(i),
            titles[b.event_id][:60],
            f"{b.rank_score:.1f}",
            f"{b.freshness:.1f}",
            f"{b.engagement:.1f}",
            f"-{b.diversity_penalty:.0f}",
        )
    console.print(table)


@app.command()
def version() -> None:
    """Display version information."""
    console.print("[bold]RealTea Engine[/bold]")
    console.print(f"Version: {__version__}")


if __name__ == "__main__":
    app()
