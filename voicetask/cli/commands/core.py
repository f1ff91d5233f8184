"""Core commands for VoiceTask."""

import json
from datetime import datetime, UTC
from typing import Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from voicetask.core.voicetask_core.llm import LLMConfig
from voicetask.core.voicetask_core.parsing import (
    Deterministic,
    DeterministicParser,
    Fallback,
    ParseOutcome,
    TemporalResolver,
)
from voicetask.core.voicetask_core.parsing.models import format_timestamp
from voicetask.core.voicetask_core.router import TaskInterpreter

console = Console()

TZ_OFFSET_HELP = "Your timezone offset in minutes east of UTC (e.g. -300 for UTC-5)"
NOW_HELP = "Reference instant as ISO-8601 (defaults to the current time)"


def _parse_now(now: Optional[str]) -> Optional[datetime]:
    """Parse the --now option, exiting with status 2 when it is malformed."""
    if now is None:
        return None
    try:
        value = datetime.fromisoformat(now.strip().replace("Z", "+00:00"))
    except ValueError:
        console.print(f"✗ Invalid --now value: {now!r} (expected ISO-8601)", style="red")
        raise typer.Exit(code=2)
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value


def _render_outcome(outcome: ParseOutcome) -> None:
    task = outcome.task
    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column("Field", style="cyan")
    table.add_column("Value", style="bold")

    table.add_row("📝 Title", task.title or "[dim](empty)[/dim]")
    if task.description:
        table.add_row("📄 Description", task.description)
    table.add_row("📅 Due", format_timestamp(task.due_date) if task.due_date else "[dim]none[/dim]")
    table.add_row("🎯 Priority", task.priority.value)
    table.add_row("📌 Status", task.status.value)

    method_styles = {"assisted": "green", "fallback": "yellow", "deterministic": "cyan"}
    method = f"[{method_styles[outcome.method]}]{outcome.method}[/{method_styles[outcome.method]}]"
    if isinstance(outcome, Fallback):
        method += f" [dim]({outcome.reason.value})[/dim]"
    table.add_row("🧠 Method", method)

    console.print(table)


def parse(
    text: str = typer.Argument(..., help="Transcript to turn into a task"),
    tz_offset: Optional[int] = typer.Option(None, "--tz-offset", help=TZ_OFFSET_HELP),
    now: Optional[str] = typer.Option(None, "--now", help=NOW_HELP),
    deterministic: bool = typer.Option(False, "--deterministic", "-d", help="Skip the LLM and use rules only"),
    as_json: bool = typer.Option(False, "--json", help="Print the JSON payload instead of a table"),
) -> None:
    """Extract a structured task from a transcript."""
    reference = _parse_now(now)

    if deterministic:
        task = DeterministicParser().parse(text, timezone_offset=tz_offset, reference=reference)
        outcome: ParseOutcome = Deterministic(task=task)
    else:
        outcome = TaskInterpreter().extract(text, timezone_offset=tz_offset, reference=reference)

    if as_json:
        typer.echo(json.dumps(outcome.to_dict(), indent=2))
        return

    _render_outcome(outcome)


def when(
    text: str = typer.Argument(..., help="Text containing a date or time phrase"),
    tz_offset: Optional[int] = typer.Option(None, "--tz-offset", help=TZ_OFFSET_HELP),
    now: Optional[str] = typer.Option(None, "--now", help=NOW_HELP),
) -> None:
    """Show how a date phrase resolves."""
    reference = _parse_now(now)
    resolution = TemporalResolver().resolve(text, reference=reference, timezone_offset=tz_offset)

    if not resolution.found:
        console.print("📅 No date found", style="dim")
        return

    console.print(f"📅 {format_timestamp(resolution.instant)}", style="green")
    console.print(f"   Matched: {resolution.matched_span!r}", style="dim")


def config() -> None:
    """Show the effective LLM configuration."""
    llm_config = LLMConfig.load()
    settings = llm_config.to_dict()

    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("Setting", style="white")
    table.add_column("Value")
    for key, value in settings.items():
        table.add_row(key, "" if value is None else str(value))
    console.print(table)

    available = llm_config.use_llm and llm_config.has_credentials()
    if available:
        console.print(Panel(f"🧠 Assisted parsing ready ({llm_config.provider})", border_style="green"))
    else:
        console.print(Panel("⚙️ Assisted parsing unavailable, rules only", border_style="yellow"))
