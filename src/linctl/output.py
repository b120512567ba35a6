"""Output helpers shared by all commands.

Three modes are supported: aligned tables (default), markdown-flavoured
plaintext and JSON. Errors always go to stderr.
"""

import json
from datetime import datetime, timezone
from typing import Any, Iterable, List, Optional, Sequence

import typer

from .models import OutputFormat, PRIORITY_LABELS

TITLE_WIDTH = 40


def truncate(text: Optional[str], max_len: int = TITLE_WIDTH) -> str:
    """Shorten text to ``max_len`` characters, ending in '...' when cut."""
    text = text or ""
    if len(text) <= max_len:
        return text
    return text[:max_len - 3] + "..."


def priority_label(priority: Optional[int]) -> str:
    return PRIORITY_LABELS.get(priority, "Unknown")


def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    """Parse an ISO timestamp from the API ('Z' suffix allowed)."""
    if not value:
        return None
    return datetime.fromisoformat(value.replace('Z', '+00:00'))


def format_date(value: Optional[str], fmt: str = "%Y-%m-%d") -> str:
    parsed = parse_timestamp(value)
    return parsed.strftime(fmt) if parsed else ""


def format_time_ago(value: Optional[str], now: Optional[datetime] = None) -> str:
    """Render a timestamp relative to now, e.g. '3 hours ago'."""
    parsed = parse_timestamp(value)
    if parsed is None:
        return ""
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    now = now or datetime.now(timezone.utc)
    seconds = int((now - parsed).total_seconds())

    if seconds < 60:
        return "just now"
    for unit_seconds, unit in ((86400 * 365, "year"), (86400 * 30, "month"),
                               (86400 * 7, "week"), (86400, "day"),
                               (3600, "hour"), (60, "minute")):
        if seconds >= unit_seconds:
            count = seconds // unit_seconds
            return f"{count} {unit}{'s' if count != 1 else ''} ago"
    return "just now"


def render_json(data: Any) -> None:
    typer.echo(json.dumps(data, indent=2, default=str))


def render_table(headers: Sequence[str], rows: Iterable[Sequence[Any]]) -> None:
    """Print rows as left-aligned columns under an underlined header."""
    rows = [["" if cell is None else str(cell) for cell in row] for row in rows]
    widths = [len(header) for header in headers]
    for row in rows:
        for index, cell in enumerate(row):
            widths[index] = max(widths[index], len(cell))

    def line(cells: Sequence[str]) -> str:
        return "  ".join(cell.ljust(widths[index]) for index, cell in enumerate(cells)).rstrip()

    typer.secho(line(headers), bold=True)
    typer.echo(line(["-" * width for width in widths]))
    for row in rows:
        typer.echo(line(row))


def render_summary(count: int, label: str, has_next_page: bool = False) -> None:
    typer.echo("")
    typer.secho(f"✓ {count} {label}", fg=typer.colors.GREEN)
    if has_next_page:
        typer.secho("ℹ Use --limit to see more results", fg=typer.colors.YELLOW)


def render_markdown_fields(fields: List[tuple]) -> None:
    """Print '- **Label**: value' lines, skipping empty values."""
    for label, value in fields:
        if value is None or value == "":
            continue
        typer.echo(f"- **{label}**: {value}")


def info(message: str, output_format: OutputFormat) -> None:
    if output_format is OutputFormat.JSON:
        render_json({"message": message})
    else:
        typer.echo(message)


def success(message: str, output_format: OutputFormat) -> None:
    if output_format is OutputFormat.TABLE:
        typer.secho(f"✓ {message}", fg=typer.colors.GREEN)
    else:
        typer.echo(message)


def error(message: str, output_format: OutputFormat) -> None:
    if output_format is OutputFormat.JSON:
        typer.echo(json.dumps({"error": message}), err=True)
    elif output_format is OutputFormat.PLAINTEXT:
        typer.echo(f"Error: {message}", err=True)
    else:
        typer.secho(f"❌ {message}", fg=typer.colors.RED, err=True)
