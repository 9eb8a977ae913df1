"""
Main CLI entry point for Foliot.

This module provides the primary command-line interface using typer.
"""

import logging
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

import click
import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.prompt import Confirm
from rich.table import Table

from .. import __version__
from ..core.exceptions import (
    IndexOutOfRangeError,
    ParseError,
    TimeTrackingError,
)
from ..core.summarizer import Granularity, total_all
from ..core.time_tracker import TimeTracker
from ..db.models import Entry
from ..utils.config import get_config_manager
from ..utils.formatting import (
    format_date,
    format_datetime,
    format_duration,
    format_hours,
    format_time,
    pluralize,
)
from ..utils.history import GitHistory, describe_command
from ..utils.time_parsing import (
    combine_date_and_time,
    parse_clock_time,
    parse_duration_hours,
    parse_starting_value,
)

# Create the main typer app
app = typer.Typer(
    name="foliot",
    help="Foliot: track time per namespace from the terminal",
    add_completion=False,
)

# Initialize console for rich output
console = Console()

# Global tracker instance
tracker: Optional[TimeTracker] = None


def get_tracker() -> TimeTracker:
    """Get or initialize the global time tracker instance."""
    global tracker
    if tracker is None:
        config = get_config_manager()
        tracker = TimeTracker(
            config.get_data_dir(), lock_timeout=config.get_lock_timeout()
        )
    return tracker


def _namespace(ctx: typer.Context) -> str:
    """Get the namespace selected with the global --namespace option."""
    return ctx.obj["namespace"]


def _fail(error: Exception) -> None:
    """Print an error and exit with a non-zero status."""
    console.print(f"[red]Error: {escape(str(error))}[/red]")
    raise typer.Exit(1)


def _record_history(ctx: typer.Context, action: str) -> None:
    """Snapshot the data directory in git if requested."""
    if not ctx.obj["git_commit"]:
        return

    config = get_config_manager()
    history = GitHistory(get_tracker().data_dir, config.get_git_binary())
    namespace = _namespace(ctx)

    console.print(f"\n[dim]=> git commit -am \"[{escape(namespace)}] {escape(action)}\"[/dim]")
    history.snapshot(namespace, action, push=ctx.obj["git_push"])
    if ctx.obj["git_push"]:
        console.print("[dim]=> git pull --rebase && git push[/dim]")


def _print_entry(entry: Entry) -> None:
    """Print the fields of a recorded entry."""
    console.print(f"[dim]  starting at {format_datetime(entry.start_time)}[/dim]")
    console.print(f"[dim]  ending at   {format_datetime(entry.end_time)}[/dim]")
    console.print(f"[dim]  duration:   {format_duration(entry.duration)}[/dim]")
    if entry.comment:
        console.print(f"[dim]  comment:    {escape(entry.comment)}[/dim]")


def _warn_overlaps(time_tracker: TimeTracker, namespace: str, entry: Entry) -> None:
    """Warn about existing entries that overlap a new one."""
    overlaps = time_tracker.find_overlaps(namespace, entry)
    if not overlaps:
        return

    console.print(
        f"[yellow]Warning: new entry overlaps {len(overlaps)} existing "
        f"{pluralize(len(overlaps), 'entry', 'entries')}[/yellow]"
    )
    for other in overlaps:
        console.print(
            f"[yellow]  {format_datetime(other.start_time)} - "
            f"{format_time(other.end_time)}[/yellow]"
        )


def _tail(items: List[Any], tail: int) -> List[Any]:
    """Keep the last `tail` items (all of them if tail is 0)."""
    if tail <= 0 or len(items) <= tail:
        return items
    return items[-tail:]


def _parse_amend_time(text: str, reference: datetime) -> datetime:
    """Parse an amended time; a bare time of day keeps the reference date."""
    try:
        time_of_day = parse_clock_time(text)
    except ParseError:
        return parse_starting_value(text, reference)
    return combine_date_and_time(reference.date(), time_of_day, reference)


@app.command()
def clockin(
    ctx: typer.Context,
    starting: Optional[str] = typer.Option(
        None,
        "--starting",
        "-s",
        help="Start time (HH:MM, 2015-09-18T23:56:04 or 18.09.2015 23:56)",
    ),
) -> None:
    """Start the clock."""
    namespace = _namespace(ctx)
    try:
        time_tracker = get_tracker()
        start_time = (
            parse_starting_value(starting, time_tracker.now()) if starting else None
        )
        session = time_tracker.clockin(namespace, start_time)

        console.print(
            f"[green]✓[/green] Started clock for namespace "
            f"[bold]{escape(namespace)}[/bold] ({format_datetime(session.start_time)})"
        )
        _record_history(
            ctx, describe_command("clockin", f'--starting "{starting}"' if starting else None)
        )
    except TimeTrackingError as e:
        _fail(e)


@app.command()
def clockout(
    ctx: typer.Context,
    comment: Optional[str] = typer.Argument(None, help="Comment on the clock entry"),
) -> None:
    """Stop the clock and save the entry."""
    namespace = _namespace(ctx)
    try:
        time_tracker = get_tracker()
        entry = time_tracker.clockout(namespace, comment)

        console.print(
            f"[green]✓[/green] Stopped clock for namespace [bold]{escape(namespace)}[/bold]"
        )
        _print_entry(entry)
        _warn_overlaps(time_tracker, namespace, entry)
        _record_history(ctx, describe_command("clockout", f'"{comment}"' if comment else None))
    except TimeTrackingError as e:
        _fail(e)


@app.command()
def clock(
    ctx: typer.Context,
    hours: str = typer.Argument(..., help="Number of hours to log, e.g. 2.5"),
    comment: Optional[str] = typer.Argument(None, help="Comment on the clock entry"),
    starting: Optional[str] = typer.Option(
        None,
        "--starting",
        "-s",
        help="Start time (HH:MM, 2015-09-18T23:56:04 or 18.09.2015 23:56)",
    ),
) -> None:
    """Clock an arbitrary amount of time."""
    namespace = _namespace(ctx)
    try:
        time_tracker = get_tracker()
        duration = parse_duration_hours(hours)
        start_time = (
            parse_starting_value(starting, time_tracker.now()) if starting else None
        )
        entry = time_tracker.clock(namespace, duration, start_time, comment)

        console.print(
            f"[green]✓[/green] Added entry to namespace [bold]{escape(namespace)}[/bold]"
        )
        _print_entry(entry)
        _warn_overlaps(time_tracker, namespace, entry)
        _record_history(
            ctx,
            describe_command(
                "clock",
                f'--starting "{starting}"' if starting else None,
                hours,
                f'"{comment}"' if comment else None,
            ),
        )
    except TimeTrackingError as e:
        _fail(e)


@app.command()
def abort(ctx: typer.Context) -> None:
    """Abort the running clock without saving an entry."""
    namespace = _namespace(ctx)
    try:
        session = get_tracker().abort(namespace)

        console.print(
            f"[yellow]Aborted clock for namespace {escape(namespace)} "
            f"(started {format_datetime(session.start_time)})[/yellow]"
        )
        _record_history(ctx, "abort")
    except TimeTrackingError as e:
        _fail(e)


@app.command()
def status(ctx: typer.Context) -> None:
    """Show whether the clock is running."""
    namespace = _namespace(ctx)
    try:
        time_tracker = get_tracker()
        session = time_tracker.get_active_session(namespace)

        if session is None:
            console.print(f"[dim]Clock is not running for namespace '{escape(namespace)}'[/dim]")
            return

        elapsed = session.elapsed(time_tracker.now())

        table = Table(show_header=False, show_edge=False, pad_edge=False)
        table.add_column("Key", style="dim")
        table.add_column("Value")
        table.add_row("Namespace", f"[bold]{escape(namespace)}[/bold]")
        table.add_row("Started", format_datetime(session.start_time))
        table.add_row("Running", format_duration(elapsed))

        console.print("[green]● Clock running[/green]")
        console.print(table)
    except TimeTrackingError as e:
        _fail(e)


@app.command()
def show(
    ctx: typer.Context,
    filter: Optional[str] = typer.Option(
        None, "--filter", "-f", help="Only show entries whose comment matches this regex"
    ),
    tail: Optional[int] = typer.Option(
        None, "--tail", "-t", help="Only show the last n entries (0 to show all)"
    ),
    wrap: Optional[int] = typer.Option(
        None, "--wrap", "-w", help="Wrap the comment column at this many characters"
    ),
) -> None:
    """Show entries in a table."""
    namespace = _namespace(ctx)
    config = get_config_manager()
    tail = config.get_tail() if tail is None else tail
    wrap = config.get_wrap() if wrap is None else wrap

    try:
        entries = _tail(get_tracker().get_entries(namespace, filter), tail)

        if not entries:
            console.print(f"[dim]No entries found for namespace '{escape(namespace)}'[/dim]")
            return

        table = Table(show_header=True, header_style="bold", style=config.get_color("table"))
        table.add_column("#", style="dim", justify="right")
        table.add_column("Date")
        table.add_column("From", justify="center")
        table.add_column("To", justify="center")
        table.add_column("Duration", justify="right", style=config.get_color("duration"))
        table.add_column("Comment", max_width=wrap, overflow="fold")

        for index, entry in entries:
            table.add_row(
                str(index + 1),
                format_date(entry.start_time),
                format_time(entry.start_time),
                format_time(entry.end_time),
                format_duration(entry.duration),
                escape(entry.comment or ""),
            )

        console.print(table)
        total = total_all(entry for _, entry in entries)
        console.print(f"\n[bold]Total: {format_duration(total)}[/bold]")
    except TimeTrackingError as e:
        _fail(e)


@app.command()
def summarize(
    ctx: typer.Context,
    filter: Optional[str] = typer.Option(
        None, "--filter", "-f", help="Only count entries whose comment matches this regex"
    ),
    tail: Optional[int] = typer.Option(
        None, "--tail", "-t", help="Only show the last n periods (0 to show all)"
    ),
    by: Optional[Granularity] = typer.Option(
        None, "--by", "-b", case_sensitive=False, help="Period to group by"
    ),
) -> None:
    """Create a per-period (by default per-month) summary."""
    namespace = _namespace(ctx)
    config = get_config_manager()
    tail = config.get_tail() if tail is None else tail

    try:
        granularity = by if by is not None else Granularity(config.get_summary_granularity())
    except ValueError:
        _fail(ParseError(f"Invalid summary granularity in config: {config.get_summary_granularity()}"))
        return

    try:
        summaries = get_tracker().summarize(namespace, granularity, filter)

        if not summaries:
            console.print(f"[dim]No entries found for namespace '{escape(namespace)}'[/dim]")
            return

        table = Table(show_header=True, header_style="bold", style=config.get_color("table"))
        table.add_column(granularity.value.capitalize(), style="cyan")
        table.add_column("Total", justify="right", style=config.get_color("duration"))
        table.add_column("Hours / Week", justify="right")
        table.add_column("Days", justify="center")
        table.add_column("Entries", justify="center")

        for summary in _tail(summaries, tail):
            table.add_row(
                summary.label,
                format_duration(summary.total_duration),
                f"{summary.hours_per_week:.2f}",
                str(summary.days_active),
                str(summary.entry_count),
            )

        console.print(table)
        total = sum((s.total_duration for s in summaries), timedelta(0))
        console.print(
            f"\n[bold]Total: {format_duration(total)} ({format_hours(total)} hours)[/bold]"
        )
    except TimeTrackingError as e:
        _fail(e)


@app.command()
def amend(
    ctx: typer.Context,
    number: int = typer.Argument(..., help="Entry number as listed by show"),
    start: Optional[str] = typer.Option(None, "--start", help="New start time"),
    end: Optional[str] = typer.Option(None, "--end", help="New end time"),
    comment: Optional[str] = typer.Option(None, "--comment", "-c", help="New comment"),
) -> None:
    """Change the start, end or comment of one entry."""
    namespace = _namespace(ctx)
    try:
        time_tracker = get_tracker()
        entries = dict(time_tracker.get_entries(namespace))
        index = number - 1
        if index not in entries:
            raise IndexOutOfRangeError(index, len(entries))

        current = entries[index]
        start_time = _parse_amend_time(start, current.start_time) if start else None
        end_time = _parse_amend_time(end, current.end_time) if end else None

        entry = time_tracker.update_entry(namespace, index, start_time, end_time, comment)

        console.print(f"[green]✓[/green] Updated entry #{number}")
        _print_entry(entry)
        _record_history(ctx, f"amend {number}")
    except IndexOutOfRangeError as e:
        _fail(TimeTrackingError(f"No entry #{number} in namespace '{namespace}' ({e.length} entries)"))
    except TimeTrackingError as e:
        _fail(e)


@app.command()
def delete(
    ctx: typer.Context,
    number: int = typer.Argument(..., help="Entry number as listed by show"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Do not ask for confirmation"),
) -> None:
    """Delete one entry."""
    namespace = _namespace(ctx)
    try:
        time_tracker = get_tracker()
        entries = dict(time_tracker.get_entries(namespace))
        index = number - 1
        if index not in entries:
            raise IndexOutOfRangeError(index, len(entries))

        entry = entries[index]
        description = (
            f"{format_datetime(entry.start_time)} - {format_time(entry.end_time)}"
            f" ({format_duration(entry.duration)})"
        )
        if not yes and not Confirm.ask(f"Delete entry #{number}: {description}?"):
            console.print("[dim]Cancelled[/dim]")
            return

        time_tracker.delete_entry(namespace, index)
        console.print(f"[green]✓[/green] Deleted entry #{number}: {description}")
        _record_history(ctx, f"delete {number}")
    except IndexOutOfRangeError as e:
        _fail(TimeTrackingError(f"No entry #{number} in namespace '{namespace}' ({e.length} entries)"))
    except TimeTrackingError as e:
        _fail(e)


@app.command()
def edit(ctx: typer.Context) -> None:
    """Open the namespace record in $EDITOR."""
    namespace = _namespace(ctx)
    try:
        time_tracker = get_tracker()
        path = time_tracker.get_namespace_path(namespace)
        if not path.exists():
            _fail(TimeTrackingError(f"No record found for namespace '{namespace}'"))

        click.edit(filename=str(path))
        count = time_tracker.validate_namespace(namespace)

        console.print(
            f"[green]✓[/green] Record of namespace [bold]{escape(namespace)}[/bold] is valid "
            f"({count} {pluralize(count, 'entry', 'entries')})"
        )
        _record_history(ctx, "edit")
    except click.ClickException as e:
        _fail(TimeTrackingError(e.format_message()))
    except TimeTrackingError as e:
        _fail(e)


@app.command()
def path(
    namespace: Optional[str] = typer.Option(
        None, "--namespace", "-n", help="Print the path of this namespace's record"
    ),
) -> None:
    """Print the path of the data directory or of a namespace record."""
    try:
        time_tracker = get_tracker()
        if namespace is None:
            typer.echo(str(time_tracker.data_dir))
        else:
            typer.echo(str(time_tracker.get_namespace_path(namespace)))
    except TimeTrackingError as e:
        _fail(e)


@app.command()
def namespaces() -> None:
    """List the namespaces that have a record."""
    try:
        time_tracker = get_tracker()
        names = time_tracker.list_namespaces()
        if not names:
            console.print("[dim]No namespaces found[/dim]")
            return

        table = Table(show_header=True, header_style="bold")
        table.add_column("Namespace", style="bold")
        table.add_column("Entries", justify="right")
        table.add_column("Total", justify="right", style="cyan")
        table.add_column("Clock")

        for name in names:
            entries = time_tracker.get_entries(name)
            running = time_tracker.get_active_session(name) is not None
            table.add_row(
                escape(name),
                str(len(entries)),
                format_duration(total_all(entry for _, entry in entries)),
                "[green]running[/green]" if running else "[dim]idle[/dim]",
            )

        console.print(table)
    except TimeTrackingError as e:
        _fail(e)


@app.command(context_settings={"allow_extra_args": True, "ignore_unknown_options": True})
def git(ctx: typer.Context) -> None:
    """Run a git command in the data directory."""
    try:
        history = GitHistory(get_tracker().data_dir, get_config_manager().get_git_binary())
        returncode = history.run(list(ctx.args))
    except TimeTrackingError as e:
        _fail(e)
        return

    if returncode != 0:
        raise typer.Exit(returncode)


@app.command()
def version() -> None:
    """Show version information."""
    console.print(f"foliot {__version__}")


def version_callback(value: bool) -> None:
    """Version callback that prints version and exits."""
    if value:
        version()
        raise typer.Exit()


def _configure_logging(verbose: bool) -> None:
    """Send log records to stderr through rich."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


@app.callback()
def main(
    ctx: typer.Context,
    namespace: Optional[str] = typer.Option(
        None, "--namespace", "-n", help="The namespace to apply the command to"
    ),
    git_commit: Optional[bool] = typer.Option(
        None,
        "--git-commit/--no-git-commit",
        "-g",
        help='Run `git commit -am "[<namespace>] <action>"` afterwards',
    ),
    git_push: Optional[bool] = typer.Option(
        None,
        "--git-push/--no-git-push",
        "-p",
        help="Pull, rebase and push the git repository afterwards",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit",
    ),
) -> None:
    """
    Foliot: track time per namespace from the terminal.

    Entries are kept in one YAML file per namespace.
    """
    _configure_logging(verbose)
    config = get_config_manager()

    if git_push is None:
        git_push = config.is_auto_push_enabled()
    if git_commit is None:
        git_commit = config.is_auto_commit_enabled() or git_push

    obj: Dict[str, Any] = {
        "namespace": namespace if namespace is not None else config.get_default_namespace(),
        "git_commit": git_commit,
        "git_push": git_push,
    }
    ctx.obj = obj


if __name__ == "__main__":
    app()
