"""CLI for the krprobe acceptance harness.

Usage:
    python -m krprobe list                                  # Show available suites
    python -m krprobe run hello_world                       # Run one suite
    python -m krprobe run --all                             # Run every suite
    python -m krprobe probe http://127.0.0.1:5000 /hello    # Check one route
    python -m krprobe sse http://127.0.0.1:5000 /sse        # Print SSE events
    python -m krprobe health http://127.0.0.1:5000          # Print health report
    python -m krprobe openapi http://127.0.0.1:5000 --fixture doc.json
    python -m krprobe results                               # List all stored results
    python -m krprobe report                                # Generate RESULTS.md history
    python -m krprobe note <suite> <timestamp> <text>       # Annotate a run
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import List, Optional

import httpx
import typer
from rich.console import Console
from rich.table import Table

from krprobe.checks import check_route
from krprobe.client import build_client
from krprobe.health import fetch_health, format_health_text
from krprobe.models import RouteCheck
from krprobe.openapi import OpenApiError, compare_with_fixture, fetch_document, spec_version
from krprobe.runner import run_all_suites, run_suite
from krprobe.scorer import generate_report, list_all_results, load_scorecard, render_scorecard, save_note
from krprobe.sse import SseError, read_events
from krprobe.suites import list_suites

app = typer.Typer(
    name="krprobe",
    help="Acceptance harness for Kestrun example servers",
    no_args_is_help=True,
)
console = Console(stderr=True)


@app.command("list")
def cmd_list() -> None:
    """Show available suites."""
    suites = list_suites()
    if not suites:
        console.print("[yellow]No suites found.[/yellow]")
        raise typer.Exit(1)

    table = Table(title="Available Suites", show_header=True, header_style="bold")
    table.add_column("Name", style="green", min_width=15)
    table.add_column("Description", min_width=30)
    table.add_column("Script")
    table.add_column("Checks", justify="right")
    table.add_column("Judge")
    table.add_column("Timeout", justify="right")

    for s in suites:
        table.add_row(
            s.name, s.description, s.script, str(s.total_checks),
            "yes" if s.tests_dir else "--", f"{s.timeout_s}s",
        )

    console.print()
    console.print(table)
    console.print()


@app.command("run")
def cmd_run(
    suite: Optional[str] = typer.Argument(None, help="Suite name (e.g., 'hello_world')"),
    all_suites: bool = typer.Option(False, "--all", "-a", help="Run every suite"),
    examples_root: Optional[Path] = typer.Option(
        None, "--examples-root", "-r", help="Directory holding the example scripts (KRPROBE_EXAMPLES_ROOT)"
    ),
    shell: Optional[str] = typer.Option(None, "--shell", help="Interpreter command line (KRPROBE_SHELL)"),
    host: Optional[str] = typer.Option(None, "--host", help="Listener host (KRPROBE_HOST)"),
) -> None:
    """Start example(s), probe them and record the results."""
    if all_suites:
        results = run_all_suites(console, root=examples_root, shell=shell, host=host)
        console.print("\n[bold]--- Summary ---[/bold]")
        render_scorecard(load_scorecard([r.suite for r in results]), console)
        failed = [r for r in results if r.error or r.overall.verdict != "pass"]
    elif suite:
        result = run_suite(suite, console, root=examples_root, shell=shell, host=host)
        failed = [] if not result.error and result.overall.verdict == "pass" else [result]
    else:
        console.print("[red]Specify a suite or --all[/red]")
        raise typer.Exit(1)

    if failed:
        raise typer.Exit(1)


@app.command("probe")
def cmd_probe(
    base_url: str = typer.Argument(help="Base URL of a running example"),
    path: str = typer.Argument(help="Route path, e.g. /hello"),
    method: str = typer.Option("GET", "--method", "-X"),
    status: int = typer.Option(200, "--status", "-s", help="Expected status code"),
    contains: Optional[List[str]] = typer.Option(None, "--contains", "-c", help="Expected body substring"),
    equals: Optional[str] = typer.Option(None, "--equals", help="Expected exact body"),
    header: Optional[List[str]] = typer.Option(None, "--header", "-H", help="Request header 'Name: value'"),
    data: Optional[str] = typer.Option(None, "--data", "-d", help="Request body"),
) -> None:
    """Check one route of a running example."""
    headers = {}
    for h in header or []:
        name, sep, value = h.partition(":")
        if not sep:
            console.print(f"[red]Invalid header:[/red] {h}")
            raise typer.Exit(1)
        headers[name.strip()] = value.strip()

    check = RouteCheck(
        path=path, method=method, status=status, equals=equals,
        contains=list(contains or []), headers=headers, body=data,
    )
    with build_client(base_url) as client:
        outcome = check_route(client, check)

    if outcome.passed:
        console.print(f"[green]✓[/green] {outcome.name} ({outcome.status_code}, {outcome.elapsed_ms}ms)")
        return
    console.print(f"[red]✗[/red] {outcome.name}")
    for msg in outcome.messages:
        console.print(f"  {msg}")
    raise typer.Exit(1)


@app.command("sse")
def cmd_sse(
    base_url: str = typer.Argument(help="Base URL of a running example"),
    path: str = typer.Argument("/sse", help="Event stream path"),
    count: int = typer.Option(5, "--count", "-n", help="Events to read before disconnecting"),
    timeout_s: float = typer.Option(15.0, "--timeout", help="Read timeout in seconds"),
) -> None:
    """Read events from an SSE endpoint and print them."""
    try:
        with build_client(base_url) as client:
            events = read_events(client, path, count=count, timeout_s=timeout_s)
    except (SseError, httpx.HTTPError) as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)
    for e in events:
        console.print(f"[bold]{e.event}[/bold] id={e.id or '--'} {e.data}")


@app.command("health")
def cmd_health(
    base_url: str = typer.Argument(help="Base URL of a running example"),
    path: str = typer.Option("/healthz", "--path", help="Health endpoint path"),
    no_data: bool = typer.Option(False, "--no-data", help="Omit probe data lines"),
) -> None:
    """Fetch and print a health report. Exits 1 unless healthy."""
    try:
        with build_client(base_url) as client:
            report = fetch_health(client, path)
    except (ValueError, httpx.HTTPError) as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)
    typer.echo(format_health_text(report, include_data=not no_data), nl=False)
    if report.status != "healthy":
        raise typer.Exit(1)


@app.command("openapi")
def cmd_openapi(
    base_url: str = typer.Argument(help="Base URL of a running example"),
    version: str = typer.Option("3.1", "--version", "-v", help="OpenAPI document version"),
    fixture: Optional[Path] = typer.Option(None, "--fixture", "-f", help="Expected document to diff against"),
) -> None:
    """Print an example's OpenAPI document, or diff it against a fixture."""
    try:
        with build_client(base_url) as client:
            if fixture is None:
                doc = fetch_document(client, version)
                console.print(f"[dim]OpenAPI {spec_version(doc) or 'unknown'} document[/dim]")
                typer.echo(json.dumps(doc, indent=2))
                return
            diffs = compare_with_fixture(client, version, fixture)
    except (OpenApiError, OSError, ValueError, httpx.HTTPError) as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)

    if not diffs:
        console.print(f"[green]OpenAPI {version} matches {fixture.name}[/green]")
        return
    console.print(f"[red]{len(diffs)} differences[/red]")
    for line in diffs:
        console.print(f"  {line}")
    raise typer.Exit(1)


@app.command("score")
def cmd_score() -> None:
    """Show the latest result of every suite."""
    render_scorecard(load_scorecard(), console)


@app.command("results")
def cmd_results() -> None:
    """List all stored results."""
    list_all_results(console)


@app.command("report")
def cmd_report() -> None:
    """Generate RESULTS.md with full history and notes."""
    path = generate_report()
    console.print(f"Report written to {path}")


@app.command("note")
def cmd_note(
    suite: str = typer.Argument(help="Suite the run belongs to"),
    timestamp: str = typer.Argument(help="Run timestamp (e.g., '20261016T024533Z')"),
    text: str = typer.Argument(help="Note text to attach to the run"),
) -> None:
    """Annotate a run with a note (appears in report)."""
    try:
        save_note(suite, timestamp, text)
    except ValueError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)
    console.print(f"Note saved for {suite}/{timestamp}")


if __name__ == "__main__":
    app()
