"""krprobe scorer — loads results, renders Rich tables, generates markdown reports.

Finds the latest result for each suite and displays a summary table
showing verdict, route/openapi/judge pass counts, startup and wall clock.

Also generates persistent RESULTS.md with full history and run notes.
"""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.table import Table

from krprobe.environment import results_root
from krprobe.models import RunResult, ScoreCard, TestResult

_VERDICT_COLORS = {"pass": "green", "partial": "yellow", "fail": "red", "error": "red"}


def _find_latest_result(suite: str) -> Optional[RunResult]:
    """Find the most recent result for a suite.

    Results are stored as <results>/<suite>/<timestamp>/metrics.json.
    The latest timestamp (lexicographic sort) wins.
    """
    suite_dir = results_root() / suite
    if not suite_dir.is_dir():
        return None

    # Timestamps are ISO8601 and sort lexicographically
    for run_dir in sorted(suite_dir.iterdir(), reverse=True):
        result = RunResult.load(run_dir)
        if result:
            return result
    return None


def load_scorecard(suites: Optional[list[str]] = None) -> ScoreCard:
    """Load the latest result of each suite that has one."""
    root = results_root()
    if suites is None:
        suites = sorted(d.name for d in root.iterdir() if d.is_dir()) if root.is_dir() else []
    card = ScoreCard()
    for name in suites:
        result = _find_latest_result(name)
        if result:
            card.results[name] = result
    return card


def _fmt_counts(tr: Optional[TestResult]) -> str:
    if not tr or tr.total == 0:
        return "--"
    return f"{tr.passed}/{tr.total}"


def _fmt_verdict(verdict: str) -> str:
    color = _VERDICT_COLORS.get(verdict, "white")
    return f"[{color}]{verdict}[/{color}]"


def _fmt_exit(r: RunResult) -> str:
    if r.exit_code is None:
        return "--"
    return str(r.exit_code)


def render_scorecard(card: ScoreCard, console: Console) -> None:
    """Render a Rich summary table of the latest run of each suite."""
    if not card.results:
        console.print("[yellow]No results found. Run a suite first.[/yellow]")
        return

    table = Table(title="krprobe: latest runs", show_header=True, header_style="bold")
    table.add_column("Suite", style="bold", min_width=16)
    table.add_column("Verdict", min_width=8)
    table.add_column("Routes", justify="right")
    table.add_column("OpenAPI", justify="right")
    table.add_column("Judge", justify="right")
    table.add_column("Startup", justify="right")
    table.add_column("Wall clock", justify="right")
    table.add_column("Exit", justify="right")
    table.add_column("Run time", style="dim")

    for name, r in card.results.items():
        verdict = "error" if r.error else r.overall.verdict
        table.add_row(
            name,
            _fmt_verdict(verdict),
            _fmt_counts(r.route_result),
            _fmt_counts(r.openapi_result),
            _fmt_counts(r.judge_result),
            f"{r.startup_s}s" if r.startup_s else "--",
            f"{r.wall_clock_s}s" if r.wall_clock_s else "--",
            _fmt_exit(r),
            r.timestamp or "--",
        )

    console.print()
    console.print(table)
    console.print()

    for name, r in card.results.items():
        if r.error:
            console.print(f"[red]{name}:[/red] {r.error}")
        for o in r.route_outcomes:
            if not o.passed:
                console.print(f"[yellow]{name}:[/yellow] {o.name}: {'; '.join(o.messages)}")


def list_all_results(console: Console) -> None:
    """List all available results across all suites."""
    root = results_root()
    if not root.is_dir():
        console.print("[yellow]No results yet. Run a suite first.[/yellow]")
        return

    for suite_dir in sorted(root.iterdir()):
        if not suite_dir.is_dir():
            continue
        console.print(f"\n[bold]{suite_dir.name}[/bold]")
        for run_dir in sorted(suite_dir.iterdir(), reverse=True):
            result = RunResult.load(run_dir)
            if result:
                overall = result.overall
                verdict = "error" if result.error else overall.verdict
                console.print(
                    f"  {run_dir.name}  {verdict:8s} "
                    f"{overall.passed}/{overall.total:<4d} {result.wall_clock_s:>6.1f}s"
                )


# ---------------------------------------------------------------------------
# Notes system
# ---------------------------------------------------------------------------

def _notes_path() -> Path:
    """Path to notes.md, next to the results directory."""
    return results_root().parent / "notes.md"


def load_notes() -> dict[tuple[str, str], str]:
    """Run notes keyed by (suite, timestamp).

    Lines look like `SUITE/TIMESTAMP: text`. A later note for the same run
    replaces the earlier one.
    """
    path = _notes_path()
    if not path.exists():
        return {}
    notes: dict[tuple[str, str], str] = {}
    for line in path.read_text(encoding="utf-8").splitlines():
        key, sep, text = line.strip().partition(": ")
        suite, slash, timestamp = key.partition("/")
        if not sep or not slash or not suite or not timestamp:
            continue
        notes[(suite, timestamp)] = text.strip()
    return notes


def save_note(suite: str, timestamp: str, text: str) -> None:
    """Attach a note to a recorded run.

    Raises ValueError when no metrics.json exists for that suite and
    timestamp, or when the note is empty.
    """
    if RunResult.load(results_root() / suite / timestamp) is None:
        raise ValueError(f"no recorded run {suite}/{timestamp}")
    text = " ".join(text.split())
    if not text:
        raise ValueError("note text is empty")
    path = _notes_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "a", encoding="utf-8") as f:
        f.write(f"{suite}/{timestamp}: {text}\n")


# ---------------------------------------------------------------------------
# History loading
# ---------------------------------------------------------------------------

def _load_all_runs(suite: str) -> list[RunResult]:
    """Load every run of a suite, sorted by timestamp."""
    root = results_root() / suite
    if not root.is_dir():
        return []
    runs = [r for r in (RunResult.load(d) for d in sorted(root.iterdir())) if r]
    runs.sort(key=lambda r: r.timestamp)
    return runs


# ---------------------------------------------------------------------------
# Markdown report generation
# ---------------------------------------------------------------------------

def _report_path() -> Path:
    """Path to the generated RESULTS.md."""
    return results_root().parent / "RESULTS.md"


def generate_report() -> Path:
    """Generate RESULTS.md with the full run history per suite.

    Returns the path to the generated file.
    """
    root = results_root()
    suites = sorted(d.name for d in root.iterdir() if d.is_dir()) if root.is_dir() else []
    notes = load_notes()

    lines: list[str] = []
    lines.append("# krprobe Results")
    lines.append("")
    lines.append(f"*Generated {datetime.now(timezone.utc).strftime('%Y-%m-%d %H:%M UTC')}*")
    lines.append("")

    if not suites:
        lines.append("No results yet.")
        out = _report_path()
        out.parent.mkdir(parents=True, exist_ok=True)
        out.write_text("\n".join(lines) + "\n", encoding="utf-8")
        return out

    for suite in suites:
        lines.append(f"## {suite}")
        lines.append("")

        runs = _load_all_runs(suite)
        if not runs:
            lines.append("No runs recorded.")
            lines.append("")
            continue

        lines.append("| # | Timestamp | Verdict | Routes | OpenAPI | Judge | Startup | Wall Clock | Exit | Notes |")
        lines.append("|---|-----------|---------|--------|---------|-------|---------|------------|------|-------|")

        for i, r in enumerate(runs, 1):
            verdict = "error" if r.error else r.overall.verdict
            note = notes.get((suite, r.timestamp), "")
            lines.append(
                f"| {i} | `{r.timestamp}` | **{verdict}** | {_fmt_counts(r.route_result)} "
                f"| {_fmt_counts(r.openapi_result)} | {_fmt_counts(r.judge_result)} "
                f"| {r.startup_s}s | {r.wall_clock_s}s | {_fmt_exit(r)} | {note} |"
            )
        lines.append("")

        latest = runs[-1]
        failing = [o for o in latest.route_outcomes if not o.passed]
        drifted = {v: d for v, d in latest.openapi_diffs.items() if d}
        if latest.error or failing or drifted:
            lines.append("### Latest failures")
            lines.append("")
            if latest.error:
                lines.append(f"- startup: {latest.error}")
            for o in failing:
                lines.append(f"- `{o.name}`: {'; '.join(o.messages)}")
            for version, diffs in drifted.items():
                lines.append(f"- OpenAPI {version}: {len(diffs)} differences, first `{diffs[0]}`")
            lines.append("")

    out = _report_path()
    out.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return out
