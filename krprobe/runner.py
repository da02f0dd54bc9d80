"""krprobe runner — orchestrates start example → route set → openapi → judge → metrics.

Data flow per run:
1. Resolve the suite and its example script under the examples root
2. Create result_dir/ for this run
3. Start the example on a free port, output captured into result_dir
4. Run the suite's route set against the live example
5. Fetch each OpenAPI document and diff it with its fixture
6. Run the suite's judge tests (pytest) with KRPROBE_BASE_URL set
7. Stop the example, record its exit code
8. Assemble RunResult, save as metrics.json
"""

from __future__ import annotations

import re
import subprocess
import sys
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

import httpx
from rich.console import Console

from krprobe.checks import run_route_set
from krprobe.client import build_client
from krprobe.environment import build_judge_env, examples_root, results_root, shell_command
from krprobe.models import RunResult, TestResult
from krprobe.openapi import OpenApiError, compare_with_fixture
from krprobe.process import ExampleProcess, ExampleStartError, start_example, stop_example
from krprobe.suites import SuiteInfo, list_suites, load_suite

JUDGE_TIMEOUT_S = 300


def _ensure_result_dir(suite: str, timestamp: str) -> Path:
    result_dir = results_root() / suite / timestamp
    result_dir.mkdir(parents=True, exist_ok=True)
    return result_dir


def parse_pytest_summary(output: str) -> TestResult:
    """Pass/fail/error counts from pytest's summary line."""
    passed = failed = errors = 0
    # Match patterns like "15 passed", "3 failed", "1 error"
    for m in re.finditer(r"(\d+) passed", output):
        passed = int(m.group(1))
    for m in re.finditer(r"(\d+) failed", output):
        failed = int(m.group(1))
    for m in re.finditer(r"(\d+) errors?\b", output):
        errors = int(m.group(1))
    return TestResult(
        passed=passed,
        failed=failed,
        errors=errors,
        total=passed + failed + errors,
        output=output,
    )


def _run_judge(tests_dir: Path, example: ExampleProcess, result_dir: Path) -> TestResult:
    """Run the suite's pytest judge against the live example."""
    try:
        proc = subprocess.run(
            [
                sys.executable, "-m", "pytest", str(tests_dir),
                "-p", "krprobe.testing",
                "-v", "--tb=short", "--no-header",
                "-p", "no:cacheprovider",
            ],
            cwd=tests_dir,
            env=build_judge_env(example.base_url, example.log_dir),
            capture_output=True,
            text=True,
            timeout=JUDGE_TIMEOUT_S,
        )
    except subprocess.TimeoutExpired:
        return TestResult(errors=1, total=1, output=f"pytest timed out after {JUDGE_TIMEOUT_S}s")

    output = proc.stdout + "\n" + proc.stderr
    (result_dir / "pytest-output.txt").write_text(output, encoding="utf-8")
    return parse_pytest_summary(output)


def _verdict_markup(verdict: str) -> str:
    color = {"pass": "green", "partial": "yellow", "fail": "red"}.get(verdict, "white")
    return f"[{color}]{verdict}[/{color}]"


def _probe(suite: SuiteInfo, example: ExampleProcess, result: RunResult, result_dir: Path, console: Console) -> None:
    with build_client(example.base_url) as client:
        if suite.routes:
            console.print(f"  Route set: {len(suite.routes)} checks")
            result.route_outcomes = run_route_set(client, suite.routes)
            for outcome in result.route_outcomes:
                if outcome.passed:
                    console.print(f"    [green]✓[/green] {outcome.name}")
                else:
                    console.print(f"    [red]✗[/red] {outcome.name}")
                    for msg in outcome.messages:
                        console.print(f"      [dim]{msg}[/dim]")

        for version, fixture in suite.openapi.items():
            try:
                diffs = compare_with_fixture(client, version, fixture)
            except (OpenApiError, OSError, ValueError, httpx.HTTPError) as e:
                diffs = [f"$: {e}"]
            result.openapi_diffs[version] = diffs
            if diffs:
                console.print(f"  OpenAPI {version}: [red]{len(diffs)} differences[/red]")
                for line in diffs[:10]:
                    console.print(f"    [dim]{line}[/dim]")
            else:
                console.print(f"  OpenAPI {version}: [green]matches {fixture.name}[/green]")

    if suite.tests_dir:
        console.print("  Running judge tests...")
        judge = _run_judge(suite.tests_dir, example, result_dir)
        result.judge_result = judge
        console.print(f"  Judge: {judge.passed}/{judge.total} passed ({_verdict_markup(judge.verdict)})")


def run_suite(
    suite_name: str,
    console: Console,
    root: Optional[Path] = None,
    shell: Optional[str] = None,
    host: Optional[str] = None,
) -> RunResult:
    """Execute one suite against its example.

    Startup failures are recorded in the result (error, exit code, logs)
    rather than raised.

    Args:
        suite_name: Name of the suite (e.g., 'hello_world').
        console: Rich Console for status output.
        root: Examples root override.
        shell: Interpreter command line override.
        host: Listener host override.

    Returns:
        RunResult with all metrics populated.
    """
    suite = load_suite(suite_name)
    if not suite:
        console.print(f"[red]Error:[/red] Unknown suite: {suite_name}")
        return RunResult(suite=suite_name, timestamp="", error="unknown suite")

    timestamp = datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%SZ")
    script = (examples_root(root) / suite.script).resolve()

    console.print(f"\n[bold]Running:[/bold] {suite.name}")
    console.print(f"  Script: {script}")

    result_dir = _ensure_result_dir(suite.name, timestamp)
    result = RunResult(
        suite=suite.name,
        timestamp=timestamp,
        script=str(script),
        stdout_path=str(result_dir / "stdout.txt"),
        stderr_path=str(result_dir / "stderr.txt"),
    )

    start = time.monotonic()
    try:
        example = start_example(
            script,
            host=host,
            shell=shell_command(shell),
            log_dir=result_dir,
            startup_timeout_s=suite.timeout_s,
        )
    except (ExampleStartError, FileNotFoundError, OSError) as e:
        result.error = str(e)
        result.exit_code = getattr(e, "exit_code", None)
        result.wall_clock_s = round(time.monotonic() - start, 1)
        console.print(f"  [red]Example did not start:[/red] {e}")
        tail = getattr(e, "stderr_tail", "")
        if tail:
            console.print(f"[dim]{tail}[/dim]")
        result.save(result_dir)
        return result

    result.host, result.port = example.host, example.port
    result.startup_s = round(example.startup_s, 2)
    console.print(f"  Listening on {example.base_url} ({result.startup_s}s)")

    try:
        _probe(suite, example, result, result_dir, console)
    finally:
        result.exit_code = stop_example(example)

    result.wall_clock_s = round(time.monotonic() - start, 1)
    overall = result.overall
    console.print(
        f"  {overall.passed}/{overall.total} checks passed ({_verdict_markup(overall.verdict)})"
    )
    result.save(result_dir)
    console.print(f"  [bold green]Done.[/bold green] Metrics saved to {result_dir / 'metrics.json'}")
    return result


def run_all_suites(
    console: Console,
    root: Optional[Path] = None,
    shell: Optional[str] = None,
    host: Optional[str] = None,
) -> list[RunResult]:
    """Run every discovered suite, one example at a time."""
    return [
        run_suite(s.name, console, root=root, shell=shell, host=host)
        for s in list_suites()
    ]
