"""Data models for the krprobe acceptance harness.

RouteCheck, CheckOutcome, TestResult, RunResult, ScoreCard — the typed
structures that flow through runner → scorer → CLI.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional, Union


@dataclass
class RouteCheck:
    """One request against an example and what its response must look like."""

    path: str
    method: str = "GET"
    name: str = ""
    status: int = 200

    # Request
    headers: dict[str, str] = field(default_factory=dict)
    body: Optional[Union[str, bytes]] = None
    json: Any = None
    form: Optional[dict[str, str]] = None
    auth: Optional[tuple[str, str]] = None
    follow_redirects: bool = False

    # Expectations
    equals: Optional[str] = None
    contains: list[str] = field(default_factory=list)
    matches: Optional[str] = None
    json_subset: Any = None
    expect_headers: dict[str, str] = field(default_factory=dict)
    absent_headers: list[str] = field(default_factory=list)
    content_type: Optional[str] = None

    def __post_init__(self) -> None:
        self.method = self.method.upper()
        if not self.name:
            self.name = f"{self.method} {self.path}"
        if isinstance(self.contains, str):
            self.contains = [self.contains]
        if self.auth is not None:
            self.auth = tuple(self.auth)

    @classmethod
    def from_dict(cls, d: dict) -> RouteCheck:
        """Build a check from a plain suite definition dict."""
        if "path" not in d:
            raise ValueError(f"route check without a path: {d!r}")
        known = set(cls.__dataclass_fields__)
        unknown = set(d) - known
        if unknown:
            raise ValueError(f"unknown route check keys: {', '.join(sorted(unknown))}")
        return cls(**d)


@dataclass
class CheckOutcome:
    """Result of evaluating one RouteCheck against a live example."""

    name: str
    passed: bool
    status_code: Optional[int] = None
    elapsed_ms: float = 0.0
    messages: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "passed": self.passed,
            "status_code": self.status_code,
            "elapsed_ms": self.elapsed_ms,
            "messages": self.messages,
        }

    @classmethod
    def from_dict(cls, d: dict) -> CheckOutcome:
        return cls(
            name=d.get("name", ""),
            passed=d.get("passed", False),
            status_code=d.get("status_code"),
            elapsed_ms=d.get("elapsed_ms", 0.0),
            messages=list(d.get("messages", [])),
        )


@dataclass
class TestResult:
    """Pass/fail counts for one group of checks (routes, openapi, judge)."""

    __test__ = False  # not a pytest test class

    passed: int = 0
    failed: int = 0
    errors: int = 0
    total: int = 0
    output: str = ""

    @property
    def verdict(self) -> str:
        if self.total == 0:
            return "no-tests"
        if self.passed == self.total:
            return "pass"
        if self.passed > 0:
            return "partial"
        return "fail"

    @classmethod
    def from_outcomes(cls, outcomes: list[CheckOutcome]) -> TestResult:
        passed = sum(1 for o in outcomes if o.passed)
        return cls(passed=passed, failed=len(outcomes) - passed, total=len(outcomes))

    def to_dict(self) -> dict:
        return {
            "passed": self.passed,
            "failed": self.failed,
            "errors": self.errors,
            "total": self.total,
            "verdict": self.verdict,
        }

    @classmethod
    def from_dict(cls, d: dict) -> TestResult:
        return cls(
            passed=d.get("passed", 0),
            failed=d.get("failed", 0),
            errors=d.get("errors", 0),
            total=d.get("total", 0),
        )


@dataclass
class RunResult:
    """Complete result of a single suite run."""

    suite: str
    timestamp: str
    script: str = ""
    host: str = ""
    port: int = 0
    startup_s: float = 0.0
    wall_clock_s: float = 0.0
    exit_code: Optional[int] = None
    stdout_path: str = ""
    stderr_path: str = ""
    error: str = ""

    route_outcomes: list[CheckOutcome] = field(default_factory=list)
    # version -> difference lines against the fixture (empty means identical)
    openapi_diffs: dict[str, list[str]] = field(default_factory=dict)
    judge_result: Optional[TestResult] = None

    @property
    def route_result(self) -> TestResult:
        return TestResult.from_outcomes(self.route_outcomes)

    @property
    def openapi_result(self) -> TestResult:
        total = len(self.openapi_diffs)
        passed = sum(1 for diffs in self.openapi_diffs.values() if not diffs)
        return TestResult(passed=passed, failed=total - passed, total=total)

    @property
    def overall(self) -> TestResult:
        """Every check of the run folded into one result."""
        parts = [self.route_result, self.openapi_result]
        if self.judge_result:
            parts.append(self.judge_result)
        combined = TestResult(
            passed=sum(p.passed for p in parts),
            failed=sum(p.failed for p in parts),
            errors=sum(p.errors for p in parts),
            total=sum(p.total for p in parts),
        )
        if self.error:
            # A run that never got its example up counts as an error.
            combined.errors += 1
            combined.total += 1
        return combined

    def to_dict(self) -> dict:
        """Serialize to a JSON-compatible dict."""
        d = {
            "suite": self.suite,
            "timestamp": self.timestamp,
            "script": self.script,
            "host": self.host,
            "port": self.port,
            "startup_s": self.startup_s,
            "wall_clock_s": self.wall_clock_s,
            "exit_code": self.exit_code,
            "stdout_path": self.stdout_path,
            "stderr_path": self.stderr_path,
            "error": self.error,
            "route_outcomes": [o.to_dict() for o in self.route_outcomes],
            "openapi_diffs": self.openapi_diffs,
            "verdict": self.overall.verdict,
        }
        if self.judge_result:
            d["judge_result"] = self.judge_result.to_dict()
        return d

    @classmethod
    def from_dict(cls, d: dict) -> RunResult:
        """Deserialize from a JSON dict (metrics.json)."""
        jr_data = d.get("judge_result")
        return cls(
            suite=d.get("suite", ""),
            timestamp=d.get("timestamp", ""),
            script=d.get("script", ""),
            host=d.get("host", ""),
            port=d.get("port", 0),
            startup_s=d.get("startup_s", 0.0),
            wall_clock_s=d.get("wall_clock_s", 0.0),
            exit_code=d.get("exit_code"),
            stdout_path=d.get("stdout_path", ""),
            stderr_path=d.get("stderr_path", ""),
            error=d.get("error", ""),
            route_outcomes=[CheckOutcome.from_dict(o) for o in d.get("route_outcomes", [])],
            openapi_diffs=d.get("openapi_diffs", {}),
            judge_result=TestResult.from_dict(jr_data) if jr_data else None,
        )

    def save(self, result_dir: Path) -> None:
        """Write metrics.json to the result directory."""
        result_dir.mkdir(parents=True, exist_ok=True)
        (result_dir / "metrics.json").write_text(
            json.dumps(self.to_dict(), indent=2), encoding="utf-8"
        )

    @classmethod
    def load(cls, result_dir: Path) -> Optional[RunResult]:
        """Load metrics.json from a result directory."""
        p = result_dir / "metrics.json"
        if not p.exists():
            return None
        try:
            return cls.from_dict(json.loads(p.read_text(encoding="utf-8")))
        except (json.JSONDecodeError, OSError):
            return None


@dataclass
class ScoreCard:
    """Latest RunResult for each suite."""

    results: dict[str, RunResult] = field(default_factory=dict)
