"""Health endpoint reports: parse, aggregate, render as text.

Example servers answer ``/healthz`` with a JSON report; 503 responses for
unhealthy services still carry that report.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Iterable, Optional

import httpx

STATUS_ORDER = ("healthy", "degraded", "unhealthy")

# TimeSpan text as serialized by the framework: [-][d.]hh:mm:ss[.fffffff]
_TIMESPAN = re.compile(r"^(-)?(?:(\d+)\.)?(\d+):(\d+):(\d+)(?:\.(\d{1,7}))?$")
_TICKS_PER_SECOND = 10_000_000


@dataclass
class ProbeReport:
    name: str
    status: str
    description: str = ""
    duration: str = ""
    error: str = ""
    data: dict[str, Any] = field(default_factory=dict)


@dataclass
class HealthReport:
    status: str
    generated_at: str = ""
    total: int = 0
    healthy: int = 0
    degraded: int = 0
    unhealthy: int = 0
    applied_tags: list[str] = field(default_factory=list)
    probes: list[ProbeReport] = field(default_factory=list)
    http_status: Optional[int] = None

    def probe(self, name: str) -> Optional[ProbeReport]:
        for p in self.probes:
            if p.name == name:
                return p
        return None


def _status(value: Any, where: str) -> str:
    if not isinstance(value, str) or value.lower() not in STATUS_ORDER:
        raise ValueError(f"{where}: invalid health status {value!r}")
    return value.lower()


def worst_status(statuses: Iterable[str]) -> str:
    """Overall status of several probes. No probes means healthy."""
    worst = 0
    for s in statuses:
        worst = max(worst, STATUS_ORDER.index(_status(s, "status")))
    return STATUS_ORDER[worst]


def parse_health(payload: Any) -> HealthReport:
    """Build a HealthReport from the decoded JSON document."""
    if not isinstance(payload, dict):
        raise ValueError("health report must be a JSON object")
    if "status" not in payload:
        raise ValueError("health report has no status")

    probes = []
    for i, raw in enumerate(payload.get("probes") or []):
        if not isinstance(raw, dict) or "name" not in raw:
            raise ValueError(f"probes[{i}]: probe entry needs a name")
        probes.append(ProbeReport(
            name=str(raw["name"]),
            status=_status(raw.get("status"), f"probes[{i}]"),
            description=raw.get("description") or "",
            duration=str(raw.get("duration") or ""),
            error=raw.get("error") or "",
            data=dict(raw.get("data") or {}),
        ))

    summary = payload.get("summary") or {}
    return HealthReport(
        status=_status(payload["status"], "status"),
        generated_at=str(payload.get("generatedAt") or ""),
        total=summary.get("total", len(probes)),
        healthy=summary.get("healthy", sum(p.status == "healthy" for p in probes)),
        degraded=summary.get("degraded", sum(p.status == "degraded" for p in probes)),
        unhealthy=summary.get("unhealthy", sum(p.status == "unhealthy" for p in probes)),
        applied_tags=list(payload.get("appliedTags") or []),
        probes=probes,
    )


def _escape(text: str) -> str:
    return text.replace('"', '\\"').replace("\n", "\\n").replace("\r", "\\r")


def parse_timespan_ticks(text: str) -> Optional[int]:
    """TimeSpan text to 100ns ticks, or None when it is not a TimeSpan."""
    m = _TIMESPAN.match(text.strip())
    if not m:
        return None
    sign, days, hours, minutes, seconds, fraction = m.groups()
    total_s = ((int(days or 0) * 24 + int(hours)) * 60 + int(minutes)) * 60 + int(seconds)
    ticks = total_s * _TICKS_PER_SECOND + int((fraction or "").ljust(7, "0"))
    return -ticks if sign else ticks


def format_duration(duration: str) -> str:
    """Short duration: <1ms, 12ms, 1.5s, or the TimeSpan itself from a minute up.

    Text that is not a TimeSpan is returned unchanged.
    """
    ticks = parse_timespan_ticks(duration)
    if ticks is None:
        return duration or "--"
    ms = ticks / 10_000
    if ms < 1:
        return "<1ms"
    if ms < 1000:
        return f"{int(ms)}ms"
    seconds = ticks / _TICKS_PER_SECOND
    if seconds < 60:
        return f"{seconds:.3f}".rstrip("0").rstrip(".") + "s"
    return duration.strip()


def _render_value(value: Any) -> str:
    if value is None:
        return "<null>"
    if isinstance(value, str):
        return f'"{_escape(value)}"'
    return str(value)


def format_health_text(report: HealthReport, include_data: bool = True) -> str:
    """Plain-text rendering of a report, one line per probe."""
    lines = [
        f"Status: {report.status}",
        f"GeneratedAt: {report.generated_at}",
        f"Summary: total={report.total} healthy={report.healthy} "
        f"degraded={report.degraded} unhealthy={report.unhealthy}",
    ]
    if report.applied_tags:
        lines.append(f"Tags: {','.join(report.applied_tags)}")
    lines.append("Probes:")
    for p in report.probes:
        line = f"  - name={p.name} status={p.status} duration={format_duration(p.duration)}"
        if p.description.strip():
            line += f' desc="{_escape(p.description)}"'
        if p.error.strip():
            line += f' error="{_escape(p.error)}"'
        lines.append(line)
        if include_data:
            for key, value in p.data.items():
                lines.append(f"      {key}={_render_value(value)}")
    return "\n".join(lines) + "\n"


def fetch_health(client: httpx.Client, path: str = "/healthz") -> HealthReport:
    """GET the health endpoint and parse the report (200 and 503 both carry one)."""
    response = client.get(path, headers={"Accept": "application/json"})
    if response.status_code not in (200, 503):
        raise ValueError(f"GET {path} returned {response.status_code}")
    try:
        payload = response.json()
    except ValueError as e:
        raise ValueError(f"GET {path} did not return JSON: {e}") from e
    report = parse_health(payload)
    report.http_status = response.status_code
    return report
