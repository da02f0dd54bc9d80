"""Suite discovery and loading for krprobe.

Each suite is a subdirectory of krprobe/suites/ containing:
    __init__.py  — NAME, DESCRIPTION, SCRIPT, TIMEOUT_S, ROUTES, OPENAPI constants
    tests/       — (optional) pytest judge tests run against the live example
    fixtures/    — (optional) expected OpenAPI documents named in OPENAPI
"""

from __future__ import annotations

import importlib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from krprobe.models import RouteCheck


@dataclass
class SuiteInfo:
    """Metadata about a discovered suite."""

    name: str
    description: str
    script: str
    timeout_s: int
    path: Path
    routes: list[RouteCheck] = field(default_factory=list)
    # OpenAPI version -> fixture path
    openapi: dict[str, Path] = field(default_factory=dict)
    tests_dir: Optional[Path] = None

    @property
    def total_checks(self) -> int:
        return len(self.routes) + len(self.openapi)


def _suites_root() -> Path:
    """Absolute path to the suites/ directory."""
    return Path(__file__).parent


def list_suites() -> list[SuiteInfo]:
    """Discover all available suites.

    Scans subdirectories of krprobe/suites/ for packages whose __init__.py
    defines SCRIPT.
    """
    suites = []
    for child in sorted(_suites_root().iterdir()):
        if not child.is_dir() or not (child / "__init__.py").exists():
            continue
        info = load_suite(child.name)
        if info:
            suites.append(info)
    return suites


def load_suite(name: str) -> Optional[SuiteInfo]:
    """Load a single suite by name.

    Args:
        name: Directory name under krprobe/suites/ (e.g., 'hello_world').

    Returns:
        SuiteInfo if the suite exists and is valid, None otherwise.
    """
    suite_dir = _suites_root() / name
    if not suite_dir.is_dir() or not (suite_dir / "__init__.py").exists():
        return None

    try:
        mod = importlib.import_module(f"krprobe.suites.{name}")
    except ImportError:
        return None

    script = getattr(mod, "SCRIPT", None)
    if not script:
        return None

    routes = [RouteCheck.from_dict(dict(r)) for r in getattr(mod, "ROUTES", [])]
    fixtures_dir = suite_dir / "fixtures"
    openapi = {
        str(version): fixtures_dir / filename
        for version, filename in getattr(mod, "OPENAPI", {}).items()
    }

    tests_dir = suite_dir / "tests"
    if not tests_dir.is_dir():
        tests_dir = None

    return SuiteInfo(
        name=getattr(mod, "NAME", name),
        description=getattr(mod, "DESCRIPTION", ""),
        script=script,
        timeout_s=getattr(mod, "TIMEOUT_S", 120),
        path=suite_dir,
        routes=routes,
        openapi=openapi,
        tests_dir=tests_dir,
    )
