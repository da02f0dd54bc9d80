"""Environment and settings for krprobe runs.

Settings come from KRPROBE_* environment variables (CLI options override
them). The env builders return complete env dicts ready to pass to
subprocess.Popen().
"""

from __future__ import annotations

import os
import shlex
from pathlib import Path
from typing import Optional

DEFAULT_SHELL = "pwsh -NoLogo -NoProfile -NonInteractive -File"
DEFAULT_HOST = "127.0.0.1"

# Proxy vars would route loopback requests away from the example.
_PROXY_VARS = (
    "HTTP_PROXY", "HTTPS_PROXY", "ALL_PROXY", "NO_PROXY",
    "http_proxy", "https_proxy", "all_proxy", "no_proxy",
)


def examples_root(override: Optional[Path] = None) -> Path:
    """Directory holding the example server scripts."""
    if override:
        return Path(override)
    return Path(os.environ.get("KRPROBE_EXAMPLES_ROOT", "examples"))


def shell_command(override: Optional[str] = None) -> list[str]:
    """Interpreter command line that runs an example script.

    'pwsh -NoProfile -File' → ['pwsh', '-NoProfile', '-File']
    """
    raw = override or os.environ.get("KRPROBE_SHELL", DEFAULT_SHELL)
    cmd = shlex.split(raw)
    if not cmd:
        raise ValueError("empty shell command")
    return cmd


def default_host(override: Optional[str] = None) -> str:
    return override or os.environ.get("KRPROBE_HOST", DEFAULT_HOST)


def results_root() -> Path:
    """Absolute path to the results directory (krprobe/results/ by default)."""
    configured = os.environ.get("KRPROBE_RESULTS_DIR")
    if configured:
        return Path(configured).resolve()
    return Path(__file__).parent / "results"


def _strip_proxies(env: dict[str, str]) -> dict[str, str]:
    for key in _PROXY_VARS:
        env.pop(key, None)
    return env


def build_example_env(port: int, host: str = DEFAULT_HOST) -> dict[str, str]:
    """Build env for an example server process.

    The example learns its listener from KRPROBE_HOST/KRPROBE_PORT in
    addition to the -Port argument it is started with.
    """
    env = _strip_proxies(os.environ.copy())
    env.update({
        "KRPROBE_HOST": host,
        "KRPROBE_PORT": str(port),
        # Keep startup quiet and offline
        "POWERSHELL_TELEMETRY_OPTOUT": "1",
        "POWERSHELL_UPDATECHECK": "Off",
        "DOTNET_CLI_TELEMETRY_OPTOUT": "1",
        "DOTNET_NOLOGO": "1",
    })
    return env


def build_judge_env(base_url: str, log_dir: Optional[Path] = None) -> dict[str, str]:
    """Build env for the pytest judge subprocess of a suite."""
    env = _strip_proxies(os.environ.copy())
    env["KRPROBE_BASE_URL"] = base_url
    # The judge loads krprobe.testing from this same checkout.
    package_parent = str(Path(__file__).resolve().parent.parent)
    existing = env.get("PYTHONPATH")
    env["PYTHONPATH"] = package_parent + (os.pathsep + existing if existing else "")
    if log_dir is not None:
        env["KRPROBE_LOG_DIR"] = str(log_dir)
    return env
