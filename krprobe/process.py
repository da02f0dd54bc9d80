"""Example server process lifecycle — start, wait for the port, stop.

An example is a script run by an interpreter (pwsh by default) that binds
a listener on the port passed as ``-Port <n>``. Output is redirected to
stdout.txt/stderr.txt in a log directory so it survives the process.
"""

from __future__ import annotations

import socket
import subprocess
import tempfile
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import IO, Iterator, Optional, Sequence

from krprobe.environment import build_example_env, default_host, shell_command


class ExampleStartError(RuntimeError):
    """The example process died or never opened its port."""

    def __init__(self, message: str, exit_code: Optional[int] = None, stderr_tail: str = ""):
        super().__init__(message)
        self.exit_code = exit_code
        self.stderr_tail = stderr_tail


@dataclass
class ExampleProcess:
    """A running example server."""

    script: Path
    host: str
    port: int
    proc: subprocess.Popen
    log_dir: Path
    startup_s: float = 0.0
    exit_code: Optional[int] = None
    _logs: list[IO] = field(default_factory=list, repr=False)

    @property
    def base_url(self) -> str:
        host = f"[{self.host}]" if ":" in self.host else self.host
        return f"http://{host}:{self.port}"

    def url(self, path: str) -> str:
        if not path.startswith("/"):
            path = "/" + path
        return self.base_url + path

    @property
    def pid(self) -> int:
        return self.proc.pid

    @property
    def stdout_path(self) -> Path:
        return self.log_dir / "stdout.txt"

    @property
    def stderr_path(self) -> Path:
        return self.log_dir / "stderr.txt"

    def is_running(self) -> bool:
        return self.proc.poll() is None


def find_free_port(host: str = "127.0.0.1") -> int:
    """Ask the OS for a TCP port nobody is listening on."""
    family = socket.AF_INET6 if ":" in host else socket.AF_INET
    with socket.socket(family, socket.SOCK_STREAM) as s:
        s.bind((host, 0))
        return s.getsockname()[1]


def _tail(path: Path, lines: int = 20) -> str:
    try:
        text = path.read_text(encoding="utf-8", errors="replace")
    except OSError:
        return ""
    return "\n".join(text.splitlines()[-lines:])


def wait_for_port(
    host: str,
    port: int,
    timeout_s: float = 60.0,
    proc: Optional[subprocess.Popen] = None,
    interval_s: float = 0.2,
) -> float:
    """Block until host:port accepts TCP connections.

    Returns the seconds waited. Raises ExampleStartError when ``proc``
    exits first or the timeout elapses.
    """
    start = time.monotonic()
    deadline = start + timeout_s
    while True:
        if proc is not None and proc.poll() is not None:
            raise ExampleStartError(
                f"process exited with code {proc.returncode} before listening on {host}:{port}",
                exit_code=proc.returncode,
            )
        try:
            with socket.create_connection((host, port), timeout=interval_s):
                return time.monotonic() - start
        except OSError:
            pass
        if time.monotonic() >= deadline:
            raise ExampleStartError(f"nothing listening on {host}:{port} after {timeout_s:.0f}s")
        time.sleep(interval_s)


def start_example(
    script: Path,
    port: Optional[int] = None,
    host: Optional[str] = None,
    shell: Optional[Sequence[str]] = None,
    log_dir: Optional[Path] = None,
    extra_args: Sequence[str] = (),
    startup_timeout_s: float = 60.0,
) -> ExampleProcess:
    """Launch an example script and wait until it listens.

    Args:
        script: Path to the example script.
        port: Port to pass as -Port. Defaults to a free port.
        host: Interface the example binds. Defaults to KRPROBE_HOST.
        shell: Interpreter argv prefix. Defaults to KRPROBE_SHELL.
        log_dir: Where stdout.txt/stderr.txt go. Defaults to a temp dir.
        extra_args: Extra script arguments after -Port.
        startup_timeout_s: How long to wait for the port.

    Returns:
        ExampleProcess for the listening example.
    """
    script = Path(script).resolve()
    if not script.is_file():
        raise FileNotFoundError(f"example script not found: {script}")

    host = default_host(host)
    port = port or find_free_port(host)
    cmd = [*(shell or shell_command()), str(script), "-Port", str(port), *extra_args]
    log_dir = Path(log_dir) if log_dir else Path(tempfile.mkdtemp(prefix=f"krprobe-{script.stem}-"))
    log_dir.mkdir(parents=True, exist_ok=True)

    stdout = open(log_dir / "stdout.txt", "w", encoding="utf-8")
    stderr = open(log_dir / "stderr.txt", "w", encoding="utf-8")
    try:
        proc = subprocess.Popen(
            cmd,
            cwd=script.parent,
            env=build_example_env(port, host),
            stdin=subprocess.DEVNULL,
            stdout=stdout,
            stderr=stderr,
        )
    except OSError:
        stdout.close()
        stderr.close()
        raise

    example = ExampleProcess(
        script=script, host=host, port=port, proc=proc, log_dir=log_dir,
        _logs=[stdout, stderr],
    )
    try:
        example.startup_s = wait_for_port(host, port, startup_timeout_s, proc=proc)
    except ExampleStartError as e:
        stop_example(example)
        e.exit_code = example.exit_code
        e.stderr_tail = _tail(example.stderr_path)
        raise
    return example


def stop_example(example: ExampleProcess, grace_s: float = 10.0) -> Optional[int]:
    """Terminate the example (kill after grace_s) and return its exit code."""
    proc = example.proc
    if proc.poll() is None:
        proc.terminate()
        try:
            proc.wait(timeout=grace_s)
        except subprocess.TimeoutExpired:
            proc.kill()
            proc.wait()
    example.exit_code = proc.returncode
    for handle in example._logs:
        if not handle.closed:
            handle.close()
    return example.exit_code


@contextmanager
def running_example(script: Path, **kwargs) -> Iterator[ExampleProcess]:
    """Context manager around start_example/stop_example."""
    example = start_example(script, **kwargs)
    try:
        yield example
    finally:
        stop_example(example)
