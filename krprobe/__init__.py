"""krprobe — acceptance harness for Kestrun example servers.

Starts an example script as a child process, waits for its port, then
probes its HTTP surface: route status/body/header checks, SSE streams,
health reports and OpenAPI documents compared against fixtures. Suites can
also carry pytest judge tests that run against the live example.

Usage:
    python -m krprobe list                                 # Show suites
    python -m krprobe run hello_world                      # Run one suite
    python -m krprobe run --all                            # Run every suite
    python -m krprobe probe http://127.0.0.1:5000 /hello   # Ad-hoc check
    python -m krprobe report                               # Write RESULTS.md
"""

__version__ = "0.3.0"
