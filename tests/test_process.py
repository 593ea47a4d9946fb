"""Tests for the subprocess runner and its timeout handling."""

from __future__ import annotations

import os
import signal
import subprocess
import sys
import time
from pathlib import Path

import pytest

from cosmos_infomaniak.process import TIMEOUT_EXIT_CODE, run_command


def test_run_command_captures_output() -> None:
    result = run_command([sys.executable, "-c", "import sys; print('hello'); print('oops', file=sys.stderr)"])

    assert result.returncode == 0
    assert result.stdout.strip() == "hello"
    assert result.stderr.strip() == "oops"


def test_run_command_returns_non_zero_status() -> None:
    result = run_command([sys.executable, "-c", "import sys; sys.exit(3)"], timeout=30)

    assert result.returncode == 3


def test_run_command_passes_env_and_cwd(tmp_path: Path) -> None:
    result = run_command(
        [sys.executable, "-c", "import os; print(os.environ['COSMOS_MARKER']); print(os.getcwd())"],
        env={"COSMOS_MARKER": "dc3-a", "PATH": ""},
        cwd=tmp_path,
    )

    marker, cwd = result.stdout.split()
    assert marker == "dc3-a"
    assert Path(cwd).resolve() == tmp_path.resolve()


@pytest.mark.skipif(sys.platform == "win32", reason="process groups are POSIX only")
def test_run_command_timeout_kills_process_group() -> None:
    """A timed out command and its children are killed and report status 124."""
    # Given: A command whose child keeps the output pipe open
    script = (
        "import subprocess, sys, time; "
        "subprocess.Popen([sys.executable, '-c', 'import time; time.sleep(60)']); "
        "time.sleep(60)"
    )

    # When: Running it with a short timeout
    started = time.monotonic()
    result = run_command([sys.executable, "-c", script], timeout=1)
    elapsed = time.monotonic() - started

    # Then: The runner returns promptly with the timeout status
    assert result.returncode == TIMEOUT_EXIT_CODE
    assert elapsed < 30


@pytest.mark.skipif(sys.platform == "win32", reason="process groups are POSIX only")
def test_run_command_interrupt_kills_child(tmp_path: Path) -> None:
    """Ctrl-C in the caller does not leave the detached child running."""
    # Given: A parent blocked in run_command on a long-running child
    pid_file = tmp_path / "child.pid"
    child = f"import os, time; open({str(pid_file)!r}, 'w').write(str(os.getpid())); time.sleep(60)"
    parent = (
        "import sys\n"
        "from cosmos_infomaniak.process import run_command\n"
        f"run_command([sys.executable, '-c', {child!r}], timeout=3600)\n"
    )
    src = str(Path(__file__).parent.parent / "src")
    pythonpath = os.pathsep.join(filter(None, [src, os.environ.get("PYTHONPATH")]))
    process = subprocess.Popen([sys.executable, "-c", parent], env={**os.environ, "PYTHONPATH": pythonpath})

    deadline = time.monotonic() + 30
    while not (pid_file.exists() and pid_file.read_text()):
        assert time.monotonic() < deadline, "child never started"
        time.sleep(0.05)
    child_pid = int(pid_file.read_text())

    # When: The parent is interrupted
    process.send_signal(signal.SIGINT)
    process.wait(timeout=30)

    # Then: The child is gone too
    with pytest.raises(ProcessLookupError):
        os.kill(child_pid, 0)


def test_run_command_missing_executable_raises() -> None:
    with pytest.raises(FileNotFoundError):
        run_command(["cosmos-definitely-not-installed"])
