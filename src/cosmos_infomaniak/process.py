"""Subprocess execution with wall-clock timeouts"""

from __future__ import annotations

import os
import signal
import subprocess
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Callable

from cosmos_infomaniak.console import print_debug, print_warning

# Same status GNU timeout(1) reports for a killed command
TIMEOUT_EXIT_CODE = 124

CommandRunner = Callable[..., "subprocess.CompletedProcess[str]"]


def _kill_process_group(process: subprocess.Popen) -> None:
    if hasattr(os, "killpg"):
        try:
            os.killpg(process.pid, signal.SIGKILL)
        except ProcessLookupError:
            pass
    else:
        process.kill()


def run_command(
    cmd: Sequence[str],
    capture_output: bool = True,
    timeout: float | None = None,
    env: Mapping[str, str] | None = None,
    cwd: os.PathLike | str | None = None,
) -> subprocess.CompletedProcess[str]:
    """Run an argument vector, killing its whole process group on timeout.

    A timed out command is reported as a completed process with
    ``TIMEOUT_EXIT_CODE`` rather than raising, so callers can tell it apart
    from an ordinary non-zero exit by status alone. An interrupt while
    waiting kills the process group before propagating. Output is only captured
    when ``capture_output`` is set; otherwise the child inherits the terminal.
    """
    args = list(cmd)
    print_debug(f"Running: {' '.join(args)}")
    pipe = subprocess.PIPE if capture_output else None

    with subprocess.Popen(
        args,
        stdout=pipe,
        stderr=pipe,
        text=True,
        env=dict(env) if env is not None else None,
        cwd=Path(cwd) if cwd is not None else None,
        start_new_session=timeout is not None,
    ) as process:
        try:
            stdout, stderr = process.communicate(timeout=timeout)
        except subprocess.TimeoutExpired:
            _kill_process_group(process)
            stdout, stderr = process.communicate()
            print_warning(f"Command timed out after {timeout}s: {' '.join(args)}")
            return subprocess.CompletedProcess(args, TIMEOUT_EXIT_CODE, stdout or "", stderr or "")
        except BaseException:
            # A child in its own session never sees the terminal's Ctrl-C
            _kill_process_group(process)
            process.wait()
            raise

    return subprocess.CompletedProcess(args, process.returncode, stdout or "", stderr or "")
