"""Subprocess runner for external call graph engines.

Provides a subprocess wrapper with timeout, output capture, and
error handling.
"""

from __future__ import annotations

import logging
import os
import subprocess
import time
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)


class CommandNotFoundError(Exception):
    """Raised when the command is not found."""

    pass


class CommandTimeoutError(Exception):
    """Raised when the command times out."""

    pass


class CommandFailedError(Exception):
    """Raised when the command fails with non-zero exit code."""

    def __init__(self, message: str, exit_code: int, stderr: str):
        super().__init__(message)
        self.exit_code = exit_code
        self.stderr = stderr


@dataclass
class CmdResult:
    """Result of running a command."""

    exit_code: int
    stdout_tail: str  # Last N chars of stdout
    stderr_tail: str  # Last N chars of stderr
    elapsed_s: float
    timed_out: bool = False

    def check(self, cmd: list[str]) -> None:
        """Raise if the command timed out or exited with an error."""
        if self.timed_out:
            raise CommandTimeoutError(f"Command timed out after {self.elapsed_s:.0f}s: {cmd[0]}")
        if self.exit_code != 0:
            raise CommandFailedError(
                f"Command failed with exit code {self.exit_code}: {cmd[0]}",
                exit_code=self.exit_code,
                stderr=self.stderr_tail,
            )


def run_cmd(
    cmd: list[str],
    cwd: Path,
    env: dict[str, str] | None = None,
    timeout_s: int = 300,
    logs_path: Path | None = None,
    tail_chars: int = 2000,
) -> CmdResult:
    """Run a subprocess with timeout and output capture.

    Args:
        cmd: Command and arguments
        cwd: Working directory
        env: Environment variable overrides (merged with os.environ)
        timeout_s: Timeout in seconds
        logs_path: Optional path to write full stdout/stderr
        tail_chars: Number of characters to capture in result

    Returns:
        CmdResult with exit code and output tails

    Raises:
        CommandNotFoundError: If the command is not found
    """
    run_env = os.environ.copy()
    if env:
        run_env.update(env)

    logger.debug("Running command: %s in %s", " ".join(cmd), cwd)
    start_time = time.monotonic()

    try:
        result = subprocess.run(
            cmd,
            cwd=cwd,
            env=run_env,
            capture_output=True,
            text=True,
            timeout=timeout_s,
        )
    except FileNotFoundError as e:
        raise CommandNotFoundError(f"Command not found: {cmd[0]}") from e
    except subprocess.TimeoutExpired as e:
        elapsed = time.monotonic() - start_time
        stdout = _decode(e.stdout)
        stderr = _decode(e.stderr)
        if logs_path:
            _write_logs(logs_path, cmd, f"TIMEOUT after {timeout_s}s", elapsed, stdout, stderr)
        return CmdResult(
            exit_code=-1,
            stdout_tail=stdout[-tail_chars:],
            stderr_tail=stderr[-tail_chars:],
            elapsed_s=elapsed,
            timed_out=True,
        )

    elapsed = time.monotonic() - start_time
    if logs_path:
        _write_logs(
            logs_path,
            cmd,
            f"Exit code: {result.returncode}",
            elapsed,
            result.stdout or "",
            result.stderr or "",
        )

    return CmdResult(
        exit_code=result.returncode,
        stdout_tail=result.stdout[-tail_chars:] if result.stdout else "",
        stderr_tail=result.stderr[-tail_chars:] if result.stderr else "",
        elapsed_s=elapsed,
        timed_out=False,
    )


def _decode(output: bytes | str | None) -> str:
    if not output:
        return ""
    if isinstance(output, bytes):
        return output.decode("utf-8", errors="replace")
    return output


def _write_logs(
    logs_path: Path, cmd: list[str], status: str, elapsed: float, stdout: str, stderr: str
) -> None:
    logs_path.parent.mkdir(parents=True, exist_ok=True)
    with open(logs_path, "w") as f:
        f.write(f"Command: {' '.join(cmd)}\n")
        f.write(f"{status}\n")
        f.write(f"Duration: {elapsed:.2f}s\n")
        f.write("\n--- STDOUT ---\n")
        f.write(stdout)
        f.write("\n--- STDERR ---\n")
        f.write(stderr)
