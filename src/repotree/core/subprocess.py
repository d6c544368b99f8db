"""Subprocess execution with error context for version-control commands."""

import logging
import os
import subprocess
from collections.abc import Mapping, Sequence
from pathlib import Path

logger = logging.getLogger(__name__)


def _decode(stream: str | bytes | None) -> str:
    if stream is None:
        return ""
    if isinstance(stream, bytes):
        return stream.decode("utf-8", errors="replace").strip()
    return stream.strip()


def run_subprocess_with_context(
    cmd: Sequence[str],
    operation_context: str,
    cwd: Path | None = None,
    timeout: float | None = None,
    env: Mapping[str, str] | None = None,
) -> subprocess.CompletedProcess[str]:
    """Run a command, turning failures into RuntimeError with full context.

    Args:
        cmd: Command and arguments to execute
        operation_context: Human-readable description, e.g. "clone repo into /x"
        cwd: Working directory for the command
        timeout: Seconds before the command is killed (None waits forever)
        env: Extra environment variables layered over the current environment

    Returns:
        CompletedProcess with captured text stdout/stderr

    Raises:
        RuntimeError: If the command exits non-zero, times out or is not
            installed. The message names the operation, the command, the exit
            code and any captured output.
    """
    cmd_str = " ".join(str(arg) for arg in cmd)
    logger.debug("Running %s (cwd=%s)", cmd_str, cwd)
    try:
        return subprocess.run(
            cmd,
            cwd=cwd,
            capture_output=True,
            text=True,
            encoding="utf-8",
            check=True,
            timeout=timeout,
            env={**os.environ, **env} if env else None,
        )
    except subprocess.CalledProcessError as e:
        error_msg = f"Failed to {operation_context}"
        error_msg += f"\nCommand: {cmd_str}"
        error_msg += f"\nExit code: {e.returncode}"
        stdout_text = _decode(e.stdout)
        if stdout_text:
            error_msg += f"\nstdout: {stdout_text}"
        stderr_text = _decode(e.stderr)
        if stderr_text:
            error_msg += f"\nstderr: {stderr_text}"
        raise RuntimeError(error_msg) from e
    except subprocess.TimeoutExpired as e:
        raise RuntimeError(
            f"Timed out after {timeout}s while trying to {operation_context}\nCommand: {cmd_str}"
        ) from e
    except FileNotFoundError as e:
        error_msg = f"Command not found while trying to {operation_context}: {cmd[0]}"
        error_msg += f"\nFull command: {cmd_str}"
        raise RuntimeError(error_msg) from e
