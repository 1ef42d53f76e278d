"""Bounded invocation of the NuGet command line.

Both output streams are drained while waiting for the process, so a chatty
tool cannot block on a full pipe before the timeout is reached. On POSIX the
tool runs in its own process group so a timeout also stops any children a
wrapper script started.
"""
from __future__ import annotations

import logging
import os
import signal
import subprocess
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Sequence

from constants import Constants, FailurePolicy
from common.logging_utils import Timer, extra_context, is_debug_enabled, mask_secrets

logger = logging.getLogger(__name__)

# Seconds to wait for the pipes to close after the tool was killed.
_KILL_GRACE_SEC = 2.0


class ToolOutcome(Enum):
    """How a tool invocation ended."""

    START_FAILED = "start-failed"
    TIMED_OUT = "timed-out"
    NON_ZERO_EXIT = "non-zero-exit"
    STDERR_OUTPUT = "stderr-output"
    CLEAN = "clean"


@dataclass
class ToolResult:
    """Captured result of one tool invocation."""

    outcome: ToolOutcome
    returncode: Optional[int] = None
    stdout: str = ""
    stderr: str = ""
    duration_ms: int = 0
    error: Optional[str] = None

    @property
    def has_stderr(self) -> bool:
        return bool(self.stderr and self.stderr.strip())

    def failed(self, policy: FailurePolicy = FailurePolicy.STDERR) -> bool:
        """Apply ``policy`` to decide whether this run counts as a failure."""
        if self.outcome in (ToolOutcome.START_FAILED, ToolOutcome.TIMED_OUT):
            return True
        non_zero = self.returncode not in (None, 0)
        if policy == FailurePolicy.STDERR:
            return self.has_stderr
        if policy == FailurePolicy.EXIT_CODE:
            return non_zero
        return self.has_stderr or non_zero


def _classify(returncode: int, stderr: str) -> ToolOutcome:
    if returncode != 0:
        return ToolOutcome.NON_ZERO_EXIT
    if stderr and stderr.strip():
        return ToolOutcome.STDERR_OUTPUT
    return ToolOutcome.CLEAN


def _kill(proc: subprocess.Popen) -> None:
    if os.name == "posix":
        try:
            os.killpg(proc.pid, signal.SIGKILL)
            return
        except OSError as exc:
            logger.debug("Couldn't kill process group %s: %s", proc.pid, exc)
    proc.kill()


def _drain_after_kill(proc: subprocess.Popen):
    """Collect what is left in the pipes without waiting on orphaned writers."""
    try:
        return proc.communicate(timeout=_KILL_GRACE_SEC)
    except subprocess.TimeoutExpired:
        logger.debug("Output pipes still open after kill; closing them")
        for pipe in (proc.stdout, proc.stderr):
            if pipe is not None:
                pipe.close()
        proc.wait()
        return "", ""


def run_tool(
    command: Sequence[str],
    cwd: Optional[str] = None,
    timeout: float = Constants.TOOL_TIMEOUT_SEC,
    secrets: Sequence[Optional[str]] = (),
) -> ToolResult:
    """Run ``command`` and wait at most ``timeout`` seconds for it to exit.

    Args:
        command: Executable followed by its arguments.
        cwd: Working directory for the child process.
        timeout: Upper bound on the wait, in seconds.
        secrets: Values to mask when the command line is logged.

    Returns:
        ToolResult describing the outcome; never raises for tool failures.
    """
    cmd: List[str] = [str(c) for c in command]
    shown = " ".join(mask_secrets(cmd, secrets))
    if is_debug_enabled(logger):
        logger.debug(
            "Starting tool",
            extra=extra_context(event="tool_start", component="process", action="run", target=shown),
        )

    with Timer() as t:
        try:
            proc = subprocess.Popen(  # noqa: S603
                cmd,
                cwd=cwd or None,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                stdin=subprocess.DEVNULL,
                encoding="utf-8",
                errors="replace",
                start_new_session=os.name == "posix",
            )
        except OSError as exc:
            logger.debug("Failed to start %s: %s", cmd[0], exc)
            return ToolResult(outcome=ToolOutcome.START_FAILED, error=str(exc))

        try:
            stdout, stderr = proc.communicate(timeout=timeout)
        except subprocess.TimeoutExpired:
            _kill(proc)
            stdout, stderr = _drain_after_kill(proc)
            return ToolResult(
                outcome=ToolOutcome.TIMED_OUT,
                returncode=proc.returncode,
                stdout=stdout or "",
                stderr=stderr or "",
                duration_ms=t.duration_ms(),
            )

    result = ToolResult(
        outcome=_classify(proc.returncode, stderr or ""),
        returncode=proc.returncode,
        stdout=stdout or "",
        stderr=stderr or "",
        duration_ms=t.duration_ms(),
    )
    if is_debug_enabled(logger):
        logger.debug(
            "Tool finished",
            extra=extra_context(
                event="tool_exit",
                component="process",
                action="run",
                target=shown,
                outcome=result.outcome.value,
                returncode=result.returncode,
                duration_ms=result.duration_ms,
            ),
        )
    return result


def report_result(
    result: ToolResult,
    action: str,
    timeout: float = Constants.TOOL_TIMEOUT_SEC,
    policy: FailurePolicy = FailurePolicy.STDERR,
    target: Optional[str] = None,
) -> bool:
    """Log a tool result and decide success under ``policy``.

    Args:
        result: Outcome of ``run_tool``.
        action: Gerund used in the timeout message, e.g. "creating".
        timeout: The bound that was applied, for the timeout message.
        policy: Failure policy to apply.
        target: Manifest path for the structured error context.

    Returns:
        True when the run counts as a success.
    """
    if result.stdout and result.stdout.strip():
        logger.info("%s", result.stdout.rstrip())

    context = dict(component="nuget", action=action, target=target, outcome=result.outcome.value)
    if result.outcome == ToolOutcome.START_FAILED:
        logger.error("Couldn't start NuGet: %s", result.error, extra=extra_context(event="task_failed", **context))
        return False
    failed = result.failed(policy)
    if result.has_stderr:
        if failed:
            logger.error("%s", result.stderr.strip(), extra=extra_context(event="task_failed", **context))
        else:
            logger.warning("%s", result.stderr.strip())
    if result.outcome == ToolOutcome.TIMED_OUT:
        logger.error(
            "Timeout, %s the NuGet package took longer than %s seconds.",
            action,
            f"{timeout:g}",
            extra=extra_context(event="task_failed", **context),
        )
        return False
    if failed:
        if result.returncode not in (None, 0):
            logger.error(
                "NuGet exited with code %s",
                result.returncode,
                extra=extra_context(event="task_failed", **context),
            )
        return False
    return True
