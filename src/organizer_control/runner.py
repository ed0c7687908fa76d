"""Supervised execution of the external tool.

Each call to :func:`run` owns exactly one subprocess and walks it through a
small lifecycle::

    SPAWNED -> RUNNING -> EXITED | TIMED_OUT
    (spawn error)      -> LAUNCH_FAILED

stdout and stderr are drained concurrently while a deadline runs alongside.
Whichever finishes first decides the outcome: a clean exit cancels the
deadline, an expired deadline kills the process. Output captured before a
timeout is kept so callers can show it.
"""

import asyncio
import logging
import os
import time
from enum import Enum
from pathlib import Path
from typing import Sequence

from .config import DEFAULT_TIMEOUT
from .core import ExitStatus, ProcessOutcome

logger = logging.getLogger(__name__)

_CHUNK_SIZE = 64 * 1024


class RunState(str, Enum):
    """Lifecycle state of one subprocess invocation."""

    SPAWNED = "spawned"
    RUNNING = "running"
    EXITED = "exited"
    TIMED_OUT = "timed_out"
    LAUNCH_FAILED = "launch_failed"


_TRANSITIONS: dict[RunState | None, set[RunState]] = {
    None: {RunState.SPAWNED, RunState.LAUNCH_FAILED},
    RunState.SPAWNED: {RunState.RUNNING},
    RunState.RUNNING: {RunState.EXITED, RunState.TIMED_OUT},
}


class _Invocation:
    """Buffers and state for a single in-flight run."""

    def __init__(self, argv: Sequence[str | Path]):
        self.argv = [os.fspath(arg) for arg in argv]
        self.state: RunState | None = None
        self.stdout = bytearray()
        self.stderr = bytearray()
        self._started = time.monotonic()

    def advance(self, state: RunState) -> None:
        if state not in _TRANSITIONS.get(self.state, set()):
            raise RuntimeError(f"Invalid run transition: {self.state} -> {state}")
        logger.debug("%s: %s -> %s", self.argv[0], self.state, state.value)
        self.state = state

    def outcome(self, status: ExitStatus, exit_code: int | None = None) -> ProcessOutcome:
        return ProcessOutcome(
            status=status,
            exit_code=exit_code,
            stdout=bytes(self.stdout),
            stderr=bytes(self.stderr),
            duration_ms=int((time.monotonic() - self._started) * 1000),
        )


async def run(
    argv: Sequence[str | Path],
    cwd: str | Path | None = None,
    timeout: float = DEFAULT_TIMEOUT,
) -> ProcessOutcome:
    """Run ``argv`` once and classify how it ended.

    Arguments are handed to the OS as a vector, never through a shell.
    Spawn errors, nonzero exits and timeouts are all reported through the
    returned :class:`ProcessOutcome`; this function does not raise for them.
    """
    if not argv:
        raise ValueError("argv must not be empty")

    invocation = _Invocation(argv)

    try:
        process = await asyncio.create_subprocess_exec(
            *invocation.argv,
            cwd=cwd,
            stdin=asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except OSError as e:
        invocation.advance(RunState.LAUNCH_FAILED)
        logger.warning("Failed to start %s: %s", invocation.argv[0], e)
        return invocation.outcome(ExitStatus.LAUNCH_FAILED)

    invocation.advance(RunState.SPAWNED)
    logger.debug("Started %s (pid=%d)", invocation.argv, process.pid)

    try:
        invocation.advance(RunState.RUNNING)
        try:
            exit_code = await asyncio.wait_for(
                _supervise(process, invocation), timeout=timeout
            )
        except asyncio.TimeoutError:
            invocation.advance(RunState.TIMED_OUT)
            await _kill(process)
            logger.warning(
                "%s timed out after %.1fs (pid=%d killed)",
                invocation.argv[0], timeout, process.pid,
            )
            return invocation.outcome(ExitStatus.TIMED_OUT)
    finally:
        # Cancelled from outside (client went away, server shutting down).
        if process.returncode is None:
            await _kill(process)

    invocation.advance(RunState.EXITED)
    status = ExitStatus.SUCCESS if exit_code == 0 else ExitStatus.FAILURE
    return invocation.outcome(status, exit_code)


# ── Private helpers ──────────────────────────────────────────────


async def _supervise(process: asyncio.subprocess.Process, invocation: _Invocation) -> int:
    """Drain both pipes to EOF, then reap the process."""
    await asyncio.gather(
        _drain(process.stdout, invocation.stdout),
        _drain(process.stderr, invocation.stderr),
    )
    return await process.wait()


async def _drain(stream: asyncio.StreamReader | None, buffer: bytearray) -> None:
    if stream is None:
        return
    while True:
        chunk = await stream.read(_CHUNK_SIZE)
        if not chunk:
            break
        buffer.extend(chunk)


async def _kill(process: asyncio.subprocess.Process) -> None:
    """Kill the process and wait until it has been reaped."""
    try:
        process.kill()
    except ProcessLookupError:
        pass  # exited between the deadline and the kill
    await process.wait()
