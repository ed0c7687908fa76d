"""Map operation requests onto runs of the external tool."""

import logging
from pathlib import Path
from typing import Awaitable, Callable, Sequence

from .config import DEFAULT_TIMEOUT
from .core import (
    ExitStatus,
    InvalidRequest,
    OperationKind,
    OperationRequest,
    OperationResult,
    ProcessOutcome,
    SessionRecord,
)
from .history import HistoryParser, TextHistoryParser
from .runner import run as run_process

logger = logging.getLogger(__name__)

DEFAULT_SUCCESS_MESSAGE = "Operation completed successfully"

MODE_FLAGS = {
    OperationKind.PREVIEW: "--list",
    OperationKind.ORGANIZE: "--organize",
    OperationKind.HISTORY: "--history",
    OperationKind.UNDO: "--undo",
}

Runner = Callable[[Sequence[str | Path], Path | None, float], Awaitable[ProcessOutcome]]


def build_argv(request: OperationRequest) -> list[str]:
    """Return the tool arguments (after the executable) for ``request``.

    The path and session id are passed through untouched.
    """
    argv = [MODE_FLAGS[request.kind], request.target_path]
    if request.kind is OperationKind.UNDO and request.session_id:
        argv.append(request.session_id)
    return argv


def to_result(outcome: ProcessOutcome) -> OperationResult:
    """Translate a process outcome into the uniform result shape."""
    stdout = _decode(outcome.stdout)
    stderr = _decode(outcome.stderr)

    if outcome.status is ExitStatus.SUCCESS:
        return OperationResult(success=True, output=stdout or DEFAULT_SUCCESS_MESSAGE)
    if outcome.status is ExitStatus.FAILURE:
        return OperationResult(
            success=False,
            output=stderr or stdout,
            error_message=f"process exited with code {outcome.exit_code}",
        )
    if outcome.status is ExitStatus.TIMED_OUT:
        return OperationResult(
            success=False,
            output="\n".join(part for part in (stdout, stderr) if part),
            error_message="operation timed out",
        )
    return OperationResult(
        success=False,
        output="",
        error_message="failed to start external tool",
    )


class OperationDispatcher:
    """Runs operation requests against a single tool executable."""

    def __init__(
        self,
        executable: str | Path,
        working_directory: str | Path | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        runner: Runner = run_process,
        parser: HistoryParser | None = None,
    ):
        self.executable = Path(executable).absolute()
        self.working_directory = (
            Path(working_directory) if working_directory else self.executable.parent
        )
        self.timeout = timeout
        self._run = runner
        self._parser = parser or TextHistoryParser()

    def is_available(self) -> bool:
        """Return True if the tool executable exists."""
        return self.executable.is_file()

    async def dispatch(self, request: OperationRequest) -> OperationResult:
        """Run ``request`` once and return its result.

        Raises InvalidRequest before anything is spawned if the target path is
        empty. Every other failure comes back as an unsuccessful result.
        """
        _, result = await self._dispatch(request)
        return result

    async def list_sessions(
        self, target_path: str
    ) -> tuple[OperationResult, list[SessionRecord]]:
        """Run the history operation and parse the sessions it reports.

        The parser sees the tool's own stdout, never the placeholder message
        an empty successful run is reported with.
        """
        outcome, result = await self._dispatch(
            OperationRequest(kind=OperationKind.HISTORY, target_path=target_path)
        )
        if not result.success:
            return result, []
        return result, self._parser.parse(_decode(outcome.stdout))

    async def _dispatch(
        self, request: OperationRequest
    ) -> tuple[ProcessOutcome, OperationResult]:
        if not request.target_path:
            raise InvalidRequest("Folder path is required")

        argv = [str(self.executable), *build_argv(request)]
        logger.info("Dispatching %s for %s", request.kind.value, request.target_path)

        outcome = await self._run(argv, self.working_directory, self.timeout)
        result = to_result(outcome)

        if result.success:
            logger.info(
                "%s finished in %dms", request.kind.value, outcome.duration_ms
            )
        else:
            logger.warning(
                "%s failed for %s: %s",
                request.kind.value, request.target_path, result.error_message,
            )
        return outcome, result


# ── Private helpers ──────────────────────────────────────────────


def _decode(data: bytes) -> str:
    return data.decode("utf-8", errors="replace")
