"""FastAPI web server for organizer-control."""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from . import __version__
from .config import get_executable_path, get_timeout, get_working_directory
from .core import InvalidRequest, OperationKind, OperationRequest, OperationResult, SessionRecord
from .dispatcher import OperationDispatcher

logger = logging.getLogger(__name__)

app = FastAPI(title="organizer-control", version=__version__)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type"],
)

# Dispatcher cache (populated on first request)
_dispatcher: OperationDispatcher | None = None


class OperationBody(BaseModel):
    """JSON body accepted by the operation endpoints."""

    folderPath: str | None = None
    sessionId: str | None = None


def _get_dispatcher() -> OperationDispatcher:
    """Lazily build and cache the dispatcher from the environment."""
    global _dispatcher
    if _dispatcher is None:
        _dispatcher = OperationDispatcher(
            executable=get_executable_path(),
            working_directory=get_working_directory(),
            timeout=get_timeout(),
        )
        logger.info(
            "Using tool %s (timeout %.0fs)", _dispatcher.executable, _dispatcher.timeout
        )
    return _dispatcher


def _error(message: str, status_code: int = 400) -> JSONResponse:
    return JSONResponse({"error": message}, status_code=status_code)


def _failure_response(result: OperationResult) -> JSONResponse:
    return JSONResponse(
        {"success": False, "error": result.error_message, "output": result.output},
        status_code=500,
    )


def _session_to_dict(session: SessionRecord) -> dict:
    """Convert a SessionRecord to a JSON-serializable dict."""
    return {"id": session.id, "fileCount": session.file_count}


@app.exception_handler(RequestValidationError)
async def _invalid_body(request: Request, exc: RequestValidationError):
    logger.info("Rejected malformed body for %s: %s", request.url.path, exc.errors())
    return _error("Invalid JSON")


# ── Routes ───────────────────────────────────────────────────────


@app.get("/health")
async def health_check():
    """Report whether the tool executable is present."""
    dispatcher = _get_dispatcher()
    return {
        "status": "ok",
        "executable": str(dispatcher.executable),
        "available": dispatcher.is_available(),
    }


@app.post("/api/sessions")
async def list_sessions(body: OperationBody):
    """Return the sessions recorded for a folder, most recent first."""
    if not body.folderPath:
        return _error("Folder path is required")

    try:
        result, sessions = await _get_dispatcher().list_sessions(body.folderPath)
    except Exception as e:
        logger.error("Failed to list sessions for %s: %s", body.folderPath, e)
        return _failure_response(
            OperationResult(success=False, output="", error_message="Failed to list sessions")
        )

    if not result.success:
        return _failure_response(result)

    return {
        "success": True,
        "sessions": [_session_to_dict(s) for s in sessions],
        "output": result.output,
    }


@app.post("/api/{operation}")
async def run_operation(operation: str, body: OperationBody):
    """Run preview, organize, history or undo against a folder."""
    if not body.folderPath:
        return _error("Folder path is required")

    try:
        kind = OperationKind(operation)
    except ValueError:
        return _error("Unknown endpoint")

    request = OperationRequest(
        kind=kind,
        target_path=body.folderPath,
        session_id=body.sessionId if kind is OperationKind.UNDO else None,
    )

    try:
        result = await _get_dispatcher().dispatch(request)
    except InvalidRequest as e:
        return _error(str(e))
    except Exception as e:
        logger.error("API error on %s: %s", operation, e)
        return _failure_response(
            OperationResult(success=False, output="", error_message="Internal server error")
        )

    if not result.success:
        return _failure_response(result)

    return {"success": True, "output": result.output}
