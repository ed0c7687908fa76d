"""Environment-driven settings for the external tool."""

import logging
import os
import sys
from pathlib import Path

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 60.0


def get_executable_path() -> Path:
    """Return the path to the FileOrganizer executable."""
    env = os.environ.get("ORGANIZER_TOOL_PATH")
    if env:
        return Path(env)

    if sys.platform == "win32":
        return Path.cwd() / "build" / "FileOrganizer.exe"
    return Path.cwd() / "build" / "FileOrganizer"


def get_working_directory() -> Path:
    """Return the directory the tool is started in.

    Defaults to the executable's own directory, which is where the tool
    expects to find its category configuration.
    """
    env = os.environ.get("ORGANIZER_WORKDIR")
    if env:
        return Path(env)
    return get_executable_path().parent


def get_timeout() -> float:
    """Return the per-operation timeout in seconds."""
    env = os.environ.get("ORGANIZER_TIMEOUT")
    if not env:
        return DEFAULT_TIMEOUT

    try:
        timeout = float(env)
    except ValueError:
        logger.warning("Ignoring invalid ORGANIZER_TIMEOUT=%r", env)
        return DEFAULT_TIMEOUT

    if timeout <= 0:
        logger.warning("Ignoring non-positive ORGANIZER_TIMEOUT=%r", env)
        return DEFAULT_TIMEOUT
    return timeout
