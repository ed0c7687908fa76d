"""Shared test fixtures for organizer-control."""

import stat
import sys

import pytest

from organizer_control.dispatcher import OperationDispatcher

HISTORY_TEXT = (
    "Organization history for: {path}\n"
    "------------------------------------------------------------\n"
    "Session: abc123 (5 files moved)\n"
    "Session: def456 (2 files moved)\n"
)

# Stand-in for the FileOrganizer binary. Behaviour is steered through
# environment variables, which the spawned process inherits.
FAKE_TOOL = '''#!{python}
import os
import sys
import time

if os.environ.get("FAKE_TOOL_PIDFILE"):
    with open(os.environ["FAKE_TOOL_PIDFILE"], "w") as f:
        f.write(str(os.getpid()))

if os.environ.get("FAKE_TOOL_HANG"):
    print("Scanning files...", flush=True)
    time.sleep(60)
    sys.exit(0)

if os.environ.get("FAKE_TOOL_EXIT"):
    print("partial progress")
    print("Error: directory is locked", file=sys.stderr)
    sys.exit(int(os.environ["FAKE_TOOL_EXIT"]))

if os.environ.get("FAKE_TOOL_SILENT"):
    sys.exit(0)

mode, path, rest = sys.argv[1], sys.argv[2], sys.argv[3:]

if mode == "--list":
    print("Preview of " + path)
    print("  holiday.jpg -> Images")
    print("  notes.pdf -> Documents")
elif mode == "--organize":
    print("Session ID: 20250115_100000")
    print("Moved 2 files in " + path)
elif mode == "--history":
    if os.environ.get("FAKE_TOOL_NO_HISTORY"):
        print("No organization history found for this directory.")
    else:
        sys.stdout.write({history!r}.format(path=path))
elif mode == "--undo":
    print("Undoing session " + (rest[0] if rest else "latest") + " in " + path)
else:
    print("Error: Invalid arguments.", file=sys.stderr)
    sys.exit(1)
'''


@pytest.fixture
def fake_tool(tmp_path, monkeypatch):
    """Write an executable fake FileOrganizer and return its path."""
    for name in (
        "FAKE_TOOL_PIDFILE",
        "FAKE_TOOL_HANG",
        "FAKE_TOOL_EXIT",
        "FAKE_TOOL_SILENT",
        "FAKE_TOOL_NO_HISTORY",
    ):
        monkeypatch.delenv(name, raising=False)

    bin_dir = tmp_path / "build"
    bin_dir.mkdir()
    tool = bin_dir / "FileOrganizer"
    tool.write_text(
        FAKE_TOOL.format(python=sys.executable, history=HISTORY_TEXT),
        encoding="utf-8",
    )
    tool.chmod(tool.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return tool


@pytest.fixture
def dispatcher(fake_tool):
    """A dispatcher pointed at the fake tool with a short timeout."""
    return OperationDispatcher(executable=fake_tool, timeout=10.0)


@pytest.fixture
def target_dir(tmp_path):
    folder = tmp_path / "Downloads"
    folder.mkdir()
    return folder
