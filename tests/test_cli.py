"""Tests for the command-line interface."""

import os
from unittest.mock import patch

import pytest
from click.testing import CliRunner

from organizer_control.cli import main


@pytest.fixture
def tool_env(fake_tool, monkeypatch):
    monkeypatch.delenv("ORGANIZER_WORKDIR", raising=False)
    monkeypatch.delenv("ORGANIZER_TIMEOUT", raising=False)
    monkeypatch.setenv("ORGANIZER_TOOL_PATH", str(fake_tool))
    return fake_tool


def test_run_preview(tool_env, target_dir):
    result = CliRunner().invoke(main, ["run", "preview", str(target_dir)])
    assert result.exit_code == 0
    assert f"Preview of {target_dir}" in result.output


def test_run_undo_with_session(tool_env, target_dir):
    result = CliRunner().invoke(main, ["run", "undo", str(target_dir), "--session", "abc123"])
    assert result.exit_code == 0
    assert "Undoing session abc123" in result.output


def test_run_failure_exits_nonzero(tool_env, target_dir, monkeypatch):
    monkeypatch.setenv("FAKE_TOOL_EXIT", "5")
    result = CliRunner().invoke(main, ["run", "organize", str(target_dir)])
    assert result.exit_code == 1
    assert "process exited with code 5" in result.output


def test_run_empty_folder_is_usage_error(tool_env):
    result = CliRunner().invoke(main, ["run", "preview", ""])
    assert result.exit_code == 2
    assert "Folder path is required" in result.output


def test_run_rejects_unknown_kind(tool_env, target_dir):
    result = CliRunner().invoke(main, ["run", "shred", str(target_dir)])
    assert result.exit_code == 2


def test_sessions(tool_env, target_dir):
    result = CliRunner().invoke(main, ["--log-level", "WARNING", "sessions", str(target_dir)])
    assert result.exit_code == 0
    lines = result.output.strip().splitlines()
    assert lines == ["def456  2 files moved", "abc123  5 files moved"]


def test_sessions_empty(tool_env, target_dir, monkeypatch):
    monkeypatch.setenv("FAKE_TOOL_NO_HISTORY", "1")
    result = CliRunner().invoke(main, ["--log-level", "WARNING", "sessions", str(target_dir)])
    assert result.exit_code == 0
    assert "No organization sessions found." in result.output


def test_serve_refuses_missing_executable(tmp_path, monkeypatch):
    monkeypatch.delenv("ORGANIZER_TOOL_PATH", raising=False)
    with patch("organizer_control.cli.uvicorn.run") as uvicorn_run:
        result = CliRunner().invoke(
            main, ["serve", "--executable", str(tmp_path / "missing")]
        )
    assert result.exit_code == 1
    assert "executable not found" in result.output
    uvicorn_run.assert_not_called()


def test_serve_starts_uvicorn(tool_env):
    with patch("organizer_control.cli.uvicorn.run") as uvicorn_run:
        result = CliRunner().invoke(main, ["serve", "--port", "4000", "--timeout", "12"])
    assert result.exit_code == 0
    assert "http://127.0.0.1:4000" in result.output
    uvicorn_run.assert_called_once_with(
        "organizer_control.server:app", host="127.0.0.1", port=4000, reload=False
    )


def test_serve_options_do_not_leak_into_environment(fake_tool, monkeypatch):
    monkeypatch.delenv("ORGANIZER_TOOL_PATH", raising=False)
    monkeypatch.delenv("ORGANIZER_TIMEOUT", raising=False)
    seen = {}

    def fake_uvicorn_run(*args, **kwargs):
        seen["tool"] = os.environ.get("ORGANIZER_TOOL_PATH")
        seen["timeout"] = os.environ.get("ORGANIZER_TIMEOUT")

    with patch("organizer_control.cli.uvicorn.run", side_effect=fake_uvicorn_run):
        result = CliRunner().invoke(
            main, ["serve", "--executable", str(fake_tool), "--timeout", "7"]
        )
    assert result.exit_code == 0
    assert seen == {"tool": str(fake_tool), "timeout": "7.0"}
    assert "ORGANIZER_TOOL_PATH" not in os.environ
    assert "ORGANIZER_TIMEOUT" not in os.environ


def test_serve_restores_previous_environment(fake_tool, tmp_path, monkeypatch):
    monkeypatch.setenv("ORGANIZER_TOOL_PATH", str(fake_tool))
    with patch("organizer_control.cli.uvicorn.run"):
        result = CliRunner().invoke(
            main, ["serve", "--executable", str(tmp_path / "missing")]
        )
    assert result.exit_code == 1
    assert os.environ["ORGANIZER_TOOL_PATH"] == str(fake_tool)
