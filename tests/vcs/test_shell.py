"""Tests for run_command."""

from __future__ import annotations

import subprocess
from unittest.mock import patch

import pytest

from mailagent.domain.errors import CollaboratorError
from mailagent.vcs.shell import run_command


def _completed(returncode: int, stdout: str = "", stderr: str = "") -> subprocess.CompletedProcess:
    return subprocess.CompletedProcess(args=[], returncode=returncode, stdout=stdout, stderr=stderr)


class TestRunCommand:
    def test_returns_trimmed_stdout(self) -> None:
        with patch("mailagent.vcs.shell.subprocess.run", return_value=_completed(0, " main\n")):
            assert run_command(["git", "rev-parse"]) == "main"

    def test_failure_names_subcommand_and_stderr(self) -> None:
        with (
            patch(
                "mailagent.vcs.shell.subprocess.run",
                return_value=_completed(1, stderr="fatal: not a git repository\n"),
            ),
            pytest.raises(CollaboratorError) as exc_info,
        ):
            run_command(["git", "checkout", "main"])

        assert exc_info.value.command == "git checkout"
        assert str(exc_info.value) == "git checkout failed: fatal: not a git repository"

    def test_failure_without_stderr_reports_exit_code(self) -> None:
        with (
            patch("mailagent.vcs.shell.subprocess.run", return_value=_completed(128)),
            pytest.raises(CollaboratorError, match="exit code 128"),
        ):
            run_command(["gh", "pr", "view"])

    def test_missing_executable(self) -> None:
        with pytest.raises(CollaboratorError):
            run_command(["definitely-not-a-real-binary", "x"])
