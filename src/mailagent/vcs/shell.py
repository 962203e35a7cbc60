"""Run a CLI command and return its trimmed stdout."""

from __future__ import annotations

import subprocess
from pathlib import Path

from mailagent.domain.errors import CollaboratorError


def run_command(args: list[str], cwd: Path | None = None) -> str:
    """Run *args* and return stdout with surrounding whitespace removed.

    Raises:
        CollaboratorError: If the executable is missing or exits non-zero.
            The error names the tool and subcommand (``git checkout``) and
            carries stderr, or the exit code when stderr is empty.
    """
    name = " ".join(args[:2])
    try:
        completed = subprocess.run(
            args,
            cwd=cwd,
            capture_output=True,
            text=True,
            check=False,
        )
    except OSError as exc:
        raise CollaboratorError(name, str(exc)) from exc

    if completed.returncode != 0:
        detail = completed.stderr.strip() or f"exit code {completed.returncode}"
        raise CollaboratorError(name, detail)
    return completed.stdout.strip()
