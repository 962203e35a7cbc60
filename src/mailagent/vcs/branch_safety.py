"""Start new sessions' branches from the repository's default branch."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

import structlog

from mailagent.vcs.git import GitClient

logger = structlog.get_logger()


@dataclass(frozen=True)
class BranchSafetyResult:
    previous_branch: str
    default_branch: str
    notification_sent: bool = False

    @property
    def switched(self) -> bool:
        return self.previous_branch != self.default_branch


def ensure_on_default_branch(
    git: GitClient,
    cwd: Path,
    notify: Callable[[str, str], None],
) -> BranchSafetyResult:
    """Check out the default branch if the checkout is elsewhere.

    When a switch happens, ``notify(previous_branch, default_branch)`` is
    called.  A failing notification is logged and otherwise ignored; a
    failing checkout propagates.
    """
    default_branch = git.get_default_branch(cwd)
    current_branch = git.get_current_branch(cwd)
    if current_branch == default_branch:
        return BranchSafetyResult(previous_branch=current_branch, default_branch=default_branch)

    git.checkout_branch(cwd, default_branch)
    logger.warning(
        "Repository was not on its default branch",
        previous_branch=current_branch,
        default_branch=default_branch,
    )

    try:
        notify(current_branch, default_branch)
    except Exception:
        logger.exception("Failed to send branch notice")
        return BranchSafetyResult(previous_branch=current_branch, default_branch=default_branch)

    return BranchSafetyResult(
        previous_branch=current_branch,
        default_branch=default_branch,
        notification_sent=True,
    )
