"""Git and pull-request collaborators driven through the ``git`` and ``gh`` CLIs."""

from mailagent.vcs.branch_safety import BranchSafetyResult, ensure_on_default_branch
from mailagent.vcs.git import GitClient
from mailagent.vcs.pull_requests import PullRequestClient
from mailagent.vcs.shell import run_command

__all__ = [
    "BranchSafetyResult",
    "GitClient",
    "PullRequestClient",
    "ensure_on_default_branch",
    "run_command",
]
