"""Local repository operations: clone, branch and commit inspection."""

from __future__ import annotations

from pathlib import Path

import structlog

from mailagent.domain.errors import CollaboratorError
from mailagent.vcs.shell import run_command

logger = structlog.get_logger()

FALLBACK_DEFAULT_BRANCH = "main"


class GitClient:
    """Thin wrapper around the ``git`` CLI for project checkouts.

    Each project is a clone of ``https://github.com/<owner>/<project>`` under
    ``projects_dir``.

    Args:
        projects_dir: Directory holding one checkout per project.
        github_owner: GitHub user or organisation owning the repositories.
    """

    def __init__(self, projects_dir: Path, github_owner: str = "") -> None:
        self._projects_dir = projects_dir
        self._owner = github_owner

    def project_path(self, project: str) -> Path:
        return self._projects_dir / project

    def repo_url(self, project: str) -> str:
        return f"https://github.com/{self._owner}/{project}.git"

    def ensure_repo(self, project: str) -> Path:
        """Return the project's checkout, cloning it first if absent.

        Raises:
            CollaboratorError: If no owner is configured for a needed clone,
                or the clone fails.
        """
        path = self.project_path(project)
        if (path / ".git").exists():
            return path

        if not self._owner:
            raise CollaboratorError(
                "git clone", f"cannot clone {project}: GITHUB_OWNER is not configured"
            )

        url = self.repo_url(project)
        logger.info("Cloning repository", project=project, url=url)
        path.parent.mkdir(parents=True, exist_ok=True)
        run_command(["git", "clone", url, str(path)])
        return path

    def get_default_branch(self, cwd: Path) -> str:
        """Return the remote's default branch, or ``main`` if it is unknown."""
        try:
            ref = run_command(
                ["git", "symbolic-ref", "--short", "refs/remotes/origin/HEAD"], cwd
            )
        except CollaboratorError:
            return FALLBACK_DEFAULT_BRANCH
        return ref.removeprefix("origin/") or FALLBACK_DEFAULT_BRANCH

    def get_current_branch(self, cwd: Path) -> str:
        return run_command(["git", "rev-parse", "--abbrev-ref", "HEAD"], cwd)

    def checkout_branch(self, cwd: Path, branch: str) -> None:
        run_command(["git", "checkout", branch], cwd)

    def ensure_branch(self, cwd: Path, branch: str) -> None:
        """Check out *branch*, creating it from HEAD if it does not exist."""
        try:
            run_command(["git", "rev-parse", "--verify", "--quiet", branch], cwd)
        except CollaboratorError:
            run_command(["git", "checkout", "-b", branch], cwd)
            logger.info("Created branch", branch=branch)
            return
        self.checkout_branch(cwd, branch)

    def has_commits_ahead(self, cwd: Path, base: str | None = None) -> bool:
        """Return True if HEAD has commits not on *base* (default branch if omitted)."""
        base = base or self.get_default_branch(cwd)
        count = run_command(["git", "rev-list", "--count", f"{base}..HEAD"], cwd)
        return int(count or "0") > 0

    def push_branch(self, cwd: Path, branch: str) -> None:
        run_command(["git", "push", "-u", "origin", branch], cwd)
