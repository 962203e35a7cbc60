"""Pull-request operations through the GitHub ``gh`` CLI."""

from __future__ import annotations

import re
from pathlib import Path

import structlog

from mailagent.domain.errors import CollaboratorError
from mailagent.vcs.shell import run_command

logger = structlog.get_logger()

_PR_NUMBER_RE = re.compile(r"/pull/(\d+)")


class PullRequestClient:
    """Create, comment on, merge and close the pull request of a checkout."""

    def get_existing_pr(self, cwd: Path) -> int | None:
        """Return the open PR number for the current branch, if any."""
        try:
            output = run_command(
                ["gh", "pr", "view", "--json", "number", "--jq", ".number"], cwd
            )
        except CollaboratorError:
            return None
        return int(output) if output.isdigit() else None

    def create_pr(self, cwd: Path, title: str, body: str) -> int:
        """Open a PR for the current branch and return its number.

        An existing PR for the branch is reused rather than duplicated.

        Raises:
            CollaboratorError: If ``gh`` fails or its output has no PR URL.
        """
        existing = self.get_existing_pr(cwd)
        if existing is not None:
            return existing

        output = run_command(["gh", "pr", "create", "--title", title, "--body", body], cwd)
        match = _PR_NUMBER_RE.search(output)
        if match is None:
            raise CollaboratorError("gh pr", f"could not parse PR number from: {output}")

        number = int(match.group(1))
        logger.info("Pull request created", pr_number=number)
        return number

    def comment_on_pr(self, cwd: Path, pr_number: int, body: str) -> None:
        run_command(["gh", "pr", "comment", str(pr_number), "--body", body], cwd)

    def get_pr_url(self, cwd: Path, pr_number: int) -> str:
        return run_command(
            ["gh", "pr", "view", str(pr_number), "--json", "url", "--jq", ".url"], cwd
        )

    def merge_pr(self, cwd: Path, pr_number: int) -> None:
        run_command(["gh", "pr", "merge", str(pr_number), "--merge"], cwd)
        logger.info("Pull request merged", pr_number=pr_number)

    def close_pr(self, cwd: Path, pr_number: int) -> None:
        run_command(["gh", "pr", "close", str(pr_number)], cwd)
        logger.info("Pull request closed", pr_number=pr_number)
