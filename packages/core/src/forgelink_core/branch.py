"""Decide what happens to the agent's working branch once the agent has run.

Outcomes, in the order they are checked:

- no branch requested                      -> nothing to do
- branch missing on the remote             -> nothing to do
- branch head differs from the base head   -> keep it and link it
- branch head equals the base head:
    - commit signing handled out-of-band   -> delete it
    - uncommitted local changes            -> commit, push, link it
    - clean working tree                   -> delete it
    - working tree cannot be inspected     -> link it
- head comparison fails                    -> link it

Every uncertain case resolves toward keeping and linking the branch so agent
work is never discarded silently.
"""

from __future__ import annotations

import logging
import subprocess
from abc import ABC, abstractmethod
from pathlib import Path

from forgelink_core.comments import create_branch_link
from forgelink_core.errors import (
    DeletionError,
    GitCommandError,
    PlatformRequestError,
    ReconciliationAmbiguityError,
)
from forgelink_core.models import ReconcileResult
from forgelink_core.platform.base import PlatformClient

logger = logging.getLogger(__name__)


class GitExecutor(ABC):
    """The four working-tree operations the reconciler needs.

    Implementations raise GitCommandError on failure.
    """

    @abstractmethod
    def status(self) -> str:
        """Return ``git status --porcelain`` output; empty means a clean tree."""

    @abstractmethod
    def stage_all(self) -> None:
        """Stage every change, including deletions and untracked files."""

    @abstractmethod
    def commit(self, message: str) -> None:
        """Create a commit from the staged changes."""

    @abstractmethod
    def push(self, branch: str) -> None:
        """Push the local branch to the remote branch of the same name."""


class SubprocessGitExecutor(GitExecutor):
    def __init__(self, cwd: str | Path | None = None, remote: str = "origin"):
        self.cwd = cwd
        self.remote = remote

    def _run(self, *args: str) -> str:
        try:
            result = subprocess.run(
                ["git", *args],
                cwd=self.cwd,
                capture_output=True,
                text=True,
                check=True,
            )
        except subprocess.CalledProcessError as e:
            raise GitCommandError(f"git {args[0]} exited with {e.returncode}: {(e.stderr or '').strip()}") from e
        except FileNotFoundError as e:
            raise GitCommandError("git executable not found") from e
        return result.stdout

    def status(self) -> str:
        return self._run("status", "--porcelain")

    def stage_all(self) -> None:
        self._run("add", "-A")

    def commit(self, message: str) -> None:
        self._run("commit", "-m", message)

    def push(self, branch: str) -> None:
        self._run("push", self.remote, branch)


def auto_commit_message(run_id: str) -> str:
    return f"Auto-commit: Save uncommitted changes from the agent\n\nRun ID: {run_id}"


def _branch_exists(client: PlatformClient, owner: str, repo: str, branch: str) -> bool:
    try:
        client.get_branch_head(owner, repo, branch)
    except PlatformRequestError as e:
        if e.is_not_found:
            logger.info("Branch %s does not exist remotely", branch)
        else:
            logger.error("Error checking if branch exists: %s", e)
        return False
    return True


def _commit_uncommitted_changes(executor: GitExecutor, branch: str, run_id: str) -> bool:
    """Commit and push any local changes. Returns False if the tree was clean."""
    if not executor.status().strip():
        return False
    logger.info("Found uncommitted changes, committing them...")
    executor.stage_all()
    executor.commit(auto_commit_message(run_id))
    executor.push(branch)
    logger.info("Committed and pushed uncommitted changes to %s", branch)
    return True


def check_and_commit_or_delete_branch(
    client: PlatformClient,
    executor: GitExecutor,
    owner: str,
    repo: str,
    branch: str | None,
    base_branch: str,
    use_commit_signing: bool,
    server_url: str,
    run_id: str = "unknown",
) -> ReconcileResult:
    """Link, auto-commit or delete the agent's working branch.

    Deletion failures are logged and do not change the returned result.
    """
    if not branch:
        return ReconcileResult()

    if not _branch_exists(client, owner, repo, branch):
        logger.info("Branch %s does not exist remotely, no branch link will be added", branch)
        return ReconcileResult()

    branch_link = create_branch_link(server_url, owner, repo, branch)
    should_delete = False
    link = ""

    try:
        base_sha = client.get_branch_head(owner, repo, base_branch)
        branch_sha = client.get_branch_head(owner, repo, branch)
    except PlatformRequestError as e:
        logger.error("%s", ReconciliationAmbiguityError(f"Error comparing commits on branch {branch}: {e}"))
        return ReconcileResult(should_delete_branch=False, branch_link=branch_link)

    if not base_sha or not branch_sha:
        logger.error("%s", ReconciliationAmbiguityError(f"Missing head commit comparing branch {branch}"))
        return ReconcileResult(should_delete_branch=False, branch_link=branch_link)

    if base_sha != branch_sha:
        link = branch_link
    elif use_commit_signing:
        logger.info("Branch %s has no commits from the agent, will delete it", branch)
        should_delete = True
    else:
        logger.info("Branch %s has no commits from the agent, checking for uncommitted changes...", branch)
        try:
            if _commit_uncommitted_changes(executor, branch, run_id):
                link = branch_link
            else:
                logger.info("No uncommitted changes found, marking branch for deletion")
                should_delete = True
        except GitCommandError as e:
            logger.error("Error checking/committing changes: %s", e)
            link = branch_link

    if should_delete:
        try:
            client.delete_branch(owner, repo, branch)
            logger.info("Deleted empty branch: %s", branch)
        except PlatformRequestError as e:
            logger.error("%s", DeletionError(f"Failed to delete branch {branch}: {e}"))

    return ReconcileResult(should_delete_branch=should_delete, branch_link=link)
