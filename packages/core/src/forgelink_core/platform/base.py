"""Abstract platform client.

Both REST dialects (GitHub-style and Gitea-style) implement this interface.
The pipeline depends on PlatformClient, never on a concrete dialect, so the
dialect is chosen once at startup and passed down explicitly.

Clients hold no decision logic: each method performs one request (or one
paginated listing), maps the payload into forgelink_core.models types, and
raises PlatformRequestError on any transport failure. Nothing here retries.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from forgelink_core.models import (
        ChangedFile,
        CommentWithImages,
        NormalizedEntity,
        PlatformComment,
        PlatformUser,
        PullReview,
    )


class PlatformClient(ABC):
    platform_kind: str = ""

    # ------------------------------------------------------------------ #
    # Issues and pull requests                                             #
    # ------------------------------------------------------------------ #

    @abstractmethod
    def get_issue(self, owner: str, repo: str, number: int) -> NormalizedEntity:
        """Fetch an issue and normalize it."""

    @abstractmethod
    def get_pull(self, owner: str, repo: str, number: int) -> NormalizedEntity:
        """Fetch a pull request, including its base/head refs and line counts."""

    @abstractmethod
    def list_issue_comments(self, owner: str, repo: str, number: int) -> list[PlatformComment]:
        """List top-level comments on an issue or pull request."""

    @abstractmethod
    def list_pull_files(self, owner: str, repo: str, number: int) -> list[ChangedFile]:
        """List files changed by a pull request. Returned files carry no sha."""

    @abstractmethod
    def list_reviews(self, owner: str, repo: str, number: int) -> list[PullReview]:
        """List a pull request's reviews with their inline comments attached."""

    # ------------------------------------------------------------------ #
    # Users and permissions                                                #
    # ------------------------------------------------------------------ #

    @abstractmethod
    def get_user(self, login: str) -> PlatformUser:
        """Fetch a user account by login."""

    @abstractmethod
    def get_collaborator_permission(self, owner: str, repo: str, login: str) -> str:
        """Return the permission level string, e.g. "admin", "write", "read"."""

    @abstractmethod
    def check_collaborator(self, owner: str, repo: str, login: str) -> bool:
        """Return True if login is a collaborator, False on the "not a collaborator" 404."""

    # ------------------------------------------------------------------ #
    # Branches                                                             #
    # ------------------------------------------------------------------ #

    @abstractmethod
    def get_branch_head(self, owner: str, repo: str, branch: str) -> str:
        """Return the head commit sha of a branch. A missing branch raises with status 404."""

    @abstractmethod
    def delete_branch(self, owner: str, repo: str, branch: str) -> None:
        """Delete a branch on the remote."""

    # ------------------------------------------------------------------ #
    # Attachments                                                          #
    # ------------------------------------------------------------------ #

    @abstractmethod
    def render_body_html(self, owner: str, repo: str, comment: CommentWithImages) -> str | None:
        """Return the server-rendered HTML for a comment or entity body.

        Raises UnsupportedCapabilityError when the dialect cannot render this
        comment variant at all. Returns None when the call succeeded but the
        response carried no HTML.
        """

    @abstractmethod
    def download(self, url: str) -> bytes:
        """Fetch the raw bytes behind a resolved attachment URL."""

    def close(self) -> None:
        """Release any resources held by the client (HTTP sessions).

        Default is a no-op.
        """
