"""GitHub dialect.

Structured calls go through PyGithub. Rendered HTML bodies are fetched with
a plain requests session because PyGithub does not expose the
``application/vnd.github.full+json`` media type that adds ``body_html``.
"""

from __future__ import annotations

from collections import defaultdict
from datetime import datetime

import requests
from github import Auth, Github

from forgelink_core.models import (
    ChangedFile,
    CommentWithImages,
    NormalizedEntity,
    PlatformComment,
    PlatformUser,
    PullReview,
)
from forgelink_core.platform.base import PlatformClient
from forgelink_core.platform.http import build_session, translate_errors

_FULL_JSON = "application/vnd.github.full+json"


def _iso(value) -> str:
    if isinstance(value, datetime):
        return value.isoformat()
    return value or ""


def _login(user) -> str:
    return getattr(user, "login", None) or ""


def _to_comment(c) -> PlatformComment:
    return PlatformComment(id=c.id, body=c.body or "", author_login=_login(c.user), created_at=_iso(c.created_at))


class GitHubClient(PlatformClient):
    platform_kind = "github"

    def __init__(self, token: str, api_url: str = "https://api.github.com", github_api: Github | None = None):
        self._api_url = api_url.rstrip("/")
        if github_api is None:
            github_api = Github(auth=Auth.Token(token) if token else None, base_url=self._api_url)
        self._gh = github_api
        self._session = build_session(token, accept=_FULL_JSON)

    def _repo(self, owner: str, repo: str):
        # lazy: no request until an attribute or sub-resource is needed
        return self._gh.get_repo(f"{owner}/{repo}", lazy=True)

    # ------------------------------------------------------------------ #
    # Issues and pull requests                                             #
    # ------------------------------------------------------------------ #

    def get_issue(self, owner: str, repo: str, number: int) -> NormalizedEntity:
        with translate_errors(f"get issue #{number}"):
            issue = self._repo(owner, repo).get_issue(number)
            return NormalizedEntity(
                number=number,
                title=issue.title,
                body=issue.body or "",
                author_login=_login(issue.user),
                state=(issue.state or "").upper(),
                created_at=_iso(issue.created_at),
            )

    def get_pull(self, owner: str, repo: str, number: int) -> NormalizedEntity:
        with translate_errors(f"get pull #{number}"):
            pr = self._repo(owner, repo).get_pull(number)
            return NormalizedEntity(
                number=number,
                title=pr.title,
                body=pr.body or "",
                author_login=_login(pr.user),
                state=(pr.state or "").upper(),
                created_at=_iso(pr.created_at),
                base_ref=pr.base.ref,
                head_ref=pr.head.ref,
                head_sha=pr.head.sha,
                additions=pr.additions or 0,
                deletions=pr.deletions or 0,
            )

    def list_issue_comments(self, owner: str, repo: str, number: int) -> list[PlatformComment]:
        with translate_errors(f"list comments for #{number}"):
            return [_to_comment(c) for c in self._repo(owner, repo).get_issue(number).get_comments()]

    def list_pull_files(self, owner: str, repo: str, number: int) -> list[ChangedFile]:
        with translate_errors(f"list files for pull #{number}"):
            files = self._repo(owner, repo).get_pull(number).get_files()
            return [
                ChangedFile(
                    path=f.filename,
                    additions=f.additions or 0,
                    deletions=f.deletions or 0,
                    change_type=_change_type(f.status),
                )
                for f in files
            ]

    def list_reviews(self, owner: str, repo: str, number: int) -> list[PullReview]:
        with translate_errors(f"list reviews for pull #{number}"):
            pr = self._repo(owner, repo).get_pull(number)
            by_review: dict[int, list[PlatformComment]] = defaultdict(list)
            for c in pr.get_review_comments():
                by_review[c.pull_request_review_id].append(_to_comment(c))
            return [
                PullReview(
                    id=r.id,
                    body=r.body or "",
                    author_login=_login(r.user),
                    comments=by_review.get(r.id, []),
                )
                for r in pr.get_reviews()
            ]

    # ------------------------------------------------------------------ #
    # Users and permissions                                                #
    # ------------------------------------------------------------------ #

    def get_user(self, login: str) -> PlatformUser:
        with translate_errors(f"get user {login}"):
            user = self._gh.get_user(login)
            return PlatformUser(login=user.login, name=user.name, type=user.type)

    def get_collaborator_permission(self, owner: str, repo: str, login: str) -> str:
        with translate_errors(f"get permission for {login}"):
            return self._repo(owner, repo).get_collaborator_permission(login)

    def check_collaborator(self, owner: str, repo: str, login: str) -> bool:
        # PyGithub maps the 404 "not a collaborator" answer to False.
        with translate_errors(f"check collaborator {login}"):
            return self._repo(owner, repo).has_in_collaborators(login)

    # ------------------------------------------------------------------ #
    # Branches                                                             #
    # ------------------------------------------------------------------ #

    def get_branch_head(self, owner: str, repo: str, branch: str) -> str:
        with translate_errors(f"get branch {branch}"):
            return self._repo(owner, repo).get_branch(branch).commit.sha

    def delete_branch(self, owner: str, repo: str, branch: str) -> None:
        # GitHub has no branch DELETE endpoint; branches are deleted as git refs.
        with translate_errors(f"delete ref heads/{branch}"):
            self._repo(owner, repo).get_git_ref(f"heads/{branch}").delete()

    # ------------------------------------------------------------------ #
    # Attachments                                                          #
    # ------------------------------------------------------------------ #

    def _html_path(self, owner: str, repo: str, comment: CommentWithImages) -> str:
        base = f"/repos/{owner}/{repo}"
        if comment.kind == "issue_comment":
            return f"{base}/issues/comments/{comment.id}"
        if comment.kind == "review_comment":
            return f"{base}/pulls/comments/{comment.id}"
        if comment.kind == "review_body":
            return f"{base}/pulls/{comment.pull_number}/reviews/{comment.id}"
        if comment.kind == "issue_body":
            return f"{base}/issues/{comment.issue_number}"
        if comment.kind == "pr_body":
            return f"{base}/pulls/{comment.pull_number}"
        raise ValueError(f"Unknown comment kind: {comment.kind!r}")

    def render_body_html(self, owner: str, repo: str, comment: CommentWithImages) -> str | None:
        path = self._html_path(owner, repo, comment)
        with translate_errors(f"render {comment.kind} {comment.ref}"):
            response = self._session.get(self._api_url + path)
            response.raise_for_status()
            return response.json().get("body_html")

    def download(self, url: str) -> bytes:
        # Signed URLs carry their own token; the API credential must not leak to the CDN host.
        with translate_errors("download attachment"):
            response = requests.get(url)
            response.raise_for_status()
            return response.content

    def close(self) -> None:
        self._session.close()


def _change_type(status: str | None) -> str:
    if not status:
        return "MODIFIED"
    if status == "removed":
        return "DELETED"
    return status.upper()
