"""Gitea dialect over the Gitea REST API (``/api/v1``).

Gitea has no ``full+json`` media type, so bodies are rendered through the
``POST /markdown`` endpoint. That works for text we already hold (issue and
PR bodies, issue comments) but Gitea has no way to render a review or review
comment in the context of its pull request, so those raise
UnsupportedCapabilityError.
"""

from __future__ import annotations

from urllib.parse import quote

from forgelink_core.errors import PlatformRequestError, UnsupportedCapabilityError
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

_PAGE_LIMIT = 50

# Gitea file statuses -> the upper-cased change types GitHub uses.
_CHANGE_TYPES = {
    "added": "ADDED",
    "changed": "MODIFIED",
    "modified": "MODIFIED",
    "deleted": "DELETED",
    "removed": "DELETED",
    "renamed": "RENAMED",
    "copied": "COPIED",
}


def _login(payload: dict | None) -> str:
    return (payload or {}).get("login") or ""


def _to_comment(c: dict) -> PlatformComment:
    return PlatformComment(
        id=c["id"],
        body=c.get("body") or "",
        author_login=_login(c.get("user")),
        created_at=c.get("created_at") or "",
    )


class GiteaClient(PlatformClient):
    platform_kind = "gitea"

    def __init__(self, token: str, api_url: str):
        self._api_url = api_url.rstrip("/")
        self._session = build_session(token)

    def _request(self, method: str, path: str, action: str, **kwargs):
        with translate_errors(action):
            response = self._session.request(method, self._api_url + path, **kwargs)
            response.raise_for_status()
            return response

    def _get_json(self, path: str, action: str, **kwargs):
        response = self._request("GET", path, action, **kwargs)
        # A 200 with a non-JSON body (proxy login page, truncated reply) is a request failure.
        with translate_errors(action):
            return response.json()

    def _get_paginated(self, path: str, action: str) -> list[dict]:
        items: list[dict] = []
        page = 1
        while True:
            batch = self._get_json(path, action, params={"page": page, "limit": _PAGE_LIMIT}) or []
            items.extend(batch)
            if len(batch) < _PAGE_LIMIT:
                return items
            page += 1

    # ------------------------------------------------------------------ #
    # Issues and pull requests                                             #
    # ------------------------------------------------------------------ #

    def get_issue(self, owner: str, repo: str, number: int) -> NormalizedEntity:
        data = self._get_json(f"/repos/{owner}/{repo}/issues/{number}", f"get issue #{number}")
        return NormalizedEntity(
            number=number,
            title=data.get("title") or "",
            body=data.get("body") or "",
            author_login=_login(data.get("user")),
            state=(data.get("state") or "").upper(),
            created_at=data.get("created_at") or "",
        )

    def get_pull(self, owner: str, repo: str, number: int) -> NormalizedEntity:
        data = self._get_json(f"/repos/{owner}/{repo}/pulls/{number}", f"get pull #{number}")
        base = data.get("base") or {}
        head = data.get("head") or {}
        return NormalizedEntity(
            number=number,
            title=data.get("title") or "",
            body=data.get("body") or "",
            author_login=_login(data.get("user")),
            state=(data.get("state") or "").upper(),
            created_at=data.get("created_at") or "",
            base_ref=base.get("ref") or "",
            head_ref=head.get("ref") or "",
            head_sha=head.get("sha") or "",
            # Older Gitea releases omit line counts on pulls.
            additions=data.get("additions") or 0,
            deletions=data.get("deletions") or 0,
        )

    def list_issue_comments(self, owner: str, repo: str, number: int) -> list[PlatformComment]:
        items = self._get_paginated(f"/repos/{owner}/{repo}/issues/{number}/comments", f"list comments for #{number}")
        return [_to_comment(c) for c in items]

    def list_pull_files(self, owner: str, repo: str, number: int) -> list[ChangedFile]:
        items = self._get_paginated(f"/repos/{owner}/{repo}/pulls/{number}/files", f"list files for pull #{number}")
        return [
            ChangedFile(
                path=f["filename"],
                additions=f.get("additions") or 0,
                deletions=f.get("deletions") or 0,
                change_type=_CHANGE_TYPES.get((f.get("status") or "").lower(), "MODIFIED"),
            )
            for f in items
        ]

    def list_reviews(self, owner: str, repo: str, number: int) -> list[PullReview]:
        base = f"/repos/{owner}/{repo}/pulls/{number}/reviews"
        reviews = []
        for r in self._get_paginated(base, f"list reviews for pull #{number}"):
            comments = self._get_json(f"{base}/{r['id']}/comments", f"list comments for review {r['id']}") or []
            reviews.append(
                PullReview(
                    id=r["id"],
                    body=r.get("body") or "",
                    author_login=_login(r.get("user")),
                    comments=[_to_comment(c) for c in comments],
                )
            )
        return reviews

    # ------------------------------------------------------------------ #
    # Users and permissions                                                #
    # ------------------------------------------------------------------ #

    def get_user(self, login: str) -> PlatformUser:
        data = self._get_json(f"/users/{login}", f"get user {login}")
        # Gitea reports no account type; full_name is the display name.
        return PlatformUser(login=data.get("login") or login, name=data.get("full_name") or None, type=None)

    def get_collaborator_permission(self, owner: str, repo: str, login: str) -> str:
        data = self._get_json(
            f"/repos/{owner}/{repo}/collaborators/{login}/permission",
            f"get permission for {login}",
        )
        return data.get("permission") or ""

    def check_collaborator(self, owner: str, repo: str, login: str) -> bool:
        try:
            self._request("GET", f"/repos/{owner}/{repo}/collaborators/{login}", f"check collaborator {login}")
        except PlatformRequestError as e:
            if e.is_not_found:
                return False
            raise
        return True

    # ------------------------------------------------------------------ #
    # Branches                                                             #
    # ------------------------------------------------------------------ #

    def get_branch_head(self, owner: str, repo: str, branch: str) -> str:
        data = self._get_json(f"/repos/{owner}/{repo}/branches/{quote(branch, safe='')}", f"get branch {branch}")
        commit = data.get("commit") or {}
        sha = commit.get("id") or commit.get("sha")
        if not sha:
            raise PlatformRequestError(f"get branch {branch} failed: response has no head commit")
        return sha

    def delete_branch(self, owner: str, repo: str, branch: str) -> None:
        self._request("DELETE", f"/repos/{owner}/{repo}/branches/{quote(branch, safe='')}", f"delete branch {branch}")

    # ------------------------------------------------------------------ #
    # Attachments                                                          #
    # ------------------------------------------------------------------ #

    def render_body_html(self, owner: str, repo: str, comment: CommentWithImages) -> str | None:
        if comment.kind in ("review_body", "review_comment"):
            raise UnsupportedCapabilityError(f"Gitea cannot render {comment.kind} bodies")
        response = self._request(
            "POST",
            "/markdown",
            f"render {comment.kind} {comment.ref}",
            json={"Text": comment.body, "Mode": "gfm", "Context": f"{owner}/{repo}"},
        )
        return response.text or None

    def download(self, url: str) -> bytes:
        # Gitea serves attachments to any authenticated caller; send the token.
        with translate_errors("download attachment"):
            response = self._session.get(url)
            response.raise_for_status()
            return response.content

    def close(self) -> None:
        self._session.close()
