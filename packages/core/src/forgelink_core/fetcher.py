"""Acquire normalized issue/PR context for the agent.

Only the primary entity fetch is fatal. Comments, changed files and reviews
are fetched independently and each degrades to an empty list on failure, so
the agent still receives whatever context the platform could return.
"""

from __future__ import annotations

import hashlib
import logging
from collections.abc import Callable
from dataclasses import replace
from pathlib import Path
from typing import TypeVar

from forgelink_core.attachments import DEFAULT_DOWNLOADS_DIR, download_comment_images
from forgelink_core.errors import DegradedFetchError, FatalFetchError, PlatformRequestError
from forgelink_core.models import (
    ChangedFile,
    CommentWithImages,
    FetchResult,
    IssueBodyRef,
    IssueCommentRef,
    NormalizedEntity,
    PlatformComment,
    PlatformContext,
    PullRequestBodyRef,
    PullReview,
    ReviewBodyRef,
    ReviewCommentRef,
)
from forgelink_core.platform.base import PlatformClient

logger = logging.getLogger(__name__)

T = TypeVar("T")

SHA_DELETED = "deleted"
SHA_UNKNOWN = "unknown"


def _fetch_or_empty(what: str, fetch: Callable[[], list[T]]) -> list[T]:
    try:
        return fetch()
    except PlatformRequestError as e:
        logger.warning("%s", DegradedFetchError(f"Failed to fetch {what}: {e}"))
        return []


def git_blob_sha(data: bytes) -> str:
    """Return the git object id for a blob, identical to ``git hash-object``."""
    header = f"blob {len(data)}\0".encode()
    return hashlib.sha1(header + data).hexdigest()


def compute_file_shas(files: list[ChangedFile], workdir: str | Path | None = None) -> list[ChangedFile]:
    """Attach the on-disk content hash to each changed file.

    Deleted files get "deleted"; files that cannot be read get "unknown".
    """
    root = Path(workdir) if workdir else Path.cwd()
    result = []
    for f in files:
        if f.change_type == "DELETED":
            result.append(replace(f, sha=SHA_DELETED))
            continue
        try:
            sha = git_blob_sha((root / f.path).read_bytes())
        except OSError as e:
            logger.warning("Failed to compute SHA for %s: %s", f.path, e)
            sha = SHA_UNKNOWN
        result.append(replace(f, sha=sha))
    return result


def collect_comments_for_images(
    entity: NormalizedEntity,
    comments: list[PlatformComment],
    reviews: list[PullReview],
    is_pr: bool,
) -> list[CommentWithImages]:
    """Assemble the comment set scanned for attachments, dropping empty bodies.

    Order: entity body, top-level comments, review bodies, review comments.
    """
    main_body: list[CommentWithImages] = []
    if entity.body:
        if is_pr:
            main_body.append(PullRequestBodyRef(pull_number=entity.number, body=entity.body))
        else:
            main_body.append(IssueBodyRef(issue_number=entity.number, body=entity.body))

    issue_comments = [IssueCommentRef(id=c.id, body=c.body) for c in comments if c.body]
    review_bodies = [ReviewBodyRef(id=r.id, pull_number=entity.number, body=r.body) for r in reviews if r.body]
    review_comments = [ReviewCommentRef(id=c.id, body=c.body) for r in reviews for c in r.comments if c.body]

    return [*main_body, *issue_comments, *review_bodies, *review_comments]


def fetch_user_display_name(client: PlatformClient, login: str) -> str | None:
    try:
        return client.get_user(login).name
    except PlatformRequestError as e:
        logger.warning("Failed to fetch user display name for %s: %s", login, e)
        return None


def fetch_context(
    client: PlatformClient,
    repository: str,
    number: int,
    is_pr: bool,
    server_url: str,
    downloads_dir: str = DEFAULT_DOWNLOADS_DIR,
    workdir: str | Path | None = None,
    trigger_username: str | None = None,
) -> FetchResult:
    """Fetch and normalize everything the agent needs about an issue or PR.

    Raises FatalFetchError when the issue/PR itself cannot be fetched; no
    comment, file or attachment work is attempted in that case.
    """
    context = PlatformContext.from_repository(repository, client.platform_kind)
    owner, repo = context.owner, context.repo
    label = "PR" if is_pr else "issue"

    logger.info("Fetching %s #%d data", label, number)
    try:
        if is_pr:
            entity = client.get_pull(owner, repo, number)
        else:
            entity = client.get_issue(owner, repo, number)
    except PlatformRequestError as e:
        logger.error("Failed to fetch %s data: %s", label, e)
        raise FatalFetchError(f"Failed to fetch {label} data") from e

    comments = _fetch_or_empty(f"{label} comments", lambda: client.list_issue_comments(owner, repo, number))

    changed_files: list[ChangedFile] = []
    changed_files_with_sha: list[ChangedFile] = []
    reviews: list[PullReview] = []
    if is_pr:
        changed_files = _fetch_or_empty("PR files", lambda: client.list_pull_files(owner, repo, number))
        reviews = _fetch_or_empty("PR reviews", lambda: client.list_reviews(owner, repo, number))
        changed_files_with_sha = compute_file_shas(changed_files, workdir)

    image_url_map = download_comment_images(
        client,
        owner,
        repo,
        collect_comments_for_images(entity, comments, reviews, is_pr),
        server_url=server_url,
        downloads_dir=downloads_dir,
    )

    trigger_display_name = None
    if trigger_username:
        trigger_display_name = fetch_user_display_name(client, trigger_username)

    return FetchResult(
        context=context,
        entity=entity,
        comments=comments,
        changed_files=changed_files,
        changed_files_with_sha=changed_files_with_sha,
        reviews=reviews,
        image_url_map=image_url_map,
        trigger_display_name=trigger_display_name,
    )
