"""Normalized data models shared by both platform dialects.

The clients map raw GitHub/Gitea payloads into these types at the
deserialization boundary, so nothing downstream ever inspects a raw response
or branches on which fields a platform happens to return.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal, Union

PlatformKind = Literal["github", "gitea"]


@dataclass(frozen=True)
class PlatformContext:
    """Repository coordinates for a single run."""

    owner: str
    repo: str
    platform_kind: PlatformKind

    @classmethod
    def from_repository(cls, repository: str, platform_kind: PlatformKind) -> PlatformContext:
        owner, _, repo = repository.partition("/")
        if not owner or not repo or "/" in repo:
            raise ValueError("Invalid repository format. Expected 'owner/repo'.")
        return cls(owner=owner, repo=repo, platform_kind=platform_kind)

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.repo}"


@dataclass(frozen=True)
class NormalizedEntity:
    """An issue or pull request. PR-only fields stay None/0 for issues."""

    number: int
    title: str
    body: str
    author_login: str
    state: str  # upper-cased: "OPEN" | "CLOSED" | "MERGED"
    created_at: str
    base_ref: str | None = None
    head_ref: str | None = None
    head_sha: str | None = None
    additions: int = 0
    deletions: int = 0

    @property
    def is_pull_request(self) -> bool:
        return self.base_ref is not None


@dataclass(frozen=True)
class PlatformComment:
    """A top-level issue/PR comment or an inline review comment."""

    id: int
    body: str
    author_login: str
    created_at: str


@dataclass(frozen=True)
class PullReview:
    id: int
    body: str
    author_login: str
    comments: list[PlatformComment] = field(default_factory=list)


@dataclass(frozen=True)
class ChangedFile:
    path: str
    additions: int
    deletions: int
    change_type: str  # "ADDED" | "MODIFIED" | "DELETED" | "RENAMED" | ...
    # Git blob id of the on-disk content; "deleted" / "unknown" are terminal values.
    sha: str | None = None


@dataclass(frozen=True)
class PlatformUser:
    login: str
    name: str | None = None
    # "User" | "Bot" | "Organization" on GitHub; Gitea does not report a type.
    type: str | None = None


# ---------------------------------------------------------------------------
# Comments scanned for image attachments
# ---------------------------------------------------------------------------
# Each variant names the API call that returns its rendered HTML, so the
# variant is carried explicitly rather than inferred from which ids are set.


@dataclass(frozen=True)
class IssueCommentRef:
    id: int
    body: str
    kind: Literal["issue_comment"] = field(default="issue_comment", init=False)

    @property
    def ref(self) -> int:
        return self.id


@dataclass(frozen=True)
class ReviewCommentRef:
    id: int
    body: str
    kind: Literal["review_comment"] = field(default="review_comment", init=False)

    @property
    def ref(self) -> int:
        return self.id


@dataclass(frozen=True)
class ReviewBodyRef:
    id: int
    pull_number: int
    body: str
    kind: Literal["review_body"] = field(default="review_body", init=False)

    @property
    def ref(self) -> int:
        return self.id


@dataclass(frozen=True)
class IssueBodyRef:
    issue_number: int
    body: str
    kind: Literal["issue_body"] = field(default="issue_body", init=False)

    @property
    def ref(self) -> int:
        return self.issue_number


@dataclass(frozen=True)
class PullRequestBodyRef:
    pull_number: int
    body: str
    kind: Literal["pr_body"] = field(default="pr_body", init=False)

    @property
    def ref(self) -> int:
        return self.pull_number


CommentWithImages = Union[IssueCommentRef, ReviewCommentRef, ReviewBodyRef, IssueBodyRef, PullRequestBodyRef]


# ---------------------------------------------------------------------------
# Pipeline results
# ---------------------------------------------------------------------------


@dataclass
class FetchResult:
    """Everything gathered for the agent's input in one context fetch."""

    context: PlatformContext
    entity: NormalizedEntity
    comments: list[PlatformComment] = field(default_factory=list)
    changed_files: list[ChangedFile] = field(default_factory=list)
    changed_files_with_sha: list[ChangedFile] = field(default_factory=list)
    reviews: list[PullReview] = field(default_factory=list)
    # original attachment URL -> local file path
    image_url_map: dict[str, str] = field(default_factory=dict)
    trigger_display_name: str | None = None


@dataclass(frozen=True)
class ReconcileResult:
    should_delete_branch: bool = False
    branch_link: str = ""
