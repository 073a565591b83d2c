"""Tests for context fetching: entity normalization, degradation, file hashes."""

from unittest.mock import MagicMock

import pytest

from forgelink_core.errors import FatalFetchError, PlatformRequestError
from forgelink_core.fetcher import (
    collect_comments_for_images,
    compute_file_shas,
    fetch_context,
    fetch_user_display_name,
    git_blob_sha,
)
from forgelink_core.models import (
    ChangedFile,
    NormalizedEntity,
    PlatformComment,
    PlatformUser,
    PullReview,
)
from forgelink_core.platform.base import PlatformClient

SERVER = "https://github.com"


def _issue(body="Issue body"):
    return NormalizedEntity(
        number=7, title="Broken build", body=body, author_login="alice", state="OPEN", created_at="2024-01-01"
    )


def _pull(body="PR body"):
    return NormalizedEntity(
        number=7,
        title="Fix build",
        body=body,
        author_login="alice",
        state="OPEN",
        created_at="2024-01-01",
        base_ref="main",
        head_ref="fix",
        head_sha="a" * 40,
        additions=3,
        deletions=1,
    )


def _comment(id_, body):
    return PlatformComment(id=id_, body=body, author_login="bob", created_at="2024-01-02")


def _client():
    client = MagicMock(spec=PlatformClient)
    client.platform_kind = "github"
    client.get_issue.return_value = _issue()
    client.get_pull.return_value = _pull()
    client.list_issue_comments.return_value = [_comment(1, "first")]
    client.list_pull_files.return_value = []
    client.list_reviews.return_value = []
    return client


@pytest.fixture
def no_downloads(mocker):
    return mocker.patch("forgelink_core.fetcher.download_comment_images", return_value={})


# ---------------------------------------------------------------------------
# git_blob_sha / compute_file_shas
# ---------------------------------------------------------------------------


class TestFileShas:
    def test_empty_blob_matches_git(self):
        assert git_blob_sha(b"") == "e69de29bb2d1d6434b8b29ae775ad8c2e48c5391"

    def test_content_blob_matches_git(self):
        assert git_blob_sha(b"hello\n") == "ce013625030ba8dba906f756967f9e9ca394464a"

    def test_hashes_existing_file(self, tmp_path):
        (tmp_path / "src").mkdir()
        (tmp_path / "src" / "a.txt").write_bytes(b"hello\n")
        files = [ChangedFile(path="src/a.txt", additions=1, deletions=0, change_type="MODIFIED")]

        result = compute_file_shas(files, tmp_path)

        assert result[0].sha == "ce013625030ba8dba906f756967f9e9ca394464a"
        assert files[0].sha is None

    def test_deleted_file_gets_sentinel(self, tmp_path):
        files = [ChangedFile(path="gone.py", additions=0, deletions=4, change_type="DELETED")]
        assert compute_file_shas(files, tmp_path)[0].sha == "deleted"

    def test_unreadable_file_gets_unknown(self, tmp_path):
        files = [ChangedFile(path="missing.py", additions=1, deletions=0, change_type="ADDED")]
        assert compute_file_shas(files, tmp_path)[0].sha == "unknown"

    def test_defaults_to_cwd(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        (tmp_path / "a.txt").write_bytes(b"")
        files = [ChangedFile(path="a.txt", additions=0, deletions=0, change_type="MODIFIED")]
        assert compute_file_shas(files)[0].sha == "e69de29bb2d1d6434b8b29ae775ad8c2e48c5391"


# ---------------------------------------------------------------------------
# collect_comments_for_images
# ---------------------------------------------------------------------------


class TestCollectComments:
    def test_issue_order_and_variants(self):
        result = collect_comments_for_images(_issue(), [_comment(1, "a"), _comment(2, "b")], [], is_pr=False)
        assert [c.kind for c in result] == ["issue_body", "issue_comment", "issue_comment"]
        assert result[0].issue_number == 7

    def test_pr_includes_reviews_after_comments(self):
        reviews = [
            PullReview(id=10, body="review text", author_login="c", comments=[_comment(100, "inline")]),
        ]
        result = collect_comments_for_images(_pull(), [_comment(1, "a")], reviews, is_pr=True)
        assert [c.kind for c in result] == ["pr_body", "issue_comment", "review_body", "review_comment"]
        assert result[2].pull_number == 7
        assert result[3].id == 100

    def test_empty_bodies_are_dropped(self):
        reviews = [PullReview(id=10, body="", author_login="c", comments=[_comment(100, "")])]
        result = collect_comments_for_images(_pull(body=""), [_comment(1, "")], reviews, is_pr=True)
        assert result == []


# ---------------------------------------------------------------------------
# fetch_context
# ---------------------------------------------------------------------------


class TestFetchContext:
    def test_issue_fetch(self, no_downloads):
        client = _client()

        result = fetch_context(client, "owner/repo", 7, False, server_url=SERVER)

        assert result.entity.title == "Broken build"
        assert result.context.owner == "owner"
        assert result.context.platform_kind == "github"
        assert [c.id for c in result.comments] == [1]
        assert result.changed_files == []
        client.get_pull.assert_not_called()
        client.list_pull_files.assert_not_called()
        client.list_reviews.assert_not_called()

    def test_entity_not_found_is_fatal(self, no_downloads):
        client = _client()
        client.get_issue.side_effect = PlatformRequestError("not found", status=404)

        with pytest.raises(FatalFetchError):
            fetch_context(client, "owner/repo", 7, False, server_url=SERVER)

        client.list_issue_comments.assert_not_called()
        client.render_body_html.assert_not_called()
        no_downloads.assert_not_called()

    def test_invalid_repository_rejected_before_any_call(self):
        client = _client()
        with pytest.raises(ValueError):
            fetch_context(client, "no-slash", 7, False, server_url=SERVER)
        client.get_issue.assert_not_called()

    def test_comment_failure_degrades_to_empty(self, no_downloads):
        client = _client()
        client.list_issue_comments.side_effect = PlatformRequestError("boom", status=500)

        result = fetch_context(client, "owner/repo", 7, False, server_url=SERVER)

        assert result.comments == []
        assert result.entity.title == "Broken build"

    def test_pr_fetch_with_files_and_hashes(self, no_downloads, tmp_path):
        (tmp_path / "a.py").write_bytes(b"hello\n")
        client = _client()
        client.list_pull_files.return_value = [
            ChangedFile(path="a.py", additions=1, deletions=0, change_type="MODIFIED"),
            ChangedFile(path="b.py", additions=0, deletions=3, change_type="DELETED"),
        ]

        result = fetch_context(client, "owner/repo", 7, True, server_url=SERVER, workdir=tmp_path)

        assert result.entity.head_ref == "fix"
        assert [f.sha for f in result.changed_files] == [None, None]
        assert [f.sha for f in result.changed_files_with_sha] == [
            "ce013625030ba8dba906f756967f9e9ca394464a",
            "deleted",
        ]
        client.get_issue.assert_not_called()

    def test_pr_file_and_review_failures_degrade_independently(self, no_downloads):
        client = _client()
        client.list_pull_files.side_effect = PlatformRequestError("boom", status=502)
        client.list_reviews.side_effect = PlatformRequestError("boom", status=404)

        result = fetch_context(client, "owner/repo", 7, True, server_url=SERVER)

        assert result.changed_files == []
        assert result.changed_files_with_sha == []
        assert result.reviews == []
        assert [c.id for c in result.comments] == [1]

    def test_attachment_scan_receives_assembled_comments(self, no_downloads, tmp_path):
        no_downloads.return_value = {"u": "/tmp/x.png"}
        client = _client()
        client.list_reviews.return_value = [PullReview(id=3, body="lgtm", author_login="c")]

        result = fetch_context(
            client, "owner/repo", 7, True, server_url=SERVER, downloads_dir=str(tmp_path)
        )

        args, kwargs = no_downloads.call_args
        assert args[:3] == (client, "owner", "repo")
        assert [c.kind for c in args[3]] == ["pr_body", "issue_comment", "review_body"]
        assert kwargs["server_url"] == SERVER
        assert kwargs["downloads_dir"] == str(tmp_path)
        assert result.image_url_map == {"u": "/tmp/x.png"}

    def test_trigger_display_name(self, no_downloads):
        client = _client()
        client.get_user.return_value = PlatformUser(login="alice", name="Alice Smith", type="User")

        result = fetch_context(client, "owner/repo", 7, False, server_url=SERVER, trigger_username="alice")

        assert result.trigger_display_name == "Alice Smith"

    def test_no_trigger_user_skips_lookup(self, no_downloads):
        client = _client()
        result = fetch_context(client, "owner/repo", 7, False, server_url=SERVER)
        assert result.trigger_display_name is None
        client.get_user.assert_not_called()


class TestFetchUserDisplayName:
    def test_returns_none_on_failure(self):
        client = _client()
        client.get_user.side_effect = PlatformRequestError("nope", status=404)
        assert fetch_user_display_name(client, "ghost") is None
