"""Fetch and reconcile against a GiteaClient whose server misbehaves."""

from unittest.mock import MagicMock

import pytest
import requests

from forgelink_core.branch import GitExecutor, check_and_commit_or_delete_branch
from forgelink_core.errors import FatalFetchError
from forgelink_core.fetcher import fetch_context
from forgelink_core.models import ReconcileResult
from forgelink_core.platform import GiteaClient

GITEA_API = "https://git.example.com/api/v1"
SERVER = "https://git.example.com"
BRANCH = "agent/issue-7"
LINK = f"\n[View branch]({SERVER}/owner/repo/tree/{BRANCH})"
HEAD = "a" * 40


def _json(payload):
    response = MagicMock()
    response.status_code = 200
    response.json.return_value = payload
    return response


def _html(text="<html>proxy login</html>"):
    response = MagicMock()
    response.status_code = 200
    response.text = text
    response.json.side_effect = requests.JSONDecodeError("Expecting value", text, 0)
    return response


def _serve(mocker, client, routes):
    """Answer session.request from ``routes``: URL path -> list of responses, consumed in order."""
    pending = {path: list(responses) for path, responses in routes.items()}

    def request(method, url, **kwargs):
        path = url[len(GITEA_API):]
        if method == "DELETE":
            return _json(None)
        return pending[path].pop(0)

    return mocker.patch.object(client._session, "request", side_effect=request)


@pytest.fixture
def client():
    return GiteaClient(token="tok", api_url=GITEA_API)


def _executor(status=""):
    executor = MagicMock(spec=GitExecutor)
    executor.status.return_value = status
    return executor


def _reconcile(client, executor, signing=False):
    return check_and_commit_or_delete_branch(
        client, executor, "owner", "repo", BRANCH, "main", signing, server_url=SERVER, run_id="1"
    )


def _deletes(request):
    return [c for c in request.call_args_list if c.args[0] == "DELETE"]


# ---------------------------------------------------------------------------
# fetch_context
# ---------------------------------------------------------------------------


class TestFetchWithNonJsonResponses:
    def test_non_json_entity_is_fatal(self, mocker, client, tmp_path):
        _serve(mocker, client, {"/repos/owner/repo/issues/7": [_html()]})

        with pytest.raises(FatalFetchError):
            fetch_context(client, "owner/repo", 7, False, server_url=SERVER, downloads_dir=str(tmp_path))

    def test_non_json_comments_degrade_to_empty(self, mocker, client, tmp_path):
        issue = {"title": "Broken build", "body": "", "user": {"login": "alice"}, "state": "open"}
        _serve(
            mocker,
            client,
            {
                "/repos/owner/repo/issues/7": [_json(issue)],
                "/repos/owner/repo/issues/7/comments": [_html()],
            },
        )

        result = fetch_context(client, "owner/repo", 7, False, server_url=SERVER, downloads_dir=str(tmp_path))

        assert result.entity.title == "Broken build"
        assert result.comments == []


# ---------------------------------------------------------------------------
# check_and_commit_or_delete_branch
# ---------------------------------------------------------------------------


class TestReconcileWithBadBranchResponses:
    def test_non_json_head_comparison_keeps_and_links(self, mocker, client):
        request = _serve(
            mocker,
            client,
            {
                "/repos/owner/repo/branches/agent%2Fissue-7": [_json({"commit": {"id": HEAD}})],
                "/repos/owner/repo/branches/main": [_html()],
            },
        )
        executor = _executor()

        result = _reconcile(client, executor)

        assert result == ReconcileResult(should_delete_branch=False, branch_link=LINK)
        executor.status.assert_not_called()
        assert _deletes(request) == []

    def test_base_without_head_commit_keeps_and_links(self, mocker, client):
        request = _serve(
            mocker,
            client,
            {
                "/repos/owner/repo/branches/agent%2Fissue-7": [_json({"commit": {"id": HEAD}})],
                "/repos/owner/repo/branches/main": [_json({"name": "main"})],
            },
        )

        result = _reconcile(client, _executor(), signing=True)

        assert result == ReconcileResult(should_delete_branch=False, branch_link=LINK)
        assert _deletes(request) == []

    def test_payloads_without_commits_never_delete(self, mocker, client):
        request = _serve(
            mocker,
            client,
            {
                "/repos/owner/repo/branches/agent%2Fissue-7": [_json({"name": "x"})] * 2,
                "/repos/owner/repo/branches/main": [_json({"name": "x"})],
            },
        )

        result = _reconcile(client, _executor(), signing=True)

        assert result.should_delete_branch is False
        assert _deletes(request) == []
