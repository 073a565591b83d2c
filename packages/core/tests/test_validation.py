"""Tests for actor and permission checks."""

from unittest.mock import MagicMock

import pytest

from forgelink_core.errors import ActorNotHumanError, PlatformRequestError
from forgelink_core.models import PlatformUser
from forgelink_core.platform.base import PlatformClient
from forgelink_core.validation import check_human_actor, check_write_permissions


def _client():
    return MagicMock(spec=PlatformClient)


class TestCheckHumanActor:
    def test_user_accepted(self):
        client = _client()
        client.get_user.return_value = PlatformUser(login="alice", type="User")
        check_human_actor(client, "alice")  # must not raise

    @pytest.mark.parametrize("account_type", ["Bot", "Organization"])
    def test_non_human_rejected(self, account_type):
        client = _client()
        client.get_user.return_value = PlatformUser(login="ci[bot]", type=account_type)
        with pytest.raises(ActorNotHumanError, match=account_type):
            check_human_actor(client, "ci[bot]")

    def test_missing_type_accepted(self):
        client = _client()
        client.get_user.return_value = PlatformUser(login="alice", type=None)
        check_human_actor(client, "alice")

    def test_lookup_failure_propagates(self):
        client = _client()
        client.get_user.side_effect = PlatformRequestError("not found", status=404)
        with pytest.raises(PlatformRequestError):
            check_human_actor(client, "ghost")


class TestCheckWritePermissions:
    @pytest.mark.parametrize("level", ["admin", "write"])
    def test_write_levels_allowed(self, level):
        client = _client()
        client.get_collaborator_permission.return_value = level
        assert check_write_permissions(client, "o", "r", "alice") is True
        client.check_collaborator.assert_not_called()

    @pytest.mark.parametrize("level", ["read", "none", ""])
    def test_other_levels_denied(self, level):
        client = _client()
        client.get_collaborator_permission.return_value = level
        assert check_write_permissions(client, "o", "r", "alice") is False
        client.check_collaborator.assert_not_called()

    def test_falls_back_to_collaborator_check(self):
        client = _client()
        client.get_collaborator_permission.side_effect = PlatformRequestError("forbidden", status=403)
        client.check_collaborator.return_value = True
        assert check_write_permissions(client, "o", "r", "alice") is True
        client.check_collaborator.assert_called_once_with("o", "r", "alice")

    def test_non_collaborator_denied(self):
        client = _client()
        client.get_collaborator_permission.side_effect = PlatformRequestError("forbidden", status=403)
        client.check_collaborator.return_value = False
        assert check_write_permissions(client, "o", "r", "mallory") is False

    def test_both_checks_failing_assumes_access(self):
        client = _client()
        client.get_collaborator_permission.side_effect = PlatformRequestError("forbidden", status=403)
        client.check_collaborator.side_effect = PlatformRequestError("down", status=None)
        assert check_write_permissions(client, "o", "r", "alice") is True
