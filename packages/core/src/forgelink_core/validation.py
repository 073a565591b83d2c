"""Checks on the account that triggered a run."""

from __future__ import annotations

import logging

from forgelink_core.errors import ActorNotHumanError, PlatformRequestError
from forgelink_core.platform.base import PlatformClient

logger = logging.getLogger(__name__)

_WRITE_LEVELS = {"admin", "write"}


def check_human_actor(client: PlatformClient, actor: str) -> None:
    """Raise ActorNotHumanError if ``actor`` is a bot or organization.

    GitHub reports "User" | "Bot" | "Organization". Gitea reports no type at
    all; such accounts are accepted, since they already authenticated to
    trigger the run.
    """
    user = client.get_user(actor)
    logger.info("Actor type: %s", user.type)

    if user.type is not None and user.type != "User":
        raise ActorNotHumanError(f"Workflow initiated by non-human actor: {actor} (type: {user.type}).")

    if user.type is None:
        logger.info("No account type reported, assuming human actor: %s", actor)
    else:
        logger.info("Verified human actor: %s", actor)


def check_write_permissions(client: PlatformClient, owner: str, repo: str, actor: str) -> bool:
    """Return True if ``actor`` may write to the repository.

    The permission-level query is authoritative when it answers. When it
    fails (Gitea restricts it to admins), collaborator membership is used as
    a coarse proxy. When both fail, access is assumed: the actor was already
    able to trigger the run.
    """
    logger.info("Checking permissions for actor: %s", actor)
    try:
        permission = client.get_collaborator_permission(owner, repo, actor)
    except PlatformRequestError as e:
        logger.warning("Direct permission check failed: %s", e)
    else:
        logger.info("Permission level retrieved: %s", permission)
        if permission in _WRITE_LEVELS:
            logger.info("Actor has write access: %s", permission)
            return True
        logger.warning("Actor has insufficient permissions: %s", permission)
        return False

    try:
        is_collaborator = client.check_collaborator(owner, repo, actor)
    except PlatformRequestError as e:
        logger.warning("Collaborator check also failed: %s", e)
        logger.info("Permission checks unavailable - assuming access based on workflow execution context")
        return True

    if is_collaborator:
        logger.info("Actor %s is confirmed as repository collaborator", actor)
        return True
    logger.warning("Actor %s is not a repository collaborator", actor)
    return False
