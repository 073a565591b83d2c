"""Token lookup for the platform API.

CI runners on both GitHub and Gitea export GITHUB_TOKEN. Outside CI a
GitHub user can lean on an existing ``gh`` login instead.
"""

from __future__ import annotations

import logging
import os
import subprocess

logger = logging.getLogger(__name__)


def _gh_cli_token() -> str | None:
    try:
        result = subprocess.run(["gh", "auth", "token"], capture_output=True, text=True, timeout=5)
    except (FileNotFoundError, subprocess.TimeoutExpired):
        return None
    if result.returncode != 0:
        return None
    return result.stdout.strip() or None


def resolve_token(gitea: bool = False) -> str | None:
    """Return GITHUB_TOKEN, else the ``gh`` session token, else None.

    A ``gh`` session never holds a Gitea credential, so it is not consulted
    when ``gitea`` is set.
    """
    token = os.environ.get("GITHUB_TOKEN")
    if token:
        return token
    if gitea:
        return None

    token = _gh_cli_token()
    if token:
        logger.debug("Using the token from the gh CLI session.")
    return token
