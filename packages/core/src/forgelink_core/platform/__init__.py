"""Platform dialects and the startup-time factory that picks one."""

from __future__ import annotations

from forgelink_core.config import platform_kind
from forgelink_core.platform.base import PlatformClient
from forgelink_core.platform.gitea import GiteaClient
from forgelink_core.platform.github import GitHubClient

__all__ = ["PlatformClient", "GitHubClient", "GiteaClient", "create_platform_client"]


def create_platform_client(config: dict) -> PlatformClient:
    """Instantiate the dialect selected by the loaded configuration.

    Called once at startup; the returned client is passed down explicitly and
    nothing downstream re-inspects the environment to decide the platform.
    """
    token = config.get("github_token") or ""
    if platform_kind(config) == "gitea":
        return GiteaClient(token=token, api_url=config["gitea_api_url"])
    return GitHubClient(token=token, api_url=config.get("api_url") or "https://api.github.com")
