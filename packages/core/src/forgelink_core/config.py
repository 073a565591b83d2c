import os
from pathlib import Path
from typing import Optional

import yaml

DEFAULT_CONFIG: dict = {
    "image_dir": "/tmp/github-images",  # scratch directory for downloaded attachments
    "remote": "origin",
    "use_commit_signing": False,  # True when commits are signed out-of-band and the agent cannot push
    "workdir": None,  # None = current directory; used to hash changed files
}

DEFAULT_GITHUB_API_URL = "https://api.github.com"
DEFAULT_SERVER_URL = "https://github.com"


def load_config(config_path: str = ".forgelink.yml", cli_overrides: Optional[dict] = None) -> dict:
    """
    Load configuration by merging (in order of precedence):
      1. Built-in defaults
      2. .forgelink.yml in the current directory
      3. CLI argument overrides

    Platform endpoints and credentials always come from the environment.
    """
    config = dict(DEFAULT_CONFIG)

    path = Path(config_path)
    if path.exists():
        with open(path) as f:
            file_config = yaml.safe_load(f) or {}
        config.update(file_config)

    if cli_overrides:
        for key, value in cli_overrides.items():
            if value is not None:
                config[key] = value

    # A Gitea API URL selects the Gitea dialect and wins over GITHUB_API_URL.
    config["github_token"] = os.environ.get("GITHUB_TOKEN")
    config["gitea_api_url"] = os.environ.get("GITEA_API_URL")
    config["api_url"] = config["gitea_api_url"] or os.environ.get("GITHUB_API_URL") or DEFAULT_GITHUB_API_URL
    config["server_url"] = (
        os.environ.get("GITEA_SERVER_URL") or os.environ.get("GITHUB_SERVER_URL") or DEFAULT_SERVER_URL
    ).rstrip("/")
    config["run_id"] = os.environ.get("GITHUB_RUN_NUMBER") or "unknown"
    config["run_url_id"] = os.environ.get("GITHUB_RUN_ID")

    return config


def platform_kind(config: dict) -> str:
    """Return "gitea" when a Gitea API endpoint is configured, otherwise "github"."""
    return "gitea" if config.get("gitea_api_url") else "github"
