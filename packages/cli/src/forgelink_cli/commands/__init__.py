from __future__ import annotations

import click

from forgelink_core.platform import create_platform_client


def get_client(ctx: click.Context):
    """Return the platform client for this invocation, creating it on first use."""
    config = ctx.obj["config"]
    if not config.get("github_token"):
        raise click.UsageError(
            "No platform token found. Set GITHUB_TOKEN or run `gh auth login` first.\n"
            "Create a token at https://github.com/settings/tokens"
        )
    if "client" not in ctx.obj:
        client = create_platform_client(config)
        ctx.obj["client"] = client
        ctx.call_on_close(client.close)
    return ctx.obj["client"]


def split_repository(repository: str) -> tuple[str, str]:
    owner, _, repo = repository.partition("/")
    if not owner or not repo:
        raise click.BadParameter("Expected 'owner/repo'.", param_hint="--repo")
    return owner, repo
