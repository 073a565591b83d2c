"""check-actor: gate a run on the triggering account."""

from __future__ import annotations

import click
from rich.console import Console

from forgelink_cli.commands import get_client, split_repository
from forgelink_core.errors import ActorNotHumanError, PlatformRequestError
from forgelink_core.validation import check_human_actor, check_write_permissions

console = Console()


@click.command("check-actor")
@click.option("--repo", required=True, help="Repository in owner/name format.")
@click.option("--actor", required=True, help="Login of the account that triggered the run.")
@click.pass_context
def check_actor_cmd(ctx, repo: str, actor: str):
    """Fail unless ACTOR is a human account with write access to the repository."""
    owner, name = split_repository(repo)
    client = get_client(ctx)

    try:
        check_human_actor(client, actor)
    except (ActorNotHumanError, PlatformRequestError) as e:
        raise click.ClickException(str(e)) from e

    if not check_write_permissions(client, owner, name, actor):
        raise click.ClickException(f"Actor {actor} does not have write permissions to {repo}.")

    console.print(f"[green]{actor} may trigger runs on {repo}.[/green]")
