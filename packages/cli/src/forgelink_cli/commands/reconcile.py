"""reconcile: dispose of the agent's working branch after a run."""

from __future__ import annotations

import dataclasses
import json

import click
from rich.console import Console

from forgelink_cli.commands import get_client, split_repository
from forgelink_core.branch import SubprocessGitExecutor, check_and_commit_or_delete_branch

console = Console()


@click.command("reconcile")
@click.option("--repo", required=True, help="Repository in owner/name format.")
@click.option("--branch", default=None, help="The agent's working branch. Omit when none was created.")
@click.option("--base", "base_branch", required=True, help="Branch the working branch was created from.")
@click.option(
    "--commit-signing/--no-commit-signing",
    "use_commit_signing",
    default=None,
    help="Commits are signed out-of-band, so the agent cannot push its own. Overrides config file.",
)
@click.option("--workdir", default=None, help="Local checkout of the working branch. Defaults to cwd.")
@click.option("--json", "as_json", is_flag=True, help="Print the result as JSON.")
@click.pass_context
def reconcile_cmd(
    ctx,
    repo: str,
    branch: str | None,
    base_branch: str,
    use_commit_signing: bool | None,
    workdir: str | None,
    as_json: bool,
):
    """Link, auto-commit or delete the agent's working branch."""
    owner, name = split_repository(repo)
    config = ctx.obj["config"]
    client = get_client(ctx)

    if use_commit_signing is None:
        use_commit_signing = bool(config.get("use_commit_signing", False))

    executor = SubprocessGitExecutor(cwd=workdir or config.get("workdir"), remote=config.get("remote", "origin"))
    result = check_and_commit_or_delete_branch(
        client,
        executor,
        owner,
        name,
        branch,
        base_branch,
        use_commit_signing,
        server_url=config["server_url"],
        run_id=config.get("run_id", "unknown"),
    )

    if as_json:
        click.echo(json.dumps(dataclasses.asdict(result)))
        return

    if result.should_delete_branch:
        console.print(f"[yellow]Branch {branch} had no changes and was marked for deletion.[/yellow]")
    elif result.branch_link:
        console.print(f"[green]Branch kept:[/green] {result.branch_link.strip()}")
    else:
        console.print("[dim]No branch to reconcile.[/dim]")
