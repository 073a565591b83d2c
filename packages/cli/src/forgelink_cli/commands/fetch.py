"""fetch: gather issue/PR context for the agent."""

from __future__ import annotations

import dataclasses
import json

import click
from rich.console import Console
from rich.table import Table

from forgelink_cli.commands import get_client, split_repository
from forgelink_core.errors import FatalFetchError
from forgelink_core.fetcher import fetch_context
from forgelink_core.models import FetchResult

console = Console()


def _print_summary(result: FetchResult) -> None:
    entity = result.entity
    kind = "PR" if entity.is_pull_request else "Issue"
    table = Table(title=f"{kind} #{entity.number} ({result.context.full_name})", show_header=False)
    table.add_column("Field", style="bold cyan")
    table.add_column("Value")
    table.add_row("Title", entity.title)
    table.add_row("Author", entity.author_login)
    table.add_row("State", entity.state)
    if entity.is_pull_request:
        table.add_row("Branches", f"{entity.head_ref} → {entity.base_ref}")
        table.add_row("Changes", f"+{entity.additions} / -{entity.deletions}")
        table.add_row("Changed files", str(len(result.changed_files)))
        table.add_row("Reviews", str(len(result.reviews)))
    table.add_row("Comments", str(len(result.comments)))
    table.add_row("Images downloaded", str(len(result.image_url_map)))
    if result.trigger_display_name:
        table.add_row("Triggered by", result.trigger_display_name)
    console.print(table)


@click.command("fetch")
@click.option("--repo", required=True, help="Repository in owner/name format.")
@click.option("--number", "number", type=int, required=True, help="Issue or pull request number.")
@click.option("--pr", "is_pr", is_flag=True, help="Treat the number as a pull request.")
@click.option("--trigger-user", default=None, help="Login of the account that triggered the run.")
@click.option("--image-dir", default=None, help="Directory for downloaded images. Overrides config file.")
@click.option("--workdir", default=None, help="Checkout used to hash changed files. Defaults to cwd.")
@click.option("--output", "output_path", default=None, help="Write the full result as JSON to this file.")
@click.pass_context
def fetch_cmd(
    ctx,
    repo: str,
    number: int,
    is_pr: bool,
    trigger_user: str | None,
    image_dir: str | None,
    workdir: str | None,
    output_path: str | None,
):
    """Fetch an issue or pull request, its comments, changed files and images."""
    split_repository(repo)
    config = ctx.obj["config"]
    client = get_client(ctx)

    try:
        result = fetch_context(
            client,
            repo,
            number,
            is_pr,
            server_url=config["server_url"],
            downloads_dir=image_dir or config["image_dir"],
            workdir=workdir or config.get("workdir"),
            trigger_username=trigger_user,
        )
    except FatalFetchError as e:
        raise click.ClickException(f"{e}: {e.__cause__}") from e

    _print_summary(result)

    if output_path:
        with open(output_path, "w", encoding="utf-8") as f:
            json.dump(dataclasses.asdict(result), f, indent=2)
        console.print(f"[green]Context written to {output_path}[/green]")
