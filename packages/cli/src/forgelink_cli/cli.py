"""CLI entry point for forgelink.

Commands:
  fetch         gather issue/PR context and download image attachments
  reconcile     link, auto-commit or delete the agent's working branch
  check-actor   verify the triggering account is a human with write access
  comment-body  print the tracking comment posted when a run starts
"""

from __future__ import annotations

import importlib.metadata
import logging

import click
from rich.console import Console
from rich.logging import RichHandler

from forgelink_cli.commands.check import check_actor_cmd
from forgelink_cli.commands.comment import comment_body_cmd
from forgelink_cli.commands.fetch import fetch_cmd
from forgelink_cli.commands.reconcile import reconcile_cmd

console = Console()


@click.group()
@click.version_option(
    version=importlib.metadata.version("forgelink"),
    prog_name="forgelink",
)
@click.option(
    "--config",
    "config_path",
    default=".forgelink.yml",
    show_default=True,
    help="Path to the configuration file.",
    envvar="FORGELINK_CONFIG",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging.")
@click.pass_context
def main(ctx: click.Context, config_path: str, verbose: bool):
    """Bridge between a coding agent and GitHub or Gitea."""
    from forgelink_core.config import load_config, platform_kind
    from forgelink_cli.auth import resolve_token

    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
    )

    ctx.ensure_object(dict)

    config = load_config(config_path)

    # Resolve token early so all subcommands share the same resolution.
    token = resolve_token(gitea=platform_kind(config) == "gitea")
    if token:
        config["github_token"] = token

    ctx.obj["config"] = config


main.add_command(fetch_cmd)
main.add_command(reconcile_cmd)
main.add_command(check_actor_cmd)
main.add_command(comment_body_cmd)
