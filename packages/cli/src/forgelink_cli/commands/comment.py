"""comment-body: print the tracking comment posted when a run starts."""

from __future__ import annotations

import click

from forgelink_cli.commands import split_repository
from forgelink_core.comments import create_branch_link, create_comment_body, create_job_run_link
from forgelink_core.config import platform_kind


@click.command("comment-body")
@click.option("--repo", required=True, help="Repository in owner/name format.")
@click.option("--branch", default=None, help="The agent's working branch, linked when given.")
@click.pass_context
def comment_body_cmd(ctx, repo: str, branch: str | None):
    """Print the Markdown body of the agent's tracking comment."""
    owner, name = split_repository(repo)
    config = ctx.obj["config"]

    # GitHub run pages are addressed by GITHUB_RUN_ID, not the run number.
    run_id = config.get("run_url_id") or config.get("run_id") or "unknown"
    job_run_link = create_job_run_link(config["server_url"], owner, name, run_id, platform_kind(config))
    branch_link = create_branch_link(config["server_url"], owner, name, branch) if branch else ""

    click.echo(create_comment_body(job_run_link, branch_link))
