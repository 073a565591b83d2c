"""Markdown snippets for the agent's tracking comment."""

from __future__ import annotations

SPINNER_HTML = (
    '<img src="https://github.com/user-attachments/assets/5ac382c7-e004-429b-8e35-7feb3e8f9c6f" '
    'width="14px" height="14px" style="vertical-align: middle; margin-left: 4px;" />'
)


def create_branch_link(server_url: str, owner: str, repo: str, branch: str) -> str:
    # GitHub and Gitea share the /tree/<branch> web route.
    return f"\n[View branch]({server_url.rstrip('/')}/{owner}/{repo}/tree/{branch})"


def create_job_run_link(server_url: str, owner: str, repo: str, run_id: str, platform_kind: str) -> str:
    """Link to the workflow run, or to the repository on Gitea, which has no Actions run page."""
    base = f"{server_url.rstrip('/')}/{owner}/{repo}"
    if platform_kind == "gitea":
        return f"[View repository]({base})"
    return f"[View job run]({base}/actions/runs/{run_id})"


def create_comment_body(job_run_link: str, branch_link: str = "") -> str:
    return f"""The agent is working… {SPINNER_HTML}

I'll analyze this and get back to you.

{job_run_link}{branch_link}"""
