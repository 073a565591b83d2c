"""HTTP helpers shared by both dialects."""

from __future__ import annotations

import contextlib
from collections.abc import Iterator

import requests
from github import GithubException

from forgelink_core.errors import PlatformRequestError

USER_AGENT = "forgelink"


def build_session(token: str | None, accept: str = "application/json") -> requests.Session:
    session = requests.Session()
    session.headers.update({"Accept": accept, "User-Agent": USER_AGENT})
    if token:
        session.headers["Authorization"] = f"token {token}"
    return session


@contextlib.contextmanager
def translate_errors(action: str) -> Iterator[None]:
    """Re-raise PyGithub and requests failures as PlatformRequestError.

    ``action`` is a short description ("get issue #3") used in the message.
    """
    try:
        yield
    except GithubException as e:
        raise PlatformRequestError(f"{action} failed: HTTP {e.status}", status=e.status) from e
    except requests.HTTPError as e:
        status = e.response.status_code if e.response is not None else None
        raise PlatformRequestError(f"{action} failed: HTTP {status}", status=status) from e
    except requests.RequestException as e:
        raise PlatformRequestError(f"{action} failed: {e}") from e
