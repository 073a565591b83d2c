"""Error taxonomy shared by the platform clients and the pipeline stages.

Only PlatformRequestError, FatalFetchError and ActorNotHumanError are meant
to reach callers. The remaining types describe failures that a stage absorbs
itself; they are raised and caught inside that stage so the log line carries
a precise classification.
"""

from __future__ import annotations


class ForgeLinkError(Exception):
    """Base class for every error raised by forgelink."""


class PlatformRequestError(ForgeLinkError):
    """A REST call failed: non-2xx response or a network fault.

    ``status`` is the HTTP status code, or None when no response was received.
    """

    def __init__(self, message: str, status: int | None = None):
        super().__init__(message)
        self.status = status

    @property
    def is_not_found(self) -> bool:
        return self.status == 404


class UnsupportedCapabilityError(ForgeLinkError):
    """The active dialect has no endpoint for the requested operation."""


class FatalFetchError(ForgeLinkError):
    """The primary issue/PR could not be fetched; context acquisition aborts."""


class DegradedFetchError(ForgeLinkError):
    """A secondary fetch (comments, files, reviews) failed and was replaced by an empty result."""


class AttachmentIOError(ForgeLinkError):
    """A single image could not be fetched or written to disk."""


class ReconciliationAmbiguityError(ForgeLinkError):
    """Branch state could not be determined; the branch is kept and linked."""


class DeletionError(ForgeLinkError):
    """The branch deletion call failed after the branch was judged disposable."""


class ActorNotHumanError(ForgeLinkError):
    """The triggering account is a bot or organization rather than a user."""


class GitCommandError(ForgeLinkError):
    """A local git command failed or git could not be run."""
