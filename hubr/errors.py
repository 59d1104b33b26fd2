# Copyright (c) 2026 Mark Ferrell. MIT License.
"""Exception types raised by hubr.

Transport failures from PyGithub (``GithubException``) and requests are not
wrapped; they reach the caller unchanged.
"""

from __future__ import annotations


class HubrError(Exception):
    """Base class for all errors raised by hubr."""


class NotFoundError(HubrError):
    """A tag, release, asset or commit does not exist."""

    def __init__(self, what: object) -> None:
        super().__init__(f"{what} was not found")
        self.what = what


class NoReleasesError(HubrError):
    """A repository has no releases at all."""

    def __init__(self, what: object) -> None:
        super().__init__(f"{what} has no releases")
        self.what = what


class ConflictError(HubrError):
    """Remote state exists but does not match what was requested."""


class MalformedInputError(HubrError, ValueError):
    """A version, increment, identifier or setting could not be parsed."""


class NoReleaseHistoryError(HubrError):
    """History was walked without finding a release boundary."""


class GitError(HubrError):
    """The local ``git`` command failed."""


class TransferError(HubrError):
    """One or more jobs of a transfer pool failed.

    Attributes:
        errors: Every exception raised by the failed jobs.
    """

    def __init__(self, message: str, errors: list[BaseException]) -> None:
        super().__init__(message)
        self.errors = errors


class UploadError(TransferError):
    """One or more release assets failed to upload."""


class DownloadError(TransferError):
    """One or more release assets failed to download."""
