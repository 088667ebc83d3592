from __future__ import annotations


class BuildError(RuntimeError):
    """Base error"""


class NetworkError(BuildError):
    """
    Non-2xx terminal response, redirect loop, timeout or transport failure.
    Fatal to the avatar sub-pipeline only.
    """

    def __init__(
        self, message: str, *, url: str, status_code: int | None = None
    ) -> None:
        super().__init__(message)
        self.url = url
        self.status_code = status_code


class FormatError(BuildError):
    """Image bytes carry no recognized signature"""


class EncodeError(BuildError):
    """
    Codec failure for a single candidate (one optimization, one quality level,
    one variant, one compressed sibling). Always absorbed by the caller.
    """


class FileSystemError(BuildError):
    """A required input file is missing or unreadable."""
