"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

core/errors.py
Exception taxonomy shared by every scanning and grouping component.

- ScanCancelled: cooperative cancellation, a user action rather than a failure
- SourceAccessError: a directory, file or remote listing could not be read (aborts the run)
- RemoteApiError: the remote storage API answered with an error status
- DecodeError: a single entry is not a decodable image (skipped, never fatal)
- HashLengthMismatchError: two perceptual digests of different widths were compared
"""
from typing import Optional


class ScanCancelled(Exception):
    """Raised when the scan's cancellation token has been triggered."""

    def __init__(self, message: str = "Operation cancelled"):
        super().__init__(message)


class SourceAccessError(RuntimeError):
    """A directory, file or remote resource could not be listed or read."""

    def __init__(self, message: str, path: Optional[str] = None):
        super().__init__(message)
        self.path = path


class RemoteApiError(SourceAccessError):
    """Non-success answer from the remote storage API."""

    def __init__(self, message: str, status_code: int, path: Optional[str] = None):
        super().__init__(message, path=path)
        self.status_code = status_code


class DecodeError(ValueError):
    """An entry's bytes could not be interpreted as an image."""


class HashLengthMismatchError(ValueError):
    """Two digests being compared have different widths."""
