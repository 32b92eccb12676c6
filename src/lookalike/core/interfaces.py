"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

interfaces.py

Core interfaces (Protocols) used throughout the scanning and grouping system.

Key Components:
---------------
- HashAlgorithm: content hash over raw bytes (SHA-256, xxHash128).
- PerceptualHasher: perceptual hash over an encoded image.
- SourceWalker: per-source discovery (no content read) and entry collection.
- RemoteLister: recursive listing capability of a remote storage API.
"""

from typing import Protocol, Callable, Iterable, List, Optional

from lookalike.core.cancellation import CancellationToken
from lookalike.core.models import DiscoveryResult, EntryCallback, FileEntry, ProgressCallback, Source


class HashAlgorithm(Protocol):
    """
    Interface for content hash algorithms.

    Returns a lowercase hex digest so computed values compare directly with
    hashes reported by remote metadata.
    """
    name: str

    @staticmethod
    def hash(data: bytes) -> str:
        ...


class PerceptualHasher(Protocol):
    """Interface for perceptual hashing of encoded image bytes."""

    def compute(self, data: bytes) -> str:
        """
        Returns a fixed-width hex digest.

        Raises:
            DecodeError: if the bytes are not a decodable image.
        """
        ...


class SourceWalker(Protocol):
    """
    One implementation per source variant.

    Phase 1 (`discover`) enumerates directories and counts image files;
    phase 2 (`collect`) turns the discovery result into file entries.
    """
    def discover(
        self,
        source: Source,
        progress_callback: Optional[ProgressCallback] = None,
        cancel_token: Optional[CancellationToken] = None,
    ) -> DiscoveryResult:
        ...

    def collect(
        self,
        discovery: DiscoveryResult,
        entry_callback: Optional[EntryCallback] = None,
        cancel_token: Optional[CancellationToken] = None,
    ) -> List[FileEntry]:
        ...


class RemoteLister(Protocol):
    """Recursive image listing with directory enter/complete notifications."""

    def list_image_files(
        self,
        folder_paths: Iterable[str],
        on_file: Callable,
        cancel_token: Optional[CancellationToken] = None,
        on_directory_enter: Optional[Callable[[str], None]] = None,
        on_directory_complete: Optional[Callable[[str], None]] = None,
    ) -> List:
        ...

    def download_file(self, resource, cancel_token: Optional[CancellationToken] = None) -> bytes:
        ...
