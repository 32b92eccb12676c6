"""
Core engine: discovery, entry collection, hashing and duplicate grouping.

This package contains the source-independent foundation of lookalike:
- Discovery walkers (local directory, file list, Yandex Disk) building a live directory tree
- Entry collection with lazily fetched, memoized file content
- ExactDuplicateFinder: metadata fast path or content hash (SHA-256 / xxHash128)
- SimilarImageFinder: perceptual hash + union-find clustering within a Hamming threshold
- CancellationToken and ProgressTracker shared by every phase

No GUI dependencies; every phase is synchronous and cooperatively cancellable.
"""

from .cancellation import CancellationToken, check_cancelled
from .errors import ScanCancelled, SourceAccessError, RemoteApiError, DecodeError, HashLengthMismatchError
from .scanner import discover_files, collect_file_entries
from .grouper import ExactDuplicateFinder, find_exact_duplicates
from .similar_image_finder import SimilarImageFinder, find_similar_duplicates
from .hasher import Sha256AlgorithmImpl, XXH128AlgorithmImpl, PHashPerceptualHasher, hamming_distance
from .progress import ProgressTracker
from .models import (
    LocalSource, FileListSource, RemoteSource, FileEntry, DirectoryTreeNode, DiscoveryResult,
    DuplicateGroup, HashedFile, ScanPhase, ScanProgress, ScanParams, ScanStats, SearchMode)

__all__ = [
    "CancellationToken",
    "check_cancelled",
    "ScanCancelled",
    "SourceAccessError",
    "RemoteApiError",
    "DecodeError",
    "HashLengthMismatchError",
    "discover_files",
    "collect_file_entries",
    "ExactDuplicateFinder",
    "find_exact_duplicates",
    "SimilarImageFinder",
    "find_similar_duplicates",
    "Sha256AlgorithmImpl",
    "XXH128AlgorithmImpl",
    "PHashPerceptualHasher",
    "hamming_distance",
    "ProgressTracker",
    "LocalSource",
    "FileListSource",
    "RemoteSource",
    "FileEntry",
    "DirectoryTreeNode",
    "DiscoveryResult",
    "DuplicateGroup",
    "HashedFile",
    "ScanPhase",
    "ScanProgress",
    "ScanParams",
    "ScanStats",
    "SearchMode",
]
