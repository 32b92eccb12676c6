"""
Lookalike — duplicate and similar image finder.

Core features:
- Three sources: local directory tree, file list, Yandex Disk
- Exact mode: byte-identical files (precomputed remote hashes when available)
- Similar mode: perceptual hash clustering within a Hamming distance threshold
- Live directory tree, ETA and throughput reporting, cooperative cancellation
- CLI interface for headless/server usage
"""

from importlib.metadata import PackageNotFoundError, version as _version

try:
    __version__ = _version("lookalike")
except PackageNotFoundError:
    __version__ = "0.0.0"

# Public API: only what users should import directly
from lookalike.commands import ScanCommand
from lookalike.core import (
    CancellationToken, ScanCancelled, SourceAccessError, LocalSource, FileListSource, RemoteSource,
    FileEntry, DuplicateGroup, ScanParams, ScanProgress, SearchMode,
    discover_files, collect_file_entries, find_exact_duplicates, find_similar_duplicates)
from lookalike.utils.convert_utils import ConvertUtils

__all__ = [
    "ScanCommand",
    "CancellationToken",
    "ScanCancelled",
    "SourceAccessError",
    "LocalSource",
    "FileListSource",
    "RemoteSource",
    "FileEntry",
    "DuplicateGroup",
    "ScanParams",
    "ScanProgress",
    "SearchMode",
    "discover_files",
    "collect_file_entries",
    "find_exact_duplicates",
    "find_similar_duplicates",
    "ConvertUtils",
    "__version__",
]
