"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

Unified command orchestrator for a scan.
This is the SINGLE source of truth for business logic: discovery, then
collection, then grouping, strictly in that order.
"""
import logging
import os
import time
from functools import partial
from typing import List, Optional, Tuple

from lookalike.core.cancellation import CancellationToken
from lookalike.core.collector import read_local_file
from lookalike.core.grouper import ExactDuplicateFinder
from lookalike.core.hasher import get_hash_algorithm
from lookalike.core.interfaces import SourceWalker
from lookalike.core.models import (
    DiscoveryResult, DuplicateGroup, FileEntry, ProgressCallback, ScanParams, ScanPhase,
    ScanProgress, ScanStats, SearchMode
)
from lookalike.core.progress import ProgressTracker, emit
from lookalike.core.scanner import collect_file_entries, discover_files
from lookalike.core.similar_image_finder import SimilarImageFinder

logger = logging.getLogger(__name__)


class ScanCommand:
    """
    Orchestrates the entire scan workflow:
    1. Discover directories and image files of the source
    2. Collect file entries (SCANNING progress with ETA)
    3. Group exact duplicates or similar images

    Usage:
        params = ScanParams(source=LocalSource("~/Pictures"), mode=SearchMode.SIMILAR)
        token = CancellationToken()
        groups, stats = ScanCommand().execute(
            params,
            progress_callback=print_progress,
            cancel_token=token
        )
    """

    def __init__(self, walker: Optional[SourceWalker] = None):
        self.walker = walker
        self.discovery: Optional[DiscoveryResult] = None
        self.entries: List[FileEntry] = []

    def execute(
            self,
            params: ScanParams,
            progress_callback: Optional[ProgressCallback] = None,
            cancel_token: Optional[CancellationToken] = None
    ) -> Tuple[List[DuplicateGroup], ScanStats]:
        """
        Execute a scan with given parameters.

        Returns:
            Tuple of (duplicate_groups, statistics)

        Raises:
            RuntimeError: If no image files were found
            SourceAccessError: If the source cannot be listed or read
            ScanCancelled: If the token was cancelled
        """
        stats = ScanStats()
        total_start_time = time.time()

        start_time = time.time()
        self.discovery = discover_files(params.source, progress_callback, cancel_token, walker=self.walker)
        stats.record_phase("discovery", time.time() - start_time)
        stats.directories_found = self.discovery.total_directories
        stats.files_found = self.discovery.total_files

        if self.discovery.total_files == 0:
            raise RuntimeError("No image files found")

        start_time = time.time()
        self.entries = self._collect(self.discovery, progress_callback, cancel_token)
        stats.record_phase("collection", time.time() - start_time)

        start_time = time.time()
        groups = self._group(params, self.entries, progress_callback, cancel_token)
        stats.record_phase("grouping", time.time() - start_time)

        stats.groups_found = len(groups)
        stats.duplicate_files = sum(len(g.files) for g in groups)
        stats.total_time = time.time() - total_start_time
        logger.debug(f"Scan finished: {stats.groups_found} groups in {stats.total_time:.3f}s")

        return groups, stats

    def _collect(
            self,
            discovery: DiscoveryResult,
            progress_callback: Optional[ProgressCallback],
            cancel_token: Optional[CancellationToken]
    ) -> List[FileEntry]:
        total = discovery.total_files
        tracker = ProgressTracker()
        processed = 0

        def on_entry(entry: FileEntry) -> None:
            nonlocal processed
            processed += 1
            emit(progress_callback, ScanProgress(
                phase=ScanPhase.SCANNING,
                total_files=total,
                processed_files=processed,
                current_file=entry.path,
            ).with_estimates(tracker.get_estimates(processed, total)))

        return collect_file_entries(discovery, on_entry, cancel_token, walker=self.walker)

    @staticmethod
    def _group(
            params: ScanParams,
            entries: List[FileEntry],
            progress_callback: Optional[ProgressCallback],
            cancel_token: Optional[CancellationToken]
    ) -> List[DuplicateGroup]:
        if params.mode is SearchMode.SIMILAR:
            finder = SimilarImageFinder(params.threshold)
            if params.reference_image:
                target = ScanCommand.reference_entry(params.reference_image, getattr(params.source, "root_dir", None))
                return finder.find_similar_to_image(target, entries, progress_callback, cancel_token)
            return finder.find_similar_images(entries, progress_callback, cancel_token)

        finder = ExactDuplicateFinder(get_hash_algorithm(params.hash_algorithm))
        return finder.find_duplicates(entries, progress_callback, cancel_token)

    @staticmethod
    def reference_entry(location: str, root_dir: Optional[str] = None) -> FileEntry:
        """
        Entry for a local reference image. Inside the scanned directory it gets
        the same relative path as the scanned copy, so it is not matched with itself.
        """
        location = os.path.abspath(location)
        path = location
        if root_dir:
            relative = os.path.relpath(location, os.path.abspath(root_dir))
            if relative != os.pardir and not relative.startswith(os.pardir + os.sep):
                path = relative
        return FileEntry(
            path=path.replace(os.sep, "/"),
            fetcher=partial(read_local_file, location),
        )

    def get_entries(self) -> List[FileEntry]:
        """Get collected entries after execution."""
        if not self.entries:
            raise RuntimeError("Execute command first before accessing entries")
        return self.entries

    def get_discovery(self) -> DiscoveryResult:
        if self.discovery is None:
            raise RuntimeError("Command not executed yet")
        return self.discovery
