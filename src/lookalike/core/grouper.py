"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

grouper.py
Exact duplicate detection.

Two strategies:
    - fast path: every entry carries a precomputed sha256 (or, failing that, md5);
      entries are grouped by metadata and only duplicate groups are downloaded
    - fallback: every entry is fetched and hashed with the configured content hash
Groups are returned in order of first appearance; singletons are dropped.
"""
import logging
from collections import defaultdict
from typing import Dict, List, Optional

from lookalike.core.cancellation import CancellationToken, check_cancelled
from lookalike.core.config import ScanConfig
from lookalike.core.hasher import Sha256AlgorithmImpl
from lookalike.core.interfaces import HashAlgorithm
from lookalike.core.models import (
    DuplicateGroup, FileEntry, HashedFile, ProgressCallback, ScanPhase, ScanProgress
)
from lookalike.core.progress import ProgressTracker, cooperative_yield, emit

logger = logging.getLogger(__name__)


def get_metadata_hash_key(entries: List[FileEntry]) -> Optional[str]:
    """
    Name of the metadata hash shared by *all* entries ('sha256', then 'md5'),
    or None if neither is universally available.
    """
    if not entries:
        return None
    if all(entry.sha256 for entry in entries):
        return "sha256"
    if all(entry.md5 for entry in entries):
        return "md5"
    return None


class ExactDuplicateFinder:
    """
    Groups byte-identical files.
    The content hash only matters on the fallback path; metadata hashes are
    trusted as reported by the source.
    """

    def __init__(self, algorithm: Optional[HashAlgorithm] = None):
        self.algorithm = algorithm or Sha256AlgorithmImpl()

    def find_duplicates(
            self,
            entries: List[FileEntry],
            progress_callback: Optional[ProgressCallback] = None,
            cancel_token: Optional[CancellationToken] = None
    ) -> List[DuplicateGroup]:
        check_cancelled(cancel_token)

        hash_key = get_metadata_hash_key(entries)
        if hash_key:
            logger.debug(f"Grouping {len(entries)} files by precomputed {hash_key}")
            return self._find_by_metadata(entries, hash_key, progress_callback, cancel_token)

        logger.debug(f"Hashing {len(entries)} files with {self.algorithm.name}")
        return self._find_by_content(entries, progress_callback, cancel_token)

    def _find_by_metadata(
            self,
            entries: List[FileEntry],
            hash_key: str,
            progress_callback: Optional[ProgressCallback],
            cancel_token: Optional[CancellationToken]
    ) -> List[DuplicateGroup]:
        total = len(entries)
        groups: Dict[str, List[FileEntry]] = defaultdict(list)
        for index, entry in enumerate(entries):
            check_cancelled(cancel_token)
            emit(progress_callback, ScanProgress(
                phase=ScanPhase.HASHING,
                total_files=total,
                processed_files=index,
                current_file=entry.path,
            ))
            groups[getattr(entry, hash_key)].append(entry)

        duplicates = [members for members in groups.values() if len(members) > 1]
        to_fetch = sum(len(members) for members in duplicates)

        # Only members of duplicate groups are materialized
        tracker = ProgressTracker(track_throughput=True)
        processed = 0
        result = []
        for members in duplicates:
            digest = getattr(members[0], hash_key)
            hashed = []
            for entry in members:
                check_cancelled(cancel_token)
                emit(progress_callback, ScanProgress(
                    phase=ScanPhase.COMPARING,
                    total_files=to_fetch,
                    processed_files=processed,
                    current_file=entry.path,
                ).with_estimates(tracker.get_estimates(processed, to_fetch)))

                content = entry.fetch()
                tracker.add_bytes(len(content))
                hashed.append(HashedFile(entry=entry, hash=digest, content=content))

                processed += 1
                if processed % ScanConfig.BATCH_SIZE == 0:
                    cooperative_yield()
            result.append(DuplicateGroup(hash=digest, files=hashed))

        return result

    def _find_by_content(
            self,
            entries: List[FileEntry],
            progress_callback: Optional[ProgressCallback],
            cancel_token: Optional[CancellationToken]
    ) -> List[DuplicateGroup]:
        total = len(entries)
        tracker = ProgressTracker(track_throughput=any(entry.is_remote for entry in entries))
        groups: Dict[str, List[HashedFile]] = defaultdict(list)

        for index, entry in enumerate(entries):
            check_cancelled(cancel_token)
            emit(progress_callback, ScanProgress(
                phase=ScanPhase.HASHING,
                total_files=total,
                processed_files=index,
                current_file=entry.path,
            ).with_estimates(tracker.get_estimates(index, total)))

            content = entry.fetch()
            tracker.add_bytes(len(content))
            digest = self.algorithm.hash(content)
            groups[digest].append(HashedFile(entry=entry, hash=digest, content=content))

            if (index + 1) % ScanConfig.BATCH_SIZE == 0:
                cooperative_yield()

        emit(progress_callback, ScanProgress(
            phase=ScanPhase.COMPARING,
            total_files=total,
            processed_files=total,
        ))

        return [
            DuplicateGroup(hash=digest, files=files)
            for digest, files in groups.items()
            if len(files) > 1
        ]


def find_exact_duplicates(
        entries: List[FileEntry],
        progress_callback: Optional[ProgressCallback] = None,
        cancel_token: Optional[CancellationToken] = None,
        algorithm: Optional[HashAlgorithm] = None
) -> List[DuplicateGroup]:
    """Group byte-identical entries. See ExactDuplicateFinder."""
    return ExactDuplicateFinder(algorithm).find_duplicates(entries, progress_callback, cancel_token)
