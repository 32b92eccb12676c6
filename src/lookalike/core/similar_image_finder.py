"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

similar_image_finder.py

Finds visually similar images using perceptual hashing.

Similarity is the transitive closure of "Hamming distance <= threshold":
if A~B and B~C, then A, B and C share a group even when A and C are far apart.
"""
import logging
from collections import defaultdict
from typing import Dict, List, Optional, Tuple

from lookalike.core.cancellation import CancellationToken, check_cancelled
from lookalike.core.config import ScanConfig
from lookalike.core.errors import DecodeError
from lookalike.core.hasher import PHashPerceptualHasher, hamming_distance
from lookalike.core.interfaces import PerceptualHasher
from lookalike.core.models import (
    DuplicateGroup, FileEntry, HashedFile, ProgressCallback, ScanPhase, ScanProgress
)
from lookalike.core.progress import ProgressTracker, cooperative_yield, emit
from lookalike.core.union_find import UnionFind

logger = logging.getLogger(__name__)


class SimilarImageFinder:
    """
    Class for finding visually similar images.

    Entries that cannot be decoded are logged and skipped; a read failure
    (SourceAccessError) aborts the run.
    """

    def __init__(self, threshold: int = ScanConfig.DEFAULT_SIMILARITY_THRESHOLD,
                 hasher: Optional[PerceptualHasher] = None):
        """
        Args:
            threshold (int): Maximum Hamming distance between similar images (lower = more similar).
            hasher: Perceptual hasher, phash with a 256-bit digest by default.
        """
        if threshold < 0:
            raise ValueError("Threshold cannot be negative")
        self.threshold = int(threshold)
        self.hasher = hasher or PHashPerceptualHasher()

    # ======================
    #  Phase A: hashing
    # ======================

    def compute_hashes(
            self,
            entries: List[FileEntry],
            progress_callback: Optional[ProgressCallback] = None,
            cancel_token: Optional[CancellationToken] = None
    ) -> List[HashedFile]:
        """
        Perceptual hash of every decodable entry, in traversal order.
        When every entry carries an md5, byte-identical copies are decoded only once.
        """
        check_cancelled(cancel_token)

        if entries and all(entry.md5 for entry in entries):
            indexed = self._hash_by_md5(entries, progress_callback, cancel_token)
        else:
            indexed = self._hash_each(entries, progress_callback, cancel_token)

        indexed.sort(key=lambda item: item[0])
        return [hashed for _, hashed in indexed]

    def _hash_by_md5(
            self,
            entries: List[FileEntry],
            progress_callback: Optional[ProgressCallback],
            cancel_token: Optional[CancellationToken]
    ) -> List[Tuple[int, HashedFile]]:
        md5_groups: Dict[str, List[int]] = defaultdict(list)
        for index, entry in enumerate(entries):
            md5_groups[entry.md5].append(index)

        total = len(md5_groups)
        logger.debug(f"{len(entries)} files, {total} unique by md5")
        tracker = ProgressTracker(track_throughput=any(entry.is_remote for entry in entries))
        results: List[Tuple[int, HashedFile]] = []

        for processed, indices in enumerate(md5_groups.values()):
            check_cancelled(cancel_token)
            representative = entries[indices[0]]
            emit(progress_callback, ScanProgress(
                phase=ScanPhase.HASHING,
                total_files=total,
                processed_files=processed,
                current_file=representative.path,
            ).with_estimates(tracker.get_estimates(processed, total)))

            content = representative.fetch()
            tracker.add_bytes(len(content))
            try:
                digest = self.hasher.compute(content)
            except DecodeError as e:
                logger.warning(f"Skipping {representative.path}: {e}")
                continue

            results.append((indices[0], HashedFile(entry=representative, hash=digest, content=content)))
            # Copies share the hash but still need their own bytes
            for index in indices[1:]:
                check_cancelled(cancel_token)
                copy = entries[index]
                data = copy.fetch()
                tracker.add_bytes(len(data))
                results.append((index, HashedFile(entry=copy, hash=digest, content=data)))

            if (processed + 1) % ScanConfig.BATCH_SIZE == 0:
                cooperative_yield()

        return results

    def _hash_each(
            self,
            entries: List[FileEntry],
            progress_callback: Optional[ProgressCallback],
            cancel_token: Optional[CancellationToken]
    ) -> List[Tuple[int, HashedFile]]:
        total = len(entries)
        tracker = ProgressTracker(track_throughput=any(entry.is_remote for entry in entries))
        results: List[Tuple[int, HashedFile]] = []

        for index, entry in enumerate(entries):
            check_cancelled(cancel_token)
            emit(progress_callback, ScanProgress(
                phase=ScanPhase.HASHING,
                total_files=total,
                processed_files=index,
                current_file=entry.path,
            ).with_estimates(tracker.get_estimates(index, total)))

            hashed = self._hash_entry(entry, tracker)
            if hashed is not None:
                results.append((index, hashed))

            if (index + 1) % ScanConfig.BATCH_SIZE == 0:
                cooperative_yield()

        return results

    def _hash_entry(self, entry: FileEntry, tracker: Optional[ProgressTracker] = None) -> Optional[HashedFile]:
        content = entry.fetch()
        if tracker:
            tracker.add_bytes(len(content))
        try:
            digest = self.hasher.compute(content)
        except DecodeError as e:
            logger.warning(f"Skipping {entry.path}: {e}")
            return None
        return HashedFile(entry=entry, hash=digest, content=content)

    # ======================
    #  Phase B: clustering
    # ======================

    def cluster(
            self,
            hashed_files: List[HashedFile],
            cancel_token: Optional[CancellationToken] = None
    ) -> List[DuplicateGroup]:
        """Union every pair within the threshold; groups of two or more, in first-member order."""
        count = len(hashed_files)
        sets = UnionFind(count)
        comparisons = 0

        for i in range(count):
            check_cancelled(cancel_token)
            hash_i = hashed_files[i].hash
            for j in range(i + 1, count):
                comparisons += 1
                if comparisons % ScanConfig.COMPARISON_CANCEL_CHECK_INTERVAL == 0:
                    check_cancelled(cancel_token)
                if hamming_distance(hash_i, hashed_files[j].hash) <= self.threshold:
                    sets.union(i, j)

            if i % ScanConfig.COMPARISON_YIELD_INTERVAL == 0:
                cooperative_yield()

        clusters: Dict[int, List[HashedFile]] = {}
        for i, hashed in enumerate(hashed_files):
            clusters.setdefault(sets.find(i), []).append(hashed)

        return [
            DuplicateGroup(hash=members[0].hash, files=members)
            for members in clusters.values()
            if len(members) > 1
        ]

    def find_similar_images(
            self,
            entries: List[FileEntry],
            progress_callback: Optional[ProgressCallback] = None,
            cancel_token: Optional[CancellationToken] = None
    ) -> List[DuplicateGroup]:
        """
        Find groups of visually similar images.

        Returns:
            List of DuplicateGroup objects, each containing >=2 similar images.
        """
        hashed_files = self.compute_hashes(entries, progress_callback, cancel_token)

        emit(progress_callback, ScanProgress(
            phase=ScanPhase.COMPARING,
            total_files=len(hashed_files),
            processed_files=0,
        ))
        groups = self.cluster(hashed_files, cancel_token)
        logger.debug(f"{len(groups)} similarity groups among {len(hashed_files)} images")
        return groups

    def find_similar_to_image(
            self,
            target: FileEntry,
            entries: List[FileEntry],
            progress_callback: Optional[ProgressCallback] = None,
            cancel_token: Optional[CancellationToken] = None
    ) -> List[DuplicateGroup]:
        """
        Find images similar to the specified target image.

        Returns:
            A single group (target first) or an empty list.

        Raises:
            ValueError: if the target is not a decodable image.
        """
        check_cancelled(cancel_token)
        content = target.fetch()
        try:
            target_hash = self.hasher.compute(content)
        except DecodeError as e:
            raise ValueError(f"Target file {target.path} is not a valid image") from e

        candidates = [entry for entry in entries if entry.path != target.path]
        similar = [HashedFile(entry=target, hash=target_hash, content=content)]

        for index, entry in enumerate(candidates):
            check_cancelled(cancel_token)
            emit(progress_callback, ScanProgress(
                phase=ScanPhase.HASHING,
                total_files=len(candidates),
                processed_files=index,
                current_file=entry.path,
            ))
            hashed = self._hash_entry(entry)
            if hashed is not None and hamming_distance(target_hash, hashed.hash) <= self.threshold:
                similar.append(hashed)

            if (index + 1) % ScanConfig.BATCH_SIZE == 0:
                cooperative_yield()

        if len(similar) >= 2:
            return [DuplicateGroup(hash=target_hash, files=similar)]
        return []


def find_similar_duplicates(
        entries: List[FileEntry],
        threshold: int = ScanConfig.DEFAULT_SIMILARITY_THRESHOLD,
        progress_callback: Optional[ProgressCallback] = None,
        cancel_token: Optional[CancellationToken] = None,
        hasher: Optional[PerceptualHasher] = None
) -> List[DuplicateGroup]:
    """Cluster entries whose perceptual hashes are within `threshold` bits, transitively."""
    return SimilarImageFinder(threshold, hasher).find_similar_images(entries, progress_callback, cancel_token)
