"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

core/config.py
Tuning constants for scanning, hashing and comparison.
"""


class ScanConfig:
    # Items processed between cooperative yields to the host
    BATCH_SIZE = 5

    # Outer rows of the pairwise comparison between cooperative yields
    COMPARISON_YIELD_INTERVAL = 50

    # Pairwise comparisons between cancellation checks
    COMPARISON_CANCEL_CHECK_INTERVAL = 256

    # Processed items required before an ETA is reported
    MIN_FILES_FOR_ETA = 3

    # imagehash.phash hash_size; 16 -> 256-bit digest (64 hex characters)
    PERCEPTUAL_HASH_SIZE = 16

    # Images larger than this (either side) are thumbnailed before hashing
    PERCEPTUAL_MAX_DIMENSION = 1024

    DEFAULT_SIMILARITY_THRESHOLD = 10

    # Minimum seconds between directory tree snapshots during discovery
    TREE_SNAPSHOT_INTERVAL = 0.25

    REMOTE_PAGE_LIMIT = 1000
    REMOTE_TIMEOUT = 30  # seconds
