"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

core/progress.py
Wall-clock ETA and throughput estimation shared by every scan phase.
"""
import time
from typing import Callable, Optional

from lookalike.core.config import ScanConfig
from lookalike.core.models import ProgressEstimates, ScanProgress, ProgressCallback


class ProgressTracker:
    """
    Per-run accumulator of elapsed time and bytes processed.

    Throughput is only meaningful when content comes from a high-latency
    source; with `track_throughput=False` recorded bytes are ignored.
    """

    def __init__(self, track_throughput: bool = False, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._start_time = clock()
        self.track_throughput = track_throughput
        self.bytes_processed = 0

    def add_bytes(self, count: int) -> None:
        if self.track_throughput:
            self.bytes_processed += count

    def get_estimates(self, processed: int, total: int) -> Optional[ProgressEstimates]:
        """
        Linear ETA extrapolation plus throughput.
        Returns None until MIN_FILES_FOR_ETA items have been processed.
        """
        if processed < ScanConfig.MIN_FILES_FOR_ETA:
            return None

        elapsed_ms = (self._clock() - self._start_time) * 1000
        remaining = max(total - processed, 0)
        ms_per_item = elapsed_ms / processed
        estimates = ProgressEstimates(estimated_remaining_ms=round(ms_per_item * remaining))

        if self.bytes_processed > 0 and elapsed_ms > 0:
            estimates.bytes_per_second = round(self.bytes_processed / (elapsed_ms / 1000))

        return estimates


def emit(progress_callback: Optional[ProgressCallback], progress: ScanProgress) -> None:
    if progress_callback:
        progress_callback(progress)


def cooperative_yield() -> None:
    """Explicit scheduling point: lets other threads (UI, signal handling) run."""
    time.sleep(0)
