"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

core/collector.py
Phase 2 of a scan: turning discovery results into file entries.

Local and file-list sources stat every located file and attach a lazy reader;
remote sources already built their entries while listing, so collection only
re-reports them.
"""
import logging
import os
from functools import partial
from typing import List, Optional, Iterable

from lookalike.core.cancellation import CancellationToken, check_cancelled
from lookalike.core.errors import SourceAccessError
from lookalike.core.models import FileEntry, FileRef, EntryCallback

logger = logging.getLogger(__name__)


def read_local_file(location: str) -> bytes:
    try:
        with open(location, "rb") as f:
            return f.read()
    except OSError as e:
        logger.error(f"Cannot read {location}: {e}")
        raise SourceAccessError(f"Cannot read file {location}: {e}", path=location) from e


def entry_from_ref(ref: FileRef) -> FileEntry:
    """Stat a located file and wrap it in an entry whose content is read on demand."""
    try:
        stat = os.stat(ref.location)
    except OSError as e:
        logger.error(f"Cannot stat {ref.location}: {e}")
        raise SourceAccessError(f"Cannot access file {ref.location}: {e}", path=ref.location) from e

    return FileEntry(
        path=ref.relative_path,
        size=stat.st_size,
        fetcher=partial(read_local_file, ref.location),
    )


def collect_from_refs(
        refs: Iterable[FileRef],
        entry_callback: Optional[EntryCallback] = None,
        cancel_token: Optional[CancellationToken] = None
) -> List[FileEntry]:
    entries = []
    for ref in refs:
        check_cancelled(cancel_token)
        entry = entry_from_ref(ref)
        entries.append(entry)
        if entry_callback:
            entry_callback(entry)
    return entries


def collect_cached(
        entries: List[FileEntry],
        entry_callback: Optional[EntryCallback] = None,
        cancel_token: Optional[CancellationToken] = None
) -> List[FileEntry]:
    """Re-reports entries built during discovery. Returns the same list, not a copy."""
    for entry in entries:
        check_cancelled(cancel_token)
        if entry_callback:
            entry_callback(entry)
    return entries
