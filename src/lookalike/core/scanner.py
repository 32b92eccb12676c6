"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

core/scanner.py
Entry points for the first two scan phases, dispatching on the source variant.
"""
from typing import Callable, Dict, List, Optional

from lookalike.core.cancellation import CancellationToken
from lookalike.core.discovery import FileListDiscoveryWalker, LocalDiscoveryWalker, RemoteDiscoveryWalker
from lookalike.core.interfaces import SourceWalker
from lookalike.core.models import (
    DiscoveryResult, EntryCallback, FileEntry, ProgressCallback, Source, SourceType
)

_WALKERS: Dict[SourceType, Callable[[], SourceWalker]] = {
    SourceType.LOCAL: LocalDiscoveryWalker,
    SourceType.FILE_LIST: FileListDiscoveryWalker,
    SourceType.REMOTE: RemoteDiscoveryWalker,
}


def get_walker(source_type: SourceType) -> SourceWalker:
    return _WALKERS[source_type]()


def discover_files(
        source: Source,
        progress_callback: Optional[ProgressCallback] = None,
        cancel_token: Optional[CancellationToken] = None,
        walker: Optional[SourceWalker] = None
) -> DiscoveryResult:
    """
    Enumerate directories and image files of `source` without reading content.

    Raises:
        SourceAccessError: if the source cannot be enumerated.
        ScanCancelled: if the token is cancelled.
    """
    walker = walker or get_walker(source.kind)
    return walker.discover(source, progress_callback, cancel_token)


def collect_file_entries(
        discovery: DiscoveryResult,
        entry_callback: Optional[EntryCallback] = None,
        cancel_token: Optional[CancellationToken] = None,
        walker: Optional[SourceWalker] = None
) -> List[FileEntry]:
    """
    Materialize one entry per discovered image, in traversal order.
    For remote sources this is the cached entry list itself.
    """
    walker = walker or get_walker(discovery.kind)
    return walker.collect(discovery, entry_callback, cancel_token)
