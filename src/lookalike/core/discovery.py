"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

core/discovery.py
Phase 1 of a scan: enumerating a source without reading file content.

One walker per source variant:
- LocalDiscoveryWalker: depth-first walk of a directory tree (symlinks are not followed)
- FileListDiscoveryWalker: directory structure inferred from path prefixes
- RemoteDiscoveryWalker: recursive Yandex Disk listing, entries cached with lazy downloads

Each walker also implements the matching collection step. While walking, a
live directory tree is maintained and periodically published to the progress
callback as a deep-copied snapshot.
"""
import logging
import os
import time
from functools import partial
from typing import Callable, Dict, List, Optional

from lookalike.core.cancellation import CancellationToken, check_cancelled
from lookalike.core.collector import collect_cached, collect_from_refs
from lookalike.core.config import ScanConfig
from lookalike.core.errors import SourceAccessError
from lookalike.core.interfaces import RemoteLister
from lookalike.core.models import (
    DirectoryTreeNode, DiscoveryResult, EntryCallback, FileEntry, FileListSource, FileRef,
    LocalSource, ProgressCallback, RemoteSource, ScanPhase, ScanProgress, is_image_file
)
from lookalike.core.progress import emit
from lookalike.services.yandex_disk import (
    YandexDiskClient, YandexResource, normalize_disk_path, yandex_folder_url
)

logger = logging.getLogger(__name__)


def _parent_path(path: str) -> Optional[str]:
    """Parent of a slash-separated path; None for top-level entries and the root."""
    if path in ("", "/"):
        return None
    head, sep, _ = path.rpartition("/")
    if not sep:
        return None
    return head or "/"


class DirectoryTreeBuilder:
    """
    Live directory forest keyed by path.
    A path is registered at most once, so re-entering it is a no-op.
    """

    def __init__(self):
        self._nodes: Dict[str, DirectoryTreeNode] = {}
        self.roots: List[DirectoryTreeNode] = []

    @property
    def directory_count(self) -> int:
        return len(self._nodes)

    def get(self, path: str) -> Optional[DirectoryTreeNode]:
        return self._nodes.get(path)

    def enter(self, path: str, name: str, parent_path: Optional[str] = None) -> bool:
        """
        Register a directory under its parent (or as a root). False if already known.
        Roots registered earlier that belong under the new directory are moved into it.
        """
        if path in self._nodes:
            return False
        node = DirectoryTreeNode(name=name, path=path)
        self._nodes[path] = node
        parent = self._nodes.get(parent_path) if parent_path is not None else None
        if parent is not None:
            parent.children.append(node)
        else:
            self.roots.append(node)

        orphans = [root for root in self.roots if root is not node and _parent_path(root.path) == path]
        for orphan in orphans:
            self.roots.remove(orphan)
            node.children.append(orphan)
        return True

    def complete(self, path: str) -> None:
        node = self._nodes.get(path)
        if node is not None:
            node.completed = True

    def complete_all(self) -> None:
        for node in self._nodes.values():
            node.completed = True

    def ensure_path(self, dir_path: str, completed: bool = False) -> Optional[DirectoryTreeNode]:
        """Create every missing ancestor of `dir_path` and return its node."""
        lead = "/" if dir_path.startswith("/") else ""
        segments = [segment for segment in dir_path.split("/") if segment]
        if not segments:
            if not lead:
                return None
            if self.enter("/", "/"):
                self._nodes["/"].completed = completed
            return self._nodes["/"]

        current = ""
        # Absolute paths hang off the disk root once it is known
        parent_path = "/" if lead and "/" in self._nodes else None
        for segment in segments:
            current = f"{current}/{segment}" if current else f"{lead}{segment}"
            if self.enter(current, segment, parent_path):
                self._nodes[current].completed = completed
            parent_path = current
        return self._nodes[current]

    def add_file(self, dir_path: str) -> None:
        node = self._nodes.get(dir_path)
        if node is not None:
            node.file_count += 1

    def snapshot(self) -> List[DirectoryTreeNode]:
        return [root.snapshot() for root in self.roots]


class _DiscoveryReporter:
    """Emits discovery progress, attaching tree snapshots at most every TREE_SNAPSHOT_INTERVAL."""

    def __init__(
            self,
            progress_callback: Optional[ProgressCallback],
            tree: DirectoryTreeBuilder,
            clock: Callable[[], float] = time.monotonic
    ):
        self.progress_callback = progress_callback
        self.tree = tree
        self.files_found = 0
        self._clock = clock
        self._last_snapshot: Optional[float] = None

    def report(self, current_file: str = "", with_tree: bool = False, force_tree: bool = False) -> None:
        if not self.progress_callback:
            return

        directory_tree = None
        if force_tree or (with_tree and self._snapshot_due()):
            directory_tree = self.tree.snapshot()
            self._last_snapshot = self._clock()

        emit(self.progress_callback, ScanProgress(
            phase=ScanPhase.DISCOVERING,
            total_files=self.files_found,
            processed_files=self.files_found,
            current_file=current_file,
            directories_found=self.tree.directory_count,
            directory_tree=directory_tree,
        ))

    def _snapshot_due(self) -> bool:
        if self._last_snapshot is None:
            return True
        return self._clock() - self._last_snapshot >= ScanConfig.TREE_SNAPSHOT_INTERVAL


# ======================
#  Local directory
# ======================

class LocalDiscoveryWalker:
    """Walks a local directory tree, in name order, without following symlinks."""

    def discover(
            self,
            source: LocalSource,
            progress_callback: Optional[ProgressCallback] = None,
            cancel_token: Optional[CancellationToken] = None
    ) -> DiscoveryResult:
        check_cancelled(cancel_token)

        root = os.path.abspath(source.root_dir)
        if not os.path.exists(root):
            raise SourceAccessError(f"Directory does not exist: {root}", path=root)
        if not os.path.isdir(root):
            raise SourceAccessError(f"Not a directory: {root}", path=root)

        tree = DirectoryTreeBuilder()
        reporter = _DiscoveryReporter(progress_callback, tree)
        refs: List[FileRef] = []

        self._walk(root, "", os.path.basename(root) or root, None, tree, reporter, refs, cancel_token)

        logger.debug(f"Discovered {len(refs)} images in {tree.directory_count} directories under {root}")
        reporter.report(force_tree=True)
        return DiscoveryResult(
            source=source,
            total_directories=tree.directory_count,
            total_files=len(refs),
            file_refs=refs,
            directory_tree=tree.snapshot(),
        )

    def _walk(
            self,
            dir_path: str,
            rel_path: str,
            name: str,
            parent_rel: Optional[str],
            tree: DirectoryTreeBuilder,
            reporter: _DiscoveryReporter,
            refs: List[FileRef],
            cancel_token: Optional[CancellationToken]
    ) -> None:
        check_cancelled(cancel_token)
        tree.enter(rel_path, name, parent_rel)
        reporter.report(current_file=rel_path or name)

        try:
            with os.scandir(dir_path) as it:
                items = sorted(it, key=lambda e: e.name)
        except OSError as e:
            logger.error(f"Cannot list directory {dir_path}: {e}")
            raise SourceAccessError(f"Cannot list directory {dir_path}: {e}", path=dir_path) from e

        for item in items:
            check_cancelled(cancel_token)
            child_rel = f"{rel_path}/{item.name}" if rel_path else item.name
            try:
                if item.is_dir(follow_symlinks=False):
                    self._walk(item.path, child_rel, item.name, rel_path, tree, reporter, refs, cancel_token)
                    continue
                is_file = item.is_file(follow_symlinks=False)
            except OSError as e:
                raise SourceAccessError(f"Cannot access {item.path}: {e}", path=item.path) from e

            if is_file and is_image_file(item.name):
                refs.append(FileRef(relative_path=child_rel, location=item.path))
                tree.add_file(rel_path)
                reporter.files_found += 1

        tree.complete(rel_path)
        reporter.report(current_file=rel_path or name, with_tree=True)

    def collect(
            self,
            discovery: DiscoveryResult,
            entry_callback: Optional[EntryCallback] = None,
            cancel_token: Optional[CancellationToken] = None
    ) -> List[FileEntry]:
        check_cancelled(cancel_token)
        return collect_from_refs(discovery.file_refs, entry_callback, cancel_token)


# ======================
#  File list
# ======================

class FileListDiscoveryWalker:
    """
    Infers the directory structure of an already-enumerated file list.
    No file system access happens here; missing files surface at collection.
    """

    def discover(
            self,
            source: FileListSource,
            progress_callback: Optional[ProgressCallback] = None,
            cancel_token: Optional[CancellationToken] = None
    ) -> DiscoveryResult:
        check_cancelled(cancel_token)

        tree = DirectoryTreeBuilder()
        reporter = _DiscoveryReporter(progress_callback, tree)
        refs: List[FileRef] = []

        for location in source.paths:
            check_cancelled(cancel_token)
            rel_path = source.relative_path(location)
            dir_path, _, name = rel_path.rpartition("/")
            if dir_path:
                tree.ensure_path(dir_path, completed=True)
            if not is_image_file(name):
                continue
            refs.append(FileRef(relative_path=rel_path, location=location))
            tree.add_file(dir_path)

        reporter.files_found = len(refs)
        reporter.report(force_tree=True)
        return DiscoveryResult(
            source=source,
            total_directories=tree.directory_count,
            total_files=len(refs),
            file_refs=refs,
            directory_tree=tree.snapshot(),
        )

    def collect(
            self,
            discovery: DiscoveryResult,
            entry_callback: Optional[EntryCallback] = None,
            cancel_token: Optional[CancellationToken] = None
    ) -> List[FileEntry]:
        check_cancelled(cancel_token)
        return collect_from_refs(discovery.file_refs, entry_callback, cancel_token)


# ======================
#  Remote storage
# ======================

class RemoteDiscoveryWalker:
    """
    Lists Yandex Disk and caches one entry per image, each downloading lazily.
    Directories and files reached more than once (overlapping selected
    folders) are registered only once.
    """

    def __init__(self, client_factory: Callable[[str], RemoteLister] = YandexDiskClient):
        self.client_factory = client_factory

    def discover(
            self,
            source: RemoteSource,
            progress_callback: Optional[ProgressCallback] = None,
            cancel_token: Optional[CancellationToken] = None
    ) -> DiscoveryResult:
        check_cancelled(cancel_token)

        client = self.client_factory(source.token)
        tree = DirectoryTreeBuilder()
        reporter = _DiscoveryReporter(progress_callback, tree)
        entries: List[FileEntry] = []
        seen_files = set()

        def on_directory_enter(disk_path: str) -> None:
            path = normalize_disk_path(disk_path)
            if tree.enter(path, path.rsplit("/", 1)[-1] or "/", _parent_path(path)):
                reporter.report(current_file=path)

        def on_directory_complete(disk_path: str) -> None:
            path = normalize_disk_path(disk_path)
            tree.complete(path)
            reporter.report(current_file=path, with_tree=True)

        def on_file(resource: YandexResource) -> None:
            check_cancelled(cancel_token)
            path = normalize_disk_path(resource.path)
            if path in seen_files:
                return
            seen_files.add(path)

            dir_path = _parent_path(path) or "/"
            if tree.get(dir_path) is None:
                tree.ensure_path(dir_path)
            tree.add_file(dir_path)

            entries.append(FileEntry(
                path=path,
                name=resource.name,
                size=resource.size,
                sha256=resource.sha256,
                md5=resource.md5,
                origin_url=yandex_folder_url(dir_path),
                is_remote=True,
                fetcher=partial(client.download_file, resource, cancel_token),
            ))
            reporter.files_found = len(entries)
            reporter.report(current_file=path)

        client.list_image_files(
            source.folder_paths,
            on_file,
            cancel_token,
            on_directory_enter=on_directory_enter,
            on_directory_complete=on_directory_complete,
        )

        if not source.folder_paths:
            # Flat listing: the whole structure is known once paging ends
            tree.complete_all()

        logger.debug(f"Listed {len(entries)} remote images in {tree.directory_count} folders")
        reporter.report(force_tree=True)
        return DiscoveryResult(
            source=source,
            total_directories=tree.directory_count,
            total_files=len(entries),
            cached_entries=entries,
            directory_tree=tree.snapshot(),
        )

    def collect(
            self,
            discovery: DiscoveryResult,
            entry_callback: Optional[EntryCallback] = None,
            cancel_token: Optional[CancellationToken] = None
    ) -> List[FileEntry]:
        check_cancelled(cancel_token)
        return collect_cached(discovery.cached_entries, entry_callback, cancel_token)
