"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

core/models.py
Data models for image discovery, progress reporting and duplicate grouping.
"""

from dataclasses import dataclass, field
from typing import List, Dict, Optional, Tuple, Union, Callable, ClassVar, Iterator
import os
from enum import Enum


IMAGE_EXTENSIONS = frozenset({".jpg", ".jpeg", ".png", ".webp", ".gif", ".bmp", ".avif"})

# Upper bound for a similarity threshold: width of the 256-bit perceptual digest
MAX_THRESHOLD = 256


def is_image_file(name: str) -> bool:
    """True if the file name carries one of the recognized image extensions (case-insensitive)."""
    dot = name.rfind(".")
    if dot == -1:
        return False
    return name[dot:].lower() in IMAGE_EXTENSIONS


# =============================
# Enums
# =============================

class SourceType(Enum):
    LOCAL = "local"
    FILE_LIST = "file-list"
    REMOTE = "remote"


class ScanPhase(str, Enum):
    DISCOVERING = "discovering"
    SCANNING = "scanning"
    HASHING = "hashing"
    COMPARING = "comparing"

    @property
    def display_name(self) -> str:
        """Human-readable name for progress output."""
        mapping = {
            ScanPhase.DISCOVERING: "Discovering",
            ScanPhase.SCANNING: "Scanning",
            ScanPhase.HASHING: "Hashing",
            ScanPhase.COMPARING: "Comparing",
        }
        return mapping.get(self, self.value)


class SearchMode(Enum):
    """
    What counts as a duplicate.
    """
    EXACT = "exact"
    SIMILAR = "similar"

    @property
    def display_name(self) -> str:
        mapping = {
            SearchMode.EXACT: "Exact",
            SearchMode.SIMILAR: "Similar",
        }
        return mapping.get(self, self.value)

    @property
    def description(self) -> str:
        """Detailed description for help text."""
        mapping = {
            SearchMode.EXACT:
                "Byte-identical files (content hash, metadata hashes when available)",
            SearchMode.SIMILAR:
                "Visually similar images (perceptual hash within a Hamming distance)",
        }
        return mapping.get(self, self.value)

    def __repr__(self) -> str:
        return self.value


class HashAlgorithmName(Enum):
    SHA256 = "sha256"
    XXH128 = "xxh128"


# ======================
#  Sources
# ======================

@dataclass(frozen=True)
class LocalSource:
    """A directory tree on the local file system."""
    kind: ClassVar[SourceType] = SourceType.LOCAL
    root_dir: str

    def __post_init__(self):
        if not self.root_dir:
            raise ValueError("Root directory cannot be empty")


@dataclass(frozen=True)
class FileListSource:
    """
    A flat list of file paths (e.g. piped from `find`).
    Relative paths are computed against `base_dir` when given.
    """
    kind: ClassVar[SourceType] = SourceType.FILE_LIST
    paths: Tuple[str, ...]
    base_dir: Optional[str] = None

    def __post_init__(self):
        object.__setattr__(self, "paths", tuple(self.paths))

    def relative_path(self, location: str) -> str:
        """Slash-separated path of `location` relative to the list's root."""
        if self.base_dir:
            rel = os.path.relpath(location, self.base_dir)
        else:
            rel = os.path.splitdrive(location)[1]
        return rel.replace(os.sep, "/").lstrip("/")


@dataclass(frozen=True)
class RemoteSource:
    """Yandex Disk, optionally restricted to a set of folders (empty = whole disk)."""
    kind: ClassVar[SourceType] = SourceType.REMOTE
    token: str = field(repr=False)
    folder_paths: Tuple[str, ...] = ()

    def __post_init__(self):
        if not self.token or not self.token.strip():
            raise ValueError("API token cannot be empty")
        object.__setattr__(self, "folder_paths", tuple(self.folder_paths))


Source = Union[LocalSource, FileListSource, RemoteSource]


# ======================
#  Core Data Models
# ======================

@dataclass
class FileEntry:
    """
    One candidate image.

    The byte payload is fetched lazily through `fetcher` at most once and then
    cached for the lifetime of the entry. Precomputed metadata (size, hashes)
    is filled in by sources that provide it without reading content.
    """
    path: str  # slash-separated, source-rooted
    name: Optional[str] = None
    size: Optional[int] = None  # in bytes
    sha256: Optional[str] = None
    md5: Optional[str] = None
    origin_url: Optional[str] = None
    is_remote: bool = False
    fetcher: Optional[Callable[[], bytes]] = field(default=None, repr=False, compare=False)
    content: Optional[bytes] = field(default=None, repr=False, compare=False)

    def __post_init__(self):
        if self.name is None:
            self.name = self.path.rsplit("/", 1)[-1]
        if self.content is None and self.fetcher is None:
            raise ValueError(f"Entry {self.path} has neither content nor a fetcher")
        if self.size is None and self.content is not None:
            self.size = len(self.content)

    @property
    def is_fetched(self) -> bool:
        return self.content is not None

    def fetch(self) -> bytes:
        """Returns the payload, calling the fetcher only on first use."""
        if self.content is None:
            data = self.fetcher()
            self.content = data
            if self.size is None:
                self.size = len(data)
        return self.content

    def __repr__(self):
        return f"<FileEntry path={self.path}, size={self.size}>"


@dataclass(frozen=True)
class FileRef:
    """A file located during discovery, before its entry is materialized."""
    relative_path: str
    location: str  # absolute file system path


@dataclass
class DirectoryTreeNode:
    """
    One directory in the live discovery tree.
    `file_count` counts images directly inside this directory.
    """
    name: str
    path: str
    file_count: int = 0
    children: List['DirectoryTreeNode'] = field(default_factory=list)
    completed: bool = False

    def snapshot(self) -> 'DirectoryTreeNode':
        """Deep copy sharing no state with the live node."""
        return DirectoryTreeNode(
            name=self.name,
            path=self.path,
            file_count=self.file_count,
            children=[child.snapshot() for child in self.children],
            completed=self.completed,
        )

    def iter_nodes(self) -> Iterator['DirectoryTreeNode']:
        """This node and all descendants, depth-first in discovery order."""
        yield self
        for child in self.children:
            yield from child.iter_nodes()

    @property
    def total_file_count(self) -> int:
        return sum(node.file_count for node in self.iter_nodes())

    def __repr__(self):
        return f"<DirectoryTreeNode path={self.path}, files={self.file_count}, completed={self.completed}>"


@dataclass
class HashedFile:
    """An entry paired with its digest and the payload that was hashed."""
    entry: FileEntry
    hash: str
    content: bytes = field(repr=False)

    @property
    def path(self) -> str:
        return self.entry.path

    @property
    def size(self) -> int:
        return len(self.content)


@dataclass
class DuplicateGroup:
    """
    Files that are duplicates of each other.
    For exact groups `hash` is the shared content hash; for similarity groups
    it is the perceptual hash of the first member.
    """
    hash: str
    files: List[HashedFile]

    @property
    def duplicate_count(self) -> int:
        """How many files are in this group."""
        return len(self.files)

    @property
    def total_size(self) -> int:
        return sum(f.size for f in self.files)

    @property
    def paths(self) -> List[str]:
        return [f.path for f in self.files]

    def is_duplicate(self) -> bool:
        """True if this group contains at least two files."""
        return self.duplicate_count >= 2

    def __repr__(self):
        return f"<DuplicateGroup hash={self.hash[:12]}, count={len(self.files)}>"


@dataclass
class ProgressEstimates:
    estimated_remaining_ms: int
    bytes_per_second: Optional[int] = None


@dataclass
class ScanProgress:
    """
    Snapshot of a scan's progress, re-emitted at every significant step.
    """
    phase: ScanPhase
    total_files: int
    processed_files: int
    current_file: str = ""
    estimated_remaining_ms: Optional[int] = None
    bytes_per_second: Optional[int] = None
    directories_found: Optional[int] = None
    directory_tree: Optional[List[DirectoryTreeNode]] = None

    def with_estimates(self, estimates: Optional[ProgressEstimates]) -> 'ScanProgress':
        if estimates is not None:
            self.estimated_remaining_ms = estimates.estimated_remaining_ms
            self.bytes_per_second = estimates.bytes_per_second
        return self


ProgressCallback = Callable[[ScanProgress], None]
EntryCallback = Callable[[FileEntry], None]


@dataclass
class DiscoveryResult:
    """
    Outcome of the discovery phase and the continuation for entry collection:
    `file_refs` for local and list sources, `cached_entries` for remote ones.
    """
    source: Source
    total_directories: int
    total_files: int
    file_refs: List[FileRef] = field(default_factory=list)
    cached_entries: List[FileEntry] = field(default_factory=list)
    directory_tree: List[DirectoryTreeNode] = field(default_factory=list)

    @property
    def kind(self) -> SourceType:
        return self.source.kind


@dataclass
class ScanParams:
    """Parameters for one scan, validated on creation."""
    source: Source
    mode: SearchMode = SearchMode.EXACT
    threshold: int = 10
    hash_algorithm: HashAlgorithmName = HashAlgorithmName.SHA256
    reference_image: Optional[str] = None  # similar mode: match against this one image only

    def __post_init__(self):
        if self.reference_image and self.mode is not SearchMode.SIMILAR:
            raise ValueError("A reference image can only be used in similar mode")
        if isinstance(self.threshold, bool) or not isinstance(self.threshold, int):
            raise ValueError("Threshold must be an integer")
        if self.threshold < 0:
            raise ValueError("Threshold cannot be negative")
        if self.threshold > MAX_THRESHOLD:
            raise ValueError(f"Threshold cannot exceed {MAX_THRESHOLD}")


@dataclass
class ScanStats:
    """
    Statistics collected during one scan.
    """
    total_time: float = 0.0
    directories_found: int = 0
    files_found: int = 0
    groups_found: int = 0
    duplicate_files: int = 0
    phase_times: Dict[str, float] = field(default_factory=dict)

    def record_phase(self, name: str, duration: float) -> None:
        self.phase_times[name] = self.phase_times.get(name, 0.0) + duration

    def summary(self) -> str:
        lines = [
            "Scan Statistics:",
            f"Total Execution Time: {self.total_time:.3f}s",
            f"Directories: {self.directories_found} / Images: {self.files_found}",
            f"Groups: {self.groups_found} / Files in groups: {self.duplicate_files}",
        ]
        for phase, duration in self.phase_times.items():
            lines.append(f"{phase.title()}: {duration:.3f}s")
        return "\n".join(lines)
