"""
Tests for entry collection: lazily read local entries and cached remote entries.
"""
import pytest

from lookalike.core.cancellation import CancellationToken
from lookalike.core.collector import entry_from_ref, read_local_file
from lookalike.core.errors import ScanCancelled, SourceAccessError
from lookalike.core.models import DiscoveryResult, FileEntry, FileListSource, FileRef, LocalSource, RemoteSource
from lookalike.core.scanner import collect_file_entries, discover_files


class TestLocalCollection:
    def test_entries_in_traversal_order(self, temp_dir, image_tree):
        discovery = discover_files(LocalSource(str(temp_dir)))
        seen = []
        entries = collect_file_entries(discovery, entry_callback=seen.append)

        assert [e.path for e in entries] == [ref.relative_path for ref in discovery.file_refs]
        assert seen == entries

    def test_entries_are_not_read_until_fetched(self, temp_dir, image_tree):
        entries = collect_file_entries(discover_files(LocalSource(str(temp_dir))))

        first = entries[0]
        assert first.path == "a.png"
        assert first.size == image_tree["a"].stat().st_size
        assert not first.is_fetched
        assert first.fetch() == image_tree["a"].read_bytes()

    def test_missing_listed_file_raises(self, temp_dir):
        source = FileListSource([str(temp_dir / "ghost.png")], base_dir=str(temp_dir))
        discovery = discover_files(source)
        with pytest.raises(SourceAccessError):
            collect_file_entries(discovery)

    def test_file_removed_after_collection_fails_on_fetch(self, temp_dir):
        path = temp_dir / "gone.png"
        path.write_bytes(b"x")
        entry = entry_from_ref(FileRef(relative_path="gone.png", location=str(path)))
        path.unlink()
        with pytest.raises(SourceAccessError):
            entry.fetch()

    def test_read_local_file(self, temp_dir):
        path = temp_dir / "a.png"
        path.write_bytes(b"payload")
        assert read_local_file(str(path)) == b"payload"

    def test_pre_cancelled_token(self, temp_dir, image_tree):
        discovery = discover_files(LocalSource(str(temp_dir)))
        token = CancellationToken()
        token.cancel()
        seen = []
        with pytest.raises(ScanCancelled):
            collect_file_entries(discovery, seen.append, token)
        assert seen == []


class TestRemoteCollection:
    def _discovery(self):
        entries = [FileEntry(path=f"/p/{i}.jpg", content=b"x", is_remote=True) for i in range(3)]
        return DiscoveryResult(source=RemoteSource("token"), total_directories=1,
                               total_files=3, cached_entries=entries)

    def test_returns_cached_entries_themselves(self):
        discovery = self._discovery()
        seen = []
        entries = collect_file_entries(discovery, entry_callback=seen.append)

        assert entries is discovery.cached_entries
        assert seen == discovery.cached_entries

    def test_pre_cancelled_token(self):
        token = CancellationToken()
        token.cancel()
        with pytest.raises(ScanCancelled):
            collect_file_entries(self._discovery(), cancel_token=token)

    def test_pre_cancelled_token_with_no_entries(self):
        token = CancellationToken()
        token.cancel()
        discovery = DiscoveryResult(source=RemoteSource("token"), total_directories=0, total_files=0)
        with pytest.raises(ScanCancelled):
            collect_file_entries(discovery, cancel_token=token)
