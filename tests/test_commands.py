"""
Integration tests for ScanCommand — the orchestration layer over the core phases.
Verifies discovery → collection → grouping wiring with progress and cancellation.
"""
import pytest

from conftest import make_image_bytes
from lookalike import ScanCommand
from lookalike.core.cancellation import CancellationToken
from lookalike.core.discovery import RemoteDiscoveryWalker
from lookalike.core.errors import ScanCancelled
from lookalike.core.models import LocalSource, RemoteSource, ScanParams, ScanPhase, SearchMode
from lookalike.services.yandex_disk import YandexResource


class TestScanCommand:
    """Test command orchestration logic."""

    def test_exact_scan_returns_groups_and_stats(self, temp_dir, image_tree):
        params = ScanParams(source=LocalSource(str(temp_dir)))
        groups, stats = ScanCommand().execute(params)

        assert len(groups) == 1
        assert groups[0].paths == ["a.png", "sub/a_copy.png", "sub/nested/a_again.PNG"]
        assert stats.files_found == 6
        assert stats.directories_found == 4
        assert stats.groups_found == 1
        assert stats.duplicate_files == 3
        assert set(stats.phase_times) == {"discovery", "collection", "grouping"}

    def test_similar_scan(self, temp_dir, image_tree):
        params = ScanParams(source=LocalSource(str(temp_dir)), mode=SearchMode.SIMILAR, threshold=10)
        groups, _ = ScanCommand().execute(params)

        assert len(groups) == 1
        assert "other/a_bitmap.bmp" in groups[0].paths
        assert "other/different.png" not in groups[0].paths

    def test_reference_image_inside_scanned_tree(self, temp_dir, image_tree):
        params = ScanParams(
            source=LocalSource(str(temp_dir)),
            mode=SearchMode.SIMILAR,
            reference_image=str(image_tree["bitmap"]),
        )
        groups, _ = ScanCommand().execute(params)

        assert groups[0].paths == [
            "other/a_bitmap.bmp", "a.png", "sub/a_copy.png", "sub/nested/a_again.PNG"
        ]

    def test_reference_image_outside_scanned_tree(self, temp_dir, image_tree):
        outside = temp_dir.parent / f"{temp_dir.name}-reference.png"
        outside.write_bytes(make_image_bytes(seed=2))
        try:
            params = ScanParams(
                source=LocalSource(str(temp_dir)),
                mode=SearchMode.SIMILAR,
                reference_image=str(outside),
            )
            groups, _ = ScanCommand().execute(params)
        finally:
            outside.unlink()

        assert len(groups) == 1
        assert groups[0].paths[1:] == ["other/different.png"]

    def test_reference_entry_paths(self, temp_dir, image_tree):
        inside = ScanCommand.reference_entry(str(image_tree["nested_a"]), str(temp_dir))
        assert inside.path == "sub/nested/a_again.PNG"
        assert inside.fetch() == image_tree["nested_a"].read_bytes()

        outside = ScanCommand.reference_entry(str(image_tree["a"]), str(temp_dir / "sub"))
        assert outside.path == str(image_tree["a"]).replace("\\", "/")

    def test_reference_entry_name_starting_with_dots(self, temp_dir):
        dotted = temp_dir / "..cat.png"
        dotted.write_bytes(make_image_bytes(seed=4))
        entry = ScanCommand.reference_entry(str(dotted), str(temp_dir))
        assert entry.path == "..cat.png"

    def test_raises_error_on_empty_scan(self, temp_dir):
        (temp_dir / "notes.txt").write_text("no images here")
        with pytest.raises(RuntimeError, match="No image files found"):
            ScanCommand().execute(ScanParams(source=LocalSource(str(temp_dir))))

    def test_phases_reported_in_order(self, temp_dir, image_tree):
        events = []
        ScanCommand().execute(ScanParams(source=LocalSource(str(temp_dir))), progress_callback=events.append)

        order = []
        for event in events:
            if not order or order[-1] is not event.phase:
                order.append(event.phase)
        assert order == [ScanPhase.DISCOVERING, ScanPhase.SCANNING, ScanPhase.HASHING, ScanPhase.COMPARING]

        scanning = [e.processed_files for e in events if e.phase is ScanPhase.SCANNING]
        assert scanning == [1, 2, 3, 4, 5, 6]

    def test_cancelled_token_stops_scan(self, temp_dir, image_tree):
        token = CancellationToken()
        token.cancel()
        with pytest.raises(ScanCancelled):
            ScanCommand().execute(ScanParams(source=LocalSource(str(temp_dir))), cancel_token=token)

    def test_get_entries_after_execution(self, temp_dir, image_tree):
        command = ScanCommand()
        with pytest.raises(RuntimeError):
            command.get_entries()

        command.execute(ScanParams(source=LocalSource(str(temp_dir))))
        assert len(command.get_entries()) == 6
        assert command.get_discovery().total_files == 6


class TestRemoteScan:
    """Remote source through an injected client: metadata fast path, lazy downloads."""

    class Client:
        def __init__(self):
            self.downloads = []

        def list_image_files(self, folder_paths, on_file, cancel_token=None,
                             on_directory_enter=None, on_directory_complete=None):
            on_directory_enter("disk:/Photos")
            for name, sha in (("a.jpg", "s1"), ("b.jpg", "s2"), ("c.jpg", "s1")):
                on_file(YandexResource(name=name, path=f"disk:/Photos/{name}", type="file",
                                       size=3, sha256=sha))
            on_directory_complete("disk:/Photos")

        def download_file(self, resource, cancel_token=None):
            self.downloads.append(resource.name)
            return b"abc"

    def test_exact_scan_downloads_only_duplicates(self):
        client = self.Client()
        walker = RemoteDiscoveryWalker(client_factory=lambda token: client)
        params = ScanParams(source=RemoteSource("token", ["/Photos"]))

        groups, stats = ScanCommand(walker=walker).execute(params)

        assert [g.paths for g in groups] == [["/Photos/a.jpg", "/Photos/c.jpg"]]
        assert groups[0].files[0].entry.origin_url == "https://disk.yandex.ru/client/disk/Photos"
        assert sorted(client.downloads) == ["a.jpg", "c.jpg"]
        assert stats.files_found == 3
        assert stats.directories_found == 1
