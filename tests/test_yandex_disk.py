"""
Tests for the Yandex Disk client against a mocked requests session.
"""
from unittest.mock import Mock

import pytest
import requests

from lookalike.core.cancellation import CancellationToken
from lookalike.core.errors import RemoteApiError, ScanCancelled, SourceAccessError
from lookalike.services.yandex_disk import (
    API_BASE, YandexDiskClient, YandexResource, normalize_disk_path, sanitize_token, to_disk_path,
    yandex_folder_url
)


def response(payload=None, status=200, content=b""):
    mock = Mock()
    mock.status_code = status
    mock.ok = 200 <= status < 300
    mock.content = content
    if payload is None:
        mock.json.side_effect = ValueError("no json")
    else:
        mock.json.return_value = payload
    return mock


def item(name, path, type_="file", **extra):
    return {"name": name, "path": path, "type": type_, **extra}


def folder_page(*items):
    return response({"_embedded": {"items": list(items)}})


def make_client(*responses, page_limit=1000):
    session = Mock()
    session.get.side_effect = list(responses)
    return YandexDiskClient("token", session=session, page_limit=page_limit), session


class TestHelpers:
    def test_sanitize_token(self):
        assert sanitize_token("  AQAA\u200b-tok en\ufeff\n") == "AQAA-token"

    def test_sanitize_token_drops_non_latin1(self):
        assert sanitize_token("abcжdef") == "abcdef"

    @pytest.mark.parametrize("path, expected", [
        ("disk:/Photos", "/Photos"),
        ("disk:/Photos/", "/Photos"),
        ("/Photos/2024", "/Photos/2024"),
        ("disk:/", "/"),
    ])
    def test_normalize_disk_path(self, path, expected):
        assert normalize_disk_path(path) == expected

    def test_to_disk_path(self):
        assert to_disk_path("/Photos") == "disk:/Photos"
        assert to_disk_path("disk:/Photos") == "disk:/Photos"
        assert to_disk_path("") == "disk:/"

    @pytest.mark.parametrize("path, expected", [
        ("/Photos", "https://disk.yandex.ru/client/disk/Photos"),
        ("disk:/Photos/2024", "https://disk.yandex.ru/client/disk/Photos/2024"),
        ("/My Photos/Лето", "https://disk.yandex.ru/client/disk/My%20Photos/%D0%9B%D0%B5%D1%82%D0%BE"),
    ])
    def test_folder_url(self, path, expected):
        assert yandex_folder_url(path) == expected

    def test_resource_from_api(self):
        resource = YandexResource.from_api(item("a.jpg", "disk:/a.jpg", size="42", md5="m", sha256=""))
        assert resource.size == 42
        assert resource.md5 == "m"
        assert resource.sha256 is None
        assert not resource.is_dir


class TestListing:
    def test_recursive_folder_listing(self):
        client, session = make_client(
            folder_page(
                item("a.jpg", "disk:/Photos/a.jpg", md5="m1"),
                item("2024", "disk:/Photos/2024", type_="dir"),
                item("notes.txt", "disk:/Photos/notes.txt"),
            ),
            folder_page(item("b.png", "disk:/Photos/2024/b.png")),
        )
        files, entered, completed = [], [], []

        results = client.list_image_files(
            ["/Photos"], files.append,
            on_directory_enter=entered.append, on_directory_complete=completed.append
        )

        assert [r.path for r in results] == ["disk:/Photos/a.jpg", "disk:/Photos/2024/b.png"]
        assert files == results
        assert entered == ["disk:/Photos", "disk:/Photos/2024"]
        assert completed == ["disk:/Photos/2024", "disk:/Photos"]

        first_call = session.get.call_args_list[0]
        assert first_call.args[0] == f"{API_BASE}/resources"
        assert first_call.kwargs["params"]["path"] == "disk:/Photos"
        assert first_call.kwargs["params"]["offset"] == 0
        assert first_call.kwargs["headers"]["Authorization"] == "OAuth token"

    def test_folder_pagination(self):
        client, session = make_client(
            folder_page(item("a.jpg", "disk:/P/a.jpg"), item("b.jpg", "disk:/P/b.jpg")),
            folder_page(item("c.jpg", "disk:/P/c.jpg")),
            page_limit=2,
        )
        results = client.list_image_files(["/P"], lambda r: None)

        assert len(results) == 3
        offsets = [call.kwargs["params"]["offset"] for call in session.get.call_args_list]
        assert offsets == [0, 2]

    def test_flat_listing_of_whole_disk(self):
        client, session = make_client(
            response({"items": [item("a.jpg", "disk:/a.jpg"), item("b.mov", "disk:/b.mov")]}),
        )
        results = client.list_image_files([], lambda r: None)

        assert [r.name for r in results] == ["a.jpg"]
        call = session.get.call_args
        assert call.args[0] == f"{API_BASE}/resources/files"
        assert call.kwargs["params"]["media_type"] == "image,unknown"

    def test_list_folder_tree(self):
        client, _ = make_client(
            folder_page(item("A", "disk:/A", type_="dir"), item("x.jpg", "disk:/x.jpg")),
            folder_page(item("B", "disk:/A/B", type_="dir")),
            folder_page(),
        )
        folders = []
        client.list_folder_tree("/", folders.append)
        assert [f.path for f in folders] == ["disk:/A", "disk:/A/B"]


class TestErrors:
    def test_api_error_uses_message(self):
        client, _ = make_client(response({"message": "Resource not found", "error": "DiskNotFoundError"}, 404))
        with pytest.raises(RemoteApiError, match="Resource not found") as exc_info:
            client.list_image_files(["/missing"], lambda r: None)
        assert exc_info.value.status_code == 404

    def test_api_error_falls_back_to_description(self):
        client, _ = make_client(response({"description": "Unauthorized"}, 401))
        with pytest.raises(RemoteApiError, match="Unauthorized"):
            client.list_folder_contents("/")

    def test_api_error_without_body(self):
        client, _ = make_client(response(None, 503))
        with pytest.raises(RemoteApiError, match="API error: 503"):
            client.list_folder_contents("/")

    def test_network_failure(self):
        session = Mock()
        session.get.side_effect = requests.ConnectionError("offline")
        client = YandexDiskClient("token", session=session)
        with pytest.raises(SourceAccessError, match="offline"):
            client.list_folder_contents("/")

    def test_remote_api_error_is_source_access_error(self):
        assert issubclass(RemoteApiError, SourceAccessError)

    def test_cancelled_before_request(self):
        client, session = make_client()
        token = CancellationToken()
        token.cancel()
        with pytest.raises(ScanCancelled):
            client.list_image_files(["/Photos"], lambda r: None, token)
        session.get.assert_not_called()


class TestDownload:
    def test_download_follows_link(self):
        client, session = make_client(
            response({"href": "https://downloader.example/abc"}),
            response(content=b"image bytes"),
        )
        resource = YandexResource(name="a.jpg", path="disk:/a.jpg", type="file")

        assert client.download_file(resource) == b"image bytes"
        link_call, download_call = session.get.call_args_list
        assert link_call.args[0] == f"{API_BASE}/resources/download"
        assert link_call.kwargs["params"] == {"path": "disk:/a.jpg"}
        assert download_call.args[0] == "https://downloader.example/abc"

    def test_download_failure(self):
        client, _ = make_client(
            response({"href": "https://downloader.example/abc"}),
            response(None, 500),
        )
        resource = YandexResource(name="a.jpg", path="disk:/a.jpg", type="file")
        with pytest.raises(RemoteApiError, match="Failed to download file: a.jpg"):
            client.download_file(resource)

    def test_missing_link(self):
        client, _ = make_client(response({}))
        with pytest.raises(SourceAccessError, match="No download link"):
            client.get_download_url("disk:/a.jpg")
