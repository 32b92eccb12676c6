"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

services/yandex_disk.py
Read-only Yandex Disk REST API client.

Provides the remote listing capability used by discovery:
- recursive folder listing with offset/limit pagination and
  directory enter/complete notifications
- flat listing of every image on the disk
- download of a single file's bytes
The OAuth token is sent in the Authorization header of every request.
"""
import logging
import re
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, List, Optional
from urllib.parse import quote

import requests

from lookalike.core.cancellation import CancellationToken, check_cancelled
from lookalike.core.config import ScanConfig
from lookalike.core.errors import RemoteApiError, SourceAccessError
from lookalike.core.models import is_image_file

logger = logging.getLogger(__name__)

API_BASE = "https://cloud-api.yandex.net/v1/disk"
WEB_FOLDER_BASE = "https://disk.yandex.ru/client/disk/"

ITEM_FIELDS = ("name", "path", "type", "mime_type", "size", "md5", "sha256", "preview")


@dataclass
class YandexResource:
    """A file or folder as described by the resources API."""
    name: str
    path: str
    type: str
    mime_type: Optional[str] = None
    size: Optional[int] = None
    md5: Optional[str] = None
    sha256: Optional[str] = None
    preview: Optional[str] = None

    @property
    def is_dir(self) -> bool:
        return self.type == "dir"

    @classmethod
    def from_api(cls, data: Dict) -> 'YandexResource':
        size = data.get("size")
        return cls(
            name=data.get("name", ""),
            path=data.get("path", ""),
            type=data.get("type", "file"),
            mime_type=data.get("mime_type"),
            size=int(size) if size is not None else None,
            md5=data.get("md5") or None,
            sha256=data.get("sha256") or None,
            preview=data.get("preview"),
        )


def sanitize_token(token: str) -> str:
    """Strips whitespace, zero-width characters and anything outside Latin-1 (not allowed in headers)."""
    token = re.sub(r"[\s\u200b-\u200d\ufeff]", "", token.strip())
    return re.sub(r"[^\x00-\xff]", "", token)


def to_disk_path(path: str) -> str:
    """'/Photos' -> 'disk:/Photos'; paths already carrying the prefix are kept."""
    return path if path.startswith("disk:") else f"disk:{path or '/'}"


def normalize_disk_path(path: str) -> str:
    """
    Canonical form used to de-duplicate directories and files:
    no 'disk:' prefix, a leading slash, no trailing slash (except the root).
    """
    if path.startswith("disk:"):
        path = path[len("disk:"):]
    path = "/" + path.strip("/")
    return path


def yandex_folder_url(folder_path: str) -> str:
    """Web interface URL of a folder."""
    clean = folder_path
    if clean.startswith("disk:"):
        clean = clean[len("disk:"):]
    clean = clean.lstrip("/")
    encoded = "/".join(quote(segment, safe="!~*'()") for segment in clean.split("/"))
    return f"{WEB_FOLDER_BASE}{encoded}"


class YandexDiskClient:
    """
    Thin client over a requests.Session.
    No retries are performed; failures surface as SourceAccessError.
    """

    def __init__(
            self,
            token: str,
            session: Optional[requests.Session] = None,
            timeout: float = ScanConfig.REMOTE_TIMEOUT,
            page_limit: int = ScanConfig.REMOTE_PAGE_LIMIT
    ):
        self.token = sanitize_token(token)
        self.session = session or requests.Session()
        self.timeout = timeout
        self.page_limit = page_limit

    def _headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"OAuth {self.token}",
            "Accept": "application/json",
        }

    def _get_json(self, url: str, params: Dict, cancel_token: Optional[CancellationToken] = None) -> Dict:
        # Advisory at the network edge: an in-flight request always completes
        check_cancelled(cancel_token)
        try:
            response = self.session.get(url, params=params, headers=self._headers(), timeout=self.timeout)
        except requests.RequestException as e:
            logger.error(f"Request to {url} failed: {e}")
            raise SourceAccessError(f"Request to {url} failed: {e}", path=params.get("path")) from e
        return self._check_response(response, params.get("path"))

    @staticmethod
    def _check_response(response, path: Optional[str] = None) -> Dict:
        if not response.ok:
            message = f"API error: {response.status_code}"
            try:
                payload = response.json()
                message = payload.get("message") or payload.get("description") or message
            except ValueError:
                pass
            logger.error(f"Yandex Disk API error for {path}: {message}")
            raise RemoteApiError(message, status_code=response.status_code, path=path)
        try:
            return response.json()
        except ValueError as e:
            raise SourceAccessError(f"Malformed API response for {path}", path=path) from e

    @staticmethod
    def _fields(prefix: str) -> str:
        return ",".join(f"{prefix}{name}" for name in ITEM_FIELDS)

    # ======================
    #  Listing
    # ======================

    def list_image_files(
            self,
            folder_paths: Iterable[str],
            on_file: Callable[[YandexResource], None],
            cancel_token: Optional[CancellationToken] = None,
            on_directory_enter: Optional[Callable[[str], None]] = None,
            on_directory_complete: Optional[Callable[[str], None]] = None,
    ) -> List[YandexResource]:
        """
        Collects image resources. With folders selected, walks each of them
        recursively; with none, pages through the flat list of all files.
        `on_file` is called for every image as soon as it is listed.
        """
        results: List[YandexResource] = []
        folder_paths = list(folder_paths)

        if folder_paths:
            for folder_path in folder_paths:
                self._list_images_from_folder(
                    folder_path, results, on_file, cancel_token,
                    on_directory_enter, on_directory_complete
                )
            return results

        offset = 0
        while True:
            data = self._get_json(
                f"{API_BASE}/resources/files",
                {
                    "media_type": "image,unknown",
                    "limit": self.page_limit,
                    "offset": offset,
                    "fields": self._fields("items."),
                },
                cancel_token,
            )
            items = data.get("items") or []

            for item in items:
                resource = YandexResource.from_api(item)
                if resource.is_dir or not is_image_file(resource.name):
                    continue
                results.append(resource)
                on_file(resource)

            if len(items) < self.page_limit:
                break
            offset += self.page_limit

        return results

    def _list_images_from_folder(
            self,
            folder_path: str,
            results: List[YandexResource],
            on_file: Callable[[YandexResource], None],
            cancel_token: Optional[CancellationToken],
            on_directory_enter: Optional[Callable[[str], None]],
            on_directory_complete: Optional[Callable[[str], None]],
    ) -> None:
        disk_path = to_disk_path(folder_path)
        if on_directory_enter:
            on_directory_enter(disk_path)

        offset = 0
        while True:
            data = self._get_json(
                f"{API_BASE}/resources",
                {
                    "path": disk_path,
                    "fields": self._fields("_embedded.items."),
                    "limit": self.page_limit,
                    "offset": offset,
                },
                cancel_token,
            )
            items = (data.get("_embedded") or {}).get("items") or []

            for item in items:
                resource = YandexResource.from_api(item)
                if resource.is_dir:
                    self._list_images_from_folder(
                        resource.path, results, on_file, cancel_token,
                        on_directory_enter, on_directory_complete
                    )
                elif is_image_file(resource.name):
                    results.append(resource)
                    on_file(resource)

            if len(items) < self.page_limit:
                break
            offset += self.page_limit

        if on_directory_complete:
            on_directory_complete(disk_path)

    def list_folder_contents(
            self,
            path: str,
            cancel_token: Optional[CancellationToken] = None
    ) -> List[YandexResource]:
        """Immediate children (folders and files) of a folder, first page only."""
        data = self._get_json(
            f"{API_BASE}/resources",
            {
                "path": to_disk_path(path),
                "fields": self._fields("_embedded.items."),
                "limit": self.page_limit,
            },
            cancel_token,
        )
        items = (data.get("_embedded") or {}).get("items") or []
        return [YandexResource.from_api(item) for item in items]

    def list_folder_tree(
            self,
            path: str,
            on_folder: Callable[[YandexResource], None],
            cancel_token: Optional[CancellationToken] = None
    ) -> None:
        """Reports every sub-folder below `path`, depth-first."""
        for item in self.list_folder_contents(path, cancel_token):
            if item.is_dir:
                on_folder(item)
                self.list_folder_tree(item.path, on_folder, cancel_token)

    # ======================
    #  Download
    # ======================

    def get_download_url(self, path: str, cancel_token: Optional[CancellationToken] = None) -> str:
        data = self._get_json(f"{API_BASE}/resources/download", {"path": path}, cancel_token)
        href = data.get("href")
        if not href:
            raise SourceAccessError(f"No download link for {path}", path=path)
        return href

    def download_file(
            self,
            resource: YandexResource,
            cancel_token: Optional[CancellationToken] = None
    ) -> bytes:
        """Downloads the resource's bytes through a one-off download link."""
        href = self.get_download_url(resource.path, cancel_token)
        check_cancelled(cancel_token)
        try:
            response = self.session.get(
                href,
                headers={"Authorization": f"OAuth {self.token}"},
                timeout=self.timeout
            )
        except requests.RequestException as e:
            raise SourceAccessError(f"Failed to download file: {resource.name} ({e})", path=resource.path) from e

        if not response.ok:
            raise RemoteApiError(
                f"Failed to download file: {resource.name} ({response.status_code})",
                status_code=response.status_code,
                path=resource.path,
            )
        return response.content
