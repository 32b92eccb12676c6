"""
Remote storage backends.

- YandexDiskClient: read-only Yandex Disk REST client (listing and downloads)
"""
from .yandex_disk import YandexDiskClient, YandexResource, sanitize_token, yandex_folder_url

__all__ = [
    "YandexDiskClient",
    "YandexResource",
    "sanitize_token",
    "yandex_folder_url",
]
