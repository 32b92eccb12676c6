"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

utils/convert_utils.py
"""
import math
from typing import Optional


class ConvertUtils:
    @staticmethod
    def bytes_to_human(size_bytes: int) -> str:
        """
        Convert bytes to human-readable string (e.g., 1.50KB, 3.20MB).
        """
        if size_bytes < 0:
            return "0B"

        units = ["B", "KB", "MB", "GB", "TB", "PB"]
        for unit in units:
            if size_bytes < 1024:
                return f"{size_bytes:.2f}{unit}"
            size_bytes /= 1024
        return f"{size_bytes:.2f}EB"

    @staticmethod
    def format_file_size(size_bytes: int) -> str:
        """'512 B', '1.5 KB', '3.0 MB'. Sizes above a megabyte stay in MB."""
        if size_bytes < 1024:
            return f"{size_bytes} B"
        if size_bytes < 1024 * 1024:
            return f"{size_bytes / 1024:.1f} KB"
        return f"{size_bytes / (1024 * 1024):.1f} MB"

    @staticmethod
    def format_eta(ms: Optional[float]) -> Optional[str]:
        """
        Remaining time rounded up to whole seconds: '≈ 45 sec', '≈ 2 min', '≈ 2 min 5 sec'.
        None when there is no estimate.
        """
        if ms is None or ms <= 0:
            return None

        total_seconds = math.ceil(ms / 1000)
        if total_seconds < 60:
            return f"≈ {total_seconds} sec"

        minutes, seconds = divmod(total_seconds, 60)
        if seconds == 0:
            return f"≈ {minutes} min"
        return f"≈ {minutes} min {seconds} sec"

    @staticmethod
    def format_speed(bytes_per_second: Optional[float]) -> Optional[str]:
        if bytes_per_second is None or bytes_per_second <= 0:
            return None
        if bytes_per_second < 1024:
            return f"{bytes_per_second} B/s"
        if bytes_per_second < 1024 * 1024:
            return f"{bytes_per_second / 1024:.1f} KB/s"
        return f"{bytes_per_second / (1024 * 1024):.1f} MB/s"
