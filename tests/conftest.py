"""
Shared fixtures for scanning and grouping tests.
Creates isolated temporary directories with generated images.
"""
import io
import random
import pytest
import tempfile
from pathlib import Path
from typing import Dict, Optional

from PIL import Image

from lookalike.core.models import FileEntry


def make_image_bytes(seed: int = 1, size: int = 128, fmt: str = "PNG") -> bytes:
    """
    Random 8x8 block pattern scaled up to `size`.
    The same seed gives the same pixels in any format; different seeds are
    perceptually far apart.
    """
    rng = random.Random(seed)
    blocks = Image.frombytes("L", (8, 8), bytes(rng.randrange(256) for _ in range(64)))
    image = blocks.resize((size, size), Image.Resampling.NEAREST).convert("RGB")
    buffer = io.BytesIO()
    image.save(buffer, format=fmt)
    return buffer.getvalue()


def make_entry(path: str, content: bytes = b"", md5: Optional[str] = None,
               sha256: Optional[str] = None, is_remote: bool = False) -> FileEntry:
    """Resident-content entry; `fetch_calls` tells how often its fetcher ran."""
    calls = {"count": 0}

    def fetcher() -> bytes:
        calls["count"] += 1
        return content

    entry = FileEntry(path=path, size=len(content), md5=md5, sha256=sha256,
                      is_remote=is_remote, fetcher=fetcher)
    entry.fetch_calls = calls
    return entry


class FakePerceptualHasher:
    """Maps payload bytes straight to a preassigned digest."""

    def __init__(self, digests: Dict[bytes, str]):
        self.digests = digests
        self.computed = []

    def compute(self, data: bytes) -> str:
        from lookalike.core.errors import DecodeError
        self.computed.append(data)
        if data not in self.digests:
            raise DecodeError("not an image")
        return self.digests[data]


class FakeClock:
    """Monotonic clock advanced manually (or by `step` on every read)."""

    def __init__(self, start: float = 100.0, step: float = 0.0):
        self.now = start
        self.step = step

    def __call__(self) -> float:
        value = self.now
        self.now += self.step
        return value

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def temp_dir():
    """Creates isolated temporary directory, auto-cleanup after test."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def image_tree(temp_dir) -> Dict[str, Path]:
    """
    Controlled image tree:
    - the same PNG in three places (one nested two levels deep)
    - a perceptually different PNG (other/different.png)
    - the same pixels as a.png stored as BMP (other/a_bitmap.bmp)
    - a text file and an image-named non-image (ignored / undecodable)
    """
    pattern = make_image_bytes(seed=1)
    other = make_image_bytes(seed=2)

    files = {}
    (temp_dir / "sub" / "nested").mkdir(parents=True)
    (temp_dir / "other").mkdir()

    files["a"] = temp_dir / "a.png"
    files["sub_a"] = temp_dir / "sub" / "a_copy.png"
    files["nested_a"] = temp_dir / "sub" / "nested" / "a_again.PNG"
    files["different"] = temp_dir / "other" / "different.png"
    files["bitmap"] = temp_dir / "other" / "a_bitmap.bmp"
    files["notes"] = temp_dir / "notes.txt"
    files["broken"] = temp_dir / "other" / "broken.jpg"

    files["a"].write_bytes(pattern)
    files["sub_a"].write_bytes(pattern)
    files["nested_a"].write_bytes(pattern)
    files["different"].write_bytes(other)
    files["bitmap"].write_bytes(make_image_bytes(seed=1, fmt="BMP"))
    files["notes"].write_text("not an image")
    files["broken"].write_bytes(b"definitely not a jpeg")

    return files
