"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

hasher.py
Content and perceptual hashing primitives.

Content hashes are pluggable through the HashAlgorithm interface:
- Sha256AlgorithmImpl (default): collision-resistant, matches remote sha256 metadata
- XXH128AlgorithmImpl: much faster, non-cryptographic; fine for local collections

The perceptual hash is imagehash's DCT phash on a Pillow-decoded image.
"""

import hashlib
import io
import logging

import imagehash
import xxhash
from PIL import Image, UnidentifiedImageError

from lookalike.core.config import ScanConfig
from lookalike.core.errors import DecodeError, HashLengthMismatchError
from lookalike.core.interfaces import HashAlgorithm, PerceptualHasher
from lookalike.core.models import HashAlgorithmName

logger = logging.getLogger(__name__)


# Use the same way to implement and use any other hashing algorithm
class Sha256AlgorithmImpl(HashAlgorithm):
    name = "sha256"

    @staticmethod
    def hash(data: bytes) -> str:
        return hashlib.sha256(data).hexdigest()


class XXH128AlgorithmImpl(HashAlgorithm):
    name = "xxh128"

    @staticmethod
    def hash(data: bytes) -> str:
        return xxhash.xxh3_128(data).hexdigest()


_ALGORITHMS = {
    HashAlgorithmName.SHA256: Sha256AlgorithmImpl,
    HashAlgorithmName.XXH128: XXH128AlgorithmImpl,
}


def get_hash_algorithm(name: HashAlgorithmName) -> HashAlgorithm:
    return _ALGORITHMS[name]()


THUMBNAIL_RESAMPLE = Image.Resampling.LANCZOS


class PHashPerceptualHasher(PerceptualHasher):
    """
    Perceptual hash via imagehash.phash.
    hash_size=16 gives a 256-bit digest rendered as 64 hex characters.
    """

    def __init__(self, hash_size: int = ScanConfig.PERCEPTUAL_HASH_SIZE):
        self.hash_size = hash_size

    def compute(self, data: bytes) -> str:
        try:
            with Image.open(io.BytesIO(data)) as img:
                img.load()
                # Resize large images for faster processing
                limit = ScanConfig.PERCEPTUAL_MAX_DIMENSION
                if img.size[0] > limit or img.size[1] > limit:
                    img.thumbnail((limit, limit), THUMBNAIL_RESAMPLE)
                return str(imagehash.phash(img, hash_size=self.hash_size))
        except (UnidentifiedImageError, OSError, ValueError, SyntaxError) as e:
            raise DecodeError(f"Cannot decode image: {e}") from e


def hamming_distance(hash1: str, hash2: str) -> int:
    """
    Number of differing bits between two hex digests of equal length.

    Raises:
        HashLengthMismatchError: if the digests differ in length.
    """
    if len(hash1) != len(hash2):
        raise HashLengthMismatchError(
            f"Hashes have different lengths: {len(hash1)} vs {len(hash2)}"
        )
    if not hash1:
        return 0
    return bin(int(hash1, 16) ^ int(hash2, 16)).count("1")
