from lookalike.core.models import HashAlgorithmName, SearchMode

MODE_ALIASES = {
    "exact": SearchMode.EXACT,
    "similar": SearchMode.SIMILAR,
}

MODE_CHOICES = list(MODE_ALIASES.keys())

MODE_HELP_TEXT = (
    "Search mode:\n"
    "  exact    : Byte-identical files (remote sha256/md5 used when every file has one)\n"
    "  similar  : Visually similar images (perceptual hash, see --threshold)\n"
    "Example:\n"
    "  %(prog)s -i ~/Pictures --mode similar --threshold 8"
)

HASH_ALIASES = {
    "sha256": HashAlgorithmName.SHA256,
    "xxh128": HashAlgorithmName.XXH128,
}

HASH_CHOICES = list(HASH_ALIASES.keys())

HASH_HELP_TEXT = (
    "Content hash for exact mode:\n"
    "  sha256   : Cryptographic, matches remote sha256 metadata (default)\n"
    "  xxh128   : Much faster, non-cryptographic\n"
)

THRESHOLD_HELP_TEXT = (
    "Maximum Hamming distance between similar images, 0..256 (default: 10).\n"
    "0 = visually identical, 5-10 = near-duplicates, >20 = loosely similar"
)

EPILOG_TEXT = """
Examples:
  Basic usage - find exact duplicates in the Pictures folder
  %(prog)s -i ~/Pictures

  Find visually similar images
  %(prog)s -i ~/Pictures --mode similar

  Find images that look like one reference picture
  %(prog)s -i ~/Pictures --mode similar --like ~/Pictures/cat.jpg

  Scan a list of files produced by another tool
  find /mnt/photos -name '*.jpg' | %(prog)s --files-from -

  Scan two Yandex Disk folders (token taken from LOOKALIKE_YANDEX_TOKEN)
  %(prog)s --yandex --folder /Photos --folder /Camera --json > report.json
"""
