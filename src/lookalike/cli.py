#!/usr/bin/env python3
"""
Lookalike CLI — Command line interface for duplicate and similar image detection.
Implements the same core engine as library users get, with console-based progress.
Nothing is ever modified or deleted: the result is a report of groups.
"""
from __future__ import annotations
import argparse
import json
import os
import signal
import sys
import time
from typing import List, NoReturn, Optional, Tuple
import logging

logging.basicConfig(
    level=logging.ERROR,
    format="%(levelname)-8s | %(name)-25s | %(message)s"
)

# === EARLY DEPENDENCY VALIDATION ===
_MISSING_DEPS = []
try:
    import PIL
except ImportError:
    _MISSING_DEPS.append("Pillow")

try:
    import imagehash
except ImportError:
    _MISSING_DEPS.append("ImageHash")

try:
    import xxhash
except ImportError:
    _MISSING_DEPS.append("xxhash")

try:
    import requests
except ImportError:
    _MISSING_DEPS.append("requests")

if _MISSING_DEPS:
    print("❌ Missing required dependencies:", file=sys.stderr)
    print(f"   pip install {' '.join(_MISSING_DEPS)}", file=sys.stderr)
    sys.exit(1)

# === NORMAL IMPORTS (after validation) ===
from lookalike.core.cancellation import CancellationToken
from lookalike.core.errors import ScanCancelled, SourceAccessError
from lookalike.core.models import (
    DuplicateGroup, FileListSource, HashAlgorithmName, LocalSource, MAX_THRESHOLD, RemoteSource, ScanParams,
    ScanProgress, ScanStats, SearchMode, Source
)
from lookalike.commands import ScanCommand
from lookalike.utils.convert_utils import ConvertUtils
from lookalike.aliases import (
    HASH_ALIASES, HASH_CHOICES, HASH_HELP_TEXT, MODE_ALIASES, MODE_CHOICES, MODE_HELP_TEXT,
    THRESHOLD_HELP_TEXT, EPILOG_TEXT
)

TOKEN_ENV_VAR = "LOOKALIKE_YANDEX_TOKEN"

EXIT_CANCELLED = 130


class CLIApplication:
    """Main CLI application controller."""

    def __init__(self):
        self.start_time: float = time.time()
        self.verbose: bool = False
        self.quiet: bool = False
        self.cancel_token = CancellationToken()

        # Fix encoding for Windows consoles to prevent UnicodeEncodeError
        for stream in (sys.stdout, sys.stderr):
            if hasattr(stream, "reconfigure"):
                stream.reconfigure(encoding='utf-8')

    @staticmethod
    def parse_args(args=None) -> argparse.Namespace:
        """Parse command-line arguments."""
        parser = argparse.ArgumentParser(
            prog="lookalike",
            description="Lookalike — find duplicate and visually similar images",
            formatter_class=argparse.RawTextHelpFormatter,
            epilog=EPILOG_TEXT
        )

        # Sources (exactly one)
        source = parser.add_mutually_exclusive_group(required=True)
        source.add_argument(
            "--input", "-i",
            type=str,
            help="Input directory to scan for images"
        )
        source.add_argument(
            "--files-from",
            type=str,
            metavar="FILE",
            dest="files_from",
            help="Read image paths (one per line) from FILE, or from stdin with '-'"
        )
        source.add_argument(
            "--yandex",
            action="store_true",
            help=f"Scan Yandex Disk (token from --token or ${TOKEN_ENV_VAR})"
        )

        # Remote options
        parser.add_argument(
            "--folder",
            action="append",
            default=[],
            metavar="PATH",
            dest="folders",
            help="Yandex Disk folder to scan (repeatable). Default: the whole disk"
        )
        parser.add_argument(
            "--token",
            type=str,
            default=None,
            help="Yandex Disk OAuth token"
        )

        # Search options
        parser.add_argument(
            "--mode",
            choices=MODE_CHOICES,
            default="exact",
            type=str,
            help=MODE_HELP_TEXT
        )
        parser.add_argument(
            "--threshold", "-t",
            default=10,
            type=int,
            metavar="N",
            help=THRESHOLD_HELP_TEXT
        )
        parser.add_argument(
            "--like",
            type=str,
            default=None,
            metavar="IMAGE",
            help="With --mode similar: only report images similar to this local image"
        )
        parser.add_argument(
            "--hash",
            choices=HASH_CHOICES,
            default="sha256",
            type=str,
            dest="hash_algorithm",
            help=HASH_HELP_TEXT
        )

        # Output options
        parser.add_argument(
            "--json",
            action="store_true",
            help="Print the result as JSON"
        )
        parser.add_argument(
            "--quiet", "-q",
            action="store_true",
            help="Suppress progress and non-essential output"
        )
        parser.add_argument(
            "--verbose", "-v",
            action="store_true",
            help="Show debug logging and detailed statistics"
        )

        return parser.parse_args(args)

    def validate_args(self, args: argparse.Namespace) -> None:
        """Reject inconsistent argument combinations before any scanning starts."""
        if not args.yandex and (args.folders or args.token):
            self.error_exit("--folder and --token can only be used with --yandex")

        if args.input is not None:
            if not os.path.exists(args.input):
                self.error_exit(f"Directory not found: {args.input}")
            if not os.path.isdir(args.input):
                self.error_exit(f"Path is not a directory: {args.input}")

        if args.files_from and args.files_from != "-" and not os.path.isfile(args.files_from):
            self.error_exit(f"File list not found: {args.files_from}")

        if args.yandex and not (args.token or os.environ.get(TOKEN_ENV_VAR, "").strip()):
            self.error_exit(f"A Yandex Disk token is required: use --token or set ${TOKEN_ENV_VAR}")

        if not 0 <= args.threshold <= MAX_THRESHOLD:
            self.error_exit(f"Threshold must be between 0 and {MAX_THRESHOLD}")

        if args.like is not None:
            if args.mode != "similar":
                self.error_exit("--like can only be used with --mode similar")
            if not os.path.isfile(args.like):
                self.error_exit(f"Reference image not found: {args.like}")

    @staticmethod
    def read_file_list(location: str) -> List[str]:
        """Non-empty lines of a file list ('-' reads stdin)."""
        if location == "-":
            lines = sys.stdin.read().splitlines()
        else:
            with open(location, "r", encoding="utf-8") as f:
                lines = f.read().splitlines()
        return [line.strip() for line in lines if line.strip()]

    def create_source(self, args: argparse.Namespace) -> Source:
        if args.yandex:
            token = args.token or os.environ.get(TOKEN_ENV_VAR, "")
            return RemoteSource(token=token, folder_paths=tuple(args.folders))
        if args.files_from:
            try:
                paths = self.read_file_list(args.files_from)
            except OSError as e:
                self.error_exit(f"Cannot read file list: {e}")
            return FileListSource(paths=tuple(paths))
        return LocalSource(root_dir=os.path.abspath(args.input))

    def create_params(self, args: argparse.Namespace) -> ScanParams:
        """Create ScanParams from CLI arguments."""
        try:
            mode = MODE_ALIASES.get(args.mode, SearchMode.EXACT)
            hash_algorithm = HASH_ALIASES.get(args.hash_algorithm, HashAlgorithmName.SHA256)

            return ScanParams(
                source=self.create_source(args),
                mode=mode,
                threshold=args.threshold,
                hash_algorithm=hash_algorithm,
                reference_image=args.like,
            )
        except ValueError as e:
            self.error_exit(f"Parameter error: {e}")

    def progress_callback(self, progress: ScanProgress) -> None:
        """Render one progress line on stderr, overwritten in place."""
        if self.quiet:
            return

        line = f"\r  [{progress.phase.display_name}] {progress.processed_files}/{progress.total_files}"
        if progress.directories_found is not None:
            line += f" | {progress.directories_found} dirs"
        eta = ConvertUtils.format_eta(progress.estimated_remaining_ms)
        if eta:
            line += f" | {eta}"
        speed = ConvertUtils.format_speed(progress.bytes_per_second)
        if speed:
            line += f" | {speed}"
        sys.stderr.write(line.ljust(60))
        sys.stderr.flush()

    def handle_sigint(self, signum, frame) -> None:
        """First Ctrl+C requests cooperative cancellation; the scan unwinds at its next check."""
        self.cancel_token.cancel()

    def run_scan(self, params: ScanParams) -> Tuple[List[DuplicateGroup], ScanStats]:
        """Execute the scan workflow."""
        command = ScanCommand()
        if self.verbose:
            print(f"Finding images (mode: {params.mode.display_name})...")

        try:
            groups, stats = command.execute(
                params,
                progress_callback=self.progress_callback,
                cancel_token=self.cancel_token
            )
        except ScanCancelled:
            sys.stderr.write("\n")
            print("Scan cancelled", file=sys.stderr)
            sys.exit(EXIT_CANCELLED)
        except SourceAccessError as e:
            self.error_exit(f"Cannot access source: {e}")
        except (RuntimeError, ValueError) as e:
            self.error_exit(f"Scan failed: {e}")

        if not self.quiet:
            sys.stderr.write("\n")
        if self.verbose:
            print()
            print(stats.summary())
        return groups, stats

    def output_results(self, groups: List[DuplicateGroup]) -> None:
        """Output groups as plain text in the order the core returned them."""
        if not groups:
            print("No duplicate groups found.")
            return

        total_files = sum(len(g.files) for g in groups)
        print(f"\nFound {len(groups)} groups ({total_files} files)")

        for idx, group in enumerate(groups, 1):
            size_str = ConvertUtils.bytes_to_human(group.total_size)
            print(f"\n📁 Group {idx} | Size: {size_str} | Files: {len(group.files)}")
            for file in group.files:
                origin = f" <{file.entry.origin_url}>" if file.entry.origin_url else ""
                print(f"   {file.path} [{ConvertUtils.format_file_size(file.size)}]{origin}")

    @staticmethod
    def output_json(groups: List[DuplicateGroup], stats: ScanStats) -> None:
        data = {
            "directories": stats.directories_found,
            "files": stats.files_found,
            "groups": [
                {
                    "hash": group.hash,
                    "files": [
                        {
                            "path": file.path,
                            "size": file.size,
                            "origin_url": file.entry.origin_url,
                        }
                        for file in group.files
                    ],
                }
                for group in groups
            ],
        }
        print(json.dumps(data, indent=2, ensure_ascii=False))

    @staticmethod
    def error_exit(message: str, code: int = 1) -> NoReturn:
        """Print error and exit."""
        print(f"❌ Error: {message}", file=sys.stderr)
        sys.exit(code)

    def run(self, argv: Optional[List[str]] = None) -> None:
        """Run one scan from argv and print the report."""
        args = self.parse_args(argv)
        self.verbose = args.verbose
        self.quiet = args.quiet
        if self.verbose:
            logging.getLogger("lookalike").setLevel(logging.DEBUG)

        self.validate_args(args)
        params = self.create_params(args)

        previous_handler = signal.signal(signal.SIGINT, self.handle_sigint)
        try:
            groups, stats = self.run_scan(params)
        finally:
            signal.signal(signal.SIGINT, previous_handler)

        if args.json:
            self.output_json(groups, stats)
        elif not self.quiet:
            self.output_results(groups)

        elapsed = time.time() - self.start_time
        if self.verbose:
            print(f"\n✅ Completed in {elapsed:.2f} seconds")


def main() -> None:
    """Application entry point."""
    app = CLIApplication()
    try:
        app.run()
    except KeyboardInterrupt:
        print("\nScan cancelled", file=sys.stderr)
        sys.exit(EXIT_CANCELLED)
    except Exception as e:
        if os.environ.get("DEBUG"):
            raise
        print(f"❌ Unexpected error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
