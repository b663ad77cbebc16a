"""Command-line entry point: optimize-images [webp|avif] [FILE ...]."""
import argparse
import logging
import signal
import sys
import threading
from pathlib import Path
from typing import Optional

from optimizer import __version__
from optimizer.batch import run_batch
from optimizer.config import LOG_LEVEL, configure_logging
from optimizer.conversion.codec import MediaCodec
from optimizer.conversion.models import ConversionConfig, FileTask, OutputFormat
from optimizer.errors import ConfigError, RootNotFound
from optimizer.report import Reporter
from optimizer.scanner import collect_files, scan_tree

logger = logging.getLogger("optimizer.main")

EXIT_OK = 0
EXIT_ROOT_NOT_FOUND = 1
EXIT_BAD_CONFIG = 2
EXIT_INTERRUPTED = 130


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="optimize-images",
        description=(
            "Convert JPG/PNG/GIF images (and optionally videos) to WebP or AVIF beside the originals. "
            "Files that already have a converted sibling are skipped."
        ),
        epilog=(
            "Environment: ASSETS_DIR, WEBP_QUALITY, WEBP_EFFORT, AVIF_QUALITY, AVIF_EFFORT, "
            "LOSSLESS, INCLUDE_VIDEO, AVIF_ANIMATED_MAX_EFFORT, LOG_LEVEL (a .env file is also read)."
        ),
    )
    parser.add_argument(
        "targets",
        nargs="*",
        metavar="[webp|avif] FILE",
        help="output format (default webp), then optional files to convert instead of scanning ASSETS_DIR",
    )
    parser.add_argument("-l", "--lossless", action="store_true", default=None, help="encode losslessly (webp only)")
    parser.add_argument("-q", "--quality", type=int, help="quality 0-100 (overrides *_QUALITY)")
    parser.add_argument("-e", "--effort", type=int, help="effort 0-6 for webp, 0-9 for avif (overrides *_EFFORT)")
    parser.add_argument("-d", "--dir", type=Path, help="directory to scan (overrides ASSETS_DIR)")
    parser.add_argument("--video", action="store_true", default=None, help="also convert video files (needs ffmpeg)")
    parser.add_argument("-v", "--verbose", action="store_true", help="debug logging")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def split_targets(targets: list[str]) -> tuple[OutputFormat, list[Path]]:
    """First positional selects the format when it names one; the rest are files."""
    if targets and targets[0].lower() in {f.value for f in OutputFormat}:
        return OutputFormat(targets[0].lower()), [Path(t) for t in targets[1:]]
    return OutputFormat.WEBP, [Path(t) for t in targets]


class _StopOnInterrupt:
    """First Ctrl-C finishes the current file and stops; a second one aborts."""

    def __init__(self):
        self.event = threading.Event()
        self._previous = None

    def _handle(self, signum, frame):
        if self.event.is_set():
            raise KeyboardInterrupt
        logger.warning("Interrupt received, stopping after the current file (Ctrl-C again to abort)")
        self.event.set()

    def __enter__(self):
        if threading.current_thread() is threading.main_thread():
            self._previous = signal.signal(signal.SIGINT, self._handle)
        return self

    def __exit__(self, *exc):
        if self._previous is not None:
            signal.signal(signal.SIGINT, self._previous)
        return False


def main(argv: Optional[list[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging("DEBUG" if args.verbose else LOG_LEVEL)

    output_format, files = split_targets(args.targets)
    if files and args.dir is not None:
        parser.error("--dir cannot be combined with explicit files")

    try:
        config = ConversionConfig.from_env(
            output_format,
            files=tuple(files),
            input_root=args.dir,
            quality=args.quality,
            effort=args.effort,
            lossless=args.lossless,
            include_video=args.video,
        )
    except ConfigError as e:
        logger.error("Invalid configuration: %s", e)
        print(f"Invalid configuration: {e}", file=sys.stderr)
        return EXIT_BAD_CONFIG

    reporter = Reporter()
    reporter.print_config(config)

    try:
        if config.files:
            paths = collect_files(config.files, config.allowed_extensions)
        else:
            reporter.print_scanning(config.input_root)
            paths = list(scan_tree(config.input_root, config.allowed_extensions))
    except RootNotFound as e:
        logger.error("%s", e)
        print(f"{e}", file=sys.stderr)
        if not config.files:
            print("Tip: set the ASSETS_DIR environment variable or pass --dir.", file=sys.stderr)
        return EXIT_ROOT_NOT_FOUND

    tasks = [FileTask.for_path(p, config.output_format) for p in paths]
    reporter.print_found(len(tasks))
    if not tasks:
        return EXIT_OK

    try:
        with _StopOnInterrupt() as stop:
            stats = run_batch(
                tasks,
                config,
                MediaCodec(),
                on_outcome=reporter.print_outcome,
                should_cancel=stop.event.is_set,
            )
    except KeyboardInterrupt:
        logger.error("Aborted")
        return EXIT_INTERRUPTED

    reporter.print_summary(stats, config)
    return EXIT_INTERRUPTED if stats.cancelled else EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
