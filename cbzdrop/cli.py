"""
cbzdrop CLI - thin entrypoint.

Commands:
- cbzdrop [--config PATH] [--once] [--dry-run]   watch the configured folder
- cbzdrop convert ARCHIVE [--output DIR]          convert one archive, no delivery

Exit Codes:
===========
- 0: Success (including shutdown via Ctrl-C)
- 1: One or more archives failed, or a fatal runtime error
- 2: Configuration error
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from . import __version__
from .config.errors import ConfigError
from .config.loader import default_config_path, load_settings
from .config.settings import DEFAULT_SIZE_LIMIT_MB
from .delivery.transport import NullDeliverer, SmtpDeliverer
from .packaging.splitter import MEGABYTE
from .persistence.ledger import ProcessedLedger
from .pipeline.models import PipelineResult, PipelineStatus
from .pipeline.runner import ArchivePipeline, summarize
from .pipeline.service import WatchService, build_detector, run_once
from .watchfolders.errors import WatchFolderError

logger = logging.getLogger("cbzdrop")

EXIT_OK = 0
EXIT_FAILURES = 1
EXIT_CONFIG = 2

LOG_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"


def configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format=LOG_FORMAT,
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def _exit_code_for(results: List[PipelineResult], timed_out: int = 0) -> int:
    failed = [r for r in results if r.status in (PipelineStatus.FAILED, PipelineStatus.PARTIAL)]
    return EXIT_FAILURES if failed or timed_out else EXIT_OK


def cmd_watch(args: argparse.Namespace) -> int:
    """
    Watch the configured directory.

    Exit codes:
        0: Clean shutdown, or --once with no failed archive
        1: --once with at least one failed, partial or timed-out archive, or fatal error
        2: Configuration missing or invalid
    """
    try:
        settings = load_settings(args.config)
    except ConfigError as e:
        print(f"ERROR: {e.message}", file=sys.stderr)
        for problem in e.problems:
            print(f"  - {problem}", file=sys.stderr)
        return EXIT_CONFIG

    if args.dry_run:
        deliverer = NullDeliverer()
    elif settings.smtp is None:
        print("ERROR: [smtp] section is required unless --dry-run is given", file=sys.stderr)
        return EXIT_CONFIG
    else:
        deliverer = SmtpDeliverer(settings.smtp)

    ledger = ProcessedLedger(settings.ledger.path)
    pipeline = ArchivePipeline.from_settings(settings, ledger, deliverer)
    logger.info(f"Ledger: {ledger.ledger_path}")
    logger.info(f"Output: {pipeline.run_dir}")

    if args.once:
        detector = build_detector(settings, process_existing=True)
        try:
            results = run_once(detector, pipeline)
        except WatchFolderError as e:
            logger.error(str(e))
            return EXIT_FAILURES
        timed_out = sorted(detector.get_timed_out_paths())
        for path in timed_out:
            logger.error(f"Never became stable, not processed: {path}")
        counts = summarize(results)
        logger.info(
            "Done: "
            + ", ".join(f"{count} {status.lower()}" for status, count in counts.items())
            + f", {len(timed_out)} timed out"
        )
        return _exit_code_for(results, len(timed_out))

    service = WatchService(build_detector(settings), pipeline)
    try:
        service.start()
    except WatchFolderError as e:
        logger.error(str(e))
        return EXIT_FAILURES

    try:
        while not service.wait(1.0):
            pass
    except KeyboardInterrupt:
        logger.info("Stopping (waiting for the archive in progress)...")
    finally:
        service.stop()

    return EXIT_OK


def cmd_convert(args: argparse.Namespace) -> int:
    """
    Convert one archive into EPUB packages without ledger or delivery.

    Exit codes:
        0: Every package was written
        1: Extraction or packaging failed, or the archive holds no images
    """
    source = Path(args.archive).expanduser().resolve()
    output_dir = Path(args.output).expanduser().resolve() if args.output else source.parent

    pipeline = ArchivePipeline(
        output_root=output_dir,
        size_budget_bytes=args.size_limit_mb * MEGABYTE,
    )
    result = pipeline.convert_archive(source, output_dir)

    for part in result.parts:
        if part.package_path:
            print(part.package_path)
    for error in result.errors:
        print(f"ERROR: {error}", file=sys.stderr)

    return EXIT_OK if result.status == PipelineStatus.COMPLETED else EXIT_FAILURES


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="cbzdrop",
        description="Watch a folder for CBZ comics, convert them to EPUB and mail them",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=f"""
Examples:
  %(prog)s                          # Watch using {default_config_path()}
  %(prog)s --once --dry-run         # Convert what is there now, send nothing
  %(prog)s convert "Vol 01.cbz"     # One-off conversion next to the archive
        """,
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        metavar="PATH",
        help="Config file (default: $CBZDROP_CONFIG or the user config directory)",
    )
    parser.add_argument(
        "--once",
        action="store_true",
        help="Process the archives currently in the folder, then exit",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Build packages but do not send them",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Debug logging",
    )
    parser.set_defaults(func=cmd_watch)

    subparsers = parser.add_subparsers(dest="command", help="Command to execute")

    parser_convert = subparsers.add_parser(
        "convert",
        help="Convert one archive without watching, ledger or delivery",
    )
    parser_convert.add_argument("archive", help="Path to the .cbz archive")
    parser_convert.add_argument(
        "-o", "--output",
        default=None,
        metavar="DIR",
        help="Output directory (default: next to the archive)",
    )
    parser_convert.add_argument(
        "--size-limit-mb",
        type=int,
        default=DEFAULT_SIZE_LIMIT_MB,
        metavar="N",
        help=f"Maximum image size per package in MB (default: {DEFAULT_SIZE_LIMIT_MB})",
    )
    parser_convert.set_defaults(func=cmd_convert)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Parse arguments, configure logging and dispatch."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if getattr(args, "size_limit_mb", 1) <= 0:
        parser.error("--size-limit-mb must be positive")

    configure_logging(args.verbose)

    try:
        return args.func(args)
    except KeyboardInterrupt:
        return EXIT_OK
    except Exception as e:
        logger.critical(f"Fatal error: {e}", exc_info=True)
        return EXIT_FAILURES


if __name__ == "__main__":
    sys.exit(main())
