#!/usr/bin/env python3
"""
CLI for watching a directory for line-count changes.

Usage:
    python -m src.cli /path/to/folder "*.txt"
    python -m src.cli /path/to/folder "*.log" --interval-ms 5000 --format json
"""

import argparse
import logging
import os
import signal
import sys
import threading
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv

from src.linewatch import (
    ConsoleReporter,
    DirectoryWatcher,
    WatcherAlreadyRunningError,
    WatcherConfig,
    validate_mask,
)
from src.linewatch.config import (
    DEFAULT_INTERVAL_MS,
    DEFAULT_LOCK_WAIT_MS,
    DEFAULT_RETRY_INTERVAL_MS,
)


logger = logging.getLogger("cli")


class GracefulShutdown:
    """Set an event on SIGINT/SIGTERM so the main loop can wait on it."""

    SIGNALS = (signal.SIGINT, signal.SIGTERM)

    def __init__(self):
        self.requested = threading.Event()
        for signum in self.SIGNALS:
            signal.signal(signum, self._handler)

    def _handler(self, signum, frame):
        logger.info(f"Received {signal.Signals(signum).name}, stopping...")
        self.requested.set()

    def wait(self, timeout: float) -> bool:
        return self.requested.wait(timeout=timeout)


def _env_int(name: str, default: Optional[int]) -> Optional[int]:
    value = os.environ.get(name)
    if value is None or value == "":
        return default
    try:
        return int(value)
    except ValueError:
        raise SystemExit(f"{name} must be an integer, got {value!r}")


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser. Defaults come from LINEWATCH_* variables."""
    parser = argparse.ArgumentParser(
        prog="linewatch",
        description="Report added, modified and deleted files and their line counts",
    )
    parser.add_argument("folder", help="Directory to watch (top level only)")
    parser.add_argument("mask", help="File mask with * and ? wildcards, e.g. '*.txt'")
    parser.add_argument(
        "--interval-ms", type=int,
        default=_env_int("LINEWATCH_INTERVAL_MS", DEFAULT_INTERVAL_MS),
        help=f"Scan interval in ms (default: {DEFAULT_INTERVAL_MS})",
    )
    parser.add_argument(
        "--lock-wait-ms", type=int,
        default=_env_int("LINEWATCH_LOCK_WAIT_MS", DEFAULT_LOCK_WAIT_MS),
        help=f"How long a locked file is retried in ms (default: {DEFAULT_LOCK_WAIT_MS})",
    )
    parser.add_argument(
        "--retry-interval-ms", type=int,
        default=_env_int("LINEWATCH_RETRY_INTERVAL_MS", DEFAULT_RETRY_INTERVAL_MS),
        help=f"Pause between attempts on a locked file in ms (default: {DEFAULT_RETRY_INTERVAL_MS})",
    )
    parser.add_argument(
        "--workers", type=int,
        default=_env_int("LINEWATCH_WORKERS", None),
        help="Probe worker threads (default: executor default)",
    )
    parser.add_argument(
        "--encoding", default=os.environ.get("LINEWATCH_ENCODING", "utf-8"),
        help="Text encoding for counting lines (default: utf-8)",
    )
    parser.add_argument(
        "--no-touch-events", action="store_true",
        help="Do not report timestamp-only changes as '+0' modifications",
    )
    parser.add_argument(
        "--halt-on-error", action="store_true",
        help="Stop watching when the directory cannot be listed",
    )
    parser.add_argument(
        "--format", default="text", choices=ConsoleReporter.FORMATS,
        help="Output format (default: text)",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    return parser


def build_config(args: argparse.Namespace) -> WatcherConfig:
    """
    Validate arguments and turn them into a WatcherConfig.

    Raises:
        ValueError: If the folder or mask is invalid
    """
    folder = Path(args.folder).resolve()
    if not folder.exists():
        raise ValueError(f"Folder {folder} does not exist.")
    if not folder.is_dir():
        raise ValueError(f"{folder} is not a directory.")

    return WatcherConfig(
        directory=folder,
        mask=validate_mask(args.mask),
        interval_ms=args.interval_ms,
        lock_wait_ms=args.lock_wait_ms,
        retry_interval_ms=args.retry_interval_ms,
        max_workers=args.workers,
        encoding=args.encoding,
        report_touch=not args.no_touch_events,
        halt_on_scan_error=args.halt_on_error,
    )


def cmd_watch(config: WatcherConfig, fmt: str = "text") -> int:
    """Run the watcher until a shutdown signal arrives or it halts itself."""
    shutdown = GracefulShutdown()
    watcher = DirectoryWatcher(config, reporter=ConsoleReporter(fmt=fmt))

    try:
        watcher.start()
    except WatcherAlreadyRunningError as e:
        print(e)
        return 1

    print("Starting monitoring. Press Ctrl+C to exit.", flush=True)

    with watcher:
        while watcher.is_running and not shutdown.wait(0.5):
            pass

    logger.info("Watcher stopped")
    return 1 if watcher.last_error is not None else 0


def main(argv: Optional[List[str]] = None) -> int:
    load_dotenv()

    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    try:
        config = build_config(args)
    except ValueError as e:
        print(e)
        return 1

    return cmd_watch(config, fmt=args.format)


if __name__ == "__main__":
    sys.exit(main())
