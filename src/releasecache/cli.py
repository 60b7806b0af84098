# src/releasecache/cli.py

import argparse
import sys
from typing import Any, Dict, List, Optional

from releasecache import log_utils
from releasecache.cache import FileCacheStore
from releasecache.config import FetcherConfig, load_config
from releasecache.constants import (
    DEFAULT_DOWNLOAD_CACHE_DURATION,
    OPTION_DOWNLOAD_CACHE,
    RELEASE_INFO_CACHE_BIN,
)
from releasecache.exceptions import ReleaseCacheError
from releasecache.fetcher import ArtifactFetcher


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="releasecache - fetch release artifacts through a download cache"
    )
    parser.add_argument(
        "--config",
        help="Path to a releasecache.yaml file or the directory containing it",
    )
    parser.add_argument("--log-level", help="Log level (DEBUG, INFO, WARNING, ...)")
    subparsers = parser.add_subparsers(dest="command")

    fetch_parser = subparsers.add_parser("fetch", help="Download a file or copy a local one")
    fetch_parser.add_argument("url", help="URL or local path to fetch")
    fetch_parser.add_argument(
        "-o", "--output", dest="destination", help="Destination file path"
    )
    fetch_parser.add_argument(
        "--cache",
        action="store_true",
        default=None,
        help="Use the download cache even if it is disabled in the configuration",
    )
    fetch_parser.add_argument(
        "--cache-duration",
        type=int,
        default=DEFAULT_DOWNLOAD_CACHE_DURATION,
        help="Maximum age in seconds of a cached download (0 bypasses the cache)",
    )

    subparsers.add_parser(
        "clear-cache", help="Remove cached downloads and cached release info"
    )
    subparsers.add_parser(
        "validate", help="Check that a download tool (wget or curl) is installed"
    )
    return parser


def _load_options(args: argparse.Namespace) -> Dict[str, Any]:
    options = dict(load_config(args.config))
    if getattr(args, "cache", None):
        options[OPTION_DOWNLOAD_CACHE] = True
    return options


def main(argv: Optional[List[str]] = None) -> int:
    """
    Entry point for the releasecache command-line interface.

    Subcommands:
        fetch: retrieve a URL (or copy a local path), optionally through the download cache.
        clear-cache: delete cached downloads and cached release info.
        validate: check that wget or curl is available.

    Returns:
        int: Process exit status.
    """
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.log_level:
        log_utils.set_log_level(args.log_level)

    if not args.command:
        parser.print_help()
        return 1

    try:
        options = _load_options(args)
        fetcher = ArtifactFetcher(config=FetcherConfig.from_options(options))

        if args.command == "fetch":
            path = fetcher.fetch_or_raise(
                args.url, args.destination, args.cache_duration
            )
            # Keep the file the user asked for
            fetcher.registered_for_deletion.clear()
            log_utils.logger.info(f"Saved {path}")
        elif args.command == "clear-cache":
            removed = fetcher.clear_download_cache()
            FileCacheStore(fetcher.cache_dir).clear_bin(RELEASE_INFO_CACHE_BIN)
            log_utils.logger.info(
                f"Removed {removed} cached download(s) and cached release info"
            )
        elif args.command == "validate":
            fetcher.validate()
            log_utils.logger.info("Download tools available.")
    except ReleaseCacheError as e:
        log_utils.logger.error(str(e))
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
