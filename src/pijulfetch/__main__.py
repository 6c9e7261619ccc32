"""Command line entry point.

Usage:
    pijulfetch normalize pijul+https://example.org/repo?channel=main
    pijulfetch fetch pijul+https://example.org/repo --cache-dir ~/.cache/pijulfetch
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

from pijulfetch.cache import FileFetchCache
from pijulfetch.errors import FetchError
from pijulfetch.fetcher import PijulFetcher
from pijulfetch.observability import StructuredLogger
from pijulfetch.policy import Policy
from pijulfetch.registry import InputSchemeRegistry, register_pijul
from pijulfetch.store import LocalContentStore

DEFAULT_ROOT = Path.home() / ".cache" / "pijulfetch"


def cmd_normalize(args: argparse.Namespace) -> None:
    registry = InputSchemeRegistry()
    scheme = register_pijul(registry)
    descriptor = registry.input_from_url(args.url)
    payload = {"attrs": descriptor.to_attrs(), "url": scheme.to_url(descriptor).to_string()}
    print(json.dumps(payload, indent=2, sort_keys=True))


def cmd_fetch(args: argparse.Namespace) -> None:
    policy = Policy(network_mode="offline" if args.offline else "online", program=args.program)
    registry = InputSchemeRegistry()
    register_pijul(registry)
    descriptor = registry.input_from_url(args.url)

    content_store = LocalContentStore(args.store_dir)
    logger = StructuredLogger()
    fetcher = PijulFetcher(
        cache=FileFetchCache(args.cache_dir, ttl_seconds=args.ttl),
        content_store=content_store,
        policy=policy,
        logger=logger,
    )
    try:
        result = fetcher.fetch(descriptor)
    finally:
        if args.log_file is not None:
            logger.to_json_lines(args.log_file)

    payload = {
        "artifact": str(result.artifact),
        "path": str(content_store.path_of(result.artifact)),
        "attrs": result.descriptor.to_attrs(),
    }
    print(json.dumps(payload, indent=2, sort_keys=True))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pijulfetch",
        description="Resolve Pijul repositories to content-addressed source trees",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    normalize_p = sub.add_parser("normalize", help="Print the normalized input for a URL")
    normalize_p.add_argument("url")

    fetch_p = sub.add_parser("fetch", help="Fetch a repository into the content store")
    fetch_p.add_argument("url")
    fetch_p.add_argument("--cache-dir", type=Path, default=DEFAULT_ROOT / "cache")
    fetch_p.add_argument("--store-dir", type=Path, default=DEFAULT_ROOT / "store")
    fetch_p.add_argument(
        "--ttl", type=int, default=3600, help="Seconds an unlocked entry stays fresh"
    )
    fetch_p.add_argument("--program", default="pijul", help="Pijul executable to run")
    fetch_p.add_argument("--offline", action="store_true", help="Only use cached results")
    fetch_p.add_argument("--log-file", type=Path, default=None, help="Write JSON-lines fetch log")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        if args.command == "normalize":
            cmd_normalize(args)
        elif args.command == "fetch":
            cmd_fetch(args)
    except FetchError as exc:
        print(json.dumps(exc.to_dict(), indent=2, sort_keys=True), file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
