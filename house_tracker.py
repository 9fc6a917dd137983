"""CLI entrypoint for the HouseTracker web front-end."""

from __future__ import annotations

import argparse
import logging
import os
import sys
from pathlib import Path

from housetracker.cache import QueryCache
from housetracker.client import HouseApiClient
from housetracker.errors import RemoteError
from housetracker.export import export_listings_to_xlsx
from housetracker.web import create_app

logger = logging.getLogger(__name__)


def configure_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="HouseTracker web front-end")
    parser.add_argument(
        "--api-url",
        default=os.getenv("HOUSE_API_URL", "http://localhost:3000"),
        help="base URL of the house API (overrides HOUSE_API_URL env var)",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=float(os.getenv("HOUSE_API_TIMEOUT", "10")),
        help="seconds to wait for the house API",
    )
    parser.add_argument(
        "--stale-time",
        type=float,
        default=float(os.getenv("HOUSE_CACHE_STALE_SECONDS", "30")),
        help="seconds a cached response is served before being refetched",
    )
    parser.add_argument("--host", default=os.getenv("HOST", "127.0.0.1"))
    parser.add_argument("--port", type=int, default=int(os.getenv("PORT", "5000")))
    parser.add_argument(
        "--export",
        type=Path,
        metavar="PATH",
        help="write all listings to an .xlsx workbook and exit",
    )
    parser.add_argument("--verbose", action="store_true", help="enable debug logging")
    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.verbose)

    client = HouseApiClient(base_url=args.api_url, timeout=args.timeout)

    if args.export:
        try:
            listings = client.fetch_all()
        except RemoteError:
            logger.exception("Could not load listings from %s", args.api_url)
            return 1
        export_listings_to_xlsx(listings, args.export)
        return 0

    cache = QueryCache(stale_time=args.stale_time)
    app = create_app(client, cache)
    logger.info("Serving on http://%s:%d (API at %s)", args.host, args.port, args.api_url)
    app.run(host=args.host, port=args.port, threaded=True)
    return 0


if __name__ == "__main__":
    sys.exit(main())
