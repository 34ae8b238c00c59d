from __future__ import annotations

import argparse
import logging
import os
from typing import Optional, Tuple

import httpx
from pydantic import ValidationError

from harvester.config import load_settings
from harvester.models.harvest import CatalogRunParams, DirectoryRunParams

from .base import CatalogItem, Organization
from .context import HarvestContext, HarvestStats
from .errors import HarvestError
from .fetcher import PageFetcher
from .pagination import FixedSetCursor
from .pipeline import write_csv
from .spiders.catalog_spider import CatalogSpider
from .spiders.directory_spider import DirectorySpider

logger = logging.getLogger(__name__)


def run_catalog(
    params: CatalogRunParams, out_path: str, *, client: Optional[httpx.Client] = None
) -> Tuple[str, HarvestStats]:
    """Harvest the catalog pages into a CSV at out_path.

    The file is written only after every worker has finished; a fatal fetch
    error leaves no file behind.
    """
    with PageFetcher(headers={"User-Agent": params.user_agent}, client=client) as fetcher:
        ctx = HarvestContext(fetcher=fetcher)
        spider = CatalogSpider(concurrency=params.concurrency)
        spider.harvest(ctx, FixedSetCursor(params.urls))
    records = ctx.aggregator.drain()
    path = write_csv(records, out_path, CatalogItem.HEADERS)
    logger.info("Catalog harvest wrote %d rows to %s (%s)", len(records), path, ctx.stats.to_dict())
    return path, ctx.stats


def run_directory(
    params: DirectoryRunParams, out_path: str, *, client: Optional[httpx.Client] = None
) -> Tuple[str, HarvestStats]:
    """Harvest public organizations from a directory into a CSV at out_path."""
    with PageFetcher(headers={"User-Agent": params.user_agent}, client=client) as fetcher:
        ctx = HarvestContext(fetcher=fetcher)
        spider = DirectorySpider(
            params.domain,
            page_size=params.page_size,
            start_page=params.start_page,
            enrich_concurrency=params.enrich_concurrency,
        )
        spider.harvest(ctx)
    records = ctx.aggregator.drain()
    path = write_csv(records, out_path, Organization.HEADERS)
    logger.info("Directory harvest wrote %d rows to %s (%s)", len(records), path, ctx.stats.to_dict())
    return path, ctx.stats


def build_parser() -> argparse.ArgumentParser:
    settings = load_settings()
    parser = argparse.ArgumentParser(prog="harvester", description="Harvest paginated sources into CSV")
    parser.add_argument(
        "--log-level",
        default="INFO",
        type=str.upper,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Logging level",
    )
    sub = parser.add_subparsers(dest="cmd", required=True)

    cat = sub.add_parser("catalog", help="Scrape product listing pages")
    cat.add_argument("urls", nargs="*", default=[settings.catalog_url], help="Listing page URLs")
    cat.add_argument("--concurrency", type=int, default=settings.concurrency, help="Worker threads")
    cat.add_argument("--out", default=os.path.join(settings.out_dir, "output.csv"), help="Output CSV path")

    dr = sub.add_parser("directory", help="Harvest public organizations from a Campus Labs directory")
    dr.add_argument("--domain", default=settings.domain, help="Directory base URL")
    dr.add_argument("--page-size", type=int, default=settings.page_size, help="Items per listing page")
    dr.add_argument("--start-page", type=int, default=settings.start_page, help="First page index")
    dr.add_argument("--enrich-concurrency", type=int, default=1, help="Parallel detail fetches per page")
    dr.add_argument("--out", default=os.path.join(settings.out_dir, "organizations.csv"), help="Output CSV path")

    parser.set_defaults(user_agent=settings.user_agent)
    return parser


def main(argv: Optional[list] = None) -> int:
    try:
        parser = build_parser()
    except RuntimeError as exc:
        # malformed HARVEST_* setting
        logging.basicConfig(format="[%(levelname)s] %(name)s: %(message)s")
        logger.error("Invalid settings: %s", exc)
        return 2
    args = parser.parse_args(argv)
    logging.basicConfig(level=args.log_level, format="[%(levelname)s] %(name)s: %(message)s")

    try:
        if args.cmd == "catalog":
            params = CatalogRunParams(urls=args.urls, concurrency=args.concurrency, user_agent=args.user_agent)
            path, _ = run_catalog(params, args.out)
        elif args.cmd == "directory":
            params = DirectoryRunParams(
                domain=args.domain,
                page_size=args.page_size,
                start_page=args.start_page,
                enrich_concurrency=args.enrich_concurrency,
                user_agent=args.user_agent,
            )
            path, _ = run_directory(params, args.out)
        else:
            parser.error("unknown command")
            return 2
    except ValidationError as exc:
        logger.error("Invalid parameters: %s", exc)
        return 2
    except HarvestError as exc:
        logger.error("Harvest failed: %s", exc)
        return 1

    print(path)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
