# main.py

"""Entry point for the GearZone headless catalog browser."""

import argparse
import asyncio
import logging
import sys

from src.config.logging_config import setup_logging
from src.config.settings import Settings

logger = logging.getLogger("gearzone.main")


def _build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for the CLI."""
    parser = argparse.ArgumentParser(
        prog="gearzone",
        description="Browse, filter and sort the GearZone catalog.",
        epilog=f"Sort options: {', '.join(Settings.SORT_OPTIONS)}",
    )
    parser.add_argument(
        "-d",
        "--data",
        default=None,
        dest="data_path",
        help="JSON seed file for the store (default: data/catalog.json).",
    )
    parser.add_argument(
        "-c",
        "--category",
        default=Settings.ALL_CATEGORIES,
        help="Category name (default: All).",
    )
    parser.add_argument(
        "-q",
        "--search",
        default="",
        help="Case-insensitive text search.",
    )
    parser.add_argument(
        "--min-price", type=float, default=0.0, dest="min_price",
    )
    parser.add_argument(
        "--max-price",
        type=float,
        default=float("inf"),
        dest="max_price",
    )
    parser.add_argument(
        "--min-rating",
        type=float,
        default=0.0,
        dest="min_rating",
        help="Minimum average rating, 0-5.",
    )
    parser.add_argument(
        "--in-stock",
        action="store_true",
        default=False,
        dest="in_stock",
        help="Only show products in stock.",
    )
    parser.add_argument(
        "-s",
        "--sort",
        choices=Settings.SORT_OPTIONS,
        default=Settings.DEFAULT_SORT,
        dest="sort_by",
    )
    parser.add_argument(
        "-n",
        "--limit",
        type=int,
        default=None,
        help=f"Catalog page size (default: {Settings.PAGE_LIMIT}).",
    )
    parser.add_argument(
        "-u",
        "--user",
        default=None,
        dest="user_id",
        help="Also report this user's unread notification count.",
    )
    parser.add_argument(
        "-f",
        "--format",
        choices=["json", "table"],
        default="table",
        dest="output_format",
        help="Output format (default: table).",
    )
    return parser


def main() -> None:
    """Parse arguments and run a headless browse."""
    from src.cli.runner import cli_browse

    log_file = setup_logging()
    logger.info("gearzone starting, log file: %s", log_file)

    args = _build_parser().parse_args()
    try:
        exit_code = asyncio.run(
            cli_browse(
                data_path=args.data_path,
                category=args.category,
                search=args.search,
                min_price=args.min_price,
                max_price=args.max_price,
                min_rating=args.min_rating,
                in_stock=args.in_stock,
                sort_by=args.sort_by,
                output_format=args.output_format,
                limit=args.limit,
                user_id=args.user_id,
            )
        )
    except Exception:
        logger.critical("Fatal error during browse", exc_info=True)
        raise
    finally:
        logger.info("gearzone shutting down")
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
