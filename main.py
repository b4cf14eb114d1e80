# main.py

"""Entry point for the storefront catalog CLI."""

import argparse
import asyncio
import logging
import sys

from storefront.config.logging_config import setup_logging
from storefront.config.settings import Settings
from storefront.filters.catalog_views import CatalogView
from storefront.models.criteria import SortKey

logger = logging.getLogger("storefront.main")


def _build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for the CLI."""
    parser = argparse.ArgumentParser(
        prog="storefront",
        description="Browse the marketplace catalog and manage cart/wishlist.",
        epilog=f"API: {Settings.API_BASE_URL}",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Show INFO messages on the console.",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    browse = sub.add_parser("browse", help="List products matching filters.")
    browse.add_argument(
        "-c", "--category", default=None, help="Category id (default: All)."
    )
    browse.add_argument("--min-price", default=None, dest="min_price")
    browse.add_argument("--max-price", default=None, dest="max_price")
    browse.add_argument(
        "-q", "--search", default=None, help="Free-text search."
    )
    featured = browse.add_mutually_exclusive_group()
    featured.add_argument(
        "--featured",
        action="store_const",
        const=True,
        default=None,
        dest="featured",
        help="Only featured products.",
    )
    featured.add_argument(
        "--not-featured",
        action="store_const",
        const=False,
        dest="featured",
        help="Only non-featured products.",
    )
    browse.add_argument(
        "-s",
        "--sort",
        choices=[k.value for k in SortKey],
        default=None,
        help="Client-side ordering.",
    )
    browse.add_argument(
        "-p",
        "--pages",
        type=int,
        default=1,
        help="Number of pages to load (default: 1).",
    )
    browse.add_argument(
        "--view",
        choices=[v.value for v in CatalogView],
        default=CatalogView.ALL.value,
        help="Tab to show (default: all).",
    )

    categories = sub.add_parser("categories", help="List categories.")

    for command in (browse, categories):
        command.add_argument(
            "-f",
            "--format",
            choices=["json", "table"],
            default="json",
            dest="output_format",
            help="Output format (default: json).",
        )

    cart = sub.add_parser("add-to-cart", help="Add a product to the cart.")
    cart.add_argument("product_id", type=int)
    cart.add_argument("-n", "--quantity", type=int, default=1)

    wishlist = sub.add_parser(
        "toggle-wishlist", help="Add/remove a product from the wishlist."
    )
    wishlist.add_argument("product_id", type=int)
    return parser


def _run(args: argparse.Namespace) -> int:
    """Dispatch the parsed command and return its exit code."""
    from storefront.cli import runner
    from storefront.gateway.errors import ValidationFailure

    if args.command == "browse":
        try:
            criteria = runner.build_criteria(
                category=args.category,
                min_price=args.min_price,
                max_price=args.max_price,
                search=args.search,
                featured=args.featured,
                sort=args.sort,
            )
        except ValidationFailure as exc:
            logger.error("Invalid filters: %s", exc.message)
            print(f"Invalid filters: {exc.message}", file=sys.stderr)
            return 1
        return asyncio.run(
            runner.cli_browse(
                criteria,
                pages=args.pages,
                view=args.view,
                output_format=args.output_format,
            )
        )
    if args.command == "categories":
        return asyncio.run(runner.cli_categories(args.output_format))
    if args.command == "add-to-cart":
        return asyncio.run(
            runner.cli_add_to_cart(args.product_id, args.quantity)
        )
    return asyncio.run(runner.cli_toggle_wishlist(args.product_id))


def main() -> None:
    """Parse arguments, run one command and exit with its status."""
    parser = _build_parser()
    args = parser.parse_args()

    log_file = setup_logging("INFO" if args.verbose else None)
    logger.info("storefront starting, log file: %s", log_file)

    try:
        exit_code = _run(args)
    except Exception:
        logger.critical("Fatal error during %s", args.command, exc_info=True)
        raise
    finally:
        logger.info("storefront shutting down")
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
