# storefront/cli/runner.py

"""Headless CLI commands on top of the catalog and mutation services."""

import json
import logging
import sys
from decimal import Decimal

from rich.console import Console
from rich.table import Table

from storefront.filters.catalog_views import CatalogView, apply_view
from storefront.gateway.errors import StorefrontError, ValidationFailure
from storefront.gateway.market_api import MarketApi
from storefront.gateway.remote_gateway import CurlRemoteGateway, RemoteGateway
from storefront.models.criteria import (
    ALL_CATEGORIES,
    FilterCriteria,
    PriceRange,
    SortKey,
)
from storefront.models.mutation import AddToCart, ToggleWishlist
from storefront.models.product import Product
from storefront.services.catalog_store import CatalogStore
from storefront.services.mutation_queue import MutationQueue
from storefront.storage.query_cache import QueryCache

logger = logging.getLogger("storefront.cli")

# Stderr console for status messages so stdout stays clean for JSON
_err = Console(stderr=True)


def _on_unauthorized() -> None:
    _err.print(
        "[red]Not authorized. Set STOREFRONT_AUTH_TOKEN and retry.[/red]"
    )


def _make_gateway(gateway: RemoteGateway | None) -> RemoteGateway:
    if gateway is not None:
        return gateway
    return CurlRemoteGateway(on_unauthorized=_on_unauthorized)


def build_criteria(
    category: str | None = None,
    min_price: str | None = None,
    max_price: str | None = None,
    search: str | None = None,
    featured: bool | None = None,
    sort: str | None = None,
) -> FilterCriteria:
    """Turn raw CLI option values into FilterCriteria.

    Raises ``ValidationFailure`` on bad prices or a category that is not
    a positive id, and ``ValueError`` on an unknown sort key.
    """
    chosen: int | str = ALL_CATEGORIES
    text = (category or "").strip()
    if text and text.lower() != ALL_CATEGORIES.lower():
        if not (text.isascii() and text.isdigit()) or int(text) < 1:
            msg = (
                f"Category must be a numeric id or '{ALL_CATEGORIES}', "
                f"got {category!r}"
            )
            raise ValidationFailure(msg)
        chosen = int(text)
    return FilterCriteria(
        category=chosen,
        price_range=PriceRange(min=min_price, max=max_price),
        search_term=search or "",
        is_featured=featured,
        sort_key=SortKey(sort) if sort else None,
    )


def _format_price(value: Decimal | None) -> str:
    return f"RWF {value:,.0f}" if value is not None else "N/A"


def _print_table(products: list[Product], title: str) -> None:
    """Render a Rich table of products to stdout."""
    table = Table(
        title=title,
        show_lines=True,
        title_style="bold cyan",
    )
    table.add_column("#", style="dim", width=4)
    table.add_column("ID", justify="right", style="dim")
    table.add_column("Name", max_width=50)
    table.add_column("Price", justify="right", style="green")
    table.add_column("Off", justify="right", style="yellow")
    table.add_column("Rating", justify="center")
    table.add_column("Stock", justify="right")

    for idx, p in enumerate(products, 1):
        table.add_row(
            str(idx),
            str(p.id),
            p.name[:50],
            _format_price(p.price),
            f"{p.discount_percent}%" if p.discount_percent else "",
            str(p.rating) if p.rating is not None else "—",
            str(p.stock) if p.in_stock else "[red]sold out[/red]",
        )

    Console().print(table)


def _dump_json(data: object) -> None:
    json.dump(data, sys.stdout, ensure_ascii=False, indent=2)
    sys.stdout.write("\n")


async def cli_browse(
    criteria: FilterCriteria,
    pages: int = 1,
    view: str = CatalogView.ALL.value,
    output_format: str = "json",
    gateway: RemoteGateway | None = None,
) -> int:
    """Fetch up to ``pages`` pages and print them (0=ok, 1=fail)."""
    transport = _make_gateway(gateway)
    store = CatalogStore(MarketApi(transport), cache=QueryCache())
    try:
        _err.print(f"[bold]Browsing catalog[/bold] [dim]{criteria}[/dim]")
        try:
            await store.fetch_page(criteria, 1)
            while store.state.page < pages and store.state.has_more:
                await store.load_more()
        except StorefrontError as exc:
            logger.error("Browse failed: %s", exc.message)
            _err.print(f"[red]Error: {exc.message}[/red]")
            if not store.state.items:
                return 1

        products = apply_view(store.visible_items, CatalogView(view))
        if not products:
            _err.print("[yellow]No products found.[/yellow]")
            return 1

        _err.print(
            f"[green]✓ {len(products)} products shown"
            f" of {store.state.total_count}[/green]"
        )
        if output_format == "table":
            _print_table(products, f"Catalog ({view})")
        else:
            _dump_json([p.to_dict() for p in products])
        return 0
    finally:
        store.dispose()
        await transport.close()


async def cli_categories(
    output_format: str = "json",
    gateway: RemoteGateway | None = None,
) -> int:
    """List catalog categories."""
    transport = _make_gateway(gateway)
    try:
        categories = await MarketApi(transport).list_categories()
    except StorefrontError as exc:
        logger.error("Category listing failed: %s", exc.message)
        _err.print(f"[red]Error: {exc.message}[/red]")
        return 1
    finally:
        await transport.close()

    if output_format == "table":
        table = Table(title="Categories", title_style="bold cyan")
        table.add_column("ID", justify="right", style="dim")
        table.add_column("Name")
        table.add_column("Slug", style="dim")
        for c in categories:
            table.add_row(str(c.id), c.name, c.slug)
        Console().print(table)
    else:
        _dump_json(
            [{"id": c.id, "name": c.name, "slug": c.slug} for c in categories]
        )
    return 0


async def _run_mutation(
    mutation: AddToCart | ToggleWishlist,
    gateway: RemoteGateway | None,
) -> int:
    transport = _make_gateway(gateway)
    queue = MutationQueue(MarketApi(transport))
    try:
        outcome = await queue.dispatch(mutation)
    finally:
        queue.dispose()
        await transport.close()

    if outcome.ok:
        _err.print(f"[green]✓ {outcome.message}[/green]")
    else:
        _err.print(f"[red]{outcome.message}[/red]")
    _dump_json(outcome.as_dict())
    return 0 if outcome.ok else 1


async def cli_add_to_cart(
    product_id: int,
    quantity: int = 1,
    gateway: RemoteGateway | None = None,
) -> int:
    """Add a product to the cart."""
    return await _run_mutation(AddToCart(product_id, quantity), gateway)


async def cli_toggle_wishlist(
    product_id: int,
    gateway: RemoteGateway | None = None,
) -> int:
    """Flip a product's wishlist membership."""
    return await _run_mutation(ToggleWishlist(product_id), gateway)
