# src/cli/runner.py

"""Headless catalog browser, reusing the async home feed."""

import json
import logging
import sys
from pathlib import Path

from rich.console import Console
from rich.table import Table

from src.config.settings import Settings
from src.models.errors import CatalogFetchError, ValidationError
from src.models.product import Banner, Product
from src.models.rating import RatingMap, average_for
from src.services.home_feed import HomeFeed
from src.storage.memory_store import InMemoryDocumentStore

logger = logging.getLogger("gearzone.cli")

# Stderr console for status messages so stdout stays clean for JSON
_err = Console(stderr=True)


def _products_to_dicts(
    products: list[Product], ratings: RatingMap,
) -> list[dict[str, object]]:
    """Serialise the view to plain dicts for JSON output."""
    return [
        {
            "id": p.id,
            "name": p.name,
            "brand": p.brand,
            "category": p.category,
            "price": p.price,
            "originalPrice": p.original_price,
            "stock": p.stock,
            "featured": p.featured,
            "rating": round(average_for(ratings, p.id), 2),
        }
        for p in products
    ]


def _print_table(
    products: list[Product], ratings: RatingMap, title: str,
) -> None:
    """Render the ordered view as a Rich table on stdout."""
    table = Table(title=title, show_lines=True, title_style="bold cyan")
    table.add_column("#", style="dim", width=4)
    table.add_column("Name", max_width=40)
    table.add_column("Brand", style="magenta")
    table.add_column("Category")
    table.add_column("Price", justify="right", style="green")
    table.add_column("Rating", justify="center")
    table.add_column("Stock", justify="right")

    for idx, p in enumerate(products, 1):
        price = f"${p.price:,.2f}"
        if p.original_price:
            price += f" [dim][s]${p.original_price:,.2f}[/s][/dim]"
        rating = average_for(ratings, p.id)
        table.add_row(
            str(idx),
            ("★ " if p.featured else "") + p.name,
            p.brand,
            p.category,
            price,
            f"{rating:.1f}" if rating else "—",
            str(p.stock) if p.stock else "[red]out[/red]",
        )

    Console().print(table)


def _print_banners(banners: list[Banner]) -> None:
    for banner in banners:
        _err.print(
            f"[bold yellow]▶ {banner.title}[/bold yellow]"
            f"  [dim]{banner.subtitle}[/dim]"
        )


async def _report_unread(feed: HomeFeed, user_id: str) -> None:
    await feed.set_identity(user_id)
    try:
        unread = await feed.notifications.wait_until_synced()
    except TimeoutError:
        _err.print("[yellow]Notifications did not sync in time.[/yellow]")
        return
    _err.print(
        f"[bold]{user_id}[/bold]: "
        f"[cyan]{unread} unread notification(s)[/cyan]"
    )


async def cli_browse(
    data_path: str | None,
    category: str,
    search: str,
    min_price: float,
    max_price: float,
    min_rating: float,
    in_stock: bool,
    sort_by: str,
    output_format: str,
    limit: int | None,
    user_id: str | None = None,
) -> int:
    """Load the catalog, apply the filters and print the view.

    Returns an exit code (0 = products shown, 1 = failure or empty).
    """
    path = Path(data_path) if data_path else Settings.SEED_DATA_PATH
    try:
        store = InMemoryDocumentStore.from_json(path)
    except (OSError, ValueError) as exc:
        logger.error("Cannot read seed data %s: %s", path, exc)
        _err.print(f"[red]Cannot read catalog data: {exc}[/red]")
        return 1

    feed = HomeFeed(store)
    try:
        feed.update_criteria(
            category=category,
            search_query=search,
            price_range=(min_price, max_price),
            min_rating=min_rating,
            in_stock_only=in_stock,
            sort_by=sort_by,
        )
    except ValidationError as exc:
        _err.print(f"[red]Invalid filter: {exc}[/red]")
        return 1

    try:
        view = await feed.refresh(limit)
        if user_id:
            await _report_unread(feed, user_id)
    except CatalogFetchError as exc:
        _err.print(f"[bold red]Error:[/bold red] {exc}")
        return 1
    finally:
        await feed.aclose()

    _print_banners(view.banners)

    if not view.products:
        _err.print("[yellow]No products match the filters.[/yellow]")
        return 1

    _err.print(
        f"[green]✓ {len(view.products)} of {view.total_in_catalog}"
        f" products (sort={view.criteria.sort_by})[/green]"
    )

    if output_format == "table":
        title = (
            "All Products"
            if view.criteria.is_all_categories
            else view.criteria.category
        )
        _print_table(view.products, feed.rating_map, title)
    else:
        json.dump(
            _products_to_dicts(view.products, feed.rating_map),
            sys.stdout,
            ensure_ascii=False,
            indent=2,
        )
        sys.stdout.write("\n")

    return 0
