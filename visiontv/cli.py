"""VisionTV CLI - Main command-line interface."""

import asyncio
import logging
from datetime import datetime
from typing import Optional

import click
import httpx
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.tree import Tree

from visiontv import __version__
from visiontv.config import get_config, save_config
from visiontv.errors import VisionError
from visiontv.logger import setup_logger
from visiontv.models import ListingPage, MovieDetail, PLACEHOLDER, Stream, Translation, pick_stream
from visiontv.providers import create_provider
from visiontv.providers.filmix_categories import get_categories

console = Console()
logger = logging.getLogger(__name__)


# ===== ASYNC RUNNERS =====

def run_async(coro):
    """Run an async function."""
    return asyncio.run(coro)


def run_with_provider(name: str, action):
    """Run ``action(provider)`` and report engine errors as a clean exit."""
    async def runner():
        async with create_provider(name, get_config()) as provider:
            return await action(provider)

    try:
        return run_async(runner())
    except (VisionError, httpx.HTTPError) as e:
        logger.debug("Command failed", exc_info=True)
        console.print(f"[red]Error: {escape(str(e))}[/]")
        raise SystemExit(1)


# ===== DISPLAY HELPERS =====

def display_listing(page: ListingPage, title: str = "Results"):
    """Display a table of listing items."""
    if not page.items:
        console.print("[yellow]No results found[/]")
        return

    table = Table(title=title, show_header=True, header_style="bold magenta")
    table.add_column("#", style="dim", width=4)
    table.add_column("ID", style="dim")
    table.add_column("Title", style="cyan")
    table.add_column("Year", width=12)
    table.add_column("Rating", style="yellow", width=6)
    table.add_column("Duration", style="green")
    table.add_column("Genre")

    for i, item in enumerate(page.items, 1):
        title_text = f"{escape(item.title)} [dim](series)[/]" if item.is_series else escape(item.title)
        table.add_row(
            str(i), str(item.id), title_text, escape(item.year), escape(item.rating), escape(item.duration), escape(item.genre)
        )

    console.print(table)
    if page.next_page_url:
        console.print(f"[dim]Next page: {escape(page.next_page_url)}[/]")


def display_detail(detail: MovieDetail):
    """Display an item page."""
    console.print(Panel(
        f"[bold cyan]{escape(detail.title)}[/]" + (f"\n[dim]{escape(detail.original_title)}[/]" if detail.original_title else ""),
        subtitle=f"[dim]{escape(detail.year)}[/] • [yellow]★ {detail.user_rating}[/]"
    ))

    table = Table(show_header=False, box=None)
    table.add_column("Field", style="bold")
    table.add_column("Value")
    rows = [
        ("Duration", detail.duration_formatted),
        ("Genres", ", ".join(detail.genres)),
        ("Countries", ", ".join(detail.countries)),
        ("Directors", ", ".join(detail.directors)),
        ("Actors", ", ".join(detail.actors[:10])),
        ("Translation", detail.translate),
        ("Kinopoisk", f"{detail.kinopoisk.score} ({detail.kinopoisk.votes})"),
        ("IMDb", f"{detail.imdb.score} ({detail.imdb.votes})"),
        ("Status", detail.status_on_air or ""),
        ("Last added", detail.last_added or ""),
    ]
    for name, value in rows:
        table.add_row(name, escape(value or PLACEHOLDER))
    console.print(table)

    if detail.description:
        console.print(f"\n[dim]{escape(detail.description[:300])}{'...' if len(detail.description) > 300 else ''}[/]\n")
    if detail.missing_fields:
        console.print(f"[dim]Not on page: {', '.join(sorted(detail.missing_fields))}[/]")


def display_translations(translations: list[Translation], preferred: str):
    """Display studios with their streams or seasons."""
    if not translations:
        console.print("[yellow]No translations found[/]")
        return

    for translation in translations:
        if translation.is_serial:
            tree = Tree(f"[bold magenta]{escape(translation.studio)}[/]")
            for season in translation.seasons:
                branch = tree.add(f"{escape(season.title or 'Episodes')} [dim]({len(season.folders)} episodes)[/]")
                for folder in season.folders:
                    branch.add(f"{escape(folder.title)} [dim]{escape(', '.join(folder.streams))}[/]")
            console.print(tree)
            continue

        picked = pick_stream(translation.streams, preferred)
        console.print(
            f"\n[bold magenta]{escape(translation.studio)}[/] [dim]{escape(', '.join(translation.sorted_qualities))}[/]"
        )
        if picked:
            quality, url = picked
            console.print(f"  [green]{escape(quality)}[/] {escape(url)}")


def display_streams(streams: list[Stream], title: str = "Streams"):
    if not streams:
        console.print("[yellow]No streams found[/]")
        return

    table = Table(title=title, show_header=True, header_style="bold magenta")
    table.add_column("Quality", style="green")
    table.add_column("HLS", style="cyan")
    table.add_column("MP4", style="dim")
    for stream in streams:
        table.add_row(escape(stream.quality), escape(stream.hls_url or ""), escape(stream.direct_url or ""))
    console.print(table)


# ===== CLI COMMANDS =====

@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
@click.version_option(__version__, prog_name="VisionTV")
def main(verbose: bool):
    """VisionTV CLI - Browse Filmix and HDRezka from your terminal."""
    config = get_config()
    setup_logger("DEBUG" if verbose else config.log_level)


@main.group()
def filmix():
    """Filmix catalog."""


@filmix.command("list")
@click.argument("url", required=False)
def filmix_list(url: Optional[str]):
    """Show a listing page (home page by default)."""
    page = run_with_provider("filmix", lambda prov: prov.fetch_page(url))
    display_listing(page, "Filmix")


@filmix.command("detail")
@click.argument("path")
def filmix_detail(path: str):
    """Show an item page by path or URL."""
    detail = run_with_provider("filmix", lambda prov: prov.fetch_detail(path))
    display_detail(detail)


@filmix.command("translations")
@click.argument("item_id", type=int)
@click.option("--series", is_flag=True, help="Fetch serial playlists")
def filmix_translations(item_id: int, series: bool):
    """Show studios and their streams for an item."""
    translations = run_with_provider("filmix", lambda prov: prov.fetch_translations(item_id, is_series=series))
    display_translations(translations, get_config().preferred_quality)


@filmix.command("search")
@click.argument("query")
def filmix_search(query: str):
    """Search Filmix."""
    page = run_with_provider("filmix", lambda prov: prov.search(query))
    display_listing(page, f"Search Results - {escape(query)}")


@filmix.command("categories")
def filmix_categories():
    """Show sections and their genre pages."""
    tree = Tree("[bold]Filmix[/]")
    for category in get_categories(get_config().filmix_url):
        label = f"[bold magenta]{escape(category.title)}[/] [dim]{escape(category.url or '(local)')}[/]"
        branch = tree.add(label)
        for genre in category.genres:
            branch.add(f"{escape(genre.title)} [dim]{escape(genre.url)}[/]")
    console.print(tree)


@main.group()
def rezka():
    """HDRezka catalog."""


@rezka.command("search")
@click.argument("query")
@click.option("--page", "-p", default=1, type=int, help="Results page")
def rezka_search(query: str, page: int):
    """Search HDRezka."""
    results = run_with_provider("rezka", lambda prov: prov.search(query, page))
    if not results:
        console.print("[yellow]No results found[/]")
        return

    table = Table(title=f"Search Results - {escape(query)}", show_header=True, header_style="bold magenta")
    table.add_column("ID", style="dim")
    table.add_column("Title", style="cyan")
    table.add_column("Info")
    table.add_column("Type", style="green")
    table.add_column("URL", style="dim")
    for item in results:
        table.add_row(str(item.id), escape(item.title), escape(item.info), escape(item.category), escape(item.url))
    console.print(table)


@rezka.command("player")
@click.argument("url")
def rezka_player(url: str):
    """Show translators and default streams of a film page."""
    data = run_with_provider("rezka", lambda prov: prov.fetch_player_data(url))

    console.print(f"[bold]Movie {data.movie_id}[/] [dim]favs={escape(data.favs or '-')} default={escape(data.default_quality)}[/]")
    if data.translators:
        table = Table(title="Translators", show_header=True, header_style="bold magenta")
        table.add_column("ID", style="dim")
        table.add_column("Title", style="cyan")
        table.add_column("Flags", style="dim")
        for translator in data.translators:
            flags = [
                name for name, on in (
                    ("active", translator.is_active or translator.translator_id == data.active_translator_id),
                    ("camrip", translator.is_camrip),
                    ("ads", translator.has_ads),
                    ("director", translator.is_director),
                ) if on
            ]
            table.add_row(str(translator.translator_id), escape(translator.title), ", ".join(flags))
        console.print(table)
    display_streams(data.streams)


@rezka.command("streams")
@click.argument("movie_id", type=int)
@click.argument("translator_id", type=int)
@click.option("--favs", required=True, help="Value of the page's ctrl_favs field")
@click.option("--camrip", is_flag=True, help="Translator is a camrip")
@click.option("--ads", is_flag=True, help="Translator has ads")
@click.option("--director", is_flag=True, help="Director's cut")
def rezka_streams(movie_id: int, translator_id: int, favs: str, camrip: bool, ads: bool, director: bool):
    """Switch translator and show its streams."""
    streams = run_with_provider(
        "rezka",
        lambda prov: prov.fetch_streams(movie_id, translator_id, favs, camrip, ads, director),
    )
    display_streams(streams, f"Translator {translator_id}")


@main.command()
@click.option("--show", is_flag=True, help="Show current configuration")
@click.option("--cookie", help="Set Filmix session cookie")
@click.option("--user-agent", help="Set Filmix user agent")
@click.option("--expires", type=click.DateTime(), help="When the Filmix cookie expires")
def config(show: bool, cookie: Optional[str], user_agent: Optional[str], expires: Optional[datetime]):
    """View or edit configuration."""
    config = get_config()
    credentials = config.filmix_credentials

    if show or not (cookie or user_agent or expires):
        table = Table(title="Configuration")
        table.add_column("Setting", style="cyan")
        table.add_column("Value", style="green")

        table.add_row("Filmix URL", config.filmix_url)
        table.add_row("HDRezka URL", config.rezka_url)
        table.add_row("Request Timeout", f"{config.request_timeout:g}s")
        table.add_row("Max Concurrency", str(config.max_concurrency))
        table.add_row("Preferred Quality", config.preferred_quality)
        table.add_row("Log Level", config.log_level)
        table.add_row("HDRezka User Agent", escape(config.rezka_user_agent))
        table.add_row("Filmix Cookie", escape(f"{credentials.cookie[:40]}..." if len(credentials.cookie) > 40 else credentials.cookie))
        table.add_row("Filmix User Agent", escape(credentials.user_agent))
        if credentials.expires_at is not None:
            state = "[red]expired[/]" if credentials.is_expired() else "valid"
            table.add_row("Cookie Expires", f"{datetime.fromtimestamp(credentials.expires_at):%Y-%m-%d %H:%M} ({state})")
        else:
            table.add_row("Cookie Expires", "(unknown)")

        console.print(table)
        return

    if cookie:
        credentials.cookie = cookie
        credentials.expires_at = None
    if user_agent:
        credentials.user_agent = user_agent
    if expires:
        credentials.expires_at = expires.timestamp()

    save_config(config)
    console.print("[green]✓ Configuration saved[/]")


if __name__ == "__main__":
    main()
