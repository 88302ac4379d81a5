"""CLI commands for the card recommender."""
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from card_recommender.database.engine import get_db, init_db
from card_recommender.engine import service
from card_recommender.engine.errors import CardNotFoundError
from card_recommender.engine.filters import parse_filter_json
from card_recommender.engine.text_generation import default_generator

themes_app = typer.Typer(help="Theme classification commands")
cache_app = typer.Typer(help="Cache maintenance commands")
console = Console()

FILTERS_HELP = 'JSON filter object, e.g. \'{"colorIdentity": ["G"], "maxMv": 3}\''


def _colors(values) -> str:
    return "".join(values or []) or "C"


def init_database():
    """Create database tables."""
    with console.status("[bold green]Initializing database tables..."):
        init_db()
    console.print("[green]✓[/green] Database tables initialized")


def search_cards(
    filters: Optional[str] = typer.Option(None, "--filters", "-f", help=FILTERS_HELP),
    page: int = typer.Option(1, "--page", "-p", min=1, help="Result page"),
):
    """Search cards with the shared filters.

    Examples:
        card-recommender search --filters '{"query": "draw id<=U"}'
    """
    with get_db() as db:
        result = service.search(db, parse_filter_json(filters), page)

        if not result.cards:
            console.print("[yellow]No cards match these filters[/yellow]")
            raise typer.Exit(0)

        table = Table(title=f"{result.total_count} card(s), page {result.page}")
        table.add_column("ID", style="dim")
        table.add_column("Name", style="cyan", no_wrap=True)
        table.add_column("Type", style="magenta")
        table.add_column("Identity", style="yellow")
        table.add_column("MV", justify="right", style="green")
        for card in result.cards:
            table.add_row(
                card.id, card.name, card.type_line, _colors(card.color_identity), f"{card.cmc:g}"
            )
        console.print(table)
        if result.has_more:
            console.print(f"[dim]More results: --page {result.page + 1}[/dim]")


def recommend(
    card_id: str = typer.Argument(..., help="Source card id"),
    recommendation_type: str = typer.Option(
        "synergy", "--type", "-t", help="synergy or functional_similarity"
    ),
    limit: int = typer.Option(12, "--limit", "-n", help="Maximum number of results"),
    filters: Optional[str] = typer.Option(None, "--filters", "-f", help=FILTERS_HELP),
):
    """Show synergy or functional-similarity recommendations for a card.

    Examples:
        card-recommender recommend <card-id> --type functional_similarity
    """
    if recommendation_type not in service.RECOMMENDATION_TYPES:
        console.print(f"[red]Error:[/red] Unknown type '{recommendation_type}'")
        raise typer.Exit(1)

    with get_db() as db:
        try:
            source = service.get_card(db, card_id)
            items = service.recommendations(
                db, card_id, recommendation_type, limit, parse_filter_json(filters)
            )
        except CardNotFoundError as e:
            console.print(f"[red]Error:[/red] {e}")
            raise typer.Exit(1)

        if not items:
            console.print(f"[yellow]No {recommendation_type} recommendations for {source.name}[/yellow]")
            raise typer.Exit(0)

        table = Table(title=f"{recommendation_type} for {source.name}")
        table.add_column("Score", justify="right", style="green")
        table.add_column("Name", style="cyan", no_wrap=True)
        table.add_column("Type", style="magenta")
        table.add_column("Reason")
        for item in items:
            table.add_row(str(item.score), item.card.name, item.card.type_line, item.reason)
        console.print(table)


@themes_app.command("suggest")
def suggest_themes(
    card_id: str = typer.Argument(..., help="Card id"),
    filters: Optional[str] = typer.Option(None, "--filters", "-f", help=FILTERS_HELP),
):
    """Classify a card into catalog themes."""
    with get_db() as db:
        try:
            with console.status("Classifying themes..."):
                suggestions = service.theme_suggestions(
                    db, card_id, parse_filter_json(filters), generator=default_generator()
                )
        except CardNotFoundError as e:
            console.print(f"[red]Error:[/red] {e}")
            raise typer.Exit(1)

        if not suggestions:
            console.print("[yellow]No themes available for this card[/yellow]")
            raise typer.Exit(0)

        table = Table(title="Themes")
        table.add_column("Theme", style="cyan")
        table.add_column("Confidence", justify="right", style="green")
        table.add_column("Votes", justify="right")
        table.add_column("Description")
        for suggestion in suggestions:
            table.add_row(
                suggestion.theme_name,
                f"{suggestion.confidence}%",
                f"+{suggestion.upvotes}/-{suggestion.downvotes}",
                suggestion.description,
            )
        console.print(table)


@themes_app.command("cards")
def theme_cards(
    card_id: str = typer.Argument(..., help="Card id"),
    theme_name: str = typer.Argument(..., help="Theme name"),
    filters: Optional[str] = typer.Option(None, "--filters", "-f", help=FILTERS_HELP),
):
    """List other cards that share a theme."""
    with get_db() as db:
        try:
            matches = service.theme_cards(db, card_id, theme_name, parse_filter_json(filters))
        except CardNotFoundError as e:
            console.print(f"[red]Error:[/red] {e}")
            raise typer.Exit(1)

        if not matches:
            console.print(f"[yellow]No cards found for theme '{theme_name}'[/yellow]")
            raise typer.Exit(0)

        table = Table(title=theme_name)
        table.add_column("Confidence", justify="right", style="green")
        table.add_column("Name", style="cyan", no_wrap=True)
        table.add_column("Type", style="magenta")
        for match in matches:
            table.add_row(f"{match.confidence}%", match.card.name, match.card.type_line)
        console.print(table)


@themes_app.command("synergies")
def theme_synergies(
    card_id: str = typer.Argument(..., help="Card id"),
    filters: Optional[str] = typer.Option(None, "--filters", "-f", help=FILTERS_HELP),
):
    """List cards ranked by how many of this card's themes they share."""
    with get_db() as db:
        try:
            with console.status("Classifying themes..."):
                synergies = service.theme_synergies(
                    db, card_id, parse_filter_json(filters), generator=default_generator()
                )
        except CardNotFoundError as e:
            console.print(f"[red]Error:[/red] {e}")
            raise typer.Exit(1)

        if not synergies:
            console.print("[yellow]No cards share a theme with this card[/yellow]")
            raise typer.Exit(0)

        table = Table(title="Theme synergies")
        table.add_column("Score", justify="right", style="green")
        table.add_column("Name", style="cyan", no_wrap=True)
        table.add_column("Type", style="magenta")
        table.add_column("Shared themes")
        for synergy in synergies:
            table.add_row(
                str(synergy.score),
                synergy.card.name,
                synergy.card.type_line,
                ", ".join(synergy.shared_themes),
            )
        console.print(table)


@themes_app.command("reset")
def reset_themes(
    card_id: Optional[str] = typer.Option(None, "--card", "-c", help="Only reset this card"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
):
    """Delete stored theme assignments so cards are classified again."""
    if not yes and not card_id:
        typer.confirm("Reset themes for ALL cards?", abort=True)
    with get_db() as db:
        removed = service.reset_themes(db, card_id)
    console.print(f"[green]✓[/green] Removed {removed} theme assignment(s)")


@cache_app.command("cleanup")
def cache_cleanup():
    """Remove expired and stale cache entries."""
    with get_db() as db:
        removed = service.cleanup_cache(db)
    console.print(f"[green]✓[/green] Removed {removed} cache entr{'y' if removed == 1 else 'ies'}")
