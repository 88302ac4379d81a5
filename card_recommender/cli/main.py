"""Main CLI application entry point."""
import typer
from rich.console import Console

from card_recommender import __version__
from card_recommender.cli import commands

app = typer.Typer(
    name="card-recommender",
    help="Card recommendation and synergy scoring CLI tool",
    add_completion=False,
)

app.command("init-db")(commands.init_database)
app.command("search")(commands.search_cards)
app.command("recommend")(commands.recommend)
app.add_typer(commands.themes_app, name="themes", help="Theme classification commands")
app.add_typer(commands.cache_app, name="cache", help="Cache maintenance commands")

console = Console()


@app.command()
def version():
    """Show version information."""
    console.print(f"card-recommender version {__version__}")


def main():
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
