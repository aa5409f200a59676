import asyncio
import logging
from pathlib import Path

from pyfiglet import figlet_format
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text
import typer

from bananaforge_cli.__version__ import __author__, __version__
from bananaforge_cli.api import APISettings, ConfigError, GameBananaAPIConfig, GameBananaAPIError, GameBananaClient
from bananaforge_cli.core import (
    DownloadablePackage,
    GameBananaPackageProvider,
    MissingFileError,
    ensure_config_file,
    get_api_session,
    setup_crash_logging,
)

app = typer.Typer(
    add_completion=False,
    no_args_is_help=False,
)
console = Console()

# Configuration
CONFIG_PATH = Path.home() / ".config" / "BananaForge-CLI"
API_CONFIG_PATH = CONFIG_PATH / "gamebanana_api.json"
LOG_DIR = CONFIG_PATH / "logs"


def render_banner() -> None:
    """Renders a stylized banner"""
    width = console.width
    font = "slant" if width > 60 else "small"

    ascii_art = figlet_format("BananaForge", font=font)
    banner_text = Text(ascii_art, style="bold yellow")

    info_line = Text.assemble(
        (" 🍌 ", "yellow"),
        (f"v{__version__}", "bold white"),
        (" | ", "dim"),
        ("Created by ", "italic white"),
        (f"{__author__}", "bold magenta"),
    )

    console.print(
        Panel(
            Text.assemble(banner_text, "\n", info_line),
            border_style="yellow",
            padding=(1, 2),
            expand=False,
        ),
        justify="left",
    )


def format_size(size: int) -> str:
    value = float(size)
    for unit in ("B", "KiB", "MiB"):
        if value < 1024:
            return f"{value:.0f} {unit}" if unit == "B" else f"{value:.1f} {unit}"
        value /= 1024
    return f"{value:.1f} GiB"


async def perform_search(
    api: GameBananaAPIConfig, text: str, game_id: int, skip: int, take: int
) -> list[DownloadablePackage]:
    """Run one provider search inside a fresh HTTP session"""
    settings = api.settings
    async with await get_api_session(settings.request_timeout, settings.connect_timeout) as session:
        provider = GameBananaPackageProvider(
            game_id,
            GameBananaClient(session, api),
            loader_url_prefix=settings.loader_url_prefix,
            max_metadata_file_size=settings.max_metadata_file_size,
            max_concurrent_downloads=settings.max_concurrent_downloads,
        )
        return await provider.search(text, skip=skip, take=take)


def load_api_config() -> GameBananaAPIConfig:
    ensure_config_file(API_CONFIG_PATH, APISettings().model_dump_json(indent=4), "GameBanana API", console)
    try:
        return GameBananaAPIConfig(API_CONFIG_PATH)
    except ConfigError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1) from e


@app.callback(invoke_without_command=True)
def main_callback(
    ctx: typer.Context,
    version: bool | None = typer.Option(None, "--version", "-v", help="Show version and exit"),
    verbose: bool | None = typer.Option(None, "--verbose", help="Enable verbose logging"),
) -> None:
    """BananaForge-CLI: search GameBanana for downloadable mods."""

    if version:
        console.print(f"BananaForge-CLI Version: [bold cyan]{__version__}[/bold cyan]")
        raise typer.Exit()

    setup_crash_logging(LOG_DIR)

    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            handlers=[
                logging.FileHandler(LOG_DIR / f"bananaforge-{__version__}.log"),
                logging.StreamHandler(),
            ],
        )

    if ctx.invoked_subcommand is None:
        render_banner()
        console.print("\n[bold yellow]Usage:[/bold yellow] bananaforge [COMMAND] [ARGS]...")
        console.print("\n[bold cyan]Commands:[/bold cyan]")
        console.print("  [green]search[/green]      Search GameBanana for downloadable mods")
        console.print("  [green]config[/green]      Show the active API configuration")
        console.print("\nRun [white]bananaforge --help[/white] for details.\n")


@app.command()
def search(
    text: str,
    game_id: int = typer.Option(..., "--game-id", "-g", help="GameBanana game id"),
    skip: int = typer.Option(0, min=0, help="Number of results to skip"),
    take: int = typer.Option(50, min=1, help="Number of results per page"),
    as_json: bool = typer.Option(False, "--json", help="Print packages as JSON"),
) -> None:
    """Search for downloadable mods"""
    api = load_api_config()

    try:
        packages = asyncio.run(perform_search(api, text, game_id, skip, take))
    except (GameBananaAPIError, MissingFileError) as e:
        console.print(f"[red]Search failed:[/red] {e}")
        raise typer.Exit(1) from e

    if as_json:
        console.print_json(data=[p.model_dump(mode="json") for p in packages])
        return

    if not packages:
        console.print(f"[yellow]No downloadable mods found for '{text}'[/yellow]")
        return

    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("Name", style="cyan")
    table.add_column("Version", style="green")
    table.add_column("Authors")
    table.add_column("Size", justify="right", style="dim")
    table.add_column("Download", style="dim", overflow="fold")

    for package in packages:
        table.add_row(
            package.name,
            package.version or "-",
            package.authors,
            format_size(package.file_size),
            package.url,
        )

    console.print(table)
    console.print(f"[dim]{len(packages)} package(s) from {packages[0].source}[/dim]")


@app.command()
def config() -> None:
    """Show the active API configuration"""
    api = load_api_config()

    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("Setting", style="cyan")
    table.add_column("Value")

    for key, value in api.settings.model_dump().items():
        table.add_row(key, str(value))

    console.print(f"[dim]{API_CONFIG_PATH}[/dim]")
    console.print(table)


def main() -> None:
    app()


if __name__ == "__main__":
    main()
