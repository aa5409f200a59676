from datetime import datetime
from pathlib import Path
import sys
import traceback

import aiohttp
from rich.console import Console
import typer

from bananaforge_cli.__version__ import __author__, __version__


def ensure_config_file(path: Path, default_text: str, label: str, console: Console) -> None:
    """Write the default config if missing"""
    if path.exists():
        return

    path.parent.mkdir(parents=True, exist_ok=True)

    console.print(f"[yellow]Missing {label} config.[/yellow] Writing defaults…")

    try:
        path.write_text(default_text)
        console.print(f"[green]✓ {label} config installed at {path}[/green]")
    except OSError as e:
        console.print(f"[red]Failed to write {label} config:[/red] {e}")
        raise typer.Exit(1) from e


# --- Async Helper ---
async def get_api_session(total_timeout: float = 60, connect_timeout: float = 10) -> aiohttp.ClientSession:
    """Returns a session with the correct BananaForge-CLI headers."""
    timeout = aiohttp.ClientTimeout(total=total_timeout, connect=connect_timeout)
    return aiohttp.ClientSession(
        headers={"User-Agent": f"{__author__}/BananaForge-CLI/{__version__}"},
        timeout=timeout,
        raise_for_status=False,  # Handle errors manually
    )


def setup_crash_logging(log_dir: Path) -> Path:
    """Configure crash logging for bug reports"""
    log_dir.mkdir(parents=True, exist_ok=True)

    def excepthook(exc_type, exc_value, exc_traceback) -> None:
        """Log crashes for bug reports"""

        log_file = log_dir / f"crash-{datetime.now():%Y%m%d-%H%M%S}.log"

        with open(log_file, "w") as f:
            f.write(f"BananaForge-CLI v{__version__}\n")
            f.write(f"Python {sys.version}\n")
            f.write(f"Platform: {sys.platform}\n\n")
            traceback.print_exception(exc_type, exc_value, exc_traceback, file=f)

        console = Console(stderr=True)
        console.print("\n[red bold]BananaForge-CLI crashed![/red bold]")
        console.print(f"[yellow]Crash log saved to:[/yellow] {log_file}")

    sys.excepthook = excepthook
    return log_dir
