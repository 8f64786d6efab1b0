"""CLI interface for lctui using Typer."""

import asyncio
import logging
import sys
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.syntax import Syntax

from lctui.app import App
from lctui.exceptions import CookieError, LeetCodeError, StorageError
from lctui.extract import extract_solution
from lctui.models import Language
from lctui.session import SessionManager
from lctui.storage import DEFAULT_CONFIG, Storage
from lctui.terminal import Terminal

app = typer.Typer(help="Browse, solve, and submit LeetCode problems from your terminal")
console = Console()

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def _configure_logging(log_path: Path, debug: bool) -> None:
    """Send logs to a file; the TUI owns the terminal."""
    log_path.parent.mkdir(parents=True, exist_ok=True)
    logging.basicConfig(
        filename=log_path,
        level=logging.DEBUG if debug else logging.INFO,
        format=LOG_FORMAT,
    )
    # Request lines from httpx are noise at INFO.
    logging.getLogger("httpx").setLevel(logging.WARNING)


def _handle_error(e: LeetCodeError) -> None:
    """Print a user-friendly message and exit."""
    console.print(f"[red]{e.message}[/red]")
    raise typer.Exit(1)


async def _run_tui(state: App) -> None:
    async with Terminal(console) as terminal:
        await state.run(terminal)


@app.callback(invoke_without_command=True)
def main(ctx: typer.Context) -> None:
    """Launch the interactive browser when no command is given."""
    if ctx.invoked_subcommand is None:
        tui(debug=False)


@app.command()
def tui(debug: bool = typer.Option(False, "--debug", help="Write debug logs")) -> None:
    """Start the interactive session."""
    storage = Storage()
    _configure_logging(storage.log_path, debug)

    if not sys.stdin.isatty():
        console.print("[red]lctui needs an interactive terminal.[/red]")
        raise typer.Exit(1)

    try:
        config = storage.get_config()
    except StorageError as e:
        _handle_error(e)

    state = App(config, storage)
    asyncio.run(_run_tui(state))

    if state.last_opened_dir is not None:
        console.print(f"Last opened: [cyan]{state.last_opened_dir}[/cyan]")


@app.command()
def extract(
    path: Path = typer.Argument(..., exists=True, dir_okay=False, help="Solution file"),
    language: Optional[str] = typer.Option(
        None, "--language", "-l", help="Source language (defaults to the configured one)"
    ),
) -> None:
    """Print the code that run/submit would send for a solution file."""
    storage = Storage()
    try:
        if language:
            lang = Language.parse(language)
        else:
            config = storage.get_config() or DEFAULT_CONFIG
            lang = config.language
    except ValueError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)
    except StorageError as e:
        _handle_error(e)

    code = extract_solution(path.read_text(encoding="utf-8"), lang)
    console.print(Syntax(code, lang.config_name, theme="ansi_dark"))


@app.command()
def login() -> None:
    """Extract LeetCode cookies from an installed browser and save them."""
    storage = Storage()
    _configure_logging(storage.log_path, debug=False)
    session = SessionManager(storage)

    try:
        config = storage.get_config() or DEFAULT_CONFIG
        session.login_from_browser(config)
    except (CookieError, StorageError) as e:
        _handle_error(e)

    console.print(f"[green]Logged in.[/green] Credentials saved to {storage.config_path}")


if __name__ == "__main__":
    app()
