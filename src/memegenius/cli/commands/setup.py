"""Setup command for configuring the Gemini API key."""

from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console
from rich.markup import escape

from memegenius.core.config import (
    GEMINI_API_KEY_NAME,
    GLOBAL_CONFIG_PATH,
    apply_gemini_api_key,
    load_global_config,
    save_global_config,
)

console = Console()


def setup_command(
    api_key: str | None = typer.Option(
        None,
        "--api-key",
        help="Gemini API key value (prompted if omitted).",
        hide_input=True,
    ),
    config_path: Path = typer.Option(
        GLOBAL_CONFIG_PATH,
        "--config-path",
        hidden=True,
    ),
) -> None:
    """Store the Gemini API key used for image edits."""
    config = load_global_config(path=config_path)
    if api_key is None and config.api_keys.get(GEMINI_API_KEY_NAME):
        console.print(
            "[yellow]Google Gemini is already configured. "
            "Entering a new key will override the existing value.[/]"
        )
    key_value = api_key or typer.prompt(
        "Enter API key for Google Gemini",
        hide_input=True,
        confirmation_prompt=True,
    )
    try:
        apply_gemini_api_key(config, key_value)
    except ValueError as exc:
        console.print(f"[bold red]{escape(str(exc))}[/]")
        raise typer.Exit(code=1) from exc

    save_global_config(config, path=config_path)
    console.print(
        f"[bold green]Saved {GEMINI_API_KEY_NAME} to {escape(str(config_path))}.[/]"
    )
