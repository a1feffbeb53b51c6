"""Main Typer application definition."""

from __future__ import annotations

import typer
from dotenv import load_dotenv
from rich.console import Console

from memegenius.cli.commands.edit import edit_command
from memegenius.cli.commands.lab import lab_command
from memegenius.cli.commands.setup import setup_command
from memegenius.cli.errors import render_cli_error
from memegenius.core.config import load_global_config
from memegenius.utils.logger import configure_logging

console = Console()
app = typer.Typer(
    help="Edit images into memes with Gemini Nano Banana.",
    invoke_without_command=True,
)


@app.callback()
def main(
    ctx: typer.Context,
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Enable verbose logging."
    ),
    json_output: bool = typer.Option(
        False, "--json", help="Emit logs in a JSON-friendly format."
    ),
) -> None:
    """Configure the runtime environment for all commands."""
    load_dotenv()
    configure_logging(verbose=verbose, json_output=json_output)
    ctx.obj = ctx.obj or {}
    ctx.obj["config"] = load_global_config()
    if ctx.resilient_parsing or ctx.invoked_subcommand is not None:
        return
    console.print(ctx.get_help())
    raise typer.Exit()


app.command("setup")(setup_command)
app.command("edit")(edit_command)
app.command("lab")(lab_command)


def run() -> None:
    """CLI entrypoint used by console scripts."""
    try:
        app()
    except typer.Exit as exc:
        raise SystemExit(exc.exit_code) from None
    except KeyboardInterrupt as exc:
        render_cli_error(exc, console=console)
        raise SystemExit(130) from None
    except Exception as exc:
        render_cli_error(exc, console=console)
        raise SystemExit(1) from None
