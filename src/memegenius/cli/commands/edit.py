"""One-shot edit command implementation."""

from __future__ import annotations

import asyncio
from pathlib import Path

import typer
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel

from memegenius.cli import editor_factory
from memegenius.cli.errors import render_cli_error
from memegenius.cli.image_store import save_edited_image
from memegenius.core.session import EditingSession
from memegenius.engines.nanobanana import NanoBananaModel

console = Console()


def edit_command(
    ctx: typer.Context,
    image: Path = typer.Argument(
        ...,
        help="Source image to edit.",
        exists=True,
        file_okay=True,
        dir_okay=False,
        readable=True,
    ),
    instruction: str = typer.Argument(..., help="Edit instruction."),
    model: NanoBananaModel | None = typer.Option(
        None,
        "--model",
        help="NanoBanana model selector.",
        case_sensitive=False,
    ),
    output_dir: Path | None = typer.Option(
        None,
        "--output-dir",
        help="Directory where edited images are saved.",
    ),
    timeout: float | None = typer.Option(
        None,
        "--timeout",
        min=1.0,
        help="Request timeout in seconds (defaults to the transport default).",
    ),
) -> None:
    """Edit a single image and save the result."""
    config = editor_factory.resolve_config(ctx)
    target_output_dir = output_dir or Path(config.default_output_dir)
    try:
        effective_model = editor_factory.resolve_model(config, model)
        session = editor_factory.build_session(
            config, model=effective_model, timeout_seconds=timeout
        )
        session.load_image(image)
    except (OSError, ValueError) as exc:
        console.print(f"[bold red]{escape(str(exc))}[/]")
        raise typer.Exit(code=1) from exc

    session.set_instruction(instruction)
    if not session.can_submit:
        console.print("[bold red]Edit instruction cannot be empty.[/]")
        raise typer.Exit(code=1)

    with console.status("[bold cyan]Nano Banana is cooking...[/]", spinner="dots"):
        record = asyncio.run(session.generate())

    if record is None:
        _report_failure(session)
        raise typer.Exit(code=1)

    saved_path = save_edited_image(record.result, output_dir=target_output_dir)
    console.print(
        Panel.fit(
            f"[bold green]Image edited[/]\n"
            f"Source: [bold]{escape(str(image))}[/]\n"
            f"Model: [bold]{effective_model.value}[/]\n"
            f"Instruction: [bold]{escape(record.instruction)}[/]\n"
            f"Saved to [bold]{escape(str(saved_path))}[/]",
            title="memegenius",
            border_style="green",
        )
    )


def _report_failure(session: EditingSession) -> None:
    if session.last_error is not None:
        render_cli_error(session.last_error, console=console, action="Editing image")
        return
    console.print(f"[bold red]{escape(session.error_message or '')}[/]")
