"""Interactive editing session ("lab") command implementation."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from pathlib import Path
import shlex

import typer
from rich import box
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.prompt import Confirm, Prompt
from rich.table import Table

from memegenius.cli import editor_factory
from memegenius.cli.errors import render_cli_error
from memegenius.cli.image_store import save_edited_image
from memegenius.core.history import EditRecord
from memegenius.core.payload import ImagePayload
from memegenius.core.session import EditingSession, SessionStatus
from memegenius.engines.nanobanana import NanoBananaModel

console = Console()

SUGGESTED_PROMPTS = [
    "Add a retro 90s filter",
    "Replace the background with a futuristic city",
    "Make this look like a painting",
    "Add dramatic movie lighting",
    "Remove the background",
    "Turn characters into zombies",
    "Add a cinematic motion blur",
    "Add explosions in the background",
]
_COMMAND_HELP = [
    ("open PATH", "Load a source image (clears the edited image)."),
    ("prompt [TEXT]", "Set the edit instruction, or show the current one."),
    ("suggest [N]", "List suggested instructions, or use suggestion N."),
    ("clear-prompt", "Clear the edit instruction."),
    ("generate", "Send the image and instruction to the model."),
    ("history", "List past edits, newest first."),
    ("select ID", "Restore a past edit as the working state."),
    ("clear-history", "Forget every past edit."),
    ("save", "Save the edited image to the output directory."),
    ("reset", "Clear the image, edit and instruction."),
    ("status", "Show the current working state."),
    ("help", "Show this help."),
    ("quit", "Leave the lab."),
]
_QUIT_COMMANDS = {"quit", "exit", "q"}

Handler = Callable[[EditingSession, str, Path], Awaitable[None]]


def lab_command(
    ctx: typer.Context,
    image: Path | None = typer.Argument(
        None,
        help="Optional image to open when the lab starts.",
    ),
    model: NanoBananaModel | None = typer.Option(
        None,
        "--model",
        help="NanoBanana model selector.",
        case_sensitive=False,
    ),
    output_dir: Path | None = typer.Option(
        None,
        "--output-dir",
        help="Directory where saved images are written.",
    ),
    timeout: float | None = typer.Option(
        None,
        "--timeout",
        min=1.0,
        help="Request timeout in seconds (defaults to the transport default).",
    ),
) -> None:
    """Open an interactive meme editing session."""
    config = editor_factory.resolve_config(ctx)
    target_output_dir = output_dir or Path(config.default_output_dir)
    try:
        effective_model = editor_factory.resolve_model(config, model)
    except ValueError as exc:
        console.print(f"[bold red]{escape(str(exc))}[/]")
        raise typer.Exit(code=1) from exc
    session = editor_factory.build_session(
        config, model=effective_model, timeout_seconds=timeout
    )
    console.print(
        Panel.fit(
            f"[bold]MemeGenius Lab[/]\n"
            f"Model: [bold]{effective_model.value}[/]\n"
            f"Output: [bold]{escape(str(target_output_dir))}[/]\n"
            "[dim]Type [bold]help[/] for commands.[/]",
            title="memegenius",
            border_style="cyan",
        )
    )
    asyncio.run(run_lab(session, output_dir=target_output_dir, initial_image=image))


async def run_lab(
    session: EditingSession,
    *,
    output_dir: Path,
    initial_image: Path | None = None,
) -> None:
    """Read and run lab commands until the user quits."""
    if initial_image is not None:
        await _handle_open(session, str(initial_image), output_dir)

    while True:
        try:
            line = Prompt.ask(_prompt_label(session))
        except EOFError:
            break
        if not await dispatch(session, line, output_dir=output_dir):
            break
    console.print("[dim]Bye.[/]")


async def dispatch(session: EditingSession, line: str, *, output_dir: Path) -> bool:
    """Run one lab command line. Returns False when the lab should exit."""
    command, _, argument = line.strip().partition(" ")
    command = command.lower()
    if not command:
        return True
    if command in _QUIT_COMMANDS:
        return False

    handler = _HANDLERS.get(command)
    if handler is None:
        console.print(f"[bold red]Unknown command: {escape(command)}[/] [dim](try help)[/]")
        return True
    await handler(session, argument.strip(), output_dir)
    return True


async def _handle_open(session: EditingSession, argument: str, output_dir: Path) -> None:
    if not argument:
        console.print("[bold red]Usage: open PATH[/]")
        return
    path = Path(_unquote(argument))
    try:
        payload = session.load_image(path)
    except (OSError, ValueError) as exc:
        console.print(f"[bold red]{escape(str(exc))}[/]")
        return
    console.print(
        f"[bold green]Loaded {escape(str(path))}[/] [dim]({_describe_payload(payload)})[/]"
    )


async def _handle_prompt(session: EditingSession, argument: str, output_dir: Path) -> None:
    if not argument:
        current = escape(session.instruction) or "[dim](not set)[/]"
        console.print(f"Instruction: {current}")
        return
    session.set_instruction(argument)


async def _handle_suggest(session: EditingSession, argument: str, output_dir: Path) -> None:
    if not argument:
        console.print(_suggestions_table())
        return
    if session.source_image is None or session.is_generating:
        console.print("[yellow]Open an image before picking a suggestion.[/]")
        return
    if not argument.isdigit() or not 1 <= int(argument) <= len(SUGGESTED_PROMPTS):
        console.print(
            f"[bold red]Pick a suggestion between 1 and {len(SUGGESTED_PROMPTS)}.[/]"
        )
        return
    session.set_instruction(SUGGESTED_PROMPTS[int(argument) - 1])
    console.print(f"Instruction: [bold]{escape(session.instruction)}[/]")


async def _handle_clear_prompt(
    session: EditingSession, argument: str, output_dir: Path
) -> None:
    session.clear_instruction()


async def _handle_generate(session: EditingSession, argument: str, output_dir: Path) -> None:
    if argument:
        session.set_instruction(argument)
    if session.source_image is None:
        console.print("[yellow]Open an image first.[/]")
        return
    if not session.instruction.strip():
        console.print("[yellow]Set an instruction first (prompt TEXT or suggest N).[/]")
        return

    with console.status("[bold cyan]Nano Banana is cooking...[/]", spinner="dots"):
        record = await session.generate()

    if record is not None:
        console.print(
            Panel.fit(
                f"[bold green]Edit ready[/]\n"
                f"History ID: [bold]{escape(record.id)}[/]\n"
                f"Instruction: [bold]{escape(record.instruction)}[/]\n"
                f"Result: [bold]{_describe_payload(record.result)}[/]\n"
                "[dim]Use [bold]save[/] to write it to disk.[/]",
                title="memegenius",
                border_style="green",
            )
        )
        return
    if session.status is not SessionStatus.ERROR:
        return
    if session.last_error is not None:
        render_cli_error(session.last_error, console=console, action="Editing image")
    else:
        console.print(f"[bold red]{escape(session.error_message or '')}[/]")


async def _handle_history(session: EditingSession, argument: str, output_dir: Path) -> None:
    if not session.history.records:
        console.print("[dim]Your generation history will appear here.[/]")
        return
    console.print(_history_table(session.history.records))


async def _handle_select(session: EditingSession, argument: str, output_dir: Path) -> None:
    if not argument:
        console.print("[bold red]Usage: select ID[/]")
        return
    try:
        record = session.select(argument)
    except KeyError:
        console.print(f"[bold red]No history entry with ID '{escape(argument)}'.[/]")
        return
    console.print(
        f"[bold green]Restored {escape(record.id)}[/] "
        f"Instruction: [bold]{escape(record.instruction)}[/]"
    )


async def _handle_clear_history(
    session: EditingSession, argument: str, output_dir: Path
) -> None:
    count = len(session.history)
    if not count:
        console.print("[yellow]History is already empty.[/]")
        return
    should_clear = Confirm.ask(
        f"Clear all {count} history entries? This cannot be undone.",
        default=False,
    )
    if not should_clear:
        console.print("[yellow]Cancelled. History was kept.[/]")
        return
    session.clear_history()
    console.print(f"[bold green]Cleared {count} history entries.[/]")


async def _handle_save(session: EditingSession, argument: str, output_dir: Path) -> None:
    if session.edited_image is None:
        console.print("[yellow]Nothing to save yet. Run generate first.[/]")
        return
    try:
        saved_path = save_edited_image(session.edited_image, output_dir=output_dir)
    except (OSError, ValueError) as exc:
        console.print(f"[bold red]Could not save the image: {escape(str(exc))}[/]")
        return
    console.print(f"[bold green]Saved to {escape(str(saved_path))}[/]")


async def _handle_reset(session: EditingSession, argument: str, output_dir: Path) -> None:
    session.reset()
    console.print("[dim]Working state cleared.[/]")


async def _handle_status(session: EditingSession, argument: str, output_dir: Path) -> None:
    details = Table.grid(padding=(0, 1))
    details.add_column(style="bold cyan")
    details.add_column()
    details.add_row("Status", session.status.value)
    details.add_row("Source", _describe_optional(session.source_image))
    details.add_row("Edited", _describe_optional(session.edited_image))
    details.add_row("Instruction", escape(session.instruction) or "[dim](not set)[/]")
    details.add_row("History", str(len(session.history)))
    if session.error_message:
        details.add_row("Error", f"[red]{escape(session.error_message)}[/]")
    console.print(Panel(details, title="Current session", border_style="cyan", box=box.ROUNDED))


async def _handle_help(session: EditingSession, argument: str, output_dir: Path) -> None:
    table = Table(title="Lab commands", box=box.ROUNDED, header_style="bold")
    table.add_column("Command")
    table.add_column("Description")
    for command, description in _COMMAND_HELP:
        table.add_row(command, description)
    console.print(table)


_HANDLERS: dict[str, Handler] = {
    "open": _handle_open,
    "prompt": _handle_prompt,
    "suggest": _handle_suggest,
    "clear-prompt": _handle_clear_prompt,
    "generate": _handle_generate,
    "history": _handle_history,
    "select": _handle_select,
    "clear-history": _handle_clear_history,
    "save": _handle_save,
    "reset": _handle_reset,
    "status": _handle_status,
    "help": _handle_help,
}


def _prompt_label(session: EditingSession) -> str:
    if session.source_image is None:
        return "[bold cyan]lab[/]"
    marker = "edited" if session.edited_image is not None else "original"
    return f"[bold cyan]lab[/] [dim]({marker})[/]"


def _suggestions_table() -> Table:
    table = Table(title="Quick suggestions", box=box.ROUNDED, header_style="bold")
    table.add_column("#", justify="right")
    table.add_column("Instruction")
    for index, prompt in enumerate(SUGGESTED_PROMPTS, start=1):
        table.add_row(str(index), prompt)
    return table


def _history_table(records: list[EditRecord]) -> Table:
    table = Table(title="Recent lab runs", box=box.ROUNDED, header_style="bold")
    table.add_column("ID")
    table.add_column("Created")
    table.add_column("Instruction")
    table.add_column("Result")
    for record in records:
        table.add_row(
            record.id,
            record.created_at.strftime("%H:%M:%S"),
            escape(record.instruction),
            _describe_payload(record.result),
        )
    return table


def _describe_payload(payload: ImagePayload) -> str:
    size_kib = len(payload.data) * 3 / 4 / 1024
    return f"{escape(payload.mime_type)}, {size_kib:.1f} KiB"


def _describe_optional(payload: ImagePayload | None) -> str:
    if payload is None:
        return "[dim](none)[/]"
    return _describe_payload(payload)


def _unquote(argument: str) -> str:
    try:
        parts = shlex.split(argument)
    except ValueError:
        return argument
    return parts[0] if len(parts) == 1 else argument
