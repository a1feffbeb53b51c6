"""Shared CLI error rendering helpers."""

from __future__ import annotations

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel

from memegenius.core.provider_errors import (
    ProviderErrorInfo,
    extract_error_info,
    is_service_unavailable_error,
)


def render_cli_error(
    exc: BaseException,
    *,
    console: Console,
    action: str | None = None,
) -> None:
    """Render a friendly TUI panel for a command failure."""
    info = extract_error_info(exc)
    title, summary, hint = classify_error(exc, info)

    lines: list[str] = []
    if action:
        lines.append(f"[bold]{escape(action)}[/]")
        lines.append("")
    lines.append(f"[bold red]{title}[/]")
    lines.append(summary)

    status_bits: list[str] = []
    if info.code is not None:
        status_bits.append(str(info.code))
    if info.status:
        status_bits.append(info.status)
    if status_bits:
        lines.append(f"[dim]Provider status: {escape(' '.join(status_bits))}[/]")
    if hint:
        lines.append(f"[dim]{hint}[/]")
    if info.message and info.message.lower() not in summary.lower():
        lines.append(f"[dim]Details: {escape(info.message)}[/]")

    console.print(
        Panel.fit(
            "\n".join(lines),
            title="memegenius",
            border_style="red",
        )
    )


def classify_error(exc: BaseException, info: ProviderErrorInfo) -> tuple[str, str, str]:
    """Return ``(title, summary, hint)`` describing ``exc``."""
    if isinstance(exc, KeyboardInterrupt):
        return (
            "Command cancelled",
            "The command was cancelled before it finished.",
            "",
        )

    haystack = " ".join(
        bit
        for bit in (
            exc.__class__.__name__,
            info.status,
            info.message,
        )
        if bit
    ).lower()

    if is_service_unavailable_error(exc) or info.code == 503 or "high demand" in haystack:
        return (
            "Model temporarily unavailable",
            "The image model is currently experiencing high demand.",
            "Spikes are usually temporary. Please try again shortly.",
        )
    if (
        info.code == 429
        or "rate limit" in haystack
        or "resource_exhausted" in haystack
        or "quota" in haystack
    ):
        return (
            "Rate limit reached",
            "The provider rejected this request because usage limits were hit.",
            "Wait a moment, then retry. If this keeps happening, check your API quota.",
        )
    if info.code in {401, 403} or "api key" in haystack or "permission" in haystack:
        return (
            "Authentication problem",
            "The provider rejected authentication for this request.",
            "Verify your Gemini key with `memegenius setup` and retry.",
        )
    if isinstance(exc, TimeoutError) or "timed out" in haystack or "timeout" in haystack:
        return (
            "Request timed out",
            "The provider took too long to respond.",
            "Retry now, or pass a larger --timeout.",
        )
    if "connection" in haystack and (
        "refused" in haystack or "reset" in haystack or "dns" in haystack
    ):
        return (
            "Network connection issue",
            "A network problem interrupted communication with the provider.",
            "Check your connection and retry.",
        )
    return (
        "Edit failed",
        "An unexpected error occurred while editing the image.",
        "Try again. If the issue persists, rerun with --verbose for more context.",
    )
