"""Composition root: builds the editor and session used by CLI commands."""

from __future__ import annotations

import typer

from memegenius.core.config import GlobalConfig, get_gemini_api_key, load_global_config
from memegenius.core.session import EditingSession
from memegenius.engines.nanobanana import NanoBananaImageEditor, NanoBananaModel


def resolve_config(ctx: typer.Context) -> GlobalConfig:
    if ctx.obj and isinstance(ctx.obj.get("config"), GlobalConfig):
        return ctx.obj["config"]
    return load_global_config()


def resolve_model(config: GlobalConfig, model: NanoBananaModel | None) -> NanoBananaModel:
    if model is not None:
        return model
    try:
        return NanoBananaModel(config.default_model.strip().lower())
    except ValueError as exc:
        raise ValueError(
            f"Unsupported default_model '{config.default_model}' in config.toml. "
            f"Use one of: {', '.join(item.value for item in NanoBananaModel)}."
        ) from exc


def build_session(
    config: GlobalConfig,
    *,
    model: NanoBananaModel,
    timeout_seconds: float | None = None,
) -> EditingSession:
    editor = NanoBananaImageEditor(
        model=model,
        api_key=get_gemini_api_key(config),
        timeout_seconds=timeout_seconds,
    )
    return EditingSession(editor)
