from __future__ import annotations

from pathlib import Path
from types import SimpleNamespace

import pytest
import typer

from memegenius.cli import editor_factory
from memegenius.cli.commands import edit as edit_commands
from memegenius.core.config import GlobalConfig
from memegenius.core.interfaces import ImageEditor
from memegenius.core.payload import ImagePayload
from memegenius.core.session import EditingSession
from memegenius.engines.nanobanana import NanoBananaImageEditor, NanoBananaModel


class _FakeEditor(ImageEditor):
    def __init__(
        self,
        result: ImagePayload | None = None,
        error: BaseException | None = None,
    ) -> None:
        self.result = result
        self.error = error

    async def edit_image(
        self, source_image: ImagePayload, instruction: str
    ) -> ImagePayload | None:
        if self.error is not None:
            raise self.error
        return self.result


def _context(config: GlobalConfig | None = None) -> typer.Context:
    return SimpleNamespace(obj={"config": config or GlobalConfig()})  # type: ignore[return-value]


def _use_editor(monkeypatch: pytest.MonkeyPatch, editor: ImageEditor) -> dict[str, object]:
    captured: dict[str, object] = {}

    def _build_session(config: GlobalConfig, **kwargs: object) -> EditingSession:
        captured.update(kwargs)
        return EditingSession(editor)

    monkeypatch.setattr(editor_factory, "build_session", _build_session)
    return captured


def _source(tmp_path: Path) -> Path:
    source = tmp_path / "frame.jpg"
    source.write_bytes(b"frame-bytes")
    return source


def test_edit_command_saves_edited_image(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    captured = _use_editor(monkeypatch, _FakeEditor(result=ImagePayload.from_bytes(b"meme")))
    output_dir = tmp_path / "out"

    edit_commands.edit_command(
        _context(),
        image=_source(tmp_path),
        instruction="Add a retro 90s filter",
        model=None,
        output_dir=output_dir,
        timeout=None,
    )

    saved = list(output_dir.glob("meme-*.png"))
    assert len(saved) == 1
    assert saved[0].read_bytes() == b"meme"
    assert captured == {"model": NanoBananaModel.FLASH, "timeout_seconds": None}


def test_edit_command_exits_when_no_image_is_produced(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    _use_editor(monkeypatch, _FakeEditor(result=None))
    output_dir = tmp_path / "out"

    with pytest.raises(typer.Exit) as exc_info:
        edit_commands.edit_command(
            _context(),
            image=_source(tmp_path),
            instruction="Add a retro 90s filter",
            model=NanoBananaModel.PRO,
            output_dir=output_dir,
            timeout=30.0,
        )

    assert exc_info.value.exit_code == 1
    assert not output_dir.exists()


def test_edit_command_exits_on_service_error(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    _use_editor(monkeypatch, _FakeEditor(error=RuntimeError("429 RESOURCE_EXHAUSTED")))

    with pytest.raises(typer.Exit) as exc_info:
        edit_commands.edit_command(
            _context(),
            image=_source(tmp_path),
            instruction="Add a retro 90s filter",
            model=None,
            output_dir=tmp_path,
            timeout=None,
        )

    assert exc_info.value.exit_code == 1


def test_edit_command_rejects_blank_instruction(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    _use_editor(monkeypatch, _FakeEditor(result=ImagePayload.from_bytes(b"meme")))

    with pytest.raises(typer.Exit):
        edit_commands.edit_command(
            _context(),
            image=_source(tmp_path),
            instruction="   ",
            model=None,
            output_dir=tmp_path,
            timeout=None,
        )

    assert list(tmp_path.glob("meme-*.png")) == []


def test_resolve_model_uses_config_default() -> None:
    config = GlobalConfig(default_model="PRO")

    assert editor_factory.resolve_model(config, None) is NanoBananaModel.PRO
    assert editor_factory.resolve_model(config, NanoBananaModel.FLASH) is NanoBananaModel.FLASH
    with pytest.raises(ValueError, match="Unsupported default_model"):
        editor_factory.resolve_model(GlobalConfig(default_model="ultra"), None)


def test_build_session_injects_a_nanobanana_editor() -> None:
    config = GlobalConfig(api_keys={"GEMINI_API_KEY": "abc"})

    session = editor_factory.build_session(config, model=NanoBananaModel.PRO)

    editor = session._editor
    assert isinstance(editor, NanoBananaImageEditor)
    assert editor.model is NanoBananaModel.PRO
    assert editor._api_key == "abc"
