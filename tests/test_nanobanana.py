from __future__ import annotations

import asyncio
import base64
from types import SimpleNamespace

import httpx
import pytest

import memegenius.engines.nanobanana as nanobanana_module
from memegenius.core.config import API_KEY_ENV_NAMES
from memegenius.core.payload import ImagePayload
from memegenius.engines.nanobanana import (
    NanoBananaImageEditor,
    NanoBananaModel,
    build_edit_prompt,
    extract_edited_image,
)

_SOURCE = ImagePayload.from_data_uri(
    "data:image/png;base64," + base64.b64encode(b"source-frame").decode("ascii")
)


class _FakeModels:
    def __init__(self, response: object) -> None:
        self.response = response
        self.calls: list[dict[str, object]] = []

    async def generate_content(self, **kwargs: object) -> object:
        self.calls.append(kwargs)
        if isinstance(self.response, BaseException):
            raise self.response
        return self.response


def _response(*parts: object) -> SimpleNamespace:
    return SimpleNamespace(
        candidates=[SimpleNamespace(content=SimpleNamespace(parts=list(parts)))]
    )


def _text_part(text: str) -> SimpleNamespace:
    return SimpleNamespace(text=text, inline_data=None)


def _image_part(data: bytes, mime_type: str = "image/png") -> SimpleNamespace:
    return SimpleNamespace(text=None, inline_data=SimpleNamespace(data=data, mime_type=mime_type))


def _editor_with(response: object, **kwargs: object) -> tuple[NanoBananaImageEditor, _FakeModels]:
    fake_models = _FakeModels(response)
    editor = NanoBananaImageEditor(api_key="abc", **kwargs)  # type: ignore[arg-type]
    editor._client = SimpleNamespace(aio=SimpleNamespace(models=fake_models))
    return editor, fake_models


def test_edit_image_sends_stripped_image_and_framed_instruction() -> None:
    editor, fake_models = _editor_with(_response(_image_part(b"edited-frame")))

    result = asyncio.run(editor.edit_image(_SOURCE, "Add a retro 90s filter"))

    assert result == ImagePayload.from_bytes(b"edited-frame", "image/png")
    assert len(fake_models.calls) == 1
    call = fake_models.calls[0]
    assert call["model"] == "gemini-2.5-flash-image"
    image_part, text = call["contents"]  # type: ignore[misc]
    assert image_part.inline_data.data == b"source-frame"
    assert image_part.inline_data.mime_type == "image/png"
    assert text == (
        "Transform this image according to this prompt for a high-quality meme: "
        "Add a retro 90s filter. Return only the edited image."
    )


def test_pro_model_selects_gemini_3_pro_image() -> None:
    editor, fake_models = _editor_with(
        _response(_image_part(b"edited")), model=NanoBananaModel.PRO
    )

    asyncio.run(editor.edit_image(_SOURCE, "Remove the background"))

    assert fake_models.calls[0]["model"] == "gemini-3-pro-image-preview"


def test_edit_image_returns_none_when_response_has_no_image() -> None:
    editor, _ = _editor_with(_response(_text_part("I cannot edit this image.")))

    assert asyncio.run(editor.edit_image(_SOURCE, "Add explosions")) is None


def test_edit_image_propagates_transport_errors() -> None:
    editor, _ = _editor_with(httpx.ConnectError("connection refused"))

    with pytest.raises(httpx.ConnectError):
        asyncio.run(editor.edit_image(_SOURCE, "Add explosions"))


def test_extract_edited_image_uses_first_inline_part_of_first_candidate() -> None:
    response = SimpleNamespace(
        candidates=[
            SimpleNamespace(
                content=SimpleNamespace(
                    parts=[
                        _text_part("Here you go"),
                        _image_part(b"first", "image/jpeg"),
                        _image_part(b"second"),
                    ]
                )
            ),
            SimpleNamespace(content=SimpleNamespace(parts=[_image_part(b"other")])),
        ]
    )

    result = extract_edited_image(response)

    assert result is not None
    assert result.mime_type == "image/jpeg"
    assert result.to_bytes() == b"first"


def test_extract_edited_image_accepts_base64_text_payloads() -> None:
    encoded = base64.b64encode(b"edited").decode("ascii")

    part = SimpleNamespace(inline_data=SimpleNamespace(data=encoded, mime_type=None))

    result = extract_edited_image(_response(part))

    assert result == ImagePayload(mime_type="image/png", data=encoded)


@pytest.mark.parametrize(
    "response",
    [
        SimpleNamespace(candidates=None),
        SimpleNamespace(candidates=[]),
        SimpleNamespace(candidates=[SimpleNamespace(content=None)]),
        SimpleNamespace(candidates=[SimpleNamespace(content=SimpleNamespace(parts=None))]),
    ],
)
def test_extract_edited_image_handles_empty_responses(response: object) -> None:
    assert extract_edited_image(response) is None


def test_client_is_created_lazily_with_timeout(monkeypatch: pytest.MonkeyPatch) -> None:
    captured: list[dict[str, object]] = []

    def _fake_client(*, api_key: str, http_options: object) -> object:
        captured.append({"api_key": api_key, "http_options": http_options})
        return SimpleNamespace(aio=SimpleNamespace(models=_FakeModels(_response())))

    monkeypatch.setattr(nanobanana_module.genai, "Client", _fake_client)
    editor = NanoBananaImageEditor(api_key="abc", timeout_seconds=90.0)
    assert captured == []

    asyncio.run(editor.edit_image(_SOURCE, "Add a retro 90s filter"))
    asyncio.run(editor.edit_image(_SOURCE, "Add a retro 90s filter"))

    assert len(captured) == 1
    assert captured[0]["api_key"] == "abc"
    assert getattr(captured[0]["http_options"], "timeout", None) == 90000


def test_missing_api_key_fails_at_call_time(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in API_KEY_ENV_NAMES:
        monkeypatch.delenv(name, raising=False)
    editor = NanoBananaImageEditor()

    with pytest.raises(ValueError, match="Missing Gemini API key"):
        asyncio.run(editor.edit_image(_SOURCE, "Add a retro 90s filter"))


def test_api_key_falls_back_to_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    captured: dict[str, object] = {}

    def _fake_client(*, api_key: str, http_options: object) -> object:
        captured["api_key"] = api_key
        captured["http_options"] = http_options
        return SimpleNamespace()

    for name in API_KEY_ENV_NAMES:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("API_KEY", "from-env")
    monkeypatch.setattr(nanobanana_module.genai, "Client", _fake_client)

    NanoBananaImageEditor()._get_client()

    assert captured == {"api_key": "from-env", "http_options": None}


def test_build_edit_prompt_wraps_instruction() -> None:
    assert build_edit_prompt("Make this look like a painting").endswith(
        "Make this look like a painting. Return only the edited image."
    )
