"""Nano Banana image editor using the Gemini API."""

from __future__ import annotations

import base64
from enum import Enum
import logging
import os
from typing import Any

from google import genai
from google.genai import types

from memegenius.core.config import API_KEY_ENV_NAMES
from memegenius.core.interfaces import ImageEditor
from memegenius.core.payload import DEFAULT_IMAGE_MIME_TYPE, ImagePayload

logger = logging.getLogger(__name__)

_MODEL_MAP = {
    "flash": "gemini-2.5-flash-image",
    "pro": "gemini-3-pro-image-preview",
}
_MEME_PROMPT_TEMPLATE = (
    "Transform this image according to this prompt for a high-quality meme: "
    "{instruction}. Return only the edited image."
)


class NanoBananaModel(str, Enum):
    """Supported Nano Banana model selectors."""

    FLASH = "flash"
    PRO = "pro"

    @property
    def api_model(self) -> str:
        return _MODEL_MAP[self.value]


class NanoBananaImageEditor(ImageEditor):
    """ImageEditor backed by Gemini Nano Banana image generation.

    The SDK client is created on the first edit, so a missing API key is
    reported by that call instead of at construction time.
    """

    def __init__(
        self,
        *,
        model: NanoBananaModel = NanoBananaModel.FLASH,
        api_key: str | None = None,
        timeout_seconds: float | None = None,
    ) -> None:
        self.model = model
        self._api_model = model.api_model
        self._api_key = api_key
        self._timeout_seconds = timeout_seconds
        self._client: Any | None = None

    async def edit_image(
        self,
        source_image: ImagePayload,
        instruction: str,
    ) -> ImagePayload | None:
        client = self._get_client()
        contents = [_image_part(source_image), build_edit_prompt(instruction)]
        logger.debug(
            "Requesting edit from %s (%s, %d base64 chars)",
            self._api_model,
            source_image.mime_type,
            len(source_image.data),
        )
        response = await client.aio.models.generate_content(
            model=self._api_model,
            contents=contents,
            config=types.GenerateContentConfig(response_modalities=["TEXT", "IMAGE"]),
        )
        edited = extract_edited_image(response)
        if edited is None:
            logger.warning("No image found in %s response.", self._api_model)
        return edited

    def _get_client(self) -> Any:
        if self._client is None:
            self._client = genai.Client(
                api_key=_resolve_api_key(self._api_key),
                http_options=_http_options(self._timeout_seconds),
            )
        return self._client


def build_edit_prompt(instruction: str) -> str:
    """Wrap a user instruction in the meme-editing framing."""
    return _MEME_PROMPT_TEMPLATE.format(instruction=instruction)


def extract_edited_image(response: Any) -> ImagePayload | None:
    """Return the first inline image of the first candidate, if any."""
    for part in _first_candidate_parts(response):
        inline_data = getattr(part, "inline_data", None)
        if inline_data is None:
            continue
        data = getattr(inline_data, "data", None)
        if not data:
            continue
        mime_type = getattr(inline_data, "mime_type", None) or DEFAULT_IMAGE_MIME_TYPE
        return ImagePayload(mime_type=mime_type, data=_inline_data_text(data))
    return None


def _resolve_api_key(api_key: str | None) -> str:
    resolved_key = api_key or next(
        (os.environ[name] for name in API_KEY_ENV_NAMES if os.getenv(name)), None
    )
    if resolved_key:
        return resolved_key
    raise ValueError(
        "Missing Gemini API key. Run `memegenius setup` or define GEMINI_API_KEY."
    )


def _http_options(timeout_seconds: float | None) -> types.HttpOptions | None:
    if timeout_seconds is None:
        return None
    return types.HttpOptions(timeout=int(timeout_seconds * 1000))


def _image_part(image: ImagePayload) -> types.Part:
    return types.Part.from_bytes(data=image.to_bytes(), mime_type=image.mime_type)


def _first_candidate_parts(response: Any) -> list[Any]:
    candidates = getattr(response, "candidates", None) or []
    if not candidates:
        return []

    content = getattr(candidates[0], "content", None)
    parts = getattr(content, "parts", None) or []
    return list(parts)


def _inline_data_text(data: bytes | str) -> str:
    if isinstance(data, bytes):
        return base64.b64encode(data).decode("ascii")
    if isinstance(data, str):
        return data
    raise TypeError("Unsupported inline image payload type.")
