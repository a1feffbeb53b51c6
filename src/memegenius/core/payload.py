"""Self-describing image payloads (media type + base64 data)."""

from __future__ import annotations

import base64
import binascii
import mimetypes
from pathlib import Path

from pydantic import BaseModel, ConfigDict, field_validator

DEFAULT_IMAGE_MIME_TYPE = "image/png"
_DATA_URI_PREFIX = "data:"
_BASE64_MARKER = ";base64"
# Formats missing from the mimetypes table on older interpreters.
_EXTRA_IMAGE_TYPES = {
    ".avif": "image/avif",
    ".heic": "image/heic",
    ".heif": "image/heif",
}
for _extension, _mime_type in _EXTRA_IMAGE_TYPES.items():
    mimetypes.add_type(_mime_type, _extension)


class ImagePayload(BaseModel):
    """An encoded image together with the media type needed to interpret it."""

    model_config = ConfigDict(frozen=True)

    mime_type: str = DEFAULT_IMAGE_MIME_TYPE
    data: str

    @field_validator("mime_type", mode="before")
    @classmethod
    def normalize_mime_type(cls, value: object) -> str:
        text = str(value or "").strip().lower()
        return text or DEFAULT_IMAGE_MIME_TYPE

    @classmethod
    def from_data_uri(cls, value: str) -> ImagePayload:
        """Parse ``data:<mime>;base64,<data>`` text, or bare base64 data."""
        text = value.strip()
        if not text.startswith(_DATA_URI_PREFIX) or "," not in text:
            return cls(data=text)

        header, data = text.split(",", maxsplit=1)
        media = header[len(_DATA_URI_PREFIX) :]
        if media.endswith(_BASE64_MARKER):
            media = media[: -len(_BASE64_MARKER)]
        return cls(mime_type=media.split(";", maxsplit=1)[0], data=data)

    @classmethod
    def from_bytes(
        cls, image_bytes: bytes, mime_type: str = DEFAULT_IMAGE_MIME_TYPE
    ) -> ImagePayload:
        return cls(
            mime_type=mime_type,
            data=base64.b64encode(image_bytes).decode("ascii"),
        )

    @classmethod
    def from_file(cls, path: Path | str) -> ImagePayload:
        """Read an image file, accepting only paths that look like images."""
        source = Path(path).expanduser()
        mime_type, _ = mimetypes.guess_type(source.name)
        if not mime_type or not mime_type.startswith("image/"):
            raise ValueError(f"Not an image file: {source}")
        if not source.is_file():
            raise FileNotFoundError(f"Image file not found: {source}")
        return cls.from_bytes(source.read_bytes(), mime_type)

    def to_data_uri(self) -> str:
        return f"{_DATA_URI_PREFIX}{self.mime_type}{_BASE64_MARKER},{self.data}"

    def to_bytes(self) -> bytes:
        try:
            return base64.b64decode(self.data, validate=True)
        except binascii.Error as exc:
            raise ValueError("Image payload is not valid base64 data.") from exc
