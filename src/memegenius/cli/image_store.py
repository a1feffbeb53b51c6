"""CLI helpers for writing edited images to disk."""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path

from memegenius.core.payload import ImagePayload

DOWNLOAD_EXTENSION = "png"


def save_edited_image(
    image: ImagePayload,
    *,
    output_dir: Path,
    file_prefix: str = "meme",
    now: datetime | None = None,
) -> Path:
    """Write an edited image as ``<prefix>-<epoch ms>.png`` and return its path."""
    image_bytes = image.to_bytes()
    if not image_bytes:
        raise ValueError("Edited image has no data.")
    timestamp = now or datetime.now(timezone.utc)
    output_dir.mkdir(parents=True, exist_ok=True)
    file_name = f"{file_prefix}-{int(timestamp.timestamp() * 1000)}.{DOWNLOAD_EXTENSION}"
    local_path = output_dir / file_name
    local_path.write_bytes(image_bytes)
    return local_path
