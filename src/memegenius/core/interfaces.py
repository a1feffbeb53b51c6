"""Abstract interfaces for image editing backends."""

from __future__ import annotations

from abc import ABC, abstractmethod

from memegenius.core.payload import ImagePayload


class ImageEditor(ABC):
    """Interface for AI image editing backends."""

    @abstractmethod
    async def edit_image(
        self,
        source_image: ImagePayload,
        instruction: str,
    ) -> ImagePayload | None:
        """Edit ``source_image`` per ``instruction``.

        Returns ``None`` when the service answered without producing an image.
        Transport and service failures propagate as exceptions.
        """
