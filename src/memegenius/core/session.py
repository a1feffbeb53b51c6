"""Editing session controller."""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime, timezone
from enum import Enum
import logging
from pathlib import Path

from memegenius.core.history import EditHistory, EditRecord
from memegenius.core.interfaces import ImageEditor
from memegenius.core.payload import ImagePayload
from memegenius.core.provider_errors import describe_provider_error

logger = logging.getLogger(__name__)

EMPTY_RESULT_MESSAGE = "Failed to generate image. Please try again."
GENERIC_ERROR_MESSAGE = "Something went wrong during generation."


class SessionStatus(str, Enum):
    IDLE = "idle"
    UPLOADING = "uploading"
    GENERATING = "generating"
    ERROR = "error"


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class EditingSession:
    """Working state of one editing session plus its history.

    Loading an image, selecting a history record and resetting each start a new
    epoch. A generation remembers the epoch it was submitted in and its outcome
    is dropped if the epoch has moved on by the time it completes.
    """

    def __init__(
        self,
        editor: ImageEditor,
        *,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self._editor = editor
        self._clock = clock
        self._epoch = 0
        self._in_flight = 0
        self.source_image: ImagePayload | None = None
        self.edited_image: ImagePayload | None = None
        self.instruction = ""
        self.status = SessionStatus.IDLE
        self.error_message: str | None = None
        self.last_error: BaseException | None = None
        self.history = EditHistory()

    @property
    def epoch(self) -> int:
        return self._epoch

    @property
    def is_generating(self) -> bool:
        return self.status is SessionStatus.GENERATING

    @property
    def display_image(self) -> ImagePayload | None:
        """The image a viewer should show: the edit if there is one."""
        return self.edited_image or self.source_image

    @property
    def can_submit(self) -> bool:
        return (
            self.source_image is not None
            and bool(self.instruction.strip())
            and not self.is_generating
        )

    def load_image(self, path: Path | str) -> ImagePayload:
        """Read an image file and make it the new source image."""
        self._advance_epoch()
        self.status = SessionStatus.UPLOADING
        try:
            payload = ImagePayload.from_file(path)
        except (OSError, ValueError) as exc:
            self._fail(str(exc), error=exc)
            raise
        self.load_payload(payload)
        return payload

    def load_payload(self, payload: ImagePayload) -> None:
        """Make ``payload`` the new source image and drop any edited image."""
        self._advance_epoch()
        self.source_image = payload
        self.edited_image = None
        self._clear_error()
        self.status = SessionStatus.IDLE

    def set_instruction(self, text: str) -> None:
        self.instruction = text

    def clear_instruction(self) -> None:
        self.instruction = ""

    async def generate(self) -> EditRecord | None:
        """Send the current image and instruction to the editor.

        Returns the new history record, or ``None`` when the submission was
        rejected, failed or went stale. Failures are reported through
        ``status`` and ``error_message``; they are not raised.
        """
        origin = self.source_image
        if origin is None or not self.can_submit:
            logger.debug("Generation rejected: nothing to submit or already generating.")
            return None

        epoch = self._epoch
        instruction = self.instruction
        self._clear_error()
        self.status = SessionStatus.GENERATING
        self._in_flight += 1
        try:
            result = await self._editor.edit_image(origin, instruction)
        except Exception as exc:
            logger.debug("Image edit failed.", exc_info=True)
            if self._is_current(epoch):
                self._fail(
                    describe_provider_error(exc, fallback=GENERIC_ERROR_MESSAGE),
                    error=exc,
                )
            return None
        finally:
            self._in_flight -= 1

        if not self._is_current(epoch):
            logger.info("Discarding edit result from stale epoch %d.", epoch)
            return None
        if result is None:
            self._fail(EMPTY_RESULT_MESSAGE)
            return None

        self.edited_image = result
        record = self.history.add(
            result=result,
            origin=origin,
            instruction=instruction,
            created_at=self._clock(),
        )
        self.status = SessionStatus.IDLE
        logger.debug("Recorded edit %s.", record.id)
        return record

    def reset(self) -> None:
        """Clear the working state; history is kept."""
        self._advance_epoch()
        self.source_image = None
        self.edited_image = None
        self.instruction = ""
        self._clear_error()
        self.status = SessionStatus.IDLE

    def select(self, record_id: str) -> EditRecord:
        """Restore a history record as the working state."""
        record = self.history.find(record_id)
        if record is None:
            raise KeyError(record_id)
        self._advance_epoch()
        self.edited_image = record.result
        self.source_image = record.origin
        self.instruction = record.instruction
        self._clear_error()
        self.status = SessionStatus.IDLE
        return record

    def clear_history(self) -> int:
        return self.history.clear()

    def _advance_epoch(self) -> None:
        self._epoch += 1
        if self._in_flight:
            logger.info("Detaching %d in-flight generation(s).", self._in_flight)

    def _clear_error(self) -> None:
        self.error_message = None
        self.last_error = None

    def _is_current(self, epoch: int) -> bool:
        return epoch == self._epoch

    def _fail(self, message: str, *, error: BaseException | None = None) -> None:
        self.error_message = message
        self.last_error = error
        self.status = SessionStatus.ERROR
