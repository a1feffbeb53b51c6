"""In-memory edit history."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from memegenius.core.payload import ImagePayload


def record_id_for(created_at: datetime) -> str:
    """Return the millisecond timestamp id used for an edit record."""
    return str(int(created_at.timestamp() * 1000))


def dedupe_record_id(base_id: str, existing_ids: set[str]) -> str:
    """Ensure record id uniqueness by appending numeric suffixes when needed."""
    candidate = base_id
    suffix = 2
    while candidate in existing_ids:
        candidate = f"{base_id}-{suffix}"
        suffix += 1
    return candidate


class EditRecord(BaseModel):
    """One completed transformation: origin + instruction -> result."""

    model_config = ConfigDict(frozen=True)

    id: str
    result: ImagePayload
    origin: ImagePayload
    instruction: str
    created_at: datetime


class EditHistory(BaseModel):
    """Edit records ordered most-recent-first."""

    records: list[EditRecord] = Field(default_factory=list)

    def __len__(self) -> int:
        return len(self.records)

    @property
    def latest(self) -> EditRecord | None:
        return self.records[0] if self.records else None

    def add(
        self,
        *,
        result: ImagePayload,
        origin: ImagePayload,
        instruction: str,
        created_at: datetime,
    ) -> EditRecord:
        """Create a record and prepend it."""
        existing_ids = {record.id for record in self.records}
        record = EditRecord(
            id=dedupe_record_id(record_id_for(created_at), existing_ids),
            result=result,
            origin=origin,
            instruction=instruction,
            created_at=created_at,
        )
        self.records.insert(0, record)
        return record

    def find(self, record_id: str) -> EditRecord | None:
        """Find a record by ID."""
        return next((record for record in self.records if record.id == record_id), None)

    def clear(self) -> int:
        """Drop every record and return how many were removed."""
        removed = len(self.records)
        self.records = []
        return removed
