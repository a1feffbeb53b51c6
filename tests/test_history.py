from __future__ import annotations

from datetime import datetime, timezone

from memegenius.core.history import EditHistory, record_id_for
from memegenius.core.payload import ImagePayload

_ORIGIN = ImagePayload.from_bytes(b"origin")
_RESULT = ImagePayload.from_bytes(b"result")


def test_add_prepends_newest_record() -> None:
    history = EditHistory()
    first = history.add(
        result=_RESULT,
        origin=_ORIGIN,
        instruction="Add a retro 90s filter",
        created_at=datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc),
    )
    second = history.add(
        result=_RESULT,
        origin=_ORIGIN,
        instruction="Remove the background",
        created_at=datetime(2024, 1, 1, 12, 0, 5, tzinfo=timezone.utc),
    )

    assert [record.id for record in history.records] == [second.id, first.id]
    assert history.latest == second
    assert first.id == "1704110400000"


def test_ids_stay_unique_within_the_same_millisecond() -> None:
    history = EditHistory()
    created_at = datetime(2024, 1, 1, tzinfo=timezone.utc)
    ids = [
        history.add(
            result=_RESULT, origin=_ORIGIN, instruction=f"edit {index}", created_at=created_at
        ).id
        for index in range(3)
    ]

    base_id = record_id_for(created_at)
    assert ids == [base_id, f"{base_id}-2", f"{base_id}-3"]


def test_find_and_clear() -> None:
    history = EditHistory()
    record = history.add(
        result=_RESULT,
        origin=_ORIGIN,
        instruction="Make this look like a painting",
        created_at=datetime.now(timezone.utc),
    )

    assert history.find(record.id) == record
    assert history.find("missing") is None
    assert history.clear() == 1
    assert len(history) == 0
    assert history.latest is None
