"""In-memory registry of voice note records."""

import threading
from collections.abc import Callable
from dataclasses import replace
from datetime import datetime, timezone

from app.models.voice_note import VoiceNoteRecord


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class VoiceNoteRegistry:
    """Authoritative store of voice note records, keyed by a monotonically increasing id.

    Records are frozen dataclasses; mutations swap in a new instance, so any sequence
    returned by ``list`` is a snapshot. A single lock guards the records and the id
    counter. Callers must never hold it across network I/O.
    """

    def __init__(self, clock: Callable[[], datetime] = utcnow) -> None:
        self._clock = clock
        self._lock = threading.Lock()
        self._records: dict[int, VoiceNoteRecord] = {}
        self._next_id = 1

    def insert(
        self,
        remote_url: str,
        remote_object_id: str,
        effect_tag: str,
        client_hint: str,
        size_bytes: int,
    ) -> VoiceNoteRecord:
        """Create a record with the next id. Ids are never reused, even after removal."""
        with self._lock:
            record = VoiceNoteRecord(
                id=self._next_id,
                remote_url=remote_url,
                remote_object_id=remote_object_id,
                effect_tag=effect_tag,
                created_at=self._clock(),
                client_hint=client_hint,
                size_bytes=size_bytes,
            )
            self._next_id += 1
            self._records[record.id] = record
            return record

    def list(self) -> list[VoiceNoteRecord]:
        """All records, newest first."""
        with self._lock:
            records = list(self._records.values())
        return sorted(records, key=lambda r: r.created_at, reverse=True)

    def find_by_id(self, note_id: int) -> VoiceNoteRecord | None:
        with self._lock:
            return self._records.get(note_id)

    def mark_downloaded(self, note_id: int) -> VoiceNoteRecord | None:
        """Set downloaded and bump the download counter. Returns None if the id is unknown."""
        with self._lock:
            record = self._records.get(note_id)
            if record is None:
                return None
            updated = replace(record, downloaded=True, download_count=record.download_count + 1)
            self._records[note_id] = updated
            return updated

    def remove(self, note_id: int) -> VoiceNoteRecord | None:
        with self._lock:
            return self._records.pop(note_id, None)

    def count(self) -> int:
        with self._lock:
            return len(self._records)
