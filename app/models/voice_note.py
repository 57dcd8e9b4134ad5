"""Voice note record model."""

from dataclasses import dataclass
from datetime import datetime

UNKNOWN = "unknown"
CLIENT_HINT_MAX_LENGTH = 100


@dataclass(frozen=True)
class VoiceNoteRecord:
    """Metadata about one anonymously submitted recording held in remote storage."""

    id: int
    remote_url: str
    remote_object_id: str
    effect_tag: str
    created_at: datetime
    client_hint: str
    size_bytes: int
    downloaded: bool = False
    download_count: int = 0
