"""Voice note ingestion pipeline and administrative operations."""

import io
import logging
import os
import tempfile
import time
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from typing import BinaryIO

from app.config import Settings, get_settings
from app.exceptions import DeleteFailed, InternalError, InvalidInput, NotFound, UploadFailed
from app.models.voice_note import CLIENT_HINT_MAX_LENGTH, UNKNOWN, VoiceNoteRecord
from app.services.registry import VoiceNoteRegistry
from app.services.storage import (
    AUDIO_RESOURCE_KIND,
    DEFAULT_CONTENT_TYPE,
    ObjectStore,
    ObjectStoreError,
    UploadOptions,
    create_object_store,
)

logger = logging.getLogger(__name__)

OBJECT_ID_PREFIX = "anonymous-voice"


def generate_object_id() -> str:
    """Unique remote id per submission: millisecond timestamp plus a random suffix."""
    return f"{OBJECT_ID_PREFIX}-{int(time.time() * 1000)}-{uuid.uuid4().hex[:8]}"


class VoiceNoteService:
    """Uploads voice notes to the object store and keeps the registry consistent with it."""

    def __init__(
        self,
        registry: VoiceNoteRegistry,
        store: ObjectStore,
        folder: str = "anonymous-voices",
        staging_dir: str | None = None,
    ) -> None:
        self.registry = registry
        self.store = store
        self.folder = folder
        self.staging_dir = staging_dir or None

    def validate_upload_metadata(self, content_type: str | None) -> str | None:
        """Validate the submitted MIME type. Returns error message or None if valid."""
        if not content_type or not content_type.startswith("audio/"):
            return "Only audio files allowed"
        return None

    @contextmanager
    def _open_payload(self, payload: bytes) -> Iterator[BinaryIO]:
        """Yield a readable stream over the payload, staged to disk when a staging dir is set.

        The staged file is removed on every exit path.
        """
        if not self.staging_dir:
            yield io.BytesIO(payload)
            return

        os.makedirs(self.staging_dir, exist_ok=True)
        fd, staged_path = tempfile.mkstemp(prefix="voice-", suffix=".wav", dir=self.staging_dir)
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(payload)
            with open(staged_path, "rb") as f:
                yield f
        finally:
            if os.path.exists(staged_path):
                os.remove(staged_path)

    def submit(
        self,
        payload: bytes,
        effect: str | None = None,
        user_agent: str | None = None,
        content_type: str | None = None,
    ) -> VoiceNoteRecord:
        """Upload the payload, then register it. Nothing is registered unless the upload succeeds."""
        if not payload:
            raise InvalidInput("No audio file provided")

        options = UploadOptions(
            target_id=generate_object_id(),
            folder=self.folder,
            resource_kind=AUDIO_RESOURCE_KIND,
            content_type=content_type or DEFAULT_CONTENT_TYPE,
        )

        try:
            with self._open_payload(payload) as stream:
                stored = self.store.upload(stream, options)
        except (ObjectStoreError, OSError) as e:
            logger.error("Upload of %s failed: %s", options.target_id, e)
            raise UploadFailed(details=str(e)) from e

        try:
            record = self.registry.insert(
                remote_url=stored.remote_url,
                remote_object_id=stored.remote_object_id,
                effect_tag=effect or UNKNOWN,
                client_hint=user_agent[:CLIENT_HINT_MAX_LENGTH] if user_agent else UNKNOWN,
                size_bytes=len(payload),
            )
        except Exception as e:
            logger.exception("Registering %s failed; discarding the uploaded object", stored.remote_object_id)
            self._discard_remote(stored.remote_object_id)
            raise InternalError() from e
        logger.info("Registered voice note %d (%d bytes) at %s", record.id, record.size_bytes, record.remote_url)
        return record

    def _discard_remote(self, remote_object_id: str) -> None:
        try:
            self.store.delete(remote_object_id, resource_kind=AUDIO_RESOURCE_KIND)
        except ObjectStoreError as e:
            logger.error("Could not discard unregistered object %s: %s", remote_object_id, e)

    def list_notes(self) -> tuple[list[VoiceNoteRecord], int]:
        """All voice notes, newest first, with their count."""
        notes = self.registry.list()
        return notes, len(notes)

    def count(self) -> int:
        return self.registry.count()

    def mark_downloaded(self, note_id: int) -> VoiceNoteRecord:
        record = self.registry.mark_downloaded(note_id)
        if record is None:
            raise NotFound()
        return record

    def delete_note(self, note_id: int) -> VoiceNoteRecord:
        """Delete the remote object, then drop the record.

        If the remote delete fails the record stays registered so the delete can be retried.
        """
        record = self.registry.find_by_id(note_id)
        if record is None:
            raise NotFound()

        try:
            self.store.delete(record.remote_object_id, resource_kind=AUDIO_RESOURCE_KIND)
        except ObjectStoreError as e:
            logger.error("Remote delete of %s for voice note %d failed: %s", record.remote_object_id, note_id, e)
            raise DeleteFailed() from e

        removed = self.registry.remove(note_id)
        if removed is None:
            # Deleted concurrently between lookup and removal.
            raise NotFound()
        logger.info("Deleted voice note %d (%s)", note_id, record.remote_object_id)
        return removed


def create_voice_note_service(settings: Settings | None = None) -> VoiceNoteService:
    """Build a service with a fresh, empty registry and the configured object store."""
    settings = settings or get_settings()
    return VoiceNoteService(
        registry=VoiceNoteRegistry(),
        store=create_object_store(settings),
        folder=settings.STORAGE_FOLDER,
        staging_dir=settings.UPLOAD_STAGING_DIR or None,
    )
