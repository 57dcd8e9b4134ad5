"""Tests for the ingestion pipeline and administrative operations."""

from unittest.mock import MagicMock

import pytest

from app.exceptions import DeleteFailed, InternalError, InvalidInput, NotFound, UploadFailed
from app.services.registry import VoiceNoteRegistry
from app.services.voice_note import VoiceNoteService, generate_object_id


class TestSubmit:
    """Tests for voice note submission."""

    def test_submit_success(self, service: VoiceNoteService, store):
        record = service.submit(b"RIFF" + b"\x00" * 100, effect="echo", user_agent="Mozilla/5.0")
        assert record.id == 1
        assert record.effect_tag == "echo"
        assert record.client_hint == "Mozilla/5.0"
        assert record.size_bytes == 104
        assert store.objects[record.remote_object_id] == b"RIFF" + b"\x00" * 100
        assert record.remote_url.endswith(record.remote_object_id)

    def test_upload_tagged_for_audio(self, service: VoiceNoteService, store):
        service.submit(b"\x01\x02", content_type="audio/webm")
        options = store.uploads[0]
        assert options.resource_kind == "video"
        assert options.folder == "anonymous-voices"
        assert options.content_type == "audio/webm"
        assert options.target_id.startswith("anonymous-voice-")

    def test_defaults_to_unknown(self, service: VoiceNoteService):
        record = service.submit(b"\x01")
        assert record.effect_tag == "unknown"
        assert record.client_hint == "unknown"

    def test_client_hint_truncated(self, service: VoiceNoteService):
        record = service.submit(b"\x01", user_agent="x" * 250)
        assert len(record.client_hint) == 100

    def test_empty_payload_rejected(self, service: VoiceNoteService, store):
        with pytest.raises(InvalidInput):
            service.submit(b"")
        assert store.uploads == []
        assert service.list_notes() == ([], 0)

    def test_upload_failure_registers_nothing(self, service: VoiceNoteService, store):
        store.fail_uploads = True
        with pytest.raises(UploadFailed) as exc_info:
            service.submit(b"\x01\x02\x03")
        assert "simulated upload failure" in exc_info.value.details
        assert service.list_notes() == ([], 0)

    def test_ids_increase_across_failures(self, service: VoiceNoteService, store):
        first = service.submit(b"\x01")
        store.fail_uploads = True
        with pytest.raises(UploadFailed):
            service.submit(b"\x02")
        store.fail_uploads = False
        second = service.submit(b"\x03")
        assert second.id > first.id

    def test_registry_failure_discards_uploaded_object(self, store):
        registry = MagicMock()
        registry.insert.side_effect = RuntimeError("boom")
        service = VoiceNoteService(registry=registry, store=store)
        with pytest.raises(InternalError):
            service.submit(b"\x01")
        key = f"{store.uploads[0].folder}/{store.uploads[0].target_id}"
        assert store.deletes == [(key, "video")]
        assert store.objects == {}

    def test_object_ids_unique(self):
        ids = {generate_object_id() for _ in range(200)}
        assert len(ids) == 200


class TestStagedSubmit:
    """Tests for submissions staged through a temporary file."""

    def test_staged_file_removed_on_success(self, registry: VoiceNoteRegistry, store, tmp_path):
        service = VoiceNoteService(registry=registry, store=store, staging_dir=str(tmp_path))
        record = service.submit(b"staged-audio")
        assert store.objects[record.remote_object_id] == b"staged-audio"
        assert list(tmp_path.iterdir()) == []

    def test_staged_file_removed_on_failure(self, registry: VoiceNoteRegistry, store, tmp_path):
        store.fail_uploads = True
        service = VoiceNoteService(registry=registry, store=store, staging_dir=str(tmp_path))
        with pytest.raises(UploadFailed):
            service.submit(b"staged-audio")
        assert list(tmp_path.iterdir()) == []
        assert registry.count() == 0


class TestAdminOperations:
    """Tests for list, mark-downloaded and delete."""

    def test_list_notes_newest_first(self, service: VoiceNoteService):
        ids = [service.submit(bytes([i + 1])).id for i in range(3)]
        notes, count = service.list_notes()
        assert count == 3
        assert [n.id for n in notes] == list(reversed(ids))

    def test_count_tracks_registered_notes(self, service: VoiceNoteService):
        assert service.count() == 0
        record = service.submit(b"\x01")
        service.submit(b"\x02")
        assert service.count() == 2
        service.delete_note(record.id)
        assert service.count() == 1

    def test_mark_downloaded_n_times(self, service: VoiceNoteService):
        record = service.submit(b"\x01")
        for _ in range(4):
            updated = service.mark_downloaded(record.id)
        assert updated.downloaded is True
        assert updated.download_count == 4

    def test_mark_downloaded_unknown(self, service: VoiceNoteService):
        service.submit(b"\x01")
        with pytest.raises(NotFound):
            service.mark_downloaded(99)
        notes, _ = service.list_notes()
        assert notes[0].download_count == 0

    def test_delete_success(self, service: VoiceNoteService, store):
        record = service.submit(b"\x01")
        service.delete_note(record.id)
        assert store.deletes == [(record.remote_object_id, "video")]
        assert record.remote_object_id not in store.objects
        assert service.list_notes() == ([], 0)

    def test_delete_unknown_makes_no_remote_call(self, service: VoiceNoteService, store):
        service.submit(b"\x01")
        with pytest.raises(NotFound):
            service.delete_note(99)
        assert store.deletes == []
        assert service.list_notes()[1] == 1

    def test_delete_failure_keeps_record(self, service: VoiceNoteService, store):
        record = service.submit(b"\x01")
        store.fail_deletes = True
        with pytest.raises(DeleteFailed):
            service.delete_note(record.id)
        notes, count = service.list_notes()
        assert count == 1
        assert notes[0].id == record.id

        # Retry once the store recovers
        store.fail_deletes = False
        service.delete_note(record.id)
        assert service.list_notes() == ([], 0)
