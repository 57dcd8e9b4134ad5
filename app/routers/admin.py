"""Administrative voice note endpoints."""

from fastapi import APIRouter, Depends

from app.dependencies import get_voice_note_service, parse_note_id
from app.schemas.voice_note import (
    MarkDownloadedResponse,
    MessageResponse,
    VoiceNoteListResponse,
    VoiceNoteResponse,
)
from app.services.voice_note import VoiceNoteService

router = APIRouter(prefix="/api/admin/voice-notes", tags=["Admin"])


@router.get("", response_model=VoiceNoteListResponse)
def list_voice_notes(
    service: VoiceNoteService = Depends(get_voice_note_service),
) -> VoiceNoteListResponse:
    """List all voice notes, newest first."""
    notes, count = service.list_notes()
    return VoiceNoteListResponse(
        count=count,
        notes=[VoiceNoteResponse.from_record(n) for n in notes],
    )


@router.post("/{note_id}/downloaded", response_model=MarkDownloadedResponse)
def mark_downloaded(
    note_id: int = Depends(parse_note_id),
    service: VoiceNoteService = Depends(get_voice_note_service),
) -> MarkDownloadedResponse:
    """Mark a voice note as downloaded."""
    record = service.mark_downloaded(note_id)
    return MarkDownloadedResponse(downloaded=record.downloaded, downloadCount=record.download_count)


@router.delete("/{note_id}", response_model=MessageResponse)
def delete_voice_note(
    note_id: int = Depends(parse_note_id),
    service: VoiceNoteService = Depends(get_voice_note_service),
) -> MessageResponse:
    """Delete a voice note from storage and the registry."""
    service.delete_note(note_id)
    return MessageResponse(message="Voice note deleted successfully")
