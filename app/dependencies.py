"""Shared FastAPI dependencies."""

from fastapi import Request

from app.exceptions import InvalidInput
from app.services.voice_note import VoiceNoteService


def get_voice_note_service(request: Request) -> VoiceNoteService:
    """Return the voice note service owned by the running application."""
    return request.app.state.voice_note_service


def parse_note_id(note_id: str) -> int:
    """Parse a path id strictly. Non-numeric ids are rejected instead of coerced."""
    if not note_id.isascii() or not note_id.isdigit():
        raise InvalidInput("Invalid voice note id", details=note_id)
    return int(note_id)
