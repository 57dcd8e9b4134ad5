"""Anonymous voice note upload endpoint."""

from fastapi import APIRouter, Depends, File, Form, Request, UploadFile
from fastapi.concurrency import run_in_threadpool

from app.config import get_settings
from app.dependencies import get_voice_note_service
from app.exceptions import InvalidInput
from app.rate_limit import limiter
from app.schemas.voice_note import UploadResponse
from app.services.voice_note import VoiceNoteService

router = APIRouter(prefix="/api", tags=["Voice Notes"])


@router.post("/upload-voice", response_model=UploadResponse)
@limiter.limit(get_settings().UPLOAD_RATE_LIMIT)
async def upload_voice(
    request: Request,
    audio: UploadFile | None = File(None),
    effect: str | None = Form(None),
    userAgent: str | None = Form(None),
    service: VoiceNoteService = Depends(get_voice_note_service),
) -> UploadResponse:
    """Upload an anonymous voice note."""
    if audio is None:
        raise InvalidInput("No audio file provided")

    error = service.validate_upload_metadata(audio.content_type)
    if error:
        raise InvalidInput(error)

    # One byte past the limit marks an oversized payload
    max_bytes = get_settings().max_upload_bytes
    payload = await audio.read(max_bytes + 1)
    if len(payload) > max_bytes:
        raise InvalidInput(f"File too large. Maximum: {get_settings().MAX_UPLOAD_SIZE_MB}MB")

    # Object store calls block
    record = await run_in_threadpool(service.submit, payload, effect, userAgent, audio.content_type)

    return UploadResponse(id=record.id, url=record.remote_url)
