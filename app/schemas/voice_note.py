"""Pydantic schemas for voice note endpoints."""

from datetime import datetime

from pydantic import BaseModel

from app.models.voice_note import VoiceNoteRecord


class VoiceNoteResponse(BaseModel):
    id: int
    cloudinaryUrl: str
    publicId: str
    effect: str
    timestamp: datetime
    userAgent: str
    fileSize: int
    duration: float | None = None
    downloaded: bool
    downloadCount: int

    @classmethod
    def from_record(cls, record: VoiceNoteRecord) -> "VoiceNoteResponse":
        return cls(
            id=record.id,
            cloudinaryUrl=record.remote_url,
            publicId=record.remote_object_id,
            effect=record.effect_tag,
            timestamp=record.created_at,
            userAgent=record.client_hint,
            fileSize=record.size_bytes,
            downloaded=record.downloaded,
            downloadCount=record.download_count,
        )


class UploadResponse(BaseModel):
    success: bool = True
    message: str = "Voice note uploaded successfully"
    id: int
    url: str


class VoiceNoteListResponse(BaseModel):
    success: bool = True
    count: int
    notes: list[VoiceNoteResponse]


class MarkDownloadedResponse(BaseModel):
    success: bool = True
    message: str = "Marked as downloaded"
    downloaded: bool
    downloadCount: int


class MessageResponse(BaseModel):
    success: bool = True
    message: str


class HealthResponse(BaseModel):
    status: str = "OK"
    timestamp: datetime
    totalNotes: int
