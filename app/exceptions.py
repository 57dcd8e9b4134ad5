"""Error taxonomy for voice note ingestion and administration."""

from typing import Any


class VoiceNoteError(Exception):
    """Base class for errors that map onto an HTTP error envelope."""

    status_code: int = 500
    default_message: str = "Internal server error"

    def __init__(self, message: str | None = None, details: Any = None) -> None:
        self.message = message or self.default_message
        self.details = details
        super().__init__(self.message)

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"error": self.message}
        if self.details is not None:
            payload["details"] = self.details
        return payload


class InvalidInput(VoiceNoteError):
    """Missing or empty payload, unsupported content type, malformed id."""

    status_code = 400
    default_message = "Invalid input"


class NotFound(VoiceNoteError):
    """Operation referenced an unknown voice note id."""

    status_code = 404
    default_message = "Voice note not found"


class UploadFailed(VoiceNoteError):
    """The object store rejected or could not complete the transfer."""

    status_code = 500
    default_message = "Upload failed"


class DeleteFailed(VoiceNoteError):
    """The object store could not delete the object. The record is kept."""

    status_code = 500
    default_message = "Failed to delete voice note"


class InternalError(VoiceNoteError):
    status_code = 500
    default_message = "Internal server error"
