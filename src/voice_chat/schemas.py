"""Pydantic models for procedure inputs and returned records.

Every value crossing the API boundary is validated here before a
repository sees it. Numbers are plain floats and ints on this side; the
decimal-text storage form never appears in these models.
"""

from datetime import datetime
from typing import Annotated, Any

from pydantic import (
    AfterValidator,
    AnyUrl,
    BaseModel,
    Field,
    TypeAdapter,
    field_validator,
    model_validator,
)

from voice_chat.core.constants import (
    DEFAULT_CONNECTION_STATUS,
    MAX_DURATION,
    ConnectionStatus,
    MessageType,
    quantize_duration,
)

_url_adapter = TypeAdapter(AnyUrl)

# integer columns are 32-bit signed
MAX_INT32 = 2**31 - 1


def _check_stored_duration(value: float) -> float:
    """Reject durations whose stored two-digit form is zero or overflows."""
    stored = quantize_duration(value)
    if stored <= 0:
        raise ValueError(f"duration {value} rounds to {stored}, must be positive")
    if stored >= MAX_DURATION:
        raise ValueError(f"duration {value} rounds to {stored}, must be below {MAX_DURATION}")
    return value


PositiveDuration = Annotated[
    float, Field(gt=0, lt=MAX_DURATION), AfterValidator(_check_stored_duration)
]


class ChatSessionRecord(BaseModel):
    """A chat session as returned to callers."""

    id: str
    user_id: str | None
    websocket_url: str
    api_token: str
    connection_status: ConnectionStatus
    created_at: datetime
    last_activity: datetime


class ChatMessageRecord(BaseModel):
    """A chat message as returned to callers."""

    id: int
    session_id: str
    message_type: MessageType
    content: str | None
    transcription: str | None
    audio_duration: float | None
    created_at: datetime


class AudioRecordingRecord(BaseModel):
    """Audio recording metadata as returned to callers."""

    id: int
    session_id: str
    file_path: str
    duration: float
    sample_rate: int
    channels: int
    format: str
    file_size: int
    created_at: datetime


class DeleteResult(BaseModel):
    """Outcome of a delete procedure."""

    success: bool


class SessionIdInput(BaseModel):
    """Input for procedures addressed by session ID."""

    sessionId: str


class CreateChatSessionInput(BaseModel):
    """Input for createChatSession."""

    user_id: str | None = None
    websocket_url: str
    api_token: str = Field(min_length=1)
    connection_status: ConnectionStatus = DEFAULT_CONNECTION_STATUS

    @field_validator("websocket_url")
    @classmethod
    def validate_websocket_url(cls, v: str) -> str:
        """Require a well-formed URL but keep the caller's exact text."""
        _url_adapter.validate_python(v)
        return v


class UpdateChatSessionInput(BaseModel):
    """Input for updateChatSession.

    Only fields the caller actually sent are applied. A field left out is
    untouched; sending an explicit null is rejected since neither column
    is nullable.
    """

    id: str
    connection_status: ConnectionStatus | None = None
    last_activity: datetime | None = None

    @model_validator(mode="after")
    def reject_explicit_nulls(self) -> "UpdateChatSessionInput":
        """Reject fields sent as null; absent fields are fine.

        Returns:
            The validated input, unchanged

        Raises:
            ValueError: If a sent field other than id is null
        """
        for name in self.model_fields_set - {"id"}:
            if getattr(self, name) is None:
                raise ValueError(f"{name} cannot be null")
        return self

    def changes(self) -> dict[str, Any]:
        """Return the sparse map of field name to new value."""
        return self.model_dump(include=self.model_fields_set - {"id"})


class CreateChatMessageInput(BaseModel):
    """Input for createChatMessage.

    content, transcription and audio_duration are required keys but may
    be null.
    """

    session_id: str
    message_type: MessageType
    content: str | None
    transcription: str | None
    audio_duration: PositiveDuration | None


class CreateAudioRecordingInput(BaseModel):
    """Input for createAudioRecording."""

    session_id: str
    file_path: str
    duration: PositiveDuration
    sample_rate: int = Field(gt=0, le=MAX_INT32)
    channels: int = Field(gt=0, le=MAX_INT32)
    format: str = Field(max_length=10)
    file_size: int = Field(gt=0, le=MAX_INT32)
