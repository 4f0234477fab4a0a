"""SQLModel models for chat session persistence.

Schema conventions:
- Table names: snake_case plural (chat_sessions, chat_messages, audio_recordings)
- Column names: snake_case
- session_id columns are soft references: indexed, but no foreign key, so
  messages and recordings may be written before their session row exists
- Durations are stored as decimal text with two fraction digits
  (precision 10, scale 2); see voice_chat.db.codec
"""

import secrets
import time
from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, String
from sqlmodel import Field, SQLModel

from voice_chat.core.constants import DEFAULT_CONNECTION_STATUS, DURATION_PRECISION

_ID_ALPHABET = "0123456789abcdefghijklmnopqrstuvwxyz"
_ID_SUFFIX_LENGTH = 9

# digits plus sign and decimal point
_DURATION_TEXT_LENGTH = DURATION_PRECISION + 2


def generate_session_id() -> str:
    """Generate a session ID of the form session_<unixMillis>_<9 base-36 chars>."""
    millis = int(time.time() * 1000)
    suffix = "".join(secrets.choice(_ID_ALPHABET) for _ in range(_ID_SUFFIX_LENGTH))
    return f"session_{millis}_{suffix}"


def utc_now() -> datetime:
    """Get current UTC datetime."""
    return datetime.now(timezone.utc)


def _timestamp_column() -> Column:
    return Column(DateTime(timezone=True), nullable=False)


class ChatSession(SQLModel, table=True):
    """A logical conversation context and its connection state.

    Attributes:
        id: Generated session ID (see generate_session_id)
        user_id: Optional user tag, no referential meaning
        websocket_url: Connection URL, stored verbatim
        api_token: Connection token, stored verbatim
        connection_status: One of CONNECTION_STATUSES
        created_at: When the session was created, never changed
        last_activity: Last activity time, updated on explicit request
    """

    __tablename__ = "chat_sessions"
    __table_args__ = {"extend_existing": True}

    id: str = Field(default_factory=generate_session_id, primary_key=True, max_length=255)
    user_id: str | None = Field(default=None, max_length=255)
    websocket_url: str
    api_token: str
    connection_status: str = Field(default=DEFAULT_CONNECTION_STATUS)
    created_at: datetime = Field(default_factory=utc_now, sa_column=_timestamp_column())
    last_activity: datetime = Field(default_factory=utc_now, sa_column=_timestamp_column())


class ChatMessage(SQLModel, table=True):
    """One conversation turn, text or audio, from the user or the AI.

    Attributes:
        id: Autoincrement primary key
        session_id: Soft reference to ChatSession.id
        message_type: One of MESSAGE_TYPES
        content: Text, or an audio file path for audio messages
        transcription: Transcription of audio messages
        audio_duration: Duration in seconds as decimal text
        created_at: When the message was created
    """

    __tablename__ = "chat_messages"
    __table_args__ = {"extend_existing": True}

    id: int | None = Field(default=None, primary_key=True)
    session_id: str = Field(index=True, max_length=255)
    message_type: str
    content: str | None = None
    transcription: str | None = None
    audio_duration: str | None = Field(default=None, sa_column=Column(String(_DURATION_TEXT_LENGTH)))
    created_at: datetime = Field(default_factory=utc_now, sa_column=_timestamp_column())


class AudioRecording(SQLModel, table=True):
    """Metadata for one stored audio asset.

    Not linked to any ChatMessage; file_path points at bytes stored elsewhere.
    """

    __tablename__ = "audio_recordings"
    __table_args__ = {"extend_existing": True}

    id: int | None = Field(default=None, primary_key=True)
    session_id: str = Field(index=True, max_length=255)
    file_path: str
    duration: str = Field(sa_column=Column(String(_DURATION_TEXT_LENGTH), nullable=False))
    sample_rate: int
    channels: int
    format: str = Field(max_length=10)
    file_size: int
    created_at: datetime = Field(default_factory=utc_now, sa_column=_timestamp_column())
