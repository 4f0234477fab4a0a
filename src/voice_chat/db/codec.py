"""Conversion between stored rows and wire records.

Durations live in the database as decimal text with exactly two fraction
digits so repeated read/write cycles never drift. This module is the only
place that writes or reads that text:

    encode_decimal(45.67)   -> "45.67"
    decode_decimal("45.67") -> 45.67

Timestamps come back from SQLite without tzinfo; to_utc() restores UTC on
every read.
"""

from datetime import datetime, timezone
from decimal import Decimal

from voice_chat.core.constants import quantize_duration
from voice_chat.core.errors import DataCorruptionError
from voice_chat.db.models import AudioRecording, ChatMessage, ChatSession
from voice_chat.schemas import AudioRecordingRecord, ChatMessageRecord, ChatSessionRecord


def encode_decimal(value: float | None) -> str | None:
    """Format a real number as fixed two-fraction-digit text.

    Args:
        value: Number to store, or None

    Returns:
        Decimal text such as "45.67", or None
    """
    if value is None:
        return None
    return str(quantize_duration(value))


def decode_decimal(text: str | None, field: str = "duration") -> float | None:
    """Parse stored decimal text back into a float.

    Args:
        text: Stored decimal text, or None
        field: Column name, used in the error message

    Returns:
        Parsed float, or None

    Raises:
        DataCorruptionError: If the stored text is not a decimal number
    """
    if text is None:
        return None
    try:
        value = Decimal(text)
    except (ArithmeticError, TypeError, ValueError) as e:
        raise DataCorruptionError(field, text) from e
    if not value.is_finite():
        raise DataCorruptionError(field, text)
    return float(text)


def to_utc(value: datetime) -> datetime:
    """Return value as an aware UTC datetime, treating naive values as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def session_to_record(row: ChatSession) -> ChatSessionRecord:
    """Decode a chat_sessions row."""
    return ChatSessionRecord(
        id=row.id,
        user_id=row.user_id,
        websocket_url=row.websocket_url,
        api_token=row.api_token,
        connection_status=row.connection_status,
        created_at=to_utc(row.created_at),
        last_activity=to_utc(row.last_activity),
    )


def message_to_record(row: ChatMessage) -> ChatMessageRecord:
    """Decode a chat_messages row."""
    return ChatMessageRecord(
        id=row.id,
        session_id=row.session_id,
        message_type=row.message_type,
        content=row.content,
        transcription=row.transcription,
        audio_duration=decode_decimal(row.audio_duration, "audio_duration"),
        created_at=to_utc(row.created_at),
    )


def recording_to_record(row: AudioRecording) -> AudioRecordingRecord:
    """Decode an audio_recordings row."""
    return AudioRecordingRecord(
        id=row.id,
        session_id=row.session_id,
        file_path=row.file_path,
        duration=decode_decimal(row.duration, "duration"),
        sample_rate=row.sample_rate,
        channels=row.channels,
        format=row.format,
        file_size=row.file_size,
        created_at=to_utc(row.created_at),
    )
