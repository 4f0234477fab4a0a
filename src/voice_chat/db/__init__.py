"""Database module for voice chat persistence."""

from voice_chat.db.models import AudioRecording, ChatMessage, ChatSession
from voice_chat.db.repository import (
    AudioRecordingRepository,
    ChatMessageRepository,
    ChatSessionRepository,
    get_engine,
    get_session,
    init_db,
)

__all__ = [
    "AudioRecording",
    "ChatMessage",
    "ChatSession",
    "AudioRecordingRepository",
    "ChatMessageRepository",
    "ChatSessionRepository",
    "get_engine",
    "get_session",
    "init_db",
]
