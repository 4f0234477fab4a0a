"""Remote procedures for chat sessions, messages and audio recordings.

Each route validates its input with the models in voice_chat.schemas and
dispatches to one repository method. Mutations are POST with a JSON body;
queries are GET with a sessionId query parameter.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Query
from sqlmodel import Session

from voice_chat.db import (
    AudioRecordingRepository,
    ChatMessageRepository,
    ChatSessionRepository,
    get_session,
)
from voice_chat.schemas import (
    AudioRecordingRecord,
    ChatMessageRecord,
    ChatSessionRecord,
    CreateAudioRecordingInput,
    CreateChatMessageInput,
    CreateChatSessionInput,
    DeleteResult,
    SessionIdInput,
    UpdateChatSessionInput,
)

router = APIRouter(prefix="/api/v1/rpc", tags=["procedures"])

DbSession = Annotated[Session, Depends(get_session)]
SessionIdQuery = Annotated[str, Query()]


# Chat sessions


@router.post("/createChatSession")
def create_chat_session(data: CreateChatSessionInput, db: DbSession) -> ChatSessionRecord:
    """Create a chat session.

    Args:
        data: Connection details; status defaults to connecting
        db: Database session

    Returns:
        The stored session with its generated ID
    """
    return ChatSessionRepository(db).create(data)


@router.post("/updateChatSession")
def update_chat_session(data: UpdateChatSessionInput, db: DbSession) -> ChatSessionRecord:
    """Apply the sent fields to a chat session.

    Args:
        data: Session ID plus the fields to change
        db: Database session

    Returns:
        The updated session (404 if the ID is unknown)
    """
    return ChatSessionRepository(db).update(data)


@router.get("/getChatSession")
def get_chat_session(sessionId: SessionIdQuery, db: DbSession) -> ChatSessionRecord | None:
    """Fetch a chat session.

    Args:
        sessionId: Session ID
        db: Database session

    Returns:
        The session, or null if it does not exist
    """
    return ChatSessionRepository(db).get(sessionId)


@router.post("/deleteChatSession")
def delete_chat_session(data: SessionIdInput, db: DbSession) -> DeleteResult:
    """Delete a chat session with its recordings and messages.

    Args:
        data: Session ID
        db: Database session

    Returns:
        success=False if no session row existed
    """
    return DeleteResult(success=ChatSessionRepository(db).delete(data.sessionId))


# Chat messages


@router.post("/createChatMessage")
def create_chat_message(data: CreateChatMessageInput, db: DbSession) -> ChatMessageRecord:
    """Store one chat message.

    Args:
        data: Message fields; the session need not exist
        db: Database session

    Returns:
        The stored message
    """
    return ChatMessageRepository(db).create(data)


@router.get("/getChatMessages")
def get_chat_messages(sessionId: SessionIdQuery, db: DbSession) -> list[ChatMessageRecord]:
    """List a session's messages.

    Args:
        sessionId: Session ID
        db: Database session

    Returns:
        Messages, oldest first
    """
    return ChatMessageRepository(db).list_by_session(sessionId)


# Audio recordings


@router.post("/createAudioRecording")
def create_audio_recording(
    data: CreateAudioRecordingInput, db: DbSession
) -> AudioRecordingRecord:
    """Store metadata for one audio recording.

    Args:
        data: Recording fields; the session need not exist
        db: Database session

    Returns:
        The stored recording
    """
    return AudioRecordingRepository(db).create(data)


@router.get("/getAudioRecordings")
def get_audio_recordings(
    sessionId: SessionIdQuery, db: DbSession
) -> list[AudioRecordingRecord]:
    """List a session's recordings.

    Args:
        sessionId: Session ID
        db: Database session

    Returns:
        Recordings, newest first
    """
    return AudioRecordingRepository(db).list_by_session(sessionId)
