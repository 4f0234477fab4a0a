"""Repository layer for database operations.

Provides the record operations for ChatSession, ChatMessage and
AudioRecording. Every method takes validated input models, writes through
voice_chat.db.codec, and returns decoded wire records.
Uses SQLite for local persistence (data/voice_chat.db by default).
"""

from collections.abc import Generator, Iterator
from contextlib import contextmanager
from pathlib import Path

from sqlalchemy.exc import OperationalError
from sqlmodel import Session, SQLModel, create_engine, select

from voice_chat.core.config import settings
from voice_chat.core.errors import NotFoundError, StorageUnavailableError
from voice_chat.core.logging import get_logger
from voice_chat.db.codec import (
    encode_decimal,
    message_to_record,
    recording_to_record,
    session_to_record,
    to_utc,
)
from voice_chat.db.models import (
    AudioRecording,
    ChatMessage,
    ChatSession,
    generate_session_id,
    utc_now,
)
from voice_chat.schemas import (
    AudioRecordingRecord,
    ChatMessageRecord,
    ChatSessionRecord,
    CreateAudioRecordingInput,
    CreateChatMessageInput,
    CreateChatSessionInput,
    UpdateChatSessionInput,
)

logger = get_logger(__name__)

# Module-level engine (initialized on first use)
_engine = None


def get_engine(db_path: Path | None = None):
    """Get or create the database engine.

    Args:
        db_path: Optional custom database path. Defaults to settings.database_path

    Returns:
        SQLModel engine instance
    """
    global _engine
    if _engine is None:
        path = db_path or settings.database_path
        path.parent.mkdir(parents=True, exist_ok=True)
        database_url = f"sqlite:///{path}"
        _engine = create_engine(
            database_url,
            echo=settings.sql_echo,
            connect_args={"check_same_thread": False},
        )
    return _engine


def init_db(db_path: Path | None = None) -> None:
    """Initialize the database by creating all tables.

    Args:
        db_path: Optional custom database path
    """
    engine = get_engine(db_path)
    SQLModel.metadata.create_all(engine)


def get_session() -> Generator[Session, None, None]:
    """Get a database session.

    Yields:
        Database session, closed when the request finishes
    """
    engine = get_engine()
    with Session(engine) as session:
        yield session


@contextmanager
def storage_errors(session: Session, operation: str) -> Iterator[None]:
    """Roll back and re-raise connection failures as StorageUnavailableError."""
    try:
        yield
    except OperationalError as e:
        session.rollback()
        logger.error("storage_unavailable", operation=operation, error=str(e))
        raise StorageUnavailableError(operation) from e


class ChatSessionRepository:
    """Repository for ChatSession CRUD operations."""

    def __init__(self, session: Session):
        """Initialize repository with a database session.

        Args:
            session: SQLModel session for database operations
        """
        self.session = session

    def create(self, data: CreateChatSessionInput) -> ChatSessionRecord:
        """Create a new chat session.

        Duplicate websocket_url/api_token values are allowed.

        Args:
            data: Validated creation input

        Returns:
            The stored session
        """
        now = utc_now()
        chat_session = ChatSession(
            id=generate_session_id(),
            user_id=data.user_id or None,
            websocket_url=data.websocket_url,
            api_token=data.api_token,
            connection_status=data.connection_status,
            created_at=now,
            last_activity=now,
        )
        with storage_errors(self.session, "create_chat_session"):
            self.session.add(chat_session)
            self.session.commit()
            self.session.refresh(chat_session)

        logger.info(
            "chat_session_created",
            session_id=chat_session.id,
            connection_status=chat_session.connection_status,
        )
        return session_to_record(chat_session)

    def get(self, session_id: str) -> ChatSessionRecord | None:
        """Get a chat session by ID.

        Args:
            session_id: The session ID

        Returns:
            The session if found, None otherwise
        """
        with storage_errors(self.session, "get_chat_session"):
            chat_session = self.session.get(ChatSession, session_id)
        if chat_session is None:
            return None
        return session_to_record(chat_session)

    def update(self, data: UpdateChatSessionInput) -> ChatSessionRecord:
        """Apply a partial update to a chat session.

        Only fields present in the input are written; everything else is
        left as stored. An input carrying no fields returns the session
        unchanged.

        Args:
            data: Validated update input

        Returns:
            The updated session

        Raises:
            NotFoundError: If no session has the given ID
        """
        changes = data.changes()
        with storage_errors(self.session, "update_chat_session"):
            chat_session = self.session.get(ChatSession, data.id)
            if chat_session is None:
                raise NotFoundError("Chat session", data.id)

            if "connection_status" in changes:
                chat_session.connection_status = changes["connection_status"]
            if "last_activity" in changes:
                chat_session.last_activity = to_utc(changes["last_activity"])

            if changes:
                self.session.add(chat_session)
                self.session.commit()
                self.session.refresh(chat_session)

        logger.info("chat_session_updated", session_id=data.id, fields=sorted(changes))
        return session_to_record(chat_session)

    def delete(self, session_id: str) -> bool:
        """Delete a chat session with its recordings and messages.

        Removes audio recordings, then messages, then the session row, in
        one transaction.

        Args:
            session_id: The session ID

        Returns:
            True if the session row existed, False otherwise
        """
        with storage_errors(self.session, "delete_chat_session"):
            # Recordings, then messages, then the session; flush between steps
            # so the statements reach the database in that order
            recordings = self.session.exec(
                select(AudioRecording).where(AudioRecording.session_id == session_id)
            ).all()
            for recording in recordings:
                self.session.delete(recording)
            self.session.flush()

            messages = self.session.exec(
                select(ChatMessage).where(ChatMessage.session_id == session_id)
            ).all()
            for message in messages:
                self.session.delete(message)
            self.session.flush()

            chat_session = self.session.get(ChatSession, session_id)
            if chat_session is not None:
                self.session.delete(chat_session)
            self.session.commit()

        logger.info(
            "chat_session_deleted",
            session_id=session_id,
            found=chat_session is not None,
            recordings=len(recordings),
            messages=len(messages),
        )
        return chat_session is not None


class ChatMessageRepository:
    """Repository for ChatMessage operations."""

    def __init__(self, session: Session):
        """Initialize repository with a database session.

        Args:
            session: SQLModel session for database operations
        """
        self.session = session

    def create(self, data: CreateChatMessageInput) -> ChatMessageRecord:
        """Create a new message.

        The referenced session does not have to exist.

        Args:
            data: Validated creation input

        Returns:
            The stored message
        """
        message = ChatMessage(
            session_id=data.session_id,
            message_type=data.message_type,
            content=data.content,
            transcription=data.transcription,
            audio_duration=encode_decimal(data.audio_duration),
            created_at=utc_now(),
        )
        with storage_errors(self.session, "create_chat_message"):
            self.session.add(message)
            self.session.commit()
            self.session.refresh(message)

        logger.debug(
            "chat_message_created",
            session_id=message.session_id,
            message_id=message.id,
            message_type=message.message_type,
        )
        return message_to_record(message)

    def list_by_session(self, session_id: str) -> list[ChatMessageRecord]:
        """List messages for a session, oldest first.

        Args:
            session_id: The session ID

        Returns:
            Messages ordered by created_at ascending (empty if none)
        """
        statement = (
            select(ChatMessage)
            .where(ChatMessage.session_id == session_id)
            .order_by(ChatMessage.created_at.asc(), ChatMessage.id.asc())
        )
        with storage_errors(self.session, "get_chat_messages"):
            rows = self.session.exec(statement).all()
        return [message_to_record(row) for row in rows]


class AudioRecordingRepository:
    """Repository for AudioRecording operations."""

    def __init__(self, session: Session):
        self.session = session

    def create(self, data: CreateAudioRecordingInput) -> AudioRecordingRecord:
        """Create a new audio recording entry.

        The referenced session does not have to exist.

        Args:
            data: Validated creation input

        Returns:
            The stored recording
        """
        recording = AudioRecording(
            session_id=data.session_id,
            file_path=data.file_path,
            duration=encode_decimal(data.duration),
            sample_rate=data.sample_rate,
            channels=data.channels,
            format=data.format,
            file_size=data.file_size,
            created_at=utc_now(),
        )
        with storage_errors(self.session, "create_audio_recording"):
            self.session.add(recording)
            self.session.commit()
            self.session.refresh(recording)

        logger.debug(
            "audio_recording_created",
            session_id=recording.session_id,
            recording_id=recording.id,
            duration=recording.duration,
        )
        return recording_to_record(recording)

    def list_by_session(self, session_id: str) -> list[AudioRecordingRecord]:
        """List recordings for a session, newest first.

        Args:
            session_id: The session ID

        Returns:
            Recordings ordered by created_at descending (empty if none)
        """
        statement = (
            select(AudioRecording)
            .where(AudioRecording.session_id == session_id)
            .order_by(AudioRecording.created_at.desc(), AudioRecording.id.desc())
        )
        with storage_errors(self.session, "get_audio_recordings"):
            rows = self.session.exec(statement).all()
        return [recording_to_record(row) for row in rows]
