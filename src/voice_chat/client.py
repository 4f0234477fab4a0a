"""Async HTTP client for the voice chat procedures.

Thin wrapper around httpx used by front-ends and scripts. A rejected
call (validation error, unknown session, server failure, transport
error) is logged and returns None, so a failed persistence call never
ends the chat session it belongs to.
"""

from datetime import datetime
from typing import Any

import httpx
from pydantic import BaseModel, TypeAdapter

from voice_chat.core.constants import ConnectionStatus, MessageType
from voice_chat.core.logging import get_logger
from voice_chat.schemas import (
    AudioRecordingRecord,
    ChatMessageRecord,
    ChatSessionRecord,
    DeleteResult,
)

logger = get_logger(__name__)

RPC_PREFIX = "/api/v1/rpc"

_messages_adapter = TypeAdapter(list[ChatMessageRecord])
_recordings_adapter = TypeAdapter(list[AudioRecordingRecord])


class ChatApiClient:
    """Client for the chat session, message and recording procedures."""

    def __init__(
        self,
        base_url: str = "http://127.0.0.1:2022",
        transport: httpx.AsyncBaseTransport | None = None,
        timeout: float = 30.0,
    ):
        """Initialize the client.

        Args:
            base_url: Server base URL.
            transport: Optional httpx transport (e.g. ASGITransport in tests).
            timeout: Request timeout in seconds.
        """
        self._base_url = base_url
        self._transport = transport
        self._timeout = timeout
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> "ChatApiClient":
        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            transport=self._transport,
            timeout=self._timeout,
        )
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    async def _call(
        self,
        procedure: str,
        *,
        body: dict[str, Any] | None = None,
        params: dict[str, str] | None = None,
    ) -> Any:
        """Invoke a procedure and return its decoded JSON.

        Returns:
            Parsed JSON body, or None if the call was rejected.
        """
        if self._client is None:
            raise RuntimeError("ChatApiClient must be used as an async context manager")

        url = f"{RPC_PREFIX}/{procedure}"
        try:
            if body is not None:
                resp = await self._client.post(url, json=body)
            else:
                resp = await self._client.get(url, params=params)
        except httpx.HTTPError as e:
            logger.warning("procedure_transport_error", procedure=procedure, error=str(e))
            return None

        if resp.status_code >= 400:
            try:
                detail = resp.json().get("detail", resp.text)
            except ValueError:
                detail = resp.text
            logger.warning(
                "procedure_rejected",
                procedure=procedure,
                status_code=resp.status_code,
                detail=detail,
            )
            return None
        return resp.json()

    @staticmethod
    def _parse(model: type[BaseModel], payload: Any) -> Any:
        if payload is None:
            return None
        return model.model_validate(payload)

    async def create_session(
        self,
        websocket_url: str,
        api_token: str,
        user_id: str | None = None,
        connection_status: ConnectionStatus | None = None,
    ) -> ChatSessionRecord | None:
        """Create a chat session."""
        body: dict[str, Any] = {
            "user_id": user_id,
            "websocket_url": websocket_url,
            "api_token": api_token,
        }
        if connection_status is not None:
            body["connection_status"] = connection_status
        return self._parse(ChatSessionRecord, await self._call("createChatSession", body=body))

    async def update_session(
        self,
        session_id: str,
        connection_status: ConnectionStatus | None = None,
        last_activity: datetime | None = None,
    ) -> ChatSessionRecord | None:
        """Update connection status and/or last activity; omitted fields are untouched."""
        body: dict[str, Any] = {"id": session_id}
        if connection_status is not None:
            body["connection_status"] = connection_status
        if last_activity is not None:
            body["last_activity"] = last_activity.isoformat()
        return self._parse(ChatSessionRecord, await self._call("updateChatSession", body=body))

    async def get_session(self, session_id: str) -> ChatSessionRecord | None:
        """Fetch a chat session; None if it does not exist or the call failed."""
        payload = await self._call("getChatSession", params={"sessionId": session_id})
        return self._parse(ChatSessionRecord, payload)

    async def delete_session(self, session_id: str) -> bool:
        """Delete a chat session; False if it did not exist or the call failed."""
        payload = await self._call("deleteChatSession", body={"sessionId": session_id})
        result = self._parse(DeleteResult, payload)
        return bool(result and result.success)

    async def create_message(
        self,
        session_id: str,
        message_type: MessageType,
        content: str | None = None,
        transcription: str | None = None,
        audio_duration: float | None = None,
    ) -> ChatMessageRecord | None:
        """Store one chat message."""
        body = {
            "session_id": session_id,
            "message_type": message_type,
            "content": content,
            "transcription": transcription,
            "audio_duration": audio_duration,
        }
        return self._parse(ChatMessageRecord, await self._call("createChatMessage", body=body))

    async def get_messages(self, session_id: str) -> list[ChatMessageRecord]:
        """List a session's messages, oldest first. Empty on failure."""
        payload = await self._call("getChatMessages", params={"sessionId": session_id})
        if payload is None:
            return []
        return _messages_adapter.validate_python(payload)

    async def create_recording(
        self,
        session_id: str,
        file_path: str,
        duration: float,
        sample_rate: int,
        channels: int,
        format: str,
        file_size: int,
    ) -> AudioRecordingRecord | None:
        """Store metadata for one audio recording."""
        body = {
            "session_id": session_id,
            "file_path": file_path,
            "duration": duration,
            "sample_rate": sample_rate,
            "channels": channels,
            "format": format,
            "file_size": file_size,
        }
        return self._parse(
            AudioRecordingRecord, await self._call("createAudioRecording", body=body)
        )

    async def get_recordings(self, session_id: str) -> list[AudioRecordingRecord]:
        """List a session's recordings, newest first. Empty on failure."""
        payload = await self._call("getAudioRecordings", params={"sessionId": session_id})
        if payload is None:
            return []
        return _recordings_adapter.validate_python(payload)
