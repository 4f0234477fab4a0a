"""Integration tests for the remote procedure endpoints."""

import re
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.exc import OperationalError
from sqlmodel import Session

from voice_chat.db import ChatMessage, get_engine, get_session
from voice_chat.main import app

RPC = "/api/v1/rpc"
SESSION_ID_PATTERN = re.compile(r"^session_\d+_[0-9a-z]{9}$")


@pytest.fixture
def client(temp_db):
    """Create a test client with a temporary database."""
    return TestClient(app)


@pytest.fixture
def chat_session(client):
    """Create a chat session and return its JSON."""
    response = client.post(
        f"{RPC}/createChatSession",
        json={"websocket_url": "wss://x", "api_token": "t"},
    )
    assert response.status_code == 200
    return response.json()


class TestCreateChatSession:
    """Tests for POST createChatSession."""

    def test_defaults_to_connecting(self, chat_session):
        assert chat_session["connection_status"] == "connecting"
        assert chat_session["user_id"] is None
        assert chat_session["websocket_url"] == "wss://x"
        assert SESSION_ID_PATTERN.match(chat_session["id"])

    def test_consecutive_ids_differ(self, client):
        body = {"websocket_url": "wss://x", "api_token": "t"}
        first = client.post(f"{RPC}/createChatSession", json=body).json()
        second = client.post(f"{RPC}/createChatSession", json=body).json()
        assert first["id"] != second["id"]

    @pytest.mark.parametrize(
        "body",
        [
            {"websocket_url": "no-url", "api_token": "t"},
            {"websocket_url": "wss://x", "api_token": ""},
            {"websocket_url": "wss://x", "api_token": "t", "connection_status": "idle"},
            {"api_token": "t"},
        ],
    )
    def test_rejects_invalid_input(self, client, body):
        response = client.post(f"{RPC}/createChatSession", json=body)
        assert response.status_code == 422


class TestUpdateChatSession:
    """Tests for POST updateChatSession."""

    def test_status_only_keeps_last_activity(self, client, chat_session):
        response = client.post(
            f"{RPC}/updateChatSession",
            json={"id": chat_session["id"], "connection_status": "connected"},
        )
        assert response.status_code == 200
        data = response.json()
        assert data["connection_status"] == "connected"
        assert data["last_activity"] == chat_session["last_activity"]
        assert data["created_at"] == chat_session["created_at"]

    def test_last_activity_only_keeps_status(self, client, chat_session):
        response = client.post(
            f"{RPC}/updateChatSession",
            json={"id": chat_session["id"], "last_activity": "2024-01-15T10:30:00Z"},
        )
        assert response.status_code == 200
        data = response.json()
        assert data["connection_status"] == "connecting"
        assert data["last_activity"].startswith("2024-01-15T10:30:00")

    def test_unknown_id_is_404(self, client):
        response = client.post(
            f"{RPC}/updateChatSession",
            json={"id": "missing", "connection_status": "connected"},
        )
        assert response.status_code == 404
        assert "not found" in response.json()["detail"]


class TestGetChatSession:
    """Tests for GET getChatSession."""

    def test_returns_session(self, client, chat_session):
        response = client.get(f"{RPC}/getChatSession", params={"sessionId": chat_session["id"]})
        assert response.status_code == 200
        assert response.json() == chat_session

    def test_unknown_id_returns_null(self, client):
        response = client.get(f"{RPC}/getChatSession", params={"sessionId": "never-created"})
        assert response.status_code == 200
        assert response.json() is None

    def test_missing_session_id_is_422(self, client):
        assert client.get(f"{RPC}/getChatSession").status_code == 422


class TestDeleteChatSession:
    """Tests for POST deleteChatSession."""

    def test_unknown_id_returns_false(self, client):
        response = client.post(f"{RPC}/deleteChatSession", json={"sessionId": "nope"})
        assert response.status_code == 200
        assert response.json() == {"success": False}

    def test_deletes_session_and_children(self, client, chat_session):
        session_id = chat_session["id"]
        client.post(
            f"{RPC}/createChatMessage",
            json={
                "session_id": session_id,
                "message_type": "user_text",
                "content": "hi",
                "transcription": None,
                "audio_duration": None,
            },
        )
        client.post(
            f"{RPC}/createAudioRecording",
            json={
                "session_id": session_id,
                "file_path": "/a.wav",
                "duration": 1.5,
                "sample_rate": 16000,
                "channels": 1,
                "format": "wav",
                "file_size": 48000,
            },
        )

        response = client.post(f"{RPC}/deleteChatSession", json={"sessionId": session_id})
        assert response.json() == {"success": True}

        params = {"sessionId": session_id}
        assert client.get(f"{RPC}/getChatSession", params=params).json() is None
        assert client.get(f"{RPC}/getChatMessages", params=params).json() == []
        assert client.get(f"{RPC}/getAudioRecordings", params=params).json() == []


class TestChatMessages:
    """Tests for createChatMessage / getChatMessages."""

    def test_text_message_scenario(self, client, chat_session):
        response = client.post(
            f"{RPC}/createChatMessage",
            json={
                "session_id": chat_session["id"],
                "message_type": "user_text",
                "content": "hi",
                "transcription": None,
                "audio_duration": None,
            },
        )
        assert response.status_code == 200

        messages = client.get(
            f"{RPC}/getChatMessages", params={"sessionId": chat_session["id"]}
        ).json()
        assert len(messages) == 1
        assert messages[0]["content"] == "hi"
        assert messages[0]["audio_duration"] is None

    def test_audio_duration_is_a_number(self, client):
        response = client.post(
            f"{RPC}/createChatMessage",
            json={
                "session_id": "unsaved-session",
                "message_type": "ai_audio",
                "content": "/reply.wav",
                "transcription": "sure",
                "audio_duration": 2.75,
            },
        )
        assert response.status_code == 200
        assert response.json()["audio_duration"] == 2.75

    @pytest.mark.parametrize("duration", [0, -3.2])
    def test_rejects_non_positive_duration(self, client, duration):
        response = client.post(
            f"{RPC}/createChatMessage",
            json={
                "session_id": "s1",
                "message_type": "user_audio",
                "content": "/a.wav",
                "transcription": None,
                "audio_duration": duration,
            },
        )
        assert response.status_code == 422

    def test_messages_ascending(self, client):
        for text in ("a", "b", "c"):
            client.post(
                f"{RPC}/createChatMessage",
                json={
                    "session_id": "s1",
                    "message_type": "ai_text",
                    "content": text,
                    "transcription": None,
                    "audio_duration": None,
                },
            )
        messages = client.get(f"{RPC}/getChatMessages", params={"sessionId": "s1"}).json()
        assert [m["content"] for m in messages] == ["a", "b", "c"]

    def test_corrupt_stored_duration_is_500(self, client):
        with Session(get_engine()) as db:
            db.add(ChatMessage(session_id="bad", message_type="ai_audio", audio_duration="x"))
            db.commit()

        response = client.get(f"{RPC}/getChatMessages", params={"sessionId": "bad"})
        assert response.status_code == 500
        assert response.json() == {"detail": "Internal server error"}


class TestAudioRecordings:
    """Tests for createAudioRecording / getAudioRecordings."""

    recording = {
        "file_path": "/a.wav",
        "duration": 45.67,
        "sample_rate": 44100,
        "channels": 2,
        "format": "wav",
        "file_size": 1024000,
    }

    def test_recording_scenario(self, client, chat_session):
        response = client.post(
            f"{RPC}/createAudioRecording",
            json={"session_id": chat_session["id"], **self.recording},
        )
        assert response.status_code == 200

        recordings = client.get(
            f"{RPC}/getAudioRecordings", params={"sessionId": chat_session["id"]}
        ).json()
        assert len(recordings) == 1
        assert recordings[0]["duration"] == 45.67
        assert isinstance(recordings[0]["duration"], float)
        assert recordings[0]["sample_rate"] == 44100

    def test_recordings_descending(self, client):
        for path in ("/1.wav", "/2.wav", "/3.wav"):
            client.post(
                f"{RPC}/createAudioRecording",
                json={**self.recording, "session_id": "s1", "file_path": path},
            )
        recordings = client.get(f"{RPC}/getAudioRecordings", params={"sessionId": "s1"}).json()
        assert [r["file_path"] for r in recordings] == ["/3.wav", "/2.wav", "/1.wav"]

    @pytest.mark.parametrize(
        "field,value",
        [("duration", 0), ("sample_rate", 0), ("channels", 1.5), ("file_size", -1)],
    )
    def test_rejects_constraint_violations(self, client, field, value):
        response = client.post(
            f"{RPC}/createAudioRecording",
            json={**self.recording, "session_id": "s1", field: value},
        )
        assert response.status_code == 422


class TestStorageUnavailable:
    """Storage failures surface as 503."""

    @pytest.fixture
    def failing_client(self):
        """Client whose database session fails every read."""
        db = MagicMock()
        db.get.side_effect = OperationalError("SELECT 1", {}, Exception("disk I/O error"))
        db.exec.side_effect = OperationalError("SELECT 1", {}, Exception("disk I/O error"))

        def failing_session():
            yield db

        app.dependency_overrides[get_session] = failing_session
        yield TestClient(app)
        app.dependency_overrides.clear()

    def test_get_session_is_503(self, failing_client):
        response = failing_client.get(f"{RPC}/getChatSession", params={"sessionId": "s1"})
        assert response.status_code == 503

    def test_get_messages_is_503(self, failing_client):
        response = failing_client.get(f"{RPC}/getChatMessages", params={"sessionId": "s1"})
        assert response.status_code == 503
