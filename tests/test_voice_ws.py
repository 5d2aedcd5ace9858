"""Tests for the voice WebSocket endpoint."""

import asyncio
import time
from contextlib import contextmanager
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi import WebSocketDisconnect
from fastapi.testclient import TestClient

from neurocom.api.deps import get_streaming_session_factory
from neurocom.api.voice import VOICE_PATH, _forward_events
from neurocom.core.streaming import StreamingSession
from neurocom.main import app
from tests.fakes.fake_upstream import FakeUpstream, text_payload


@contextmanager
def voice_socket(upstream):
    app.dependency_overrides[get_streaming_session_factory] = (
        lambda: lambda: StreamingSession(upstream)
    )
    try:
        with TestClient(app).websocket_connect(VOICE_PATH) as ws:
            yield ws
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def upstream():
    return FakeUpstream([text_payload("Eu"), text_payload(" escuto"), {"finished": True}])


def test_audio_chunk_streams_events_in_order(upstream):
    with voice_socket(upstream) as ws:
        ws.send_json({"type": "audio_chunk", "data": "AAAA"})

        assert ws.receive_json() == {"type": "partial_transcript", "data": "Eu"}
        assert ws.receive_json() == {"type": "partial_transcript", "data": " escuto"}
        assert ws.receive_json() == {"type": "model_response", "data": {"finished": True}}

        ws.send_json({"type": "close"})


def test_end_of_utterance(upstream):
    with voice_socket(upstream) as ws:
        ws.send_json({"type": "end_of_utterance"})

        assert ws.receive_json() == {"type": "model_response", "data": {"done": True}}

        ws.send_json({"type": "close"})


def test_malformed_message_reports_error(upstream):
    with voice_socket(upstream) as ws:
        ws.send_text("{not json")

        assert ws.receive_json() == {"type": "error", "error": "Invalid message"}

        ws.send_json({"type": "close"})


def test_close_releases_upstream(upstream):
    with voice_socket(upstream) as ws:
        ws.send_json({"type": "close"})

    assert upstream.aclose_calls == 1


def test_close_mid_stream_stops_events_at_once():
    slow = FakeUpstream([text_payload("a"), text_payload("b")], pause_after=0, pause_seconds=2)

    with voice_socket(slow) as ws:
        ws.send_json({"type": "audio_chunk", "data": "AAAA"})
        assert ws.receive_json() == {"type": "partial_transcript", "data": "a"}

        started = time.monotonic()
        ws.send_json({"type": "close"})

        # The next frame is the server's close, not the rest of the stream
        with pytest.raises(WebSocketDisconnect):
            ws.receive_json()
        elapsed = time.monotonic() - started

    assert elapsed < 1.5
    assert slow.aclose_calls == 1
    assert slow.completed_streams == 0


@pytest.mark.asyncio
async def test_failed_send_closes_session(upstream):
    session = StreamingSession(upstream)
    await session.end_of_utterance()
    websocket = MagicMock()
    websocket.send_json = AsyncMock(side_effect=RuntimeError("socket closed"))

    await asyncio.wait_for(_forward_events(websocket, session), timeout=1)

    assert session.closed
    assert upstream.aclose_calls == 1
