"""Voice streaming WebSocket endpoint."""

import asyncio
from collections.abc import Callable

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect

from neurocom.api.deps import get_streaming_session_factory
from neurocom.core.logging import get_logger
from neurocom.core.streaming import StreamingSession

logger = get_logger(__name__)

router = APIRouter()

VOICE_PATH = "/ws/voice"


async def _forward_events(websocket: WebSocket, session: StreamingSession) -> None:
    """Single consumer of the session outbox; writes events to the socket in order.

    The session is closed when this consumer stops, so producers never wait on
    an outbox nobody drains.
    """
    try:
        async for event in session.events():
            await websocket.send_json(event.model_dump())
    except (WebSocketDisconnect, RuntimeError) as e:
        logger.debug(f"Voice socket stopped accepting events: {e}")
    finally:
        await session.close()


@router.websocket(VOICE_PATH)
async def voice_stream(
    websocket: WebSocket,
    session_factory: Callable[[], StreamingSession] = Depends(get_streaming_session_factory),
) -> None:
    """
    Bidirectional voice session.

    Client sends ``audio_chunk`` / ``end_of_utterance`` / ``close``; server
    sends ``partial_transcript`` / ``model_response`` / ``error``.
    """
    await websocket.accept()
    session = session_factory()
    sender = asyncio.create_task(_forward_events(websocket, session))
    logger.info("Voice connection opened")

    try:
        while not session.closed:
            raw = await websocket.receive_text()
            await session.handle_client_message(raw)
        sender.cancel()
        await websocket.close()
    except WebSocketDisconnect:
        pass
    finally:
        await session.close()
        sender.cancel()
        logger.info("Voice connection closed")
