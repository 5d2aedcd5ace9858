"""Shared FastAPI dependencies."""

from collections.abc import Callable

from fastapi import Header, HTTPException, status

from neurocom.core.chat_pipeline import ChatPipeline, get_chat_pipeline
from neurocom.core.config import get_settings
from neurocom.core.streaming import StreamingSession
from neurocom.core.upstream import AudioStreamClient
from neurocom.db.chat_store import ChatStore


async def get_current_user_id(x_user_id: str | None = Header(None)) -> str:
    """
    Authenticated caller id, supplied by the identity layer in front of this service.

    Raises:
        HTTPException: 401 if the header is missing
    """
    if not x_user_id or not x_user_id.strip():
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing authenticated user",
        )
    return x_user_id.strip()


def get_pipeline() -> ChatPipeline:
    return get_chat_pipeline()


def get_store() -> ChatStore:
    return get_chat_pipeline().store


def get_streaming_session_factory() -> Callable[[], StreamingSession]:
    """Factory creating one StreamingSession (and upstream client) per connection."""
    settings = get_settings()

    def _create() -> StreamingSession:
        return StreamingSession(
            upstream=AudioStreamClient.from_settings(settings),
            outbox_size=settings.STREAM_OUTBOX_SIZE,
        )

    return _create
