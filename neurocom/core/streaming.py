"""Voice streaming session, one per client connection.

States: OPEN → CLOSED. While OPEN, audio chunks and utterance markers are
queued to a single worker task that forwards each chunk to the streaming
model and demultiplexes its chunked answer into ``partial_transcript`` and
``model_response`` events. ``close`` bypasses that queue: it cancels the
in-flight stream and releases the upstream client at once.

Errors become ``error`` events and never close the session. Events go through
one bounded, ordered outbox drained by a single consumer; a full outbox
suspends the producer until the consumer catches up or the session closes.
"""

import asyncio
import base64
import binascii
import contextlib
import json
from collections.abc import AsyncIterator
from enum import Enum

from pydantic import ValidationError

from neurocom.core.errors import StreamDecodeError
from neurocom.core.logging import get_logger
from neurocom.core.schemas_voice import (
    ClientMessage,
    ModelResponse,
    PartialTranscript,
    StreamError,
    StreamEvent,
)
from neurocom.core.upstream import AudioStreamClient, is_finished, partial_texts

logger = get_logger(__name__)


class SessionState(str, Enum):
    OPEN = "open"
    CLOSED = "closed"


class StreamingSession:
    """State machine bridging one client socket and one upstream client."""

    def __init__(self, upstream: AudioStreamClient, outbox_size: int = 256):
        self.upstream = upstream
        self.state = SessionState.OPEN
        self.outbox: asyncio.Queue[StreamEvent] = asyncio.Queue(maxsize=outbox_size)
        self._inbox: asyncio.Queue[ClientMessage] = asyncio.Queue()
        self._worker: asyncio.Task | None = None
        self._closed = asyncio.Event()
        self._shutdown_task: asyncio.Future | None = None

    @property
    def closed(self) -> bool:
        return self.state == SessionState.CLOSED

    async def events(self) -> AsyncIterator[StreamEvent]:
        """Outbound events in emission order, until the session closes."""
        while not self.closed:
            yield await self.outbox.get()

    async def handle_client_message(self, raw: str) -> None:
        """
        Dispatch one raw client message without waiting for upstream work.

        ``audio_chunk`` and ``end_of_utterance`` are processed in arrival order
        by the worker; ``close`` takes effect immediately.
        """
        if self.closed:
            return

        try:
            message = ClientMessage.model_validate(json.loads(raw))
        except (json.JSONDecodeError, ValidationError) as e:
            logger.warning(f"Invalid voice client message: {e}")
            await self._emit(StreamError(error="Invalid message"))
            return

        if message.type in ("audio_chunk", "end_of_utterance"):
            self._inbox.put_nowait(message)
            if self._worker is None:
                self._worker = asyncio.create_task(self._process_inbox())
        elif message.type == "close":
            await self.close()
        else:
            logger.warning(f"Ignoring unknown voice message type: {message.type}")

    async def wait_idle(self) -> None:
        """Wait until every queued chunk and marker has been processed."""
        await self._inbox.join()

    async def _process_inbox(self) -> None:
        while True:
            message = await self._inbox.get()
            try:
                if message.type == "audio_chunk":
                    await self.send_audio_chunk(message.data or "")
                else:
                    await self.end_of_utterance()
            finally:
                self._inbox.task_done()

    async def send_audio_chunk(self, audio_b64: str) -> None:
        """Forward one base64 PCM chunk upstream. Dropped when CLOSED."""
        if self.closed:
            return

        if not audio_b64:
            await self._emit(StreamError(error="Invalid audio chunk: empty"))
            return

        try:
            base64.b64decode(audio_b64, validate=True)
        except (binascii.Error, ValueError) as e:
            await self._emit(StreamError(error=f"Invalid audio chunk: {e}"))
            return

        try:
            async for item in self.upstream.stream_audio(audio_b64):
                if self.closed:
                    break
                if isinstance(item, StreamDecodeError):
                    await self._emit(StreamError(error=str(item)))
                    continue
                for text in partial_texts(item):
                    await self._emit(PartialTranscript(data=text))
                if is_finished(item):
                    await self._emit(ModelResponse(data=item))
        except Exception as e:
            logger.warning(f"Upstream streaming failed: {e}")
            await self._emit(StreamError(error=str(e) or e.__class__.__name__))

    async def end_of_utterance(self) -> None:
        """Signal completion of the current utterance. Does not close."""
        await self._emit(ModelResponse(data={"done": True}))

    async def close(self) -> None:
        """
        Move to CLOSED, cancel the in-flight stream and release the upstream client.

        Idempotent; every caller waits for the same shutdown, which is not
        interrupted if a caller is cancelled.
        """
        if self._shutdown_task is None:
            self.state = SessionState.CLOSED
            self._closed.set()
            self._shutdown_task = asyncio.ensure_future(self._shutdown())
        await asyncio.shield(self._shutdown_task)

    async def _shutdown(self) -> None:
        if self._worker is not None:
            self._worker.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._worker
        try:
            await self.upstream.aclose()
        except Exception as e:
            logger.warning(f"Error closing upstream stream client: {e}")

    async def _emit(self, event: StreamEvent) -> None:
        if self.closed:
            return
        try:
            self.outbox.put_nowait(event)
            return
        except asyncio.QueueFull:
            pass

        put = asyncio.ensure_future(self.outbox.put(event))
        closed = asyncio.ensure_future(self._closed.wait())
        try:
            await asyncio.wait({put, closed}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            put.cancel()
            closed.cancel()
