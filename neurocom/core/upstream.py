"""Chunked streaming transport to the audio model.

The upstream answers with server-sent events, one ``data: {json}`` line per
payload. httpx reassembles lines across network reads; ``parse_sse_line``
turns each line into a payload.
"""

import json
from collections.abc import AsyncIterator
from typing import Any

import httpx

from neurocom.core.config import Settings
from neurocom.core.errors import StreamDecodeError

DATA_PREFIX = "data:"
DONE_MARKER = "[DONE]"


def parse_sse_line(line: str) -> dict | StreamDecodeError | None:
    """
    Parse one server-sent event line.

    Returns:
        The payload dict, a StreamDecodeError for a malformed payload (returned,
        not raised, so one bad line never stops the read loop), or None for
        lines carrying no payload (comments, ``event:``, blanks, ``[DONE]``)
    """
    line = line.rstrip("\r")
    if not line.startswith(DATA_PREFIX):
        return None

    payload = line[len(DATA_PREFIX):].strip()
    if not payload or payload == DONE_MARKER:
        return None

    try:
        data = json.loads(payload)
    except json.JSONDecodeError as e:
        return StreamDecodeError(f"Malformed stream payload: {e.msg}")

    if not isinstance(data, dict):
        return StreamDecodeError("Stream payload is not a JSON object")
    return data


def partial_texts(payload: dict) -> list[str]:
    """Text fragments carried by one upstream payload."""
    texts = []
    for candidate in payload.get("candidates") or []:
        content = candidate.get("content") or {}
        for part in content.get("parts") or []:
            text = part.get("text")
            if text:
                texts.append(text)
    return texts


def is_finished(payload: dict) -> bool:
    """True when the payload carries the explicit ``finished`` signal."""
    return bool(payload.get("finished"))


class UpstreamError(Exception):
    """Non-success status from the streaming endpoint."""


class AudioStreamClient:
    """Owns one HTTP connection pool to the streaming model for one voice session."""

    def __init__(
        self,
        api_key: str,
        model: str,
        base_url: str,
        audio_mime: str = "audio/pcm;rate=16000",
        temperature: float = 0.7,
        timeout: float = 60.0,
        http_client: httpx.AsyncClient | None = None,
    ):
        self.api_key = api_key
        self.model = model
        self.audio_mime = audio_mime
        self.temperature = temperature
        self.url = f"{base_url.rstrip('/')}/models/{model}:streamGenerateContent"
        self.http = http_client or httpx.AsyncClient(timeout=timeout)
        self.closed = False

    @classmethod
    def from_settings(cls, settings: Settings) -> "AudioStreamClient":
        return cls(
            api_key=settings.GEMINI_API_KEY,
            model=settings.STREAM_MODEL,
            base_url=settings.STREAM_BASE_URL,
            audio_mime=settings.STREAM_AUDIO_MIME,
            temperature=settings.STREAM_TEMPERATURE,
            timeout=settings.MODEL_TIMEOUT_SECONDS,
        )

    def _body(self, audio_b64: str) -> dict[str, Any]:
        return {
            "contents": [
                {
                    "role": "user",
                    "parts": [
                        {"inline_data": {"mime_type": self.audio_mime, "data": audio_b64}}
                    ],
                }
            ],
            "generationConfig": {"temperature": self.temperature},
        }

    async def stream_audio(self, audio_b64: str) -> AsyncIterator[dict | StreamDecodeError]:
        """
        Send one audio chunk and yield decoded payloads as they arrive.

        Yields:
            Parsed payload dicts, or StreamDecodeError for malformed lines

        Raises:
            UpstreamError: If the endpoint answers with a non-success status
            httpx.HTTPError: On transport failure
        """
        async with self.http.stream(
            "POST",
            self.url,
            params={"alt": "sse", "key": self.api_key},
            json=self._body(audio_b64),
        ) as response:
            if response.status_code >= 400:
                body = (await response.aread()).decode("utf-8", errors="replace")
                raise UpstreamError(f"Streaming API error: {response.status_code} {body}")

            async for line in response.aiter_lines():
                item = parse_sse_line(line)
                if item is not None:
                    yield item

    async def aclose(self) -> None:
        """Release the connection pool. Safe to call more than once."""
        if self.closed:
            return
        self.closed = True
        await self.http.aclose()
