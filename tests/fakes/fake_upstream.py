"""Scripted stand-in for AudioStreamClient."""

import asyncio


class FakeUpstream:
    """Yields ``items`` for every chunk, then raises ``error`` if set.

    With ``pause_after=i`` the stream sleeps ``pause_seconds`` after yielding
    item ``i``, simulating a slow model.
    """

    def __init__(
        self,
        items=None,
        error: Exception | None = None,
        pause_after: int | None = None,
        pause_seconds: float = 0.0,
    ):
        self.items = list(items or [])
        self.error = error
        self.pause_after = pause_after
        self.pause_seconds = pause_seconds
        self.chunks: list[str] = []
        self.aclose_calls = 0
        self.completed_streams = 0

    async def stream_audio(self, audio_b64: str):
        self.chunks.append(audio_b64)
        for index, item in enumerate(self.items):
            yield item
            if index == self.pause_after:
                await asyncio.sleep(self.pause_seconds)
        if self.error:
            raise self.error
        self.completed_streams += 1

    async def aclose(self) -> None:
        self.aclose_calls += 1


def text_payload(text: str) -> dict:
    return {"candidates": [{"content": {"parts": [{"text": text}]}}]}
