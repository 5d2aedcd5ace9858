"""Pydantic schemas for the voice WebSocket protocol."""

from typing import Any, Literal, Optional, Union

from pydantic import BaseModel, Field


class ClientMessage(BaseModel):
    """Inbound message from the voice client."""

    type: str
    data: Optional[str] = None  # base64 PCM for audio_chunk


class PartialTranscript(BaseModel):
    type: Literal["partial_transcript"] = "partial_transcript"
    data: str


class ModelResponse(BaseModel):
    type: Literal["model_response"] = "model_response"
    data: dict[str, Any] = Field(default_factory=dict)


class StreamError(BaseModel):
    type: Literal["error"] = "error"
    error: str


StreamEvent = Union[PartialTranscript, ModelResponse, StreamError]
