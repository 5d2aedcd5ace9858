"""Pydantic schemas for chat, sessions and history."""

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class ChatRequest(BaseModel):
    """Request to send one message to the assistant."""

    model_config = ConfigDict(populate_by_name=True)

    message: str = Field(..., min_length=1, description="User message")
    session_id: Optional[str] = Field(None, alias="sessionId")
    generate_followups: bool = Field(True, alias="generateFollowups")


class ChatResponse(BaseModel):
    """Reply to a chat message."""

    model_config = ConfigDict(populate_by_name=True)

    reply: str
    session_id: str = Field(..., alias="sessionId")
    followups: list[str] = Field(default_factory=list)


class Session(BaseModel):
    """A conversation owned by one user."""

    id: Any
    user_id: Any
    title: Optional[str] = None
    created_at: Optional[datetime] = None


class SessionSummary(BaseModel):
    """Session as listed for its owner, with last activity."""

    id: Any
    title: Optional[str] = None
    created_at: Optional[datetime] = None
    last_activity: Optional[datetime] = None


class SessionCreate(BaseModel):
    title: Optional[str] = None


class SessionRename(BaseModel):
    title: str


class ConversationTurn(BaseModel):
    """One persisted question/answer exchange."""

    id: Any
    session_id: Any
    question: str
    answer: str
    followups: list[str] = Field(default_factory=list)
    created_at: Optional[datetime] = None
