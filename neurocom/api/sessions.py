"""Session and history API endpoints."""

from typing import Any, Dict

from fastapi import APIRouter, Depends, HTTPException

from neurocom.api.deps import get_current_user_id, get_store
from neurocom.core.logging import get_logger
from neurocom.core.schemas_chat import (
    ConversationTurn,
    Session,
    SessionCreate,
    SessionRename,
    SessionSummary,
)
from neurocom.db.chat_store import ChatStore

logger = get_logger(__name__)

router = APIRouter()


@router.post("/sessions", status_code=201)
async def create_session(
    request: SessionCreate,
    user_id: str = Depends(get_current_user_id),
    store: ChatStore = Depends(get_store),
) -> Dict[str, Any]:
    """Create an empty session for the caller."""
    try:
        row = await store.create_session(user_id, request.title or None)
    except Exception as e:
        logger.error(f"Error creating session: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to create session")
    return {"session": Session(**row).model_dump(mode="json")}


@router.get("/sessions")
async def list_sessions(
    user_id: str = Depends(get_current_user_id),
    store: ChatStore = Depends(get_store),
) -> Dict[str, Any]:
    """
    List the caller's sessions, most recently active first.

    Uses the store-side ordered listing, falling back to a table scan plus one
    last-activity lookup per session.
    """
    try:
        rows = await store.list_sessions_ordered(user_id)
        return {"sessions": [SessionSummary(**row).model_dump(mode="json") for row in rows]}
    except Exception as e:
        logger.warning(f"Ordered session listing unavailable, using fallback: {e}")

    try:
        sessions = await store.list_sessions(user_id)
        summaries = []
        for row in sessions:
            last = await store.last_activity(user_id, str(row["id"]))
            summaries.append(
                SessionSummary(
                    id=row["id"],
                    title=row.get("title"),
                    created_at=row.get("created_at"),
                    last_activity=last or row.get("created_at"),
                )
            )
    except Exception as e:
        logger.error(f"Error listing sessions: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to list sessions")

    summaries.sort(key=lambda s: s.last_activity.timestamp() if s.last_activity else 0, reverse=True)
    return {"sessions": [s.model_dump(mode="json") for s in summaries]}


@router.patch("/sessions/{session_id}")
async def rename_session(
    session_id: str,
    request: SessionRename,
    user_id: str = Depends(get_current_user_id),
    store: ChatStore = Depends(get_store),
) -> Dict[str, Any]:
    """Rename a session owned by the caller."""
    title = request.title.strip()
    if not title:
        raise HTTPException(status_code=400, detail="Title is required")

    session = await store.get_session_if_owned(session_id, user_id)
    if not session:
        raise HTTPException(status_code=404, detail="Session not found")

    try:
        row = await store.update_session_title(session_id, user_id, title)
    except Exception as e:
        logger.error(f"Error renaming session {session_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to rename session")

    return {"session": Session(**(row or {**session, "title": title})).model_dump(mode="json")}


@router.get("/chat-history/{session_id}")
async def chat_history(
    session_id: str,
    user_id: str = Depends(get_current_user_id),
    store: ChatStore = Depends(get_store),
) -> Dict[str, Any]:
    """All turns of a session owned by the caller, oldest first."""
    session = await store.get_session_if_owned(session_id, user_id)
    if not session:
        raise HTTPException(status_code=404, detail="Session not found")

    try:
        rows = await store.list_turns(user_id, session_id)
    except Exception as e:
        logger.error(f"Error reading history for {session_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to read history")

    messages = [
        ConversationTurn(**{**row, "followups": row.get("followups") or []}).model_dump(mode="json")
        for row in rows
    ]
    return {"messages": messages}
