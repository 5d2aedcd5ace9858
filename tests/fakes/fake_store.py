"""Fake in-memory chat store for pipeline and API tests."""

import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List


class FakeChatStore:
    """In-memory implementation of the ChatStore interface.

    Individual operations can be made to fail by adding their name to
    ``fail`` (e.g. ``store.fail.add("search_docs_and_history")``).
    """

    def __init__(self):
        self.reset()

    def reset(self):
        """Reset all stores to initial state."""
        self.sessions: Dict[str, Dict[str, Any]] = {}
        self.history: List[Dict[str, Any]] = []
        self.ranked_rows: List[Dict[str, Any]] = []
        self.document_rows: List[Dict[str, Any]] = []
        self.fail: set[str] = set()
        self.calls: List[str] = []
        self._next_turn_id = 1
        self._clock = datetime(2026, 1, 1, tzinfo=timezone.utc)

    def _record(self, name: str):
        self.calls.append(name)
        if name in self.fail:
            raise RuntimeError(f"{name} unavailable")

    def _now(self) -> datetime:
        self._clock += timedelta(seconds=1)
        return self._clock

    # Sessions
    async def create_session(self, user_id: str, title: str | None = None) -> dict:
        self._record("create_session")
        session = {
            "id": str(uuid.uuid4()),
            "user_id": user_id,
            "title": title,
            "created_at": self._now().isoformat(),
        }
        self.sessions[session["id"]] = session
        return dict(session)

    async def get_session_if_owned(self, session_id: str | None, user_id: str) -> dict | None:
        self._record("get_session_if_owned")
        session = self.sessions.get(session_id or "")
        if session and session["user_id"] == user_id:
            return dict(session)
        return None

    async def list_sessions_ordered(self, user_id: str) -> list[dict]:
        self._record("list_sessions_ordered")
        rows = []
        for session in self.sessions.values():
            if session["user_id"] != user_id:
                continue
            last = await self.last_activity(user_id, session["id"])
            rows.append({
                "id": session["id"],
                "title": session["title"],
                "created_at": session["created_at"],
                "last_activity": last or session["created_at"],
            })
        rows.sort(key=lambda r: r["last_activity"], reverse=True)
        return rows

    async def list_sessions(self, user_id: str) -> list[dict]:
        self._record("list_sessions")
        return [
            {"id": s["id"], "title": s["title"], "created_at": s["created_at"]}
            for s in self.sessions.values()
            if s["user_id"] == user_id
        ]

    async def last_activity(self, user_id: str, session_id: str) -> str | None:
        turns = self._turns(user_id, session_id)
        return turns[-1]["created_at"] if turns else None

    async def update_session_title(self, session_id: str, user_id: str, title: str) -> dict | None:
        self._record("update_session_title")
        session = self.sessions.get(session_id)
        if not session or session["user_id"] != user_id:
            return None
        session["title"] = title
        return dict(session)

    # History
    def _turns(self, user_id: str, session_id: str) -> list[dict]:
        return [
            t for t in self.history
            if t["user_id"] == user_id and t["session_id"] == session_id
        ]

    async def recent_turns(self, user_id: str, session_id: str, limit: int) -> list[dict]:
        self._record("recent_turns")
        turns = sorted(self._turns(user_id, session_id), key=lambda t: t["id"], reverse=True)
        return [
            {"id": t["id"], "question": t["question"], "answer": t["answer"]}
            for t in turns[:limit]
        ]

    async def list_turns(self, user_id: str, session_id: str) -> list[dict]:
        self._record("list_turns")
        return [
            {k: t[k] for k in ("id", "question", "answer", "followups", "session_id", "created_at")}
            for t in self._turns(user_id, session_id)
        ]

    async def count_turns(self, user_id: str, session_id: str) -> int:
        self._record("count_turns")
        return len(self._turns(user_id, session_id))

    def _add_turn(self, user_id, session_id, question, answer, followups, embedding) -> int:
        turn_id = self._next_turn_id
        self._next_turn_id += 1
        self.history.append({
            "id": turn_id,
            "user_id": user_id,
            "session_id": session_id,
            "question": question,
            "answer": answer,
            "followups": followups,
            "embedding": embedding,
            "created_at": self._now().isoformat(),
        })
        return turn_id

    async def insert_turn(self, user_id, session_id, question, answer, followups) -> int:
        self._record("insert_turn")
        return self._add_turn(user_id, session_id, question, answer, list(followups), None)

    async def insert_turn_with_embedding(self, user_id, session_id, question, answer, embedding) -> int:
        self._record("insert_turn_with_embedding")
        return self._add_turn(user_id, session_id, question, answer, None, embedding)

    async def attach_followups(self, turn_id, followups) -> None:
        self._record("attach_followups")
        for turn in self.history:
            if turn["id"] == turn_id:
                turn["followups"] = list(followups)

    # Ranked search
    async def search_docs_and_history(self, **kwargs) -> list[dict]:
        self._record("search_docs_and_history")
        self.last_search_kwargs = kwargs
        return [dict(row) for row in self.ranked_rows]

    async def match_documents(self, **kwargs) -> list[dict]:
        self._record("match_documents")
        self.last_match_kwargs = kwargs
        return [dict(row) for row in self.document_rows]
