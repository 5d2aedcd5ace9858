"""Database operations for sessions, conversation history and ranked search.

The Supabase client is synchronous; every public method runs its query in a
worker thread so the event loop is never blocked.
"""

import asyncio
from typing import Any

from supabase import Client

from neurocom.core.logging import get_logger

logger = get_logger(__name__)

SESSIONS_TABLE = "sessions"
HISTORY_TABLE = "history"


class ChatStore:
    """Store collaborator backed by Supabase tables and RPC functions."""

    def __init__(self, client: Client):
        self.client = client

    # =========================================================================
    # Sessions
    # =========================================================================

    async def create_session(self, user_id: str, title: str | None = None) -> dict:
        """Create a session owned by ``user_id``."""

        def _insert() -> dict:
            response = (
                self.client.table(SESSIONS_TABLE)
                .insert({"user_id": user_id, "title": title})
                .execute()
            )
            if not response.data:
                raise RuntimeError("Session insert returned no row")
            return response.data[0]

        return await asyncio.to_thread(_insert)

    async def get_session_if_owned(self, session_id: str | None, user_id: str) -> dict | None:
        """Get a session only if it belongs to ``user_id``.

        Returns None when the id is empty, unknown, owned by someone else or
        the lookup fails.
        """
        if not session_id:
            return None

        def _select() -> dict | None:
            response = (
                self.client.table(SESSIONS_TABLE)
                .select("id, user_id, title, created_at")
                .eq("id", session_id)
                .eq("user_id", user_id)
                .maybe_single()
                .execute()
            )
            return response.data if response else None

        try:
            return await asyncio.to_thread(_select)
        except Exception as e:
            logger.warning(f"Failed to get session {session_id}: {e}")
            return None

    async def list_sessions_ordered(self, user_id: str) -> list[dict]:
        """List sessions ordered by last activity using the store-side function."""

        def _rpc() -> list[dict]:
            response = self.client.rpc("list_sessions_ordered", {"p_user_id": user_id}).execute()
            return response.data or []

        return await asyncio.to_thread(_rpc)

    async def list_sessions(self, user_id: str) -> list[dict]:
        """List a user's sessions without ordering."""

        def _select() -> list[dict]:
            response = (
                self.client.table(SESSIONS_TABLE)
                .select("id, title, created_at")
                .eq("user_id", user_id)
                .execute()
            )
            return response.data or []

        return await asyncio.to_thread(_select)

    async def last_activity(self, user_id: str, session_id: str) -> str | None:
        """Timestamp of the newest turn in a session, if any."""

        def _select() -> str | None:
            response = (
                self.client.table(HISTORY_TABLE)
                .select("created_at")
                .eq("user_id", user_id)
                .eq("session_id", session_id)
                .order("created_at", desc=True)
                .limit(1)
                .execute()
            )
            rows = response.data or []
            return rows[0]["created_at"] if rows else None

        return await asyncio.to_thread(_select)

    async def update_session_title(self, session_id: str, user_id: str, title: str) -> dict | None:
        """Set a session title, scoped to its owner."""

        def _update() -> dict | None:
            response = (
                self.client.table(SESSIONS_TABLE)
                .update({"title": title})
                .eq("id", session_id)
                .eq("user_id", user_id)
                .execute()
            )
            return response.data[0] if response.data else None

        return await asyncio.to_thread(_update)

    # =========================================================================
    # History
    # =========================================================================

    async def recent_turns(self, user_id: str, session_id: str, limit: int) -> list[dict]:
        """Fetch the newest ``limit`` turns of a session, newest first."""

        def _select() -> list[dict]:
            response = (
                self.client.table(HISTORY_TABLE)
                .select("id, question, answer")
                .eq("user_id", user_id)
                .eq("session_id", session_id)
                .order("id", desc=True)
                .limit(limit)
                .execute()
            )
            return response.data or []

        return await asyncio.to_thread(_select)

    async def list_turns(self, user_id: str, session_id: str) -> list[dict]:
        """Fetch every turn of a session, oldest first."""

        def _select() -> list[dict]:
            response = (
                self.client.table(HISTORY_TABLE)
                .select("id, question, answer, followups, session_id, created_at")
                .eq("user_id", user_id)
                .eq("session_id", session_id)
                .order("id")
                .execute()
            )
            return response.data or []

        return await asyncio.to_thread(_select)

    async def count_turns(self, user_id: str, session_id: str) -> int:
        """Count the turns persisted for a session."""

        def _count() -> int:
            response = (
                self.client.table(HISTORY_TABLE)
                .select("id", count="exact")
                .eq("user_id", user_id)
                .eq("session_id", session_id)
                .execute()
            )
            return response.count or 0

        return await asyncio.to_thread(_count)

    async def insert_turn(
        self,
        user_id: str,
        session_id: str,
        question: str,
        answer: str,
        followups: list[str],
    ) -> Any:
        """Plain insert of a turn without an embedding. Returns the new id."""

        def _insert() -> Any:
            response = (
                self.client.table(HISTORY_TABLE)
                .insert({
                    "user_id": user_id,
                    "session_id": session_id,
                    "question": question,
                    "answer": answer,
                    "followups": followups,
                })
                .execute()
            )
            return response.data[0].get("id") if response.data else None

        return await asyncio.to_thread(_insert)

    async def insert_turn_with_embedding(
        self,
        user_id: str,
        session_id: str,
        question: str,
        answer: str,
        embedding: list[float],
    ) -> Any:
        """Atomic insert with embedding through the store-side function."""

        def _rpc() -> Any:
            response = self.client.rpc("insert_history", {
                "p_user_id": user_id,
                "p_session_id": session_id,
                "p_question": question,
                "p_answer": answer,
                "p_embedding": embedding,
            }).execute()
            if response.data is None:
                raise RuntimeError("insert_history returned no id")
            return response.data

        return await asyncio.to_thread(_rpc)

    async def attach_followups(self, turn_id: Any, followups: list[str]) -> None:
        """Patch follow-up questions onto an existing turn."""

        def _update() -> None:
            (
                self.client.table(HISTORY_TABLE)
                .update({"followups": followups})
                .eq("id", turn_id)
                .execute()
            )

        await asyncio.to_thread(_update)

    # =========================================================================
    # Ranked search
    # =========================================================================

    async def search_docs_and_history(
        self,
        query_embedding: list[float],
        user_id: str,
        session_id: str,
        docs_k: int,
        hist_k: int,
        min_sim_docs: float,
        min_sim_hist: float,
        recency_half_life_seconds: int,
        total_limit: int | None,
    ) -> list[dict]:
        """Blended documents + history search with recency decay.

        Rows carry ``id, content, kind, similarity, score``.
        """

        def _rpc() -> list[dict]:
            response = self.client.rpc("search_docs_and_history", {
                "p_query_embedding": query_embedding,
                "p_user_id": user_id,
                "p_session_id": session_id,
                "p_match_count": docs_k,
                "p_history_count": hist_k,
                "p_min_sim_docs": min_sim_docs,
                "p_min_sim_hist": min_sim_hist,
                "p_recency_half_life_seconds": recency_half_life_seconds,
                "p_total_limit": total_limit,
            }).execute()
            return response.data or []

        return await asyncio.to_thread(_rpc)

    async def match_documents(
        self,
        query_embedding: list[float],
        match_count: int,
        min_sim: float,
        candidate_pool: int,
    ) -> list[dict]:
        """Document-only similarity search. Rows carry ``id, content, similarity``."""

        def _rpc() -> list[dict]:
            response = self.client.rpc("match_documents", {
                "p_query_embedding": query_embedding,
                "p_match_count": match_count,
                "p_min_sim": min_sim,
                "p_candidate_pool": candidate_pool,
            }).execute()
            return response.data or []

        return await asyncio.to_thread(_rpc)
