"""Persistence of chat turns.

Write paths, tried in order until one succeeds:

1. enriched: embed question + answer and insert through the atomic
   store-side function, then attach follow-ups in a best-effort update;
2. plain: insert question, answer and follow-ups without an embedding.

A turn is lost only when the plain insert fails too, which raises
``PersistenceError``.
"""

import logging
from collections.abc import Awaitable, Callable
from typing import Any

from neurocom.core.embeddings import EmbeddingGateway, EmbeddingVector
from neurocom.core.errors import EmbeddingError, Outcome, PersistenceError
from neurocom.core.logging import get_logger, log_with_context
from neurocom.db.chat_store import ChatStore

logger = get_logger(__name__)


class HistoryWriter:
    """Persists one question/answer turn, surviving embedding and RPC failures."""

    def __init__(self, store: ChatStore, embedder: EmbeddingGateway):
        self.store = store
        self.embedder = embedder

    async def persist(
        self,
        user_id: str,
        session_id: str,
        question: str,
        answer: str,
        followups: list[str],
    ) -> Any:
        """
        Persist a turn.

        Args:
            user_id: Owner of the session
            session_id: Session the turn belongs to
            question: User message, stored verbatim
            answer: Styled reply, stored verbatim
            followups: Follow-up questions (may be empty)

        Returns:
            Id of the new turn (None if the store does not report it)

        Raises:
            PersistenceError: If every write path failed
        """
        vector = await self._embed_turn(question, answer)

        write_paths: list[tuple[str, Callable[[], Awaitable[Outcome[Any]]]]] = [
            (
                "enriched",
                lambda: self._insert_enriched(user_id, session_id, question, answer, followups, vector),
            ),
            (
                "plain",
                lambda: self._insert_plain(user_id, session_id, question, answer, followups),
            ),
        ]

        last_error: Exception | None = None
        for name, write in write_paths:
            outcome = await write()
            if outcome.ok:
                log_with_context(
                    logger, logging.INFO, f"Turn persisted via {name} path",
                    session_id=session_id, turn_id=outcome.value,
                )
                return outcome.value
            last_error = outcome.error
            logger.warning(f"History {name} write failed: {outcome.error}")

        raise PersistenceError(f"Could not persist turn: {last_error}") from last_error

    async def _embed_turn(self, question: str, answer: str) -> EmbeddingVector | None:
        try:
            return await self.embedder.embed(f"{question}\n{answer}")
        except EmbeddingError as e:
            logger.warning(f"Turn embedding failed, persisting without it: {e}")
            return None

    async def _insert_enriched(
        self,
        user_id: str,
        session_id: str,
        question: str,
        answer: str,
        followups: list[str],
        vector: EmbeddingVector | None,
    ) -> Outcome[Any]:
        if vector is None:
            return Outcome.failure(EmbeddingError("No embedding for turn"))

        try:
            turn_id = await self.store.insert_turn_with_embedding(
                user_id=user_id,
                session_id=session_id,
                question=question,
                answer=answer,
                embedding=vector,
            )
        except Exception as e:
            return Outcome.failure(e)

        if followups:
            try:
                await self.store.attach_followups(turn_id, followups)
            except Exception as e:
                logger.warning(f"Could not attach follow-ups to turn {turn_id}: {e}")

        return Outcome.success(turn_id)

    async def _insert_plain(
        self,
        user_id: str,
        session_id: str,
        question: str,
        answer: str,
        followups: list[str],
    ) -> Outcome[Any]:
        try:
            turn_id = await self.store.insert_turn(
                user_id=user_id,
                session_id=session_id,
                question=question,
                answer=answer,
                followups=followups,
            )
        except Exception as e:
            return Outcome.failure(e)
        return Outcome.success(turn_id)
