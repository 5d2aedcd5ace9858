"""Context retrieval: documents and prior turns relevant to a chat message.

Two strategies are tried in order:

1. ranked search: one store-side function blending documents and this
   session's history, scored by similarity with exponential recency decay;
2. document search: similarity over documents only, used when the ranked
   function is unavailable.

Retrieval only fails when the query cannot be embedded. An empty result is a
valid answer.

Usage:
    retriever = ContextRetriever(store, embedder)
    items = await retriever.retrieve(
        query="Como lidar com ansiedade antes de falar em público?",
        session_id=session_id,
        user_id=user_id,
    )
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from neurocom.core.embeddings import EmbeddingGateway, EmbeddingVector
from neurocom.core.errors import EmbeddingError, Outcome, RetrievalError
from neurocom.core.logging import get_logger
from neurocom.db.chat_store import ChatStore

logger = get_logger(__name__)


# =============================================================================
# Models
# =============================================================================


class ItemKind(str, Enum):
    DOCUMENT = "document"
    HISTORY = "history"


@dataclass
class RetrievedItem:
    """One ranked piece of context. Built per query, never persisted."""

    id: Any
    content: str
    kind: ItemKind
    similarity: float | None = None
    recency_adjusted_score: float | None = None


@dataclass
class RetrievalOptions:
    """Per-call retrieval budget and relevance thresholds."""

    min_sim_docs: float = 0.30
    min_sim_hist: float = 0.25
    docs_k: int = 8
    hist_k: int = 6
    recency_half_life_seconds: int = 86400
    total_limit: int | None = None
    candidate_pool: int = 50

    def min_similarity(self, kind: ItemKind) -> float:
        return self.min_sim_hist if kind == ItemKind.HISTORY else self.min_sim_docs


@dataclass
class RetrievalTrace:
    """Which strategy produced a result (exposed by the debug endpoint)."""

    strategy: str | None = None
    failures: dict[str, str] = field(default_factory=dict)


SearchStrategy = Callable[
    [EmbeddingVector, str, str, RetrievalOptions], Awaitable[Outcome[list[RetrievedItem]]]
]


# =============================================================================
# Retriever
# =============================================================================


class ContextRetriever:
    """Returns a ranked blend of documents and prior history for a query."""

    def __init__(self, store: ChatStore, embedder: EmbeddingGateway):
        self.store = store
        self.embedder = embedder
        self.strategies: list[tuple[str, SearchStrategy]] = [
            ("ranked_search", self._ranked_search),
            ("document_search", self._document_search),
        ]

    async def retrieve(
        self,
        query: str,
        session_id: str,
        user_id: str,
        options: RetrievalOptions | None = None,
        trace: RetrievalTrace | None = None,
    ) -> list[RetrievedItem]:
        """
        Retrieve context for ``query``.

        Args:
            query: The user's message
            session_id: Session whose history may be blended in
            user_id: Owner of the session
            options: Thresholds and limits (defaults when omitted)
            trace: Optional trace filled with the strategy that answered

        Returns:
            History items first, then documents; may be empty

        Raises:
            RetrievalError: If the query could not be embedded
        """
        options = options or RetrievalOptions()
        trace = trace if trace is not None else RetrievalTrace()

        try:
            vector = await self.embedder.embed(query)
        except EmbeddingError as e:
            raise RetrievalError(f"Could not embed query: {e}") from e

        for name, strategy in self.strategies:
            outcome = await strategy(vector, session_id, user_id, options)
            if outcome.ok:
                trace.strategy = name
                return _apply_limits(outcome.value or [], options)

            trace.failures[name] = str(outcome.error)
            logger.warning(f"Retrieval strategy {name} failed, trying next: {outcome.error}")

        logger.error("All retrieval strategies failed; continuing without context")
        return []

    async def _ranked_search(
        self,
        vector: EmbeddingVector,
        session_id: str,
        user_id: str,
        options: RetrievalOptions,
    ) -> Outcome[list[RetrievedItem]]:
        try:
            rows = await self.store.search_docs_and_history(
                query_embedding=vector,
                user_id=user_id,
                session_id=session_id,
                docs_k=options.docs_k,
                hist_k=options.hist_k,
                min_sim_docs=options.min_sim_docs,
                min_sim_hist=options.min_sim_hist,
                recency_half_life_seconds=options.recency_half_life_seconds,
                total_limit=options.total_limit,
            )
        except Exception as e:
            return Outcome.failure(e)

        items = [_row_to_item(row) for row in rows]
        history = [item for item in items if item.kind == ItemKind.HISTORY]
        documents = [item for item in items if item.kind == ItemKind.DOCUMENT]
        return Outcome.success(history + documents)

    async def _document_search(
        self,
        vector: EmbeddingVector,
        session_id: str,
        user_id: str,
        options: RetrievalOptions,
    ) -> Outcome[list[RetrievedItem]]:
        try:
            rows = await self.store.match_documents(
                query_embedding=vector,
                match_count=options.docs_k,
                min_sim=options.min_sim_docs,
                candidate_pool=options.candidate_pool,
            )
        except Exception as e:
            return Outcome.failure(e)

        items = [_row_to_item(row, kind=ItemKind.DOCUMENT) for row in rows]
        return Outcome.success(items)

    @staticmethod
    def format_context(items: list[RetrievedItem]) -> str:
        """Render retrieved items as the plain-text context block."""
        return "\n".join(item.content for item in items if item.content)


# =============================================================================
# Helpers
# =============================================================================


def _row_to_item(row: dict, kind: ItemKind | None = None) -> RetrievedItem:
    if kind is None:
        kind = ItemKind.HISTORY if row.get("kind") == ItemKind.HISTORY.value else ItemKind.DOCUMENT
    similarity = row.get("similarity")
    score = row.get("score")
    if kind == ItemKind.DOCUMENT and score is None:
        score = similarity
    return RetrievedItem(
        id=row.get("id"),
        content=row.get("content") or "",
        kind=kind,
        similarity=similarity,
        recency_adjusted_score=score,
    )


def _apply_limits(items: list[RetrievedItem], options: RetrievalOptions) -> list[RetrievedItem]:
    """Drop items under the per-kind threshold and cap the combined size."""
    kept = [
        item
        for item in items
        if item.similarity is None or item.similarity >= options.min_similarity(item.kind)
    ]
    if options.total_limit is not None:
        kept = kept[: options.total_limit]
    return kept
