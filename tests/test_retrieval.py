"""Tests for context retrieval and its fallback chain."""

from unittest.mock import AsyncMock

import pytest

from neurocom.core.errors import EmbeddingError, RetrievalError
from neurocom.core.retrieval import (
    ContextRetriever,
    ItemKind,
    RetrievalOptions,
    RetrievalTrace,
    RetrievedItem,
)

USER_ID = "user-1"
SESSION_ID = "session-1"

RANKED_ROWS = [
    {"id": 10, "content": "Documento sobre ansiedade", "kind": "document", "similarity": 0.8, "score": 0.8},
    {"id": 3, "content": "Turno anterior sobre medo", "kind": "history", "similarity": 0.7, "score": 0.5},
    {"id": 11, "content": "Documento sobre PNL", "kind": "document", "similarity": 0.6, "score": 0.6},
    {"id": 2, "content": "Turno mais antigo", "kind": "history", "similarity": 0.4, "score": 0.2},
]

DOCUMENT_ROWS = [
    {"id": 10, "content": "Documento sobre ansiedade", "similarity": 0.8},
    {"id": 12, "content": "Documento sobre hipnose", "similarity": 0.5},
]


@pytest.fixture
def retriever(fake_store, embedder):
    fake_store.ranked_rows = RANKED_ROWS
    fake_store.document_rows = DOCUMENT_ROWS
    return ContextRetriever(fake_store, embedder)


class TestRankedSearch:

    @pytest.mark.asyncio
    async def test_history_precedes_documents(self, retriever):
        items = await retriever.retrieve("medo de falar", SESSION_ID, USER_ID)

        kinds = [item.kind for item in items]
        assert kinds == [ItemKind.HISTORY, ItemKind.HISTORY, ItemKind.DOCUMENT, ItemKind.DOCUMENT]
        assert [item.id for item in items] == [3, 2, 10, 11]

    @pytest.mark.asyncio
    async def test_passes_options_to_store(self, retriever, fake_store):
        options = RetrievalOptions(docs_k=4, hist_k=2, min_sim_docs=0.5, total_limit=5)

        await retriever.retrieve("medo", SESSION_ID, USER_ID, options)

        kwargs = fake_store.last_search_kwargs
        assert kwargs["user_id"] == USER_ID
        assert kwargs["session_id"] == SESSION_ID
        assert kwargs["docs_k"] == 4
        assert kwargs["hist_k"] == 2
        assert kwargs["min_sim_docs"] == 0.5
        assert kwargs["recency_half_life_seconds"] == 86400
        assert kwargs["total_limit"] == 5
        assert len(kwargs["query_embedding"]) == 768

    @pytest.mark.asyncio
    async def test_items_below_threshold_dropped(self, retriever):
        options = RetrievalOptions(min_sim_docs=0.7, min_sim_hist=0.5)

        items = await retriever.retrieve("medo", SESSION_ID, USER_ID, options)

        assert [item.id for item in items] == [3, 10]

    @pytest.mark.asyncio
    async def test_total_limit_caps_result(self, retriever):
        items = await retriever.retrieve(
            "medo", SESSION_ID, USER_ID, RetrievalOptions(total_limit=2)
        )
        assert len(items) == 2

    @pytest.mark.asyncio
    async def test_recency_score_carried(self, retriever):
        items = await retriever.retrieve("medo", SESSION_ID, USER_ID)
        assert items[0].recency_adjusted_score == 0.5

    @pytest.mark.asyncio
    async def test_empty_result_is_success(self, retriever, fake_store):
        fake_store.ranked_rows = []
        trace = RetrievalTrace()

        items = await retriever.retrieve("nada", SESSION_ID, USER_ID, trace=trace)

        assert items == []
        assert trace.strategy == "ranked_search"
        assert "match_documents" not in fake_store.calls


class TestDocumentFallback:

    @pytest.mark.asyncio
    async def test_fallback_when_ranked_search_fails(self, retriever, fake_store):
        fake_store.fail.add("search_docs_and_history")
        trace = RetrievalTrace()

        items = await retriever.retrieve("medo", SESSION_ID, USER_ID, trace=trace)

        assert trace.strategy == "document_search"
        assert "ranked_search" in trace.failures
        assert [item.id for item in items] == [10, 12]
        assert all(item.kind == ItemKind.DOCUMENT for item in items)

    @pytest.mark.asyncio
    async def test_fallback_forces_document_kind(self, retriever, fake_store):
        fake_store.fail.add("search_docs_and_history")
        fake_store.document_rows = [{"id": 7, "content": "x", "kind": "history", "similarity": 0.9}]

        items = await retriever.retrieve("medo", SESSION_ID, USER_ID)

        assert items[0].kind == ItemKind.DOCUMENT

    @pytest.mark.asyncio
    async def test_fallback_uses_candidate_pool(self, retriever, fake_store):
        fake_store.fail.add("search_docs_and_history")

        await retriever.retrieve("medo", SESSION_ID, USER_ID, RetrievalOptions(candidate_pool=100))

        assert fake_store.last_match_kwargs["candidate_pool"] == 100
        assert fake_store.last_match_kwargs["match_count"] == 8
        assert fake_store.last_match_kwargs["min_sim"] == 0.30

    @pytest.mark.asyncio
    async def test_all_strategies_failing_returns_empty(self, retriever, fake_store):
        fake_store.fail.update({"search_docs_and_history", "match_documents"})

        items = await retriever.retrieve("medo", SESSION_ID, USER_ID)

        assert items == []


class TestEmbeddingFailure:

    @pytest.mark.asyncio
    async def test_embedding_failure_raises_retrieval_error(self, fake_store, embedder):
        embedder.embed = AsyncMock(side_effect=EmbeddingError("down"))
        retriever = ContextRetriever(fake_store, embedder)

        with pytest.raises(RetrievalError):
            await retriever.retrieve("medo", SESSION_ID, USER_ID)

        assert "search_docs_and_history" not in fake_store.calls


def test_format_context_joins_contents():
    items = [
        RetrievedItem(id=1, content="primeiro", kind=ItemKind.HISTORY),
        RetrievedItem(id=2, content="", kind=ItemKind.DOCUMENT),
        RetrievedItem(id=3, content="segundo", kind=ItemKind.DOCUMENT),
    ]
    assert ContextRetriever.format_context(items) == "primeiro\nsegundo"
