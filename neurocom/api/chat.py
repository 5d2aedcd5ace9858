"""Chat RAG API endpoints."""

import time
from typing import Any, Dict

from fastapi import APIRouter, Depends, HTTPException, Query

from neurocom.api.deps import get_current_user_id, get_pipeline
from neurocom.core.chat_pipeline import ChatPipeline
from neurocom.core.config import get_settings
from neurocom.core.errors import NeurocomError, RetrievalError
from neurocom.core.logging import get_logger
from neurocom.core.retrieval import ItemKind, RetrievalOptions, RetrievalTrace, RetrievedItem
from neurocom.core.schemas_chat import ChatRequest, ChatResponse

logger = get_logger(__name__)

router = APIRouter()


@router.post("/chat-rag", response_model=ChatResponse)
async def chat_rag(
    request: ChatRequest,
    user_id: str = Depends(get_current_user_id),
    pipeline: ChatPipeline = Depends(get_pipeline),
) -> ChatResponse:
    """
    Answer one message with retrieved context and recent history.

    Creates a session when ``sessionId`` is absent or not owned by the caller.

    Returns:
        Styled reply, session id and up to two follow-up questions
    """
    try:
        result = await pipeline.chat(
            user_id=user_id,
            message=request.message,
            session_id=request.session_id,
            generate_followups=request.generate_followups,
        )
    except NeurocomError:
        raise
    except Exception as e:
        logger.error(f"Error in chat endpoint: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to process message")

    return ChatResponse(reply=result.reply, session_id=result.session_id, followups=result.followups)


@router.get("/debug/rag-search")
async def debug_rag_search(
    q: str = Query("", description="Query text"),
    session_id: str = Query("", alias="sessionId", description="Session UUID"),
    min_sim_docs: float = Query(0.30, alias="minSimDocs"),
    min_sim_hist: float = Query(0.25, alias="minSimHist"),
    docs_k: int = Query(8, alias="docsK", ge=1),
    hist_k: int = Query(6, alias="histK", ge=0),
    user_id: str = Depends(get_current_user_id),
    pipeline: ChatPipeline = Depends(get_pipeline),
) -> Dict[str, Any]:
    """
    Run retrieval for a query and show what each source returned.

    Returns:
        Timing, per-kind items with previews and the strategy that answered
    """
    if not q:
        raise HTTPException(status_code=400, detail="Pass ?q=<question> to search")
    if not session_id:
        raise HTTPException(status_code=400, detail="Pass ?sessionId=<uuid> of the session")

    session = await pipeline.store.get_session_if_owned(session_id, user_id)
    if not session:
        raise HTTPException(status_code=404, detail="Session not found")

    options = RetrievalOptions(
        min_sim_docs=min_sim_docs,
        min_sim_hist=min_sim_hist,
        docs_k=docs_k,
        hist_k=hist_k,
        recency_half_life_seconds=pipeline.retrieval_options.recency_half_life_seconds,
        candidate_pool=get_settings().RAG_DEBUG_CANDIDATE_POOL,
    )
    trace = RetrievalTrace()

    started = time.perf_counter()
    try:
        items = await pipeline.retriever.retrieve(
            query=q,
            session_id=session_id,
            user_id=user_id,
            options=options,
            trace=trace,
        )
    except RetrievalError as e:
        logger.error(f"Debug retrieval failed: {e}")
        raise HTTPException(status_code=500, detail="Retrieval debug failed")
    took_ms = int((time.perf_counter() - started) * 1000)

    return {
        "query": q,
        "took_ms": took_ms,
        "strategy": trace.strategy,
        "total": len(items),
        "documents": [_preview(item, 200) for item in items if item.kind == ItemKind.DOCUMENT],
        "history": [_preview(item, 200) for item in items if item.kind == ItemKind.HISTORY],
        "raw_top3": [
            {**_preview(item, 300), "kind": item.kind.value} for item in items[:3]
        ],
    }


def _preview(item: RetrievedItem, length: int) -> Dict[str, Any]:
    return {
        "id": item.id,
        "similarity": item.similarity,
        "score": item.recency_adjusted_score,
        "preview": (item.content or "")[:length],
    }
