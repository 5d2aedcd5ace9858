"""Chat pipeline: one request from message to persisted, styled reply.

Steps, in order:
    session → recent-messages bypass → retrieve → history window → generate
    → follow-ups (concurrent, best-effort) → style → persist → first-turn title

Retrieval and follow-ups degrade to empty results; generation and
persistence failures propagate.
"""

import asyncio
from dataclasses import dataclass, field
from functools import lru_cache

from openai import OpenAI

from neurocom.core.config import Settings, get_settings
from neurocom.core.embeddings import EmbeddingGateway
from neurocom.core.errors import RetrievalError
from neurocom.core.generation import FollowupGenerator, ResponseGenerator
from neurocom.core.history import HistoryWriter
from neurocom.core.llm import get_anthropic_client
from neurocom.core.logging import get_logger
from neurocom.core.recent_messages import (
    is_recent_messages_request,
    render_recent_messages,
    requested_count,
)
from neurocom.core.retrieval import ContextRetriever, RetrievalOptions
from neurocom.core.styler import style_response
from neurocom.db.chat_store import ChatStore
from neurocom.db.supabase_client import get_supabase

logger = get_logger(__name__)


@dataclass
class ChatResult:
    """Outcome of one chat request."""

    reply: str
    session_id: str
    followups: list[str] = field(default_factory=list)


class ChatPipeline:
    """Orchestrates retrieval, generation, styling and persistence."""

    def __init__(
        self,
        store: ChatStore,
        retriever: ContextRetriever,
        generator: ResponseGenerator,
        followup_generator: FollowupGenerator,
        history_writer: HistoryWriter,
        retrieval_options: RetrievalOptions | None = None,
        history_window: int = 10,
        title_max_chars: int = 60,
    ):
        self.store = store
        self.retriever = retriever
        self.generator = generator
        self.followup_generator = followup_generator
        self.history_writer = history_writer
        self.retrieval_options = retrieval_options or RetrievalOptions()
        self.history_window = history_window
        self.title_max_chars = title_max_chars

    async def chat(
        self,
        user_id: str,
        message: str,
        session_id: str | None = None,
        generate_followups: bool = True,
    ) -> ChatResult:
        """
        Answer one message.

        Args:
            user_id: Authenticated caller
            message: User message
            session_id: Session to continue; a new one is created when absent
                or not owned by the caller
            generate_followups: Whether to ask for follow-up questions

        Returns:
            ChatResult with styled reply, session id and follow-ups

        Raises:
            GenerationError: If the reply could not be generated
            PersistenceError: If the turn could not be stored
        """
        session = await self.resolve_session(user_id, session_id)
        session_id = str(session["id"])

        if is_recent_messages_request(message):
            reply = await self.list_recent_messages(user_id, session_id, requested_count(message))
            return ChatResult(reply=reply, session_id=session_id)

        context = await self.build_context(message, session_id, user_id)
        history = await self.history_for_prompt(user_id, session_id)

        raw_reply = await self.generator.generate(message=message, context=context, history=history)

        followups_task = None
        if generate_followups:
            followups_task = asyncio.create_task(
                self.followup_generator.followups(raw_reply, message)
            )

        reply = style_response(raw_reply)
        followups = await followups_task if followups_task else []

        await self.history_writer.persist(
            user_id=user_id,
            session_id=session_id,
            question=message,
            answer=reply,
            followups=followups,
        )

        await self.maybe_set_title(session, user_id, message)

        logger.info(
            f"Chat turn complete: session={session_id}, "
            f"context_chars={len(context)}, history_turns={len(history)}, "
            f"followups={len(followups)}"
        )
        return ChatResult(reply=reply, session_id=session_id, followups=followups)

    async def resolve_session(self, user_id: str, session_id: str | None) -> dict:
        """Return the caller's session, creating one if needed."""
        if session_id:
            session = await self.store.get_session_if_owned(session_id, user_id)
            if session:
                return session
            logger.info(f"Session {session_id} not owned by caller; creating a new one")
        return await self.store.create_session(user_id)

    async def build_context(self, message: str, session_id: str, user_id: str) -> str:
        """Retrieved context as text; empty when retrieval cannot run."""
        try:
            items = await self.retriever.retrieve(
                query=message,
                session_id=session_id,
                user_id=user_id,
                options=self.retrieval_options,
            )
        except RetrievalError as e:
            logger.warning(f"Retrieval unavailable, continuing without context: {e}")
            return ""
        return self.retriever.format_context(items)

    async def history_for_prompt(self, user_id: str, session_id: str) -> list[dict]:
        """Most recent turns, oldest first."""
        try:
            turns = await self.store.recent_turns(user_id, session_id, limit=self.history_window)
        except Exception as e:
            logger.warning(f"Could not load recent history: {e}")
            return []
        return list(reversed(turns))

    async def list_recent_messages(self, user_id: str, session_id: str, count: int) -> str:
        """Numbered list of the caller's last ``count`` questions in this session."""
        turns = await self.store.recent_turns(user_id, session_id, limit=count)
        questions = [turn["question"] for turn in sorted(turns, key=lambda t: t["id"])]
        return render_recent_messages(questions)

    async def maybe_set_title(self, session: dict, user_id: str, message: str) -> None:
        """Title an untitled session from its first turn. Best-effort."""
        if (session.get("title") or "").strip():
            return

        session_id = str(session["id"])
        try:
            count = await self.store.count_turns(user_id, session_id)
            if count == 1:
                await self.store.update_session_title(
                    session_id, user_id, message[: self.title_max_chars]
                )
        except Exception as e:
            logger.warning(f"Could not set title for session {session_id}: {e}")


def build_chat_pipeline(settings: Settings, store: ChatStore) -> ChatPipeline:
    """Wire the pipeline components from settings and a store."""
    embedder = EmbeddingGateway(
        client=OpenAI(api_key=settings.OPENAI_API_KEY, timeout=settings.MODEL_TIMEOUT_SECONDS),
        model=settings.EMBEDDING_MODEL,
        dimension=settings.EMBEDDING_DIM,
    )
    anthropic_client = get_anthropic_client(settings)

    return ChatPipeline(
        store=store,
        retriever=ContextRetriever(store, embedder),
        generator=ResponseGenerator(
            anthropic_client, model=settings.CHAT_MODEL, max_tokens=settings.CHAT_MAX_TOKENS
        ),
        followup_generator=FollowupGenerator(
            anthropic_client,
            model=settings.FOLLOWUPS_MODEL,
            max_tokens=settings.FOLLOWUPS_MAX_TOKENS,
        ),
        history_writer=HistoryWriter(store, embedder),
        retrieval_options=default_retrieval_options(settings),
        history_window=settings.HISTORY_WINDOW,
        title_max_chars=settings.TITLE_MAX_CHARS,
    )


def default_retrieval_options(settings: Settings) -> RetrievalOptions:
    return RetrievalOptions(
        min_sim_docs=settings.RAG_MIN_SIM_DOCS,
        min_sim_hist=settings.RAG_MIN_SIM_HIST,
        docs_k=settings.RAG_DOCS_K,
        hist_k=settings.RAG_HIST_K,
        recency_half_life_seconds=settings.RAG_RECENCY_HALF_LIFE_SECONDS,
        candidate_pool=settings.RAG_CANDIDATE_POOL,
    )


@lru_cache(maxsize=1)
def get_chat_pipeline() -> ChatPipeline:
    """Process-wide pipeline, built on first use."""
    return build_chat_pipeline(get_settings(), ChatStore(get_supabase()))
