"""API router for v1 endpoints."""

from fastapi import APIRouter

from neurocom.api import chat, sessions

router = APIRouter()

# Chat RAG pipeline and retrieval debugging
router.include_router(chat.router, tags=["chat"])

# Session listing, renaming and history reads
router.include_router(sessions.router, tags=["sessions"])
