"""
RagChat - API Routes
=====================
Thin controllers over ``RAGManager``:

  - ``GET  /``          → liveness text
  - ``GET  /health``    → corpus size snapshot
  - ``POST /api/chat``  → answer the last user turn of ``history``

Handlers validate the payload shape, delegate to the engine, and format
the response.  Error mapping (400 / 500) lives in the exception
handlers registered by ``ragchat.src.main.create_app``.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import PlainTextResponse
from pydantic import BaseModel, Field

from ragchat.src.core.rag_engine import RAGManager
from ragchat.src.models.chat import ConversationHistory
from ragchat.src.utils.logger import get_logger

logger = get_logger(__name__)

router = APIRouter()
chat_router = APIRouter(prefix="/api")


class ChatRequest(BaseModel):
    history: ConversationHistory = Field(..., min_length=1)


class ChatResponse(BaseModel):
    reply: str
    newChatHistory: ConversationHistory


def get_rag_manager(request: Request) -> RAGManager:
    manager: RAGManager | None = getattr(request.app.state, "rag_manager", None)
    if manager is None:
        raise HTTPException(status_code=500, detail="Chat engine is not initialised.")
    return manager


@router.get("/", response_class=PlainTextResponse)
async def root() -> str:
    return "RagChat API is running!"


@router.get("/health")
async def health(rag: RAGManager = Depends(get_rag_manager)) -> dict[str, str | int]:
    store = rag.search.store
    return {"status": "ok", "chunks": len(store), "embedded": store.embedded_count()}


@chat_router.post("/chat", response_model=ChatResponse)
async def chat(req: ChatRequest, rag: RAGManager = Depends(get_rag_manager)) -> ChatResponse:
    logger.info("[API] Chat request with %d message(s).", len(req.history))
    result = await rag.answer(req.history)
    return ChatResponse(reply=result.reply, newChatHistory=result.new_history)
