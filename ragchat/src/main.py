"""
RagChat - Application Entry Point
==================================
FastAPI application factory.

``create_app`` registers the routes, CORS middleware and the error
mapping.  Its lifespan hook wires the runtime graph once per process:

    embedder ─┬─> IngestionPipeline ──> CorpusStore
              └─> SimilaritySearch  ──> RAGManager <── GeminiChatProvider

Ingestion (seed corpus + ``settings.DATA_RAW_DIR``) runs in a worker
thread and is awaited before the app starts serving, so requests never
race a half-built corpus in the default setup.  If ingestion were moved
to the background, requests arriving early would simply see a partial
corpus; the store is snapshot-read and never blocks them.

Run:  python -m ragchat.src.main
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from ragchat.config.seed_corpus import SEED_CHUNKS
from ragchat.config.settings import settings
from ragchat.src.api.routes import chat_router, router
from ragchat.src.core.exceptions import InvalidInputError, ProviderError
from ragchat.src.core.ingestor import IngestionPipeline, IngestionReport
from ragchat.src.core.rag_engine import RAGManager
from ragchat.src.core.retriever import SimilaritySearch
from ragchat.src.database.corpus_store import CorpusStore
from ragchat.src.providers.gemini import GeminiChatProvider, build_embedder
from ragchat.src.utils.logger import get_logger

logger = get_logger(__name__)


def build_corpus(pipeline: IngestionPipeline) -> IngestionReport:
    """Populate the store from the seed records and the corpus directory."""
    report = IngestionReport()
    if settings.LOAD_SEED_CORPUS:
        report.merge(pipeline.ingest_records(SEED_CHUNKS))
    report.merge(pipeline.run())
    return report


@asynccontextmanager
async def _lifespan(app: FastAPI) -> AsyncIterator[None]:
    if getattr(app.state, "rag_manager", None) is None:
        embedder = build_embedder()
        store = CorpusStore()

        if settings.INGEST_ON_STARTUP:
            report = await asyncio.to_thread(build_corpus, IngestionPipeline(store, embedder))
            logger.info("[STARTUP] Corpus ready: %s; skipped=%s", report.summary(), report.skipped)

        app.state.rag_manager = RAGManager(SimilaritySearch(store, embedder), GeminiChatProvider())
    yield


def create_app(rag_manager: RAGManager | None = None) -> FastAPI:
    """
    Build the FastAPI app.

    Pass *rag_manager* to skip provider construction and ingestion
    (tests, embedding in another host).
    """
    app = FastAPI(title="RagChat API", lifespan=_lifespan)
    app.state.rag_manager = rag_manager

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(RequestValidationError)
    async def _invalid_request(request: Request, exc: RequestValidationError) -> JSONResponse:
        logger.warning("[API] Rejected malformed request: %s", exc.errors())
        return JSONResponse(status_code=400, content={"error": "history must be a non-empty array of messages."})

    @app.exception_handler(InvalidInputError)
    async def _invalid_input(request: Request, exc: InvalidInputError) -> JSONResponse:
        return JSONResponse(status_code=400, content={"error": str(exc)})

    @app.exception_handler(ProviderError)
    async def _provider_error(request: Request, exc: ProviderError) -> JSONResponse:
        return JSONResponse(status_code=500, content={"message": "Failed to get response from AI.", "detail": str(exc)})

    @app.exception_handler(Exception)
    async def _unhandled(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("[API] Unhandled error on %s", request.url.path)
        return JSONResponse(status_code=500, content={"message": "Internal Server Error"})

    app.include_router(router)
    app.include_router(chat_router)
    return app


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(create_app(), host="0.0.0.0", port=settings.PORT)
