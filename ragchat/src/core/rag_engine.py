"""
RagChat - RAG Engine
=====================
Answers one conversation turn with retrieval-augmented generation.

``RAGManager``
    Stateless pipeline orchestrator.  Flow:
        1. Validate   → non-empty history ending in a non-empty user turn
        2. Split      → current user message / prior history
        3. Retrieve   → similarity search over the current message
        4. Assemble   → context block (omitted entirely when empty)
        5. Compose    → instruction pair → context → prior history
        6. Generate   → seeded provider session, current message as the
                        live turn (bounded by ``LLM_TIMEOUT_SECONDS``)
        7. Strip      → drop synthetic messages from the transcript
        8. Return     → ``ChatResult(reply, new_history)``

    Nothing survives between requests; the only shared state is the
    read-only corpus behind the ``SimilaritySearch``.  Retrieval failures
    degrade to an unaugmented conversation; only invalid input
    (``InvalidInputError``) and provider failures (``ProviderError``)
    propagate.

Usage:
    from ragchat.src.core.rag_engine import RAGManager
    rag    = RAGManager(search, chat_provider)
    result = await rag.answer([Message(role="user", content="Hi")])
"""

from __future__ import annotations

import asyncio
import time

from ragchat.config.prompt_templates import MODEL_ACKNOWLEDGMENT, SYSTEM_INSTRUCTION
from ragchat.config.settings import settings
from ragchat.src.core.context_assembler import ContextAssembler
from ragchat.src.core.exceptions import InvalidInputError, ProviderError
from ragchat.src.core.retriever import SimilaritySearch
from ragchat.src.models.chat import ChatResult, ConversationHistory, Message
from ragchat.src.providers.gemini import ChatProvider, ChatTurn
from ragchat.src.utils.logger import get_logger

logger = get_logger(__name__)


def instruction_pair() -> ConversationHistory:
    """Persona instruction followed by the model's acknowledgment, both synthetic."""
    return [Message.synthetic("user", SYSTEM_INSTRUCTION), Message.synthetic("model", MODEL_ACKNOWLEDGMENT)]


class RAGManager:
    """
    Orchestrates validate → retrieve → compose → generate for one turn.

    Parameters
    ----------
    search
        ``SimilaritySearch`` over the process corpus.
    chat_provider
        ``ChatProvider`` used to open one session per request.
    assembler
        Optional custom ``ContextAssembler``.
    timeout
        Seconds allowed for the chat-completion call.
    """

    __slots__ = ("_search", "_provider", "_assembler", "_timeout")

    def __init__(self, search: SimilaritySearch, chat_provider: ChatProvider, assembler: ContextAssembler | None = None, timeout: float | None = None) -> None:
        self._search = search
        self._provider = chat_provider
        self._assembler = assembler or ContextAssembler()
        self._timeout = settings.LLM_TIMEOUT_SECONDS if timeout is None else timeout


    @property
    def search(self) -> SimilaritySearch:
        return self._search


    async def answer(self, history: ConversationHistory) -> ChatResult:
        """
        Generate the model's reply to the last user message of *history*.

        Raises
        ------
        InvalidInputError
            Empty history, or the last message is not a non-empty user turn.
            No provider is called.
        ProviderError
            The chat call failed, timed out, or returned no usable content.
        """
        t_start = time.perf_counter()

        # ── 1-2. Validate + split ─────────────────────────────────────
        self._validate(history)
        current = history[-1]
        prior = list(history[:-1])

        # ── 3. Retrieve ───────────────────────────────────────────────
        t_search = time.perf_counter()
        try:
            chunks = await self._search.find_relevant(current.content)
        except Exception:
            logger.exception("[RAG] Retrieval failed; answering without context.")
            chunks = []
        search_ms = (time.perf_counter() - t_search) * 1000

        # ── 4-5. Assemble + compose ───────────────────────────────────
        context = self._assembler.assemble(chunks)
        seed = self.compose(prior, context)
        logger.info("[RAG] Retrieved %d chunk(s) %s in %.1fms; seeding %d message(s).", len(chunks), [c.id for c in chunks], search_ms, len(seed))

        # ── 6. Generate ───────────────────────────────────────────────
        t_llm = time.perf_counter()
        turn = await self._generate(seed, current.content)
        llm_ms = (time.perf_counter() - t_llm) * 1000

        # ── 7. Strip scaffolding ──────────────────────────────────────
        new_history = [m for m in turn.transcript if not m.is_synthetic]
        if not new_history:
            raise ProviderError("Provider returned an empty transcript.")
        if new_history[: len(history)] != list(history) or new_history[-1].role != "model":
            logger.warning("[RAG] Provider transcript diverges from the submitted conversation (%d → %d messages).", len(history), len(new_history))

        total_ms = (time.perf_counter() - t_start) * 1000
        logger.info("[RAG] Pipeline total: %.1fms (search=%.1f, llm=%.1f); reply %d chars.", total_ms, search_ms, llm_ms, len(turn.text))
        return ChatResult(reply=turn.text, new_history=new_history)


    @staticmethod
    def compose(prior: ConversationHistory, context: str) -> ConversationHistory:
        """Instruction pair → optional context message → prior history."""
        seed = instruction_pair()
        if context:
            seed.append(Message.synthetic("user", context))
        seed.extend(prior)
        return seed


    @staticmethod
    def _validate(history: ConversationHistory) -> None:
        if not history:
            raise InvalidInputError("Chat history is empty. Cannot extract user message.")
        last = history[-1]
        if last.role != "user":
            raise InvalidInputError("Last message in chat history must come from the user.")
        if not last.content.strip():
            raise InvalidInputError("No valid user message found in chat history.")


    async def _generate(self, seed: ConversationHistory, text: str) -> ChatTurn:
        try:
            session = self._provider.create_session(seed)
            turn = await asyncio.wait_for(session.send(text), timeout=self._timeout)
        except asyncio.TimeoutError as exc:
            logger.error("[RAG] Chat completion timed out after %.1fs.", self._timeout)
            raise ProviderError(f"Chat completion timed out after {self._timeout:.0f}s.") from exc
        except Exception as exc:
            logger.exception("[RAG] Chat completion failed.")
            raise ProviderError("Error connecting with the chat model.") from exc

        if not turn.text or not turn.text.strip():
            raise ProviderError("Provider returned an empty reply.")
        return turn
