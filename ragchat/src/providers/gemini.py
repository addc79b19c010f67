"""
RagChat - Gemini Provider Adapters
===================================
Narrow capability interfaces over the two external services the core
consumes, plus their Gemini implementations.

``Embedder``
    Structural type for any LangChain-compatible embedding model
    (``embed_documents`` for batches, ``embed_query`` for one text).
    ``build_embedder`` returns ``GoogleGenerativeAIEmbeddings``.

``ChatProvider`` / ``ChatSession``
    ``create_session(seed)`` opens a provider-side chat seeded with a
    history; ``await session.send(text)`` runs the live turn and returns
    a ``ChatTurn`` (reply text + the provider's full transcript).

``GeminiChatProvider``
    Backed by ``google.genai`` async chats.  Seed messages are converted
    to ``types.Content`` once and the session remembers which ``Content``
    object came from which ``Message``.  The SDK keeps those objects in
    its history, so the transcript maps them back to the *original*
    ``Message`` instances and their synthetic marker survives the round
    trip.  Entries the provider created itself become fresh messages.

Usage:
    provider = GeminiChatProvider()
    session  = provider.create_session(seed_messages)
    turn     = await session.send("Hi")
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol

from google import genai
from google.genai import types

from ragchat.config.settings import settings
from ragchat.src.models.chat import ConversationHistory, Message
from ragchat.src.utils.logger import get_logger

logger = get_logger(__name__)

# All four adjustable categories, none blocked.
_SAFETY_CATEGORIES = (
    types.HarmCategory.HARM_CATEGORY_HARASSMENT,
    types.HarmCategory.HARM_CATEGORY_HATE_SPEECH,
    types.HarmCategory.HARM_CATEGORY_SEXUALLY_EXPLICIT,
    types.HarmCategory.HARM_CATEGORY_DANGEROUS_CONTENT,
)


# ══════════════════════════════════════════════════════════════════════
#  PROTOCOLS
# ══════════════════════════════════════════════════════════════════════


class Embedder(Protocol):
    """Anything that can produce embedding vectors from text."""

    def embed_documents(self, texts: list[str]) -> list[list[float]]: ...

    def embed_query(self, text: str) -> list[float]: ...


@dataclass
class ChatTurn:
    """Reply text and the provider's canonical transcript after one turn."""

    text: str
    transcript: ConversationHistory = field(default_factory=list)


class ChatSession(Protocol):
    async def send(self, text: str) -> ChatTurn: ...


class ChatProvider(Protocol):
    def create_session(self, seed: ConversationHistory) -> ChatSession: ...


# ══════════════════════════════════════════════════════════════════════
#  EMBEDDINGS
# ══════════════════════════════════════════════════════════════════════


def build_embedder() -> Embedder:
    """Initialise the Gemini embedding model via LangChain."""
    from langchain_google_genai import GoogleGenerativeAIEmbeddings

    embedder = GoogleGenerativeAIEmbeddings(model=settings.EMBEDDING_MODEL, task_type=settings.EMBEDDING_TASK_TYPE, google_api_key=settings.GOOGLE_API_KEY.get_secret_value())
    logger.info("Embedder initialised: %s (task=%s)", settings.EMBEDDING_MODEL, settings.EMBEDDING_TASK_TYPE)
    return embedder


# ══════════════════════════════════════════════════════════════════════
#  CHAT COMPLETION
# ══════════════════════════════════════════════════════════════════════


def to_content(message: Message) -> types.Content:
    """Convert a ``Message`` into a single-part Gemini ``Content``."""
    return types.Content(role=message.role, parts=[types.Part(text=message.content)])


def from_content(content: types.Content) -> Message:
    """Convert a Gemini ``Content`` back into a ``Message`` (text parts only)."""
    text = "".join(part.text for part in content.parts or [] if part.text)
    role = "model" if content.role == "model" else "user"
    return Message(role=role, content=text)


class GeminiChatSession:
    """
    One provider-side chat, seeded with a history.

    Parameters
    ----------
    chat
        A ``google.genai`` ``AsyncChat`` created with ``seed_contents``.
    seed
        The ``Message`` objects the chat was seeded with, parallel to
        ``seed_contents``.
    seed_contents
        The exact ``Content`` objects passed to the SDK.
    """

    __slots__ = ("_chat", "_origin")

    def __init__(self, chat: object, seed: ConversationHistory, seed_contents: list[types.Content]) -> None:
        self._chat = chat
        self._origin: dict[int, Message] = {id(content): message for content, message in zip(seed_contents, seed)}


    async def send(self, text: str) -> ChatTurn:
        response = await self._chat.send_message(text)  # type: ignore[attr-defined]
        reply = response.text or ""
        history = self._chat.get_history()  # type: ignore[attr-defined]
        transcript = [self._origin.get(id(content)) or from_content(content) for content in history]
        logger.debug("[GEMINI] Turn complete — %d chars, transcript of %d message(s).", len(reply), len(transcript))
        return ChatTurn(text=reply, transcript=transcript)


class GeminiChatProvider:
    """
    Chat-completion provider backed by ``google.genai``.

    Parameters
    ----------
    client
        Optional pre-built ``genai.Client`` (injected in tests).
    model, temperature, max_output_tokens
        Generation parameters; default to settings.
    """

    __slots__ = ("_client", "_model", "_config")

    def __init__(self, client: genai.Client | None = None, model: str | None = None, temperature: float | None = None, max_output_tokens: int | None = None) -> None:
        self._client = client or genai.Client(api_key=settings.GOOGLE_API_KEY.get_secret_value())
        self._model = model or settings.LLM_MODEL
        self._config = types.GenerateContentConfig(
            temperature=settings.LLM_TEMPERATURE if temperature is None else temperature,
            max_output_tokens=settings.MAX_OUTPUT_TOKENS if max_output_tokens is None else max_output_tokens,
            safety_settings=[types.SafetySetting(category=category, threshold=types.HarmBlockThreshold.BLOCK_NONE) for category in _SAFETY_CATEGORIES],
        )
        logger.info("Chat provider initialised: %s (temperature=%.1f, max_output_tokens=%d)", self._model, self._config.temperature, self._config.max_output_tokens)


    @property
    def config(self) -> types.GenerateContentConfig:
        return self._config


    def create_session(self, seed: ConversationHistory) -> GeminiChatSession:
        seed_contents = [to_content(message) for message in seed]
        chat = self._client.aio.chats.create(model=self._model, config=self._config, history=seed_contents)
        return GeminiChatSession(chat, seed, seed_contents)
