"""Tests for RAGManager (conversation manager)."""

import pytest

from fakes import FakeChatProvider, KeywordEmbedder
from ragchat.config.prompt_templates import CONTEXT_HEADER, MODEL_ACKNOWLEDGMENT, SYSTEM_INSTRUCTION
from ragchat.src.core.exceptions import InvalidInputError, ProviderError
from ragchat.src.core.rag_engine import RAGManager
from ragchat.src.core.retriever import SimilaritySearch
from ragchat.src.models.chat import Message


def user(text):
    return Message(role="user", content=text)


def model(text):
    return Message(role="model", content=text)


class TestValidation:
    """Invalid histories are rejected before any provider call."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "history",
        [
            [],
            [model("hi")],
            [user("   ")],
            [user("Hi"), model("Hello")],
        ],
        ids=["empty", "only-model", "blank-user", "ends-with-model"],
    )
    async def test_rejected(self, rag_manager, chat_provider, embedder, history):
        with pytest.raises(InvalidInputError):
            await rag_manager.answer(history)

        assert chat_provider.seeds == []
        assert chat_provider.sent == []
        assert embedder.query_calls == []


class TestAnswer:
    """End-to-end turns against fake providers."""

    @pytest.mark.asyncio
    async def test_first_turn_with_context(self, rag_manager, chat_provider):
        history = [user("Hi")]
        result = await rag_manager.answer(history)

        assert result.reply == "Hello! How can I help?"
        assert result.new_history == [user("Hi"), model("Hello! How can I help?")]

        seed = chat_provider.seeds[0]
        assert [m.content for m in seed[:2]] == [SYSTEM_INSTRUCTION, MODEL_ACKNOWLEDGMENT]
        assert [m.role for m in seed[:2]] == ["user", "model"]
        assert all(m.is_synthetic for m in seed)
        assert len(seed) == 3
        assert seed[2].role == "user"
        assert seed[2].content.startswith(CONTEXT_HEADER)
        assert "bio.md" in seed[2].content
        assert "Hi, I am the owner of this site." in seed[2].content
        assert all(m.content != "Hi" for m in seed)
        assert chat_provider.sent == ["Hi"]

    @pytest.mark.asyncio
    async def test_no_context_message_when_nothing_relevant(self, rag_manager, chat_provider):
        result = await rag_manager.answer([user("What is the weather like?")])

        seed = chat_provider.seeds[0]
        assert len(seed) == 2
        assert all(not m.content.startswith(CONTEXT_HEADER) for m in seed)
        assert len(result.new_history) == 2

    @pytest.mark.asyncio
    async def test_prior_history_follows_context(self, rag_manager, chat_provider):
        history = [user("hi"), model("Hello there"), user("Tell me about chess")]
        result = await rag_manager.answer(history)

        seed = chat_provider.seeds[0]
        assert len(seed) == 5
        assert "hobbies.md" in seed[2].content
        assert seed[3:] == history[:2]
        assert not seed[3].is_synthetic
        assert chat_provider.sent == ["Tell me about chess"]

        assert result.new_history[:3] == history
        assert result.new_history[3] == model("Hello! How can I help?")

    @pytest.mark.asyncio
    async def test_synthetic_messages_never_returned(self, rag_manager):
        result = await rag_manager.answer([user("python skills")])

        contents = [m.content for m in result.new_history]
        assert SYSTEM_INSTRUCTION not in contents
        assert MODEL_ACKNOWLEDGMENT not in contents
        assert not any(c.startswith(CONTEXT_HEADER) for c in contents)

    @pytest.mark.asyncio
    async def test_user_text_identical_to_instruction_is_kept(self, rag_manager):
        history = [user(MODEL_ACKNOWLEDGMENT)]
        result = await rag_manager.answer(history)

        assert result.new_history[0] == history[0]
        assert len(result.new_history) == 2

    @pytest.mark.asyncio
    async def test_retrieval_failure_degrades(self, search, chat_provider, monkeypatch):
        async def broken(*args, **kwargs):
            raise RuntimeError("index unavailable")

        monkeypatch.setattr(SimilaritySearch, "find_relevant", broken)
        manager = RAGManager(search, chat_provider, timeout=1.0)

        result = await manager.answer([user("Hi")])

        assert result.reply == "Hello! How can I help?"
        assert len(chat_provider.seeds[0]) == 2

    @pytest.mark.asyncio
    async def test_requests_are_independent(self, rag_manager, chat_provider):
        await rag_manager.answer([user("chess")])
        await rag_manager.answer([user("python")])

        assert "hobbies.md" in chat_provider.seeds[0][2].content
        assert "skills.md" in chat_provider.seeds[1][2].content
        assert "hobbies.md" not in chat_provider.seeds[1][2].content


class TestProviderFailures:
    """Chat-provider failures surface as ProviderError."""

    @pytest.mark.asyncio
    async def test_provider_exception(self, search):
        manager = RAGManager(search, FakeChatProvider(error=ConnectionError("boom")), timeout=1.0)
        history = [user("Hi")]

        with pytest.raises(ProviderError):
            await manager.answer(history)
        assert history == [user("Hi")]

    @pytest.mark.asyncio
    async def test_empty_reply(self, search):
        manager = RAGManager(search, FakeChatProvider(reply="  "), timeout=1.0)

        with pytest.raises(ProviderError, match="empty"):
            await manager.answer([user("Hi")])

    @pytest.mark.asyncio
    async def test_timeout(self, search):
        manager = RAGManager(search, FakeChatProvider(delay=1.0), timeout=0.05)

        with pytest.raises(ProviderError, match="timed out"):
            await manager.answer([user("Hi")])

    @pytest.mark.asyncio
    async def test_empty_corpus_still_answers(self, chat_provider):
        from ragchat.src.database.corpus_store import CorpusStore

        embedder = KeywordEmbedder()
        manager = RAGManager(SimilaritySearch(CorpusStore(), embedder), chat_provider, timeout=1.0)

        result = await manager.answer([user("Hi")])

        assert result.reply
        assert embedder.query_calls == []
        assert len(chat_provider.seeds[0]) == 2


class TestCompose:
    def test_order(self):
        prior = [user("a"), model("b")]
        seed = RAGManager.compose(prior, "CTX")

        assert [m.content for m in seed] == [SYSTEM_INSTRUCTION, MODEL_ACKNOWLEDGMENT, "CTX", "a", "b"]
        assert [m.is_synthetic for m in seed] == [True, True, True, False, False]

    def test_empty_context_omitted(self):
        seed = RAGManager.compose([], "")
        assert len(seed) == 2
