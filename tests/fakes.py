"""Fake embedding and chat providers for tests (no network)."""

import asyncio
import re

import numpy as np

from ragchat.src.database.corpus_store import Chunk
from ragchat.src.models.chat import Message
from ragchat.src.providers.gemini import ChatTurn

VOCABULARY = ("hi", "skills", "python", "hiking", "chess")


class KeywordEmbedder:
    """One dimension per vocabulary word: 1.0 when the word occurs in the text."""

    def __init__(self, vocabulary=VOCABULARY, fail_on=None):
        self.vocabulary = vocabulary
        self.fail_on = fail_on
        self.document_calls = []
        self.query_calls = []

    def vector(self, text):
        words = set(re.findall(r"[a-z]+", text.lower()))
        return [1.0 if term in words else 0.0 for term in self.vocabulary]

    def embed_documents(self, texts):
        self.document_calls.append(list(texts))
        if self.fail_on and any(self.fail_on in t for t in texts):
            raise RuntimeError("embedding service unavailable")
        return [self.vector(t) for t in texts]

    def embed_query(self, text):
        self.query_calls.append(text)
        return self.vector(text)


class FailingEmbedder(KeywordEmbedder):
    def embed_documents(self, texts):
        raise RuntimeError("quota exceeded")

    def embed_query(self, text):
        self.query_calls.append(text)
        raise RuntimeError("quota exceeded")


class FakeChatSession:
    def __init__(self, provider, seed):
        self._provider = provider
        self._seed = seed

    async def send(self, text):
        self._provider.sent.append(text)
        if self._provider.delay:
            await asyncio.sleep(self._provider.delay)
        if self._provider.error is not None:
            raise self._provider.error
        reply = self._provider.reply
        transcript = [*self._seed, Message(role="user", content=text), Message(role="model", content=reply)]
        return ChatTurn(text=reply, transcript=transcript)


class FakeChatProvider:
    """Records seeds and live turns; returns the seed objects in the transcript."""

    def __init__(self, reply="Hello! How can I help?", error=None, delay=0.0):
        self.reply = reply
        self.error = error
        self.delay = delay
        self.seeds = []
        self.sent = []

    def create_session(self, seed):
        self.seeds.append(list(seed))
        return FakeChatSession(self, list(seed))


def make_chunk(chunk_id, text, embedder=None):
    embedder = embedder or KeywordEmbedder()
    return Chunk(id=chunk_id, text=text, embedding=np.asarray(embedder.vector(text), dtype=np.float64))

