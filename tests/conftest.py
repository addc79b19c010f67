"""
Shared test fixtures: fixture corpora and engine instances.

Fake providers live in ``fakes.py``; nothing here touches the network.
"""

import os

# Settings are instantiated at import time and require an API key.
os.environ.setdefault("GOOGLE_API_KEY", "test-key")

import pytest

from fakes import FakeChatProvider, KeywordEmbedder, make_chunk
from ragchat.src.core.rag_engine import RAGManager
from ragchat.src.core.retriever import SimilaritySearch
from ragchat.src.database.corpus_store import CorpusStore


@pytest.fixture
def embedder():
    return KeywordEmbedder()


@pytest.fixture
def profile_store(embedder):
    """Corpus with one chunk per topic, in a known insertion order."""
    return CorpusStore([
        make_chunk("bio.md", "Hi, I am the owner of this site.", embedder),
        make_chunk("skills.md", "My skills include Python and Go.", embedder),
        make_chunk("hobbies.md", "I enjoy hiking and chess.", embedder),
    ])


@pytest.fixture
def search(profile_store, embedder):
    return SimilaritySearch(profile_store, embedder, threshold=0.5, top_n=3, timeout=1.0)


@pytest.fixture
def chat_provider():
    return FakeChatProvider()


@pytest.fixture
def rag_manager(search, chat_provider):
    return RAGManager(search, chat_provider, timeout=1.0)
