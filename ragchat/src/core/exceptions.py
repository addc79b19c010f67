"""
RagChat - Error Taxonomy
=========================
Only two failure kinds ever leave the core:

``InvalidInputError``
    The caller's conversation history is malformed.  Never retried,
    surfaced as a client error (HTTP 400).

``ProviderError``
    The chat-completion provider failed, timed out, or returned nothing
    usable.  Surfaced as a request-level failure (HTTP 500).

Ingestion skips and retrieval degradation are absorbed where they
happen (see ``IngestionReport`` and ``SimilaritySearch``).
"""


class RagChatError(Exception):
    """Base class for errors raised by the RagChat core."""


class InvalidInputError(RagChatError):
    """Conversation history violates the request preconditions."""


class ProviderError(RagChatError):
    """Chat completion could not produce a usable reply."""
