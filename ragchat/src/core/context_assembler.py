"""
RagChat - Context Assembler
============================
Turns retrieved chunks into the instruction-style text block injected
ahead of the conversation.  The block is never shown to end users.
"""

from __future__ import annotations

from collections.abc import Sequence

from ragchat.config.prompt_templates import CONTEXT_DOCUMENT_TEMPLATE, CONTEXT_FOOTER, CONTEXT_HEADER
from ragchat.src.database.corpus_store import Chunk


class ContextAssembler:
    """Formats ranked chunks into a numbered, source-labelled context block."""

    __slots__ = ("_header", "_footer")

    def __init__(self, header: str = CONTEXT_HEADER, footer: str = CONTEXT_FOOTER) -> None:
        self._header = header
        self._footer = footer


    def assemble(self, chunks: Sequence[Chunk]) -> str:
        """
        Build the context block for *chunks* in ranked order.

        Returns ``""`` for no chunks; callers must then inject no
        context message at all.
        """
        if not chunks:
            return ""

        blocks = [CONTEXT_DOCUMENT_TEMPLATE.format(index=i, chunk_id=chunk.id, text=chunk.text) for i, chunk in enumerate(chunks, 1)]
        return "\n\n".join([self._header, *blocks, self._footer])
