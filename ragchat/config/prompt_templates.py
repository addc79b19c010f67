"""
RagChat - Prompt Templates
===========================
Centralised prompt text for the conversation manager and the context
assembler.  All prompts live here so they can be versioned and reviewed
independently of application logic.

Exports
-------
SYSTEM_INSTRUCTION, MODEL_ACKNOWLEDGMENT,
CONTEXT_HEADER, CONTEXT_DOCUMENT_TEMPLATE, CONTEXT_FOOTER.
"""

# ══════════════════════════════════════════════════════════════════════
#  SYSTEM INSTRUCTION PAIR
# ══════════════════════════════════════════════════════════════════════
# Gemini chat sessions have no dedicated system turn here, so the
# persona is seeded as a user message followed by a model acknowledgment.

SYSTEM_INSTRUCTION: str = (
    "You are a friendly chat bot. Have a casual conversation with the user. "
    "Answer questions based on the provided context if available. "
    "If the context does not contain the answer, state that you don't know."
)

MODEL_ACKNOWLEDGMENT: str = (
    "OK, I understand. I acknowledge I will act in a friendly manner and respond "
    "to user replies, using provided context when relevant."
)


# ══════════════════════════════════════════════════════════════════════
#  RETRIEVED CONTEXT BLOCK
# ══════════════════════════════════════════════════════════════════════

CONTEXT_HEADER: str = "Here is some relevant information from the knowledge base:"

CONTEXT_DOCUMENT_TEMPLATE: str = "--- Document {index} ({chunk_id}) ---\n{text}"

CONTEXT_FOOTER: str = "Please use the above information to answer the user's question if relevant."
