"""
RagChat - Chat Data Model
==========================
Role-tagged conversation messages exchanged with callers and with the
chat-completion provider.

Synthetic messages (the persona instruction pair and the retrieved
context block) share the ``Message`` shape but carry a private marker.
The marker is invisible to callers: it cannot be set through the
public constructor or JSON input and never appears in serialised
output.  The conversation manager strips marked messages from the
provider transcript before returning it.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr

Role = Literal["user", "model"]


class Message(BaseModel):
    """One turn in a conversation."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    role: Role
    content: str

    _synthetic: bool = PrivateAttr(default=False)

    @classmethod
    def synthetic(cls, role: Role, content: str) -> Message:
        """Build an internal scaffolding message (instruction or context)."""
        message = cls(role=role, content=content)
        message._synthetic = True
        return message

    @property
    def is_synthetic(self) -> bool:
        return self._synthetic


ConversationHistory = list[Message]


class ChatResult(BaseModel):
    """Outcome of one answered turn."""

    reply: str
    new_history: ConversationHistory = Field(default_factory=list)
