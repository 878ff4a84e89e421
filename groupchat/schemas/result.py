"""Conversation result schema."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, Field

from groupchat.schemas.chat import ChatError, ChatMetrics, ChatStatus, Message
from groupchat.schemas.nested import NestedChatResult


class ChatResult(BaseModel):
    """Terminal snapshot of a conversation.

    Callers branch on ``status``; ``error`` is only set when the loop failed.
    """

    chat_id: str
    status: ChatStatus
    messages: list[Message] = Field(default_factory=list)
    summary: str
    termination_reason: Optional[str] = None
    total_rounds: int = 0
    total_messages: int = 0
    participants: list[str] = Field(default_factory=list)
    duration_ms: float = 0.0
    metrics: ChatMetrics = Field(default_factory=ChatMetrics)
    nested_results: list[NestedChatResult] = Field(default_factory=list)
    started_at: datetime
    ended_at: datetime
    error: Optional[ChatError] = None

    @property
    def succeeded(self) -> bool:
        """True unless the loop ended in the error status."""
        return self.status != ChatStatus.ERROR

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return self.model_dump(mode="json")
