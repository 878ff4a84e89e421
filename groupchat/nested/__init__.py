"""Nested chats - bounded child conversations folded back as one summary."""

from groupchat.nested.manager import NestedChatManager


__all__ = [
    "NestedChatManager",
]
