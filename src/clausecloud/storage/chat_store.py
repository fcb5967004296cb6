"""
In-memory chat history store.
"""

import asyncio
from collections import Counter
from contextlib import asynccontextmanager
from functools import lru_cache
from typing import Any, AsyncIterator

import structlog

from clausecloud.models.chat import ChatTurn
from clausecloud.models.contract import utcnow

logger = structlog.get_logger(__name__)

# Keys for conversations that are not about a single contract
GENERAL_CHAT_KEY = "general"
PORTFOLIO_CHAT_KEY = "portfolio"


class ChatStore:
    """
    Append-only conversation logs keyed by contract identifier.

    Keys are not checked against the contract store. Callers that read the
    history, await the model and then append hold ``lock(key)`` for the whole
    sequence so that one conversation is only written by one request at a time.
    """

    def __init__(self):
        self._conversations: dict[str, list[ChatTurn]] = {}
        self._locks: dict[str, asyncio.Lock] = {}
        self._lock_users: Counter[str] = Counter()

    def add_message(self, key: str, turn: ChatTurn | dict[str, Any]) -> ChatTurn:
        """Append a turn, stamping it with the current time if it has none."""
        if not isinstance(turn, ChatTurn):
            turn = ChatTurn.model_validate(turn)
        if turn.timestamp is None:
            turn = turn.model_copy(update={"timestamp": utcnow()})

        self._conversations.setdefault(key, []).append(turn)
        return turn

    def get_history(self, key: str) -> list[ChatTurn]:
        """Turns in append order; empty for unknown keys."""
        return list(self._conversations.get(key, []))

    def clear_history(self, key: str) -> None:
        self._conversations.pop(key, None)

    def clear_all(self) -> None:
        self._conversations.clear()

    @asynccontextmanager
    async def lock(self, key: str) -> AsyncIterator[None]:
        """
        Hold the per-key lock serializing read-call-append sequences.

        A key's lock exists only while some request holds or awaits it.
        """
        lock = self._locks.setdefault(key, asyncio.Lock())
        self._lock_users[key] += 1
        try:
            async with lock:
                yield
        finally:
            self._lock_users[key] -= 1
            if self._lock_users[key] <= 0:
                del self._lock_users[key]
                del self._locks[key]

    def keys(self) -> list[str]:
        return list(self._conversations)


@lru_cache()
def get_chat_store() -> ChatStore:
    """Get the process-wide chat store."""
    return ChatStore()
