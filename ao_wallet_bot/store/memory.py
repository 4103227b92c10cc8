"""Per-user sliding-window conversation memory."""

from __future__ import annotations

import time
from collections import deque
from dataclasses import dataclass, field
from typing import Callable, Deque, Dict, List, Optional

DEFAULT_MAX_TURNS = 20
DEFAULT_CONTEXT_TURNS = 10


@dataclass(frozen=True)
class ConversationTurn:
    role: str  # "user" or "assistant"
    content: str
    timestamp: float = field(default_factory=time.time)


@dataclass
class _Window:
    turns: Deque[ConversationTurn]
    last_active: float


class ConversationMemory:
    """In-process keyed store of the most recent turns per user.

    Concurrent messages from one user are not fenced; the last writer wins.
    """

    def __init__(
        self,
        max_turns: int = DEFAULT_MAX_TURNS,
        ttl_seconds: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if max_turns <= 0:
            raise ValueError("max_turns must be positive")
        self.max_turns = max_turns
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._windows: Dict[int, _Window] = {}

    def _expired(self, window: _Window, now: float) -> bool:
        return self.ttl_seconds is not None and now - window.last_active > self.ttl_seconds

    def get(self, user_id: int) -> List[ConversationTurn]:
        """Return the user's window, oldest first."""
        window = self._windows.get(user_id)
        if window is None:
            return []
        if self._expired(window, self._clock()):
            del self._windows[user_id]
            return []
        return list(window.turns)

    def append(self, user_id: int, turn: ConversationTurn) -> None:
        now = self._clock()
        window = self._windows.get(user_id)
        if window is None or self._expired(window, now):
            window = _Window(turns=deque(maxlen=self.max_turns), last_active=now)
            self._windows[user_id] = window
        window.turns.append(turn)
        window.last_active = now

    def clear(self, user_id: int) -> None:
        self._windows.pop(user_id, None)

    def context(self, user_id: int, limit: int = DEFAULT_CONTEXT_TURNS) -> List[ConversationTurn]:
        """Return at most ``limit`` of the most recent turns."""
        turns = self.get(user_id)
        return turns[-limit:] if limit > 0 else []

    def purge_expired(self) -> int:
        """Drop idle windows and return how many were removed."""
        if self.ttl_seconds is None:
            return 0
        now = self._clock()
        stale = [uid for uid, window in self._windows.items() if self._expired(window, now)]
        for user_id in stale:
            del self._windows[user_id]
        return len(stale)

    def __len__(self) -> int:
        return len(self._windows)


__all__ = ["ConversationMemory", "ConversationTurn"]
