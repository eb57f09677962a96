"""In-process storage for open conversations."""

from __future__ import annotations

import contextlib
import threading
from collections.abc import Iterator
from typing import Optional

from tournabot.errors import ConversationInProgressError

from .models import ConversationState


class ConversationStore:
    """Holds at most one open conversation per user.

    ``user_lock`` hands out one re-entrant lock per user so that two
    requests from the same user run one after the other. A user's lock is
    dropped once no request holds or waits for it.
    """

    def __init__(self) -> None:
        self._states: dict[int, ConversationState] = {}
        self._locks: dict[int, threading.RLock] = {}
        self._lock_users: dict[int, int] = {}
        self._guard = threading.Lock()

    @contextlib.contextmanager
    def user_lock(self, user_id: int) -> Iterator[None]:
        with self._guard:
            lock = self._locks.setdefault(user_id, threading.RLock())
            self._lock_users[user_id] = self._lock_users.get(user_id, 0) + 1
        try:
            with lock:
                yield
        finally:
            with self._guard:
                self._lock_users[user_id] -= 1
                if not self._lock_users[user_id]:
                    del self._lock_users[user_id]
                    del self._locks[user_id]

    def get(self, user_id: int) -> Optional[ConversationState]:
        with self._guard:
            return self._states.get(user_id)

    def create(self, state: ConversationState) -> ConversationState:
        """Store a new conversation.

        Raises:
            ConversationInProgressError: If the user already has one open.
        """
        with self._guard:
            if state.user_id in self._states:
                raise ConversationInProgressError()
            self._states[state.user_id] = state
        return state

    def delete(self, user_id: int) -> bool:
        with self._guard:
            return self._states.pop(user_id, None) is not None

    def __contains__(self, user_id: object) -> bool:
        with self._guard:
            return user_id in self._states

    def __len__(self) -> int:
        with self._guard:
            return len(self._states)
