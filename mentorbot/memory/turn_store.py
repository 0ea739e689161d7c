"""Short-term per-user turn buffer.

Purpose of this abstraction:
    Hold the last few raw turns of one user's conversation so they can be
    replayed verbatim to the language model. The buffer is bounded: only
    `max_messages` non-system turns are kept and older ones are evicted first.

System slot:
    At most one system turn exists. It is pinned: `list()` always returns it
    first, regardless of when it was inserted, and it survives `clear()` and
    eviction.

Short-term vs long-term memory:
    Evicted turns are simply dropped. Anything worth keeping beyond the window is
    forwarded separately to `mentorbot.memory.long_term` by the context assembler.

Side effects:
    None beyond in-process state. No I/O is performed here.
"""

import itertools
import threading

from mentorbot.errors import ValidationError
from mentorbot.memory.models import ROLE_SYSTEM, ROLES, Turn


DEFAULT_MAX_MESSAGES = 3


class TurnStore:
    """Bounded, insertion-ordered sequence of turns for one user."""

    def __init__(self, max_messages: int = DEFAULT_MAX_MESSAGES):
        _validate_limit(max_messages)
        self._max_messages = max_messages
        self._system: Turn | None = None
        self._turns: list[Turn] = []
        self._seq = itertools.count(1)
        self._lock = threading.Lock()

    @property
    def limit(self) -> int:
        return self._max_messages

    def __len__(self):
        with self._lock:
            return len(self._turns)

    def append(self, role: str, content: str) -> Turn:
        """Insert a turn and evict the oldest non-system turns over the limit.

        Args:
            role: `user`, `assistant` or `system`.
            content: Message text.

        Returns:
            The created `Turn`.

        Raises:
            ValidationError: For a role outside the closed role set.
        """
        if role not in ROLES:
            raise ValidationError(f"unknown role {role!r}")

        with self._lock:
            turn = Turn(role=role, content=str(content), seq=next(self._seq))

            if role == ROLE_SYSTEM:
                self._system = turn
                return turn

            self._turns.append(turn)
            self._evict()
            return turn

    def list(self) -> tuple:
        """Return a read-only snapshot: system turn first, then the window."""
        with self._lock:
            if self._system is not None:
                return (self._system, *self._turns)
            return tuple(self._turns)

    def set_limit(self, n: int) -> None:
        """Change the window size and shrink immediately if needed."""
        _validate_limit(n)
        with self._lock:
            self._max_messages = n
            self._evict()

    def clear(self) -> None:
        """Drop all non-system turns; the system turn is retained."""
        with self._lock:
            self._turns = []

    def remove(self, content: str) -> int:
        """Drop non-system turns whose content equals `content`.

        Returns:
            Number of removed turns.
        """
        with self._lock:
            before = len(self._turns)
            self._turns = [t for t in self._turns if t.content != content]
            return before - len(self._turns)

    def system_turn(self) -> Turn | None:
        with self._lock:
            return self._system

    def summarize(self, width: int = 50) -> str:
        """One line per turn with truncated content, for operator display."""
        return "\n".join(
            f"{turn.role}: {turn.content[:width]}..." for turn in self.list()
        )

    def _evict(self):
        # caller holds the lock
        overflow = len(self._turns) - self._max_messages
        if overflow > 0:
            del self._turns[:overflow]


def _validate_limit(n):
    if not isinstance(n, int) or isinstance(n, bool) or n < 1:
        raise ValidationError(f"max_messages must be an integer >= 1, got {n!r}")
