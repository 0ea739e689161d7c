"""Per-request context assembly over short-term and long-term memory.

Architectural role:
    Converts `(user_id, message)` into a `ContextBundle` for the language-model
    caller, and applies the side effects of a finished turn via `record`. It is
    the only writer of a user's `TurnStore` and long-term facts.

Request lifecycle:
    1. `build_context(user_id, message)`:
       - wait for the user's pending background `remember` (ordering),
       - `LongTermMemoryStore.recall(user_id, message, k=recall_k)` in a worker
         thread,
       - snapshot `TurnStore.list()`,
       - return `ContextBundle(system_prompt, recent_turns, recalled_facts)`.
    2. `record(user_id, user_message, assistant_reply)`:
       - append the user and assistant turns,
       - schedule `remember(user_id, user_message, "user")` in the background and
         return without waiting for it.

Concurrency model:
    - One `asyncio.Lock` per user serializes that user's context builds and
      records, so turn appends and recalls are observed in message order.
    - Different users never share a lock and run in parallel.
    - Blocking embedding/index calls run through `asyncio.to_thread`.
    - Background `remember` tasks are owned by the assembler, not by the caller:
      if the caller is cancelled, the task still completes. Tasks for the same
      user are chained so facts are stored in message order.

Determinism:
    Deterministic for fixed memory state and collaborator outputs.
"""

import asyncio
import logging

from mentorbot.config import MemoryConfig
from mentorbot.memory.models import ROLE_ASSISTANT, ROLE_SYSTEM, ROLE_USER, ContextBundle
from mentorbot.memory.turn_store import TurnStore
from mentorbot.prompting.prompt_builder import SYSTEM_PROMPT


logger = logging.getLogger(__name__)


class ContextAssembler:
    """Builds context bundles and records finished turns for many users."""

    def __init__(self, long_term, config: MemoryConfig | None = None, system_prompt: str = SYSTEM_PROMPT):
        self.long_term = long_term
        self.config = config or MemoryConfig()
        self.system_prompt = system_prompt
        self._stores: dict[str, TurnStore] = {}
        self._locks: dict[str, asyncio.Lock] = {}
        self._pending: dict[str, asyncio.Task] = {}
        self._tasks: set[asyncio.Task] = set()

    # =========================================================
    # PER-USER STATE
    # =========================================================

    def turn_store(self, user_id) -> TurnStore:
        """Get or lazily create the short-term store for a user."""
        user_id = str(user_id)
        store = self._stores.get(user_id)
        if store is None:
            store = TurnStore(max_messages=self.config.max_messages)
            self._stores[user_id] = store
        return store

    def get_lock(self, user_id) -> asyncio.Lock:
        user_id = str(user_id)
        if user_id not in self._locks:
            self._locks[user_id] = asyncio.Lock()
        return self._locks[user_id]

    def set_limit(self, user_id, n: int) -> None:
        self.turn_store(user_id).set_limit(n)

    def clear(self, user_id) -> None:
        self.turn_store(user_id).clear()

    def set_system_instruction(self, user_id, text: str) -> None:
        """Pin a per-user instruction in the system slot (replaces any previous one)."""
        self.turn_store(user_id).append(ROLE_SYSTEM, text)

    # =========================================================
    # REQUEST PATH
    # =========================================================

    async def build_context(self, user_id, message: str) -> ContextBundle:
        """Assemble recalled facts and recent turns for one incoming message."""
        user_id = str(user_id)

        async with self.get_lock(user_id):
            await self._wait_pending(user_id)

            recalled = await asyncio.to_thread(
                self.long_term.recall, user_id, message, self.config.recall_k
            )
            recent = self.turn_store(user_id).list()

        return ContextBundle(
            system_prompt=self.system_prompt,
            recent_turns=recent,
            recalled_facts=tuple(recalled),
        )

    async def record(self, user_id, user_message: str, assistant_reply: str) -> asyncio.Task:
        """Apply the side effects of a completed turn.

        Returns:
            The background `remember` task (callers normally ignore it).
        """
        user_id = str(user_id)

        async with self.get_lock(user_id):
            store = self.turn_store(user_id)
            store.append(ROLE_USER, user_message)
            store.append(ROLE_ASSISTANT, assistant_reply)

            previous = self._pending.get(user_id)
            task = asyncio.create_task(self._remember(user_id, user_message, previous))
            self._pending[user_id] = task
            self._tasks.add(task)
            task.add_done_callback(self._forget_task)

        return task

    async def drain(self) -> None:
        """Wait until every scheduled background `remember` has finished."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    # =========================================================
    # BACKGROUND WORK
    # =========================================================

    async def _remember(self, user_id, text, previous):
        if previous is not None:
            await asyncio.gather(previous, return_exceptions=True)

        try:
            stored = await asyncio.to_thread(self.long_term.remember, user_id, text, ROLE_USER)
        except Exception:
            logger.exception("Background remember failed for user %s", user_id)
            return []

        if stored:
            logger.debug("Stored %d fact chunk(s) for user %s", len(stored), user_id)
        return stored

    async def _wait_pending(self, user_id):
        task = self._pending.get(user_id)
        if task is None or task.done():
            return
        # shield: a cancelled request must not cancel the user's remember task
        await asyncio.shield(asyncio.gather(task, return_exceptions=True))

    def _forget_task(self, task):
        self._tasks.discard(task)
        for user_id, pending in list(self._pending.items()):
            if pending is task:
                del self._pending[user_id]
