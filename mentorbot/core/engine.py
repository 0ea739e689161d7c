"""Core request orchestration: commands, context, generation, recording.

Architectural role:
    Provides the execution pipeline used by API/CLI layers to turn one user
    message into a reply while keeping short-term and long-term memory current.

Control-flow model:
    1. Command-first guard: `/...` messages are handled by `core.commands`.
    2. Build the per-user `ContextBundle` (recalled facts + recent turns).
    3. Call the language model in a worker thread.
    4. Record the finished turn; long-term remember runs in the background.

Error handling strategy:
    Language-model failures degrade to a fixed user-facing reply and are logged.
    Nothing is recorded for a failed turn, so the short-term window never holds a
    user message without its reply.

Concurrency model:
    One `asyncio.Lock` per user spans steps 2 to 4, so a user's messages are
    answered and recorded in the order they arrived. Different users never
    share a lock.

Wiring:
    `build_engine()` constructs the production collaborators (sentence-transformers
    embedder, FAISS index, HTTP chat client) from environment-backed config and
    injects them. Nothing here is a process-wide singleton.
"""

import asyncio
import logging

from mentorbot.config import MemoryConfig
from mentorbot.core.commands import handle_command, parse_command
from mentorbot.errors import CollaboratorUnavailable
from mentorbot.retrieval.context_builder import ContextAssembler


logger = logging.getLogger(__name__)

FALLBACK_REPLY = "Sorry, I ran into a problem while preparing an answer. Please try again in a moment."


class ChatEngine:
    """Routes one message through memory and the language model."""

    def __init__(self, assembler: ContextAssembler, llm):
        self.assembler = assembler
        self.llm = llm
        self._request_locks: dict[str, asyncio.Lock] = {}

    def request_lock(self, user_id) -> asyncio.Lock:
        """Lock held for a user's whole request (context, model call, record)."""
        user_id = str(user_id)
        if user_id not in self._request_locks:
            self._request_locks[user_id] = asyncio.Lock()
        return self._request_locks[user_id]

    async def process_message(self, user_id, text: str) -> str:
        """Return the reply for `text` from `user_id`.

        Edge cases:
            - Blank input returns `""` without touching memory.
            - Commands never reach the model and are not recorded.
        """
        if not text or not text.strip():
            return ""

        user_id = str(user_id)
        text = text.strip()

        command = parse_command(text)
        if command is not None:
            name, args = command
            return handle_command(self, user_id, name, args)

        async with self.request_lock(user_id):
            bundle = await self.assembler.build_context(user_id, text)

            try:
                reply = await asyncio.to_thread(
                    self.llm.complete,
                    bundle.system_prompt,
                    bundle.recent_turns,
                    bundle.recalled_facts,
                    text,
                )
            except CollaboratorUnavailable:
                logger.exception("Language model unavailable for user %s", user_id)
                return FALLBACK_REPLY

            await self.assembler.record(user_id, text, reply)

        return reply

    async def aclose(self) -> None:
        """Let background memory work finish (best-effort durability on shutdown)."""
        await self.assembler.drain()


def build_engine(config: MemoryConfig | None = None, llm_config=None) -> ChatEngine:
    """Wire production collaborators into a `ChatEngine`."""
    from mentorbot.llm.client import ChatCompletionClient
    from mentorbot.memory.embedding_model import SentenceTransformerEmbedder
    from mentorbot.memory.long_term import LongTermMemoryStore
    from mentorbot.memory.vector_index import FaissVectorIndex

    config = config or MemoryConfig()
    llm = ChatCompletionClient(llm_config)

    long_term = LongTermMemoryStore(
        embedder=SentenceTransformerEmbedder(),
        index=FaissVectorIndex(),
        llm=llm,
        config=config,
    )

    return ChatEngine(ContextAssembler(long_term, config=config), llm)
