"""Shared fixtures and deterministic collaborator doubles."""

import re
import threading

import numpy as np
import pytest

from mentorbot.config import MemoryConfig
from mentorbot.core.engine import ChatEngine
from mentorbot.errors import CollaboratorUnavailable
from mentorbot.llm.provider_config import validate_temperature
from mentorbot.memory.long_term import LongTermMemoryStore
from mentorbot.memory.vector_index import FaissVectorIndex
from mentorbot.retrieval.context_builder import ContextAssembler


class VocabularyEmbedder:
    """Bag-of-words embedder: every distinct lowercase word gets its own axis."""

    def __init__(self, dimension: int = 256):
        self.dimension = dimension
        self.vocabulary: dict[str, int] = {}
        self.calls: list[tuple[str, bool]] = []
        self._lock = threading.Lock()

    def embed(self, text: str, is_query: bool = False):
        words = re.findall(r"\w+", str(text).lower())
        if not words:
            raise CollaboratorUnavailable("cannot embed empty text")

        vec = np.zeros(self.dimension, dtype="float32")
        with self._lock:
            self.calls.append((text, is_query))
            for word in words:
                slot = self.vocabulary.setdefault(word, len(self.vocabulary) % self.dimension)
                vec[slot] += 1.0

        return vec / np.linalg.norm(vec)


class FailingEmbedder:
    def embed(self, text, is_query=False):
        raise CollaboratorUnavailable("embedding service down")


class FakeLanguageModel:
    """Records every completion request and answers with a fixed reply."""

    def __init__(self, reply: str = "Happy to help!", error: Exception | None = None):
        self.reply = reply
        self.error = error
        self.temperature = 0.3
        self.calls: list[dict] = []

    def complete(self, system_prompt, turns, facts, user_message):
        self.calls.append({
            "system_prompt": system_prompt,
            "turns": list(turns),
            "facts": list(facts),
            "user_message": user_message,
        })
        if self.error is not None:
            raise self.error
        return self.reply

    def set_temperature(self, value):
        self.temperature = validate_temperature(value)
        return self.temperature


@pytest.fixture
def config() -> MemoryConfig:
    return MemoryConfig(
        max_messages=3,
        chunk_size=200,
        chunk_overlap=50,
        compaction_threshold=8,
        recall_k=4,
        recall_min_score=0.0,
    )


@pytest.fixture
def embedder() -> VocabularyEmbedder:
    return VocabularyEmbedder()


@pytest.fixture
def index() -> FaissVectorIndex:
    return FaissVectorIndex()


@pytest.fixture
def llm() -> FakeLanguageModel:
    return FakeLanguageModel(reply="Summary: the user is Alex.")


@pytest.fixture
def long_term(embedder, index, llm, config) -> LongTermMemoryStore:
    return LongTermMemoryStore(embedder=embedder, index=index, llm=llm, config=config)


@pytest.fixture
def assembler(long_term, config) -> ContextAssembler:
    return ContextAssembler(long_term, config=config)


@pytest.fixture
def engine(assembler, llm) -> ChatEngine:
    return ChatEngine(assembler, llm)
