"""Collaborator contracts consumed by the memory core.

Architectural role:
    Defines the narrow interfaces through which memory and orchestration layers
    reach external services. Concrete adapters live in
    `mentorbot.memory.embedding_model`, `mentorbot.memory.vector_index`, and
    `mentorbot.llm.client`; tests substitute deterministic doubles.

Determinism:
    The data class is purely structural. Determinism of results depends on the
    collaborator implementations.
"""

from dataclasses import dataclass, field
from typing import Any, Protocol, Sequence


@dataclass(frozen=True)
class SearchHit:
    """One ranked similarity-search result."""

    id: str
    score: float
    metadata: dict = field(default_factory=dict)


class Embedder(Protocol):
    """Turns text into a fixed-size, L2-normalized float vector."""

    def embed(self, text: str, is_query: bool = False) -> Any:
        """Embed one text. Identical text must yield comparable vectors."""
        ...


class VectorIndex(Protocol):
    """Similarity search over vectors with exact-match metadata filtering."""

    def index(self, id: str, vector: Any, metadata: dict) -> None:
        ...

    def query(self, vector: Any, k: int, filter: dict | None = None) -> list[SearchHit]:
        """Return up to `k` hits, best first, restricted to metadata matching `filter`."""
        ...

    def delete(self, ids) -> int:
        """Remove rows by id; later queries must not return them."""
        ...


class LanguageModel(Protocol):
    """Chat-completion backend used for replies and for compaction summaries."""

    def complete(
        self,
        system_prompt: str,
        turns: Sequence[Any],
        facts: Sequence[Any],
        user_message: str,
    ) -> str:
        ...
