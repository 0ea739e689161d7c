"""Record types for short-term and long-term memory.

Ownership:
    - `Turn` belongs to exactly one user's `TurnStore`.
    - `Fact` belongs to the `LongTermMemoryStore`; facts are never mutated after
      creation (compaction adds `summary` facts instead of editing).
    - `ContextBundle` is built per request and discarded after the LLM call.
"""

import hashlib
import time
import uuid
from dataclasses import dataclass, field


ROLE_USER = "user"
ROLE_ASSISTANT = "assistant"
ROLE_SYSTEM = "system"
ROLES = (ROLE_USER, ROLE_ASSISTANT, ROLE_SYSTEM)

CATEGORY_NAME = "name"
CATEGORY_LOCATION = "location"
CATEGORY_PREFERENCE = "preference"
CATEGORY_OTHER = "other"
CATEGORY_SUMMARY = "summary"

# Classifier priority order; `summary` is produced only by compaction.
FACT_CATEGORIES = (
    CATEGORY_NAME,
    CATEGORY_LOCATION,
    CATEGORY_PREFERENCE,
    CATEGORY_OTHER,
)


def source_hash(text: str) -> str:
    """Stable identifier of an original source text (shared by all of its chunks)."""
    return hashlib.sha256(str(text).strip().encode("utf-8")).hexdigest()


@dataclass(frozen=True)
class Turn:
    """One message in a conversation, tagged with its speaker role."""

    role: str
    content: str
    seq: int

    def as_message(self) -> dict:
        return {"role": self.role, "content": self.content}


@dataclass(frozen=True)
class Fact:
    """A durable piece of user information (or a compaction summary).

    Attributes:
        user_id: Owner of the fact. Recall never crosses this boundary.
        category: One of `FACT_CATEGORIES` or `summary`.
        raw_text: The chunk text that was embedded.
        chunk_index: Position of this chunk within its source text.
        total_chunks: Number of chunks produced from the source text.
        role: Role of the message the fact came from.
        source_hash: Hash of the full source text; groups chunks for dedup.
        created_at: Unix timestamp.
        fact_id: Unique id, also used as the similarity-index id.
    """

    user_id: str
    category: str
    raw_text: str
    chunk_index: int = 0
    total_chunks: int = 1
    role: str = ROLE_USER
    source_hash: str = ""
    created_at: float = field(default_factory=time.time)
    fact_id: str = field(default_factory=lambda: str(uuid.uuid4()))

    def to_metadata(self) -> dict:
        """Flatten into the metadata dict stored next to the vector."""
        return {
            "fact_id": self.fact_id,
            "user_id": self.user_id,
            "category": self.category,
            "text": self.raw_text,
            "chunk_index": self.chunk_index,
            "total_chunks": self.total_chunks,
            "role": self.role,
            "source_hash": self.source_hash,
            "created_at": self.created_at,
        }

    @classmethod
    def from_metadata(cls, meta: dict) -> "Fact":
        return cls(
            user_id=str(meta["user_id"]),
            category=meta.get("category", CATEGORY_OTHER),
            raw_text=meta.get("text", ""),
            chunk_index=int(meta.get("chunk_index", 0)),
            total_chunks=int(meta.get("total_chunks", 1)),
            role=meta.get("role", ROLE_USER),
            source_hash=meta.get("source_hash", ""),
            created_at=float(meta.get("created_at", 0.0)),
            fact_id=meta["fact_id"],
        )


@dataclass(frozen=True)
class ContextBundle:
    """Everything the language model sees besides the incoming message."""

    system_prompt: str
    recent_turns: tuple = ()
    recalled_facts: tuple = ()
