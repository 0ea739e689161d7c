"""Memory configuration for the conversational memory core.

Architectural role:
    Provides one explicit configuration struct that is passed into each memory
    component at construction time. Components never read the environment
    themselves, so per-request behavior cannot change through hidden global state.

Environment variables (read once at import, after `load_dotenv()`):
    - `MAX_MESSAGES`: short-term window size.
    - `CHUNK_SIZE` / `CHUNK_OVERLAP`: long-term chunking parameters (characters).
    - `COMPACTION_THRESHOLD`: fact count that triggers summarization.
    - `RECALL_K`: number of facts recalled per request.
    - `RECALL_MIN_SCORE`: minimum similarity for recalled facts.

Failure behavior:
    Invalid values raise `ValidationError` when the struct is built.
"""

import os
from dataclasses import dataclass, replace

from dotenv import load_dotenv

from mentorbot.errors import ValidationError

load_dotenv()


@dataclass(frozen=True)
class MemoryConfig:
    """Tunables honored by TurnStore, Chunker, LongTermMemoryStore and ContextAssembler."""

    max_messages: int = int(os.getenv("MAX_MESSAGES", "3"))
    chunk_size: int = int(os.getenv("CHUNK_SIZE", "200"))
    chunk_overlap: int = int(os.getenv("CHUNK_OVERLAP", "50"))
    compaction_threshold: int = int(os.getenv("COMPACTION_THRESHOLD", "8"))
    recall_k: int = int(os.getenv("RECALL_K", "4"))
    recall_min_score: float = float(os.getenv("RECALL_MIN_SCORE", "0.0"))

    def __post_init__(self):
        if self.max_messages < 1:
            raise ValidationError(f"max_messages must be >= 1, got {self.max_messages}")
        if self.chunk_size < 1:
            raise ValidationError(f"chunk_size must be >= 1, got {self.chunk_size}")
        if self.chunk_overlap < 0 or self.chunk_overlap >= self.chunk_size:
            raise ValidationError(
                f"chunk_overlap must be in [0, chunk_size), got {self.chunk_overlap}"
            )
        if self.compaction_threshold < 1:
            raise ValidationError(
                f"compaction_threshold must be >= 1, got {self.compaction_threshold}"
            )
        if self.recall_k < 1:
            raise ValidationError(f"recall_k must be >= 1, got {self.recall_k}")

    def with_overrides(self, **changes) -> "MemoryConfig":
        """Return a validated copy with selected fields replaced."""
        return replace(self, **changes)
