"""In-process similarity-search collaborator on top of FAISS.

Architectural role:
    Implements the `VectorIndex` contract used by `LongTermMemoryStore`:
    `index(id, vector, metadata)` and `query(vector, k, filter)`.

Index lifecycle:
    - The FAISS `IndexFlatIP` is created lazily on the first `index` call, using
      the dimension of that first vector.
    - Row `i` of the FAISS index corresponds to `self._ids[i]` /
      `self._metadata[i]`; rows are append-only.
    - Deleted rows stay in FAISS but are tombstoned: queries and counts skip
      them.
    - Persisting the index is not handled here.

Ranking and filtering:
    - Vectors are L2-normalized on insert and query, so inner product equals
      cosine similarity.
    - Flat indexes scan every row anyway, so a filtered query searches all rows
      and keeps the first `k` whose metadata matches the filter exactly.

Thread safety:
    A lock serializes adds and searches; FAISS indexes are not safe for
    concurrent mutation.
"""

import logging
import threading

import faiss
import numpy as np

from mentorbot.core.protocols import SearchHit
from mentorbot.errors import ValidationError


logger = logging.getLogger(__name__)


def _as_row(vector, dimension=None):
    vec = np.asarray(vector, dtype="float32").reshape(1, -1)
    if dimension is not None and vec.shape[1] != dimension:
        raise ValidationError(
            f"vector dimension {vec.shape[1]} does not match index dimension {dimension}"
        )
    vec = np.ascontiguousarray(vec)
    faiss.normalize_L2(vec)
    return vec


def _matches(metadata, filter):
    if not filter:
        return True
    return all(metadata.get(key) == value for key, value in filter.items())


class FaissVectorIndex:
    """Exact inner-product index with parallel id/metadata rows."""

    def __init__(self, dimension: int | None = None):
        self.dimension = dimension
        self._index = faiss.IndexFlatIP(dimension) if dimension else None
        self._ids: list[str] = []
        self._metadata: list[dict] = []
        self._deleted: set[int] = set()
        self._lock = threading.Lock()

    def __len__(self):
        return len(self._ids) - len(self._deleted)

    def index(self, id: str, vector, metadata: dict) -> None:
        """Append one vector with its metadata."""
        with self._lock:
            row = _as_row(vector, self.dimension)

            if self._index is None:
                self.dimension = row.shape[1]
                self._index = faiss.IndexFlatIP(self.dimension)

            self._index.add(row)
            self._ids.append(str(id))
            self._metadata.append(dict(metadata))

    def query(self, vector, k: int, filter: dict | None = None) -> list[SearchHit]:
        """Return up to `k` best hits whose metadata matches `filter`.

        Edge cases:
            - Empty index or `k < 1` returns `[]`.
            - Out-of-range FAISS row ids (`-1` padding) are skipped.
        """
        with self._lock:
            if self._index is None or self._index.ntotal == 0 or k < 1:
                return []

            row = _as_row(vector, self.dimension)
            search_k = self._index.ntotal if filter or self._deleted else min(k, self._index.ntotal)
            scores, indices = self._index.search(row, search_k)

            hits = []
            for score, idx in zip(scores[0], indices[0]):
                if idx < 0 or idx >= len(self._ids) or idx in self._deleted:
                    continue

                meta = self._metadata[idx]
                if not _matches(meta, filter):
                    continue

                hits.append(SearchHit(id=self._ids[idx], score=float(score), metadata=dict(meta)))
                if len(hits) >= k:
                    break

            return hits

    def delete(self, ids) -> int:
        """Hide rows by id from queries and counts.

        Returns:
            Number of rows newly removed.
        """
        wanted = {str(i) for i in ids}
        with self._lock:
            rows = {
                row for row, row_id in enumerate(self._ids)
                if row_id in wanted and row not in self._deleted
            }
            self._deleted.update(rows)
            return len(rows)

    def count(self, filter: dict | None = None) -> int:
        with self._lock:
            return sum(
                1 for row, meta in enumerate(self._metadata)
                if row not in self._deleted and _matches(meta, filter)
            )
