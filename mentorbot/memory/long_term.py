"""Long-term personal fact memory: remember, recall, compact.

Architectural role:
    Owns the embedding and similarity-search collaborators and the per-user fact
    table. Only text the fact classifier marks as durable is stored; everything
    else stays in the short-term turn window and is forgotten on eviction.

Data flow:
    1. `remember` gates on `mentorbot.nlp.fact_classifier.classify`.
    2. Durable text is chunked (`mentorbot.retrieval.chunker.split`), every chunk
       is embedded with the `passage:` prefix and indexed with metadata tagged by
       `user_id` and `category`.
    3. When a user's fact count crosses a multiple of `compaction_threshold`,
       `compact` asks the language model for one summary and indexes it as a
       `summary` fact.
    4. `recall` embeds the query with the `query:` prefix, searches with a
       `user_id` filter, drops any hit tagged for another user, deduplicates
       chunks of the same source text, and returns the top `k`.

Retention policy:
    Facts are never deleted. Compaction adds a summary next to the facts it
    digests, so a failed or lossy summary can never erase user data.

Failure modes:
    - Embedding/index failures during `remember` are logged; nothing is stored
      for that message (chunks already indexed are deleted again) and the
      caller's turn continues.
    - Failures during `recall` are logged and yield `[]`.
    - Compaction failures are logged; the store keeps operating on the
      un-compacted facts.

Thread safety:
    A single lock guards the fact table and index writes. Embedding and LLM calls
    run outside the lock so different users proceed in parallel.
"""

import logging
import threading
from collections import OrderedDict

from mentorbot.config import MemoryConfig
from mentorbot.errors import RetrievalInconsistency
from mentorbot.memory.models import (
    CATEGORY_SUMMARY,
    ROLE_SYSTEM,
    ROLE_USER,
    Fact,
    source_hash,
)
from mentorbot.nlp.fact_classifier import classify
from mentorbot.prompting.prompt_builder import COMPACTION_INSTRUCTION, COMPACTION_SYSTEM_PROMPT
from mentorbot.retrieval import chunker


logger = logging.getLogger(__name__)


# Over-fetch factor so deduplication of multi-chunk sources still leaves k hits.
RECALL_OVERFETCH = 4
SUMMARY_MAX_CHARS = 3200


class LongTermMemoryStore:
    """Per-user durable fact storage on top of injected collaborators.

    Args:
        embedder: `Embedder` collaborator.
        index: `VectorIndex` collaborator (shared across users).
        llm: `LanguageModel` collaborator used for compaction; `None` disables it.
        config: `MemoryConfig`; defaults are used when omitted.
        classifier: Callable returning a `FactClassification`.
    """

    def __init__(self, embedder, index, llm=None, config: MemoryConfig | None = None, classifier=classify):
        self.embedder = embedder
        self.index = index
        self.llm = llm
        self.config = config or MemoryConfig()
        self.classifier = classifier
        self._facts: dict[str, list[Fact]] = {}
        self._lock = threading.Lock()

    # =========================================================
    # INTROSPECTION
    # =========================================================

    def facts(self, user_id) -> tuple:
        """Snapshot of every stored fact for one user, in insertion order."""
        with self._lock:
            return tuple(self._facts.get(str(user_id), ()))

    def count(self, user_id, include_summaries: bool = True) -> int:
        with self._lock:
            return self._count(str(user_id), include_summaries)

    def _count(self, user_id, include_summaries=True):
        # caller holds the lock
        facts = self._facts.get(user_id, ())
        if include_summaries:
            return len(facts)
        return sum(1 for f in facts if f.category != CATEGORY_SUMMARY)

    # =========================================================
    # REMEMBER
    # =========================================================

    def remember(self, user_id, text, role: str = ROLE_USER) -> list[Fact]:
        """Store `text` as one fact per chunk if the classifier marks it durable.

        Returns:
            The stored facts; `[]` when the text is not durable or storage failed.

        Side effects:
            - Embeds and indexes every chunk.
            - May trigger `compact(user_id)` after storing.
        """
        verdict = self.classifier(text)
        if not verdict.is_durable:
            return []

        user_id = str(user_id)
        text = text.strip()

        chunks = chunker.split(text, self.config.chunk_size, self.config.chunk_overlap)
        src = source_hash(text)

        pending = [
            Fact(
                user_id=user_id,
                category=verdict.category,
                raw_text=chunk,
                chunk_index=i,
                total_chunks=len(chunks),
                role=role,
                source_hash=src,
            )
            for i, chunk in enumerate(chunks)
        ]

        try:
            vectors = [self.embedder.embed(fact.raw_text) for fact in pending]
        except Exception:
            logger.exception("Failed to embed durable fact for user %s; fact not stored", user_id)
            return []

        with self._lock:
            indexed = []

            for fact, vector in zip(pending, vectors):
                try:
                    self.index.index(fact.fact_id, vector, fact.to_metadata())
                except Exception:
                    logger.exception(
                        "Failed to index fact chunk %d/%d for user %s; fact not stored",
                        fact.chunk_index + 1, fact.total_chunks, user_id,
                    )
                    self._rollback(indexed, user_id)
                    return []
                indexed.append(fact.fact_id)

            before = self._count(user_id, include_summaries=False)
            self._facts.setdefault(user_id, []).extend(pending)
            after = before + len(pending)

        threshold = self.config.compaction_threshold
        if after // threshold > before // threshold:
            self.compact(user_id)

        return pending

    def _rollback(self, fact_ids, user_id):
        # caller holds the lock
        if not fact_ids:
            return
        try:
            self.index.delete(fact_ids)
        except Exception:
            logger.exception(
                "Failed to remove %d partially indexed chunk(s) for user %s", len(fact_ids), user_id
            )

    # =========================================================
    # RECALL
    # =========================================================

    def recall(self, user_id, query_hint, k: int | None = None, return_scores: bool = False):
        """Return the user's facts most relevant to `query_hint`, best first.

        Args:
            user_id: Owner whose facts are searched.
            query_hint: Usually the incoming message.
            k: Maximum number of facts (defaults to `config.recall_k`).
            return_scores: Whether to return `(fact, score)` tuples.

        Edge cases:
            - Blank query returns `[]`.
            - Hits tagged for another user are dropped and logged.
            - Hits below `config.recall_min_score` are dropped.
            - Several chunks of one source text collapse into the best-ranked one.
        """
        user_id = str(user_id)
        k = k or self.config.recall_k

        if not query_hint or not str(query_hint).strip():
            return []

        try:
            query_vector = self.embedder.embed(query_hint, is_query=True)
            hits = self.index.query(query_vector, k * RECALL_OVERFETCH, filter={"user_id": user_id})
        except Exception:
            logger.exception("Recall failed for user %s; continuing without long-term facts", user_id)
            return []

        results = []
        seen_sources = set()

        for hit in hits:
            meta = hit.metadata or {}

            if meta.get("user_id") != user_id:
                logger.warning("Dropping recalled hit: %s", RetrievalInconsistency(user_id, meta.get("user_id"), hit.id))
                continue

            if hit.score < self.config.recall_min_score:
                continue

            key = meta.get("source_hash") or hit.id
            if key in seen_sources:
                continue

            try:
                fact = Fact.from_metadata(meta)
            except (KeyError, TypeError, ValueError):
                logger.warning("Skipping hit %s with malformed metadata", hit.id)
                continue

            seen_sources.add(key)
            results.append((fact, hit.score) if return_scores else fact)

            if len(results) >= k:
                break

        return results

    # =========================================================
    # COMPACTION
    # =========================================================

    def compact(self, user_id) -> Fact | None:
        """Summarize all current facts of a user into one added `summary` fact.

        Returns:
            The summary fact, or `None` when compaction is disabled, there is
            nothing to summarize, or any collaborator failed.

        Retention:
            Existing facts are left untouched.
        """
        user_id = str(user_id)

        if self.llm is None:
            logger.warning("Compaction requested for user %s but no language model is configured", user_id)
            return None

        sources = _source_texts(self.facts(user_id), self.config.chunk_overlap)
        if not sources:
            return None

        try:
            summary_text = self.llm.complete(COMPACTION_SYSTEM_PROMPT, [], sources, COMPACTION_INSTRUCTION)
            summary_text = str(summary_text or "").strip()[:SUMMARY_MAX_CHARS].rstrip()

            if not summary_text:
                logger.warning("Skipping summary for user %s: empty model output", user_id)
                return None

            summary = Fact(
                user_id=user_id,
                category=CATEGORY_SUMMARY,
                raw_text=summary_text,
                role=ROLE_SYSTEM,
                source_hash=source_hash(summary_text),
            )
            vector = self.embedder.embed(summary.raw_text)

            with self._lock:
                self.index.index(summary.fact_id, vector, summary.to_metadata())
                self._facts.setdefault(user_id, []).append(summary)
        except Exception:
            logger.exception("Compaction failed for user %s; keeping un-compacted facts", user_id)
            return None

        logger.info("Compacted %d source texts for user %s into one summary", len(sources), user_id)
        return summary


def _source_texts(facts, overlap):
    """Rebuild distinct original source texts from stored chunks, first-seen order.

    Chunks of one `remember` call are stored contiguously starting at
    `chunk_index == 0`; repeated sources collapse by `source_hash`.
    """
    runs = []
    for fact in facts:
        if fact.chunk_index == 0 or not runs:
            runs.append([fact])
        else:
            runs[-1].append(fact)

    texts = OrderedDict()
    for run in runs:
        key = run[0].source_hash or run[0].fact_id
        if key in texts:
            continue
        texts[key] = chunker.join_chunks([f.raw_text for f in run], overlap)

    return list(texts.values())
