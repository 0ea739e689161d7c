"""Memory subsystem package.

Architectural role:
    Groups the stateful memory components used by the engine:
    - `models`: `Turn`, `Fact` and `ContextBundle` records.
    - `turn_store`: bounded short-term turn window per user.
    - `long_term`: durable fact storage with recall and compaction.
    - `embedding_model`: sentence-transformers embedder (lazy singleton model).
    - `vector_index`: FAISS similarity index with metadata filtering.
"""
