"""Core orchestration package.

Composition:
    - `engine`: request processing and production wiring.
    - `commands`: slash-command handlers.
    - `protocols`: collaborator contracts (embedder, vector index, language model).

Package import itself is side-effect free.
"""
