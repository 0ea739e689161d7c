"""Retrieval package.

Scope:
    - `chunker`: boundary-aware text splitting with overlap.
    - `context_builder`: per-request assembly of recent turns and recalled facts.
"""
