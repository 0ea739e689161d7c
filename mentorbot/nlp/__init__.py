"""NLP utilities.

Module scope:
- Durable-fact gating and categorization (`fact_classifier`).

Determinism profile:
- Pure rule logic; no model calls.
"""
