"""Prompting package.

Deterministic prompt-construction helpers for chat replies and memory
compaction. No retrieval, memory access, or model invocation happens here.
"""
