"""mentorbot: conversational assistant front end with layered memory.

Architectural role:
    The package groups the subsystems that decide what context a language model
    sees on each turn:
    - `memory`: short-term turn buffers and long-term fact storage.
    - `nlp`: deterministic fact classification.
    - `retrieval`: chunking and per-request context assembly.
    - `llm` / `prompting`: language-model transport and prompt construction.
    - `core`: request orchestration and bot commands.
    - `api`: HTTP and terminal entrypoints.
"""

__version__ = "0.3.0"
