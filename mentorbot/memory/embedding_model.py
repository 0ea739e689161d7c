"""Embedding collaborator backed by sentence-transformers.

Architectural role:
    Provides a single shared `SentenceTransformer` instance and a thin
    `SentenceTransformerEmbedder` adapter implementing the `Embedder` contract for
    `mentorbot.memory.long_term`. The loader decides CPU vs CUDA execution once
    and reuses the initialized model across subsequent calls.

Design intent:
    - Keep embedding initialization centralized and lazy (nothing loads at import).
    - Avoid duplicated model loads across stores.
    - Apply a conservative VRAM gate before enabling GPU execution.
    - Use the e5 `query:` / `passage:` prefixes so stored facts and incoming
      questions land in the intended regions of the embedding space.
"""

import logging
import os
import re
import threading

import numpy as np

from mentorbot.errors import CollaboratorUnavailable


logger = logging.getLogger(__name__)

EMBED_MODEL = os.getenv("EMBED_MODEL", "intfloat/multilingual-e5-small")

_model = None
_model_lock = threading.Lock()


def has_enough_vram(min_required_mb: int = 800) -> bool:
    """Return whether enough free GPU memory is available for embeddings."""
    import torch

    if not torch.cuda.is_available():
        return False

    free_mem, _total_mem = torch.cuda.mem_get_info()
    free_mb = free_mem / 1024 / 1024

    logger.info("Free VRAM: %.0f MB", free_mb)

    return free_mb > min_required_mb


def get_model(model_name: str = EMBED_MODEL):
    """Load and cache the shared embedding model instance.

    Returns:
        A `SentenceTransformer` instance configured for CUDA or CPU.

    Behavior:
        - Uses singleton caching via module-global `_model`.
        - Enables CUDA only when `has_enough_vram()` returns `True`.
        - Forces CPU mode by setting `CUDA_VISIBLE_DEVICES=""` otherwise.
    """
    global _model

    with _model_lock:
        if _model is not None:
            return _model

        logger.info("Loading embedding model %s", model_name)

        try:
            use_gpu = has_enough_vram()
        except Exception:
            logger.exception("VRAM check failed, falling back to CPU")
            use_gpu = False

        if not use_gpu:
            os.environ["CUDA_VISIBLE_DEVICES"] = ""

        from sentence_transformers import SentenceTransformer

        device = "cuda" if use_gpu else "cpu"
        logger.info("Loading embeddings on %s", device.upper())

        _model = SentenceTransformer(model_name, device=device)
        return _model


def normalize_text(text: str) -> str:
    """Lowercase and collapse whitespace before embedding."""
    if not text:
        return ""
    return re.sub(r"\s+", " ", str(text).lower()).strip()


class SentenceTransformerEmbedder:
    """`Embedder` implementation over the shared sentence-transformers model."""

    def __init__(self, model=None, model_name: str = EMBED_MODEL):
        self._model = model
        self.model_name = model_name

    @property
    def model(self):
        if self._model is None:
            self._model = get_model(self.model_name)
        return self._model

    def embed(self, text: str, is_query: bool = False):
        """Embed one text into a normalized 1-D float32 vector.

        Raises:
            CollaboratorUnavailable: For empty input or any model/runtime failure.
        """
        clean = normalize_text(text)
        if not clean:
            raise CollaboratorUnavailable("cannot embed empty text")

        prefix = "query: " if is_query else "passage: "

        try:
            vec = self.model.encode([prefix + clean])
        except Exception as exc:
            raise CollaboratorUnavailable(f"embedding failed: {exc}") from exc

        vec = np.asarray(vec, dtype="float32").reshape(-1)
        norm = float(np.linalg.norm(vec))
        if norm > 0:
            vec = vec / norm
        return vec
