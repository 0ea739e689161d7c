"""Error taxonomy shared by memory, retrieval, and LLM layers.

Propagation policy:
    - `ValidationError` is raised synchronously for invalid configuration and is
      the only error short-term (in-memory) operations can produce.
    - `CollaboratorUnavailable` wraps embedding, similarity-search, and LLM
      failures. Long-term memory paths absorb it; the engine maps it to a fixed
      user-facing reply.
    - `RetrievalInconsistency` describes a hit tagged for the wrong user. It is
      detected and logged by the recall path, never raised to callers.
"""


class MentorbotError(Exception):
    """Base class for all package-defined errors."""


class ValidationError(MentorbotError, ValueError):
    """Invalid configuration or argument (for example `max_messages < 1`)."""


class CollaboratorUnavailable(MentorbotError):
    """An external collaborator failed, timed out, or returned unusable output."""


class RetrievalInconsistency(MentorbotError):
    """A similarity-search hit carried a `user_id` other than the queried one."""

    def __init__(self, expected_user, actual_user, hit_id=None):
        self.expected_user = expected_user
        self.actual_user = actual_user
        self.hit_id = hit_id
        super().__init__(
            f"hit {hit_id!r} tagged for user {actual_user!r}, expected {expected_user!r}"
        )
