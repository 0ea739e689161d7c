"""Overlapping text chunker for long-term memory indexing.

Pipeline summary:
    1. Split the text into pieces using the coarsest separator that works
       (paragraph break, line break, sentence end, comma/semicolon, whitespace).
       Pieces that are still too long are split again with the next, finer
       separator; single-character slicing is the last resort.
    2. Greedily merge adjacent pieces into "cores" of at most
       `chunk_size - overlap` characters. Cores partition the text exactly.
    3. Emit the first core as is and every later core prefixed by the
       `overlap` characters that precede it in the original text.

Guarantees:
    - Every chunk is at most `chunk_size` characters.
    - Separators are kept attached to the piece they end, so nothing is dropped
      and `join_chunks(split(t, s, o), o) == t`.
    - Consecutive chunks always share the full `overlap` characters: a first
      core shorter than the overlap is folded into the next core, which keeps
      the first chunk under `chunk_size` because that chunk carries no lead.

Determinism and performance:
    Deterministic for fixed input and parameters. Runtime is linear in text length
    times the number of separator levels actually used.
"""

import re

from mentorbot.errors import ValidationError


# Coarsest first. Zero-width lookbehind splits keep the separator on the left piece.
SEPARATORS = (
    re.compile(r"(?<=\n\n)"),
    re.compile(r"(?<=\n)"),
    re.compile(r"(?<=[.!?…]\s)"),
    re.compile(r"(?<=[,;]\s)"),
    re.compile(r"(?<=\s)"),
)


def _validate(chunk_size, overlap):
    if chunk_size < 1:
        raise ValidationError(f"chunk_size must be >= 1, got {chunk_size}")
    if overlap < 0 or overlap >= chunk_size:
        raise ValidationError(f"overlap must be in [0, chunk_size), got {overlap}")


def _split_pieces(text, max_len, level=0):
    """Recursively split `text` into pieces no longer than `max_len`."""
    if len(text) <= max_len:
        return [text]

    for depth in range(level, len(SEPARATORS)):
        parts = [p for p in SEPARATORS[depth].split(text) if p]
        if len(parts) < 2:
            continue

        pieces = []
        for part in parts:
            if len(part) <= max_len:
                pieces.append(part)
            else:
                pieces.extend(_split_pieces(part, max_len, depth + 1))
        return pieces

    return [text[i:i + max_len] for i in range(0, len(text), max_len)]


def _merge_pieces(pieces, max_len):
    """Greedily pack consecutive pieces into cores of at most `max_len` chars."""
    cores = []
    current = ""

    for piece in pieces:
        if current and len(current) + len(piece) > max_len:
            cores.append(current)
            current = piece
        else:
            current += piece

    if current:
        cores.append(current)

    return cores


def split(text: str, chunk_size: int = 200, overlap: int = 50) -> list[str]:
    """Split text into overlapping chunks suitable for embedding.

    Args:
        text: Source text.
        chunk_size: Maximum characters per chunk.
        overlap: Characters of preceding context repeated at the start of each
            chunk after the first.

    Returns:
        Ordered chunk list. Text no longer than `chunk_size` yields `[text]`.

    Raises:
        ValidationError: When `chunk_size < 1` or `overlap` is outside
            `[0, chunk_size)`.
    """
    _validate(chunk_size, overlap)

    text = "" if text is None else str(text)
    if len(text) <= chunk_size:
        return [text]

    cores = _merge_pieces(_split_pieces(text, chunk_size - overlap), chunk_size - overlap)
    # a first core shorter than the overlap rides along with the next one
    while len(cores) > 1 and len(cores[0]) < overlap:
        cores[0:2] = [cores[0] + cores[1]]

    chunks = []
    start = 0
    for core in cores:
        lead = min(overlap, start)
        chunks.append(text[start - lead:start + len(core)])
        start += len(core)

    return chunks


def join_chunks(chunks, overlap: int = 50) -> str:
    """Reassemble text from `split` output by stripping each chunk's overlap."""
    text = ""
    for i, chunk in enumerate(chunks):
        if i == 0:
            text = chunk
            continue
        text += chunk[min(overlap, len(text)):]
    return text
