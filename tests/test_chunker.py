"""Tests for the overlapping chunker."""

import pytest

from mentorbot.errors import ValidationError
from mentorbot.retrieval.chunker import join_chunks, split


PROSE = (
    "Freelancing rewards people who communicate early and often with clients. "
    "A written scope protects both sides when requirements start to drift. "
    "Invoices should go out on a fixed schedule, not when you remember them. "
    "Portfolio pieces matter more than certificates for most small clients. "
    "Keep a short list of past projects you can describe in two sentences. "
    "Raise your rates a little with every new contract you sign this year."
)


def test_short_text_is_single_chunk():
    assert split("I live in Warsaw", 200, 50) == ["I live in Warsaw"]


def test_text_of_exact_size_is_single_chunk():
    text = "a" * 200
    assert split(text, 200, 50) == [text]


def test_empty_text():
    assert split("", 200, 50) == [""]


def test_chunks_respect_size():
    chunks = split(PROSE, 200, 50)
    assert len(chunks) > 1
    assert all(len(chunk) <= 200 for chunk in chunks)


def test_consecutive_chunks_share_overlap():
    chunks = split(PROSE, 200, 50)
    for left, right in zip(chunks, chunks[1:]):
        assert right[:50] == left[-50:]


@pytest.mark.parametrize(
    "text, size, overlap",
    [
        (PROSE, 200, 50),
        (PROSE, 60, 10),
        (PROSE, 120, 0),
        ("x" * 450, 200, 50),
        ("line one\nline two\nline three\n" * 12, 80, 20),
        ("Pierwszy akapit.\n\nDrugi akapit, dłuższy niż pierwszy.\n\n" * 6, 70, 15),
    ],
)
def test_round_trip_reconstructs_text(text, size, overlap):
    assert join_chunks(split(text, size, overlap), overlap) == text


def test_prefers_paragraph_boundary():
    first = "Pricing freelance work starts with knowing your costs."
    second = "Clients respect a clear quote and a written scope of work."
    text = first + "\n\n" + second

    chunks = split(text, 100, 20)

    assert chunks[0] == first + "\n\n"
    assert chunks[-1].endswith(second)


def test_unbroken_text_falls_back_to_slicing():
    chunks = split("x" * 450, 200, 50)
    assert [len(c) for c in chunks] == [150, 200, 200]


def test_deterministic():
    assert split(PROSE, 90, 30) == split(PROSE, 90, 30)


@pytest.mark.parametrize("size, overlap", [(0, 0), (100, 100), (100, -1), (10, 50)])
def test_invalid_parameters(size, overlap):
    with pytest.raises(ValidationError):
        split(PROSE, size, overlap)


def test_short_leading_paragraph_keeps_full_overlap():
    text = "Hi.\n\n" + "y" * 78 + "\n\n" + "x" * 40

    chunks = split(text, 100, 20)

    assert chunks[0].startswith("Hi.\n\n")
    assert all(len(c) <= 100 for c in chunks)
    for left, right in zip(chunks, chunks[1:]):
        assert right[:20] == left[-20:]
    assert join_chunks(chunks, 20) == text
