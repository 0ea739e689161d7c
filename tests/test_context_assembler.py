"""Tests for ContextAssembler ordering, isolation and background remember."""

import asyncio
import threading

import pytest

from mentorbot.memory.long_term import LongTermMemoryStore
from mentorbot.memory.vector_index import FaissVectorIndex
from mentorbot.prompting.prompt_builder import SYSTEM_PROMPT
from mentorbot.retrieval.context_builder import ContextAssembler

from conftest import VocabularyEmbedder


class SlowEmbedder(VocabularyEmbedder):
    """Blocks passage embeddings until released, to expose ordering bugs."""

    def __init__(self):
        super().__init__()
        self.release = threading.Event()

    def embed(self, text, is_query=False):
        if not is_query:
            self.release.wait(timeout=5)
        return super().embed(text, is_query)


@pytest.mark.asyncio
async def test_first_context_is_empty(assembler):
    bundle = await assembler.build_context("u1", "hello")

    assert bundle.system_prompt == SYSTEM_PROMPT
    assert bundle.recent_turns == ()
    assert bundle.recalled_facts == ()


@pytest.mark.asyncio
async def test_record_appends_both_turns(assembler):
    await assembler.record("u1", "hi there", "Hello, I'm Harry.")

    turns = assembler.turn_store("u1").list()
    assert [(t.role, t.content) for t in turns] == [
        ("user", "hi there"),
        ("assistant", "Hello, I'm Harry."),
    ]


@pytest.mark.asyncio
async def test_fact_is_recalled_on_next_message(assembler):
    await assembler.record("u1", "I live in Warsaw", "Nice city!")

    bundle = await assembler.build_context("u1", "where do I live?")

    assert bundle.recalled_facts[0].raw_text == "I live in Warsaw"
    assert bundle.recalled_facts[0].category == "location"


@pytest.mark.asyncio
async def test_build_context_waits_for_pending_remember(config):
    embedder = SlowEmbedder()
    long_term = LongTermMemoryStore(embedder, FaissVectorIndex(), None, config)
    assembler = ContextAssembler(long_term, config=config)

    task = await assembler.record("u1", "My name is Alex", "Hi Alex!")
    assert not task.done()

    pending_build = asyncio.create_task(assembler.build_context("u1", "what is my name?"))
    await asyncio.sleep(0.05)
    assert not pending_build.done()

    embedder.release.set()
    bundle = await pending_build

    assert [f.raw_text for f in bundle.recalled_facts] == ["My name is Alex"]


@pytest.mark.asyncio
async def test_window_is_bounded(assembler):
    for i in range(3):
        await assembler.record("u1", f"question {i}", f"answer {i}")

    turns = assembler.turn_store("u1").list()
    assert [t.content for t in turns] == ["answer 1", "question 2", "answer 2"]


@pytest.mark.asyncio
async def test_users_are_isolated(assembler):
    await asyncio.gather(
        assembler.record("alice", "I live in Warsaw", "ok"),
        assembler.record("bob", "I live in Berlin", "ok"),
        assembler.record("alice", "My name is Alice", "ok"),
        assembler.record("bob", "My name is Bob", "ok"),
    )

    alice = await assembler.build_context("alice", "where do I live and what is my name")
    bob = await assembler.build_context("bob", "where do I live and what is my name")

    assert {f.user_id for f in alice.recalled_facts} == {"alice"}
    assert {f.user_id for f in bob.recalled_facts} == {"bob"}
    assert all("bob" not in t.content.lower() for t in alice.recent_turns)


@pytest.mark.asyncio
async def test_remember_survives_caller_cancellation(assembler, long_term):
    started = asyncio.Event()

    async def caller():
        await assembler.record("u1", "I love pizza", "Me too!")
        started.set()
        await asyncio.sleep(10)

    caller_task = asyncio.create_task(caller())
    await started.wait()
    caller_task.cancel()

    await assembler.drain()

    assert [f.raw_text for f in long_term.facts("u1")] == ["I love pizza"]


@pytest.mark.asyncio
async def test_remember_order_follows_message_order(assembler, long_term):
    texts = ["My name is Alex", "I live in Warsaw", "I love pizza", "I work as a developer"]
    for text in texts:
        await assembler.record("u1", text, "noted")

    await assembler.drain()

    assert [f.raw_text for f in long_term.facts("u1")] == texts


@pytest.mark.asyncio
async def test_non_durable_messages_are_not_remembered(assembler, long_term):
    await assembler.record("u1", "what time is it?", "Noon.")
    await assembler.drain()
    assert long_term.count("u1") == 0


@pytest.mark.asyncio
async def test_system_instruction_is_pinned(assembler):
    assembler.set_system_instruction("u1", "Always answer in Polish.")
    await assembler.record("u1", "hi", "cześć")

    bundle = await assembler.build_context("u1", "next")

    assert bundle.recent_turns[0].role == "system"
    assert bundle.recent_turns[0].content == "Always answer in Polish."


@pytest.mark.asyncio
async def test_clear_and_set_limit(assembler):
    for i in range(3):
        await assembler.record("u1", f"q{i}", f"a{i}")

    assembler.set_limit("u1", 1)
    assert [t.content for t in assembler.turn_store("u1").list()] == ["a2"]

    assembler.clear("u1")
    assert assembler.turn_store("u1").list() == ()
