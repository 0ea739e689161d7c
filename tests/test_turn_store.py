"""Tests for the short-term TurnStore."""

import pytest

from mentorbot.errors import ValidationError
from mentorbot.memory.turn_store import TurnStore


def contents(store):
    return [turn.content for turn in store.list()]


class TestAppend:
    def test_window_keeps_newest_turns(self):
        """T1..T5 with a limit of 3 leaves T3, T4, T5."""
        store = TurnStore(max_messages=3)
        for i in range(1, 6):
            store.append("user", f"T{i}")

        assert contents(store) == ["T3", "T4", "T5"]

    def test_never_exceeds_limit(self):
        store = TurnStore(max_messages=2)
        for i in range(10):
            store.append("user" if i % 2 else "assistant", str(i))
            assert len(store) <= 2

    def test_system_turn_is_single_and_pinned_first(self):
        store = TurnStore(max_messages=2)
        store.append("user", "hello")
        store.append("system", "first")
        store.append("system", "second")
        store.append("assistant", "hi")
        store.append("user", "again")

        turns = store.list()
        assert turns[0].role == "system"
        assert turns[0].content == "second"
        assert [t.role for t in turns].count("system") == 1
        assert contents(store) == ["second", "hi", "again"]

    def test_system_turn_does_not_count_against_limit(self):
        store = TurnStore(max_messages=1)
        store.append("system", "pinned")
        store.append("user", "a")

        assert contents(store) == ["pinned", "a"]
        assert len(store) == 1

    def test_unknown_role_rejected(self):
        store = TurnStore()
        with pytest.raises(ValidationError):
            store.append("tool", "output")

    def test_sequence_numbers_increase(self):
        store = TurnStore()
        first = store.append("user", "a")
        second = store.append("assistant", "b")
        assert second.seq > first.seq


class TestLimit:
    @pytest.mark.parametrize("bad", [0, -1, 1.5, "3", True])
    def test_invalid_limit_rejected(self, bad):
        with pytest.raises(ValidationError):
            TurnStore(max_messages=bad)

    def test_set_limit_shrinks_immediately(self):
        store = TurnStore(max_messages=5)
        for i in range(5):
            store.append("user", str(i))

        store.set_limit(2)

        assert store.limit == 2
        assert contents(store) == ["3", "4"]

    def test_set_limit_validates(self):
        store = TurnStore()
        with pytest.raises(ValidationError):
            store.set_limit(0)
        assert store.limit == 3


class TestMaintenance:
    def test_clear_keeps_system_turn(self):
        store = TurnStore()
        store.append("system", "Always answer in Polish.")
        store.append("user", "hi")

        store.clear()

        assert contents(store) == ["Always answer in Polish."]
        assert len(store) == 0

    def test_remove_by_content(self):
        store = TurnStore(max_messages=5)
        store.append("user", "keep")
        store.append("user", "drop")
        store.append("assistant", "drop")

        assert store.remove("drop") == 2
        assert contents(store) == ["keep"]

    def test_summarize_truncates(self):
        store = TurnStore()
        store.append("user", "x" * 80)

        assert store.summarize() == "user: " + "x" * 50 + "..."

    def test_list_is_a_snapshot(self):
        store = TurnStore()
        store.append("user", "a")
        snapshot = store.list()
        store.append("user", "b")

        assert len(snapshot) == 1
