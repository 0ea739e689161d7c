"""Tests for configuration structs."""

import dataclasses

import pytest

from mentorbot.config import MemoryConfig
from mentorbot.errors import ValidationError
from mentorbot.llm.provider_config import PROVIDERS, LLMConfig, load_key, validate_temperature


class TestMemoryConfig:
    def test_explicit_values(self, config):
        assert config.max_messages == 3
        assert config.chunk_size == 200
        assert config.chunk_overlap == 50
        assert config.compaction_threshold == 8
        assert config.recall_k == 4

    def test_frozen(self, config):
        with pytest.raises(dataclasses.FrozenInstanceError):
            config.max_messages = 10

    @pytest.mark.parametrize(
        "field, value",
        [
            ("max_messages", 0),
            ("chunk_size", 0),
            ("chunk_overlap", -1),
            ("chunk_overlap", 200),
            ("compaction_threshold", 0),
            ("recall_k", 0),
        ],
    )
    def test_invalid_values(self, config, field, value):
        with pytest.raises(ValidationError):
            config.with_overrides(**{field: value})

    def test_with_overrides_returns_copy(self, config):
        changed = config.with_overrides(max_messages=5)
        assert changed.max_messages == 5
        assert config.max_messages == 3


class TestLLMConfig:
    def test_known_provider_fills_url(self):
        cfg = LLMConfig(provider="groq", api_key="gsk-test")
        assert cfg.url == PROVIDERS["groq"]["url"]
        assert cfg.api_key == "gsk-test"

    def test_unknown_provider(self):
        with pytest.raises(ValidationError):
            LLMConfig(provider="nope", api_key="x")

    def test_invalid_temperature(self):
        with pytest.raises(ValidationError):
            LLMConfig(provider="openai", api_key="x", temperature=3.0)

    def test_key_from_environment(self, monkeypatch):
        monkeypatch.setenv("MISTRAL_API_KEY", "from-env")
        assert load_key("config/mistral.key") == "from-env"

    def test_key_from_file(self, tmp_path, monkeypatch):
        monkeypatch.delenv("CUSTOM_API_KEY", raising=False)
        key_file = tmp_path / "custom.key"
        key_file.write_text("from-file\n", encoding="utf-8")
        assert load_key(str(key_file)) == "from-file"

    def test_missing_key(self, tmp_path, monkeypatch):
        monkeypatch.delenv("ABSENT_API_KEY", raising=False)
        assert load_key(str(tmp_path / "absent.key")) is None
        assert load_key(None) is None

    @pytest.mark.parametrize("value, expected", [("0", 0.0), (1.5, 1.5), ("2", 2.0)])
    def test_validate_temperature(self, value, expected):
        assert validate_temperature(value) == expected

    @pytest.mark.parametrize("value", ["-0.1", "2.5", "hot", None])
    def test_validate_temperature_rejects(self, value):
        with pytest.raises(ValidationError):
            validate_temperature(value)
