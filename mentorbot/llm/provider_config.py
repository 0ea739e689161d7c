"""Provider/runtime configuration for the LLM layer.

Architectural role:
    Centralizes model/provider selection and credential lookup for
    `mentorbot.llm.client`.

Relevant environment variables:
    - `PROVIDER`: key of `PROVIDERS` (default `openai`).
    - `MODEL_NAME`: model identifier passed to the provider.
    - `LLM_TEMPERATURE`, `LLM_MAX_TOKENS`, `LLM_TIMEOUT_SECONDS`.
    - `<PROVIDER>_API_KEY` or `config/<provider>.key` for credentials.

Determinism:
    Deterministic for a fixed process environment and key files. Defaults are
    resolved at import time; key files are read when a config is built.
"""

import os
from dataclasses import dataclass

from dotenv import load_dotenv

from mentorbot.errors import ValidationError

load_dotenv()


# OpenAI-compatible and provider-specific endpoint map.
PROVIDERS = {

    "local": {
        "url": "http://127.0.0.1:8080/v1/chat/completions",
        "key_file": None
    },

    "openai": {
        "url": "https://api.openai.com/v1/chat/completions",
        "key_file": "config/openai.key"
    },

    "groq": {
        "url": "https://api.groq.com/openai/v1/chat/completions",
        "key_file": "config/groq.key"
    },

    "openrouter": {
        "url": "https://openrouter.ai/api/v1/chat/completions",
        "key_file": "config/openrouter.key"
    },

    "mistral": {
        "url": "https://api.mistral.ai/v1/chat/completions",
        "key_file": "config/mistral.key"
    },

    "anthropic": {
        "url": "https://api.anthropic.com/v1/messages",
        "key_file": "config/anthropic.key"
    },

}

MIN_TEMPERATURE = 0.0
MAX_TEMPERATURE = 2.0


def load_key(path):
    """Load API key from environment override or key file.

    Resolution order:
        1. Environment variable inferred from file stem (for example
           `config/openai.key` -> `OPENAI_API_KEY`).
        2. Raw file contents at `path`.

    Edge cases:
        - `None` path returns `None`.
        - Missing file returns `None`.
    """
    if not path:
        return None
    key_name = os.path.splitext(os.path.basename(path))[0].upper() + "_API_KEY"
    env_value = os.getenv(key_name)
    if env_value:
        return env_value
    if not os.path.exists(path):
        return None
    with open(path, "r", encoding="utf-8") as f:
        return f.read().strip()


def validate_temperature(value) -> float:
    try:
        temperature = float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"temperature must be a number, got {value!r}") from None
    if not MIN_TEMPERATURE <= temperature <= MAX_TEMPERATURE:
        raise ValidationError(
            f"temperature must be between {MIN_TEMPERATURE:g} and {MAX_TEMPERATURE:g}"
        )
    return temperature


@dataclass(frozen=True)
class LLMConfig:
    """Resolved provider settings for one `ChatCompletionClient`."""

    provider: str = os.getenv("PROVIDER", "openai").strip().lower()
    model: str = os.getenv("MODEL_NAME", "gpt-4o-mini")
    temperature: float = float(os.getenv("LLM_TEMPERATURE", "0.3"))
    max_tokens: int = int(os.getenv("LLM_MAX_TOKENS", "500"))
    timeout_seconds: float = float(os.getenv("LLM_TIMEOUT_SECONDS", "120"))
    url: str | None = None
    api_key: str | None = None

    def __post_init__(self):
        if self.provider not in PROVIDERS:
            raise ValidationError(f"unknown provider {self.provider!r}")
        validate_temperature(self.temperature)
        if self.max_tokens < 1:
            raise ValidationError(f"max_tokens must be >= 1, got {self.max_tokens}")

        provider = PROVIDERS[self.provider]
        if self.url is None:
            object.__setattr__(self, "url", provider["url"])
        if self.api_key is None:
            object.__setattr__(self, "api_key", load_key(provider["key_file"]))
