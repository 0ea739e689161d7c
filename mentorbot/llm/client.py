"""Provider-specific transport client for chat completions.

Architectural role:
    Implements the language-model collaborator (`complete(system_prompt, turns,
    facts, user_message) -> str`) over HTTP. It serves both ordinary replies and
    long-term memory compaction (which passes its own system prompt).

Model invocation flow:
    `complete(...)` -> `prompt_builder.build_chat_messages(...)` -> provider
    branch (OpenAI-compatible or Anthropic) -> `requests.post` -> reply text.

Retry behavior:
    No retry loop is implemented. Each HTTP call is attempted once with the
    configured timeout.

Failure handling model:
    Transport, HTTP status, and response-shape failures are raised as
    `CollaboratorUnavailable` with a sanitized message (no key material, no raw
    response bodies). Callers decide how to degrade.
"""

import logging
import threading

import requests

from mentorbot.errors import CollaboratorUnavailable
from mentorbot.llm.provider_config import LLMConfig, validate_temperature
from mentorbot.prompting.prompt_builder import build_chat_messages


logger = logging.getLogger(__name__)

ANTHROPIC_VERSION = "2023-06-01"


def _sanitized_http_error(provider_name, err):
    status_code = None
    if getattr(err, "response", None) is not None:
        status_code = getattr(err.response, "status_code", None)

    label = str(provider_name or "provider").upper()
    if status_code:
        return f"{label} HTTP ERROR ({status_code})"
    return f"{label} HTTP ERROR"


class ChatCompletionClient:
    """Synchronous chat-completion client; run it in a worker thread from async code."""

    def __init__(self, config: LLMConfig | None = None, session=None):
        self.config = config or LLMConfig()
        self._temperature = self.config.temperature
        self._session = session or requests
        self._lock = threading.Lock()

    @property
    def temperature(self) -> float:
        return self._temperature

    def set_temperature(self, value) -> float:
        """Change sampling temperature for subsequent calls (0 to 2)."""
        temperature = validate_temperature(value)
        with self._lock:
            self._temperature = temperature
        return temperature

    def settings(self) -> dict:
        return {
            "provider": self.config.provider,
            "model": self.config.model,
            "temperature": self._temperature,
            "max_tokens": self.config.max_tokens,
        }

    def complete(self, system_prompt, turns, facts, user_message) -> str:
        """Run one completion and return the stripped reply text.

        Raises:
            CollaboratorUnavailable: Missing credentials, transport/HTTP errors,
                malformed or empty responses.
        """
        messages = build_chat_messages(system_prompt, turns, facts, user_message)

        if self.config.provider == "anthropic":
            return self._complete_anthropic(messages)
        return self._complete_openai_compatible(messages)

    def _post(self, url, headers, payload):
        try:
            response = self._session.post(
                url,
                headers=headers,
                json=payload,
                timeout=self.config.timeout_seconds,
            )
            response.raise_for_status()
            return response.json()
        except requests.exceptions.RequestException as err:
            raise CollaboratorUnavailable(
                _sanitized_http_error(self.config.provider, err)
            ) from err
        except ValueError as err:
            raise CollaboratorUnavailable(
                f"{self.config.provider.upper()} RETURNED INVALID JSON"
            ) from err

    def _complete_openai_compatible(self, messages):
        headers = {"Content-Type": "application/json"}

        if self.config.provider != "local":
            if not self.config.api_key:
                raise CollaboratorUnavailable(f"{self.config.provider.upper()} KEY NOT FOUND")
            headers["Authorization"] = f"Bearer {self.config.api_key}"

        payload = {
            "model": self.config.model,
            "messages": messages,
            "temperature": self._temperature,
            "max_tokens": self.config.max_tokens,
            "stream": False,
        }

        data = self._post(self.config.url, headers, payload)

        try:
            text = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as err:
            raise CollaboratorUnavailable("unexpected completion response shape") from err

        return self._require_text(text)

    def _complete_anthropic(self, messages):
        if not self.config.api_key:
            raise CollaboratorUnavailable("ANTHROPIC KEY NOT FOUND")

        headers = {
            "x-api-key": self.config.api_key,
            "anthropic-version": ANTHROPIC_VERSION,
            "Content-Type": "application/json",
        }

        system_parts = []
        chat_messages = []

        for msg in messages:
            if msg["role"] == "system":
                system_parts.append(msg["content"])
            else:
                chat_messages.append({"role": msg["role"], "content": msg["content"]})

        payload = {
            "model": self.config.model,
            "max_tokens": self.config.max_tokens,
            "temperature": self._temperature,
            "messages": chat_messages,
        }
        if system_parts:
            payload["system"] = "\n\n".join(system_parts)

        data = self._post(self.config.url, headers, payload)

        try:
            text = data["content"][0]["text"]
        except (KeyError, IndexError, TypeError) as err:
            raise CollaboratorUnavailable("unexpected completion response shape") from err

        return self._require_text(text)

    @staticmethod
    def _require_text(text):
        text = str(text or "").strip()
        if not text:
            raise CollaboratorUnavailable("empty completion")
        return text
