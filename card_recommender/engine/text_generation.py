"""Pluggable text-generation capability used for theme classification."""
from __future__ import annotations

import logging
import time
from typing import Optional, Protocol

import httpx

from card_recommender.config import settings
from card_recommender.engine.observability import estimate_tokens, log_event

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You are a Magic: The Gathering strategy expert. "
    "Answer only with the requested lines and no extra commentary."
)


class TextGenerator(Protocol):
    model: str

    def generate(self, prompt: str) -> Optional[str]:
        """Return generated text, or None when nothing could be produced."""
        ...


class NullTextGenerator:
    """Generator used when no provider is configured; never produces text."""

    model = "none"

    def generate(self, prompt: str) -> Optional[str]:
        return None


class OpenAITextGenerator:
    """OpenAI chat completions over httpx."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        temperature: float = 0.3,
    ) -> None:
        self.api_key = api_key if api_key is not None else settings.openai_api_key
        self.model = model or settings.openai_model
        self.base_url = (base_url or settings.openai_base_url).rstrip("/")
        self.timeout = timeout if timeout is not None else settings.openai_timeout_s
        self.temperature = temperature

    def generate(self, prompt: str) -> Optional[str]:
        if not self.api_key:
            return None

        started = time.monotonic()
        payload = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ],
            "temperature": self.temperature,
        }
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

        try:
            response = httpx.post(
                f"{self.base_url}/chat/completions",
                headers=headers,
                json=payload,
                timeout=self.timeout,
            )
            response.raise_for_status()
        except httpx.HTTPError as exc:
            duration_ms = int((time.monotonic() - started) * 1000)
            logger.warning("Text generation request failed: %s", exc)
            log_event(
                "theme_generation",
                {
                    "model": self.model,
                    "success": False,
                    "duration_ms": duration_ms,
                    "prompt_tokens_est": estimate_tokens(SYSTEM_PROMPT + prompt),
                },
            )
            return None

        data = response.json()
        try:
            content = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError):
            logger.warning("Unexpected text generation response shape")
            content = None

        duration_ms = int((time.monotonic() - started) * 1000)
        log_event(
            "theme_generation",
            {
                "model": self.model,
                "success": content is not None,
                "duration_ms": duration_ms,
                "prompt_tokens_est": estimate_tokens(SYSTEM_PROMPT + prompt),
                "response_tokens_est": estimate_tokens(content),
            },
        )
        return content


def default_generator() -> TextGenerator:
    if settings.openai_api_key:
        return OpenAITextGenerator()
    return NullTextGenerator()
