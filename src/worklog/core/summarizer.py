"""
Summarization client for narrative synthesis.

Single stateless chat call per prompt. Any failure raises SummarizerError;
callers are expected to fall back to the deterministic narrative.
"""

import json
import time
from typing import Optional, Protocol

import requests

from worklog.config import PROVIDERS, load_api_key

SYSTEM_PROMPT = (
    "You are a concise technical writer who summarizes development work "
    "into a short paragraph."
)

API_URLS = {
    "openrouter": "https://openrouter.ai/api/v1/chat/completions",
    "openai": "https://api.openai.com/v1/chat/completions",
    "anthropic": "https://api.anthropic.com/v1/messages",
}

ANTHROPIC_VERSION = "2023-06-01"

CHUNK_SIZE = 4096


class SummarizerError(Exception):
    """Raised when the summarizer call fails. Triggers fallback narrative."""
    pass


class Summarizer(Protocol):
    """Anything that turns a prompt into text (or raises)."""

    def generate(self, prompt: str) -> str:
        ...


class SummarizerClient:
    """
    Generate narrative text via a hosted chat model.

    Supports OpenRouter and OpenAI (chat-completions) and Anthropic
    (messages API). The whole call, body included, is bounded by
    `timeout` seconds: requests only bounds connect and each socket read,
    so the body is streamed and checked against a total deadline.
    """

    def __init__(
        self,
        provider: str = "openrouter",
        model: Optional[str] = None,
        api_key: Optional[str] = None,
        timeout: float = 30.0,
        max_tokens: int = 150,
    ):
        """
        Initialize summarizer client.

        Args:
            provider: openrouter, openai or anthropic
            model: Model ID (default: provider default)
            api_key: API key (default: from env or .env file)
            timeout: Request timeout in seconds
            max_tokens: Completion token limit
        """
        if provider not in PROVIDERS:
            raise ValueError(f"Unknown summarizer provider: {provider}")

        self.provider = provider
        self.model = model or PROVIDERS[provider][1]
        self.api_key = api_key or load_api_key(provider)
        self.timeout = timeout
        self.max_tokens = max_tokens

    def _request(self, prompt: str) -> tuple[dict, dict]:
        """Headers and payload for the provider."""
        if self.provider == "anthropic":
            headers = {
                "x-api-key": self.api_key,
                "anthropic-version": ANTHROPIC_VERSION,
                "Content-Type": "application/json",
            }
            payload = {
                "model": self.model,
                "max_tokens": self.max_tokens,
                "system": SYSTEM_PROMPT,
                "messages": [{"role": "user", "content": prompt}],
            }
        else:
            headers = {
                "Authorization": f"Bearer {self.api_key}",
                "Content-Type": "application/json",
            }
            payload = {
                "model": self.model,
                "messages": [
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {"role": "user", "content": prompt},
                ],
                "max_tokens": self.max_tokens,
                "temperature": 0.3,
            }
        return headers, payload

    def _extract_content(self, data: dict) -> str:
        if self.provider == "anthropic":
            blocks = [b for b in data["content"] if b.get("type") == "text"]
            return blocks[0]["text"] if blocks else ""
        return data["choices"][0]["message"]["content"] or ""

    def _read_body(self, response, deadline: float) -> dict:
        """Stream the response body, giving up once the deadline passes."""
        chunks = []
        for chunk in response.iter_content(chunk_size=CHUNK_SIZE):
            if time.monotonic() > deadline:
                raise requests.exceptions.Timeout("response body exceeded deadline")
            chunks.append(chunk)
        return json.loads(b"".join(chunks))

    def generate(self, prompt: str) -> str:
        """
        Generate text for a prompt.

        Args:
            prompt: Full user prompt

        Returns:
            Stripped, non-empty model output

        Raises:
            SummarizerError: On timeout, HTTP/transport error, malformed
                response or empty content
        """
        headers, payload = self._request(prompt)
        deadline = time.monotonic() + self.timeout

        try:
            response = requests.post(
                API_URLS[self.provider],
                headers=headers,
                json=payload,
                timeout=self.timeout,
                stream=True,
            )
            response.raise_for_status()
            content = self._extract_content(self._read_body(response, deadline)).strip()
        except requests.exceptions.Timeout:
            raise SummarizerError(f"Summarizer timeout after {self.timeout}s")
        except requests.exceptions.RequestException as e:
            raise SummarizerError(f"Summarizer request failed: {e}")
        except (KeyError, IndexError, TypeError, ValueError, AttributeError) as e:
            raise SummarizerError(f"Summarizer response parse error: {e}")

        if not content:
            raise SummarizerError(f"Empty response from {self.provider}")

        return content
