"""OpenAI-compatible chat completions client used for AI enrichment."""
from __future__ import annotations

import asyncio
import json
import logging
from typing import Any

import requests

from receiptflow.core.config import AIConfig
from receiptflow.core.errors import EnrichmentUnavailable

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You analyze grocery and retail receipts. Respond ONLY with the JSON value "
    "requested by the user, without commentary."
)


def parse_json_content(text: str) -> Any:
    """Decode a JSON answer, tolerating markdown code fences around it."""

    cleaned = text.strip()
    if cleaned.startswith("```"):
        lines = cleaned.split("\n")
        lines = [line for line in lines[1:] if not line.strip().startswith("```")]
        cleaned = "\n".join(lines)
    return json.loads(cleaned)


class ChatCompletionClient:
    """Send prompts to a chat completions endpoint and decode JSON replies."""

    def __init__(self, config: AIConfig, session: requests.Session | None = None) -> None:
        self.config = config
        self.session = session or (requests.Session() if config.api_key else None)

    async def complete_json(self, prompt: str) -> Any:
        """Return the decoded JSON answer for ``prompt``.

        Raises:
            EnrichmentUnavailable: If no API key is configured or the call or
                decoding fails.
        """

        if not self.config.api_key or self.session is None:
            raise EnrichmentUnavailable("No AI API key configured")
        return await asyncio.to_thread(self._post, prompt)

    def _post(self, prompt: str) -> Any:
        payload = {
            "model": self.config.model,
            "messages": [
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ],
            "temperature": 0.2,
        }

        try:
            response = self.session.post(
                f"{self.config.base_url}/chat/completions",
                headers={
                    "Authorization": f"Bearer {self.config.api_key}",
                    "Content-Type": "application/json",
                },
                json=payload,
                timeout=self.config.timeout,
            )
            response.raise_for_status()
            content = response.json()["choices"][0]["message"]["content"]
            return parse_json_content(content)
        except (requests.RequestException, KeyError, IndexError, TypeError, ValueError) as exc:
            raise EnrichmentUnavailable(f"AI completion failed: {exc}") from exc
