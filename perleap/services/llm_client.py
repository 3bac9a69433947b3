"""Async client for an OpenAI-compatible chat-completions API.

One instance is created at startup and shared by the chat and assessment
handlers. Every failure mode surfaces as UpstreamError; nothing is retried.
"""

from __future__ import annotations

import logging
import time
from typing import Any

import httpx

from perleap.core.errors import UpstreamError
from perleap.core.metrics import LLM_DURATION, LLM_REQUESTS

logger = logging.getLogger(__name__)


class ChatCompletionClient:
    def __init__(
        self,
        *,
        api_key: str | None,
        base_url: str,
        timeout: float = 60.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._api_key = api_key
        self._url = base_url.rstrip("/") + "/chat/completions"
        self._client = httpx.AsyncClient(timeout=timeout, transport=transport)

    async def complete(
        self,
        messages: list[dict[str, str]],
        *,
        model: str,
        max_tokens: int,
        temperature: float | None = None,
        presence_penalty: float | None = None,
        frequency_penalty: float | None = None,
        json_mode: bool = False,
        purpose: str = "chat",
    ) -> str:
        """Send one completion request and return the first choice's text."""
        if not self._api_key:
            LLM_REQUESTS.labels(purpose=purpose, outcome="not_configured").inc()
            logger.error("Model API key is not configured")
            raise UpstreamError("AI service is not configured")

        payload: dict[str, Any] = {
            "model": model,
            "messages": messages,
            "max_tokens": max_tokens,
        }
        if temperature is not None:
            payload["temperature"] = temperature
        if presence_penalty is not None:
            payload["presence_penalty"] = presence_penalty
        if frequency_penalty is not None:
            payload["frequency_penalty"] = frequency_penalty
        if json_mode:
            payload["response_format"] = {"type": "json_object"}

        start = time.monotonic()
        try:
            response = await self._client.post(
                self._url,
                headers={"Authorization": f"Bearer {self._api_key}"},
                json=payload,
            )
        except httpx.RequestError as e:
            LLM_REQUESTS.labels(purpose=purpose, outcome="transport_error").inc()
            logger.error("Model API unreachable: %s", e, extra={"purpose": purpose, "model": model})
            raise UpstreamError("AI service unavailable") from e
        finally:
            LLM_DURATION.labels(purpose=purpose).observe(time.monotonic() - start)

        if response.status_code != 200:
            LLM_REQUESTS.labels(purpose=purpose, outcome="http_error").inc()
            logger.error(
                "Model API returned %d: %s",
                response.status_code,
                response.text[:500],
                extra={"purpose": purpose, "model": model},
            )
            raise UpstreamError(f"AI service error: {response.status_code}")

        content = _first_choice_text(response)
        if not content:
            LLM_REQUESTS.labels(purpose=purpose, outcome="empty").inc()
            logger.error("Model API returned no content", extra={"purpose": purpose, "model": model})
            raise UpstreamError("No response from AI service")

        LLM_REQUESTS.labels(purpose=purpose, outcome="ok").inc()
        logger.debug("Model reply received (%d chars)", len(content), extra={"purpose": purpose})
        return content

    async def aclose(self) -> None:
        await self._client.aclose()


def _first_choice_text(response: httpx.Response) -> str:
    try:
        data = response.json()
        content = data["choices"][0]["message"]["content"]
    except (ValueError, KeyError, IndexError, TypeError):
        return ""
    return content if isinstance(content, str) else ""
