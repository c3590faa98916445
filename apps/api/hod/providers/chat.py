import asyncio
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable

import httpx

from hod.core import get_settings

logger = logging.getLogger(__name__)


class ChatServiceError(Exception):
    """Raised when the LLM API is unavailable or returns an unusable response."""


class ChatRateLimitError(ChatServiceError):
    """Raised when the LLM API keeps rate limiting the request after all retries."""


@dataclass(frozen=True)
class RetryPolicy:
    """Exponential backoff for HTTP 429 responses.

    ``delay_for(0)`` is the wait before the first retry; each further retry
    multiplies it. ``sleep`` is injectable so backoff timing can be asserted
    without real waiting.
    """

    max_retries: int = 3
    initial_delay_s: float = 1.0
    multiplier: float = 2.0
    sleep: Callable[[float], Awaitable[Any]] = field(default=asyncio.sleep, compare=False)

    def delay_for(self, retry_index: int) -> float:
        return self.initial_delay_s * (self.multiplier ** retry_index)

    def should_retry(self, retry_index: int) -> bool:
        return retry_index < self.max_retries


class ChatProvider(ABC):
    @abstractmethod
    async def generate(self, prompt: str, generation_config: dict | None = None) -> dict:
        """Send one prompt and return the raw response envelope ({"candidates": [...]})."""


class GeminiChatProvider(ChatProvider):
    """Google Generative Language ``generateContent`` endpoint."""

    def __init__(
        self,
        base_url: str,
        api_key: str | None,
        model: str,
        *,
        retry_policy: RetryPolicy | None = None,
        timeout_s: float = 60.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.model = model
        self.retry_policy = retry_policy or RetryPolicy()
        self.timeout_s = timeout_s
        self._transport = transport

    @property
    def endpoint(self) -> str:
        return f"{self.base_url}/models/{self.model}:generateContent"

    async def generate(self, prompt: str, generation_config: dict | None = None) -> dict:
        payload: dict[str, Any] = {"contents": [{"parts": [{"text": prompt}]}]}
        if generation_config is not None:
            payload["generationConfig"] = generation_config
        params = {"key": self.api_key} if self.api_key else None
        policy = self.retry_policy
        retry_index = 0

        while True:
            try:
                async with httpx.AsyncClient(timeout=self.timeout_s, transport=self._transport) as client:
                    r = await client.post(
                        self.endpoint,
                        json=payload,
                        params=params,
                        headers={"Content-Type": "application/json"},
                    )
                    r.raise_for_status()
                    data = r.json()
                    if not isinstance(data, dict):
                        raise ChatServiceError("LLM API returned a non-object response.")
                    return data
            except httpx.HTTPStatusError as e:
                if e.response.status_code == 429:
                    if policy.should_retry(retry_index):
                        delay_s = policy.delay_for(retry_index)
                        logger.info(
                            "LLM API rate limited (retry %s/%s in %.1fs)",
                            retry_index + 1,
                            policy.max_retries,
                            delay_s,
                        )
                        await policy.sleep(delay_s)
                        retry_index += 1
                        continue
                    raise ChatRateLimitError(
                        "LLM API rate limited the request. Please retry later."
                    ) from e
                body = getattr(e.response, "text", None) or ""
                if body:
                    logger.warning(
                        "LLM API error %s: %s",
                        e.response.status_code,
                        body[:500],
                    )
                raise ChatServiceError(
                    f"LLM API returned {e.response.status_code}. Please try again later."
                ) from e
            except httpx.RequestError as e:
                raise ChatServiceError(
                    "LLM service unavailable (timeout or connection error). Please try again later."
                ) from e
            except ValueError as e:
                raise ChatServiceError("LLM API returned a body that is not JSON.") from e


def get_chat_provider() -> ChatProvider:
    s = get_settings()
    if not s.gemini_api_key:
        raise RuntimeError("Chat LLM not configured. Set GEMINI_API_KEY (and optionally GEMINI_MODEL).")
    return GeminiChatProvider(
        base_url=s.gemini_api_base_url,
        api_key=s.gemini_api_key,
        model=s.gemini_model,
        retry_policy=RetryPolicy(
            max_retries=s.chat_max_retries,
            initial_delay_s=s.chat_initial_backoff_seconds,
            multiplier=s.chat_backoff_multiplier,
        ),
        timeout_s=s.chat_timeout_seconds,
    )
