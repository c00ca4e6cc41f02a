"""
Shared OpenAI client for the journal service.

Centralizes OpenAI API access for page extraction, overviews, tangent
discovery and companion chat. Every call is bounded by
REMOTE_CALL_TIMEOUT_SECONDS.
"""

import asyncio
import logging
import time
from functools import lru_cache
from typing import Any, Dict, List, Optional

from openai import AsyncOpenAI, OpenAIError

from unpack.core.config import settings
from unpack.core.logging_utils import log_llm_usage

logger = logging.getLogger("Unpack.OpenAI")


class ModelUnavailable(Exception):
    """The language model could not be reached or did not answer in time."""


@lru_cache(maxsize=1)
def get_openai_client() -> AsyncOpenAI:
    """
    Get the singleton OpenAI async client.

    Raises:
        ValueError: If OPENAI_API_KEY is not set
    """
    if not settings.OPENAI_API_KEY:
        raise ValueError("OPENAI_API_KEY environment variable not set")

    client = AsyncOpenAI(
        api_key=settings.OPENAI_API_KEY,
        timeout=settings.REMOTE_CALL_TIMEOUT_SECONDS,
        max_retries=1,
    )
    logger.info("OpenAI client initialized")
    return client


class ChatModel:
    """
    Thin wrapper over chat completions.

    Returns the raw text of the first choice; callers decide what an empty
    answer means for their stage.
    """

    def __init__(
        self,
        client: Optional[AsyncOpenAI] = None,
        model: Optional[str] = None,
        timeout: Optional[float] = None,
    ) -> None:
        self._client = client
        self.model = model or settings.OPENAI_MODEL
        self.timeout = timeout if timeout is not None else settings.REMOTE_CALL_TIMEOUT_SECONDS

    @property
    def client(self) -> AsyncOpenAI:
        if self._client is None:
            self._client = get_openai_client()
        return self._client

    async def complete(
        self,
        messages: List[Dict[str, Any]],
        *,
        max_tokens: int,
        temperature: Optional[float] = None,
        json_mode: bool = False,
        operation: str = "chat",
    ) -> str:
        """
        Run one chat completion.

        Raises:
            ModelUnavailable: on transport errors, API errors or timeout
        """
        kwargs: Dict[str, Any] = {
            "model": self.model,
            "messages": messages,
            "max_tokens": max_tokens,
        }
        if temperature is not None:
            kwargs["temperature"] = temperature
        if json_mode:
            kwargs["response_format"] = {"type": "json_object"}

        started = time.monotonic()
        try:
            response = await asyncio.wait_for(
                self.client.chat.completions.create(**kwargs),
                timeout=self.timeout,
            )
        except asyncio.TimeoutError as exc:
            raise ModelUnavailable(f"{operation} timed out after {self.timeout:.0f}s") from exc
        except (OpenAIError, ValueError) as exc:
            raise ModelUnavailable(f"{operation} failed: {exc}") from exc

        duration_ms = int((time.monotonic() - started) * 1000)
        usage = getattr(response, "usage", None)
        if usage is not None:
            log_llm_usage(
                model=self.model,
                input_tokens=usage.prompt_tokens or 0,
                output_tokens=usage.completion_tokens or 0,
                duration_ms=duration_ms,
                operation=operation,
            )

        if not response.choices:
            return ""
        return response.choices[0].message.content or ""


@lru_cache(maxsize=1)
def get_chat_model() -> ChatModel:
    """Singleton chat model bound to the configured OpenAI model."""
    return ChatModel()
