# core/llm/groq_service.py
import logging
import time
from typing import AsyncGenerator, Dict, List

import httpx
import openai
from openai import AsyncOpenAI

from .base import LLMService
from core.errors import AuthError, RateLimitError, RelayError, TransportError, UpstreamError

logger = logging.getLogger(__name__)

GROQ_BASE_URL = "https://api.groq.com/openai/v1"


def translate_upstream_error(exc: BaseException) -> RelayError:
    """Maps an OpenAI SDK or httpx exception onto the relay's error taxonomy."""
    if isinstance(exc, (openai.AuthenticationError, openai.PermissionDeniedError)):
        return AuthError(f"Provider rejected the credential: {exc}")
    if isinstance(exc, openai.RateLimitError):
        return RateLimitError(f"Provider rate limit hit: {exc}")
    if isinstance(exc, openai.APIConnectionError):
        return TransportError(f"Could not reach the provider: {exc}")
    if isinstance(exc, httpx.TransportError):
        return TransportError(f"Upstream stream broke off: {exc}")
    if isinstance(exc, openai.APIError):
        return UpstreamError(f"Provider reported an error: {exc}")
    return UpstreamError(f"Unexpected upstream failure: {exc!r}")


class GroqService(LLMService):
    """Streaming chat completions against Groq's OpenAI-compatible API."""

    def __init__(
            self,
            api_key: str,
            base_url: str = GROQ_BASE_URL,
            temperature: float = 0.7,
            max_tokens: int = 4096,
            max_retries: int = 0,
    ):
        if not api_key:
            raise ValueError("A Groq API key is required.")

        self.client = AsyncOpenAI(
            api_key=api_key,
            base_url=base_url,
            max_retries=max_retries,
        )
        self.temperature = temperature
        self.max_tokens = max_tokens
        logger.info(f"Groq service initialized against {self.client.base_url}")

    async def stream_completion(
            self, messages: List[Dict[str, str]], model_id: str
    ) -> AsyncGenerator[str, None]:
        """Yields content deltas as they arrive, skipping empty ones."""
        start_time = time.monotonic()
        chunk_count = 0

        try:
            stream = await self.client.chat.completions.create(
                model=model_id,
                messages=messages,
                temperature=self.temperature,
                max_tokens=self.max_tokens,
                stream=True,
            )
        except (openai.APIError, httpx.TransportError) as e:
            logger.error(f"Failed to open completion stream for model '{model_id}': {e}")
            raise translate_upstream_error(e) from e

        try:
            async for chunk in stream:
                if not chunk.choices:
                    continue
                content = chunk.choices[0].delta.content or ""
                if content:
                    chunk_count += 1
                    yield content
        except (openai.APIError, httpx.TransportError) as e:
            logger.error(f"Completion stream for model '{model_id}' failed after {chunk_count} chunks: {e}")
            raise translate_upstream_error(e) from e
        finally:
            await stream.close()

        logger.info(
            f"Completion for model '{model_id}' finished: {chunk_count} chunks "
            f"in {time.monotonic() - start_time:.2f}s"
        )

    async def aclose(self) -> None:
        await self.client.close()
