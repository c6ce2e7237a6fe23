# core/llm/base.py
"""
Abstract interface every upstream completion client implements.
"""
from abc import ABC, abstractmethod
from typing import AsyncGenerator, Dict, List


class LLMService(ABC):
    """A token-streaming chat completion client bound to one credential."""

    @abstractmethod
    def stream_completion(
            self, messages: List[Dict[str, str]], model_id: str
    ) -> AsyncGenerator[str, None]:
        """
        Opens a streaming completion and yields incremental, non-empty text fragments.

        Exhaustion of the generator marks the end of the completion. Failures are
        raised as `core.errors.RelayError` subclasses; closing the generator early
        abandons the upstream request.
        """

    async def aclose(self) -> None:
        """Releases any network resources held by the client."""
        return None
