"""
Factory module to instantiate the upstream completion client for a credential.
"""
import logging
from typing import Callable

from config import Settings
from .base import LLMService
from .groq_service import GroqService

logger = logging.getLogger(__name__)

LLMServiceFactory = Callable[[str, Settings], LLMService]


def create_llm_service(api_key: str, app_settings: Settings) -> LLMService:
    """
    Builds a fresh completion client bound to the given API key.
    The key is checked for shape by the SDK constructor only; it is not
    verified against the provider until the first request.
    """
    logger.info("Creating Groq completion client for a newly supplied credential.")
    return GroqService(
        api_key=api_key,
        base_url=app_settings.groq_base_url,
        temperature=app_settings.temperature,
        max_tokens=app_settings.max_tokens,
        max_retries=app_settings.upstream_max_retries,
    )
