# core/model_registry.py
"""
Holds the upstream credential and the static table of selectable models.

The registry is created once per application lifetime and handed to the
relay; it owns the completion client built from the current credential.
"""
import logging
from typing import Dict, List, Optional

from config import Settings
from core.errors import AuthError, ValidationError
from core.llm.base import LLMService
from core.llm.factory import LLMServiceFactory, create_llm_service
from schemas.chat_schemas import ModelDescriptor

logger = logging.getLogger(__name__)

MODEL_REGISTRY: Dict[str, ModelDescriptor] = {
    descriptor.id: descriptor
    for descriptor in (
        ModelDescriptor(id="llama-3-70b", name="Llama 3 70B", model="llama3-70b-8192"),
        ModelDescriptor(id="mixtral-8x7b", name="Mixtral 8x7B", model="mixtral-8x7b-32768"),
    )
}

NO_CREDENTIAL_MESSAGE = "API key not set. Please set your Groq API key first."


class ProviderRegistry:
    """Credential holder and model lookup shared by every chat request."""

    def __init__(
            self,
            app_settings: Settings,
            models: Optional[Dict[str, ModelDescriptor]] = None,
            service_factory: LLMServiceFactory = create_llm_service,
    ):
        self._models = dict(MODEL_REGISTRY if models is None else models)
        self._settings = app_settings
        self._service_factory = service_factory
        self._service: LLMService | None = None

    @property
    def has_credential(self) -> bool:
        return self._service is not None

    def set_credential(self, api_key: str | None) -> None:
        """
        Replaces any existing credential (last write wins).

        Only shape is checked here; the provider verifies the key on first use.
        Streams already in flight keep the client they started with.
        """
        if not api_key or not api_key.strip():
            raise ValidationError("Empty API key supplied", public_message="API key is required")

        try:
            service = self._service_factory(api_key.strip(), self._settings)
        except Exception as e:
            # The key itself is never logged.
            logger.warning(f"Completion client rejected the supplied credential: {type(e).__name__}")
            raise ValidationError(
                f"Client construction failed: {type(e).__name__}",
                public_message="Invalid API key format",
            ) from e

        replaced = self._service is not None
        self._service = service
        logger.info(f"Upstream credential {'replaced' if replaced else 'set'}.")

    def get_service(self) -> LLMService:
        """Returns the client for the current credential, or fails fast without one."""
        if self._service is None:
            raise AuthError("No credential configured", public_message=NO_CREDENTIAL_MESSAGE)
        return self._service

    def resolve_model(self, key: str | None) -> str | None:
        """Maps a user-facing model key to the provider's model identifier."""
        descriptor = self._models.get(key) if key else None
        return descriptor.model if descriptor else None

    def list_models(self) -> List[ModelDescriptor]:
        return list(self._models.values())

    async def aclose(self) -> None:
        if self._service is not None:
            await self._service.aclose()
            self._service = None
