# api/routers/credentials.py
"""
Defines the FastAPI router for upstream credential and model registry endpoints.
"""
import logging

from fastapi import APIRouter, Depends

from api.dependencies import get_registry
from core.model_registry import ProviderRegistry
from schemas.chat_schemas import ErrorResponse, ModelsResponse, SetCredentialRequest, SuccessResponse

logger = logging.getLogger(__name__)

router = APIRouter(
    tags=["Provider"]
)


@router.post(
    "/set-credential",
    response_model=SuccessResponse,
    responses={400: {"model": ErrorResponse}},
)
async def set_credential_endpoint(
        payload: SetCredentialRequest,
        registry: ProviderRegistry = Depends(get_registry),
) -> SuccessResponse:
    """
    Stores the Groq API key used for all subsequent completions.
    Acceptance means the key is well-formed; it is not verified against the provider.
    """
    logger.info("Received upstream credential update.")
    registry.set_credential(payload.api_key)
    return SuccessResponse(message="API key set successfully")


@router.get("/models", response_model=ModelsResponse)
async def list_models_endpoint(registry: ProviderRegistry = Depends(get_registry)) -> ModelsResponse:
    logger.info("Model registry listing requested.")
    return ModelsResponse(models=registry.list_models())
