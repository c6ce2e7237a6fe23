# api/routers/legacy.py
"""
Mounts the original client's `/api/...` paths onto the current handlers.

Older front-end builds post to `/api/set-key`, `/api/chat` and `/api/clear`;
these routes keep them working without appearing in the OpenAPI schema.
"""
from fastapi import APIRouter
from fastapi.responses import StreamingResponse

from api.routers.chat import chat_endpoint, clear_session_endpoint
from api.routers.credentials import list_models_endpoint, set_credential_endpoint
from schemas.chat_schemas import ModelsResponse, SuccessResponse

router = APIRouter(
    prefix="/api",
    tags=["Legacy"],
    include_in_schema=False,
)

router.add_api_route("/set-key", set_credential_endpoint, methods=["POST"], response_model=SuccessResponse)
router.add_api_route("/chat", chat_endpoint, methods=["POST"], response_class=StreamingResponse)
router.add_api_route("/clear", clear_session_endpoint, methods=["POST"], response_model=SuccessResponse)
router.add_api_route("/models", list_models_endpoint, methods=["GET"], response_model=ModelsResponse)
