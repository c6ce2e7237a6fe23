# api/routers/chat.py
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Request
from fastapi.responses import StreamingResponse

from api.dependencies import get_relay
from core.chat_orchestrator import StreamingRelay
from schemas.chat_schemas import ChatRequest, ClearSessionRequest, ErrorResponse, SuccessResponse

logger = logging.getLogger(__name__)

router = APIRouter(
    tags=["Chat"]
)

STREAM_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}


@router.post(
    "/chat",
    response_class=StreamingResponse,
    responses={
        200: {"content": {"text/event-stream": {}}},
        400: {"model": ErrorResponse},
    },
)
async def chat_endpoint(
        payload: ChatRequest,
        request: Request,
        relay: StreamingRelay = Depends(get_relay),
):
    """
    Handles an incoming chat request and returns a real-time streaming response.

    Validation failures raise before the stream is opened and are rendered as
    a plain JSON error. Once streaming starts, failures arrive as a terminal
    `{"error": ..., "done": true}` frame instead.
    """
    logger.info(f"Received streaming chat request for session_id: '{payload.session_id}'")

    stream = relay.open_stream(
        message=payload.message,
        model_key=payload.model,
        session_id=payload.session_id,
        is_disconnected=request.is_disconnected,
    )
    return StreamingResponse(stream, media_type="text/event-stream", headers=STREAM_HEADERS)


@router.post("/clear-session", response_model=SuccessResponse)
async def clear_session_endpoint(
        payload: Optional[ClearSessionRequest] = None,
        relay: StreamingRelay = Depends(get_relay),
) -> SuccessResponse:
    """Forgets a session's history. Unknown sessions are cleared trivially."""
    session_id = (payload.session_id if payload else None) or relay.settings.default_session_id
    relay.sessions.clear(session_id)
    return SuccessResponse(message="Chat history cleared")
