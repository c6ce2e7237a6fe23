# core/chat_orchestrator.py
"""
The streaming relay: turns one chat request into a stream of SSE frames.

Validation happens eagerly in `open_stream` so that failures surface as a
plain error response before any stream is committed. Everything after that
point is reported in-band as a terminal error frame.
"""
import asyncio
import logging
from typing import AsyncGenerator, Awaitable, Callable, Dict, List, Optional

from api.session_manager import SessionStore
from config import Settings
from core import sse
from core.context_window import build_context_window
from core.errors import CallerDisconnected, RelayError, TransportError, UpstreamError, ValidationError
from core.llm.base import LLMService
from core.model_registry import ProviderRegistry
from schemas.chat_schemas import ChatMessage

logger = logging.getLogger(__name__)

DisconnectCheck = Callable[[], Awaitable[bool]]


class StreamingRelay:
    """Bridges chat requests to upstream streaming completions and back."""

    def __init__(self, sessions: SessionStore, registry: ProviderRegistry, settings: Settings):
        self.sessions = sessions
        self.registry = registry
        self.settings = settings

    def open_stream(
            self,
            message: Optional[str],
            model_key: Optional[str] = None,
            session_id: Optional[str] = None,
            is_disconnected: Optional[DisconnectCheck] = None,
    ) -> AsyncGenerator[str, None]:
        """
        Validates the request, records the user turn and returns the frame stream.

        Raises a RelayError (and mutates nothing) when the credential is missing,
        the message is empty or the model key is unknown.
        """
        service = self.registry.get_service()

        if not message or not message.strip():
            raise ValidationError("Empty message", public_message="Message is required")

        model_key = model_key or self.settings.default_model
        provider_model_id = self.registry.resolve_model(model_key)
        if provider_model_id is None:
            raise ValidationError(f"Unknown model key '{model_key}'", public_message="Invalid model selected")

        session_id = session_id or self.settings.default_session_id

        # The question is recorded before the first upstream byte and is kept
        # even if the completion later fails.
        self.sessions.append(session_id, ChatMessage(role="user", content=message))
        context_window = build_context_window(
            self.sessions.get_context(session_id),
            self.settings.system_prompt,
            self.settings.context_window_turns,
        )
        logger.info(
            f"Streaming '{model_key}' completion for session '{session_id}' "
            f"with {len(context_window) - 1} context turn(s)."
        )

        return self._relay(service, session_id, context_window, provider_model_id, is_disconnected)

    async def _relay(
            self,
            service: LLMService,
            session_id: str,
            context_window: List[Dict[str, str]],
            provider_model_id: str,
            is_disconnected: Optional[DisconnectCheck],
    ) -> AsyncGenerator[str, None]:
        fragments = service.stream_completion(context_window, provider_model_id)
        assistant_chunks: List[str] = []

        try:
            try:
                while True:
                    fragment = await self._next_fragment(fragments)
                    if fragment is None:
                        break
                    if is_disconnected is not None and await is_disconnected():
                        raise CallerDisconnected("Caller closed the stream")
                    if not fragment:
                        continue
                    assistant_chunks.append(fragment)
                    yield sse.content_frame(fragment)
            finally:
                await fragments.aclose()
        except CallerDisconnected:
            logger.warning(
                f"Caller disconnected from session '{session_id}' after {len(assistant_chunks)} "
                f"fragment(s); upstream abandoned, no assistant turn recorded."
            )
            return
        except asyncio.CancelledError:
            logger.warning(f"Stream for session '{session_id}' was cancelled; upstream abandoned.")
            raise
        except RelayError as e:
            logger.error(f"Stream for session '{session_id}' failed with {e.kind}: {e}")
            yield sse.error_frame(e.public_message)
            return
        except Exception as e:
            logger.critical(f"An unhandled exception occurred in stream processing: {e}", exc_info=True)
            yield sse.error_frame(UpstreamError.public_message)
            return

        assistant_content = "".join(assistant_chunks)
        self.sessions.append(session_id, ChatMessage(role="assistant", content=assistant_content))
        logger.info(f"Stored {len(assistant_content)}-char assistant turn for session '{session_id}'.")
        yield sse.done_frame()

    async def _next_fragment(self, fragments: AsyncGenerator[str, None]) -> Optional[str]:
        """Awaits the next fragment, returning None once the upstream is exhausted."""
        timeout = self.settings.fragment_idle_timeout
        try:
            if timeout is None:
                return await fragments.__anext__()
            return await asyncio.wait_for(fragments.__anext__(), timeout=timeout)
        except StopAsyncIteration:
            return None
        except asyncio.TimeoutError as e:
            raise TransportError(f"No fragment received within {timeout}s") from e
