# api/session_manager.py
"""
Manages conversation sessions in process memory.

Each session is an ordered list of ChatMessage turns keyed by a caller-supplied
session ID. Nothing is persisted: sessions live until they are cleared or the
process exits. All access happens on the single asyncio event loop, so no lock
is taken; concurrent requests to the same session interleave turn by turn.
"""
import logging
from typing import Dict, List, Tuple

from schemas.chat_schemas import ChatMessage

logger = logging.getLogger(__name__)


class SessionStore:
    """In-memory mapping from session ID to its ordered conversation history."""

    def __init__(self):
        self._sessions: Dict[str, List[ChatMessage]] = {}

    def append(self, session_id: str, turn: ChatMessage) -> None:
        """Appends a turn to the session, creating the session on first reference."""
        history = self._sessions.setdefault(session_id, [])
        history.append(turn)
        logger.debug(f"Appended '{turn.role}' turn to session '{session_id}' ({len(history)} turns).")

    def get_context(self, session_id: str) -> Tuple[ChatMessage, ...]:
        """Returns a snapshot of the session's turns in creation order (empty if unknown)."""
        return tuple(self._sessions.get(session_id, ()))

    def clear(self, session_id: str) -> None:
        """Removes the session entirely. Clearing an unknown session is a no-op."""
        if self._sessions.pop(session_id, None) is not None:
            logger.info(f"History cleared for session_id: {session_id}")

    def clear_all(self) -> None:
        count = len(self._sessions)
        self._sessions.clear()
        logger.info(f"Discarded {count} in-memory session(s).")

    def __contains__(self, session_id: object) -> bool:
        return session_id in self._sessions

    def __len__(self) -> int:
        return len(self._sessions)
