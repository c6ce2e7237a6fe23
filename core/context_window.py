# core/context_window.py
"""
Builds the bounded prompt sent upstream for each completion.
"""
from typing import Dict, List, Sequence

from schemas.chat_schemas import ChatMessage

DEFAULT_MAX_TURNS = 10


def build_context_window(
        turns: Sequence[ChatMessage],
        system_instruction: str,
        max_turns: int = DEFAULT_MAX_TURNS,
) -> List[Dict[str, str]]:
    """
    Returns the system instruction followed by the last `max_turns` turns.

    Oldest turns are dropped first. The slice is a plain suffix and may begin
    with an assistant turn when the history length is odd.
    """
    if max_turns < 1:
        raise ValueError(f"max_turns must be at least 1, got {max_turns}")

    messages = [{"role": "system", "content": system_instruction}]
    for turn in turns[-max_turns:]:
        messages.append({"role": turn.role, "content": turn.content})
    return messages
