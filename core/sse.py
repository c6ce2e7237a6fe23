# core/sse.py
"""
Encoder and incremental decoder for the relay's server-sent-event framing.

Grammar of one frame:

    frame      = "data: " json-object LF LF
    json-object = a single-line JSON document

The decoder is more lenient than the encoder: it accepts CRLF line endings,
ignores comment lines (starting with ":") and non-data fields, and joins
multi-line data fields with LF as the SSE standard requires.
"""
import json
from typing import Any, Dict, List

from pydantic import BaseModel

from schemas.chat_schemas import ContentFrame, DoneFrame, ErrorFrame

DATA_PREFIX = "data:"
FRAME_SEPARATOR = "\n\n"


def encode_frame(frame: BaseModel) -> str:
    """Serializes a frame model as one `data: <JSON>\\n\\n` event."""
    return f"{DATA_PREFIX} {frame.model_dump_json()}{FRAME_SEPARATOR}"


def content_frame(content: str) -> str:
    return encode_frame(ContentFrame(content=content))


def done_frame() -> str:
    return encode_frame(DoneFrame())


def error_frame(message: str) -> str:
    return encode_frame(ErrorFrame(error=message))


class SSEDecoder:
    """
    Incrementally decodes a text/event-stream body into JSON payloads.

    Feed it chunks as they arrive; each call returns the frames completed by
    that chunk. Partial frames are buffered until their terminating blank line.
    """

    def __init__(self):
        self._buffer = ""

    def feed(self, chunk: str) -> List[Dict[str, Any]]:
        self._buffer += chunk.replace("\r\n", "\n")
        frames = []
        while FRAME_SEPARATOR in self._buffer:
            block, self._buffer = self._buffer.split(FRAME_SEPARATOR, 1)
            payload = self._parse_block(block)
            if payload is not None:
                frames.append(payload)
        return frames

    @property
    def pending(self) -> str:
        """Any buffered text that has not yet formed a complete frame."""
        return self._buffer

    @staticmethod
    def _parse_block(block: str) -> Dict[str, Any] | None:
        data_lines = []
        for line in block.split("\n"):
            if not line or line.startswith(":"):
                continue
            if line.startswith(DATA_PREFIX):
                value = line[len(DATA_PREFIX):]
                data_lines.append(value[1:] if value.startswith(" ") else value)
        if not data_lines:
            return None
        try:
            return json.loads("\n".join(data_lines))
        except json.JSONDecodeError as e:
            raise ValueError(f"Malformed frame payload: {e}") from e


def decode_frames(text: str) -> List[Dict[str, Any]]:
    """Decodes a complete event-stream body. Trailing partial data is rejected."""
    decoder = SSEDecoder()
    frames = decoder.feed(text)
    if decoder.pending.strip():
        raise ValueError("Event stream ended in the middle of a frame.")
    return frames
