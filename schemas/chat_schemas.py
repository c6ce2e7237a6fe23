# schemas/chat_schemas.py
import logging
from typing import List, Literal, Optional
from pydantic import BaseModel, ConfigDict, Field

logger = logging.getLogger(__name__)


class ChatMessage(BaseModel):
    """Represents a single turn in the conversation history. Immutable once created."""
    model_config = ConfigDict(frozen=True)

    role: Literal["user", "assistant"] = Field(..., examples=["user", "assistant"])
    content: str


class ChatRequest(BaseModel):
    """Defines the structure for a chat request body."""
    model_config = ConfigDict(populate_by_name=True)

    # Left optional so that credential and emptiness checks happen in the relay, in order.
    message: Optional[str] = None
    model: Optional[str] = Field(default=None, examples=["llama-3-70b"])
    session_id: Optional[str] = Field(default=None, alias="sessionId")


class SetCredentialRequest(BaseModel):
    """Body of POST /set-credential."""
    model_config = ConfigDict(populate_by_name=True)

    api_key: Optional[str] = Field(default=None, alias="apiKey")


class ClearSessionRequest(BaseModel):
    """Body of POST /clear-session."""
    model_config = ConfigDict(populate_by_name=True)

    session_id: Optional[str] = Field(default=None, alias="sessionId")


class ModelDescriptor(BaseModel):
    """A user-facing model key mapped to the provider's model identifier."""
    model_config = ConfigDict(frozen=True)

    id: str = Field(..., examples=["llama-3-70b"])
    name: str = Field(..., examples=["Llama 3 70B"])
    model: str = Field(..., examples=["llama3-70b-8192"])


class ModelsResponse(BaseModel):
    models: List[ModelDescriptor]


class SuccessResponse(BaseModel):
    success: bool = True
    message: str


class ErrorResponse(BaseModel):
    """Non-streamed error body returned before any stream is opened."""
    error: str


class HealthResponse(BaseModel):
    status: str = "OK"
    timestamp: str


# --- Stream Frames ---
# Each frame travels as `data: <JSON>\n\n` on a text/event-stream response.

class ContentFrame(BaseModel):
    content: str
    done: Literal[False] = False


class DoneFrame(BaseModel):
    content: Literal[""] = ""
    done: Literal[True] = True


class ErrorFrame(BaseModel):
    error: str
    done: Literal[True] = True
