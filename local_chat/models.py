"""Data models for the chat client."""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict


# ============================================================================
# Ollama Wire Models
# ============================================================================

class ModelDescriptor(BaseModel):
    """Model entry from /api/tags."""
    model_config = ConfigDict(frozen=True, extra="ignore")

    name: str
    size: Optional[int] = None
    modified_at: Optional[str] = None
    digest: Optional[str] = None


class GenerationRequest(BaseModel):
    """Body of a /api/generate call."""
    model_config = ConfigDict(frozen=True)

    model: str
    prompt: str
    stream: bool = True


class StreamRecord(BaseModel):
    """One decoded line of a /api/generate stream."""
    model_config = ConfigDict(extra="ignore")

    response: Optional[str] = None
    done: bool = False
    error: Optional[str] = None
    model: Optional[str] = None
    done_reason: Optional[str] = None
    total_duration: Optional[int] = None
    eval_count: Optional[int] = None


# ============================================================================
# Adapter Request Models
# ============================================================================

class SendRequest(BaseModel):
    """Chat request from the browser."""
    prompt: str = ""
    model: Optional[str] = None


class SelectModelRequest(BaseModel):
    """Model selection from the browser."""
    name: str


# ============================================================================
# Internal State Models
# ============================================================================

class ConnectionState(str, Enum):
    """Connection to the Ollama server."""
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"


class GenerationState(str, Enum):
    """Generation state."""
    IDLE = "idle"
    GENERATING = "generating"


class MessageRole(str, Enum):
    """Author of a transcript message."""
    USER = "user"
    ASSISTANT = "assistant"


@dataclass
class AggregatedResponse:
    """
    Assistant text assembled from stream fragments.

    Fragments are concatenated in arrival order. Once finish() is called
    the text is final and further appends are rejected.
    """
    model: str
    text: str = ""
    done: bool = False

    def append(self, fragment: str) -> str:
        if self.done:
            raise RuntimeError("Cannot append to a finished response")
        self.text += fragment
        return self.text

    def finish(self):
        self.done = True
