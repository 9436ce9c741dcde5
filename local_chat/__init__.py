"""
Local Chat

Streaming chat client for a locally hosted Ollama server.

Components:
- ollama_client: model listing and raw generation stream
- framing: newline framing of byte chunks
- decoder: NDJSON stream records
- state: connection/generation state machine
- session: send orchestration and error reporting
- api: HTTP adapter for a browser front end
"""

__version__ = "0.1.0"

from .errors import (
    ChatError,
    ConnectivityError,
    DecodeError,
    GenerationError,
    GenerationInProgressError,
    ModelNotInstalledError,
    ValidationError,
)
from .session import ChatSession
