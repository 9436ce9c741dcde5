"""Connection and generation state."""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List

from .errors import GenerationInProgressError
from .models import ConnectionState, GenerationState

logger = logging.getLogger(__name__)

CONNECTION_HELP = [
    "Is Ollama installed? Download it from https://ollama.ai/download",
    "Is the Ollama service running?",
    "Is it running on the default port (11434)?",
]

_STATUS_TEXT = {
    ConnectionState.CONNECTING: "Connecting to Ollama...",
    ConnectionState.CONNECTED: "Connected to Ollama",
    ConnectionState.DISCONNECTED: "Disconnected from Ollama",
}


@dataclass
class ChatState:
    """
    State of one chat client, on two independent axes.

    Tracks:
    - Connection (DISCONNECTED / CONNECTING / CONNECTED), moved only by
      connection checks
    - Generation (IDLE / GENERATING), moved only by a send and its cleanup

    Everything the interface gates on (send button, status line, help
    text) is derived from these two values.
    """
    connection: ConnectionState = ConnectionState.DISCONNECTED
    generation: GenerationState = GenerationState.IDLE

    def start_connecting(self):
        self._set_connection(ConnectionState.CONNECTING)

    def mark_connected(self):
        self._set_connection(ConnectionState.CONNECTED)

    def mark_disconnected(self):
        self._set_connection(ConnectionState.DISCONNECTED)

    def begin_generation(self):
        """IDLE -> GENERATING. Refuses a second concurrent generation."""
        if self.generation == GenerationState.GENERATING:
            raise GenerationInProgressError()
        self.generation = GenerationState.GENERATING
        logger.debug("Generation state -> GENERATING")

    def end_generation(self) -> bool:
        """Return to IDLE. Returns False if already idle."""
        if self.generation == GenerationState.IDLE:
            return False
        self.generation = GenerationState.IDLE
        logger.debug("Generation state -> IDLE")
        return True

    @property
    def is_connected(self) -> bool:
        return self.connection == ConnectionState.CONNECTED

    @property
    def is_generating(self) -> bool:
        return self.generation == GenerationState.GENERATING

    @property
    def can_send(self) -> bool:
        # Disconnected still allows sending so the user can retry
        if self.connection == ConnectionState.CONNECTING:
            return False
        return not self.is_generating

    @property
    def status_text(self) -> str:
        return _STATUS_TEXT[self.connection]

    @property
    def send_label(self) -> str:
        return "Generating..." if self.is_generating else "Send"

    @property
    def connection_help(self) -> List[str]:
        if self.connection == ConnectionState.DISCONNECTED:
            return list(CONNECTION_HELP)
        return []

    def snapshot(self) -> Dict[str, Any]:
        """Plain-dict view for the HTTP adapter."""
        return {
            "connection": self.connection.value,
            "generation": self.generation.value,
            "can_send": self.can_send,
            "status_text": self.status_text,
            "send_label": self.send_label,
            "connection_help": self.connection_help,
        }

    def _set_connection(self, value: ConnectionState):
        if value != self.connection:
            logger.debug(f"Connection state {self.connection.value} -> {value.value}")
        self.connection = value
