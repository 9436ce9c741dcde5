"""
Concrete message sinks and model directory used by the HTTP adapter.

The chat session only talks to these through the MessageSink and
ModelDirectoryProvider protocols in session.py.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple

from .errors import ChatError
from .models import MessageRole, ModelDescriptor

logger = logging.getLogger(__name__)


@dataclass
class TranscriptEntry:
    """One visible message."""
    role: str
    text: str
    final: bool = False

    def render(self) -> str:
        prefix = "You" if self.role == MessageRole.USER.value else "Assistant"
        return f"{prefix}: {self.text}"


class Transcript:
    """
    In-memory transcript of the conversation.

    Assistant notifications for the same response update one entry in
    place until a final notification closes it.
    """

    def __init__(self):
        self.entries: List[TranscriptEntry] = []
        self.errors: List[ChatError] = []

    def message(self, role: str, text: str, is_final: bool):
        role = MessageRole(role).value
        last = self.entries[-1] if self.entries else None

        if role == MessageRole.ASSISTANT.value and last and last.role == role and not last.final:
            last.text = text
            last.final = is_final
        else:
            self.entries.append(TranscriptEntry(role=role, text=text, final=is_final))

    def error(self, error: ChatError):
        # An errored response will receive no more fragments
        if self.entries and not self.entries[-1].final:
            self.entries[-1].final = True
        self.errors.append(error)

    def last_response(self) -> Optional[str]:
        for entry in reversed(self.entries):
            if entry.role == MessageRole.ASSISTANT.value:
                return entry.text
        return None

    def as_text(self) -> str:
        return "\n\n".join(entry.render() for entry in self.entries)

    def clear(self):
        self.entries.clear()
        self.errors.clear()
        logger.info("Transcript cleared")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "entries": [
                {"role": e.role, "text": e.text, "final": e.final}
                for e in self.entries
            ],
            "errors": [e.to_dict() for e in self.errors],
        }


class StreamingSink:
    """
    Sink that forwards to another sink and queues events for streaming.

    Queue items are (event, data) tuples consumed by the SSE endpoint.
    """

    def __init__(self, forward=None):
        self.forward = forward
        self.queue: "asyncio.Queue[Optional[Tuple[str, Dict[str, Any]]]]" = asyncio.Queue()

    def message(self, role: str, text: str, is_final: bool):
        if self.forward is not None:
            self.forward.message(role, text, is_final)
        self.queue.put_nowait(("message", {"role": role, "text": text, "is_final": is_final}))

    def error(self, error: ChatError):
        if self.forward is not None:
            self.forward.error(error)
        self.queue.put_nowait(("error", error.to_dict()))

    def close(self):
        """Signal the consumer that no more events follow."""
        self.queue.put_nowait(None)


@dataclass
class ModelDirectory:
    """Models offered for selection, with the current choice."""
    models: List[ModelDescriptor] = field(default_factory=list)
    selected: Optional[str] = None
    is_fallback: bool = False

    def populate(self, models: Sequence[ModelDescriptor]):
        self.models = list(models)
        self.is_fallback = False
        names = self.names
        if self.selected not in names:
            self.selected = names[0] if names else None
        logger.info(f"Model directory populated: {names}")

    def use_fallback(self, name: str):
        self.models = [ModelDescriptor(name=name)]
        self.selected = name
        self.is_fallback = True
        logger.info(f"Using fallback model: {name}")

    def select(self, name: str) -> bool:
        if name not in self.names:
            logger.warning(f"Cannot select unknown model: {name}")
            return False
        self.selected = name
        return True

    @property
    def names(self) -> List[str]:
        return [m.name for m in self.models]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "models": [m.model_dump(exclude_none=True) for m in self.models],
            "selected": self.selected,
            "fallback": self.is_fallback,
        }
