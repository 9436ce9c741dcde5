"""
Chat session: drives a prompt through the generation stream.

A send moves through:
- input validation (no network call for an empty prompt)
- one reconnect attempt when not connected
- Ollama /api/generate -> LineFramer -> StreamDecoder
- fragment aggregation, forwarded to the message sink after every fragment

Whatever way the stream ends (terminal record, server close, transport
error, cancellation) the generation state returns to IDLE before any
error is reported.
"""

import asyncio
import logging
from contextlib import aclosing
from typing import Optional, Protocol, Sequence

from .config import config
from .decoder import StreamDecoder
from .errors import (
    ChatError,
    ConnectivityError,
    GenerationError,
    GenerationInProgressError,
    ValidationError,
    classify_error,
)
from .framing import LineFramer
from .models import (
    AggregatedResponse,
    GenerationRequest,
    MessageRole,
    ModelDescriptor,
    StreamRecord,
)
from .ollama_client import OllamaClient
from .state import CONNECTION_HELP, ChatState

logger = logging.getLogger(__name__)


class MessageSink(Protocol):
    """Receives transcript updates and categorised errors."""

    def message(self, role: str, text: str, is_final: bool) -> None: ...

    def error(self, error: ChatError) -> None: ...


class ModelDirectoryProvider(Protocol):
    """Presents the model list and reports the current selection."""

    selected: Optional[str]

    def populate(self, models: Sequence[ModelDescriptor]) -> None: ...

    def use_fallback(self, name: str) -> None: ...


class ChatSession:
    """
    Single-user chat session against one Ollama server.

    Owns the ChatState and at most one in-flight generation. The
    client, sink and directory are injected so the session has no
    knowledge of how messages are displayed.
    """

    def __init__(
        self,
        client: OllamaClient,
        sink: MessageSink,
        directory: ModelDirectoryProvider,
        state: Optional[ChatState] = None,
        fallback_model: Optional[str] = None,
    ):
        self.client = client
        self.sink = sink
        self.directory = directory
        self.state = state or ChatState()
        self.fallback_model = fallback_model or config.fallback_model
        self.last_response: Optional[AggregatedResponse] = None
        self._task: Optional[asyncio.Task] = None

    async def connect(self) -> bool:
        """Check the server and populate the model directory."""
        self.state.start_connecting()

        try:
            models = await self.client.list_models()
        except Exception as e:
            reason = e.message if isinstance(e, ConnectivityError) else repr(e)
            logger.error(f"Error connecting to Ollama API: {reason}")
            self.directory.use_fallback(self.fallback_model)
            self.state.mark_disconnected()
            return False

        if not models:
            logger.warning("No models found in Ollama API response")
            self.directory.use_fallback(self.fallback_model)
            self.state.mark_disconnected()
            return False

        self.directory.populate(models)
        self.state.mark_connected()
        return True

    async def send(
        self,
        prompt: str,
        model: Optional[str] = None,
        sink: Optional[MessageSink] = None,
    ) -> Optional[AggregatedResponse]:
        """
        Send a prompt and stream the answer into the sink.

        Returns the aggregated response (possibly partial if the stream
        failed), or None if the send was rejected before generating.
        Categorised errors are reported through the sink, not raised.
        """
        sink = sink or self.sink
        text = (prompt or "").strip()

        if self.state.is_generating:
            sink.error(GenerationInProgressError())
            return None

        if not text:
            sink.error(ValidationError())
            return None

        if not self.state.is_connected:
            logger.info("Not connected, attempting reconnect before send")
            if not await self.connect():
                sink.error(ConnectivityError(
                    "Cannot connect to Ollama. Please make sure Ollama is running.",
                    " ".join(CONNECTION_HELP),
                ))
                return None

        model = model or self.directory.selected or self.fallback_model

        try:
            self.state.begin_generation()
        except GenerationInProgressError as e:
            # Another send started while this one was reconnecting
            sink.error(e)
            return None

        response = AggregatedResponse(model=model)
        self.last_response = response
        self._task = asyncio.current_task()
        error: Optional[ChatError] = None

        try:
            sink.message(MessageRole.USER.value, text, True)
            await self._stream(GenerationRequest(model=model, prompt=text), response, sink)
        except asyncio.CancelledError:
            logger.info(f"Generation cancelled after {len(response.text)} chars")
            if response.text:
                # Close the partial message; no more fragments will come
                sink.message(MessageRole.ASSISTANT.value, response.text, True)
            raise
        except Exception as e:
            error = classify_error(e, model)
            logger.error(f"Error generating response: {error.message} {error.details}".rstrip())
        finally:
            self._task = None
            self.state.end_generation()

        if error is not None:
            sink.error(error)
        return response

    def cancel(self) -> bool:
        """Cancel the in-flight send, if any."""
        if self._task is None or self._task.done():
            return False
        logger.info("Cancelling generation")
        self._task.cancel()
        return True

    async def _stream(
        self,
        request: GenerationRequest,
        response: AggregatedResponse,
        sink: MessageSink,
    ):
        framer = LineFramer()
        decoder = StreamDecoder()

        async with aclosing(self.client.generate(request)) as chunks:
            async for chunk in chunks:
                for line in framer.feed(chunk):
                    if self._consume(decoder.feed(line), response, sink):
                        return

            for line in framer.flush():
                if self._consume(decoder.feed(line), response, sink):
                    return

        # Server closed without a terminal record; keep what arrived
        logger.warning("Stream ended without a done record")
        response.finish()
        sink.message(MessageRole.ASSISTANT.value, response.text, True)

    def _consume(
        self,
        record: Optional[StreamRecord],
        response: AggregatedResponse,
        sink: MessageSink,
    ) -> bool:
        """Apply one record. Returns True once the terminal record is seen."""
        if record is None:
            return False

        if record.error:
            raise GenerationError(details=record.error)

        if record.response:
            response.append(record.response)
            sink.message(MessageRole.ASSISTANT.value, response.text, False)

        if record.done:
            response.finish()
            logger.info(f"Generation complete: model={response.model}, "
                        f"chars={len(response.text)}, eval_count={record.eval_count}")
            sink.message(MessageRole.ASSISTANT.value, response.text, True)
            return True

        return False
