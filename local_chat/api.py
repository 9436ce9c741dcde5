"""
HTTP adapter endpoints for a browser front end.

The browser page calls these instead of touching the session directly:
status and model endpoints feed the status line and model dropdown,
/api/chat streams transcript updates as server-sent events.
"""

import asyncio
import json
import logging
from typing import AsyncIterator

from fastapi import APIRouter, Request
from fastapi.responses import StreamingResponse

from .collaborators import StreamingSink
from .models import SelectModelRequest, SendRequest
from .session import ChatSession

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api")


def _session(request: Request) -> ChatSession:
    return request.app.state.session


def _status(session: ChatSession) -> dict:
    status = session.state.snapshot()
    status["selected_model"] = session.directory.selected
    return status


@router.get("/status")
async def get_status(request: Request):
    """Connection/generation state and derived UI gating."""
    return _status(_session(request))


@router.post("/connect")
async def connect(request: Request):
    """Re-run the connection check and refresh the model list."""
    session = _session(request)
    connected = await session.connect()
    logger.info(f"Connection check: {'connected' if connected else 'disconnected'}")
    return _status(session)


@router.get("/models")
async def list_models(request: Request):
    """Models offered in the dropdown."""
    return _session(request).directory.to_dict()


@router.post("/models/select")
async def select_model(body: SelectModelRequest, request: Request):
    """Change the selected model."""
    directory = _session(request).directory
    selected = directory.select(body.name)
    return {"selected": directory.selected, "accepted": selected}


@router.post("/chat")
async def chat(body: SendRequest, request: Request):
    """
    Send a prompt and stream the answer.

    Events:
    - message: {"role", "text", "is_final"} - transcript update
    - error: {"category", "severity", "message", "details"} - categorised failure
    - state: final state snapshot
    followed by `data: [DONE]`.
    """
    session = _session(request)
    logger.info(f"Chat request: model={body.model or session.directory.selected}, "
                f"prompt={len(body.prompt)} chars")

    return StreamingResponse(
        _stream_send(session, body),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
        },
    )


async def _stream_send(session: ChatSession, body: SendRequest) -> AsyncIterator[str]:
    """Run one send and relay its sink events as SSE."""
    sink = StreamingSink(forward=session.sink)
    task = asyncio.create_task(session.send(body.prompt, body.model, sink=sink))
    task.add_done_callback(lambda _: sink.close())

    try:
        while True:
            item = await sink.queue.get()
            if item is None:
                break
            event, data = item
            yield _format_sse_event(event, data)

        yield _format_sse_event("state", _status(session))
        yield "data: [DONE]\n\n"
    finally:
        # Client went away mid-stream
        if not task.done():
            logger.info("Client disconnected, cancelling generation")
            task.cancel()


@router.post("/cancel")
async def cancel(request: Request):
    """Stop the in-flight generation."""
    session = _session(request)
    return {"cancelled": session.cancel()}


@router.get("/transcript")
async def get_transcript(request: Request):
    """Messages shown so far, plus a plain-text rendering."""
    transcript = request.app.state.transcript
    data = transcript.to_dict()
    data["text"] = transcript.as_text()
    return data


@router.delete("/transcript")
async def clear_transcript(request: Request):
    """Clear all responses."""
    request.app.state.transcript.clear()
    return {"status": "ok"}


def _format_sse_event(event_type: str, data: dict) -> str:
    """Format custom event as SSE."""
    return f"event: {event_type}\ndata: {json.dumps(data)}\n\n"
