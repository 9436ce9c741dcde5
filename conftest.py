"""
Pytest Configuration and Shared Fixtures

Provides a scripted fake Ollama server (served through
httpx.MockTransport) and a sink that records every notification.
"""

import asyncio
import json

import httpx
import pytest

from local_chat.collaborators import ModelDirectory
from local_chat.ollama_client import OllamaClient
from local_chat.session import ChatSession

BASE_URL = "http://ollama.test/api"


def ndjson(*records) -> bytes:
    """Encode records as newline-delimited JSON."""
    return b"".join(json.dumps(r).encode("utf-8") + b"\n" for r in records)


class RecordingSink:
    """Message sink that keeps everything it is told."""

    def __init__(self):
        self.messages = []
        self.errors = []

    def message(self, role, text, is_final):
        self.messages.append((role, text, is_final))

    def error(self, error):
        self.errors.append(error)

    def assistant(self):
        return [m for m in self.messages if m[0] == "assistant"]


class FakeOllama:
    """
    Scripted Ollama server.

    /api/tags answers with `tags` (or raises `tags_error`);
    /api/generate streams `chunks` one by one, then raises `drop_error`
    if set. Every request is recorded.
    """

    def __init__(self):
        self.tags = {"models": [{"name": "llama3:8b"}, {"name": "mistral:7b"}]}
        self.tags_status = 200
        self.tags_error = None
        self.chunks = [ndjson({"response": "Hi"}, {"done": True})]
        self.generate_status = 200
        self.generate_body = b""
        self.drop_error = None
        self.hang = False
        self.requests = []

    @property
    def paths(self):
        return [r.url.path for r in self.requests]

    @property
    def generate_payloads(self):
        return [json.loads(r.content) for r in self.requests if r.url.path == "/api/generate"]

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)

        if request.url.path == "/api/tags":
            if self.tags_error is not None:
                raise self.tags_error
            return httpx.Response(self.tags_status, json=self.tags)

        if request.url.path == "/api/generate":
            if self.generate_status != 200:
                return httpx.Response(self.generate_status, content=self.generate_body)
            return httpx.Response(200, content=self._stream())

        return httpx.Response(404, json={"error": "not found"})

    async def _stream(self):
        for chunk in self.chunks:
            yield chunk
        if self.drop_error is not None:
            raise self.drop_error
        if self.hang:
            await asyncio.Event().wait()


@pytest.fixture
def fake_ollama():
    return FakeOllama()


@pytest.fixture
def client(fake_ollama):
    return OllamaClient(base_url=BASE_URL, transport=httpx.MockTransport(fake_ollama.handler))


@pytest.fixture
def sink():
    return RecordingSink()


@pytest.fixture
def directory():
    return ModelDirectory()


@pytest.fixture
def session(client, sink, directory):
    return ChatSession(client, sink, directory, fallback_model="llama2")
