"""Ollama API streaming client."""

import json
import logging
from typing import AsyncIterator, List, Optional

import httpx
from pydantic import ValidationError as PydanticValidationError

from .config import config
from .errors import ConnectivityError
from .models import GenerationRequest, ModelDescriptor

logger = logging.getLogger(__name__)


class OllamaClient:
    """
    Async client for the Ollama REST API.

    Handles:
    - Model listing (/api/tags)
    - Streaming generation (/api/generate), exposed as raw byte chunks

    All httpx failures are translated to ConnectivityError here so that
    callers never see transport-specific exceptions.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[httpx.Timeout] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        timeout = timeout or httpx.Timeout(config.request_timeout, connect=config.connect_timeout)
        self.client = httpx.AsyncClient(timeout=timeout, transport=transport)
        self.base_url = (base_url or config.api_base).rstrip("/")

    async def close(self):
        """Close HTTP client."""
        await self.client.aclose()

    async def list_models(self) -> List[ModelDescriptor]:
        """List models installed on the Ollama server."""
        try:
            resp = await self.client.get(f"{self.base_url}/tags")
            resp.raise_for_status()
            data = resp.json()
        except httpx.HTTPStatusError as e:
            logger.error(f"Failed to list models: HTTP {e.response.status_code}")
            raise _status_error(e.response.status_code, e.response.text) from e
        except httpx.HTTPError as e:
            logger.error(f"Failed to list models: {e}")
            raise ConnectivityError() from e
        except json.JSONDecodeError as e:
            logger.error(f"Model list is not valid JSON: {e}")
            raise ConnectivityError(
                "Unexpected response from Ollama API.",
                "The model list could not be parsed.",
            ) from e

        logger.debug(f"Ollama API connection successful: {data}")

        entries = data.get("models") if isinstance(data, dict) else None
        if not entries:
            return []
        if not isinstance(entries, list):
            logger.error(f"Model list has unexpected type: {type(entries).__name__}")
            raise ConnectivityError(
                "Unexpected response from Ollama API.",
                "The model list could not be parsed.",
            )

        models: List[ModelDescriptor] = []
        seen = set()
        for entry in entries:
            try:
                model = ModelDescriptor.model_validate(entry)
            except PydanticValidationError:
                logger.warning(f"Skipping model entry without a name: {entry!r}")
                continue
            if model.name in seen:
                continue
            seen.add(model.name)
            models.append(model)

        logger.info(f"Found {len(models)} models")
        return models

    async def generate(self, request: GenerationRequest) -> AsyncIterator[bytes]:
        """
        Stream a generation from Ollama.

        Yields raw byte chunks exactly as they arrive. A chunk may hold
        any number of NDJSON lines, and a line may span chunks; framing
        is the caller's job. The stream ends when the server closes it.

        The HTTP response is released when this generator is closed, so
        callers should wrap it in contextlib.aclosing().
        """
        logger.info(f"Starting generation stream: model={request.model}, "
                    f"prompt={len(request.prompt)} chars")

        try:
            async with self.client.stream(
                "POST",
                f"{self.base_url}/generate",
                json=request.model_dump(),
            ) as response:
                if response.is_error:
                    body = (await response.aread()).decode("utf-8", errors="replace")
                    logger.error(f"Ollama HTTP error: {response.status_code}")
                    raise _status_error(response.status_code, body)

                async for chunk in response.aiter_bytes():
                    if chunk:
                        yield chunk

        except httpx.HTTPError as e:
            logger.error(f"Ollama stream error: {e!r}")
            raise ConnectivityError() from e

        logger.debug("Stream complete")


def _status_error(status_code: int, body: str) -> ConnectivityError:
    """Build a status ConnectivityError, pulling the server's error text."""
    server_message = None
    try:
        data = json.loads(body)
        if isinstance(data, dict) and isinstance(data.get("error"), str):
            server_message = data["error"]
    except (json.JSONDecodeError, TypeError):
        pass
    return ConnectivityError.from_status(status_code, body or None, server_message)
