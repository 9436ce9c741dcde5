"""
Error taxonomy for the chat client.

Every failure that reaches the user is a ChatError carrying a short
message, optional remediation details and a severity the adapter uses
to pick a colour. classify_error() turns arbitrary exceptions raised
while generating into one of these categories.
"""

import logging
from typing import Optional

logger = logging.getLogger(__name__)

# Substrings in Ollama error text that mean the model is not pulled
_MODEL_MISSING_KEYWORDS = (
    "not found",
    "try pulling it first",
    "no such model",
)


class ChatError(Exception):
    """Base class for errors surfaced through the message sink."""

    category = "error"
    severity = "error"
    default_message = "An error occurred while generating the response."

    def __init__(self, message: Optional[str] = None, details: str = ""):
        self.message = message or self.default_message
        self.details = details
        super().__init__(self.message)

    def to_dict(self) -> dict:
        return {
            "category": self.category,
            "severity": self.severity,
            "message": self.message,
            "details": self.details,
        }


class ValidationError(ChatError):
    """User input rejected before any network call."""

    category = "validation"
    severity = "warning"
    default_message = "Please enter a prompt before sending."


class GenerationInProgressError(ValidationError):
    """A send was attempted while a response is still streaming."""

    default_message = "A response is already being generated. Wait for it to finish or cancel it."


class ConnectivityError(ChatError):
    """
    Ollama endpoint unreachable or answered with a non-success status.

    For status errors the code and raw body are kept for diagnostics, and
    the `error` field of a JSON body is extracted as server_message.
    """

    category = "connectivity"
    default_message = "Network error: Could not connect to Ollama API."

    def __init__(
        self,
        message: Optional[str] = None,
        details: str = "Make sure Ollama is running and accessible.",
        status_code: Optional[int] = None,
        body: Optional[str] = None,
        server_message: Optional[str] = None,
    ):
        super().__init__(message, details)
        self.status_code = status_code
        self.body = body
        self.server_message = server_message

    @classmethod
    def from_status(
        cls,
        status_code: int,
        body: Optional[str] = None,
        server_message: Optional[str] = None,
    ) -> "ConnectivityError":
        return cls(
            f"Server error: HTTP error! Status: {status_code}",
            "The Ollama server returned an error. Check the server logs for more details.",
            status_code=status_code,
            body=body,
            server_message=server_message,
        )

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["status_code"] = self.status_code
        return data


class DecodeError(ChatError):
    """A single stream line could not be parsed as a record."""

    category = "decode"
    severity = "warning"
    default_message = "Malformed line in response stream."

    def __init__(self, line: str, reason: str = ""):
        super().__init__(self.default_message, reason)
        self.line = line


class ModelNotInstalledError(ChatError):
    """The server reported that the requested model is not available."""

    category = "model_not_installed"
    default_message = "Model not found error."

    def __init__(self, model: str, server_message: str = ""):
        super().__init__(
            self.default_message,
            f'The selected model "{model}" is not installed. '
            f'Run "ollama pull {model}" to install it.',
        )
        self.model = model
        self.server_message = server_message


class GenerationError(ChatError):
    """Server-reported or unexpected failure while generating."""

    category = "generation"


def is_model_missing(text: Optional[str]) -> bool:
    """Check if server error text says the model is not installed."""
    if not text:
        return False
    lower = text.lower()
    return any(kw in lower for kw in _MODEL_MISSING_KEYWORDS)


def classify_error(exc: BaseException, model: str) -> ChatError:
    """Map an exception raised during a send to a user-facing category."""
    if isinstance(exc, ModelNotInstalledError):
        return exc

    if isinstance(exc, ConnectivityError):
        if is_model_missing(exc.server_message) or (
            exc.status_code == 404 and is_model_missing(exc.body)
        ):
            return ModelNotInstalledError(model, exc.server_message or exc.body or "")
        return exc

    if isinstance(exc, GenerationError):
        if is_model_missing(exc.details):
            return ModelNotInstalledError(model, exc.details)
        return exc

    if isinstance(exc, ChatError):
        return exc

    logger.debug(f"Unclassified error {type(exc).__name__}: {exc}")
    return GenerationError(details=str(exc))
