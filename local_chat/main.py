"""
Local Chat - Main Entry Point

HTTP adapter for a browser chat client talking to a local Ollama
server. The browser page drives the chat session through /api/*;
responses stream back as server-sent events.

Usage:
    python -m local_chat.main
    uvicorn --factory local_chat.main:create_app

Environment Variables:
    CHAT_HOST        - Server host (default: 0.0.0.0)
    CHAT_PORT        - Server port (default: 8080)
    OLLAMA_URL       - Ollama server URL (default: http://127.0.0.1:11434)
    FALLBACK_MODEL   - Model offered when the list is unavailable (default: llama2)
    REQUEST_TIMEOUT  - Generation read timeout in seconds (default: 300)
    CONNECT_TIMEOUT  - Connect timeout in seconds (default: 10)
    DEBUG            - Enable debug logging
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from . import __version__
from .api import router as api_router
from .collaborators import ModelDirectory, Transcript
from .config import config
from .ollama_client import OllamaClient
from .session import ChatSession

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if config.debug else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)],
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application startup and shutdown lifecycle."""
    session: ChatSession = app.state.session

    # Startup
    logger.info("=" * 60)
    logger.info("Local Chat Starting")
    logger.info("=" * 60)
    logger.info(f"Ollama URL: {config.ollama_url}")
    logger.info(f"Fallback model: {session.fallback_model}")

    if await session.connect():
        logger.info(f"Models: {session.directory.names}")
    else:
        logger.warning("Ollama not reachable - sends will retry the connection")

    logger.info("-" * 60)
    logger.info(f"Server ready at http://{config.host}:{config.port}")
    logger.info("=" * 60)

    yield

    # Shutdown
    logger.info("Shutting down...")
    session.cancel()
    await session.client.close()
    logger.info("Shutdown complete")


def create_app(session: Optional[ChatSession] = None) -> FastAPI:
    """Build the adapter app around a chat session."""
    if session is None:
        session = ChatSession(
            client=OllamaClient(),
            sink=Transcript(),
            directory=ModelDirectory(),
        )

    app = FastAPI(
        title="Local Chat",
        description="Browser chat client backend for a local Ollama server.",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.session = session
    app.state.transcript = session.sink

    # Add CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(api_router)

    @app.get("/health")
    async def health():
        """Health check endpoint."""
        return {
            "status": "healthy",
            "ollama_url": config.ollama_url,
            "connection": session.state.connection.value,
            "generation": session.state.generation.value,
            "model": session.directory.selected,
        }

    @app.get("/")
    async def root():
        """Root endpoint with basic info."""
        return {
            "name": "Local Chat",
            "version": __version__,
            "endpoints": {
                "status": "/api/status",
                "connect": "/api/connect",
                "models": "/api/models",
                "chat": "/api/chat",
                "cancel": "/api/cancel",
                "transcript": "/api/transcript",
                "health": "/health",
            },
        }

    return app


def main():
    """Run the adapter server."""
    uvicorn.run(
        "local_chat.main:create_app",
        factory=True,
        host=config.host,
        port=config.port,
        reload=False,
        log_level="debug" if config.debug else "info",
    )


if __name__ == "__main__":
    main()
