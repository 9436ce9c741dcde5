"""Client configuration."""

import os
from dataclasses import dataclass, field

from dotenv import load_dotenv

load_dotenv()


@dataclass
class Config:
    """Configuration loaded from environment variables."""

    # Adapter server
    host: str = field(default_factory=lambda: os.getenv("CHAT_HOST", "0.0.0.0"))
    port: int = field(default_factory=lambda: int(os.getenv("CHAT_PORT", "8080")))
    debug: bool = field(default_factory=lambda: bool(os.getenv("DEBUG")))

    # Ollama
    ollama_url: str = field(default_factory=lambda: os.getenv("OLLAMA_URL", "http://127.0.0.1:11434"))
    fallback_model: str = field(default_factory=lambda: os.getenv("FALLBACK_MODEL", "llama2"))
    request_timeout: float = field(default_factory=lambda: float(os.getenv("REQUEST_TIMEOUT", "300")))
    connect_timeout: float = field(default_factory=lambda: float(os.getenv("CONNECT_TIMEOUT", "10")))

    @property
    def api_base(self) -> str:
        """Base URL of the Ollama REST API."""
        return f"{self.ollama_url.rstrip('/')}/api"


# Global config instance
config = Config()
