"""Base translator class."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Dict, Optional

import aiohttp

from config.constants import GEMINI_TIMEOUT_SECONDS


@dataclass
class TranslationResponse:
    """Raw model output plus what is needed to diagnose a bad response."""
    text: str
    finish_reason: Optional[str] = None
    usage: Dict[str, int] = field(default_factory=dict)


class BaseTranslator(ABC):
    """Base class for structured-output translation services."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        timeout: float = GEMINI_TIMEOUT_SECONDS,
    ):
        self.api_key = api_key
        self.timeout = timeout
        self.http_session: Optional[aiohttp.ClientSession] = None

    async def _init_http_session(self):
        """Initialize HTTP session for async requests."""
        if self.http_session is None:
            timeout = aiohttp.ClientTimeout(total=self.timeout, connect=30)
            self.http_session = aiohttp.ClientSession(timeout=timeout)
        return self.http_session

    async def _close_http_session(self):
        """Close HTTP session."""
        if self.http_session:
            await self.http_session.close()
            self.http_session = None

    @abstractmethod
    async def initialize(self):
        """Initialize the translator (open sessions, check credentials)."""
        pass

    @abstractmethod
    async def send(self, prompt: str, schema: Dict) -> TranslationResponse:
        """Send one prompt and return the raw response text."""
        pass

    async def cleanup(self):
        """Cleanup resources."""
        await self._close_http_session()
