"""Abstract base class for content providers."""

from abc import ABC, abstractmethod
from typing import Any

import httpx

from visiontv.config import Config, get_config

BROWSER_ACCEPT = "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8"
ACCEPT_LANGUAGE = "ru-RU,ru;q=0.9,en;q=0.8"


def decode_body(data: bytes) -> str:
    """Decode a page body, preferring cp1251 and falling back to UTF-8."""
    try:
        return data.decode("cp1251")
    except UnicodeDecodeError:
        return data.decode("utf-8", errors="replace")


def absolute_url(origin: str, path: str) -> str:
    """Prefix relative paths with the site origin."""
    if not path or path.startswith("http"):
        return path
    return f"{origin.rstrip('/')}{path}"


class Provider(ABC):
    """Base class for all content providers.

    Each provider owns one ``httpx.AsyncClient``; its cookie jar is shared by
    every request made to the site. Pass ``client`` to substitute a transport.
    """

    def __init__(self, config: Config | None = None, client: httpx.AsyncClient | None = None):
        self.config = config or get_config()
        self._owns_client = client is None
        self.client = client or httpx.AsyncClient(
            timeout=self.config.request_timeout,
            follow_redirects=True,
        )

    @property
    @abstractmethod
    def name(self) -> str:
        """Provider name for display."""
        ...

    @property
    @abstractmethod
    def base_url(self) -> str:
        """Site origin."""
        ...

    @abstractmethod
    async def search(self, query: str, *args: Any) -> Any:
        """Search for content."""
        ...

    async def aclose(self) -> None:
        if self._owns_client:
            await self.client.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()
