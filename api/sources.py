"""Acquisition of deck description text from files or HTTP."""

import asyncio
from abc import ABC, abstractmethod
from pathlib import Path

import httpx

from config import DeckConfig, config
from core.errors import AcquisitionError


class DeckSource(ABC):
    """Abstract source of deck description text."""

    @abstractmethod
    async def fetch(self) -> str:
        """
        Fetch the deck description.

        Raises:
            AcquisitionError: If the text could not be obtained
        """
        ...


class FileDeckSource(DeckSource):
    """Deck description stored on the local filesystem."""

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)

    async def fetch(self) -> str:
        """Read the file as UTF-8 text."""
        try:
            return await asyncio.to_thread(self._path.read_text, encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise AcquisitionError(f"Failed to load {self._path.name}: {e}") from e

    def __repr__(self) -> str:
        return f"FileDeckSource({str(self._path)!r})"


class HttpDeckSource(DeckSource):
    """Deck description served over HTTP."""

    def __init__(
        self,
        url: str,
        timeout: float = 5.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._url = url
        self._timeout = timeout
        self._transport = transport

    async def fetch(self) -> str:
        """GET the URL; any non-2xx status is a failure."""
        try:
            async with httpx.AsyncClient(
                timeout=self._timeout, transport=self._transport
            ) as client:
                response = await client.get(self._url)
        except httpx.HTTPError as e:
            raise AcquisitionError(f"Failed to load {self._url}: {e}") from e

        if not response.is_success:
            raise AcquisitionError(
                f"Failed to load {self._url}: "
                f"{response.status_code} {response.reason_phrase}"
            )
        return response.text

    def __repr__(self) -> str:
        return f"HttpDeckSource({self._url!r})"


class StaticDeckSource(DeckSource):
    """Deck description already held in memory."""

    def __init__(self, text: str) -> None:
        self._text = text

    async def fetch(self) -> str:
        return self._text


def deck_source_from_config(deck_config: DeckConfig | None = None) -> DeckSource:
    """Build the configured deck source."""
    deck_config = deck_config or config.deck
    if deck_config.is_remote:
        return HttpDeckSource(deck_config.source, timeout=deck_config.fetch_timeout)
    return FileDeckSource(deck_config.source)
