"""Fact source holding the corpus of annotation values.

The corpus is loaded once at startup from an http(s) endpoint or a local file
and is read-only afterwards. Each call to `FactSource.next` returns one fact
chosen uniformly at random.
"""

import json
import logging
import random
from pathlib import Path
from typing import Any
from urllib.parse import urlparse

import aiofiles
import httpx

from fact_annotator.config import FactSourceConfig
from fact_annotator.exceptions import FactSourceException, InputException
from fact_annotator.manifest import Fact, parse_facts

__all__ = [
    "FactSource",
]

_LOGGER = logging.getLogger(__name__)

HEADERS = {
    "Accept": "application/json",
    "Content-Type": "application/json",
}


class FactSource:
    """Holds an in-memory list of facts and returns a random one on request."""

    def __init__(
        self,
        config: FactSourceConfig | None = None,
        client: httpx.AsyncClient | None = None,
        rng: random.Random | None = None,
    ) -> None:
        """Initialize the FactSource.

        Args:
            config: Configuration for fetching and filtering the corpus.
            client: Optional http client, a new one is created per fetch otherwise.
            rng: Optional random generator used for the whole process lifetime.
        """
        self._config = config or FactSourceConfig()
        self._client = client
        self._rng = rng or random.Random()
        self._facts: list[Fact] | None = None

    @property
    def facts(self) -> list[Fact]:
        """Return the loaded facts."""
        return list(self._facts or ())

    @property
    def initialized(self) -> bool:
        """Return True once the corpus was loaded."""
        return self._facts is not None

    def __len__(self) -> int:
        return len(self._facts or ())

    async def initialize(self, location: str | None = None) -> None:
        """Fetch and decode the corpus.

        Args:
            location: An http(s) URL, a file:// URL or a local path. Defaults
                to the configured url.

        Raises:
            FactSourceException: If the corpus cannot be fetched or decoded.
        """
        location = location or self._config.url
        _LOGGER.info("Loading facts from %s", location)
        url = urlparse(location)
        if url.scheme in ("http", "https"):
            payload = await self._fetch_http(location)
        elif url.scheme in ("file", ""):
            payload = await self._read_file(Path(url.path or location))
        else:
            raise FactSourceException(
                f"Unsupported fact source location '{location}'"
            )
        try:
            facts = parse_facts(payload)
        except InputException as err:
            raise FactSourceException(
                f"Failed to decode facts from {location}: {err}"
            ) from err
        if self._config.category:
            facts = [fact for fact in facts if fact.category == self._config.category]
        if not facts:
            _LOGGER.warning("Fact source %s returned no usable facts", location)
        self._facts = facts
        _LOGGER.info("Loaded %d facts", len(facts))

    async def _fetch_http(self, url: str) -> Any:
        """Fetch the json corpus from an http endpoint."""
        try:
            if self._client is not None:
                response = await self._client.get(
                    url, headers=HEADERS, timeout=self._config.timeout
                )
            else:
                async with httpx.AsyncClient(timeout=self._config.timeout) as client:
                    response = await client.get(url, headers=HEADERS)
            response.raise_for_status()
        except httpx.HTTPStatusError as err:
            raise FactSourceException(
                f"Failed to get facts from {url}: status {err.response.status_code}"
            ) from err
        except httpx.HTTPError as err:
            raise FactSourceException(f"Failed to get facts from {url}: {err}") from err
        try:
            return response.json()
        except ValueError as err:
            raise FactSourceException(
                f"Failed to get facts from {url}: invalid json: {err}"
            ) from err

    async def _read_file(self, path: Path) -> Any:
        """Read the json corpus from a local file."""
        try:
            async with aiofiles.open(path.expanduser(), mode="r") as fd:
                content = await fd.read()
        except OSError as err:
            raise FactSourceException(f"Failed to read facts from {path}: {err}") from err
        try:
            return json.loads(content)
        except ValueError as err:
            raise FactSourceException(
                f"Failed to read facts from {path}: invalid json: {err}"
            ) from err

    def next(self) -> Fact:
        """Return one fact chosen uniformly at random.

        Raises:
            FactSourceException: If the corpus was not loaded or is empty.
        """
        if self._facts is None:
            raise FactSourceException("Fact source was not initialized")
        if not self._facts:
            raise FactSourceException("Fact source has no facts to choose from")
        return self._facts[self._rng.randrange(len(self._facts))]
