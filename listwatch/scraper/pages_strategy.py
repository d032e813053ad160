"""Static-site list source.

Reads the JSON layout the list site publishes:
``<base_url>/<list_type>/_list.json`` holds the keys in rank order and
``<base_url>/<list_type>/<key>.json`` holds one entity's details.
"""

import httpx
import logging
from typing import Any, List, Optional
from urllib.parse import quote

from listwatch.errors import MetadataUnavailable, SourceUnavailable
from listwatch.models.schemas import EntityMetadata
from listwatch.pipeline.normalizer import pick_display_name
from listwatch.resilience.retry import retry_async
from listwatch.scraper.base_strategy import BaseListSource, parse_key_list
from listwatch.scraper.pacer import Pacer

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://pmml.pages.dev/data"


class PagesListSource(BaseListSource):
    """Concrete source for lists published as static JSON over HTTP."""

    def __init__(
        self,
        config: dict,
        timeout: float = 30.0,
        retry_attempts: int = 2,
        client: Optional[httpx.AsyncClient] = None,
    ):
        super().__init__(config)
        self.base_url = config.get("base_url", DEFAULT_BASE_URL).rstrip("/")
        self.timeout = timeout
        self.retry_attempts = retry_attempts
        self.pacer = Pacer(base_delay=self.get_rate_limit())
        self._client = client
        self._owns_client = client is None

    def _http(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout, headers=self.get_headers())
        return self._client

    async def aclose(self):
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    def list_url(self, list_type: str) -> str:
        return f"{self.base_url}/{quote(list_type)}/_list.json"

    def entity_url(self, list_type: str, key: str) -> str:
        return f"{self.base_url}/{quote(list_type)}/{quote(key)}.json"

    async def _get_json(self, url: str) -> Any:
        async def attempt():
            response = await self._http().get(url, timeout=self.timeout)
            response.raise_for_status()
            return response.json()

        return await retry_async(attempt, attempts=self.retry_attempts, description=f"GET {url}")

    async def get_ordered_keys(self, list_type: str) -> List[str]:
        url = self.list_url(list_type)
        logger.info("Fetching %s list: %s", list_type, url)
        try:
            payload = await self._get_json(url)
        except httpx.HTTPError as e:
            raise SourceUnavailable(f"HTTP error fetching {url}: {e}", list_type) from e
        except ValueError as e:
            raise SourceUnavailable(f"Invalid JSON at {url}: {e}", list_type) from e

        keys = parse_key_list(payload, list_type)
        logger.info("%s: fetched %d keys", list_type, len(keys))
        return keys

    async def get_entity_metadata(self, list_type: str, key: str) -> EntityMetadata:
        try:
            url = self.entity_url(list_type, key)
        except ValueError as e:
            raise MetadataUnavailable(f"Cannot build a URL for key {key!r}: {e}", list_type, key) from e

        await self.pacer.delay()
        try:
            document = await self._get_json(url)
        except httpx.HTTPError as e:
            raise MetadataUnavailable(f"HTTP error fetching {url}: {e}", list_type, key) from e
        except ValueError as e:
            raise MetadataUnavailable(f"Invalid JSON at {url}: {e}", list_type, key) from e

        return EntityMetadata(display_name=pick_display_name(document, self.get_name_fields()))
