"""Discord webhook notification channel.

Posts change text as embeds. Text longer than an embed description
allows is split on line boundaries and sent as consecutive messages.
"""

import httpx
import logging
from datetime import datetime, timezone
from functools import partial
from typing import List, Optional

from listwatch.errors import DeliveryError
from listwatch.notify.base_notifier import BaseNotifier
from listwatch.pipeline.formatter import DEFAULT_CHUNK_LIMIT, chunk_lines
from listwatch.resilience.retry import retry_async

logger = logging.getLogger(__name__)

EMBED_COLOR = 0x2B2D31
DEFAULT_TITLE = "Demon List changes - {list_type}"


class DiscordWebhookNotifier(BaseNotifier):
    """Delivers change text by POSTing embeds to a Discord webhook URL.

    Args:
        url: Webhook URL.
        title_template: Embed title, formatted with ``list_type``.
        timeout: HTTP request timeout in seconds.
        retry_attempts: Attempts per message, including the first.
        client: Optional pre-built client (tests inject a mock transport).
    """

    def __init__(
        self,
        url: str,
        title_template: str = DEFAULT_TITLE,
        timeout: float = 10.0,
        retry_attempts: int = 2,
        client: Optional[httpx.AsyncClient] = None,
    ):
        if not url:
            raise ValueError("Webhook url must not be empty")
        self._url = url
        self.title_template = title_template
        self.timeout = timeout
        self.retry_attempts = retry_attempts
        self._client = client
        self._owns_client = client is None

    @property
    def channel_name(self) -> str:
        return "discord"

    def _http(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout)
        return self._client

    async def aclose(self):
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    def build_payloads(self, list_type: str, text: str, now: Optional[datetime] = None) -> List[dict]:
        """Split ``text`` into one webhook payload per embed-sized chunk."""
        timestamp = (now or datetime.now(timezone.utc)).isoformat()
        title = self.title_template.format(list_type=list_type)
        chunks = chunk_lines(text.splitlines(), DEFAULT_CHUNK_LIMIT)

        payloads = []
        for index, chunk in enumerate(chunks, start=1):
            chunk_title = title if len(chunks) == 1 else f"{title} ({index}/{len(chunks)})"
            payloads.append({
                "embeds": [{
                    "title": chunk_title,
                    "description": chunk,
                    "color": EMBED_COLOR,
                    "timestamp": timestamp,
                }],
            })
        return payloads

    async def _post(self, payload: dict):
        response = await self._http().post(self._url, json=payload, timeout=self.timeout)
        response.raise_for_status()

    async def send(self, list_type: str, text: str) -> None:
        payloads = self.build_payloads(list_type, text)
        for index, payload in enumerate(payloads, start=1):
            try:
                await retry_async(
                    partial(self._post, payload),
                    attempts=self.retry_attempts,
                    description="Discord webhook",
                )
            except httpx.HTTPStatusError as e:
                raise DeliveryError(
                    f"Webhook returned {e.response.status_code} for message {index}/{len(payloads)}: "
                    f"{e.response.text[:200]}",
                    list_type,
                ) from e
            except (httpx.HTTPError, httpx.InvalidURL) as e:
                raise DeliveryError(
                    f"Webhook request failed for message {index}/{len(payloads)}: {e}",
                    list_type,
                ) from e
        logger.info("Sent %d webhook message(s) for %s list", len(payloads), list_type)
