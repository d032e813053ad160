"""Request pacing for per-entity metadata fetches.

A list can hold a few hundred entries, each needing its own request to
the same static host. Jittered delays keep the fetch from arriving as a
single burst.
"""

import asyncio
import random
import logging

logger = logging.getLogger(__name__)


class Pacer:
    """Adds a jittered pause before each request."""

    def __init__(self, base_delay: float = 0.0, jitter: float = 0.5):
        self.base_delay = base_delay
        self.jitter = jitter
        self._request_count = 0

    async def delay(self):
        """Wait ``base_delay`` scaled by a random factor in [1 - jitter, 1 + jitter]."""
        self._request_count += 1
        if self.base_delay <= 0:
            return

        wait = self.base_delay * random.uniform(1 - self.jitter, 1 + self.jitter)
        logger.debug("Paced delay: %.2fs (request #%d)", wait, self._request_count)
        await asyncio.sleep(max(wait, 0.0))
