"""Dry-run channel: writes notifications to the log instead of sending them."""

import logging

from listwatch.notify.base_notifier import BaseNotifier

logger = logging.getLogger(__name__)


class LogNotifier(BaseNotifier):
    @property
    def channel_name(self) -> str:
        return "log"

    async def send(self, list_type: str, text: str) -> None:
        logger.info("[dry run] %s list changes:\n%s", list_type, text)
