"""Abstract base for notification channels."""

from abc import ABC, abstractmethod


class BaseNotifier(ABC):
    """Delivers formatted change text for one list type."""

    @property
    @abstractmethod
    def channel_name(self) -> str:
        ...

    @abstractmethod
    async def send(self, list_type: str, text: str) -> None:
        """Deliver ``text``. Raises DeliveryError on failure."""
        ...

    async def aclose(self):
        """Release any held connections."""
