"""Error types for list watching runs.

Each collaborator (list source, snapshot store, notifier) translates its
library-level failures into one of these so the run controller can decide,
per list type, whether to skip, degrade, or continue.
"""

from typing import Optional


class ListWatchError(Exception):
    """Base class for all listwatch errors."""

    def __init__(self, message: str, list_type: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.list_type = list_type


class ConfigError(ListWatchError):
    """A required configuration value is missing or invalid at startup."""


class SourceUnavailable(ListWatchError):
    """The ordered key list could not be fetched or parsed."""


class MetadataUnavailable(ListWatchError):
    """A single entity's metadata could not be fetched."""

    def __init__(self, message: str, list_type: Optional[str] = None, key: Optional[str] = None):
        super().__init__(message, list_type)
        self.key = key


class StoreError(ListWatchError):
    """A snapshot could not be loaded or saved."""


class SnapshotCorruptError(StoreError):
    """A stored snapshot exists but cannot be parsed.

    Kept distinct from "absent" so a corrupt store never passes silently
    as a first run.
    """


class DeliveryError(ListWatchError):
    """A notification could not be delivered."""
