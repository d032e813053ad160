"""Source factory: loads the correct list source by name.

A config-driven factory mapping source names to concrete classes, so a
new hosting layout needs only a JSON config and a source class.
"""

import json
import os
import logging
from typing import Optional

from listwatch.errors import ConfigError
from listwatch.scraper.base_strategy import BaseListSource
from listwatch.scraper.directory_strategy import DirectoryListSource
from listwatch.scraper.pages_strategy import PagesListSource

logger = logging.getLogger(__name__)

SOURCE_MAP = {
    "pages": PagesListSource,
    "directory": DirectoryListSource,
}

CONFIGS_DIR = os.path.join(os.path.dirname(__file__), "..", "configs")


def load_source_config(source: str, configs_dir: Optional[str] = None) -> dict:
    """Load configs/{source}.json."""
    config_path = os.path.join(configs_dir or CONFIGS_DIR, f"{source}.json")

    if not os.path.exists(config_path):
        raise ConfigError(f"No config found for source '{source}' at {config_path}")

    try:
        with open(config_path) as f:
            return json.load(f)
    except ValueError as e:
        raise ConfigError(f"Invalid source config {config_path}: {e}") from e


def create_source(
    source: str,
    timeout: float = 30.0,
    retry_attempts: int = 2,
    configs_dir: Optional[str] = None,
) -> BaseListSource:
    """Create and return a list source instance for the given name."""
    source_class = SOURCE_MAP.get(source)
    if not source_class:
        raise ConfigError(f"Unknown list source: '{source}'. Available: {list(SOURCE_MAP.keys())}")

    config = load_source_config(source, configs_dir)

    logger.info("Created %s for source '%s'", source_class.__name__, source)
    if source_class is PagesListSource:
        return PagesListSource(config, timeout=timeout, retry_attempts=retry_attempts)
    return source_class(config)
