"""Runtime settings read from the environment.

Environment variables:
- LISTWATCH_WEBHOOK (or WEBHOOK): Discord webhook URL, required unless dry run
- LISTWATCH_LIST_TYPES: comma-separated list types (default "main,bonus")
- LISTWATCH_SOURCE: list source name, see listwatch/configs/ (default "pages")
- LISTWATCH_CONFIGS_DIR: directory holding source configs
- LISTWATCH_STORE: "json" or "sqlite" (default "json")
- LISTWATCH_STATE_DIR: directory for JSON snapshot files (default ".")
- LISTWATCH_DB: SQLite database path (default "listwatch.db")
- LISTWATCH_TIMEOUT: per-request timeout in seconds (default 30)
- LISTWATCH_RETRIES: attempts per remote call (default 2)
- LISTWATCH_CONCURRENCY: metadata requests in flight (default 4)
- LISTWATCH_REUSE_NAMES: reuse stored display names (default false)
- LISTWATCH_EMBED_TITLE: embed title template with {list_type}
"""

import os
from typing import List, Literal, Mapping, Optional

from pydantic import BaseModel, Field, ValidationError, field_validator

from listwatch.errors import ConfigError
from listwatch.notify.discord import DEFAULT_TITLE

DEFAULT_LIST_TYPES = ["main", "bonus"]
TRUE_VALUES = {"1", "true", "yes", "on"}


class Settings(BaseModel):
    webhook_url: Optional[str] = None
    list_types: List[str] = Field(default_factory=lambda: list(DEFAULT_LIST_TYPES))
    source: str = "pages"
    configs_dir: Optional[str] = None
    store: Literal["json", "sqlite"] = "json"
    state_dir: str = "."
    db_path: str = "listwatch.db"
    request_timeout: float = Field(default=30.0, gt=0)
    retry_attempts: int = Field(default=2, ge=1, le=10)
    metadata_concurrency: int = Field(default=4, ge=1)
    reuse_cached_names: bool = False
    embed_title: str = DEFAULT_TITLE
    dry_run: bool = False

    @field_validator("list_types")
    @classmethod
    def list_types_not_empty(cls, v: List[str]) -> List[str]:
        cleaned = []
        for item in v:
            item = item.strip()
            if item and item not in cleaned:
                cleaned.append(item)
        if not cleaned:
            raise ValueError("at least one list type is required")
        return cleaned

    @field_validator("embed_title")
    @classmethod
    def embed_title_formats(cls, v: str) -> str:
        try:
            v.format(list_type="main")
        except (KeyError, IndexError, ValueError) as e:
            raise ValueError(f"embed title may only use the {{list_type}} placeholder: {e!r}") from e
        return v


def _split(value: str) -> List[str]:
    return [part.strip() for part in value.split(",") if part.strip()]


def load_settings(
    environ: Optional[Mapping[str, str]] = None,
    list_types: Optional[List[str]] = None,
    dry_run: bool = False,
) -> Settings:
    """Build Settings from environment variables plus command-line overrides.

    Raises ConfigError when a value is invalid or the webhook URL is missing
    outside a dry run.
    """
    env = os.environ if environ is None else environ
    values = {"dry_run": dry_run}

    webhook = env.get("LISTWATCH_WEBHOOK") or env.get("WEBHOOK")
    if webhook:
        values["webhook_url"] = webhook.strip()

    if list_types:
        values["list_types"] = list_types
    elif env.get("LISTWATCH_LIST_TYPES"):
        values["list_types"] = _split(env["LISTWATCH_LIST_TYPES"])

    simple = {
        "LISTWATCH_SOURCE": "source",
        "LISTWATCH_CONFIGS_DIR": "configs_dir",
        "LISTWATCH_STORE": "store",
        "LISTWATCH_STATE_DIR": "state_dir",
        "LISTWATCH_DB": "db_path",
        "LISTWATCH_TIMEOUT": "request_timeout",
        "LISTWATCH_RETRIES": "retry_attempts",
        "LISTWATCH_CONCURRENCY": "metadata_concurrency",
        "LISTWATCH_EMBED_TITLE": "embed_title",
    }
    for env_name, field in simple.items():
        if env.get(env_name):
            values[field] = env[env_name].strip()

    if env.get("LISTWATCH_REUSE_NAMES"):
        values["reuse_cached_names"] = env["LISTWATCH_REUSE_NAMES"].strip().lower() in TRUE_VALUES

    try:
        settings = Settings(**values)
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration: {e}") from e

    if not settings.dry_run and not settings.webhook_url:
        raise ConfigError("Missing webhook URL: set LISTWATCH_WEBHOOK (or WEBHOOK)")
    return settings
