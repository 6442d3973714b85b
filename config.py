"""Runtime configuration loaded from .env / environment variables."""

import os
from dataclasses import dataclass, replace
from typing import Optional

from dotenv import load_dotenv

DEFAULT_PAGE_LIMIT = 50
DEFAULT_THUMBNAIL_BATCH_SIZE = 25
DEFAULT_POLL_INTERVAL = 0.5

# Dropbox rejects list_folder limits outside this range and thumbnail batches above 25
PAGE_LIMIT_RANGE = (1, 2000)
MAX_THUMBNAIL_BATCH = 25


class ConfigError(ValueError):
    """A setting from the environment or the command line is unusable."""


@dataclass(frozen=True)
class AppConfig:
    """
    Settings for one run of the cleaner.
    Everything except the access token has a default; CLI flags override
    whatever the environment provides.
    """
    access_token: Optional[str] = None
    page_limit: int = DEFAULT_PAGE_LIMIT
    thumbnail_batch_size: int = DEFAULT_THUMBNAIL_BATCH_SIZE
    poll_interval: float = DEFAULT_POLL_INTERVAL
    poll_deadline: Optional[float] = None
    max_workers: int = 8
    request_timeout: float = 30.0
    thumbnail_dir: str = "thumbnails"
    preview_file: str = "preview.html"
    log_prefix: str = "dropbox_pattern_cleaner"

    def __post_init__(self):
        low, high = PAGE_LIMIT_RANGE
        if not low <= self.page_limit <= high:
            raise ConfigError(f"page_limit must be between {low} and {high}, got {self.page_limit}")
        if not 1 <= self.thumbnail_batch_size <= MAX_THUMBNAIL_BATCH:
            raise ConfigError(
                f"thumbnail_batch_size must be between 1 and {MAX_THUMBNAIL_BATCH}, got {self.thumbnail_batch_size}")
        if self.poll_interval < 0:
            raise ConfigError(f"poll_interval cannot be negative, got {self.poll_interval}")
        if self.poll_deadline is not None and self.poll_deadline <= 0:
            raise ConfigError(f"poll_deadline must be positive, got {self.poll_deadline}")
        if self.max_workers < 1:
            raise ConfigError(f"max_workers must be at least 1, got {self.max_workers}")
        if self.request_timeout <= 0:
            raise ConfigError(f"request_timeout must be positive, got {self.request_timeout}")

    def with_overrides(self, **overrides) -> "AppConfig":
        """Return a copy with every non-None override applied."""
        return replace(self, **{k: v for k, v in overrides.items() if v is not None})


def _env_number(name: str, default, cast):
    value = os.getenv(name)
    if value is None or value == "":
        return default
    try:
        return cast(value)
    except ValueError:
        raise ConfigError(f"{name} must be a number, got {value!r}") from None


def load_config(env_file: Optional[str] = None) -> AppConfig:
    """
    Build an AppConfig from the environment, after loading .env.

    Recognised variables:
        DROPBOX_ACCESS_TOKEN, DPC_PAGE_LIMIT, DPC_THUMBNAIL_BATCH_SIZE,
        DPC_POLL_INTERVAL, DPC_POLL_DEADLINE, DPC_MAX_WORKERS,
        DPC_REQUEST_TIMEOUT, DPC_THUMBNAIL_DIR, DPC_PREVIEW_FILE

    Raises ConfigError for a value that is not a number or is out of range.
    """
    load_dotenv(env_file)

    return AppConfig(
        access_token=os.getenv("DROPBOX_ACCESS_TOKEN") or None,
        page_limit=_env_number("DPC_PAGE_LIMIT", DEFAULT_PAGE_LIMIT, int),
        thumbnail_batch_size=_env_number("DPC_THUMBNAIL_BATCH_SIZE", DEFAULT_THUMBNAIL_BATCH_SIZE, int),
        poll_interval=_env_number("DPC_POLL_INTERVAL", DEFAULT_POLL_INTERVAL, float),
        poll_deadline=_env_number("DPC_POLL_DEADLINE", None, float),
        max_workers=_env_number("DPC_MAX_WORKERS", 8, int),
        request_timeout=_env_number("DPC_REQUEST_TIMEOUT", 30.0, float),
        thumbnail_dir=os.getenv("DPC_THUMBNAIL_DIR", "thumbnails"),
        preview_file=os.getenv("DPC_PREVIEW_FILE", "preview.html"),
    )
