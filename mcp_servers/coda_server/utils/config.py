from enum import Enum
from functools import cache

from pydantic_settings import BaseSettings


class Environment(Enum):
    LOCAL = "local"
    DEV = "dev"
    PROD = "prod"


class Settings(BaseSettings):
    ENV: Environment = Environment.LOCAL
    LOG_LEVEL: str = "INFO"

    # Coda REST API
    CODA_API_KEY: str | None = None
    CODA_API_BASE_URL: str = "https://coda.io/apis/v1"
    CODA_HTTP_TIMEOUT_SECONDS: float = 30.0

    # Page export
    CODA_EXPORT_FORMAT: str = "markdown"
    EXPORT_POLL_MAX_ATTEMPTS: int = 30
    EXPORT_POLL_INITIAL_DELAY_SECONDS: float = 0.5
    EXPORT_POLL_BACKOFF_MULTIPLIER: float = 1.5
    EXPORT_POLL_MAX_DELAY_SECONDS: float = 5.0
    EXPORT_POLL_TIMEOUT_SECONDS: float = 60.0

    # Page listing
    DEFAULT_PAGE_LIST_LIMIT: int = 25


@cache
def get_settings() -> Settings:
    return Settings()
