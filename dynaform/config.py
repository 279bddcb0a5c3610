"""
Runtime configuration for the Dynaform client and service.

Values are read from the environment (and a local .env file) once, at
startup, into immutable config objects that are passed explicitly to
the components that need them.
"""

import os

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict

load_dotenv()

DEFAULT_API_BASE_URL = "http://localhost/api"
DEFAULT_API_TIMEOUT_SECONDS = 30.0


def is_truthy(value: str | None, default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


class ApiConfig(BaseModel):
    """Where the form backend lives and how to talk to it."""

    model_config = ConfigDict(frozen=True)

    base_url: str = DEFAULT_API_BASE_URL
    timeout_seconds: float = DEFAULT_API_TIMEOUT_SECONDS
    log_curl: bool = False

    @property
    def root(self) -> str:
        """Base URL without a trailing slash."""
        return self.base_url.rstrip("/")


def get_api_config() -> ApiConfig:
    """Build the API config from the environment."""
    return ApiConfig(
        base_url=os.getenv("FORM_API_BASE_URL", DEFAULT_API_BASE_URL),
        timeout_seconds=float(
            os.getenv("FORM_API_TIMEOUT_SECONDS", str(DEFAULT_API_TIMEOUT_SECONDS))
        ),
        log_curl=is_truthy(os.getenv("LOG_HTTP_CURL"), default=False),
    )
