"""Configuration for the hosted backend connection."""

from pydantic import AnyHttpUrl
from pydantic_settings import BaseSettings


class BackendSettings(BaseSettings):
    """Hosted backend configuration settings.

    Settings can be overridden via environment variables.
    """

    BACKEND_URL: AnyHttpUrl = "http://localhost:54321"
    BACKEND_API_KEY: str
    BACKEND_TIMEOUT: int = 30
    BACKEND_REST_PATH: str = "/rest/v1"
    BACKEND_AUTH_PATH: str = "/auth/v1"

    model_config = {
        "env_prefix": "",
        "case_sensitive": True,
        "env_file": ".env",
        "extra": "ignore",
    }


backend_settings = BackendSettings()
