from __future__ import annotations

from dataclasses import dataclass

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Logging
    log_level: str = "INFO"

    # Environment
    cloud_env: str = Field(default="emulator", validation_alias="CLOUD_ENV")
    http_timeout_seconds: float = Field(default=10.0, validation_alias="HTTP_TIMEOUT_SECONDS")
    feed_page_size: int | None = Field(default=None, validation_alias="FEED_PAGE_SIZE")

    # Document database
    cosmos_endpoint: str | None = Field(default=None, validation_alias="COSMOS_ENDPOINT")
    cosmos_master_key: str | None = Field(default=None, validation_alias="COSMOS_MASTER_KEY")

    # Secrets vault
    keyvault_url: str | None = Field(default=None, validation_alias="KEYVAULT_URL")
    keyvault_access_token: str | None = Field(default=None, validation_alias="KEYVAULT_ACCESS_TOKEN")

    # Text analytics
    text_analytics_endpoint: str | None = Field(default=None, validation_alias="TEXT_ANALYTICS_ENDPOINT")
    text_analytics_api_key: str | None = Field(default=None, validation_alias="TEXT_ANALYTICS_API_KEY")

    model_config = {
        "env_file": ".env",
        "extra": "ignore",
    }

    @classmethod
    def load(cls) -> "Settings":
        load_dotenv(override=False)
        return cls()


@dataclass(frozen=True)
class CloudEnvDefaults:
    cosmos_endpoint: str | None = None
    keyvault_url: str | None = None


def env_defaults(env: str) -> CloudEnvDefaults:
    env = env.lower().strip()
    if env in {"emulator", "local"}:
        # The local emulator listens on a fixed port; there is no local vault.
        return CloudEnvDefaults(cosmos_endpoint="https://localhost:8081")
    if env in {"public", "prod", "production"}:
        # Public cloud endpoints are per-account and must come from the environment.
        return CloudEnvDefaults()
    raise ValueError(f"Unknown CLOUD_ENV: {env}")
