from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

from .policy import DEFAULT_KEEP_ALIVE, DEFAULT_RETRIES, DEFAULT_TIMEOUT, ResiliencePolicy


class ClientSettings(BaseSettings):
    """Client configuration from ``CARBON_*`` environment variables or ``.env``."""

    model_config = SettingsConfigDict(env_prefix="CARBON_", env_file=".env", extra="ignore")

    address: str = "127.0.0.1"
    port: int = 2003
    retries: int = DEFAULT_RETRIES
    timeout: float = DEFAULT_TIMEOUT
    keep_alive: float = DEFAULT_KEEP_ALIVE
    prefix: Optional[str] = None

    @property
    def policy(self) -> ResiliencePolicy:
        return ResiliencePolicy(
            max_retries=self.retries, timeout=self.timeout, keep_alive=self.keep_alive
        )


@lru_cache()
def get_settings() -> ClientSettings:
    return ClientSettings()
