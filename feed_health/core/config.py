"""Environment-driven settings shared by the runner and API services."""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Process settings loaded from environment variables or a local .env file."""

    APP_NAME: str = "Feed Health Monitor"
    ENV: str = "dev"
    LOG_LEVEL: str = "INFO"
    VERSION: str = "0.1.0"
    HOST: str = "0.0.0.0"
    PORT: int = 8000
    FEED_CONFIG_PATH: str = "config.json"
    RPC_URLS: str = ""
    RPC_TIMEOUT_S: float = 15.0

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    def rpc_urls(self) -> dict[str, str]:
        """Return chain selector name to websocket URL mapping from RPC_URLS."""

        return self._split_pairs(self.RPC_URLS)

    @staticmethod
    def _split_pairs(value: str) -> dict[str, str]:
        """Split comma-separated name=url pairs while dropping malformed entries and duplicates."""

        pairs: dict[str, str] = {}

        for raw in value.split(","):
            name, sep, url = raw.strip().partition("=")
            name = name.strip().lower()
            url = url.strip()
            if not sep or not name or not url or name in pairs:
                continue
            pairs[name] = url

        return pairs


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached settings to avoid repeated environment parsing."""

    return Settings()
