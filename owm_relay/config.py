"""Application configuration pulled from environment variables via pydantic."""
from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from utils.logging_utils import get_tagged_logger
logger = get_tagged_logger(__name__, tag="config")


class Settings(BaseSettings):
    """Environment-driven configuration for the OpenWeather relay."""
    model_config = SettingsConfigDict(
        env_prefix="RELAY_",
        env_file=".env",
        extra="ignore",
        populate_by_name=True,
    )

    # Provider credential; the relay refuses to forward anything without it.
    openweather_key: str | None = Field(
        default=None,
        validation_alias=AliasChoices("OPENWEATHER_KEY", "RELAY_OPENWEATHER_KEY"),
    )
    api_base_url: str = "https://api.openweathermap.org"
    tile_base_url: str = "https://tile.openweathermap.org"
    upstream_timeout_seconds: float = 15.0
    cache_max_entries: int | None = None  # None keeps the cache unbounded
    cors_origins: list[str] = Field(default_factory=lambda: ["*"])
    log_level: str = "INFO"
    port: int = 3000

    @field_validator("api_base_url", "tile_base_url", mode="after")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        """Normalize base URLs to avoid double slashes."""
        return str(v).rstrip("/")

    @property
    def has_credential(self) -> bool:
        return bool(self.openweather_key and self.openweather_key.strip())


settings = Settings()


if __name__ == "__main__":
    logger.logger.setLevel("DEBUG")
    logger.debug(f"Loaded settings: {settings.model_dump_json(indent=4, exclude={'openweather_key'})}")
