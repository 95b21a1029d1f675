"""Application configuration models."""

from __future__ import annotations

from functools import lru_cache
from typing import Annotated, Iterable, Literal

from pydantic import AliasChoices, Field, HttpUrl, field_validator, model_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

from .shelves import ShelfDefinition, shelves_for
from .utils import slugify


DEFAULT_BATCH_DELAYS: tuple[float, ...] = (0.0, 0.5, 1.0)


class Settings(BaseSettings):
    """Settings loaded from environment variables or a .env file."""

    app_name: str = Field(default="Shelf Loader", alias="APP_NAME")
    server_host: str = Field(default="0.0.0.0", alias="HOST")
    server_port: int = Field(default=3000, alias="PORT")

    content_api_url: HttpUrl = Field(
        default="http://localhost:5000/api/movies",
        alias="CONTENT_API_URL",
        validation_alias=AliasChoices("CONTENT_API_URL", "API_URL"),
    )
    genres_api_url: HttpUrl | None = Field(default=None, alias="GENRES_API_URL")
    media_kind: Literal["movie", "series"] = Field(default="movie", alias="MEDIA_KIND")

    shelf_keys: Annotated[tuple[str, ...], NoDecode] = Field(
        default=(), alias="SHELF_KEYS"
    )
    page_size: int = Field(default=20, alias="PAGE_SIZE", ge=1, le=100)

    scroll_throttle_ms: int = Field(
        default=500, alias="SCROLL_THROTTLE_MS", ge=0, le=10_000
    )
    scroll_threshold: float = Field(
        default=0.8, alias="SCROLL_THRESHOLD", gt=0.0, le=1.0
    )

    bootstrap_batch_delays: Annotated[tuple[float, ...], NoDecode] = Field(
        default=DEFAULT_BATCH_DELAYS, alias="BOOTSTRAP_BATCH_DELAYS"
    )
    bootstrap_batch_size: int = Field(
        default=2, alias="BOOTSTRAP_BATCH_SIZE", ge=1, le=50
    )
    genre_retry_delay: float = Field(
        default=1.0, alias="GENRE_RETRY_DELAY", ge=0.0, le=60.0
    )
    fetch_timeout_seconds: float = Field(
        default=15.0, alias="FETCH_TIMEOUT", gt=0.0, le=300.0
    )

    environment: Literal["development", "production"] = Field(
        default="development", alias="ENVIRONMENT"
    )

    @field_validator("shelf_keys", mode="before")
    @classmethod
    def _parse_shelf_keys(cls, value: object) -> tuple[str, ...]:
        """Normalise shelf key selections from environment values."""

        if value is None:
            return ()
        if isinstance(value, str):
            raw_values = [part.strip() for part in value.split(",")]
        elif isinstance(value, Iterable):
            raw_values = [str(part).strip() for part in value]
        else:
            raise TypeError("SHELF_KEYS must be a string or iterable of strings")

        cleaned: list[str] = []
        for entry in raw_values:
            if not entry:
                continue
            slug = slugify(entry, fallback="")
            if slug and slug not in cleaned:
                cleaned.append(slug)
        return tuple(cleaned)

    @field_validator("bootstrap_batch_delays", mode="before")
    @classmethod
    def _parse_batch_delays(cls, value: object) -> tuple[float, ...]:
        if value is None:
            return DEFAULT_BATCH_DELAYS
        if isinstance(value, str):
            parts = [part.strip() for part in value.split(",") if part.strip()]
        elif isinstance(value, Iterable):
            parts = list(value)
        else:
            raise TypeError("BOOTSTRAP_BATCH_DELAYS must be a list of seconds")
        if not parts:
            return DEFAULT_BATCH_DELAYS
        delays = tuple(float(part) for part in parts)
        if any(delay < 0 for delay in delays):
            raise ValueError("Bootstrap batch delays must not be negative")
        return tuple(sorted(delays))

    @model_validator(mode="after")
    def _check_shelf_keys(self) -> "Settings":
        """Ensure configured shelf keys exist for the selected media kind."""

        known = {definition.key for definition in shelves_for(self.media_kind)}
        unknown = [key for key in self.shelf_keys if key not in known]
        if unknown:
            raise ValueError("Unknown shelf keys configured: " + ", ".join(unknown))
        return self

    @property
    def shelf_definitions(self) -> tuple[ShelfDefinition, ...]:
        """Return ordered shelf definitions for the selected keys."""

        definitions = shelves_for(self.media_kind)
        if not self.shelf_keys:
            return definitions
        definition_map = {definition.key: definition for definition in definitions}
        return tuple(definition_map[key] for key in self.shelf_keys)

    @property
    def scroll_throttle_seconds(self) -> float:
        return self.scroll_throttle_ms / 1000

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")


@lru_cache
def get_settings() -> Settings:
    """Return a cached settings instance."""

    return Settings()  # type: ignore[call-arg]


settings = get_settings()
