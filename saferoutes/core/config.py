import json
from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from saferoutes.core.enums import RouteMode, TimeBucket

DEV_FRONTEND_ORIGINS = ("http://localhost:5173", "http://127.0.0.1:5173")


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", case_sensitive=False)

    env: Literal["dev", "prod"] = "dev"
    project_name: str = "SafeRoutes"
    api_v1_prefix: str = "/api/v1"
    log_level: str = "INFO"
    app_host: str = "127.0.0.1"
    app_port: int = 8080

    backend_url: str = "http://localhost:8000"
    backend_timeout_sec: float = 10.0

    frontend_origins: list[str] = Field(default_factory=list)

    default_user_uid: str = "user_a"
    default_start_lat: float = 28.6315
    default_start_lon: float = 77.2167
    default_end_lat: float = 28.6129
    default_end_lon: float = 77.2295
    default_mode: RouteMode = RouteMode.BALANCED
    default_time_of_day: TimeBucket = TimeBucket.DAY
    auto_refresh: bool = False
    discard_stale_plans: bool = True

    bookmarks_backend: Literal["file", "redis"] = "file"
    bookmarks_dir: str = ".saferoutes"
    bookmarks_namespace: str = "saferoutes.bookmarks"
    bookmarks_limit: int = Field(default=20, ge=1)
    redis_url: str = "redis://localhost:6379/0"

    @field_validator("backend_url")
    @classmethod
    def strip_backend_url(cls, value: str) -> str:
        return value.strip().rstrip("/")

    @field_validator("frontend_origins", mode="before")
    @classmethod
    def parse_origins(cls, value: object) -> list[str]:
        if isinstance(value, str):
            raw = value.strip()
            if raw.startswith("["):
                try:
                    value = json.loads(raw)
                except json.JSONDecodeError:
                    value = raw.strip("[]").split(",")
            else:
                value = raw.split(",")
        if not isinstance(value, list):
            return []
        # Browser `Origin` headers never carry a trailing slash.
        origins = (str(item).strip().strip("\"'").rstrip("/") for item in value)
        return [origin for origin in origins if origin]

    @model_validator(mode="after")
    def default_dev_origins(self) -> "Settings":
        if not self.frontend_origins and self.env == "dev":
            self.frontend_origins = list(DEV_FRONTEND_ORIGINS)
        self.frontend_origins = list(dict.fromkeys(self.frontend_origins))
        return self


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
