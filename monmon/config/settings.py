import os
from functools import lru_cache

from pydantic import BaseModel, Field


class Settings(BaseModel):
    HOST: str = "0.0.0.0"
    PORT: int = Field(default=3456, ge=1, le=65535)
    CACHE_TTL_SEC: int = Field(default=300, ge=0)
    QUOTE_TIMEOUT_SEC: float = Field(default=10.0, gt=0)
    QUOTE_FETCH_ATTEMPTS: int = Field(default=1, ge=1)
    QUOTE_DEADLINE_SEC: float = Field(default=15.0, gt=0)
    REFRESH_COOLDOWN_SEC: int = Field(default=30, ge=0)
    YAHOO_CHART_BASE_URL: str = "https://query1.finance.yahoo.com/v8/finance/chart"
    MONMON_STATIC_DIR: str | None = None

    @classmethod
    def from_env(cls) -> "Settings":
        raw = {name: os.getenv(name) for name in cls.model_fields}
        # unset or blank variables fall back to the field defaults
        return cls.model_validate({k: v.strip() for k, v in raw.items() if v and v.strip()})


@lru_cache
def get_settings() -> Settings:
    return Settings.from_env()
