"""Pydantic v2 configuration schema with strict validation."""

from pydantic import BaseModel, Field

OPENWEATHER_BASE_URL = "https://api.openweathermap.org/data/2.5"


class ProviderConfig(BaseModel):
    model_config = {"extra": "forbid"}

    base_url: str = OPENWEATHER_BASE_URL
    api_key: str = ""
    timeout: float = Field(default=30.0, gt=0.0)
    max_retries: int = Field(default=0, ge=0)
    retry_base_delay: float = Field(default=5.0, ge=0.0)


class CacheConfig(BaseModel):
    model_config = {"extra": "forbid"}

    freshness_window_ms: int = Field(default=60_000, ge=0)


class SchedulerConfig(BaseModel):
    model_config = {"extra": "forbid"}

    interval_ms: int = Field(default=60_000, ge=1)


class StorageConfig(BaseModel):
    model_config = {"extra": "forbid"}

    db_path: str = "data/weatherboard.db"


class DashboardConfig(BaseModel):
    model_config = {"extra": "forbid"}

    provider: ProviderConfig = ProviderConfig()
    cache: CacheConfig = CacheConfig()
    scheduler: SchedulerConfig = SchedulerConfig()
    storage: StorageConfig = StorageConfig()
    default_cities: list[str] = []
