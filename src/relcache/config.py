from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="RELCACHE_", env_file=".env", extra="ignore", populate_by_name=True
    )

    app_name: str = "relcache"

    # Redis
    redis_url: str = Field(default="redis://localhost:6379/0", validation_alias="REDIS_URL")
    skip_tls_verify: bool = Field(default=False, validation_alias="RELCACHE_SKIP_TLS_VERIFY")
    socket_timeout: float | None = Field(default=None, validation_alias="RELCACHE_SOCKET_TIMEOUT")

    # Relevance resolution
    scan_count: int = Field(default=1000, ge=1, validation_alias="RELCACHE_SCAN_COUNT")
    max_depth: int = Field(default=16, ge=1, validation_alias="RELCACHE_MAX_DEPTH")

    # Observability
    enable_metrics: bool = Field(default=True, validation_alias="RELCACHE_ENABLE_METRICS")
    log_level: str = "INFO"
    log_json: bool = False


settings = Settings()
