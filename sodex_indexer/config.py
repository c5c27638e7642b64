"""
Configuration settings for the SoDEX account indexer.

Uses Pydantic Settings to load environment variables for the upstream endpoints,
the scan/enrichment tuning knobs, and logging. A single Settings instance is
passed explicitly into every component.
"""
from __future__ import annotations

from functools import lru_cache
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Upstream endpoints
    address_url_template: str = Field(
        "https://sodex.dev/mainnet/chain/user/{account_id}/address",
        alias="ADDRESS_URL_TEMPLATE",
    )
    pnl_url_template: str = Field(
        "https://mainnet-data.sodex.dev/api/v1/perps/pnl/overview?account_id={account_id}",
        alias="PNL_URL_TEMPLATE",
    )

    # Scan / enrichment
    concurrency: int = Field(10, ge=1, alias="CONCURRENCY")
    start_id: int = Field(1000, ge=0, alias="START_ID")
    probe_step: int = Field(5, ge=1, alias="PROBE_STEP")
    progress_every: int = Field(100, ge=1, alias="PROGRESS_EVERY")

    # HTTP
    request_timeout_seconds: float = Field(10.0, gt=0, alias="REQUEST_TIMEOUT_SECONDS")
    retry_count: int = Field(2, ge=0, alias="RETRY_COUNT")
    retry_delay_seconds: float = Field(1.0, ge=0, alias="RETRY_DELAY_SECONDS")

    # Storage
    snapshot_path: str = Field("sodex_data.json", alias="SNAPSHOT_PATH")

    # Application
    app_env: str = Field("development", alias="APP_ENV")
    log_level: str = Field("INFO", alias="LOG_LEVEL")
    log_json: bool = Field(False, alias="LOG_JSON")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    def address_url(self, account_id: int) -> str:
        return self.address_url_template.format(account_id=account_id)

    def pnl_url(self, account_id: int) -> str:
        return self.pnl_url_template.format(account_id=account_id)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Retrieve a cached instance of Settings to avoid repeated env parsing.
    """
    return Settings()


__all__ = ["Settings", "get_settings"]
