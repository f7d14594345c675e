"""Delivery and inventory tunables, read from the environment.

Every value can be overridden with a ``STOREFRONT_`` prefixed variable, e.g.
``STOREFRONT_AGENT_AVERAGE_SPEED_KMH=25``.
"""

from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="STOREFRONT_", env_file=".env", extra="ignore")

    # Journey schedule: cumulative hours from the moment a journey is planned
    fulfillment_processing_hours: float = Field(default=2, ge=0)
    regional_transit_hours: float = Field(default=8, ge=0)
    local_station_hours: float = Field(default=12, ge=0)
    agent_assignment_hours: float = Field(default=14, ge=0)
    out_for_delivery_hours: float = Field(default=16, ge=0)

    # Live tracking
    agent_average_speed_kmh: float = Field(default=30, gt=0)

    # Inventory ledger
    stock_reservation_attempts: int = Field(default=3, ge=1)

    # Logging
    log_level: str | None = None
    log_dir: Path | None = None


@lru_cache
def get_settings() -> Settings:
    return Settings()
