"""
Runtime configuration for the Money Management API.

Values are read from the environment (prefix ``MONEY_MGMT_``) or a local
``.env`` file.  List values such as ``MONEY_MGMT_DEFAULT_LOTS`` are given as
JSON, e.g. ``[1, 1, 2, 3]``.
"""
from __future__ import annotations

from functools import lru_cache
from typing import List

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Lot progression the calculator starts from.
DEFAULT_LOTS_SEQUENCE: List[float] = [
    1, 1, 2, 3, 4, 5, 8, 11, 19, 27, 40, 40, 39, 40, 41, 42, 43, 44, 45, 46,
]


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="MONEY_MGMT_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    log_level: str = "INFO"
    cors_origins: List[str] = Field(default_factory=lambda: ["*"])

    # Input clamping bounds applied at the API boundary.
    max_steps: int = Field(default=50, ge=0)
    max_value: float = Field(default=10_000.0, ge=0)

    default_stop_per_lot: float = 9.0
    default_profit_per_lot: float = 21.0
    default_cost_per_lot: float = 75.0
    default_lots: List[float] = Field(default_factory=lambda: list(DEFAULT_LOTS_SEQUENCE))


@lru_cache
def get_settings() -> Settings:
    return Settings()
