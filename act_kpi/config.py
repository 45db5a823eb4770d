from __future__ import annotations

from pathlib import Path
from typing import Literal, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import yaml
from pydantic import BaseModel, Field, field_validator

from .time_ranges import TIME_RANGE_DAYS


class GoogleAdsConfig(BaseModel):
    customer_id: str
    mcc_id: Optional[str] = None
    credentials_yaml: str = "./secrets/google-ads.yaml"

    @field_validator("customer_id")
    @classmethod
    def customer_id_digits_only(cls, v: str) -> str:
        v2 = "".join(ch for ch in str(v) if ch.isdigit())
        if not v2:
            raise ValueError("google_ads.customer_id must contain digits")
        return v2

    @field_validator("mcc_id")
    @classmethod
    def mcc_id_digits_only(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        return "".join(ch for ch in str(v) if ch.isdigit()) or None


class RefreshConfig(BaseModel):
    # Google Ads allows ~100 requests/minute per developer token
    inter_call_delay_seconds: float = Field(default=0.0, ge=0)
    request_timeout_seconds: float = Field(default=30.0, gt=0)


class ClientConfig(BaseModel):
    client_name: str
    google_ads: GoogleAdsConfig

    data_source: Literal["mock", "google_ads", "warehouse"] = "mock"
    currency: str = "EUR"
    timezone: str = "UTC"
    default_time_range: str = "7d"

    refresh: RefreshConfig = RefreshConfig()

    warehouse_path: str = "./warehouse.duckdb"
    mock_seed: int = 42

    @field_validator("default_time_range")
    @classmethod
    def known_time_range(cls, v: str) -> str:
        if v not in TIME_RANGE_DAYS:
            raise ValueError(f"default_time_range must be one of {sorted(TIME_RANGE_DAYS)}")
        return v

    @field_validator("timezone")
    @classmethod
    def known_timezone(cls, v: str) -> str:
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError):
            raise ValueError(f"timezone must be an IANA zone name like 'Europe/Dublin', got {v!r}")
        return v

    @property
    def customer_id(self) -> str:
        return self.google_ads.customer_id


def parse_client_config(data: dict) -> ClientConfig:
    # Raises ValidationError if invalid
    return ClientConfig.model_validate(data)


def load_client_config(path: str | Path) -> ClientConfig:
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(f"Client config not found: {path}")

    data = yaml.safe_load(p.read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        raise ValueError("Client config must be a YAML mapping/object")

    return parse_client_config(data)
