"""
Metrics sources: where campaigns and daily metric rows come from.

The dashboard state talks to a MetricsSource only. Which implementation is
used (synthetic, live Google Ads, DuckDB warehouse) is decided once, when
the source is built.
"""
from __future__ import annotations

import random
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from .config import ClientConfig
from .logging_config import setup_logging
from .models import Campaign, CampaignDetails, MetricRow
from .query_builder import MetricsQuery
from .time_ranges import days_in_range

logger = setup_logging(__name__)


class MetricsFetchError(RuntimeError):
    """Any failure while talking to the external metrics service."""


class MetricsSource(ABC):
    name = "abstract"

    @abstractmethod
    def list_campaigns(self, customer_id: str) -> List[Campaign]:
        ...

    @abstractmethod
    def get_campaign_details(self, customer_id: str, campaign_id: str) -> Optional[CampaignDetails]:
        ...

    @abstractmethod
    def fetch_metric_rows(self, customer_id: str, query: MetricsQuery) -> List[MetricRow]:
        ...


# ----------------------------
# Synthetic data
# ----------------------------

MOCK_CAMPAIGNS: List[Campaign] = [
    Campaign(id="1001", name="YouTube - Artist XYZ", type="VIDEO", status="ENABLED"),
    Campaign(id="1002", name="Performance Max - Label ABC", type="PERFORMANCE_MAX", status="ENABLED"),
    Campaign(id="1003", name="Search - Album Sales 2024", type="SEARCH", status="ENABLED"),
    Campaign(id="1004", name="Display - EP Promo", type="DISPLAY", status="PAUSED"),
    Campaign(id="1005", name="YouTube - Autumn Live Shows", type="VIDEO", status="ENABLED"),
]


class MockMetricsSource(MetricsSource):
    """
    Deterministic synthetic campaigns and daily rows.

    The same (seed, campaign, day) always yields the same row, so previous
    and current windows stay consistent across refreshes.
    """
    name = "mock"

    def __init__(self, seed: int = 42, campaigns: Optional[List[Campaign]] = None):
        self.seed = seed
        self.campaigns = list(campaigns) if campaigns is not None else list(MOCK_CAMPAIGNS)

    def list_campaigns(self, customer_id: str) -> List[Campaign]:
        return list(self.campaigns)

    def _find(self, campaign_id: str) -> Optional[Campaign]:
        for c in self.campaigns:
            if c.id == str(campaign_id):
                return c
        return None

    def get_campaign_details(self, customer_id: str, campaign_id: str) -> Optional[CampaignDetails]:
        campaign = self._find(campaign_id)
        if campaign is None:
            return None
        return CampaignDetails(
            campaign=campaign,
            budget_amount=100.0,
            budget_type="DAILY",
            bidding_strategy="MAXIMIZE_CONVERSIONS",
            ad_groups=3,
            target_audiences=["Music fans", "18-34", "Urban"],
        )

    def _mock_day(self, campaign: Campaign, day) -> Dict[str, Any]:
        rnd = random.Random(f"{self.seed}:{campaign.id}:{day.isoformat()}")
        impressions = rnd.randint(2_000, 50_000)
        clicks = rnd.randint(20, max(20, impressions // 20))
        cost_micros = rnd.randint(20_000_000, 400_000_000)
        conversions = round(clicks * rnd.uniform(0.01, 0.08), 2)
        conversion_value = round(conversions * rnd.uniform(20, 120), 2)
        is_video = campaign.type == "VIDEO"
        is_search = campaign.type == "SEARCH"
        return {
            "clicks": clicks,
            "impressions": impressions,
            "cost_micros": cost_micros,
            "conversions": conversions,
            "conversion_value": conversion_value,
            "video_views": rnd.randint(impressions // 10, impressions // 3) if is_video else 0,
            "interactions": clicks + rnd.randint(0, clicks),
            "video_quartile_p100_rate": round(rnd.uniform(0.15, 0.45), 4) if is_video else 0.0,
            "average_video_duration": round(rnd.uniform(20, 90), 1) if is_video else 0.0,
            "search_impression_share": round(rnd.uniform(0.3, 0.9), 4) if is_search else 0.0,
            "historical_quality_score": rnd.randint(4, 10) if is_search else 0,
            "all_conversions": conversions + round(rnd.random() * 2, 2),
        }

    def fetch_metric_rows(self, customer_id: str, query: MetricsQuery) -> List[MetricRow]:
        campaigns = self.campaigns
        if query.campaign_id is not None:
            c = self._find(query.campaign_id)
            campaigns = [c] if c is not None else []

        rows: List[MetricRow] = []
        for campaign in campaigns:
            for day in days_in_range(query.date_range):
                values = self._mock_day(campaign, day)
                rows.append(
                    MetricRow(
                        campaign_id=campaign.id,
                        date=day,
                        **{f: float(values[f]) for f in query.metric_fields},
                    )
                )
        return rows


# ----------------------------
# Google Ads API
# ----------------------------


class GoogleAdsMetricsSource(MetricsSource):
    """
    Live Google Ads API source around an explicitly constructed client.

    Token refresh and transport belong to the client. Every failure is
    re-raised as MetricsFetchError.
    """
    name = "google_ads"

    def __init__(self, client: Any, request_timeout_seconds: float = 30.0):
        self.client = client
        self.timeout = request_timeout_seconds

    @classmethod
    def from_config(cls, cfg: ClientConfig) -> "GoogleAdsMetricsSource":
        from .google_ads_api import load_google_ads_client

        client = load_google_ads_client(cfg.google_ads.credentials_yaml, cfg.google_ads.mcc_id)
        return cls(client, request_timeout_seconds=cfg.refresh.request_timeout_seconds)

    def _call(self, what: str, fn, *args):
        from google.ads.googleads.errors import GoogleAdsException
        from google.api_core.exceptions import GoogleAPIError

        try:
            return fn(self.client, *args, timeout=self.timeout)
        except GoogleAdsException as ex:
            error_message = f"Google Ads API error while {what} (request_id={ex.request_id})"
            for error in ex.failure.errors:
                error_message += f"; {error.message}"
            logger.error(error_message)
            raise MetricsFetchError(error_message) from ex
        except GoogleAPIError as e:
            logger.error(f"Transport error while {what}: {e}")
            raise MetricsFetchError(f"Transport error while {what}: {e}") from e

    def list_campaigns(self, customer_id: str) -> List[Campaign]:
        from .google_ads_api import list_campaigns

        return self._call("listing campaigns", list_campaigns, customer_id)

    def get_campaign_details(self, customer_id: str, campaign_id: str) -> Optional[CampaignDetails]:
        from .google_ads_api import get_campaign_details

        return self._call(f"loading campaign {campaign_id}", get_campaign_details, customer_id, campaign_id)

    def fetch_metric_rows(self, customer_id: str, query: MetricsQuery) -> List[MetricRow]:
        from .google_ads_api import fetch_metric_rows

        return self._call(f"fetching metrics for campaign {query.campaign_id}", fetch_metric_rows, customer_id, query)


def build_metrics_source(cfg: ClientConfig, data_source: Optional[str] = None) -> MetricsSource:
    """
    Build the source named by `data_source` (or cfg.data_source).

    Args:
        cfg: Client config
        data_source: Optional override, e.g. from KPI_DATA_SOURCE
    """
    kind = (data_source or cfg.data_source).strip().lower()
    logger.info(f"Using {kind} metrics source for {cfg.client_name}")

    if kind == "mock":
        return MockMetricsSource(seed=cfg.mock_seed)
    if kind == "google_ads":
        return GoogleAdsMetricsSource.from_config(cfg)
    if kind == "warehouse":
        from .warehouse import WarehouseMetricsSource

        return WarehouseMetricsSource(cfg.warehouse_path)

    raise ValueError(f"Unknown data source {kind!r}. Must be one of: mock | google_ads | warehouse")
