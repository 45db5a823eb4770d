"""
KPI catalog: display config per KPI, raw Google Ads fields per KPI, and the
KPI set shown for each campaign type.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, FrozenSet, Iterable, Optional, Tuple

from .models import CAMPAIGN_TYPES, KPIType


class UnknownKPIError(KeyError):
    """Raised for a KPI identifier outside the catalog."""


class UnknownCampaignTypeError(KeyError):
    """Raised for a campaign type with no KPI mapping."""


@dataclass(frozen=True)
class KPIConfig:
    label: str
    description: str
    format: str                         # number | percentage | currency | duration | multiplier
    trend: str                          # up-good | down-good
    aggregation: str                    # sum | average | last
    benchmark: Optional[float] = None

    @property
    def higher_is_better(self) -> bool:
        return self.trend == "up-good"


KPI_CONFIG: Dict[str, KPIConfig] = {
    "roas": KPIConfig(
        label="ROAS",
        description="Return on ad spend",
        format="multiplier",
        trend="up-good",
        aggregation="average",
        benchmark=3.0,
    ),
    "conversions": KPIConfig(
        label="Conversions",
        description="Total number of conversions",
        format="number",
        trend="up-good",
        aggregation="sum",
    ),
    "conversion_value": KPIConfig(
        label="Conv. value",
        description="Total conversion value",
        format="currency",
        trend="up-good",
        aggregation="sum",
    ),
    "cpa": KPIConfig(
        label="CPA",
        description="Cost per acquisition",
        format="currency",
        trend="down-good",
        aggregation="average",
    ),
    "conversion_rate": KPIConfig(
        label="Conv. rate",
        description="Conversion rate",
        format="percentage",
        trend="up-good",
        aggregation="average",
    ),
    "ctr": KPIConfig(
        label="CTR",
        description="Click-through rate",
        format="percentage",
        trend="up-good",
        aggregation="average",
    ),
    "cost": KPIConfig(
        label="Cost",
        description="Total spend",
        format="currency",
        trend="down-good",
        aggregation="sum",
    ),
    "cpv": KPIConfig(
        label="CPV",
        description="Cost per view",
        format="currency",
        trend="down-good",
        aggregation="average",
    ),
    "views": KPIConfig(
        label="Views",
        description="Total number of views",
        format="number",
        trend="up-good",
        aggregation="sum",
    ),
    "view_rate": KPIConfig(
        label="View rate",
        description="Share of impressions that became views",
        format="percentage",
        trend="up-good",
        aggregation="average",
    ),
    "watch_time": KPIConfig(
        label="Watch time",
        description="Estimated total watch time",
        format="duration",
        trend="up-good",
        aggregation="sum",
    ),
    "subscribers_gained": KPIConfig(
        label="Subscribers",
        description="Estimated new subscribers",
        format="number",
        trend="up-good",
        aggregation="sum",
    ),
    "cpc": KPIConfig(
        label="CPC",
        description="Cost per click",
        format="currency",
        trend="down-good",
        aggregation="average",
    ),
    "impression_share": KPIConfig(
        label="Impression share",
        description="Share of eligible impressions received",
        format="percentage",
        trend="up-good",
        aggregation="average",
    ),
    "quality_score": KPIConfig(
        label="Quality score",
        description="Ad and keyword quality",
        format="number",
        trend="up-good",
        aggregation="average",
    ),
    "impressions": KPIConfig(
        label="Impressions",
        description="Total number of impressions",
        format="number",
        trend="up-good",
        aggregation="sum",
    ),
    "interactions": KPIConfig(
        label="Interactions",
        description="Total number of interactions",
        format="number",
        trend="up-good",
        aggregation="sum",
    ),
}

KPI_TYPES: Tuple[str, ...] = tuple(KPI_CONFIG)

# Raw Google Ads metric fields (without the "metrics." prefix) each KPI needs.
KPI_METRIC_FIELDS: Dict[str, Tuple[str, ...]] = {
    "roas": ("conversion_value", "cost_micros"),
    "conversions": ("conversions",),
    "conversion_value": ("conversion_value",),
    "cpa": ("conversions", "cost_micros"),
    "conversion_rate": ("conversions", "clicks"),
    "ctr": ("clicks", "impressions"),
    "cost": ("cost_micros",),
    "cpv": ("video_views", "cost_micros"),
    "views": ("video_views",),
    "view_rate": ("video_views", "impressions"),
    "watch_time": ("video_quartile_p100_rate", "video_views", "average_video_duration"),
    "subscribers_gained": ("all_conversions",),
    "cpc": ("clicks", "cost_micros"),
    "impression_share": ("search_impression_share",),
    "quality_score": ("historical_quality_score",),
    "impressions": ("impressions",),
    "interactions": ("interactions",),
}

CAMPAIGN_TYPE_TO_KPIS: Dict[str, Tuple[str, ...]] = {
    "PERFORMANCE_MAX": ("roas", "conversions", "conversion_value", "cpa", "conversion_rate", "ctr", "cost"),
    "VIDEO": ("cpv", "views", "view_rate", "watch_time", "ctr", "subscribers_gained", "conversions"),
    "SEARCH": ("cpc", "ctr", "conversions", "impression_share", "quality_score"),
    "DISPLAY": ("impressions", "ctr", "interactions", "conversion_rate", "cpa"),
}

assert set(CAMPAIGN_TYPE_TO_KPIS) == set(CAMPAIGN_TYPES)
assert set(KPI_METRIC_FIELDS) == set(KPI_CONFIG)


def validate_kpi(kpi: str) -> KPIType:
    if kpi not in KPI_CONFIG:
        raise UnknownKPIError(kpi)
    return kpi


def get_kpi_config(kpi: str) -> KPIConfig:
    return KPI_CONFIG[validate_kpi(kpi)]


def kpis_for(campaign_type: str) -> Tuple[str, ...]:
    """Ordered KPI identifiers shown for a campaign type."""
    try:
        return CAMPAIGN_TYPE_TO_KPIS[campaign_type]
    except KeyError:
        raise UnknownCampaignTypeError(campaign_type) from None


def metrics_for(kpis: Iterable[str]) -> FrozenSet[str]:
    """De-duplicated union of raw metric fields needed by the given KPIs."""
    out: set[str] = set()
    for kpi in kpis:
        out.update(KPI_METRIC_FIELDS[validate_kpi(kpi)])
    return frozenset(out)
