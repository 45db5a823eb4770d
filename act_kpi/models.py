"""
KPI data models: campaigns, raw metric rows, KPI data and history series.

All models are immutable value objects. The dashboard state replaces them
wholesale on every refresh.
"""
from __future__ import annotations

from dataclasses import asdict, dataclass, field, fields
from datetime import date
from typing import Any, Dict, List, Literal, Optional, Tuple

KPIType = Literal[
    "roas",
    "conversions",
    "conversion_value",
    "cpa",
    "conversion_rate",
    "ctr",
    "cost",
    "cpv",
    "views",
    "view_rate",
    "watch_time",
    "subscribers_gained",
    "cpc",
    "impression_share",
    "quality_score",
    "impressions",
    "interactions",
]
CampaignType = Literal["PERFORMANCE_MAX", "VIDEO", "SEARCH", "DISPLAY"]
CampaignStatus = Literal["ENABLED", "PAUSED", "REMOVED"]
TimeRange = Literal["30d", "14d", "7d", "3d", "24h"]
Trend = Literal["up", "down", "stable"]

CAMPAIGN_TYPES: Tuple[str, ...] = ("PERFORMANCE_MAX", "VIDEO", "SEARCH", "DISPLAY")


@dataclass(frozen=True)
class Campaign:
    """A Google Ads campaign as listed in the campaign selector."""
    id: str
    name: str
    type: CampaignType
    status: CampaignStatus = "ENABLED"
    start_date: Optional[str] = None    # YYYY-MM-DD

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class CampaignDetails:
    """Campaign plus budget/bidding information shown in the header."""
    campaign: Campaign
    budget_amount: Optional[float] = None   # currency units (not micros)
    budget_type: str = "DAILY"              # DAILY | TOTAL
    bidding_strategy: Optional[str] = None
    ad_groups: Optional[int] = None
    end_date: Optional[str] = None
    target_roas: Optional[float] = None
    target_cpa: Optional[float] = None
    target_audiences: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        out = asdict(self)
        out["campaign"] = self.campaign.to_dict()
        return out


@dataclass(frozen=True)
class DateRange:
    """Inclusive calendar window [start_date, end_date]."""
    start_date: date
    end_date: date

    def __post_init__(self):
        if self.end_date < self.start_date:
            raise ValueError(
                f"end_date {self.end_date} is before start_date {self.start_date}"
            )

    @property
    def days(self) -> int:
        return (self.end_date - self.start_date).days + 1

    def to_dict(self) -> Dict[str, str]:
        return {
            "start_date": self.start_date.isoformat(),
            "end_date": self.end_date.isoformat(),
        }


@dataclass(frozen=True)
class MetricRow:
    """
    One day of raw metrics for one campaign, as delivered by the ad platform.

    Metric fields are None when the source did not report them. They are
    treated as 0 when rows are summed (see aggregator.sum_metric_rows).
    """
    campaign_id: str
    date: date
    clicks: Optional[float] = None
    impressions: Optional[float] = None
    cost_micros: Optional[float] = None
    conversions: Optional[float] = None
    conversion_value: Optional[float] = None
    video_views: Optional[float] = None
    interactions: Optional[float] = None
    video_quartile_p100_rate: Optional[float] = None
    average_video_duration: Optional[float] = None
    search_impression_share: Optional[float] = None
    historical_quality_score: Optional[float] = None
    all_conversions: Optional[float] = None


METRIC_FIELDS: Tuple[str, ...] = tuple(
    f.name for f in fields(MetricRow) if f.name not in ("campaign_id", "date")
)


@dataclass(frozen=True)
class KPIData:
    """One KPI value for one time range, optionally compared with the previous period."""
    type: KPIType
    value: float
    time_range: TimeRange
    previous_value: Optional[float] = None
    change: Optional[float] = None
    change_percentage: Optional[float] = None
    trend: Optional[Trend] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class KPIHistoryPoint:
    date: date
    value: float


@dataclass(frozen=True)
class KPIHistoryData:
    """Per-day values of one KPI across a time range (chart series)."""
    type: KPIType
    time_range: TimeRange
    data: Tuple[KPIHistoryPoint, ...]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type,
            "time_range": self.time_range,
            "data": [{"date": p.date.isoformat(), "value": p.value} for p in self.data],
        }
