"""
Query builder: turns a KPI set and a date window into the minimal Google Ads
field projection and date predicate. No network I/O.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, Optional, Tuple

from .catalog import metrics_for
from .models import METRIC_FIELDS, DateRange

SEGMENT_FIELDS: Tuple[str, ...] = ("campaign.id", "segments.date")

# MetricRow field -> Google Ads `metrics.*` field. None: the API has no such
# metric, the row keeps None and the KPI falls back to 0 for live data.
GAQL_METRIC_FIELDS: Dict[str, Optional[str]] = {
    "clicks": "clicks",
    "impressions": "impressions",
    "cost_micros": "cost_micros",
    "conversions": "conversions",
    "conversion_value": "conversions_value",
    "video_views": "video_views",
    "interactions": "interactions",
    "video_quartile_p100_rate": "video_quartile_p100_rate",
    "average_video_duration": None,
    "search_impression_share": "search_impression_share",
    "historical_quality_score": "historical_quality_score",
    "all_conversions": "all_conversions",
}

assert set(GAQL_METRIC_FIELDS) == set(METRIC_FIELDS)


def gaql_metric_field(field: str) -> Optional[str]:
    return GAQL_METRIC_FIELDS[field]


@dataclass(frozen=True)
class MetricsQuery:
    metric_fields: Tuple[str, ...]      # MetricRow names, e.g. "conversion_value"
    date_range: DateRange
    campaign_id: Optional[str] = None

    @property
    def api_metric_fields(self) -> Tuple[str, ...]:
        """Metric fields the Google Ads API can return, as MetricRow names."""
        return tuple(f for f in self.metric_fields if GAQL_METRIC_FIELDS[f] is not None)

    @property
    def select_fields(self) -> Tuple[str, ...]:
        return SEGMENT_FIELDS + tuple(
            f"metrics.{GAQL_METRIC_FIELDS[m]}" for m in self.api_metric_fields
        )

    def to_gaql(self) -> str:
        select_sql = ",\n      ".join(self.select_fields)
        where = [
            f"segments.date BETWEEN '{self.date_range.start_date.isoformat()}' "
            f"AND '{self.date_range.end_date.isoformat()}'"
        ]
        if self.campaign_id is not None:
            where.insert(0, f"campaign.id = {self.campaign_id}")
        where_sql = "\n      AND ".join(where)
        return (
            "SELECT\n"
            f"      {select_sql}\n"
            "    FROM campaign\n"
            "    WHERE\n"
            f"      {where_sql}\n"
            "    ORDER BY segments.date"
        )


def build_metrics_query(
    kpis: Iterable[str],
    date_range: DateRange,
    campaign_id: Optional[str] = None,
) -> MetricsQuery:
    if campaign_id is not None:
        campaign_id = str(campaign_id).strip()
        if not campaign_id.isdigit():
            raise ValueError(f"campaign_id must contain digits only, got {campaign_id!r}")

    return MetricsQuery(
        metric_fields=tuple(sorted(metrics_for(kpis))),
        date_range=date_range,
        campaign_id=campaign_id,
    )
