"""
KPI aggregation: sum raw metric rows into totals, then derive each KPI from
the totals.

Ratio KPIs are always ratio-of-sums over the window, never an average of
daily ratios.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, List, Sequence

from .catalog import validate_kpi
from .models import METRIC_FIELDS, KPIData, MetricRow

MICROS_PER_UNIT = 1_000_000
# Google Ads has no subscriber metric; 5% of all conversions is used instead.
SUBSCRIBER_CONVERSION_SHARE = 0.05


@dataclass(frozen=True)
class MetricTotals:
    """Summed raw metrics for a set of rows. Missing values count as 0."""
    values: Dict[str, float] = field(default_factory=lambda: {f: 0.0 for f in METRIC_FIELDS})
    row_count: int = 0
    quality_score_rows: int = 0

    def __getattr__(self, name: str) -> float:
        # only reached for names that are not real attributes
        values = self.__dict__.get("values", {})
        if name in values:
            return values[name]
        raise AttributeError(name)

    def __add__(self, other: "MetricTotals") -> "MetricTotals":
        if not isinstance(other, MetricTotals):
            return NotImplemented
        return MetricTotals(
            values={f: self.values[f] + other.values[f] for f in METRIC_FIELDS},
            row_count=self.row_count + other.row_count,
            quality_score_rows=self.quality_score_rows + other.quality_score_rows,
        )


def _num(x) -> float:
    if x is None:
        return 0.0
    return float(x)


def sum_metric_rows(rows: Iterable[MetricRow]) -> MetricTotals:
    values = {f: 0.0 for f in METRIC_FIELDS}
    row_count = 0
    quality_score_rows = 0
    for row in rows:
        row_count += 1
        for f in METRIC_FIELDS:
            values[f] += _num(getattr(row, f))
        if row.historical_quality_score is not None:
            quality_score_rows += 1
    return MetricTotals(values=values, row_count=row_count, quality_score_rows=quality_score_rows)


def _ratio(numerator: float, denominator: float) -> float:
    if denominator == 0:
        return 0.0
    return numerator / denominator


def _cost(t: MetricTotals) -> float:
    return t.cost_micros / MICROS_PER_UNIT


_FORMULAS: Dict[str, Callable[[MetricTotals], float]] = {
    "roas": lambda t: _ratio(t.conversion_value * MICROS_PER_UNIT, t.cost_micros),
    "conversions": lambda t: t.conversions,
    "conversion_value": lambda t: t.conversion_value,
    "cpa": lambda t: _ratio(_cost(t), t.conversions),
    "conversion_rate": lambda t: _ratio(t.conversions, t.clicks) * 100,
    "ctr": lambda t: _ratio(t.clicks, t.impressions) * 100,
    "cost": _cost,
    "cpv": lambda t: _ratio(_cost(t), t.video_views),
    "views": lambda t: t.video_views,
    "view_rate": lambda t: _ratio(t.video_views, t.impressions) * 100,
    # rough estimate in seconds, not a true aggregate
    "watch_time": lambda t: t.video_views * t.average_video_duration * t.video_quartile_p100_rate,
    "subscribers_gained": lambda t: t.all_conversions * SUBSCRIBER_CONVERSION_SHARE,
    "cpc": lambda t: _ratio(_cost(t), t.clicks),
    "impression_share": lambda t: t.search_impression_share * 100,
    "quality_score": lambda t: _ratio(t.historical_quality_score, t.quality_score_rows),
    "impressions": lambda t: t.impressions,
    "interactions": lambda t: t.interactions,
}


def calculate_kpi_value(kpi: str, totals: MetricTotals) -> float:
    return float(_FORMULAS[validate_kpi(kpi)](totals))


def aggregate_kpis(
    rows: Sequence[MetricRow],
    kpis: Iterable[str],
    time_range: str,
) -> List[KPIData]:
    """
    Aggregate raw rows into one KPIData per requested KPI.

    Args:
        rows: Raw metric rows for the window (any order)
        kpis: KPI identifiers, output follows this order
        time_range: Time range label stored on every datum

    Returns:
        List of KPIData without comparison fields
    """
    totals = sum_metric_rows(rows)
    return [
        KPIData(type=kpi, value=calculate_kpi_value(kpi, totals), time_range=time_range)
        for kpi in kpis
    ]
