"""
Per-day KPI series for the dashboard charts.

Every calendar day of the window gets one point per KPI; days without a row
are 0. Each day is computed from that day's rows alone, the same way the
window totals are.
"""
from __future__ import annotations

from datetime import date
from typing import Dict, Iterable, List, Sequence

from .aggregator import calculate_kpi_value, sum_metric_rows
from .logging_config import setup_logging
from .models import DateRange, KPIHistoryData, KPIHistoryPoint, MetricRow
from .time_ranges import days_in_range

logger = setup_logging(__name__)


def build_kpi_series(
    rows: Sequence[MetricRow],
    kpis: Iterable[str],
    date_range: DateRange,
    time_range: str,
) -> List[KPIHistoryData]:
    """
    One value per calendar day per KPI, for charting.

    Each day uses only that day's raw values. Days without a row are 0.
    If several rows share a day the last one wins.
    """
    by_day: Dict[date, MetricRow] = {}
    for row in rows:
        if row.date in by_day:
            logger.debug(f"Duplicate metrics row for {row.date.isoformat()}, keeping the last one")
        by_day[row.date] = row

    days = days_in_range(date_range)
    day_totals = {d: sum_metric_rows([by_day[d]]) for d in days if d in by_day}

    out: List[KPIHistoryData] = []
    for kpi in kpis:
        points = tuple(
            KPIHistoryPoint(
                date=d,
                value=calculate_kpi_value(kpi, day_totals[d]) if d in day_totals else 0.0,
            )
            for d in days
        )
        out.append(KPIHistoryData(type=kpi, time_range=time_range, data=points))
    return out
