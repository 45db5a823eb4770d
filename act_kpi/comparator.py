"""
Period-over-period comparison of KPI values.

Trend is a magnitude-of-change classification only. Whether a change is good
or bad for a KPI is answered separately by is_positive_change().
"""
from __future__ import annotations

from dataclasses import replace
from typing import Dict, List, Sequence

from .catalog import KPI_CONFIG
from .models import KPIData, Trend

STABLE_THRESHOLD_PCT = 1.0


def calculate_change_percentage(current: float, previous: float) -> float:
    """
    Percentage change from previous to current (12.5 means +12.5%).

    A zero previous value yields 100 when current grew, 0 otherwise.
    """
    if previous == 0:
        return 100.0 if current > 0 else 0.0
    return (current - previous) / previous * 100


def classify_trend(change_percentage: float) -> Trend:
    if abs(change_percentage) < STABLE_THRESHOLD_PCT:
        return "stable"
    if change_percentage > 0:
        return "up"
    return "down"


def merge_with_previous(current: Sequence[KPIData], previous: Sequence[KPIData]) -> List[KPIData]:
    """
    Attach previous-period values, change and trend to each current datum.

    A current datum with no previous datum of the same KPI passes through
    unchanged.
    """
    previous_by_type: Dict[str, KPIData] = {}
    for p in previous:
        previous_by_type.setdefault(p.type, p)

    out: List[KPIData] = []
    for cur in current:
        prev = previous_by_type.get(cur.type)
        if prev is None:
            out.append(cur)
            continue

        change_pct = calculate_change_percentage(cur.value, prev.value)
        out.append(
            replace(
                cur,
                previous_value=prev.value,
                change=cur.value - prev.value,
                change_percentage=change_pct,
                trend=classify_trend(change_pct),
            )
        )
    return out


def is_positive_change(change: float, kpi: str) -> bool:
    """True if the change is an improvement given the KPI's polarity."""
    config = KPI_CONFIG.get(kpi)
    if config is None:
        return change > 0
    if config.higher_is_better:
        return change > 0
    return change < 0
