"""
KPI Module: Google Ads campaign KPI dashboard core

Picks the KPIs for a campaign type, builds the metrics query, aggregates
daily rows into KPI values and chart series, and compares each time range
with the period before it.
"""

from .catalog import (
    KPI_CONFIG,
    KPIConfig,
    UnknownCampaignTypeError,
    UnknownKPIError,
    get_kpi_config,
    kpis_for,
    metrics_for,
)
from .models import Campaign, CampaignDetails, DateRange, KPIData, KPIHistoryData, KPIHistoryPoint, MetricRow
from .query_builder import MetricsQuery, build_metrics_query
from .aggregator import MetricTotals, aggregate_kpis, calculate_kpi_value, sum_metric_rows
from .series import build_kpi_series
from .comparator import calculate_change_percentage, is_positive_change, merge_with_previous
from .formatting import format_value, parse_value
from .time_ranges import TIME_RANGES, get_date_range, previous_date_range
from .data_sources import MetricsFetchError, MetricsSource, MockMetricsSource, build_metrics_source
from .state import DashboardSnapshot, KPIDashboardState, RangeResult

__all__ = [
    'KPI_CONFIG',
    'KPIConfig',
    'UnknownCampaignTypeError',
    'UnknownKPIError',
    'get_kpi_config',
    'kpis_for',
    'metrics_for',
    'Campaign',
    'CampaignDetails',
    'DateRange',
    'KPIData',
    'KPIHistoryData',
    'KPIHistoryPoint',
    'MetricRow',
    'MetricsQuery',
    'build_metrics_query',
    'MetricTotals',
    'aggregate_kpis',
    'calculate_kpi_value',
    'sum_metric_rows',
    'build_kpi_series',
    'calculate_change_percentage',
    'is_positive_change',
    'merge_with_previous',
    'format_value',
    'parse_value',
    'TIME_RANGES',
    'get_date_range',
    'previous_date_range',
    'MetricsFetchError',
    'MetricsSource',
    'MockMetricsSource',
    'build_metrics_source',
    'DashboardSnapshot',
    'KPIDashboardState',
    'RangeResult',
]
