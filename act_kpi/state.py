"""
Dashboard state: selected campaign, active time range and the per-range
KPI/history cache.

Refreshes fetch the five time ranges one after another (never in parallel)
to stay under the Google Ads requests-per-minute ceiling. Readers only ever
see a whole DashboardSnapshot; a failed refresh leaves the previous snapshot
in place and sets `error`.
"""
from __future__ import annotations

import threading
import time
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from functools import partial
from types import MappingProxyType
from typing import Callable, Dict, List, Mapping, Optional, Tuple, Union

from .aggregator import aggregate_kpis
from .catalog import kpis_for
from .comparator import merge_with_previous
from .config import ClientConfig
from .data_sources import MetricsFetchError, MetricsSource, build_metrics_source
from .logging_config import setup_logging
from .models import Campaign, CampaignDetails, DateRange, KPIData, KPIHistoryData, MetricRow
from .query_builder import build_metrics_query
from .series import build_kpi_series
from .time_ranges import (
    TIME_RANGES,
    get_date_range,
    previous_date_range,
    today_in,
    today_utc,
    validate_time_range,
)

logger = setup_logging(__name__)

SYSTEM_MESSAGES = {
    "loading": "Loading...",
    "campaigns_error": "Unable to load campaigns. Please retry.",
    "performance_error": "Unable to load performance data. Please retry.",
    "empty": "No data for this campaign over the selected period.",
}


@dataclass(frozen=True)
class RangeResult:
    time_range: str
    date_range: DateRange
    previous_date_range: DateRange
    kpis: Tuple[KPIData, ...]
    history: Tuple[KPIHistoryData, ...]
    row_count: int


@dataclass(frozen=True)
class DashboardSnapshot:
    campaign: Optional[Campaign] = None
    details: Optional[CampaignDetails] = None
    ranges: Mapping[str, RangeResult] = field(default_factory=lambda: MappingProxyType({}))
    refreshed_at: Optional[datetime] = None


class KPIDashboardState:
    """Holds everything the presentation layer reads for one client account."""

    def __init__(
        self,
        source: MetricsSource,
        customer_id: str,
        default_time_range: str = "7d",
        inter_call_delay_seconds: float = 0.0,
        today_fn: Callable[[], date] = today_utc,
        sleep: Optional[Callable[[float], None]] = None,
    ):
        self.source = source
        self.customer_id = customer_id
        self.inter_call_delay_seconds = inter_call_delay_seconds
        self._today_fn = today_fn
        self._sleep = sleep if sleep is not None else time.sleep

        self._time_range = validate_time_range(default_time_range)
        self._campaigns: Tuple[Campaign, ...] = ()
        self._selected: Optional[Campaign] = None
        self._snapshot = DashboardSnapshot()
        self._is_loading = False
        self._error: Optional[str] = None

        self._refresh_lock = threading.Lock()
        self._generation = 0
        self._calls_in_refresh = 0

    @classmethod
    def from_config(
        cls,
        cfg: ClientConfig,
        data_source: Optional[str] = None,
        today_fn: Optional[Callable[[], date]] = None,
    ) -> "KPIDashboardState":
        """Build the state for one client; "today" follows the client's timezone unless today_fn is given."""
        if today_fn is None:
            today_fn = partial(today_in, cfg.timezone)
        return cls(
            source=build_metrics_source(cfg, data_source),
            customer_id=cfg.customer_id,
            default_time_range=cfg.default_time_range,
            inter_call_delay_seconds=cfg.refresh.inter_call_delay_seconds,
            today_fn=today_fn,
        )

    # ----------------------------
    # Read side
    # ----------------------------

    @property
    def campaigns(self) -> List[Campaign]:
        return list(self._campaigns)

    @property
    def selected_campaign(self) -> Optional[Campaign]:
        return self._selected

    @property
    def time_range(self) -> str:
        return self._time_range

    @property
    def snapshot(self) -> DashboardSnapshot:
        return self._snapshot

    @property
    def is_loading(self) -> bool:
        return self._is_loading

    @property
    def is_refreshing(self) -> bool:
        return self._refresh_lock.locked()

    @property
    def error(self) -> Optional[str]:
        return self._error

    def range_result(self, time_range: Optional[str] = None) -> Optional[RangeResult]:
        tr = validate_time_range(time_range or self._time_range)
        return self._snapshot.ranges.get(tr)

    def current_kpis(self) -> List[KPIData]:
        result = self.range_result()
        return list(result.kpis) if result else []

    def current_history(self) -> List[KPIHistoryData]:
        result = self.range_result()
        return list(result.history) if result else []

    def is_empty(self, time_range: Optional[str] = None) -> bool:
        result = self.range_result(time_range)
        return result is None or result.row_count == 0

    # ----------------------------
    # Commands
    # ----------------------------

    def load_campaigns(self, auto_select: bool = True) -> bool:
        """Fetch the campaign list; select the first campaign if none is selected."""
        self._is_loading = True
        self._error = None
        try:
            campaigns = self.source.list_campaigns(self.customer_id)
        except MetricsFetchError as e:
            logger.error(f"Failed to load campaigns for customer {self.customer_id}: {e}")
            self._error = SYSTEM_MESSAGES["campaigns_error"]
            return False
        finally:
            self._is_loading = False

        self._campaigns = tuple(campaigns)
        logger.info(f"Loaded {len(campaigns)} campaigns for customer {self.customer_id}")

        if auto_select and self._selected is None and campaigns:
            return self.select_campaign(campaigns[0])
        return True

    def select_campaign(self, campaign: Union[Campaign, str]) -> bool:
        """
        Switch to another campaign, drop the old cache and refresh all ranges.

        Args:
            campaign: Campaign or campaign id from the loaded list
        """
        if isinstance(campaign, str):
            match = [c for c in self._campaigns if c.id == campaign]
            if not match:
                raise ValueError(f"Unknown campaign id {campaign!r}")
            campaign = match[0]

        logger.info(f"Selected campaign {campaign.id} ({campaign.type}) {campaign.name}")
        self._selected = campaign
        self._generation += 1
        self._snapshot = DashboardSnapshot(campaign=campaign)
        self._error = None
        return self.refresh()

    def set_time_range(self, time_range: str) -> None:
        self._time_range = validate_time_range(time_range)

    def refresh(self) -> bool:
        """
        Recompute all five time ranges for the selected campaign.

        Returns False when no campaign is selected, when another refresh is
        already running, or when a fetch failed.
        """
        if self._selected is None:
            logger.info("Refresh requested with no campaign selected, nothing to do")
            return False

        if not self._refresh_lock.acquire(blocking=False):
            logger.warning("Refresh already in progress, request ignored")
            return False

        while True:
            try:
                while True:
                    generation = self._generation
                    ok = self._refresh_campaign(self._selected, generation)
                    if generation == self._generation:
                        break
                    logger.info("Campaign changed during refresh, reloading")
            finally:
                self._is_loading = False
                self._refresh_lock.release()

            # A select_campaign() between the check above and the release was
            # turned away by the lock; pick it up here.
            if generation == self._generation or not self._refresh_lock.acquire(blocking=False):
                return ok
            logger.info("Campaign changed while the refresh was finishing, reloading")

    # ----------------------------
    # Internals
    # ----------------------------

    def _fetch_rows(self, query) -> List[MetricRow]:
        if self._calls_in_refresh > 0 and self.inter_call_delay_seconds > 0:
            self._sleep(self.inter_call_delay_seconds)
        self._calls_in_refresh += 1
        return self.source.fetch_metric_rows(self.customer_id, query)

    def _compute_range(self, campaign: Campaign, kpis: Tuple[str, ...], time_range: str, today: date) -> RangeResult:
        date_range = get_date_range(time_range, today=today)
        prev_range = previous_date_range(date_range)

        rows = self._fetch_rows(build_metrics_query(kpis, date_range, campaign.id))
        prev_rows = self._fetch_rows(build_metrics_query(kpis, prev_range, campaign.id))

        current = aggregate_kpis(rows, kpis, time_range)
        previous = aggregate_kpis(prev_rows, kpis, time_range)
        history = build_kpi_series(rows, kpis, date_range, time_range)

        if not rows:
            logger.warning(f"No rows for campaign {campaign.id} in {time_range} window")

        return RangeResult(
            time_range=time_range,
            date_range=date_range,
            previous_date_range=prev_range,
            kpis=tuple(merge_with_previous(current, previous)),
            history=tuple(history),
            row_count=len(rows),
        )

    def _refresh_campaign(self, campaign: Campaign, generation: int) -> bool:
        self._is_loading = True
        self._error = None
        self._calls_in_refresh = 0
        started = time.monotonic()
        logger.info(f"Refreshing campaign {campaign.id} ({len(TIME_RANGES)} time ranges)")

        kpis = kpis_for(campaign.type)
        today = self._today_fn()
        results: Dict[str, RangeResult] = {}

        try:
            details = self.source.get_campaign_details(self.customer_id, campaign.id)
            for tr in TIME_RANGES:
                results[tr] = self._compute_range(campaign, kpis, tr, today)
        except MetricsFetchError as e:
            logger.error(f"Refresh failed for campaign {campaign.id} after {len(results)} ranges: {e}")
            self._error = SYSTEM_MESSAGES["performance_error"]
            return False

        if generation != self._generation:
            return False

        self._snapshot = DashboardSnapshot(
            campaign=campaign,
            details=details or CampaignDetails(campaign=campaign),
            ranges=MappingProxyType(results),
            refreshed_at=datetime.now(timezone.utc),
        )
        logger.info(
            f"Refreshed campaign {campaign.id} in {time.monotonic() - started:.2f}s "
            f"({self._calls_in_refresh} metrics calls)"
        )
        return True
