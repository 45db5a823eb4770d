from __future__ import annotations

import argparse
import json
import sys
from typing import Any, Dict

from .catalog import get_kpi_config
from .comparator import is_positive_change
from .config import load_client_config
from .data_sources import MetricsFetchError
from .formatting import format_value
from .settings import get_settings
from .state import SYSTEM_MESSAGES, KPIDashboardState
from .time_ranges import TIME_RANGES, TIME_RANGE_LABELS, parse_iso_date

TREND_ARROWS = {"up": "↑", "down": "↓", "stable": "→"}


def _build_state(args: argparse.Namespace) -> tuple[KPIDashboardState, Any]:
    cfg = load_client_config(args.client_config)
    settings = get_settings()
    # None: today in the client's timezone
    today_fn = None
    if getattr(args, "as_of", None):
        as_of = parse_iso_date(args.as_of)
        today_fn = lambda: as_of  # noqa: E731
    state = KPIDashboardState.from_config(
        cfg, data_source=args.source or settings.data_source, today_fn=today_fn
    )
    return state, cfg


def cmd_campaigns(args: argparse.Namespace) -> int:
    state, cfg = _build_state(args)
    try:
        campaigns = state.source.list_campaigns(cfg.customer_id)
    except MetricsFetchError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 1

    print(f"[KPI] client={cfg.client_name} customer_id={cfg.customer_id} campaigns={len(campaigns)}")
    for c in campaigns:
        print(f"  {c.id:<12} {c.type:<16} {c.status:<8} {c.name}")
    return 0


def _report_dict(state: KPIDashboardState, currency: str) -> Dict[str, Any]:
    result = state.range_result()
    snap = state.snapshot
    return {
        "campaign": snap.campaign.to_dict() if snap.campaign else None,
        "details": snap.details.to_dict() if snap.details else None,
        "time_range": state.time_range,
        "date_range": result.date_range.to_dict() if result else None,
        "empty": state.is_empty(),
        "kpis": [
            dict(k.to_dict(), formatted=format_value(k.value, k.type, currency))
            for k in (result.kpis if result else ())
        ],
        "history": [h.to_dict() for h in (result.history if result else ())],
    }


def cmd_report(args: argparse.Namespace) -> int:
    state, cfg = _build_state(args)
    state.set_time_range(args.time_range)

    if not state.load_campaigns(auto_select=False):
        print(f"ERROR: {state.error}", file=sys.stderr)
        return 1
    if not state.campaigns:
        print("No campaign available.")
        return 0

    try:
        state.select_campaign(args.campaign_id or state.campaigns[0])
    except ValueError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 2

    if state.error:
        print(f"ERROR: {state.error}", file=sys.stderr)
        return 1

    if args.json:
        print(json.dumps(_report_dict(state, cfg.currency), indent=2, default=str))
        return 0

    result = state.range_result()
    campaign = state.selected_campaign
    if campaign is None or result is None:
        print("No campaign available.")
        return 0

    print("")
    print(f"{campaign.name} ({campaign.type}, id={campaign.id})")
    print(
        f"{TIME_RANGE_LABELS[state.time_range]}: "
        f"{result.date_range.start_date.isoformat()}..{result.date_range.end_date.isoformat()} "
        f"vs {result.previous_date_range.start_date.isoformat()}..{result.previous_date_range.end_date.isoformat()}"
    )
    print("")
    if state.is_empty():
        print(SYSTEM_MESSAGES["empty"])
        return 0

    for k in result.kpis:
        label = get_kpi_config(k.type).label
        line = f"  {label:<18} {format_value(k.value, k.type, cfg.currency):>16}"
        if k.trend is not None:
            verdict = "good" if is_positive_change(k.change or 0.0, k.type) else "bad"
            if k.trend == "stable":
                verdict = "flat"
            line += f"  {TREND_ARROWS[k.trend]} {k.change_percentage:+.1f}% ({verdict})"
        print(line)
    print("")
    return 0


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="act_kpi", description="Google Ads KPI dashboard report")
    sub = p.add_subparsers(dest="cmd", required=True)

    def _common(sp: argparse.ArgumentParser) -> None:
        sp.add_argument("client_config", help="Path to configs/client_*.yaml")
        sp.add_argument(
            "--source",
            choices=["mock", "google_ads", "warehouse"],
            default=None,
            help="Override the config's data_source",
        )

    c = sub.add_parser("campaigns", help="List campaigns for the configured account.")
    _common(c)
    c.set_defaults(func=cmd_campaigns)

    r = sub.add_parser("report", help="Print KPIs for one campaign and time range.")
    _common(r)
    r.add_argument("--campaign-id", default=None, help="Campaign to report (default: first listed)")
    r.add_argument("--time-range", choices=list(TIME_RANGES), default="7d")
    r.add_argument("--as-of", default=None, help="YYYY-MM-DD end date of the window (default: today in the client timezone)")
    r.add_argument("--json", action="store_true", help="Emit JSON instead of a table")
    r.set_defaults(func=cmd_report)

    return p


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    return int(args.func(args))


if __name__ == "__main__":
    raise SystemExit(main())
