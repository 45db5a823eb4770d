"""
Google Ads API access for the KPI dashboard.

Handles:
- Client construction from a google-ads YAML (no process-wide singleton)
- Campaign listing and campaign details
- Daily metrics queries built by query_builder
- Conversion of API rows into MetricRow
"""
from __future__ import annotations

from pathlib import Path
from typing import Any, Iterable, List, Optional

import yaml
from google.ads.googleads.client import GoogleAdsClient

from .logging_config import setup_logging
from .models import Campaign, CampaignDetails, MetricRow
from .query_builder import MetricsQuery, gaql_metric_field
from .time_ranges import parse_iso_date

logger = setup_logging(__name__)

REQUIRED_CREDENTIAL_KEYS = ["developer_token", "client_id", "client_secret", "refresh_token"]

CAMPAIGNS_QUERY = """
    SELECT
      campaign.id,
      campaign.name,
      campaign.status,
      campaign.advertising_channel_type,
      campaign.advertising_channel_sub_type,
      campaign.start_date
    FROM campaign
    WHERE campaign.status != 'REMOVED'
    ORDER BY campaign.name
"""


def _digits_only(s: str) -> str:
    return "".join(ch for ch in s if ch.isdigit())


def _enum_name(v: Any) -> str:
    name = getattr(v, "name", None)
    if name:
        return str(name)
    return str(v).split(".")[-1]


def load_google_ads_client(creds_path: str, mcc_id: Optional[str] = None) -> GoogleAdsClient:
    """
    Build a GoogleAdsClient from a google-ads YAML.

    Args:
        creds_path: Path to google-ads.yaml
        mcc_id: Optional manager account used as login_customer_id

    Raises:
        FileNotFoundError: If the YAML doesn't exist
        ValueError: If required credential fields are missing
    """
    p = Path(creds_path)
    if not p.exists():
        raise FileNotFoundError(f"Google Ads credentials YAML not found: {creds_path}")

    with p.open("r", encoding="utf-8") as f:
        cfg = yaml.safe_load(f) or {}

    missing = [k for k in REQUIRED_CREDENTIAL_KEYS if not cfg.get(k)]
    if missing:
        raise ValueError(
            f"{creds_path} is missing required fields: " + ", ".join(missing)
        )

    if mcc_id:
        cfg["login_customer_id"] = _digits_only(mcc_id)

    if "use_proto_plus" not in cfg:
        cfg["use_proto_plus"] = True

    logger.info(f"Loading Google Ads client from {creds_path}")
    return GoogleAdsClient.load_from_dict(cfg)


def map_campaign_type(channel_type: str, channel_sub_type: str = "") -> str:
    """
    Map Google Ads channel type/sub-type to a dashboard campaign type.

    >>> map_campaign_type("VIDEO", "VIDEO_ACTION")
    'VIDEO'
    >>> map_campaign_type("SHOPPING")
    'DISPLAY'
    """
    combined = f"{channel_type}_{channel_sub_type or ''}".upper()
    if "PERFORMANCE_MAX" in combined:
        return "PERFORMANCE_MAX"
    if "VIDEO" in combined:
        return "VIDEO"
    if "SEARCH" in combined:
        return "SEARCH"
    return "DISPLAY"


def _search(client: GoogleAdsClient, customer_id: str, query: str, timeout: float) -> Iterable[Any]:
    ga_service = client.get_service("GoogleAdsService")
    stream = ga_service.search_stream(customer_id=customer_id, query=query, timeout=timeout)
    for batch in stream:
        for r in batch.results:
            yield r


def list_campaigns(client: GoogleAdsClient, customer_id: str, timeout: float = 30.0) -> List[Campaign]:
    out: List[Campaign] = []
    for r in _search(client, customer_id, CAMPAIGNS_QUERY, timeout):
        c = r.campaign
        out.append(
            Campaign(
                id=str(c.id),
                name=str(c.name),
                status=_enum_name(c.status),
                type=map_campaign_type(
                    _enum_name(c.advertising_channel_type),
                    _enum_name(c.advertising_channel_sub_type),
                ),
                start_date=str(c.start_date) or None,
            )
        )
    return out


def get_campaign_details(
    client: GoogleAdsClient, customer_id: str, campaign_id: str, timeout: float = 30.0
) -> Optional[CampaignDetails]:
    query = f"""
    SELECT
      campaign.id,
      campaign.name,
      campaign.status,
      campaign.advertising_channel_type,
      campaign.advertising_channel_sub_type,
      campaign.start_date,
      campaign.end_date,
      campaign.bidding_strategy_type,
      campaign.target_roas.target_roas,
      campaign.target_cpa.target_cpa_micros,
      campaign_budget.amount_micros
    FROM campaign
    WHERE campaign.id = {campaign_id}
    LIMIT 1
    """
    rows = list(_search(client, customer_id, query, timeout))
    if not rows:
        return None
    r = rows[0]
    c = r.campaign

    ad_groups_query = f"""
    SELECT
      ad_group.id
    FROM ad_group
    WHERE campaign.id = {campaign_id}
    """
    ad_groups = sum(1 for _ in _search(client, customer_id, ad_groups_query, timeout))

    budget_micros = int(r.campaign_budget.amount_micros or 0)
    target_cpa_micros = int(c.target_cpa.target_cpa_micros or 0)
    target_roas = float(c.target_roas.target_roas or 0.0)

    return CampaignDetails(
        campaign=Campaign(
            id=str(c.id),
            name=str(c.name),
            status=_enum_name(c.status),
            type=map_campaign_type(
                _enum_name(c.advertising_channel_type),
                _enum_name(c.advertising_channel_sub_type),
            ),
            start_date=str(c.start_date) or None,
        ),
        budget_amount=budget_micros / 1_000_000 if budget_micros else None,
        budget_type="DAILY",
        bidding_strategy=_enum_name(c.bidding_strategy_type),
        ad_groups=ad_groups,
        end_date=str(c.end_date) or None,
        target_roas=target_roas or None,
        target_cpa=target_cpa_micros / 1_000_000 if target_cpa_micros else None,
    )


def row_to_metric_row(r: Any, metric_fields: Iterable[str]) -> MetricRow:
    """
    Copy only the queried metric fields; the rest stay None.

    metric_fields are MetricRow names; each is read from the row's
    `metrics` message under its Google Ads name (GAQL_METRIC_FIELDS).
    Fields the API does not expose are left None.
    """
    values = {}
    for f in metric_fields:
        api_field = gaql_metric_field(f)
        if api_field is not None:
            values[f] = float(getattr(r.metrics, api_field))
    return MetricRow(
        campaign_id=str(r.campaign.id),
        date=parse_iso_date(str(r.segments.date)),
        **values,
    )


def fetch_metric_rows(
    client: GoogleAdsClient, customer_id: str, query: MetricsQuery, timeout: float = 30.0
) -> List[MetricRow]:
    gaql = query.to_gaql()
    logger.info(
        f"GAQL metrics query customer={customer_id} campaign={query.campaign_id} "
        f"range={query.date_range.start_date}..{query.date_range.end_date} "
        f"fields={len(query.metric_fields)}"
    )
    return [row_to_metric_row(r, query.metric_fields) for r in _search(client, customer_id, gaql, timeout)]
