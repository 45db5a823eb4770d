"""
DuckDB warehouse source: reads the campaign daily rows already loaded by the
ingestion pipeline (analytics.campaign_daily).
"""
from __future__ import annotations

from typing import Any, List, Optional

import duckdb

from .data_sources import MetricsFetchError, MetricsSource
from .google_ads_api import map_campaign_type
from .logging_config import setup_logging
from .models import Campaign, CampaignDetails, MetricRow
from .query_builder import MetricsQuery

logger = setup_logging(__name__)

SOURCE_TABLE = "analytics.campaign_daily"

# metric field -> candidate warehouse columns, first match wins
COLUMN_CANDIDATES = {
    "conversion_value": ("conversion_value", "conversions_value"),
}


def _lower_cols(con: duckdb.DuckDBPyConnection) -> set[str]:
    rows = con.execute(
        """
        SELECT column_name
        FROM information_schema.columns
        WHERE table_schema = 'analytics' AND table_name = 'campaign_daily'
        """
    ).fetchall()
    return set(str(r[0]).lower() for r in rows)


def _pick_expr(cols: set[str], field: str) -> str:
    for col in COLUMN_CANDIDATES.get(field, (field,)):
        if col in cols:
            return f"CAST(SUM({col}) AS DOUBLE) AS {field}"
    return f"CAST(NULL AS DOUBLE) AS {field}"


class WarehouseMetricsSource(MetricsSource):
    name = "warehouse"

    def __init__(self, db_path: str = "warehouse.duckdb", con: Optional[duckdb.DuckDBPyConnection] = None):
        self.db_path = db_path
        self._con = con

    def _connect(self) -> duckdb.DuckDBPyConnection:
        if self._con is not None:
            return self._con
        return duckdb.connect(self.db_path, read_only=True)

    def _query(self, sql: str, params: List[Any]) -> List[tuple]:
        con = None
        try:
            con = self._connect()
            cols = _lower_cols(con)
            if not cols:
                raise MetricsFetchError(f"{SOURCE_TABLE} not found in {self.db_path}")
            return con.execute(sql, params).fetchall()
        except duckdb.Error as e:
            logger.error(f"Warehouse query failed: {e}")
            raise MetricsFetchError(f"Warehouse query failed: {e}") from e
        finally:
            if con is not None and self._con is None:
                con.close()

    def list_campaigns(self, customer_id: str) -> List[Campaign]:
        rows = self._query(
            f"""
            SELECT
              CAST(campaign_id AS VARCHAR) AS campaign_id,
              arg_max(campaign_name, snapshot_date) AS campaign_name,
              arg_max(campaign_status, snapshot_date) AS campaign_status,
              arg_max(channel_type, snapshot_date) AS channel_type,
              MIN(snapshot_date) AS first_date
            FROM {SOURCE_TABLE}
            WHERE customer_id = ?
            GROUP BY 1
            HAVING arg_max(campaign_status, snapshot_date) != 'REMOVED'
            ORDER BY campaign_name
            """,
            [customer_id],
        )
        return [
            Campaign(
                id=str(r[0]),
                name=str(r[1]),
                status=str(r[2] or "ENABLED"),
                type=map_campaign_type(str(r[3] or "")),
                start_date=r[4].isoformat() if r[4] is not None else None,
            )
            for r in rows
        ]

    def get_campaign_details(self, customer_id: str, campaign_id: str) -> Optional[CampaignDetails]:
        for c in self.list_campaigns(customer_id):
            if c.id == str(campaign_id):
                return CampaignDetails(campaign=c)
        return None

    def fetch_metric_rows(self, customer_id: str, query: MetricsQuery) -> List[MetricRow]:
        con = None
        try:
            con = self._connect()
            cols = _lower_cols(con)
            if not cols:
                raise MetricsFetchError(f"{SOURCE_TABLE} not found in {self.db_path}")

            select_sql = ",\n              ".join(_pick_expr(cols, f) for f in query.metric_fields)
            where = ["customer_id = ?", "snapshot_date BETWEEN ? AND ?"]
            params: List[Any] = [customer_id, query.date_range.start_date, query.date_range.end_date]
            if query.campaign_id is not None:
                where.append("CAST(campaign_id AS VARCHAR) = ?")
                params.append(str(query.campaign_id))

            sql = f"""
            SELECT
              CAST(campaign_id AS VARCHAR) AS campaign_id,
              snapshot_date{"," if select_sql else ""}
              {select_sql}
            FROM {SOURCE_TABLE}
            WHERE {" AND ".join(where)}
            GROUP BY 1, 2
            ORDER BY snapshot_date
            """
            result = con.execute(sql, params).fetchall()
        except duckdb.Error as e:
            logger.error(f"Warehouse query failed: {e}")
            raise MetricsFetchError(f"Warehouse query failed: {e}") from e
        finally:
            if con is not None and self._con is None:
                con.close()

        out: List[MetricRow] = []
        for r in result:
            values = {f: (float(v) if v is not None else None) for f, v in zip(query.metric_fields, r[2:])}
            out.append(MetricRow(campaign_id=str(r[0]), date=r[1], **values))
        return out
