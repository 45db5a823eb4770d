"""
API routes - campaigns, KPIs, time range, refresh, status.
"""

from flask import Blueprint, request, jsonify, current_app

from act_kpi.catalog import get_kpi_config
from act_kpi.comparator import is_positive_change
from act_kpi.formatting import format_value
from act_kpi.state import SYSTEM_MESSAGES
from act_kpi.time_ranges import TIME_RANGES, TIME_RANGE_LABELS

bp = Blueprint('api', __name__)

# Each refresh costs ten metrics calls (five ranges, current + previous)
REFRESH_LIMIT = "10 per minute"


def _state():
    return current_app.config['KPI_STATE']


def _ensure_campaigns(state):
    """Load the campaign list on first use, and again after a failed or empty load."""
    if not state.campaigns:
        state.load_campaigns()


def kpi_payload(kpi, currency):
    """KPIData as JSON plus display fields."""
    config = get_kpi_config(kpi.type)
    out = kpi.to_dict()
    out.update({
        'label': config.label,
        'description': config.description,
        'format': config.format,
        'formatted': format_value(kpi.value, kpi.type, currency),
        'benchmark': config.benchmark,
        'is_positive': (
            is_positive_change(kpi.change, kpi.type) if kpi.change is not None else None
        ),
    })
    return out


def status_payload(state):
    snapshot = state.snapshot
    selected = state.selected_campaign
    return {
        'success': state.error is None,
        'is_loading': state.is_loading,
        'loading_message': SYSTEM_MESSAGES['loading'] if state.is_loading else None,
        'error': state.error,
        'selected_campaign': selected.to_dict() if selected else None,
        'time_range': state.time_range,
        'refreshed_at': snapshot.refreshed_at.isoformat() if snapshot.refreshed_at else None,
    }


@bp.route("/campaigns", methods=["GET"])
def list_campaigns():
    """
    Returns JSON:
        {
            "success": bool,
            "campaigns": [{id, name, type, status, start_date}],
            "selected_campaign_id": str or null,
            "error": str or null
        }
    """
    state = _state()
    _ensure_campaigns(state)
    selected = state.selected_campaign
    return jsonify({
        'success': state.error is None,
        'campaigns': [c.to_dict() for c in state.campaigns],
        'selected_campaign_id': selected.id if selected else None,
        'error': state.error,
    })


@bp.route("/campaigns/<campaign_id>/select", methods=["POST"])
def select_campaign(campaign_id):
    state = _state()
    _ensure_campaigns(state)

    if campaign_id not in {c.id for c in state.campaigns}:
        return jsonify({
            'success': False,
            'error': 'Not found',
            'message': f'Unknown campaign {campaign_id}',
        }), 404

    state.select_campaign(campaign_id)
    return jsonify(status_payload(state))


@bp.route("/kpis", methods=["GET"])
def get_kpis():
    """
    KPI cards and chart series for one time range.

    Query params:
        time_range: 30d | 14d | 7d | 3d | 24h (default: active range)
    """
    state = _state()
    time_range = request.args.get('time_range') or state.time_range
    if time_range not in TIME_RANGES:
        return jsonify({
            'success': False,
            'error': 'Invalid time_range',
            'message': f"time_range must be one of: {', '.join(TIME_RANGES)}",
        }), 400

    _ensure_campaigns(state)

    currency = current_app.config['KPI_CURRENCY']
    snapshot = state.snapshot
    result = state.range_result(time_range)
    empty = state.is_empty(time_range)

    return jsonify({
        'success': state.error is None,
        'error': state.error,
        'is_loading': state.is_loading,
        'campaign': snapshot.campaign.to_dict() if snapshot.campaign else None,
        'details': snapshot.details.to_dict() if snapshot.details else None,
        'time_range': time_range,
        'time_range_label': TIME_RANGE_LABELS[time_range],
        'date_range': result.date_range.to_dict() if result else None,
        'previous_date_range': result.previous_date_range.to_dict() if result else None,
        'empty': empty,
        'empty_message': SYSTEM_MESSAGES['empty'] if empty and result is not None else None,
        'kpis': [kpi_payload(k, currency) for k in (result.kpis if result else ())],
        'history': [h.to_dict() for h in (result.history if result else ())],
    })


@bp.route("/time-range", methods=["POST"])
def set_time_range():
    """
    Request JSON:
        {"time_range": "7d"}
    """
    data = request.get_json(silent=True) or {}
    time_range = data.get('time_range')
    if time_range not in TIME_RANGES:
        return jsonify({
            'success': False,
            'error': 'Invalid time_range',
            'message': f"time_range must be one of: {', '.join(TIME_RANGES)}",
        }), 400

    state = _state()
    state.set_time_range(time_range)
    return jsonify(status_payload(state))


def _refresh_in_progress():
    return jsonify({
        'success': False,
        'error': 'Refresh in progress',
        'message': SYSTEM_MESSAGES['loading'],
    }), 409


@bp.route("/refresh", methods=["POST"])
def refresh():
    state = _state()

    if state.selected_campaign is None:
        return jsonify({
            'success': False,
            'error': 'No campaign selected',
            'message': 'Select a campaign before refreshing.',
        }), 400

    if state.is_refreshing:
        return _refresh_in_progress()

    ok = state.refresh()
    if not ok and state.error is None:
        # another request took the refresh lock first
        return _refresh_in_progress()
    payload = status_payload(state)
    payload['success'] = ok
    return jsonify(payload), (200 if ok else 502)


@bp.route("/status", methods=["GET"])
def status():
    return jsonify(status_payload(_state()))
