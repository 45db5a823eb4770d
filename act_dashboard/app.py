"""
KPI Dashboard - JSON API
Flask boundary over one KPIDashboardState (one client account per process).
"""

from flask import Flask, jsonify, request
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from pathlib import Path
import logging
from logging.handlers import RotatingFileHandler

from act_kpi.config import load_client_config
from act_kpi.settings import get_settings
from act_kpi.state import KPIDashboardState
from act_dashboard.routes import register_blueprints

DEFAULT_LIMITS = ["200 per day", "50 per hour"]


def create_app(config_path=None, state=None, currency=None, testing=False):
    """
    Create and configure Flask application.

    Args:
        config_path: Client YAML (default: DASHBOARD_CONFIG)
        state: Prebuilt KPIDashboardState, skips config loading (tests)
        currency: Currency code used for formatted values
        testing: Flask TESTING flag

    Returns:
        Flask app instance
    """
    settings = get_settings()
    app = Flask(__name__)
    app.secret_key = settings.dashboard_secret_key
    app.config["TESTING"] = testing

    if state is None:
        cfg = load_client_config(config_path or settings.dashboard_config)
        state = KPIDashboardState.from_config(cfg, data_source=settings.data_source)
        currency = currency or cfg.currency
        app.config["CLIENT_NAME"] = cfg.client_name

    app.config["KPI_STATE"] = state
    app.config["KPI_CURRENCY"] = currency or "EUR"

    # Configure logging
    if not app.debug and not testing:
        logs_dir = Path(settings.log_dir)
        logs_dir.mkdir(parents=True, exist_ok=True)

        file_handler = RotatingFileHandler(
            logs_dir / "dashboard.log",
            maxBytes=10240000,  # 10MB
            backupCount=10,
        )
        file_handler.setFormatter(logging.Formatter(
            '%(asctime)s %(levelname)s: %(message)s [in %(pathname)s:%(lineno)d]'
        ))
        level = getattr(logging, settings.log_level.upper(), logging.INFO)
        file_handler.setLevel(level)
        app.logger.addHandler(file_handler)

        app.logger.setLevel(level)
        app.logger.info('Dashboard startup')

    # Rate limiter; /api/refresh gets a stricter limit (see routes.api)
    limiter = Limiter(
        app=app,
        key_func=get_remote_address,
        default_limits=DEFAULT_LIMITS,
        storage_uri="memory://",
    )
    app.config['LIMITER'] = limiter

    register_blueprints(app)

    @app.errorhandler(400)
    def bad_request_error(error):
        return jsonify({
            'success': False,
            'error': 'Bad request',
            'message': getattr(error, 'description', str(error)),
        }), 400

    @app.errorhandler(404)
    def not_found_error(error):
        return jsonify({
            'success': False,
            'error': 'Not found',
            'message': f'Endpoint {request.path} does not exist',
        }), 404

    @app.errorhandler(500)
    def internal_error(error):
        app.logger.error(f'Server Error: {error}')
        return jsonify({
            'success': False,
            'error': 'Internal server error',
            'message': 'An unexpected error occurred. Please try again.',
        }), 500

    @app.errorhandler(429)
    def ratelimit_error(error):
        return jsonify({
            'success': False,
            'error': 'Rate limit exceeded',
            'message': 'Too many requests. Please slow down.',
        }), 429

    return app


def main():
    """Run the dashboard server."""
    app = create_app()

    print("=" * 80)
    print("KPI DASHBOARD - JSON API Starting")
    print("=" * 80)
    print(f"Client: {app.config.get('CLIENT_NAME')}")
    print(f"Data source: {app.config['KPI_STATE'].source.name}")
    print()
    print("Dashboard running at: http://localhost:5000/api/status")
    print()

    app.run(debug=False, host="127.0.0.1", port=5000, threaded=True)


if __name__ == "__main__":
    main()
