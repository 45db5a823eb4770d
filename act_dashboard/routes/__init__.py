"""
Routes package - Blueprint-based routes.
"""

from flask import Flask


def register_blueprints(app: Flask):
    """
    Register route blueprints.

    Called from app.py once the limiter is in app.config.
    """
    from act_dashboard.routes import api
    app.register_blueprint(api.bp, url_prefix='/api')

    # The limiter wrapper has to be the registered view, or the route loses its limits
    limiter = app.config.get('LIMITER')
    if limiter is not None:
        app.view_functions['api.refresh'] = limiter.limit(api.REFRESH_LIMIT)(api.refresh)

    app.logger.info("Registered api blueprint (campaigns, kpis, time-range, refresh, status)")
