"""
Flask route blueprints for the order print server.

This module contains all route handlers organized by functionality:
- main: Dashboard page
- orders: Webhook, test print and live order stream
- api: Health check

Each blueprint is registered with the Flask app in create_app().
"""

from .main import main_bp
from .orders import orders_bp
from .api import api_bp

__all__ = [
    "main_bp",
    "orders_bp",
    "api_bp",
]


def register_blueprints(app):
    """
    Register all blueprints with the Flask app.

    Args:
        app: Flask application instance
    """
    app.register_blueprint(main_bp)
    app.register_blueprint(orders_bp)
    app.register_blueprint(api_bp)
