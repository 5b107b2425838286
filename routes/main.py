"""
Main routes (dashboard).

The dashboard shows system status, a test-print button and a live list
of incoming orders fed by /api/orders/stream.
"""

from flask import Blueprint, current_app, render_template

main_bp = Blueprint("main", __name__)


@main_bp.route("/")
def index():
    """Dashboard page."""
    print_service = current_app.config["PRINT_SERVICE"]
    return render_template(
        "dashboard.html",
        thermal_ready=print_service.thermal.is_available,
        backend_name=print_service.pdf.backend.name,
    )
