"""
API routes.

Handles:
- /health - Health check endpoint
"""

from flask import Blueprint, current_app

from logging_config import get_logger


# Module logger
logger = get_logger(__name__)

api_bp = Blueprint("api", __name__)


@api_bp.route("/health", methods=["GET"])
def health():
    """
    Health check endpoint with service status.

    A missing thermal printer only degrades the service: orders still
    print through the PDF fallback, so the status code stays 200.
    """
    health_status = {
        "status": "ok",
        "environment": current_app.config.get("ENVIRONMENT", "unknown"),
        "checks": {}
    }

    print_service = current_app.config.get("PRINT_SERVICE")
    if print_service is None:
        health_status["checks"]["print_service"] = "not_available"
        health_status["status"] = "error"
        return health_status, 503

    if print_service.thermal.is_available:
        health_status["checks"]["thermal"] = "initialized"
    else:
        health_status["checks"]["thermal"] = "not_initialized"
        health_status["status"] = "degraded"

    health_status["checks"]["pdf_backend"] = print_service.pdf.backend.name
    health_status["checks"]["pending_temp_files"] = len(print_service.pdf.reaper.pending())

    channel = current_app.config.get("BROADCAST_CHANNEL")
    if channel is not None:
        health_status["checks"]["stream_clients"] = channel.subscriber_count
        health_status["checks"]["queued_orders"] = channel.pending_count

    return health_status, 200
