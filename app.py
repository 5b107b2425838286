"""
Order Print Server - Flask Application Entry Point.

This is a slim app factory that:
1. Loads configuration (.env + config classes)
2. Opens the thermal printer (soft-fail, PDF-only if missing)
3. Selects the OS print backend once
4. Builds the print pipeline and the live broadcast channel
5. Registers route blueprints and JSON error handlers

ARCHITECTURE:
    Main Thread
    ├── Thermal device initialization (once, never reinitialized)
    ├── Print backend selection (once)
    └── Cleanup on shutdown (close device, flush temp PDFs)

    Request Threads
    ├── Webhook: parse -> print (thermal, then PDF) -> broadcast
    └── Stream: one long-lived SSE response per dashboard

    Timer Threads
    └── Delayed removal of temp PDFs
"""

from __future__ import annotations

import atexit
import logging
import os
import sys
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from flask import Flask, jsonify
from werkzeug.exceptions import HTTPException

from logging_config import setup_logging, get_logger
from core.exceptions import DeviceUnavailableError
from core.printer_backend import PrinterBackend, select_backend
from core.thermal_device import ThermalDeviceManager
from services.broadcast_service import BroadcastChannel
from services.pdf_transport import PdfTransport
from services.print_service import PrintService
from services.temp_files import TempFileReaper
from services.thermal_transport import ThermalTransport
from routes import register_blueprints


# Module logger (configured after setup_logging)
logger = get_logger(__name__)


def _get_base_path() -> Path:
    """
    Get the base path for the application.

    In PyInstaller bundle: Returns the directory containing the executable
    In development: Returns the directory containing app.py
    """
    if getattr(sys, 'frozen', False):
        return Path(sys.executable).parent
    return Path(__file__).parent


def create_app(
    config_object: str = "config.Config",
    thermal_device: Optional[ThermalDeviceManager] = None,
    printer_backend: Optional[PrinterBackend] = None,
) -> Flask:
    """
    Application factory - creates and configures Flask app.

    A missing or unreachable thermal printer does NOT stop the app.
    Orders are then printed through the PDF fallback.

    Args:
        config_object: Import path of the config class
        thermal_device: Pre-built device manager (initialized here if needed)
        printer_backend: Print backend override (selected by platform if omitted)

    Returns:
        Configured Flask application
    """
    # Use override=True so .env file always takes precedence over shell environment
    env_file = _get_base_path() / '.env'
    if env_file.exists():
        load_dotenv(env_file, override=True)
    else:
        load_dotenv(override=True)

    app = Flask(__name__)
    app.config.from_object(config_object)

    # Configure logging
    log_level = logging.DEBUG if app.config.get("DEBUG") else logging.INFO
    enable_file_logging = app.config.get("ENVIRONMENT") == "production"

    root_logger = setup_logging(log_level=log_level, enable_file_logging=enable_file_logging)

    # Set Flask's logger to use our configured logger
    app.logger.handlers = root_logger.handlers
    app.logger.setLevel(log_level)

    logger.info(f"Starting order print server in {app.config.get('ENVIRONMENT')} mode")

    # =========================================================================
    # PRINTER INITIALIZATION (SOFT-FAIL)
    # =========================================================================

    if thermal_device is None:
        thermal_device = ThermalDeviceManager(app.config.get("THERMAL_PRINTER_DEVICE"))

    if not thermal_device.is_initialized:
        try:
            thermal_device.initialize()
        except DeviceUnavailableError as e:
            logger.warning(f"Thermal printing disabled - {e.message}")

    if printer_backend is None:
        printer_backend = select_backend(
            timeout_seconds=app.config.get("PRINT_COMMAND_TIMEOUT_SECONDS", 30.0)
        )
    logger.info(f"Using {printer_backend.name} print backend")

    # =========================================================================
    # SERVICES INITIALIZATION
    # =========================================================================

    reaper = TempFileReaper(delay_seconds=app.config.get("PDF_CLEANUP_DELAY_SECONDS", 5.0))

    print_service = PrintService(
        ThermalTransport(thermal_device, line_width=app.config.get("THERMAL_LINE_WIDTH", 42)),
        PdfTransport(printer_backend, app.config["PRINT_TEMP_DIR"], reaper=reaper),
    )
    app.config["THERMAL_DEVICE"] = thermal_device
    app.config["PRINT_SERVICE"] = print_service

    broadcast_channel = BroadcastChannel(queue_size=app.config.get("SSE_QUEUE_SIZE", 100))
    app.config["BROADCAST_CHANNEL"] = broadcast_channel

    # =========================================================================
    # CLEANUP REGISTRATION
    # =========================================================================

    def cleanup():
        """Cleanup on application shutdown. Safe to call more than once."""
        logger.info("Shutting down...")
        print_service.shutdown()
        thermal_device.cleanup()
        logger.info("Shutdown complete")

    atexit.register(cleanup)
    # Lets callers that build many apps run and unregister the hook early
    app.extensions["order_print_shutdown"] = cleanup

    # =========================================================================
    # REGISTER BLUEPRINTS
    # =========================================================================

    register_blueprints(app)

    # =========================================================================
    # ERROR HANDLERS
    # =========================================================================

    @app.errorhandler(HTTPException)
    def handle_http_error(e):
        return jsonify({"error": e.description}), e.code

    @app.errorhandler(Exception)
    def handle_server_error(e):
        logger.error(f"500 error: {e}", exc_info=True)
        return jsonify({"error": "Internal server error"}), 500

    logger.info("Application initialized successfully")
    return app


if __name__ == "__main__":
    app = create_app()
    debug_mode = os.environ.get("FLASK_DEBUG", "1") == "1"
    app.run(
        host=os.environ.get("HOST", "127.0.0.1"),
        port=int(os.environ.get("PORT", "5000")),
        debug=debug_mode,
        threaded=True,
    )
