"""
Configuration for the order print server.

All settings come from environment variables (or a .env file next to
app.py). No thermal printer is required: without one, every order is
printed through the PDF fallback.
"""

import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env file early so environment variables are available for Config class
load_dotenv(override=True)

# Base directory (where this file lives)
BASE_DIR = Path(__file__).resolve().parent


class Config:
    """Default configuration for the Flask application."""

    # Flask settings
    SECRET_KEY = os.environ.get("FLASK_SECRET_KEY", "dev-secret-key")
    ENVIRONMENT = os.environ.get("FLASK_ENV", "development")
    DEBUG = os.environ.get("FLASK_DEBUG", "1") == "1"
    TESTING = False

    # ==========================================================================
    # Thermal printer
    # ==========================================================================
    # THERMAL_PRINTER_DEVICE accepts:
    #   192.168.1.87 / 192.168.1.87:9100   network printer
    #   USB:0x04b8:0x0202                  USB vendor:product (hex)
    #   /dev/usb/lp0, COM3                 device file / serial port
    # Leave unset to print through PDF only.
    # ==========================================================================
    THERMAL_PRINTER_DEVICE = os.environ.get("THERMAL_PRINTER_DEVICE", "")
    THERMAL_LINE_WIDTH = int(os.environ.get("THERMAL_LINE_WIDTH", "42"))

    # ==========================================================================
    # PDF fallback
    # ==========================================================================
    PRINT_TEMP_DIR = os.environ.get("PRINT_TEMP_DIR", str(BASE_DIR / "temp"))
    # Seconds the OS spooler gets to read a PDF before it is removed
    PDF_CLEANUP_DELAY_SECONDS = float(os.environ.get("PDF_CLEANUP_DELAY_SECONDS", "5"))
    PRINT_COMMAND_TIMEOUT_SECONDS = float(os.environ.get("PRINT_COMMAND_TIMEOUT_SECONDS", "30"))

    # ==========================================================================
    # Live stream
    # ==========================================================================
    SSE_KEEPALIVE_SECONDS = float(os.environ.get("SSE_KEEPALIVE_SECONDS", "30"))
    SSE_QUEUE_SIZE = int(os.environ.get("SSE_QUEUE_SIZE", "100"))


class ProductionConfig(Config):
    """Production configuration."""
    DEBUG = False
    TESTING = False


class DevelopmentConfig(Config):
    """Development configuration."""
    DEBUG = True
    TESTING = False


class TestingConfig(Config):
    """Testing configuration."""
    DEBUG = False
    TESTING = True
    THERMAL_PRINTER_DEVICE = ""
    PDF_CLEANUP_DELAY_SECONDS = 0.0
    SSE_KEEPALIVE_SECONDS = 0.1
