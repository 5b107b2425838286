"""
Services layer for the order print server.

This module contains the business logic services:
- PrintService: Thermal-first, PDF-fallback print orchestrator
- ThermalTransport / PdfTransport: The two print paths
- TempFileReaper: Delayed removal of generated PDFs
- BroadcastChannel: SSE fan-out of received orders

Thread Model:
    Flask request threads
    ├── print_order() runs synchronously on the webhook's thread
    └── broadcast() pushes into per-subscriber queues
    Timer threads
    └── TempFileReaper removes PDFs after the cleanup delay
"""

from .broadcast_service import BroadcastChannel, format_sse
from .pdf_transport import PdfTransport
from .print_service import PrintService
from .temp_files import TempFileReaper
from .thermal_transport import ThermalTransport

__all__ = [
    "BroadcastChannel",
    "format_sse",
    "PdfTransport",
    "PrintService",
    "TempFileReaper",
    "ThermalTransport",
]
