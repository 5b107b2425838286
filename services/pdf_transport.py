"""
PDF print transport.

Flow:
    1. Render the HTML receipt
    2. Render it to <temp_dir>/order-<id>.pdf with WeasyPrint
    3. Pick the first system printer (or "default")
    4. Run the backend's print command
    5. On failure, try the backend's one fallback (Windows only)
    6. Schedule removal of the PDF, whatever happened

print_order() never raises. Render failures are terminal for the
attempt; there is nothing below PDF to fall back to.
"""

from __future__ import annotations

import hashlib
from datetime import datetime
from pathlib import Path
from typing import Optional

from werkzeug.utils import secure_filename

from core.exceptions import PrintCommandError
from core.printer_backend import PrinterBackend
from logging_config import get_print_logger
from models.order import Order
from models.print_status import PrintStatus
from modules.pdf_renderer import PdfRenderer
from modules.receipt_renderer import render_document
from services.temp_files import TempFileReaper


DEFAULT_PRINTER_NAME = "default"
UNKNOWN_JOB_ID = "unknown"
FALLBACK_JOB_ID = "fallback"


class PdfTransport:
    """
    Renders orders to PDF and sends them to the OS print subsystem.

    Attributes:
        temp_dir: Directory for generated PDFs (created on demand)
        backend: OS print backend selected at startup
    """

    def __init__(
        self,
        backend: PrinterBackend,
        temp_dir: str | Path,
        reaper: Optional[TempFileReaper] = None,
        renderer: Optional[PdfRenderer] = None,
    ):
        self.backend = backend
        self.temp_dir = Path(temp_dir)
        self.reaper = reaper or TempFileReaper()
        self._renderer = renderer or PdfRenderer()

    def pdf_path_for(self, order: Order) -> Path:
        """
        Per-order temp path.

        Ids are made filesystem-safe. When that changes the id, a short
        digest of the raw id is appended so distinct ids never share a file.
        """
        safe_id = secure_filename(order.id)
        if safe_id != order.id:
            digest = hashlib.sha1(order.id.encode("utf-8")).hexdigest()[:8]
            safe_id = f"{safe_id}-{digest}" if safe_id else digest
        return self.temp_dir / f"order-{safe_id}.pdf"

    def print_order(self, order: Order, printed_at: Optional[datetime] = None) -> PrintStatus:
        """
        Print an order through a PDF and the system printer.

        Args:
            order: Order to print
            printed_at: Render time override

        Returns:
            PrintStatus from the print command, or failed
        """
        print_logger = get_print_logger(order.id)
        print_logger.info(f"Generating PDF for order {order.id}")

        pdf_path = self.pdf_path_for(order)
        try:
            html = render_document(order, printed_at)

            with self.reaper.scoped(pdf_path):
                self.temp_dir.mkdir(parents=True, exist_ok=True)
                self._renderer.render(html, pdf_path, order.id)
                status = self._send_to_printer(pdf_path, print_logger)

        except Exception as e:
            print_logger.error(f"PDF printing failed: {e}")
            return PrintStatus.create_failed(str(e))

        print_logger.info(f"PDF print finished: {status.to_dict()}")
        return status

    def _send_to_printer(self, pdf_path: Path, print_logger) -> PrintStatus:
        printers = self.backend.list_printers()
        printer = printers[0] if printers else None
        printer_name = printer or DEFAULT_PRINTER_NAME

        try:
            job_id = self.backend.print_file(pdf_path, printer)
        except PrintCommandError as e:
            print_logger.error(f"Print command failed: {e.message}")

            if self.backend.supports_fallback:
                print_logger.info("Trying fallback print command")
                if self.backend.fallback_print(pdf_path):
                    return PrintStatus.create_success(DEFAULT_PRINTER_NAME, FALLBACK_JOB_ID)
                print_logger.error("Fallback print also failed")

            return PrintStatus.create_failed(e.message)

        job_id = job_id or UNKNOWN_JOB_ID
        print_logger.info(f"PDF sent to {printer_name}, job {job_id}")
        return PrintStatus.create_success(printer_name, job_id)
