"""
Print orchestrator.

Thermal is the ceiling, PDF is the floor:

    Start -> Thermal -> success -> Done
                     -> failure -> PDF -> Done (success or failed)

At most two transport calls per order, no retries, no escalation past
PDF. Whatever status the last transport returned is handed back to the
caller unchanged.

Concurrency:
    Each print_order() call is independent. The only shared resource is
    the thermal device, whose writes are serialized by its lock. Temp
    PDF names are per order id, so distinct orders never collide.

Usage:
    service = PrintService(
        ThermalTransport(device),
        PdfTransport(select_backend(), "temp"),
    )
    status = service.print_order(order)
    ...
    service.shutdown()
"""

from __future__ import annotations

from models.order import Order
from models.print_status import PrintStatus
from services.pdf_transport import PdfTransport
from services.thermal_transport import ThermalTransport
from logging_config import get_logger, get_print_logger


logger = get_logger(__name__)


class PrintService:
    """Chooses between the thermal and PDF transports."""

    def __init__(self, thermal: ThermalTransport, pdf: PdfTransport):
        self.thermal = thermal
        self.pdf = pdf
        logger.info(
            f"PrintService initialized (thermal {'ready' if thermal.is_available else 'unavailable'}, "
            f"backend {pdf.backend.name})"
        )

    def print_order(self, order: Order) -> PrintStatus:
        """
        Print an order, falling back from thermal to PDF.

        Never raises.

        Args:
            order: Order to print

        Returns:
            PrintStatus of the transport that ran last
        """
        print_logger = get_print_logger(order.id)
        print_logger.info(f"Starting print for order {order.id}")

        try:
            status = self.thermal.print_order(order)
            if not status.success:
                print_logger.info(f"Thermal path failed ({status.error}), falling back to PDF")
                status = self.pdf.print_order(order)
        except Exception as e:
            print_logger.error(f"Unexpected print error: {e}", exc_info=True)
            status = PrintStatus.create_failed(f"Unexpected print error: {e}")

        if status.success:
            print_logger.info(f"Print successful - Printer: {status.printer_name}, Job: {status.job_id}")
        else:
            print_logger.error(f"Print failed - Error: {status.error}")

        return status

    def shutdown(self) -> None:
        """Remove any temp PDFs still waiting for delayed deletion."""
        self.pdf.reaper.flush()
        logger.info("Print service shutdown complete")
