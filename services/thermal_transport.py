"""
Thermal (ESC/POS) print transport.

Renders the order into directives, replays them onto an in-memory
python-escpos Dummy printer, then writes the whole buffer to the device
in one go. Either the full receipt reaches the device or nothing does.

print_order() never raises. Every failure, including "no device", comes
back as a failed PrintStatus so the orchestrator can fall back to PDF.
There are no retries here.
"""

from __future__ import annotations

import time
from datetime import datetime
from typing import Iterable, Optional

from escpos.printer import Dummy

from core.exceptions import DeviceUnavailableError
from core.thermal_device import ThermalDeviceManager
from logging_config import get_print_logger
from models.order import Order
from models.print_status import PrintStatus
from modules.receipt_renderer import ThermalDirective, render_thermal


THERMAL_PRINTER_NAME = "thermal"
DEFAULT_LINE_WIDTH = 42  # Font A on 80mm paper
LINE_CHARACTER = "="


def apply_directives(printer, directives: Iterable[ThermalDirective], line_width: int = DEFAULT_LINE_WIDTH) -> None:
    """
    Replay directives onto an escpos printer.

    Raises:
        ValueError: On an unknown directive kind
    """
    for directive in directives:
        kind, value = directive.kind, directive.value
        if kind == "align":
            printer.set(align=value)
        elif kind == "bold":
            printer.set(bold=bool(value))
        elif kind == "size":
            if value == "double":
                printer.set(double_height=True, double_width=True)
            else:
                printer.set(normal_textsize=True)
        elif kind == "text":
            printer.textln(str(value))
        elif kind == "rule":
            printer.textln(LINE_CHARACTER * line_width)
        elif kind == "cut":
            printer.cut()
        else:
            raise ValueError(f"Unknown thermal directive: {kind}")


class ThermalTransport:
    """Streams rendered receipts to the shared thermal device."""

    def __init__(self, device: ThermalDeviceManager, line_width: int = DEFAULT_LINE_WIDTH):
        self._device = device
        self.line_width = line_width

    @property
    def is_available(self) -> bool:
        return self._device.is_initialized

    def print_order(self, order: Order, printed_at: Optional[datetime] = None) -> PrintStatus:
        """
        Print an order on the thermal printer.

        Args:
            order: Order to print
            printed_at: Render time override

        Returns:
            PrintStatus - success with printer "thermal", or failed
        """
        print_logger = get_print_logger(order.id)

        if not self._device.is_initialized:
            print_logger.info("No thermal printer available, handing off")
            return PrintStatus.create_failed(
                DeviceUnavailableError(self._device.device_spec, "not initialized").message
            )

        try:
            buffer = Dummy()
            apply_directives(buffer, render_thermal(order, printed_at), self.line_width)
            data = buffer.output

            with self._device.lock:
                self._device.printer._raw(data)

        except Exception as e:
            print_logger.error(f"Thermal printing failed: {type(e).__name__}: {e}")
            return PrintStatus.create_failed(f"Thermal printing failed: {e}")

        job_id = f"thermal-{int(time.time() * 1000)}"
        print_logger.info(f"Sent {len(data)} bytes to thermal printer, job {job_id}")
        return PrintStatus.create_success(THERMAL_PRINTER_NAME, job_id)
