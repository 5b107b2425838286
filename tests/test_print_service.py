"""
Unit tests for the print orchestrator.

Transports are mocked so the thermal -> PDF decision can be checked
by call counts. The pipeline tests use the real transports with a
mocked device, backend and PDF renderer.
"""

import threading
import pytest
from decimal import Decimal
from unittest.mock import MagicMock

from core.printer_backend import PrinterBackend
from core.thermal_device import ThermalDeviceManager
from models.order import Order, LineItem, build_test_order
from models.print_status import PrintStatus
from services.pdf_transport import PdfTransport
from services.print_service import PrintService
from services.temp_files import TempFileReaper
from services.thermal_transport import ThermalTransport


# Fixtures

@pytest.fixture
def order():
    return build_test_order()


@pytest.fixture
def thermal():
    mock_thermal = MagicMock()
    mock_thermal.is_available = True
    mock_thermal.print_order.return_value = PrintStatus.create_success("thermal", "thermal-1")
    return mock_thermal


@pytest.fixture
def pdf():
    mock_pdf = MagicMock()
    mock_pdf.backend.name = "linux"
    mock_pdf.print_order.return_value = PrintStatus.create_success("Office", "Office-1")
    return mock_pdf


@pytest.fixture
def service(thermal, pdf):
    return PrintService(thermal, pdf)


class TestPrintService:

    def test_thermal_success_skips_pdf(self, service, thermal, pdf, order):
        status = service.print_order(order)

        assert status.printer_name == "thermal"
        thermal.print_order.assert_called_once_with(order)
        pdf.print_order.assert_not_called()

    def test_thermal_failure_falls_back_to_pdf(self, service, thermal, pdf, order):
        thermal.print_order.return_value = PrintStatus.create_failed("Thermal printer (unconfigured) not initialized")

        status = service.print_order(order)

        assert status == PrintStatus.create_success("Office", "Office-1")
        thermal.print_order.assert_called_once_with(order)
        pdf.print_order.assert_called_once_with(order)

    def test_both_fail_returns_pdf_status(self, service, thermal, pdf, order):
        thermal.print_order.return_value = PrintStatus.create_failed("Thermal printing failed: Broken pipe")
        pdf.print_order.return_value = PrintStatus.create_failed("Print command 'lp' failed: offline")

        status = service.print_order(order)

        assert status.success is False
        assert status.error == "Print command 'lp' failed: offline"

    def test_pdf_success_after_thermal_failure(self, service, thermal, pdf, order):
        thermal.print_order.return_value = PrintStatus.create_failed("no device")

        assert service.print_order(order).success is True

    def test_unexpected_error_never_raises(self, service, thermal, pdf, order):
        thermal.print_order.side_effect = RuntimeError("boom")

        status = service.print_order(order)

        assert status.success is False
        assert status.error == "Unexpected print error: boom"

    def test_at_most_two_attempts(self, service, thermal, pdf, order):
        thermal.print_order.return_value = PrintStatus.create_failed("no device")
        pdf.print_order.return_value = PrintStatus.create_failed("no printers")

        service.print_order(order)

        assert thermal.print_order.call_count + pdf.print_order.call_count == 2

    def test_shutdown_flushes_temp_files(self, service, pdf):
        service.shutdown()

        pdf.reaper.flush.assert_called_once()


# =============================================================================
# Full pipeline (real transports, mocked device/backend/renderer)
# =============================================================================

@pytest.fixture
def backend():
    mock_backend = MagicMock(spec=PrinterBackend)
    mock_backend.name = "linux"
    mock_backend.supports_fallback = False
    mock_backend.list_printers.return_value = ["Office_Laser"]
    mock_backend.print_file.return_value = "Office_Laser-7"
    return mock_backend


@pytest.fixture
def pdf_transport(backend, tmp_path):
    renderer = MagicMock()
    renderer.render.side_effect = lambda html, path, order_id="": path.write_bytes(b"%PDF")
    return PdfTransport(backend, tmp_path, reaper=TempFileReaper(delay_seconds=0), renderer=renderer)


@pytest.fixture
def t1_order():
    return Order(
        id="T1",
        customer_name="A",
        items=(LineItem("Burger", 2, Decimal("12.99")),),
        total=Decimal("25.98"),
        timestamp="2024-01-15T14:30:00Z",
    )


class TestPrintPipeline:

    def test_no_thermal_prints_through_pdf(self, pdf_transport, backend, t1_order, tmp_path):
        seen = []
        backend.print_file.side_effect = lambda path, printer: seen.append(path) or "Office_Laser-7"
        service = PrintService(ThermalTransport(ThermalDeviceManager(None)), pdf_transport)

        status = service.print_order(t1_order)

        assert status == PrintStatus.create_success("Office_Laser", "Office_Laser-7")
        assert seen == [tmp_path / "order-T1.pdf"]
        assert not (tmp_path / "order-T1.pdf").exists()

    def test_thermal_emission_error_falls_back(self, pdf_transport, backend, t1_order):
        device = MagicMock(spec=ThermalDeviceManager)
        device.is_initialized = True
        device.lock = threading.Lock()
        device.printer._raw.side_effect = OSError("Broken pipe")
        service = PrintService(ThermalTransport(device), pdf_transport)

        status = service.print_order(t1_order)

        assert status.success is True
        assert status.printer_name == "Office_Laser"
        backend.print_file.assert_called_once()

    def test_thermal_success_never_renders_pdf(self, pdf_transport, backend, t1_order):
        device = MagicMock(spec=ThermalDeviceManager)
        device.is_initialized = True
        device.lock = threading.Lock()
        service = PrintService(ThermalTransport(device), pdf_transport)

        status = service.print_order(t1_order)

        assert status.printer_name == "thermal"
        backend.print_file.assert_not_called()
        device.printer._raw.assert_called_once()
