"""
Integration tests for the HTTP routes.

The app is built with the testing config, no thermal device and a
mocked OS backend. The print service is replaced with a mock so the
routes can be checked without rendering PDFs.
"""

import atexit
import json
import pytest
from unittest.mock import MagicMock, patch

from app import create_app
from core.printer_backend import PrinterBackend
from core.thermal_device import ThermalDeviceManager
from models.print_status import PrintStatus


# Fixtures

@pytest.fixture
def backend():
    mock_backend = MagicMock(spec=PrinterBackend)
    mock_backend.name = "linux"
    mock_backend.supports_fallback = False
    return mock_backend


@pytest.fixture
def app(backend):
    app = create_app(
        "config.TestingConfig",
        thermal_device=ThermalDeviceManager(None),
        printer_backend=backend,
    )
    yield app
    shutdown = app.extensions["order_print_shutdown"]
    atexit.unregister(shutdown)
    shutdown()


@pytest.fixture
def print_service(app):
    """Replace the real print service with a mock that always succeeds."""
    real = app.config["PRINT_SERVICE"]
    mock_service = MagicMock()
    mock_service.thermal = real.thermal
    mock_service.pdf = real.pdf
    mock_service.print_order.return_value = PrintStatus.create_success("Office", "Office-1")
    app.config["PRINT_SERVICE"] = mock_service
    return mock_service


@pytest.fixture
def client(app, print_service):
    return app.test_client()


@pytest.fixture
def channel(app):
    return app.config["BROADCAST_CHANNEL"]


# =============================================================================
# App factory
# =============================================================================

class TestCreateApp:

    def test_runs_without_thermal_printer(self, app):
        assert app.config["THERMAL_DEVICE"].is_initialized is False
        assert app.config["PRINT_SERVICE"].thermal.is_available is False

    def test_uses_given_backend(self, app, backend):
        assert app.config["PRINT_SERVICE"].pdf.backend is backend

    def test_testing_config(self, app):
        assert app.config["TESTING"] is True
        assert app.config["PRINT_SERVICE"].pdf.reaper.delay_seconds == 0

    @patch("app.atexit.register")
    def test_shutdown_hook_registered_once(self, mock_register, backend):
        app = create_app("config.TestingConfig", ThermalDeviceManager(None), backend)

        mock_register.assert_called_once_with(app.extensions["order_print_shutdown"])

    @patch("app.atexit.register")
    def test_shutdown_releases_device_and_temp_files(self, mock_register, backend):
        device = MagicMock(spec=ThermalDeviceManager)
        device.is_initialized = True
        app = create_app("config.TestingConfig", thermal_device=device, printer_backend=backend)
        reaper = app.config["PRINT_SERVICE"].pdf.reaper

        with patch.object(reaper, "flush") as mock_flush:
            app.extensions["order_print_shutdown"]()

        mock_flush.assert_called_once()
        device.cleanup.assert_called_once()
        device.initialize.assert_not_called()


# =============================================================================
# Webhook
# =============================================================================

class TestWebhook:

    def test_valid_order(self, client, print_service):
        response = client.post("/api/orders/webhook", json={
            "id": "ORD-1",
            "customerName": "John Doe",
            "items": [{"name": "Pizza", "quantity": 2, "price": 15.99}],
            "total": 31.98,
        })

        assert response.status_code == 200
        assert response.get_json() == {"success": True, "orderId": "ORD-1", "printed": True}

        order = print_service.print_order.call_args[0][0]
        assert order.customer_name == "John Doe"

    def test_empty_object_gets_defaults(self, client, print_service):
        response = client.post("/api/orders/webhook", json={})

        data = response.get_json()
        assert response.status_code == 200
        assert data["orderId"].startswith("ORD-")
        assert print_service.print_order.call_args[0][0].customer_name == "Unknown Customer"

    def test_print_failure_is_still_200(self, client, print_service):
        print_service.print_order.return_value = PrintStatus.create_failed("No printers available")

        response = client.post("/api/orders/webhook", json={"id": "ORD-2"})

        assert response.status_code == 200
        assert response.get_json() == {"success": True, "orderId": "ORD-2", "printed": False}

    @pytest.mark.parametrize("body", ["not json", "", "{\"id\": "])
    def test_invalid_json(self, client, print_service, body):
        response = client.post("/api/orders/webhook", data=body, content_type="application/json")

        assert response.status_code == 500
        assert response.get_json() == {"error": "Failed to process order"}
        print_service.print_order.assert_not_called()

    @pytest.mark.parametrize("payload", [[1, 2], "order", {"items": "Pizza"}, {"total": -1}])
    def test_unusable_payload(self, client, print_service, payload):
        response = client.post("/api/orders/webhook", json=payload)

        assert response.status_code == 500
        print_service.print_order.assert_not_called()

    def test_order_broadcast_with_status(self, client, channel):
        client.post("/api/orders/webhook", json={"id": "ORD-3", "customerName": "Jane"})

        q = channel.subscribe()
        q.get_nowait()  # connected
        frame = q.get_nowait()

        assert frame.startswith("event: message\n")
        data = json.loads(frame.split("data: ", 1)[1])
        assert data["id"] == "ORD-3"
        assert data["customerName"] == "Jane"
        assert data["printStatus"] == {"success": True, "printerName": "Office", "jobId": "Office-1"}

    def test_get_not_allowed(self, client):
        response = client.get("/api/orders/webhook")

        assert response.status_code == 405
        assert "error" in response.get_json()


# =============================================================================
# Test print
# =============================================================================

class TestTestPrint:

    def test_prints_test_order(self, client, print_service):
        response = client.post("/api/orders/test-print")

        data = response.get_json()
        assert response.status_code == 200
        assert data["success"] is True
        assert data["printed"] is True
        assert data["orderId"].startswith("TEST-")

        order = print_service.print_order.call_args[0][0]
        assert [item.name for item in order.items] == ["Burger", "Fries", "Drink"]

    def test_failure_reported(self, client, print_service):
        print_service.print_order.return_value = PrintStatus.create_failed("offline")

        assert client.post("/api/orders/test-print").get_json()["printed"] is False

    def test_not_broadcast(self, client, channel):
        client.post("/api/orders/test-print")

        assert channel.pending_count == 0


# =============================================================================
# Stream
# =============================================================================

class TestStream:

    def test_headers(self, client):
        response = client.get("/api/orders/stream", buffered=False)

        assert response.mimetype == "text/event-stream"
        assert response.headers["Cache-Control"] == "no-cache"
        assert response.headers["Access-Control-Allow-Origin"] == "*"
        response.close()

    def test_first_event_is_connected(self, client, channel):
        response = client.get("/api/orders/stream", buffered=False)

        first = next(iter(response.response)).decode()

        assert first.startswith("event: connected\n")
        assert channel.subscriber_count == 1
        response.close()
        assert channel.subscriber_count == 0


# =============================================================================
# Dashboard and health
# =============================================================================

class TestDashboard:

    def test_index(self, client):
        response = client.get("/")

        assert response.status_code == 200
        assert b"Auto Print Orders" in response.data
        assert b"not connected" in response.data
        assert b"/api/orders/stream" in response.data

    def test_unknown_route_is_json(self, client):
        response = client.get("/nope")

        assert response.status_code == 404
        assert "error" in response.get_json()


class TestHealth:

    def test_degraded_without_thermal(self, client):
        response = client.get("/health")

        data = response.get_json()
        assert response.status_code == 200
        assert data["status"] == "degraded"
        assert data["checks"]["thermal"] == "not_initialized"
        assert data["checks"]["pdf_backend"] == "linux"
        assert data["checks"]["stream_clients"] == 0

    def test_ok_with_thermal(self, app, client):
        app.config["PRINT_SERVICE"].thermal = MagicMock(is_available=True)

        data = client.get("/health").get_json()

        assert data["status"] == "ok"
        assert data["checks"]["thermal"] == "initialized"

    def test_queued_orders_reported(self, client):
        client.post("/api/orders/webhook", json={"id": "ORD-4"})

        assert client.get("/health").get_json()["checks"]["queued_orders"] == 1

    def test_no_print_service(self, app, client):
        app.config["PRINT_SERVICE"] = None

        response = client.get("/health")

        assert response.status_code == 503
        assert response.get_json()["status"] == "error"
