"""
Thermal printer device lifecycle management.

This module owns the single long-lived ESC/POS connection. The device is
initialized once in the main thread at application startup, reused by
every print call, and closed on shutdown. It is never reinitialized.

THREAD SAFETY:
    - initialize() must be called from main thread only
    - cleanup() must be called from main thread only
    - printer is read-only after init
    - lock must be held while writing to the device; concurrent print
      calls are serialized through it

SOFT FAILURE:
    - If no device is configured: raises DeviceUnavailableError
    - If the connection cannot be opened: raises DeviceUnavailableError
    - The application catches this and keeps running; the PDF transport
      takes over every print

Device spec formats:
    192.168.1.87          Network printer (default port 9100)
    192.168.1.87:9100     Network printer with explicit port
    USB:0x04b8:0x0202     USB printer by vendor:product ID (hex)
    USB:0x154f:0x154f:0x02:0x82   USB with out/in endpoints
    /dev/usb/lp0, COM3    Device file or serial port

Usage:
    # At application startup (main thread)
    device = ThermalDeviceManager("192.168.1.87")
    try:
        device.initialize()
    except DeviceUnavailableError:
        pass  # thermal path disabled

    # Print calls
    with device.lock:
        device.printer._raw(data)

    # At application shutdown (main thread)
    device.cleanup()
"""

from __future__ import annotations

import logging
import re
import threading
from typing import Optional

from escpos.printer import File, Network, Usb

from .exceptions import DeviceUnavailableError


NETWORK_PATTERN = re.compile(r"^\d+\.\d+\.\d+\.\d+(:\d+)?$")


def create_printer(device: str):
    """
    Create an (unopened) python-escpos printer for a device spec string.

    Args:
        device: Network address, USB:vid:pid[:out:in] or device path

    Returns:
        escpos printer instance (Network, Usb or File)

    Raises:
        ValueError: If a USB spec is malformed
    """
    # Network printer (IP address or IP:port)
    if NETWORK_PATTERN.match(device):
        if ":" in device:
            host, port = device.rsplit(":", 1)
            return Network(host, int(port))
        return Network(device)

    # USB by vendor:product ID
    if device.upper().startswith("USB:"):
        parts = device.split(":")
        if len(parts) < 3:
            raise ValueError(f"Invalid USB device spec: {device}")
        vendor_id = int(parts[1], 16)
        product_id = int(parts[2], 16)
        if len(parts) >= 5:
            out_ep = int(parts[3], 16)
            in_ep = int(parts[4], 16)
            return Usb(vendor_id, product_id, out_ep=out_ep, in_ep=in_ep)
        return Usb(vendor_id, product_id)

    # File-based (Linux /dev/usb/lp0, serial COM port, Windows share)
    return File(device)


class ThermalDeviceManager:
    """
    Manages the thermal printer connection lifecycle.

    This class is responsible for:
    1. Creating the escpos connection from the configured device spec
    2. Opening it once at application startup
    3. Providing the open printer to the thermal transport
    4. Serializing device access across print calls
    5. Closing the connection at application shutdown

    Attributes:
        device_spec: Configured device string (None if unconfigured)
        is_initialized: True if the connection is open
        printer: Open escpos printer (read-only after init)
        lock: Lock guarding writes to the device
    """

    def __init__(self, device_spec: Optional[str], logger: Optional[logging.Logger] = None):
        """
        Initialize the device manager.

        Args:
            device_spec: Device string, or None/empty if no thermal printer
            logger: Logger instance (optional, creates default if not provided)

        Note:
            This does NOT open the device - call initialize() to do that.
        """
        self._device_spec = (device_spec or "").strip() or None
        self._logger = logger or logging.getLogger("order_print_server.core.thermal_device")
        self._printer = None
        self._is_initialized = False
        self._lock = threading.Lock()

    @property
    def device_spec(self) -> Optional[str]:
        """Configured device string."""
        return self._device_spec

    @property
    def is_initialized(self) -> bool:
        """True if the device connection is open."""
        return self._is_initialized

    @property
    def lock(self) -> threading.Lock:
        """Lock to hold while writing to the device."""
        return self._lock

    @property
    def printer(self):
        """
        Open escpos printer for the thermal transport.

        Raises:
            DeviceUnavailableError: If the device is not initialized
        """
        if not self._is_initialized or self._printer is None:
            raise DeviceUnavailableError(self._device_spec, "not initialized")
        return self._printer

    def initialize(self):
        """
        Create and open the printer connection.

        MUST be called from the main thread only, once.

        Returns:
            The open escpos printer

        Raises:
            DeviceUnavailableError: If no device is configured or it cannot be opened
            RuntimeError: If called when already initialized
        """
        if self._is_initialized:
            raise RuntimeError("Thermal device already initialized")

        if not self._device_spec:
            self._logger.info("No thermal printer configured, PDF printing only")
            raise DeviceUnavailableError(None, "is not configured")

        self._logger.info(f"Initializing thermal printer: {self._device_spec}")

        try:
            printer = create_printer(self._device_spec)
            printer.open()
        except Exception as e:
            self._logger.warning(f"Failed to open thermal printer {self._device_spec}: {e}")
            raise DeviceUnavailableError(self._device_spec, f"could not be opened: {e}") from e

        self._printer = printer
        self._is_initialized = True

        self._logger.info(f"Thermal printer initialized: {self._device_spec}")
        return printer

    def cleanup(self) -> None:
        """
        Close the printer connection.

        MUST be called from the main thread only.
        Safe to call multiple times (idempotent).
        """
        if not self._is_initialized:
            self._logger.debug("Thermal printer not initialized, nothing to clean up")
            return

        if self._printer is not None:
            try:
                self._printer.close()
                self._logger.info("Thermal printer connection closed")
            except Exception as e:
                self._logger.error(f"Error closing thermal printer: {e}")

        self._printer = None
        self._is_initialized = False

    def __enter__(self) -> "ThermalDeviceManager":
        """Context manager entry - open device."""
        self.initialize()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        """Context manager exit - close device."""
        self.cleanup()
