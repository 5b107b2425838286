"""
Core module for the order print server.

Contains fundamental infrastructure components:
- exceptions: Custom exception hierarchy
- thermal_device: Thermal printer connection lifecycle management
- printer_backend: Per-OS printer enumeration and print commands
"""

from .exceptions import (
    OrderPrintError,
    DeviceUnavailableError,
    RenderError,
    PrintCommandError,
    OrderParseError,
)
from .thermal_device import ThermalDeviceManager
from .printer_backend import (
    PrinterBackend,
    LinuxBackend,
    MacOSBackend,
    WindowsBackend,
    select_backend,
)

__all__ = [
    "OrderPrintError",
    "DeviceUnavailableError",
    "RenderError",
    "PrintCommandError",
    "OrderParseError",
    "ThermalDeviceManager",
    "PrinterBackend",
    "LinuxBackend",
    "MacOSBackend",
    "WindowsBackend",
    "select_backend",
]
