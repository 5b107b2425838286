"""
Custom exceptions for the order print server.

Exception Hierarchy:
    OrderPrintError (base)
    ├── DeviceUnavailableError - Thermal device missing or not initialized
    ├── RenderError            - Markup or PDF generation failed
    ├── PrintCommandError      - OS print/enumeration command failed
    └── OrderParseError        - Webhook body could not be turned into an Order

Usage:
    Transport-level errors (DeviceUnavailableError, RenderError,
    PrintCommandError) are caught at the transport boundary and converted
    to a failed PrintStatus. They never reach the HTTP caller.

    OrderParseError is raised before the print pipeline runs and is
    surfaced by the webhook route as HTTP 500.
"""

from typing import Optional, Dict, Any, Sequence


class OrderPrintError(Exception):
    """
    Base exception for all order print server errors.

    All custom exceptions inherit from this class, allowing callers to catch
    all application-specific errors with a single except clause if needed.
    """

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        """
        Initialize the exception.

        Args:
            message: Human-readable error message
            details: Optional dictionary with additional context for debugging
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class DeviceUnavailableError(OrderPrintError):
    """
    The thermal printer device is not configured or could not be opened.

    This is NOT fatal. The server keeps running and every print attempt
    goes straight to the PDF transport.

    Typical causes:
    - THERMAL_PRINTER_DEVICE not set in .env
    - USB printer unplugged or device file missing
    - Network printer unreachable
    """

    def __init__(self, device: Optional[str], reason: str = "not available"):
        message = f"Thermal printer {device or '(unconfigured)'} {reason}"
        details = {
            "device": device,
            "resolution": "Check THERMAL_PRINTER_DEVICE in .env and the printer connection",
        }
        super().__init__(message, details)
        self.device = device
        self.reason = reason


class RenderError(OrderPrintError):
    """
    The receipt markup or the PDF file could not be produced.

    Terminal for the PDF attempt - there is no further fallback.
    """

    def __init__(self, order_id: str, reason: str):
        message = f"Failed to render order {order_id}: {reason}"
        super().__init__(message, {"order_id": order_id})
        self.order_id = order_id
        self.reason = reason


class PrintCommandError(OrderPrintError):
    """
    An OS print command did not report success.

    Raised for non-zero exit codes, timeouts, missing executables and
    output without the expected success marker. On Windows the PDF
    transport tries exactly one fallback command after this error.
    """

    def __init__(
        self,
        command: Sequence[str],
        reason: str,
        returncode: Optional[int] = None,
        output: str = ""
    ):
        program = command[0] if command else "?"
        message = f"Print command '{program}' failed: {reason}"
        details: Dict[str, Any] = {"command": " ".join(command)}
        if returncode is not None:
            details["returncode"] = returncode
        if output:
            details["output"] = output[:200]
        super().__init__(message, details)
        self.command = list(command)
        self.reason = reason
        self.returncode = returncode
        self.output = output


class OrderParseError(OrderPrintError):
    """
    Webhook payload is malformed or contains invalid order fields.

    The print pipeline is never invoked for such payloads.
    """

    def __init__(self, message: str, field: Optional[str] = None):
        details = {"field": field} if field else None
        super().__init__(message, details)
        self.field = field
