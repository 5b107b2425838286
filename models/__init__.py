"""
Data models for the order print server.

This module contains immutable dataclasses for:
- Order / LineItem: A purchase received over the webhook
- PrintStatus: Normalized outcome of one print attempt

Both are frozen, so they can be shared between request threads and
broadcast subscribers without copying.
"""

from .order import Order, LineItem, build_test_order
from .print_status import PrintStatus

__all__ = [
    # Order models
    "Order",
    "LineItem",
    "build_test_order",
    # Print models
    "PrintStatus",
]
