"""
Order data models.

An Order is the canonical representation of a purchase as it flows
through the server: webhook -> print pipeline -> live broadcast.

Thread Safety:
    - Order and LineItem are frozen dataclasses
    - An Order is built once per request and never modified, so it can be
      handed to print calls and broadcast subscribers without copying
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Dict, Any, Optional, Tuple

from core.exceptions import OrderParseError


DEFAULT_CUSTOMER_NAME = "Unknown Customer"


def _to_money(value: Any, field_name: str) -> Decimal:
    """Parse a non-negative monetary value."""
    if value is None or isinstance(value, bool):
        raise OrderParseError(f"{field_name} must be a number", field_name)
    try:
        # str() keeps floats like 12.99 from expanding to binary noise
        amount = Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise OrderParseError(f"{field_name} must be a number, got {value!r}", field_name)
    if not amount.is_finite() or amount < 0:
        raise OrderParseError(f"{field_name} must be a non-negative number", field_name)
    return amount


def _to_quantity(value: Any) -> int:
    """Parse a non-negative integer quantity."""
    if isinstance(value, bool):
        raise OrderParseError("quantity must be an integer", "quantity")
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    if not isinstance(value, int):
        raise OrderParseError(f"quantity must be an integer, got {value!r}", "quantity")
    if value < 0:
        raise OrderParseError("quantity must be >= 0", "quantity")
    return value


def _optional_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _now_millis(now: Optional[datetime]) -> int:
    if now is None:
        return int(time.time() * 1000)
    return int(now.timestamp() * 1000)


@dataclass(frozen=True)
class LineItem:
    """A single ordered product."""

    name: str
    quantity: int
    price: Decimal
    """Unit price."""

    @property
    def subtotal(self) -> Decimal:
        """quantity x unit price."""
        return self.price * self.quantity

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "quantity": self.quantity,
            "price": float(self.price),
        }

    @classmethod
    def from_dict(cls, data: Any) -> "LineItem":
        if not isinstance(data, dict):
            raise OrderParseError(f"Each item must be an object, got {type(data).__name__}", "items")
        return cls(
            name=str(data.get("name") or ""),
            quantity=_to_quantity(data.get("quantity", 0)),
            price=_to_money(data.get("price", 0), "price"),
        )


@dataclass(frozen=True)
class Order:
    """
    A purchase to be printed.

    The total is caller-authoritative: it is printed as received and is
    never recomputed or checked against the line items.
    """

    id: str
    customer_name: str
    items: Tuple[LineItem, ...] = field(default_factory=tuple)
    total: Decimal = Decimal("0")
    timestamp: str = ""
    """ISO-8601 timestamp."""

    phone: Optional[str] = None
    address: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the JSON shape used by the webhook and live stream."""
        data: Dict[str, Any] = {
            "id": self.id,
            "customerName": self.customer_name,
            "items": [item.to_dict() for item in self.items],
            "total": float(self.total),
            "timestamp": self.timestamp,
        }
        if self.phone:
            data["phone"] = self.phone
        if self.address:
            data["address"] = self.address
        return data

    @classmethod
    def from_payload(cls, data: Any, now: Optional[datetime] = None) -> "Order":
        """
        Build an Order from a webhook payload, applying defaults.

        Defaults:
            id           -> "ORD-<epoch ms>"
            customerName -> "Unknown Customer"
            items        -> []
            total        -> 0
            timestamp    -> now (UTC, ISO-8601)

        Args:
            data: Decoded JSON body
            now: Clock override for ids and timestamps

        Returns:
            Order instance

        Raises:
            OrderParseError: If the payload or any field is invalid
        """
        if not isinstance(data, dict):
            raise OrderParseError(f"Order payload must be a JSON object, got {type(data).__name__}")

        raw_items = data.get("items") or []
        if not isinstance(raw_items, list):
            raise OrderParseError("items must be a list", "items")

        now = now or datetime.now(timezone.utc)

        order_id = _optional_text(data.get("id")) or f"ORD-{_now_millis(now)}"
        timestamp = _optional_text(data.get("timestamp")) or now.isoformat()

        return cls(
            id=order_id,
            customer_name=_optional_text(data.get("customerName")) or DEFAULT_CUSTOMER_NAME,
            items=tuple(LineItem.from_dict(item) for item in raw_items),
            total=_to_money(data.get("total") or 0, "total"),
            timestamp=timestamp,
            phone=_optional_text(data.get("phone")),
            address=_optional_text(data.get("address")),
        )


def build_test_order(now: Optional[datetime] = None) -> Order:
    """The fixed order printed by the dashboard's test-print button."""
    now = now or datetime.now(timezone.utc)
    return Order(
        id=f"TEST-{_now_millis(now)}",
        customer_name="Test Customer",
        items=(
            LineItem("Burger", 2, Decimal("12.99")),
            LineItem("Fries", 1, Decimal("4.99")),
            LineItem("Drink", 2, Decimal("2.99")),
        ),
        total=Decimal("33.96"),
        timestamp=now.isoformat(),
        phone="555-0123",
        address="123 Test Street, Test City",
    )
