"""
Receipt rendering for both print transports.

render_thermal() turns an Order into a list of ThermalDirective values
that the thermal transport replays onto an ESC/POS printer.
render_document() turns an Order into a self-contained HTML page for
the PDF transport.

Both are pure: the same order and printed_at always give the same
output. printed_at defaults to now, so two renders of one order differ
only in the trailing "Printed" field.

Customer text is passed to the thermal printer as-is. The HTML path is
autoescaped by Jinja2.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, List, Optional

from jinja2 import Environment

from models.order import Order


CURRENCY = "$"
TIME_FORMAT = "%Y-%m-%d %H:%M:%S"

_CENT = Decimal("0.01")


@dataclass(frozen=True)
class ThermalDirective:
    """
    One printer drawing step.

    kind:
        align - value is "left" | "center" | "right"
        bold  - value is True/False
        size  - value is "normal" | "double"
        text  - value is a line of text
        rule  - horizontal line, value unused
        cut   - paper cut, value unused
    """

    kind: str
    value: Any = None


def format_money(value: Decimal) -> str:
    """Format to exactly two decimal places with the currency sign."""
    amount = Decimal(value).quantize(_CENT, rounding=ROUND_HALF_UP)
    return f"{CURRENCY}{amount}"


def format_timestamp(value: str) -> str:
    """
    Format an ISO-8601 timestamp for humans, in the server's local time.

    Naive timestamps are taken as already local. Unparsable input is
    returned verbatim.
    """
    if not value:
        return ""
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return value
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone()
    return parsed.strftime(TIME_FORMAT)


def _printed_at(printed_at: Optional[datetime]) -> str:
    return (printed_at or datetime.now()).strftime(TIME_FORMAT)


# =============================================================================
# THERMAL
# =============================================================================

def render_thermal(order: Order, printed_at: Optional[datetime] = None) -> List[ThermalDirective]:
    """
    Build the thermal receipt for an order.

    Layout: header, order metadata, item list, total, printed-at, cut.

    Args:
        order: Order to render
        printed_at: Render time (defaults to now)

    Returns:
        Ordered list of directives
    """
    d = ThermalDirective
    directives = [
        # Header
        d("align", "center"),
        d("size", "double"),
        d("bold", True),
        d("text", "NEW ORDER"),
        d("bold", False),
        d("size", "normal"),
        d("rule"),

        # Order details
        d("align", "left"),
        d("text", f"Order ID: {order.id}"),
        d("text", f"Customer: {order.customer_name}"),
        d("text", f"Time: {format_timestamp(order.timestamp)}"),
    ]

    if order.phone:
        directives.append(d("text", f"Phone: {order.phone}"))
    if order.address:
        directives.append(d("text", f"Address: {order.address}"))

    directives += [
        d("rule"),
        d("bold", True),
        d("text", "ITEMS:"),
        d("bold", False),
    ]

    for item in order.items:
        directives.append(d("text", item.name))
        directives.append(d(
            "text",
            f"  Qty: {item.quantity} x {format_money(item.price)} = {format_money(item.subtotal)}",
        ))

    directives += [
        d("rule"),
        d("bold", True),
        d("size", "double"),
        d("text", f"TOTAL: {format_money(order.total)}"),
        d("bold", False),
        d("size", "normal"),
        d("text", f"Printed: {_printed_at(printed_at)}"),
        d("cut"),
    ]
    return directives


# =============================================================================
# HTML DOCUMENT
# =============================================================================

_env = Environment(autoescape=True, trim_blocks=True, lstrip_blocks=True)
_env.filters["money"] = format_money
_env.filters["timestamp"] = format_timestamp

DOCUMENT_TEMPLATE = _env.from_string("""<!DOCTYPE html>
<html>
<head>
  <meta charset="utf-8">
  <title>Order {{ order.id }}</title>
  <style>
    @page { size: A4; margin: 20mm; }
    body { font-family: Arial, sans-serif; margin: 0; padding: 20px; }
    .header { text-align: center; border-bottom: 2px solid #000; padding-bottom: 10px; margin-bottom: 20px; }
    .order-info { margin-bottom: 20px; }
    .items { margin-bottom: 20px; }
    .total { font-size: 18px; font-weight: bold; text-align: right; border-top: 2px solid #000; padding-top: 10px; }
    .footer { text-align: center; margin-top: 20px; font-size: 10px; color: #555; }
    table { width: 100%; border-collapse: collapse; }
    th, td { padding: 8px; text-align: left; border-bottom: 1px solid #ddd; }
    th { background-color: #f2f2f2; }
  </style>
</head>
<body>
  <div class="header">
    <h1>NEW ORDER</h1>
    <h2>Order #{{ order.id }}</h2>
  </div>

  <div class="order-info">
    <p><strong>Customer:</strong> {{ order.customer_name }}</p>
    <p><strong>Date:</strong> {{ order.timestamp | timestamp }}</p>
    {% if order.phone %}
    <p><strong>Phone:</strong> {{ order.phone }}</p>
    {% endif %}
    {% if order.address %}
    <p><strong>Address:</strong> {{ order.address }}</p>
    {% endif %}
  </div>

  <div class="items">
    <h3>Items:</h3>
    <table>
      <thead>
        <tr><th>Item</th><th>Quantity</th><th>Price</th><th>Subtotal</th></tr>
      </thead>
      <tbody>
        {% for item in order.items %}
        <tr>
          <td>{{ item.name }}</td>
          <td>{{ item.quantity }}</td>
          <td>{{ item.price | money }}</td>
          <td>{{ item.subtotal | money }}</td>
        </tr>
        {% endfor %}
      </tbody>
    </table>
  </div>

  <div class="total">
    <p>TOTAL: {{ order.total | money }}</p>
  </div>

  <div class="footer">
    <p>Printed: {{ printed_at }}</p>
  </div>
</body>
</html>
""")


def render_document(order: Order, printed_at: Optional[datetime] = None) -> str:
    """
    Build the HTML receipt for an order.

    Args:
        order: Order to render
        printed_at: Render time (defaults to now)

    Returns:
        Self-contained HTML document (inline CSS, A4 page setup)
    """
    return DOCUMENT_TEMPLATE.render(order=order, printed_at=_printed_at(printed_at))
