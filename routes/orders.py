"""
Order routes.

Handles:
- POST /api/orders/webhook    - Receive an order, print it, broadcast it
- POST /api/orders/test-print - Print the built-in test order
- GET  /api/orders/stream     - Live order stream (Server-Sent Events)

Printing failure is a normal outcome: it is reported as HTTP 200 with
"printed": false. Only a body that cannot be turned into an Order gives
HTTP 500, and such a body never reaches the printer.
"""

import json

from flask import Blueprint, Response, current_app, jsonify, request

from core.exceptions import OrderParseError
from models.order import Order, build_test_order
from logging_config import get_logger


# Module logger
logger = get_logger(__name__)

orders_bp = Blueprint("orders", __name__, url_prefix="/api/orders")


def _print_response(order: Order, status):
    return jsonify({
        "success": True,
        "orderId": order.id,
        "printed": status.success,
    })


@orders_bp.route("/webhook", methods=["POST"])
def webhook():
    """
    Receive an order from an upstream system.

    Missing fields are defaulted (see Order.from_payload). The order is
    printed synchronously, then pushed to live listeners together with
    its print status.
    """
    try:
        payload = json.loads(request.get_data(as_text=True))
        order = Order.from_payload(payload)
    except (ValueError, OrderParseError) as e:
        logger.error(f"Webhook error: {e}")
        return jsonify({"error": "Failed to process order"}), 500

    logger.info(f"New order received via webhook: {order.id}")

    status = current_app.config["PRINT_SERVICE"].print_order(order)

    if status.success:
        logger.info(f"Order printed successfully: {order.id}")
    else:
        logger.error(f"Failed to print order: {order.id}")

    event = order.to_dict()
    event["printStatus"] = status.to_dict()
    current_app.config["BROADCAST_CHANNEL"].broadcast(event)

    return _print_response(order, status)


@orders_bp.route("/test-print", methods=["POST"])
def test_print():
    """Print a fixed three-item test order (dashboard button)."""
    order = build_test_order()
    logger.info(f"Test order created: {order.id}")

    status = current_app.config["PRINT_SERVICE"].print_order(order)

    if status.success:
        logger.info(f"Test order printed successfully: {order.id}")
    else:
        logger.error(f"Failed to print test order: {order.id}")

    return _print_response(order, status)


@orders_bp.route("/stream", methods=["GET"])
def stream():
    """Long-lived SSE stream of incoming orders."""
    channel = current_app.config["BROADCAST_CHANNEL"]
    keepalive = current_app.config.get("SSE_KEEPALIVE_SECONDS", 30.0)

    headers = {
        "Cache-Control": "no-cache",
        "X-Accel-Buffering": "no",
        "Access-Control-Allow-Origin": "*",
        "Access-Control-Allow-Headers": "Cache-Control",
    }
    return Response(channel.stream(keepalive), mimetype="text/event-stream", headers=headers)
