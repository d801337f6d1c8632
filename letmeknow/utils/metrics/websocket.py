"""
Prometheus metrics for relay connections and notification fan-out.

This module defines metrics for tracking WebSocket connections, inbound
messages, rejected requests, registrations and delivery results.
"""

from letmeknow.constants import FANOUT_DURATION_BUCKETS
from letmeknow.utils.metrics._helpers import (
    _get_or_create_counter,
    _get_or_create_gauge,
    _get_or_create_histogram,
)

# Connection Metrics
ws_connections_active = _get_or_create_gauge(
    "ws_connections_active", "Number of active WebSocket connections"
)

ws_connections_total = _get_or_create_counter(
    "ws_connections_total", "Total accepted WebSocket connections"
)

# Message Metrics
ws_messages_received_total = _get_or_create_counter(
    "ws_messages_received_total",
    "Total WebSocket messages received",
    ["type"],  # register, notification
)

ws_requests_rejected_total = _get_or_create_counter(
    "ws_requests_rejected_total",
    "Total requests answered with an error response",
    ["reason"],  # exception class name
)

registrations_total = _get_or_create_counter(
    "registrations_total",
    "Total registration attempts",
    ["status"],  # registered, already_registered, not_connected
)

# Delivery Metrics
notifications_delivered_total = _get_or_create_counter(
    "notifications_delivered_total",
    "Total notification payloads written to recipients",
)

notification_delivery_failures_total = _get_or_create_counter(
    "notification_delivery_failures_total",
    "Total notification writes that failed",
)

notification_fanout_duration_seconds = _get_or_create_histogram(
    "notification_fanout_duration_seconds",
    "Duration of one notification fan-out pass in seconds",
    buckets=FANOUT_DURATION_BUCKETS,
)


def get_active_websocket_connections() -> int:
    """Current value of the active connections gauge."""
    try:
        return int(ws_connections_active._value.get())
    except (AttributeError, ValueError):
        return 0


__all__ = [
    "ws_connections_active",
    "ws_connections_total",
    "ws_messages_received_total",
    "ws_requests_rejected_total",
    "registrations_total",
    "notifications_delivered_total",
    "notification_delivery_failures_total",
    "notification_fanout_duration_seconds",
    "get_active_websocket_connections",
]
