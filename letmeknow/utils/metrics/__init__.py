"""
Prometheus metrics definitions.

All metrics are re-exported here:

    from letmeknow.utils.metrics import ws_connections_active
"""

from letmeknow.utils.metrics.websocket import (
    get_active_websocket_connections,
    notification_delivery_failures_total,
    notification_fanout_duration_seconds,
    notifications_delivered_total,
    registrations_total,
    ws_connections_active,
    ws_connections_total,
    ws_messages_received_total,
    ws_requests_rejected_total,
)

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
