"""
Prometheus metrics definitions.

Metrics are grouped by subsystem in submodules and re-exported here:

    from relay.utils.metrics import ws_connections_active
"""

from relay.utils.metrics._helpers import _get_or_create_gauge
from relay.utils.metrics.rooms import (
    record_room_stats,
    room_members_active,
    rooms_active,
)
from relay.utils.metrics.websocket import (
    ws_connections_active,
    ws_connections_total,
    ws_event_processing_duration_seconds,
    ws_messages_dropped_total,
    ws_messages_received_total,
    ws_messages_sent_total,
)

app_info = _get_or_create_gauge(
    "app_info",
    "Application information",
    ["version", "python_version", "environment"],
)

__all__ = [
    # WebSocket metrics
    "ws_connections_active",
    "ws_connections_total",
    "ws_messages_received_total",
    "ws_messages_dropped_total",
    "ws_messages_sent_total",
    "ws_event_processing_duration_seconds",
    # Room metrics
    "rooms_active",
    "room_members_active",
    "record_room_stats",
    # Application metrics
    "app_info",
]
