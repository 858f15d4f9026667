"""
Prometheus metrics for WebSocket connections and event traffic.
"""

from relay.utils.metrics._helpers import (
    _get_or_create_counter,
    _get_or_create_gauge,
    _get_or_create_histogram,
)

ws_connections_active = _get_or_create_gauge(
    "ws_connections_active", "Number of active WebSocket connections"
)

ws_connections_total = _get_or_create_counter(
    "ws_connections_total",
    "Total WebSocket connections",
    ["status"],  # accepted, rejected_origin
)

ws_messages_received_total = _get_or_create_counter(
    "ws_messages_received_total",
    "Total WebSocket events received",
    ["event"],
)

ws_messages_dropped_total = _get_or_create_counter(
    "ws_messages_dropped_total",
    "Total inbound WebSocket frames dropped without handling",
    ["reason"],  # malformed, unknown_event, invalid_state, invalid_payload, stale
)

ws_messages_sent_total = _get_or_create_counter(
    "ws_messages_sent_total",
    "Total outbound WebSocket deliveries",
    ["event", "result"],  # result: delivered, failed
)

ws_event_processing_duration_seconds = _get_or_create_histogram(
    "ws_event_processing_duration_seconds",
    "Inbound event handling duration in seconds, broadcasts included",
    ["event"],
    buckets=(0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5),
)
