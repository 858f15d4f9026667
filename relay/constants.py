"""
Application-level constants for the relay protocol.

These values define protocol behaviour and are not configurable. For values
that can be overridden via environment variables see relay/settings.py.
"""

# ============================================================================
# WebSocket Protocol Constants
# ============================================================================

# WebSocket close code for policy violations (RFC 6455 standard)
# Used when rejecting upgrades from disallowed origins
WS_POLICY_VIOLATION_CODE = 1008


# ============================================================================
# Presence Defaults
# ============================================================================

# Position and rotation assigned to members whose join omits them
ORIGIN_VECTOR: tuple[float, float, float] = (0.0, 0.0, 0.0)


# ============================================================================
# Logging
# ============================================================================

# Maximum size of a single JSON log line accepted by Loki
LOKI_MAX_LOG_SIZE_BYTES = 256 * 1024
