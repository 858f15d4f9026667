"""
Prometheus metrics for room occupancy.
"""

from relay.utils.metrics._helpers import _get_or_create_gauge

rooms_active = _get_or_create_gauge(
    "relay_rooms_active", "Number of rooms with at least one member"
)

room_members_active = _get_or_create_gauge(
    "relay_room_members_active", "Number of members across all rooms"
)


def record_room_stats(room_count: int, member_count: int) -> None:
    """Publish the current room store occupancy."""
    rooms_active.set(room_count)
    room_members_active.set(member_count)
