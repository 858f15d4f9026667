from datetime import datetime, timezone


def unix_timestamp_ms(value: datetime | None = None) -> int:
    """
    Convert a datetime to milliseconds since the Unix epoch.

    Args:
        value: Datetime to convert, the current time when omitted. Naive
            datetimes are assumed to be UTC.

    Returns:
        Milliseconds since the epoch, as used in ``user-joined`` and
        ``user-left`` events.
    """
    if value is None:
        value = datetime.now(timezone.utc)
    elif value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)

    return int(value.timestamp() * 1000)
