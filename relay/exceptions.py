"""
Custom exception classes for the relay.

None of these reach a client: the WebSocket endpoint catches them, logs the
problem and keeps serving the connection.
"""


class RelayError(Exception):
    """Base class for relay protocol errors."""

    pass


class MalformedEventError(RelayError):
    """
    Inbound frame could not be decoded.

    Raised when a frame is not UTF-8 JSON or is not an
    ``{"event": ..., "data": ...}`` envelope.
    """

    pass


class InvalidPayloadError(RelayError):
    """
    Event payload failed validation.

    Raised when the ``data`` of a known event does not match the shape its
    handler expects (e.g. a join without ``roomId``).
    """

    def __init__(self, event: str, detail: str):
        self.event = event
        self.detail = detail
        super().__init__(f"Invalid payload for {event}: {detail}")
