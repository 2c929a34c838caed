"""
Exception taxonomy for the depth feed.

None of these are fatal to the process: transport errors are retried by the
connection supervisor, decode and numeric errors are absorbed per frame or
per entry, and heartbeat errors only end the heartbeat task.
"""


class BookTickerError(Exception):
    """Base exception for bookticker."""
    pass


class TransportError(BookTickerError):
    """Raised when the streaming connection misbehaves."""
    pass


class TransportConnectError(TransportError):
    """Raised when the initial dial to the feed endpoint fails."""
    pass


class TransportReadError(TransportError):
    """Raised when an open session fails mid-stream, including peer close."""
    pass


class TransportSendError(TransportError):
    """Raised when a frame cannot be written to the session."""
    pass


class HeartbeatSendError(TransportSendError):
    """Recorded when a keep-alive ping could not be sent; ends the heartbeat."""
    pass


class DecodeError(BookTickerError):
    """Raised when a depth message has a malformed structure."""
    pass


class NumericParseError(BookTickerError):
    """Raised when a price or quantity string is not a usable decimal."""
    pass
