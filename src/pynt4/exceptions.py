"""Custom exception hierarchy for pynt4."""

from __future__ import annotations


class Nt4Error(Exception):
    """Base exception for all pynt4 errors."""


class Nt4ConfigError(Nt4Error):
    """Invalid or missing configuration."""


class Nt4TransportError(Nt4Error):
    """WebSocket-level failure (connect refused, handshake rejected, closed)."""

    def __init__(self, message: str, *, url: str = "") -> None:
        self.url = url
        super().__init__(message)


class TopicKindMismatchError(Nt4Error):
    """A topic received a value of a different kind than its first write.

    Only raised by a store constructed with ``strict=True``; the default
    store drops the write and logs a warning instead.
    """

    def __init__(self, topic: str, *, expected: str, actual: str) -> None:
        self.topic = topic
        self.expected = expected
        self.actual = actual
        super().__init__(f"Topic {topic!r} holds {expected} values, refusing {actual} write")


class DataLogError(Nt4Error):
    """A DataLog file could not be parsed."""

    def __init__(self, message: str, *, offset: int = 0) -> None:
        self.offset = offset
        super().__init__(message)
