"""Ingestion layer.

This package contains adapters that receive data (live NT4 frames, DataLog
replay) and emit normalized :class:`~pynt4.state.events.TopicUpdate` events.
"""

__all__: list[str] = []
