"""State/store layer.

This package is the single source of truth for how samples received from a
live NT4 connection or replayed from a DataLog are merged into per-topic
time series.
"""

from pynt4.state.events import IngestionSource, TopicUpdate
from pynt4.state.series import TopicSeries, ValueKind
from pynt4.state.store import TopicStore

__all__ = ["IngestionSource", "TopicSeries", "TopicStore", "TopicUpdate", "ValueKind"]
