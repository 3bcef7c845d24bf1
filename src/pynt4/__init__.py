"""pynt4 - NetworkTables 4 telemetry store with point-in-time lookup."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("pynt4")
except PackageNotFoundError:
    __version__ = "0+local"
from pynt4._constants import MAX_TIMESTAMP
from pynt4._datalog import DataLogEntry, DataLogReader
from pynt4.client import Nt4LogClient
from pynt4.config import Nt4Config
from pynt4.exceptions import (
    DataLogError,
    Nt4ConfigError,
    Nt4Error,
    Nt4TransportError,
    TopicKindMismatchError,
)
from pynt4.models import Pose2d, Pose3d, Quaternion, Rotation2d, TopicInfo, Translation2d, Translation3d
from pynt4.state import TopicStore, TopicUpdate, ValueKind
from pynt4.structs import Schema, SchemaField, SchemaRegistry, compute_size, decode, decode_struct_array, parse_schema

__all__ = [
    "__version__",
    "MAX_TIMESTAMP",
    "DataLogEntry",
    "DataLogError",
    "DataLogReader",
    "Nt4ConfigError",
    "Nt4Config",
    "Nt4Error",
    "Nt4LogClient",
    "Nt4TransportError",
    "Pose2d",
    "Pose3d",
    "Quaternion",
    "Rotation2d",
    "Schema",
    "SchemaField",
    "SchemaRegistry",
    "TopicInfo",
    "TopicKindMismatchError",
    "TopicStore",
    "TopicUpdate",
    "Translation2d",
    "Translation3d",
    "ValueKind",
    "compute_size",
    "decode",
    "decode_struct_array",
    "parse_schema",
]
