"""Internal constants shared across the library."""

import sys

#: Reserved "latest" timestamp; queries at this time return the newest sample.
MAX_TIMESTAMP: int = 2**64 - 1

#: Machine epsilon used by double write coalescing.
DOUBLE_EPSILON: float = sys.float_info.epsilon

# ------------------------------------------------------------------
# NetworkTables 4 wire protocol
# ------------------------------------------------------------------

DEFAULT_NT4_PORT = 5810
NT4_SUBPROTOCOLS: tuple[str, ...] = (
    "v4.1.networktables.first.wpi.edu",
    "networktables.first.wpi.edu",
)

#: Topic id the server uses for RTT / clock-sync replies.
NT4_RTT_TOPIC_ID = -1

#: NT4 binary-frame data type ids -> announced type strings.
NT4_TYPE_IDS: dict[int, str] = {
    0: "boolean",
    1: "double",
    2: "int",
    3: "float",
    4: "string",
    5: "raw",
    16: "boolean[]",
    17: "double[]",
    18: "int[]",
    19: "float[]",
    20: "string[]",
}

# ------------------------------------------------------------------
# Struct schemas
# ------------------------------------------------------------------

SCHEMA_PREFIX = "/.schema/"
STRUCT_TYPE_PREFIX = "struct:"
