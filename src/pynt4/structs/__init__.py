"""Struct schemas: parsing, registry and binary record decoding."""

from pynt4.structs.decode import decode, decode_struct_array
from pynt4.structs.schema import (
    Schema,
    SchemaField,
    SchemaRegistry,
    compute_size,
    parse_schema,
    schema_key,
)

__all__ = [
    "Schema",
    "SchemaField",
    "SchemaRegistry",
    "compute_size",
    "decode",
    "decode_struct_array",
    "parse_schema",
    "schema_key",
]
