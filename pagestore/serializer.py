"""Text forms of values, schemas and records, and the on-page attribute layout."""

from __future__ import annotations

import math
import re
import struct
from typing import Protocol

from .tables import DataType, Record, Schema, Value

_FIXED_SIZES = {
    DataType.INT: 4,
    DataType.FLOAT: 4,
    DataType.BOOL: 2,
}

_INT_PREFIX = re.compile(r"\s*([+-]?\d+)")
_FLOAT_PREFIX = re.compile(
    r"\s*([+-]?(?:(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?|inf(?:inity)?|nan))",
    re.IGNORECASE,
)


class _TableLike(Protocol):
    name: str
    schema: Schema

    def num_tuples(self) -> int: ...


def _to_float32(number: float) -> float:
    try:
        return struct.unpack("<f", struct.pack("<f", number))[0]
    except OverflowError:
        return math.copysign(math.inf, number)


def _attr_size(schema: Schema, attr_num: int) -> int:
    dt = schema.data_types[attr_num]
    if dt is DataType.STRING:
        return schema.type_length[attr_num]
    return _FIXED_SIZES[dt]


def _attr_offset(schema: Schema, attr_num: int) -> int:
    """Byte offset of an attribute in record data; byte 0 is the tombstone."""
    return 1 + sum(_attr_size(schema, i) for i in range(attr_num))


def _decode_attr(record: Record, schema: Schema, attr_num: int) -> Value:
    """Read attribute ``attr_num`` of ``record`` as a typed value."""
    offset = _attr_offset(schema, attr_num)
    size = _attr_size(schema, attr_num)
    raw = bytes(record.data[offset : offset + size])
    if len(raw) < size:
        raw = raw.ljust(size, b"\0")
    dt = schema.data_types[attr_num]
    if dt is DataType.INT:
        return Value(DataType.INT, struct.unpack("<i", raw)[0])
    if dt is DataType.FLOAT:
        return Value(DataType.FLOAT, struct.unpack("<f", raw)[0])
    if dt is DataType.BOOL:
        return Value(DataType.BOOL, struct.unpack("<h", raw)[0] != 0)
    text = raw.split(b"\0", 1)[0]
    return Value(DataType.STRING, text.decode("utf-8", errors="replace"))


def string_to_value(text: str) -> Value:
    """Parse a value written as a type letter (i, f, s, b) followed by its text."""
    kind, rest = text[:1], text[1:]
    if kind == "i":
        match = _INT_PREFIX.match(rest)
        return Value(DataType.INT, int(match.group(1)) if match else 0)
    if kind == "f":
        match = _FLOAT_PREFIX.match(rest)
        return Value(DataType.FLOAT, _to_float32(float(match.group(1)) if match else 0.0))
    if kind == "s":
        return Value(DataType.STRING, rest)
    if kind == "b":
        return Value(DataType.BOOL, rest[:1] == "t")
    return Value(DataType.INT, -1)


def serialize_value(value: Value) -> str:
    """Render a value as text: ints and strings as is, floats with six decimals."""
    if value.dt is DataType.INT:
        return str(int(value.v))
    if value.dt is DataType.FLOAT:
        return f"{float(value.v):f}"
    if value.dt is DataType.STRING:
        return str(value.v)
    return "true" if value.v else "false"


def _type_text(schema: Schema, attr_num: int) -> str:
    dt = schema.data_types[attr_num]
    if dt is DataType.STRING:
        return f"STRING[{schema.type_length[attr_num]}]"
    return dt.name


def serialize_schema(schema: Schema) -> str:
    """Describe a schema's attributes, their types and its key attributes."""
    attrs = ", ".join(
        f"{name}: {_type_text(schema, i)}" for i, name in enumerate(schema.attr_names)
    )
    keys = ", ".join(schema.attr_names[k] for k in schema.key_attrs[: schema.key_size])
    return f"Schema with <{schema.num_attr}> attributes ({attrs}) with keys: ({keys})\n"


def serialize_attr(record: Record, schema: Schema, attr_num: int) -> str:
    """Render one attribute of a record as ``name:value``."""
    name = schema.attr_names[attr_num]
    value = _decode_attr(record, schema, attr_num)
    if value.dt is DataType.BOOL:
        return f"{name}:{'TRUE' if value.v else 'FALSE'}"
    return f"{name}:{serialize_value(value)}"


def serialize_record(record: Record, schema: Schema) -> str:
    """Render a record with its identifier and all of its attributes."""
    parts = [f"[{record.id.page}-{record.id.slot}] ("]
    for i in range(schema.num_attr):
        parts.append(serialize_attr(record, schema, i))
        parts.append("" if i == 0 else ",")
    parts.append(")")
    return "".join(parts)


def serialize_table_info(table: _TableLike) -> str:
    """Describe a table: its name, tuple count and schema."""
    return (
        f"TABLE <{table.name}> with <{table.num_tuples()}> tuples:\n"
        + serialize_schema(table.schema)
    )