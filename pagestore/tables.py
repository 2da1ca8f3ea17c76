"""Data types, values, record identifiers, records and table schemas."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Union


class DataType(IntEnum):
    """Types an attribute of a record may have."""

    INT = 0
    STRING = 1
    FLOAT = 2
    BOOL = 3


ValueData = Union[int, str, float, bool]


@dataclass(frozen=True)
class Value:
    """A typed attribute value."""

    dt: DataType
    v: ValueData

    def __post_init__(self) -> None:
        object.__setattr__(self, "dt", DataType(self.dt))


@dataclass
class RID:
    """Identifies a record by the page and the slot it lives in."""

    page: int = -1
    slot: int = -1


@dataclass
class Record:
    """A record: its identifier and its serialized attribute bytes."""

    id: RID = field(default_factory=RID)
    data: bytearray = field(default_factory=bytearray)


@dataclass
class Schema:
    """Attributes of a table: names, types, string lengths and key attributes."""

    num_attr: int
    attr_names: list[str]
    data_types: list[DataType]
    type_length: list[int]
    key_attrs: list[int] = field(default_factory=list)
    key_size: int = 0

    def __post_init__(self) -> None:
        self.attr_names = list(self.attr_names)
        self.data_types = [DataType(dt) for dt in self.data_types]
        self.type_length = list(self.type_length)
        self.key_attrs = list(self.key_attrs)
        lengths = {len(self.attr_names), len(self.data_types), len(self.type_length)}
        if lengths != {self.num_attr}:
            raise ValueError(
                f"schema declares {self.num_attr} attributes but names, types and "
                f"lengths hold {len(self.attr_names)}, {len(self.data_types)} and "
                f"{len(self.type_length)}"
            )
        if self.key_size > len(self.key_attrs):
            raise ValueError(
                f"key size {self.key_size} exceeds the {len(self.key_attrs)} key attributes given"
            )
        for key in self.key_attrs[: self.key_size]:
            if not 0 <= key < self.num_attr:
                raise ValueError(f"key attribute {key} is not an attribute of the schema")