import dataclasses

import pytest

from pagestore.tables import RID, DataType, Record, Schema, Value


def test_data_type_codes_match_storage_format():
    schema = Schema(4, ["i", "s", "f", "b"], [0, 1, 2, 3], [0, 1, 0, 0])
    assert schema.data_types == [DataType.INT, DataType.STRING, DataType.FLOAT, DataType.BOOL]
    assert Value(2, 1.5).dt is DataType.FLOAT
    assert Value(3, True).dt is DataType.BOOL


def test_value_coerces_plain_int_type():
    value = Value(1, "abc")
    assert value.dt is DataType.STRING
    assert value.v == "abc"


def test_value_equality_and_immutability():
    assert Value(DataType.INT, 5) == Value(DataType.INT, 5)
    assert Value(DataType.INT, 5) != Value(DataType.INT, 6)
    value = Value(DataType.BOOL, True)
    with pytest.raises(dataclasses.FrozenInstanceError):
        value.v = False


def test_rid_defaults_to_no_position():
    rid = RID()
    assert (rid.page, rid.slot) == (-1, -1)


def test_record_defaults_are_independent():
    first = Record()
    second = Record()
    first.data.extend(b"+x")
    first.id.page = 3
    assert second.data == bytearray()
    assert second.id == RID()


def test_schema_converts_types_and_copies_lists():
    names = ["a", "b", "c"]
    schema = Schema(3, names, [0, 1, 0], [0, 4, 0], [0], 1)
    names.append("d")
    assert schema.attr_names == ["a", "b", "c"]
    assert schema.data_types == [DataType.INT, DataType.STRING, DataType.INT]


def test_schema_rejects_mismatched_attribute_count():
    with pytest.raises(ValueError):
        Schema(2, ["a", "b", "c"], [0, 1, 0], [0, 4, 0])


def test_schema_rejects_key_outside_attributes():
    with pytest.raises(ValueError):
        Schema(1, ["a"], [DataType.INT], [0], [5], 1)


def test_schema_rejects_key_size_larger_than_keys():
    with pytest.raises(ValueError):
        Schema(1, ["a"], [DataType.INT], [0], [], 1)