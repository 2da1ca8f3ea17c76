import struct

import pytest

from pagestore.errors import DBError, ErrorCode
from pagestore.expr import (
    AttrRef,
    Constant,
    Operator,
    OpType,
    bool_and,
    bool_not,
    bool_or,
    eval_expr,
    value_equals,
    value_smaller,
)
from pagestore.serializer import string_to_value
from pagestore.tables import DataType, Record, Schema, Value

TRUE = Value(DataType.BOOL, True)
FALSE = Value(DataType.BOOL, False)


def _schema() -> Schema:
    return Schema(
        num_attr=3,
        attr_names=["a", "b", "c"],
        data_types=[DataType.INT, DataType.STRING, DataType.INT],
        type_length=[0, 4, 0],
        key_attrs=[0],
        key_size=1,
    )


def _record(a: int, b: bytes, c: int) -> Record:
    return Record(data=bytearray(b"+") + struct.pack("<i", a) + b + struct.pack("<i", c))


@pytest.mark.parametrize(
    "left, right, op, expected",
    [
        ("i10", "i10", value_equals, True),
        ("i9", "i10", value_equals, False),
        ("sHello World", "sHello World", value_equals, True),
        ("sHello Worl", "sHello World", value_equals, False),
        ("sHello Worl", "sHello Wor", value_equals, False),
        ("i3", "i10", value_smaller, True),
        ("f5.0", "f6.5", value_smaller, True),
        ("bt", "bt", bool_and, True),
        ("bt", "bf", bool_and, False),
        ("bt", "bf", bool_or, True),
        ("bf", "bf", bool_or, False),
    ],
)
def test_operators(left, right, op, expected):
    result = op(string_to_value(left), string_to_value(right))
    assert result == Value(DataType.BOOL, expected)


def test_bool_not():
    assert bool_not(string_to_value("bf")) == TRUE
    assert bool_not(TRUE) == FALSE


def test_value_smaller_strings():
    assert value_smaller(string_to_value("sabc"), string_to_value("sabd")) == TRUE
    assert value_smaller(string_to_value("sabd"), string_to_value("sabc")) == FALSE


def test_compare_different_types_raises():
    with pytest.raises(DBError) as info:
        value_equals(string_to_value("i1"), string_to_value("s1"))
    assert info.value.code == ErrorCode.RM_COMPARE_VALUE_OF_DIFFERENT_DATATYPE
    with pytest.raises(DBError) as info:
        value_smaller(string_to_value("i1"), string_to_value("f1.0"))
    assert info.value.code == ErrorCode.RM_COMPARE_VALUE_OF_DIFFERENT_DATATYPE


def test_boolean_ops_require_booleans():
    for call in (
        lambda: bool_not(string_to_value("i1")),
        lambda: bool_and(TRUE, string_to_value("i1")),
        lambda: bool_or(string_to_value("i0"), FALSE),
    ):
        with pytest.raises(DBError) as info:
            call()
        assert info.value.code == ErrorCode.RM_BOOLEAN_EXPR_ARG_IS_NOT_BOOLEAN


def test_expressions():
    left = Constant(string_to_value("i10"))
    assert value_equals(string_to_value("i10"), eval_expr(None, None, left)) == TRUE

    right = Constant(string_to_value("i20"))
    assert value_equals(string_to_value("i20"), eval_expr(None, None, right)) == TRUE

    smaller = Operator(OpType.COMP_SMALLER, (left, right))
    assert value_equals(string_to_value("bt"), eval_expr(None, None, smaller)) == TRUE

    const_true = Constant(string_to_value("bt"))
    assert value_equals(string_to_value("bt"), eval_expr(None, None, const_true)) == TRUE

    conj = Operator(OpType.BOOL_AND, (smaller, const_true))
    assert value_equals(string_to_value("bt"), eval_expr(None, None, conj)) == TRUE


def test_attr_ref_reads_record():
    schema = _schema()
    record = _record(1, b"aaaa", 3)
    assert eval_expr(record, schema, AttrRef(0)) == Value(DataType.INT, 1)
    assert eval_expr(record, schema, AttrRef(1)) == Value(DataType.STRING, "aaaa")
    assert eval_expr(record, schema, AttrRef(2)) == Value(DataType.INT, 3)


def test_condition_on_attribute():
    schema = _schema()
    cond = Operator(OpType.COMP_EQUAL, (Constant(string_to_value("i3")), AttrRef(2)))
    assert eval_expr(_record(1, b"aaaa", 3), schema, cond) == TRUE
    assert eval_expr(_record(2, b"bbbb", 2), schema, cond) == FALSE


def test_not_smaller_condition():
    schema = _schema()
    cond = Operator(
        OpType.BOOL_NOT,
        (Operator(OpType.COMP_SMALLER, (AttrRef(2), Constant(string_to_value("i4")))),),
    )
    assert eval_expr(_record(1, b"aaaa", 3), schema, cond) == FALSE
    assert eval_expr(_record(5, b"eeee", 5), schema, cond) == TRUE


def test_attr_ref_without_record_raises():
    with pytest.raises(DBError) as info:
        eval_expr(None, None, AttrRef(0))
    assert info.value.code == ErrorCode.ERROR


def test_eval_propagates_type_errors():
    cond = Operator(OpType.BOOL_AND, (Constant(TRUE), Constant(string_to_value("i1"))))
    with pytest.raises(DBError) as info:
        eval_expr(None, None, cond)
    assert info.value.code == ErrorCode.RM_BOOLEAN_EXPR_ARG_IS_NOT_BOOLEAN


def test_operator_arity_checked():
    with pytest.raises(ValueError):
        Operator(OpType.BOOL_NOT, (Constant(TRUE), Constant(FALSE)))
    with pytest.raises(ValueError):
        Operator(OpType.COMP_EQUAL, (Constant(TRUE),))