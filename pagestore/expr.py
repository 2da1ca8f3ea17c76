"""Condition expressions over record attributes and their evaluation."""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import Optional, Union

from .errors import DBError, ErrorCode
from .serializer import _decode_attr
from .tables import DataType, Record, Schema, Value


class OpType(IntEnum):
    """Boolean and comparison operators."""

    BOOL_AND = 0
    BOOL_OR = 1
    BOOL_NOT = 2
    COMP_EQUAL = 3
    COMP_SMALLER = 4


@dataclass(frozen=True)
class Constant:
    """An expression yielding a fixed value."""

    value: Value


@dataclass(frozen=True)
class AttrRef:
    """An expression yielding attribute ``attr`` of the record under test."""

    attr: int


@dataclass(frozen=True)
class Operator:
    """An operator applied to one (NOT) or two argument expressions."""

    op: OpType
    args: tuple

    def __post_init__(self) -> None:
        object.__setattr__(self, "op", OpType(self.op))
        object.__setattr__(self, "args", tuple(self.args))
        expected = 1 if self.op is OpType.BOOL_NOT else 2
        if len(self.args) != expected:
            raise ValueError(
                f"{self.op.name} takes {expected} argument(s), got {len(self.args)}"
            )


Expr = Union[Constant, AttrRef, Operator]


def _require_same_type(left: Value, right: Value) -> None:
    if left.dt is not right.dt:
        raise DBError(
            ErrorCode.RM_COMPARE_VALUE_OF_DIFFERENT_DATATYPE,
            "equality comparison only supported for values of the same datatype",
        )


def value_equals(left: Value, right: Value) -> Value:
    """Boolean value telling whether two values of the same type are equal."""
    _require_same_type(left, right)
    return Value(DataType.BOOL, left.v == right.v)


def value_smaller(left: Value, right: Value) -> Value:
    """Boolean value telling whether ``left`` is smaller than ``right``."""
    _require_same_type(left, right)
    return Value(DataType.BOOL, left.v < right.v)


def _require_bool(*values: Value, what: str) -> None:
    if any(v.dt is not DataType.BOOL for v in values):
        raise DBError(ErrorCode.RM_BOOLEAN_EXPR_ARG_IS_NOT_BOOLEAN, what)


def bool_not(value: Value) -> Value:
    """Boolean negation."""
    _require_bool(value, what="boolean NOT requires boolean input")
    return Value(DataType.BOOL, not value.v)


def bool_and(left: Value, right: Value) -> Value:
    """Boolean conjunction."""
    _require_bool(left, right, what="boolean AND requires boolean inputs")
    return Value(DataType.BOOL, bool(left.v and right.v))


def bool_or(left: Value, right: Value) -> Value:
    """Boolean disjunction."""
    _require_bool(left, right, what="boolean OR requires boolean inputs")
    return Value(DataType.BOOL, bool(left.v or right.v))


_BINARY = {
    OpType.BOOL_AND: bool_and,
    OpType.BOOL_OR: bool_or,
    OpType.COMP_EQUAL: value_equals,
    OpType.COMP_SMALLER: value_smaller,
}


def eval_expr(record: Optional[Record], schema: Optional[Schema], expr: Expr) -> Value:
    """Evaluate ``expr`` against ``record``; attribute references need both arguments."""
    if isinstance(expr, Constant):
        return expr.value
    if isinstance(expr, AttrRef):
        if record is None or schema is None:
            raise DBError(ErrorCode.ERROR, "attribute reference needs a record and a schema")
        return _decode_attr(record, schema, expr.attr)
    if isinstance(expr, Operator):
        first = eval_expr(record, schema, expr.args[0])
        if expr.op is OpType.BOOL_NOT:
            return bool_not(first)
        second = eval_expr(record, schema, expr.args[1])
        return _BINARY[expr.op](first, second)
    raise TypeError(f"not an expression: {expr!r}")