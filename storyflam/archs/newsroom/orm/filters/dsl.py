"""Filter DSL models.

Row selectors shared by both storage engines. A filter is built once and
either compiled into a SQLAlchemy ``WHERE`` clause or evaluated against an
in-memory row, so a conditional update means the same thing on SQLite and in
memory. Lock expiry relies on ordering comparisons against naive UTC
``datetime`` cutoffs (``locked_at < now - timeout``) and on ``IS NULL`` for
stories nobody has locked.
"""

from collections.abc import Sequence
from datetime import datetime
from enum import Enum
from typing import Literal

from pydantic import BaseModel

ScalarValue = str | int | float | bool | datetime | None
OrderedValue = str | int | float | datetime


class FilterOperator(str, Enum):
    EQ = "eq"
    NEQ = "neq"
    GT = "gt"
    GTE = "gte"
    LT = "lt"
    LTE = "lte"
    IN = "in"
    IS = "is"  # IS NULL


class FilterBase(BaseModel):
    pass


class ComparisonFilter(FilterBase):
    """Compare one column against a value."""

    type: Literal["comparison"] = "comparison"
    field: str
    op: FilterOperator
    value: ScalarValue | list[str | int | float]

    @classmethod
    def eq(cls, field: str, value: ScalarValue) -> "ComparisonFilter":
        return cls(field=field, op=FilterOperator.EQ, value=value)

    @classmethod
    def neq(cls, field: str, value: ScalarValue) -> "ComparisonFilter":
        return cls(field=field, op=FilterOperator.NEQ, value=value)

    @classmethod
    def gt(cls, field: str, value: OrderedValue) -> "ComparisonFilter":
        return cls(field=field, op=FilterOperator.GT, value=value)

    @classmethod
    def gte(cls, field: str, value: OrderedValue) -> "ComparisonFilter":
        return cls(field=field, op=FilterOperator.GTE, value=value)

    @classmethod
    def lt(cls, field: str, value: OrderedValue) -> "ComparisonFilter":
        return cls(field=field, op=FilterOperator.LT, value=value)

    @classmethod
    def lte(cls, field: str, value: OrderedValue) -> "ComparisonFilter":
        return cls(field=field, op=FilterOperator.LTE, value=value)

    @classmethod
    def in_(cls, field: str, value: list[str | int | float]) -> "ComparisonFilter":
        return cls(field=field, op=FilterOperator.IN, value=value)

    @classmethod
    def is_null(cls, field: str) -> "ComparisonFilter":
        return cls(field=field, op=FilterOperator.IS, value=None)


class AndFilter(FilterBase):
    type: Literal["and"] = "and"
    filters: Sequence["ComparisonFilter | AndFilter | OrFilter | NotFilter"]


class OrFilter(FilterBase):
    type: Literal["or"] = "or"
    filters: Sequence["ComparisonFilter | AndFilter | OrFilter | NotFilter"]


class NotFilter(FilterBase):
    type: Literal["not"] = "not"
    filter: "ComparisonFilter | AndFilter | OrFilter | NotFilter"


Filter = ComparisonFilter | AndFilter | OrFilter | NotFilter

AndFilter.model_rebuild()
OrFilter.model_rebuild()
NotFilter.model_rebuild()
