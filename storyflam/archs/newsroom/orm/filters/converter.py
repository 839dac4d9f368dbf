"""Filter converters.

Turns Filter DSL objects into SQLAlchemy expressions and evaluates them against
in-memory records.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel
from sqlalchemy import ColumnElement, and_, literal, not_, or_
from sqlmodel import SQLModel

from .dsl import (
    AndFilter,
    ComparisonFilter,
    Filter,
    FilterOperator,
    NotFilter,
    OrFilter,
)


def to_sqlalchemy(
    filter_: Filter,
    model_class: type[SQLModel],
) -> ColumnElement[bool]:
    """Convert a Filter DSL expression into a SQLAlchemy boolean expression.

    Raises:
        ValueError: If a field name does not exist on ``model_class``

    Examples:
        >>> expr = to_sqlalchemy(ComparisonFilter.eq("locked_by", "alice"), StoryModel)
        >>> # expr is equivalent to StoryModel.locked_by == "alice"
    """
    if isinstance(filter_, ComparisonFilter):
        return _convert_comparison_filter(filter_, model_class)
    if isinstance(filter_, AndFilter):
        if not filter_.filters:
            return literal(True)
        return and_(*(to_sqlalchemy(sub, model_class) for sub in filter_.filters))
    if isinstance(filter_, OrFilter):
        if not filter_.filters:
            return literal(False)
        return or_(*(to_sqlalchemy(sub, model_class) for sub in filter_.filters))
    return not_(to_sqlalchemy(filter_.filter, model_class))


def _get_column(
    model_class: type[SQLModel],
    field_name: str,
) -> ColumnElement[object]:
    if field_name not in model_class.model_fields:
        raise ValueError(f"Field '{field_name}' not found in model {model_class.__name__}")

    column: ColumnElement[object] = getattr(model_class, field_name)
    return column


def _convert_comparison_filter(
    filter_: ComparisonFilter,
    model_class: type[SQLModel],
) -> ColumnElement[bool]:
    column = _get_column(model_class, filter_.field)
    op = filter_.op
    value = filter_.value

    if op == FilterOperator.EQ:
        return column == value
    elif op == FilterOperator.NEQ:
        return column != value
    elif op == FilterOperator.GT:
        return column > value
    elif op == FilterOperator.GTE:
        return column >= value
    elif op == FilterOperator.LT:
        return column < value
    elif op == FilterOperator.LTE:
        return column <= value
    elif op == FilterOperator.IN:
        if not isinstance(value, list):
            raise ValueError(f"Invalid value type for operator {op}: expected list, got {type(value).__name__}")
        return column.in_(value)
    elif op == FilterOperator.IS:
        return column.is_(value)
    else:
        raise ValueError(f"Unsupported operator: {op}")


def evaluate(
    filter_: Filter,
    record: Mapping[str, Any] | BaseModel,
) -> bool:
    """Evaluate a Filter DSL expression against a record.

    Missing fields evaluate as ``None``. Ordering comparisons against ``None``
    are false, mirroring SQL NULL semantics.

    Examples:
        >>> evaluate(ComparisonFilter.eq("name", "alice"), {"name": "alice"})
        True
    """
    record_dict: Mapping[str, Any]
    if isinstance(record, BaseModel):
        record_dict = {name: getattr(record, name, None) for name in type(record).model_fields}
    else:
        record_dict = record

    if isinstance(filter_, ComparisonFilter):
        return _evaluate_comparison_filter(filter_, record_dict)
    if isinstance(filter_, AndFilter):
        return all(evaluate(sub, record_dict) for sub in filter_.filters)
    if isinstance(filter_, OrFilter):
        return any(evaluate(sub, record_dict) for sub in filter_.filters)
    return not evaluate(filter_.filter, record_dict)


def _safe_compare(a: object, b: object, op: FilterOperator) -> bool:
    """Compare two values, treating incomparable types as a mismatch."""
    try:
        if op == FilterOperator.GT:
            return a > b  # type: ignore[operator]
        elif op == FilterOperator.GTE:
            return a >= b  # type: ignore[operator]
        elif op == FilterOperator.LT:
            return a < b  # type: ignore[operator]
        elif op == FilterOperator.LTE:
            return a <= b  # type: ignore[operator]
        return False
    except TypeError:
        return False


def _evaluate_comparison_filter(
    filter_: ComparisonFilter,
    record: Mapping[str, Any],
) -> bool:
    field_value = record.get(filter_.field, None)
    op = filter_.op
    filter_value = filter_.value

    if op == FilterOperator.EQ:
        return field_value == filter_value

    elif op == FilterOperator.NEQ:
        return field_value != filter_value

    elif op in (FilterOperator.GT, FilterOperator.GTE, FilterOperator.LT, FilterOperator.LTE):
        if field_value is None or filter_value is None:
            return False
        return _safe_compare(field_value, filter_value, op)

    elif op == FilterOperator.IN:
        if not isinstance(filter_value, list):
            raise ValueError(f"Invalid value type for operator {op}: expected list, got {type(filter_value).__name__}")
        return field_value in filter_value

    elif op == FilterOperator.IS:
        if filter_value is None:
            return field_value is None
        # IS TRUE / IS FALSE
        return field_value is filter_value

    else:
        raise ValueError(f"Unsupported operator: {op}")
