"""Filter DSL and converters."""

from .converter import evaluate, to_sqlalchemy
from .dsl import (
    AndFilter,
    ComparisonFilter,
    Filter,
    FilterOperator,
    NotFilter,
    OrFilter,
)

__all__ = [
    "Filter",
    "ComparisonFilter",
    "AndFilter",
    "OrFilter",
    "NotFilter",
    "FilterOperator",
    "to_sqlalchemy",
    "evaluate",
]
