# Copyright (c) Nex-AGI. All rights reserved.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""ORM layer for SQLModel."""

from .engine import DatabaseEngine, get_pk_fields, get_table_name
from .filters import (
    AndFilter,
    ComparisonFilter,
    Filter,
    FilterOperator,
    NotFilter,
    OrFilter,
    evaluate,
    to_sqlalchemy,
)
from .memory_engine import InMemoryDatabaseEngine
from .sql_engine import SQLDatabaseEngine

__all__ = [
    # DatabaseEngine classes
    "DatabaseEngine",
    "InMemoryDatabaseEngine",
    "SQLDatabaseEngine",
    # Filter DSL models
    "Filter",
    "ComparisonFilter",
    "AndFilter",
    "OrFilter",
    "NotFilter",
    "FilterOperator",
    # Filter converter functions
    "to_sqlalchemy",
    "evaluate",
    # Utilities
    "get_pk_fields",
    "get_table_name",
]
