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

"""In-memory database engine backed by plain Python dictionaries.

Rows live only as long as the process. Filters are evaluated in Python with
the same semantics the SQL engine gets from the database, which makes this
engine the default for tests and for running a single classroom server
without a database file.
"""

from __future__ import annotations

import threading
from collections.abc import Mapping
from typing import Any, TypeVar

from sqlmodel import SQLModel

from .engine import DatabaseEngine, check_update_values, get_pk_fields, get_table_name
from .filters import Filter, evaluate

T = TypeVar("T", bound=SQLModel)

_shared_instance: InMemoryDatabaseEngine | None = None


def _sort_key(value: object) -> tuple[bool, object]:
    return (False, 0) if value is None else (True, value)


class InMemoryDatabaseEngine(DatabaseEngine):
    """Thread-safe in-memory storage engine.

    Every public operation runs under a single re-entrant lock, so a
    conditional ``update_where`` is atomic with respect to any other call on
    the same engine. That is what makes lock acquisition a true compare-and-set
    here.

    Example:
        >>> engine = InMemoryDatabaseEngine()
        >>> await engine.setup_models([StoryModel])
        >>> await engine.find_first(StoryModel, filters=ComparisonFilter.eq("id", "story_1"))
    """

    def __init__(self) -> None:
        # {table_name: {pk_tuple: model_instance}}
        self._storage: dict[str, dict[tuple[object, ...], SQLModel]] = {}
        self._initialized_models: set[type[SQLModel]] = set()
        self._lock = threading.RLock()

    @staticmethod
    def get_shared_instance() -> InMemoryDatabaseEngine:
        """Get the process-wide shared engine.

        Servers started without a database URL share this instance so every
        route sees the same stories.
        """
        global _shared_instance
        if _shared_instance is None:
            _shared_instance = InMemoryDatabaseEngine()
        return _shared_instance

    async def setup_models(self, model_classes: list[type[SQLModel]]) -> None:
        with self._lock:
            for model_class in model_classes:
                table_name = get_table_name(model_class)
                if table_name not in self._storage:
                    self._storage[table_name] = {}
                self._initialized_models.add(model_class)

    def _get_pk_tuple(self, model: SQLModel) -> tuple[object, ...]:
        pk_fields = get_pk_fields(type(model))
        return tuple(getattr(model, f) for f in pk_fields)

    def _get_table(self, model_class: type[T]) -> dict[tuple[object, ...], SQLModel]:
        table_name = get_table_name(model_class)
        if table_name not in self._storage:
            self._storage[table_name] = {}
        return self._storage[table_name]

    async def find_first(
        self,
        model_class: type[T],
        *,
        filters: Filter,
    ) -> T | None:
        with self._lock:
            table = self._get_table(model_class)
            for model in table.values():
                if evaluate(filters, model):
                    return model  # type: ignore[return-value]
            return None

    async def find_many(
        self,
        model_class: type[T],
        *,
        filters: Filter | None = None,
        limit: int | None = None,
        offset: int | None = None,
        order_by: str | tuple[str, ...] | None = None,
    ) -> list[T]:
        """Find all records matching filters.

        ``order_by`` takes field names, prefixed with "-" for descending.
        ``None`` sorts before any value, matching SQLite.
        """
        with self._lock:
            table = self._get_table(model_class)

            if filters is not None:
                results = [model for model in table.values() if evaluate(filters, model)]
            else:
                results = list(table.values())

            if order_by:
                fields = (order_by,) if isinstance(order_by, str) else order_by
                # Stable sorts applied from the least significant key.
                for field in reversed(fields):
                    reverse = field.startswith("-")
                    field_name = field[1:] if reverse else field
                    results.sort(key=lambda m: _sort_key(getattr(m, field_name)), reverse=reverse)

            if offset:
                results = results[offset:]
            if limit:
                results = results[:limit]

            return results  # type: ignore[return-value]

    async def create(self, model: T) -> T:
        """Create a new record.

        Raises:
            ValueError: If a record with the same primary key already exists
        """
        with self._lock:
            table = self._get_table(type(model))
            pk = self._get_pk_tuple(model)

            if pk in table:
                pk_values = dict(zip(get_pk_fields(type(model)), pk))
                raise ValueError(f"Duplicate primary key: {pk_values}")

            table[pk] = model
            return model

    async def create_many(self, models: list[T]) -> list[T]:
        with self._lock:
            for model in models:
                await self.create(model)
        return models

    async def update(self, model: T) -> T:
        with self._lock:
            table = self._get_table(type(model))
            table[self._get_pk_tuple(model)] = model
            return model

    async def update_where(
        self,
        model_class: type[T],
        *,
        filters: Filter,
        values: Mapping[str, Any],
    ) -> int:
        """Set ``values`` on all matching records under the engine lock.

        Raises:
            ValueError: If ``values`` names an unknown or primary key field
        """
        check_update_values(model_class, values)
        with self._lock:
            table = self._get_table(model_class)
            matched = [model for model in table.values() if evaluate(filters, model)]
            for model in matched:
                for name, value in values.items():
                    setattr(model, name, value)
            return len(matched)

    async def delete(
        self,
        model_class: type[T],
        *,
        filters: Filter,
    ) -> int:
        with self._lock:
            table = self._get_table(model_class)
            to_delete = [pk for pk, model in table.items() if evaluate(filters, model)]
            for pk in to_delete:
                del table[pk]
            return len(to_delete)

    async def count(
        self,
        model_class: type[T],
        *,
        filters: Filter | None = None,
    ) -> int:
        with self._lock:
            table = self._get_table(model_class)
            if filters is None:
                return len(table)
            return sum(1 for model in table.values() if evaluate(filters, model))
