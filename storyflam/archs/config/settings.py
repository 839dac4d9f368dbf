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

"""Server settings loaded from environment variables and an optional YAML file.

Precedence, lowest to highest: built-in defaults, YAML file, environment.

Environment variables:
    STORYFLAM_DATABASE_URL: async SQLAlchemy URL, or "memory" for the in-memory store
    STORYFLAM_LOCK_TIMEOUT: seconds before an unrefreshed edit lock expires
    STORYFLAM_SWEEP_INTERVAL: seconds between stale lock sweeps
    STORYFLAM_HOST / STORYFLAM_PORT / STORYFLAM_LOG_LEVEL: HTTP server binding
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any

import yaml
from sqlalchemy.engine import make_url
from sqlalchemy.exc import ArgumentError

from storyflam.archs.newsroom.lock_service import LOCK_TIMEOUT_SECONDS
from storyflam.archs.newsroom.lock_sweeper import SWEEP_INTERVAL_SECONDS
from storyflam.archs.newsroom.orm import DatabaseEngine, InMemoryDatabaseEngine, SQLDatabaseEngine

MEMORY_DATABASE_URL = "memory"
LOG_LEVELS = ("debug", "info", "warning", "error", "critical")

_ENV_PREFIX = "STORYFLAM_"


class ConfigError(ValueError):
    """Exception raised for configuration errors."""

    pass


def default_database_url() -> str:
    db_path = Path.home() / ".storyflam" / "storyflam.db"
    return f"sqlite+aiosqlite:///{db_path}"


@dataclass
class LockConfig:
    """Edit lock timings.

    Attributes:
        lock_timeout: Seconds after which an unrefreshed lock expires (default: 300)
        sweep_interval: Seconds between background sweeps (default: 600)
            Longer than lock_timeout so readers, not the sweep, are the main
            defense against stale locks.
    """

    lock_timeout: float = LOCK_TIMEOUT_SECONDS
    sweep_interval: float = SWEEP_INTERVAL_SECONDS

    def __post_init__(self) -> None:
        if self.lock_timeout <= 0:
            raise ConfigError(f"lock_timeout must be positive, got {self.lock_timeout}")
        if self.sweep_interval <= 0:
            raise ConfigError(f"sweep_interval must be positive, got {self.sweep_interval}")


@dataclass
class NewsroomSettings:
    database_url: str = field(default_factory=default_database_url)
    host: str = "127.0.0.1"
    port: int = 8000
    log_level: str = "info"
    lock: LockConfig = field(default_factory=LockConfig)

    def __post_init__(self) -> None:
        if self.log_level not in LOG_LEVELS:
            raise ConfigError(f"log_level must be one of {', '.join(LOG_LEVELS)}, got {self.log_level!r}")
        if not 0 < self.port < 65536:
            raise ConfigError(f"port must be between 1 and 65535, got {self.port}")

    @property
    def uses_memory_store(self) -> bool:
        return self.database_url == MEMORY_DATABASE_URL

    def create_engine(self) -> DatabaseEngine:
        """Build the storage engine named by ``database_url``.

        SQLite file databases get their parent directory created first.
        """
        if self.uses_memory_store:
            return InMemoryDatabaseEngine.get_shared_instance()
        try:
            url = make_url(self.database_url)
        except ArgumentError as e:
            raise ConfigError(f"Invalid database_url: {self.database_url}") from e
        if url.get_backend_name() == "sqlite" and url.database and url.database != ":memory:":
            Path(url.database).expanduser().parent.mkdir(parents=True, exist_ok=True)
        try:
            return SQLDatabaseEngine.from_url(self.database_url)
        except ValueError as e:
            raise ConfigError(str(e)) from e

    @classmethod
    def load(
        cls,
        config_path: str | Path | None = None,
        *,
        environ: Mapping[str, str] | None = None,
    ) -> NewsroomSettings:
        """Build settings from an optional YAML file overlaid with environment variables.

        Args:
            config_path: Optional YAML file with top-level keys matching the
                settings fields and a nested ``lock`` mapping
            environ: Environment to read (defaults to os.environ)

        Raises:
            ConfigError: If the file is missing or malformed, or a value is invalid
        """
        values: dict[str, Any] = {}
        lock_values: dict[str, Any] = {}

        if config_path is not None:
            file_values = _load_yaml(Path(config_path))
            lock_section = file_values.pop("lock", None) or {}
            if not isinstance(lock_section, dict):
                raise ConfigError(f"'lock' in {config_path} must be a mapping")
            values.update(file_values)
            lock_values.update(lock_section)

        env = os.environ if environ is None else environ
        for name in ("database_url", "host", "port", "log_level"):
            raw = env.get(_ENV_PREFIX + name.upper())
            if raw:
                values[name] = raw
        for name in ("lock_timeout", "sweep_interval"):
            raw = env.get(_ENV_PREFIX + name.upper())
            if raw:
                lock_values[name] = raw

        unknown = set(values) - {f.name for f in fields(cls)}
        unknown |= {f"lock.{name}" for name in set(lock_values) - {f.name for f in fields(LockConfig)}}
        if unknown:
            raise ConfigError(f"Unknown settings: {', '.join(sorted(unknown))}")

        try:
            if "port" in values:
                values["port"] = int(values["port"])
            if "log_level" in values:
                values["log_level"] = str(values["log_level"]).lower()
            lock_values = {k: float(v) for k, v in lock_values.items()}
        except (TypeError, ValueError) as e:
            raise ConfigError(f"Invalid setting value: {e}") from e

        return cls(**values, lock=LockConfig(**lock_values))


def _load_yaml(path: Path) -> dict[str, Any]:
    if not path.exists():
        raise ConfigError(f"Configuration file not found: {path}")
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        raise ConfigError(f"YAML parsing error in {path}: {e}") from e
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"Top level of {path} must be a mapping")
    return dict(data)
