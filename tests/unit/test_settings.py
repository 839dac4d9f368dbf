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

"""Unit tests for NewsroomSettings and LockConfig."""

import pytest

from storyflam.archs.config import MEMORY_DATABASE_URL, ConfigError, LockConfig, NewsroomSettings
from storyflam.archs.newsroom import InMemoryDatabaseEngine, SQLDatabaseEngine


class TestLockConfig:
    def test_defaults(self):
        config = LockConfig()
        assert config.lock_timeout == 300
        assert config.sweep_interval == 600

    @pytest.mark.parametrize("field", ["lock_timeout", "sweep_interval"])
    def test_non_positive_values_raise(self, field):
        with pytest.raises(ConfigError, match=field):
            LockConfig(**{field: 0})

    def test_config_error_is_a_value_error(self):
        with pytest.raises(ValueError):
            LockConfig(lock_timeout=-1)


class TestNewsroomSettingsLoad:
    def test_defaults_without_file_or_env(self):
        settings = NewsroomSettings.load(environ={})

        assert settings.database_url.startswith("sqlite+aiosqlite:///")
        assert settings.database_url.endswith(".storyflam/storyflam.db")
        assert settings.host == "127.0.0.1"
        assert settings.port == 8000
        assert settings.lock == LockConfig()

    def test_yaml_file(self, tmp_path):
        path = tmp_path / "storyflam.yaml"
        path.write_text(
            "database_url: memory\nport: 9000\nlog_level: DEBUG\nlock:\n  lock_timeout: 120\n  sweep_interval: 240\n",
            encoding="utf-8",
        )

        settings = NewsroomSettings.load(path, environ={})

        assert settings.uses_memory_store
        assert settings.port == 9000
        assert settings.log_level == "debug"
        assert settings.lock == LockConfig(lock_timeout=120, sweep_interval=240)

    def test_environment_overrides_file(self, tmp_path):
        path = tmp_path / "storyflam.yaml"
        path.write_text("port: 9000\nlock:\n  lock_timeout: 120\n", encoding="utf-8")

        settings = NewsroomSettings.load(
            path,
            environ={"STORYFLAM_PORT": "9100", "STORYFLAM_LOCK_TIMEOUT": "60", "STORYFLAM_HOST": "0.0.0.0"},
        )

        assert settings.port == 9100
        assert settings.host == "0.0.0.0"
        assert settings.lock.lock_timeout == 60
        assert settings.lock.sweep_interval == 600

    def test_reads_os_environ_by_default(self, clean_env):
        clean_env.setenv("STORYFLAM_SWEEP_INTERVAL", "30")
        assert NewsroomSettings.load().lock.sweep_interval == 30

    @pytest.mark.parametrize(
        ("environ", "message"),
        [
            ({"STORYFLAM_PORT": "eighty"}, "Invalid setting value"),
            ({"STORYFLAM_PORT": "70000"}, "port must be between"),
            ({"STORYFLAM_LOG_LEVEL": "loud"}, "log_level must be one of"),
            ({"STORYFLAM_LOCK_TIMEOUT": "0"}, "lock_timeout must be positive"),
        ],
    )
    def test_bad_environment_values(self, environ, message):
        with pytest.raises(ConfigError, match=message):
            NewsroomSettings.load(environ=environ)

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigError, match="not found"):
            NewsroomSettings.load(tmp_path / "missing.yaml", environ={})

    def test_malformed_yaml(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("port: [unclosed\n", encoding="utf-8")
        with pytest.raises(ConfigError, match="YAML parsing error"):
            NewsroomSettings.load(path, environ={})

    def test_unknown_keys(self, tmp_path):
        path = tmp_path / "extra.yaml"
        path.write_text("colour: blue\n", encoding="utf-8")
        with pytest.raises(ConfigError, match="Unknown settings: colour"):
            NewsroomSettings.load(path, environ={})


class TestCreateEngine:
    def test_memory_store_is_shared(self):
        settings = NewsroomSettings(database_url=MEMORY_DATABASE_URL)
        engine = settings.create_engine()
        assert isinstance(engine, InMemoryDatabaseEngine)
        assert engine is settings.create_engine()

    def test_sqlite_file_creates_parent_directory(self, tmp_path):
        db_path = tmp_path / "nested" / "storyflam.db"
        engine = NewsroomSettings(database_url=f"sqlite+aiosqlite:///{db_path}").create_engine()

        assert isinstance(engine, SQLDatabaseEngine)
        assert db_path.parent.is_dir()

    def test_sync_driver_is_rejected(self):
        with pytest.raises(ConfigError, match="async driver"):
            NewsroomSettings(database_url="sqlite:///storyflam.db").create_engine()
