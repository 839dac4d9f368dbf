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

"""
Pytest configuration and fixtures for the StoryFlam test suite.
"""

import logging
import os

import pytest

from storyflam.archs.newsroom.orm import memory_engine


@pytest.fixture(autouse=True)
def reset_shared_memory_engine():
    """Give every test a fresh process-wide in-memory engine."""
    memory_engine._shared_instance = None
    yield
    memory_engine._shared_instance = None


@pytest.fixture
def storyflam_caplog(caplog):
    """caplog capturing the storyflam loggers at DEBUG."""
    caplog.set_level(logging.DEBUG, logger="storyflam")
    return caplog


@pytest.fixture
def clean_env(monkeypatch):
    """Remove STORYFLAM_* variables inherited from the host environment."""
    for name in list(os.environ):
        if name.startswith("STORYFLAM_"):
            monkeypatch.delenv(name)
    return monkeypatch
