from __future__ import annotations

import dataclasses
import os
import sqlite3
import sys
from pathlib import Path

import pytest


def pytest_configure():
    # Ensure project root is on sys.path for absolute imports like 'services.session_manager'
    root = Path(__file__).resolve().parents[1]
    if str(root) not in sys.path:
        sys.path.insert(0, str(root))
    # Set test environment knobs
    os.environ.setdefault("RUN_ENV", "test")
    os.environ.setdefault("PROVIDER_TRACE", "false")


@pytest.fixture
def make_settings():
    """Settings with test credentials; keyword overrides replace single fields."""
    from config.settings import get_settings

    def _make(**overrides):
        get_settings.cache_clear()
        base = dataclasses.replace(
            get_settings(),
            apollo_api_key="apollo-test",
            fullenrich_api_key="fullenrich-test",
            rapidapi_key="rapidapi-test",
            enrich_poll_interval_seconds=0.0,
            login_wait_seconds=5.0,
            login_poll_slice_seconds=1.0,
            default_session_key="default",
        )
        return dataclasses.replace(base, **overrides)

    return _make


@pytest.fixture
def conn(tmp_path):
    from db import schema

    c = sqlite3.connect(str(tmp_path / "test.db"), check_same_thread=False)
    schema.bootstrap(c)
    try:
        yield c
    finally:
        c.close()
