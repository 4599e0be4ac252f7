"""Shared fixtures for Payroll MY unit tests."""

import pytest

from payroll_my.sdk.taxes import clear_table_cache, load_statutory_tables


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    """Point the config directory at an empty temp dir for every test."""
    config_dir = tmp_path / "config"
    config_dir.mkdir()
    monkeypatch.setenv("PAYROLL_MY_CONFIG_PATH", str(config_dir))
    return config_dir


@pytest.fixture(autouse=True)
def fresh_table_cache():
    clear_table_cache()
    yield
    clear_table_cache()


@pytest.fixture
def tables():
    """Latest bundled tables (SOCSO/EIS ceiling RM6,000)."""
    return load_statutory_tables()


@pytest.fixture
def legacy_tables():
    """Tables in force before October 2024 (ceiling RM5,000)."""
    return load_statutory_tables("2024-09-30")
