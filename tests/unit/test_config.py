"""Tests for settings.json and profile.yaml handling."""

import json
from decimal import Decimal

import pytest
import yaml

from payroll_my.sdk.config import (
    get_config_dir,
    get_profile_path,
    get_rules_dir,
    load_employee,
    load_epf_rates,
    load_profile,
    load_settings,
    set_setting,
    ConfigNotFoundError,
    ProfileNotFoundError,
)
from payroll_my.sdk.errors import ConfigurationError


PROFILE = {
    "employer": {
        "epf": {"employer_rate_above_threshold": 0.13},
        "toggles": {"has_eis": True},
    },
    "employees": {
        "E001": {
            "tax_profile": {"category": "KB", "disabled_spouse": False, "number_of_children": 2},
        },
        1002: {
            "tax_profile": {"category": "KA"},
            "toggles": {"has_eis": False},
        },
    },
}


def write_profile(config_dir, data):
    path = config_dir / "profile.yaml"
    with open(path, "w") as f:
        yaml.safe_dump(data, f)
    return path


class TestPaths:

    def test_env_var_sets_config_dir(self, isolated_config):
        assert get_config_dir() == isolated_config

    def test_xdg_fallback(self, tmp_path, monkeypatch):
        monkeypatch.delenv("PAYROLL_MY_CONFIG_PATH")
        monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg"))
        assert get_config_dir() == tmp_path / "xdg" / "payroll-my"

    def test_profile_path_from_settings(self, isolated_config, tmp_path):
        custom = tmp_path / "elsewhere.yaml"
        set_setting("profile", str(custom))
        assert get_profile_path() == custom
        with pytest.raises(ProfileNotFoundError):
            get_profile_path(require_exists=True)

    def test_missing_default_profile(self):
        with pytest.raises(ProfileNotFoundError):
            load_profile(require_exists=True)
        assert load_profile(require_exists=False) == {}


class TestSettings:

    def test_round_trip(self, isolated_config):
        set_setting("rules_dir", "/somewhere")
        assert json.loads((isolated_config / "settings.json").read_text()) == {"rules_dir": "/somewhere"}

    def test_invalid_json(self, isolated_config):
        (isolated_config / "settings.json").write_text("{not json")
        with pytest.raises(ConfigurationError, match="Invalid JSON"):
            load_settings()

    def test_rules_dir_unset(self):
        assert get_rules_dir() is None

    def test_rules_dir_must_exist(self, tmp_path):
        set_setting("rules_dir", str(tmp_path / "missing"))
        with pytest.raises(ConfigNotFoundError):
            get_rules_dir()

    def test_rules_dir_resolved(self, tmp_path):
        set_setting("rules_dir", str(tmp_path))
        assert get_rules_dir() == tmp_path


class TestEpfRates:

    def test_overrides_merge_with_defaults(self):
        rates = load_epf_rates(PROFILE)
        assert rates.employer_rate_above_threshold == Decimal("0.13")
        assert rates.employee_rate == Decimal("0.11")

    def test_no_profile_gives_defaults(self):
        assert load_epf_rates() == load_epf_rates({})

    def test_invalid_override(self):
        with pytest.raises(ConfigurationError, match="employer.epf"):
            load_epf_rates({"employer": {"epf": {"employee_rate": 2}}})

    def test_section_must_be_mapping(self):
        with pytest.raises(ConfigurationError, match="must be a mapping"):
            load_epf_rates({"employer": {"epf": [0.11]}})


class TestEmployees:

    def test_load_employee(self):
        profile, toggles = load_employee("E001", PROFILE)
        assert profile.category == "KB"
        assert profile.number_of_children == 2
        assert toggles.has_eis

    def test_numeric_id_and_toggle_override(self):
        profile, toggles = load_employee("1002", PROFILE)
        assert profile.category == "KA"
        assert not toggles.has_eis
        assert toggles.has_epf

    def test_unknown_employee(self):
        with pytest.raises(ConfigurationError, match="E999"):
            load_employee("E999", PROFILE)

    def test_invalid_tax_profile(self):
        bad = {"employees": {"X": {"tax_profile": {"categry": "KA"}}}}
        with pytest.raises(ConfigurationError, match="Invalid config for employee 'X'"):
            load_employee("X", bad)

    def test_reads_profile_file(self, isolated_config):
        write_profile(isolated_config, PROFILE)
        profile, _ = load_employee("E001")
        assert profile.category == "KB"
