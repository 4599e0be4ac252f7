"""Configuration management for Payroll MY.

Configuration is split into two files:

1. settings.json - Machine-specific settings
   - profile: path to profile.yaml (optional, if not colocated)
   - rules_dir: alternate directory of statutory tables (optional)

2. profile.yaml - Employer and employee configuration
   - employer.epf: EPF rate overrides (any subset of EpfRates fields)
   - employer.toggles: default contribution toggles
   - employees.<id>.tax_profile: TaxProfile fields
   - employees.<id>.toggles: per-employee toggles (e.g. EIS off past 60)

Config directory resolution:
1. PAYROLL_MY_CONFIG_PATH environment variable (if set)
2. ~/.config/payroll-my/ (XDG_CONFIG_HOME fallback)

Profile resolution:
1. settings.json "profile" key (if set)
2. profile.yaml in the config directory

The engine never reads configuration itself; callers load it here and
pass the resulting records into each calculation.
"""

import json
import logging
import os
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import ValidationError

from .errors import ConfigurationError
from .schemas import EpfRates, StatutoryToggles, TaxProfile

logger = logging.getLogger(__name__)

APP_NAME = "payroll-my"
CONFIG_ENV_VAR = "PAYROLL_MY_CONFIG_PATH"
SETTINGS_FILENAME = "settings.json"
PROFILE_FILENAME = "profile.yaml"


class ConfigNotFoundError(ConfigurationError):
    """Raised when a configured path does not exist."""
    pass


class ProfileNotFoundError(ConfigurationError):
    """Raised when no profile is found."""
    pass


def get_config_dir() -> Path:
    """Get the configuration directory path.

    Resolution order:
    1. PAYROLL_MY_CONFIG_PATH environment variable
    2. ~/.config/payroll-my/ (XDG_CONFIG_HOME)
    """
    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        return Path(env_path)

    xdg_config_home = os.environ.get("XDG_CONFIG_HOME", Path.home() / ".config")
    return Path(xdg_config_home) / APP_NAME


def get_settings_path() -> Path:
    """Get the path to settings.json (may not exist yet)."""
    return get_config_dir() / SETTINGS_FILENAME


def load_settings() -> dict:
    """Load machine-specific settings from settings.json.

    Returns:
        Settings dictionary (empty dict if file doesn't exist)

    Raises:
        ConfigurationError: If settings.json is not valid JSON
    """
    settings_file = get_settings_path()

    if not settings_file.exists():
        return {}

    try:
        with open(settings_file, "r") as f:
            return json.load(f)
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"Invalid JSON in {settings_file}: {e}")


def save_settings(settings: dict) -> Path:
    """Save machine-specific settings to settings.json.

    Returns:
        Path to the saved settings file
    """
    config_dir = get_config_dir()
    config_dir.mkdir(parents=True, exist_ok=True)

    settings_file = config_dir / SETTINGS_FILENAME

    with open(settings_file, "w") as f:
        json.dump(settings, f, indent=2)

    return settings_file


def get_setting(key: str, default: Any = None) -> Any:
    """Get a setting value from settings.json."""
    return load_settings().get(key, default)


def set_setting(key: str, value: Any) -> Path:
    """Set a setting value in settings.json."""
    settings = load_settings()
    settings[key] = value
    return save_settings(settings)


def get_profile_path(require_exists: bool = False) -> Path:
    """Get the path to the profile.yaml file.

    Resolution order:
    1. settings.json "profile" key (if set)
    2. profile.yaml in config directory

    Args:
        require_exists: If True, raises ProfileNotFoundError if not found

    Raises:
        ProfileNotFoundError: If require_exists=True and no profile found
    """
    custom_profile = get_setting("profile")
    if custom_profile:
        profile_path = Path(custom_profile)
        if require_exists and not profile_path.exists():
            raise ProfileNotFoundError(
                f"Profile not found at configured path: {profile_path}\n\n"
                f"Update the 'profile' key in {get_settings_path()}"
            )
        return profile_path

    profile_path = get_config_dir() / PROFILE_FILENAME
    if require_exists and not profile_path.exists():
        raise ProfileNotFoundError(
            f"No profile found. Checked:\n"
            f"  1. settings.json 'profile' key (not set)\n"
            f"  2. {profile_path} (not found)"
        )

    return profile_path


def load_profile(require_exists: bool = True) -> dict:
    """Load employer/employee configuration from profile.yaml.

    Returns:
        Profile dictionary (empty dict if not required and not found)

    Raises:
        ProfileNotFoundError: If require_exists=True and no profile found
        ConfigurationError: If the file is not valid YAML
    """
    profile_path = get_profile_path(require_exists=require_exists)

    if not profile_path.exists():
        return {}

    try:
        with open(profile_path, "r") as f:
            return yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in {profile_path}: {e}")


def get_rules_dir() -> Optional[Path]:
    """Alternate statutory tables directory from settings.json, if configured."""
    rules_dir = get_setting("rules_dir")
    if not rules_dir:
        return None
    path = Path(rules_dir).expanduser()
    if not path.is_dir():
        raise ConfigNotFoundError(f"rules_dir is not a directory: {path}")
    return path


def _section(profile: dict, *keys: str) -> dict:
    """Walk nested keys, returning {} when any level is missing."""
    current = profile
    for key in keys:
        if not isinstance(current, dict):
            return {}
        current = current.get(key) or {}
    if not isinstance(current, dict):
        raise ConfigurationError(f"'{'.'.join(keys)}' must be a mapping, got {type(current).__name__}")
    return current


def load_epf_rates(profile: Optional[dict] = None) -> EpfRates:
    """Employer EPF rates from profile.yaml employer.epf, defaults for unset keys.

    Raises:
        ConfigurationError: Unknown key or a rate outside [0, 1]
    """
    if profile is None:
        profile = load_profile(require_exists=False)
    section = _section(profile, "employer", "epf")
    try:
        rates = EpfRates(**section)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid employer.epf config: {e}")
    if section:
        logger.debug(f"EPF rate overrides from profile: {sorted(section)}")
    return rates


def load_employee(employee_id: str, profile: Optional[dict] = None) -> tuple[TaxProfile, StatutoryToggles]:
    """Tax profile and toggles for one employee from profile.yaml.

    Employee toggles override employer.toggles key by key.

    Raises:
        ConfigurationError: Employee not configured or invalid fields
    """
    if profile is None:
        profile = load_profile(require_exists=True)

    # YAML reads numeric IDs (e.g. 1001:) as ints
    employees = {str(k): v for k, v in _section(profile, "employees").items()}
    if employee_id not in employees:
        available = ", ".join(sorted(employees)) or "none"
        raise ConfigurationError(f"Employee '{employee_id}' not found in profile (configured: {available})")

    employee = employees[employee_id] or {}
    toggles = {
        **_section(profile, "employer", "toggles"),
        **_section(employee, "toggles"),
    }
    try:
        tax_profile = TaxProfile(**_section(employee, "tax_profile"))
        employee_toggles = StatutoryToggles(**toggles)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid config for employee '{employee_id}': {e}")

    return tax_profile, employee_toggles
