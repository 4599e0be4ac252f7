"""Statutory table loading by effective date.

Tables live in rules/<kind>/<YYYY-MM-DD>.yaml, one file per version. The
version used for a pay period is the latest one whose effective date is on
or before the period's date, so recalculating a historical period after a
table change (e.g. the October 2024 SOCSO/EIS ceiling increase) reproduces
the amounts that were correct at the time.

Loaded tables are validated once and cached. They are immutable, so the
same instance may be shared across any number of concurrent calculations.
"""

import logging
from datetime import date, datetime
from functools import lru_cache
from pathlib import Path
from typing import Optional, Union

import yaml
from pydantic import ValidationError

from ..errors import ConfigurationError
from .schemas import PcbRules, StatutoryTables, WageBandTable

logger = logging.getLogger(__name__)

RULES_DIR = Path(__file__).parent / "rules"
WAGE_BAND_SCHEMES = ("socso", "eis")
TABLE_KINDS = WAGE_BAND_SCHEMES + ("pcb",)

DateLike = Union[date, str]


def parse_date(value: DateLike) -> date:
    """Parse a date string in YYYY-MM-DD format."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except (TypeError, ValueError):
        raise ConfigurationError(f"Invalid date '{value}'. Expected YYYY-MM-DD.")


def _get_rules_dir(rules_dir: Optional[Union[Path, str]] = None) -> Path:
    return Path(rules_dir) if rules_dir else RULES_DIR


def _check_kind(kind: str) -> None:
    if kind not in TABLE_KINDS:
        raise ConfigurationError(f"Unknown table kind '{kind}'. Must be one of {TABLE_KINDS}")


def list_table_versions(kind: str, rules_dir: Optional[Union[Path, str]] = None) -> list[date]:
    """Get effective dates of all versions of a table, oldest first."""
    _check_kind(kind)
    kind_dir = _get_rules_dir(rules_dir) / kind
    versions = []
    for path in kind_dir.glob("*.yaml"):
        try:
            versions.append(datetime.strptime(path.stem, "%Y-%m-%d").date())
        except ValueError:
            logger.warning(f"Ignoring {path.name}: file name is not an effective date")
    return sorted(versions)


def _select_version(kind: str, effective_date: Optional[DateLike], rules_dir) -> Path:
    """Pick the file in force on effective_date (latest version if None)."""
    versions = list_table_versions(kind, rules_dir)
    if not versions:
        raise ConfigurationError(f"No {kind} tables found in {_get_rules_dir(rules_dir) / kind}")

    if effective_date is None:
        chosen = versions[-1]
    else:
        target = parse_date(effective_date)
        candidates = [v for v in versions if v <= target]
        if not candidates:
            raise ConfigurationError(
                f"No {kind} table in force on {target.isoformat()} "
                f"(earliest version is {versions[0].isoformat()})"
            )
        chosen = candidates[-1]

    logger.debug(f"{kind}: using table effective {chosen.isoformat()} for {effective_date or 'latest'}")
    return _get_rules_dir(rules_dir) / kind / f"{chosen.isoformat()}.yaml"


def _read_yaml(path: Path) -> dict:
    try:
        with open(path, "r") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in {path}: {e}")
    if not isinstance(data, dict):
        raise ConfigurationError(f"{path} must contain a mapping, got {type(data).__name__}")
    return data


def _check_effective_date(path: Path, effective_from: date) -> None:
    if effective_from.isoformat() != path.stem:
        raise ConfigurationError(
            f"{path}: effective_from {effective_from.isoformat()} does not match file name"
        )


@lru_cache(maxsize=None)
def _load_wage_band_file(scheme: str, path: Path) -> WageBandTable:
    data = _read_yaml(path)
    if data.get("scheme") != scheme:
        raise ConfigurationError(f"{path}: scheme is '{data.get('scheme')}', expected '{scheme}'")
    try:
        table = WageBandTable.from_published(
            scheme=data["scheme"],
            effective_from=data["effective_from"],
            wage_ceiling=data["wage_ceiling"],
            bands=data.get("bands") or [],
            description=data.get("description"),
        )
    except KeyError as e:
        raise ConfigurationError(f"{path}: missing required key {e}")
    except (ValidationError, TypeError) as e:
        raise ConfigurationError(f"{path}: {e}")

    _check_effective_date(path, table.effective_from)
    logger.debug(f"Loaded {scheme} table {path.name}: {len(table.tiers)} tiers, ceiling {table.wage_ceiling}")
    return table


@lru_cache(maxsize=None)
def _load_pcb_file(path: Path) -> PcbRules:
    data = _read_yaml(path)
    try:
        rules = PcbRules(**data)
    except (ValidationError, TypeError) as e:
        raise ConfigurationError(f"{path}: {e}")

    _check_effective_date(path, rules.effective_from)
    logger.debug(f"Loaded PCB rules {path.name}: {len(rules.brackets)} brackets")
    return rules


def load_wage_band_table(
    scheme: str,
    effective_date: Optional[DateLike] = None,
    rules_dir: Optional[Union[Path, str]] = None,
) -> WageBandTable:
    """Load the SOCSO or EIS table in force on a date.

    Args:
        scheme: 'socso' or 'eis'
        effective_date: Pay period date (date or YYYY-MM-DD); None for the latest table
        rules_dir: Alternate rules directory (default: bundled rules)

    Raises:
        ConfigurationError: Unknown scheme, no table in force, or malformed table
    """
    if scheme not in WAGE_BAND_SCHEMES:
        raise ConfigurationError(f"Unknown wage-band scheme '{scheme}'. Must be one of {WAGE_BAND_SCHEMES}")
    path = _select_version(scheme, effective_date, rules_dir)
    return _load_wage_band_file(scheme, path)


def load_pcb_rules(
    effective_date: Optional[DateLike] = None,
    rules_dir: Optional[Union[Path, str]] = None,
) -> PcbRules:
    """Load the PCB schedule in force on a date."""
    path = _select_version("pcb", effective_date, rules_dir)
    return _load_pcb_file(path)


def load_statutory_tables(
    effective_date: Optional[DateLike] = None,
    rules_dir: Optional[Union[Path, str]] = None,
) -> StatutoryTables:
    """Load the SOCSO, EIS and PCB tables in force on a date."""
    return StatutoryTables(
        socso=load_wage_band_table("socso", effective_date, rules_dir),
        eis=load_wage_band_table("eis", effective_date, rules_dir),
        pcb=load_pcb_rules(effective_date, rules_dir),
    )


def clear_table_cache() -> None:
    """Drop cached tables so edited rule files are read again."""
    _load_wage_band_file.cache_clear()
    _load_pcb_file.cache_clear()
