"""Payroll MY SDK - Malaysian statutory payroll deductions."""

from .config import (
    get_config_dir,
    get_settings_path,
    load_settings,
    save_settings,
    get_setting,
    set_setting,
    get_profile_path,
    load_profile,
    get_rules_dir,
    load_epf_rates,
    load_employee,
    ConfigNotFoundError,
    ProfileNotFoundError,
)

from .errors import (
    StatutoryError,
    ConfigurationError,
    InvalidProfileError,
    InvalidInputError,
)

from .schemas import (
    EpfRates,
    TaxProfile,
    YtdSnapshot,
    PeriodInput,
    StatutoryToggles,
    ContributionPair,
    StatutoryResult,
    PcbBreakdown,
)

from .taxes import (
    load_wage_band_table,
    load_pcb_rules,
    load_statutory_tables,
    list_table_versions,
    compute_epf,
    lookup_wage_band,
    calc_socso,
    calc_eis,
    compute_pcb,
    compute_pcb_breakdown,
    calculate_all_statutory,
    calculate_pcb_breakdown,
    advance_ytd,
    calculate_periods_in_sequence,
    build_year_periods,
)

__all__ = [
    # Config
    "get_config_dir",
    "get_settings_path",
    "load_settings",
    "save_settings",
    "get_setting",
    "set_setting",
    "get_profile_path",
    "load_profile",
    "get_rules_dir",
    "load_epf_rates",
    "load_employee",
    "ConfigNotFoundError",
    "ProfileNotFoundError",
    # Errors
    "StatutoryError",
    "ConfigurationError",
    "InvalidProfileError",
    "InvalidInputError",
    # Records
    "EpfRates",
    "TaxProfile",
    "YtdSnapshot",
    "PeriodInput",
    "StatutoryToggles",
    "ContributionPair",
    "StatutoryResult",
    "PcbBreakdown",
    # Calculations
    "load_wage_band_table",
    "load_pcb_rules",
    "load_statutory_tables",
    "list_table_versions",
    "compute_epf",
    "lookup_wage_band",
    "calc_socso",
    "calc_eis",
    "compute_pcb",
    "compute_pcb_breakdown",
    "calculate_all_statutory",
    "calculate_pcb_breakdown",
    "advance_ytd",
    "calculate_periods_in_sequence",
    "build_year_periods",
]
