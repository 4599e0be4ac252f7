"""taxes - Malaysian statutory contribution and tax deduction logic.

Scope:
- EPF percentage contributions with the RM5,000 employer-rate threshold
- SOCSO and EIS wage-band lookups (PERKESO schedules)
- PCB monthly tax deduction (LHDN computerised calculation)
- Aggregation of all four for one pay period, and YTD threading

Constraints:
- Pure calculation - no config or records access, no wall-clock time
- Every table and the YTD snapshot are passed in per call
- Versioned tables loaded from rules/{socso,eis,pcb}/YYYY-MM-DD.yaml

Modules:
- rounding: sen rounding and PCB 5-sen rounding
- schemas: wage-band and tax-schedule table schemas
- tables: table loading by effective date
- epf: EPF contributions
- wage_bands: SOCSO/EIS lookup engine
- pcb: PCB engine
- statutory: aggregator and YTD advance
- sequence: month-by-month runs for projections and recalculation

Usage:
    from payroll_my.sdk.taxes import calculate_all_statutory, load_statutory_tables
    from payroll_my.sdk.schemas import PeriodInput, TaxProfile

    tables = load_statutory_tables("2025-06-30")
    result = calculate_all_statutory(
        PeriodInput(gross_salary="3500.00", month=6),
        TaxProfile(category="KA"),
        tables=tables,
    )
"""

from .rounding import (
    to_decimal,
    round_cents,
    truncate_cents,
    round_up_to_5_sen,
)

from .schemas import (
    WageBandTier,
    WageBandTable,
    TaxBracket,
    PcbRules,
    StatutoryTables,
)

from .tables import (
    load_wage_band_table,
    load_pcb_rules,
    load_statutory_tables,
    list_table_versions,
    clear_table_cache,
)

from .epf import compute_epf, compute_epf_on_additional, DEFAULT_EPF_RATES

from .wage_bands import (
    lookup_wage_band,
    calc_socso,
    calc_eis,
    socso_eligible,
    eis_eligible,
)

from .pcb import (
    compute_pcb,
    compute_pcb_breakdown,
    calc_total_reliefs,
    validate_tax_profile,
    validate_period_input,
)

from .statutory import calculate_all_statutory, calculate_pcb_breakdown, advance_ytd

from .sequence import (
    PeriodOutcome,
    calculate_periods_in_sequence,
    build_year_periods,
)

__all__ = [
    # Rounding
    "to_decimal",
    "round_cents",
    "truncate_cents",
    "round_up_to_5_sen",
    # Tables
    "WageBandTier",
    "WageBandTable",
    "TaxBracket",
    "PcbRules",
    "StatutoryTables",
    "load_wage_band_table",
    "load_pcb_rules",
    "load_statutory_tables",
    "list_table_versions",
    "clear_table_cache",
    # EPF
    "compute_epf",
    "compute_epf_on_additional",
    "DEFAULT_EPF_RATES",
    # SOCSO / EIS
    "lookup_wage_band",
    "calc_socso",
    "calc_eis",
    "socso_eligible",
    "eis_eligible",
    # PCB
    "compute_pcb",
    "compute_pcb_breakdown",
    "calc_total_reliefs",
    "validate_tax_profile",
    "validate_period_input",
    # Aggregation
    "calculate_all_statutory",
    "calculate_pcb_breakdown",
    "advance_ytd",
    "PeriodOutcome",
    "calculate_periods_in_sequence",
    "build_year_periods",
]
