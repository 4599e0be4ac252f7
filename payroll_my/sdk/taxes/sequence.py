"""Run consecutive pay periods, threading the YTD snapshot.

The engine itself never stores YTD state; this module plays the caller's
part for projections and recalculation. Each period's result is folded
into the snapshot passed to the next period, exactly as a payroll run
would persist and reload it.
"""

import logging
from typing import Callable, Iterable, Optional

from pydantic import BaseModel, ConfigDict, Field

from ..errors import InvalidInputError
from ..schemas import (
    EpfRates,
    PeriodInput,
    StatutoryResult,
    StatutoryToggles,
    TaxProfile,
    YtdSnapshot,
)
from .rounding import Number, ZERO, to_decimal
from .schemas import StatutoryTables
from .statutory import advance_ytd, calculate_all_statutory

logger = logging.getLogger(__name__)


class PeriodOutcome(BaseModel):
    """One period of a sequence: the inputs, the YTD it saw, and its result."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    period: PeriodInput
    ytd_before: YtdSnapshot = Field(..., description="Snapshot passed to the calculation")
    result: StatutoryResult
    ytd_after: YtdSnapshot = Field(..., description="Snapshot for the next period")


def calculate_periods_in_sequence(
    periods: Iterable[PeriodInput],
    profile: Optional[TaxProfile] = None,
    ytd: Optional[YtdSnapshot] = None,
    toggles: Optional[StatutoryToggles] = None,
    tables: Optional[StatutoryTables] = None,
    tables_for: Optional[Callable[[PeriodInput], StatutoryTables]] = None,
) -> list[PeriodOutcome]:
    """Calculate consecutive months of one tax year.

    Args:
        periods: Periods in month order (months strictly increasing)
        profile: Tax profile used for every period
        ytd: Snapshot before the first period (default: zero)
        toggles: Contribution toggles used for every period
        tables: Tables used for every period
        tables_for: Per-period table selection; takes precedence over tables.
            Use this when the year straddles a table change.

    Returns:
        One PeriodOutcome per period, in order

    Raises:
        InvalidInputError: If months are not strictly increasing
    """
    outcomes = []
    current = ytd or YtdSnapshot.zero()
    last_month = 0

    for period in periods:
        if period.month <= last_month:
            raise InvalidInputError(
                f"Periods must be in increasing month order, got month {period.month} after {last_month}"
            )
        last_month = period.month

        period_tables = tables_for(period) if tables_for else tables
        result = calculate_all_statutory(period, profile, current, toggles, period_tables)
        after = advance_ytd(current, period, result, toggles)
        outcomes.append(PeriodOutcome(period=period, ytd_before=current, result=result, ytd_after=after))
        logger.debug(f"month {period.month}: pcb={result.pcb} ytd_pcb={after.pcb_deducted}")
        current = after

    return outcomes


def build_year_periods(
    gross_salary: Number,
    start_month: int = 1,
    end_month: int = 12,
    additional: Optional[dict[int, Number]] = None,
    zakat: Number = 0,
    epf_rates: Optional[EpfRates] = None,
) -> list[PeriodInput]:
    """Periods with a constant salary from start_month to end_month.

    Args:
        gross_salary: Monthly base salary
        start_month: First month (1-12)
        end_month: Last month (1-12)
        additional: Bonus/arrears keyed by month number
        zakat: Zakat paid each month
        epf_rates: EPF rate overrides applied to every period
    """
    if not 1 <= start_month <= end_month <= 12:
        raise InvalidInputError(f"Invalid month range {start_month}-{end_month}")
    additional = additional or {}
    return [
        PeriodInput(
            gross_salary=to_decimal(gross_salary),
            month=month,
            additional_remuneration=to_decimal(additional.get(month, ZERO)),
            zakat=to_decimal(zakat),
            epf_rates=epf_rates,
        )
        for month in range(start_month, end_month + 1)
    ]
