"""Statutory aggregator: EPF, SOCSO, EIS and PCB for one pay period.

The components run in a fixed order, EPF -> SOCSO -> EIS -> PCB, because
PCB needs the employee EPF amount for its relief projection. The function
is pure: the month, YTD snapshot and tables are all explicit inputs, so
identical inputs always give an identical result.
"""

import logging
from decimal import Decimal
from typing import Optional

from ..schemas import (
    ContributionPair,
    EpfRates,
    PcbBreakdown,
    PeriodInput,
    StatutoryResult,
    StatutoryToggles,
    TaxProfile,
    YtdSnapshot,
)
from .epf import compute_epf, compute_epf_on_additional, resolve_epf_rates
from .pcb import compute_pcb, compute_pcb_breakdown, validate_period_input, validate_tax_profile
from .rounding import ZERO, round_cents
from .schemas import StatutoryTables
from .tables import load_statutory_tables
from .wage_bands import calc_eis, calc_socso

logger = logging.getLogger(__name__)


def calculate_all_statutory(
    period: PeriodInput,
    profile: Optional[TaxProfile] = None,
    ytd: Optional[YtdSnapshot] = None,
    toggles: Optional[StatutoryToggles] = None,
    tables: Optional[StatutoryTables] = None,
) -> StatutoryResult:
    """Calculate all statutory deductions for one employee pay period.

    Args:
        period: Gross salary, month, bonus/arrears and optional EPF rate overrides
        profile: Tax profile (default: KA resident, no children)
        ytd: Totals from earlier months (default: zero, i.e. first month)
        toggles: Which contributions apply (default: all)
        tables: SOCSO/EIS/PCB tables for the period (default: latest bundled
            tables; pass load_statutory_tables(pay_date) for historical periods)

    Returns:
        StatutoryResult whose totals equal the sum of its components

    Raises:
        InvalidInputError: Negative amounts or month outside 1-12
        InvalidProfileError: Inconsistent tax profile (checked when PCB applies)
    """
    profile = profile or TaxProfile()
    ytd = ytd or YtdSnapshot.zero()
    toggles = toggles or StatutoryToggles()

    validate_period_input(period, ytd)
    if toggles.has_pcb:
        validate_tax_profile(profile)

    tables = tables or load_statutory_tables()
    gross = period.gross_salary
    rates = resolve_epf_rates(period.epf_rates)

    epf = compute_epf(gross, rates) if toggles.has_epf else ContributionPair.zero()
    socso = calc_socso(gross, tables.socso) if toggles.has_socso else ContributionPair.zero()
    eis = calc_eis(gross, tables.eis) if toggles.has_eis else ContributionPair.zero()

    pcb = ZERO
    if toggles.has_pcb:
        pcb = compute_pcb(
            period,
            profile,
            ytd,
            epf_employee_current=epf.employee,
            rules=tables.pcb,
            additional_epf=_additional_epf(period, toggles, rates),
        )

    total_employee = round_cents(epf.employee + socso.employee + eis.employee + pcb)
    total_employer = round_cents(epf.employer + socso.employer + eis.employer)

    logger.debug(
        f"month={period.month} gross={gross}: epf={epf.employee}/{epf.employer} "
        f"socso={socso.employee}/{socso.employer} eis={eis.employee}/{eis.employer} pcb={pcb}"
    )

    return StatutoryResult(
        epf=epf,
        socso=socso,
        eis=eis,
        pcb=pcb,
        total_employee_deduction=total_employee,
        total_employer_contribution=total_employer,
    )


def _additional_epf(period: PeriodInput, toggles: StatutoryToggles, rates: EpfRates) -> Decimal:
    """Kt: employee EPF on the bonus, only when EPF applies."""
    if toggles.has_epf and period.additional_remuneration > 0:
        return compute_epf_on_additional(period.additional_remuneration, rates)
    return ZERO


def calculate_pcb_breakdown(
    period: PeriodInput,
    profile: Optional[TaxProfile] = None,
    ytd: Optional[YtdSnapshot] = None,
    toggles: Optional[StatutoryToggles] = None,
    tables: Optional[StatutoryTables] = None,
) -> PcbBreakdown:
    """PCB intermediate values for the same inputs calculate_all_statutory takes.

    EPF relief inputs follow the toggles: with EPF off, K1 and Kt are zero.
    """
    profile = profile or TaxProfile()
    toggles = toggles or StatutoryToggles()
    tables = tables or load_statutory_tables()
    rates = resolve_epf_rates(period.epf_rates)

    k1 = compute_epf(period.gross_salary, rates).employee if toggles.has_epf else ZERO
    return compute_pcb_breakdown(
        period,
        profile,
        ytd,
        epf_employee_current=k1,
        rules=tables.pcb,
        additional_epf=_additional_epf(period, toggles, rates),
    )


def advance_ytd(
    ytd: Optional[YtdSnapshot],
    period: PeriodInput,
    result: StatutoryResult,
    toggles: Optional[StatutoryToggles] = None,
) -> YtdSnapshot:
    """Fold one period's pay and deductions into the YTD snapshot for the next period.

    Gross includes the period's additional remuneration, so the next
    month's PCB projection sees the bonus in Y and the bonus tax in X.
    EPF includes the employee EPF on that bonus (Kt), so the bonus keeps
    its relief in later months.

    Args:
        ytd: Snapshot before the period (default: zero)
        period: The period just calculated
        result: Its StatutoryResult
        toggles: Toggles the period was calculated with (default: all)
    """
    ytd = ytd or YtdSnapshot.zero()
    toggles = toggles or StatutoryToggles()
    additional_epf = _additional_epf(period, toggles, resolve_epf_rates(period.epf_rates))
    return YtdSnapshot(
        gross=round_cents(ytd.gross + period.gross_salary + period.additional_remuneration),
        epf=round_cents(ytd.epf + result.epf.employee + additional_epf),
        pcb_deducted=round_cents(ytd.pcb_deducted + result.pcb),
        zakat=round_cents(ytd.zakat + period.zakat),
        epf_employer=round_cents(ytd.epf_employer + result.epf.employer),
        socso_employee=round_cents(ytd.socso_employee + result.socso.employee),
        socso_employer=round_cents(ytd.socso_employer + result.socso.employer),
        eis_employee=round_cents(ytd.eis_employee + result.eis.employee),
        eis_employer=round_cents(ytd.eis_employer + result.eis.employer),
    )
