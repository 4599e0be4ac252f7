"""PCB (Potongan Cukai Bulanan) monthly tax deduction.

Implements the LHDN computerised calculation. Each month the annual tax
liability is re-derived from year-to-date totals plus a projection of the
remaining months, and the tax already withheld is subtracted. Rounding
drift from earlier months is absorbed automatically: by December the
withholding for the year adds up to the annual liability.

The steps run in a fixed order and each feeds the next:

     1. n = 12 - month (months remaining after this one)
     2. total gross = Y + Y1 + Y1 * n
     3. total EPF = min(K + K1 + K1 * n, EPF relief cap)
     4. net income = total gross - total EPF
     5. reliefs D + S + Du + Su + child reliefs
     6. P = max(net income - reliefs, 0)
     7. bracket for P -> M, R, cumulative tax
     8. B = cumulative tax less rebate when P <= RM35,000
     9. T = (P - M) * R + B
    10. bonus/arrears: repeat 2-9 with the additional amount added once;
        the difference in T is withheld in full this month
    11. PCB normal = (T - zakat - PCB already withheld) / (n + 1)
    12. total = PCB normal + PCB additional
    13. below RM10 -> 0, else truncate to sen and round up to 5 sen

Non-residents skip 5-9 and pay a flat rate on net income.

Category KC gets exactly the KA reliefs and rebate (no spouse relief even
though the employee is married). That is the LHDN rule, not an omission.
"""

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from ..errors import InvalidInputError, InvalidProfileError
from ..schemas import PcbBreakdown, PeriodInput, TaxProfile, YtdSnapshot
from .rounding import Number, ZERO, round_up_to_5_sen, to_decimal
from .schemas import PcbRules, TaxBracket
from .tables import load_pcb_rules

logger = logging.getLogger(__name__)

MONTHS_PER_YEAR = 12


def validate_period_input(period: PeriodInput, ytd: Optional[YtdSnapshot] = None) -> None:
    """Check month range and that no amount is negative.

    Raises:
        InvalidInputError: Listing every problem found
    """
    errors = []
    if not 1 <= period.month <= MONTHS_PER_YEAR:
        errors.append(f"month must be 1-12, got {period.month}")
    for field in ("gross_salary", "additional_remuneration", "zakat"):
        value = getattr(period, field)
        if value < 0:
            errors.append(f"{field} must be non-negative, got {value}")
    if ytd is not None:
        for field, value in ytd:
            if value < 0:
                errors.append(f"ytd.{field} must be non-negative, got {value}")
    if errors:
        raise InvalidInputError("; ".join(errors))


def validate_tax_profile(profile: TaxProfile) -> None:
    """Check a tax profile is structurally consistent.

    Raises:
        InvalidProfileError: KB without an explicit disabled_spouse flag,
            negative child counts, or sub-counts larger than the total
    """
    errors = []
    if profile.category == "KB" and profile.disabled_spouse is None:
        errors.append("category KB requires disabled_spouse to be set (true or false)")
    for field in ("number_of_children", "children_in_higher_education", "disabled_children"):
        if getattr(profile, field) < 0:
            errors.append(f"{field} must be non-negative, got {getattr(profile, field)}")
    if profile.children_in_higher_education > profile.number_of_children:
        errors.append(
            f"children_in_higher_education ({profile.children_in_higher_education}) "
            f"exceeds number_of_children ({profile.number_of_children})"
        )
    if profile.disabled_children > profile.number_of_children:
        errors.append(
            f"disabled_children ({profile.disabled_children}) "
            f"exceeds number_of_children ({profile.number_of_children})"
        )
    if errors:
        raise InvalidProfileError("; ".join(errors))


def calc_total_reliefs(profile: TaxProfile, rules: PcbRules) -> Decimal:
    """Total annual reliefs for a resident employee (step 5).

    Children in higher education get the higher-education relief instead
    of the normal child relief. Disabled-child relief is added on top of
    whichever of those the child already gets.
    """
    reliefs = rules.reliefs
    total = reliefs.individual

    if profile.category == "KB":
        total += reliefs.spouse
        if profile.disabled_spouse:
            total += reliefs.disabled_spouse

    if profile.disabled_self:
        total += reliefs.disabled_self

    normal_children = profile.number_of_children - profile.children_in_higher_education
    total += reliefs.child * normal_children
    total += reliefs.child_higher_education * profile.children_in_higher_education
    total += reliefs.disabled_child * profile.disabled_children
    return total


def calc_base_tax(chargeable_income: Decimal, bracket: TaxBracket, category: str, rules: PcbRules) -> Decimal:
    """B: cumulative tax on M, less rebates when P is at or below the limit (step 8)."""
    if chargeable_income <= rules.rebate.chargeable_income_limit:
        rebate = rules.rebate.individual
        if category == "KB":
            rebate += rules.rebate.spouse
        return max(bracket.cumulative_tax - rebate, ZERO)
    return bracket.cumulative_tax


@dataclass(frozen=True)
class _AnnualLiability:
    """Steps 4-9 for one projection of annual income."""
    total_epf: Decimal
    net_income: Decimal
    reliefs: Decimal
    chargeable_income: Decimal
    bracket: Optional[TaxBracket]
    base_tax: Optional[Decimal]
    annual_tax: Decimal


def _annual_liability(
    total_gross: Decimal,
    projected_epf: Decimal,
    profile: TaxProfile,
    rules: PcbRules,
) -> _AnnualLiability:
    total_epf = min(projected_epf, rules.epf_relief_cap)
    net_income = total_gross - total_epf

    if not profile.is_resident:
        annual_tax = max(net_income * rules.non_resident_rate_percent / 100, ZERO)
        return _AnnualLiability(
            total_epf=total_epf,
            net_income=net_income,
            reliefs=ZERO,
            chargeable_income=max(net_income, ZERO),
            bracket=None,
            base_tax=None,
            annual_tax=annual_tax,
        )

    reliefs = calc_total_reliefs(profile, rules)
    chargeable = max(net_income - reliefs, ZERO)
    bracket = rules.bracket_for(chargeable)
    base_tax = calc_base_tax(chargeable, bracket, profile.category, rules)
    annual_tax = max((chargeable - bracket.lower_bound) * bracket.rate_percent / 100 + base_tax, ZERO)

    return _AnnualLiability(
        total_epf=total_epf,
        net_income=net_income,
        reliefs=reliefs,
        chargeable_income=chargeable,
        bracket=bracket,
        base_tax=base_tax,
        annual_tax=annual_tax,
    )


def compute_pcb_breakdown(
    period: PeriodInput,
    profile: TaxProfile,
    ytd: Optional[YtdSnapshot],
    epf_employee_current: Number,
    rules: Optional[PcbRules] = None,
    additional_epf: Number = 0,
) -> PcbBreakdown:
    """Run the PCB calculation and return every intermediate value.

    Args:
        period: Current period (Y1 = gross_salary, bonus = additional_remuneration)
        profile: Employee tax profile
        ytd: Totals from earlier months of the tax year (None = first month)
        epf_employee_current: K1, employee EPF for this month's base salary
        rules: PCB schedule (default: latest bundled schedule)
        additional_epf: Kt, employee EPF on the additional remuneration

    Raises:
        InvalidInputError: Month outside 1-12 or negative amounts
        InvalidProfileError: Inconsistent tax profile
    """
    ytd = ytd or YtdSnapshot.zero()
    validate_period_input(period, ytd)
    validate_tax_profile(profile)

    k1 = to_decimal(epf_employee_current)
    kt = to_decimal(additional_epf)
    if k1 < 0 or kt < 0:
        raise InvalidInputError(f"EPF amounts must be non-negative, got K1={k1}, Kt={kt}")

    rules = rules or load_pcb_rules()
    y1 = period.gross_salary
    additional = period.additional_remuneration

    n = MONTHS_PER_YEAR - period.month
    total_gross = ytd.gross + y1 + y1 * n
    projected_epf = ytd.epf + k1 + k1 * n

    normal = _annual_liability(total_gross, projected_epf, profile, rules)

    annual_tax_with_additional = None
    pcb_additional = ZERO
    if additional > 0:
        with_additional = _annual_liability(total_gross + additional, projected_epf + kt, profile, rules)
        annual_tax_with_additional = with_additional.annual_tax
        pcb_additional = max(with_additional.annual_tax - normal.annual_tax, ZERO)

    pcb_normal = max((normal.annual_tax - ytd.zakat - ytd.pcb_deducted) / (n + 1), ZERO)
    total = pcb_normal + pcb_additional

    if total < rules.minimum_deduction:
        pcb = ZERO
    else:
        pcb = round_up_to_5_sen(total)

    logger.debug(
        f"PCB month={period.month} n={n} gross={total_gross} epf={normal.total_epf} "
        f"P={normal.chargeable_income} T={normal.annual_tax} normal={pcb_normal} "
        f"additional={pcb_additional} -> {pcb}"
    )

    return PcbBreakdown(
        remaining_months=n,
        total_gross=total_gross,
        total_epf=normal.total_epf,
        net_income=normal.net_income,
        reliefs=normal.reliefs,
        chargeable_income=normal.chargeable_income,
        bracket_lower_bound=normal.bracket.lower_bound if normal.bracket else None,
        rate_percent=normal.bracket.rate_percent if normal.bracket else None,
        base_tax=normal.base_tax,
        annual_tax=normal.annual_tax,
        annual_tax_with_additional=annual_tax_with_additional,
        pcb_normal=pcb_normal,
        pcb_additional=pcb_additional,
        total_before_rounding=total,
        pcb=pcb,
    )


def compute_pcb(
    period: PeriodInput,
    profile: TaxProfile,
    ytd: Optional[YtdSnapshot],
    epf_employee_current: Number,
    rules: Optional[PcbRules] = None,
    additional_epf: Number = 0,
) -> Decimal:
    """Monthly PCB amount: 0.00 or a multiple of RM0.05.

    See compute_pcb_breakdown for arguments.
    """
    return compute_pcb_breakdown(
        period, profile, ytd, epf_employee_current, rules=rules, additional_epf=additional_epf
    ).pcb
