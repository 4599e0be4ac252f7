"""EPF (KWSP) contribution calculation.

Employee: 11% of monthly wages. Employer: 13% when wages are at or below
RM5,000, 12% above. All four values are configurable per employer through
EpfRates; anything left unset uses the statutory default.
"""

from decimal import Decimal
from typing import Optional, Union

from ..schemas import ContributionPair, EpfRates
from .rounding import Number, ZERO, round_cents, to_decimal

DEFAULT_EPF_RATES = EpfRates()

RatesLike = Union[EpfRates, dict, None]


def resolve_epf_rates(rates: RatesLike = None) -> EpfRates:
    """Fill in defaults for any rate not supplied.

    Accepts an EpfRates, a partial dict of rate overrides, or None.
    """
    if rates is None:
        return DEFAULT_EPF_RATES
    if isinstance(rates, EpfRates):
        return rates
    return EpfRates(**{k: v for k, v in rates.items() if v is not None})


def compute_epf(gross_salary: Number, rates: RatesLike = None) -> ContributionPair:
    """Calculate EPF employee and employer contributions for one month.

    The threshold comparison is inclusive: exactly RM5,000.00 uses the
    lower-salary (13%) employer rate.

    Args:
        gross_salary: Monthly gross wages. Zero or negative yields zero
            contributions; validating the amount is the caller's job.
        rates: Rate overrides (EpfRates or dict); defaults when absent

    Returns:
        ContributionPair rounded half-up to the sen
    """
    gross = to_decimal(gross_salary)
    if gross <= 0:
        return ContributionPair.zero()

    rates = resolve_epf_rates(rates)
    if gross <= rates.threshold:
        employer_rate = rates.employer_rate_below_threshold
    else:
        employer_rate = rates.employer_rate_above_threshold

    return ContributionPair(
        employee=round_cents(gross * rates.employee_rate),
        employer=round_cents(gross * employer_rate),
    )


def compute_epf_on_additional(amount: Number, rates: RatesLike = None) -> Decimal:
    """Employee EPF on additional remuneration (bonus, arrears).

    Used by PCB to project EPF relief when a bonus is paid, and carried
    into the YTD EPF for later months.
    """
    amount = to_decimal(amount)
    if amount <= 0:
        return ZERO
    rates = resolve_epf_rates(rates)
    return round_cents(amount * rates.employee_rate)
