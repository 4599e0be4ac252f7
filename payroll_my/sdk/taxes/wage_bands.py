"""SOCSO and EIS contributions from wage-band tables.

Both schemes publish fixed amounts per wage band rather than a percentage,
with a wage ceiling above which the top band's amounts apply. The same
lookup serves both; only the table differs.

Eligibility (SOCSO Category 1 under the policy age cutoff, EIS for ages
18 to 60) is decided by the caller and passed in as StatutoryToggles.
The helpers below exist so every caller applies the same age rules.
"""

import logging

from ..errors import ConfigurationError, InvalidInputError
from ..schemas import ContributionPair
from .rounding import Number, round_cents, to_decimal
from .schemas import WageBandTable

logger = logging.getLogger(__name__)

SOCSO_AGE_CUTOFF = 60
EIS_MIN_AGE = 18
EIS_MAX_AGE = 60


def lookup_wage_band(wage: Number, table: WageBandTable) -> ContributionPair:
    """Find the contribution for a wage in a band table.

    The wage is rounded to the sen first, then matched against
    lower_bound <= wage < upper_bound. Wages at or above the top tier's
    lower bound (which includes anything over the ceiling) get the capped
    amounts.

    Raises:
        InvalidInputError: If wage is negative
        ConfigurationError: If the table has no tier for the wage
    """
    amount = round_cents(wage)
    if amount < 0:
        raise InvalidInputError(f"Wage must be non-negative, got {amount}")

    for tier in table.tiers:
        if tier.contains(amount):
            return ContributionPair(
                employee=round_cents(tier.employee),
                employer=round_cents(tier.employer),
            )

    # Tables are validated to cover [0, inf) when loaded.
    raise ConfigurationError(f"{table.scheme} table {table.effective_from} has no tier for {amount}")


def _calc_scheme(wage: Number, table: WageBandTable) -> ContributionPair:
    amount = to_decimal(wage)
    if amount < 0:
        raise InvalidInputError(f"Wage must be non-negative, got {amount}")
    if amount == 0:
        # No wages paid, nothing to contribute.
        return ContributionPair.zero()

    result = lookup_wage_band(amount, table)
    if amount > table.wage_ceiling:
        logger.debug(f"{table.scheme}: wage {amount} above ceiling {table.wage_ceiling}, capped")
    return result


def calc_socso(wage: Number, table: WageBandTable) -> ContributionPair:
    """SOCSO Category 1 contribution for a month's wages."""
    return _calc_scheme(wage, table)


def calc_eis(wage: Number, table: WageBandTable) -> ContributionPair:
    """EIS contribution for a month's wages."""
    return _calc_scheme(wage, table)


def socso_eligible(age: int, age_cutoff: int = SOCSO_AGE_CUTOFF) -> bool:
    """Category 1 (injury + invalidity) applies below the policy age cutoff."""
    return age < age_cutoff


def eis_eligible(age: int) -> bool:
    """EIS covers employees from 18 up to (not including) 60."""
    return EIS_MIN_AGE <= age < EIS_MAX_AGE
