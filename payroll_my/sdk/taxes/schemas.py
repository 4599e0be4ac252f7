"""Pydantic schemas for statutory reference tables.

These validate the rules/<kind>/<YYYY-MM-DD>.yaml files. A table that fails
validation is rejected when it is loaded, so a calculation never runs
against a table with gaps, overlaps or an inconsistent tax schedule.
"""

from datetime import date
from decimal import Decimal
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from ..schemas import Money

SEN = Decimal("0.01")


# =============================================================================
# SOCSO / EIS wage bands
# =============================================================================


class PublishedBand(BaseModel):
    """One row as printed in the PERKESO schedule.

    A row reads "wages exceeding X but not exceeding Y": min is X + 0.01
    and max is Y. The last row has no max.
    """
    model_config = ConfigDict(extra="forbid")

    min: Money = Field(..., ge=0)
    max: Optional[Money] = Field(default=None, ge=0)
    employee: Money = Field(..., ge=0)
    employer: Money = Field(..., ge=0)


class WageBandTier(BaseModel):
    """Wage range [lower_bound, upper_bound) with fixed contribution amounts."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    lower_bound: Money = Field(..., ge=0, description="Inclusive")
    upper_bound: Optional[Money] = Field(default=None, description="Exclusive; None for the capped top tier")
    employee: Money = Field(..., ge=0)
    employer: Money = Field(..., ge=0)

    def contains(self, wage: Decimal) -> bool:
        if wage < self.lower_bound:
            return False
        return self.upper_bound is None or wage < self.upper_bound


class WageBandTable(BaseModel):
    """A versioned SOCSO or EIS contribution schedule."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    scheme: Literal["socso", "eis"]
    effective_from: date
    wage_ceiling: Money = Field(..., gt=0)
    description: Optional[str] = None
    tiers: tuple[WageBandTier, ...]

    @model_validator(mode="after")
    def check_coverage(self) -> "WageBandTable":
        """Tiers must cover [0, inf) with no gaps or overlaps."""
        if not self.tiers:
            raise ValueError(f"{self.scheme} table {self.effective_from} has no tiers")

        errors = []
        if self.tiers[0].lower_bound != 0:
            errors.append(f"first tier starts at {self.tiers[0].lower_bound}, not 0")

        for i, (tier, nxt) in enumerate(zip(self.tiers, self.tiers[1:]), start=1):
            if tier.upper_bound is None:
                errors.append(f"tier {i} is open-ended but is not the last tier")
            elif tier.upper_bound <= tier.lower_bound:
                errors.append(f"tier {i} is empty ({tier.lower_bound} - {tier.upper_bound})")
            elif tier.upper_bound < nxt.lower_bound:
                errors.append(f"gap between tier {i} and {i + 1} ({tier.upper_bound} - {nxt.lower_bound})")
            elif tier.upper_bound > nxt.lower_bound:
                errors.append(f"tier {i} overlaps tier {i + 1} ({nxt.lower_bound} < {tier.upper_bound})")

        cap = self.tiers[-1]
        if cap.upper_bound is not None:
            errors.append(f"last tier must be open-ended, ends at {cap.upper_bound}")
        if cap.lower_bound > self.wage_ceiling + SEN:
            errors.append(f"last tier starts at {cap.lower_bound}, above the wage ceiling {self.wage_ceiling}")

        if errors:
            raise ValueError(f"{self.scheme} table {self.effective_from}: " + "; ".join(errors))
        return self

    @property
    def cap(self) -> WageBandTier:
        """The tier applied at and above the wage ceiling."""
        return self.tiers[-1]

    @classmethod
    def from_published(
        cls,
        scheme: str,
        effective_from: date,
        wage_ceiling,
        bands: list[dict],
        description: Optional[str] = None,
    ) -> "WageBandTable":
        """Build a table from published rows.

        A row min..max becomes the tier [min, max + 0.01); wages are whole
        sen so this matches "exceeding X but not exceeding Y".
        """
        tiers = []
        for row in bands:
            band = PublishedBand(**row)
            tiers.append(WageBandTier(
                lower_bound=band.min,
                upper_bound=band.max + SEN if band.max is not None else None,
                employee=band.employee,
                employer=band.employer,
            ))
        return cls(
            scheme=scheme,
            effective_from=effective_from,
            wage_ceiling=wage_ceiling,
            description=description,
            tiers=tuple(tiers),
        )


# =============================================================================
# PCB tax schedule
# =============================================================================


class TaxBracket(BaseModel):
    """Progressive bracket starting at lower_bound (M)."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    lower_bound: Money = Field(..., ge=0, description="M: chargeable income where the bracket starts")
    rate_percent: Money = Field(..., ge=0, le=100, description="R: marginal rate in percent")
    cumulative_tax: Money = Field(..., ge=0, description="Tax on income up to lower_bound")


class PcbReliefs(BaseModel):
    """Annual relief amounts deducted from net income."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    individual: Money = Field(..., ge=0, description="D")
    spouse: Money = Field(..., ge=0, description="S, KB only")
    disabled_self: Money = Field(..., ge=0, description="Du")
    disabled_spouse: Money = Field(..., ge=0, description="Su, KB only")
    child: Money = Field(..., ge=0, description="Per child under 18 / in school")
    child_higher_education: Money = Field(..., ge=0, description="Per child in diploma/degree studies")
    disabled_child: Money = Field(..., ge=0, description="Per disabled child, on top of the child relief")


class PcbRebate(BaseModel):
    """Rebates applied to B when chargeable income is at or below the limit."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    individual: Money = Field(..., ge=0)
    spouse: Money = Field(..., ge=0, description="Added for KB")
    chargeable_income_limit: Money = Field(..., ge=0)


class PcbRules(BaseModel):
    """Complete PCB schedule for a year of assessment."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    effective_from: date
    description: Optional[str] = None
    brackets: tuple[TaxBracket, ...]
    reliefs: PcbReliefs
    rebate: PcbRebate
    epf_relief_cap: Money = Field(..., ge=0, description="Maximum annual EPF relief")
    non_resident_rate_percent: Money = Field(..., ge=0, le=100)
    minimum_deduction: Money = Field(..., ge=0, description="PCB below this is not withheld")

    @model_validator(mode="after")
    def check_brackets(self) -> "PcbRules":
        """Brackets start at 0, increase strictly and carry consistent cumulative tax."""
        if not self.brackets:
            raise ValueError(f"PCB rules {self.effective_from} have no brackets")

        errors = []
        first = self.brackets[0]
        if first.lower_bound != 0:
            errors.append(f"first bracket starts at {first.lower_bound}, not 0")
        if first.cumulative_tax != 0:
            errors.append(f"first bracket cumulative tax is {first.cumulative_tax}, not 0")

        for i, (prev, cur) in enumerate(zip(self.brackets, self.brackets[1:]), start=2):
            if cur.lower_bound <= prev.lower_bound:
                errors.append(f"bracket {i} lower bound {cur.lower_bound} is not above {prev.lower_bound}")
                continue
            expected = prev.cumulative_tax + (cur.lower_bound - prev.lower_bound) * prev.rate_percent / 100
            if cur.cumulative_tax != expected:
                errors.append(
                    f"bracket {i} cumulative tax {cur.cumulative_tax} != {expected} "
                    f"implied by bracket {i - 1}"
                )

        if errors:
            raise ValueError(f"PCB rules {self.effective_from}: " + "; ".join(errors))
        return self

    def bracket_for(self, chargeable_income: Decimal) -> TaxBracket:
        """Bracket with the largest lower bound below chargeable_income.

        A bracket's range is (lower bound, next lower bound], so income
        exactly on a boundary stays in the lower bracket. Zero income
        falls in the first bracket.
        """
        selected = self.brackets[0]
        for bracket in self.brackets:
            if bracket.lower_bound >= chargeable_income:
                break
            selected = bracket
        return selected


class StatutoryTables(BaseModel):
    """The SOCSO, EIS and PCB tables in force for one pay period."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    socso: WageBandTable
    eis: WageBandTable
    pcb: PcbRules

    @model_validator(mode="after")
    def check_schemes(self) -> "StatutoryTables":
        if self.socso.scheme != "socso":
            raise ValueError(f"socso slot holds a {self.socso.scheme} table")
        if self.eis.scheme != "eis":
            raise ValueError(f"eis slot holds a {self.eis.scheme} table")
        return self
