"""Pydantic schemas for statutory calculation inputs and outputs.

All schemas use extra='forbid' so a misspelled option is an error rather
than a silently ignored key, and frozen=True so a record cannot change
while a calculation is using it.

Monetary fields are Decimal. Floats are converted through str(), so
passing 3500.0 or "3500.00" gives the same value.
"""

from decimal import Decimal, InvalidOperation
from typing import Annotated, Literal, Optional

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, field_validator, model_validator


def _coerce_money(value):
    """Convert input to Decimal before pydantic validates the field."""
    if value is None or isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        raise ValueError(f"Expected an amount, got {value!r}")
    try:
        return Decimal(str(value))
    except InvalidOperation:
        raise ValueError(f"Not a valid amount: {value!r}")


Money = Annotated[Decimal, BeforeValidator(_coerce_money)]

ZERO = Decimal("0.00")


# =============================================================================
# Inputs
# =============================================================================


class EpfRates(BaseModel):
    """EPF contribution rates, configurable per employer.

    Any rate left out of a config falls back to the statutory default.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    employee_rate: Money = Field(default=Decimal("0.11"), ge=0, le=1, description="Employee share of gross")
    employer_rate_below_threshold: Money = Field(
        default=Decimal("0.13"), ge=0, le=1,
        description="Employer rate when gross is at or below the threshold",
    )
    employer_rate_above_threshold: Money = Field(
        default=Decimal("0.12"), ge=0, le=1,
        description="Employer rate when gross is above the threshold",
    )
    threshold: Money = Field(default=Decimal("5000.00"), ge=0, description="Salary threshold for the employer rate")


class TaxProfile(BaseModel):
    """Employee tax profile used by PCB.

    KA: single. KB: married, spouse not working. KC: married, spouse working.
    KC gets the same reliefs as KA (no spouse relief).
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    category: Literal["KA", "KB", "KC"] = Field(default="KA", description="LHDN tax category")
    number_of_children: int = Field(default=0, description="Qualifying children (all, including higher-ed)")
    children_in_higher_education: int = Field(default=0, description="Children in diploma/degree studies")
    disabled_children: int = Field(default=0, description="Disabled children (relief is additive)")
    disabled_self: bool = Field(default=False, description="Employee is disabled")
    disabled_spouse: Optional[bool] = Field(
        default=False,
        description="Spouse is disabled. Must be a bool for KB; None is rejected.",
    )
    resident_status: Literal["resident", "non_resident"] = Field(default="resident")

    @field_validator("category", mode="before")
    @classmethod
    def normalize_category(cls, v):
        if isinstance(v, str):
            return v.strip().upper()
        return v

    @property
    def is_resident(self) -> bool:
        return self.resident_status == "resident"


class YtdSnapshot(BaseModel):
    """Year-to-date accumulators from periods strictly before the current one.

    PCB reads gross, epf, pcb_deducted and zakat. The employer-side and
    SOCSO/EIS totals are carried so the caller can produce statutory reports
    from the same snapshot.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    gross: Money = Field(default=ZERO, description="Gross remuneration incl. prior bonuses")
    epf: Money = Field(default=ZERO, description="Employee EPF")
    pcb_deducted: Money = Field(default=ZERO, description="PCB already withheld")
    zakat: Money = Field(default=ZERO, description="Zakat already paid")
    epf_employer: Money = Field(default=ZERO)
    socso_employee: Money = Field(default=ZERO)
    socso_employer: Money = Field(default=ZERO)
    eis_employee: Money = Field(default=ZERO)
    eis_employer: Money = Field(default=ZERO)

    @classmethod
    def zero(cls) -> "YtdSnapshot":
        """Snapshot for the first period of a tax year."""
        return cls()


class PeriodInput(BaseModel):
    """Inputs for one monthly pay period."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    gross_salary: Money = Field(..., description="Base monthly gross (Y1), excluding bonus/arrears")
    month: int = Field(..., description="Month of the tax year, 1-12")
    additional_remuneration: Money = Field(default=ZERO, description="Bonus, arrears, commission paid this period")
    zakat: Money = Field(default=ZERO, description="Zakat paid this period (folded into next YTD)")
    epf_rates: Optional[EpfRates] = Field(default=None, description="Employer EPF rate overrides")


class StatutoryToggles(BaseModel):
    """Which contributions apply to the employee.

    A disabled component still appears in the result, with zero amounts.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    has_epf: bool = True
    has_socso: bool = True
    has_eis: bool = True
    has_pcb: bool = True


# =============================================================================
# Outputs
# =============================================================================


class ContributionPair(BaseModel):
    """Employee and employer share of one contribution."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    employee: Money = Field(..., ge=0)
    employer: Money = Field(..., ge=0)

    @classmethod
    def zero(cls) -> "ContributionPair":
        return cls(employee=ZERO, employer=ZERO)

    @property
    def total(self) -> Decimal:
        return self.employee + self.employer


class StatutoryResult(BaseModel):
    """Consolidated statutory deductions for one pay period.

    Field names and 2-decimal precision are consumed by payslip and
    statutory report generation, so they must stay stable.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    epf: ContributionPair
    socso: ContributionPair
    eis: ContributionPair
    pcb: Money = Field(..., ge=0)
    total_employee_deduction: Money = Field(..., ge=0)
    total_employer_contribution: Money = Field(..., ge=0)

    @model_validator(mode="after")
    def check_totals(self) -> "StatutoryResult":
        """Totals must equal the sum of this result's own components."""
        employee = self.epf.employee + self.socso.employee + self.eis.employee + self.pcb
        employer = self.epf.employer + self.socso.employer + self.eis.employer
        errors = []
        if self.total_employee_deduction != employee:
            errors.append(
                f"total_employee_deduction ({self.total_employee_deduction}) != "
                f"epf + socso + eis + pcb ({employee})"
            )
        if self.total_employer_contribution != employer:
            errors.append(
                f"total_employer_contribution ({self.total_employer_contribution}) != "
                f"epf + socso + eis ({employer})"
            )
        if errors:
            raise ValueError("; ".join(errors))
        return self


class PcbBreakdown(BaseModel):
    """Intermediate values of one PCB calculation, for audit display.

    Bracket fields are None for non-residents (flat rate, no brackets).
    Amounts are unrounded except pcb.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    remaining_months: int = Field(..., description="n: months after the current one")
    total_gross: Decimal
    total_epf: Decimal = Field(..., description="Projected EPF after the relief cap")
    net_income: Decimal
    reliefs: Decimal
    chargeable_income: Decimal = Field(..., description="P")
    bracket_lower_bound: Optional[Decimal] = Field(default=None, description="M")
    rate_percent: Optional[Decimal] = Field(default=None, description="R")
    base_tax: Optional[Decimal] = Field(default=None, description="B, after rebate")
    annual_tax: Decimal = Field(..., description="T on normal remuneration")
    annual_tax_with_additional: Optional[Decimal] = None
    pcb_normal: Decimal
    pcb_additional: Decimal
    total_before_rounding: Decimal
    pcb: Decimal
