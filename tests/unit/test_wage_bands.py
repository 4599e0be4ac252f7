"""Tests for SOCSO and EIS wage-band lookups."""

from datetime import date
from decimal import Decimal

import pytest

from payroll_my.sdk.errors import ConfigurationError, InvalidInputError
from payroll_my.sdk.taxes.schemas import WageBandTable, WageBandTier
from payroll_my.sdk.taxes.wage_bands import (
    calc_eis,
    calc_socso,
    eis_eligible,
    lookup_wage_band,
    socso_eligible,
)


class TestSocso:

    def test_mid_band(self, tables):
        result = calc_socso(3500, tables.socso)
        assert result.employee == Decimal("17.25")
        assert result.employer == Decimal("60.35")

    def test_band_upper_edge_is_inclusive(self, tables):
        # 3400.01 - 3500.00 is one band
        assert calc_socso("3400.01", tables.socso) == calc_socso("3500.00", tables.socso)
        assert calc_socso("3500.01", tables.socso).employee > Decimal("17.25")

    def test_ceiling_amounts(self, tables):
        result = calc_socso(6000, tables.socso)
        assert result.employee == Decimal("29.75")
        assert result.employer == Decimal("104.15")

    def test_above_ceiling_is_capped(self, tables):
        assert calc_socso("6000.01", tables.socso) == calc_socso("6000.00", tables.socso)
        assert calc_socso(8000, tables.socso) == calc_socso(6000, tables.socso)
        assert calc_socso(1_000_000, tables.socso).employee == tables.socso.cap.employee

    def test_zero_wage_gives_zero(self, tables):
        result = calc_socso(0, tables.socso)
        assert result.employee == 0
        assert result.employer == 0

    def test_negative_wage_rejected(self, tables):
        with pytest.raises(InvalidInputError):
            calc_socso("-1", tables.socso)

    def test_legacy_ceiling_5000(self, legacy_tables):
        result = calc_socso(8000, legacy_tables.socso)
        assert result.employee == Decimal("24.75")
        assert result.employer == Decimal("86.65")


class TestEis:

    def test_mid_band(self, tables):
        result = calc_eis(3500, tables.eis)
        assert result.employee == Decimal("6.90")
        assert result.employer == Decimal("6.90")

    def test_ceiling(self, tables):
        assert calc_eis(6000, tables.eis).employee == Decimal("11.90")
        assert calc_eis(8000, tables.eis).employee == Decimal("11.90")

    def test_legacy_ceiling(self, legacy_tables):
        assert calc_eis(8000, legacy_tables.eis).employee == Decimal("9.90")


class TestLookup:

    def test_rounds_wage_to_sen_first(self, tables):
        # 3500.004 rounds to 3500.00, still the 3400.01 - 3500.00 band
        assert lookup_wage_band("3500.004", tables.socso).employee == Decimal("17.25")

    def test_zero_maps_to_first_band(self, tables):
        assert lookup_wage_band(0, tables.socso).employee == tables.socso.tiers[0].employee

    def test_monotonic_in_wage(self, tables):
        for table in (tables.socso, tables.eis):
            previous = Decimal("0")
            for cents in range(0, 700_000, 1_337):
                amount = lookup_wage_band(Decimal(cents) / 100, table).employee
                assert amount >= previous
                previous = amount

    def test_negative_rejected(self, tables):
        with pytest.raises(InvalidInputError):
            lookup_wage_band("-0.01", tables.eis)

    def test_uncovered_wage_is_configuration_error(self):
        # Skips load-time validation to get a table with no open top tier
        table = WageBandTable.model_construct(
            scheme="socso",
            effective_from=date(2030, 1, 1),
            wage_ceiling=Decimal("100"),
            tiers=(WageBandTier(lower_bound=0, upper_bound=100, employee=1, employer=2),),
        )
        with pytest.raises(ConfigurationError, match="no tier for 150.00"):
            lookup_wage_band(150, table)


class TestTableValidation:

    def _table(self, bands, ceiling=100):
        return WageBandTable.from_published(
            scheme="socso",
            effective_from="2030-01-01",
            wage_ceiling=ceiling,
            bands=bands,
        )

    def test_valid_table(self):
        table = self._table([
            {"min": 0, "max": 50, "employee": 1, "employer": 2},
            {"min": 50.01, "employee": 3, "employer": 4},
        ])
        assert table.cap.employee == Decimal("3")
        assert lookup_wage_band(50, table).employee == Decimal("1")
        assert lookup_wage_band("50.01", table).employee == Decimal("3")

    def test_gap_rejected(self):
        with pytest.raises(ValueError, match="gap"):
            self._table([
                {"min": 0, "max": 50, "employee": 1, "employer": 2},
                {"min": 60, "employee": 3, "employer": 4},
            ])

    def test_overlap_rejected(self):
        with pytest.raises(ValueError, match="overlaps"):
            self._table([
                {"min": 0, "max": 50, "employee": 1, "employer": 2},
                {"min": 40, "employee": 3, "employer": 4},
            ])

    def test_first_tier_must_start_at_zero(self):
        with pytest.raises(ValueError, match="not 0"):
            self._table([{"min": 10, "employee": 1, "employer": 2}])

    def test_last_tier_must_be_open(self):
        with pytest.raises(ValueError, match="open-ended"):
            self._table([{"min": 0, "max": 50, "employee": 1, "employer": 2}])

    def test_empty_table_rejected(self):
        with pytest.raises(ValueError):
            self._table([])


class TestEligibility:

    def test_socso_below_cutoff(self):
        assert socso_eligible(59)
        assert not socso_eligible(60)

    def test_eis_age_range(self):
        assert not eis_eligible(17)
        assert eis_eligible(18)
        assert eis_eligible(59)
        assert not eis_eligible(60)
