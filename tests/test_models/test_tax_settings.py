"""Tests for TaxSettings and tax result models."""

from datetime import date
from decimal import Decimal

import pytest
from pydantic import ValidationError

from equitycalc.models.enums import FilingStatus
from equitycalc.models.tax import FederalBreakdown, MedicareNIIT, TaxResult, TaxSettings


class TestTaxSettings:
    def test_defaults(self):
        settings = TaxSettings()
        assert settings.filing_status == FilingStatus.SINGLE
        assert settings.residence_state == "CA"
        assert settings.include_amt and settings.include_niit and settings.include_medicare

    def test_year_from_tax_year(self):
        settings = TaxSettings(tax_year=2023, exercise_date=date(2024, 5, 1))
        assert settings.year == 2023

    def test_year_from_exercise_date(self):
        assert TaxSettings(exercise_date=date(2024, 5, 1)).year == 2024

    def test_year_from_vesting_date(self):
        assert TaxSettings(vesting_date=date(2025, 2, 1)).year == 2025

    def test_no_year(self):
        assert TaxSettings().year is None

    def test_default_allocation(self):
        assert TaxSettings(residence_state="NY").allocation == {"NY": Decimal("1")}

    def test_explicit_allocation(self):
        allocation = {"CA": Decimal("0.25"), "WA": Decimal("0.75")}
        assert TaxSettings(state_allocation=allocation).allocation == allocation

    def test_allocation_within_tolerance(self):
        settings = TaxSettings(
            state_allocation={"CA": Decimal("0.3333333"), "NY": Decimal("0.6666667")}
        )
        assert len(settings.allocation) == 2

    def test_allocation_over_one_rejected(self):
        with pytest.raises(ValidationError):
            TaxSettings(state_allocation={"CA": Decimal("0.6"), "NY": Decimal("0.6")})

    def test_negative_other_income_rejected(self):
        with pytest.raises(ValidationError):
            TaxSettings(other_income=Decimal("-1"))

    def test_filing_status_from_value(self):
        assert TaxSettings(filing_status="married_joint").filing_status == FilingStatus.MFJ

    def test_filing_status_case_insensitive(self):
        assert TaxSettings(filing_status="Head_Of_Household").filing_status == FilingStatus.HOH
        assert TaxSettings(filing_status="Head_Of_Household").unrecognized_filing_status is None

    def test_unknown_filing_status_falls_back_to_single(self):
        settings = TaxSettings(filing_status="qualifying_widow")
        assert settings.filing_status == FilingStatus.SINGLE
        assert settings.unrecognized_filing_status == "qualifying_widow"

    def test_known_filing_status_not_flagged(self):
        assert TaxSettings(filing_status=FilingStatus.MFS).unrecognized_filing_status is None


class TestResultModels:
    def test_federal_tax_nets_credit(self):
        federal = FederalBreakdown(
            ordinary_tax=Decimal("1000"),
            short_term_tax=Decimal("200"),
            long_term_tax=Decimal("300"),
            medicare_tax=Decimal("50"),
            amt_credit_applied=Decimal("150"),
        )
        assert federal.federal_tax == Decimal("1400")

    def test_total_medicare(self):
        medicare = MedicareNIIT(medicare_tax=Decimal("58"), additional_medicare_tax=Decimal("9"))
        assert medicare.total_medicare == Decimal("67")

    def test_used_fallback(self):
        assert not TaxResult(grant_id="g", tax_year=2024, shares=1).used_fallback
        assert TaxResult(
            grant_id="g", tax_year=2030, shares=1, table_fallbacks=["federal brackets"]
        ).used_fallback
