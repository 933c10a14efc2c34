"""Tests for ISO AMT computation, AMT credit and the $100k ISO limit."""

from datetime import date
from decimal import Decimal

import pytest

from equitycalc.engines.iso_amt import ISOAMTEngine
from equitycalc.exceptions import DataValidationError
from equitycalc.models.enums import FilingStatus, GrantType, VestingCadence
from equitycalc.models.grant import Grant


@pytest.fixture
def engine():
    return ISOAMTEngine()


class TestAMTPreference:
    def test_spread(self, engine):
        assert engine.compute_amt_preference(Decimal("10"), Decimal("2"), 1000) == Decimal("8000")

    def test_underwater_exercise(self, engine):
        assert engine.compute_amt_preference(Decimal("1"), Decimal("2"), 1000) == Decimal("0")


class TestComputeAMT:
    def test_amt_due(self, engine):
        result, notes = engine.compute_amt(
            Decimal("200000"), Decimal("100000"), FilingStatus.SINGLE, 2024
        )
        assert notes == []
        assert result.exemption == Decimal("85700")
        assert result.taxable_amt_income == Decimal("214300")
        assert result.tentative_minimum_tax == Decimal("55718.00")
        assert result.regular_tax == Decimal("17053.00")
        assert result.net_due == Decimal("38665.00")
        assert result.credit_carryforward == Decimal("38665.00")

    def test_exemption_fully_phased_out(self, engine):
        result, _ = engine.compute_amt(
            Decimal("1000000"), Decimal("0"), FilingStatus.SINGLE, 2024
        )
        assert result.exemption == Decimal("0")
        assert result.tentative_minimum_tax == Decimal("275348.00")
        assert result.net_due == Decimal("275348.00")

    def test_partial_phaseout(self, engine):
        result, _ = engine.compute_amt(
            Decimal("109350"), Decimal("600000"), FilingStatus.SINGLE, 2024
        )
        # (709,350 - 609,350) x 25% = 25,000 reduction
        assert result.exemption == Decimal("60700.00")

    def test_small_spread_no_amt(self, engine):
        result, _ = engine.compute_amt(
            Decimal("8000"), Decimal("100000"), FilingStatus.SINGLE, 2024
        )
        assert result.net_due == Decimal("0")

    def test_prior_credit_used_when_no_amt(self, engine):
        result, _ = engine.compute_amt(
            Decimal("0"), Decimal("100000"), FilingStatus.SINGLE, 2024,
            prior_credit=Decimal("5000"),
        )
        assert result.credit_available == Decimal("5000")
        assert result.credit_used == Decimal("5000")
        assert result.credit_carryforward == Decimal("0")

    def test_fallback_year_notes(self, engine):
        _, notes = engine.compute_amt(
            Decimal("50000"), Decimal("100000"), FilingStatus.MFJ, 2032
        )
        assert notes
        assert all("2032" in note for note in notes)

    def test_negative_prior_credit(self, engine):
        with pytest.raises(DataValidationError):
            engine.compute_amt(
                Decimal("0"), Decimal("0"), FilingStatus.SINGLE, 2024,
                prior_credit=Decimal("-1"),
            )


class TestAMTCredit:
    def test_no_prior_credit(self, engine):
        assert engine.compute_amt_credit(Decimal("0"), Decimal("20000"), Decimal("10000")) == (
            Decimal("0"),
            Decimal("0"),
        )

    def test_limited_by_regular_minus_tmt(self, engine):
        used, remaining = engine.compute_amt_credit(
            Decimal("10000"), Decimal("20000"), Decimal("15000")
        )
        assert used == Decimal("5000")
        assert remaining == Decimal("5000")

    def test_fully_used(self, engine):
        used, remaining = engine.compute_amt_credit(
            Decimal("10000"), Decimal("50000"), Decimal("10000")
        )
        assert used == Decimal("10000")
        assert remaining == Decimal("0")

    def test_unusable_in_amt_year(self, engine):
        used, remaining = engine.compute_amt_credit(
            Decimal("10000"), Decimal("20000"), Decimal("30000")
        )
        assert used == Decimal("0")
        assert remaining == Decimal("10000")


def _iso(grant_id: str, shares: int, strike: str, grant_date: date, **overrides) -> Grant:
    fields = dict(
        id=grant_id,
        company_name="Acme Corp",
        grant_type=GrantType.ISO,
        shares=shares,
        strike_price=Decimal(strike),
        current_fmv=Decimal(strike),
        vesting_start_date=grant_date,
        vesting_end_date=date(grant_date.year + 1, grant_date.month, grant_date.day),
        vesting_schedule=VestingCadence.YEARLY,
        grant_date=grant_date,
    )
    fields.update(overrides)
    return Grant(**fields)


class TestISOLimit:
    def test_under_limit(self, engine):
        grant = _iso("a", 1000, "50", date(2023, 1, 1))
        years = engine.iso_limit([grant])
        assert len(years) == 1
        assert years[0].year == 2024
        assert years[0].iso_shares == 1000
        assert years[0].nso_shares == 0
        assert not years[0].limit_exceeded

    def test_over_limit_splits_shares(self, engine):
        grant = _iso("a", 3000, "50", date(2023, 1, 1))
        (year,) = engine.iso_limit([grant])
        assert year.exercisable_value == Decimal("150000")
        assert year.iso_shares == 2000
        assert year.nso_shares == 1000
        assert year.limit_exceeded

    def test_earlier_grant_uses_limit_first(self, engine):
        early = _iso("early", 1500, "50", date(2023, 1, 1))
        late = _iso("late", 1000, "50", date(2023, 6, 1), vesting_start_date=date(2023, 1, 1),
                    vesting_end_date=date(2024, 1, 1))
        (year,) = engine.iso_limit([late, early])
        # early takes 75,000; late fits 500 more shares
        assert year.iso_shares == 2000
        assert year.nso_shares == 500

    def test_fmv_at_grant_override(self, engine):
        grant = _iso("a", 1000, "50", date(2023, 1, 1))
        (year,) = engine.iso_limit([grant], fmv_at_grant={"a": Decimal("200")})
        assert year.iso_shares == 500
        assert year.nso_shares == 500

    def test_non_iso_grants_ignored(self, engine, nso_grant, rsu_grant):
        assert engine.iso_limit([nso_grant, rsu_grant]) == []
