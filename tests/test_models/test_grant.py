"""Tests for grant and scenario models."""

from datetime import date
from decimal import Decimal

import pytest
from pydantic import ValidationError

from equitycalc.models.enums import ExitType, GrantType, VestingCadence
from equitycalc.models.grant import Grant
from equitycalc.models.scenario import ScenarioParams


def _grant(**overrides) -> Grant:
    fields = dict(
        id="g-1",
        company_name="Acme Corp",
        grant_type=GrantType.ISO,
        shares=1000,
        strike_price=Decimal("1"),
        current_fmv=Decimal("5"),
        vesting_start_date=date(2022, 1, 1),
        vesting_end_date=date(2026, 1, 1),
    )
    fields.update(overrides)
    return Grant(**fields)


class TestGrant:
    def test_defaults(self):
        grant = _grant()
        assert grant.vesting_schedule == VestingCadence.MONTHLY
        assert grant.liquidity_event_only is False
        assert grant.cliff_date is None

    def test_effective_grant_date_defaults_to_vesting_start(self):
        assert _grant().effective_grant_date == date(2022, 1, 1)
        assert _grant(grant_date=date(2021, 12, 1)).effective_grant_date == date(2021, 12, 1)

    def test_is_option(self):
        assert _grant().is_option
        assert _grant(grant_type=GrantType.NSO).is_option
        assert not _grant(grant_type=GrantType.RSU).is_option

    def test_frozen(self):
        grant = _grant()
        with pytest.raises(ValidationError):
            grant.shares = 5

    def test_negative_shares_rejected(self):
        with pytest.raises(ValidationError):
            _grant(shares=-1)

    def test_negative_strike_rejected(self):
        with pytest.raises(ValidationError):
            _grant(strike_price=Decimal("-0.01"))

    def test_end_before_start_rejected(self):
        with pytest.raises(ValidationError):
            _grant(vesting_end_date=date(2021, 1, 1))

    def test_cliff_outside_window_rejected(self):
        with pytest.raises(ValidationError):
            _grant(cliff_date=date(2027, 1, 1))

    def test_from_json(self):
        grant = Grant.model_validate(
            {
                "id": "rsu-9",
                "company_name": "Acme Corp",
                "grant_type": "RSU",
                "shares": 100,
                "current_fmv": "12.50",
                "vesting_start_date": "2024-01-01",
                "vesting_end_date": "2028-01-01",
                "vesting_schedule": "quarterly",
            }
        )
        assert grant.grant_type == GrantType.RSU
        assert grant.current_fmv == Decimal("12.50")
        assert grant.strike_price == Decimal("0")
        assert grant.vesting_schedule == VestingCadence.QUARTERLY


class TestScenarioParams:
    def test_defaults(self):
        params = ScenarioParams(exit_date=date(2025, 1, 1))
        assert params.lockup_days == 180
        assert params.secondary_discount == Decimal("20")
        assert params.secondary_sale_percentage == Decimal("25")

    def test_multiplier_for(self):
        params = ScenarioParams(exit_date=date(2025, 1, 1))
        assert params.multiplier_for(ExitType.IPO) == Decimal("10")
        assert params.multiplier_for(ExitType.ACQUISITION) == Decimal("8")
        assert params.multiplier_for(ExitType.SECONDARY) == Decimal("5")

    def test_discount_bounds(self):
        with pytest.raises(ValidationError):
            ScenarioParams(exit_date=date(2025, 1, 1), secondary_discount=Decimal("120"))

    def test_sale_percentage_must_be_positive(self):
        with pytest.raises(ValidationError):
            ScenarioParams(exit_date=date(2025, 1, 1), secondary_sale_percentage=Decimal("0"))
