"""Shared test fixtures for equitycalc."""

from datetime import date
from decimal import Decimal

import pytest

from equitycalc.models.enums import FilingStatus, GrantType, VestingCadence
from equitycalc.models.grant import Grant
from equitycalc.models.tax import TaxSettings


@pytest.fixture
def nso_grant() -> Grant:
    return Grant(
        id="nso-001",
        company_name="Acme Corp",
        grant_type=GrantType.NSO,
        shares=1000,
        strike_price=Decimal("1"),
        current_fmv=Decimal("5"),
        vesting_start_date=date(2020, 1, 1),
        vesting_end_date=date(2024, 1, 1),
        cliff_date=date(2021, 1, 1),
        grant_date=date(2020, 1, 1),
    )


@pytest.fixture
def iso_grant() -> Grant:
    return Grant(
        id="iso-001",
        company_name="Acme Corp",
        grant_type=GrantType.ISO,
        shares=4800,
        strike_price=Decimal("2"),
        current_fmv=Decimal("10"),
        vesting_start_date=date(2022, 1, 1),
        vesting_end_date=date(2026, 1, 1),
        cliff_date=date(2023, 1, 1),
        grant_date=date(2022, 1, 1),
    )


@pytest.fixture
def rsu_grant() -> Grant:
    return Grant(
        id="rsu-001",
        company_name="Acme Corp",
        grant_type=GrantType.RSU,
        shares=400,
        current_fmv=Decimal("50"),
        vesting_start_date=date(2023, 1, 1),
        vesting_end_date=date(2027, 1, 1),
        vesting_schedule=VestingCadence.QUARTERLY,
    )


@pytest.fixture
def double_trigger_rsu() -> Grant:
    return Grant(
        id="rsu-dt-001",
        company_name="Acme Corp",
        grant_type=GrantType.RSU,
        shares=4800,
        current_fmv=Decimal("20"),
        vesting_start_date=date(2022, 1, 1),
        vesting_end_date=date(2026, 1, 1),
        cliff_date=date(2023, 1, 1),
        liquidity_event_only=True,
    )


@pytest.fixture
def nso_settings() -> TaxSettings:
    """Long-term NSO sale with every surcharge switched off except state tax."""
    return TaxSettings(
        filing_status=FilingStatus.SINGLE,
        residence_state="TX",
        tax_year=2024,
        include_amt=False,
        include_niit=False,
        include_medicare=False,
        exercise_date=date(2024, 1, 1),
        sale_date=date(2025, 6, 1),
    )


@pytest.fixture
def ca_settings() -> TaxSettings:
    return TaxSettings(
        filing_status=FilingStatus.SINGLE,
        residence_state="CA",
        tax_year=2024,
        other_income=Decimal("150000"),
        exercise_date=date(2024, 3, 1),
        sale_date=date(2025, 6, 1),
    )
