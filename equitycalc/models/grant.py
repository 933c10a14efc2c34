"""Equity grant and vesting status models."""

from datetime import date
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, model_validator

from equitycalc.models.enums import GrantType, VestingCadence


class Grant(BaseModel):
    """One equity award. Frozen: engines never mutate a grant."""

    model_config = ConfigDict(frozen=True)

    id: str
    company_name: str
    grant_type: GrantType
    shares: int = Field(ge=0)
    strike_price: Decimal = Field(default=Decimal("0"), ge=0)
    current_fmv: Decimal = Field(ge=0)
    vesting_start_date: date
    vesting_end_date: date
    cliff_date: date | None = None
    vesting_schedule: VestingCadence = VestingCadence.MONTHLY
    liquidity_event_only: bool = False
    grant_date: date | None = None
    expiration_date: date | None = None

    @model_validator(mode="after")
    def _check_vesting_window(self) -> "Grant":
        if self.vesting_end_date < self.vesting_start_date:
            raise ValueError("vesting_end_date must not be before vesting_start_date")
        if self.cliff_date is not None and not (
            self.vesting_start_date <= self.cliff_date <= self.vesting_end_date
        ):
            raise ValueError("cliff_date must lie within the vesting window")
        return self

    @property
    def effective_grant_date(self) -> date:
        return self.grant_date or self.vesting_start_date

    @property
    def is_option(self) -> bool:
        return self.grant_type in (GrantType.ISO, GrantType.NSO)


class VestingStatus(BaseModel):
    vested: int = Field(ge=0)
    unvested: int = Field(ge=0)
    vested_percentage: Decimal
    next_vesting_date: date | None = None
    next_vesting_shares: int = 0


class VestingEvent(BaseModel):
    vest_date: date
    shares: int
    cumulative_shares: int
    cumulative_percentage: Decimal


class CombinedVestingMonth(BaseModel):
    month: date
    shares: int
    cumulative_shares: int
    by_grant: dict[str, int] = Field(default_factory=dict)


class DoubleTriggerRelease(BaseModel):
    grant_id: str
    liquidity_date: date
    share_price: Decimal
    released_shares: int
    release_value: Decimal
    taxable_income: Decimal
