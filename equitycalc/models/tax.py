"""Tax settings and tax result models."""

from datetime import date
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from equitycalc.models.enums import DispositionType, FilingStatus, HoldingPeriod

ALLOCATION_TOLERANCE = Decimal("0.000001")


class TaxSettings(BaseModel):
    """Per-call tax configuration. Never persisted by the engines."""

    model_config = ConfigDict(frozen=True)

    filing_status: FilingStatus = FilingStatus.SINGLE
    unrecognized_filing_status: str | None = None
    residence_state: str = "CA"
    state_allocation: dict[str, Decimal] = Field(default_factory=dict)
    other_income: Decimal = Field(default=Decimal("0"), ge=0)
    tax_year: int | None = None
    include_amt: bool = True
    include_niit: bool = True
    include_medicare: bool = True
    exercise_date: date | None = None
    sale_date: date | None = None
    vesting_date: date | None = None
    prior_amt_credit: Decimal = Field(default=Decimal("0"), ge=0)

    @model_validator(mode="before")
    @classmethod
    def _fallback_filing_status(cls, data: Any) -> Any:
        # Unknown statuses fall back to single; the raw value is kept for the result notes.
        if not isinstance(data, dict):
            return data
        raw = data.get("filing_status")
        if not isinstance(raw, str):
            return data
        known = {status.value for status in FilingStatus}
        if raw.lower() in known:
            return {**data, "filing_status": raw.lower()}
        return {**data, "filing_status": FilingStatus.SINGLE, "unrecognized_filing_status": raw}

    @field_validator("state_allocation")
    @classmethod
    def _check_allocation(cls, allocation: dict[str, Decimal]) -> dict[str, Decimal]:
        if not allocation:
            return allocation
        if any(fraction < 0 for fraction in allocation.values()):
            raise ValueError("state allocation fractions must be non-negative")
        total = sum(allocation.values(), Decimal("0"))
        if abs(total - Decimal("1")) > ALLOCATION_TOLERANCE:
            raise ValueError(f"state allocation fractions must sum to 1, got {total}")
        return allocation

    @model_validator(mode="after")
    def _check_dates(self) -> "TaxSettings":
        if (
            self.exercise_date is not None
            and self.sale_date is not None
            and self.sale_date < self.exercise_date
        ):
            raise ValueError("sale_date must not be before exercise_date")
        return self

    @property
    def year(self) -> int | None:
        """Tax year used for table lookups."""
        if self.tax_year is not None:
            return self.tax_year
        acquired = self.exercise_date or self.vesting_date
        return acquired.year if acquired is not None else None

    @property
    def allocation(self) -> dict[str, Decimal]:
        """State allocation, defaulting to 100% in the residence state."""
        return dict(self.state_allocation) or {self.residence_state: Decimal("1")}


class FederalBreakdown(BaseModel):
    ordinary_income: Decimal = Decimal("0")
    ordinary_tax: Decimal = Decimal("0")
    short_term_gains: Decimal = Decimal("0")
    short_term_tax: Decimal = Decimal("0")
    long_term_gains: Decimal = Decimal("0")
    long_term_tax: Decimal = Decimal("0")
    medicare_tax: Decimal = Decimal("0")
    amt_credit_applied: Decimal = Decimal("0")

    @property
    def federal_tax(self) -> Decimal:
        return (
            self.ordinary_tax
            + self.short_term_tax
            + self.long_term_tax
            + self.medicare_tax
            - self.amt_credit_applied
        )


class AMTResult(BaseModel):
    amt_income: Decimal = Decimal("0")
    total_amt_income: Decimal = Decimal("0")
    exemption: Decimal = Decimal("0")
    taxable_amt_income: Decimal = Decimal("0")
    tentative_minimum_tax: Decimal = Decimal("0")
    regular_tax: Decimal = Decimal("0")
    credit_available: Decimal = Decimal("0")
    credit_used: Decimal = Decimal("0")
    credit_carryforward: Decimal = Decimal("0")
    net_due: Decimal = Decimal("0")


class StateTaxLine(BaseModel):
    state: str
    fraction: Decimal
    rate: Decimal
    allocated_income: Decimal
    tax: Decimal


class StateTaxResult(BaseModel):
    total: Decimal = Decimal("0")
    breakdown: list[StateTaxLine] = Field(default_factory=list)


class MedicareNIIT(BaseModel):
    medicare_tax: Decimal = Decimal("0")
    additional_medicare_tax: Decimal = Decimal("0")
    niit: Decimal = Decimal("0")

    @property
    def total_medicare(self) -> Decimal:
        return self.medicare_tax + self.additional_medicare_tax


class TaxTotals(BaseModel):
    total_income: Decimal = Decimal("0")
    total_tax: Decimal = Decimal("0")
    effective_rate: Decimal = Decimal("0")
    gross_proceeds: Decimal = Decimal("0")
    exercise_cost: Decimal = Decimal("0")
    net_proceeds: Decimal = Decimal("0")


class TaxResult(BaseModel):
    grant_id: str
    tax_year: int
    shares: int
    spread: Decimal = Decimal("0")
    disposition: DispositionType = DispositionType.NOT_APPLICABLE
    holding_period: HoldingPeriod | None = None
    federal: FederalBreakdown = Field(default_factory=FederalBreakdown)
    amt: AMTResult = Field(default_factory=AMTResult)
    state: StateTaxResult = Field(default_factory=StateTaxResult)
    niit: Decimal = Decimal("0")
    totals: TaxTotals = Field(default_factory=TaxTotals)
    table_fallbacks: list[str] = Field(default_factory=list)

    @property
    def used_fallback(self) -> bool:
        return bool(self.table_fallbacks)


class ISOLimitYear(BaseModel):
    """Split of ISO shares first exercisable in one calendar year."""

    year: int
    exercisable_value: Decimal
    iso_shares: int
    nso_shares: int
    limit_exceeded: bool
