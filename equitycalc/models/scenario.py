"""Exit scenario parameters and results."""

from datetime import date
from decimal import Decimal

from pydantic import BaseModel, Field

from equitycalc.models.enums import ExitType, GrantType, MarketConditions
from equitycalc.models.tax import TaxResult


class ScenarioParams(BaseModel):
    exit_date: date
    exit_price: Decimal | None = Field(default=None, ge=0)
    ipo_multiplier: Decimal = Decimal("10")
    acquisition_multiplier: Decimal = Decimal("8")
    secondary_multiplier: Decimal = Decimal("5")
    lockup_days: int = Field(default=180, ge=0)
    secondary_discount: Decimal = Field(default=Decimal("20"), ge=0, le=100)
    secondary_sale_percentage: Decimal = Field(default=Decimal("25"), gt=0, le=100)
    net_worth: Decimal = Field(default=Decimal("500000"), gt=0)
    market_conditions: MarketConditions = MarketConditions.NEUTRAL

    def multiplier_for(self, exit_type: ExitType) -> Decimal:
        match exit_type:
            case ExitType.IPO:
                return self.ipo_multiplier
            case ExitType.ACQUISITION:
                return self.acquisition_multiplier
            case ExitType.SECONDARY:
                return self.secondary_multiplier


class BatchDetail(BaseModel):
    shares: int
    exercise_date: date
    sale_date: date
    fmv_at_exercise: Decimal
    sale_price: Decimal
    result: TaxResult


class GrantStrategyDetail(BaseModel):
    grant_id: str
    grant_type: GrantType
    vested_shares: int
    batches: list[BatchDetail] = Field(default_factory=list)

    @property
    def total_tax(self) -> Decimal:
        return sum((b.result.totals.total_tax for b in self.batches), Decimal("0"))

    @property
    def net_proceeds(self) -> Decimal:
        return sum((b.result.totals.net_proceeds for b in self.batches), Decimal("0"))


class StrategyOutcome(BaseModel):
    name: str
    description: str
    total_tax: Decimal = Decimal("0")
    net_proceeds: Decimal = Decimal("0")
    gross_proceeds: Decimal = Decimal("0")
    exercise_cost: Decimal = Decimal("0")
    grants: list[GrantStrategyDetail] = Field(default_factory=list)


class SkippedGrant(BaseModel):
    grant_id: str
    reason: str


class ScenarioResult(BaseModel):
    exit_type: ExitType
    exit_date: date
    exit_price: Decimal | None = None
    exit_multiplier: Decimal
    strategies: dict[str, StrategyOutcome]
    optimal_strategy: str
    tax_savings: Decimal = Decimal("0")
    skipped_grants: list[SkippedGrant] = Field(default_factory=list)
    notes: list[str] = Field(default_factory=list)

    @property
    def optimal(self) -> StrategyOutcome:
        return self.strategies[self.optimal_strategy]


class RiskFactor(BaseModel):
    name: str
    score: int = Field(ge=1, le=3)
    notes: str


class ExitComparison(BaseModel):
    results: dict[ExitType, ScenarioResult]
    recommended_exit: ExitType
    recommended_strategy: str
    net_proceeds: Decimal
    tax_savings: Decimal
    risk_factors: list[RiskFactor] = Field(default_factory=list)
