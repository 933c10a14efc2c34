"""Exercise decision inputs and outputs."""

from decimal import Decimal

from pydantic import BaseModel, Field

from equitycalc.models.enums import (
    CompanyStage,
    ExitTimeline,
    FinancingHistory,
    GrantType,
    RiskLevel,
    RiskTolerance,
)


class DecisionInput(BaseModel):
    """Financial, company, and timing facts behind an exercise decision.

    Values are deliberately unconstrained; scoring clamps every factor.
    """

    grant_type: GrantType
    strike_price: Decimal = Decimal("0")
    current_fmv: Decimal = Decimal("0")
    vested_shares: Decimal = Decimal("0")
    available_cash: Decimal = Decimal("0")
    other_liquid_assets: Decimal = Decimal("0")
    current_income: Decimal = Decimal("0")
    monthly_expenses: Decimal = Decimal("0")
    risk_tolerance: RiskTolerance = RiskTolerance.MEDIUM
    company_stage: CompanyStage = CompanyStage.GROWTH
    growth_rate: Decimal = Decimal("0")
    financing_history: FinancingHistory = FinancingHistory.UNKNOWN
    state_of_residence: str = "CA"
    years_to_expiration: Decimal = Decimal("10")
    exit_timeline: ExitTimeline = ExitTimeline.UNKNOWN
    early_exercise_available: bool = False

    @property
    def exercise_cost(self) -> Decimal:
        return self.strike_price * self.vested_shares

    @property
    def spread(self) -> Decimal:
        return max(self.current_fmv - self.strike_price, Decimal("0")) * self.vested_shares


class DecisionWeights(BaseModel):
    capacity: Decimal
    outlook: Decimal
    tax_efficiency: Decimal
    timing: Decimal


class DecisionFactors(BaseModel):
    financial_capacity: Decimal = Field(ge=0, le=1)
    company_outlook: Decimal = Field(ge=0, le=1)
    tax_efficiency: Decimal = Field(ge=0, le=1)
    timing: Decimal = Field(ge=0, le=1)
    total: Decimal = Field(ge=0, le=1)


class Recommendation(BaseModel):
    factors: DecisionFactors
    action: str
    reasoning: list[str]
    risk_level: RiskLevel
    timeframe: str
    alternatives: list[str]
    exercise_cost: Decimal
    spread: Decimal
    amt_exposure: Decimal = Decimal("0")
