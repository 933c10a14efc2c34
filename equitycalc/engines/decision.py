"""Exercise decision scoring.

Four independent scores, each in [0, 1]:
  - financial capacity: liquid assets against the cost of exercising;
  - company outlook: stage, growth and financing history;
  - tax efficiency: AMT and state exposure (ISO), spread vs income (NSO);
  - timing: option expiration urgency and exit proximity.

A weighted total picks one of five recommendation tiers.
"""

from decimal import Decimal

from equitycalc.engines.brackets import lookup_state_rate
from equitycalc.models.decision import (
    DecisionFactors,
    DecisionInput,
    DecisionWeights,
    Recommendation,
)
from equitycalc.models.enums import (
    CompanyStage,
    ExitTimeline,
    FinancingHistory,
    GrantType,
    RiskLevel,
    RiskTolerance,
    WeightPreset,
)

ZERO = Decimal("0")
ONE = Decimal("1")

WEIGHT_PRESETS: dict[WeightPreset, DecisionWeights] = {
    WeightPreset.DECISION_TOOL: DecisionWeights(
        capacity=Decimal("0.35"),
        outlook=Decimal("0.30"),
        tax_efficiency=Decimal("0.25"),
        timing=Decimal("0.10"),
    ),
    WeightPreset.CALCULATOR: DecisionWeights(
        capacity=Decimal("0.30"),
        outlook=Decimal("0.30"),
        tax_efficiency=Decimal("0.20"),
        timing=Decimal("0.20"),
    ),
}

# ---------------------------------------------------------------------------
# Score tiers
# ---------------------------------------------------------------------------

# (minimum liquidity ratio, score), checked top-down
CAPACITY_TIERS: list[tuple[Decimal, Decimal]] = [
    (Decimal("3"), Decimal("1.0")),
    (Decimal("2"), Decimal("0.9")),
    (Decimal("1.5"), Decimal("0.8")),
    (Decimal("1.2"), Decimal("0.7")),
    (Decimal("1"), Decimal("0.6")),
    (Decimal("0.8"), Decimal("0.5")),
    (Decimal("0.6"), Decimal("0.4")),
    (Decimal("0.4"), Decimal("0.3")),
    (Decimal("0.2"), Decimal("0.2")),
]
CAPACITY_FLOOR = Decimal("0.1")

RISK_MULTIPLIERS: dict[RiskTolerance, Decimal] = {
    RiskTolerance.VERY_LOW: Decimal("0.6"),
    RiskTolerance.LOW: Decimal("0.8"),
    RiskTolerance.MEDIUM: Decimal("1.0"),
    RiskTolerance.HIGH: Decimal("1.2"),
    RiskTolerance.VERY_HIGH: Decimal("1.4"),
}

# (maximum monthly-expense-to-income ratio, adjustment)
DEBT_ADJUSTMENTS: list[tuple[Decimal, Decimal]] = [
    (Decimal("0.2"), Decimal("0.1")),
    (Decimal("0.3"), Decimal("0.05")),
    (Decimal("0.4"), Decimal("0")),
    (Decimal("0.5"), Decimal("-0.05")),
]
DEBT_ADJUSTMENT_FLOOR = Decimal("-0.1")

STAGE_SCORES: dict[CompanyStage, Decimal] = {
    CompanyStage.SEED: Decimal("0.4"),
    CompanyStage.EARLY: Decimal("0.5"),
    CompanyStage.GROWTH: Decimal("0.7"),
    CompanyStage.LATE: Decimal("0.8"),
    CompanyStage.PRE_IPO: Decimal("0.9"),
    CompanyStage.PUBLIC: Decimal("1.0"),
}

# (maximum annual growth %, score)
GROWTH_TIERS: list[tuple[Decimal, Decimal]] = [
    (Decimal("0"), Decimal("0.3")),
    (Decimal("10"), Decimal("0.5")),
    (Decimal("20"), Decimal("0.6")),
    (Decimal("30"), Decimal("0.7")),
    (Decimal("50"), Decimal("0.8")),
    (Decimal("75"), Decimal("0.9")),
]
GROWTH_CEILING = Decimal("1.0")

FINANCING_SCORES: dict[FinancingHistory, Decimal] = {
    FinancingHistory.STRONG: Decimal("0.9"),
    FinancingHistory.MODERATE: Decimal("0.7"),
    FinancingHistory.WEAK: Decimal("0.4"),
    FinancingHistory.UNKNOWN: Decimal("0.6"),
}

# (maximum income + spread, score)
AMT_RISK_TIERS: list[tuple[Decimal, Decimal]] = [
    (Decimal("100000"), Decimal("0.9")),
    (Decimal("200000"), Decimal("0.8")),
    (Decimal("400000"), Decimal("0.6")),
    (Decimal("600000"), Decimal("0.4")),
]
AMT_RISK_FLOOR = Decimal("0.2")

# (maximum spread-to-income ratio, score)
NSO_SPREAD_TIERS: list[tuple[Decimal, Decimal]] = [
    (Decimal("0.1"), Decimal("0.9")),
    (Decimal("0.2"), Decimal("0.8")),
    (Decimal("0.5"), Decimal("0.6")),
    (Decimal("1"), Decimal("0.4")),
    (Decimal("2"), Decimal("0.2")),
]
NSO_SPREAD_FLOOR = Decimal("0.1")

RSU_TAX_SCORE = Decimal("0.5")
NO_INCOME_TAX_STATE_SCORE = Decimal("0.8")
HIGH_TAX_STATE_SCORE = Decimal("0.3")
OTHER_STATE_SCORE = Decimal("0.6")
HIGH_TAX_STATE_RATE = Decimal("0.10")

# (maximum years to expiration, urgency score)
EXPIRATION_TIERS: list[tuple[Decimal, Decimal]] = [
    (Decimal("0.5"), Decimal("0.9")),
    (Decimal("1"), Decimal("0.8")),
    (Decimal("2"), Decimal("0.6")),
    (Decimal("5"), Decimal("0.4")),
]
EXPIRATION_FLOOR = Decimal("0.2")

EXIT_TIMELINE_SCORES: dict[ExitTimeline, Decimal] = {
    ExitTimeline.IMMINENT: Decimal("0.9"),
    ExitTimeline.ONE_TO_TWO_YEARS: Decimal("0.7"),
    ExitTimeline.THREE_TO_FIVE_YEARS: Decimal("0.5"),
    ExitTimeline.FIVE_PLUS_YEARS: Decimal("0.3"),
    ExitTimeline.UNKNOWN: Decimal("0.5"),
}

AMT_EXPOSURE_RATE = Decimal("0.26")
AMT_EXPOSURE_FACTORS: list[tuple[Decimal, Decimal]] = [
    (Decimal("100000"), Decimal("0.5")),
    (Decimal("200000"), Decimal("0.7")),
    (Decimal("400000"), Decimal("0.9")),
]

# (minimum total score, action, reasoning, risk)
RECOMMENDATION_TIERS: list[tuple[Decimal, str, list[str], RiskLevel]] = [
    (
        Decimal("0.75"),
        "Exercise all vested options now",
        [
            "Strong financial capacity to handle exercise costs and tax implications",
            "Positive company outlook with good growth indicators",
            "Favorable tax situation with manageable AMT exposure",
            "Timing considerations align well with exercise now",
        ],
        RiskLevel.LOW,
    ),
    (
        Decimal("0.6"),
        "Exercise a portion of vested options now (50-75%)",
        [
            "Good financial capacity, but consider maintaining some liquidity",
            "Positive company outlook with some uncertainty",
            "Generally favorable tax situation with some considerations",
            "Timing is appropriate for partial exercise strategy",
        ],
        RiskLevel.MEDIUM_LOW,
    ),
    (
        Decimal("0.45"),
        "Exercise a smaller portion of options now (25-50%)",
        [
            "Moderate financial capacity - exercise would impact liquidity",
            "Mixed company outlook with moderate growth potential",
            "Some tax inefficiencies or AMT exposure concerns",
            "Consider staging exercises over time",
        ],
        RiskLevel.MEDIUM,
    ),
    (
        Decimal("0.3"),
        "Consider minimal exercise (10-25%) or wait",
        [
            "Limited financial capacity for exercise costs",
            "Uncertain company outlook or competitive position",
            "Significant tax inefficiencies or AMT concerns",
            "Timing factors suggest waiting may be advantageous",
        ],
        RiskLevel.MEDIUM_HIGH,
    ),
    (
        ZERO,
        "Wait to exercise options",
        [
            "Insufficient financial capacity to handle exercise costs safely",
            "Company outlook shows significant uncertainty or concerns",
            "High tax inefficiency or prohibitive AMT exposure",
            "Timing considerations favor waiting for better conditions",
        ],
        RiskLevel.HIGH,
    ),
]


def _clamp(value: Decimal) -> Decimal:
    return min(max(value, ZERO), ONE)


def _at_most(value: Decimal, tiers: list[tuple[Decimal, Decimal]], default: Decimal) -> Decimal:
    """Score of the first tier whose upper bound is >= value."""
    for bound, score in tiers:
        if value <= bound:
            return score
    return default


def _at_least(value: Decimal, tiers: list[tuple[Decimal, Decimal]], default: Decimal) -> Decimal:
    """Score of the first tier whose lower bound is <= value."""
    for bound, score in tiers:
        if value >= bound:
            return score
    return default


class DecisionEngine:
    """Scores an exercise decision and maps it to a recommendation."""

    def factors(
        self,
        data: DecisionInput,
        preset: WeightPreset = WeightPreset.DECISION_TOOL,
    ) -> DecisionFactors:
        weights = WEIGHT_PRESETS[preset]
        capacity = self.financial_capacity(data)
        outlook = self.company_outlook(data)
        tax = self.tax_efficiency(data)
        timing = self.timing(data)
        total = (
            capacity * weights.capacity
            + outlook * weights.outlook
            + tax * weights.tax_efficiency
            + timing * weights.timing
        )
        return DecisionFactors(
            financial_capacity=capacity,
            company_outlook=outlook,
            tax_efficiency=tax,
            timing=timing,
            total=_clamp(total),
        )

    def recommend(
        self,
        data: DecisionInput,
        preset: WeightPreset = WeightPreset.DECISION_TOOL,
    ) -> Recommendation:
        factors = self.factors(data, preset)
        for minimum, action, reasoning, risk in RECOMMENDATION_TIERS:
            if factors.total >= minimum:
                break

        return Recommendation(
            factors=factors,
            action=action,
            reasoning=list(reasoning),
            risk_level=risk,
            timeframe=self.timeframe(data, factors.total),
            alternatives=self.alternatives(data, factors.total),
            exercise_cost=data.exercise_cost,
            spread=data.spread,
            amt_exposure=self.amt_exposure(data),
        )

    # ------------------------------------------------------------------
    # Scores
    # ------------------------------------------------------------------

    def financial_capacity(self, data: DecisionInput) -> Decimal:
        cost = data.exercise_cost
        liquid = data.available_cash + data.other_liquid_assets
        ratio = liquid / cost if cost > ZERO else ZERO
        score = _at_least(ratio, CAPACITY_TIERS, CAPACITY_FLOOR)
        score *= RISK_MULTIPLIERS[data.risk_tolerance]

        monthly_income = data.current_income / 12
        debt_ratio = data.monthly_expenses / monthly_income if monthly_income > ZERO else ONE
        score += _at_most(debt_ratio, DEBT_ADJUSTMENTS, DEBT_ADJUSTMENT_FLOOR)
        return _clamp(score)

    def company_outlook(self, data: DecisionInput) -> Decimal:
        stage = STAGE_SCORES[data.company_stage]
        growth = _at_most(data.growth_rate, GROWTH_TIERS, GROWTH_CEILING)
        financing = FINANCING_SCORES[data.financing_history]
        return _clamp(
            stage * Decimal("0.4") + growth * Decimal("0.3") + financing * Decimal("0.3")
        )

    def tax_efficiency(self, data: DecisionInput) -> Decimal:
        match data.grant_type:
            case GrantType.ISO:
                total_income = data.current_income + data.spread
                amt_risk = _at_most(total_income, AMT_RISK_TIERS, AMT_RISK_FLOOR)
                state = self._state_score(data.state_of_residence)
                return _clamp(amt_risk * Decimal("0.7") + state * Decimal("0.3"))
            case GrantType.NSO:
                income = data.current_income
                ratio = data.spread / income if income > ZERO else ONE
                return _clamp(_at_most(ratio, NSO_SPREAD_TIERS, NSO_SPREAD_FLOOR))
            case GrantType.RSU:
                return RSU_TAX_SCORE

    def timing(self, data: DecisionInput) -> Decimal:
        years = data.years_to_expiration
        expiration = _at_most(years, EXPIRATION_TIERS, EXPIRATION_FLOOR)
        exit_score = EXIT_TIMELINE_SCORES[data.exit_timeline]
        # Near expiration, urgency dominates
        weight = Decimal("0.7") if years <= 2 else Decimal("0.4")
        return _clamp(expiration * weight + exit_score * (ONE - weight))

    @staticmethod
    def _state_score(state: str) -> Decimal:
        rate, _ = lookup_state_rate(state)
        if rate == ZERO:
            return NO_INCOME_TAX_STATE_SCORE
        if rate >= HIGH_TAX_STATE_RATE:
            return HIGH_TAX_STATE_SCORE
        return OTHER_STATE_SCORE

    # ------------------------------------------------------------------
    # Recommendation details
    # ------------------------------------------------------------------

    def amt_exposure(self, data: DecisionInput) -> Decimal:
        """Rough AMT on exercising all vested ISOs now."""
        if data.grant_type != GrantType.ISO:
            return ZERO
        factor = _at_most(data.current_income, AMT_EXPOSURE_FACTORS, ONE)
        return data.spread * AMT_EXPOSURE_RATE * factor

    def timeframe(self, data: DecisionInput, score: Decimal) -> str:
        if data.years_to_expiration <= Decimal("0.5"):
            return "Before options expire in the next 6 months"
        if score >= Decimal("0.7"):
            return "Within the next 3 months to optimize tax position"
        if score >= Decimal("0.5"):
            return "Within the next 6 months, potentially staggered exercises"
        if score >= Decimal("0.3"):
            if data.exit_timeline in (ExitTimeline.IMMINENT, ExitTimeline.ONE_TO_TWO_YEARS):
                return "Consider waiting 3-6 months to reassess company progress"
            return "Wait at least 6 months and reassess market conditions"
        return "Wait at least 12 months and reassess all factors"

    def alternatives(self, data: DecisionInput, score: Decimal) -> list[str]:
        """Up to five alternative approaches, most specific first."""
        approaches: list[str] = []
        if data.grant_type == GrantType.ISO:
            approaches.append("Consider exercising at year-end to optimize AMT planning")
            if data.vested_shares > 1000:
                approaches.append(
                    "Consider a staged exercise strategy over multiple tax years to spread AMT impact"
                )
            if score < Decimal("0.5") and data.exit_timeline != ExitTimeline.IMMINENT:
                approaches.append(
                    "Watch for decreases in company valuation that might reduce AMT exposure"
                )
        elif data.grant_type == GrantType.NSO:
            approaches.append("Consider exercising in a year with lower overall income")
            approaches.append(
                "Evaluate exercise-and-hold vs. exercise-and-sell strategies for tax implications"
            )

        if data.years_to_expiration > 5:
            approaches.append("Consider waiting for potential increase in company valuation")
        elif data.years_to_expiration < 2:
            approaches.append("Develop a timeline to ensure exercise before expiration")

        if data.early_exercise_available:
            approaches.append(
                "Consider early exercise of unvested shares with 83(b) election "
                "to start capital gains holding period"
            )

        approaches.append("Consult with a tax professional for personalized advice")
        approaches.append("Regularly reassess as company valuation and personal finances change")
        return approaches[:5]


def decision_factors(
    data: DecisionInput,
    preset: WeightPreset = WeightPreset.DECISION_TOOL,
) -> DecisionFactors:
    """Four decision scores and their weighted total."""
    return DecisionEngine().factors(data, preset)
