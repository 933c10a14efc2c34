"""Tests for exercise decision scoring."""

import itertools
from decimal import Decimal

import pytest

from equitycalc.engines.decision import DecisionEngine, decision_factors
from equitycalc.models.decision import DecisionInput
from equitycalc.models.enums import (
    CompanyStage,
    ExitTimeline,
    FinancingHistory,
    GrantType,
    RiskLevel,
    RiskTolerance,
    WeightPreset,
)


@pytest.fixture
def engine():
    return DecisionEngine()


@pytest.fixture
def strong_iso() -> DecisionInput:
    return DecisionInput(
        grant_type=GrantType.ISO,
        strike_price=Decimal("1"),
        current_fmv=Decimal("5"),
        vested_shares=Decimal("10000"),
        available_cash=Decimal("50000"),
        current_income=Decimal("120000"),
        monthly_expenses=Decimal("1500"),
        risk_tolerance=RiskTolerance.MEDIUM,
        company_stage=CompanyStage.PUBLIC,
        growth_rate=Decimal("80"),
        financing_history=FinancingHistory.STRONG,
        state_of_residence="TX",
        years_to_expiration=Decimal("10"),
        exit_timeline=ExitTimeline.IMMINENT,
    )


@pytest.fixture
def weak_iso() -> DecisionInput:
    return DecisionInput(
        grant_type=GrantType.ISO,
        strike_price=Decimal("1"),
        current_fmv=Decimal("5"),
        vested_shares=Decimal("200000"),
        risk_tolerance=RiskTolerance.VERY_LOW,
        company_stage=CompanyStage.SEED,
        growth_rate=Decimal("0"),
        financing_history=FinancingHistory.WEAK,
        state_of_residence="CA",
        years_to_expiration=Decimal("10"),
        exit_timeline=ExitTimeline.FIVE_PLUS_YEARS,
    )


class TestScores:
    def test_strong_factors(self, engine, strong_iso):
        factors = engine.factors(strong_iso)
        assert factors.financial_capacity == Decimal("1")
        assert factors.company_outlook == Decimal("0.97")
        assert factors.tax_efficiency == Decimal("0.8")
        assert factors.timing == Decimal("0.62")
        assert factors.total == Decimal("0.903")

    def test_calculator_weights(self, engine, strong_iso):
        factors = engine.factors(strong_iso, WeightPreset.CALCULATOR)
        assert factors.total == Decimal("0.875")

    def test_weak_factors(self, engine, weak_iso):
        factors = engine.factors(weak_iso)
        assert factors.financial_capacity == Decimal("0")
        assert factors.company_outlook == Decimal("0.37")
        assert factors.tax_efficiency == Decimal("0.23")
        assert factors.timing == Decimal("0.26")
        assert factors.total == Decimal("0.1945")

    def test_nso_tax_efficiency(self, engine, strong_iso):
        data = strong_iso.model_copy(update={"grant_type": GrantType.NSO})
        # spread 40,000 on 120,000 income
        assert engine.tax_efficiency(data) == Decimal("0.6")

    def test_nso_without_income(self, engine, strong_iso):
        data = strong_iso.model_copy(
            update={"grant_type": GrantType.NSO, "current_income": Decimal("0")}
        )
        assert engine.tax_efficiency(data) == Decimal("0.4")

    def test_rsu_tax_efficiency(self, engine, strong_iso):
        data = strong_iso.model_copy(update={"grant_type": GrantType.RSU})
        assert engine.tax_efficiency(data) == Decimal("0.5")

    def test_high_tax_state_lowers_iso_score(self, engine, strong_iso):
        ca = strong_iso.model_copy(update={"state_of_residence": "CA"})
        assert engine.tax_efficiency(ca) < engine.tax_efficiency(strong_iso)

    def test_expiration_urgency_dominates(self, engine, strong_iso):
        data = strong_iso.model_copy(
            update={
                "years_to_expiration": Decimal("0.4"),
                "exit_timeline": ExitTimeline.FIVE_PLUS_YEARS,
            }
        )
        # 0.9 x 0.7 + 0.3 x 0.3
        assert engine.timing(data) == Decimal("0.72")

    def test_module_function(self, strong_iso):
        assert decision_factors(strong_iso) == DecisionEngine().factors(strong_iso)


class TestFactorBounds:
    @pytest.mark.parametrize(
        "grant_type,income,cash,growth,years",
        list(
            itertools.product(
                list(GrantType),
                [Decimal("-50000"), Decimal("0"), Decimal("90000"), Decimal("2000000")],
                [Decimal("-1000"), Decimal("0"), Decimal("1000000")],
                [Decimal("-40"), Decimal("500")],
                [Decimal("-1"), Decimal("3"), Decimal("40")],
            )
        ),
    )
    def test_scores_within_unit_interval(self, engine, grant_type, income, cash, growth, years):
        data = DecisionInput(
            grant_type=grant_type,
            strike_price=Decimal("2"),
            current_fmv=Decimal("30"),
            vested_shares=Decimal("5000"),
            available_cash=cash,
            current_income=income,
            monthly_expenses=Decimal("4000"),
            risk_tolerance=RiskTolerance.VERY_HIGH,
            growth_rate=growth,
            state_of_residence="Nowhere",
            years_to_expiration=years,
        )
        factors = engine.factors(data)
        for value in (
            factors.financial_capacity,
            factors.company_outlook,
            factors.tax_efficiency,
            factors.timing,
            factors.total,
        ):
            assert Decimal("0") <= value <= Decimal("1")


class TestRecommendation:
    def test_strong_recommendation(self, engine, strong_iso):
        rec = engine.recommend(strong_iso)
        assert rec.action == "Exercise all vested options now"
        assert rec.risk_level == RiskLevel.LOW
        assert rec.timeframe == "Within the next 3 months to optimize tax position"
        assert rec.exercise_cost == Decimal("10000")
        assert rec.spread == Decimal("40000")
        assert len(rec.reasoning) == 4

    def test_weak_recommendation(self, engine, weak_iso):
        rec = engine.recommend(weak_iso)
        assert rec.action == "Wait to exercise options"
        assert rec.risk_level == RiskLevel.HIGH
        assert rec.timeframe == "Wait at least 12 months and reassess all factors"

    def test_near_expiration_timeframe(self, engine, weak_iso):
        data = weak_iso.model_copy(update={"years_to_expiration": Decimal("0.25")})
        assert engine.recommend(data).timeframe == "Before options expire in the next 6 months"

    def test_amt_exposure(self, engine, strong_iso):
        # 40,000 spread x 26% x 0.7 for income up to 200,000
        assert engine.amt_exposure(strong_iso) == Decimal("7280.0")

    def test_no_amt_exposure_for_nso(self, engine, strong_iso):
        data = strong_iso.model_copy(update={"grant_type": GrantType.NSO})
        assert engine.amt_exposure(data) == Decimal("0")

    def test_alternatives_capped_at_five(self, engine, strong_iso):
        data = strong_iso.model_copy(update={"early_exercise_available": True})
        alternatives = engine.alternatives(data, Decimal("0.9"))
        assert len(alternatives) == 5
        assert alternatives[0] == "Consider exercising at year-end to optimize AMT planning"

    def test_nso_alternatives(self, engine, strong_iso):
        data = strong_iso.model_copy(
            update={"grant_type": GrantType.NSO, "years_to_expiration": Decimal("1")}
        )
        alternatives = engine.alternatives(data, Decimal("0.5"))
        assert "Consider exercising in a year with lower overall income" in alternatives
        assert "Develop a timeline to ensure exercise before expiration" in alternatives

    def test_every_tier_reachable(self, engine, strong_iso, weak_iso):
        mid = weak_iso.model_copy(
            update={
                "available_cash": Decimal("150000"),
                "current_income": Decimal("150000"),
                "vested_shares": Decimal("20000"),
                "company_stage": CompanyStage.GROWTH,
            }
        )
        levels = {engine.recommend(d).risk_level for d in (strong_iso, mid, weak_iso)}
        assert RiskLevel.LOW in levels
        assert RiskLevel.HIGH in levels
        assert len(levels) == 3
