"""Tests for text report generation."""

from datetime import date
from decimal import Decimal

from equitycalc.engines.decision import DecisionEngine
from equitycalc.engines.estimator import TaxEstimator
from equitycalc.engines.scenarios import ScenarioEngine
from equitycalc.models.decision import DecisionInput
from equitycalc.models.enums import ExitType, GrantType
from equitycalc.models.scenario import ScenarioParams
from equitycalc.models.tax import TaxSettings
from equitycalc.reports.decision_report import DecisionReportGenerator
from equitycalc.reports.scenario_report import ScenarioReportGenerator
from equitycalc.reports.tax_summary import TaxSummaryGenerator, money, percent


class TestFilters:
    def test_money(self):
        assert money(Decimal("1234567.891")) == "$1,234,567.89"
        assert money(Decimal("0")) == "$0.00"

    def test_percent(self):
        assert percent(Decimal("0.133")) == "13.30%"


class TestTaxSummary:
    def test_render(self, nso_grant, nso_settings):
        result = TaxEstimator().compute_tax(
            nso_grant, Decimal("1"), Decimal("10"), 1000, nso_settings
        )
        output = TaxSummaryGenerator().render(result)
        assert "=== Tax Summary: grant nso-001 (2024) ===" in output
        assert "Ordinary tax:          $400.00" in output
        assert "Net proceeds:          $8,600.00" in output
        assert "Holding period:          LONG_TERM" in output
        assert "approximated" not in output

    def test_render_fallback_notes(self, nso_grant, nso_settings):
        settings = nso_settings.model_copy(update={"tax_year": 2030})
        result = TaxEstimator().compute_tax(nso_grant, Decimal("1"), Decimal("10"), 1000, settings)
        output = TaxSummaryGenerator().render(result)
        assert "NOTE: some tax tables were approximated:" in output
        assert "no table for 2030" in output


class TestScenarioReport:
    def test_render(self, iso_grant, rsu_grant):
        params = ScenarioParams(exit_date=date(2025, 1, 1))
        settings = TaxSettings(residence_state="WA")
        result = ScenarioEngine().analyze_exit(
            [iso_grant, rsu_grant], ExitType.IPO, params, settings
        )
        output = ScenarioReportGenerator().render(result)
        assert "=== Exit Scenario: IPO on 2025-01-01 ===" in output
        assert f"* {result.optimal_strategy}:" in output
        assert "rsu-001: RSUs have no exercise decision" in output
        assert "Exit price:              10x current FMV" in output

    def test_render_comparison(self, iso_grant):
        params = ScenarioParams(exit_date=date(2025, 1, 1))
        comparison = ScenarioEngine().compare_exits([iso_grant], params, TaxSettings())
        output = ScenarioReportGenerator().render_comparison(comparison)
        assert "=== Exit Comparison ===" in output
        assert f"Recommended:             {comparison.recommended_exit}" in output
        assert "RISK FACTORS" in output
        assert "market_conditions" in output


class TestDecisionReport:
    def test_render(self):
        data = DecisionInput(
            grant_type=GrantType.ISO,
            strike_price=Decimal("1"),
            current_fmv=Decimal("5"),
            vested_shares=Decimal("10000"),
            available_cash=Decimal("50000"),
            current_income=Decimal("120000"),
        )
        rec = DecisionEngine().recommend(data)
        output = DecisionReportGenerator().render(rec)
        assert "=== Exercise Recommendation ===" in output
        assert rec.action in output
        assert "Exercise cost:         $10,000.00" in output
        assert "Estimated AMT:" in output
        for line in rec.alternatives:
            assert line in output
