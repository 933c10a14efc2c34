"""Report generation for equitycalc."""

from equitycalc.reports.decision_report import DecisionReportGenerator
from equitycalc.reports.scenario_report import ScenarioReportGenerator
from equitycalc.reports.tax_summary import TaxSummaryGenerator

__all__ = [
    "DecisionReportGenerator",
    "ScenarioReportGenerator",
    "TaxSummaryGenerator",
]
