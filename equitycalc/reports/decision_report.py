"""Exercise recommendation report generator."""

from equitycalc.models.decision import Recommendation
from equitycalc.reports.tax_summary import build_environment


class DecisionReportGenerator:
    def __init__(self) -> None:
        self.env = build_environment()

    def render(self, recommendation: Recommendation) -> str:
        template = self.env.get_template("decision_report.txt")
        return template.render(rec=recommendation)
