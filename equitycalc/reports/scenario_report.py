"""Exit scenario comparison report generator."""

from equitycalc.models.scenario import ExitComparison, ScenarioResult
from equitycalc.reports.tax_summary import build_environment


class ScenarioReportGenerator:
    """Generates exit strategy comparison reports."""

    def __init__(self) -> None:
        self.env = build_environment()

    def render(self, result: ScenarioResult) -> str:
        """Render one exit type's strategy comparison."""
        template = self.env.get_template("scenario_report.txt")
        return template.render(scenario=result)

    def render_comparison(self, comparison: ExitComparison) -> str:
        """Render the cross-exit comparison, including each exit type."""
        template = self.env.get_template("exit_comparison.txt")
        return template.render(comparison=comparison)
