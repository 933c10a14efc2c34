"""Tax breakdown summary report generator."""

from decimal import Decimal
from pathlib import Path

from jinja2 import Environment, FileSystemLoader

from equitycalc.models.tax import TaxResult

TEMPLATE_DIR = Path(__file__).parent / "templates"


def money(value: Decimal) -> str:
    """Format a currency amount for display; the only place values are rounded."""
    return f"${value:,.2f}"


def percent(value: Decimal) -> str:
    return f"{value * 100:.2f}%"


def build_environment() -> Environment:
    env = Environment(loader=FileSystemLoader(str(TEMPLATE_DIR)), trim_blocks=True, lstrip_blocks=True)
    env.filters["money"] = money
    env.filters["percent"] = percent
    return env


class TaxSummaryGenerator:
    """Generates a human-readable tax breakdown for one exercise and sale."""

    def __init__(self) -> None:
        self.env = build_environment()

    def render(self, result: TaxResult) -> str:
        """Render tax summary report."""
        template = self.env.get_template("tax_summary.txt")
        return template.render(result=result)
