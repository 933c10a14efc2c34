"""Typer CLI interface for equitycalc."""

import json
import logging
from datetime import date
from decimal import Decimal
from pathlib import Path
from typing import Any

import typer

app = typer.Typer(
    name="equitycalc",
    help="equitycalc: vesting, tax, and exit-strategy calculations for equity compensation.",
)

STATUS_MAP = {
    "SINGLE": "single",
    "MFJ": "married_joint",
    "MFS": "married_separate",
    "HOH": "head_of_household",
}


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log table fallbacks and decisions"),
) -> None:
    """equitycalc: vesting, tax, and exit-strategy calculations for equity compensation."""
    logging.basicConfig(
        level=logging.INFO if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())
        raise typer.Exit()


def _load_json(path: Path) -> Any:
    if not path.exists():
        typer.echo(f"Error: File not found: {path}", err=True)
        raise typer.Exit(1)
    try:
        return json.loads(path.read_text())
    except json.JSONDecodeError as exc:
        typer.echo(f"Error: {path.name} is not valid JSON: {exc}", err=True)
        raise typer.Exit(1)


def _load_grants(path: Path) -> list:
    from pydantic import ValidationError

    from equitycalc.models.grant import Grant

    data = _load_json(path)
    records = data if isinstance(data, list) else [data]
    try:
        return [Grant.model_validate(record) for record in records]
    except ValidationError as exc:
        typer.echo(f"Error: Invalid grant in {path.name}: {exc}", err=True)
        raise typer.Exit(1)


def _load_settings(
    settings_file: Path | None,
    filing_status: str | None = None,
    **overrides: Any,
):
    from pydantic import ValidationError

    from equitycalc.models.tax import TaxSettings

    data = _load_json(settings_file) if settings_file is not None else {}
    if filing_status is not None:
        # Unrecognized statuses are left to TaxSettings, which falls back to single.
        data["filing_status"] = STATUS_MAP.get(filing_status.upper(), filing_status)
    data.update({k: v for k, v in overrides.items() if v is not None})
    try:
        return TaxSettings.model_validate(data)
    except ValidationError as exc:
        typer.echo(f"Error: Invalid tax settings: {exc}", err=True)
        raise typer.Exit(1)


def _parse_date(value: str | None, option: str) -> date | None:
    if value is None:
        return None
    try:
        return date.fromisoformat(value)
    except ValueError:
        typer.echo(f"Error: {option} must be a YYYY-MM-DD date, got '{value}'", err=True)
        raise typer.Exit(1)


def _select_grant(grants: list, grant_id: str | None):
    if grant_id is None:
        return grants[0]
    for grant in grants:
        if grant.id == grant_id:
            return grant
    typer.echo(f"Error: Grant not found: {grant_id}", err=True)
    raise typer.Exit(1)


@app.command()
def vesting(
    grants_file: Path = typer.Argument(..., help="JSON file with one grant or a list of grants"),
    as_of: str = typer.Option(..., "--as-of", help="Valuation date (YYYY-MM-DD)"),
    schedule: bool = typer.Option(False, "--schedule", help="Also print each grant's full schedule"),
    upcoming: int = typer.Option(0, "--upcoming", help="Print events in the next N months"),
) -> None:
    """Show vested and unvested shares as of a date."""
    from rich.console import Console
    from rich.table import Table

    from equitycalc.engines.vesting import VestingEngine

    as_of_date = _parse_date(as_of, "--as-of")
    grants = _load_grants(grants_file)
    engine = VestingEngine()
    console = Console()

    tbl = Table(title=f"Vesting as of {as_of_date}", show_header=True)
    tbl.add_column("Grant", style="cyan")
    tbl.add_column("Type")
    tbl.add_column("Vested", justify="right", style="green")
    tbl.add_column("Unvested", justify="right")
    tbl.add_column("Vested %", justify="right")
    tbl.add_column("Next vest", justify="right")
    for grant in grants:
        status = engine.compute(grant, as_of_date)
        next_vest = (
            f"{status.next_vesting_date} (+{status.next_vesting_shares})"
            if status.next_vesting_date
            else "-"
        )
        tbl.add_row(
            grant.id,
            grant.grant_type.value,
            f"{status.vested:,}",
            f"{status.unvested:,}",
            f"{status.vested_percentage * 100:.2f}%",
            next_vest,
        )
    console.print(tbl)

    for grant in grants:
        if schedule:
            events = engine.schedule(grant)
            title = f"Schedule: {grant.id}"
        elif upcoming:
            events = engine.upcoming(grant, as_of_date, upcoming)
            title = f"Next {upcoming} months: {grant.id}"
        else:
            continue
        sched = Table(title=title, show_header=True)
        sched.add_column("Date", style="cyan")
        sched.add_column("Shares", justify="right", style="green")
        sched.add_column("Cumulative", justify="right")
        for event in events:
            sched.add_row(str(event.vest_date), f"{event.shares:,}", f"{event.cumulative_shares:,}")
        console.print(sched)


@app.command()
def tax(
    grants_file: Path = typer.Argument(..., help="JSON file with one grant or a list of grants"),
    exit_price: float = typer.Option(..., "--exit-price", help="Sale price per share"),
    shares: int = typer.Option(..., "--shares", help="Shares exercised and sold"),
    grant_id: str | None = typer.Option(None, "--grant-id", help="Grant to use when the file holds several"),
    exercise_price: float | None = typer.Option(
        None, "--exercise-price", help="Price paid per share (defaults to the strike price)"
    ),
    fmv: float | None = typer.Option(
        None, "--fmv", help="FMV per share at exercise/vest (defaults to current FMV)"
    ),
    settings_file: Path | None = typer.Option(None, "--settings", help="JSON file with tax settings"),
    filing_status: str | None = typer.Option(
        None, "--filing-status", "-s", help="Filing status: SINGLE, MFJ, MFS, HOH"
    ),
    exercise_date: str | None = typer.Option(None, "--exercise-date", help="Exercise/vest date"),
    sale_date: str | None = typer.Option(None, "--sale-date", help="Sale date"),
    as_json: bool = typer.Option(False, "--json", help="Print the raw result as JSON"),
) -> None:
    """Compute the tax on exercising and selling shares of a grant."""
    from equitycalc.engines.estimator import TaxEstimator
    from equitycalc.exceptions import EquityCalcError
    from equitycalc.reports.tax_summary import TaxSummaryGenerator

    grant = _select_grant(_load_grants(grants_file), grant_id)
    settings = _load_settings(
        settings_file,
        filing_status,
        exercise_date=_parse_date(exercise_date, "--exercise-date"),
        sale_date=_parse_date(sale_date, "--sale-date"),
    )
    price = Decimal(str(exercise_price)) if exercise_price is not None else grant.strike_price
    fmv_dec = Decimal(str(fmv)) if fmv is not None else None

    try:
        result = TaxEstimator().compute_tax(
            grant, price, Decimal(str(exit_price)), shares, settings, fmv_dec
        )
    except EquityCalcError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(1)

    if as_json:
        typer.echo(result.model_dump_json(indent=2))
    else:
        typer.echo(TaxSummaryGenerator().render(result))


@app.command()
def decide(
    input_file: Path = typer.Argument(..., help="JSON file with decision inputs"),
    preset: str = typer.Option(
        "decision_tool", "--preset", help="Weighting preset: decision_tool or calculator"
    ),
) -> None:
    """Score an exercise decision and print a recommendation."""
    from pydantic import ValidationError

    from equitycalc.engines.decision import DecisionEngine
    from equitycalc.models.decision import DecisionInput
    from equitycalc.models.enums import WeightPreset
    from equitycalc.reports.decision_report import DecisionReportGenerator

    try:
        weight_preset = WeightPreset(preset.lower())
    except ValueError:
        valid = ", ".join(p.value for p in WeightPreset)
        typer.echo(f"Error: Invalid preset '{preset}'. Valid: {valid}", err=True)
        raise typer.Exit(1)

    try:
        data = DecisionInput.model_validate(_load_json(input_file))
    except ValidationError as exc:
        typer.echo(f"Error: Invalid decision input: {exc}", err=True)
        raise typer.Exit(1)

    recommendation = DecisionEngine().recommend(data, weight_preset)
    typer.echo(DecisionReportGenerator().render(recommendation))


def _load_params(params_file: Path | None, exit_date: str | None, exit_price: float | None):
    from pydantic import ValidationError

    from equitycalc.models.scenario import ScenarioParams

    data = _load_json(params_file) if params_file is not None else {}
    if exit_date is not None:
        data["exit_date"] = _parse_date(exit_date, "--exit-date")
    if exit_price is not None:
        data["exit_price"] = Decimal(str(exit_price))
    try:
        return ScenarioParams.model_validate(data)
    except ValidationError as exc:
        typer.echo(f"Error: Invalid scenario parameters: {exc}", err=True)
        raise typer.Exit(1)


@app.command(name="exit")
def exit_scenario(
    grants_file: Path = typer.Argument(..., help="JSON file with a list of grants"),
    exit_type: str = typer.Option("ipo", "--type", "-t", help="Exit type: ipo, acquisition, secondary"),
    params_file: Path | None = typer.Option(None, "--params", help="JSON file with scenario parameters"),
    exit_date: str | None = typer.Option(None, "--exit-date", help="Exit date (YYYY-MM-DD)"),
    exit_price: float | None = typer.Option(None, "--exit-price", help="Exit price per share"),
    settings_file: Path | None = typer.Option(None, "--settings", help="JSON file with tax settings"),
    filing_status: str | None = typer.Option(
        None, "--filing-status", "-s", help="Filing status: SINGLE, MFJ, MFS, HOH"
    ),
) -> None:
    """Compare exercise strategies for one exit type."""
    from equitycalc.engines.scenarios import ScenarioEngine
    from equitycalc.exceptions import EquityCalcError
    from equitycalc.models.enums import ExitType
    from equitycalc.reports.scenario_report import ScenarioReportGenerator

    try:
        kind = ExitType(exit_type.lower())
    except ValueError:
        valid = ", ".join(t.value for t in ExitType)
        typer.echo(f"Error: Invalid exit type '{exit_type}'. Valid: {valid}", err=True)
        raise typer.Exit(1)

    grants = _load_grants(grants_file)
    params = _load_params(params_file, exit_date, exit_price)
    settings = _load_settings(settings_file, filing_status)

    try:
        result = ScenarioEngine().analyze_exit(grants, kind, params, settings)
    except EquityCalcError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(1)
    typer.echo(ScenarioReportGenerator().render(result))


@app.command()
def compare(
    grants_file: Path = typer.Argument(..., help="JSON file with a list of grants"),
    params_file: Path | None = typer.Option(None, "--params", help="JSON file with scenario parameters"),
    exit_date: str | None = typer.Option(None, "--exit-date", help="Exit date (YYYY-MM-DD)"),
    exit_price: float | None = typer.Option(None, "--exit-price", help="Exit price per share"),
    settings_file: Path | None = typer.Option(None, "--settings", help="JSON file with tax settings"),
    filing_status: str | None = typer.Option(
        None, "--filing-status", "-s", help="Filing status: SINGLE, MFJ, MFS, HOH"
    ),
    report: bool = typer.Option(False, "--report", help="Print the full text report"),
) -> None:
    """Compare every exit type and recommend the best exit and strategy."""
    from rich.console import Console
    from rich.table import Table

    from equitycalc.engines.scenarios import ScenarioEngine
    from equitycalc.exceptions import EquityCalcError
    from equitycalc.reports.scenario_report import ScenarioReportGenerator

    grants = _load_grants(grants_file)
    params = _load_params(params_file, exit_date, exit_price)
    settings = _load_settings(settings_file, filing_status)

    try:
        comparison = ScenarioEngine().compare_exits(grants, params, settings)
    except EquityCalcError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(1)

    if report:
        generator = ScenarioReportGenerator()
        for scenario in comparison.results.values():
            typer.echo(generator.render(scenario))
        typer.echo(generator.render_comparison(comparison))
        return

    console = Console()
    tbl = Table(title="Exit Comparison", show_header=True)
    tbl.add_column("Exit", style="cyan")
    tbl.add_column("Strategy")
    tbl.add_column("Total tax", justify="right")
    tbl.add_column("Net proceeds", justify="right", style="green")
    for kind, scenario in comparison.results.items():
        for name, outcome in scenario.strategies.items():
            marker = " *" if name == scenario.optimal_strategy else ""
            tbl.add_row(
                kind.value,
                f"{name}{marker}",
                f"${outcome.total_tax:,.2f}",
                f"${outcome.net_proceeds:,.2f}",
            )
    console.print(tbl)

    typer.echo(
        f"Recommended: {comparison.recommended_exit.value} / {comparison.recommended_strategy} "
        f"(net ${comparison.net_proceeds:,.2f})"
    )
    for factor in comparison.risk_factors:
        typer.echo(f"  {factor.name}: {factor.score}/3 - {factor.notes}")
