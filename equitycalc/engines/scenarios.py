"""Exit scenario analysis.

Each exit type has a fixed table of exercise/sale strategies. Every
(grant x strategy) pair runs through the TaxEstimator, totals are summed
per strategy, and the strategy with the greatest net proceeds wins. The
"tax savings" of a scenario is the margin over the runner-up strategy.

Strategies are data: a strategy is a sequence of batches, each saying what
cumulative share of vested options it covers, when those options are
exercised relative to the exit, when they are sold, and at what multiple of
the exit price. Adding a strategy means adding a row to STRATEGIES.
"""

import logging
import math
from datetime import date, timedelta
from decimal import Decimal
from typing import NamedTuple

from equitycalc.engines.estimator import TaxEstimator
from equitycalc.engines.vesting import VestingEngine, add_months
from equitycalc.models.enums import ExitType, MarketConditions
from equitycalc.models.grant import Grant
from equitycalc.models.scenario import (
    BatchDetail,
    ExitComparison,
    GrantStrategyDetail,
    RiskFactor,
    ScenarioParams,
    ScenarioResult,
    SkippedGrant,
    StrategyOutcome,
)
from equitycalc.models.tax import TaxSettings

logger = logging.getLogger(__name__)

ZERO = Decimal("0")
ONE = Decimal("1")


class Batch(NamedTuple):
    """One exercise-and-sell tranche of a strategy."""

    cumulative_fraction: Decimal
    exercise_offset_months: int = 0
    exercise_at_exit_price: bool = False
    sale_offset_months: int = 0
    price_multiplier: Decimal = ONE
    # Name of a ScenarioParams percentage that replaces cumulative_fraction
    fraction_param: str | None = None


class StrategyDescriptor(NamedTuple):
    name: str
    description: str
    batches: tuple[Batch, ...]


STRATEGIES: dict[ExitType, tuple[StrategyDescriptor, ...]] = {
    ExitType.IPO: (
        StrategyDescriptor(
            "early_exercise",
            "Exercise 12 months before the IPO, sell when the lockup ends",
            (Batch(ONE, exercise_offset_months=-12),),
        ),
        StrategyDescriptor(
            "exercise_at_exit",
            "Exercise at the IPO price, sell when the lockup ends",
            (Batch(ONE, exercise_at_exit_price=True),),
        ),
        StrategyDescriptor(
            "staggered_exercise",
            "Exercise 30% / 30% / 40% at 12, 6 and 2 months before the IPO",
            (
                Batch(Decimal("0.3"), exercise_offset_months=-12),
                Batch(Decimal("0.6"), exercise_offset_months=-6),
                Batch(ONE, exercise_offset_months=-2),
            ),
        ),
    ),
    ExitType.ACQUISITION: (
        StrategyDescriptor(
            "early_exercise",
            "Exercise 12 months before closing, sell at closing",
            (Batch(ONE, exercise_offset_months=-12),),
        ),
        StrategyDescriptor(
            "exercise_at_close",
            "Cashless exercise at the deal price on closing",
            (Batch(ONE, exercise_at_exit_price=True),),
        ),
        StrategyDescriptor(
            "staggered_exercise",
            "Exercise half 12 months and half 3 months before closing",
            (
                Batch(Decimal("0.5"), exercise_offset_months=-12),
                Batch(ONE, exercise_offset_months=-3),
            ),
        ),
    ),
    ExitType.SECONDARY: (
        StrategyDescriptor(
            "sell_all",
            "Exercise 12 months ahead, sell every vested share in the secondary",
            (Batch(ONE, exercise_offset_months=-12),),
        ),
        StrategyDescriptor(
            "sell_partial",
            "Exercise 12 months ahead, sell part of the vested shares in the secondary",
            (Batch(ONE, exercise_offset_months=-12, fraction_param="secondary_sale_percentage"),),
        ),
        StrategyDescriptor(
            "staggered_sales",
            "Sell 40% / 30% / 30% now, in 4 months and in 8 months at rising prices",
            (
                Batch(Decimal("0.4"), exercise_offset_months=-12),
                Batch(
                    Decimal("0.7"),
                    exercise_offset_months=-12,
                    sale_offset_months=4,
                    price_multiplier=Decimal("1.05"),
                ),
                Batch(
                    ONE,
                    exercise_offset_months=-12,
                    sale_offset_months=8,
                    price_multiplier=Decimal("1.10"),
                ),
            ),
        ),
    ),
}

CONCENTRATION_HIGH = Decimal("0.8")
CONCENTRATION_MEDIUM = Decimal("0.5")
VESTED_LOW = Decimal("0.5")
VESTED_MEDIUM = Decimal("0.75")


class ScenarioEngine:
    """Enumerates exit strategies and picks the best one per exit type."""

    def __init__(self) -> None:
        self.estimator = TaxEstimator()
        self.vesting = VestingEngine()

    def analyze_exit(
        self,
        grants: list[Grant],
        exit_type: ExitType,
        params: ScenarioParams,
        settings: TaxSettings,
    ) -> ScenarioResult:
        multiplier = params.multiplier_for(exit_type)
        eligible, skipped = self._eligible_grants(grants, params.exit_date)

        outcomes: dict[str, StrategyOutcome] = {}
        for strategy in STRATEGIES[exit_type]:
            outcome = StrategyOutcome(name=strategy.name, description=strategy.description)
            for grant, vested in eligible:
                detail = self._run_strategy(
                    grant, vested, strategy, exit_type, multiplier, params, settings
                )
                outcome.grants.append(detail)
                for batch in detail.batches:
                    outcome.total_tax += batch.result.totals.total_tax
                    outcome.net_proceeds += batch.result.totals.net_proceeds
                    outcome.gross_proceeds += batch.result.totals.gross_proceeds
                    outcome.exercise_cost += batch.result.totals.exercise_cost
            outcomes[strategy.name] = outcome

        # Stable sort: ties keep table order
        ranked = sorted(outcomes.values(), key=lambda o: o.net_proceeds, reverse=True)
        best = ranked[0]
        savings = best.net_proceeds - ranked[1].net_proceeds if len(ranked) > 1 else ZERO
        logger.info(
            "%s: best strategy %s (net %s, margin %s)",
            exit_type, best.name, best.net_proceeds, savings,
        )

        return ScenarioResult(
            exit_type=exit_type,
            exit_date=params.exit_date,
            exit_price=params.exit_price,
            exit_multiplier=multiplier,
            strategies=outcomes,
            optimal_strategy=best.name,
            tax_savings=savings,
            skipped_grants=skipped,
            notes=self._notes(exit_type, eligible, multiplier, params),
        )

    def compare_exits(
        self,
        grants: list[Grant],
        params: ScenarioParams,
        settings: TaxSettings,
    ) -> ExitComparison:
        """Analyze every exit type and pick the best (exit type, strategy) pair."""
        results = {
            exit_type: self.analyze_exit(grants, exit_type, params, settings)
            for exit_type in ExitType
        }
        best_type = max(results, key=lambda t: results[t].optimal.net_proceeds)
        best = results[best_type]
        return ExitComparison(
            results=results,
            recommended_exit=best_type,
            recommended_strategy=best.optimal_strategy,
            net_proceeds=best.optimal.net_proceeds,
            tax_savings=best.tax_savings,
            risk_factors=self.risk_factors(grants, params),
        )

    def risk_factors(self, grants: list[Grant], params: ScenarioParams) -> list[RiskFactor]:
        """Concentration, timing and market risk of relying on an exit."""
        total_shares = sum(g.shares for g in grants)
        vested = {g.id: self.vesting.compute(g, params.exit_date).vested for g in grants}
        equity_value = sum(
            (g.current_fmv * params.ipo_multiplier * vested[g.id] for g in grants), ZERO
        )

        concentration = equity_value / params.net_worth
        if concentration > CONCENTRATION_HIGH:
            conc = RiskFactor(
                name="concentration", score=3,
                notes="Equity represents over 80% of net worth: high concentration risk.",
            )
        elif concentration > CONCENTRATION_MEDIUM:
            conc = RiskFactor(
                name="concentration", score=2,
                notes="Equity represents over 50% of net worth: moderate concentration risk.",
            )
        else:
            conc = RiskFactor(
                name="concentration", score=1,
                notes="Equity represents less than 50% of net worth: lower concentration risk.",
            )

        vested_fraction = (
            Decimal(sum(vested.values())) / Decimal(total_shares) if total_shares else ZERO
        )
        if vested_fraction < VESTED_LOW:
            timing = RiskFactor(
                name="timing", score=3,
                notes="Less than 50% of equity is vested: significant timing risk for an exit.",
            )
        elif vested_fraction < VESTED_MEDIUM:
            timing = RiskFactor(
                name="timing", score=2,
                notes="Between 50% and 75% of equity is vested: moderate timing risk.",
            )
        else:
            timing = RiskFactor(
                name="timing", score=1,
                notes="Over 75% of equity is vested: minimal timing risk for an exit.",
            )

        match params.market_conditions:
            case MarketConditions.FAVORABLE:
                market = RiskFactor(
                    name="market_conditions", score=1,
                    notes="Market conditions are favorable for exits.",
                )
            case MarketConditions.NEUTRAL:
                market = RiskFactor(
                    name="market_conditions", score=2,
                    notes="Market conditions are neutral: moderate market risk.",
                )
            case MarketConditions.UNFAVORABLE:
                market = RiskFactor(
                    name="market_conditions", score=3,
                    notes="Market conditions are challenging for exits.",
                )

        return [conc, timing, market]

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _eligible_grants(
        self,
        grants: list[Grant],
        exit_date: date,
    ) -> tuple[list[tuple[Grant, int]], list[SkippedGrant]]:
        eligible: list[tuple[Grant, int]] = []
        skipped: list[SkippedGrant] = []
        for grant in grants:
            if not grant.is_option:
                skipped.append(SkippedGrant(grant_id=grant.id, reason="RSUs have no exercise decision"))
                continue
            vested = self.vesting.compute(grant, exit_date).vested
            if vested == 0:
                skipped.append(SkippedGrant(grant_id=grant.id, reason="no vested shares at exit"))
                continue
            eligible.append((grant, vested))
        return eligible, skipped

    def _run_strategy(
        self,
        grant: Grant,
        vested: int,
        strategy: StrategyDescriptor,
        exit_type: ExitType,
        multiplier: Decimal,
        params: ScenarioParams,
        settings: TaxSettings,
    ) -> GrantStrategyDetail:
        exit_price = self._exit_price(grant, exit_type, multiplier, params)
        base_sale_date = params.exit_date
        if exit_type == ExitType.IPO:
            base_sale_date = params.exit_date + timedelta(days=params.lockup_days)

        detail = GrantStrategyDetail(
            grant_id=grant.id, grant_type=grant.grant_type, vested_shares=vested
        )
        allocated = 0
        for batch in strategy.batches:
            fraction = batch.cumulative_fraction
            if batch.fraction_param is not None:
                fraction = getattr(params, batch.fraction_param) / Decimal("100")
            through = math.floor(vested * fraction)
            shares = through - allocated
            allocated = through
            if shares <= 0:
                continue

            if batch.exercise_at_exit_price:
                exercise_date, fmv = params.exit_date, exit_price
            else:
                exercise_date = add_months(params.exit_date, batch.exercise_offset_months)
                fmv = grant.current_fmv
            sale_date = add_months(base_sale_date, batch.sale_offset_months)
            sale_price = exit_price * batch.price_multiplier

            batch_settings = settings.model_copy(
                update={"exercise_date": exercise_date, "sale_date": sale_date}
            )
            result = self.estimator.compute_tax(
                grant, grant.strike_price, sale_price, shares, batch_settings, fmv
            )
            detail.batches.append(
                BatchDetail(
                    shares=shares,
                    exercise_date=exercise_date,
                    sale_date=sale_date,
                    fmv_at_exercise=fmv,
                    sale_price=sale_price,
                    result=result,
                )
            )
        return detail

    @staticmethod
    def _exit_price(
        grant: Grant,
        exit_type: ExitType,
        multiplier: Decimal,
        params: ScenarioParams,
    ) -> Decimal:
        price = params.exit_price if params.exit_price is not None else grant.current_fmv * multiplier
        if exit_type == ExitType.SECONDARY:
            price *= ONE - params.secondary_discount / Decimal("100")
        return price

    def _notes(
        self,
        exit_type: ExitType,
        eligible: list[tuple[Grant, int]],
        multiplier: Decimal,
        params: ScenarioParams,
    ) -> list[str]:
        match exit_type:
            case ExitType.IPO:
                return [
                    f"Shares are sold when the {params.lockup_days}-day lockup ends.",
                    "Exercising at least 12 months before the IPO can qualify "
                    "post-lockup sales for long-term treatment.",
                ]
            case ExitType.ACQUISITION:
                return [
                    "Unvested options may be accelerated, assumed, or cancelled "
                    "depending on the deal terms.",
                ]
            case ExitType.SECONDARY:
                full_price = sum(
                    (
                        (params.exit_price if params.exit_price is not None
                         else g.current_fmv * multiplier) * vested
                        for g, vested in eligible
                    ),
                    ZERO,
                )
                lost = full_price * params.secondary_discount / Decimal("100")
                return [
                    f"The {params.secondary_discount}% secondary discount forgoes "
                    f"${lost:,.2f} of value on all vested shares.",
                    "Secondary sales are usually subject to the company's right of first refusal.",
                ]


def analyze_exit(
    grants: list[Grant],
    exit_type: ExitType,
    params: ScenarioParams,
    settings: TaxSettings,
) -> ScenarioResult:
    """Best exercise/sale strategy for one exit type."""
    return ScenarioEngine().analyze_exit(grants, exit_type, params, settings)


def compare_exits(
    grants: list[Grant],
    params: ScenarioParams,
    settings: TaxSettings,
) -> ExitComparison:
    """Best (exit type, strategy) pair across every exit type."""
    return ScenarioEngine().compare_exits(grants, params, settings)
