"""Tax estimator for equity grant exercises and sales.

Splits the economics of an exercise/vest and sale into ordinary income,
short- and long-term capital gains and AMT income, then prices each slice:
  - federal ordinary tax, stacked on other income;
  - capital gains, stacked on other income plus ordinary income;
  - AMT on an ISO spread, with AMT credit carried in;
  - Medicare on wage-like income, NIIT on investment income;
  - flat state tax, optionally allocated across states.
"""

import logging
from datetime import date
from decimal import Decimal
from typing import NamedTuple, assert_never

from equitycalc.engines.brackets import (
    ADDITIONAL_MEDICARE_TAX_RATE,
    ADDITIONAL_MEDICARE_TAX_THRESHOLD,
    AMT_EXEMPTION,
    AMT_PHASEOUT_START,
    FEDERAL_BRACKETS,
    FEDERAL_LTCG_BRACKETS,
    NIIT_RATE,
    NIIT_THRESHOLD,
    REGULAR_MEDICARE_TAX_RATE,
    amt_brackets,
    lookup_state_rate,
    lookup_year_table,
    normalize_state,
    progressive_tax,
)
from equitycalc.engines.iso_amt import ISOAMTEngine
from equitycalc.exceptions import DataValidationError
from equitycalc.models.enums import DispositionType, FilingStatus, GrantType, HoldingPeriod
from equitycalc.models.grant import Grant
from equitycalc.models.tax import (
    AMTResult,
    FederalBreakdown,
    MedicareNIIT,
    StateTaxLine,
    StateTaxResult,
    TaxResult,
    TaxSettings,
    TaxTotals,
)

logger = logging.getLogger(__name__)

ZERO = Decimal("0")


def _add_years(d: date, years: int) -> date:
    """Add *years* to a date, handling Feb 29 → Feb 28."""
    try:
        return d.replace(year=d.year + years)
    except ValueError:
        return d.replace(year=d.year + years, day=28)


def holding_period(acquired: date, sold: date) -> HoldingPeriod:
    """Long-term once the sale is at least one year after acquisition."""
    if sold >= _add_years(acquired, 1):
        return HoldingPeriod.LONG_TERM
    return HoldingPeriod.SHORT_TERM


def is_qualifying_disposition(grant_date: date, exercise_date: date, sale_date: date) -> bool:
    """ISO sale at least 1 year after exercise and 2 years after grant."""
    return sale_date >= _add_years(exercise_date, 1) and sale_date >= _add_years(grant_date, 2)


class _IncomeSplit(NamedTuple):
    ordinary: Decimal
    short_term: Decimal
    long_term: Decimal
    amt_income: Decimal
    spread: Decimal
    exercise_cost: Decimal
    disposition: DispositionType
    holding: HoldingPeriod
    wage_income: bool


class TaxEstimator:
    """Computes the tax consequences of exercising/vesting and selling a grant."""

    def __init__(self) -> None:
        self.amt_engine = ISOAMTEngine()

    # ------------------------------------------------------------------
    # Sub-calculations
    # ------------------------------------------------------------------

    def federal_income_tax(
        self,
        amount: Decimal,
        base_income: Decimal,
        filing_status: FilingStatus,
        tax_year: int,
    ) -> Decimal:
        """Marginal tax on *amount* stacked on *base_income*: tax(total) - tax(base)."""
        if amount <= ZERO:
            return ZERO
        brackets, _ = lookup_year_table(
            FEDERAL_BRACKETS, tax_year, filing_status, "federal brackets"
        )
        base = max(base_income, ZERO)
        return progressive_tax(base + amount, brackets, floor=base)

    def capital_gains_tax(
        self,
        amount: Decimal,
        base_income: Decimal,
        is_long_term: bool,
        filing_status: FilingStatus,
        tax_year: int,
    ) -> Decimal:
        """Tax on a capital gain stacked on *base_income*.

        Short-term gains are ordinary income. Long-term gains only fill the
        portion of each LTCG bracket that *base_income* has not already used.
        """
        if amount <= ZERO:
            return ZERO
        if not is_long_term:
            return self.federal_income_tax(amount, base_income, filing_status, tax_year)

        brackets, _ = lookup_year_table(
            FEDERAL_LTCG_BRACKETS, tax_year, filing_status, "LTCG brackets"
        )
        base = max(base_income, ZERO)
        return progressive_tax(base + amount, brackets, floor=base)

    def compute_amt(
        self,
        amt_income: Decimal,
        regular_income: Decimal,
        filing_status: FilingStatus,
        tax_year: int,
        prior_credit: Decimal = ZERO,
    ) -> AMTResult:
        result, _ = self.amt_engine.compute_amt(
            amt_income, regular_income, filing_status, tax_year, prior_credit
        )
        return result

    def medicare_and_niit(
        self,
        amount: Decimal,
        base_income: Decimal,
        filing_status: FilingStatus,
        investment_income: Decimal = ZERO,
        include_niit: bool = True,
    ) -> MedicareNIIT:
        """Medicare on wage-like *amount* and NIIT on *investment_income*.

        The 0.9% additional Medicare tax applies to the part of *amount* that
        lands above the filing-status threshold once stacked on *base_income*.
        NIIT is 3.8% of the lesser of investment income and MAGI over the
        NIIT threshold.
        """
        amount = max(amount, ZERO)
        base = max(base_income, ZERO)
        medicare = amount * REGULAR_MEDICARE_TAX_RATE

        threshold = ADDITIONAL_MEDICARE_TAX_THRESHOLD[filing_status]
        over_threshold = max(base + amount - max(threshold, base), ZERO)
        additional = over_threshold * ADDITIONAL_MEDICARE_TAX_RATE

        niit = ZERO
        investment = max(investment_income, ZERO)
        if include_niit and investment > ZERO:
            magi = base + amount + investment
            excess = max(magi - NIIT_THRESHOLD[filing_status], ZERO)
            niit = min(investment, excess) * NIIT_RATE

        return MedicareNIIT(
            medicare_tax=medicare,
            additional_medicare_tax=additional,
            niit=niit,
        )

    def state_tax(self, amount: Decimal, settings: TaxSettings) -> StateTaxResult:
        """Flat state tax, split across the settings' state allocation."""
        result, _ = self._state_tax(amount, settings)
        return result

    def _state_tax(self, amount: Decimal, settings: TaxSettings) -> tuple[StateTaxResult, list[str]]:
        taxable = max(amount, ZERO)
        notes: list[str] = []
        lines: list[StateTaxLine] = []
        for state, fraction in settings.allocation.items():
            rate, found = lookup_state_rate(state)
            notes += found
            allocated = taxable * fraction
            lines.append(
                StateTaxLine(
                    state=normalize_state(state),
                    fraction=fraction,
                    rate=rate,
                    allocated_income=allocated,
                    tax=allocated * rate,
                )
            )
        total = sum((line.tax for line in lines), ZERO)
        return StateTaxResult(total=total, breakdown=lines), notes

    def table_fallbacks(self, tax_year: int, filing_status: FilingStatus) -> list[str]:
        """Notes for every federal table lookup that had to fall back."""
        notes: list[str] = []
        for table, name in (
            (FEDERAL_BRACKETS, "federal brackets"),
            (FEDERAL_LTCG_BRACKETS, "LTCG brackets"),
            (AMT_EXEMPTION, "AMT exemption"),
            (AMT_PHASEOUT_START, "AMT phase-out"),
        ):
            notes += lookup_year_table(table, tax_year, filing_status, name).notes
        notes += amt_brackets(tax_year, filing_status).notes
        return notes

    # ------------------------------------------------------------------
    # Full computation
    # ------------------------------------------------------------------

    def compute_tax(
        self,
        grant: Grant,
        exercise_price: Decimal,
        exit_price: Decimal,
        shares: int,
        settings: TaxSettings,
        fmv_at_exercise: Decimal | None = None,
    ) -> TaxResult:
        """Tax breakdown for exercising (or vesting) and selling *shares* of a grant.

        Args:
            grant: The grant being exercised or vested.
            exercise_price: Price paid per share (ignored for RSUs).
            exit_price: Sale price per share.
            shares: Shares exercised and sold.
            settings: Filing status, states, dates and toggles.
            fmv_at_exercise: FMV per share at exercise/vest; defaults to
                the grant's current FMV.

        Raises:
            DataValidationError: negative inputs, too many shares, or a
                missing exercise/vesting or sale date.
        """
        fmv = grant.current_fmv if fmv_at_exercise is None else fmv_at_exercise
        self._validate(grant, exercise_price, exit_price, shares, fmv)

        tax_year = settings.year
        if tax_year is None:
            raise DataValidationError("exercise_date", "an exercise or vesting date is required")
        status = settings.filing_status
        fallbacks = self.table_fallbacks(tax_year, status)
        if settings.unrecognized_filing_status is not None:
            raw_status = settings.unrecognized_filing_status
            note = f"filing status: '{raw_status}' not recognized, using {status}"
            logger.info(note)
            fallbacks.insert(0, note)

        match grant.grant_type:
            case GrantType.ISO:
                split = self._iso_split(grant, exercise_price, exit_price, shares, fmv, settings)
            case GrantType.NSO:
                split = self._nso_split(exercise_price, exit_price, shares, fmv, settings)
            case GrantType.RSU:
                split = self._rsu_split(exit_price, shares, fmv, settings)
            case _:
                assert_never(grant.grant_type)

        # Ordinary income, then short-term, then long-term gains, each stacked
        base = settings.other_income
        ordinary_tax = self.federal_income_tax(split.ordinary, base, status, tax_year)
        st_base = base + max(split.ordinary, ZERO)
        st_tax = self.capital_gains_tax(split.short_term, st_base, False, status, tax_year)
        lt_base = st_base + max(split.short_term, ZERO)
        lt_tax = self.capital_gains_tax(split.long_term, lt_base, True, status, tax_year)

        wages = split.ordinary if split.wage_income and settings.include_medicare else ZERO
        medicare_niit = self.medicare_and_niit(
            wages,
            base + max(split.ordinary, ZERO) - wages,
            status,
            investment_income=max(split.short_term, ZERO) + max(split.long_term, ZERO),
            include_niit=settings.include_niit,
        )

        amt = self._amt(split, lt_base, settings, tax_year)
        pre_credit = ordinary_tax + st_tax + lt_tax + medicare_niit.total_medicare
        if amt.credit_used > pre_credit:
            amt = amt.model_copy(
                update={
                    "credit_used": pre_credit,
                    "credit_carryforward": amt.credit_carryforward + amt.credit_used - pre_credit,
                }
            )

        federal = FederalBreakdown(
            ordinary_income=split.ordinary,
            ordinary_tax=ordinary_tax,
            short_term_gains=split.short_term,
            short_term_tax=st_tax,
            long_term_gains=split.long_term,
            long_term_tax=lt_tax,
            medicare_tax=medicare_niit.total_medicare,
            amt_credit_applied=amt.credit_used,
        )

        total_income = split.ordinary + split.short_term + split.long_term
        state, state_notes = self._state_tax(total_income, settings)
        fallbacks += state_notes

        total_tax = federal.federal_tax + amt.net_due + medicare_niit.niit + state.total
        gross = exit_price * shares
        effective_rate = total_tax / total_income if total_income > ZERO else ZERO

        if fallbacks:
            logger.warning(
                "Grant %s: tax tables fell back (%s)", grant.id, "; ".join(fallbacks)
            )

        return TaxResult(
            grant_id=grant.id,
            tax_year=tax_year,
            shares=shares,
            spread=split.spread,
            disposition=split.disposition,
            holding_period=split.holding,
            federal=federal,
            amt=amt,
            state=state,
            niit=medicare_niit.niit,
            totals=TaxTotals(
                total_income=total_income,
                total_tax=total_tax,
                effective_rate=effective_rate,
                gross_proceeds=gross,
                exercise_cost=split.exercise_cost,
                net_proceeds=gross - split.exercise_cost - total_tax,
            ),
            table_fallbacks=fallbacks,
        )

    # ------------------------------------------------------------------
    # Income splits per grant type
    # ------------------------------------------------------------------

    def _iso_split(
        self,
        grant: Grant,
        exercise_price: Decimal,
        exit_price: Decimal,
        shares: int,
        fmv: Decimal,
        settings: TaxSettings,
    ) -> _IncomeSplit:
        exercise_date, sale_date = self._require_dates(settings.exercise_date, settings)
        spread = (fmv - exercise_price) * shares
        exercise_cost = exercise_price * shares
        total_gain = exit_price * shares - exercise_cost
        holding = holding_period(exercise_date, sale_date)

        if is_qualifying_disposition(grant.effective_grant_date, exercise_date, sale_date):
            return _IncomeSplit(
                ordinary=ZERO,
                short_term=ZERO,
                long_term=total_gain,
                amt_income=self.amt_engine.compute_amt_preference(fmv, exercise_price, shares),
                spread=spread,
                exercise_cost=exercise_cost,
                disposition=DispositionType.QUALIFYING,
                holding=holding,
                wage_income=False,
            )

        # Disqualifying: ordinary income is the spread, limited to the actual gain
        ordinary = min(max(spread, ZERO), max(total_gain, ZERO))
        remaining = total_gain - ordinary
        long_term = holding == HoldingPeriod.LONG_TERM
        return _IncomeSplit(
            ordinary=ordinary,
            short_term=ZERO if long_term else remaining,
            long_term=remaining if long_term else ZERO,
            amt_income=ZERO,
            spread=spread,
            exercise_cost=exercise_cost,
            disposition=DispositionType.DISQUALIFYING,
            holding=holding,
            wage_income=False,
        )

    def _nso_split(
        self,
        exercise_price: Decimal,
        exit_price: Decimal,
        shares: int,
        fmv: Decimal,
        settings: TaxSettings,
    ) -> _IncomeSplit:
        exercise_date, sale_date = self._require_dates(settings.exercise_date, settings)
        spread = (fmv - exercise_price) * shares
        exercise_cost = exercise_price * shares
        ordinary = max(spread, ZERO)
        gain = exit_price * shares - exercise_cost - ordinary
        holding = holding_period(exercise_date, sale_date)
        long_term = holding == HoldingPeriod.LONG_TERM
        return _IncomeSplit(
            ordinary=ordinary,
            short_term=ZERO if long_term else gain,
            long_term=gain if long_term else ZERO,
            amt_income=ZERO,
            spread=spread,
            exercise_cost=exercise_cost,
            disposition=DispositionType.NOT_APPLICABLE,
            holding=holding,
            wage_income=True,
        )

    def _rsu_split(
        self,
        exit_price: Decimal,
        shares: int,
        fmv: Decimal,
        settings: TaxSettings,
    ) -> _IncomeSplit:
        vest_date = settings.vesting_date or settings.exercise_date
        vest_date, sale_date = self._require_dates(vest_date, settings)
        ordinary = fmv * shares
        gain = exit_price * shares - ordinary
        holding = holding_period(vest_date, sale_date)
        long_term = holding == HoldingPeriod.LONG_TERM
        return _IncomeSplit(
            ordinary=ordinary,
            short_term=ZERO if long_term else gain,
            long_term=gain if long_term else ZERO,
            amt_income=ZERO,
            spread=ordinary,
            exercise_cost=ZERO,
            disposition=DispositionType.NOT_APPLICABLE,
            holding=holding,
            wage_income=True,
        )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _amt(
        self,
        split: _IncomeSplit,
        regular_income: Decimal,
        settings: TaxSettings,
        tax_year: int,
    ) -> AMTResult:
        prior_credit = settings.prior_amt_credit
        if not settings.include_amt or (split.amt_income <= ZERO and prior_credit <= ZERO):
            return AMTResult(credit_available=prior_credit, credit_carryforward=prior_credit)
        return self.compute_amt(
            split.amt_income,
            regular_income,
            settings.filing_status,
            tax_year,
            prior_credit,
        )

    @staticmethod
    def _require_dates(acquired: date | None, settings: TaxSettings) -> tuple[date, date]:
        if acquired is None:
            raise DataValidationError("exercise_date", "an exercise or vesting date is required")
        if settings.sale_date is None:
            raise DataValidationError("sale_date", "a sale date is required")
        if settings.sale_date < acquired:
            raise DataValidationError("sale_date", "must not be before the exercise or vesting date")
        return acquired, settings.sale_date

    @staticmethod
    def _validate(
        grant: Grant,
        exercise_price: Decimal,
        exit_price: Decimal,
        shares: int,
        fmv: Decimal,
    ) -> None:
        if shares < 0:
            raise DataValidationError("shares", "must be non-negative")
        if shares > grant.shares:
            raise DataValidationError(
                "shares", f"{shares} exceeds the grant's {grant.shares} shares"
            )
        if exercise_price < 0:
            raise DataValidationError("exercise_price", "must be non-negative")
        if exit_price < 0:
            raise DataValidationError("exit_price", "must be non-negative")
        if fmv < 0:
            raise DataValidationError("fmv_at_exercise", "must be non-negative")


def compute_tax(
    grant: Grant,
    exercise_price: Decimal,
    exit_price: Decimal,
    shares: int,
    settings: TaxSettings,
    fmv_at_exercise: Decimal | None = None,
) -> TaxResult:
    """Tax breakdown for exercising/vesting and selling shares of *grant*."""
    return TaxEstimator().compute_tax(
        grant, exercise_price, exit_price, shares, settings, fmv_at_exercise
    )


def scenario_roi(result: TaxResult) -> Decimal:
    """Return on exercise cost, in percent; 0 when nothing was paid to exercise."""
    cost = result.totals.exercise_cost
    if cost <= ZERO:
        return ZERO
    return result.totals.net_proceeds / cost * Decimal("100")
