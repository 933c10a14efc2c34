"""ISO AMT computation engine.

Implements the alternative minimum tax triggered by an ISO exercise spread,
the AMT credit carried between years, and the $100,000 annual ISO limit.
"""

from collections import defaultdict
from decimal import Decimal

from equitycalc.engines.brackets import (
    AMT_EXEMPTION,
    AMT_PHASEOUT_RATE,
    AMT_PHASEOUT_START,
    FEDERAL_BRACKETS,
    amt_brackets,
    lookup_year_table,
    progressive_tax,
)
from equitycalc.engines.vesting import VestingEngine
from equitycalc.exceptions import DataValidationError
from equitycalc.models.enums import FilingStatus, GrantType
from equitycalc.models.grant import Grant
from equitycalc.models.tax import AMTResult, ISOLimitYear

ISO_ANNUAL_LIMIT = Decimal("100000")


class ISOAMTEngine:
    """Computes ISO AMT, AMT credit, and ISO limit splits."""

    def compute_amt_preference(
        self,
        fmv_at_exercise: Decimal,
        exercise_price: Decimal,
        shares: int,
    ) -> Decimal:
        """AMT preference for an ISO exercise: (FMV at exercise - exercise price) x shares.

        An underwater exercise carries no preference.
        """
        return max(fmv_at_exercise - exercise_price, Decimal("0")) * shares

    def compute_amt(
        self,
        amt_income: Decimal,
        regular_income: Decimal,
        filing_status: FilingStatus,
        tax_year: int,
        prior_credit: Decimal = Decimal("0"),
    ) -> tuple[AMTResult, list[str]]:
        """Compute AMT on *amt_income* stacked on *regular_income*.

        Args:
            amt_income: AMT-only income (ISO spread).
            regular_income: Income taxed under the regular system.
            filing_status: Filing status.
            tax_year: Tax year for table lookups.
            prior_credit: AMT credit carried into this year.

        Returns:
            (result, notes) where notes describe any table fallbacks.
        """
        if prior_credit < 0:
            raise DataValidationError("prior_credit", "must be non-negative")

        notes: list[str] = []
        exemption_amount, found = lookup_year_table(
            AMT_EXEMPTION, tax_year, filing_status, "AMT exemption"
        )
        notes += found
        phaseout_start, found = lookup_year_table(
            AMT_PHASEOUT_START, tax_year, filing_status, "AMT phase-out"
        )
        notes += found
        rate_schedule, found = amt_brackets(tax_year, filing_status)
        notes += found
        ordinary_brackets, found = lookup_year_table(
            FEDERAL_BRACKETS, tax_year, filing_status, "federal brackets"
        )
        notes += found

        # Exemption with phase-out
        total_amt_income = regular_income + amt_income
        reduction = max(total_amt_income - phaseout_start, Decimal("0")) * AMT_PHASEOUT_RATE
        exemption = max(exemption_amount - reduction, Decimal("0"))

        # Tentative minimum tax vs regular tax on regular income alone
        taxable = max(total_amt_income - exemption, Decimal("0"))
        tentative_minimum_tax = progressive_tax(taxable, rate_schedule)
        regular_tax = progressive_tax(max(regular_income, Decimal("0")), ordinary_brackets)
        net_due = max(tentative_minimum_tax - regular_tax, Decimal("0"))

        credit_used, credit_remaining = self.compute_amt_credit(
            prior_credit, regular_tax, tentative_minimum_tax
        )

        result = AMTResult(
            amt_income=amt_income,
            total_amt_income=total_amt_income,
            exemption=exemption,
            taxable_amt_income=taxable,
            tentative_minimum_tax=tentative_minimum_tax,
            regular_tax=regular_tax,
            credit_available=prior_credit,
            credit_used=credit_used,
            # AMT paid on an ISO spread is a deferral item and becomes credit
            credit_carryforward=credit_remaining + net_due,
            net_due=net_due,
        )
        return result, notes

    def compute_amt_credit(
        self,
        prior_year_amt_credit: Decimal,
        regular_tax: Decimal,
        tentative_minimum_tax: Decimal,
    ) -> tuple[Decimal, Decimal]:
        """Compute usable AMT credit.

        The credit is usable when regular tax exceeds TMT (i.e., no current-year AMT).

        Returns:
            (credit_used, credit_remaining)
        """
        if prior_year_amt_credit <= Decimal("0"):
            return Decimal("0"), Decimal("0")

        credit_limit = max(regular_tax - tentative_minimum_tax, Decimal("0"))
        credit_used = min(prior_year_amt_credit, credit_limit)
        return credit_used, prior_year_amt_credit - credit_used

    def iso_limit(
        self,
        grants: list[Grant],
        fmv_at_grant: dict[str, Decimal] | None = None,
    ) -> list[ISOLimitYear]:
        """Split ISO shares into ISO and NSO treatment by the $100,000 rule.

        Options first exercisable in a calendar year count against the limit
        at their grant-date FMV (the strike price unless *fmv_at_grant* says
        otherwise). Earlier grants use the limit first; shares beyond it are
        treated as NSOs.
        """
        fmv_at_grant = fmv_at_grant or {}
        vesting = VestingEngine()
        used: dict[int, Decimal] = defaultdict(Decimal)
        iso_shares: dict[int, int] = defaultdict(int)
        nso_shares: dict[int, int] = defaultdict(int)
        value: dict[int, Decimal] = defaultdict(Decimal)

        isos = [g for g in grants if g.grant_type == GrantType.ISO]
        for grant in sorted(isos, key=lambda g: g.effective_grant_date):
            price = fmv_at_grant.get(grant.id, grant.strike_price)
            for event in vesting.schedule(grant):
                year = event.vest_date.year
                value[year] += price * event.shares
                if price <= 0:
                    iso_shares[year] += event.shares
                    continue
                room = max(ISO_ANNUAL_LIMIT - used[year], Decimal("0"))
                fits = min(event.shares, int(room // price))
                iso_shares[year] += fits
                nso_shares[year] += event.shares - fits
                used[year] += price * fits

        return [
            ISOLimitYear(
                year=year,
                exercisable_value=value[year],
                iso_shares=iso_shares[year],
                nso_shares=nso_shares[year],
                limit_exceeded=value[year] > ISO_ANNUAL_LIMIT,
            )
            for year in sorted(value)
        ]
