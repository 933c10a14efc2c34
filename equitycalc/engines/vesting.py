"""Vesting schedule engine.

One canonical algorithm for every grant:
  - nothing vests before the vesting start or before the cliff;
  - monthly grants vest linearly per whole month elapsed, so the cliff
    releases its accumulated months as a lump and each later month adds
    1/total_months;
  - quarterly and yearly grants vest in steps of whole periods;
  - anything else vests linearly by day across the window;
  - everything is vested at or after the end date.

Share counts are always floored. Double-trigger RSUs report zero vested
shares here; release at a liquidity event is a separate calculation.
"""

import calendar
import math
from datetime import date, timedelta
from decimal import Decimal
from fractions import Fraction

from equitycalc.exceptions import DataValidationError
from equitycalc.models.enums import GrantType, VestingCadence
from equitycalc.models.grant import (
    CombinedVestingMonth,
    DoubleTriggerRelease,
    Grant,
    VestingEvent,
    VestingStatus,
)

PERIOD_MONTHS: dict[VestingCadence, int] = {
    VestingCadence.MONTHLY: 1,
    VestingCadence.QUARTERLY: 3,
    VestingCadence.YEARLY: 12,
    VestingCadence.LINEAR: 1,
}


def add_months(d: date, months: int) -> date:
    """Add *months* to a date, clipping to the last day of the month."""
    month_index = d.month - 1 + months
    year = d.year + month_index // 12
    month = month_index % 12 + 1
    day = min(d.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def months_between(start: date, end: date) -> int:
    """Whole calendar months from *start* to *end* (0 if end precedes start)."""
    if end < start:
        return 0
    months = (end.year - start.year) * 12 + end.month - start.month
    if add_months(start, months) > end:
        months -= 1
    return months


def _to_decimal(fraction: Fraction) -> Decimal:
    return Decimal(fraction.numerator) / Decimal(fraction.denominator)


class VestingEngine:
    """Computes vested shares and vesting events for a grant."""

    def compute(self, grant: Grant, as_of: date) -> VestingStatus:
        fraction = self._vested_fraction(grant, as_of)
        vested = self._shares_for(grant, fraction)
        # Skip boundaries that release nothing (a cliff on the start date, tiny grants)
        next_date = self._next_boundary(grant, as_of)
        next_shares = 0
        while next_date is not None:
            next_shares = self._shares_for(grant, self._vested_fraction(grant, next_date)) - vested
            if next_shares > 0:
                break
            next_date = self._next_boundary(grant, next_date)

        return VestingStatus(
            vested=vested,
            unvested=grant.shares - vested,
            vested_percentage=_to_decimal(fraction),
            next_vesting_date=next_date,
            next_vesting_shares=next_shares,
        )

    def schedule(self, grant: Grant) -> list[VestingEvent]:
        """Every vesting event of the grant, in date order."""
        events: list[VestingEvent] = []
        if grant.liquidity_event_only:
            return events

        vested = 0
        boundary = self._next_boundary(grant, grant.vesting_start_date - timedelta(days=1))
        while boundary is not None:
            fraction = self._vested_fraction(grant, boundary)
            now_vested = self._shares_for(grant, fraction)
            if now_vested > vested:
                events.append(
                    VestingEvent(
                        vest_date=boundary,
                        shares=now_vested - vested,
                        cumulative_shares=now_vested,
                        cumulative_percentage=_to_decimal(fraction),
                    )
                )
                vested = now_vested
            boundary = self._next_boundary(grant, boundary)
        return events

    def upcoming(self, grant: Grant, as_of: date, months_ahead: int = 6) -> list[VestingEvent]:
        horizon = add_months(as_of, months_ahead)
        return [e for e in self.schedule(grant) if as_of < e.vest_date <= horizon]

    def combined_schedule(
        self,
        grants: list[Grant],
        start: date,
        months: int = 36,
    ) -> list[CombinedVestingMonth]:
        """Month-by-month shares vesting across *grants*, with running totals."""
        result: list[CombinedVestingMonth] = []
        cumulative = 0
        for i in range(months):
            month_start = add_months(start, i)
            month_end = add_months(start, i + 1)
            by_grant: dict[str, int] = {}
            for grant in grants:
                before = self.compute(grant, month_start - timedelta(days=1)).vested
                after = self.compute(grant, month_end - timedelta(days=1)).vested
                if after > before:
                    by_grant[grant.id] = after - before
            shares = sum(by_grant.values())
            cumulative += shares
            result.append(
                CombinedVestingMonth(
                    month=month_start,
                    shares=shares,
                    cumulative_shares=cumulative,
                    by_grant=by_grant,
                )
            )
        return result

    def double_trigger_release(
        self,
        grant: Grant,
        liquidity_date: date,
        share_price: Decimal,
    ) -> DoubleTriggerRelease:
        """Shares released when a liquidity event satisfies the second trigger.

        Released shares are those the time-based schedule would have vested
        by the liquidity date; their value is ordinary income at release.
        """
        if grant.grant_type != GrantType.RSU or not grant.liquidity_event_only:
            raise DataValidationError("liquidity_event_only", "grant is not a double-trigger RSU")
        if share_price < 0:
            raise DataValidationError("share_price", "must be non-negative")

        fraction = self._time_fraction(grant, liquidity_date)
        released = self._shares_for(grant, fraction)
        value = share_price * released
        return DoubleTriggerRelease(
            grant_id=grant.id,
            liquidity_date=liquidity_date,
            share_price=share_price,
            released_shares=released,
            release_value=value,
            taxable_income=value,
        )

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    @staticmethod
    def _shares_for(grant: Grant, fraction: Fraction) -> int:
        return max(0, min(grant.shares, math.floor(grant.shares * fraction)))

    def _vested_fraction(self, grant: Grant, as_of: date) -> Fraction:
        if grant.liquidity_event_only:
            return Fraction(0)
        return self._time_fraction(grant, as_of)

    def _time_fraction(self, grant: Grant, as_of: date) -> Fraction:
        start, end = grant.vesting_start_date, grant.vesting_end_date
        if as_of >= end:
            return Fraction(1)
        if as_of < start:
            return Fraction(0)
        if grant.cliff_date is not None and as_of < grant.cliff_date:
            return Fraction(0)

        total_months = months_between(start, end)
        if grant.vesting_schedule == VestingCadence.LINEAR or total_months == 0:
            return Fraction((as_of - start).days, (end - start).days)

        elapsed = months_between(start, as_of)
        period = PERIOD_MONTHS[grant.vesting_schedule]
        if period == 1:
            return min(Fraction(1), Fraction(elapsed, total_months))
        total_periods = -(-total_months // period)
        return min(Fraction(1), Fraction(elapsed // period, total_periods))

    @staticmethod
    def _next_boundary(grant: Grant, as_of: date) -> date | None:
        """Next schedule boundary strictly after *as_of*, clipped to the end date."""
        end = grant.vesting_end_date
        if grant.liquidity_event_only or as_of >= end:
            return None
        if grant.cliff_date is not None and as_of < grant.cliff_date:
            return grant.cliff_date

        period = PERIOD_MONTHS[grant.vesting_schedule]
        start = grant.vesting_start_date
        periods = months_between(start, as_of) // period + 1
        return min(add_months(start, periods * period), end)


def vested_shares(grant: Grant, as_of: date) -> VestingStatus:
    """Vesting status of *grant* as of a date."""
    return VestingEngine().compute(grant, as_of)
