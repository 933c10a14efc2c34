"""Tax table configuration.

Federal brackets, capital-gains brackets, AMT parameters, Medicare/NIIT
thresholds and flat state rates. Keyed by tax year and filing status.
Never hardcode brackets in computation functions.

Sources:
  - 2023: IRS Rev. Proc. 2022-38
  - 2024: IRS Rev. Proc. 2023-34
  - 2025: IRS Rev. Proc. 2024-40
  - State rates: top marginal rate, applied flat (illustrative only)

Lookups for a year, filing status or state the tables do not cover fall back
deterministically and return a note describing the substitution.
"""

import logging
from collections.abc import Mapping, Sequence
from decimal import Decimal
from typing import Any, NamedTuple

from equitycalc.exceptions import TableLookupError
from equitycalc.models.enums import FilingStatus

logger = logging.getLogger(__name__)

ZERO = Decimal("0")


class Bracket(NamedTuple):
    """One progressive bracket covering income in (lower, upper]."""

    lower: Decimal
    upper: Decimal | None
    rate: Decimal


class TableLookup(NamedTuple):
    value: Any
    notes: list[str]


def _brackets(bounds: Sequence[tuple[str | None, str]]) -> list[Bracket]:
    """Build an ordered bracket list from (upper_bound, rate) pairs."""
    result = []
    lower = ZERO
    for upper, rate in bounds:
        upper_dec = Decimal(upper) if upper is not None else None
        result.append(Bracket(lower, upper_dec, Decimal(rate)))
        if upper_dec is not None:
            lower = upper_dec
    return result


def progressive_tax(
    income: Decimal,
    brackets: Sequence[Bracket],
    floor: Decimal = ZERO,
) -> Decimal:
    """Tax the slice of *income* above *floor*, clipped into each bracket.

    With the default floor this is plain progressive tax. With a floor it
    taxes only the income stacked on top of it, which equals
    ``tax(income) - tax(floor)`` for ordinary brackets and is the stacking
    rule for long-term capital gains.
    """
    tax = ZERO
    for bracket in brackets:
        upper = income if bracket.upper is None else min(income, bracket.upper)
        lower = max(floor, bracket.lower)
        if upper > lower:
            tax += (upper - lower) * bracket.rate
    return tax


# ---------------------------------------------------------------------------
# Federal ordinary income brackets: {year: {filing_status: [Bracket, ...]}}
# ---------------------------------------------------------------------------
FEDERAL_BRACKETS: dict[int, dict[FilingStatus, list[Bracket]]] = {
    2023: {
        FilingStatus.SINGLE: _brackets([
            ("11000", "0.10"), ("44725", "0.12"), ("95375", "0.22"), ("182100", "0.24"),
            ("231250", "0.32"), ("578125", "0.35"), (None, "0.37"),
        ]),
        FilingStatus.MFJ: _brackets([
            ("22000", "0.10"), ("89450", "0.12"), ("190750", "0.22"), ("364200", "0.24"),
            ("462500", "0.32"), ("693750", "0.35"), (None, "0.37"),
        ]),
        FilingStatus.MFS: _brackets([
            ("11000", "0.10"), ("44725", "0.12"), ("95375", "0.22"), ("182100", "0.24"),
            ("231250", "0.32"), ("346875", "0.35"), (None, "0.37"),
        ]),
        FilingStatus.HOH: _brackets([
            ("15700", "0.10"), ("59850", "0.12"), ("95350", "0.22"), ("182100", "0.24"),
            ("231250", "0.32"), ("578100", "0.35"), (None, "0.37"),
        ]),
    },
    2024: {
        FilingStatus.SINGLE: _brackets([
            ("11600", "0.10"), ("47150", "0.12"), ("100525", "0.22"), ("191950", "0.24"),
            ("243725", "0.32"), ("609350", "0.35"), (None, "0.37"),
        ]),
        FilingStatus.MFJ: _brackets([
            ("23200", "0.10"), ("94300", "0.12"), ("201050", "0.22"), ("383900", "0.24"),
            ("487450", "0.32"), ("731200", "0.35"), (None, "0.37"),
        ]),
        FilingStatus.MFS: _brackets([
            ("11600", "0.10"), ("47150", "0.12"), ("100525", "0.22"), ("191950", "0.24"),
            ("243725", "0.32"), ("365600", "0.35"), (None, "0.37"),
        ]),
        FilingStatus.HOH: _brackets([
            ("16550", "0.10"), ("63100", "0.12"), ("100500", "0.22"), ("191950", "0.24"),
            ("243700", "0.32"), ("609350", "0.35"), (None, "0.37"),
        ]),
    },
    2025: {
        FilingStatus.SINGLE: _brackets([
            ("11925", "0.10"), ("48475", "0.12"), ("103350", "0.22"), ("197300", "0.24"),
            ("250525", "0.32"), ("626350", "0.35"), (None, "0.37"),
        ]),
        FilingStatus.MFJ: _brackets([
            ("23850", "0.10"), ("96950", "0.12"), ("206700", "0.22"), ("394600", "0.24"),
            ("501050", "0.32"), ("751600", "0.35"), (None, "0.37"),
        ]),
        FilingStatus.MFS: _brackets([
            ("11925", "0.10"), ("48475", "0.12"), ("103350", "0.22"), ("197300", "0.24"),
            ("250525", "0.32"), ("375800", "0.35"), (None, "0.37"),
        ]),
        FilingStatus.HOH: _brackets([
            ("17000", "0.10"), ("64850", "0.12"), ("103350", "0.22"), ("197300", "0.24"),
            ("250500", "0.32"), ("626350", "0.35"), (None, "0.37"),
        ]),
    },
}

# ---------------------------------------------------------------------------
# Federal LTCG rate brackets: thresholds for the 0%/15%/20% rates.
# Per IRC Section 1(h).
# ---------------------------------------------------------------------------
FEDERAL_LTCG_BRACKETS: dict[int, dict[FilingStatus, list[Bracket]]] = {
    2023: {
        FilingStatus.SINGLE: _brackets([("44625", "0.00"), ("492300", "0.15"), (None, "0.20")]),
        FilingStatus.MFJ: _brackets([("89250", "0.00"), ("553850", "0.15"), (None, "0.20")]),
        FilingStatus.MFS: _brackets([("44625", "0.00"), ("276900", "0.15"), (None, "0.20")]),
        FilingStatus.HOH: _brackets([("59750", "0.00"), ("523050", "0.15"), (None, "0.20")]),
    },
    2024: {
        FilingStatus.SINGLE: _brackets([("47025", "0.00"), ("518900", "0.15"), (None, "0.20")]),
        FilingStatus.MFJ: _brackets([("94050", "0.00"), ("583750", "0.15"), (None, "0.20")]),
        FilingStatus.MFS: _brackets([("47025", "0.00"), ("291850", "0.15"), (None, "0.20")]),
        FilingStatus.HOH: _brackets([("63000", "0.00"), ("551350", "0.15"), (None, "0.20")]),
    },
    2025: {
        FilingStatus.SINGLE: _brackets([("48350", "0.00"), ("533400", "0.15"), (None, "0.20")]),
        FilingStatus.MFJ: _brackets([("96700", "0.00"), ("600050", "0.15"), (None, "0.20")]),
        FilingStatus.MFS: _brackets([("48350", "0.00"), ("300000", "0.15"), (None, "0.20")]),
        FilingStatus.HOH: _brackets([("64750", "0.00"), ("566700", "0.15"), (None, "0.20")]),
    },
}

# ---------------------------------------------------------------------------
# AMT exemption amounts and phase-out start (25 cents per dollar above start)
# ---------------------------------------------------------------------------
AMT_PHASEOUT_RATE = Decimal("0.25")

AMT_EXEMPTION: dict[int, dict[FilingStatus, Decimal]] = {
    2023: {
        FilingStatus.SINGLE: Decimal("81300"),
        FilingStatus.MFJ: Decimal("126500"),
        FilingStatus.MFS: Decimal("63250"),
        FilingStatus.HOH: Decimal("81300"),
    },
    2024: {
        FilingStatus.SINGLE: Decimal("85700"),
        FilingStatus.MFJ: Decimal("133300"),
        FilingStatus.MFS: Decimal("66650"),
        FilingStatus.HOH: Decimal("85700"),
    },
    2025: {
        FilingStatus.SINGLE: Decimal("88100"),
        FilingStatus.MFJ: Decimal("137000"),
        FilingStatus.MFS: Decimal("68500"),
        FilingStatus.HOH: Decimal("88100"),
    },
}

AMT_PHASEOUT_START: dict[int, dict[FilingStatus, Decimal]] = {
    2023: {
        FilingStatus.SINGLE: Decimal("578150"),
        FilingStatus.MFJ: Decimal("1156300"),
        FilingStatus.MFS: Decimal("578150"),
        FilingStatus.HOH: Decimal("578150"),
    },
    2024: {
        FilingStatus.SINGLE: Decimal("609350"),
        FilingStatus.MFJ: Decimal("1218700"),
        FilingStatus.MFS: Decimal("609350"),
        FilingStatus.HOH: Decimal("609350"),
    },
    2025: {
        FilingStatus.SINGLE: Decimal("626350"),
        FilingStatus.MFJ: Decimal("1252700"),
        FilingStatus.MFS: Decimal("626350"),
        FilingStatus.HOH: Decimal("626350"),
    },
}

# AMT 28% threshold: applies to all filing statuses (MFS gets half)
AMT_28_PERCENT_THRESHOLD: dict[int, Decimal] = {
    2023: Decimal("220700"),
    2024: Decimal("232600"),
    2025: Decimal("239100"),
}
AMT_LOW_RATE = Decimal("0.26")
AMT_HIGH_RATE = Decimal("0.28")

# ---------------------------------------------------------------------------
# Medicare (IRC Section 3101(b)) and NIIT (IRC Section 1411).
# Thresholds are NOT inflation-adjusted: statutory amounts.
# ---------------------------------------------------------------------------
REGULAR_MEDICARE_TAX_RATE = Decimal("0.0145")
ADDITIONAL_MEDICARE_TAX_RATE = Decimal("0.009")
ADDITIONAL_MEDICARE_TAX_THRESHOLD: dict[FilingStatus, Decimal] = {
    FilingStatus.SINGLE: Decimal("200000"),
    FilingStatus.MFJ: Decimal("250000"),
    FilingStatus.MFS: Decimal("125000"),
    FilingStatus.HOH: Decimal("200000"),
}

NIIT_RATE = Decimal("0.038")
NIIT_THRESHOLD: dict[FilingStatus, Decimal] = {
    FilingStatus.SINGLE: Decimal("200000"),
    FilingStatus.MFJ: Decimal("250000"),
    FilingStatus.MFS: Decimal("125000"),
    FilingStatus.HOH: Decimal("200000"),
}

# ---------------------------------------------------------------------------
# Flat state income tax rates, keyed by postal code
# ---------------------------------------------------------------------------
DEFAULT_STATE_RATE = Decimal("0.05")

STATE_TAX_RATES: dict[str, Decimal] = {
    "AK": Decimal("0"),
    "CA": Decimal("0.133"),
    "CO": Decimal("0.044"),
    "FL": Decimal("0"),
    "IL": Decimal("0.0495"),
    "MA": Decimal("0.09"),
    "NH": Decimal("0"),
    "NJ": Decimal("0.1075"),
    "NV": Decimal("0"),
    "NY": Decimal("0.109"),
    "OR": Decimal("0.099"),
    "PA": Decimal("0.0307"),
    "SD": Decimal("0"),
    "TN": Decimal("0"),
    "TX": Decimal("0"),
    "WA": Decimal("0"),
    "WY": Decimal("0"),
}

STATE_NAMES: dict[str, str] = {
    "ALASKA": "AK",
    "CALIFORNIA": "CA",
    "COLORADO": "CO",
    "FLORIDA": "FL",
    "ILLINOIS": "IL",
    "MASSACHUSETTS": "MA",
    "NEW HAMPSHIRE": "NH",
    "NEW JERSEY": "NJ",
    "NEVADA": "NV",
    "NEW YORK": "NY",
    "OREGON": "OR",
    "PENNSYLVANIA": "PA",
    "SOUTH DAKOTA": "SD",
    "TENNESSEE": "TN",
    "TEXAS": "TX",
    "WASHINGTON": "WA",
    "WYOMING": "WY",
}


# ---------------------------------------------------------------------------
# Lookups with deterministic fallback
# ---------------------------------------------------------------------------

def nearest_year(table: Mapping[int, Any], year: int) -> int:
    """Closest year present in *table*; ties go to the later year."""
    if not table:
        raise TableLookupError("year table", "table is empty")
    return min(table, key=lambda known: (abs(known - year), -known))


def lookup_year_value(table: Mapping[int, Any], year: int, name: str) -> TableLookup:
    """Look up a value keyed by year only."""
    if year in table:
        return TableLookup(table[year], [])
    used = nearest_year(table, year)
    note = f"{name}: no table for {year}, using {used}"
    logger.info(note)
    return TableLookup(table[used], [note])


def lookup_year_table(
    table: Mapping[int, Mapping[FilingStatus, Any]],
    year: int,
    filing_status: FilingStatus,
    name: str,
) -> TableLookup:
    """Look up a value keyed by year then filing status."""
    by_status, notes = lookup_year_value(table, year, name)
    if filing_status in by_status:
        return TableLookup(by_status[filing_status], notes)
    if FilingStatus.SINGLE not in by_status:
        raise TableLookupError(name, f"no entry for {filing_status}")
    note = f"{name}: no {filing_status} entry, using {FilingStatus.SINGLE}"
    logger.info(note)
    return TableLookup(by_status[FilingStatus.SINGLE], [*notes, note])


def normalize_state(state: str) -> str:
    key = state.strip().upper()
    return STATE_NAMES.get(key, key)


def lookup_state_rate(state: str) -> TableLookup:
    """Flat rate for *state* (postal code or full name)."""
    code = normalize_state(state)
    if code in STATE_TAX_RATES:
        return TableLookup(STATE_TAX_RATES[code], [])
    note = f"state rate: unknown state '{state}', using default rate {DEFAULT_STATE_RATE}"
    logger.info(note)
    return TableLookup(DEFAULT_STATE_RATE, [note])


def amt_brackets(year: int, filing_status: FilingStatus) -> TableLookup:
    """Two-tier AMT rate schedule (26% up to the breakpoint, 28% above)."""
    breakpoint, notes = lookup_year_value(AMT_28_PERCENT_THRESHOLD, year, "AMT 28% threshold")
    # MFS filers use half the 28% threshold per IRC Section 55(b)(1)(A)(i)
    if filing_status == FilingStatus.MFS:
        breakpoint = breakpoint / 2
    return TableLookup(
        [Bracket(ZERO, breakpoint, AMT_LOW_RATE), Bracket(breakpoint, None, AMT_HIGH_RATE)],
        notes,
    )
