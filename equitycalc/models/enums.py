"""Enumerations for equitycalc."""

from enum import StrEnum


class GrantType(StrEnum):
    ISO = "ISO"
    NSO = "NSO"
    RSU = "RSU"


class VestingCadence(StrEnum):
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    YEARLY = "yearly"
    LINEAR = "linear"

    @classmethod
    def _missing_(cls, value: object) -> "VestingCadence":
        # Unrecognized schedules vest linearly over the whole window.
        if isinstance(value, str):
            for member in cls:
                if member.value == value.lower():
                    return member
        return cls.LINEAR


class FilingStatus(StrEnum):
    SINGLE = "single"
    MFJ = "married_joint"
    MFS = "married_separate"
    HOH = "head_of_household"


class DispositionType(StrEnum):
    QUALIFYING = "QUALIFYING"
    DISQUALIFYING = "DISQUALIFYING"
    NOT_APPLICABLE = "NOT_APPLICABLE"


class HoldingPeriod(StrEnum):
    SHORT_TERM = "SHORT_TERM"
    LONG_TERM = "LONG_TERM"


class ExitType(StrEnum):
    IPO = "ipo"
    ACQUISITION = "acquisition"
    SECONDARY = "secondary"


class RiskTolerance(StrEnum):
    VERY_LOW = "very_low"
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    VERY_HIGH = "very_high"


class CompanyStage(StrEnum):
    SEED = "seed"
    EARLY = "early"
    GROWTH = "growth"
    LATE = "late"
    PRE_IPO = "pre_ipo"
    PUBLIC = "public"


class FinancingHistory(StrEnum):
    STRONG = "strong"
    MODERATE = "moderate"
    WEAK = "weak"
    UNKNOWN = "unknown"


class ExitTimeline(StrEnum):
    IMMINENT = "imminent"
    ONE_TO_TWO_YEARS = "1-2_years"
    THREE_TO_FIVE_YEARS = "3-5_years"
    FIVE_PLUS_YEARS = "5+_years"
    UNKNOWN = "unknown"


class RiskLevel(StrEnum):
    LOW = "low"
    MEDIUM_LOW = "medium-low"
    MEDIUM = "medium"
    MEDIUM_HIGH = "medium-high"
    HIGH = "high"


class MarketConditions(StrEnum):
    FAVORABLE = "favorable"
    NEUTRAL = "neutral"
    UNFAVORABLE = "unfavorable"


class WeightPreset(StrEnum):
    DECISION_TOOL = "decision_tool"
    CALCULATOR = "calculator"
