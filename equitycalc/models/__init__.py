"""Data models for equitycalc."""

from equitycalc.models.decision import (
    DecisionFactors,
    DecisionInput,
    DecisionWeights,
    Recommendation,
)
from equitycalc.models.enums import (
    CompanyStage,
    DispositionType,
    ExitTimeline,
    ExitType,
    FilingStatus,
    FinancingHistory,
    GrantType,
    HoldingPeriod,
    MarketConditions,
    RiskLevel,
    RiskTolerance,
    VestingCadence,
    WeightPreset,
)
from equitycalc.models.grant import (
    CombinedVestingMonth,
    DoubleTriggerRelease,
    Grant,
    VestingEvent,
    VestingStatus,
)
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
from equitycalc.models.tax import (
    AMTResult,
    FederalBreakdown,
    ISOLimitYear,
    MedicareNIIT,
    StateTaxLine,
    StateTaxResult,
    TaxResult,
    TaxSettings,
    TaxTotals,
)

__all__ = [
    "AMTResult",
    "BatchDetail",
    "CombinedVestingMonth",
    "CompanyStage",
    "DecisionFactors",
    "DecisionInput",
    "DecisionWeights",
    "DispositionType",
    "DoubleTriggerRelease",
    "ExitComparison",
    "ExitTimeline",
    "ExitType",
    "FederalBreakdown",
    "ISOLimitYear",
    "FilingStatus",
    "FinancingHistory",
    "Grant",
    "GrantStrategyDetail",
    "GrantType",
    "HoldingPeriod",
    "MarketConditions",
    "MedicareNIIT",
    "Recommendation",
    "RiskFactor",
    "RiskLevel",
    "RiskTolerance",
    "ScenarioParams",
    "ScenarioResult",
    "SkippedGrant",
    "StateTaxLine",
    "StateTaxResult",
    "StrategyOutcome",
    "TaxResult",
    "TaxSettings",
    "TaxTotals",
    "VestingCadence",
    "VestingEvent",
    "VestingStatus",
    "WeightPreset",
]
