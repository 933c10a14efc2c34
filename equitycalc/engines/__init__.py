"""Vesting, tax, decision, and scenario engines."""

from equitycalc.engines.decision import DecisionEngine
from equitycalc.engines.estimator import TaxEstimator
from equitycalc.engines.iso_amt import ISOAMTEngine
from equitycalc.engines.scenarios import ScenarioEngine
from equitycalc.engines.vesting import VestingEngine

__all__ = [
    "DecisionEngine",
    "ISOAMTEngine",
    "ScenarioEngine",
    "TaxEstimator",
    "VestingEngine",
]
