"""equitycalc: vesting, tax, and exit-strategy calculations for equity compensation."""

from equitycalc.engines.decision import decision_factors
from equitycalc.engines.estimator import compute_tax
from equitycalc.engines.scenarios import analyze_exit
from equitycalc.engines.vesting import vested_shares

__version__ = "0.1.0"

__all__ = [
    "analyze_exit",
    "compute_tax",
    "decision_factors",
    "vested_shares",
]
