"""
Channel confinement estimates for NHDPlusv2 reaches and NHM segments.

This module provides functionality for:
1. Back-calculating channel and floodplain widths from McManamay variables
2. Matching FACET geomorphic metrics to NHDPlusv2 catchments (see `facet`)
3. Aggregating reach values to NHM segments with coverage flags
"""

from .aggregator import (
    AggregateColumns,
    ConfinementAggregator,
    FACET_COLUMNS,
    MCMANAMAY_COLUMNS,
)
from .mcmanamay import aggregate_mcmanamay_confinement
from .reach_estimator import ReachWidthConfinementEstimator, safe_ratio

__all__ = [
    "AggregateColumns",
    "ConfinementAggregator",
    "FACET_COLUMNS",
    "MCMANAMAY_COLUMNS",
    "ReachWidthConfinementEstimator",
    "aggregate_mcmanamay_confinement",
    "safe_ratio",
]
