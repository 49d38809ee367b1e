"""River network distances and neighbor-based gap filling."""

from .distance_matrix import ReachDistanceMatrix
from .gap_filler import (
    FILLED_FROM_MEDIAN,
    FILLED_FROM_NEIGHBOR,
    GapFillRecord,
    NeighborGapFiller,
    refine_from_neighbors,
)

__all__ = [
    'ReachDistanceMatrix',
    'NeighborGapFiller',
    'GapFillRecord',
    'refine_from_neighbors',
    'FILLED_FROM_NEIGHBOR',
    'FILLED_FROM_MEDIAN',
]
