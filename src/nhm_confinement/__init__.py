"""NHM channel confinement estimation and river network gap filling."""

# Import only the tabular core at package load time
from . import config
from .confinement import (
    ConfinementAggregator,
    ReachWidthConfinementEstimator,
    aggregate_mcmanamay_confinement,
)
from .exceptions import ConfigurationError
from .network import (
    GapFillRecord,
    NeighborGapFiller,
    ReachDistanceMatrix,
    refine_from_neighbors,
)

# Lazy import - FACET processing pulls in geopandas
def get_facet():
    from .confinement import facet
    return facet

__version__ = "0.1.0"
__all__ = [
    'config',
    'ConfigurationError',
    'ConfinementAggregator',
    'ReachWidthConfinementEstimator',
    'aggregate_mcmanamay_confinement',
    'ReachDistanceMatrix',
    'NeighborGapFiller',
    'GapFillRecord',
    'refine_from_neighbors',
    'get_facet',
]
