"""
Fill missing segment attributes from neighboring segments in the river network.

For each segment S with a missing value, the distances d(X, S) from the other
segments (the column of S in the distance table) are scanned for the nearest
connected segment, in the requested direction, that has a value of its own:

1. "upstream" considers segments X with d(X, S) > 0, nearest first.
2. "downstream" considers segments X with d(X, S) < 0, nearest first.
3. "nearest" considers every connected segment by absolute distance.

When no such neighbor exists, the segment takes the median of the values
present before any filling. Every filled row records where its value came
from in a "flag_gaps" column. Values that were already present are never
changed, so filling a complete column only adds an empty flag column.

Adapted from the drb-inland-salinity-ml approach:
https://github.com/USGS-R/drb-inland-salinity-ml/blob/main/2_process/src/process_nhdv2_attr.R#L483-L559
"""

from dataclasses import dataclass
import logging
from typing import Dict, List, Optional, Union

import numpy as np
import pandas as pd
from tqdm import tqdm

from ..config import DEFAULT_NHM_ID_COL, GAP_FLAG_COL
from ..exceptions import ConfigurationError, check_neighbors
from .distance_matrix import ReachDistanceMatrix

logger = logging.getLogger(__name__)

FILLED_FROM_NEIGHBOR = "FILLED_FROM_NEIGHBOR"
FILLED_FROM_MEDIAN = "FILLED_FROM_MEDIAN"


@dataclass(frozen=True)
class GapFillRecord:
    """Replacement value for one segment that was missing an attribute."""
    segment_id: str
    value: float
    flag: str
    status: str
    source_id: Optional[str] = None
    distance_m: Optional[float] = None


def format_distance_km(distance_m: float) -> str:
    """Absolute distance in km, rounded to 0.1 km, without a trailing ".0"."""
    km = round(abs(distance_m) / 1000, 1)
    return f"{km:.1f}".rstrip('0').rstrip('.')


class NeighborGapFiller:
    """Imputes missing attribute values from neighboring segments."""

    def __init__(
        self,
        reach_distances: ReachDistanceMatrix,
        neighbors: str = "upstream",
        nhm_identifier_col: str = DEFAULT_NHM_ID_COL,
        show_progress: bool = False
    ):
        """
        Initialize gap filler.

        Args:
            reach_distances: Signed distances between connected segments
            neighbors: "upstream", "downstream" or "nearest"
            nhm_identifier_col: Column with the segment identifier
                (e.g. "seg_id_nat" or "PRMS_segid")
            show_progress: Display a progress bar while filling
        """
        self.neighbors = check_neighbors(neighbors)
        self.reach_distances = reach_distances
        self.nhm_identifier_col = nhm_identifier_col
        self.show_progress = show_progress

    def find_neighbor_value(
        self,
        segment_id,
        attr_name: str,
        attr_values: pd.Series,
        median_value: float
    ) -> GapFillRecord:
        """
        Find the replacement value for one segment.

        Args:
            segment_id: Segment missing a value
            attr_name: Attribute being filled, used in the flag text
            attr_values: Original attribute values indexed by segment identifier (str)
            median_value: Fallback value

        Returns:
            GapFillRecord describing the replacement
        """
        candidates = self.reach_distances.candidates(segment_id, self.neighbors)
        candidate_values = attr_values.reindex(candidates.index)
        has_value = candidate_values.notna().to_numpy()

        if has_value.any():
            first = int(np.argmax(has_value))
            source_id = candidates.index[first]
            distance = float(candidates.iloc[first])
            flag = (f"{attr_name} was filled from neighbors: {source_id} "
                    f"({format_distance_km(distance)} km away).")
            logger.debug(f"Segment {segment_id}: {flag}")
            return GapFillRecord(
                segment_id=str(segment_id),
                value=candidate_values.iloc[first],
                flag=flag,
                status=FILLED_FROM_NEIGHBOR,
                source_id=source_id,
                distance_m=distance
            )

        logger.debug(f"Segment {segment_id}: no {self.neighbors} neighbor with a value, using median")
        return GapFillRecord(
            segment_id=str(segment_id),
            value=median_value,
            flag=f"{attr_name} was filled using median value from non-NA segments.",
            status=FILLED_FROM_MEDIAN
        )

    def fill(self, attr_df: pd.DataFrame, attr_name: str) -> pd.DataFrame:
        """
        Fill missing values of one attribute column.

        Args:
            attr_df: Attribute table with one row per segment
            attr_name: Column to fill

        Returns:
            Copy of `attr_df` with missing `attr_name` values filled and a
            "flag_gaps" column describing each replacement
        """
        id_col = self.nhm_identifier_col
        for col in (id_col, attr_name):
            if col not in attr_df.columns:
                raise ConfigurationError(f"Column '{col}' not found in attribute data",
                                         option="attr_name" if col == attr_name else "nhm_identifier_col")

        segment_ids = attr_df[id_col].astype(str)
        attr_values = pd.Series(attr_df[attr_name].to_numpy(), index=segment_ids.to_numpy())
        attr_values = attr_values[~attr_values.index.duplicated(keep='first')]

        # Median of the original values, before any gaps are filled
        median_value = attr_df[attr_name].median(skipna=True)

        missing = attr_df[attr_name].isna()
        missing_ids = segment_ids[missing].unique().tolist()

        records = self.find_replacements(missing_ids, attr_name, attr_values, median_value)
        return self.apply_replacements(attr_df, attr_name, records)

    def find_replacements(
        self,
        missing_ids: List[str],
        attr_name: str,
        attr_values: pd.Series,
        median_value: float
    ) -> Dict[str, GapFillRecord]:
        if not missing_ids:
            logger.info(f"No missing values to fill for {attr_name}")
            return {}

        not_in_network = [s for s in missing_ids if s not in self.reach_distances]
        if not_in_network:
            logger.warning(f"{len(not_in_network)} segments missing {attr_name} are not in "
                           "the distance matrix and will use the median value")
        if pd.isna(median_value):
            logger.warning(f"No non-missing {attr_name} values; median fallback is undefined")

        records = {}
        for segment_id in tqdm(missing_ids, desc=f"Filling {attr_name}", disable=not self.show_progress):
            records[segment_id] = self.find_neighbor_value(segment_id, attr_name,
                                                           attr_values, median_value)

        n_neighbor = sum(r.status == FILLED_FROM_NEIGHBOR for r in records.values())
        logger.info(f"Filled {len(records)} missing {attr_name} values: {n_neighbor} from "
                    f"{self.neighbors} neighbors, {len(records) - n_neighbor} from the median")
        return records

    def apply_replacements(
        self,
        attr_df: pd.DataFrame,
        attr_name: str,
        records: Dict[str, GapFillRecord]
    ) -> pd.DataFrame:
        filled = attr_df.copy()
        flags = pd.Series(None, index=filled.index, dtype=object)

        missing = filled[attr_name].isna()
        if missing.any():
            ids = filled.loc[missing, self.nhm_identifier_col].astype(str)
            filled.loc[missing, attr_name] = ids.map(lambda s: records[s].value).to_numpy()
            flags.loc[missing] = ids.map(lambda s: records[s].flag).to_numpy()

        filled[GAP_FLAG_COL] = flags
        return filled


def refine_from_neighbors(
    attr_df: pd.DataFrame,
    attr_name: str,
    reach_distances: Union[ReachDistanceMatrix, pd.DataFrame],
    nhm_identifier_col: str = DEFAULT_NHM_ID_COL,
    neighbors: str = "upstream"
) -> pd.DataFrame:
    """
    Fill NA values of `attr_name` from upstream, downstream or nearest neighbors.

    Args:
        attr_df: Attribute table with one row per segment
        attr_name: Attribute column to fill
        reach_distances: ReachDistanceMatrix, or a wide table with a "from"
            column and one column per target segment
        nhm_identifier_col: Column with the segment identifier
        neighbors: "upstream", "downstream" or "nearest"

    Returns:
        `attr_df` with NA values filled and a "flag_gaps" column
    """
    check_neighbors(neighbors)
    if isinstance(reach_distances, pd.DataFrame):
        reach_distances = ReachDistanceMatrix.from_dataframe(reach_distances)

    filler = NeighborGapFiller(reach_distances, neighbors=neighbors,
                               nhm_identifier_col=nhm_identifier_col)
    return filler.fill(attr_df, attr_name)
