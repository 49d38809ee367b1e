"""
Segment-level aggregation of reach confinement estimates.

Each NHM segment is made up of one or more NHDPlusv2 reaches (COMIDs). The
segment value is a length-weighted mean of the reach values:

1. Every member reach contributes its length to the segment's total length,
   whether or not it carries a confinement value.

2. Only reaches with a confinement value enter the weighted mean, in both
   the numerator and the denominator. For example, a segment made of reach A
   (2 km, confinement 0.5) and reach B (3 km, no value) has a total length of
   5 km, 3 km without data, a coverage of 0.4 and a confinement of 0.5.

3. Coverage is the share of the total length backed by reaches with a value.
   A segment with no covered length has no confinement value, and any segment
   with coverage below 70% carries a warning in its flag column so that
   callers can decide what to do with low-confidence rows.

Reach lengths that are themselves missing make the segment totals missing.
"""

from dataclasses import dataclass
import logging
from typing import Optional

import numpy as np
import pandas as pd

from ..config import COVERAGE_THRESHOLD, DEFAULT_NHM_ID_COL
from ..exceptions import ConfigurationError, check_columns

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AggregateColumns:
    """Output column names for one confinement data source."""
    total_length: str
    missing_length: str
    coverage: str
    value: str
    flag: str
    coverage_description: str

    @property
    def flag_message(self) -> str:
        return ("Note that <70% of the NHM segment is covered by a COMID "
                f"with {self.coverage_description}.")


MCMANAMAY_COLUMNS = AggregateColumns(
    total_length='reach_length_km',
    missing_length='lengthkm_mcmanamay_is_na',
    coverage='prop_reach_w_mcmanamay',
    value='confinement_calc_mcmanamay',
    flag='flag_mcmanamay',
    coverage_description='McManamay confinement data'
)

FACET_COLUMNS = AggregateColumns(
    total_length='lengthkm',
    missing_length='lengthkm_facet_is_na',
    coverage='prop_reach_w_facet',
    value='confinement_calc_facet',
    flag='flag_facet',
    coverage_description='FACET data'
)


def _sum_keep_na(values: pd.Series) -> float:
    return values.sum(skipna=False)


class ConfinementAggregator:
    """Aggregates reach confinement values to NHM segments."""

    def __init__(
        self,
        columns: AggregateColumns = MCMANAMAY_COLUMNS,
        segment_col: str = DEFAULT_NHM_ID_COL,
        coverage_threshold: float = COVERAGE_THRESHOLD
    ):
        """Initialize aggregator.

        Args:
            columns: Output column names for the data source being aggregated
            segment_col: Column holding the segment identifier to group by
                (e.g. "seg_id_nat" or "PRMS_segid")
            coverage_threshold: Segments with coverage below this value are flagged
        """
        if not segment_col:
            raise ConfigurationError("A segment identifier column is required",
                                     option="nhm_identifier_col")
        self.columns = columns
        self.segment_col = segment_col
        self.coverage_threshold = coverage_threshold

        logger.debug(f"Initialized confinement aggregator grouping by {segment_col}")

    def aggregate(
        self,
        reach_df: pd.DataFrame,
        length_col: str,
        value_col: str,
        flag_message: Optional[str] = None
    ) -> pd.DataFrame:
        """Aggregate reach values to one row per segment.

        Args:
            reach_df: DataFrame with one row per reach, holding the segment
                identifier, the reach length (km) and the reach value
            length_col: Column with reach lengths in km
            value_col: Column with reach confinement values (may be missing)
            flag_message: Optional override for the low-coverage warning

        Returns:
            DataFrame with the segment identifier, total length, length without
            a value, coverage fraction, weighted value and flag columns
        """
        check_columns(reach_df.columns, [self.segment_col, length_col, value_col],
                      "reach confinement data")
        cols = self.columns
        message = flag_message or cols.flag_message

        # Rows without a segment identifier did not join to the crosswalk
        reaches = reach_df.loc[reach_df[self.segment_col].notna(),
                               [self.segment_col, length_col, value_col]].copy()
        n_unmatched = len(reach_df) - len(reaches)
        if n_unmatched:
            logger.info(f"Excluded {n_unmatched} reaches without a {self.segment_col}")

        lengths = pd.to_numeric(reaches[length_col], errors='coerce')
        values = pd.to_numeric(reaches[value_col], errors='coerce')
        has_value = values.notna()

        reaches['_length'] = lengths
        reaches['_length_na'] = lengths.where(~has_value, 0.0)
        reaches['_weighted_value'] = (values * lengths).where(has_value, 0.0)
        reaches['_weight'] = lengths.where(has_value, 0.0)

        grouped = reaches.groupby(self.segment_col, sort=True)
        summary = grouped[['_length', '_length_na', '_weighted_value', '_weight']].agg(_sum_keep_na)

        total = summary['_length']
        missing = summary['_length_na']
        coverage = (total - missing) / total.where(total != 0)

        weight = summary['_weight']
        weighted_mean = summary['_weighted_value'] / weight.where(weight != 0)
        value = weighted_mean.where(coverage > 0)

        flag = pd.Series(
            np.where(coverage < self.coverage_threshold, message, None),
            index=summary.index,
            dtype=object
        )

        segments = pd.DataFrame({
            cols.total_length: total,
            cols.missing_length: missing,
            cols.coverage: coverage,
            cols.value: value,
            cols.flag: flag,
        }).reset_index()

        n_flagged = int(segments[cols.flag].notna().sum())
        logger.info(f"Aggregated {len(reaches)} reaches to {len(segments)} segments "
                    f"({n_flagged} flagged for coverage below {self.coverage_threshold:.0%})")
        return segments
