"""
Reach-level (NHDPlusv2 COMID) channel confinement estimates.

McManamay and DeRolph (2018, https://doi.org/10.1038/sdata.2019.17) publish
confinement classes along with the reach length, reach area, valley bottom
length and valley bottom area behind them. Channel and floodplain widths can
be back-calculated from those variables, giving a numeric confinement value
(floodplain width / channel width) instead of a class.
"""

import logging
from typing import Optional

import pandas as pd

from ..config import COMID_COL
from ..exceptions import check_columns

logger = logging.getLogger(__name__)

MCMANAMAY_RENAMES = {
    'RL': 'reach_length_km',
    'VBL': 'valley_bottom_length',
    'RWA': 'reach_area',
    'VBA': 'valley_bottom_area',
    'VBL_RL_R': 'vbl_rl_ratio',
    'VBA_RWA_R': 'vba_ra_ratio',
}

MCMANAMAY_REQUIRED = [COMID_COL, 'RL', 'VBL', 'RWA', 'VBA']


def safe_ratio(numerator: pd.Series, denominator: pd.Series) -> pd.Series:
    """Divide two series, returning NaN wherever either operand is zero or missing.

    Zero denominators are masked before dividing so that the result never
    contains +/-inf.
    """
    numerator = pd.to_numeric(numerator, errors='coerce')
    denominator = pd.to_numeric(denominator, errors='coerce')
    valid = (numerator != 0) & (denominator != 0) & numerator.notna() & denominator.notna()
    return numerator.where(valid) / denominator.where(valid)


def width_from_area(area: pd.Series, length_km: pd.Series) -> pd.Series:
    """Mean width (m) of a feature with the given area (m2) and length (km)."""
    length_m = pd.to_numeric(length_km, errors='coerce') * 1000
    return pd.to_numeric(area, errors='coerce') / length_m.where(length_m != 0)


class ReachWidthConfinementEstimator:
    """Estimates channel width, floodplain width and confinement for each reach."""

    def __init__(self, force_min_width_m: float = 0):
        """
        Args:
            force_min_width_m: Back-calculated channel widths below this value
                are raised to it. Zero (the default) leaves widths unchanged.
        """
        if force_min_width_m < 0:
            raise ValueError(f"force_min_width_m must be >= 0, got {force_min_width_m}")
        self.force_min_width_m = force_min_width_m

    def back_calculate_widths(self, confinement_data: pd.DataFrame) -> pd.DataFrame:
        """
        Rename McManamay variables and back-calculate reach widths.

        Args:
            confinement_data: McManamay confinement table with columns
                "COMID", "RL", "VBL", "RWA" and "VBA"

        Returns:
            Copy of the table with renamed columns plus "river_width_m_mcmanamay"
            and "floodplain_width_m_mcmanamay"
        """
        check_columns(confinement_data.columns, MCMANAMAY_REQUIRED, "McManamay confinement data")

        reaches = confinement_data.rename(columns=MCMANAMAY_RENAMES)
        reaches[COMID_COL] = reaches[COMID_COL].astype(str)

        river_width = width_from_area(reaches['reach_area'], reaches['reach_length_km'])
        # A zero valley bottom length leaves floodplain width undefined, not zero
        floodplain_width = width_from_area(reaches['valley_bottom_area'],
                                           reaches['valley_bottom_length'])

        if self.force_min_width_m > 0:
            below_min = river_width < self.force_min_width_m
            if below_min.any():
                logger.info(f"Raising {int(below_min.sum())} channel widths to "
                            f"{self.force_min_width_m} m")
            river_width = river_width.mask(below_min, float(self.force_min_width_m))

        reaches['river_width_m_mcmanamay'] = river_width
        reaches['floodplain_width_m_mcmanamay'] = floodplain_width
        return reaches

    def estimate(
        self,
        confinement_data: pd.DataFrame,
        preferred_width_df: Optional[pd.DataFrame] = None
    ) -> pd.DataFrame:
        """
        Estimate reach confinement from McManamay variables.

        Args:
            confinement_data: McManamay confinement table
            preferred_width_df: Optional table with columns "COMID" and "width_m".
                When given, these widths replace the back-calculated channel
                widths in the confinement ratio.

        Returns:
            DataFrame with "COMID", "reach_length_km", "river_width_m",
            "floodplain_width_m" and "confinement_calc_mcmanamay". When preferred
            widths are used, "river_width_m_mcmanamay" keeps the back-calculated
            width for comparison.
        """
        reaches = self.back_calculate_widths(confinement_data)

        if preferred_width_df is not None:
            check_columns(preferred_width_df.columns, [COMID_COL, 'width_m'], "preferred width data")
            widths = preferred_width_df[[COMID_COL, 'width_m']].copy()
            widths[COMID_COL] = widths[COMID_COL].astype(str)
            widths = widths.drop_duplicates(subset=COMID_COL)
            reaches = reaches.merge(widths, on=COMID_COL, how='left')
            reaches['river_width_m'] = pd.to_numeric(reaches['width_m'], errors='coerce')
            n_missing = int(reaches['river_width_m'].isna().sum())
            if n_missing:
                logger.warning(f"{n_missing} reaches have no preferred width")
        else:
            reaches['river_width_m'] = reaches['river_width_m_mcmanamay']

        reaches['floodplain_width_m'] = reaches['floodplain_width_m_mcmanamay']
        reaches['confinement_calc_mcmanamay'] = safe_ratio(reaches['floodplain_width_m'],
                                                           reaches['river_width_m'])

        out_cols = [COMID_COL, 'reach_length_km', 'river_width_m',
                    'floodplain_width_m', 'confinement_calc_mcmanamay']
        if preferred_width_df is not None:
            out_cols.append('river_width_m_mcmanamay')

        n_defined = int(reaches['confinement_calc_mcmanamay'].notna().sum())
        logger.info(f"Estimated confinement for {n_defined} of {len(reaches)} reaches")
        return reaches[out_cols].reset_index(drop=True)


def estimate_width_confinement(
    reach_df: pd.DataFrame,
    width_col: str,
    floodplain_width_col: str,
    value_col: str
) -> pd.DataFrame:
    """Confinement from width columns supplied directly (no back-calculation).

    Returns a copy of `reach_df` with `value_col` added.
    """
    check_columns(reach_df.columns, [width_col, floodplain_width_col], "reach width data")
    out = reach_df.copy()
    out[value_col] = safe_ratio(out[floodplain_width_col], out[width_col])
    return out
