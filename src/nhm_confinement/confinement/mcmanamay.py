"""
Channel confinement from the McManamay and DeRolph (2018) dataset.

Reach values are estimated with ReachWidthConfinementEstimator and, when the
NHM network is requested, aggregated to NHM segments with ConfinementAggregator.
"""

import logging
from typing import Optional

import pandas as pd

from ..config import COMID_COL, DEFAULT_NHM_ID_COL
from ..exceptions import check_columns, check_network
from .aggregator import ConfinementAggregator, MCMANAMAY_COLUMNS
from .reach_estimator import ReachWidthConfinementEstimator

logger = logging.getLogger(__name__)


def aggregate_mcmanamay_confinement(
    confinement_data: pd.DataFrame,
    nhd_nhm_xwalk: pd.DataFrame,
    force_min_width_m: float = 0,
    preferred_width_df: Optional[pd.DataFrame] = None,
    network: str = "nhdv2",
    nhm_identifier_col: str = DEFAULT_NHM_ID_COL
) -> pd.DataFrame:
    """
    Process McManamay channel confinement data for NHDPlusv2 reaches or NHM segments.

    Args:
        confinement_data: McManamay confinement table. Must include columns
            "COMID", "VBL", "RL", "RWA" and "VBA".
        nhd_nhm_xwalk: Crosswalk from NHDPlusv2 COMIDs to NHM segments. Must
            contain "COMID" and the column named by `nhm_identifier_col`.
        force_min_width_m: Minimum channel width used in the confinement ratio.
            Zero leaves widths unchanged.
        preferred_width_df: Optional table with columns "COMID" and "width_m"
            that replaces the back-calculated channel widths.
        network: "nhdv2" for one row per COMID or "nhm" for one row per NHM segment
        nhm_identifier_col: Segment identifier used when `network` is "nhm"
            (e.g. "seg_id_nat" or "PRMS_segid")

    Returns:
        For "nhdv2": "COMID", "reach_length_km", "river_width_m",
        "floodplain_width_m" and "confinement_calc_mcmanamay".
        For "nhm": `nhm_identifier_col`, "reach_length_km",
        "lengthkm_mcmanamay_is_na", "prop_reach_w_mcmanamay",
        "confinement_calc_mcmanamay" and "flag_mcmanamay".
    """
    check_network(network)
    required_xwalk = [COMID_COL] + ([nhm_identifier_col] if network == "nhm" else [])
    check_columns(nhd_nhm_xwalk.columns, required_xwalk, "NHD-NHM crosswalk")

    xwalk = nhd_nhm_xwalk.copy()
    xwalk[COMID_COL] = xwalk[COMID_COL].astype(str)

    # Subset to the COMIDs that make up the NHM network
    subset = confinement_data[confinement_data[COMID_COL].astype(str).isin(xwalk[COMID_COL])]
    logger.info(f"Subset McManamay data to {len(subset)} of {len(confinement_data)} COMIDs "
                "found in the crosswalk")

    estimator = ReachWidthConfinementEstimator(force_min_width_m=force_min_width_m)
    confinement_nhd = estimator.estimate(subset, preferred_width_df=preferred_width_df)

    if network == "nhdv2":
        return confinement_nhd

    confinement_w_nhm_segs = confinement_nhd.merge(
        xwalk,
        on=COMID_COL,
        how='left'
    )

    aggregator = ConfinementAggregator(columns=MCMANAMAY_COLUMNS, segment_col=nhm_identifier_col)
    return aggregator.aggregate(
        confinement_w_nhm_segs,
        length_col='reach_length_km',
        value_col='confinement_calc_mcmanamay'
    )
