"""
Channel confinement from the DRB FACET geomorphic dataset.

FACET derives channel and floodplain widths from 3-m LiDAR along its own
stream network (https://doi.org/10.5066/P9RQJPT1). To attach FACET metrics to
NHDPlusv2 reaches:

1. Each FACET segment is matched to the NHDPlusv2 catchments it intersects.
2. Within each catchment the FACET segment with the largest Shreve magnitude
   represents the COMID. Ties are broken by the larger upstream contributing
   area, then by the smaller FACET UniqueID.
3. Confinement is the FACET floodplain width divided by the channel width.

NHM segment values reuse the length-weighted aggregation and coverage
flagging applied to the McManamay data.
"""

import logging
import warnings
from typing import Optional

import geopandas as gpd
import pandas as pd

from ..config import (
    COMID_COL,
    DEFAULT_NHM_ID_COL,
    FACET_FLOODPLAIN_WIDTH_COL,
    FACET_WIDTH_COL,
)
from ..exceptions import check_columns, check_network
from .aggregator import ConfinementAggregator, FACET_COLUMNS
from .reach_estimator import estimate_width_confinement

logger = logging.getLogger(__name__)

FACET_ID_COL = "UniqueID"
MAGNITUDE_COL = "Magnitude"
AREA_COL = "USContArea"
FACET_KEEP_COLS = [COMID_COL, FACET_ID_COL, "HUC4", MAGNITUDE_COL, AREA_COL]


def intersect_network_with_catchments(
    facet_network: gpd.GeoDataFrame,
    nhd_catchment_polygons: gpd.GeoDataFrame,
    show_warnings: bool = False
) -> gpd.GeoDataFrame:
    """
    Pair every FACET segment with each NHDPlusv2 catchment it intersects.

    Args:
        facet_network: FACET stream network (lines)
        nhd_catchment_polygons: NHDPlusv2 catchments with a "COMID" column
        show_warnings: Emit warnings raised during the spatial join

    Returns:
        GeoDataFrame with one row per FACET segment / catchment pair
    """
    check_columns(nhd_catchment_polygons.columns, [COMID_COL], "NHDPlusv2 catchments")

    catchments = nhd_catchment_polygons[[COMID_COL, 'geometry']]
    if facet_network.crs != catchments.crs:
        logger.info("CRS are different. Transforming catchments to the FACET CRS")
        catchments = catchments.to_crs(facet_network.crs)

    with warnings.catch_warnings():
        if not show_warnings:
            warnings.simplefilter("ignore")
        joined = gpd.sjoin(facet_network, catchments, how='inner', predicate='intersects')

    joined = joined.drop(columns='index_right', errors='ignore')
    logger.info(f"Matched {joined[COMID_COL].nunique()} catchments to FACET segments")
    return joined


def select_dominant_features(
    facet_nhd: pd.DataFrame,
    group_col: str = COMID_COL
) -> pd.DataFrame:
    """
    Keep the FACET segment with the largest magnitude in each catchment.

    Args:
        facet_nhd: FACET segments paired with catchments. Must contain
            `group_col`, "Magnitude" and "USContArea".
        group_col: Catchment identifier

    Returns:
        One row per catchment, with the identifier stored as a string
    """
    check_columns(facet_nhd.columns, [group_col, MAGNITUDE_COL, AREA_COL], "FACET network")

    sort_cols = [MAGNITUDE_COL, AREA_COL]
    ascending = [False, False]
    if FACET_ID_COL in facet_nhd.columns:
        sort_cols.append(FACET_ID_COL)
        ascending.append(True)

    dominant = (facet_nhd
                .sort_values(sort_cols, ascending=ascending, kind='mergesort')
                .groupby(group_col, sort=False)
                .head(1)
                .copy())
    dominant[group_col] = dominant[group_col].astype(str)
    return dominant.reset_index(drop=True)


def calculate_facet_confinement(
    facet_nhd: pd.DataFrame,
    nhd_nhm_xwalk: pd.DataFrame,
    facet_width_col: str = FACET_WIDTH_COL,
    facet_floodplain_width_col: str = FACET_FLOODPLAIN_WIDTH_COL,
    network: str = "nhdv2",
    nhm_identifier_col: str = DEFAULT_NHM_ID_COL,
    nhd_lengths: Optional[pd.DataFrame] = None
) -> pd.DataFrame:
    """
    Estimate channel confinement from FACET geomorphic metrics.

    Args:
        facet_nhd: One FACET segment per COMID, see select_dominant_features
        nhd_nhm_xwalk: Crosswalk from NHDPlusv2 COMIDs to NHM segments
        facet_width_col: FACET column used as channel width. Defaults to
            "CW955mean_1D", mean channel width within the 5th-95th percentile.
        facet_floodplain_width_col: FACET column used as floodplain width.
            Defaults to "FWmean_1D_FP", mean total floodplain width.
        network: "nhdv2" or "nhm"
        nhm_identifier_col: Segment identifier used when `network` is "nhm"
        nhd_lengths: Reach lengths with columns "COMID" and "lengthkm".
            Required when `network` is "nhm".

    Returns:
        For "nhdv2": one row per crosswalk COMID with the FACET identifiers,
        "channel_width", "floodplain_width" and "confinement_calc_facet".
        For "nhm": `nhm_identifier_col`, "lengthkm", "lengthkm_facet_is_na",
        "prop_reach_w_facet", "confinement_calc_facet" and "flag_facet".
    """
    check_network(network)
    if network == "nhm":
        if nhd_lengths is None:
            raise ValueError("nhd_lengths is required when network is 'nhm'")
        check_columns(nhd_nhm_xwalk.columns, [nhm_identifier_col], "NHD-NHM crosswalk")
        check_columns(nhd_lengths.columns, [COMID_COL, 'lengthkm'], "NHDPlusv2 reach lengths")
    check_columns(facet_nhd.columns, [COMID_COL, facet_width_col, facet_floodplain_width_col],
                  "FACET data")
    check_columns(nhd_nhm_xwalk.columns, [COMID_COL], "NHD-NHM crosswalk")

    facet = pd.DataFrame(facet_nhd.drop(columns='geometry', errors='ignore'))
    facet[COMID_COL] = facet[COMID_COL].astype(str)

    xwalk = nhd_nhm_xwalk.copy()
    xwalk[COMID_COL] = xwalk[COMID_COL].astype(str)

    cols_to_keep = [col for col in FACET_KEEP_COLS + [facet_width_col, facet_floodplain_width_col]
                    if col in facet.columns]
    facet_nhd_out = (xwalk[[COMID_COL]]
                     .merge(facet[cols_to_keep], on=COMID_COL, how='left')
                     .rename(columns={facet_width_col: 'channel_width',
                                      facet_floodplain_width_col: 'floodplain_width'}))
    facet_nhd_out = estimate_width_confinement(facet_nhd_out,
                                               width_col='channel_width',
                                               floodplain_width_col='floodplain_width',
                                               value_col='confinement_calc_facet')

    n_defined = int(facet_nhd_out['confinement_calc_facet'].notna().sum())
    logger.info(f"Estimated FACET confinement for {n_defined} of {len(facet_nhd_out)} COMIDs")

    if network == "nhdv2":
        return facet_nhd_out

    lengths = (nhd_lengths[[COMID_COL, 'lengthkm']]
               .rename(columns={'lengthkm': 'lengthkm_comid'})
               .copy())
    lengths[COMID_COL] = lengths[COMID_COL].astype(str)
    lengths = lengths.drop_duplicates(subset=COMID_COL)

    facet_nhm = (xwalk[[COMID_COL, nhm_identifier_col]]
                 .merge(lengths, on=COMID_COL, how='left')
                 .merge(facet_nhd_out[[COMID_COL, 'confinement_calc_facet']].drop_duplicates(subset=COMID_COL),
                        on=COMID_COL, how='left'))

    aggregator = ConfinementAggregator(columns=FACET_COLUMNS, segment_col=nhm_identifier_col)
    return aggregator.aggregate(
        facet_nhm,
        length_col='lengthkm_comid',
        value_col='confinement_calc_facet'
    )
