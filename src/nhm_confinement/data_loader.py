"""
Data loading utilities for the confinement pipeline.

Tables are read from CSV or parquet depending on the file suffix. Reach and
segment identifiers are always read as strings so that joins between the
crosswalk, the source tables and the distance matrix line up.
"""

import logging
from pathlib import Path
from typing import Iterable, Optional, Union

import geopandas as gpd
import pandas as pd

from .config import COMID_COL, DISTANCE_FROM_COL, NHM_ID_COLS
from .exceptions import check_columns
from .network import ReachDistanceMatrix

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


def read_table(filepath: PathLike, id_cols: Iterable[str] = ()) -> pd.DataFrame:
    """
    Read a CSV or parquet table.

    Args:
        filepath: Path ending in .csv or .parquet
        id_cols: Identifier columns to read as strings

    Returns:
        DataFrame
    """
    filepath = Path(filepath)
    suffix = filepath.suffix.lower()
    if suffix == '.parquet':
        df = pd.read_parquet(filepath)
        for col in id_cols:
            if col in df.columns:
                df[col] = df[col].where(df[col].isna(), df[col].astype(str))
    elif suffix == '.csv':
        header = pd.read_csv(filepath, nrows=0).columns
        df = pd.read_csv(filepath, dtype={col: str for col in id_cols if col in header})
    else:
        raise ValueError(f"Unsupported file type '{suffix}' for {filepath}; expected .csv or .parquet")
    return df


def write_table(df: pd.DataFrame, filepath: PathLike) -> Path:
    """Write a DataFrame to CSV or parquet depending on the file suffix."""
    filepath = Path(filepath)
    filepath.parent.mkdir(parents=True, exist_ok=True)
    if filepath.suffix.lower() == '.parquet':
        df.to_parquet(filepath, index=False)
    else:
        df.to_csv(filepath, index=False)
    logger.info(f"Saved {len(df)} rows to {filepath}")
    return filepath


def load_crosswalk(filepath: PathLike, nhm_identifier_col: Optional[str] = None) -> pd.DataFrame:
    """
    Load the NHDPlusv2 COMID to NHM segment crosswalk.

    Args:
        filepath: Path to the crosswalk table
        nhm_identifier_col: Segment identifier that must be present

    Returns:
        DataFrame with "COMID" and the NHM identifier columns as strings
    """
    logger.info(f"Loading NHD-NHM crosswalk from {filepath}")
    df = read_table(filepath, id_cols=(COMID_COL,) + NHM_ID_COLS)

    required_columns = [COMID_COL] + ([nhm_identifier_col] if nhm_identifier_col else [])
    check_columns(df.columns, required_columns, "crosswalk file")

    logger.info(f"Loaded crosswalk with {df[COMID_COL].nunique()} COMIDs")
    return df


def load_mcmanamay_confinement(filepath: PathLike) -> pd.DataFrame:
    """Load the McManamay and DeRolph (2018) confinement table."""
    logger.info(f"Loading McManamay confinement data from {filepath}")
    df = read_table(filepath, id_cols=(COMID_COL,))
    check_columns(df.columns, [COMID_COL, 'RL', 'VBL', 'RWA', 'VBA'], "McManamay confinement data")
    logger.info(f"Loaded {len(df)} McManamay reaches")
    return df


def load_preferred_widths(filepath: PathLike) -> pd.DataFrame:
    """Load preferred channel widths with columns "COMID" and "width_m"."""
    df = read_table(filepath, id_cols=(COMID_COL,))
    check_columns(df.columns, [COMID_COL, 'width_m'], "preferred width data")
    return df


def load_reach_lengths(filepath: PathLike) -> pd.DataFrame:
    """Load NHDPlusv2 reach lengths with columns "COMID" and "lengthkm"."""
    df = read_table(filepath, id_cols=(COMID_COL,))
    check_columns(df.columns, [COMID_COL, 'lengthkm'], "reach length data")
    return df


def load_attribute_table(filepath: PathLike, id_col: str, attr_name: str) -> pd.DataFrame:
    """Load a segment attribute table that is to be gap filled."""
    df = read_table(filepath, id_cols=(id_col,))
    check_columns(df.columns, [id_col, attr_name], "attribute data")
    logger.info(f"Loaded {len(df)} segments, {int(df[attr_name].isna().sum())} missing {attr_name}")
    return df


def load_reach_distances(filepath: PathLike) -> ReachDistanceMatrix:
    """Load the wide segment distance table as a ReachDistanceMatrix."""
    filepath = Path(filepath)
    if filepath.suffix.lower() == '.parquet':
        return ReachDistanceMatrix.from_dataframe(read_table(filepath, id_cols=(DISTANCE_FROM_COL,)))
    return ReachDistanceMatrix.from_csv(filepath)


def load_spatial_layer(filepath: PathLike) -> gpd.GeoDataFrame:
    """Load a vector layer (GeoPackage, shapefile, GeoParquet)."""
    filepath = Path(filepath)
    logger.info(f"Loading spatial layer from {filepath}")
    if filepath.suffix.lower() == '.parquet':
        gdf = gpd.read_parquet(filepath)
    else:
        gdf = gpd.read_file(filepath)
    if COMID_COL in gdf.columns:
        comid = gdf[COMID_COL]
        # Shapefiles often store COMIDs as floats
        if pd.api.types.is_float_dtype(comid):
            comid = comid.astype('Int64')
        comid = comid.astype(object).where(comid.notna())
        gdf[COMID_COL] = comid.map(str, na_action='ignore')
    logger.info(f"Loaded {len(gdf)} features")
    return gdf
