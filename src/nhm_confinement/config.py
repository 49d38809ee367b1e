from pathlib import Path
import copy
import logging
from typing import Any, Dict, Optional, Union

import yaml

logger = logging.getLogger(__name__)

# Project structure configuration
PROJECT_ROOT = Path(__file__).parent.parent.parent
CONFIG_DIR = PROJECT_ROOT / "config"

# Main directories
DATA_DIR = PROJECT_ROOT / "data"
OUTPUT_DIR = PROJECT_ROOT / "output"

# Data subdirectories
RAW_DATA_DIR = DATA_DIR / "raw"

# Output subdirectories
PROCESSED_DIR = OUTPUT_DIR / "processed"
LOG_DIR = OUTPUT_DIR / "logs"

SETTINGS_FILE = CONFIG_DIR / "confinement_settings.yaml"

# Requested output resolution: NHDPlusv2 reaches or NHM segments
NETWORK_OPTIONS = ("nhdv2", "nhm")

# Direction used when borrowing values from neighboring segments
NEIGHBOR_OPTIONS = ("upstream", "downstream", "nearest")

# Segments with less than this share of their length covered are flagged
COVERAGE_THRESHOLD = 0.7

# Column names shared by the crosswalk and all reach-level tables
COMID_COL = "COMID"
NHM_ID_COLS = ("seg_id_nat", "PRMS_segid")
DEFAULT_NHM_ID_COL = "seg_id_nat"
DISTANCE_FROM_COL = "from"
GAP_FLAG_COL = "flag_gaps"

# FACET geomorphic metrics (https://doi.org/10.5066/P9RQJPT1)
FACET_WIDTH_COL = "CW955mean_1D"
FACET_FLOODPLAIN_WIDTH_COL = "FWmean_1D_FP"

DEFAULT_SETTINGS: Dict[str, Any] = {
    'network': 'nhdv2',
    'nhm_identifier_col': DEFAULT_NHM_ID_COL,
    'mcmanamay': {
        'force_min_width_m': 0,
    },
    'facet': {
        'width_col': FACET_WIDTH_COL,
        'floodplain_width_col': FACET_FLOODPLAIN_WIDTH_COL,
        'show_warnings': False,
    },
    'gap_fill': {
        'neighbors': 'upstream',
    },
}


def _merge_settings(base: Dict[str, Any], overrides: Dict[str, Any]) -> Dict[str, Any]:
    merged = copy.deepcopy(base)
    for key, value in overrides.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge_settings(merged[key], value)
        else:
            merged[key] = value
    return merged


def load_settings(settings_path: Optional[Union[str, Path]] = None) -> Dict[str, Any]:
    """
    Load pipeline settings from a YAML file.

    Values in the file override the built-in defaults key by key, so a
    settings file only needs to list what it changes.

    Args:
        settings_path: Path to the settings file (default: config/confinement_settings.yaml)

    Returns:
        Dictionary with settings values
    """
    settings_path = Path(settings_path) if settings_path else SETTINGS_FILE
    try:
        with open(settings_path) as f:
            overrides = yaml.safe_load(f) or {}
        logger.info(f"Loaded settings from {settings_path}")
    except (OSError, yaml.YAMLError) as e:
        logger.warning(f"Using default settings due to error: {str(e)}")
        return copy.deepcopy(DEFAULT_SETTINGS)

    if not isinstance(overrides, dict):
        logger.warning(f"Ignoring settings file {settings_path}: expected a mapping")
        return copy.deepcopy(DEFAULT_SETTINGS)

    return _merge_settings(DEFAULT_SETTINGS, overrides)


def ensure_directories():
    """Create all necessary directories if they don't exist."""
    directories = [
        DATA_DIR,
        RAW_DATA_DIR,
        OUTPUT_DIR,
        PROCESSED_DIR,
        LOG_DIR,
    ]
    for directory in directories:
        directory.mkdir(parents=True, exist_ok=True)
