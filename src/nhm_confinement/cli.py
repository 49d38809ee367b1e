"""
Command line interface for the channel confinement pipeline.

Examples:
    nhm-confinement mcmanamay --confinement-data mcmanamay.csv \\
        --crosswalk GFv1_NHDv2_xwalk.csv --network nhm --output confinement_nhm.csv

    nhm-confinement fill-gaps --attributes confinement_nhm.csv \\
        --attr-name confinement_calc_mcmanamay --distances reach_distances.csv \\
        --neighbors upstream --output confinement_nhm_filled.csv
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from . import config
from .exceptions import ConfigurationError
from .logging_utils import setup_logging

logger = logging.getLogger(__name__)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description='Estimate channel confinement for NHDPlusv2 reaches and NHM segments'
    )
    parser.add_argument(
        '--config',
        type=Path,
        default=config.SETTINGS_FILE,
        help='YAML settings file providing defaults for the options below'
    )
    parser.add_argument(
        '--log-file',
        type=Path,
        help='Also write log messages to this file'
    )
    parser.add_argument(
        '--verbose',
        action='store_true',
        help='Enable verbose logging'
    )

    subparsers = parser.add_subparsers(dest='command', required=True)

    mcmanamay = subparsers.add_parser(
        'mcmanamay',
        help='Confinement from the McManamay and DeRolph (2018) dataset'
    )
    mcmanamay.add_argument('--confinement-data', type=Path, required=True,
                           help='McManamay table with COMID, RL, VBL, RWA and VBA')
    mcmanamay.add_argument('--crosswalk', type=Path, required=True,
                           help='NHDPlusv2 COMID to NHM segment crosswalk')
    mcmanamay.add_argument('--preferred-widths', type=Path,
                           help='Optional table with COMID and width_m')
    mcmanamay.add_argument('--min-width', type=float,
                           help='Minimum channel width (m) used in the confinement ratio')
    _add_network_args(mcmanamay)

    facet = subparsers.add_parser(
        'facet',
        help='Confinement from FACET geomorphic metrics'
    )
    facet.add_argument('--facet-network', type=Path, required=True,
                       help='FACET stream network layer')
    facet.add_argument('--catchments', type=Path, required=True,
                       help='NHDPlusv2 catchment polygons with a COMID column')
    facet.add_argument('--crosswalk', type=Path, required=True,
                       help='NHDPlusv2 COMID to NHM segment crosswalk')
    facet.add_argument('--reach-lengths', type=Path,
                       help='Table with COMID and lengthkm (required for --network nhm)')
    facet.add_argument('--width-col', help='FACET channel width column')
    facet.add_argument('--floodplain-width-col', help='FACET floodplain width column')
    facet.add_argument('--show-warnings', action='store_true', default=None,
                       help='Show warnings raised during the spatial join')
    _add_network_args(facet)

    fill = subparsers.add_parser(
        'fill-gaps',
        help='Fill missing segment attributes from neighboring segments'
    )
    fill.add_argument('--attributes', type=Path, required=True,
                      help='Segment attribute table')
    fill.add_argument('--attr-name', required=True,
                      help='Attribute column to fill')
    fill.add_argument('--distances', type=Path, required=True,
                      help='Wide table of signed distances between segments')
    fill.add_argument('--neighbors', choices=config.NEIGHBOR_OPTIONS,
                      help='Direction in which to look for neighbors')
    fill.add_argument('--id-col', help='Segment identifier column')
    fill.add_argument('--output', type=Path, required=True,
                      help='Output table (.csv or .parquet)')

    return parser.parse_args(argv)


def _add_network_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument('--network', choices=config.NETWORK_OPTIONS,
                        help='Output resolution')
    parser.add_argument('--id-col', help='NHM segment identifier used for aggregation')
    parser.add_argument('--output', type=Path, required=True,
                        help='Output table (.csv or .parquet)')


def _pick(value, default):
    return default if value is None else value


def run_mcmanamay(args: argparse.Namespace, settings: dict):
    from .confinement import aggregate_mcmanamay_confinement
    from .data_loader import load_crosswalk, load_mcmanamay_confinement, load_preferred_widths

    network = _pick(args.network, settings['network'])
    id_col = _pick(args.id_col, settings['nhm_identifier_col'])

    return aggregate_mcmanamay_confinement(
        confinement_data=load_mcmanamay_confinement(args.confinement_data),
        nhd_nhm_xwalk=load_crosswalk(args.crosswalk),
        force_min_width_m=_pick(args.min_width, settings['mcmanamay']['force_min_width_m']),
        preferred_width_df=load_preferred_widths(args.preferred_widths) if args.preferred_widths else None,
        network=network,
        nhm_identifier_col=id_col
    )


def run_facet(args: argparse.Namespace, settings: dict):
    from .confinement.facet import (
        calculate_facet_confinement,
        intersect_network_with_catchments,
        select_dominant_features,
    )
    from .data_loader import load_crosswalk, load_reach_lengths, load_spatial_layer

    facet_settings = settings['facet']
    network = _pick(args.network, settings['network'])
    if network == 'nhm' and args.reach_lengths is None:
        raise ConfigurationError("--reach-lengths is required when --network is 'nhm'",
                                 option='reach_lengths')

    pairs = intersect_network_with_catchments(
        load_spatial_layer(args.facet_network),
        load_spatial_layer(args.catchments),
        show_warnings=_pick(args.show_warnings, facet_settings['show_warnings'])
    )
    return calculate_facet_confinement(
        facet_nhd=select_dominant_features(pairs),
        nhd_nhm_xwalk=load_crosswalk(args.crosswalk),
        facet_width_col=_pick(args.width_col, facet_settings['width_col']),
        facet_floodplain_width_col=_pick(args.floodplain_width_col, facet_settings['floodplain_width_col']),
        network=network,
        nhm_identifier_col=_pick(args.id_col, settings['nhm_identifier_col']),
        nhd_lengths=load_reach_lengths(args.reach_lengths) if args.reach_lengths else None
    )


def run_fill_gaps(args: argparse.Namespace, settings: dict):
    from .data_loader import load_attribute_table, load_reach_distances
    from .network import NeighborGapFiller

    id_col = _pick(args.id_col, settings['nhm_identifier_col'])
    filler = NeighborGapFiller(
        load_reach_distances(args.distances),
        neighbors=_pick(args.neighbors, settings['gap_fill']['neighbors']),
        nhm_identifier_col=id_col,
        show_progress=True
    )
    return filler.fill(load_attribute_table(args.attributes, id_col, args.attr_name), args.attr_name)


COMMANDS = {
    'mcmanamay': run_mcmanamay,
    'facet': run_facet,
    'fill-gaps': run_fill_gaps,
}


def main(argv: Optional[List[str]] = None) -> int:
    """Run the confinement pipeline from the command line."""
    args = parse_args(argv)
    setup_logging(log_file=args.log_file, verbose=args.verbose)
    settings = config.load_settings(args.config)

    try:
        result = COMMANDS[args.command](args, settings)
    except ConfigurationError as e:
        logger.error(str(e))
        return 1

    from .data_loader import write_table
    write_table(result, args.output)
    return 0


if __name__ == '__main__':
    sys.exit(main())
