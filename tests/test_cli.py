"""Tests for the nhm-confinement command line interface."""

import geopandas as gpd
import numpy as np
import pandas as pd
import pytest
import yaml
from shapely.geometry import LineString, box

from nhm_confinement import cli


@pytest.fixture(autouse=True)
def no_logging_setup(monkeypatch):
    """Keep the root logger untouched while tests run."""
    monkeypatch.setattr(cli, 'setup_logging', lambda **kwargs: None)


@pytest.fixture
def settings_file(tmp_path):
    filepath = tmp_path / "settings.yaml"
    with open(filepath, 'w') as f:
        yaml.dump({'network': 'nhm', 'gap_fill': {'neighbors': 'upstream'}}, f)
    return filepath


@pytest.fixture
def input_files(tmp_path):
    pd.DataFrame({
        'COMID': [1, 2, 3],
        'seg_id_nat': [100, 100, 200],
    }).to_csv(tmp_path / "xwalk.csv", index=False)

    pd.DataFrame({
        'COMID': [1, 2, 3],
        'RL': [2.0, 3.0, 1.0],
        'VBL': [2.0, 3.0, 1.0],
        'RWA': [20000.0, 0.0, 10000.0],
        'VBA': [100000.0, 90000.0, 40000.0],
    }).to_csv(tmp_path / "mcmanamay.csv", index=False)

    pd.DataFrame({
        'from': ['100', '200', '300'],
        '100': [0.0, 1000.0, np.inf],
        '200': [-1000.0, 0.0, np.inf],
        '300': [np.inf, np.inf, 0.0],
    }).to_csv(tmp_path / "distances.csv", index=False)

    pd.DataFrame({
        'seg_id_nat': [100, 200, 300],
        'width': [np.nan, 4.0, 6.0],
    }).to_csv(tmp_path / "attrs.csv", index=False)
    return tmp_path


class TestMcManamayCommand:
    """Test suite for the mcmanamay subcommand."""

    def test_nhm_output(self, input_files, settings_file):
        output = input_files / "out" / "confinement.csv"
        exit_code = cli.main([
            '--config', str(settings_file),
            'mcmanamay',
            '--confinement-data', str(input_files / "mcmanamay.csv"),
            '--crosswalk', str(input_files / "xwalk.csv"),
            '--output', str(output),
        ])

        assert exit_code == 0
        result = pd.read_csv(output).set_index('seg_id_nat')
        assert result.loc[100, 'prop_reach_w_mcmanamay'] == pytest.approx(0.4)
        assert result.loc[200, 'confinement_calc_mcmanamay'] == pytest.approx(4.0)

    def test_network_flag_overrides_settings(self, input_files, settings_file):
        output = input_files / "confinement_nhdv2.parquet"
        exit_code = cli.main([
            '--config', str(settings_file),
            'mcmanamay',
            '--confinement-data', str(input_files / "mcmanamay.csv"),
            '--crosswalk', str(input_files / "xwalk.csv"),
            '--network', 'nhdv2',
            '--min-width', '20',
            '--output', str(output),
        ])

        assert exit_code == 0
        result = pd.read_parquet(output)
        assert result['COMID'].tolist() == ['1', '2', '3']
        assert result.loc[1, 'confinement_calc_mcmanamay'] == pytest.approx(1.5)

    def test_invalid_network_in_settings(self, input_files, tmp_path):
        settings_file = tmp_path / "bad_settings.yaml"
        settings_file.write_text("network: huc12\n")
        output = input_files / "never.csv"

        exit_code = cli.main([
            '--config', str(settings_file),
            'mcmanamay',
            '--confinement-data', str(input_files / "mcmanamay.csv"),
            '--crosswalk', str(input_files / "xwalk.csv"),
            '--output', str(output),
        ])

        assert exit_code == 1
        assert not output.exists()

    def test_invalid_network_argument(self, input_files):
        with pytest.raises(SystemExit):
            cli.parse_args([
                'mcmanamay',
                '--confinement-data', 'a.csv',
                '--crosswalk', 'b.csv',
                '--network', 'huc12',
                '--output', 'c.csv',
            ])


class TestFacetCommand:
    """Test suite for the facet subcommand."""

    @pytest.fixture
    def spatial_files(self, tmp_path):
        gpd.GeoDataFrame(
            {'COMID': [1, 2]},
            geometry=[box(0, 0, 1, 1), box(1, 0, 2, 1)],
            crs="EPSG:4326"
        ).to_parquet(tmp_path / "catchments.parquet")
        gpd.GeoDataFrame(
            {
                'UniqueID': ['a'],
                'HUC4': ['0204'],
                'Magnitude': [3],
                'USContArea': [12.0],
                'CW955mean_1D': [10.0],
                'FWmean_1D_FP': [25.0],
            },
            geometry=[LineString([(0.2, 0.5), (0.8, 0.5)])],
            crs="EPSG:4326"
        ).to_parquet(tmp_path / "facet.parquet")
        pd.DataFrame({'COMID': [1, 2, 3], 'lengthkm': [1.0, 1.0, 2.0]}).to_csv(
            tmp_path / "lengths.csv", index=False)
        return tmp_path

    def test_nhdv2_output(self, input_files, spatial_files, settings_file):
        output = input_files / "facet.csv"
        exit_code = cli.main([
            '--config', str(settings_file),
            'facet',
            '--facet-network', str(spatial_files / "facet.parquet"),
            '--catchments', str(spatial_files / "catchments.parquet"),
            '--crosswalk', str(input_files / "xwalk.csv"),
            '--network', 'nhdv2',
            '--output', str(output),
        ])

        assert exit_code == 0
        result = pd.read_csv(output).set_index('COMID')
        assert result.loc[1, 'confinement_calc_facet'] == pytest.approx(2.5)
        assert np.isnan(result.loc[2, 'confinement_calc_facet'])

    def test_nhm_output(self, input_files, spatial_files, settings_file):
        output = input_files / "facet_nhm.csv"
        exit_code = cli.main([
            '--config', str(settings_file),
            'facet',
            '--facet-network', str(spatial_files / "facet.parquet"),
            '--catchments', str(spatial_files / "catchments.parquet"),
            '--crosswalk', str(input_files / "xwalk.csv"),
            '--reach-lengths', str(spatial_files / "lengths.csv"),
            '--output', str(output),
        ])

        assert exit_code == 0
        result = pd.read_csv(output).set_index('seg_id_nat')
        assert result.loc[100, 'prop_reach_w_facet'] == pytest.approx(0.5)
        assert result.loc[100, 'flag_facet'] == ("Note that <70% of the NHM segment is "
                                                 "covered by a COMID with FACET data.")

    def test_nhm_requires_lengths(self, input_files, spatial_files, settings_file):
        exit_code = cli.main([
            '--config', str(settings_file),
            'facet',
            '--facet-network', str(spatial_files / "facet.parquet"),
            '--catchments', str(spatial_files / "catchments.parquet"),
            '--crosswalk', str(input_files / "xwalk.csv"),
            '--output', str(input_files / "never.csv"),
        ])
        assert exit_code == 1


class TestFillGapsCommand:
    """Test suite for the fill-gaps subcommand."""

    def test_fill_gaps(self, input_files, settings_file):
        output = input_files / "filled.csv"
        exit_code = cli.main([
            '--config', str(settings_file),
            'fill-gaps',
            '--attributes', str(input_files / "attrs.csv"),
            '--attr-name', 'width',
            '--distances', str(input_files / "distances.csv"),
            '--output', str(output),
        ])

        assert exit_code == 0
        result = pd.read_csv(output, dtype={'seg_id_nat': str}).set_index('seg_id_nat')
        assert result.loc['100', 'width'] == pytest.approx(4.0)
        assert result.loc['100', 'flag_gaps'] == "width was filled from neighbors: 200 (1 km away)."
        assert result.loc['300', 'width'] == pytest.approx(6.0)

    def test_downstream_without_neighbors_uses_median(self, input_files, settings_file):
        output = input_files / "filled_downstream.csv"
        exit_code = cli.main([
            '--config', str(settings_file),
            'fill-gaps',
            '--attributes', str(input_files / "attrs.csv"),
            '--attr-name', 'width',
            '--distances', str(input_files / "distances.csv"),
            '--neighbors', 'downstream',
            '--output', str(output),
        ])

        assert exit_code == 0
        result = pd.read_csv(output, dtype={'seg_id_nat': str}).set_index('seg_id_nat')
        assert result.loc['100', 'width'] == pytest.approx(5.0)
        assert "median" in result.loc['100', 'flag_gaps']
