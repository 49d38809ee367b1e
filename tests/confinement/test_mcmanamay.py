"""Tests for McManamay confinement processing."""

import numpy as np
import pandas as pd
import pytest

from nhm_confinement.confinement import aggregate_mcmanamay_confinement
from nhm_confinement.exceptions import ConfigurationError


@pytest.fixture
def confinement_data():
    """COMID 1 is fully described, COMID 2 has no channel area, COMID 9 is off-network."""
    return pd.DataFrame({
        'COMID': [1, 2, 3, 9],
        'RL': [2.0, 3.0, 1.0, 1.0],
        'VBL': [2.0, 3.0, 1.0, 1.0],
        'RWA': [20000.0, 0.0, 10000.0, 10000.0],
        'VBA': [100000.0, 90000.0, 40000.0, 40000.0],
    })


@pytest.fixture
def xwalk():
    return pd.DataFrame({
        'COMID': ['1', '2', '3'],
        'seg_id_nat': ['100', '100', '200'],
        'PRMS_segid': ['1_1', '1_1', '1_2'],
    })


class TestAggregateMcManamayConfinement:
    """Test suite for aggregate_mcmanamay_confinement."""

    def test_nhdv2_output(self, confinement_data, xwalk):
        """Reach output is limited to crosswalk COMIDs."""
        result = aggregate_mcmanamay_confinement(confinement_data, xwalk, network="nhdv2")

        assert result['COMID'].tolist() == ['1', '2', '3']
        assert result.loc[0, 'confinement_calc_mcmanamay'] == pytest.approx(5.0)
        assert np.isnan(result.loc[1, 'confinement_calc_mcmanamay'])
        assert result.loc[2, 'confinement_calc_mcmanamay'] == pytest.approx(4.0)

    def test_nhm_output(self, confinement_data, xwalk):
        """Segment output weights reach values by length."""
        result = aggregate_mcmanamay_confinement(confinement_data, xwalk, network="nhm")
        result = result.set_index('seg_id_nat')

        assert list(result.columns) == ['reach_length_km', 'lengthkm_mcmanamay_is_na',
                                        'prop_reach_w_mcmanamay', 'confinement_calc_mcmanamay',
                                        'flag_mcmanamay']
        assert result.loc['100', 'reach_length_km'] == pytest.approx(5.0)
        assert result.loc['100', 'prop_reach_w_mcmanamay'] == pytest.approx(0.4)
        assert result.loc['100', 'confinement_calc_mcmanamay'] == pytest.approx(5.0)
        assert result.loc['100', 'flag_mcmanamay'] is not None
        assert result.loc['200', 'confinement_calc_mcmanamay'] == pytest.approx(4.0)
        assert result.loc['200', 'flag_mcmanamay'] is None

    def test_prms_segid(self, confinement_data, xwalk):
        result = aggregate_mcmanamay_confinement(confinement_data, xwalk, network="nhm",
                                                 nhm_identifier_col="PRMS_segid")
        assert result['PRMS_segid'].tolist() == ['1_1', '1_2']

    def test_force_min_width(self, confinement_data, xwalk):
        result = aggregate_mcmanamay_confinement(confinement_data, xwalk, network="nhdv2",
                                                 force_min_width_m=20)
        assert result.loc[1, 'river_width_m'] == pytest.approx(20.0)
        assert result.loc[1, 'confinement_calc_mcmanamay'] == pytest.approx(1.5)

    def test_preferred_widths(self, confinement_data, xwalk):
        preferred = pd.DataFrame({'COMID': [1, 2, 3], 'width_m': [50.0, 30.0, 10.0]})
        result = aggregate_mcmanamay_confinement(confinement_data, xwalk, network="nhm",
                                                 preferred_width_df=preferred)
        result = result.set_index('seg_id_nat')

        # (2 * 1.0 + 3 * 1.0) / 5
        assert result.loc['100', 'confinement_calc_mcmanamay'] == pytest.approx(1.0)
        assert result.loc['100', 'flag_mcmanamay'] is None

    def test_invalid_network(self, confinement_data, xwalk):
        with pytest.raises(ConfigurationError, match="'nhdv2' or 'nhm'") as excinfo:
            aggregate_mcmanamay_confinement(confinement_data, xwalk, network="huc12")
        assert excinfo.value.option == "network"

    def test_missing_identifier_column(self, confinement_data, xwalk):
        with pytest.raises(ValueError, match="Missing required columns"):
            aggregate_mcmanamay_confinement(confinement_data, xwalk.drop(columns='seg_id_nat'),
                                            network="nhm")

    def test_inputs_not_modified(self, confinement_data, xwalk):
        data_before, xwalk_before = confinement_data.copy(), xwalk.copy()
        aggregate_mcmanamay_confinement(confinement_data, xwalk, network="nhm")
        pd.testing.assert_frame_equal(confinement_data, data_before)
        pd.testing.assert_frame_equal(xwalk, xwalk_before)
