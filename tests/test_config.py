"""Tests for settings loading."""

import logging

import yaml

from nhm_confinement import config


class TestLoadSettings:
    """Test suite for load_settings."""

    def test_missing_file_uses_defaults(self, tmp_path, caplog):
        with caplog.at_level(logging.WARNING):
            settings = config.load_settings(tmp_path / "missing.yaml")

        assert settings == config.DEFAULT_SETTINGS
        assert "Using default settings" in caplog.text

    def test_partial_override(self, tmp_path):
        settings_file = tmp_path / "settings.yaml"
        with open(settings_file, 'w') as f:
            yaml.dump({'network': 'nhm', 'gap_fill': {'neighbors': 'nearest'}}, f)

        settings = config.load_settings(settings_file)

        assert settings['network'] == 'nhm'
        assert settings['gap_fill']['neighbors'] == 'nearest'
        assert settings['facet']['width_col'] == config.FACET_WIDTH_COL
        assert settings['mcmanamay']['force_min_width_m'] == 0

    def test_invalid_yaml(self, tmp_path):
        settings_file = tmp_path / "settings.yaml"
        settings_file.write_text("network: [nhm\n")
        assert config.load_settings(settings_file) == config.DEFAULT_SETTINGS

    def test_non_mapping(self, tmp_path):
        settings_file = tmp_path / "settings.yaml"
        settings_file.write_text("- nhm\n- nhdv2\n")
        assert config.load_settings(settings_file) == config.DEFAULT_SETTINGS

    def test_defaults_not_shared(self, tmp_path):
        settings = config.load_settings(tmp_path / "missing.yaml")
        settings['facet']['show_warnings'] = True
        assert config.DEFAULT_SETTINGS['facet']['show_warnings'] is False

    def test_project_settings_file(self):
        """The bundled settings file parses and targets the NHM network."""
        settings = config.load_settings(config.SETTINGS_FILE)
        assert settings['network'] in config.NETWORK_OPTIONS
        assert settings['gap_fill']['neighbors'] in config.NEIGHBOR_OPTIONS
