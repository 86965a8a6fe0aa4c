"""Unit tests for geoviz.settings module."""

import json

import pytest

from geoviz import settings
from geoviz.constants import MAPBOX_GEOCODING_URL


@pytest.fixture
def settings_file(tmp_path, monkeypatch):
    path = tmp_path / "settings.json"
    monkeypatch.setenv("GEOVIZ_SETTINGS_FILE", str(path))
    return path


class TestLoadSettings:
    def test_defaults_without_file(self, settings_file):
        loaded = settings.load_settings()

        assert loaded == settings.DEFAULT_SETTINGS
        assert loaded is not settings.DEFAULT_SETTINGS

    def test_file_merged_over_defaults(self, settings_file):
        settings_file.write_text(json.dumps({"max_rows": 50}))

        loaded = settings.load_settings()

        assert loaded["max_rows"] == 50
        assert loaded["geocoding_url"] == MAPBOX_GEOCODING_URL

    def test_corrupt_file_falls_back(self, settings_file):
        settings_file.write_text("{not json")

        assert settings.load_settings() == settings.DEFAULT_SETTINGS


class TestSaveSettings:
    def test_round_trip(self, settings_file):
        assert settings.save_settings({"geocode_concurrency": 4})

        assert settings.get_setting("geocode_concurrency") == 4
        assert json.loads(settings_file.read_text())["max_rows"] == settings.DEFAULT_SETTINGS["max_rows"]

    def test_unwritable_location(self, tmp_path, monkeypatch):
        monkeypatch.setenv("GEOVIZ_SETTINGS_FILE", str(tmp_path / "missing" / "settings.json"))

        assert settings.save_settings({"max_rows": 1}) is False


class TestValidateSettings:
    """Test suite for settings coercion."""

    def test_coerces_types(self):
        assert settings.validate_settings({"max_rows": "200", "geocode_timeout": "2.5"}) == {
            "max_rows": 200,
            "geocode_timeout": 2.5,
        }

    def test_unknown_key(self):
        with pytest.raises(ValueError, match="Unknown setting"):
            settings.validate_settings({"colour": "red"})

    def test_bad_value(self):
        with pytest.raises(ValueError, match="Invalid value"):
            settings.validate_settings({"max_rows": "lots"})

    def test_negative_value(self):
        with pytest.raises(ValueError, match="must not be negative"):
            settings.validate_settings({"geocode_concurrency": -1})


class TestStatus:
    def test_geocoding_configured_flag(self, settings_file, monkeypatch):
        monkeypatch.setenv("MAPBOX_TOKEN", "pk.test")
        assert settings.get_settings_with_status()["geocoding_configured"] is True

        monkeypatch.delenv("MAPBOX_TOKEN")
        assert settings.get_settings_with_status()["geocoding_configured"] is False
