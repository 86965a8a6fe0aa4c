"""Unit tests for geoviz.sanitizer module."""

import math

from geoviz.field_detector import FieldMapping
from geoviz.sanitizer import drop_incomplete_rows, drop_unresolved_rows, has_valid_coordinates, required_fields


CITY_MAPPING = FieldMapping(location_field="city", location_kind="city")
COORD_MAPPING = FieldMapping(latitude_field="lat", longitude_field="lon", location_field="city", location_kind="city")
GEOMETRY_MAPPING = FieldMapping(geometry_field="GeoLocation")


class TestRequiredFields:
    def test_coordinates_need_nothing(self):
        assert required_fields(COORD_MAPPING) == []

    def test_location_name_required(self):
        assert required_fields(CITY_MAPPING) == ["city"]

    def test_geometry_only(self):
        assert required_fields(GEOMETRY_MAPPING) == ["GeoLocation"]


class TestDropIncompleteRows:
    """Test suite for the pre-resolution filter."""

    def test_blank_and_missing_location_dropped(self):
        rows = [
            {"city": "Austin"},
            {"city": "   "},
            {"city": None},
            {"sales": 3},
            {"city": float("nan")},
        ]

        assert drop_incomplete_rows(rows, CITY_MAPPING) == [{"city": "Austin"}]

    def test_coordinate_datasets_untouched(self):
        rows = [{"lat": "", "lon": "", "city": ""}]

        assert drop_incomplete_rows(rows, COORD_MAPPING) == rows

    def test_does_not_mutate_input(self):
        rows = [{"city": "Austin"}, {"city": ""}]

        drop_incomplete_rows(rows, CITY_MAPPING)

        assert len(rows) == 2


class TestDropUnresolvedRows:
    """Test suite for the post-resolution filter."""

    def test_keeps_only_finite_pairs(self):
        rows = [
            {"latitude": 1.0, "longitude": 2.0},
            {"latitude": None, "longitude": 2.0},
            {"latitude": math.nan, "longitude": 2.0},
            {"latitude": 1.0, "longitude": math.inf},
            {"latitude": "1.0", "longitude": 2.0},
            {"longitude": 2.0},
        ]

        assert drop_unresolved_rows(rows) == [{"latitude": 1.0, "longitude": 2.0}]

    def test_booleans_are_not_coordinates(self):
        assert not has_valid_coordinates({"latitude": True, "longitude": 1.0})

    def test_integers_are_valid(self):
        assert has_valid_coordinates({"latitude": 0, "longitude": -90})
