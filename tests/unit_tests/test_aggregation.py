"""Unit tests for geoviz.aggregation module."""

import asyncio

import pytest

from geoviz.aggregation import StateRecord, aggregate_states, resolve_state_keys, state_skip_fields
from geoviz.field_detector import FieldMapping


STATE_MAPPING = FieldMapping(location_field="state", location_kind="state")
CITY_MAPPING = FieldMapping(location_field="city", location_kind="city")


class TestStateRecord:
    """Test suite for the running per-state aggregate."""

    def test_numeric_mean(self):
        """Test numeric fields finalize to sum / count."""
        record = StateRecord.seed("TEXAS", {"sales": "10", "latitude": 1.0, "longitude": 2.0})
        record.add({"sales": 30, "latitude": 3.0, "longitude": 4.0})

        result = record.finalize()

        assert result["sales"] == 20.0
        assert result["count"] == 2

    def test_first_row_position_and_text(self):
        """Test position and text fields come from the first row."""
        record = StateRecord.seed("TEXAS", {"region": "south", "latitude": 1.0, "longitude": 2.0})
        record.add({"region": "north", "latitude": 3.0, "longitude": 4.0})

        result = record.finalize()

        assert result["region"] == "south"
        assert (result["latitude"], result["longitude"]) == (1.0, 2.0)

    def test_output_shape(self):
        record = StateRecord.seed("TEXAS", {"a": 1, "b": "x", "loc_id": "Austin", "latitude": 1.0, "longitude": 2.0})

        assert list(record.finalize()) == ["state", "a", "b", "latitude", "longitude", "count"]

    def test_failed_coercion_finalizes_to_zero(self):
        """Test a number followed by text zeroes the field."""
        record = StateRecord.seed("TEXAS", {"score": 4})
        record.add({"score": "n/a"})
        record.add({"score": 8})

        assert record.finalize()["score"] == 0

    def test_text_then_number_finalizes_to_zero(self):
        record = StateRecord.seed("TEXAS", {"score": "high"})
        record.add({"score": 3})

        assert record.finalize()["score"] == 0

    def test_field_missing_from_first_row(self):
        """Test a field first seen later is still averaged over all rows."""
        record = StateRecord.seed("TEXAS", {"a": 1})
        record.add({"a": 3, "b": 6})

        result = record.finalize()

        assert result["a"] == 2.0
        assert result["b"] == 3.0

    def test_skip_fields(self):
        record = StateRecord.seed("TEXAS", {"State": "TX", "a": 1}, skip=("State",))

        assert "State" not in record.finalize()

    def test_finalize_freezes(self):
        record = StateRecord.seed("TEXAS", {"a": 1})
        first = record.finalize()
        first["a"] = 999

        assert record.is_finalized
        assert record.finalize()["a"] == 1.0
        with pytest.raises(RuntimeError):
            record.add({"a": 2})


class TestAggregateStates:
    def test_scenario_states(self, scenario_a_rows):
        """Test two California rows and one Texas row."""
        keys = ["CALIFORNIA", "CALIFORNIA", "TEXAS"]

        table = aggregate_states(scenario_a_rows, keys, skip=("state",))

        assert table[0]["state"] == "CALIFORNIA"
        assert table[0]["pop"] == 15.0
        assert table[0]["count"] == 2
        assert table[1]["state"] == "TEXAS"
        assert table[1]["pop"] == 5.0
        assert table[1]["count"] == 1

    def test_unkeyed_rows_skipped(self):
        rows = [{"a": 1}, {"a": 2}]

        table = aggregate_states(rows, ["TEXAS", None])

        assert len(table) == 1
        assert table[0]["count"] == 1

    def test_counts_add_up(self):
        rows = [{"a": i} for i in range(7)]
        keys = ["A", "B", "A", "C", "B", "A", None]

        table = aggregate_states(rows, keys)

        assert sum(record["count"] for record in table) == 6


class TestStateSkipFields:
    def test_state_column_skipped(self):
        assert state_skip_fields(FieldMapping(location_field="State", location_kind="state")) == ("State",)

    def test_city_column_kept(self):
        assert state_skip_fields(CITY_MAPPING) == ()
        assert state_skip_fields(None) == ()


class TestResolveStateKeys:
    """Test suite for per-row state keys."""

    def test_state_column_used_directly(self, static_geocoder):
        rows = [
            {"state": "California", "latitude": 36.7783, "longitude": -119.4179},
            {"state": " tx ", "latitude": 31.9686, "longitude": -99.9018},
        ]

        keys = asyncio.run(resolve_state_keys(rows, STATE_MAPPING, static_geocoder))

        assert keys == ["CALIFORNIA", "TEXAS"]
        assert static_geocoder.reverse_calls == 0

    def test_blank_state_falls_back_to_reverse(self, static_geocoder):
        rows = [{"state": "", "latitude": 36.7783, "longitude": -119.4179}]

        keys = asyncio.run(resolve_state_keys(rows, STATE_MAPPING, static_geocoder))

        assert keys == ["CALIFORNIA"]

    def test_reverse_geocoding_deduplicates(self, static_geocoder):
        """Test each distinct coordinate is looked up once."""
        austin = {"latitude": 30.2672, "longitude": -97.7431}
        rows = [dict(austin), dict(austin), {"latitude": 38.5816, "longitude": -121.4944}]

        keys = asyncio.run(resolve_state_keys(rows, CITY_MAPPING, static_geocoder))

        assert keys == ["TEXAS", "TEXAS", "CALIFORNIA"]
        assert static_geocoder.reverse_calls == 2

    def test_unknown_coordinates_give_none(self, static_geocoder):
        rows = [{"latitude": 0.0, "longitude": 0.0}, {"latitude": None, "longitude": None}]

        keys = asyncio.run(resolve_state_keys(rows, CITY_MAPPING, static_geocoder))

        assert keys == [None, None]
