"""Unit tests for geoviz.utils module."""

import math

import pytest

from geoviz.utils import clean_nans, is_blank, normalize_state_name, state_from_abbr, to_finite_float


class TestToFiniteFloat:
    @pytest.mark.parametrize("value, expected", [
        (3, 3.0),
        (2.5, 2.5),
        (" 7 ", 7.0),
        ("-1e3", -1000.0),
    ])
    def test_numbers(self, value, expected):
        assert to_finite_float(value) == expected

    @pytest.mark.parametrize("value", [None, True, False, "", "  ", "abc", math.nan, math.inf, "inf", "NaN", [1]])
    def test_rejected(self, value):
        assert to_finite_float(value) is None


class TestStateNames:
    def test_abbreviation_expanded(self):
        assert normalize_state_name("ca") == "CALIFORNIA"
        assert normalize_state_name(" NY ") == "NEW YORK"

    def test_full_name_uppercased(self):
        assert normalize_state_name(" Texas ") == "TEXAS"

    def test_unknown_two_letters_kept(self):
        assert normalize_state_name("zz") == "ZZ"

    def test_blank(self):
        assert normalize_state_name("") is None
        assert normalize_state_name(None) is None

    def test_state_from_abbr(self):
        assert state_from_abbr("tx") == "Texas"
        assert state_from_abbr("XX") == "Unknown"


class TestHelpers:
    def test_is_blank(self):
        assert is_blank(None)
        assert is_blank(" ")
        assert is_blank(math.nan)
        assert not is_blank(0)
        assert not is_blank("x")

    def test_clean_nans(self):
        cleaned = clean_nans({"a": math.nan, "b": [1.0, math.inf, (2, math.nan)], "c": "x"})

        assert cleaned == {"a": None, "b": [1.0, None, [2, None]], "c": "x"}
