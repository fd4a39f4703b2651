"""Unit tests for label matching and duration parsing."""

from datetime import timedelta

import pytest

from pdb_controller.utils import (
    InvalidDurationError,
    InvalidSelectorError,
    contain_labels,
    format_duration,
    labels_intersect,
    parse_duration,
    validate_selector,
)


class TestContainLabels:
    """Tests for selector containment."""

    def test_identical_labels_are_contained(self) -> None:
        assert contain_labels({"foo": "bar"}, {"foo": "bar"})

    def test_subset_is_contained(self) -> None:
        assert contain_labels({"foo": "bar", "tier": "web"}, {"foo": "bar"})

    def test_different_value_is_not_contained(self) -> None:
        assert not contain_labels({"foo": "bar"}, {"foo": "baz"})

    def test_missing_key_is_not_contained(self) -> None:
        assert not contain_labels({"foo": "bar"}, {"foo": "bar", "tier": "web"})

    def test_empty_needle_is_vacuously_contained(self) -> None:
        assert contain_labels({"foo": "bar"}, {})
        assert contain_labels(None, None)

    def test_empty_string_value_needs_key(self) -> None:
        assert not contain_labels({}, {"foo": ""})
        assert contain_labels({"foo": ""}, {"foo": ""})


class TestLabelsIntersect:
    """Tests for selector overlap."""

    @pytest.mark.parametrize(
        "a,b,expected",
        [
            ({"foo": "bar"}, {"foo": "bar"}, True),
            ({"foo": "bar"}, {"foo": "bar", "bar": "foo"}, True),
            ({"foo": "bar"}, {"foo": "baz"}, False),
            ({"foo": "bar"}, {"bar": "foo"}, False),
            ({}, {"foo": "bar"}, False),
        ],
        ids=[
            "matching maps",
            "partly matching maps",
            "shared key with different value",
            "disjoint keys",
            "empty map",
        ],
    )
    def test_intersection(self, a, b, expected) -> None:
        assert labels_intersect(a, b) is expected
        assert labels_intersect(b, a) is expected

    def test_one_equal_pair_is_enough(self) -> None:
        """A shared equal pair intersects even when another shared key differs."""
        a = {"foo": "bar", "bar": "baz"}
        b = {"foo": "bar", "bar": "foo"}
        assert labels_intersect(a, b)


class TestValidateSelector:
    """Tests for the empty selector guard."""

    def test_non_empty_selector_passes(self) -> None:
        assert validate_selector({"app": "web"}) == {"app": "web"}

    @pytest.mark.parametrize("selector", [None, {}])
    def test_empty_selector_is_rejected(self, selector) -> None:
        with pytest.raises(InvalidSelectorError):
            validate_selector(selector)


class TestParseDuration:
    """Tests for Go style duration parsing."""

    @pytest.mark.parametrize(
        "text,expected",
        [
            ("5s", timedelta(seconds=5)),
            ("15m", timedelta(minutes=15)),
            ("1h", timedelta(hours=1)),
            ("1h30m", timedelta(hours=1, minutes=30)),
            ("1.5h", timedelta(hours=1, minutes=30)),
            ("250ms", timedelta(milliseconds=250)),
            ("0", timedelta(0)),
            (" 10s ", timedelta(seconds=10)),
        ],
    )
    def test_valid_durations(self, text, expected) -> None:
        assert parse_duration(text) == expected

    def test_negative_duration(self) -> None:
        assert parse_duration("-5m") == -timedelta(minutes=5)

    @pytest.mark.parametrize("text", ["", "abc", "5", "5x", "1h-5m", "-", None])
    def test_invalid_durations(self, text) -> None:
        with pytest.raises(InvalidDurationError):
            parse_duration(text)


class TestFormatDuration:
    """Tests for duration formatting."""

    def test_format(self) -> None:
        assert format_duration(timedelta(0)) == "0s"
        assert format_duration(timedelta(minutes=15)) == "15m0s"
        assert format_duration(timedelta(hours=1, minutes=30)) == "1h30m0s"
