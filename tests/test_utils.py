"""Test utilities for navigating nested JSON."""

import unittest

from orcid_frames.utils import date_to_iso, join_present, safe_get, to_text


class TestSafeGet(unittest.TestCase):
    """Test getting nested values."""

    def test_present(self) -> None:
        """Test getting values that are there."""
        data = {"name": {"given-names": {"value": "Josiah"}}, "list": [1, 2]}
        self.assertEqual("Josiah", safe_get(data, "name", "given-names", "value"))
        self.assertEqual({"value": "Josiah"}, safe_get(data, "name", "given-names"))
        self.assertEqual([1, 2], safe_get(data, "list"))
        self.assertEqual(data, safe_get(data))

    def test_absent(self) -> None:
        """Test that missing paths give None without raising."""
        data = {"name": None, "list": [{"a": 1}], "text": "abc"}
        self.assertIsNone(safe_get(data, "missing"))
        self.assertIsNone(safe_get(data, "name"))
        self.assertIsNone(safe_get(data, "name", "given-names", "value"))
        self.assertIsNone(safe_get(data, "list", "a"))
        self.assertIsNone(safe_get(data, "text", "a"))
        self.assertIsNone(safe_get(None, "a"))
        self.assertIsNone(safe_get("abc", "a"))

    def test_deep(self) -> None:
        """Test arbitrarily deep paths through missing values."""
        keys = [f"k{i}" for i in range(200)]
        self.assertIsNone(safe_get({"k0": {"k1": None}}, *keys))
        self.assertIsNone(safe_get({}, *keys))


class TestDate(unittest.TestCase):
    """Test converting partial dates."""

    def test_scalars(self) -> None:
        """Test dates whose parts are bare scalars."""
        self.assertEqual("2020", date_to_iso({"year": "2020"}))
        self.assertEqual("2020-03", date_to_iso({"year": "2020", "month": "3"}))
        self.assertEqual("2020-03-15", date_to_iso({"year": "2020", "month": "3", "day": "15"}))
        self.assertIsNone(date_to_iso({}))

    def test_values(self) -> None:
        """Test dates as returned by the API."""
        date = {"year": {"value": "2020"}, "month": {"value": "01"}, "day": {"value": "05"}}
        self.assertEqual("2020-01-05", date_to_iso(date))
        self.assertEqual("0999", date_to_iso({"year": {"value": 999}}))

    def test_truncate(self) -> None:
        """Test that a date stops at the first missing part."""
        self.assertEqual("2020", date_to_iso({"year": "2020", "day": "15"}))
        self.assertEqual("2020", date_to_iso({"year": "2020", "month": None, "day": "15"}))
        self.assertIsNone(date_to_iso({"month": "3", "day": "15"}))
        self.assertIsNone(date_to_iso({"year": {"value": None}}))

    def test_no_calendar_validation(self) -> None:
        """Test that impossible dates pass through."""
        self.assertEqual("2021-02-31", date_to_iso({"year": "2021", "month": "2", "day": "31"}))

    def test_malformed(self) -> None:
        """Test that malformed input doesn't raise."""
        self.assertIsNone(date_to_iso(None))
        self.assertIsNone(date_to_iso("2020-01-01"))
        self.assertIsNone(date_to_iso({"year": "twenty"}))
        self.assertEqual("2020", date_to_iso({"year": "2020", "month": {"value": "March"}}))


class TestText(unittest.TestCase):
    """Test coercing values to text."""

    def test_to_text(self) -> None:
        """Test coercing scalars."""
        self.assertEqual("12345", to_text(12345))
        self.assertEqual("12345", to_text(12345.0))
        self.assertEqual("1.5", to_text(1.5))
        self.assertEqual("true", to_text(True))
        self.assertEqual("abc", to_text("abc"))
        self.assertIsNone(to_text(None))
        self.assertIsNone(to_text({"value": "abc"}))
        self.assertIsNone(to_text(["abc"]))

    def test_join(self) -> None:
        """Test joining values, skipping missing ones."""
        self.assertEqual("a, b", join_present(["a", None, "b"]))
        self.assertEqual("a; b", join_present(["a", "b"], sep="; "))
        self.assertIsNone(join_present([None, None]))
        self.assertIsNone(join_present([]))
