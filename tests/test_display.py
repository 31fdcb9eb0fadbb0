import unittest
from datetime import datetime, timedelta

from services.display import (
    UNKNOWN_CATEGORY_COLOR,
    UNKNOWN_WASTE_ICON,
    WASTE_MARKER_COLOR,
    format_date,
    format_time,
    marker_color,
    score_color,
    waste_category_color,
    waste_icon,
)

BANDS = {"excellent", "good", "fair", "poor", "critical"}


class TestScoreColor(unittest.TestCase):
    def test_every_score_maps_to_one_band(self) -> None:
        seen = set()
        for score in range(0, 101):
            band = score_color(score)["band"]
            self.assertIn(band, BANDS)
            seen.add(band)
        self.assertEqual(seen, BANDS)

    def test_boundaries_resolve_to_higher_band(self) -> None:
        expected = {
            100: "excellent", 80: "excellent", 79: "good",
            60: "good", 59: "fair",
            40: "fair", 39: "poor",
            20: "poor", 19: "critical",
            0: "critical",
        }
        for score, band in expected.items():
            self.assertEqual(score_color(score)["band"], band, score)

    def test_bands_are_contiguous(self) -> None:
        order = ["critical", "poor", "fair", "good", "excellent"]
        ranks = [order.index(score_color(s)["band"]) for s in range(0, 101)]
        self.assertEqual(ranks, sorted(ranks))

    def test_out_of_range_and_garbage_inputs(self) -> None:
        self.assertEqual(score_color(-5)["band"], "critical")
        self.assertEqual(score_color(150)["band"], "excellent")
        self.assertEqual(score_color(None)["band"], "critical")
        self.assertEqual(score_color("not a number")["band"], "critical")
        self.assertEqual(score_color(float("nan"))["band"], "critical")
        self.assertEqual(score_color("85")["band"], "excellent")

    def test_returned_band_is_a_copy(self) -> None:
        score_color(90)["hex"] = "#000000"
        self.assertEqual(score_color(90)["hex"], "#10b981")


class TestWasteCategoryMapping(unittest.TestCase):
    def test_known_categories(self) -> None:
        self.assertEqual(waste_category_color("Plastic")["text"], "text-blue-700")
        self.assertEqual(waste_icon("Glass"), "🍾")
        self.assertEqual(waste_icon("Electronic"), "💻")

    def test_unknown_categories_fall_back(self) -> None:
        for category in ("Styrofoam", "plastic", "", "Unknown", None, 42, ["Plastic"]):
            self.assertEqual(waste_category_color(category), UNKNOWN_CATEGORY_COLOR)
            self.assertEqual(waste_icon(category), UNKNOWN_WASTE_ICON)


class TestMarkerColor(unittest.TestCase):
    def test_street_points_follow_score_bands(self) -> None:
        self.assertEqual(marker_color("street", 85), "#10b981")
        self.assertEqual(marker_color("street", 10), "#ef4444")

    def test_waste_points_are_purple(self) -> None:
        self.assertEqual(marker_color("waste", 85), WASTE_MARKER_COLOR)
        self.assertEqual(marker_color("waste", None), WASTE_MARKER_COLOR)


class TestDateLabels(unittest.TestCase):
    def setUp(self) -> None:
        self.now = datetime(2026, 1, 15, 12, 0)

    def test_relative_labels(self) -> None:
        self.assertEqual(format_date(self.now - timedelta(hours=3), now=self.now), "Today")
        self.assertEqual(format_date(self.now - timedelta(days=1, hours=2), now=self.now), "Yesterday")
        self.assertEqual(format_date(self.now - timedelta(days=4), now=self.now), "4 days ago")

    def test_older_dates_are_absolute(self) -> None:
        self.assertEqual(format_date(datetime(2026, 1, 5, 8, 30), now=self.now), "Jan 5, 2026")

    def test_missing_timestamp(self) -> None:
        self.assertEqual(format_date(None), "")
        self.assertEqual(format_time(None), "")

    def test_time_label(self) -> None:
        self.assertEqual(format_time(datetime(2026, 1, 5, 21, 5)), "09:05 PM")


if __name__ == "__main__":
    unittest.main()
