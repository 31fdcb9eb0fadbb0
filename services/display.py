"""
Presentation mapping for reports.
Derives colors, icons and date labels from stored fields so every client
renders history entries and map pins the same way.
"""

from datetime import datetime
from typing import Any, Dict, Optional

# Score bands, checked top down; the first band whose floor is reached wins
SCORE_BANDS = [
    (80, {"band": "excellent", "text": "text-green-600", "bg": "bg-green-100",
          "border": "border-green-500", "hex": "#10b981"}),
    (60, {"band": "good", "text": "text-blue-600", "bg": "bg-blue-100",
          "border": "border-blue-500", "hex": "#3b82f6"}),
    (40, {"band": "fair", "text": "text-yellow-600", "bg": "bg-yellow-100",
          "border": "border-yellow-500", "hex": "#f59e0b"}),
    (20, {"band": "poor", "text": "text-orange-600", "bg": "bg-orange-100",
          "border": "border-orange-500", "hex": "#f97316"}),
]

LOWEST_BAND = {"band": "critical", "text": "text-red-600", "bg": "bg-red-100",
               "border": "border-red-500", "hex": "#ef4444"}

# Keyed by the categories the classifier is allowed to return
WASTE_CATEGORY_COLORS: Dict[str, Dict[str, str]] = {
    "Plastic": {"bg": "bg-blue-100", "text": "text-blue-700", "border": "border-blue-500"},
    "Paper": {"bg": "bg-amber-100", "text": "text-amber-700", "border": "border-amber-500"},
    "Organic": {"bg": "bg-green-100", "text": "text-green-700", "border": "border-green-500"},
    "Metal": {"bg": "bg-gray-100", "text": "text-gray-700", "border": "border-gray-500"},
    "Glass": {"bg": "bg-cyan-100", "text": "text-cyan-700", "border": "border-cyan-500"},
    "Electronic": {"bg": "bg-purple-100", "text": "text-purple-700", "border": "border-purple-500"},
    "Hazardous": {"bg": "bg-red-100", "text": "text-red-700", "border": "border-red-500"},
    "Other": {"bg": "bg-indigo-100", "text": "text-indigo-700", "border": "border-indigo-500"},
}

UNKNOWN_CATEGORY_COLOR = {"bg": "bg-gray-100", "text": "text-gray-700", "border": "border-gray-500"}

WASTE_ICONS: Dict[str, str] = {
    "Plastic": "🥤",
    "Paper": "📄",
    "Organic": "🍎",
    "Metal": "🔧",
    "Glass": "🍾",
    "Electronic": "💻",
    "Hazardous": "☢️",
    "Other": "🗑️",
}

UNKNOWN_WASTE_ICON = "🗑️"

WASTE_MARKER_COLOR = "#8b5cf6"


def score_color(score: Any) -> Dict[str, str]:
    """
    Bucket a 0-100 cleanliness score into one of five color bands.

    Boundary values belong to the higher band. Anything that is not a
    number lands in the lowest band.
    """
    try:
        value = float(score)
    except (TypeError, ValueError):
        return dict(LOWEST_BAND)
    if value != value:  # NaN
        return dict(LOWEST_BAND)

    for floor, band in SCORE_BANDS:
        if value >= floor:
            return dict(band)
    return dict(LOWEST_BAND)


def waste_category_color(category: Any) -> Dict[str, str]:
    """Color classes for a waste category, neutral gray when unrecognized."""
    if not isinstance(category, str):
        return dict(UNKNOWN_CATEGORY_COLOR)
    return dict(WASTE_CATEGORY_COLORS.get(category, UNKNOWN_CATEGORY_COLOR))


def waste_icon(category: Any) -> str:
    """Emoji icon for a waste category."""
    if not isinstance(category, str):
        return UNKNOWN_WASTE_ICON
    return WASTE_ICONS.get(category, UNKNOWN_WASTE_ICON)


def marker_color(report_type: Any, score: Any) -> str:
    """Map pin color: street points follow the score bands, waste points are purple."""
    if report_type == "street":
        return score_color(score)["hex"]
    return WASTE_MARKER_COLOR


def format_date(timestamp: Optional[datetime], now: Optional[datetime] = None) -> str:
    """
    Relative date label for history entries.

    Args:
        timestamp: When the report was created (naive UTC)
        now: Reference time, defaults to the current UTC time

    Returns:
        "Today", "Yesterday", "N days ago" within a week, else "Mon D, YYYY"
    """
    if timestamp is None:
        return ""
    now = now or datetime.utcnow()
    diff_days = abs(now - timestamp).days

    if diff_days == 0:
        return "Today"
    if diff_days == 1:
        return "Yesterday"
    if diff_days < 7:
        return f"{diff_days} days ago"
    return f"{timestamp.strftime('%b')} {timestamp.day}, {timestamp.year}"


def format_time(timestamp: Optional[datetime]) -> str:
    """12-hour clock label, e.g. "09:05 PM"."""
    if timestamp is None:
        return ""
    return timestamp.strftime("%I:%M %p")


def describe_report(report) -> Dict[str, Any]:
    """
    Build the display block for a stored report.

    Waste reports are colored by category and carry an icon; street
    reports are colored by their cleanliness score.
    """
    if report.type == "waste":
        color = waste_category_color(report.category)
        icon = waste_icon(report.category)
    else:
        color = score_color(report.cleanliness_score)
        icon = None

    return {
        "date_label": format_date(report.created_at),
        "time_label": format_time(report.created_at),
        "color": color,
        "icon": icon,
    }
