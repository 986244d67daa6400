"""
Place and expense categories, labels and the mappings between them.
Labels are Korean, matching the UI the API serves.
"""

from typing import Dict, Iterable, Optional
import re

# ---------------------------------------------------------------------------
# Places
# ---------------------------------------------------------------------------

PLACE_CATEGORIES: Dict[str, str] = {
    "restaurant": "맛집",
    "tourist_attraction": "명소",
    "attraction": "명소",
    "shopping": "쇼핑",
    "hotel": "숙소",
    "flight": "항공",
    "transport": "교통",
    "other": "기타",
}

DEFAULT_PLACE_CATEGORY = "restaurant"
DEFAULT_DURATION = "1시간"

# ---------------------------------------------------------------------------
# Expenses
# ---------------------------------------------------------------------------

EXPENSE_CATEGORIES: Dict[str, str] = {
    "flight": "항공료",
    "accommodation": "숙박",
    "food": "식비",
    "transport": "교통",
    "shopping": "쇼핑",
    "activity": "액티비티",
    "entrance": "입장료",
}

_PLACE_TO_EXPENSE = {
    "restaurant": "food",
    "tourist_attraction": "entrance",
    "hotel": "accommodation",
    "flight": "flight",
    "transport": "transport",
}

# ---------------------------------------------------------------------------
# Checklist
# ---------------------------------------------------------------------------

CHECKLIST_CATEGORIES = ["의류", "전자제품", "약품/화장품", "여행용품", "서류", "기타"]
DEFAULT_CHECKLIST_CATEGORY = "기타"

WEEKDAY_LABELS = {
    "Monday": "월", "Tuesday": "화", "Wednesday": "수", "Thursday": "목",
    "Friday": "금", "Saturday": "토", "Sunday": "일",
}
OPEN_ALL_DAY = "00:00~24:00"


def place_category_label(category: str) -> str:
    return PLACE_CATEGORIES.get(category, PLACE_CATEGORIES["other"])


def expense_category_label(category: str) -> str:
    return EXPENSE_CATEGORIES.get(category, category)


def expense_category_for_place(place_category: Optional[str]) -> str:
    """Expense category used when a cost is recorded against a place."""
    return _PLACE_TO_EXPENSE.get(place_category or "", "activity")


def detect_place_category(types: Iterable[str]) -> str:
    """Place category from the type list of an external place search result."""
    kinds = set(types or [])
    if "lodging" in kinds:
        return "hotel"
    if "restaurant" in kinds or "food" in kinds:
        return "restaurant"
    if "shopping_mall" in kinds or "store" in kinds:
        return "shopping"
    if "transit_station" in kinds:
        return "transport"
    return "attraction"


def operating_hours_from_weekday_text(weekday_text: Optional[Iterable[str]]) -> Dict[str, str]:
    """
    Convert lines like "Monday: 9:00 AM – 6:00 PM" into {"월": "9:00 AM – 6:00 PM"}.
    Without any text the place is treated as open all day.
    """
    if not weekday_text:
        return {label: OPEN_ALL_DAY for label in WEEKDAY_LABELS.values()}

    hours: Dict[str, str] = {}
    for line in weekday_text:
        for english, label in WEEKDAY_LABELS.items():
            if english in line:
                parts = line.split(": ", 1)
                hours[label] = parts[1] if len(parts) > 1 and parts[1] else OPEN_ALL_DAY
    return hours


def duration_hours(duration: Optional[str]) -> int:
    """Whole hours in a duration string such as "2시간"; defaults to 1."""
    digits = re.sub(r"[^0-9]", "", duration or "")
    return int(digits) if digits and int(digits) > 0 else 1


def calculate_end_time(start: str, duration: Optional[str]) -> str:
    """End time ("HH:MM", wrapping at midnight) of a visit."""
    hours, minutes = (int(part) for part in start.split(":")[:2])
    end_hours = (hours + duration_hours(duration)) % 24
    return f"{end_hours:02d}:{minutes:02d}"


def time_range(start: str, duration: Optional[str]) -> str:
    return f"{start}-{calculate_end_time(start, duration)}"
