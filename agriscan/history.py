from datetime import date, datetime, timedelta
from enum import Enum
from typing import List, Optional

import pandas as pd

from .models import HistoryItem

ALL_CROPS = "All"


class DatePreset(str, Enum):
    ALL = "all"
    TODAY = "today"
    LAST_7_DAYS = "7d"
    LAST_30_DAYS = "30d"
    CUSTOM = "custom"


PRESET_LABELS = {
    DatePreset.ALL: "All Time",
    DatePreset.TODAY: "Today",
    DatePreset.LAST_7_DAYS: "7 Days",
    DatePreset.LAST_30_DAYS: "30 Days",
    DatePreset.CUSTOM: "Custom",
}


def item_day(item: HistoryItem) -> date:
    """Local calendar day of an item's epoch-millis timestamp."""
    return datetime.fromtimestamp(item.timestamp / 1000).date()


def _matches_date(day: date, preset: DatePreset, start: Optional[date], end: Optional[date], today: date) -> bool:
    if preset == DatePreset.TODAY:
        return day == today
    # day granularity: the boundary day itself counts as inside the window
    if preset == DatePreset.LAST_7_DAYS:
        return day >= today - timedelta(days=7)
    if preset == DatePreset.LAST_30_DAYS:
        return day >= today - timedelta(days=30)
    if preset == DatePreset.CUSTOM:
        if start is not None and day < start:
            return False
        if end is not None and day > end:
            return False
    return True


def filter_history(items: List[HistoryItem], crop: str = ALL_CROPS, preset=DatePreset.ALL,
                   start: Optional[date] = None, end: Optional[date] = None,
                   today: Optional[date] = None) -> List[HistoryItem]:
    preset = DatePreset(preset)
    today = today or date.today()
    return [
        item for item in items
        if (crop == ALL_CROPS or item.crop_details.crop_type == crop)
        and _matches_date(item_day(item), preset, start, end, today)
    ]


def crop_options(items: List[HistoryItem]) -> List[str]:
    return [ALL_CROPS] + sorted({item.crop_details.crop_type for item in items})


def active_filter_count(crop: str = ALL_CROPS, preset=DatePreset.ALL,
                        start: Optional[date] = None, end: Optional[date] = None) -> int:
    preset = DatePreset(preset)
    count = 0
    if crop != ALL_CROPS:
        count += 1
    if preset != DatePreset.ALL:
        count += 1
    if preset == DatePreset.CUSTOM and (start or end):
        count += 1
    return count


HISTORY_COLUMNS = ["id", "date", "crop", "soil", "plant_age", "disease", "severity",
                   "confidence", "latitude", "longitude"]


def history_frame(items: List[HistoryItem]) -> pd.DataFrame:
    """Tabular view of the history, one row per diagnosis, newest first."""
    rows = []
    for item in items:
        loc = item.crop_details.location
        rows.append({
            "id": item.id,
            "date": pd.to_datetime(item.timestamp, unit="ms"),
            "crop": item.crop_details.crop_type,
            "soil": item.crop_details.soil_type,
            "plant_age": item.crop_details.plant_age,
            "disease": item.disease,
            "severity": item.severity,
            "confidence": item.confidence,
            "latitude": loc.latitude if loc else None,
            "longitude": loc.longitude if loc else None,
        })
    return pd.DataFrame(rows, columns=HISTORY_COLUMNS)
