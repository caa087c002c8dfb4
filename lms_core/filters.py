from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta
from typing import Iterable, List, Optional, Sequence, Tuple

import pandas as pd

from lms_core.dates import UNKNOWN, normalize_date


DATE_PRESETS = {
    "all": "All Time",
    "last30": "Last 30 Days",
    "last90": "Last 90 Days",
    "thisYear": "This Year",
    "lastYear": "Last Year",
    "custom": "Custom Range",
}
DEFAULT_DATE_PRESET = "last30"

ALL_TOKENS = {"", "all"}

# ViewFilters attribute -> payload column(s) it matches.
SELECT_COLUMNS = {
    "customer_journey_point": ["customer_journey_point"],
    "training_type": ["training_type"],
    "centre": ["centre_number", "centre_name"],
    "user_email": ["user_email"],
    "country": ["country"],
}


@dataclass(frozen=True)
class ViewFilters:
    search: str = ""
    customer_journey_point: str = ""
    training_type: str = ""
    centre: str = ""
    user_email: str = ""
    country: str = ""
    date_preset: str = DEFAULT_DATE_PRESET
    start_date: Optional[str] = None
    end_date: Optional[str] = None


def _as_choice(value: object) -> str:
    if value is None:
        return ""
    s = str(value).strip()
    return "" if s.lower() in ALL_TOKENS else s


def _as_date_key(value: object) -> Optional[str]:
    if value is None or not str(value).strip():
        return None
    key = normalize_date(value)
    return None if key == UNKNOWN else key


def normalize_filters(raw: dict) -> ViewFilters:
    raw = raw or {}
    preset = str(raw.get("date_preset") or DEFAULT_DATE_PRESET).strip()
    if preset not in DATE_PRESETS:
        preset = DEFAULT_DATE_PRESET
    return ViewFilters(
        search=(raw.get("search") or "").strip(),
        customer_journey_point=_as_choice(raw.get("customer_journey_point")),
        training_type=_as_choice(raw.get("training_type")),
        centre=_as_choice(raw.get("centre")),
        user_email=_as_choice(raw.get("user_email")),
        country=_as_choice(raw.get("country")),
        date_preset=preset,
        start_date=_as_date_key(raw.get("start_date")),
        end_date=_as_date_key(raw.get("end_date")),
    )


def resolve_date_preset(
    preset: str,
    *,
    today: Optional[date] = None,
    available_dates: Sequence[str] = (),
    start: Optional[str] = None,
    end: Optional[str] = None,
) -> Tuple[Optional[str], Optional[str]]:
    """Preset -> (start, end) date keys. (None, None) means no date filtering."""
    today = today or date.today()
    if preset == "last30":
        return (today - timedelta(days=30)).isoformat(), today.isoformat()
    if preset == "last90":
        return (today - timedelta(days=90)).isoformat(), today.isoformat()
    if preset == "thisYear":
        return f"{today.year:04d}-01-01", today.isoformat()
    if preset == "lastYear":
        return f"{today.year - 1:04d}-01-01", f"{today.year - 1:04d}-12-31"
    if preset == "custom":
        dates = sorted(available_dates)
        return start or (dates[0] if dates else None), end or (dates[-1] if dates else None)
    return None, None


def window_for(filters: ViewFilters, available_dates: Sequence[str], *, today: Optional[date] = None) -> Tuple[Optional[str], Optional[str]]:
    return resolve_date_preset(
        filters.date_preset,
        today=today,
        available_dates=available_dates,
        start=filters.start_date,
        end=filters.end_date,
    )


def apply_view_filters(df: pd.DataFrame, filters: ViewFilters, selects: Iterable[str] = ()) -> pd.DataFrame:
    """Exact-match selects (by ViewFilters attribute name) plus free-text search across all cells."""
    out = df
    for attr in selects:
        value = getattr(filters, attr, "")
        cols = [c for c in SELECT_COLUMNS.get(attr, []) if c in out.columns]
        if not value or not cols:
            continue
        mask = pd.Series(False, index=out.index)
        for col in cols:
            mask |= out[col].astype(str).eq(value)
        out = out[mask]

    if filters.search and not out.empty:
        q = filters.search.lower()
        haystack = out.astype(str).agg(" ".join, axis=1).str.lower()
        out = out[haystack.str.contains(q, regex=False)]
    return out.reset_index(drop=True)


def unique_options(df: pd.DataFrame, column: str) -> List[str]:
    if df.empty or column not in df.columns:
        return []
    values = df[column].dropna().astype(str).str.strip()
    return sorted(v for v in values.unique().tolist() if v)
