from __future__ import annotations

import re
import warnings
from datetime import date
from functools import lru_cache
from typing import Iterable, List

import pandas as pd


UNKNOWN = "UNKNOWN"
EARLIEST_DATE_KEY = date.min.isoformat()

# A bare "5" or "Jan 5" would be completed from the current date; require an explicit year.
_EXPLICIT_YEAR = re.compile(r"\d{4}|\d{1,2}[/.\-]\d{1,2}[/.\-]\d{2}")


@lru_cache(maxsize=8192)
def _normalize_text(text: str) -> str:
    if not _EXPLICIT_YEAR.search(text):
        return UNKNOWN
    with warnings.catch_warnings():
        warnings.simplefilter("ignore")
        try:
            ts = pd.to_datetime(text, errors="coerce")
        except (ValueError, TypeError, OverflowError):
            return UNKNOWN
    if ts is None or pd.isna(ts):
        return UNKNOWN
    return f"{ts.year:04d}-{ts.month:02d}-{ts.day:02d}"


def normalize_date(value: object) -> str:
    """Raw date value -> 'YYYY-MM-DD', or UNKNOWN when empty/unparseable. Never raises."""
    if value is None:
        return UNKNOWN
    if isinstance(value, (pd.Timestamp, date)):
        return UNKNOWN if pd.isna(value) else f"{value.year:04d}-{value.month:02d}-{value.day:02d}"
    try:
        if pd.isna(value):
            return UNKNOWN
    except (TypeError, ValueError):
        return UNKNOWN
    text = str(value).strip()
    if not text:
        return UNKNOWN
    return _normalize_text(text)


def normalize_date_series(series: pd.Series) -> pd.Series:
    return series.map(normalize_date).astype(object)


def first_date_key(df: pd.DataFrame, cols: Iterable[str]) -> pd.Series:
    """Date key of the first non-empty column in ``cols`` (row-wise)."""
    cols = [c for c in cols if c in df.columns]
    out = pd.Series(UNKNOWN, index=df.index, dtype=object)
    if not cols:
        return out
    raw = df[cols[0]].fillna("").astype(str).str.strip()
    for col in cols[1:]:
        nxt = df[col].fillna("").astype(str).str.strip()
        raw = raw.mask(raw.eq(""), nxt)
    return normalize_date_series(raw)


def collect_available_dates(*series: pd.Series) -> List[str]:
    """Sorted distinct date keys across all inputs, UNKNOWN excluded."""
    keys = set()
    for s in series:
        if s is None or len(s) == 0:
            continue
        keys.update(str(v) for v in s.dropna().unique())
    keys.discard(UNKNOWN)
    keys.discard("")
    return sorted(keys)
