"""Date-range filtering of a loaded snapshot.

Aggregates are re-derived from the per-date index built at load time, so a window costs
work proportional to the number of (entity, date) entries, not to the raw row count.
Every row and index entry of a webinar module (by its catalogue training type) bypasses
the window, so webinar modules keep their lifetime totals.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date
from typing import Optional, Sequence, Tuple

import pandas as pd

from lms_core.aggregate import Aggregates, build_aggregates, webinar_modules
from lms_core.data import DashboardData
from lms_core.dates import EARLIEST_DATE_KEY, UNKNOWN, normalize_date


logger = logging.getLogger(__name__)


def _is_absent(value: object) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _bound(value: object, label: str) -> Optional[str]:
    if _is_absent(value):
        return None
    key = normalize_date(value)
    if key == UNKNOWN:
        logger.warning("Ignoring unparseable %s date %r", label, value)
        return None
    return key


def resolve_bounds(start: object = None, end: object = None, *, today: Optional[date] = None) -> Tuple[str, str]:
    """Missing start -> earliest date; missing end -> today."""
    start_key = _bound(start, "start") or EARLIEST_DATE_KEY
    end_key = _bound(end, "end") or (today or date.today()).isoformat()
    return start_key, end_key


def in_window(keys: pd.Series, start: str, end: str) -> pd.Series:
    keys = keys.astype(object)
    return keys.ne(UNKNOWN) & keys.ge(start) & keys.le(end)


def window_daily(daily: pd.DataFrame, start: str, end: str, exempt: Sequence[str] = ()) -> pd.DataFrame:
    """Keep entries dated inside [start, end] plus every entry of an ``exempt`` module."""
    if daily.empty:
        return daily.copy()
    mask = in_window(daily["date_key"], start, end) | daily["training_module"].isin(list(exempt))
    return daily.loc[mask].copy()


def filter_aggregates(aggregates: Aggregates, start: str, end: str) -> Aggregates:
    webinars = webinar_modules(aggregates.modules)
    return build_aggregates(
        window_daily(aggregates.module_daily, start, end, webinars),
        window_daily(aggregates.centre_daily, start, end, webinars),
        aggregates.modules,
        aggregates.centres,
    )


def filter_by_range(
    data: DashboardData,
    start: object = None,
    end: object = None,
    *,
    today: Optional[date] = None,
) -> DashboardData:
    start_key, end_key = _bound(start, "start"), _bound(end, "end")
    if start_key is None and end_key is None:
        return data
    start_key, end_key = resolve_bounds(start_key, end_key, today=today)

    enrollments = data.enrollments
    if not enrollments.empty:
        webinars = webinar_modules(data.aggregates.modules)
        keep = in_window(enrollments["date_key"], start_key, end_key) | enrollments["training_module"].isin(webinars)
        enrollments = enrollments.loc[keep].reset_index(drop=True)

    engagements = data.engagements
    if not engagements.empty:
        engagements = engagements.loc[in_window(engagements["date_key"], start_key, end_key)].reset_index(drop=True)

    return replace(
        data,
        enrollments=enrollments.copy(),
        engagements=engagements.copy(),
        aggregates=filter_aggregates(data.aggregates, start_key, end_key),
        window=(start_key, end_key),
    )
