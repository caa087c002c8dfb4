from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Tuple

import pandas as pd

from lms_core.aggregate import Aggregates, aggregate_enrollments, annotate_enrollments
from lms_core.dates import collect_available_dates, normalize_date_series
from lms_core.records import parse_lms_csv, parse_storylane_csv
from lms_core.sources import FeedSources, default_sources, fetch_feeds


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DashboardData:
    """Loaded snapshot. Never mutated; filtering returns a new instance."""

    enrollments: pd.DataFrame
    engagements: pd.DataFrame
    aggregates: Aggregates
    available_dates: Tuple[str, ...]
    window: Optional[Tuple[str, str]] = None


def prepare_engagements(df: pd.DataFrame) -> pd.DataFrame:
    out = df.copy()
    out["date_key"] = normalize_date_series(out["last_view"])
    return out


def build_dashboard_data(lms_text: str, storylane_text: str) -> DashboardData:
    enrollments = annotate_enrollments(parse_lms_csv(lms_text))
    engagements = prepare_engagements(parse_storylane_csv(storylane_text))
    aggregates = aggregate_enrollments(enrollments)
    available_dates = tuple(collect_available_dates(enrollments["date_key"], engagements["date_key"]))

    logger.info(
        "Loaded %d LMS rows (%d modules, %d centre/module pairs) and %d Storylane rows; dates %s..%s",
        len(enrollments),
        len(aggregates.module_totals),
        len(aggregates.centre_totals),
        len(engagements),
        available_dates[0] if available_dates else "-",
        available_dates[-1] if available_dates else "-",
    )
    return DashboardData(
        enrollments=enrollments,
        engagements=engagements,
        aggregates=aggregates,
        available_dates=available_dates,
    )


def load_dashboard_data(sources: Optional[FeedSources] = None) -> DashboardData:
    """Fetch both feeds and build a fresh snapshot. FeedLoadError propagates."""
    sources = sources or default_sources()
    lms_text, storylane_text = fetch_feeds(sources)
    return build_dashboard_data(lms_text, storylane_text)
