from __future__ import annotations

from typing import Any, Dict, List

import pandas as pd

from lms_core.aggregate import CENTRE_TOTAL_COLUMNS, MODULE_TOTAL_COLUMNS
from lms_core.data import DashboardData


USER_DETAIL_COLUMNS = [
    "centre_number",
    "centre_name",
    "customer_journey_point",
    "training_module",
    "training_type",
    "user_email",
    "status",
    "status_bucket",
    "progress",
    "date",
]

ENGAGEMENT_DETAIL_COLUMNS = [
    "demo_name",
    "link",
    "last_view",
    "total_time",
    "steps_completed",
    "percent_complete",
    "opened_cta",
    "country",
    "date",
]


def _select(df: pd.DataFrame, columns: List[str]) -> pd.DataFrame:
    out = df.reindex(columns=columns)
    return out.reset_index(drop=True)


def module_catalogue(data: DashboardData) -> pd.DataFrame:
    return _select(data.aggregates.module_totals, MODULE_TOTAL_COLUMNS)


def centre_breakdown(data: DashboardData) -> pd.DataFrame:
    return _select(data.aggregates.centre_totals, CENTRE_TOTAL_COLUMNS)


def user_detail(data: DashboardData) -> pd.DataFrame:
    df = data.enrollments.rename(columns={"date_key": "date"})
    return _select(df, USER_DETAIL_COLUMNS)


def engagement_detail(data: DashboardData) -> pd.DataFrame:
    return _select(data.engagements.rename(columns={"date_key": "date"}), ENGAGEMENT_DETAIL_COLUMNS)


def to_payload(data: DashboardData) -> Dict[str, Any]:
    return {
        "module_catalogue": module_catalogue(data).to_dict(orient="records"),
        "centre_breakdown": centre_breakdown(data).to_dict(orient="records"),
        "user_detail": user_detail(data).to_dict(orient="records"),
        "engagement_detail": engagement_detail(data).to_dict(orient="records"),
        "available_dates": list(data.available_dates),
    }
