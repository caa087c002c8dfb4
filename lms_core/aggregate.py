from __future__ import annotations

from dataclasses import dataclass
from typing import List

import pandas as pd

from lms_core.dates import first_date_key
from lms_core.status import BUCKET_COLUMNS, WEBINAR_TOKEN, annotate_status


ENROLLMENT_DATE_COLUMNS = ["enrollment_date", "started_date", "completion_date"]
MODULE_KEY = ["training_module"]
CENTRE_KEY = ["centre_number", "training_module"]
DAILY_KEY = ["date_key"]

MODULE_TOTAL_COLUMNS = ["customer_journey_point", "training_module", "training_type"] + BUCKET_COLUMNS
CENTRE_TOTAL_COLUMNS = [
    "centre_number",
    "centre_name",
    "customer_journey_point",
    "training_module",
    "training_type",
    "available",
] + BUCKET_COLUMNS


@dataclass(frozen=True)
class Aggregates:
    """Bucket counts by module and by (centre, module).

    ``module_daily`` / ``centre_daily`` hold one row per entity and date key;
    the ``*_totals`` frames are their sums over all date keys (or over a window, once filtered).
    """

    module_daily: pd.DataFrame
    centre_daily: pd.DataFrame
    modules: pd.DataFrame
    centres: pd.DataFrame
    module_totals: pd.DataFrame
    centre_totals: pd.DataFrame


def annotate_enrollments(df: pd.DataFrame) -> pd.DataFrame:
    out = annotate_status(df)
    out["date_key"] = first_date_key(out, ENROLLMENT_DATE_COLUMNS)
    return out


def bucket_indicators(df: pd.DataFrame) -> pd.DataFrame:
    out = df.copy()
    for bucket in BUCKET_COLUMNS:
        out[bucket] = out["status_bucket"].eq(bucket).astype("int64")
    return out


def _daily(df: pd.DataFrame, keys: List[str]) -> pd.DataFrame:
    cols = keys + DAILY_KEY
    if df.empty:
        return pd.DataFrame(columns=cols + BUCKET_COLUMNS)
    return df.groupby(cols, sort=False)[BUCKET_COLUMNS].sum().reset_index()


def _empty(columns: List[str]) -> pd.DataFrame:
    return pd.DataFrame({c: pd.Series(dtype="int64" if c in BUCKET_COLUMNS + ["available"] else object) for c in columns})


def sum_module_daily(module_daily: pd.DataFrame, modules: pd.DataFrame) -> pd.DataFrame:
    if module_daily.empty:
        return _empty(MODULE_TOTAL_COLUMNS)
    totals = module_daily.groupby(MODULE_KEY, sort=False)[BUCKET_COLUMNS].sum().reset_index()
    totals = totals.merge(modules, on="training_module", how="left")
    return totals[MODULE_TOTAL_COLUMNS].reset_index(drop=True)


def sum_centre_daily(centre_daily: pd.DataFrame, modules: pd.DataFrame, centres: pd.DataFrame) -> pd.DataFrame:
    if centre_daily.empty:
        return _empty(CENTRE_TOTAL_COLUMNS)
    totals = centre_daily.groupby(CENTRE_KEY, sort=False)[BUCKET_COLUMNS].sum().reset_index()
    totals["available"] = totals[BUCKET_COLUMNS].sum(axis=1).astype("int64")
    totals = totals.merge(centres, on="centre_number", how="left").merge(modules, on="training_module", how="left")
    return totals[CENTRE_TOTAL_COLUMNS].reset_index(drop=True)


def build_aggregates(
    module_daily: pd.DataFrame,
    centre_daily: pd.DataFrame,
    modules: pd.DataFrame,
    centres: pd.DataFrame,
) -> Aggregates:
    return Aggregates(
        module_daily=module_daily.reset_index(drop=True),
        centre_daily=centre_daily.reset_index(drop=True),
        modules=modules,
        centres=centres,
        module_totals=sum_module_daily(module_daily, modules),
        centre_totals=sum_centre_daily(centre_daily, modules, centres),
    )


def aggregate_enrollments(enrollments: pd.DataFrame) -> Aggregates:
    """Fold enrollment rows into module and centre aggregates indexed by date key.

    Every row lands in exactly one bucket of one module-daily entry and one centre-daily
    entry, so lifetime totals always equal the sum over date keys (UNKNOWN included).
    """
    df = enrollments
    if not {"date_key", "status_bucket", "is_webinar"}.issubset(df.columns):
        df = annotate_enrollments(df)
    df = bucket_indicators(df)

    modules = (
        df.groupby("training_module", sort=False)[["training_type", "customer_journey_point"]].first().reset_index()
        if not df.empty
        else _empty(["training_module", "training_type", "customer_journey_point"])
    )
    centres = (
        df.groupby("centre_number", sort=False)[["centre_name"]].first().reset_index()
        if not df.empty
        else _empty(["centre_number", "centre_name"])
    )
    return build_aggregates(_daily(df, MODULE_KEY), _daily(df, CENTRE_KEY), modules, centres)


def webinar_modules(modules: pd.DataFrame) -> List[str]:
    """Modules whose catalogue training type is a webinar."""
    if modules.empty:
        return []
    webinar = modules["training_type"].fillna("").astype(str).str.lower().str.contains(WEBINAR_TOKEN, regex=False)
    return modules.loc[webinar, "training_module"].tolist()
