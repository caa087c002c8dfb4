from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict

import altair as alt
import pandas as pd

from lms_core.charts import PALETTE, to_vega_spec
from lms_core.context import ctx_frame
from lms_core.filters import ViewFilters, apply_view_filters, unique_options
from lms_core.metrics_common import completion_rate, completion_rate_series
from lms_core.status import BUCKET_COLUMNS


def rollup_centres(breakdown: pd.DataFrame) -> pd.DataFrame:
    """(centre, module) rows -> one row per centre with its completion rate."""
    if breakdown.empty:
        return pd.DataFrame(columns=["centre_number", "centre_name", "available", *BUCKET_COLUMNS, "completion_rate"])
    per_centre = (
        breakdown.groupby(["centre_number", "centre_name"], sort=False, dropna=False)[["available", *BUCKET_COLUMNS]]
        .sum()
        .reset_index()
    )
    per_centre["completion_rate"] = completion_rate_series(per_centre["completed"], per_centre["available"])
    return per_centre


def compute_centre_view(filters: ViewFilters, ctx: Dict[str, Any]) -> Dict[str, Any]:
    breakdown = ctx_frame(ctx, "centre_breakdown")
    options = {
        "centre": unique_options(breakdown, "centre_name"),
        "customer_journey_point": unique_options(breakdown, "customer_journey_point"),
        "training_type": unique_options(breakdown, "training_type"),
    }
    table = apply_view_filters(breakdown, filters, ["centre", "customer_journey_point", "training_type"])
    payload: Dict[str, Any] = {
        "filters": asdict(filters),
        "window": ctx.get("window"),
        "options": options,
        "kpis": {},
        "table": [],
        "centres": [],
        "charts": {},
    }
    if table.empty:
        return payload

    table["completion_rate"] = completion_rate_series(table["completed"], table["available"])
    per_centre = rollup_centres(table)
    available = int(table["available"].sum())
    completed = int(table["completed"].sum())
    payload["kpis"] = {
        "centres": int(per_centre["centre_number"].nunique()),
        "available": available,
        "completed": completed,
        "completion_rate": completion_rate(completed, available),
    }
    payload["table"] = table.to_dict(orient="records")
    payload["centres"] = per_centre.to_dict(orient="records")

    pie_src = per_centre.assign(label=lambda d: d["centre_name"].where(d["centre_name"].astype(str).ne(""), d["centre_number"]))
    pie = (
        alt.Chart(pie_src)
        .mark_arc(outerRadius=120)
        .encode(
            theta=alt.Theta("completed:Q", stack=True),
            color=alt.Color("label:N", title="Centre", scale=alt.Scale(range=PALETTE)),
            tooltip=[
                alt.Tooltip("label:N", title="Centre"),
                alt.Tooltip("available:Q", title="Available", format=","),
                alt.Tooltip("completed:Q", title="Completed", format=","),
                alt.Tooltip("completion_rate:Q", title="Completion %", format=".0f"),
            ],
        )
        .properties(height=320)
    )
    payload["charts"] = {"centre_progress": to_vega_spec(pie)}
    return payload
