from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict

import altair as alt

from lms_core.charts import BUCKET_COLORS, to_vega_spec
from lms_core.context import ctx_frame
from lms_core.filters import ViewFilters, apply_view_filters, unique_options
from lms_core.metrics_common import completion_rate, completion_rate_series
from lms_core.status import BUCKET_COLUMNS, BUCKET_LABELS, WEBINAR_TOKEN


def compute_training_catalogue(filters: ViewFilters, ctx: Dict[str, Any]) -> Dict[str, Any]:
    catalogue = ctx_frame(ctx, "module_catalogue")
    options = {
        "customer_journey_point": unique_options(catalogue, "customer_journey_point"),
        "training_type": unique_options(catalogue, "training_type"),
    }
    table = apply_view_filters(catalogue, filters, ["customer_journey_point", "training_type"])
    payload: Dict[str, Any] = {
        "filters": asdict(filters),
        "window": ctx.get("window"),
        "options": options,
        "kpis": {},
        "has_webinars": False,
        "table": [],
        "charts": {},
    }
    if table.empty:
        return payload

    table["total"] = table[BUCKET_COLUMNS].sum(axis=1).astype(int)
    table["completion_rate"] = completion_rate_series(table["completed"], table["total"])
    total = int(table["total"].sum())
    completed = int(table["completed"].sum())

    # The UI labels the completed column "Completed / Enrolled" when webinars are listed.
    payload["has_webinars"] = bool(table["training_type"].astype(str).str.lower().str.contains(WEBINAR_TOKEN, regex=False).any())
    payload["kpis"] = {
        "modules": int(len(table)),
        "enrolments": total,
        "completed": completed,
        "in_progress": int(table["in_progress"].sum()),
        "not_started": int(table["not_started"].sum()),
        "completion_rate": completion_rate(completed, total),
    }
    payload["table"] = table.to_dict(orient="records")

    long_df = table.melt(
        id_vars=["training_module", "completion_rate"],
        value_vars=BUCKET_COLUMNS,
        var_name="bucket",
        value_name="count",
    )
    long_df["status"] = long_df["bucket"].map(BUCKET_LABELS)
    bar = (
        alt.Chart(long_df)
        .mark_bar()
        .encode(
            x=alt.X("training_module:N", title="Training Module", sort=None, axis=alt.Axis(labelAngle=-45)),
            y=alt.Y("count:Q", title="Learners", stack="zero"),
            color=alt.Color(
                "status:N",
                title="Status",
                scale=alt.Scale(domain=list(BUCKET_COLORS), range=list(BUCKET_COLORS.values())),
            ),
            tooltip=[
                alt.Tooltip("training_module:N", title="Module"),
                alt.Tooltip("status:N", title="Status"),
                alt.Tooltip("count:Q", title="Learners", format=","),
                alt.Tooltip("completion_rate:Q", title="Completion %", format=".0f"),
            ],
        )
        .properties(height=320)
    )
    payload["charts"] = {"status_overview": to_vega_spec(bar)}
    return payload
