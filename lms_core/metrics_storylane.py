from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict, List

import altair as alt
import pandas as pd

from lms_core.charts import PALETTE, to_vega_spec
from lms_core.context import ctx_frame
from lms_core.filters import ViewFilters, apply_view_filters, unique_options
from lms_core.metrics_common import completion_rate, round_half_up


COMPLETION_BANDS = [("0-25%", 25), ("26-50%", 50), ("51-75%", 75), ("76-100%", None)]


def completion_distribution(percent: pd.Series) -> List[Dict[str, Any]]:
    counts = {name: 0 for name, _ in COMPLETION_BANDS}
    for value in percent.fillna(0):
        for name, upper in COMPLETION_BANDS:
            if upper is None or value <= upper:
                counts[name] += 1
                break
    return [{"name": name, "value": counts[name]} for name, _ in COMPLETION_BANDS]


def country_counts(df: pd.DataFrame) -> List[Dict[str, Any]]:
    if df.empty:
        return []
    counts = df["country"].astype(str).value_counts(sort=True)
    return [{"name": str(k), "value": int(v)} for k, v in counts.items()]


def compute_storylane(filters: ViewFilters, ctx: Dict[str, Any]) -> Dict[str, Any]:
    engagements = ctx_frame(ctx, "engagement_detail")
    options = {"country": unique_options(engagements, "country")}
    table = apply_view_filters(engagements, filters, ["country"])

    total = int(len(table))
    clicked = int(table["opened_cta"].astype(bool).sum()) if total else 0
    avg_completion = round_half_up(table["percent_complete"].mean()) if total else 0.0
    distribution = completion_distribution(table["percent_complete"])
    countries = country_counts(table)

    payload: Dict[str, Any] = {
        "filters": asdict(filters),
        "window": ctx.get("window"),
        "options": options,
        "kpis": {
            "total_demos": total,
            "avg_completion": avg_completion or 0.0,
            "cta_clicked": clicked,
            "cta_rate": completion_rate(clicked, total),
            "countries": len(countries),
        },
        "completion_distribution": distribution,
        "country_counts": countries,
        "cta": [{"name": "Clicked", "value": clicked}, {"name": "Not Clicked", "value": total - clicked}],
        "table": table.to_dict(orient="records"),
        "charts": {},
    }
    if engagements.empty:
        payload["message"] = "No Storylane data was loaded. Check the CSV file format."
    if not total:
        return payload

    dist_chart = (
        alt.Chart(pd.DataFrame(distribution))
        .mark_arc(outerRadius=120)
        .encode(
            theta=alt.Theta("value:Q"),
            color=alt.Color("name:N", title="Completion", sort=[n for n, _ in COMPLETION_BANDS], scale=alt.Scale(range=PALETTE)),
            tooltip=[alt.Tooltip("name:N", title="Band"), alt.Tooltip("value:Q", title="Demos")],
        )
    )
    country_chart = (
        alt.Chart(pd.DataFrame(countries))
        .mark_bar(color=PALETTE[0])
        .encode(
            x=alt.X("name:N", title="Country", sort="-y"),
            y=alt.Y("value:Q", title="Demo Views"),
            tooltip=[alt.Tooltip("name:N", title="Country"), alt.Tooltip("value:Q", title="Views")],
        )
    )
    cta_chart = (
        alt.Chart(pd.DataFrame(payload["cta"]))
        .mark_arc(outerRadius=120)
        .encode(
            theta=alt.Theta("value:Q"),
            color=alt.Color("name:N", title="CTA", scale=alt.Scale(domain=["Clicked", "Not Clicked"], range=["#2E7D32", "#BDBDBD"])),
            tooltip=[alt.Tooltip("name:N"), alt.Tooltip("value:Q", title="Demos")],
        )
    )
    payload["charts"] = {
        "completion_distribution": to_vega_spec(dist_chart),
        "country_views": to_vega_spec(country_chart),
        "cta_rate": to_vega_spec(cta_chart),
    }
    return payload
