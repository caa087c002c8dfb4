from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict

from lms_core.context import ctx_frame
from lms_core.filters import ViewFilters, apply_view_filters, unique_options
from lms_core.status import StatusBucket


def compute_centre_users(filters: ViewFilters, ctx: Dict[str, Any]) -> Dict[str, Any]:
    users = ctx_frame(ctx, "user_detail")
    options = {
        "centre": unique_options(users, "centre_name"),
        "customer_journey_point": unique_options(users, "customer_journey_point"),
        "training_type": unique_options(users, "training_type"),
        "user_email": unique_options(users, "user_email"),
    }
    table = apply_view_filters(users, filters, ["centre", "customer_journey_point", "training_type", "user_email"])
    if table.empty:
        return {"filters": asdict(filters), "window": ctx.get("window"), "options": options, "kpis": {}, "table": []}

    table["started_training"] = table["status_bucket"].isin([StatusBucket.IN_PROGRESS.value, StatusBucket.COMPLETED.value]).astype(int)
    table["completed_training"] = table["status_bucket"].eq(StatusBucket.COMPLETED.value).astype(int)
    emails = table["user_email"].astype(str)
    return {
        "filters": asdict(filters),
        "window": ctx.get("window"),
        "options": options,
        "kpis": {
            "enrolments": int(len(table)),
            "users": int(emails[emails.ne("")].nunique()),
            "started": int(table["started_training"].sum()),
            "completed": int(table["completed_training"].sum()),
            "avg_progress": float(table["progress"].mean()) if table["progress"].notna().any() else 0.0,
        },
        "table": table.to_dict(orient="records"),
    }
