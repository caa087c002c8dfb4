from __future__ import annotations

from dataclasses import asdict
import logging
import math
from functools import lru_cache
from typing import Any, Callable, Dict, Tuple

import numpy as np
import pandas as pd
from fastapi import FastAPI
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

from lms_api.schemas import MetaDatesResponse, PayloadResponse, ViewFiltersModel
from lms_core.assemble import to_payload
from lms_core.context import prepare_context
from lms_core.data import DashboardData, load_dashboard_data
from lms_core.filters import ViewFilters, normalize_filters
from lms_core.metrics_catalogue import compute_training_catalogue
from lms_core.metrics_centre import compute_centre_view
from lms_core.metrics_storylane import compute_storylane
from lms_core.metrics_users import compute_centre_users
from lms_core.sources import FeedLoadError, FeedSources, default_sources, source_signature


app = FastAPI(title="LMS Engagement Dashboard API", version="0.1.0")
logger = logging.getLogger(__name__)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:3000", "http://127.0.0.1:3000"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

PAGES: Dict[str, Callable[[ViewFilters, Dict[str, Any]], Dict[str, Any]]] = {
    "catalogue": compute_training_catalogue,
    "centres": compute_centre_view,
    "users": compute_centre_users,
    "storylane": compute_storylane,
}


@lru_cache(maxsize=4)
def _load_cached(sources: FeedSources, signature: Tuple[Tuple[str, float], ...]) -> DashboardData:
    # Failed loads raise and are not cached.
    return load_dashboard_data(sources)


def get_dashboard_data() -> DashboardData:
    sources = default_sources()
    return _load_cached(sources, source_signature(sources))


def _filters_from_model(model: ViewFiltersModel) -> ViewFilters:
    return normalize_filters(model.model_dump())


def _json(data: object) -> JSONResponse:
    """Return JSON with safe encoding for pandas/numpy objects."""

    def _safe_float(value: object) -> float | None:
        try:
            out = float(value)  # type: ignore[arg-type]
        except Exception:
            return None
        if math.isnan(out) or math.isinf(out):
            return None
        return out

    return JSONResponse(
        content=jsonable_encoder(
            data,
            custom_encoder={
                type(pd.NA): lambda _: None,
                np.integer: int,
                float: _safe_float,
                np.floating: _safe_float,
                np.bool_: bool,
                np.ndarray: lambda arr: arr.tolist(),
                pd.Timestamp: lambda ts: ts.isoformat(),
            },
        )
    )


def _error(exc: Exception, name: str) -> JSONResponse:
    if isinstance(exc, FeedLoadError):
        logger.error("%s failed: %s", name, exc)
        return JSONResponse(status_code=502, content={"error": str(exc), "type": type(exc).__name__})
    logger.exception("%s failed", name)
    return JSONResponse(status_code=500, content={"error": str(exc), "type": type(exc).__name__})


@app.get("/meta/dates", response_model=MetaDatesResponse)
def meta_dates():
    try:
        data = get_dashboard_data()
        return _json({"dates": list(data.available_dates)})
    except Exception as exc:
        return _error(exc, "meta_dates")


@app.post("/payload", response_model=PayloadResponse)
def payload(filters: ViewFiltersModel):
    try:
        data = get_dashboard_data()
        ctx = prepare_context(_filters_from_model(filters), data)
        return _json(to_payload(ctx["data"]))
    except Exception as exc:
        return _error(exc, "payload")


def _page(name: str, filters: ViewFiltersModel) -> JSONResponse:
    try:
        data = get_dashboard_data()
        f = _filters_from_model(filters)
        ctx = prepare_context(f, data)
        return _json(PAGES[name](f, ctx))
    except Exception as exc:
        return _error(exc, name)


@app.post("/catalogue")
def catalogue(filters: ViewFiltersModel):
    return _page("catalogue", filters)


@app.post("/centres")
def centres(filters: ViewFiltersModel):
    return _page("centres", filters)


@app.post("/users")
def users(filters: ViewFiltersModel):
    return _page("users", filters)


@app.post("/storylane")
def storylane(filters: ViewFiltersModel):
    return _page("storylane", filters)


@app.post("/export/{view}")
def export_view(view: str, filters: ViewFiltersModel):
    compute = PAGES.get(view)
    if compute is None:
        return JSONResponse(status_code=404, content={"error": f"Unknown view: {view}", "available": sorted(PAGES)})
    try:
        data = get_dashboard_data()
        f = _filters_from_model(filters)
        result = compute(f, prepare_context(f, data))
    except Exception as exc:
        return _error(exc, f"export_{view}")

    export_df = pd.DataFrame(result.get("table") or [])
    csv_bytes = export_df.to_csv(index=False).encode("utf-8")
    filename = f"{view}.csv"
    logger.info("Exported %d rows for %s (filters=%s)", len(export_df), view, asdict(f))
    return Response(content=csv_bytes, media_type="text/csv", headers={"Content-Disposition": f"attachment; filename={filename}"})
