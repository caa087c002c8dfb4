from __future__ import annotations

from datetime import date
from typing import Dict, Optional

import pandas as pd

from lms_core.assemble import centre_breakdown, engagement_detail, module_catalogue, user_detail
from lms_core.data import DashboardData
from lms_core.filters import ViewFilters, normalize_filters, window_for
from lms_core.window import filter_by_range


def prepare_context(
    filters: dict | ViewFilters,
    data: DashboardData,
    *,
    today: Optional[date] = None,
) -> Dict[str, object]:
    """Window the snapshot by the filters' date preset and project the four views."""
    filt = filters if isinstance(filters, ViewFilters) else normalize_filters(filters)
    start, end = window_for(filt, data.available_dates, today=today)
    windowed = filter_by_range(data, start, end, today=today)

    return {
        "filters": filt,
        "window": windowed.window,
        "available_dates": list(data.available_dates),
        "data": windowed,
        "module_catalogue": module_catalogue(windowed),
        "centre_breakdown": centre_breakdown(windowed),
        "user_detail": user_detail(windowed),
        "engagement_detail": engagement_detail(windowed),
    }


def ctx_frame(ctx: Dict[str, object], key: str) -> pd.DataFrame:
    df = ctx.get(key)
    return df.copy() if isinstance(df, pd.DataFrame) else pd.DataFrame()
