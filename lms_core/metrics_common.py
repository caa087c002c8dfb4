from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

import pandas as pd


def round_half_up(value: object, ndigits: int = 0) -> Optional[float]:
    if value is None or pd.isna(value):
        return None
    q = Decimal(10) ** -ndigits
    return float(Decimal(str(value)).quantize(q, rounding=ROUND_HALF_UP))


def completion_rate(completed: object, available: object, ndigits: int = 0) -> float:
    """Completed / available as a percentage; 0.0 when nothing is available."""
    try:
        completed_f = float(completed)
        available_f = float(available)
    except (TypeError, ValueError):
        return 0.0
    if pd.isna(completed_f) or pd.isna(available_f) or available_f <= 0:
        return 0.0
    return round_half_up(completed_f / available_f * 100, ndigits) or 0.0


def completion_rate_series(completed: pd.Series, available: pd.Series, ndigits: int = 0) -> pd.Series:
    return pd.Series(
        [completion_rate(c, a, ndigits) for c, a in zip(completed, available)],
        index=completed.index,
        dtype=float,
    )
