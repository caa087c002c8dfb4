from __future__ import annotations

from typing import Any, Dict

import altair as alt

alt.data_transformers.disable_max_rows()

# Dashboard theme colours.
PALETTE = ["#6C2EB7", "#00A9B5", "#FFCE00", "#9E007E", "#A0E4E8"]
BUCKET_COLORS = {"Not Started": "#FFCE00", "In Progress": "#00A9B5", "Completed": "#6C2EB7"}


def to_vega_spec(chart: alt.Chart) -> Dict[str, Any]:
    """Convert an Altair chart into a Vega-Lite spec dict (JSON-serializable)."""
    return chart.to_dict()
