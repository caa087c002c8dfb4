from __future__ import annotations

from enum import Enum

import numpy as np
import pandas as pd


class StatusBucket(str, Enum):
    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


BUCKET_COLUMNS = [b.value for b in StatusBucket]
BUCKET_LABELS = {
    StatusBucket.NOT_STARTED.value: "Not Started",
    StatusBucket.IN_PROGRESS.value: "In Progress",
    StatusBucket.COMPLETED.value: "Completed",
}

WEBINAR_TOKEN = "webinar"
COMPLETE_TOKEN = "complete"
IN_PROGRESS_TOKEN = "in progress"


def is_webinar(training_type: object) -> bool:
    return WEBINAR_TOKEN in str(training_type or "").lower()


def classify_status(training_type: object, status: object) -> StatusBucket:
    # Webinar rows count as completed (enrolled) whatever the status text says.
    if is_webinar(training_type):
        return StatusBucket.COMPLETED
    text = str(status or "").lower()
    if COMPLETE_TOKEN in text:
        return StatusBucket.COMPLETED
    if IN_PROGRESS_TOKEN in text:
        return StatusBucket.IN_PROGRESS
    return StatusBucket.NOT_STARTED


def annotate_status(df: pd.DataFrame) -> pd.DataFrame:
    """Add ``is_webinar`` and ``status_bucket`` columns (copy)."""
    out = df.copy()
    types = out.get("training_type", pd.Series("", index=out.index)).fillna("").astype(str).str.lower()
    status = out.get("status", pd.Series("", index=out.index)).fillna("").astype(str).str.lower()
    webinar = types.str.contains(WEBINAR_TOKEN, regex=False)
    out["is_webinar"] = webinar.astype(bool)
    out["status_bucket"] = np.select(
        [
            webinar,
            status.str.contains(COMPLETE_TOKEN, regex=False),
            status.str.contains(IN_PROGRESS_TOKEN, regex=False),
        ],
        [StatusBucket.COMPLETED.value, StatusBucket.COMPLETED.value, StatusBucket.IN_PROGRESS.value],
        default=StatusBucket.NOT_STARTED.value,
    )
    out["status_bucket"] = out["status_bucket"].astype(object)
    return out
