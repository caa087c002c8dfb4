"""Tests for date normalization and the available-dates universe."""

from datetime import date

import pandas as pd
import pytest

from lms_core.dates import UNKNOWN, collect_available_dates, first_date_key, normalize_date


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("2024-01-05", "2024-01-05"),
        ("2024-01-05 10:22:33", "2024-01-05"),
        ("2024-01-05T10:22:33Z", "2024-01-05"),
        ("01/05/2024", "2024-01-05"),
        ("  2023-12-31  ", "2023-12-31"),
        ("", UNKNOWN),
        ("   ", UNKNOWN),
        ("not a date", UNKNOWN),
        ("2024-13-45", UNKNOWN),
        ("5", UNKNOWN),
        (None, UNKNOWN),
        (float("nan"), UNKNOWN),
    ],
)
def test_normalize_date(raw, expected):
    assert normalize_date(raw) == expected


def test_normalize_date_accepts_date_objects():
    assert normalize_date(date(2024, 2, 29)) == "2024-02-29"
    assert normalize_date(pd.Timestamp("2024-02-29 23:59")) == "2024-02-29"
    assert normalize_date(pd.NaT) == UNKNOWN


def test_normalize_date_is_stable():
    assert normalize_date("2024-01-05T10:22:33Z") == normalize_date("2024-01-05T10:22:33Z")


def test_first_date_key_falls_back_across_columns():
    df = pd.DataFrame(
        {
            "enrollment_date": ["2024-01-01", "", "", "garbage"],
            "started_date": ["2024-02-01", "2024-02-02", "", ""],
            "completion_date": ["", "2024-03-03", "2024-03-04", ""],
        }
    )
    keys = first_date_key(df, ["enrollment_date", "started_date", "completion_date"])
    assert keys.tolist() == ["2024-01-01", "2024-02-02", "2024-03-04", UNKNOWN]


def test_collect_available_dates_sorted_without_unknown():
    a = pd.Series(["2024-02-01", UNKNOWN, "2024-01-01"])
    b = pd.Series(["2024-01-01", "2023-12-31"])
    assert collect_available_dates(a, b) == ["2023-12-31", "2024-01-01", "2024-02-01"]
    assert collect_available_dates(pd.Series([UNKNOWN]), pd.Series(dtype=object)) == []
