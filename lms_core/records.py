from __future__ import annotations

import io
import logging
from typing import Dict, Iterable, List

import pandas as pd


logger = logging.getLogger(__name__)

LMS_COLUMNS = {
    "Course": "training_module",
    "Training Type": "training_type",
    "Type": "training_type",
    "Customer Journey Point": "customer_journey_point",
    "Enrollment Date (UTC TimeZone)": "enrollment_date",
    "Enrollment Date": "enrollment_date",
    "Started Date (UTC TimeZone)": "started_date",
    "Started Date": "started_date",
    "Completion Date (UTC TimeZone)": "completion_date",
    "Completion Date": "completion_date",
    "Status": "status",
    "Progress %": "progress",
    "Centre Number": "centre_number",
    "Centre Country": "centre_name",
    "User Email": "user_email",
    "Email": "user_email",
}

STORYLANE_COLUMNS = {
    "Demo": "demo_name",
    "Link": "link",
    "Last View": "last_view",
    "Total Time": "total_time",
    "Steps Completed": "steps_completed",
    "Percent Complete": "percent_complete",
    "Opened CTA": "opened_cta",
    "Country": "country",
}

LMS_DEFAULTS = {"training_type": "LMS", "customer_journey_point": "Training"}

TRUE_TOKENS = {"true", "yes", "y", "1", "opened"}


def _fields(mapping: Dict[str, str]) -> List[str]:
    return list(dict.fromkeys(mapping.values()))


LMS_FIELDS = _fields(LMS_COLUMNS)
STORYLANE_FIELDS = _fields(STORYLANE_COLUMNS)


def read_feed_csv(text: str) -> pd.DataFrame:
    """Read delimited text into an all-string frame, skipping malformed and duplicate lines."""
    if not text or not text.strip():
        return pd.DataFrame()
    try:
        df = pd.read_csv(
            io.StringIO(text),
            dtype=str,
            keep_default_na=False,
            skip_blank_lines=True,
            on_bad_lines="skip",
            index_col=False,
        )
    except pd.errors.EmptyDataError:
        return pd.DataFrame()
    except pd.errors.ParserError as exc:
        logger.warning("Unreadable CSV content, treating feed as empty: %s", exc)
        return pd.DataFrame()

    df.columns = [str(c).replace("\ufeff", "").strip() for c in df.columns]
    before = len(df)
    df = df.drop_duplicates().reset_index(drop=True)
    if len(df) != before:
        logger.debug("Skipped %d duplicate lines", before - len(df))
    return df


def drop_duplicate_columns(df: pd.DataFrame) -> pd.DataFrame:
    return df.loc[:, ~df.columns.duplicated()]


def coerce_str_safe(df: pd.DataFrame, cols: Iterable[str]) -> pd.DataFrame:
    for col in cols:
        if col in df.columns:
            df[col] = df[col].fillna("").astype(str).str.strip()
    return df


def parse_percent(series: pd.Series, *, scale_fractions: bool = False) -> pd.Series:
    """'45%' / '45' -> 45.0. Unparseable -> 0.0.

    With ``scale_fractions`` a bare value in [0, 1] (no percent sign) is read as a fraction.
    """
    raw = series.fillna("").astype(str).str.strip()
    values = pd.to_numeric(raw.str.rstrip("%").str.strip(), errors="coerce").fillna(0.0).astype(float)
    if scale_fractions:
        fraction = values.le(1) & values.gt(0) & ~raw.str.endswith("%")
        values = values.where(~fraction, values * 100)
    return values.round(2)


def parse_flag(series: pd.Series) -> pd.Series:
    return series.fillna("").astype(str).str.strip().str.lower().isin(TRUE_TOKENS)


def project_columns(df: pd.DataFrame, mapping: Dict[str, str], fields: List[str]) -> pd.DataFrame:
    df = df.rename(columns=mapping)
    df = drop_duplicate_columns(df)
    out = pd.DataFrame(index=df.index)
    for field in fields:
        out[field] = df[field] if field in df.columns else ""
    return coerce_str_safe(out, fields)


def parse_lms_csv(text: str) -> pd.DataFrame:
    raw = read_feed_csv(text)
    df = project_columns(raw, LMS_COLUMNS, LMS_FIELDS)
    for col, default in LMS_DEFAULTS.items():
        df[col] = df[col].mask(df[col].eq(""), default)
    df["progress"] = parse_percent(df["progress"])
    logger.debug("Parsed %d LMS rows", len(df))
    return df.reset_index(drop=True)


def parse_storylane_csv(text: str) -> pd.DataFrame:
    raw = read_feed_csv(text)
    df = project_columns(raw, STORYLANE_COLUMNS, STORYLANE_FIELDS)
    df["percent_complete"] = parse_percent(df["percent_complete"], scale_fractions=True)
    df["opened_cta"] = parse_flag(df["opened_cta"])
    logger.debug("Parsed %d Storylane rows", len(df))
    return df.reset_index(drop=True)
