"""
Shared fixtures: small LMS and Storylane CSV feeds and the snapshot built from them.

LMS rows (first-seen order):
  Safety101 / C1 / 2024-01-05 / In Progress
  Safety101 / C1 / 2024-02-10 / Completed
  Safety101 / C2 / 2024-02-10 / Not Started
  Leadership Webinar (Webinar) / C1 / 2023-06-01 / Not Started  -> counted as completed
  Compliance / C2 / no usable date / Completed                    -> date key UNKNOWN
  Compliance / C2 / 2024-03-15 / in progress
"""

import csv
import io
from datetime import date

import pytest

from lms_core.data import build_dashboard_data


LMS_HEADERS = [
    "Course",
    "Training Type",
    "Customer Journey Point",
    "Enrollment Date (UTC TimeZone)",
    "Started Date (UTC TimeZone)",
    "Completion Date (UTC TimeZone)",
    "Status",
    "Progress %",
    "Centre Number",
    "Centre Country",
    "User Email",
]

STORYLANE_HEADERS = [
    "Demo",
    "Link",
    "Last View",
    "Total Time",
    "Steps Completed",
    "Percent Complete",
    "Opened CTA",
    "Country",
]

TODAY = date(2024, 4, 1)


def to_csv(headers, rows):
    buf = io.StringIO()
    writer = csv.DictWriter(buf, fieldnames=headers, lineterminator="\n")
    writer.writeheader()
    for row in rows:
        writer.writerow({h: row.get(h, "") for h in headers})
    return buf.getvalue()


def lms_row(course, status, enrolled, centre="C1", country="UK", training_type="eLearning", email="", **extra):
    row = {
        "Course": course,
        "Training Type": training_type,
        "Customer Journey Point": extra.pop("journey", "Onboarding"),
        "Enrollment Date (UTC TimeZone)": enrolled,
        "Status": status,
        "Progress %": extra.pop("progress", ""),
        "Centre Number": centre,
        "Centre Country": country,
        "User Email": email,
    }
    row.update(extra)
    return row


def lms_csv(*rows):
    return to_csv(LMS_HEADERS, rows)


def storylane_csv(*rows):
    return to_csv(STORYLANE_HEADERS, rows)


SAMPLE_LMS_ROWS = [
    lms_row("Safety101", "In Progress", "2024-01-05", email="a@example.com", progress="40%"),
    lms_row("Safety101", "Completed", "2024-02-10 09:30:00", email="b@example.com", progress="100%"),
    lms_row("Safety101", "Not Started", "2024-02-10", centre="C2", country="Spain", email="c@example.com"),
    lms_row("Leadership Webinar", "Not Started", "2023-06-01", training_type="Webinar", journey="Growth", email="a@example.com"),
    lms_row("Compliance", "Completed", "not a date", centre="C2", country="Spain", email="d@example.com"),
    lms_row("Compliance", "in progress", "2024-03-15", centre="C2", country="Spain", email="e@example.com", progress="55"),
]

SAMPLE_STORYLANE_ROWS = [
    {"Demo": "Product Tour", "Link": "https://demo/1", "Last View": "2024-02-11", "Total Time": "3m",
     "Steps Completed": "5/10", "Percent Complete": "0.5", "Opened CTA": "Yes", "Country": "UK"},
    {"Demo": "Product Tour", "Link": "https://demo/1", "Last View": "2024-03-20T14:00:00Z", "Total Time": "1m",
     "Steps Completed": "2/10", "Percent Complete": "20%", "Opened CTA": "No", "Country": "Spain"},
    {"Demo": "Pricing Demo", "Link": "https://demo/2", "Last View": "", "Total Time": "0",
     "Steps Completed": "0/8", "Percent Complete": "0", "Opened CTA": "No", "Country": "UK"},
]


@pytest.fixture
def lms_text():
    return lms_csv(*SAMPLE_LMS_ROWS)


@pytest.fixture
def storylane_text():
    return storylane_csv(*SAMPLE_STORYLANE_ROWS)


@pytest.fixture
def dashboard_data(lms_text, storylane_text):
    return build_dashboard_data(lms_text, storylane_text)


def by_key(rows, *keys):
    """Index a list of dict rows by the given key columns."""
    if len(keys) == 1:
        return {r[keys[0]]: r for r in rows}
    return {tuple(r[k] for k in keys): r for r in rows}
