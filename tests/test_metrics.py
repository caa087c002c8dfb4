"""Tests for the dashboard page computations built on top of prepare_context."""

import pandas as pd
import pytest

from lms_core.context import prepare_context
from lms_core.data import build_dashboard_data
from lms_core.filters import normalize_filters
from lms_core.metrics_catalogue import compute_training_catalogue
from lms_core.metrics_centre import compute_centre_view, rollup_centres
from lms_core.metrics_common import completion_rate, round_half_up
from lms_core.metrics_storylane import completion_distribution, compute_storylane
from lms_core.metrics_users import compute_centre_users
from tests.conftest import TODAY, by_key, lms_csv, lms_row


ALL_TIME = {"date_preset": "all"}
JAN_FEB = {"date_preset": "custom", "start_date": "2024-01-01", "end_date": "2024-02-28"}


def run(compute, data, raw):
    f = normalize_filters(raw)
    return compute(f, prepare_context(f, data, today=TODAY))


@pytest.mark.parametrize(
    "completed, available, expected",
    [(1, 3, 33.0), (2, 3, 67.0), (1, 2, 50.0), (0, 0, 0.0), (5, None, 0.0), ("x", 3, 0.0)],
)
def test_completion_rate(completed, available, expected):
    assert completion_rate(completed, available) == expected


def test_round_half_up():
    assert round_half_up(2.5) == 3.0
    assert round_half_up(0.125, 2) == 0.13
    assert round_half_up(None) is None


class TestContext:

    def test_all_time_keeps_snapshot(self, dashboard_data):
        ctx = prepare_context(ALL_TIME, dashboard_data, today=TODAY)
        assert ctx["window"] is None
        assert ctx["data"] is dashboard_data
        assert len(ctx["user_detail"]) == 6

    def test_default_preset_is_last30(self, dashboard_data):
        ctx = prepare_context({}, dashboard_data, today=TODAY)
        assert ctx["window"] == ("2024-03-02", "2024-04-01")
        assert ctx["available_dates"] == list(dashboard_data.available_dates)


class TestCatalogue:

    def test_all_time(self, dashboard_data):
        result = run(compute_training_catalogue, dashboard_data, ALL_TIME)
        assert result["kpis"] == {
            "modules": 3,
            "enrolments": 6,
            "completed": 3,
            "in_progress": 2,
            "not_started": 1,
            "completion_rate": 50.0,
        }
        assert result["has_webinars"] is True
        rows = by_key(result["table"], "training_module")
        assert rows["Safety101"]["total"] == 3
        assert rows["Safety101"]["completion_rate"] == 33.0
        assert rows["Leadership Webinar"]["completion_rate"] == 100.0
        assert "status_overview" in result["charts"]
        assert result["options"]["training_type"] == ["Webinar", "eLearning"]

    def test_window(self, dashboard_data):
        result = run(compute_training_catalogue, dashboard_data, JAN_FEB)
        assert result["window"] == ("2024-01-01", "2024-02-28")
        assert result["kpis"]["modules"] == 2
        assert result["kpis"]["enrolments"] == 4
        assert result["kpis"]["completed"] == 2

    def test_select_and_search(self, dashboard_data):
        result = run(compute_training_catalogue, dashboard_data, {**ALL_TIME, "training_type": "eLearning"})
        assert [r["training_module"] for r in result["table"]] == ["Safety101", "Compliance"]
        assert result["has_webinars"] is False
        result = run(compute_training_catalogue, dashboard_data, {**ALL_TIME, "search": "compli"})
        assert [r["training_module"] for r in result["table"]] == ["Compliance"]

    def test_no_rows(self, dashboard_data):
        result = run(compute_training_catalogue, dashboard_data, {**ALL_TIME, "search": "zzz"})
        assert result["kpis"] == {}
        assert result["table"] == []
        assert result["charts"] == {}


class TestCentreView:

    def test_all_time(self, dashboard_data):
        result = run(compute_centre_view, dashboard_data, ALL_TIME)
        assert result["kpis"] == {"centres": 2, "available": 6, "completed": 3, "completion_rate": 50.0}
        assert len(result["table"]) == 4
        assert result["options"]["centre"] == ["Spain", "UK"]
        assert "centre_progress" in result["charts"]

    def test_centre_filter(self, dashboard_data):
        result = run(compute_centre_view, dashboard_data, {**ALL_TIME, "centre": "Spain"})
        assert result["kpis"]["available"] == 3
        assert result["kpis"]["completion_rate"] == 33.0
        assert {r["centre_number"] for r in result["table"]} == {"C2"}

    def test_rollup(self, dashboard_data):
        ctx = prepare_context(ALL_TIME, dashboard_data, today=TODAY)
        per_centre = by_key(rollup_centres(ctx["centre_breakdown"]).to_dict(orient="records"), "centre_number")
        assert per_centre["C1"]["available"] == 3
        assert per_centre["C1"]["completion_rate"] == 67.0
        assert per_centre["C2"]["completion_rate"] == 33.0


class TestCentreUsers:

    def test_all_time(self, dashboard_data):
        result = run(compute_centre_users, dashboard_data, ALL_TIME)
        assert result["kpis"] == {
            "enrolments": 6,
            "users": 5,
            "started": 5,
            "completed": 3,
            "avg_progress": 32.5,
        }
        first = result["table"][0]
        assert first["started_training"] == 1
        assert first["completed_training"] == 0
        assert (first["status"], first["status_bucket"]) == ("In Progress", "in_progress")

    def test_user_filter(self, dashboard_data):
        result = run(compute_centre_users, dashboard_data, {**ALL_TIME, "user_email": "a@example.com"})
        assert [r["training_module"] for r in result["table"]] == ["Safety101", "Leadership Webinar"]

    def test_window(self, dashboard_data):
        result = run(compute_centre_users, dashboard_data, JAN_FEB)
        assert result["kpis"]["enrolments"] == 4


class TestStorylane:

    def test_all_time(self, dashboard_data):
        result = run(compute_storylane, dashboard_data, ALL_TIME)
        assert result["kpis"] == {
            "total_demos": 3,
            "avg_completion": 23.0,
            "cta_clicked": 1,
            "cta_rate": 33.0,
            "countries": 2,
        }
        assert [d["value"] for d in result["completion_distribution"]] == [2, 1, 0, 0]
        assert result["country_counts"] == [{"name": "UK", "value": 2}, {"name": "Spain", "value": 1}]
        assert set(result["charts"]) == {"completion_distribution", "country_views", "cta_rate"}
        assert "message" not in result

    def test_country_filter(self, dashboard_data):
        result = run(compute_storylane, dashboard_data, {**ALL_TIME, "country": "Spain"})
        assert result["kpis"]["total_demos"] == 1
        assert result["kpis"]["cta_rate"] == 0.0

    def test_window_excludes_undated_views(self, dashboard_data):
        result = run(compute_storylane, dashboard_data, JAN_FEB)
        assert result["kpis"]["total_demos"] == 1
        assert result["kpis"]["cta_clicked"] == 1

    def test_empty_feed(self):
        data = build_dashboard_data(lms_csv(lms_row("Safety101", "Completed", "2024-01-01")), "")
        result = run(compute_storylane, data, ALL_TIME)
        assert result["kpis"]["total_demos"] == 0
        assert result["kpis"]["cta_rate"] == 0.0
        assert result["charts"] == {}
        assert "message" in result


def test_completion_distribution_bands():
    counts = completion_distribution(pd.Series([0.0, 25.0, 25.5, 50.0, 75.0, 76.0, 100.0]))
    assert [c["value"] for c in counts] == [2, 2, 1, 2]
