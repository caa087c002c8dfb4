from contextlib import contextmanager
from datetime import date
from typing import Dict, List, Optional

import altair as alt
import pandas as pd
import streamlit as st

from lms_core.context import prepare_context
from lms_core.data import DashboardData, load_dashboard_data
from lms_core.filters import DATE_PRESETS, DEFAULT_DATE_PRESET, normalize_filters
from lms_core.metrics_catalogue import compute_training_catalogue
from lms_core.metrics_centre import compute_centre_view
from lms_core.metrics_storylane import compute_storylane
from lms_core.metrics_users import compute_centre_users
from lms_core.sources import FeedLoadError, default_sources, source_signature

alt.data_transformers.disable_max_rows()


# ---------- UI / layout helpers ----------
def inject_base_styles():
    if st.session_state.get("_base_css_injected"):
        return
    st.markdown(
        """
        <style>
        .card {border: 1px solid #e5e7eb;border-radius: 12px;padding: 16px;background: #ffffff;
               box-shadow: 0 1px 2px rgba(0,0,0,0.04); margin-bottom: 12px;}
        .card-title {font-weight: 600;font-size: 1.0rem;color: #6C2EB7;margin-bottom: 8px;}
        .chip-row {display: flex;flex-wrap: wrap;gap: 6px;margin-top: 6px;}
        .chip {background: #f3eefb;border: 1px solid #e5e7eb;border-radius: 14px;padding: 4px 10px;font-size: 0.85rem;color: #374151;}
        </style>
        """,
        unsafe_allow_html=True,
    )
    st.session_state["_base_css_injected"] = True


@contextmanager
def card(title: str):
    container = st.container()
    container.markdown(f"<div class='card'><div class='card-title'>{title}</div>", unsafe_allow_html=True)
    body = container.container()
    with body:
        yield body
    container.markdown("</div>", unsafe_allow_html=True)


def format_filter_summary(window, raw: Dict[str, object]) -> str:
    chips = [f"Dates: {window[0]} – {window[1]}" if window else "Dates: All Time"]
    for key, label in [("centre", "Centre"), ("training_type", "Type"), ("country", "Country")]:
        if raw.get(key):
            chips.append(f"{label}: {raw[key]}")
    if raw.get("search"):
        chips.append(f"Search: {raw['search']}")
    return "".join([f"<span class='chip'>{txt}</span>" for txt in chips])


def select_box(label: str, options: List[str], key: str) -> str:
    return st.selectbox(label, ["All"] + options, index=0, key=key)


def render_chart(spec: Optional[dict]):
    if spec:
        st.vega_lite_chart(spec, use_container_width=True)


def render_table(rows: List[dict], export_name: str):
    if not rows:
        st.info("No rows match the current filters.")
        return
    df = pd.DataFrame(rows)
    st.dataframe(df, hide_index=True, use_container_width=True)
    st.download_button("Export CSV", data=df.to_csv(index=False).encode("utf-8"), file_name=export_name, mime="text/csv")


@st.cache_data(show_spinner="Loading LMS and Storylane feeds…")
def _load(signature) -> DashboardData:
    return load_dashboard_data()


# ---------- UI setup ----------
st.set_page_config(page_title="Training & Demo Engagement Dashboard", layout="wide")
inject_base_styles()
st.title("Training & Demo Engagement Dashboard")

with st.sidebar:
    if st.button("Reload data", help="Fetch both feeds again"):
        _load.clear()

try:
    data = _load(source_signature(default_sources()))
except FeedLoadError as exc:
    st.error(f"Could not load data: {exc}")
    st.stop()

with st.sidebar:
    st.markdown("### Date Range")
    preset_keys = list(DATE_PRESETS)
    preset = st.selectbox(
        "Time Period",
        preset_keys,
        index=preset_keys.index(DEFAULT_DATE_PRESET),
        format_func=lambda k: DATE_PRESETS[k],
    )
    start_date = end_date = None
    if preset == "custom" and data.available_dates:
        dates = list(data.available_dates)
        start_date = st.selectbox("Start Date", dates, index=0)
        end_options = [d for d in dates if d >= start_date]
        end_date = st.selectbox("End Date", end_options, index=len(end_options) - 1)
    st.markdown("---")
    search = st.text_input("Search", "")

base_raw = {"date_preset": preset, "start_date": start_date, "end_date": end_date, "search": search}
base_ctx = prepare_context(normalize_filters(base_raw), data, today=date.today())
st.markdown(f"<div class='chip-row'>{format_filter_summary(base_ctx['window'], base_raw)}</div>", unsafe_allow_html=True)

tab_catalogue, tab_centre, tab_users, tab_storylane = st.tabs(
    ["Training Catalogue", "Centre View", "Centre User View", "Storylane Demos"]
)


# ----- Page renderers -----
def render_catalogue_page():
    options = compute_training_catalogue(normalize_filters(base_raw), base_ctx)["options"]
    cols = st.columns(2)
    with cols[0]:
        jp = select_box("Customer Journey Point", options["customer_journey_point"], "cat_jp")
    with cols[1]:
        tt = select_box("Training Type", options["training_type"], "cat_type")
    f = normalize_filters({**base_raw, "customer_journey_point": jp, "training_type": tt})
    result = compute_training_catalogue(f, base_ctx)
    kpis = result["kpis"]
    if kpis:
        k = st.columns(4)
        k[0].metric("Modules", f"{kpis['modules']:,}")
        k[1].metric("Enrolments", f"{kpis['enrolments']:,}")
        k[2].metric("Completed / Enrolled" if result["has_webinars"] else "Completed", f"{kpis['completed']:,}")
        k[3].metric("Completion Rate", f"{kpis['completion_rate']:.0f}%")
    with card("Training Status Overview"):
        render_chart(result["charts"].get("status_overview"))
    if result["has_webinars"]:
        st.caption("Webinar modules count enrolments as completions and ignore the date range.")
    render_table(result["table"], "training_catalogue.csv")


def render_centre_page():
    options = compute_centre_view(normalize_filters(base_raw), base_ctx)["options"]
    cols = st.columns(3)
    with cols[0]:
        centre = select_box("Centre", options["centre"], "centre_centre")
    with cols[1]:
        jp = select_box("Customer Journey Point", options["customer_journey_point"], "centre_jp")
    with cols[2]:
        tt = select_box("Training Type", options["training_type"], "centre_type")
    f = normalize_filters({**base_raw, "centre": centre, "customer_journey_point": jp, "training_type": tt})
    result = compute_centre_view(f, base_ctx)
    kpis = result["kpis"]
    if kpis:
        k = st.columns(3)
        k[0].metric("Centres", f"{kpis['centres']:,}")
        k[1].metric("Roles Available", f"{kpis['available']:,}")
        k[2].metric("Completion Rate", f"{kpis['completion_rate']:.0f}%")
    with card("Centre Training Progress"):
        render_chart(result["charts"].get("centre_progress"))
    render_table(result["table"], "centre_view.csv")


def render_users_page():
    options = compute_centre_users(normalize_filters(base_raw), base_ctx)["options"]
    cols = st.columns(4)
    with cols[0]:
        centre = select_box("Centre", options["centre"], "users_centre")
    with cols[1]:
        jp = select_box("Customer Journey Point", options["customer_journey_point"], "users_jp")
    with cols[2]:
        tt = select_box("Training Type", options["training_type"], "users_type")
    with cols[3]:
        email = select_box("User Email", options["user_email"], "users_email")
    f = normalize_filters(
        {**base_raw, "centre": centre, "customer_journey_point": jp, "training_type": tt, "user_email": email}
    )
    result = compute_centre_users(f, base_ctx)
    kpis = result["kpis"]
    if kpis:
        k = st.columns(4)
        k[0].metric("Enrolments", f"{kpis['enrolments']:,}")
        k[1].metric("Users", f"{kpis['users']:,}")
        k[2].metric("Started", f"{kpis['started']:,}")
        k[3].metric("Completed", f"{kpis['completed']:,}")
    render_table(result["table"], "centre_users.csv")


def render_storylane_page():
    options = compute_storylane(normalize_filters(base_raw), base_ctx)["options"]
    country = select_box("Country", options["country"], "sl_country")
    result = compute_storylane(normalize_filters({**base_raw, "country": country}), base_ctx)
    if result.get("message"):
        st.warning(result["message"])
    kpis = result["kpis"]
    k = st.columns(4)
    k[0].metric("Total Demos", f"{kpis['total_demos']:,}")
    k[1].metric("Average Completion", f"{kpis['avg_completion']:.0f}%")
    k[2].metric("CTA Click Rate", f"{kpis['cta_rate']:.0f}%", help=f"{kpis['cta_clicked']} of {kpis['total_demos']} clicked")
    k[3].metric("Countries", f"{kpis['countries']:,}")
    charts = result["charts"]
    c = st.columns(3)
    with c[0]:
        with card("Demo Completion Rates"):
            render_chart(charts.get("completion_distribution"))
    with c[1]:
        with card("CTA Click Rate"):
            render_chart(charts.get("cta_rate"))
    with c[2]:
        with card("Views by Country"):
            render_chart(charts.get("country_views"))
    render_table(result["table"], "storylane.csv")


with tab_catalogue:
    render_catalogue_page()
with tab_centre:
    render_centre_page()
with tab_users:
    render_users_page()
with tab_storylane:
    render_storylane_page()
