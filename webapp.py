#!/usr/bin/env python3
"""
ProgressTracker - Streamlit Web Application

This web interface renders a client's progress dashboard on top of the same
core engine as the command-line tool. Features include:
- Measurement history loaded from the remote store (or example data)
- Stat cards for current weight, estimated body fat and muscle gain
- Progress chart with time range and measurement type selection
- Quick measurement entry with validation (session only)

Run with: streamlit run webapp.py
"""

import json
import os
from datetime import date

import streamlit as st

from core import (
    ALL_METRICS,
    calculate_client_stats,
    extract_data_from_config,
    load_config_json,
    records_to_config,
    run_analysis_from_data,
    sort_records_by_date,
    validate_measurement_input,
)
from measurement_api import StoreConfig, load_progress_data
from shared_models import (
    DEFAULT_TIME_RANGE,
    MeasurementRecord,
    MeasurementType,
    SeriesState,
    TimeRange,
)

# Configure page
st.set_page_config(
    page_title="ProgressTracker - Client Progress Dashboard",
    page_icon="📈",
    layout="wide",
    initial_sidebar_state="collapsed",
)

EXAMPLE_CONFIG_PATH = os.path.join(os.path.dirname(__file__), "example_config.json")


def initialize_session_state():
    """Initialize session state variables."""
    if "records" not in st.session_state:
        st.session_state.records = []

    if "fetch_error" not in st.session_state:
        st.session_state.fetch_error = None

    if "data_loaded" not in st.session_state:
        st.session_state.data_loaded = False

    if "as_of" not in st.session_state:
        st.session_state.as_of = None

    if "time_range" not in st.session_state:
        st.session_state.time_range = DEFAULT_TIME_RANGE.value

    if "measurement_type" not in st.session_state:
        st.session_state.measurement_type = ALL_METRICS


def load_from_store():
    """Fetch measurements from the configured store into session state."""
    with st.spinner("Loading progress data..."):
        result = load_progress_data()

    st.session_state.records = result.records
    st.session_state.fetch_error = result.notification
    st.session_state.data_loaded = True
    st.session_state.as_of = None


def load_example_data():
    """Load the bundled example measurements into session state."""
    try:
        config = load_config_json(EXAMPLE_CONFIG_PATH, quiet=True)
        records, settings = extract_data_from_config(config)
    except Exception as e:
        st.session_state.fetch_error = f"Could not load example data: {e}"
        return

    st.session_state.records = records
    st.session_state.fetch_error = None
    st.session_state.data_loaded = True
    if settings.get("as_of"):
        st.session_state.as_of = date.fromisoformat(settings["as_of"])
    if settings.get("time_range"):
        st.session_state.time_range = settings["time_range"]


def display_header():
    """Display the page title and data source controls."""
    st.title("📈 Progress Tracker")

    store_configured = StoreConfig.from_env() is not None

    col1, col2 = st.columns(2)
    with col1:
        if st.button("📋 Load Example"):
            load_example_data()
    with col2:
        if st.button("🔄 Refresh", disabled=not store_configured):
            load_from_store()

    if not store_configured:
        st.caption(
            "Measurement store not configured. Set PROGRESS_STORE_URL and "
            "PROGRESS_STORE_KEY to load live data."
        )

    if st.session_state.fetch_error:
        st.error(st.session_state.fetch_error)


def display_stats_overview():
    """Display the current weight, body fat and muscle gain cards."""
    stats = calculate_client_stats(st.session_state.records)

    col1, col2, col3 = st.columns(3)
    with col1:
        st.metric(
            "Current Weight",
            f"{stats.current_weight.value:g} {stats.current_weight.unit}",
            f"{stats.current_weight.change:+g} {stats.current_weight.unit}",
            delta_color="inverse",
        )
    with col2:
        st.metric(
            "Body Fat",
            f"{stats.body_fat.value:g}{stats.body_fat.unit}",
            f"{stats.body_fat.change:+g}{stats.body_fat.unit}",
            delta_color="inverse",
            help="Rough estimate from the waist to chest ratio",
        )
    with col3:
        st.metric(
            "Muscle Gain",
            f"{stats.muscle_gain.value:g} {stats.muscle_gain.unit}",
            f"{stats.muscle_gain.change:+g} {stats.muscle_gain.unit}",
            help="Coarse heuristic from weight and body fat changes",
        )


def _format_measurement_type(value):
    if value == ALL_METRICS:
        return "All Measurements"
    return MeasurementType(value).label


def display_progress_chart():
    """Display the progress chart for the selected range and metric."""
    st.subheader("Progress Tracker")

    col1, col2 = st.columns(2)
    with col1:
        st.radio(
            "Time range",
            options=[tr.value for tr in TimeRange],
            format_func=lambda value: value.upper(),
            horizontal=True,
            key="time_range",
        )
    with col2:
        st.selectbox(
            "Measurement",
            options=[ALL_METRICS] + [mt.value for mt in MeasurementType],
            format_func=_format_measurement_type,
            key="measurement_type",
        )

    records = st.session_state.records
    if not records:
        st.info(
            "No measurements available. Add measurements to see your progress over time"
        )
        return

    series, progress, _, figure = run_analysis_from_data(
        records,
        st.session_state.time_range,
        st.session_state.measurement_type,
        now=st.session_state.as_of,
    )

    if series.is_all_metrics:
        if series.state == SeriesState.EMPTY:
            st.info("No measurements found for the selected time period")
            return
        st.plotly_chart(figure)
        return

    measurement_type = series.measurement_type
    label = measurement_type.label.lower()

    if series.state == SeriesState.EMPTY:
        st.info(
            f"No {label} data. No {label} measurements found for the selected time period"
        )
        return

    if series.state == SeriesState.SINGLE_POINT:
        st.info(
            f"One measurement found. Current {label}: "
            f"{series.points[0].value:g} {measurement_type.unit}. "
            "Add more measurements to see progress trends"
        )
        return

    st.metric("Change", f"{progress.change:+.1f} {progress.unit}")
    st.plotly_chart(figure)


def add_measurement_form():
    """Form for adding a measurement to the current session."""
    with st.expander("➕ Add Measurement"):
        with st.form("add_measurement", clear_on_submit=True):
            measurement_date = st.date_input("Date", value=date.today())
            measurement_type = st.selectbox(
                "Measurement Type",
                options=[mt.value for mt in MeasurementType],
                format_func=lambda value: MeasurementType(value).label,
            )
            value = st.text_input("Value", key="new_measurement_value")
            notes = st.text_input("Notes (optional)", key="new_measurement_notes")
            submitted = st.form_submit_button("Save Measurement")

        if not submitted:
            return

        errors = []
        for field_name, field_value in [
            ("date", measurement_date.isoformat()),
            (measurement_type, value),
            ("notes", notes),
        ]:
            is_valid, error_msg = validate_measurement_input(field_name, field_value)
            if not is_valid:
                errors.append(error_msg)

        if errors:
            for error in errors:
                st.error(f"• {error}")
            return

        record = MeasurementRecord(
            date=measurement_date,
            notes=notes or None,
            **{measurement_type: float(value)},
        )
        st.session_state.records = sort_records_by_date(
            st.session_state.records + [record]
        )
        st.session_state.data_loaded = True
        st.success("Measurement added successfully")


def display_download_button():
    """Offer the session's history as a JSON measurement file for the CLI."""
    records = st.session_state.records
    if not records:
        return

    config = records_to_config(
        records,
        settings={
            "time_range": st.session_state.time_range,
            "measurement_type": st.session_state.measurement_type,
        },
    )
    st.download_button(
        "💾 Download Measurements",
        data=json.dumps(config, indent=2),
        file_name="measurements.json",
        mime="application/json",
    )


def main():
    """Main application function."""
    initialize_session_state()

    # Initial load from the store when it is configured
    if not st.session_state.data_loaded and StoreConfig.from_env() is not None:
        load_from_store()

    display_header()
    # Form runs before the overview so a new entry shows up in the same rerun
    add_measurement_form()
    display_stats_overview()
    st.divider()
    display_progress_chart()
    display_download_button()


if __name__ == "__main__":
    main()
