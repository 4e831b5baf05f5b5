"""
Core ProgressTracker Analysis Logic

This module contains all the core calculation logic, data processing functions,
and plotting functionality for ProgressTracker. This is the computational
engine behind the client dashboard, the progress chart and the CLI report.

Sections:
- Time-range filtering
- Series projection (single metric and all metrics)
- Derived stats (deltas, body fat and muscle gain heuristics)
- Input validation and config loading
- Plotting logic
- Main analysis function
"""

import json
import logging
import os
from datetime import date, datetime
from typing import List, Optional, Tuple

import matplotlib.pyplot as plt
import numpy as np
import pandas as pd
from jsonschema import ValidationError, validate
from tabulate import tabulate

from shared_models import (
    DEFAULT_TIME_RANGE,
    STATS_WINDOW,
    ChartPoint,
    ChartSeries,
    ClientStats,
    DerivedStat,
    MeasurementRecord,
    MeasurementType,
    MultiMetricPoint,
    SeriesState,
    TimeRange,
    convert_dict_to_measurement_record,
    convert_measurement_record_to_dict,
)

logger = logging.getLogger(__name__)

# Body fat heuristic bounds (percent)
BODY_FAT_MIN = 5.0
BODY_FAT_MAX = 35.0
BODY_FAT_RATIO_OFFSET = 30.0

# Muscle gain heuristic: a cut counts as recomposition once the body fat
# estimate drops by more than this many points
MUSCLE_GAIN_BF_DROP_THRESHOLD = 2.0
MUSCLE_GAIN_BF_FACTOR = 0.3

MAX_MEASUREMENT_VALUE = 1000
MAX_NOTES_LENGTH = 500

ALL_METRICS = "all"

# JSON Schema for configuration validation
_METRIC_FIELD_SCHEMA = {"type": ["number", "null"], "minimum": 0}

CONFIG_SCHEMA = {
    "type": "object",
    "required": ["measurements"],
    "properties": {
        "client": {
            "type": "object",
            "properties": {
                "name": {"type": "string"},
                "client_id": {"type": "string"},
            },
            "additionalProperties": False,
        },
        "measurements": {
            "type": "array",
            "items": {
                "type": "object",
                "required": ["date"],
                "properties": {
                    "date": {"type": "string", "pattern": "^\\d{4}-\\d{2}-\\d{2}$"},
                    "body_weight": _METRIC_FIELD_SCHEMA,
                    "waist_size": _METRIC_FIELD_SCHEMA,
                    "chest_size": _METRIC_FIELD_SCHEMA,
                    "biceps_size": _METRIC_FIELD_SCHEMA,
                    "thigh_size": _METRIC_FIELD_SCHEMA,
                    "notes": {"type": ["string", "null"]},
                },
                "additionalProperties": False,
            },
        },
        "settings": {
            "type": "object",
            "properties": {
                "time_range": {
                    "type": "string",
                    "enum": [tr.value for tr in TimeRange],
                },
                "measurement_type": {
                    "type": "string",
                    "enum": [ALL_METRICS] + [mt.value for mt in MeasurementType],
                },
                "as_of": {"type": "string", "pattern": "^\\d{4}-\\d{2}-\\d{2}$"},
            },
            "additionalProperties": False,
        },
    },
    "additionalProperties": False,
}


# ---------------------------------------------------------------------------
# TIME-RANGE FILTERING
# ---------------------------------------------------------------------------


def _as_date(value) -> date:
    if isinstance(value, datetime):
        return value.date()
    return value


def parse_time_range(value) -> TimeRange:
    """
    Converts a time range code ("3m") or label ("3 months") to a TimeRange.

    Unknown values fall back to the default three month window.
    """
    if isinstance(value, TimeRange):
        return value

    if isinstance(value, str):
        normalized = value.strip().lower()
        for time_range in TimeRange:
            if normalized in (time_range.value, time_range.label):
                return time_range

    logger.warning(
        f"Unknown time range {value!r}, using {DEFAULT_TIME_RANGE.label}"
    )
    return DEFAULT_TIME_RANGE


def parse_measurement_type(value) -> Optional[MeasurementType]:
    """
    Converts a metric name to a MeasurementType.

    Returns None for the "all" selection.

    Raises:
        ValueError: If the metric name is not recognized
    """
    if value is None or isinstance(value, MeasurementType):
        return value

    normalized = str(value).strip().lower()
    if normalized == ALL_METRICS:
        return None
    for measurement_type in MeasurementType:
        if normalized in (measurement_type.value, measurement_type.label.lower()):
            return measurement_type

    raise ValueError(
        f"Unrecognized measurement type: {value}. Use 'all' or one of "
        f"{', '.join(mt.value for mt in MeasurementType)}."
    )


def get_cutoff_date(time_range, now=None) -> date:
    """
    Calculates the first calendar day included in a trailing window.

    Month arithmetic is calendar based; days past the end of the target
    month are clamped (e.g. May 31 minus 3 months is Feb 28/29).

    Args:
        time_range: TimeRange or range code/label
        now (date or datetime): Reference point, defaults to today

    Returns:
        date: Cutoff date
    """
    time_range = parse_time_range(time_range)
    reference = _as_date(now) if now is not None else date.today()
    cutoff = pd.Timestamp(reference) - pd.DateOffset(months=time_range.months)
    return cutoff.date()


def sort_records_by_date(records: List[MeasurementRecord]) -> List[MeasurementRecord]:
    """Stable ascending sort; the store returns rows newest first."""
    return sorted(records, key=lambda record: record.date)


def filter_by_time_range(
    records: List[MeasurementRecord], time_range, now=None
) -> List[MeasurementRecord]:
    """
    Restricts records to those dated on or after the window cutoff.

    Args:
        records (list): Records ordered by date
        time_range: TimeRange or range code/label
        now (date or datetime): Reference point, defaults to today

    Returns:
        list: Matching records in their original order
    """
    if not records:
        return []

    cutoff = get_cutoff_date(time_range, now)
    return [record for record in records if record.date >= cutoff]


# ---------------------------------------------------------------------------
# SERIES PROJECTION
# ---------------------------------------------------------------------------


def format_display_date(value) -> str:
    """Formats a date as month/day for chart axes."""
    value = _as_date(value)
    return f"{value.month}/{value.day}"


def get_series_state(point_count: int) -> SeriesState:
    if point_count == 0:
        return SeriesState.EMPTY
    if point_count == 1:
        return SeriesState.SINGLE_POINT
    return SeriesState.TREND


def project_single_metric(
    records: List[MeasurementRecord], measurement_type: MeasurementType
) -> ChartSeries:
    """
    Projects one measurement field into chart points.

    Records without a value for the field are dropped rather than plotted
    as zero.

    Args:
        records (list): Filtered records, ascending by date
        measurement_type (MeasurementType): Field to project

    Returns:
        ChartSeries: Points plus an EMPTY / SINGLE_POINT / TREND state
    """
    measurement_type = parse_measurement_type(measurement_type)
    if measurement_type is None:
        raise ValueError("Single-metric projection requires a measurement type")

    points = []
    for record in records:
        value = record.get_value(measurement_type)
        if value is None:
            continue
        points.append(
            ChartPoint(
                display_date=format_display_date(record.date),
                original_date=record.date,
                value=value,
            )
        )

    return ChartSeries(
        points=points,
        state=get_series_state(len(points)),
        measurement_type=measurement_type,
    )


def project_all_metrics(records: List[MeasurementRecord]) -> ChartSeries:
    """
    Projects every record into a point carrying all five metrics.

    Absent fields stay None so the renderer leaves a gap instead of
    interpolating.
    """
    points = [
        MultiMetricPoint(
            display_date=format_display_date(record.date),
            original_date=record.date,
            weight=record.body_weight,
            waist=record.waist_size,
            chest=record.chest_size,
            arms=record.biceps_size,
            legs=record.thigh_size,
        )
        for record in records
    ]
    return ChartSeries(points=points, state=get_series_state(len(points)))


def build_chart_series(
    records: List[MeasurementRecord], time_range, measurement_type=None, now=None
) -> ChartSeries:
    """
    Runs one render pass: sort, filter to the window, project.

    Args:
        records (list): Raw records in any order
        time_range: TimeRange or range code/label
        measurement_type: MeasurementType, metric name, or None/"all"
        now (date or datetime): Reference point, defaults to today

    Returns:
        ChartSeries: Projected series tagged with the window used
    """
    time_range = parse_time_range(time_range)
    measurement_type = parse_measurement_type(measurement_type)

    filtered = filter_by_time_range(sort_records_by_date(records), time_range, now)

    if measurement_type is None:
        series = project_all_metrics(filtered)
    else:
        series = project_single_metric(filtered, measurement_type)
    series.time_range = time_range
    return series


def series_to_dataframe(series: ChartSeries) -> pd.DataFrame:
    """
    Converts a projected series to a DataFrame for plotting.

    Absent values become NaN.
    """
    if series.is_all_metrics:
        value_columns = [mt.series_key for mt in MeasurementType]
    else:
        value_columns = ["value"]
    columns = ["display_date", "original_date"] + value_columns

    rows = []
    for point in series.points:
        rows.append({column: getattr(point, column) for column in columns})

    df = pd.DataFrame(rows, columns=columns)
    for column in value_columns:
        df[column] = pd.to_numeric(df[column]).astype(float)
    return df


# ---------------------------------------------------------------------------
# DERIVED STATS
# ---------------------------------------------------------------------------


def parse_measurement_value(value) -> float:
    """
    Coerces a stored measurement to a float for the estimators.

    None, blank and malformed values yield 0.0 instead of raising.
    """
    if value is None:
        return 0.0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    if not np.isfinite(number):
        return 0.0
    return number


def simple_delta(first, last, unit: str = "") -> DerivedStat:
    """Magnitude and signed change between two values."""
    diff = parse_measurement_value(last) - parse_measurement_value(first)
    return DerivedStat(value=abs(diff), change=diff, unit=unit)


def calculate_single_progress(
    records: List[MeasurementRecord], measurement_type
) -> DerivedStat:
    """
    Change in one metric across the window shown on the chart.

    Uses the first and last points of the single-metric projection; fewer
    than two points gives zero change.
    """
    series = project_single_metric(records, measurement_type)
    unit = series.measurement_type.unit

    if len(series.points) < 2:
        return DerivedStat(value=0.0, change=0.0, unit=unit)

    return simple_delta(series.points[0].value, series.points[-1].value, unit)


def estimate_body_fat(record: Optional[MeasurementRecord]) -> float:
    """
    Rough body fat percentage from the waist to chest ratio.

    bodyFat = clamp(waist / chest * 100 - 30, 5, 35), rounded to 0.1.
    This is a placeholder heuristic, not a validated formula. Returns 0
    when either circumference is missing, which means "cannot estimate"
    rather than a measured zero.
    """
    if record is None:
        return 0.0

    waist = parse_measurement_value(record.waist_size)
    chest = parse_measurement_value(record.chest_size)
    if waist == 0 or chest == 0:
        return 0.0

    ratio = waist / chest
    body_fat = float(
        np.clip(ratio * 100 - BODY_FAT_RATIO_OFFSET, BODY_FAT_MIN, BODY_FAT_MAX)
    )
    return round(body_fat, 1)


def muscle_gain_from_changes(weight_change: float, body_fat_change: float) -> float:
    """
    Coarse muscle gain estimate from weight and body fat changes.

    - Weight up while body fat held or fell: count the whole gain as muscle.
    - Weight down with body fat down by more than 2 points: credit 30% of
      the body fat drop.
    - Anything else: 0.
    """
    if weight_change > 0 and body_fat_change <= 0:
        return weight_change
    if weight_change < 0 and body_fat_change < -MUSCLE_GAIN_BF_DROP_THRESHOLD:
        return abs(body_fat_change) * MUSCLE_GAIN_BF_FACTOR
    return 0.0


def estimate_muscle_gain(
    latest: Optional[MeasurementRecord], oldest: Optional[MeasurementRecord]
) -> DerivedStat:
    """Muscle gain between two snapshots, in kg."""
    if latest is None or oldest is None:
        return DerivedStat(value=0.0, change=0.0, unit="kg")

    weight_change = parse_measurement_value(
        latest.body_weight
    ) - parse_measurement_value(oldest.body_weight)
    body_fat_change = estimate_body_fat(latest) - estimate_body_fat(oldest)

    muscle_gain = round(muscle_gain_from_changes(weight_change, body_fat_change), 1)
    return DerivedStat(value=muscle_gain, change=muscle_gain, unit="kg")


def empty_client_stats() -> ClientStats:
    return ClientStats(
        current_weight=DerivedStat(value=0.0, change=0.0, unit="kg"),
        body_fat=DerivedStat(value=0.0, change=0.0, unit="%"),
        muscle_gain=DerivedStat(value=0.0, change=0.0, unit="kg"),
    )


def calculate_client_stats(
    records: List[MeasurementRecord], window: int = STATS_WINDOW
) -> ClientStats:
    """
    Calculates the dashboard stat cards from the most recent records.

    Args:
        records (list): Records in any order
        window (int): Number of most recent records considered

    Returns:
        ClientStats: Current weight, body fat and muscle gain

    Raises:
        ValueError: If window is not positive
    """
    if window <= 0:
        raise ValueError("window must be positive")

    if not records:
        return empty_client_stats()

    recent = sort_records_by_date(records)[-window:]
    latest = recent[-1]
    oldest = recent[0] if len(recent) > 1 else None

    latest_weight = parse_measurement_value(latest.body_weight)
    weight_change = (
        latest_weight - parse_measurement_value(oldest.body_weight) if oldest else 0.0
    )

    latest_body_fat = estimate_body_fat(latest)
    oldest_body_fat = estimate_body_fat(oldest) if oldest else latest_body_fat

    return ClientStats(
        current_weight=DerivedStat(
            value=latest_weight, change=round(weight_change, 1), unit="kg"
        ),
        body_fat=DerivedStat(
            value=latest_body_fat,
            change=round(latest_body_fat - oldest_body_fat, 1),
            unit="%",
        ),
        muscle_gain=estimate_muscle_gain(latest, oldest),
    )


def get_change_direction(change: float, positive_is_good: bool = False) -> str:
    """
    Whether a stat card's change reads as good or bad.

    For weight and body fat a decrease is good; for muscle gain an
    increase is good.
    """
    is_positive = change > 0
    is_good = is_positive if positive_is_good else not is_positive
    return "good" if is_good else "bad"


# ---------------------------------------------------------------------------
# INPUT VALIDATION AND CONFIG LOADING
# ---------------------------------------------------------------------------


def validate_measurement_input(field_name, value):
    """
    Validates measurement input for real-time feedback in the web interface.

    Args:
        field_name (str): Name of the field being validated
        value: The value to validate

    Returns:
        tuple: (is_valid, error_message)
    """
    if field_name == "date":
        try:
            datetime.strptime(str(value), "%Y-%m-%d")
            return True, ""
        except ValueError:
            return False, "Please use YYYY-MM-DD format"

    elif field_name in [mt.value for mt in MeasurementType]:
        if value is None or (isinstance(value, str) and not value.strip()):
            return False, "Value is required"
        try:
            number = float(value)
            if not np.isfinite(number) or number <= 0:
                return False, "Please enter a valid number greater than 0"
            if number > MAX_MEASUREMENT_VALUE:
                return False, "Value seems unreasonably high"
            return True, ""
        except (ValueError, TypeError):
            return False, "Please enter a valid number greater than 0"

    elif field_name == "notes":
        if value and len(str(value)) > MAX_NOTES_LENGTH:
            return False, f"Notes must be {MAX_NOTES_LENGTH} characters or fewer"
        return True, ""

    return True, ""


def load_config_json(config_path, quiet=False):
    """
    Loads and validates a JSON measurement file.

    Args:
        config_path (str): Path to the JSON configuration file.
        quiet (bool): If True, suppress print statements

    Returns:
        dict: Configuration dictionary with measurements and optional settings.

    Raises:
        FileNotFoundError: If the config file doesn't exist.
        json.JSONDecodeError: If the JSON is malformed.
        ValidationError: If the JSON doesn't match the required schema.
    """
    if not quiet:
        print(f"Loading configuration from {config_path}...")

    if not os.path.exists(config_path):
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    with open(config_path, "r") as f:
        config = json.load(f)

    validate(config, CONFIG_SCHEMA)

    if not quiet:
        print(
            f"Successfully loaded config with {len(config['measurements'])} measurements"
        )
    return config


def extract_data_from_config(config) -> Tuple[List[MeasurementRecord], dict]:
    """
    Extracts measurement records and settings from a validated config.

    Returns:
        tuple: (records sorted ascending by date, settings dict)
    """
    records = sort_records_by_date(
        [convert_dict_to_measurement_record(row) for row in config["measurements"]]
    )
    settings = dict(config.get("settings", {}))
    return records, settings


def records_to_config(records: List[MeasurementRecord], settings=None) -> dict:
    """
    Builds a config dict (the JSON measurement file format) from records.

    The result validates against CONFIG_SCHEMA, so a downloaded history can be
    fed straight back into the CLI.
    """
    config = {
        "measurements": [
            convert_measurement_record_to_dict(record)
            for record in sort_records_by_date(records)
        ]
    }
    if settings:
        config["settings"] = dict(settings)
    return config


# ---------------------------------------------------------------------------
# PLOTTING LOGIC
# ---------------------------------------------------------------------------


def create_plotly_single_metric_plot(series: ChartSeries):
    """
    Creates an interactive Plotly line chart for one measurement type.

    Args:
        series (ChartSeries): Single-metric series

    Returns:
        plotly.graph_objects.Figure: Interactive plotly figure
    """
    import plotly.graph_objects as go

    measurement_type = series.measurement_type
    fig = go.Figure()

    if series.state == SeriesState.EMPTY:
        fig.add_annotation(
            text=f"No {measurement_type.label.lower()} data",
            xref="paper",
            yref="paper",
            x=0.5,
            y=0.5,
            showarrow=False,
        )
        return fig

    df = series_to_dataframe(series)
    hover_text = [
        f"<b>Date:</b> {row.original_date:%Y-%m-%d}<br>"
        f"<b>{measurement_type.label}:</b> {row.value:g} {measurement_type.unit}"
        for row in df.itertuples()
    ]

    fig.add_trace(
        go.Scatter(
            x=df["display_date"],
            y=df["value"],
            mode="lines+markers",
            name=measurement_type.label,
            line={"color": measurement_type.color, "width": 3},
            marker={"color": measurement_type.color, "size": 8},
            hovertemplate="%{text}<extra></extra>",
            text=hover_text,
        )
    )

    fig.update_layout(
        title={"text": f"{measurement_type.label} Progress", "x": 0},
        xaxis={"title": {"text": "Date"}, "gridcolor": "lightgray"},
        yaxis={
            "title": {"text": measurement_type.unit},
            "gridcolor": "lightgray",
        },
        plot_bgcolor="white",
        paper_bgcolor="white",
        hovermode="closest",
        height=400,
        showlegend=False,
    )
    return fig


def create_plotly_all_metrics_plot(series: ChartSeries):
    """
    Creates an interactive Plotly chart with one line per measurement type.

    Gaps are left where a metric was not measured (connectgaps=False).

    Args:
        series (ChartSeries): All-metrics series

    Returns:
        plotly.graph_objects.Figure: Interactive plotly figure
    """
    import plotly.graph_objects as go

    fig = go.Figure()

    if series.state == SeriesState.EMPTY:
        fig.add_annotation(
            text="No measurements found for the selected time period",
            xref="paper",
            yref="paper",
            x=0.5,
            y=0.5,
            showarrow=False,
        )
        return fig

    df = series_to_dataframe(series)
    for measurement_type in MeasurementType:
        fig.add_trace(
            go.Scatter(
                x=df["display_date"],
                y=df[measurement_type.series_key],
                mode="lines+markers",
                name=f"{measurement_type.label} ({measurement_type.unit})",
                line={"color": measurement_type.color, "width": 2},
                marker={"color": measurement_type.color, "size": 6},
                connectgaps=False,
            )
        )

    fig.update_layout(
        title={"text": "All Measurements", "x": 0},
        xaxis={"title": {"text": "Date"}, "gridcolor": "lightgray"},
        yaxis={"gridcolor": "lightgray"},
        plot_bgcolor="white",
        paper_bgcolor="white",
        hovermode="x unified",
        height=500,
        showlegend=True,
    )
    return fig


def create_plotly_progress_plot(series: ChartSeries):
    """Dispatches to the single-metric or all-metrics Plotly chart."""
    if series.is_all_metrics:
        return create_plotly_all_metrics_plot(series)
    return create_plotly_single_metric_plot(series)


def create_progress_plot(
    series: ChartSeries, return_figure=False, filename="progress_plot.png"
):
    """
    Creates a static line plot of a projected series.

    Args:
        series (ChartSeries): Single-metric or all-metrics series
        return_figure (bool): If True, returns matplotlib figure object instead of saving
        filename (str): Output path when saving

    Returns:
        matplotlib.figure.Figure or None: Figure object if return_figure=True, None otherwise
    """
    if not return_figure:
        print("Generating progress plot...")

    fig, ax = plt.subplots(figsize=(12, 6))

    if series.state == SeriesState.EMPTY:
        if return_figure:
            return fig
        plt.close(fig)
        print("No measurements found for progress plot")
        return None

    df = series_to_dataframe(series)
    x = pd.to_datetime(df["original_date"])

    if series.is_all_metrics:
        title = "All Measurements"
        for measurement_type in MeasurementType:
            # NaN values break the line, matching the interactive chart
            ax.plot(
                x,
                df[measurement_type.series_key],
                color=measurement_type.color,
                linewidth=2,
                marker="o",
                markersize=5,
                label=f"{measurement_type.label} ({measurement_type.unit})",
            )
        ax.legend(bbox_to_anchor=(1.05, 1), loc="upper left")
    else:
        measurement_type = series.measurement_type
        title = f"{measurement_type.label} Progress"
        ax.plot(
            x,
            df["value"],
            color=measurement_type.color,
            linewidth=3,
            marker="o",
            markersize=8,
            label=measurement_type.label,
        )
        for xi, value in zip(x, df["value"]):
            ax.annotate(
                f"{value:g}",
                (xi, value),
                textcoords="offset points",
                xytext=(0, 10),
                ha="center",
                fontsize=10,
            )
        ax.set_ylabel(measurement_type.unit, fontsize=12)

    if series.time_range is not None:
        title = f"{title} ({series.time_range.label})"
    ax.set_title(title, fontsize=14, fontweight="bold")
    ax.set_xlabel("Date", fontsize=12)
    ax.grid(True, alpha=0.3)
    fig.autofmt_xdate()
    plt.tight_layout()

    if return_figure:
        return fig

    plt.savefig(filename, dpi=150, bbox_inches="tight")
    plt.close(fig)
    print(f"Progress plot saved as: {filename}")
    return None


def create_measurement_table(records: List[MeasurementRecord]) -> str:
    """Formats records as a pipe table with a totals-style change row."""
    columns = ["Date"] + [f"{mt.label} ({mt.unit})" for mt in MeasurementType]
    rows = []
    for record in records:
        row = [record.date.strftime("%Y-%m-%d")]
        for measurement_type in MeasurementType:
            value = record.get_value(measurement_type)
            row.append(f"{value:.1f}" if value is not None else "N/A")
        rows.append(row)

    if len(records) >= 2:
        change_row = ["**Change**"]
        for measurement_type in MeasurementType:
            progress = calculate_single_progress(records, measurement_type)
            series = project_single_metric(records, measurement_type)
            if series.state == SeriesState.TREND:
                change_row.append(f"{progress.change:+.1f}")
            else:
                change_row.append("N/A")
        rows.append(change_row)

    return tabulate(rows, headers=columns, tablefmt="pipe")


# ---------------------------------------------------------------------------
# MAIN ANALYSIS FUNCTION
# ---------------------------------------------------------------------------


def run_analysis_from_data(records, time_range, measurement_type=None, now=None):
    """
    Runs analysis directly from records (for the web interface).

    Args:
        records (list): MeasurementRecords in any order
        time_range: TimeRange or range code/label
        measurement_type: MeasurementType, metric name, or None/"all"
        now (date or datetime): Reference point, defaults to today

    Returns:
        tuple: (series, progress, client_stats, figure) where progress is None
               in all-metrics mode
    """
    series = build_chart_series(records, time_range, measurement_type, now)
    filtered = filter_by_time_range(sort_records_by_date(records), series.time_range, now)

    progress = None
    if not series.is_all_metrics:
        progress = calculate_single_progress(filtered, series.measurement_type)

    client_stats = calculate_client_stats(records)
    figure = create_plotly_progress_plot(series)
    return series, progress, client_stats, figure


def format_stat(stat: DerivedStat, positive_is_good: bool = False) -> str:
    separator = "" if stat.unit == "%" else " "
    direction = get_change_direction(stat.change, positive_is_good)
    return (
        f"{stat.value:.1f}{separator}{stat.unit} "
        f"({stat.change:+.1f}{separator}{stat.unit}, {direction})"
    )


def run_analysis(
    config_path="example_config.json",
    time_range=None,
    measurement_type=None,
    save_plot=False,
    return_results=False,
    now=None,
):
    """
    Main analysis function that orchestrates the ProgressTracker CLI report.

    Args:
        config_path (str): Path to JSON measurement file
        time_range (str): Window override ('1m', '3m', '6m', '1y')
        measurement_type (str): Metric override ('all' or a field name)
        save_plot (bool): Save a PNG of the selected chart
        return_results (bool): If True, returns analysis results instead of printing
        now (date): Reference date override

    Returns:
        int or tuple: Exit code (0 for success, 1 for error) if return_results=False,
                     or (series, progress, client_stats) if return_results=True
    """
    if not return_results:
        print("ProgressTracker Client Progress Report")
        print("=" * 40)

    try:
        # Step 1: Load measurements
        config = load_config_json(config_path, quiet=return_results)
        records, settings = extract_data_from_config(config)

        time_range = parse_time_range(
            time_range or settings.get("time_range", DEFAULT_TIME_RANGE.value)
        )
        measurement_type = parse_measurement_type(
            measurement_type or settings.get("measurement_type", ALL_METRICS)
        )
        if now is None and settings.get("as_of"):
            now = datetime.strptime(settings["as_of"], "%Y-%m-%d").date()

        # Step 2: Project and estimate
        series = build_chart_series(records, time_range, measurement_type, now)
        filtered = filter_by_time_range(records, time_range, now)
        progress = None
        if measurement_type is not None:
            progress = calculate_single_progress(filtered, measurement_type)
        client_stats = calculate_client_stats(records)

        if return_results:
            return series, progress, client_stats

        # Step 3: Print report
        metric_label = measurement_type.label if measurement_type else "All Measurements"
        print(f"Time range: {time_range.label}")
        print(f"Metric: {metric_label}")
        print()

        print("--- Stats ---")
        print(f"  Current Weight: {format_stat(client_stats.current_weight)}")
        print(f"  Body Fat:       {format_stat(client_stats.body_fat)}")
        print(
            f"  Muscle Gain:    "
            f"{format_stat(client_stats.muscle_gain, positive_is_good=True)}"
        )
        print()

        if series.state == SeriesState.EMPTY:
            print("No measurements found for the selected time period")
        elif series.state == SeriesState.SINGLE_POINT and measurement_type:
            point = series.points[0]
            print("One measurement found")
            print(
                f"Current {measurement_type.label.lower()}: "
                f"{point.value:g} {measurement_type.unit}"
            )
            print("Add more measurements to see progress trends")
        else:
            if progress is not None:
                print(f"Change: {progress.change:+.1f} {progress.unit}")
                print()
            print("--- Measurements ---")
            print(create_measurement_table(filtered))

        # Step 4: Save plot
        if save_plot:
            create_progress_plot(series, return_figure=False)

        return 0

    except (
        FileNotFoundError,
        json.JSONDecodeError,
        ValidationError,
        KeyError,
        ValueError,
    ) as e:
        if return_results:
            raise e
        print(f"Error: {e}")
        print(f"\nPlease check your configuration file: {config_path}")
        return 1
