"""
Shared Data Models for ProgressTracker

This module contains all shared dataclasses and enums used throughout the
ProgressTracker application, including the progress calculation engine, the
measurement store client, and the web interface.

Unified data models provide:
- Type safety for measurement records and derived chart data
- Consistent data structures across modules
- Single source of truth for metric labels, units and colours
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import List, Optional

# ============================================================================
# ENUMS
# ============================================================================


class MeasurementType(Enum):
    """Body measurement fields tracked for a client"""

    BODY_WEIGHT = "body_weight"
    WAIST_SIZE = "waist_size"
    CHEST_SIZE = "chest_size"
    BICEPS_SIZE = "biceps_size"
    THIGH_SIZE = "thigh_size"

    @property
    def label(self) -> str:
        return MEASUREMENT_TYPE_INFO[self]["label"]

    @property
    def unit(self) -> str:
        return MEASUREMENT_TYPE_INFO[self]["unit"]

    @property
    def color(self) -> str:
        return MEASUREMENT_TYPE_INFO[self]["color"]

    @property
    def series_key(self) -> str:
        """Field name used for this metric in all-metrics chart points"""
        return MEASUREMENT_TYPE_INFO[self]["series_key"]


class TimeRange(Enum):
    """Trailing windows selectable on the progress chart"""

    ONE_MONTH = "1m"
    THREE_MONTHS = "3m"
    SIX_MONTHS = "6m"
    ONE_YEAR = "1y"

    @property
    def months(self) -> int:
        return TIME_RANGE_MONTHS[self]

    @property
    def label(self) -> str:
        return TIME_RANGE_LABELS[self]


class SeriesState(Enum):
    """How much data a projected series holds, for the presentation layer"""

    EMPTY = "empty"
    SINGLE_POINT = "single_point"  # not enough for a trend line
    TREND = "trend"


# ============================================================================
# CORE DATA STRUCTURES
# ============================================================================


@dataclass(frozen=True)
class MeasurementRecord:
    """One submitted set of body measurements for a client.

    Optional metric fields are None when the value was not measured in that
    session. Zero is never used to mean "absent".
    """

    date: date
    body_weight: Optional[float] = None  # kg
    waist_size: Optional[float] = None  # cm
    chest_size: Optional[float] = None  # cm
    biceps_size: Optional[float] = None  # cm
    thigh_size: Optional[float] = None  # cm
    notes: Optional[str] = None

    # Store metadata (present when fetched from the remote store)
    id: Optional[str] = None
    client_id: Optional[str] = None
    created_at: Optional[datetime] = None

    def get_value(self, measurement_type: MeasurementType) -> Optional[float]:
        """Value recorded for the given metric, or None if not measured"""
        return getattr(self, measurement_type.value)


@dataclass(frozen=True)
class ChartPoint:
    """Single-metric chart point"""

    display_date: str  # month/day, presentational only
    original_date: date
    value: float


@dataclass(frozen=True)
class MultiMetricPoint:
    """All-metrics chart point; None means no data for that line at this date"""

    display_date: str
    original_date: date
    weight: Optional[float] = None
    waist: Optional[float] = None
    chest: Optional[float] = None
    arms: Optional[float] = None
    legs: Optional[float] = None


@dataclass
class ChartSeries:
    """Projected series ready for rendering"""

    points: list  # List[ChartPoint] or List[MultiMetricPoint]
    state: SeriesState
    measurement_type: Optional[MeasurementType] = None  # None = all metrics
    time_range: Optional[TimeRange] = None

    @property
    def is_all_metrics(self) -> bool:
        return self.measurement_type is None


@dataclass(frozen=True)
class DerivedStat:
    """Computed summary shown alongside a chart"""

    value: float
    change: float
    unit: str


@dataclass(frozen=True)
class ClientStats:
    """The three dashboard stat cards"""

    current_weight: DerivedStat
    body_fat: DerivedStat
    muscle_gain: DerivedStat


@dataclass
class FetchResult:
    """Result-or-error value returned by the measurement store boundary"""

    records: List[MeasurementRecord] = field(default_factory=list)
    error: Optional[str] = None
    notification: Optional[str] = None  # user-visible message on failure

    @property
    def ok(self) -> bool:
        return self.error is None


# ============================================================================
# UTILITY FUNCTIONS
# ============================================================================


def parse_record_date(value) -> date:
    """Parse a store or JSON date value (ISO 'YYYY-MM-DD' or full timestamp)"""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not value:
        raise ValueError(f"Invalid measurement date: {value!r}")
    return datetime.strptime(value[:10], "%Y-%m-%d").date()


def _optional_number(value) -> Optional[float]:
    """Numeric field from a row; None, blank and unparseable values stay None"""
    if value is None:
        return None
    if isinstance(value, str):
        value = value.strip()
        if value == "":
            return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def convert_dict_to_measurement_record(row: dict) -> MeasurementRecord:
    """Convert a store row or JSON dict to a MeasurementRecord"""
    created_at = row.get("created_at")
    if isinstance(created_at, str) and created_at:
        created_at = datetime.fromisoformat(created_at.replace("Z", "+00:00"))

    return MeasurementRecord(
        date=parse_record_date(row.get("date")),
        body_weight=_optional_number(row.get("body_weight")),
        waist_size=_optional_number(row.get("waist_size")),
        chest_size=_optional_number(row.get("chest_size")),
        biceps_size=_optional_number(row.get("biceps_size")),
        thigh_size=_optional_number(row.get("thigh_size")),
        notes=row.get("notes") or None,
        id=str(row["id"]) if row.get("id") is not None else None,
        client_id=str(row["client_id"]) if row.get("client_id") is not None else None,
        created_at=created_at or None,
    )


def convert_measurement_record_to_dict(record: MeasurementRecord) -> dict:
    """Serialize a record back to the JSON config format"""
    data = {"date": record.date.strftime("%Y-%m-%d")}
    for measurement_type in MeasurementType:
        value = record.get_value(measurement_type)
        if value is not None:
            data[measurement_type.value] = value
    if record.notes:
        data["notes"] = record.notes
    return data


# ============================================================================
# CONSTANTS AND CONFIGURATIONS
# ============================================================================

MEASUREMENT_TYPE_INFO = {
    MeasurementType.BODY_WEIGHT: {
        "label": "Weight",
        "unit": "kg",
        "color": "#ff7f0e",
        "series_key": "weight",
    },
    MeasurementType.WAIST_SIZE: {
        "label": "Waist",
        "unit": "cm",
        "color": "#007bff",
        "series_key": "waist",
    },
    MeasurementType.CHEST_SIZE: {
        "label": "Chest",
        "unit": "cm",
        "color": "#7690cd",
        "series_key": "chest",
    },
    MeasurementType.BICEPS_SIZE: {
        "label": "Arms",
        "unit": "cm",
        "color": "#2ca02c",
        "series_key": "arms",
    },
    MeasurementType.THIGH_SIZE: {
        "label": "Legs",
        "unit": "cm",
        "color": "#d62728",
        "series_key": "legs",
    },
}

TIME_RANGE_MONTHS = {
    TimeRange.ONE_MONTH: 1,
    TimeRange.THREE_MONTHS: 3,
    TimeRange.SIX_MONTHS: 6,
    TimeRange.ONE_YEAR: 12,
}

TIME_RANGE_LABELS = {
    TimeRange.ONE_MONTH: "1 month",
    TimeRange.THREE_MONTHS: "3 months",
    TimeRange.SIX_MONTHS: "6 months",
    TimeRange.ONE_YEAR: "1 year",
}

DEFAULT_TIME_RANGE = TimeRange.THREE_MONTHS

# Number of records fetched for the chart and for the stat cards
CHART_FETCH_LIMIT = 100
STATS_WINDOW = 10
