"""
Test suite for the ProgressTracker calculation engine.

Covers time-range filtering, series projection, the derived stat
estimators and measurement input validation.
"""

import unittest
from datetime import date, datetime

import numpy as np
import pandas as pd

from core import (
    calculate_client_stats,
    calculate_single_progress,
    build_chart_series,
    estimate_body_fat,
    estimate_muscle_gain,
    filter_by_time_range,
    format_display_date,
    get_change_direction,
    get_cutoff_date,
    muscle_gain_from_changes,
    parse_measurement_type,
    parse_measurement_value,
    parse_time_range,
    project_all_metrics,
    project_single_metric,
    series_to_dataframe,
    simple_delta,
    sort_records_by_date,
    validate_measurement_input,
)
from shared_models import (
    DerivedStat,
    MeasurementRecord,
    MeasurementType,
    SeriesState,
    TimeRange,
    convert_dict_to_measurement_record,
)


def record(day, **fields):
    return MeasurementRecord(date=day, **fields)


class TestTimeRangeFilter(unittest.TestCase):
    """Trailing window filtering and cutoff arithmetic."""

    def setUp(self):
        self.now = date(2025, 6, 15)
        self.records = [
            record(date(2025, 1, 6), body_weight=84.0),
            record(date(2025, 3, 14), body_weight=83.0),
            record(date(2025, 3, 15), body_weight=82.5),
            record(date(2025, 6, 1), body_weight=81.0),
        ]

    def test_cutoff_for_each_range(self):
        self.assertEqual(get_cutoff_date(TimeRange.ONE_MONTH, self.now), date(2025, 5, 15))
        self.assertEqual(
            get_cutoff_date(TimeRange.THREE_MONTHS, self.now), date(2025, 3, 15)
        )
        self.assertEqual(
            get_cutoff_date(TimeRange.SIX_MONTHS, self.now), date(2024, 12, 15)
        )
        self.assertEqual(get_cutoff_date(TimeRange.ONE_YEAR, self.now), date(2024, 6, 15))

    def test_cutoff_clamps_to_end_of_month(self):
        self.assertEqual(
            get_cutoff_date(TimeRange.THREE_MONTHS, date(2025, 5, 31)),
            date(2025, 2, 28),
        )
        self.assertEqual(
            get_cutoff_date(TimeRange.ONE_YEAR, date(2024, 2, 29)), date(2023, 2, 28)
        )

    def test_cutoff_accepts_datetime(self):
        self.assertEqual(
            get_cutoff_date("1m", datetime(2025, 6, 15, 18, 45)), date(2025, 5, 15)
        )

    def test_filter_keeps_records_on_or_after_cutoff(self):
        filtered = filter_by_time_range(self.records, TimeRange.THREE_MONTHS, self.now)
        self.assertEqual(
            [r.date for r in filtered], [date(2025, 3, 15), date(2025, 6, 1)]
        )

    def test_filter_preserves_input_order(self):
        shuffled = [self.records[3], self.records[0], self.records[2]]
        filtered = filter_by_time_range(shuffled, TimeRange.ONE_YEAR, self.now)
        self.assertEqual(filtered, shuffled)

    def test_filter_output_satisfies_cutoff_for_all_ranges(self):
        for time_range in TimeRange:
            cutoff = get_cutoff_date(time_range, self.now)
            filtered = filter_by_time_range(self.records, time_range, self.now)
            self.assertTrue(all(r.date >= cutoff for r in filtered))
            excluded = [r for r in self.records if r not in filtered]
            self.assertTrue(all(r.date < cutoff for r in excluded))

    def test_filter_empty_input(self):
        self.assertEqual(filter_by_time_range([], TimeRange.ONE_MONTH, self.now), [])

    def test_sort_records_by_date_is_stable(self):
        a = record(date(2025, 3, 1), body_weight=80.0)
        b = record(date(2025, 3, 1), waist_size=85.0)
        c = record(date(2025, 1, 1), body_weight=82.0)
        self.assertEqual(sort_records_by_date([a, b, c]), [c, a, b])

    def test_parse_time_range(self):
        self.assertEqual(parse_time_range("6m"), TimeRange.SIX_MONTHS)
        self.assertEqual(parse_time_range("1 year"), TimeRange.ONE_YEAR)
        self.assertEqual(parse_time_range(TimeRange.ONE_MONTH), TimeRange.ONE_MONTH)

    def test_parse_time_range_unknown_falls_back_to_three_months(self):
        with self.assertLogs("core", level="WARNING"):
            self.assertEqual(parse_time_range("2w"), TimeRange.THREE_MONTHS)


class TestSeriesProjection(unittest.TestCase):
    """Single-metric and all-metrics chart point projection."""

    def setUp(self):
        self.records = [
            record(date(2025, 4, 1), body_weight=80.0, waist_size=88.0),
            record(date(2025, 4, 8), waist_size=87.5),
            record(date(2025, 4, 15), body_weight=79.2, chest_size=104.0),
        ]

    def test_format_display_date_has_no_padding(self):
        self.assertEqual(format_display_date(date(2025, 4, 8)), "4/8")
        self.assertEqual(format_display_date(date(2025, 12, 25)), "12/25")

    def test_single_metric_drops_absent_values(self):
        series = project_single_metric(self.records, MeasurementType.BODY_WEIGHT)
        self.assertEqual([p.value for p in series.points], [80.0, 79.2])
        self.assertEqual(series.state, SeriesState.TREND)
        self.assertEqual(series.measurement_type, MeasurementType.BODY_WEIGHT)

    def test_single_metric_points_map_back_to_source_records(self):
        for measurement_type in MeasurementType:
            series = project_single_metric(self.records, measurement_type)
            for point in series.points:
                sources = [
                    r
                    for r in self.records
                    if r.date == point.original_date
                    and r.get_value(measurement_type) == point.value
                ]
                self.assertEqual(len(sources), 1)
                self.assertEqual(
                    point.display_date, format_display_date(sources[0].date)
                )

    def test_single_metric_empty_and_single_point_states(self):
        empty = project_single_metric(self.records, MeasurementType.THIGH_SIZE)
        self.assertEqual(empty.points, [])
        self.assertEqual(empty.state, SeriesState.EMPTY)

        single = project_single_metric(self.records, MeasurementType.CHEST_SIZE)
        self.assertEqual(len(single.points), 1)
        self.assertEqual(single.state, SeriesState.SINGLE_POINT)

    def test_single_metric_accepts_field_name(self):
        series = project_single_metric(self.records, "waist_size")
        self.assertEqual([p.value for p in series.points], [88.0, 87.5])

    def test_all_metrics_preserves_none(self):
        series = project_all_metrics(self.records)
        self.assertEqual(len(series.points), 3)
        second = series.points[1]
        self.assertEqual(second.display_date, "4/8")
        self.assertIsNone(second.weight)
        self.assertEqual(second.waist, 87.5)
        self.assertIsNone(second.chest)
        self.assertIsNone(second.arms)
        self.assertIsNone(second.legs)
        self.assertTrue(series.is_all_metrics)

    def test_projections_of_empty_input(self):
        self.assertEqual(project_all_metrics([]).state, SeriesState.EMPTY)
        self.assertEqual(
            project_single_metric([], MeasurementType.BODY_WEIGHT).state,
            SeriesState.EMPTY,
        )

    def test_build_chart_series_sorts_and_filters(self):
        unordered = [self.records[2], self.records[0], self.records[1]]
        series = build_chart_series(
            unordered, "1m", "body_weight", now=date(2025, 5, 5)
        )
        self.assertEqual(series.time_range, TimeRange.ONE_MONTH)
        self.assertEqual(
            [p.original_date for p in series.points],
            [date(2025, 4, 15)],
        )
        self.assertEqual(series.state, SeriesState.SINGLE_POINT)

    def test_build_chart_series_all_metrics(self):
        series = build_chart_series(self.records, "3m", "all", now=date(2025, 5, 1))
        self.assertTrue(series.is_all_metrics)
        self.assertEqual(len(series.points), 3)

    def test_series_to_dataframe_uses_nan_for_gaps(self):
        df = series_to_dataframe(project_all_metrics(self.records))
        self.assertEqual(
            list(df.columns),
            ["display_date", "original_date", "weight", "waist", "chest", "arms", "legs"],
        )
        self.assertTrue(np.isnan(df.loc[1, "weight"]))
        self.assertTrue(df["legs"].isna().all())
        self.assertEqual(df.loc[0, "waist"], 88.0)

    def test_series_to_dataframe_empty(self):
        df = series_to_dataframe(project_single_metric([], "body_weight"))
        self.assertEqual(len(df), 0)
        self.assertIn("value", df.columns)

    def test_parse_measurement_type(self):
        self.assertIsNone(parse_measurement_type("all"))
        self.assertEqual(parse_measurement_type("Arms"), MeasurementType.BICEPS_SIZE)
        with self.assertRaises(ValueError):
            parse_measurement_type("neck_size")


class TestStatEstimators(unittest.TestCase):
    """Simple delta, body fat and muscle gain heuristics."""

    def test_simple_delta_weight_loss(self):
        records = [
            record(date(2025, 1, 1), body_weight=80),
            record(date(2025, 2, 1), body_weight=76),
        ]
        progress = calculate_single_progress(records, MeasurementType.BODY_WEIGHT)
        self.assertEqual(progress, DerivedStat(value=4, change=-4, unit="kg"))

    def test_simple_delta_uses_window_extremes(self):
        records = [
            record(date(2025, 1, 1), waist_size=90.0),
            record(date(2025, 1, 15), waist_size=95.0),
            record(date(2025, 2, 1), body_weight=80.0),
            record(date(2025, 2, 15), waist_size=88.0),
        ]
        progress = calculate_single_progress(records, "waist_size")
        self.assertAlmostEqual(progress.change, -2.0)
        self.assertAlmostEqual(progress.value, 2.0)
        self.assertEqual(progress.unit, "cm")

    def test_simple_delta_needs_two_points(self):
        one = [record(date(2025, 1, 1), body_weight=80.0)]
        self.assertEqual(
            calculate_single_progress(one, "body_weight"),
            DerivedStat(value=0.0, change=0.0, unit="kg"),
        )
        self.assertEqual(
            calculate_single_progress([], "body_weight"),
            DerivedStat(value=0.0, change=0.0, unit="kg"),
        )

    def test_simple_delta_direct(self):
        self.assertEqual(simple_delta(70, 72.5, "kg"), DerivedStat(2.5, 2.5, "kg"))

    def test_body_fat_clamps_high(self):
        # 86 / 95 = 0.905 -> 60.5 -> clamped to 35
        self.assertEqual(
            estimate_body_fat(record(date(2025, 1, 1), waist_size=86, chest_size=95)),
            35.0,
        )

    def test_body_fat_clamps_low(self):
        self.assertEqual(
            estimate_body_fat(record(date(2025, 1, 1), waist_size=30, chest_size=100)),
            5.0,
        )

    def test_body_fat_mid_range(self):
        self.assertEqual(
            estimate_body_fat(record(date(2025, 1, 1), waist_size=50, chest_size=100)),
            20.0,
        )
        self.assertEqual(
            estimate_body_fat(record(date(2025, 1, 1), waist_size=57, chest_size=100)),
            27.0,
        )

    def test_body_fat_degenerate_inputs_return_zero(self):
        self.assertEqual(
            estimate_body_fat(record(date(2025, 1, 1), waist_size=0, chest_size=95)), 0
        )
        self.assertEqual(estimate_body_fat(record(date(2025, 1, 1), chest_size=95)), 0)
        self.assertEqual(
            estimate_body_fat(
                record(date(2025, 1, 1), waist_size="abc", chest_size=95)
            ),
            0,
        )
        self.assertEqual(estimate_body_fat(None), 0)

    def test_parse_measurement_value(self):
        self.assertEqual(parse_measurement_value("81.5"), 81.5)
        self.assertEqual(parse_measurement_value(None), 0.0)
        self.assertEqual(parse_measurement_value(""), 0.0)
        self.assertEqual(parse_measurement_value("12kg"), 0.0)
        self.assertEqual(parse_measurement_value(float("nan")), 0.0)

    def test_muscle_gain_rules(self):
        self.assertEqual(muscle_gain_from_changes(2.0, -0.5), 2.0)
        self.assertEqual(muscle_gain_from_changes(2.0, 0.0), 2.0)
        self.assertEqual(muscle_gain_from_changes(2.0, 0.5), 0.0)
        self.assertAlmostEqual(muscle_gain_from_changes(-3.0, -3.0), 0.9)
        self.assertEqual(muscle_gain_from_changes(-3.0, -2.0), 0.0)
        self.assertEqual(muscle_gain_from_changes(0.0, -5.0), 0.0)

    def test_muscle_gain_from_snapshots(self):
        # Body fat 30.0 -> 27.0 while weight drops 3 kg
        oldest = record(date(2025, 1, 1), body_weight=80, waist_size=60, chest_size=100)
        latest = record(date(2025, 3, 1), body_weight=77, waist_size=57, chest_size=100)
        self.assertEqual(
            estimate_muscle_gain(latest, oldest),
            DerivedStat(value=0.9, change=0.9, unit="kg"),
        )

    def test_muscle_gain_without_oldest(self):
        latest = record(date(2025, 3, 1), body_weight=77)
        self.assertEqual(
            estimate_muscle_gain(latest, None), DerivedStat(0.0, 0.0, "kg")
        )

    def test_change_direction(self):
        self.assertEqual(get_change_direction(-1.2), "good")
        self.assertEqual(get_change_direction(0.8), "bad")
        self.assertEqual(get_change_direction(0.8, positive_is_good=True), "good")
        self.assertEqual(get_change_direction(0.0, positive_is_good=True), "bad")


class TestClientStats(unittest.TestCase):
    """Dashboard stat cards."""

    def test_empty_history(self):
        stats = calculate_client_stats([])
        self.assertEqual(stats.current_weight, DerivedStat(0.0, 0.0, "kg"))
        self.assertEqual(stats.body_fat, DerivedStat(0.0, 0.0, "%"))
        self.assertEqual(stats.muscle_gain, DerivedStat(0.0, 0.0, "kg"))

    def test_single_record(self):
        stats = calculate_client_stats(
            [record(date(2025, 1, 1), body_weight=80.5, waist_size=50, chest_size=100)]
        )
        self.assertEqual(stats.current_weight, DerivedStat(80.5, 0.0, "kg"))
        self.assertEqual(stats.body_fat, DerivedStat(20.0, 0.0, "%"))
        self.assertEqual(stats.muscle_gain.value, 0.0)

    def test_latest_versus_oldest(self):
        records = [
            record(date(2025, 3, 1), body_weight=78.5, waist_size=57, chest_size=100),
            record(date(2025, 1, 1), body_weight=81.5, waist_size=60, chest_size=100),
        ]
        stats = calculate_client_stats(records)
        self.assertEqual(stats.current_weight.value, 78.5)
        self.assertEqual(stats.current_weight.change, -3.0)
        self.assertEqual(stats.body_fat, DerivedStat(27.0, -3.0, "%"))
        self.assertEqual(stats.muscle_gain.value, 0.9)

    def test_window_limits_history(self):
        records = [
            record(date(2025, 1, day), body_weight=90.0 - day) for day in range(1, 16)
        ]
        stats = calculate_client_stats(records, window=10)
        # Oldest record considered is Jan 6 (84.0); latest is Jan 15 (75.0)
        self.assertEqual(stats.current_weight.value, 75.0)
        self.assertEqual(stats.current_weight.change, -9.0)

    def test_window_must_be_positive(self):
        records = [record(date(2025, 1, 1), body_weight=80.0)]
        for window in (0, -1):
            with self.assertRaises(ValueError):
                calculate_client_stats(records, window=window)
        with self.assertRaises(ValueError):
            calculate_client_stats([], window=0)

    def test_unparseable_store_value_counts_as_zero(self):
        records = [
            convert_dict_to_measurement_record(
                {"date": "2025-01-01", "body_weight": "81.0", "waist_size": "60", "chest_size": "100"}
            ),
            convert_dict_to_measurement_record(
                {"date": "2025-03-01", "body_weight": "80,2", "waist_size": "57", "chest_size": "100"}
            ),
        ]
        stats = calculate_client_stats(records)
        self.assertEqual(stats.current_weight, DerivedStat(0.0, -81.0, "kg"))
        self.assertEqual(stats.body_fat, DerivedStat(27.0, -3.0, "%"))


class TestMeasurementValidation(unittest.TestCase):
    """Input validation for the measurement entry form."""

    def test_date(self):
        self.assertEqual(validate_measurement_input("date", "2025-06-01"), (True, ""))
        is_valid, message = validate_measurement_input("date", "06/01/2025")
        self.assertFalse(is_valid)
        self.assertIn("YYYY-MM-DD", message)

    def test_metric_values(self):
        self.assertEqual(validate_measurement_input("body_weight", "80.5"), (True, ""))
        self.assertEqual(validate_measurement_input("waist_size", 86), (True, ""))
        self.assertFalse(validate_measurement_input("body_weight", "0")[0])
        self.assertFalse(validate_measurement_input("body_weight", "-3")[0])
        self.assertFalse(validate_measurement_input("chest_size", "abc")[0])
        self.assertFalse(validate_measurement_input("thigh_size", "")[0])
        self.assertEqual(
            validate_measurement_input("biceps_size", "1500"),
            (False, "Value seems unreasonably high"),
        )

    def test_notes(self):
        self.assertTrue(validate_measurement_input("notes", "")[0])
        self.assertFalse(validate_measurement_input("notes", "x" * 501)[0])

    def test_unknown_field_passes(self):
        self.assertEqual(validate_measurement_input("mood", "great"), (True, ""))


if __name__ == "__main__":
    unittest.main()
