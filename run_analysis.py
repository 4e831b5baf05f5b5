#!/usr/bin/env python3
"""
ProgressTracker - Main CLI Script

This is the command-line entry point for the client progress report. It
provides argument parsing with helpful error messages and delegates the
analysis to the core module.
"""

import argparse
import os

from core import run_analysis
from shared_models import MeasurementType, TimeRange


def main():
    """Main CLI function with comprehensive argument parsing."""
    parser = argparse.ArgumentParser(
        description="ProgressTracker client progress report",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python run_analysis.py                              # Use example_config.json
  python run_analysis.py my_measurements.json        # Use custom file
  python run_analysis.py --time-range 1y              # Last year only
  python run_analysis.py --metric body_weight -p      # Weight chart, save PNG
        """,
    )

    parser.add_argument(
        "config_file",
        nargs="?",
        default="example_config.json",
        help="Path to JSON measurement file (default: example_config.json)",
    )

    parser.add_argument(
        "--time-range",
        "-t",
        choices=[tr.value for tr in TimeRange],
        help="Trailing window to report on (default: from file, else 3m)",
    )

    parser.add_argument(
        "--metric",
        "-m",
        choices=["all"] + [mt.value for mt in MeasurementType],
        help="Measurement to chart (default: from file, else all)",
    )

    parser.add_argument(
        "--save-plot",
        "-p",
        action="store_true",
        help="Save the chart as progress_plot.png",
    )

    parser.add_argument(
        "--help-config",
        action="store_true",
        help="Show detailed help about the JSON measurement format",
    )

    args = parser.parse_args()

    if args.help_config:
        show_config_help()
        return 0

    if not os.path.exists(args.config_file):
        print(f"Error: Configuration file not found: {args.config_file}")
        print()
        print("Run with --help-config to see the expected JSON format.")
        return 1

    try:
        return run_analysis(
            config_path=args.config_file,
            time_range=args.time_range,
            measurement_type=args.metric,
            save_plot=args.save_plot,
        )
    except KeyboardInterrupt:
        print("\nAnalysis interrupted by user.")
        return 1


def show_config_help():
    """Show detailed help about the JSON measurement format."""
    help_text = """
JSON Measurement File Format
============================

{
  "client": {"name": "<optional display name>"},
  "measurements": [
    {
      "date": "YYYY-MM-DD",
      "body_weight": <kg, optional>,
      "waist_size": <cm, optional>,
      "chest_size": <cm, optional>,
      "biceps_size": <cm, optional>,
      "thigh_size": <cm, optional>,
      "notes": "<optional>"
    }
  ],
  "settings": {
    "time_range": "1m | 3m | 6m | 1y",
    "measurement_type": "all | body_weight | waist_size | chest_size | biceps_size | thigh_size",
    "as_of": "YYYY-MM-DD"
  }
}

Notes:
  - Leave out (or set to null) any measurement not taken that day
  - Several measurements may share a date
  - settings is optional; as_of fixes the reference date for the time range
  - Body fat and muscle gain are rough estimates from waist/chest ratio and
    weight change, not measurements
    """
    print(help_text)


if __name__ == "__main__":
    exit(main())
