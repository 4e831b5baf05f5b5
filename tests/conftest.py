"""Shared pytest fixtures for ProgressTracker tests."""

from datetime import date
from pathlib import Path

import pytest

from shared_models import MeasurementRecord

REPO_ROOT = Path(__file__).resolve().parents[1]


@pytest.fixture
def example_config_path():
    return str(REPO_ROOT / "example_config.json")


@pytest.fixture
def reference_date():
    return date(2025, 6, 15)


@pytest.fixture
def sample_records():
    """Four months of measurements, some sessions with only a few fields"""
    return [
        MeasurementRecord(
            date=date(2025, 2, 10),
            body_weight=82.0,
            waist_size=90.0,
            chest_size=104.0,
            biceps_size=35.0,
            thigh_size=58.0,
        ),
        MeasurementRecord(date=date(2025, 3, 20), body_weight=81.0),
        MeasurementRecord(
            date=date(2025, 4, 25), body_weight=80.2, waist_size=88.0, chest_size=104.0
        ),
        MeasurementRecord(
            date=date(2025, 6, 1),
            body_weight=79.5,
            waist_size=86.5,
            chest_size=105.0,
            biceps_size=35.6,
        ),
    ]


@pytest.fixture
def store_rows():
    """Rows as returned by the store, newest first"""
    return [
        {
            "id": "c3",
            "client_id": "client-1",
            "date": "2025-06-01",
            "body_weight": 79.5,
            "chest_size": 105.0,
            "waist_size": 86.5,
            "biceps_size": None,
            "thigh_size": None,
            "notes": None,
            "created_at": "2025-06-01T08:30:00+00:00",
            "updated_at": "2025-06-01T08:30:00+00:00",
        },
        {
            "id": "c2",
            "client_id": "client-1",
            "date": "2025-04-25",
            "body_weight": "80.2",
            "chest_size": None,
            "waist_size": None,
            "biceps_size": None,
            "thigh_size": None,
            "notes": "Weight only",
            "created_at": "2025-04-25T07:00:00Z",
            "updated_at": "2025-04-25T07:00:00Z",
        },
        {
            "id": "c1",
            "client_id": "client-1",
            "date": "2025-02-10",
            "body_weight": 82.0,
            "chest_size": 104.0,
            "waist_size": 90.0,
            "biceps_size": 35.0,
            "thigh_size": 58.0,
            "notes": "",
            "created_at": "2025-02-10T07:00:00Z",
            "updated_at": "2025-02-10T07:00:00Z",
        },
    ]
