"""
Measurement Store API Layer for ProgressTracker

This module provides the boundary between the progress engine and the remote
data store that holds client measurements. The store exposes a PostgREST
style HTTP interface; this layer performs a single request per load and hands
back a result-or-error value so UI code never has to catch exceptions.

Key Features:
- Environment-driven store configuration
- One request per load, no retry or backoff
- Typed error hierarchy for connection, response and record failures
- Failed loads degrade to an empty list plus a user-facing notification
"""

import logging
import os
from dataclasses import dataclass
from typing import List, Optional

import requests

from shared_models import (
    CHART_FETCH_LIMIT,
    FetchResult,
    MeasurementRecord,
    convert_dict_to_measurement_record,
)

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

MEASUREMENTS_TABLE = "client_progress"
MEASUREMENT_COLUMNS = [
    "id",
    "client_id",
    "date",
    "body_weight",
    "chest_size",
    "waist_size",
    "biceps_size",
    "thigh_size",
    "notes",
    "created_at",
    "updated_at",
]
DEFAULT_TIMEOUT_SECONDS = 10.0
LOAD_FAILED_MESSAGE = "Failed to load progress data"


# ============================================================================
# CUSTOM EXCEPTIONS
# ============================================================================


class MeasurementStoreError(Exception):
    """Base class for measurement store errors"""

    def __init__(self, message: str, code: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.code = code


class StoreConnectionError(MeasurementStoreError):
    """Raised when the store cannot be reached"""

    pass


class StoreResponseError(MeasurementStoreError):
    """Raised when the store answers with an error or an unreadable body"""

    pass


class InvalidRecordError(MeasurementStoreError):
    """Raised when a stored row cannot be converted to a measurement record"""

    pass


def get_error_message(error) -> str:
    """
    Extract a readable message from any error value.

    Store errors that carry a code are rendered as "message (code)".
    """
    if not error:
        return "An unknown error occurred"

    if isinstance(error, str):
        return error

    if isinstance(error, MeasurementStoreError):
        if error.code:
            return f"{error.message} ({error.code})"
        return error.message

    message = str(error)
    return message or "An unknown error occurred"


# ============================================================================
# CONFIGURATION
# ============================================================================


@dataclass
class StoreConfig:
    """Connection settings for the measurement store"""

    base_url: str
    api_key: str
    access_token: Optional[str] = None  # subject's session token
    client_id: Optional[str] = None
    timeout: float = DEFAULT_TIMEOUT_SECONDS

    def __post_init__(self):
        self.base_url = self.base_url.rstrip("/")
        if self.timeout <= 0:
            raise ValueError("timeout must be positive")

    @classmethod
    def from_env(cls, environ=None) -> Optional["StoreConfig"]:
        """
        Build a config from environment variables.

        Returns None when the store URL or API key is not set.
        """
        environ = os.environ if environ is None else environ

        base_url = environ.get("PROGRESS_STORE_URL")
        api_key = environ.get("PROGRESS_STORE_KEY")
        if not base_url or not api_key:
            return None

        timeout = environ.get("PROGRESS_STORE_TIMEOUT")
        return cls(
            base_url=base_url,
            api_key=api_key,
            access_token=environ.get("PROGRESS_STORE_TOKEN") or None,
            client_id=environ.get("PROGRESS_CLIENT_ID") or None,
            timeout=float(timeout) if timeout else DEFAULT_TIMEOUT_SECONDS,
        )


# ============================================================================
# STORE CLIENT
# ============================================================================


def parse_measurement_rows(rows: list) -> List[MeasurementRecord]:
    """Convert raw store rows to records, failing on the first bad row."""
    records = []
    for i, row in enumerate(rows):
        if not isinstance(row, dict):
            raise InvalidRecordError(f"Row {i + 1}: expected an object")
        try:
            records.append(convert_dict_to_measurement_record(row))
        except (TypeError, ValueError) as e:
            raise InvalidRecordError(f"Row {i + 1}: {str(e)}")
    return records


class MeasurementStoreClient:
    """Reads a client's measurement history from the remote store"""

    def __init__(self, config: StoreConfig, session: Optional[requests.Session] = None):
        self.config = config
        self.session = session or requests.Session()

    @property
    def table_url(self) -> str:
        return f"{self.config.base_url}/rest/v1/{MEASUREMENTS_TABLE}"

    def _headers(self) -> dict:
        token = self.config.access_token or self.config.api_key
        return {
            "apikey": self.config.api_key,
            "Authorization": f"Bearer {token}",
            "Accept": "application/json",
        }

    def _params(self, limit: int) -> dict:
        params = {
            "select": ",".join(MEASUREMENT_COLUMNS),
            "order": "date.desc",
            "limit": str(limit),
        }
        # Without an explicit client id the store's row-level policies scope
        # the query to the token's subject
        if self.config.client_id:
            params["client_id"] = f"eq.{self.config.client_id}"
        return params

    def fetch_rows(self, limit: int = CHART_FETCH_LIMIT) -> list:
        """
        Fetch up to `limit` most recent rows.

        Raises:
            StoreConnectionError: If the request cannot be completed
            StoreResponseError: If the store returns an error or bad payload
        """
        if limit <= 0:
            raise ValueError("limit must be positive")

        try:
            response = self.session.get(
                self.table_url,
                params=self._params(limit),
                headers=self._headers(),
                timeout=self.config.timeout,
            )
        except requests.RequestException as e:
            raise StoreConnectionError(f"Could not reach measurement store: {str(e)}")

        if response.status_code >= 400:
            message = f"Measurement store returned HTTP {response.status_code}"
            code = None
            try:
                body = response.json()
            except ValueError:
                body = None
            if isinstance(body, dict):
                message = body.get("message") or message
                code = body.get("code")
            raise StoreResponseError(message, code=code)

        try:
            payload = response.json()
        except ValueError:
            raise StoreResponseError("Measurement store returned invalid JSON")

        if payload is None:
            return []
        if not isinstance(payload, list):
            raise StoreResponseError("Measurement store returned an unexpected payload")
        return payload

    def fetch_measurements(self, limit: int = CHART_FETCH_LIMIT) -> FetchResult:
        """
        Load the measurement history, sorted ascending by date.

        Never raises for store failures: the result carries an empty list,
        the error message and a notification for the user.
        """
        logger.info(f"Fetching up to {limit} measurements")

        try:
            rows = self.fetch_rows(limit)
            records = parse_measurement_rows(rows)
        except MeasurementStoreError as e:
            message = get_error_message(e)
            logger.error(f"Error fetching client measurements: {message}")
            return FetchResult(
                records=[],
                error=message,
                notification=f"{LOAD_FAILED_MESSAGE}: {message}",
            )

        records.sort(key=lambda record: record.date)
        logger.info(f"Fetched {len(records)} measurements")
        return FetchResult(records=records)


def load_progress_data(
    config: Optional[StoreConfig] = None,
    limit: int = CHART_FETCH_LIMIT,
    session: Optional[requests.Session] = None,
) -> FetchResult:
    """
    Single entry point for the dashboard's data load.

    Args:
        config: Store settings; read from the environment when omitted
        limit: Maximum number of most recent records
        session: Optional requests session (for connection reuse or tests)

    Returns:
        FetchResult: Sorted records, or an empty list with an error
    """
    if config is None:
        config = StoreConfig.from_env()
    if config is None:
        message = "Measurement store is not configured"
        logger.error(message)
        return FetchResult(
            records=[], error=message, notification=f"{LOAD_FAILED_MESSAGE}: {message}"
        )

    client = MeasurementStoreClient(config, session=session)
    return client.fetch_measurements(limit)
