"""Firestore Client - Persistence for weeks, weight readings and daily metrics.

This module handles all database I/O for health tracking.
All I/O is contained here; business rules live in the core module and are
applied at this write boundary.
"""

import logging
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Any, Iterator

from google.api_core.exceptions import GoogleAPICallError
from google.cloud import firestore
from pydantic import BaseModel

from ..core.models import DailyMetrics, RollingAverage, WeekRecord, WeekTargets, WeightReading
from ..core.errors import NotFoundError
from ..core.trends import calculate_rolling_average, derive_body_metrics
from ..core.weeks import (
    apply_targets,
    carry_forward_targets,
    complete_week,
    merge_week,
    resolve_current_week,
    week_start,
)
from .config import ServerConfig


logger = logging.getLogger(__name__)

WEEKS = "weeks"
WEIGHT_READINGS = "weight_readings"
DAILY_METRICS = "daily_metrics"


class StorageError(Exception):
    """Raised when Firestore rejects or fails an operation."""


@dataclass
class FirestoreConfig:
    """Configuration for Firestore client.

    Attributes:
        project_id: GCP project ID (None for default)
        database: Firestore database name (None for default database)
    """

    project_id: str | None = None
    database: str | None = None


def to_document(model: BaseModel) -> dict[str, Any]:
    """Serialize a model for storage. Dates become ISO strings so range queries sort correctly."""
    return model.model_dump(mode="json")


@contextmanager
def _storage_errors(action: str) -> Iterator[None]:
    try:
        yield
    except GoogleAPICallError as e:
        logger.error("Failed to %s: %s", action, str(e))
        raise StorageError(f"Failed to {action}: {e}") from e


class HealthFirestoreClient:
    """Client for persisting health records to Firestore.

    Document structure:
        weeks/{week_id}: { start_date, end_date, targets, totals, ... }
        weight_readings/{reading_id}: { date, weight, body_fat_percentage, ... }
        daily_metrics/{YYYY-MM-DD}: { date, steps, calories, ... }

    Keying daily metrics by date makes every save an insert-or-replace.
    """

    def __init__(self, config: FirestoreConfig | None = None) -> None:
        """Initialize Firestore client.

        Args:
            config: Firestore configuration
        """
        self.config = config or FirestoreConfig()
        self._client: firestore.Client | None = None

    @property
    def client(self) -> firestore.Client:
        """Lazy initialization of Firestore client."""
        if self._client is None:
            kwargs: dict[str, Any] = {}
            if self.config.project_id:
                kwargs["project"] = self.config.project_id
            if self.config.database:
                kwargs["database"] = self.config.database
            self._client = firestore.Client(**kwargs)
        return self._client

    def _weeks(self) -> firestore.CollectionReference:
        return self.client.collection(WEEKS)

    def _weight_readings(self) -> firestore.CollectionReference:
        return self.client.collection(WEIGHT_READINGS)

    def _daily_metrics(self) -> firestore.CollectionReference:
        return self.client.collection(DAILY_METRICS)

    # ==================== Week Operations ====================

    def get_week(self, week_id: str) -> WeekRecord | None:
        """Fetch a week by ID.

        Returns:
            WeekRecord if found, None otherwise
        """
        logger.debug("Fetching week %s", week_id)
        with _storage_errors("fetch week"):
            doc = self._weeks().document(week_id).get()
        if not doc.exists:
            return None
        return WeekRecord.model_validate(doc.to_dict())

    def get_week_by_start_date(self, start_date: date) -> WeekRecord | None:
        """Fetch the week starting on a given date.

        Returns:
            WeekRecord if found, None otherwise
        """
        logger.debug("Fetching week starting %s", start_date)
        with _storage_errors("fetch week by start date"):
            query = self._weeks().where("start_date", "==", start_date.isoformat()).limit(1)
            docs = list(query.stream())
        if not docs:
            return None
        return WeekRecord.model_validate(docs[0].to_dict())

    def _list_weeks(self, is_complete: bool) -> list[WeekRecord]:
        # Equality filter plus ordering on another field would need a composite
        # index; a single user has few weeks, so sort in memory instead.
        with _storage_errors("list weeks"):
            docs = self._weeks().where("is_complete", "==", is_complete).stream()
            weeks = [WeekRecord.model_validate(doc.to_dict()) for doc in docs]
        return sorted(weeks, key=lambda w: w.start_date)

    def get_current_week(self) -> WeekRecord | None:
        """Fetch the in-progress week (latest incomplete week, if any)."""
        incomplete = self._list_weeks(is_complete=False)
        if len(incomplete) > 1:
            logger.warning("Found %d incomplete weeks; using the latest", len(incomplete))
        return incomplete[-1] if incomplete else None

    def get_completed_weeks(self, limit: int = 6, offset: int = 0) -> list[WeekRecord]:
        """Fetch a page of completed weeks, newest first."""
        completed = list(reversed(self._list_weeks(is_complete=True)))
        return completed[offset:offset + limit]

    def get_completed_weeks_between(self, start_date: date, end_date: date) -> list[WeekRecord]:
        """Fetch completed weeks whose start date falls in a range, oldest first."""
        return [
            w for w in self._list_weeks(is_complete=True)
            if start_date <= w.start_date <= end_date
        ]

    def save_week(self, week: WeekRecord) -> WeekRecord:
        """Write a week document as-is (no invariant checks)."""
        logger.info("Saving week %s starting %s", week.id, week.start_date)
        with _storage_errors("save week"):
            self._weeks().document(week.id).set(to_document(week))
        return week

    def _finalize_week(self, week: WeekRecord, previous: WeekRecord | None) -> WeekRecord:
        """Fill derived body metrics of a completed week from stored readings."""
        readings = self.get_weight_readings(week.start_date - timedelta(days=7), week.end_date)
        return derive_body_metrics(week, readings, previous)

    def upsert_week(self, payload: dict[str, Any], now: datetime | None = None) -> tuple[WeekRecord, bool]:
        """Create or update the week identified by payload['start_date'].

        New weeks inherit targets from the previous week unless the payload
        sets them. Completing a week fills its derived body metrics. Opening a
        newer incomplete week auto-completes the older one.

        Args:
            payload: Week fields sent by the client
            now: Timestamp for the write (defaults to utcnow)

        Returns:
            Tuple of (saved week, created)

        Raises:
            pydantic.ValidationError: If the payload is not a valid week
            WeekLockedError: If the stored week is already complete
            CurrentWeekConflictError: If a newer week is already in progress
        """
        now = now or datetime.utcnow()
        start = WeekRecord.model_validate({"start_date": payload.get("start_date")}).start_date

        existing = self.get_week_by_start_date(start)
        previous = self.get_week_by_start_date(start - timedelta(days=7))

        if existing is not None:
            week = merge_week(existing, payload, now)
        else:
            base = carry_forward_targets(start, previous)
            if payload.get("id"):
                base = base.model_copy(update={"id": str(payload["id"])})
            week = merge_week(base, payload, now)

        if week.is_complete:
            week = self._finalize_week(week, previous)

        stale = resolve_current_week(self.get_current_week(), week)
        if stale is not None:
            logger.info("Auto-completing week %s before opening %s", stale.start_date, week.start_date)
            stale_previous = self.get_week_by_start_date(stale.start_date - timedelta(days=7))
            self.save_week(complete_week(self._finalize_week(stale, stale_previous), now))

        self.save_week(week)
        return week, existing is None

    def start_current_week(self, today: date, now: datetime | None = None) -> tuple[WeekRecord, bool]:
        """Open the week containing today if it does not exist yet.

        Returns:
            Tuple of (week containing today, created)
        """
        start = week_start(today)
        existing = self.get_week_by_start_date(start)
        if existing is not None:
            return existing, False
        return self.upsert_week({"start_date": start.isoformat()}, now)

    def update_week_targets(self, week_id: str, targets: WeekTargets, now: datetime | None = None) -> WeekRecord:
        """Replace the targets and phase of a week.

        Raises:
            NotFoundError: If no week has this ID
            WeekLockedError: If the week is complete
        """
        week = self.get_week(week_id)
        if week is None:
            raise NotFoundError(f"Week {week_id} not found")

        updated = apply_targets(week, targets, now or datetime.utcnow())
        return self.save_week(updated)

    # ==================== Weight Reading Operations ====================

    def add_weight_reading(self, reading: WeightReading) -> WeightReading:
        """Store a new weight reading."""
        logger.info("Saving weight reading for %s: %.1f", reading.date, reading.weight)
        with _storage_errors("save weight reading"):
            self._weight_readings().document(reading.id).set(to_document(reading))
        return reading

    def get_weight_readings(self, start_date: date, end_date: date) -> list[WeightReading]:
        """Fetch readings in a date range (inclusive), oldest first."""
        logger.debug("Fetching weight readings from %s to %s", start_date, end_date)
        with _storage_errors("fetch weight readings"):
            query = (
                self._weight_readings()
                .where("date", ">=", start_date.isoformat())
                .where("date", "<=", end_date.isoformat())
                .order_by("date")
            )
            readings = [WeightReading.model_validate(doc.to_dict()) for doc in query.stream()]

        logger.debug("Found %d readings in range", len(readings))
        return readings

    def rolling_average(self, target_date: date, window_days: int = 7) -> RollingAverage:
        """Rolling average weight over the stored readings ending on target_date."""
        if window_days < 1:
            raise ValueError(f"window must be at least 1, got {window_days}")

        readings = self.get_weight_readings(target_date - timedelta(days=window_days - 1), target_date)
        return calculate_rolling_average(readings, target_date, window_days)

    # ==================== Daily Metrics Operations ====================

    def save_daily_metrics(self, metrics: DailyMetrics) -> DailyMetrics:
        """Insert or replace the metrics document for a day."""
        logger.info("Saving daily metrics for %s", metrics.date)
        with _storage_errors("save daily metrics"):
            self._daily_metrics().document(metrics.date.isoformat()).set(to_document(metrics))
        return metrics

    def upsert_daily_metrics(self, metrics: DailyMetrics) -> DailyMetrics:
        """Save a day's metrics, filling its 7-day average weight when it has a weight.

        Returns:
            The metrics as stored
        """
        if metrics.weight is not None and metrics.seven_day_average_weight is None:
            average = self.rolling_average(metrics.date)
            if average.is_valid:
                metrics = metrics.model_copy(update={"seven_day_average_weight": average.average})

        return self.save_daily_metrics(metrics)

    def get_daily_metrics(self, start_date: date, end_date: date) -> list[DailyMetrics]:
        """Fetch daily metrics in a date range (inclusive), oldest first."""
        logger.debug("Fetching daily metrics from %s to %s", start_date, end_date)
        with _storage_errors("fetch daily metrics"):
            query = (
                self._daily_metrics()
                .where("date", ">=", start_date.isoformat())
                .where("date", "<=", end_date.isoformat())
                .order_by("date")
            )
            return [DailyMetrics.model_validate(doc.to_dict()) for doc in query.stream()]


# Lazy-initialized client shared by the REST routes and the MCP tools
_firestore_client: HealthFirestoreClient | None = None


def get_firestore_client() -> HealthFirestoreClient:
    """Get or create the Firestore client."""
    global _firestore_client
    if _firestore_client is None:
        config = ServerConfig.from_env()
        _firestore_client = HealthFirestoreClient(
            FirestoreConfig(project_id=config.firestore_project, database=config.firestore_database)
        )
    return _firestore_client


def set_firestore_client(client: HealthFirestoreClient | None) -> None:
    """Replace the shared client (None resets to lazy creation)."""
    global _firestore_client
    _firestore_client = client
