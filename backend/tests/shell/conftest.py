"""Shared fixtures for shell tests: an in-memory store and an authenticated client."""

from datetime import date

import pytest
from starlette.testclient import TestClient

from src.core.models import DailyMetrics, WeekRecord, WeightReading
from src.main import create_app
from src.shell import firestore_client
from src.shell.firestore_client import HealthFirestoreClient, to_document


TEST_API_KEY = "test-secret-key"


class InMemoryHealthStore(HealthFirestoreClient):
    """HealthFirestoreClient with its Firestore primitives replaced by dicts.

    Documents go through the same JSON serialization as Firestore writes, so
    round-trip behaviour matches the real client.
    """

    def __init__(self) -> None:
        super().__init__()
        self.weeks: dict[str, dict] = {}
        self.readings: dict[str, dict] = {}
        self.daily: dict[str, dict] = {}

    def get_week(self, week_id: str) -> WeekRecord | None:
        data = self.weeks.get(week_id)
        return WeekRecord.model_validate(data) if data else None

    def get_week_by_start_date(self, start_date: date) -> WeekRecord | None:
        for data in self.weeks.values():
            if data["start_date"] == start_date.isoformat():
                return WeekRecord.model_validate(data)
        return None

    def _list_weeks(self, is_complete: bool) -> list[WeekRecord]:
        weeks = [
            WeekRecord.model_validate(data)
            for data in self.weeks.values()
            if data["is_complete"] == is_complete
        ]
        return sorted(weeks, key=lambda w: w.start_date)

    def save_week(self, week: WeekRecord) -> WeekRecord:
        self.weeks[week.id] = to_document(week)
        return week

    def add_weight_reading(self, reading: WeightReading) -> WeightReading:
        self.readings[reading.id] = to_document(reading)
        return reading

    def get_weight_readings(self, start_date: date, end_date: date) -> list[WeightReading]:
        readings = [
            WeightReading.model_validate(data)
            for data in self.readings.values()
            if start_date.isoformat() <= data["date"] <= end_date.isoformat()
        ]
        return sorted(readings, key=lambda r: r.date)

    def save_daily_metrics(self, metrics: DailyMetrics) -> DailyMetrics:
        self.daily[metrics.date.isoformat()] = to_document(metrics)
        return metrics

    def get_daily_metrics(self, start_date: date, end_date: date) -> list[DailyMetrics]:
        return [
            DailyMetrics.model_validate(self.daily[key])
            for key in sorted(self.daily)
            if start_date.isoformat() <= key <= end_date.isoformat()
        ]


@pytest.fixture
def store():
    """In-memory store installed as the shared Firestore client."""
    memory_store = InMemoryHealthStore()
    firestore_client.set_firestore_client(memory_store)
    yield memory_store
    firestore_client.set_firestore_client(None)


@pytest.fixture
def api_key(monkeypatch):
    monkeypatch.setenv("API_KEY", TEST_API_KEY)
    return TEST_API_KEY


@pytest.fixture
def client(store, api_key):
    """Test client with the in-memory store and the API key configured."""
    return TestClient(create_app())


@pytest.fixture
def auth_headers(api_key):
    return {"Authorization": f"Bearer {api_key}"}
