"""Core Data Models - Pydantic models for type safety.

Records mirror what the mobile app pushes: weekly targets and totals,
individual weight readings, and finalized daily metrics. Result models carry
the outputs of the pure calculations in this package.
"""

from datetime import datetime, timedelta
from datetime import date as DateType
from enum import Enum
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
import uuid


DEFAULT_TARGET_CALORIES = 14000
DEFAULT_TARGET_PROTEIN = 1000
DEFAULT_TARGET_STEPS = 70000
DEFAULT_TARGET_CARDIO = 2000


def _new_id() -> str:
    return str(uuid.uuid4())


def _truncate_to_date(value):
    """Accept ISO datetimes (as sent by HealthKit) where a calendar day is expected."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, str) and len(value) > 10 and value[10] in ("T", " "):
        return value[:10]
    return value


class Phase(str, Enum):
    """Coarse training/nutrition intent."""

    CUT = "cut"
    MAINTENANCE = "maintenance"
    BULK = "bulk"

    @property
    def display_name(self) -> str:
        return self.value.capitalize()


class WeekTargets(BaseModel):
    """Weekly targets and the phase they serve."""

    target_calories: int = Field(ge=0, description="Weekly calorie target")
    target_protein: int = Field(ge=0, description="Weekly protein target in grams")
    target_steps: int = Field(ge=0, description="Weekly step target")
    target_cardio: int = Field(ge=0, description="Weekly cardio calorie target")
    phase: Phase = Phase.MAINTENANCE


class WeekRecord(BaseModel):
    """One calendar week (Sunday to Saturday) of targets, actuals and body metrics."""

    id: str = Field(default_factory=_new_id)
    start_date: DateType = Field(description="Sunday that opens the week")
    end_date: Optional[DateType] = Field(default=None, description="Saturday that closes the week")

    target_calories: int = Field(default=DEFAULT_TARGET_CALORIES, ge=0)
    target_protein: int = Field(default=DEFAULT_TARGET_PROTEIN, ge=0)
    target_steps: int = Field(default=DEFAULT_TARGET_STEPS, ge=0)
    target_cardio: int = Field(default=DEFAULT_TARGET_CARDIO, ge=0)
    phase: Phase = Phase.MAINTENANCE

    total_steps: Optional[int] = Field(default=None, ge=0)
    total_calories: Optional[int] = Field(default=None, ge=0)
    total_protein: Optional[int] = Field(default=None, ge=0)
    total_cardio_calories: Optional[int] = Field(default=None, ge=0)

    average_weight: Optional[float] = Field(default=None, gt=0)
    week_over_week_weight_change: Optional[float] = None
    body_fat_percentage: Optional[float] = Field(default=None, ge=0, le=100)
    body_fat_change: Optional[float] = None
    muscle_mass_percentage: Optional[float] = Field(default=None, ge=0, le=100)
    muscle_mass_change: Optional[float] = None

    is_complete: bool = False
    completed_at: Optional[datetime] = None
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    @field_validator("start_date", "end_date", mode="before")
    @classmethod
    def _parse_dates(cls, value):
        return _truncate_to_date(value)

    @model_validator(mode="after")
    def _fill_lifecycle_fields(self) -> "WeekRecord":
        if self.end_date is None:
            self.end_date = self.start_date + timedelta(days=6)
        if self.end_date < self.start_date:
            raise ValueError("end_date must not precede start_date")
        if self.is_complete and self.completed_at is None:
            self.completed_at = datetime.utcnow()
        return self

    @property
    def targets(self) -> WeekTargets:
        return WeekTargets(
            target_calories=self.target_calories,
            target_protein=self.target_protein,
            target_steps=self.target_steps,
            target_cardio=self.target_cardio,
            phase=self.phase,
        )


class WeightReading(BaseModel):
    """A single weigh-in, optionally with body composition from a smart scale."""

    id: str = Field(default_factory=_new_id)
    date: DateType
    weight: float = Field(gt=0, description="Body weight in lbs")
    body_fat_percentage: Optional[float] = Field(default=None, ge=0, le=100)
    muscle_mass_percentage: Optional[float] = Field(default=None, ge=0, le=100)
    source: str = Field(default="API", description="Where the reading came from (HealthKit, manual, ...)")
    created_at: datetime = Field(default_factory=datetime.utcnow)

    @field_validator("date", mode="before")
    @classmethod
    def _parse_date(cls, value):
        return _truncate_to_date(value)

    @property
    def has_composition(self) -> bool:
        return self.body_fat_percentage is not None or self.muscle_mass_percentage is not None


class DailyMetrics(BaseModel):
    """Finalized totals for one calendar day. Unique on date."""

    id: str = Field(default_factory=_new_id)
    date: DateType
    steps: int = Field(default=0, ge=0)
    calories: int = Field(default=0, ge=0)
    protein: int = Field(default=0, ge=0)
    cardio_calories: int = Field(default=0, ge=0)
    weight: Optional[float] = Field(default=None, gt=0)
    seven_day_average_weight: Optional[float] = Field(default=None, gt=0)
    created_at: datetime = Field(default_factory=datetime.utcnow)

    @field_validator("date", mode="before")
    @classmethod
    def _parse_date(cls, value):
        return _truncate_to_date(value)


class RollingAverage(BaseModel):
    """Trailing-window weight average with a coverage-based confidence."""

    model_config = ConfigDict(populate_by_name=True)

    average: Optional[float] = Field(description="None when fewer than 3 readings fall in the window")
    confidence: float = Field(ge=0, description="reading_count / window_days, above 1 with same-day duplicates")
    reading_count: int = Field(ge=0, serialization_alias="readingCount")
    is_valid: bool = Field(serialization_alias="isValid")


class PhaseSuggestion(BaseModel):
    """Suggested phase derived from calorie balance and weight trend."""

    suggested_phase: Phase
    confidence: float = Field(ge=0, le=1)
    reasoning: str
    calorie_balance: float = Field(description="Average daily surplus (negative = deficit)")
    weight_trend: float = Field(description="Average weekly weight change in lbs")


class WeekAdherence(BaseModel):
    """Actual-to-target percentages for a week. None means not computable."""

    calories: Optional[float] = None
    protein: Optional[float] = None
    steps: Optional[float] = None
    cardio: Optional[float] = None
    overall: Optional[float] = Field(default=None, description="Mean of calories, protein and steps")


class SeriesStats(BaseModel):
    """Summary statistics over a dated series (weight, body fat %, muscle mass %)."""

    count: int
    average: float
    minimum: float
    maximum: float
    change: float = Field(description="Last value minus first value")


class BodyCompositionPoint(BaseModel):
    """A dated body composition sample as served to the app."""

    model_config = ConfigDict(populate_by_name=True)

    date: DateType
    body_fat_percentage: Optional[float] = Field(default=None, serialization_alias="bodyFatPercentage")
    muscle_mass_percentage: Optional[float] = Field(default=None, serialization_alias="muscleMassPercentage")
    weight: float
