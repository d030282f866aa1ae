"""Week Lifecycle - Calendar boundaries and write-time invariants for WeekRecords.

All functions are pure: same input always produces same output, no side effects.
The invariants enforced here are:

- completed weeks are immutable
- at most one incomplete ("current") week exists; opening a newer week
  auto-completes the older one, opening an older one is rejected
"""

from datetime import date, datetime, timedelta
from typing import Any

from .errors import CurrentWeekConflictError, WeekLockedError
from .models import WeekRecord, WeekTargets


# Fields a client payload may never overwrite
PROTECTED_FIELDS = frozenset({"id", "created_at"})


def week_start(day: date) -> date:
    """Sunday on or before the given day."""
    return day - timedelta(days=(day.weekday() + 1) % 7)


def format_week_range(start: date, end: date) -> str:
    """Format as 'Oct 13 - Oct 19'."""
    return f"{start:%b} {start.day} - {end:%b} {end.day}"


def days_into_week(week: WeekRecord, today: date) -> int:
    """1-based day number of today within the week, clamped to 1..7."""
    return min(max((today - week.start_date).days + 1, 1), 7)


def ensure_mutable(week: WeekRecord) -> None:
    """Raise WeekLockedError if the week has been completed."""
    if week.is_complete:
        raise WeekLockedError(week.id)


def merge_week(existing: WeekRecord, payload: dict[str, Any], now: datetime) -> WeekRecord:
    """Apply an update payload to an existing week.

    Unknown keys and protected fields (id, created_at) are ignored. The merged
    record is re-validated so a bad payload raises pydantic's ValidationError.

    Args:
        existing: The stored week
        payload: Fields sent by the client
        now: Timestamp for updated_at

    Returns:
        The updated week

    Raises:
        WeekLockedError: If the existing week is complete
    """
    ensure_mutable(existing)

    data = existing.model_dump()
    for key, value in payload.items():
        if key in WeekRecord.model_fields and key not in PROTECTED_FIELDS:
            data[key] = value
    data["updated_at"] = now

    return WeekRecord.model_validate(data)


def apply_targets(week: WeekRecord, targets: WeekTargets, now: datetime) -> WeekRecord:
    """Replace a week's targets and phase.

    Raises:
        WeekLockedError: If the week is complete
    """
    ensure_mutable(week)
    return week.model_copy(update={**targets.model_dump(), "updated_at": now})


def complete_week(week: WeekRecord, now: datetime) -> WeekRecord:
    """Mark a week complete, keeping an existing completion time."""
    return week.model_copy(
        update={
            "is_complete": True,
            "completed_at": week.completed_at or now,
            "updated_at": now,
        }
    )


def resolve_current_week(current: WeekRecord | None, incoming: WeekRecord) -> WeekRecord | None:
    """Decide what happens to the current week when incoming is written.

    Args:
        current: The stored incomplete week, if any
        incoming: The week about to be written

    Returns:
        The week that must be auto-completed first, or None if nothing changes

    Raises:
        CurrentWeekConflictError: If incoming is an incomplete week older than
            the current one
    """
    if incoming.is_complete or current is None or current.id == incoming.id:
        return None

    if current.start_date < incoming.start_date:
        return current

    raise CurrentWeekConflictError(current.start_date.isoformat(), incoming.start_date.isoformat())


def carry_forward_targets(start: date, previous: WeekRecord | None) -> WeekRecord:
    """Open a new week, inheriting targets and phase from the previous week if known."""
    if previous is None:
        return WeekRecord(start_date=start, end_date=start + timedelta(days=6))

    return WeekRecord(
        start_date=start,
        end_date=start + timedelta(days=6),
        **previous.targets.model_dump(),
    )
