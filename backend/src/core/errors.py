"""Domain Errors - Exceptions raised by core rules and mapped to HTTP statuses by the shell."""


class HealthTrackerError(Exception):
    """Base class for all domain errors."""

    status_code = 500


class BadRequestError(HealthTrackerError):
    """Request is missing data or carries malformed values."""

    status_code = 400


class NotFoundError(HealthTrackerError):
    """Requested week or resource does not exist."""

    status_code = 404


class ConflictError(HealthTrackerError):
    """Write would violate a week lifecycle invariant."""

    status_code = 409


class WeekLockedError(ConflictError):
    """Completed weeks are immutable."""

    def __init__(self, week_id: str) -> None:
        super().__init__(f"Week {week_id} is complete and can no longer be modified")
        self.week_id = week_id


class CurrentWeekConflictError(ConflictError):
    """A newer incomplete week already exists."""

    def __init__(self, current_start: str, incoming_start: str) -> None:
        super().__init__(
            f"Week starting {current_start} is already in progress; "
            f"cannot open an older week starting {incoming_start}"
        )
        self.current_start = current_start
        self.incoming_start = incoming_start
