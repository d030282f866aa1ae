"""REST API - JSON routes used by the mobile app.

Handlers parse and validate input, delegate to the Firestore client, and map
domain errors to HTTP statuses. All routes except /api/health sit behind the
bearer-token middleware in main.py.
"""

import functools
import logging
from datetime import date, datetime, timezone
from typing import Any, Awaitable, Callable

from pydantic import ValidationError
from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.routing import Route

from ..core.errors import BadRequestError, HealthTrackerError, NotFoundError
from ..core.models import BodyCompositionPoint, DailyMetrics, WeekTargets, WeightReading
from .firestore_client import get_firestore_client


logger = logging.getLogger(__name__)

Handler = Callable[[Request], Awaitable[JSONResponse]]


# ==================== Request Helpers ====================


def _error(message: str, status_code: int) -> JSONResponse:
    return JSONResponse({"error": message}, status_code=status_code)


def _describe_validation_error(error: ValidationError) -> str:
    problems = []
    for item in error.errors():
        location = ".".join(str(part) for part in item["loc"])
        problems.append(f"{location}: {item['msg']}" if location else item["msg"])
    return "Invalid request: " + "; ".join(problems)


async def _json_body(request: Request) -> dict[str, Any]:
    try:
        body = await request.json()
    except ValueError:
        raise BadRequestError("Request body must be JSON")
    if not isinstance(body, dict):
        raise BadRequestError("Request body must be a JSON object")
    return body


def _parse_date(value: str) -> date:
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise BadRequestError(f"Invalid date '{value}'. Use YYYY-MM-DD.")


def _date_range(request: Request) -> tuple[date, date]:
    start = request.query_params.get("start")
    end = request.query_params.get("end")
    if not start or not end:
        raise BadRequestError("Missing start or end date")
    return _parse_date(start), _parse_date(end)


def _int_param(request: Request, name: str, default: int) -> int:
    raw = request.query_params.get(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise BadRequestError(f"Parameter '{name}' must be an integer")


def api_endpoint(handler: Handler) -> Handler:
    """Translate validation and domain errors into JSON error responses."""

    @functools.wraps(handler)
    async def wrapper(request: Request) -> JSONResponse:
        try:
            return await handler(request)
        except ValidationError as e:
            return _error(_describe_validation_error(e), 400)
        except HealthTrackerError as e:
            if e.status_code >= 500:
                logger.error("%s %s failed: %s", request.method, request.url.path, str(e))
            else:
                logger.warning("%s %s rejected: %s", request.method, request.url.path, str(e))
            return _error(str(e), e.status_code)
        except ValueError as e:
            return _error(str(e), 400)
        except Exception as e:
            logger.exception("Unhandled error on %s %s", request.method, request.url.path)
            return JSONResponse(
                {"error": "Internal server error", "message": str(e)},
                status_code=500,
            )

    return wrapper


# ==================== Route Handlers ====================


async def health(request: Request) -> JSONResponse:
    """Liveness check, no auth required."""
    return JSONResponse({"status": "ok", "timestamp": datetime.now(timezone.utc).isoformat()})


@api_endpoint
async def get_current_week(request: Request) -> JSONResponse:
    """The in-progress week, or null if none is open."""
    week = get_firestore_client().get_current_week()
    return JSONResponse(week.model_dump(mode="json") if week else None)


@api_endpoint
async def start_current_week(request: Request) -> JSONResponse:
    """Open the week containing today, carrying targets forward from last week."""
    week, created = get_firestore_client().start_current_week(date.today())
    return JSONResponse(week.model_dump(mode="json"), status_code=201 if created else 200)


@api_endpoint
async def list_weeks(request: Request) -> JSONResponse:
    """Completed weeks, newest first, paginated with limit/offset."""
    limit = _int_param(request, "limit", 6)
    offset = _int_param(request, "offset", 0)
    if limit < 1 or offset < 0:
        raise BadRequestError("limit must be positive and offset non-negative")

    weeks = get_firestore_client().get_completed_weeks(limit, offset)
    return JSONResponse([w.model_dump(mode="json") for w in weeks])


@api_endpoint
async def upsert_week(request: Request) -> JSONResponse:
    """Create the week for body['start_date'] or update it if it exists."""
    body = await _json_body(request)
    week, created = get_firestore_client().upsert_week(body)

    if created:
        return JSONResponse({"message": "Week created", "id": week.id}, status_code=201)
    return JSONResponse({"message": "Week updated", "id": week.id})


@api_endpoint
async def get_week(request: Request) -> JSONResponse:
    start = _parse_date(request.path_params["start_date"])
    week = get_firestore_client().get_week_by_start_date(start)
    if week is None:
        raise NotFoundError("Week not found")
    return JSONResponse(week.model_dump(mode="json"))


@api_endpoint
async def update_week_targets(request: Request) -> JSONResponse:
    targets = WeekTargets.model_validate(await _json_body(request))
    get_firestore_client().update_week_targets(request.path_params["week_id"], targets)
    return JSONResponse({"message": "Targets updated"})


@api_endpoint
async def create_weight_reading(request: Request) -> JSONResponse:
    reading = WeightReading.model_validate(await _json_body(request))
    get_firestore_client().add_weight_reading(reading)
    return JSONResponse({"message": "Weight reading saved", "id": reading.id}, status_code=201)


@api_endpoint
async def list_weight_readings(request: Request) -> JSONResponse:
    start, end = _date_range(request)
    readings = get_firestore_client().get_weight_readings(start, end)
    return JSONResponse([r.model_dump(mode="json") for r in readings])


@api_endpoint
async def weight_average(request: Request) -> JSONResponse:
    """Rolling average ending on ?date over ?window days (default 7)."""
    raw_date = request.query_params.get("date")
    if not raw_date:
        raise BadRequestError("Missing date parameter")

    target = _parse_date(raw_date)
    window = _int_param(request, "window", 7)

    result = get_firestore_client().rolling_average(target, window)
    return JSONResponse(result.model_dump(mode="json", by_alias=True))


@api_endpoint
async def create_daily_metrics(request: Request) -> JSONResponse:
    """Insert or replace the metrics for body['date']."""
    metrics = DailyMetrics.model_validate(await _json_body(request))
    saved = get_firestore_client().upsert_daily_metrics(metrics)
    return JSONResponse({"message": "Daily metrics saved", "id": saved.id}, status_code=201)


@api_endpoint
async def list_daily_metrics(request: Request) -> JSONResponse:
    start, end = _date_range(request)
    metrics = get_firestore_client().get_daily_metrics(start, end)
    return JSONResponse([m.model_dump(mode="json") for m in metrics])


@api_endpoint
async def body_composition(request: Request) -> JSONResponse:
    """Readings in range that carry body fat or muscle mass data."""
    start, end = _date_range(request)
    readings = get_firestore_client().get_weight_readings(start, end)

    points = [
        BodyCompositionPoint(
            date=r.date,
            body_fat_percentage=r.body_fat_percentage,
            muscle_mass_percentage=r.muscle_mass_percentage,
            weight=r.weight,
        )
        for r in readings
        if r.has_composition
    ]
    return JSONResponse([p.model_dump(mode="json", by_alias=True) for p in points])


routes = [
    Route("/health", health, methods=["GET"]),
    Route("/current-week", get_current_week, methods=["GET"]),
    Route("/current-week", start_current_week, methods=["POST"]),
    Route("/weeks", list_weeks, methods=["GET"]),
    Route("/weeks", upsert_week, methods=["POST"]),
    Route("/weeks/{start_date}", get_week, methods=["GET"]),
    Route("/weeks/{week_id}/targets", update_week_targets, methods=["PUT"]),
    Route("/weight", create_weight_reading, methods=["POST"]),
    Route("/weight", list_weight_readings, methods=["GET"]),
    Route("/weight/average", weight_average, methods=["GET"]),
    Route("/daily-metrics", create_daily_metrics, methods=["POST"]),
    Route("/daily-metrics", list_daily_metrics, methods=["GET"]),
    Route("/body-composition", body_composition, methods=["GET"]),
]
