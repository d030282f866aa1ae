"""MCP Server - Tool definitions for Claude integration.

Defines the analysis tools Claude can invoke over the health records. Every
tool answers with a natural-language text block; empty results are reported
in prose, never as errors.

The tools are served two ways: over MCP streamable HTTP for MCP clients, and
through the simple ``POST /mcp`` JSON surface handled by ``handle_mcp_request``.
"""

import logging
from datetime import date

from mcp.server.fastmcp import FastMCP
from mcp.server.fastmcp.tools import Tool
from mcp.server.transport_security import TransportSecuritySettings
from mcp.types import CallToolResult, TextContent
from pydantic import ValidationError
from starlette.concurrency import run_in_threadpool
from starlette.requests import Request
from starlette.responses import JSONResponse

from ..core.summaries import (
    render_body_composition,
    render_current_week,
    render_phase_analysis,
    render_week_summary,
    render_weekly_history,
    render_weight_trend,
)
from .firestore_client import get_firestore_client


logger = logging.getLogger(__name__)

INVALID_DATE_MESSAGE = "Invalid date format. Use YYYY-MM-DD."

# Configure transport security for Cloud Run deployment
transport_security = TransportSecuritySettings(
    enable_dns_rebinding_protection=True,
    allowed_hosts=[
        "localhost:*",
        "127.0.0.1:*",
        "*.run.app:*",
        "*.run.app",
    ],
)

# Initialize FastMCP server with stateless HTTP for cloud deployments
mcp = FastMCP(
    "health-tracker",
    instructions="""Health Tracker - Personal weekly fitness and body composition records.

Use these tools to review the user's weekly targets and actuals, weight trend,
body composition and training phases (cut, maintenance, bulk).

Start with get_current_week for the week in progress. Dates are YYYY-MM-DD
and weeks start on Sunday. Weights are in lbs.""",
    stateless_http=True,
    transport_security=transport_security,
    streamable_http_path="/mcp/stream",
)


def _parse_date(value: str) -> date | None:
    try:
        return date.fromisoformat(value)
    except (TypeError, ValueError):
        return None


# ==================== Week Tools ====================


@mcp.tool()
def get_current_week() -> str:
    """Get the current in-progress week with running totals.

    Returns:
        Progress against each weekly target and the latest body metrics
    """
    week = get_firestore_client().get_current_week()
    return render_current_week(week, date.today())


@mcp.tool()
def get_week_summary(start_date: str) -> str:
    """Get complete week data including targets, actuals, and body composition for a specific week.

    Args:
        start_date: The Sunday the week starts on, in YYYY-MM-DD format

    Returns:
        Targets, actuals with adherence, body composition and completion status
    """
    start = _parse_date(start_date)
    if start is None:
        return INVALID_DATE_MESSAGE

    week = get_firestore_client().get_week_by_start_date(start)
    return render_week_summary(week, start_date)


@mcp.tool()
def get_weekly_history(limit: int = 10, offset: int = 0) -> str:
    """Get a paginated list of completed weeks for historical analysis, newest first.

    Args:
        limit: Number of weeks to return (default 10)
        offset: Number of weeks to skip (default 0)

    Returns:
        One block per week with targets, actuals, weight and adherence
    """
    limit = limit if limit > 0 else 10
    offset = max(offset, 0)

    weeks = get_firestore_client().get_completed_weeks(limit, offset)
    return render_weekly_history(weeks, offset)


@mcp.tool()
def analyze_phases(start_date: str, end_date: str, avg_daily_surplus: float | None = None) -> str:
    """Analyze training phases over a date range, showing effectiveness and recommendations.

    Args:
        start_date: Start date in YYYY-MM-DD format
        end_date: End date in YYYY-MM-DD format
        avg_daily_surplus: Optional measured average daily calorie balance
            (negative = deficit). Estimated from the weight trend if omitted.

    Returns:
        Per-phase weight change, adherence, effectiveness and a suggested phase
    """
    start, end = _parse_date(start_date), _parse_date(end_date)
    if start is None or end is None:
        return INVALID_DATE_MESSAGE

    weeks = get_firestore_client().get_completed_weeks_between(start, end)
    return render_phase_analysis(weeks, start_date, end_date, avg_daily_surplus)


# ==================== Weight Tools ====================


@mcp.tool()
def get_weight_trend(start_date: str, end_date: str) -> str:
    """Get all weight readings in a date range for trend analysis.

    Args:
        start_date: Start date in YYYY-MM-DD format
        end_date: End date in YYYY-MM-DD format

    Returns:
        Count, average, range and total change followed by every reading
    """
    start, end = _parse_date(start_date), _parse_date(end_date)
    if start is None or end is None:
        return INVALID_DATE_MESSAGE

    readings = get_firestore_client().get_weight_readings(start, end)
    return render_weight_trend(readings, start_date, end_date)


@mcp.tool()
def get_body_composition(start_date: str, end_date: str) -> str:
    """Get body fat % and muscle mass % trends over time.

    Args:
        start_date: Start date in YYYY-MM-DD format
        end_date: End date in YYYY-MM-DD format

    Returns:
        Statistics per composition metric followed by the detailed readings
    """
    start, end = _parse_date(start_date), _parse_date(end_date)
    if start is None or end is None:
        return INVALID_DATE_MESSAGE

    readings = get_firestore_client().get_weight_readings(start, end)
    return render_body_composition(readings, start_date, end_date)


# ==================== JSON Tool Surface ====================


async def list_tool_catalog() -> list[dict]:
    """Static catalog of tools with their JSON input schemas."""
    tools = await mcp.list_tools()
    return [
        {
            "name": tool.name,
            "description": tool.description,
            "inputSchema": tool.inputSchema,
        }
        for tool in tools
    ]


def validate_arguments(tool: Tool, arguments: dict) -> dict:
    """Validate and coerce arguments against the tool's input model.

    Raises:
        ValueError: If an argument is unknown
        ValidationError: If an argument is missing or has the wrong type
    """
    unknown = set(arguments) - set(tool.parameters.get("properties", {}))
    if unknown:
        raise ValueError(f"Unexpected arguments: {', '.join(sorted(unknown))}")
    return tool.fn_metadata.arg_model.model_validate(arguments).model_dump_one_level()


def call_tool(tool: Tool, arguments: dict) -> dict:
    """Run a tool and wrap its text in an MCP tool result."""
    text = tool.fn(**arguments)
    result = CallToolResult(content=[TextContent(type="text", text=text)])
    return result.model_dump(mode="json", exclude_none=True)


async def handle_mcp_request(request: Request) -> JSONResponse:
    """Dispatch a ``{method, params}`` request to the tool catalog or a tool."""
    try:
        body = await request.json()
    except ValueError:
        return JSONResponse({"error": "Request body must be JSON"}, status_code=400)

    if not isinstance(body, dict):
        return JSONResponse({"error": "Request body must be a JSON object"}, status_code=400)

    method = body.get("method")

    if method == "tools/list":
        return JSONResponse({"tools": await list_tool_catalog()})

    if method == "tools/call":
        params = body.get("params") or {}
        if not isinstance(params, dict):
            return JSONResponse({"error": "Tool params must be an object"}, status_code=400)

        name = params.get("name")
        arguments = params.get("arguments") or {}

        tool = mcp._tool_manager.get_tool(name) if isinstance(name, str) else None
        if tool is None:
            return JSONResponse({"error": f"Unknown tool: {name}"}, status_code=400)
        if not isinstance(arguments, dict):
            return JSONResponse({"error": "Tool arguments must be an object"}, status_code=400)

        try:
            arguments = validate_arguments(tool, arguments)
        except (ValueError, ValidationError) as e:
            return JSONResponse({"error": f"Invalid arguments for {name}: {e}"}, status_code=400)

        logger.info("Calling tool %s", name)
        try:
            return JSONResponse(await run_in_threadpool(call_tool, tool, arguments))
        except Exception as e:
            logger.exception("Tool execution failed: %s", name)
            return JSONResponse(
                {"error": "Tool execution failed", "details": str(e)},
                status_code=500,
            )

    return JSONResponse({"error": "Unsupported MCP method"}, status_code=400)
