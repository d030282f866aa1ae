"""Tests for the MCP tools and the POST /mcp JSON surface."""

from datetime import date
from unittest.mock import patch

from src.core.models import Phase, WeekRecord, WeightReading
from src.shell.mcp_server import (
    INVALID_DATE_MESSAGE,
    analyze_phases,
    get_body_composition,
    get_current_week,
    get_week_summary,
    get_weekly_history,
    get_weight_trend,
    mcp,
)


TOOL_NAMES = {
    "get_week_summary",
    "get_weight_trend",
    "get_weekly_history",
    "analyze_phases",
    "get_body_composition",
    "get_current_week",
}


def call(client, auth_headers, name, arguments=None):
    body = {"method": "tools/call", "params": {"name": name, "arguments": arguments or {}}}
    return client.post("/mcp", json=body, headers=auth_headers)


class TestToolFunctions:
    """Tests for the tool functions called directly."""

    def test_registry(self):
        assert {tool.name for tool in mcp._tool_manager.list_tools()} == TOOL_NAMES

    def test_current_week_empty(self, store):
        assert get_current_week() == "No current week in progress. Start a new week to track metrics."

    def test_week_summary_invalid_date(self, store):
        assert get_week_summary("13/10/2024") == INVALID_DATE_MESSAGE

    def test_week_summary_missing(self, store):
        assert get_week_summary("2024-10-13") == "No week found starting on 2024-10-13"

    def test_week_summary(self, store):
        store.save_week(WeekRecord(start_date=date(2024, 10, 13), total_calories=10234))
        assert "- Calories: 10,234 kcal (73.1%)" in get_week_summary("2024-10-13")

    def test_weekly_history_empty(self, store):
        assert get_weekly_history() == "No completed weeks found"

    def test_weekly_history_bad_paging_falls_back(self, store):
        """Non-positive limits use the default page size."""
        store.save_week(WeekRecord(start_date=date(2024, 10, 13), is_complete=True))
        assert "WEEK 1: 2024-10-13" in get_weekly_history(limit=0, offset=-3)

    def test_weight_trend(self, store):
        for day, weight in (("2024-10-14", 182.0), ("2024-10-15", 181.0)):
            store.add_weight_reading(WeightReading(date=day, weight=weight))

        text = get_weight_trend("2024-10-13", "2024-10-19")

        assert "- Total readings: 2" in text
        assert "- Total change: -1.0 lbs" in text

    def test_weight_trend_invalid_date(self, store):
        assert get_weight_trend("2024-10-13", "soon") == INVALID_DATE_MESSAGE

    def test_body_composition_empty(self, store):
        text = get_body_composition("2024-10-13", "2024-10-19")
        assert text == "No body composition data found between 2024-10-13 and 2024-10-19"

    def test_analyze_phases(self, store):
        """Only completed weeks in range are analyzed."""
        store.save_week(
            WeekRecord(
                start_date=date(2024, 10, 6),
                phase=Phase.CUT,
                average_weight=182.0,
                week_over_week_weight_change=-1.0,
                is_complete=True,
            )
        )
        store.save_week(WeekRecord(start_date=date(2024, 10, 13), phase=Phase.BULK))

        text = analyze_phases("2024-10-01", "2024-10-31")

        assert "Total weeks analyzed: 1" in text
        assert "CUT PHASE (1 weeks)" in text
        assert "BULK" not in text


class TestToolsList:
    """Tests for the tools/list method."""

    def test_lists_all_tools(self, client, auth_headers):
        response = client.post("/mcp", json={"method": "tools/list"}, headers=auth_headers)

        assert response.status_code == 200
        tools = response.json()["tools"]
        assert {t["name"] for t in tools} == TOOL_NAMES

    def test_schemas_describe_arguments(self, client, auth_headers):
        response = client.post("/mcp", json={"method": "tools/list"}, headers=auth_headers)

        tools = {t["name"]: t for t in response.json()["tools"]}
        schema = tools["get_weight_trend"]["inputSchema"]
        assert set(schema["required"]) == {"start_date", "end_date"}
        assert tools["get_week_summary"]["description"].startswith("Get complete week data")

    def test_requires_auth(self, client):
        response = client.post("/mcp", json={"method": "tools/list"})
        assert response.status_code == 401


class TestToolsCall:
    """Tests for the tools/call method."""

    def test_text_result(self, client, auth_headers):
        response = call(client, auth_headers, "get_current_week")

        assert response.status_code == 200
        content = response.json()["content"]
        assert content == [
            {"type": "text", "text": "No current week in progress. Start a new week to track metrics."}
        ]

    def test_arguments_passed(self, client, auth_headers, store):
        store.save_week(WeekRecord(start_date=date(2024, 10, 13)))

        response = call(client, auth_headers, "get_week_summary", {"start_date": "2024-10-13"})

        assert "Week Summary: 2024-10-13" in response.json()["content"][0]["text"]

    def test_unknown_tool(self, client, auth_headers):
        response = call(client, auth_headers, "delete_everything")

        assert response.status_code == 400
        assert response.json()["error"] == "Unknown tool: delete_everything"

    def test_missing_argument(self, client, auth_headers):
        response = call(client, auth_headers, "get_weight_trend", {"start_date": "2024-10-13"})
        assert response.status_code == 400

    def test_unexpected_argument(self, client, auth_headers):
        response = call(client, auth_headers, "get_current_week", {"verbose": True})
        assert response.status_code == 400

    def test_wrong_argument_type(self, client, auth_headers, store):
        """Arguments that cannot be coerced to the declared type are a bad request."""
        response = call(client, auth_headers, "get_weekly_history", {"limit": "many"})

        assert response.status_code == 400
        assert response.json()["error"].startswith("Invalid arguments for get_weekly_history")

    def test_numeric_string_coerced(self, client, auth_headers, store):
        """A numeric string for an integer argument is coerced before the tool runs."""
        store.save_week(WeekRecord(start_date=date(2024, 10, 13), is_complete=True))

        response = call(client, auth_headers, "get_weekly_history", {"limit": "5"})

        assert response.status_code == 200
        assert "WEEK 1: 2024-10-13" in response.json()["content"][0]["text"]

    def test_params_must_be_object(self, client, auth_headers):
        response = client.post("/mcp", json={"method": "tools/call", "params": "oops"}, headers=auth_headers)
        assert response.status_code == 400

    def test_unsupported_method(self, client, auth_headers):
        response = client.post("/mcp", json={"method": "resources/list"}, headers=auth_headers)

        assert response.status_code == 400
        assert response.json()["error"] == "Unsupported MCP method"

    def test_body_must_be_object(self, client, auth_headers):
        response = client.post("/mcp", json=["tools/list"], headers=auth_headers)
        assert response.status_code == 400

    def test_tool_failure_is_500(self, client, auth_headers, store):
        with patch.object(store, "get_current_week", side_effect=RuntimeError("firestore down")):
            response = call(client, auth_headers, "get_current_week")

        assert response.status_code == 500
        assert response.json() == {"error": "Tool execution failed", "details": "firestore down"}
