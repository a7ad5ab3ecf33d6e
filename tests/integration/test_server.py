"""Integration tests for the endotrack MCP server."""

from __future__ import annotations

import asyncio
import json
from datetime import date, timedelta

import pytest
from fastmcp import Client

from endotrack.core.server.app import create_app


def _run(coro):
    """Run an async coroutine synchronously (no pytest-asyncio required)."""
    loop = asyncio.new_event_loop()
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


def _payload(result) -> dict:
    """Decode the JSON string a tool returned."""
    return json.loads(result.content[0].text)


ALWAYS_REGISTERED_TOOLS = ["health_check"]

STORAGE_TOOLS = [
    "log_symptoms",
    "update_symptom_log",
    "delete_symptom_log",
    "get_symptom_log",
    "list_symptom_logs",
    "delete_all_symptom_data",
    "symptom_history",
    "history_view",
    "symptom_summary",
    "health_overview",
    "export_symptom_csv",
    "export_symptom_pdf",
]


@pytest.fixture
def client(symptom_repository):
    """MCP client connected to a server backed by in-memory storage."""
    return Client(create_app(repository_override=symptom_repository))


def _seed(client, days):
    async def _log():
        for day, scores in days:
            await client.call_tool("log_symptoms", {"log_date": day, "scores": scores})
    return _log()


class TestRegistration:
    def test_lists_all_tools(self, client):
        async def _check():
            async with client:
                names = [t.name for t in await client.list_tools()]
                for expected in ALWAYS_REGISTERED_TOOLS + STORAGE_TOOLS:
                    assert expected in names, f"Missing tool: {expected}"
        _run(_check())

    def test_without_storage_only_health_check(self):
        async def _check():
            async with Client(create_app()) as bare:
                names = [t.name for t in await bare.list_tools()]
                assert "health_check" in names
                assert "log_symptoms" not in names
                status = (await bare.call_tool("health_check", {})).data
                assert status["storage_enabled"] is False
        _run(_check())

    def test_metric_resource(self, client):
        async def _check():
            async with client:
                contents = await client.read_resource("endotrack://metrics")
                data = json.loads(contents[0].text)
                assert data["metric_count"] == 23
                assert data["score_range"] == [0, 10]
                assert {p["tag"] for p in data["cycle_phases"]} >= {"luteal", "on_pill"}
        _run(_check())

    def test_prompts_registered(self, client):
        async def _check():
            async with client:
                names = [p.name for p in await client.list_prompts()]
                assert "daily_check_in_prompt" in names
                assert "monthly_review_prompt" in names
        _run(_check())


class TestLogging:
    def test_log_and_fetch(self, client):
        async def _check():
            async with client:
                saved = _payload(await client.call_tool("log_symptoms", {
                    "log_date": "2025-01-08",
                    "scores": {"headache": 4, "migraine": 9},
                    "cycle_phases": ["luteal"],
                    "notes": "tired",
                }))
                assert saved["status"] == "saved"
                assert saved["ignored_metrics"] == ["migraine"]

                fetched = _payload(await client.call_tool(
                    "get_symptom_log", {"log_date": "2025-01-08"}
                ))
                assert fetched["entry"]["scores"]["headache"] == 4
                assert fetched["entry"]["cycle_phase"]["label"] == "Luteal phase"
                assert fetched["entry"]["notes"] == "tired"
        _run(_check())

    def test_duplicate_date_is_error(self, client):
        async def _check():
            async with client:
                await _seed(client, [("2025-01-08", {"headache": 1})])
                again = _payload(await client.call_tool(
                    "log_symptoms", {"log_date": "2025-01-08"}
                ))
                assert again["status"] == "error"
                assert "already exists" in again["message"]
        _run(_check())

    @pytest.mark.parametrize("value", [15, -1, 3.5])
    def test_out_of_range_score_is_error(self, client, symptom_repository, value):
        async def _check():
            async with client:
                result = _payload(await client.call_tool("log_symptoms", {
                    "log_date": "2025-01-01", "scores": {"headache": value},
                }))
                assert result["status"] == "error"
                assert "headache" in result["message"]
                fetched = _payload(await client.call_tool(
                    "get_symptom_log", {"log_date": "2025-01-01"}
                ))
                assert fetched["status"] == "not_found"
        _run(_check())
        assert symptom_repository.count_entries() == 0

    @pytest.mark.parametrize("value", [15, -1, 3.5])
    def test_update_with_out_of_range_score_keeps_entry(self, client, value):
        async def _check():
            async with client:
                saved = _payload(await client.call_tool("log_symptoms", {
                    "log_date": "2025-01-01", "scores": {"headache": 4},
                }))
                result = _payload(await client.call_tool("update_symptom_log", {
                    "entry_id": saved["entry_id"], "scores": {"headache": value},
                }))
                assert result["status"] == "error"
                fetched = _payload(await client.call_tool(
                    "get_symptom_log", {"log_date": "2025-01-01"}
                ))
                assert fetched["entry"]["scores"]["headache"] == 4
        _run(_check())

    def test_integral_float_score_accepted(self, client):
        async def _check():
            async with client:
                await client.call_tool("log_symptoms", {
                    "log_date": "2025-01-01", "scores": {"sleep": 7.0},
                })
                fetched = _payload(await client.call_tool(
                    "get_symptom_log", {"log_date": "2025-01-01"}
                ))
                assert fetched["entry"]["scores"]["sleep"] == 7
        _run(_check())

    def test_unknown_cycle_phase_is_error(self, client):
        async def _check():
            async with client:
                result = _payload(await client.call_tool("log_symptoms", {
                    "log_date": "2025-01-08", "cycle_phases": ["premenstrual"],
                }))
                assert result["status"] == "error"
        _run(_check())

    def test_update_merges_fields(self, client):
        async def _check():
            async with client:
                saved = _payload(await client.call_tool("log_symptoms", {
                    "log_date": "2025-01-08",
                    "scores": {"headache": 4, "sleep": 6},
                    "notes": "keep me",
                }))
                updated = _payload(await client.call_tool("update_symptom_log", {
                    "entry_id": saved["entry_id"],
                    "scores": {"headache": 8},
                }))
                entry = updated["entry"]
                assert entry["scores"]["headache"] == 8
                assert entry["scores"]["sleep"] == 6
                assert entry["notes"] == "keep me"
        _run(_check())

    def test_update_and_delete_unknown(self, client):
        async def _check():
            async with client:
                upd = _payload(await client.call_tool(
                    "update_symptom_log", {"entry_id": "missing"}
                ))
                assert upd["status"] == "not_found"
                dele = _payload(await client.call_tool(
                    "delete_symptom_log", {"entry_id": "missing"}
                ))
                assert dele["status"] == "not_found"
        _run(_check())

    def test_list_newest_first(self, client):
        async def _check():
            async with client:
                await _seed(client, [("2025-01-01", {}), ("2025-01-03", {}), ("2025-01-02", {})])
                listed = _payload(await client.call_tool("list_symptom_logs", {"limit": 2}))
                assert [e["log_date"] for e in listed["entries"]] == ["2025-01-03", "2025-01-02"]
        _run(_check())

    def test_delete_all_requires_confirmation(self, client, symptom_repository):
        async def _check():
            async with client:
                await _seed(client, [("2025-01-01", {}), ("2025-01-02", {})])
                cancelled = _payload(await client.call_tool("delete_all_symptom_data", {}))
                assert cancelled["status"] == "cancelled"
                done = _payload(await client.call_tool(
                    "delete_all_symptom_data", {"confirm": "DELETE_ALL"}
                ))
                assert done["status"] == "all_deleted"
                assert done["entries_deleted"] == 2
        _run(_check())
        assert symptom_repository.count_entries() == 0


class TestHistoryAndSummary:
    def test_year_history(self, client):
        async def _check():
            async with client:
                await _seed(client, [
                    ("2025-01-01", {"headache": 4}),
                    ("2025-01-15", {"headache": 8}),
                    ("2025-02-10", {"headache": 2}),
                ])
                history = _payload(await client.call_tool("symptom_history", {
                    "granularity": "year", "reference_date": "2025-06-01",
                }))
                assert history["status"] == "ok"
                assert [(b["label"], b["headache"]) for b in history["buckets"]] == [
                    ("Jan", 6.0), ("Feb", 2.0),
                ]
                assert history["next_reference"] == "2026-06-01"
        _run(_check())

    def test_bad_granularity_is_error(self, client):
        async def _check():
            async with client:
                result = _payload(await client.call_tool(
                    "symptom_history", {"granularity": "fortnight"}
                ))
                assert result["status"] == "error"
        _run(_check())

    def test_history_view_session(self, client):
        async def _check():
            async with client:
                await _seed(client, [("2025-01-08", {"headache": 3}), ("2025-01-14", {"sleep": 5})])
                shown = _payload(await client.call_tool("history_view", {
                    "action": "set", "granularity": "week", "reference_date": "2025-01-08",
                }))
                assert shown["label"] == "Jan 6 – Jan 12"

                moved = _payload(await client.call_tool(
                    "history_view", {"action": "navigate", "direction": 1}
                ))
                assert [b["label"] for b in moved["buckets"]] == ["01-14"]

                hidden = _payload(await client.call_tool(
                    "history_view", {"action": "toggle_series", "series": "sleep"}
                ))
                assert "sleep" not in hidden["buckets"][0]

                bad = _payload(await client.call_tool("history_view", {"action": "zoom"}))
                assert bad["status"] == "error"
        _run(_check())

    def test_summary(self, client):
        today = date(2025, 3, 31)

        async def _check():
            async with client:
                await _seed(client, [
                    ((today - timedelta(days=1)).isoformat(), {"headache": 6, "fatigue": 2}),
                    (today.isoformat(), {"headache": 4}),
                ])
                summary = _payload(await client.call_tool(
                    "symptom_summary", {"today": today.isoformat()}
                ))
                assert summary["status"] == "ok"
                assert summary["entry_count_30d"] == 2
                assert summary["streak_days"] == 2
                assert summary["avg_severity_30d"] == 4.0
                assert summary["top_symptoms"][0]["metric"] == "headache"
                assert summary["window_start"] == "2025-03-02"
        _run(_check())

    def test_summary_empty(self, client):
        async def _check():
            async with client:
                summary = _payload(await client.call_tool("symptom_summary", {}))
                assert summary["status"] == "no_entries"
                assert summary["top_symptoms"] == []
        _run(_check())

    def test_summary_no_recent_entries(self, client):
        async def _check():
            async with client:
                await _seed(client, [("2025-01-01", {"headache": 5})])
                summary = _payload(await client.call_tool(
                    "symptom_summary", {"today": "2025-03-31"}
                ))
                assert summary["status"] == "no_recent_entries"
                assert summary["entry_count_30d"] == 0
        _run(_check())


class TestExport:
    def test_csv_inline(self, client):
        async def _check():
            async with client:
                await _seed(client, [("2025-01-02", {"sleep": 7}), ("2025-01-01", {"headache": 2})])
                exported = _payload(await client.call_tool(
                    "export_symptom_csv", {"write_file": False}
                ))
                lines = exported["csv"].splitlines()
                assert lines[0].startswith("Date,Leg Pain,")
                assert lines[1].startswith("2025-01-01,")
        _run(_check())

    def test_csv_empty(self, client):
        async def _check():
            async with client:
                exported = _payload(await client.call_tool("export_symptom_csv", {}))
                assert exported["status"] == "empty"
        _run(_check())

    def test_files_written_to_export_dir(self, client, tmp_path):
        async def _check():
            async with client:
                await _seed(client, [("2025-01-08", {"headache": 3})])
                csv_result = _payload(await client.call_tool("export_symptom_csv", {}))
                pdf_result = _payload(await client.call_tool("export_symptom_pdf", {
                    "granularity": "month", "reference_date": "2025-01-20",
                }))
                return csv_result, pdf_result

        csv_result, pdf_result = _run(_check())
        export_dir = tmp_path / "exports"
        assert csv_result["status"] == "saved"
        assert csv_result["path"].startswith(str(export_dir))
        assert pdf_result["entries"] == 1
        assert pdf_result["label"] == "January 2025"
        with open(pdf_result["path"], "rb") as fh:
            assert fh.read(4) == b"%PDF"


def test_health_check_counts_entries(client):
    async def _check():
        async with client:
            await _seed(client, [("2025-01-01", {})])
            status = (await client.call_tool("health_check", {})).data
            assert status["status"] == "ok"
            assert status["entries_stored"] == 1
            assert status["metrics_tracked"] == 23
    _run(_check())
