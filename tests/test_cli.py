"""Tests for the CLI."""

import json
from unittest.mock import patch

import pytest
from click.testing import CliRunner

from taskcopilot.cli import main
from taskcopilot.core.settings import UserSettings


@pytest.fixture(autouse=True)
def settings():
    with patch("taskcopilot.cli.load_settings", return_value=UserSettings()) as mock:
        yield mock


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def tasks_file(tmp_path):
    path = tmp_path / "tasks.json"
    path.write_text(
        json.dumps(
            {
                "tasks": [
                    {
                        "id": "report",
                        "title": "Quarterly report",
                        "importance": "high",
                        "deadlineDate": "2025-03-10",
                        "deadlineTime": "17:00",
                        "estimatedDurationMinutes": 60,
                        "updatedAt": 1740819600000,
                    },
                    {"id": "email", "title": "Answer email", "importance": "low", "updatedAt": 1740819600000},
                    {"id": "old", "title": "Done already", "status": "complete"},
                ],
                "focusQueue": {
                    "items": [
                        {"id": "q1", "taskId": "report", "order": 0},
                        {"id": "q2", "taskId": "email", "order": 1},
                    ],
                    "todayLineIndex": 1,
                },
            }
        )
    )
    return path


class TestScore:
    def test_json(self, runner, tasks_file):
        result = runner.invoke(main, ["score", "-f", str(tasks_file), "--at", "2025-03-01T09:00", "--json"])
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert [t["id"] for t in data] == ["report", "email"]
        assert data[0]["score"] == 35
        assert data[0]["tier"] == "medium"
        assert data[0]["breakdown"]["importance"] == 30

    def test_text_with_explain(self, runner, tasks_file):
        result = runner.invoke(main, ["score", "-f", str(tasks_file), "--at", "2025-03-01T09:00", "--explain"])
        assert result.exit_code == 0
        assert "Quarterly report" in result.output
        assert "Due 2025-03-10" in result.output

    def test_empty(self, runner, tmp_path):
        result = runner.invoke(main, ["score", "-f", str(tmp_path / "none.json")])
        assert result.exit_code == 0
        assert "No active tasks." in result.output

    def test_bad_file(self, runner, tmp_path):
        path = tmp_path / "tasks.json"
        path.write_text("[{")
        result = runner.invoke(main, ["score", "-f", str(path)])
        assert result.exit_code == 1
        assert "Error:" in result.output


    def test_malformed_deadline_is_reported(self, runner, tmp_path):
        path = tmp_path / "tasks.json"
        path.write_text(json.dumps([{"id": "bad", "deadlineDate": "2025-13-45", "deadlineTime": "17:00"}]))
        for command in ("score", "poke", "nudges"):
            result = runner.invoke(main, [command, "-f", str(path)])
            assert result.exit_code == 1
            assert "Error:" in result.output


class TestPoke:
    def test_json(self, runner, tasks_file):
        result = runner.invoke(main, ["poke", "-f", str(tasks_file), "--at", "2025-03-01T09:00", "--json"])
        assert result.exit_code == 0
        data = {row["id"]: row for row in json.loads(result.output)}
        assert data["report"]["fire_time"] == 1741621500000
        assert data["email"]["missing"] == "no_anchor"
        assert "old" not in data

    def test_text(self, runner, tasks_file):
        result = runner.invoke(main, ["poke", "-f", str(tasks_file), "--at", "2025-03-01T09:00"])
        assert "2025-03-10 15:45" in result.output
        assert "needs anchor" in result.output

    def test_invalid_settings(self, runner, tasks_file, settings):
        settings.return_value = UserSettings(start_poke_default="sometimes")
        result = runner.invoke(main, ["poke", "-f", str(tasks_file)])
        assert result.exit_code == 1
        assert "start_poke_default" in result.output


class TestNudges:
    def test_due_start_poke_fires(self, runner, tasks_file):
        result = runner.invoke(
            main, ["nudges", "-f", str(tasks_file), "--at", "2025-03-10T15:45:00+00:00", "--json"]
        )
        assert result.exit_code == 0
        assert json.loads(result.output) == [
            {
                "task_id": "report",
                "type": "start_poke",
                "fire_time": 1741621500000,
                "outcome": "fire",
                "reason": None,
            }
        ]

    def test_nothing_due(self, runner, tasks_file):
        result = runner.invoke(main, ["nudges", "-f", str(tasks_file), "--at", "2025-03-01T09:00"])
        assert "Nothing due." in result.output


class TestQueue:
    def test_show(self, runner, tasks_file):
        result = runner.invoke(main, ["queue", "show", "-f", str(tasks_file)])
        assert result.exit_code == 0
        lines = result.output.splitlines()
        assert "Quarterly report" in lines[1]
        assert "later" in lines[2]
        assert "Answer email" in lines[3]

    def test_move_persists(self, runner, tasks_file):
        result = runner.invoke(main, ["queue", "move", "2", "0", "-f", str(tasks_file), "--json"])
        assert result.exit_code == 0
        saved = json.loads(tasks_file.read_text())["focusQueue"]
        assert [i["taskId"] for i in saved["items"]] == ["email", "report"]
        assert saved["todayLineIndex"] == 2

    def test_move_out_of_range(self, runner, tasks_file):
        result = runner.invoke(main, ["queue", "move", "9", "0", "-f", str(tasks_file)])
        assert result.exit_code == 1
        assert "out of range" in result.output

    def test_add_unknown_task(self, runner, tasks_file):
        result = runner.invoke(main, ["queue", "add", "nope", "-f", str(tasks_file)])
        assert result.exit_code == 1

    def test_complete(self, runner, tasks_file):
        result = runner.invoke(main, ["queue", "complete", "report", "-f", str(tasks_file)])
        assert result.exit_code == 0
        saved = json.loads(tasks_file.read_text())["focusQueue"]
        assert saved["todayLineIndex"] == 0
        assert saved["items"][-1]["completed"] is True

    def test_remove(self, runner, tasks_file):
        result = runner.invoke(main, ["queue", "remove", "email", "-f", str(tasks_file)])
        assert result.exit_code == 0
        saved = json.loads(tasks_file.read_text())["focusQueue"]
        assert [i["taskId"] for i in saved["items"]] == ["report"]

    def test_seed(self, runner, tasks_file):
        result = runner.invoke(main, ["queue", "seed", "--today-count", "1", "-f", str(tasks_file)])
        assert result.exit_code == 0
        saved = json.loads(tasks_file.read_text())["focusQueue"]
        assert [i["taskId"] for i in saved["items"]] == ["report", "email"]
        assert saved["todayLineIndex"] == 1

    def test_rollover_flags_stale_today_items(self, runner, tasks_file):
        result = runner.invoke(
            main, ["queue", "rollover", "-f", str(tasks_file), "--at", "2025-03-10T08:00"]
        )
        assert result.exit_code == 0
        assert "Quarterly report (rolled over 1 time)" in result.output
        assert "Answer email" not in result.output
        saved = json.loads(tasks_file.read_text())["focusQueue"]
        assert [i["rolloverCount"] for i in saved["items"]] == [1, 0]

        again = runner.invoke(
            main, ["queue", "rollover", "-f", str(tasks_file), "--at", "2025-03-10T09:00"]
        )
        assert "Nothing to review." in again.output

    def test_add_warns_when_today_is_full(self, runner, tmp_path):
        path = tmp_path / "tasks.json"
        tasks = [{"id": f"t{n}", "title": f"Task {n}"} for n in range(16)]
        items = [{"id": f"q{n}", "taskId": f"t{n}", "order": n} for n in range(14)]
        path.write_text(
            json.dumps({"tasks": tasks, "focusQueue": {"items": items, "todayLineIndex": 14}})
        )
        result = runner.invoke(main, ["queue", "add", "t14", "--today", "-f", str(path)])
        assert result.exit_code == 0
        assert "That's a full day (15 items)" in result.output
