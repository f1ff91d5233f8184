"""Tests for the main CLI application."""

import json

import pytest
from typer.testing import CliRunner

from voicetask.cli.voicetask import app

runner = CliRunner()

NOW = "2025-06-11T10:00:00Z"


@pytest.fixture(autouse=True)
def no_llm(monkeypatch, tmp_path):
    """Run every command without LLM credentials."""
    for name in ("OPENAI_API_KEY", "VOICETASK_LLM_PROVIDER", "VOICETASK_USE_LLM", "VOICETASK_LLM_MODEL", "OPENAI_MODEL"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("VOICETASK_CONFIG", str(tmp_path / "missing.json"))
    return monkeypatch


def test_cli_help():
    """Test that CLI help shows proper information."""
    result = runner.invoke(app, ["--help"])
    assert result.exit_code == 0
    assert "VoiceTask - turn spoken reminders into structured tasks" in result.stdout
    assert "parse" in result.stdout
    assert "when" in result.stdout
    assert "config" in result.stdout


def test_hello_command():
    """Test hello command executes successfully."""
    result = runner.invoke(app, ["hello"])
    assert result.exit_code == 0
    assert "VoiceTask is alive." in result.stdout


def test_parse_json_deterministic():
    """parse --json prints the task payload."""
    result = runner.invoke(app, [
        "parse", "remind me to call mom tomorrow at 8am", "--now", NOW, "--deterministic", "--json",
    ])
    assert result.exit_code == 0
    data = json.loads(result.stdout)
    assert data["method"] == "deterministic"
    assert data["parsed"] == {
        "title": "Call mom",
        "description": "",
        "due_date": "2025-06-12T08:00:00.000Z",
        "priority": "Medium",
        "status": "todo",
    }


def test_parse_with_timezone_offset():
    """--tz-offset shifts the due date."""
    result = runner.invoke(app, [
        "parse", "call mom tomorrow at 8am", "--now", NOW, "--tz-offset", "-300", "--json",
    ])
    assert result.exit_code == 0
    assert json.loads(result.stdout)["parsed"]["due_date"] == "2025-06-12T13:00:00.000Z"


def test_parse_table_output():
    """parse renders a table by default."""
    result = runner.invoke(app, ["parse", "fix the login bug, it's urgent", "--now", NOW])
    assert result.exit_code == 0
    assert "Fix the login bug" in result.stdout
    assert "Critical" in result.stdout
    assert "deterministic" in result.stdout


def test_parse_uses_configured_provider(no_llm):
    """With a mock provider configured the assisted path runs."""
    no_llm.setenv("VOICETASK_LLM_PROVIDER", "mock")
    result = runner.invoke(app, ["parse", "finish the slides, low priority", "--now", NOW, "--json"])
    assert result.exit_code == 0
    data = json.loads(result.stdout)
    assert data["method"] == "assisted"
    assert data["parsed"]["priority"] == "Low"


def test_parse_invalid_now():
    """A malformed --now exits with status 2."""
    result = runner.invoke(app, ["parse", "call mom", "--now", "next tuesday-ish"])
    assert result.exit_code == 2


def test_when_command():
    """when shows the resolved instant and span."""
    result = runner.invoke(app, ["when", "submit the form by tonight", "--now", NOW])
    assert result.exit_code == 0
    assert "2025-06-11T22:00:00.000Z" in result.stdout
    assert "tonight" in result.stdout


def test_when_no_date():
    """when reports phrases without a date."""
    result = runner.invoke(app, ["when", "sometime this week", "--now", NOW])
    assert result.exit_code == 0
    assert "No date found" in result.stdout


def test_config_command():
    """config shows settings and assisted availability."""
    result = runner.invoke(app, ["config"])
    assert result.exit_code == 0
    assert "provider" in result.stdout
    assert "openai" in result.stdout
    assert "unavailable" in result.stdout
