"""Tests for the command-line interface."""

from __future__ import annotations

import json

from typer.testing import CliRunner

from packwise.cli import app

runner = CliRunner()


def test_inventory_commands_round_trip():
    result = runner.invoke(app, ["add-item", "tent", "map", "tent"])
    assert result.exit_code == 0, result.output
    assert "Added 2 item(s)." in result.output

    listed = runner.invoke(app, ["inventory"])
    assert listed.stdout.splitlines() == ["map", "tent"]

    assert runner.invoke(app, ["remove-item", "map"]).exit_code == 0
    assert runner.invoke(app, ["remove-item", "kayak"]).exit_code == 1


def test_parse_creates_an_event():
    text = "I need a camping trip this weekend, bring a tent and flashlight"

    result = runner.invoke(app, ["parse", text, "--create", "--no-pretty"])

    assert result.exit_code == 0, result.output
    payload = json.loads(result.stdout)
    assert payload["title"] == "Weekend Trip"
    assert "tent" in payload["items"]
    assert payload["event_id"]

    events = runner.invoke(app, ["events"])
    assert "Weekend Trip" in events.stdout
    assert "missing: tent" in events.stdout


def test_parse_reports_unusable_text():
    assert runner.invoke(app, ["parse", "Buy milk"]).exit_code == 1
    assert runner.invoke(app, ["parse", "   "]).exit_code == 2


def test_suggest_prints_local_items():
    result = runner.invoke(app, ["suggest", "Weekend camping trip", "--date", "2026-10-17"])

    assert result.exit_code == 0, result.output
    lines = result.stdout.splitlines()
    assert "tent" in lines
    assert len(lines) == 8
