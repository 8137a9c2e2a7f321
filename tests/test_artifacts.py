"""Tests for artifact and workflow step file writers."""

from pathlib import Path

from runwatch.artifacts import (
    sanitize_name,
    set_output,
    write_context_csv,
    write_csv,
    write_step_summary,
)
from runwatch.core.event import LogEvent

JAN_1_10AM = 1704103200000


def test_write_csv_names_file_after_org(tmp_path):
    out = tmp_path / "nested" / "dir"

    path = write_csv("Actor\n", str(out), "test-org")

    assert Path(path) == out / "suspicious-activity-test-org.csv"
    assert Path(path).read_text() == "Actor\n"


def test_write_context_csv_file_name(tmp_path):
    events = [LogEvent(timestamp=JAN_1_10AM, action="repo.access", actor="test-user", resource="org/repo1")]

    path = write_context_csv(events, str(tmp_path), "test-user", JAN_1_10AM)

    assert Path(path).name == "context-test-user-20240101T100000.csv"
    assert Path(path).exists()


def test_write_context_csv_tag_keeps_same_second_runs_apart(tmp_path):
    events = [LogEvent(timestamp=JAN_1_10AM, action="repo.access", actor="test-user")]

    first = write_context_csv(events, str(tmp_path), "test-user", JAN_1_10AM, tag=111)
    second = write_context_csv(events, str(tmp_path), "test-user", JAN_1_10AM, tag=222)

    assert Path(first).name == "context-test-user-20240101T100000-111.csv"
    assert Path(second).name == "context-test-user-20240101T100000-222.csv"
    assert len(list(tmp_path.glob("context-*.csv"))) == 2


def test_write_context_csv_sanitizes_actor(tmp_path):
    events = [LogEvent(timestamp=JAN_1_10AM, action="repo.access", actor="test@user")]

    path = write_context_csv(events, str(tmp_path), "test@user", JAN_1_10AM)

    assert "test_user" in Path(path).name
    assert "@" not in Path(path).name


def test_write_context_csv_content(tmp_path):
    events = [
        LogEvent(timestamp=JAN_1_10AM, action="repo.access", actor="test-user"),
        LogEvent(timestamp=JAN_1_10AM + 60000, action="repo.create", actor="test-user", resource="org/repo2"),
    ]

    path = write_context_csv(events, str(tmp_path), "test-user", JAN_1_10AM)
    lines = Path(path).read_text().split("\n")

    assert lines[0] == "Timestamp,Action,Actor,User,Repository,Workflow Run ID,Country"
    assert len(lines) == 3
    assert "repo.access" in lines[1]
    assert "repo.create" in lines[2]


def test_sanitize_name():
    assert sanitize_name("dependabot[bot]") == "dependabot_bot_"
    assert sanitize_name("ok-name_1") == "ok-name_1"
    assert sanitize_name("") == "unknown"


def test_step_summary_skipped_without_env():
    assert write_step_summary("# hi") is False


def test_step_summary_appends(tmp_path, monkeypatch):
    summary = tmp_path / "summary.md"
    monkeypatch.setenv("GITHUB_STEP_SUMMARY", str(summary))

    assert write_step_summary("# one") is True
    assert write_step_summary("# two") is True

    assert summary.read_text() == "# one\n# two\n"


def test_set_output(tmp_path, monkeypatch):
    output = tmp_path / "output"
    monkeypatch.setenv("GITHUB_OUTPUT", str(output))

    set_output("suspicious-actors-count", 2)
    set_output("suspicious-activities-count", 3)

    assert output.read_text() == "suspicious-actors-count=2\nsuspicious-activities-count=3\n"


def test_set_output_skipped_without_env():
    assert set_output("x", 1) is False
