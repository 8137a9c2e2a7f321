"""Pytest configuration for the runwatch test suite."""

import pytest


@pytest.fixture(autouse=True)
def _no_workflow_files(monkeypatch):
    """Keep tests from appending to a real runner's step files."""
    monkeypatch.delenv("GITHUB_OUTPUT", raising=False)
    monkeypatch.delenv("GITHUB_STEP_SUMMARY", raising=False)
