"""Shared pytest fixtures for linctl tests."""

import pytest


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch, tmp_path):
    """Keep tests away from the developer's API key, home directory and config."""
    home = tmp_path / "home"
    workdir = tmp_path / "work"
    home.mkdir()
    workdir.mkdir()

    monkeypatch.delenv("LINEAR_API_KEY", raising=False)
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.chdir(workdir)
    return workdir
