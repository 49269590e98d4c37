"""Shared fixtures: every test runs against a throwaway config directory."""

import pytest

from mathmind import config_manager


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    """Point config_manager at files in tmp_path so the real config.json is never read or written."""
    monkeypatch.setattr(config_manager, "config_json", tmp_path / "config.json")
    monkeypatch.setattr(config_manager, "ui_strings", tmp_path / "ui_strings.json")
    return tmp_path


@pytest.fixture
def settings():
    return dict(config_manager.DEFAULT_SETTINGS)
