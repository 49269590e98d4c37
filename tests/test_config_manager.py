"""Tests for loading and saving settings (config.json lives in tmp_path, see conftest)."""

import json

from mathmind import config_manager


def test_defaults_when_file_is_missing():
    assert config_manager.load_setting_value("all") == config_manager.DEFAULT_SETTINGS


def test_save_and_load(isolated_config):
    settings = config_manager.load_setting_value("all")
    settings["darkmode"] = False
    settings["history_limit"] = 10
    assert config_manager.save_setting(settings) == settings

    assert config_manager.load_setting_value("darkmode") is False
    assert config_manager.load_setting_value("history_limit") == 10
    saved = json.loads((isolated_config / "config.json").read_text(encoding="utf-8"))
    assert saved["history_limit"] == 10


def test_file_values_override_defaults(isolated_config):
    (isolated_config / "config.json").write_text('{"default_mode": "SCIENTIFIC"}', encoding="utf-8")
    settings = config_manager.load_setting_value("all")
    assert settings["default_mode"] == "SCIENTIFIC"
    assert settings["implicit_multiplication"] is True


def test_corrupt_file_falls_back_to_defaults(isolated_config):
    (isolated_config / "config.json").write_text("{not json", encoding="utf-8")
    assert config_manager.load_setting_value("all") == config_manager.DEFAULT_SETTINGS


def test_unknown_key():
    assert config_manager.load_setting_value("does_not_exist") == 0


def test_descriptions(isolated_config):
    (isolated_config / "ui_strings.json").write_text('{"darkmode": "Darkmode"}', encoding="utf-8")
    assert config_manager.load_setting_description("darkmode") == "Darkmode"
    assert config_manager.load_setting_description("debug") == "debug"
    assert config_manager.load_setting_description("all") == {"darkmode": "Darkmode"}
