import json
import logging

from webpgallery.core.settings import DEFAULT_SETTINGS, load_settings, save_settings


def test_defaults_without_file(tmp_path):
    assert load_settings(None) == DEFAULT_SETTINGS
    assert load_settings(tmp_path / "missing.json") == DEFAULT_SETTINGS


def test_file_values_override_defaults(tmp_path):
    path = tmp_path / "settings.json"
    path.write_text(json.dumps({"quality": 55, "cwebp_path": "/usr/local/bin/cwebp"}))

    settings = load_settings(path)

    assert settings["quality"] == 55
    assert settings["cwebp_path"] == "/usr/local/bin/cwebp"
    assert settings["lossless"] is False


def test_invalid_file_falls_back_with_warning(tmp_path, caplog):
    path = tmp_path / "settings.json"
    path.write_text("{not json")

    with caplog.at_level(logging.WARNING, logger="webpgallery"):
        assert load_settings(path) == DEFAULT_SETTINGS

    assert "Ignoring settings file" in caplog.text


def test_unknown_keys_are_dropped(tmp_path):
    path = tmp_path / "settings.json"
    path.write_text(json.dumps({"quality": 10, "theme": "dark"}))

    settings = load_settings(path)

    assert "theme" not in settings
    assert settings["quality"] == 10


def test_save_round_trip(tmp_path):
    path = tmp_path / "nested" / "settings.json"
    save_settings({**DEFAULT_SETTINGS, "lossless": True}, path)
    assert load_settings(path)["lossless"] is True
