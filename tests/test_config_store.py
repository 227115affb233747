from __future__ import annotations

import json
from pathlib import Path

import pytest

from config import DEFAULT_HOTKEYS, JsonConfigStore
from models import DecoderConfig


def test_config_read_write(tmp_path: Path) -> None:
    path = tmp_path / "config.json"
    store = JsonConfigStore(path=path)

    assert store.get_camera_id() == ""
    assert store.get_hotkeys() == DEFAULT_HOTKEYS

    store.set_camera_id("1")
    store.set_hotkey("validate", "Key.space")

    reloaded = JsonConfigStore(path=path)
    assert reloaded.get_camera_id() == "1"
    assert reloaded.get_hotkeys()["validate"] == "Key.space"
    assert reloaded.get_hotkeys()["deny"] == DEFAULT_HOTKEYS["deny"]


def test_unknown_hotkey_action_is_rejected(tmp_path: Path) -> None:
    store = JsonConfigStore(path=tmp_path / "config.json")

    with pytest.raises(KeyError):
        store.set_hotkey("launch", "Key.f1")


def test_decoder_config_defaults_and_overrides(tmp_path: Path) -> None:
    path = tmp_path / "config.json"
    store = JsonConfigStore(path=path)
    assert store.get_decoder_config() == DecoderConfig()

    path.write_text(json.dumps({"fps": 15, "box_size": 0, "miss_error_threshold": -3}), encoding="utf-8")

    config = store.get_decoder_config()
    assert config.fps == 15
    assert config.box_size == 0
    assert config.miss_error_threshold == DecoderConfig().miss_error_threshold


def test_log_level_is_normalized(tmp_path: Path) -> None:
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"log_level": "debug"}), encoding="utf-8")

    assert JsonConfigStore(path=path).get_log_level() == "DEBUG"


def test_config_invalid_json_fallback(tmp_path: Path) -> None:
    path = tmp_path / "config.json"
    path.write_text("{invalid", encoding="utf-8")

    store = JsonConfigStore(path=path)
    assert store.get_camera_id() == ""
    assert store.get_decoder_config() == DecoderConfig()
    assert store.get_log_level() == "INFO"
