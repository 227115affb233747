"""Simple JSON-based config store."""

from __future__ import annotations

import json
from pathlib import Path

from models import DecoderConfig

DEFAULT_HOTKEYS = {
    "validate": "Key.enter",
    "deny": "Key.esc",
    "toggle": "Key.f8",
}


class JsonConfigStore:
    def __init__(self, path: Path | None = None) -> None:
        self._path = path or Path.home() / ".config" / "qr_validator" / "config.json"
        self._path.parent.mkdir(parents=True, exist_ok=True)

    def get_camera_id(self) -> str:
        data = self._read_all()
        return str(data.get("camera_id", ""))

    def set_camera_id(self, camera_id: str) -> None:
        data = self._read_all()
        data["camera_id"] = camera_id
        self._write_all(data)

    def get_decoder_config(self) -> DecoderConfig:
        data = self._read_all()
        defaults = DecoderConfig()
        return DecoderConfig(
            fps=_positive_int(data.get("fps"), defaults.fps),
            box_size=_positive_int(data.get("box_size"), defaults.box_size, allow_zero=True),
            miss_error_threshold=_positive_int(
                data.get("miss_error_threshold"), defaults.miss_error_threshold
            ),
        )

    def get_hotkeys(self) -> dict[str, str]:
        data = self._read_all()
        configured = data.get("hotkeys", {})
        if not isinstance(configured, dict):
            configured = {}
        return {name: str(configured.get(name, key)) for name, key in DEFAULT_HOTKEYS.items()}

    def set_hotkey(self, action: str, hotkey: str) -> None:
        if action not in DEFAULT_HOTKEYS:
            raise KeyError(action)
        data = self._read_all()
        hotkeys = data.get("hotkeys")
        if not isinstance(hotkeys, dict):
            hotkeys = {}
        hotkeys[action] = hotkey
        data["hotkeys"] = hotkeys
        self._write_all(data)

    def get_log_level(self) -> str:
        data = self._read_all()
        return str(data.get("log_level", "INFO")).upper()

    def _read_all(self) -> dict:
        if not self._path.exists():
            return {}
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, OSError):
            return {}
        return data if isinstance(data, dict) else {}

    def _write_all(self, data: dict) -> None:
        self._path.write_text(json.dumps(data, ensure_ascii=False, indent=2), encoding="utf-8")


def _positive_int(value: object, default: int, allow_zero: bool = False) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        return default
    if value > 0 or (allow_zero and value == 0):
        return value
    return default
