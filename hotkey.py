"""Global hotkey adapter based on pynput."""

from __future__ import annotations

import threading
from typing import Callable, Mapping, Optional

try:
    from pynput import keyboard
except Exception:  # pragma: no cover
    keyboard = None  # type: ignore


class GlobalHotkeyAdapter:
    """Runs one action per key press; holding a key does not repeat it."""

    def __init__(self, bindings: Mapping[str, str]) -> None:
        # action name -> pynput key string, e.g. {"validate": "Key.enter"}
        self._keys = {key: action for action, key in bindings.items()}
        self._listener: Optional[object] = None
        self._held: set[str] = set()
        self._lock = threading.Lock()

    def start(self, actions: Mapping[str, Callable[[], None]]) -> None:
        if keyboard is None:
            raise RuntimeError("pynput is not installed")
        self._listener = keyboard.Listener(
            on_press=lambda key: self._on_press(key, actions),
            on_release=self._on_release,
        )
        self._listener.start()

    def stop(self) -> None:
        listener = self._listener
        if listener is not None:
            listener.stop()
            self._listener = None

    def _on_press(self, key: object, actions: Mapping[str, Callable[[], None]]) -> None:
        name = str(key)
        action = self._keys.get(name)
        if action is None or action not in actions:
            return
        with self._lock:
            if name in self._held:
                return
            self._held.add(name)
        actions[action]()

    def _on_release(self, key: object) -> None:
        with self._lock:
            self._held.discard(str(key))
