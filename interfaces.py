"""Protocol interfaces used by ScanSessionController and the app."""

from __future__ import annotations

from typing import Callable, Protocol

from models import CopyResult, DecodeEvent, DecoderConfig


class DecoderSession(Protocol):
    def start(
        self,
        device_id: str,
        config: DecoderConfig,
        on_event: Callable[[DecodeEvent], None],
    ) -> None: ...

    def stop(self) -> None: ...

    def pause(self) -> None: ...

    def resume(self) -> None: ...


class CopyService(Protocol):
    def copy_text(self, text: str) -> CopyResult: ...


class ConfigStore(Protocol):
    def get_camera_id(self) -> str: ...

    def set_camera_id(self, camera_id: str) -> None: ...

    def get_decoder_config(self) -> DecoderConfig: ...

    def get_hotkeys(self) -> dict[str, str]: ...

    def get_log_level(self) -> str: ...
