"""Camera decoder adapter built on OpenCV capture and pyzbar.

The capture is opened on the caller's thread so that ``start`` can raise a
DecoderError with a precise code. Frames are then read on a worker thread
at ``config.fps``; each frame yields either one ``decoded`` event per
distinct payload or a single ``miss`` event. A run of failed frame reads
longer than ``config.miss_error_threshold`` ends the loop with an ``error``
event.
"""

from __future__ import annotations

import logging
import os
import sys
import threading
import time
from pathlib import Path
from typing import Any, Callable, Optional

from errors import DEVICE_BUSY, DEVICE_UNAVAILABLE, PERMISSION_DENIED, UNREADABLE, DecoderError
from models import CameraDevice, DecodeEvent, DecodeKind, DecoderConfig

try:
    import cv2
except Exception:  # pragma: no cover
    cv2 = None  # type: ignore

try:
    from pyzbar import pyzbar
except Exception:  # pragma: no cover
    pyzbar = None  # type: ignore

logger = logging.getLogger(__name__)

_PREFERRED_LABELS = ("back", "environment")


def list_devices(max_index: int = 8) -> list[CameraDevice]:
    """Probe OpenCV camera indices and return the ones that open."""
    if cv2 is None:
        return []
    devices: list[CameraDevice] = []
    for index in range(max_index):
        capture = cv2.VideoCapture(index)
        try:
            if capture.isOpened():
                label = _device_label(index)
                devices.append(CameraDevice(id=str(index), label=label or f"Camera {index}"))
        finally:
            capture.release()
    return devices


def preferred_device(devices: list[CameraDevice]) -> CameraDevice | None:
    """Prefer a rear-facing camera, else the first one."""
    for device in devices:
        label = device.label.lower()
        if any(hint in label for hint in _PREFERRED_LABELS):
            return device
    return devices[0] if devices else None


def _device_label(index: int) -> str:
    name_file = Path(f"/sys/class/video4linux/video{index}/name")
    try:
        return name_file.read_text(encoding="utf-8").strip()
    except OSError:
        return ""


def _capture_source(device_id: str) -> int | str:
    device_id = device_id.strip()
    if not device_id:
        raise DecoderError(DEVICE_UNAVAILABLE, "no camera selected")
    return int(device_id) if device_id.isdigit() else device_id


def _classify_open_failure(source: int | str) -> DecoderError:
    """Best-effort mapping of a failed VideoCapture open to an error code.

    Only Linux exposes a device node to inspect. Elsewhere OpenCV gives no
    reason for the failure, so a denied camera permission (macOS privacy
    settings, for one) is reported as DEVICE_UNAVAILABLE, never
    PERMISSION_DENIED.
    """
    if not sys.platform.startswith("linux"):
        return DecoderError(DEVICE_UNAVAILABLE, f"camera {source} could not be opened")
    node = Path(f"/dev/video{source}") if isinstance(source, int) else Path(source)
    if not node.exists():
        return DecoderError(DEVICE_UNAVAILABLE, f"{node} does not exist")
    if not os.access(node, os.R_OK | os.W_OK):
        return DecoderError(PERMISSION_DENIED, f"no access to {node}")
    return DecoderError(DEVICE_BUSY, f"{node} could not be opened")


def decode_frame(frame: Any, box_size: int = 0) -> list[str]:
    """Return the distinct QR payloads found in ``frame``, in scan order."""
    if pyzbar is None:
        return []
    region = frame
    height, width = frame.shape[:2]
    if 0 < box_size < min(height, width):
        top = (height - box_size) // 2
        left = (width - box_size) // 2
        region = frame[top : top + box_size, left : left + box_size]
    if cv2 is not None and getattr(region, "ndim", 2) == 3:
        region = cv2.cvtColor(region, cv2.COLOR_BGR2GRAY)

    payloads: list[str] = []
    for symbol in pyzbar.decode(region, symbols=[pyzbar.ZBarSymbol.QRCODE]):
        text = symbol.data.decode("utf-8", errors="replace").strip()
        if text and text not in payloads:
            payloads.append(text)
    return payloads


class OpenCvDecoderSession:
    def __init__(self, join_timeout_s: float = 1.5) -> None:
        self._join_timeout_s = join_timeout_s
        self._lock = threading.Lock()
        self._thread: Optional[threading.Thread] = None
        self._stop_event = threading.Event()
        self._paused = threading.Event()
        self._running = False

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def is_paused(self) -> bool:
        return self._running and self._paused.is_set()

    def start(
        self,
        device_id: str,
        config: DecoderConfig,
        on_event: Callable[[DecodeEvent], None],
    ) -> None:
        with self._lock:
            if self._running:
                return
            if cv2 is None or pyzbar is None:
                raise DecoderError(UNREADABLE, "opencv-python and pyzbar are required")
            source = _capture_source(device_id)
            capture = cv2.VideoCapture(source)
            if not capture.isOpened():
                capture.release()
                raise _classify_open_failure(source)
            ok, _ = capture.read()
            if not ok:
                capture.release()
                raise DecoderError(UNREADABLE, f"camera {device_id} returned no frame")

            # per-run events; a worker that outlived stop() keeps its own set flag
            self._stop_event = threading.Event()
            self._paused = threading.Event()
            self._running = True
            self._thread = threading.Thread(
                target=self._worker,
                args=(capture, config, on_event, self._stop_event, self._paused),
                name=f"decoder-{device_id}",
                daemon=True,
            )
            self._thread.start()
            logger.info("decoder running on %s at %d fps", device_id, config.fps)

    def stop(self) -> None:
        with self._lock:
            if not self._running:
                return
            self._running = False
            self._stop_event.set()
            thread = self._thread
            self._thread = None
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout=self._join_timeout_s)
            if thread.is_alive():
                logger.warning("decoder thread did not exit within %.1fs", self._join_timeout_s)

    def pause(self) -> None:
        if self._running:
            self._paused.set()

    def resume(self) -> None:
        if self._running and self._paused.is_set():
            self._paused.clear()

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _worker(
        self,
        capture: Any,
        config: DecoderConfig,
        on_event: Callable[[DecodeEvent], None],
        stop_event: threading.Event,
        paused: threading.Event,
    ) -> None:
        interval = 1.0 / max(config.fps, 1)
        failed_reads = 0
        try:
            while not stop_event.is_set():
                if paused.is_set():
                    stop_event.wait(interval)
                    continue

                ok, frame = capture.read()
                if not ok:
                    failed_reads += 1
                    if failed_reads >= config.miss_error_threshold:
                        self._emit(
                            on_event,
                            DecodeEvent(
                                kind=DecodeKind.ERROR.value,
                                code=UNREADABLE,
                                message=f"{failed_reads} consecutive frame reads failed",
                                timestamp=time.time(),
                            ),
                        )
                        return
                    stop_event.wait(interval)
                    continue
                failed_reads = 0

                try:
                    payloads = decode_frame(frame, config.box_size)
                except Exception:
                    logger.exception("frame decode failed")
                    payloads = []

                now = time.time()
                if not payloads:
                    self._emit(on_event, DecodeEvent(kind=DecodeKind.MISS.value, timestamp=now))
                for payload in payloads:
                    if paused.is_set() or stop_event.is_set():
                        break
                    self._emit(
                        on_event,
                        DecodeEvent(kind=DecodeKind.DECODED.value, payload=payload, timestamp=now),
                    )
                stop_event.wait(interval)
        finally:
            capture.release()
            with self._lock:
                if self._thread is threading.current_thread():
                    self._thread = None
                    self._running = False

    def _emit(self, on_event: Callable[[DecodeEvent], None], event: DecodeEvent) -> None:
        try:
            on_event(event)
        except Exception:
            logger.exception("decode event handler failed")
