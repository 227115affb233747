"""State-machine based scan session orchestration."""

from __future__ import annotations

import functools
import logging
import threading
import time
from datetime import datetime
from typing import Callable, Optional

from errors import DEVICE_UNAVAILABLE, NO_OP, UNREADABLE, DecoderError
from history import HistoryLog, new_record_id
from interfaces import DecoderSession
from models import DecodeEvent, DecodeKind, DecoderConfig, PendingValidation, ScanRecord, SessionState

logger = logging.getLogger(__name__)

StateCallback = Callable[[SessionState, SessionState], None]
PendingCallback = Callable[[str], None]
RecordCallback = Callable[[ScanRecord], None]
ErrorCallback = Callable[[str, str], None]


def _local_now() -> datetime:
    return datetime.now().astimezone()


class ScanSessionController:
    """Serializes decode events and operator decisions over one decoder.

    ``_lock`` guards the state tuple and is the only lock taken on the
    decoder thread. ``_lifecycle_lock`` serializes start/stop so the decoder
    thread can be joined without holding ``_lock``.
    """

    def __init__(
        self,
        decoder: DecoderSession,
        config: Optional[DecoderConfig] = None,
        history: Optional[HistoryLog] = None,
        device_id: str = "",
        clock: Callable[[], datetime] = _local_now,
        on_state_change: Optional[StateCallback] = None,
        on_pending: Optional[PendingCallback] = None,
        on_record: Optional[RecordCallback] = None,
        on_error: Optional[ErrorCallback] = None,
    ) -> None:
        self._decoder = decoder
        self._config = config or DecoderConfig()
        self._history = history if history is not None else HistoryLog()
        self._clock = clock
        self._on_state_change = on_state_change
        self._on_pending = on_pending
        self._on_record = on_record
        self._on_error = on_error

        self._lock = threading.RLock()
        self._lifecycle_lock = threading.RLock()
        self._state = SessionState.IDLE
        self._session_id = 0
        self._selected_device = device_id
        self._last_payload: str | None = None
        self._pending: PendingValidation | None = None
        self._miss_count = 0

    # ------------------------------------------------------------------
    # Observable state
    # ------------------------------------------------------------------

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def pending_payload(self) -> str | None:
        pending = self._pending
        return pending.payload if pending is not None else None

    @property
    def last_payload(self) -> str | None:
        return self._last_payload

    @property
    def history(self) -> tuple[ScanRecord, ...]:
        return self._history.all()

    @property
    def selected_device(self) -> str:
        return self._selected_device

    @property
    def miss_count(self) -> int:
        return self._miss_count

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self, device_id: str | None = None) -> None:
        """Start decoding on ``device_id`` (or the selected device).

        Raises DecoderError and stays IDLE when the device cannot be used.
        """
        with self._lifecycle_lock, self._lock:
            if self._state != SessionState.IDLE:
                logger.debug("start ignored in state %s", self._state.value)
                return
            device = device_id if device_id is not None else self._selected_device
            if not device:
                raise DecoderError(DEVICE_UNAVAILABLE, "no camera selected")
            self._selected_device = device
            self._session_id += 1
            self._miss_count = 0
            self._pending = None
            on_event = functools.partial(self._handle_decode_event, self._session_id)
            try:
                self._decoder.start(device, self._config, on_event)
            except DecoderError as exc:
                logger.warning("decoder start failed on %s: %s", device, exc)
                raise
            except Exception as exc:
                logger.exception("decoder start failed on %s", device)
                raise DecoderError(UNREADABLE, str(exc)) from exc
            logger.info("scanning started on device %s", device)
            self._transition(SessionState.SCANNING)

    def stop(self) -> None:
        with self._lifecycle_lock:
            with self._lock:
                if self._state == SessionState.IDLE:
                    return
                if self._pending is not None:
                    logger.info("discarding pending value on stop")
                self._pending = None
                self._transition(SessionState.IDLE)
            self._safe_call(self._decoder.stop, "stop")
            logger.info("scanning stopped")

    def change_device(self, device_id: str) -> None:
        """Select a new device; an active session is stopped and restarted."""
        with self._lifecycle_lock:
            with self._lock:
                was_active = self._state != SessionState.IDLE
                self._selected_device = device_id
            if not was_active:
                return
            logger.info("restarting session on device %s", device_id)
            self.stop()
            self.start(device_id)

    def __enter__(self) -> "ScanSessionController":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.stop()

    # ------------------------------------------------------------------
    # Detection and operator decisions
    # ------------------------------------------------------------------

    def on_decode(self, payload: str, timestamp: float | None = None) -> bool:
        """Offer a decoded payload. Returns True if it is now pending."""
        with self._lock:
            if self._state != SessionState.SCANNING:
                logger.debug("decode ignored in state %s", self._state.value)
                return False
            if payload == self._last_payload:
                return False
            self._last_payload = payload
            self._pending = PendingValidation(
                payload=payload,
                detected_at=timestamp if timestamp is not None else time.time(),
            )
            self._transition(SessionState.SUSPENDED)
            self._safe_call(self._decoder.pause, "pause")
            if self._on_pending:
                self._on_pending(payload)
            return True

    def validate(self) -> ScanRecord | None:
        """Record the pending value and resume decoding."""
        with self._lock:
            pending = self._pending
            if self._state != SessionState.SUSPENDED or pending is None:
                logger.debug("validate: %s", NO_OP)
                return None
            record = ScanRecord(
                id=new_record_id(),
                content=pending.payload,
                timestamp=self._clock(),
            )
            self._history.append(record)
            self._pending = None
            self._transition(SessionState.SCANNING)
            self._safe_call(self._decoder.resume, "resume")
            logger.info("recorded scan %s", record.id)
            if self._on_record:
                self._on_record(record)
            return record

    def deny(self) -> bool:
        """Drop the pending value; the same payload may be detected again."""
        with self._lock:
            if self._state != SessionState.SUSPENDED or self._pending is None:
                logger.debug("deny: %s", NO_OP)
                return False
            self._pending = None
            self._last_payload = None
            self._transition(SessionState.SCANNING)
            self._safe_call(self._decoder.resume, "resume")
            return True

    def clear_history(self, confirm: Callable[[], bool]) -> bool:
        """Empty history once ``confirm`` returns True. Session state is kept."""
        if not confirm():
            return False
        with self._lock:
            count = len(self._history)
            self._history.clear()
            self._last_payload = None
        logger.info("history cleared (%d records)", count)
        return True

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _handle_decode_event(self, session_id: int, event: DecodeEvent) -> None:
        with self._lock:
            if session_id != self._session_id or self._state == SessionState.IDLE:
                return
            kind = event.kind
            if kind == DecodeKind.MISS.value:
                self._miss_count += 1
                return
            if kind == DecodeKind.DECODED.value:
                self.on_decode(event.payload, event.timestamp or None)
                return
            if kind == DecodeKind.ERROR.value:
                self._fail(event.code or UNREADABLE, event.message)

    def _fail(self, code: str, message: str) -> None:
        logger.error("decoder failure %s: %s", code, message)
        self._pending = None
        self._transition(SessionState.IDLE)
        self._emit_error(code, message)
        self._safe_call(self._decoder.stop, "stop")

    def _emit_error(self, code: str, message: str) -> None:
        if self._on_error:
            self._on_error(code, message)

    def _safe_call(self, action: Callable[[], None], name: str) -> None:
        try:
            action()
        except Exception:
            logger.exception("decoder %s failed", name)

    def _transition(self, to_state: SessionState) -> None:
        from_state = self._state
        if from_state == to_state:
            return
        self._state = to_state
        logger.info("state %s -> %s", from_state.value, to_state.value)
        if self._on_state_change:
            self._on_state_change(from_state, to_state)
