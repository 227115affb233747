"""Application entrypoint."""

from __future__ import annotations

import logging
import sys

from clipboard import ClipboardCopyService
from config import JsonConfigStore
from decoder import OpenCvDecoderSession, list_devices, preferred_device
from errors import ERROR_MESSAGES, DecoderError
from history import format_timestamp, is_url
from hotkey import GlobalHotkeyAdapter
from interfaces import ConfigStore, CopyService
from logging_config import configure_logging
from models import ScanRecord, SessionState
from overlay import OverlayWindow
from session_controller import ScanSessionController

try:
    from PySide6.QtCore import QObject, QSize, QUrl, Signal
    from PySide6.QtGui import QAction, QActionGroup, QBrush, QColor, QDesktopServices, QIcon, QPainter, QPixmap
    from PySide6.QtWidgets import QApplication, QMenu, QMessageBox, QSystemTrayIcon
except Exception as exc:  # pragma: no cover
    raise SystemExit(f"PySide6 is required to run the desktop app: {exc}")

logger = logging.getLogger(__name__)

RECENT_SCANS_IN_MENU = 10


def _create_icon(color: str = "#888888", size: int = 22) -> QIcon:
    """Generate a simple circular tray icon with the given color."""
    pixmap = QPixmap(QSize(size, size))
    pixmap.fill(QColor(0, 0, 0, 0))
    painter = QPainter(pixmap)
    painter.setRenderHint(QPainter.Antialiasing, True)
    painter.setBrush(QBrush(QColor(color)))
    painter.setPen(QColor(color))
    painter.drawEllipse(2, 2, size - 4, size - 4)
    painter.end()
    return QIcon(pixmap)


ICON_IDLE = "#888888"       # grey
ICON_SCANNING = "#33AA55"   # green
ICON_SUSPENDED = "#FFB000"  # amber
ICON_ERROR = "#FF4444"      # red


class UIBridge(QObject):
    state_signal = Signal(str, str)  # from_state, to_state
    pending_signal = Signal(str)
    record_signal = Signal(str)
    error_signal = Signal(str)


class App:
    def __init__(self) -> None:
        self.app = QApplication(sys.argv)
        self.app.setQuitOnLastWindowClosed(False)
        self.config_store: ConfigStore = JsonConfigStore()
        configure_logging(self.config_store.get_log_level())

        self.overlay = OverlayWindow()
        self.copy_service: CopyService = ClipboardCopyService()
        self.ui = UIBridge()
        self.ui.state_signal.connect(self._on_state_change_ui)
        self.ui.pending_signal.connect(self._on_pending_ui)
        self.ui.record_signal.connect(self._on_record_ui)
        self.ui.error_signal.connect(self._on_error_ui)

        self.devices = list_devices()
        device_id = self._initial_device_id()
        self.controller = ScanSessionController(
            decoder=OpenCvDecoderSession(),
            config=self.config_store.get_decoder_config(),
            device_id=device_id,
            on_state_change=self._on_state_change,
            on_pending=self._on_pending,
            on_record=self._on_record,
            on_error=self._on_error,
        )
        self.hotkeys = self.config_store.get_hotkeys()
        self.hotkey = GlobalHotkeyAdapter(self.hotkeys)

        self.tray = QSystemTrayIcon()
        self.tray.setIcon(_create_icon(ICON_IDLE))
        self.tray.setToolTip("QR Validator — Ready")
        self._setup_menu()
        self.tray.show()

    def _initial_device_id(self) -> str:
        saved = self.config_store.get_camera_id()
        if saved and any(device.id == saved for device in self.devices):
            return saved
        device = preferred_device(self.devices)
        return device.id if device else ""

    def _setup_menu(self) -> None:
        menu = QMenu()

        self.toggle_action = QAction("Start Scanner", menu)
        self.toggle_action.triggered.connect(self._toggle_scanning)
        menu.addAction(self.toggle_action)

        self.validate_action = QAction("Validate", menu)
        self.validate_action.triggered.connect(self.controller.validate)
        self.validate_action.setEnabled(False)
        menu.addAction(self.validate_action)

        self.deny_action = QAction("Deny", menu)
        self.deny_action.triggered.connect(self.controller.deny)
        self.deny_action.setEnabled(False)
        menu.addAction(self.deny_action)

        menu.addSeparator()
        camera_menu = menu.addMenu("Camera")
        if not self.devices:
            empty = camera_menu.addAction("No camera found")
            empty.setEnabled(False)
        self.camera_group = QActionGroup(camera_menu)
        self.camera_group.setExclusive(True)
        for device in self.devices:
            action = QAction(device.label, camera_menu)
            action.setCheckable(True)
            action.setChecked(device.id == self.controller.selected_device)
            action.triggered.connect(lambda _checked=False, d=device.id: self._select_camera(d))
            self.camera_group.addAction(action)
            camera_menu.addAction(action)

        self.recent_menu = menu.addMenu("Recent Scans")
        self.recent_menu.aboutToShow.connect(self._populate_recent_menu)

        copy_action = QAction("Copy Last Scan", menu)
        copy_action.triggered.connect(self._copy_last_scan)
        menu.addAction(copy_action)

        clear_action = QAction("Clear History…", menu)
        clear_action.triggered.connect(self._clear_history)
        menu.addAction(clear_action)

        menu.addSeparator()
        quit_action = QAction("Quit", menu)
        quit_action.triggered.connect(self.quit)
        menu.addAction(quit_action)

        self.tray.setContextMenu(menu)

    # ------------------------------------------------------------------
    # Menu and hotkey actions
    # ------------------------------------------------------------------

    def _toggle_scanning(self) -> None:
        if self.controller.state == SessionState.IDLE:
            self._start_scanning()
        else:
            self.controller.stop()

    def _start_scanning(self) -> None:
        try:
            self.controller.start()
        except DecoderError as exc:
            self._on_error(exc.code, exc.message)

    def _select_camera(self, device_id: str) -> None:
        self.config_store.set_camera_id(device_id)
        try:
            self.controller.change_device(device_id)
        except DecoderError as exc:
            self._on_error(exc.code, exc.message)

    def _populate_recent_menu(self) -> None:
        self.recent_menu.clear()
        records = self.controller.history[:RECENT_SCANS_IN_MENU]
        if not records:
            empty = self.recent_menu.addAction("No QR code scanned yet")
            empty.setEnabled(False)
            return
        for record in records:
            label = f"{format_timestamp(record.timestamp)}  {record.content[:60]}"
            entry = self.recent_menu.addMenu(label)
            copy = entry.addAction("Copy")
            copy.triggered.connect(lambda _checked=False, r=record: self._copy_record(r))
            if is_url(record.content):
                open_link = entry.addAction("Open Link")
                open_link.triggered.connect(
                    lambda _checked=False, r=record: QDesktopServices.openUrl(QUrl(r.content))
                )

    def _copy_last_scan(self) -> None:
        records = self.controller.history
        if records:
            self._copy_record(records[0])

    def _copy_record(self, record: ScanRecord) -> None:
        result = self.copy_service.copy_text(record.content)
        if result.success:
            self.overlay.show_success("Copied", hide_after_ms=1500)
        else:
            self.overlay.show_error(f"Copy failed: {result.reason}")

    def _clear_history(self) -> None:
        def confirm() -> bool:
            answer = QMessageBox.question(
                None,
                "Clear History",
                f"Delete all {len(self.controller.history)} recorded scans? This cannot be undone.",
                QMessageBox.Yes | QMessageBox.No,
                QMessageBox.No,
            )
            return answer == QMessageBox.Yes

        self.controller.clear_history(confirm)

    # ------------------------------------------------------------------
    # Controller callbacks (called from worker threads → emit signals)
    # ------------------------------------------------------------------

    def _on_state_change(self, from_state: SessionState, to_state: SessionState) -> None:
        self.ui.state_signal.emit(from_state.value, to_state.value)

    def _on_pending(self, payload: str) -> None:
        self.ui.pending_signal.emit(payload)

    def _on_record(self, record: ScanRecord) -> None:
        self.ui.record_signal.emit(record.content)

    def _on_error(self, code: str, message: str) -> None:
        self.ui.error_signal.emit(message or ERROR_MESSAGES.get(code, code))

    # ------------------------------------------------------------------
    # UI thread handlers (safe for Qt)
    # ------------------------------------------------------------------

    def _on_state_change_ui(self, from_state: str, to_state: str) -> None:
        suspended = to_state == SessionState.SUSPENDED.value
        self.validate_action.setEnabled(suspended)
        self.deny_action.setEnabled(suspended)
        if to_state == SessionState.IDLE.value:
            self.toggle_action.setText("Start Scanner")
            self.tray.setIcon(_create_icon(ICON_IDLE))
            self.tray.setToolTip("QR Validator — Ready")
            if from_state == SessionState.SUSPENDED.value:
                self.overlay.hide_with_delay(400)
        elif to_state == SessionState.SCANNING.value:
            self.toggle_action.setText("Stop Scanner")
            self.tray.setIcon(_create_icon(ICON_SCANNING))
            self.tray.setToolTip("QR Validator — Scanning...")
            if from_state == SessionState.SUSPENDED.value:
                self.overlay.hide_with_delay(400)
        elif suspended:
            self.tray.setIcon(_create_icon(ICON_SUSPENDED))
            self.tray.setToolTip("QR Validator — Waiting for validation")

    def _on_pending_ui(self, payload: str) -> None:
        self.overlay.show_pending(payload, self.hotkeys["validate"], self.hotkeys["deny"])

    def _on_record_ui(self, content: str) -> None:
        self.overlay.show_success(f"QR code recorded: {content}")

    def _on_error_ui(self, msg: str) -> None:
        self.tray.setIcon(_create_icon(ICON_ERROR))
        self.overlay.show_error(msg)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def run(self) -> int:
        try:
            self.hotkey.start(
                {
                    "validate": self.controller.validate,
                    "deny": self.controller.deny,
                    "toggle": self._toggle_scanning,
                }
            )
        except Exception as exc:
            logger.warning("hotkeys disabled: %s", exc)
            self.overlay.show_error(f"Hotkeys disabled: {exc}")
        try:
            return self.app.exec()
        finally:
            self.controller.stop()

    def quit(self) -> None:
        self.hotkey.stop()
        self.controller.stop()
        self.app.quit()


def main() -> int:
    app = App()
    return app.run()


if __name__ == "__main__":
    raise SystemExit(main())
