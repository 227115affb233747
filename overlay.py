"""Overlay window for the pending value, banners and errors."""

from __future__ import annotations

try:
    from PySide6.QtCore import Qt, QTimer
    from PySide6.QtWidgets import QApplication, QLabel, QWidget, QVBoxLayout
except Exception:  # pragma: no cover
    Qt = None  # type: ignore
    QTimer = None  # type: ignore
    QApplication = None  # type: ignore
    QLabel = object  # type: ignore
    QWidget = object  # type: ignore
    QVBoxLayout = object  # type: ignore

_BASE_STYLE = "font-size: 18px; padding: 16px; border-radius: 12px;"
_STYLES = {
    "info": "color: white; background: rgba(0,0,0,190);" + _BASE_STYLE,
    "pending": "color: #FFD166; background: rgba(0,0,0,210);" + _BASE_STYLE,
    "success": "color: #7CFC9A; background: rgba(0,0,0,190);" + _BASE_STYLE,
    "error": "color: #FF6B6B; background: rgba(0,0,0,210);" + _BASE_STYLE,
}


class OverlayWindow(QWidget):
    def __init__(self) -> None:
        if Qt is None:
            raise RuntimeError("PySide6 is not installed")
        super().__init__()
        self.setWindowFlags(
            Qt.WindowStaysOnTopHint | Qt.FramelessWindowHint | Qt.Tool
        )
        self.setAttribute(Qt.WA_TranslucentBackground, True)
        self.setFixedWidth(600)

        self._label = QLabel("")
        self._label.setWordWrap(True)
        self._label.setTextInteractionFlags(Qt.TextSelectableByMouse)

        layout = QVBoxLayout()
        layout.setContentsMargins(0, 0, 0, 0)
        layout.addWidget(self._label)
        self.setLayout(layout)

        self._hide_timer: QTimer | None = None
        self._set_style("info")

    def _center_top(self) -> None:
        """Position the window at the top center of the primary screen."""
        if QApplication is None:
            return
        screen = QApplication.primaryScreen()
        if screen is None:
            return
        geom = screen.availableGeometry()
        self.adjustSize()
        x = geom.x() + (geom.width() - self.width()) // 2
        y = geom.y() + 40
        self.move(x, y)

    def set_text(self, text: str, kind: str = "info") -> None:
        self._cancel_hide_timer()
        self._set_style(kind)
        self._label.setText(text)
        self._center_top()
        self.show()

    def show_pending(self, payload: str, validate_key: str, deny_key: str) -> None:
        """Keep the decoded value on screen until the operator decides."""
        self.set_text(
            f"{payload}\n\nValidate: {validate_key}    Deny: {deny_key}",
            kind="pending",
        )

    def show_success(self, text: str, hide_after_ms: int = 3000) -> None:
        self.set_text(f"✅ {text}", kind="success")
        self.hide_with_delay(hide_after_ms)

    def show_error(self, text: str, hide_after_ms: int = 3000) -> None:
        self.set_text(f"⚠️ {text}", kind="error")
        self.hide_with_delay(hide_after_ms)

    def hide_with_delay(self, delay_ms: int = 400) -> None:
        self._cancel_hide_timer()
        if QTimer is not None:
            self._hide_timer = QTimer()
            self._hide_timer.setSingleShot(True)
            self._hide_timer.timeout.connect(self.hide)
            self._hide_timer.start(delay_ms)

    def _cancel_hide_timer(self) -> None:
        if self._hide_timer is not None:
            self._hide_timer.stop()
            self._hide_timer = None

    def _set_style(self, kind: str) -> None:
        self._label.setStyleSheet(_STYLES.get(kind, _STYLES["info"]))
