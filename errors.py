"""Shared error codes and user-facing messages."""

from __future__ import annotations

DEVICE_UNAVAILABLE = "DEVICE_UNAVAILABLE"
PERMISSION_DENIED = "PERMISSION_DENIED"
DEVICE_BUSY = "DEVICE_BUSY"
UNREADABLE = "UNREADABLE"
NO_OP = "NO_OP"

ERROR_MESSAGES = {
    DEVICE_UNAVAILABLE: "No camera found, or no camera selected.",
    PERMISSION_DENIED: "Camera permission denied, check system privacy settings.",
    DEVICE_BUSY: "Camera is in use by another application.",
    UNREADABLE: "Camera could not be read.",
    NO_OP: "Nothing to do in the current state.",
}


class DecoderError(Exception):
    """Raised when the decoder cannot acquire or read its device."""

    def __init__(self, code: str, message: str = "") -> None:
        self.code = code
        self.message = message or ERROR_MESSAGES.get(code, code)
        super().__init__(f"{code}: {self.message}")
