"""Clipboard copy service for recorded scans."""

from __future__ import annotations

import logging

try:
    import pyperclip
except Exception:  # pragma: no cover
    pyperclip = None  # type: ignore

from models import CopyResult

logger = logging.getLogger(__name__)


class ClipboardCopyService:
    def copy_text(self, text: str) -> CopyResult:
        if not text.strip():
            return CopyResult(success=False, reason="empty text")
        if pyperclip is None:
            return CopyResult(success=False, reason="clipboard dependency missing")
        try:
            pyperclip.copy(text)
        except Exception as exc:
            logger.warning("clipboard copy failed: %s", exc)
            return CopyResult(success=False, reason=str(exc))
        return CopyResult(success=True, reason="ok")
