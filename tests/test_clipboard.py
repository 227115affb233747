from __future__ import annotations

from unittest.mock import MagicMock, patch

import clipboard
from clipboard import ClipboardCopyService


def test_copy_returns_failure_when_dependency_missing(monkeypatch) -> None:  # noqa: ANN001
    monkeypatch.setattr(clipboard, "pyperclip", None)

    result = ClipboardCopyService().copy_text("hello")

    assert result.success is False


def test_copy_returns_failure_on_empty_text() -> None:
    result = ClipboardCopyService().copy_text("   ")

    assert result.success is False
    assert result.reason == "empty text"


@patch("clipboard.pyperclip")
def test_copy_writes_to_clipboard(mock_clip: MagicMock) -> None:
    result = ClipboardCopyService().copy_text("https://example.com")

    mock_clip.copy.assert_called_once_with("https://example.com")
    assert result.success is True


@patch("clipboard.pyperclip")
def test_copy_error_is_reported_not_raised(mock_clip: MagicMock) -> None:
    mock_clip.copy.side_effect = RuntimeError("no clipboard backend")

    result = ClipboardCopyService().copy_text("hello")

    assert result.success is False
    assert "no clipboard backend" in result.reason
