from __future__ import annotations

from datetime import datetime

import pytest

from history import HistoryLog, format_timestamp, is_url, new_record_id
from models import ScanRecord


def _record(record_id: str, content: str = "x") -> ScanRecord:
    return ScanRecord(id=record_id, content=content, timestamp=datetime(2024, 1, 2, 3, 4, 5))


def test_append_inserts_at_front() -> None:
    log = HistoryLog()
    log.append(_record("1", "first"))
    log.append(_record("2", "second"))

    assert [r.content for r in log.all()] == ["second", "first"]
    assert log.latest() is not None and log.latest().id == "2"
    assert len(log) == 2


def test_same_content_is_not_deduplicated() -> None:
    log = HistoryLog()
    log.append(_record("1", "same"))
    log.append(_record("2", "same"))

    assert len(log) == 2


def test_duplicate_id_is_rejected() -> None:
    log = HistoryLog()
    log.append(_record("1"))

    with pytest.raises(ValueError):
        log.append(_record("1"))
    assert len(log) == 1


def test_all_is_a_stable_snapshot() -> None:
    log = HistoryLog()
    log.append(_record("1"))
    first = log.all()

    assert log.all() == first
    log.append(_record("2"))
    assert len(first) == 1


def test_clear_empties_and_allows_id_reuse() -> None:
    log = HistoryLog()
    log.append(_record("1"))
    log.append(_record("2"))

    log.clear()

    assert log.all() == ()
    assert log.latest() is None
    log.append(_record("1"))
    assert len(log) == 1


def test_new_record_id_is_unique() -> None:
    ids = {new_record_id() for _ in range(1000)}
    assert len(ids) == 1000


@pytest.mark.parametrize(
    "text,expected",
    [
        ("https://example.com/path?q=1", True),
        ("http://localhost:8080", True),
        ("example.com", False),
        ("just some text", False),
        ("", False),
    ],
)
def test_is_url(text: str, expected: bool) -> None:
    assert is_url(text) is expected


def test_format_timestamp() -> None:
    assert format_timestamp(datetime(2024, 1, 2, 3, 4, 5)) == "02/01 03:04:05"
