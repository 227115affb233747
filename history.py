"""In-memory history of confirmed scans."""

from __future__ import annotations

import itertools
import secrets
import threading
import time
from collections import deque
from datetime import datetime
from typing import Iterator
from urllib.parse import urlparse

from models import ScanRecord

_sequence = itertools.count(1)
_sequence_lock = threading.Lock()


def new_record_id() -> str:
    """Return an id unique for the lifetime of the process."""
    with _sequence_lock:
        seq = next(_sequence)
    return f"{int(time.time() * 1000)}-{seq}-{secrets.token_hex(4)}"


class HistoryLog:
    """Newest-first, append-only sequence of ScanRecord.

    Content is never deduplicated here; only record ids must be unique.
    """

    def __init__(self) -> None:
        self._records: deque[ScanRecord] = deque()
        self._ids: set[str] = set()

    def append(self, record: ScanRecord) -> None:
        if record.id in self._ids:
            raise ValueError(f"duplicate record id: {record.id}")
        self._records.appendleft(record)
        self._ids.add(record.id)

    def clear(self) -> None:
        self._records.clear()
        self._ids.clear()

    def all(self) -> tuple[ScanRecord, ...]:
        return tuple(self._records)

    def latest(self) -> ScanRecord | None:
        return self._records[0] if self._records else None

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[ScanRecord]:
        return iter(self.all())


def is_url(text: str) -> bool:
    try:
        parsed = urlparse(text.strip())
    except ValueError:
        return False
    return bool(parsed.scheme and parsed.netloc)


def format_timestamp(value: datetime) -> str:
    return value.strftime("%d/%m %H:%M:%S")
