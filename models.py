"""Core data models for the scanner."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum


class SessionState(str, Enum):
    IDLE = "IDLE"
    SCANNING = "SCANNING"
    SUSPENDED = "SUSPENDED"


class DecodeKind(str, Enum):
    DECODED = "decoded"
    MISS = "miss"
    ERROR = "error"


@dataclass
class DecodeEvent:
    kind: str
    payload: str = ""
    timestamp: float = 0.0
    code: str = ""
    message: str = ""


@dataclass(frozen=True)
class PendingValidation:
    payload: str
    detected_at: float = 0.0


@dataclass(frozen=True)
class ScanRecord:
    id: str
    content: str
    timestamp: datetime


@dataclass(frozen=True)
class CameraDevice:
    id: str
    label: str


@dataclass
class DecoderConfig:
    fps: int = 10
    box_size: int = 250
    miss_error_threshold: int = 30


@dataclass
class CopyResult:
    success: bool
    reason: str
