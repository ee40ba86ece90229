"""telcogen Event Schema.

Call, data-session and cell-tower telemetry events emitted by the generator.

Models declare field types only. Range and format rules are enforced by the
quality validator instead, so that corrupt or tampered events can still be
constructed, scored and reported on.
"""

from __future__ import annotations

import time
import uuid
from enum import Enum
from typing import Union

from pydantic import BaseModel, Field


# --- Enumerations ---

class EventKind(str, Enum):
    CALL = "call"
    SESSION = "session"
    NETWORK = "network"


class CallEventType(str, Enum):
    CALL_START = "CALL_START"
    CALL_END = "CALL_END"


class SessionEventType(str, Enum):
    SESSION_START = "SESSION_START"
    SESSION_END = "SESSION_END"


class AlertLevel(str, Enum):
    """Severity derived from latency and packet-loss thresholds."""
    NORMAL = "NORMAL"
    WARNING = "WARNING"
    CRITICAL = "CRITICAL"


class NetworkType(str, Enum):
    G2 = "2G"
    G3 = "3G"
    G4 = "4G"
    G5 = "5G"
    LTE = "LTE"


class RuleCategory(str, Enum):
    """Data-quality rule categories a violation can be tagged with."""
    COMPLETENESS = "COMPLETENESS"
    FORMAT = "FORMAT"
    VALIDITY = "VALIDITY"
    BUSINESS_RULE = "BUSINESS_RULE"
    REASONABLENESS = "REASONABLENESS"


VALID_NETWORK_TYPES = frozenset(t.value for t in NetworkType)


def now_millis() -> int:
    """Wall-clock time as epoch milliseconds."""
    return int(time.time() * 1000)


def new_event_id() -> str:
    return str(uuid.uuid4())


# --- Nested objects ---

class Location(BaseModel):
    """Geolocation of the serving cell."""
    latitude: float
    longitude: float


class NetworkQuality(BaseModel):
    """Radio conditions observed during a data session."""
    signal_strength: int  # dBm
    bandwidth: int  # bps
    network_type: str


class NetworkMetrics(BaseModel):
    """Cell-tower performance sample."""
    latency: float  # ms
    packet_loss: float  # fraction 0..1
    jitter: float  # ms
    throughput: int  # bps
    active_connections: int


# --- Events ---

class CallEvent(BaseModel):
    """Voice call lifecycle event (start or end)."""
    event_id: str = Field(default_factory=new_event_id)
    event_type: CallEventType = CallEventType.CALL_START
    timestamp: int = Field(default_factory=now_millis)
    caller_phone_number: str | None = None
    callee_phone_number: str | None = None
    call_id: str = ""
    cell_tower_id: str = ""
    location: Location | None = None
    duration: int | None = None  # seconds, CALL_END only


class SessionEvent(BaseModel):
    """Mobile data session lifecycle event (start or end)."""
    event_id: str = Field(default_factory=new_event_id)
    event_type: SessionEventType = SessionEventType.SESSION_START
    timestamp: int = Field(default_factory=now_millis)
    phone_number: str | None = None
    session_id: str | None = None
    imsi: str | None = None
    apn: str = ""
    network_quality: NetworkQuality | None = None
    data_usage: int | None = None  # bytes, SESSION_END only


class NetworkEvent(BaseModel):
    """Periodic cell-tower telemetry sample."""
    event_id: str = Field(default_factory=new_event_id)
    timestamp: int = Field(default_factory=now_millis)
    cell_tower_id: str | None = None
    metrics: NetworkMetrics | None = None
    alert_level: AlertLevel = AlertLevel.NORMAL


TelcoEvent = Union[CallEvent, SessionEvent, NetworkEvent]


def event_kind(event: TelcoEvent) -> EventKind:
    """Return the kind of *event*; raises ``TypeError`` for foreign objects."""
    if isinstance(event, CallEvent):
        return EventKind.CALL
    if isinstance(event, SessionEvent):
        return EventKind.SESSION
    if isinstance(event, NetworkEvent):
        return EventKind.NETWORK
    raise TypeError(f"Unsupported event type: {type(event).__name__}")
