"""telcogen Data Quality Processor.

Scores call, session and network events against per-kind rule sets.

Each event gets a :class:`QualityResult` with a validity flag, the full list
of violations (every rule is evaluated, none short-circuit) and a 0-100
score. The score starts at 100 and loses a fixed penalty per violation
category, clamped at 0.

:class:`QualityAggregate` keeps the running totals behind the lifetime
quality report. It is an owned object: the processor, the generator and any
reporting surface share the same instance by reference.

Usage:
    from telcogen.processors.quality import QualityAggregate, QualityValidator

    validator = QualityValidator(aggregate=QualityAggregate())
    result = validator.validate(event)
    if not result.valid:
        print(result.violations)
    print(validator.report().average_quality_score)
"""

from __future__ import annotations

import logging
import re
import threading
from collections import Counter
from datetime import datetime, timezone
from typing import Callable

from pydantic import BaseModel, Field

from telcogen.schema import (
    VALID_NETWORK_TYPES,
    CallEvent,
    CallEventType,
    NetworkEvent,
    RuleCategory,
    SessionEvent,
    SessionEventType,
    TelcoEvent,
    now_millis,
)

logger = logging.getLogger(__name__)

PHONE_NUMBER_PATTERN = re.compile(r"^\d{10}$", re.ASCII)
IMSI_PATTERN = re.compile(r"^\d{15}$", re.ASCII)

MAX_FUTURE_SKEW_MS = 5 * 60 * 1000
MAX_CALL_DURATION_SECONDS = 86_400

# Score penalty per violation category
RULE_PENALTIES: dict[str, float] = {
    RuleCategory.COMPLETENESS.value: 20.0,
    RuleCategory.BUSINESS_RULE.value: 25.0,
    RuleCategory.FORMAT.value: 15.0,
    RuleCategory.VALIDITY.value: 15.0,
    RuleCategory.REASONABLENESS.value: 5.0,
}
DEFAULT_PENALTY = 10.0

MAX_SCORE = 100.0


# --- Result models ---

class QualityViolation(BaseModel):
    """A single failed rule."""
    rule: str
    message: str
    field: str


class QualityResult(BaseModel):
    """Outcome of validating one event."""
    valid: bool
    violations: list[QualityViolation] = Field(default_factory=list)
    score: float = MAX_SCORE

    @property
    def rules(self) -> set[str]:
        return {v.rule for v in self.violations}


class QualityReport(BaseModel):
    """Lifetime quality summary produced on demand."""
    total_events_processed: int
    valid_events_count: int
    invalid_events_count: int
    average_quality_score: float
    quality_percentage: float
    violations_by_rule: dict[str, int] = Field(default_factory=dict)
    generated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


# --- Scoring ---

def violation_penalty(rule: str) -> float:
    return RULE_PENALTIES.get(str(getattr(rule, "value", rule)), DEFAULT_PENALTY)


def calculate_score(violations: list[QualityViolation]) -> float:
    """100 minus the category penalty of every violation, never below 0."""
    penalty = sum(violation_penalty(v.rule) for v in violations)
    return max(0.0, min(MAX_SCORE, MAX_SCORE - penalty))


# --- Rule helpers ---

def _is_blank(value: str | None) -> bool:
    return value is None or not str(value).strip()


def _is_valid_phone_number(value: str | None) -> bool:
    return not _is_blank(value) and PHONE_NUMBER_PATTERN.fullmatch(value) is not None


def _is_valid_imsi(value: str | None) -> bool:
    return not _is_blank(value) and IMSI_PATTERN.fullmatch(value) is not None


def _violation(rule: RuleCategory, message: str, field: str) -> QualityViolation:
    return QualityViolation(rule=rule.value, message=message, field=field)


def _check_timestamp(timestamp: int, now_ms: int, out: list[QualityViolation]) -> None:
    if timestamp <= 0:
        out.append(_violation(RuleCategory.VALIDITY, "Invalid timestamp", "timestamp"))
    if timestamp > now_ms + MAX_FUTURE_SKEW_MS:
        out.append(_violation(
            RuleCategory.VALIDITY, "Timestamp is too far in the future", "timestamp",
        ))


# --- Rule catalogue per event kind ---

def _validate_call_event(event: CallEvent, now_ms: int) -> list[QualityViolation]:
    violations: list[QualityViolation] = []
    caller = event.caller_phone_number
    callee = event.callee_phone_number

    # Completeness
    if _is_blank(event.event_id):
        violations.append(_violation(RuleCategory.COMPLETENESS, "Event ID is missing", "event_id"))
    if _is_blank(caller):
        violations.append(_violation(
            RuleCategory.COMPLETENESS, "Caller phone number is missing", "caller_phone_number",
        ))
    if _is_blank(callee):
        violations.append(_violation(
            RuleCategory.COMPLETENESS, "Callee phone number is missing", "callee_phone_number",
        ))

    # Format
    if not _is_valid_phone_number(caller):
        violations.append(_violation(
            RuleCategory.FORMAT, "Invalid caller phone number format", "caller_phone_number",
        ))
    if not _is_valid_phone_number(callee):
        violations.append(_violation(
            RuleCategory.FORMAT, "Invalid callee phone number format", "callee_phone_number",
        ))

    # Business rule
    if caller is not None and callee is not None and caller == callee:
        violations.append(_violation(
            RuleCategory.BUSINESS_RULE, "Caller and callee cannot be the same", "phone_numbers",
        ))

    _check_timestamp(event.timestamp, now_ms, violations)

    if event.event_type == CallEventType.CALL_END:
        if event.duration is None or event.duration <= 0:
            violations.append(_violation(
                RuleCategory.BUSINESS_RULE, "Call end event must have positive duration", "duration",
            ))
        if event.duration is not None and event.duration > MAX_CALL_DURATION_SECONDS:
            violations.append(_violation(
                RuleCategory.REASONABLENESS, "Call duration seems unreasonably long", "duration",
            ))

    if event.location is not None:
        lat = event.location.latitude
        lon = event.location.longitude
        if lat < -90 or lat > 90:
            violations.append(_violation(RuleCategory.VALIDITY, "Invalid latitude", "location.latitude"))
        if lon < -180 or lon > 180:
            violations.append(_violation(RuleCategory.VALIDITY, "Invalid longitude", "location.longitude"))

    return violations


def _validate_session_event(event: SessionEvent, now_ms: int) -> list[QualityViolation]:
    violations: list[QualityViolation] = []

    # Completeness
    if _is_blank(event.event_id):
        violations.append(_violation(RuleCategory.COMPLETENESS, "Event ID is missing", "event_id"))
    if _is_blank(event.phone_number):
        violations.append(_violation(RuleCategory.COMPLETENESS, "Phone number is missing", "phone_number"))
    if _is_blank(event.session_id):
        violations.append(_violation(RuleCategory.COMPLETENESS, "Session ID is missing", "session_id"))
    if _is_blank(event.imsi):
        violations.append(_violation(RuleCategory.COMPLETENESS, "IMSI is missing", "imsi"))

    # Format
    if not _is_valid_phone_number(event.phone_number):
        violations.append(_violation(RuleCategory.FORMAT, "Invalid phone number format", "phone_number"))
    if not _is_valid_imsi(event.imsi):
        violations.append(_violation(RuleCategory.FORMAT, "Invalid IMSI format", "imsi"))

    quality = event.network_quality
    if quality is not None:
        if quality.signal_strength > -30 or quality.signal_strength < -120:
            violations.append(_violation(
                RuleCategory.VALIDITY, "Invalid signal strength", "network_quality.signal_strength",
            ))
        if quality.bandwidth <= 0:
            violations.append(_violation(
                RuleCategory.VALIDITY, "Invalid bandwidth", "network_quality.bandwidth",
            ))
        if quality.network_type not in VALID_NETWORK_TYPES:
            violations.append(_violation(
                RuleCategory.VALIDITY, "Invalid network type", "network_quality.network_type",
            ))

    if event.event_type == SessionEventType.SESSION_END:
        if event.data_usage is None or event.data_usage < 0:
            violations.append(_violation(
                RuleCategory.BUSINESS_RULE, "Session end event must have valid data usage", "data_usage",
            ))

    return violations


def _validate_network_event(event: NetworkEvent, now_ms: int) -> list[QualityViolation]:
    violations: list[QualityViolation] = []

    if _is_blank(event.event_id):
        violations.append(_violation(RuleCategory.COMPLETENESS, "Event ID is missing", "event_id"))
    if _is_blank(event.cell_tower_id):
        violations.append(_violation(RuleCategory.COMPLETENESS, "Cell tower ID is missing", "cell_tower_id"))

    metrics = event.metrics
    if metrics is not None:
        if metrics.latency < 0 or metrics.latency > 1000:
            violations.append(_violation(
                RuleCategory.VALIDITY, "Latency out of reasonable range", "metrics.latency",
            ))
        if metrics.packet_loss < 0 or metrics.packet_loss > 1:
            violations.append(_violation(
                RuleCategory.VALIDITY, "Packet loss must be between 0 and 1", "metrics.packet_loss",
            ))
        if metrics.jitter < 0 or metrics.jitter > 100:
            violations.append(_violation(
                RuleCategory.VALIDITY, "Jitter out of reasonable range", "metrics.jitter",
            ))
        if metrics.throughput <= 0:
            violations.append(_violation(
                RuleCategory.VALIDITY, "Throughput must be positive", "metrics.throughput",
            ))
        if metrics.active_connections < 0:
            violations.append(_violation(
                RuleCategory.VALIDITY, "Active connections cannot be negative", "metrics.active_connections",
            ))

        # Independent of the range checks above
        if metrics.latency > 500:
            violations.append(_violation(
                RuleCategory.REASONABLENESS, "Very high latency detected", "metrics.latency",
            ))
        if metrics.packet_loss > 0.1:
            violations.append(_violation(
                RuleCategory.REASONABLENESS, "Very high packet loss detected", "metrics.packet_loss",
            ))

    return violations


_VALIDATORS: dict[type, Callable[..., list[QualityViolation]]] = {
    CallEvent: _validate_call_event,
    SessionEvent: _validate_session_event,
    NetworkEvent: _validate_network_event,
}


def validate_event(event: TelcoEvent, now_ms: int | None = None) -> QualityResult:
    """Evaluate every applicable rule for *event* and score the result.

    *now_ms* is the reference time for the future-timestamp rule and defaults
    to the current wall clock. Raises ``TypeError`` for non-event objects.
    """
    rule_set = _VALIDATORS.get(type(event))
    if rule_set is None:
        raise TypeError(f"Unsupported event type: {type(event).__name__}")

    violations = rule_set(event, now_millis() if now_ms is None else now_ms)
    return QualityResult(
        valid=not violations,
        violations=violations,
        score=calculate_score(violations),
    )


# --- Aggregate ---

class QualityAggregate:
    """Running totals over every recorded :class:`QualityResult`.

    Thread-safe; counters live until :meth:`reset`.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._total = 0
        self._valid = 0
        self._invalid = 0
        self._score_sum = 0.0
        self._violations_by_rule: Counter[str] = Counter()

    def record(self, result: QualityResult) -> None:
        with self._lock:
            self._total += 1
            self._score_sum += result.score
            if result.valid:
                self._valid += 1
            else:
                self._invalid += 1
                self._violations_by_rule.update(v.rule for v in result.violations)

    @property
    def total(self) -> int:
        with self._lock:
            return self._total

    @property
    def average_score(self) -> float:
        """Mean score of all recorded results; 100 before anything is recorded."""
        with self._lock:
            return self._average_locked()

    def _average_locked(self) -> float:
        if self._total == 0:
            return MAX_SCORE
        return self._score_sum / self._total

    def snapshot(self) -> QualityReport:
        with self._lock:
            percentage = (self._valid / self._total * 100.0) if self._total else 100.0
            return QualityReport(
                total_events_processed=self._total,
                valid_events_count=self._valid,
                invalid_events_count=self._invalid,
                average_quality_score=self._average_locked(),
                quality_percentage=percentage,
                violations_by_rule=dict(self._violations_by_rule),
            )

    def reset(self) -> None:
        with self._lock:
            self._total = 0
            self._valid = 0
            self._invalid = 0
            self._score_sum = 0.0
            self._violations_by_rule.clear()


class QualityValidator:
    """Validates events and feeds every result into a shared aggregate.

    Configuration:
        aggregate: Aggregate to record results into; a private one is
            created when omitted.
        clock: Returns "now" in epoch ms for the future-timestamp rule.
    """

    def __init__(
        self,
        aggregate: QualityAggregate | None = None,
        clock: Callable[[], int] | None = None,
    ) -> None:
        self._aggregate = aggregate if aggregate is not None else QualityAggregate()
        self._clock = clock or now_millis

    @property
    def aggregate(self) -> QualityAggregate:
        return self._aggregate

    def validate(self, event: TelcoEvent) -> QualityResult:
        """Validate *event* and record the outcome in the aggregate."""
        result = validate_event(event, now_ms=self._clock())
        self._aggregate.record(result)
        if not result.valid:
            logger.debug(
                "Event %s failed %d quality rule(s), score=%.1f",
                event.event_id, len(result.violations), result.score,
            )
        return result

    def report(self) -> QualityReport:
        return self._aggregate.snapshot()

    def reset(self) -> None:
        self._aggregate.reset()
