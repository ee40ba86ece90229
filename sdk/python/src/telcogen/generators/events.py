"""telcogen Event Generator.

Emits call, data-session and cell-tower events in batches sized from the
target rate. Call and session kinds are small state machines over the
:class:`~telcogen.registry.SessionRegistry`: each draw either closes an open
lifecycle (END event) or opens a new one (START event), so every END refers
to a START issued earlier. Network events are stateless samples.

One tick (:meth:`EventGenerator.generate_batch`) produces three batches:

    call events     30% of the rate
    session events  40% of the rate
    network events  30% of the rate

Each batch has at least one event. Every event is built, checked and
handed to the sink inside its own error boundary; a failing event is logged
and counted and the rest of the batch carries on. Publishing does not wait
for acknowledgement: outcomes arrive on the sink's future and are logged and
counted by a completion callback.

Usage:
    from telcogen.generators import EventGenerator
    from telcogen.sinks import InMemoryPublishSink

    generator = EventGenerator(GeneratorConfig(), InMemoryPublishSink())
    summary = generator.generate_batch()
"""

from __future__ import annotations

import logging
import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Callable

from opentelemetry import trace
from opentelemetry.trace import SpanKind, StatusCode

from telcogen.config import GeneratorConfig
from telcogen.generators.synthetic import SyntheticDataFactory
from telcogen.processors.quality import MAX_CALL_DURATION_SECONDS, QualityValidator
from telcogen.registry import SessionKind, SessionRegistry
from telcogen.schema import (
    CallEvent,
    CallEventType,
    EventKind,
    NetworkEvent,
    RuleCategory,
    SessionEvent,
    SessionEventType,
    TelcoEvent,
    now_millis,
)
from telcogen.semantic_conventions.attributes import (
    GeneratorAttributes,
    PublishAttributes,
    QualityAttributes,
)
from telcogen.sinks.base import PublishOutcome, PublishSink, routing_key_for

logger = logging.getLogger(__name__)

_TRACER_NAME = "telcogen.generators.events"

CALL_END_PROBABILITY = 0.3
SESSION_END_PROBABILITY = 0.2

# Rule categories that flag an event without blocking its publication
ADVISORY_RULES = frozenset({RuleCategory.REASONABLENESS.value})

# Share of the target rate per event kind, in percent
CALL_SHARE = 30
SESSION_SHARE = 40
NETWORK_SHARE = 30


@dataclass(frozen=True)
class BatchSizes:
    call: int
    session: int
    network: int

    @property
    def total(self) -> int:
        return self.call + self.session + self.network


def batch_sizes(rate: int) -> BatchSizes:
    """Split *rate* into per-kind batch sizes, each at least 1."""
    return BatchSizes(
        call=max(1, rate * CALL_SHARE // 100),
        session=max(1, rate * SESSION_SHARE // 100),
        network=max(1, rate * NETWORK_SHARE // 100),
    )


@dataclass
class BatchSummary:
    """What one tick produced."""

    rate: int
    planned: BatchSizes
    generated: dict[str, int] = field(default_factory=dict)
    skipped: int = 0
    dropped: int = 0
    failed: int = 0
    duration_ms: float = 0.0

    @property
    def total_generated(self) -> int:
        return sum(self.generated.values())


@dataclass
class _KindOutcome:
    generated: int = 0
    skipped: int = 0
    dropped: int = 0
    failed: int = 0


class GeneratorStats:
    """Thread-safe lifetime counters of a generator."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._generated = {kind.value: 0 for kind in EventKind}
        self._published = 0
        self._publish_failures = 0
        self._generation_errors = 0
        self._dropped_invalid = 0
        self._ticks = 0

    def add_generated(self, kind: EventKind) -> None:
        with self._lock:
            self._generated[kind.value] += 1

    def add_published(self) -> None:
        with self._lock:
            self._published += 1

    def add_publish_failure(self) -> None:
        with self._lock:
            self._publish_failures += 1

    def add_generation_error(self) -> None:
        with self._lock:
            self._generation_errors += 1

    def add_dropped(self) -> None:
        with self._lock:
            self._dropped_invalid += 1

    def add_tick(self) -> None:
        with self._lock:
            self._ticks += 1

    def snapshot(self) -> dict[str, Any]:
        with self._lock:
            return {
                "call_events_generated": self._generated[EventKind.CALL.value],
                "session_events_generated": self._generated[EventKind.SESSION.value],
                "network_events_generated": self._generated[EventKind.NETWORK.value],
                "messages_sent": self._published,
                "messages_failed": self._publish_failures,
                "generation_errors": self._generation_errors,
                "invalid_events_dropped": self._dropped_invalid,
                "ticks": self._ticks,
            }


class EventGenerator:
    """Builds telecom events and hands them to a :class:`PublishSink`.

    Args:
        config: Configuration snapshot (rates, topics, distributions).
        sink: Destination for generated events.
        registry: Open-lifecycle store; a fresh one is created when omitted.
        factory: Field-value generator; built from *config* when omitted.
        validator: Pre-publish quality check. Defaults to a new
            :class:`QualityValidator` when ``config.quality.validate_before_publish``
            is set; pass one explicitly to share its aggregate.
        tracer_provider: OTel provider for tick spans; the global provider
            is used when omitted.
        clock: Returns the current time in epoch ms.
        parallel: Run the three kind batches on a worker pool; defaults to
            ``config.parallel_batches``.
    """

    def __init__(
        self,
        config: GeneratorConfig,
        sink: PublishSink,
        *,
        registry: SessionRegistry | None = None,
        factory: SyntheticDataFactory | None = None,
        validator: QualityValidator | None = None,
        tracer_provider: trace.TracerProvider | None = None,
        clock: Callable[[], int] | None = None,
        parallel: bool | None = None,
    ) -> None:
        self._config = config
        self._sink = sink
        self._registry = registry if registry is not None else SessionRegistry()
        self._factory = factory if factory is not None else SyntheticDataFactory(config)
        self._clock = clock or now_millis
        if validator is None and config.quality.validate_before_publish:
            validator = QualityValidator(clock=self._clock)
        self._validator = validator
        self._parallel = config.parallel_batches if parallel is None else parallel
        self._stats = GeneratorStats()
        self._executor: ThreadPoolExecutor | None = None
        self._executor_lock = threading.Lock()

        tp = tracer_provider or trace.get_tracer_provider()
        self._tracer = tp.get_tracer(_TRACER_NAME)

    # ── Accessors ─────────────────────────────────────────────────────

    @property
    def config(self) -> GeneratorConfig:
        return self._config

    @property
    def registry(self) -> SessionRegistry:
        return self._registry

    @property
    def validator(self) -> QualityValidator | None:
        return self._validator

    @property
    def sink(self) -> PublishSink:
        return self._sink

    def stats(self) -> dict[str, Any]:
        return self._stats.snapshot()

    # ── Single-event builders ─────────────────────────────────────────

    def generate_call_event(self) -> CallEvent | None:
        """Close an open call (p=0.3) or start a new one.

        Returns ``None`` when an END was chosen but the open call was taken
        by a concurrent worker first.
        """
        rng = self._factory.rng
        if self._registry.count(SessionKind.CALL) > 0 and rng.random() < CALL_END_PROBABILITY:
            return self._call_end_event()
        return self._call_start_event()

    def _call_start_event(self) -> CallEvent:
        factory = self._factory
        now = self._clock()
        caller = factory.phone_number()
        event = CallEvent(
            event_id=factory.new_id(),
            event_type=CallEventType.CALL_START,
            timestamp=now,
            caller_phone_number=caller,
            callee_phone_number=self._distinct_number(caller),
            call_id=factory.new_id(),
            cell_tower_id=factory.cell_tower_id(),
            location=factory.location(),
        )
        self._registry.open(SessionKind.CALL, event.call_id, caller, now)
        return event

    def _call_end_event(self) -> CallEvent | None:
        entry = self._registry.close_any(SessionKind.CALL)
        if entry is None:
            return None
        factory = self._factory
        now = self._clock()
        # Callee identity is not tracked across the call; a fresh number is drawn.
        return CallEvent(
            event_id=factory.new_id(),
            event_type=CallEventType.CALL_END,
            timestamp=now,
            caller_phone_number=entry.subject_number,
            callee_phone_number=self._distinct_number(entry.subject_number),
            call_id=entry.session_id,
            cell_tower_id=factory.cell_tower_id(),
            location=factory.location(),
            duration=min(MAX_CALL_DURATION_SECONDS, max(1, (now - entry.start_time) // 1000)),
        )

    def generate_session_event(self) -> SessionEvent | None:
        """Close an open data session (p=0.2) or start a new one."""
        rng = self._factory.rng
        if self._registry.count(SessionKind.DATA) > 0 and rng.random() < SESSION_END_PROBABILITY:
            return self._session_end_event()
        return self._session_start_event()

    def _session_start_event(self) -> SessionEvent:
        factory = self._factory
        now = self._clock()
        phone = factory.phone_number()
        event = SessionEvent(
            event_id=factory.new_id(),
            event_type=SessionEventType.SESSION_START,
            timestamp=now,
            phone_number=phone,
            session_id=factory.new_id(),
            imsi=factory.imsi(),
            apn=factory.apn(),
            network_quality=factory.network_quality(),
        )
        self._registry.open(SessionKind.DATA, event.session_id, phone, now)
        return event

    def _session_end_event(self) -> SessionEvent | None:
        entry = self._registry.close_any(SessionKind.DATA)
        if entry is None:
            return None
        factory = self._factory
        return SessionEvent(
            event_id=factory.new_id(),
            event_type=SessionEventType.SESSION_END,
            timestamp=self._clock(),
            phone_number=entry.subject_number,
            session_id=entry.session_id,
            imsi=factory.imsi(),
            apn=factory.apn(),
            network_quality=factory.network_quality(),
            data_usage=factory.data_usage(),
        )

    def generate_network_event(self) -> NetworkEvent:
        factory = self._factory
        sample = factory.network_metrics()
        return NetworkEvent(
            event_id=factory.new_id(),
            timestamp=self._clock(),
            cell_tower_id=factory.cell_tower_id(),
            metrics=sample.metrics,
            alert_level=sample.alert_level,
        )

    def _distinct_number(self, other: str) -> str:
        phone = self._factory.phone_number()
        # Redraw on collision; a one-number range cannot be helped.
        for _ in range(8):
            if phone != other:
                break
            phone = self._factory.phone_number()
        return phone

    # ── Tick ──────────────────────────────────────────────────────────

    def generate_batch(self, rate: int | None = None) -> BatchSummary:
        """Run one generation tick at *rate* events/sec (config default when omitted)."""
        if rate is None:
            rate = self._config.rates.default_rate
        sizes = batch_sizes(rate)
        summary = BatchSummary(rate=rate, planned=sizes)
        started = time.perf_counter()

        with self._tracer.start_as_current_span(
            name="telcogen.tick",
            kind=SpanKind.INTERNAL,
            attributes={
                GeneratorAttributes.TICK_RATE: rate,
                GeneratorAttributes.TICK_PARALLEL: self._parallel,
                PublishAttributes.SINK: type(self._sink).__name__,
                GeneratorAttributes.BATCH_CALL_SIZE: sizes.call,
                GeneratorAttributes.BATCH_SESSION_SIZE: sizes.session,
                GeneratorAttributes.BATCH_NETWORK_SIZE: sizes.network,
            },
        ) as span:
            plan = [
                (EventKind.CALL, sizes.call, self.generate_call_event),
                (EventKind.SESSION, sizes.session, self.generate_session_event),
                (EventKind.NETWORK, sizes.network, self.generate_network_event),
            ]
            if self._parallel:
                executor = self._get_executor()
                futures = [
                    (kind, executor.submit(self._run_batch, kind, count, build, span))
                    for kind, count, build in plan
                ]
                outcomes = [(kind, f.result()) for kind, f in futures]
            else:
                outcomes = [
                    (kind, self._run_batch(kind, count, build, span))
                    for kind, count, build in plan
                ]

            for kind, outcome in outcomes:
                summary.generated[kind.value] = outcome.generated
                summary.skipped += outcome.skipped
                summary.dropped += outcome.dropped
                summary.failed += outcome.failed

            span.set_attribute(GeneratorAttributes.EVENTS_GENERATED, summary.total_generated)
            span.set_attribute(GeneratorAttributes.EVENTS_SKIPPED, summary.skipped)
            span.set_attribute(GeneratorAttributes.EVENTS_DROPPED, summary.dropped)
            span.set_attribute(GeneratorAttributes.EVENTS_FAILED, summary.failed)
            span.set_attribute(GeneratorAttributes.OPEN_CALLS, self._registry.count(SessionKind.CALL))
            span.set_attribute(GeneratorAttributes.OPEN_SESSIONS, self._registry.count(SessionKind.DATA))
            if self._validator is not None:
                span.set_attribute(
                    QualityAttributes.AVERAGE_SCORE, self._validator.aggregate.average_score,
                )
            if summary.failed:
                span.set_status(StatusCode.ERROR, f"{summary.failed} event(s) failed")
            else:
                span.set_status(StatusCode.OK)

        self._stats.add_tick()
        summary.duration_ms = (time.perf_counter() - started) * 1000.0
        logger.debug(
            "Tick at rate %d generated %d event(s) (skipped=%d dropped=%d failed=%d) in %.1f ms",
            rate, summary.total_generated, summary.skipped, summary.dropped,
            summary.failed, summary.duration_ms,
        )
        return summary

    def _run_batch(
        self,
        kind: EventKind,
        count: int,
        build: Callable[[], TelcoEvent | None],
        span: trace.Span,
    ) -> _KindOutcome:
        outcome = _KindOutcome()
        for _ in range(count):
            event = None
            try:
                event = build()
                if event is None:
                    outcome.skipped += 1
                    continue
                if not self._passes_quality(kind, event, span):
                    self._withdraw_start(event)
                    outcome.dropped += 1
                    continue
                self._publish(kind, event)
                outcome.generated += 1
            except Exception as exc:
                if event is not None:
                    self._withdraw_start(event)
                outcome.failed += 1
                self._stats.add_generation_error()
                logger.exception("Error generating %s event: %s", kind.value, exc)
                span.record_exception(exc, attributes={
                    GeneratorAttributes.EVENT_KIND: kind.value,
                    PublishAttributes.TOPIC: self._config.topics.for_kind(kind),
                })
        return outcome

    def _withdraw_start(self, event: TelcoEvent) -> None:
        """Close the lifecycle a START opened when the START never reaches the sink."""
        if isinstance(event, CallEvent) and event.event_type == CallEventType.CALL_START:
            self._registry.close(SessionKind.CALL, event.call_id)
        elif isinstance(event, SessionEvent) and event.event_type == SessionEventType.SESSION_START:
            self._registry.close(SessionKind.DATA, event.session_id)

    def _passes_quality(self, kind: EventKind, event: TelcoEvent, span: trace.Span) -> bool:
        if self._validator is None:
            return True
        result = self._validator.validate(event)
        if result.valid or not self._config.quality.drop_invalid_events:
            return True
        if result.rules <= ADVISORY_RULES:
            return True

        self._stats.add_dropped()
        logger.warning(
            "Dropping invalid %s event %s (score=%.1f): %s",
            kind.value, event.event_id, result.score,
            "; ".join(f"{v.rule}:{v.field}" for v in result.violations),
        )
        span.add_event(QualityAttributes.EVENT_INVALID, attributes={
            GeneratorAttributes.EVENT_KIND: kind.value,
            GeneratorAttributes.EVENT_ID: event.event_id,
            QualityAttributes.VALID: False,
            QualityAttributes.SCORE: result.score,
            QualityAttributes.VIOLATION_COUNT: len(result.violations),
        })
        return False

    def _publish(self, kind: EventKind, event: TelcoEvent) -> None:
        topic = self._config.topics.for_kind(kind)
        routing_key = routing_key_for(event)
        future = self._sink.publish(topic, routing_key, event)
        self._stats.add_generated(kind)
        future.add_done_callback(
            lambda f: self._on_publish_done(kind, topic, routing_key, f)
        )

    def _on_publish_done(
        self,
        kind: EventKind,
        topic: str,
        routing_key: str,
        future: Future[PublishOutcome],
    ) -> None:
        if future.cancelled():
            error = "cancelled"
        else:
            exc = future.exception()
            if exc is None:
                self._stats.add_published()
                return
            error = str(exc)

        self._stats.add_publish_failure()
        logger.error(
            "Failed to send %s event to topic %s (key %s): %s",
            kind.value, topic, routing_key, error,
        )

    # ── Lifecycle ─────────────────────────────────────────────────────

    def _get_executor(self) -> ThreadPoolExecutor:
        with self._executor_lock:
            if self._executor is None:
                self._executor = ThreadPoolExecutor(
                    max_workers=len(EventKind), thread_name_prefix="telcogen-batch",
                )
            return self._executor

    def close(self) -> None:
        """Stop the batch worker pool, if one was started."""
        with self._executor_lock:
            if self._executor is not None:
                self._executor.shutdown(wait=True)
                self._executor = None
