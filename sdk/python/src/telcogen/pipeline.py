"""telcogen Generator Pipeline.

Wires every component of a generator process together explicitly: session
registry, synthetic data factory, quality aggregate and validator, event
generator, publish sink, scheduler, and an OpenTelemetry ``TracerProvider``
for tick spans.

Architecture::

    ┌──────────────────────────────────────────────────┐
    │              GenerationScheduler                  │
    │          (one tick per interval)                  │
    └────────────────────┬─────────────────────────────┘
                         │ generate_batch(rate)
                         ▼
    ┌──────────────────────────────────────────────────┐
    │               EventGenerator                      │
    │                                                   │
    │  SessionRegistry   SyntheticDataFactory           │
    │  QualityValidator ──► QualityAggregate            │
    └────────────────────┬─────────────────────────────┘
                         │ publish(topic, key, event)
                         ▼
    ┌──────────────────────────────────────────────────┐
    │   PublishSink  (Kafka / JSONL / in-memory)        │
    └──────────────────────────────────────────────────┘

Usage::

    from telcogen.pipeline import create_kafka_pipeline

    pipeline = create_kafka_pipeline(bootstrap_servers="kafka:9092")
    pipeline.start()
    ...
    pipeline.shutdown()
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

from opentelemetry import trace
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import (
    BatchSpanProcessor,
    SimpleSpanProcessor,
    SpanExporter,
)

from telcogen.config import GeneratorConfig
from telcogen.generators.events import BatchSummary, EventGenerator
from telcogen.generators.synthetic import SyntheticDataFactory
from telcogen.processors.quality import QualityAggregate, QualityReport, QualityValidator
from telcogen.registry import SessionRegistry
from telcogen.scheduler import GenerationScheduler, GeneratorStatus
from telcogen.sinks.base import PublishSink
from telcogen.sinks.jsonl_sink import JsonlPublishSink
from telcogen.sinks.kafka_sink import KafkaPublishSink
from telcogen.sinks.memory_sink import InMemoryPublishSink

logger = logging.getLogger(__name__)


class GeneratorPipeline:
    """A fully wired generator process.

    Parameters
    ----------
    config : GeneratorConfig, optional
        Configuration snapshot; defaults are used when omitted.
    sink : PublishSink, optional
        Event destination. A :class:`KafkaPublishSink` built from
        ``config.kafka`` is used when omitted.
    tracer_provider : TracerProvider, optional
        Provider for tick spans. When omitted the pipeline builds and owns
        its own provider.
    console : bool
        If ``True``, print tick spans to the console (for development).
    otlp_endpoint : str, optional
        OTLP gRPC endpoint for tick spans. Requires
        ``opentelemetry-exporter-otlp-proto-grpc``.
    seed : int, optional
        Seed for the synthetic data factory, for reproducible runs.
    service_name : str
        Service name for the OTel resource of an owned provider.
    """

    def __init__(
        self,
        config: GeneratorConfig | None = None,
        sink: PublishSink | None = None,
        *,
        tracer_provider: trace.TracerProvider | None = None,
        console: bool = False,
        otlp_endpoint: str | None = None,
        seed: int | None = None,
        service_name: str = "telcogen",
    ) -> None:
        self._config = config or GeneratorConfig()
        config = self._config

        self._owned_provider: TracerProvider | None = None
        if tracer_provider is None:
            tracer_provider = self._create_tracer_provider(
                service_name, console, otlp_endpoint,
            )
            self._owned_provider = tracer_provider
        self._tracer_provider = tracer_provider

        if sink is None:
            sink = KafkaPublishSink.from_config(config.kafka)
        self._sink = sink

        self._registry = SessionRegistry()
        self._factory = SyntheticDataFactory(config, seed=seed)
        self._aggregate = QualityAggregate()
        validator = None
        if config.quality.validate_before_publish:
            validator = QualityValidator(self._aggregate)
        self._validator = validator

        self._generator = EventGenerator(
            config,
            sink,
            registry=self._registry,
            factory=self._factory,
            validator=validator,
            tracer_provider=tracer_provider,
        )
        self._scheduler = GenerationScheduler(
            self._generator,
            interval_seconds=config.generation_interval_seconds,
            rate=config.rates.default_rate,
            rate_bounds=(config.rates.min, config.rates.max),
        )
        logger.info(
            "Generator pipeline ready: sink=%s rate=%d interval=%dms",
            type(sink).__name__, config.rates.default_rate, config.generation_interval_ms,
        )

    @staticmethod
    def _create_tracer_provider(
        service_name: str,
        console: bool,
        otlp_endpoint: str | None,
    ) -> TracerProvider:
        provider = TracerProvider(resource=Resource.create({"service.name": service_name}))

        if otlp_endpoint:
            exporter = _create_otlp_exporter(otlp_endpoint)
            if exporter is not None:
                provider.add_span_processor(BatchSpanProcessor(exporter))
                logger.info("OTLP span export enabled: %s", otlp_endpoint)

        if console:
            from opentelemetry.sdk.trace.export import ConsoleSpanExporter
            provider.add_span_processor(SimpleSpanProcessor(ConsoleSpanExporter()))
            logger.info("Console span output enabled")

        return provider

    # ── Components ────────────────────────────────────────────────────

    @property
    def config(self) -> GeneratorConfig:
        return self._config

    @property
    def sink(self) -> PublishSink:
        return self._sink

    @property
    def registry(self) -> SessionRegistry:
        return self._registry

    @property
    def factory(self) -> SyntheticDataFactory:
        return self._factory

    @property
    def aggregate(self) -> QualityAggregate:
        return self._aggregate

    @property
    def validator(self) -> QualityValidator | None:
        return self._validator

    @property
    def generator(self) -> EventGenerator:
        return self._generator

    @property
    def scheduler(self) -> GenerationScheduler:
        return self._scheduler

    @property
    def tracer_provider(self) -> trace.TracerProvider:
        return self._tracer_provider

    # ── Control surface ───────────────────────────────────────────────

    def start(self) -> None:
        self._scheduler.start()

    def stop(self, timeout: float | None = 10.0) -> None:
        self._scheduler.stop(timeout)

    def set_rate(self, rate: int) -> None:
        self._scheduler.set_rate(rate)

    def status(self) -> GeneratorStatus:
        return self._scheduler.status()

    def metrics(self) -> dict[str, Any]:
        return self._scheduler.metrics()

    def run_once(self) -> BatchSummary:
        return self._scheduler.run_once()

    def quality_report(self) -> QualityReport:
        return self._aggregate.snapshot()

    def shutdown(self) -> None:
        """Stop generation, then flush and close the sink and owned provider."""
        self._scheduler.stop()
        self._generator.close()
        try:
            self._sink.flush()
        finally:
            self._sink.close()
            if self._owned_provider is not None:
                self._owned_provider.shutdown()

    def __enter__(self) -> "GeneratorPipeline":
        return self

    def __exit__(self, *exc: Any) -> None:
        self.shutdown()


def _create_otlp_exporter(endpoint: str) -> SpanExporter | None:
    try:
        from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import (
            OTLPSpanExporter,
        )
    except ImportError:
        logger.warning(
            "opentelemetry-exporter-otlp-proto-grpc not installed. "
            "Install with: pip install opentelemetry-exporter-otlp-proto-grpc"
        )
        return None
    return OTLPSpanExporter(endpoint=endpoint)


# ── Convenience constructors ──────────────────────────────────────────

def create_kafka_pipeline(
    bootstrap_servers: str | None = None,
    config: GeneratorConfig | None = None,
    *,
    producer: Any | None = None,
    **kwargs: Any,
) -> GeneratorPipeline:
    """Pipeline publishing to Kafka.

    *bootstrap_servers* overrides ``config.kafka.bootstrap_servers``.
    """
    config = config or GeneratorConfig()
    if bootstrap_servers is not None:
        kafka = config.kafka.model_copy(update={"bootstrap_servers": bootstrap_servers})
        config = config.model_copy(update={"kafka": kafka})
    sink = KafkaPublishSink.from_config(config.kafka, producer=producer)
    return GeneratorPipeline(config, sink, **kwargs)


def create_jsonl_pipeline(
    output_file: str | Path = "telcogen_events.jsonl",
    config: GeneratorConfig | None = None,
    **kwargs: Any,
) -> GeneratorPipeline:
    """Pipeline appending events to a local JSON Lines file."""
    return GeneratorPipeline(config, JsonlPublishSink(output_file), **kwargs)


def create_in_memory_pipeline(
    config: GeneratorConfig | None = None,
    **kwargs: Any,
) -> GeneratorPipeline:
    """Pipeline collecting events in memory; use ``pipeline.sink.records``."""
    return GeneratorPipeline(config, InMemoryPublishSink(), **kwargs)
