"""telcogen Kafka Publish Sink.

Publishes events as JSON to Kafka topics with kafka-python. The producer's
record futures are bridged into ``concurrent.futures.Future`` objects so the
generator can attach completion callbacks without blocking.

Usage::

    from telcogen.sinks import KafkaPublishSink

    sink = KafkaPublishSink(bootstrap_servers="kafka:9092")
    future = sink.publish("telco.call.events", routing_key, event)
    future.add_done_callback(lambda f: print(f.exception()))
"""

from __future__ import annotations

import json
import logging
from concurrent.futures import Future
from typing import Any

from telcogen.config import KafkaConfig
from telcogen.errors import PublishError
from telcogen.schema import TelcoEvent
from telcogen.sinks.base import PublishOutcome, PublishSink, failed, serialize_event

logger = logging.getLogger(__name__)


def _acks(value: str) -> int | str:
    if value in ("0", "1"):
        return int(value)
    return value


def _encode_key(key: str) -> bytes:
    return key.encode("utf-8")


def _encode_value(value: dict[str, Any]) -> bytes:
    return json.dumps(value, default=str).encode("utf-8")


class KafkaPublishSink(PublishSink):
    """Kafka-backed sink.

    Args:
        bootstrap_servers: Kafka bootstrap servers, ``host:port[,host:port]``.
        client_id: Producer client id.
        acks: ``"0"``, ``"1"`` or ``"all"``.
        linger_ms: Producer batching window.
        compression_type: Optional producer compression codec.
        producer: Pre-built producer exposing ``send``/``flush``/``close``;
            when given, no connection settings are used.
    """

    def __init__(
        self,
        bootstrap_servers: str = "localhost:9092",
        *,
        client_id: str = "telcogen",
        acks: str = "1",
        linger_ms: int = 10,
        compression_type: str | None = None,
        producer: Any | None = None,
    ) -> None:
        if producer is None:
            from kafka import KafkaProducer

            producer = KafkaProducer(
                bootstrap_servers=bootstrap_servers.split(","),
                client_id=client_id,
                acks=_acks(acks),
                linger_ms=linger_ms,
                compression_type=compression_type,
                key_serializer=_encode_key,
                value_serializer=_encode_value,
            )
            logger.info("Kafka sink connected to %s", bootstrap_servers)
        self._producer = producer

    @classmethod
    def from_config(cls, config: KafkaConfig, producer: Any | None = None) -> "KafkaPublishSink":
        return cls(
            config.bootstrap_servers,
            client_id=config.client_id,
            acks=config.acks,
            linger_ms=config.linger_ms,
            compression_type=config.compression_type,
            producer=producer,
        )

    def publish(self, topic_key: str, routing_key: str, event: TelcoEvent) -> Future[PublishOutcome]:
        try:
            record_future = self._producer.send(
                topic_key, key=routing_key, value=serialize_event(event),
            )
        except Exception as exc:
            # Buffer exhaustion, serialization or metadata timeouts surface here.
            return failed(PublishError(topic_key, routing_key, str(exc)))

        future: Future[PublishOutcome] = Future()

        def on_success(metadata: Any) -> None:
            future.set_result(PublishOutcome(
                topic=getattr(metadata, "topic", topic_key),
                routing_key=routing_key,
                event_id=event.event_id,
                partition=getattr(metadata, "partition", None),
                offset=getattr(metadata, "offset", None),
            ))

        def on_error(exc: BaseException) -> None:
            future.set_exception(PublishError(topic_key, routing_key, str(exc)))

        record_future.add_callback(on_success)
        record_future.add_errback(on_error)
        return future

    def flush(self, timeout: float | None = None) -> None:
        self._producer.flush(timeout=timeout)

    def close(self) -> None:
        try:
            self._producer.flush()
        finally:
            self._producer.close()
