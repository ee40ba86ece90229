"""telcogen Publish Sinks.

Destinations generated events are handed off to: Kafka, a local JSONL file,
or an in-memory list.
"""

from telcogen.sinks.base import (
    PublishOutcome,
    PublishSink,
    partition_key,
    routing_key_for,
    serialize_event,
)
from telcogen.sinks.jsonl_sink import JsonlPublishSink
from telcogen.sinks.kafka_sink import KafkaPublishSink
from telcogen.sinks.memory_sink import InMemoryPublishSink, PublishedRecord

__all__ = [
    "PublishSink",
    "PublishOutcome",
    "partition_key",
    "routing_key_for",
    "serialize_event",
    "KafkaPublishSink",
    "JsonlPublishSink",
    "InMemoryPublishSink",
    "PublishedRecord",
]
