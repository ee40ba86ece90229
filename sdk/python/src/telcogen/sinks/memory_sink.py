"""telcogen In-Memory Publish Sink."""

from __future__ import annotations

import threading
from concurrent.futures import Future
from dataclasses import dataclass
from typing import Callable

from telcogen.errors import PublishError
from telcogen.schema import TelcoEvent
from telcogen.sinks.base import PublishOutcome, PublishSink, completed, failed


@dataclass(frozen=True)
class PublishedRecord:
    topic: str
    routing_key: str
    event: TelcoEvent


class InMemoryPublishSink(PublishSink):
    """Keeps every published record in a list.

    ``fail_when`` is an optional predicate; records it matches are rejected
    with a :class:`PublishError` on the returned future instead of stored.
    """

    def __init__(self, fail_when: Callable[[str, TelcoEvent], bool] | None = None) -> None:
        self._lock = threading.Lock()
        self._records: list[PublishedRecord] = []
        self._fail_when = fail_when

    def publish(self, topic_key: str, routing_key: str, event: TelcoEvent) -> Future[PublishOutcome]:
        if self._fail_when is not None and self._fail_when(topic_key, event):
            return failed(PublishError(topic_key, routing_key, "rejected by sink"))

        with self._lock:
            offset = len(self._records)
            self._records.append(PublishedRecord(topic_key, routing_key, event))
        return completed(PublishOutcome(
            topic=topic_key,
            routing_key=routing_key,
            event_id=event.event_id,
            partition=0,
            offset=offset,
        ))

    @property
    def records(self) -> list[PublishedRecord]:
        with self._lock:
            return list(self._records)

    def events(self, topic: str | None = None) -> list[TelcoEvent]:
        return [r.event for r in self.records if topic is None or r.topic == topic]

    def clear(self) -> None:
        with self._lock:
            self._records.clear()
