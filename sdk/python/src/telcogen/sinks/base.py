"""telcogen Publish Sink boundary.

A sink accepts one event at a time together with a topic key and a routing
key, and reports the outcome asynchronously through a
``concurrent.futures.Future``. Transport failures are delivered as
:class:`~telcogen.errors.PublishError` on the future, never raised from
``publish`` itself. Retries, if any, are the sink's own business.
"""

from __future__ import annotations

import hashlib
from abc import ABC, abstractmethod
from concurrent.futures import Future
from dataclasses import dataclass
from typing import Any

from telcogen.schema import CallEvent, NetworkEvent, SessionEvent, TelcoEvent


@dataclass(frozen=True)
class PublishOutcome:
    """Acknowledgement for one delivered event."""

    topic: str
    routing_key: str
    event_id: str
    partition: int | None = None
    offset: int | None = None


def partition_key(phone_number: str) -> str:
    """Stable routing key for a subscriber's phone number.

    Derived from SHA-256 so that the same number maps to the same key in
    every process, unlike the builtin ``hash()``.
    """
    digest = hashlib.sha256(phone_number.encode("utf-8")).hexdigest()
    return digest[:16]


def routing_key_for(event: TelcoEvent) -> str:
    """Subscriber hash for call/session events, cell tower id for network events."""
    if isinstance(event, CallEvent):
        return partition_key(event.caller_phone_number or "")
    if isinstance(event, SessionEvent):
        return partition_key(event.phone_number or "")
    if isinstance(event, NetworkEvent):
        return event.cell_tower_id or ""
    raise TypeError(f"Unsupported event type: {type(event).__name__}")


def serialize_event(event: TelcoEvent) -> dict[str, Any]:
    """JSON-ready representation of *event* used by the bundled sinks."""
    return event.model_dump(mode="json", exclude_none=True)


class PublishSink(ABC):
    """Destination for generated events."""

    @abstractmethod
    def publish(self, topic_key: str, routing_key: str, event: TelcoEvent) -> Future[PublishOutcome]:
        """Hand *event* off without blocking on acknowledgement."""

    def flush(self, timeout: float | None = None) -> None:
        """Block until buffered events are handed off."""

    def close(self) -> None:
        """Release transport resources."""

    def __enter__(self) -> "PublishSink":
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()


def completed(outcome: PublishOutcome) -> Future[PublishOutcome]:
    future: Future[PublishOutcome] = Future()
    future.set_result(outcome)
    return future


def failed(error: BaseException) -> Future[PublishOutcome]:
    future: Future[PublishOutcome] = Future()
    future.set_exception(error)
    return future
